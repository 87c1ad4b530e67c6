"""Command line front end: ``js2php [file] [--namespace NS] [--output OUT]``."""

from __future__ import annotations

import argparse
import logging
import sys

from .api import translate
from .errors import TranslationError
from .translate_types import TranslateOptions

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate JavaScript source to PHP")
    parser.add_argument("file", nargs="?", help="JavaScript file to translate (default: stdin)")
    parser.add_argument("--namespace", "-n", default=None, help="PHP namespace for the output")
    parser.add_argument("--watermark", "-w", default=None, help="Banner comment placed after the open tag")
    parser.add_argument(
        "--verbose-arrays",
        action="store_true",
        help="Emit array(...) instead of [...] literals",
    )
    parser.add_argument("--output", "-o", default=None, help="Write PHP here instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log translation progress")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            source = f.read()
    else:
        source = sys.stdin.read()

    options = TranslateOptions(
        concise_arrays=not args.verbose_arrays,
        namespace=args.namespace,
        watermark=args.watermark,
    )
    try:
        output = translate(source, options)
    except TranslationError as e:
        print(f"js2php: {e}", file=sys.stderr)
        return 1

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
