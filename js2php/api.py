"""Composable API functions for the JavaScript → PHP translation pipeline.

Each function corresponds to a CLI workflow but is callable programmatically
without argparse.
"""

from __future__ import annotations

import logging
from typing import Optional

from .nodes import Node, adapt_tree
from .parser import Parser, TreeSitterParserFactory
from .positions import PositionIndex
from .translate_types import TranslateOptions
from .translator import Translator

logger = logging.getLogger(__name__)

__all__ = ["TranslateOptions", "parse_source", "translate"]


def parse_source(source: str) -> Node:
    """Parse JavaScript *source* and return the adapted AST.

    Raises:
        SourceSyntaxError: If the source does not parse cleanly.
    """
    tree = Parser(TreeSitterParserFactory()).parse(source)
    return adapt_tree(tree, source.encode("utf-8"))


def translate(source: str, options: Optional[TranslateOptions] = None) -> str:
    """Translate a JavaScript program to PHP source text.

    Args:
        source: The JavaScript source text.
        options: Output options; defaults to ``TranslateOptions()``.

    Returns:
        The complete PHP text, starting with the ``<?php`` open tag.

    Raises:
        SourceSyntaxError: If the source does not parse cleanly.
        UnsupportedConstructError: If the program uses a construct with no
            PHP mapping. No partial output is produced.
    """
    options = options or TranslateOptions()
    logger.info("Translating %d bytes of JavaScript", len(source))
    encoded = source.encode("utf-8")
    tree = Parser(TreeSitterParserFactory()).parse(source)
    positions = PositionIndex.from_tree(tree, encoded)
    root = adapt_tree(tree, encoded)
    output = Translator(options, positions).translate(root)
    logger.info("Translated %d source lines into %d PHP lines", root.end_line, output.count("\n"))
    return output
