"""Tree-sitter parsing layer for JavaScript source."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from . import constants
from .errors import SourceSyntaxError
from .nodes import SourceLocation

logger = logging.getLogger(__name__)

_SNIPPET_BYTES = 40


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack.

    Parsers are created once per language and reused.
    """

    def __init__(self):
        self._parsers: dict[str, object] = {}

    def get_parser(self, language: str):
        if language not in constants.SUPPORTED_SOURCE_LANGUAGES:
            raise ValueError(f"Unsupported source language: {language}")
        if language not in self._parsers:
            import tree_sitter_language_pack as tslp

            self._parsers[language] = tslp.get_parser(language)
        return self._parsers[language]


def first_error(ts_node):
    """Depth-first search for the first ERROR or missing node under *ts_node*."""
    stack = [ts_node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        stack.extend(reversed(current.children))
    return ts_node


class Parser:
    """Parses source text and rejects trees that contain syntax errors."""

    def __init__(self, parser_factory: Optional[ParserFactory] = None):
        self._factory = parser_factory or TreeSitterParserFactory()

    def parse(self, source: str, language: str = constants.SOURCE_LANGUAGE):
        encoded = source.encode("utf-8")
        tree = self._factory.get_parser(language).parse(encoded)
        if tree.root_node.has_error:
            bad = first_error(tree.root_node)
            snippet = encoded[bad.start_byte : bad.end_byte][:_SNIPPET_BYTES]
            location = SourceLocation.of(bad)
            logger.debug("Parse error in %s source at %s", language, location)
            raise SourceSyntaxError(location, snippet.decode("utf-8", errors="replace"))
        return tree
