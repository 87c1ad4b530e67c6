"""Tests for the tree-sitter parsing layer."""

from __future__ import annotations

import pytest

from js2php.errors import SourceSyntaxError
from js2php.parser import Parser, ParserFactory, TreeSitterParserFactory


class _CountingFactory(ParserFactory):
    def __init__(self):
        self.inner = TreeSitterParserFactory()
        self.requested: list[str] = []

    def get_parser(self, language: str):
        self.requested.append(language)
        return self.inner.get_parser(language)


class TestTreeSitterParserFactory:
    def test_parser_is_reused(self):
        factory = TreeSitterParserFactory()
        assert factory.get_parser("javascript") is factory.get_parser("javascript")

    def test_unsupported_language(self):
        with pytest.raises(ValueError, match="Unsupported source language"):
            TreeSitterParserFactory().get_parser("cobol")


class TestParser:
    def test_parses_javascript_by_default(self):
        factory = _CountingFactory()
        tree = Parser(factory).parse("var a = 1;")
        assert factory.requested == ["javascript"]
        assert tree.root_node.type == "program"

    def test_syntax_error_reports_location(self):
        with pytest.raises(SourceSyntaxError) as info:
            Parser().parse("var a = 1;\nvar = ;")
        assert info.value.location.start_line == 2
