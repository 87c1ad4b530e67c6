"""Tests for the Position Index."""

from __future__ import annotations

from js2php.nodes import Node, adapt_tree
from js2php.parser import Parser, TreeSitterParserFactory
from js2php.positions import PositionIndex


def _index(source: str):
    tree = Parser(TreeSitterParserFactory()).parse(source)
    encoded = source.encode("utf-8")
    return PositionIndex.from_tree(tree, encoded), adapt_tree(tree, encoded)


def _find(root: Node, type: str, text: str) -> Node:
    return next(n for n in root.walk() if n.type == type and n.text == text)


class TestParenthesisDetection:
    def test_parenthesized_binary_operand(self):
        index, root = _index("x = (a + b) * c;")
        assert index.is_parenthesized(_find(root, "binary_expression", "a + b"))

    def test_unparenthesized_expression(self):
        index, root = _index("x = (a + b) * c;")
        assert not index.is_parenthesized(_find(root, "binary_expression", "(a + b) * c"))

    def test_whitespace_inside_parentheses_is_ignored(self):
        index, root = _index("x = (  a  ) ;")
        assert index.is_parenthesized(_find(root, "identifier", "a"))

    def test_parentheses_across_lines(self):
        index, root = _index("x = (\n  a\n);")
        assert index.is_parenthesized(_find(root, "identifier", "a"))

    def test_synthetic_node_is_never_parenthesized(self):
        index, _ = _index("x = (a);")
        assert not index.is_parenthesized(Node.synthetic("identifier", text="a"))


class TestTokenLookup:
    def test_token_before_and_after(self):
        index, root = _index("f(a, b);")
        a = _find(root, "identifier", "a")
        assert index.token_before(a).kind == "("
        assert index.token_after(a).kind == ","

    def test_missing_neighbour(self):
        index, root = _index("a;")
        assert index.token_before(_find(root, "identifier", "a")) is None
