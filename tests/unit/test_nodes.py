"""Tests for the tree-sitter to Node adapter."""

from __future__ import annotations

from js2php import parse_source
from js2php.nodes import NO_SOURCE_LOCATION, Comment, CommentKind, Node, SourceLocation


class TestAdaptedTree:
    def test_program_root_and_fields(self):
        root = parse_source("var a = 1;")
        assert root.type == "program"
        declarator = root.children[0].children[0]
        assert declarator.type == "variable_declarator"
        assert declarator.field("name").text == "a"
        assert declarator.field("value").text == "1"
        assert declarator.parent is root.children[0]

    def test_locations_are_one_based(self):
        root = parse_source("\nvar a = 1;")
        assert root.children[0].location == SourceLocation(
            start_line=2, start_col=0, end_line=2, end_col=10
        )

    def test_operator_attribute(self):
        root = parse_source("a + b;")
        assert root.children[0].children[0].operator == "+"

    def test_parenthesized_expressions_are_unwrapped(self):
        root = parse_source("x = (a);")
        assignment = root.children[0].children[0]
        assert assignment.field("right").type == "identifier"

    def test_optional_chain_token(self):
        root = parse_source("a?.b;")
        assert root.children[0].children[0].has_token("?.")

    def test_array_holes_become_elisions(self):
        root = parse_source("var [x, , y] = a;")
        pattern = root.children[0].children[0].field("name")
        assert [c.type for c in pattern.children] == ["identifier", "elision", "identifier"]
        assert pattern.children[1].is_synthetic

    def test_trailing_comma_is_not_a_hole(self):
        root = parse_source("[1, 2,];")
        array = root.children[0].children[0]
        assert [c.type for c in array.children] == ["number", "number"]


class TestCommentAttachment:
    def test_trailing_and_leading_comments(self):
        root = parse_source("var a = 1; // trailing\n// leading\nvar b = 2;\n")
        first, second = root.children
        assert [c.value for c in first.trailing_comments] == [" trailing"]
        assert [c.value for c in second.leading_comments] == [" leading"]

    def test_comment_after_last_statement_is_inner(self):
        root = parse_source("var a = 1;\n/* end */\n")
        assert [c.value for c in root.inner_comments] == [" end "]

    def test_comment_kinds(self):
        loc = SourceLocation(start_line=1, start_col=0, end_line=1, end_col=7)
        assert Comment.from_text("/* x */", loc).kind == CommentKind.BLOCK
        assert Comment.from_text("// x", loc).value == " x"


class TestSyntheticNodes:
    def test_synthetic_fields_and_parents(self):
        callee = Node.synthetic("identifier", text="f")
        call = Node.synthetic("call_expression", function=callee)
        assert call.field("function") is callee
        assert callee.parent is call
        assert call.is_synthetic
        assert call.location.is_unknown()

    def test_to_dict(self):
        node = Node.synthetic("identifier", text="x")
        assert node.to_dict() == {"type": "identifier", "location": "<unknown>", "text": "x"}

    def test_default_location_is_shared_and_hashable(self):
        first, second = Node("identifier"), Comment(CommentKind.LINE, " x")
        assert first.location is NO_SOURCE_LOCATION
        assert second.location is NO_SOURCE_LOCATION
        assert hash(NO_SOURCE_LOCATION) == hash(SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0))
