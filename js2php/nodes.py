"""Mutable JavaScript AST built from the tree-sitter concrete syntax tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict

from . import constants

logger = logging.getLogger(__name__)


class SourceLocation(BaseModel):
    """Structured source span from tree-sitter AST nodes.

    Lines are 1-based, columns are 0-based byte offsets into the line.
    """

    model_config = ConfigDict(frozen=True)

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @classmethod
    def of(cls, ts_node) -> SourceLocation:
        s, e = ts_node.start_point, ts_node.end_point
        return cls(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


class CommentKind(str, Enum):
    LINE = "Line"
    BLOCK = "Block"


@dataclass(eq=False)
class Comment:
    """A source comment owned by exactly one node.

    ``emitted`` flips to True the first time the comment is written so that
    the same comment reached along several traversal paths is output once.
    """

    kind: CommentKind
    value: str
    location: SourceLocation = NO_SOURCE_LOCATION
    emitted: bool = False

    @classmethod
    def from_text(cls, text: str, location: SourceLocation) -> Comment:
        text = text.replace("\r\n", "\n")
        if text.startswith("/*"):
            body = text[2:-2] if text.endswith("*/") else text[2:]
            return cls(CommentKind.BLOCK, body, location)
        if text.startswith("//"):
            return cls(CommentKind.LINE, text[2:].rstrip("\r"), location)
        return cls(CommentKind.LINE, " " + text.rstrip("\r"), location)

    @property
    def is_block(self) -> bool:
        return self.kind == CommentKind.BLOCK

    @property
    def lines(self) -> list[str]:
        return self.value.split("\n")


@dataclass(eq=False)
class Node:
    """One AST node.

    ``fields`` maps tree-sitter field names to the named children under that
    field; ``children`` lists every named child in source order, with a
    synthetic ``elision`` standing in for each array hole. Anonymous
    tokens (keywords, operators) are kept as strings in ``tokens``, and the
    ones that carry a field name (``operator``, ``kind``) also land in
    ``attrs``. The flags after ``end_byte`` are transient emission decisions
    set by the dispatcher while it walks the tree.
    """

    type: str
    location: SourceLocation = NO_SOURCE_LOCATION
    fields: dict[str, list[Node]] = field(default_factory=dict)
    children: list[Node] = field(default_factory=list)
    tokens: list[str] = field(default_factory=list)
    attrs: dict[str, str] = field(default_factory=dict)
    leading_comments: list[Comment] = field(default_factory=list)
    trailing_comments: list[Comment] = field(default_factory=list)
    inner_comments: list[Comment] = field(default_factory=list)
    parent: Optional[Node] = field(default=None, repr=False)
    raw: Optional[str] = None
    source: bytes = field(default=b"", repr=False)
    start_byte: int = 0
    end_byte: int = 0

    suppress_parens: bool = False
    needs_parens: bool = False
    skipped_lines: Optional[tuple[int, int]] = None
    is_callee: bool = False
    is_static: bool = False
    suppress_loc: bool = False
    is_member_property: bool = False
    is_iife: bool = False
    is_concat: bool = False
    is_construction: bool = False

    @classmethod
    def synthetic(
        cls, type: str, text: Optional[str] = None, children: tuple = (), **fields
    ) -> Node:
        """Build a node that has no source counterpart.

        Keyword arguments become fields; a list value becomes a multi-node
        field. ``children`` lists unnamed children (e.g. call arguments).
        """
        node = cls(type=type, raw=text)
        for name, value in fields.items():
            nodes = list(value) if isinstance(value, (list, tuple)) else [value]
            node.fields[name] = nodes
            node.children.extend(nodes)
        node.children.extend(children)
        for child in node.children:
            child.parent = node
        return node

    @property
    def text(self) -> str:
        if self.raw is not None:
            return self.raw
        return self.source[self.start_byte : self.end_byte].decode("utf-8")

    @property
    def start_line(self) -> int:
        return self.location.start_line

    @property
    def end_line(self) -> int:
        return self.location.end_line

    @property
    def is_synthetic(self) -> bool:
        return self.location.is_unknown()

    @property
    def operator(self) -> str:
        return self.attrs.get("operator", "")

    def field(self, name: str) -> Optional[Node]:
        nodes = self.fields.get(name)
        return nodes[0] if nodes else None

    def field_all(self, name: str) -> list[Node]:
        return list(self.fields.get(name, []))

    def has_token(self, token: str) -> bool:
        return token in self.tokens

    def children_of_type(self, *types: str) -> list[Node]:
        return [c for c in self.children if c.type in types]

    def walk(self) -> Iterator[Node]:
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.type, "location": str(self.location)}
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        else:
            data["text"] = self.text
        return data


class TreeAdapter:
    """Converts a tree-sitter tree into mutable ``Node`` objects.

    Comments are attached to the nearest named sibling: a comment that starts
    on the line where the previous sibling ends trails that sibling, any other
    comment leads the next sibling, and comments after the last sibling are
    kept as the parent's inner comments. Parenthesized expressions are
    unwrapped; the Position Index recovers the parentheses that matter.
    """

    def __init__(self, source: bytes):
        self._source = source

    def adapt(self, tree) -> Node:
        return self._convert(tree.root_node)

    def _convert(self, ts_node) -> Node:
        node = Node(
            type=ts_node.type,
            location=SourceLocation.of(ts_node),
            source=self._source,
            start_byte=ts_node.start_byte,
            end_byte=ts_node.end_byte,
        )
        prev: Optional[Node] = None
        pending: list[Comment] = []
        last_token: Optional[str] = None
        cursor = ts_node.walk()
        has_child = cursor.goto_first_child()
        while has_child:
            child = cursor.node
            field_name = cursor.field_name
            if child.type in constants.COMMENT_TYPES:
                comment = self._comment(child)
                if (
                    prev is not None
                    and not pending
                    and comment.location.start_line == prev.end_line
                ):
                    prev.trailing_comments.append(comment)
                else:
                    pending.append(comment)
            elif child.type == constants.OPTIONAL_CHAIN_TYPE:
                node.tokens.append("?.")
            elif child.is_named and not child.is_missing:
                converted = self._convert(child)
                converted.leading_comments[:0] = pending
                pending = []
                converted.parent = node
                node.children.append(converted)
                if field_name:
                    node.fields.setdefault(field_name, []).append(converted)
                prev = converted
                last_token = None
            else:
                if child.type == "," and node.type in constants.ARRAY_TYPES and last_token in ("[", ","):
                    node.children.append(self._elision(node))
                node.tokens.append(child.type)
                if field_name:
                    node.attrs[field_name] = child.type
                last_token = child.type
            has_child = cursor.goto_next_sibling()
        node.inner_comments.extend(pending)
        if node.type == constants.PAREN_EXPR_TYPE and node.children:
            return self._unwrap(node)
        return node

    def _comment(self, ts_node) -> Comment:
        text = self._source[ts_node.start_byte : ts_node.end_byte].decode("utf-8")
        return Comment.from_text(text, SourceLocation.of(ts_node))

    def _elision(self, parent: Node) -> Node:
        """A hole between two commas of an array literal or pattern."""
        return Node(type=constants.ELISION_TYPE, source=self._source, parent=parent)

    @staticmethod
    def _unwrap(paren: Node) -> Node:
        inner = paren.children[0]
        inner.trailing_comments.extend(paren.inner_comments)
        return inner


def adapt_tree(tree, source: bytes) -> Node:
    """Convert a parsed tree-sitter *tree* over *source* into a ``Node`` tree."""
    root = TreeAdapter(source).adapt(tree)
    logger.debug("Adapted %s tree spanning %d lines", root.type, root.end_line)
    return root
