"""Position Index: locates source-explicit parentheses around AST nodes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from . import constants
from .nodes import Node, SourceLocation

_WHITESPACE = frozenset(b" \t\r\n\f\v")


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    location: SourceLocation


def _leaf_tokens(root, source: bytes) -> Iterator[Token]:
    stack = [root]
    while stack:
        ts_node = stack.pop()
        if ts_node.child_count:
            stack.extend(reversed(ts_node.children))
            continue
        if ts_node.type in constants.COMMENT_TYPES:
            continue
        if ts_node.is_missing or ts_node.start_byte == ts_node.end_byte:
            continue
        yield Token(
            kind=ts_node.type,
            value=source[ts_node.start_byte : ts_node.end_byte].decode("utf-8"),
            location=SourceLocation.of(ts_node),
        )


class PositionIndex:
    """Loose token boundaries keyed by ``(line, column)``.

    A token's loose start is found by sliding backwards from its start over
    whitespace, its loose end by sliding forwards from its end. A node whose
    start coincides with the loose end of a ``(`` token and whose end
    coincides with the loose start of a ``)`` token was wrapped in explicit
    parentheses in the source.
    """

    def __init__(self, tokens: list[Token], source: bytes):
        self._lines = source.split(b"\n")
        self._by_loose_start: dict[tuple[int, int], Token] = {}
        self._by_loose_end: dict[tuple[int, int], Token] = {}
        for tok in tokens:
            loc = tok.location
            self._by_loose_start[self._slide_back(loc.start_line, loc.start_col)] = tok
            self._by_loose_end[self._slide_forward(loc.end_line, loc.end_col)] = tok

    @classmethod
    def from_tree(cls, tree, source: bytes) -> PositionIndex:
        return cls(list(_leaf_tokens(tree.root_node, source)), source)

    def token_before(self, node: Node) -> Optional[Token]:
        loc = node.location
        return self._by_loose_end.get((loc.start_line, loc.start_col))

    def token_after(self, node: Node) -> Optional[Token]:
        loc = node.location
        return self._by_loose_start.get((loc.end_line, loc.end_col))

    def is_parenthesized(self, node: Node) -> bool:
        if node.is_synthetic:
            return False
        before = self.token_before(node)
        after = self.token_after(node)
        return (
            before is not None
            and before.kind == "("
            and after is not None
            and after.kind == ")"
        )

    def _slide_forward(self, line: int, col: int) -> tuple[int, int]:
        while 0 < line <= len(self._lines):
            text = self._lines[line - 1]
            if col >= len(text):
                if line == len(self._lines):
                    break
                line, col = line + 1, 0
                continue
            if text[col] not in _WHITESPACE:
                break
            col += 1
        return line, col

    def _slide_back(self, line: int, col: int) -> tuple[int, int]:
        while 0 < line <= len(self._lines):
            if col == 0:
                if line == 1:
                    break
                line -= 1
                col = len(self._lines[line - 1])
                continue
            if self._lines[line - 1][col - 1] not in _WHITESPACE:
                break
            col -= 1
        return line, col
