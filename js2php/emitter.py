"""Emitter: line-synchronized output buffer with deferred patching."""

from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from . import constants
from .nodes import Comment, Node
from .positions import PositionIndex

logger = logging.getLogger(__name__)

_TERMINATED = re.compile(r";[ \t]*(\n[ \t]*)?$")
_TERMINATOR_AT_END = re.compile(r";([ \t]*)$")
_AT_LINE_START = re.compile(r"\n[ \t]*$")
_NO_SPACE_BEFORE_COMMENT = frozenset(" \t\n([")
_TAIL_SIZE = 256


class Emitter:
    """Stateful output-text builder.

    ``line`` counts the lines written through :meth:`newline`; it never
    decreases. Source line numbers map onto it through an offset that grows
    whenever lines without a source counterpart are written (see
    :meth:`synthetic` and :meth:`break_line`), so blank-line structure after
    such lines is still reproduced.

    The buffer is a list of chunks; insertion points are absolute offsets
    into the joined text.
    """

    def __init__(self, positions: Optional[PositionIndex] = None):
        self._chunks: list[str] = []
        self._length = 0
        self._insertion_points: list[int] = []
        self._positions = positions
        self._offset = 0
        self.line = 1
        self.indent_level = 0

    def getvalue(self) -> str:
        return "".join(self._chunks)

    __str__ = getvalue

    # ── raw buffer access ────────────────────────────────────────

    def _tail(self, size: int = _TAIL_SIZE) -> str:
        parts: list[str] = []
        count = 0
        for chunk in reversed(self._chunks):
            parts.append(chunk)
            count += len(chunk)
            if count >= size:
                break
        return "".join(reversed(parts))

    def _drop_tail(self, size: int):
        while size > 0 and self._chunks:
            last = self._chunks[-1]
            if len(last) <= size:
                self._chunks.pop()
                size -= len(last)
                self._length -= len(last)
            else:
                self._chunks[-1] = last[: len(last) - size]
                self._length -= size
                size = 0
        self._clamp_insertion_points()

    def _rstrip(self, chars: str):
        while self._chunks:
            last = self._chunks[-1]
            stripped = last.rstrip(chars)
            self._length -= len(last) - len(stripped)
            if stripped:
                self._chunks[-1] = stripped
                break
            self._chunks.pop()
        self._clamp_insertion_points()

    def _clamp_insertion_points(self):
        # Trimmed text may have been recorded past by a pending insertion point.
        self._insertion_points = [min(at, self._length) for at in self._insertion_points]

    def ends_with(self, text: str) -> bool:
        return self._tail(len(text)).endswith(text)

    @property
    def indentation(self) -> str:
        return constants.INDENT * self.indent_level

    # ── basic emission ───────────────────────────────────────────

    def emit(self, text: str):
        if text:
            self._chunks.append(text)
            self._length += len(text)

    def emit_verbatim(self, text: str):
        """Emit source text that may span lines, keeping ``line`` in step."""
        self.emit(text)
        self.line += text.count("\n")

    def newline(self):
        self._rstrip(" \t")
        self.emit("\n" + self.indentation)
        self.line += 1

    def ensure_newline(self):
        if self._chunks and not _AT_LINE_START.search(self._tail()):
            self.newline()

    def break_line(self):
        """Start a new output line that has no counterpart in the source."""
        self.newline()
        self._offset += 1

    def sync_to_line(self, target: int):
        while target + self._offset > self.line:
            self.newline()

    def realign(self, source_line: int):
        """Map *source_line* onto the current output line."""
        self._offset = self.line - source_line

    def skip_source_lines(self, first: int, last: int):
        """Drop source lines *first*..*last* from the line mapping.

        Lines already behind the current output position are not counted.
        """
        first = max(first, self.line - self._offset + 1)
        if last >= first:
            self._offset -= last - first + 1

    @contextmanager
    def synthetic(self) -> Iterator[None]:
        """Emit a region whose lines do not come from the source.

        Lines written inside are added to the source-line offset on exit.
        """
        saved_offset, saved_line = self._offset, self.line
        try:
            yield
        finally:
            self._offset = saved_offset + (self.line - saved_line)

    def incr_indent(self):
        self.indent_level += 1
        if self.ends_with(constants.INDENT):
            self.emit(constants.INDENT)

    def decr_indent(self):
        self.indent_level -= 1
        if self.ends_with(constants.INDENT):
            self._drop_tail(len(constants.INDENT))

    def block(self, open_text: str, body: Callable[[], object], close_text: str):
        first_line = self.line
        self.emit(open_text)
        self.incr_indent()
        body()
        if self.line != first_line:
            self.ensure_newline()
        self.decr_indent()
        self.emit(close_text)

    # ── statement terminators ────────────────────────────────────

    def ensure_statement_terminator(self):
        if not _TERMINATED.search(self._tail()):
            self.emit(constants.STATEMENT_TERMINATOR)

    def replace_terminator_with_separator(self):
        tail = self._tail()
        replaced = _TERMINATOR_AT_END.sub(r", \1", tail)
        if replaced != tail:
            self._drop_tail(len(tail))
            self.emit(replaced)

    # ── insertion points ─────────────────────────────────────────

    def push_insertion_point(self):
        self._insertion_points.append(self._length)

    def pop_insertion_point(self):
        self._insertion_points.pop()

    def _text_before(self, at: int, size: int = _TAIL_SIZE) -> str:
        return self.getvalue()[max(0, at - size) : at]

    def at_line_start(self, depth: int = 0) -> bool:
        """True when the insertion point *depth* frames down begins a line."""
        at = self._insertion_points[len(self._insertion_points) - depth - 1]
        return at == 0 or bool(_AT_LINE_START.search(self._text_before(at)))

    def insert_at(self, depth: int, text: str):
        """Splice *text* at the insertion point *depth* frames below the top.

        Line breaks inside *text* count as lines without a source counterpart.
        """
        if not text:
            return
        idx = len(self._insertion_points) - depth - 1
        at = self._insertion_points[idx]
        pos = 0
        for i, chunk in enumerate(self._chunks):
            if pos + len(chunk) >= at:
                cut = at - pos
                self._chunks[i : i + 1] = [chunk[:cut], text, chunk[cut:]]
                break
            pos += len(chunk)
        else:
            self._chunks.append(text)
        self._length += len(text)
        for later in range(idx + 1, len(self._insertion_points)):
            self._insertion_points[later] += len(text)
        added = text.count("\n")
        self.line += added
        self._offset += added

    # ── comments ─────────────────────────────────────────────────

    @staticmethod
    def _comment_lines(comment: Comment) -> list[str]:
        if not comment.is_block:
            return ["//" + comment.value]
        raw = comment.lines
        lines = ["/*" + raw[0]]
        for idx, text in enumerate(raw[1:], start=2):
            text = text.lstrip(" \t")
            if idx == len(raw):
                text += "*/"
            lines.append(" " + text if text.startswith("*") else text)
        if len(raw) == 1:
            lines[0] += "*/"
        return lines

    def emit_comment(self, comment: Comment):
        if comment.emitted:
            return
        if not comment.location.is_unknown():
            self.sync_to_line(comment.location.start_line)
        if self._chunks and self._tail(1)[-1:] not in _NO_SPACE_BEFORE_COMMENT:
            self.emit(" ")
        lines = self._comment_lines(comment)
        self.emit(lines[0])
        for text in lines[1:]:
            self.newline()
            self.emit(text)
        if not comment.is_block:
            self.newline()
        comment.emitted = True

    def render_comment(self, comment: Comment) -> str:
        """Return *comment* as text followed by a line break, marking it emitted."""
        separator = "\n" + self.indentation
        comment.emitted = True
        return separator.join(self._comment_lines(comment)) + separator

    # ── node boundaries ──────────────────────────────────────────

    def _parenthesized(self, node: Node) -> bool:
        if node.needs_parens:
            return True
        return (
            not node.suppress_parens
            and self._positions is not None
            and self._positions.is_parenthesized(node)
        )

    def loc_start(self, node: Node):
        for comment in node.leading_comments:
            self.emit_comment(comment)
        if node.is_synthetic or node.type == "program":
            return
        if node.skipped_lines is not None:
            self.skip_source_lines(*node.skipped_lines)
        self.sync_to_line(node.start_line)
        if self._parenthesized(node):
            self.emit("(")

    def loc_end(self, node: Node):
        for comment in node.inner_comments:
            self.emit_comment(comment)
        if not node.is_synthetic:
            if self._parenthesized(node):
                self.emit(")")
            self.sync_to_line(node.end_line)
        for comment in node.trailing_comments:
            self.emit_comment(comment)
