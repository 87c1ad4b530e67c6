"""Naming and node-shape helpers shared by the dispatcher and evaluator."""

from __future__ import annotations

import copy
import re

from . import constants
from .nodes import Node

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


def is_capitalized(name: str) -> bool:
    return bool(name) and name[0].isupper()


def classize(text: str) -> str:
    """Convert a module path or identifier to class casing.

    ``"./foo-bar/baz"`` becomes ``"FooBar\\Baz"``; path separators turn into
    namespace separators and relative segments are dropped.
    """
    segments = [s for s in text.replace("\\", "/").split("/") if s not in ("", ".", "..")]
    return "\\".join(
        "".join(word[:1].upper() + word[1:] for word in _WORD_SPLIT.split(segment) if word)
        for segment in segments
    )


def is_string_literal(node: Node | None) -> bool:
    """True for string and template literals."""
    return node is not None and node.type in constants.STRING_TYPES


def string_value(node: Node) -> str:
    """The unquoted contents of a plain string literal."""
    return node.text[1:-1]


def clone(node: Node, **changes) -> Node:
    """Shallow structural copy of *node* with attributes replaced by *changes*.

    Children are shared with the original; comments are not carried over.
    """
    duplicate = copy.copy(node)
    duplicate.fields = {name: list(nodes) for name, nodes in node.fields.items()}
    duplicate.children = list(node.children)
    duplicate.tokens = list(node.tokens)
    duplicate.attrs = dict(node.attrs)
    duplicate.leading_comments = []
    duplicate.trailing_comments = []
    duplicate.inner_comments = []
    for name, value in changes.items():
        setattr(duplicate, name, value)
    return duplicate
