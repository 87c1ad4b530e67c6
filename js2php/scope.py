"""Scope Resolver: lexical scopes, closure captures and accessor registries."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from . import constants
from .nodes import Node

logger = logging.getLogger(__name__)

_NAME_TYPES: frozenset[str] = frozenset(
    {
        "identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)


class ScopeKind(str, Enum):
    PROGRAM = "program"
    FUNCTION = "function"
    CLASS = "class"
    CATCH = "catch"


@dataclass(eq=False)
class Scope:
    """One lexical scope.

    ``definitions`` maps a bound name to its defining node in declaration
    order. ``using`` lists, once each and in first-use order, the names this
    scope reads from a strict ancestor.
    """

    node: Node
    kind: ScopeKind
    parent: Optional[Scope] = field(default=None, repr=False)
    definitions: dict[str, Node] = field(default_factory=dict)
    using: list[str] = field(default_factory=list)
    getters: list[Node] = field(default_factory=list)
    setters: list[Node] = field(default_factory=list)

    def define(self, name: str, node: Node) -> str:
        self.definitions.setdefault(name, node)
        return name


def binding_key(node: Optional[Node]) -> Optional[str]:
    """Name under which *node* is registered, or None if it binds nothing.

    ``this.x`` members are keyed as ``"this.x"``.
    """
    if node is None:
        return None
    if node.type in _NAME_TYPES:
        return node.text
    if node.type == "member_expression":
        obj, prop = node.field("object"), node.field("property")
        if obj is not None and obj.type == "this" and prop is not None:
            return "this." + prop.text.lstrip("#")
    return None


def _accessor_kind(node: Node) -> Optional[str]:
    for kind in ("get", "set"):
        if node.has_token(kind):
            return kind
    return None


class ScopeResolver:
    """Tree of scopes built incrementally while the dispatcher walks the AST."""

    def __init__(self):
        self.root: Optional[Scope] = None
        self.current: Optional[Scope] = None

    # ── scope lifecycle ──────────────────────────────────────────

    def enter(self, node: Node, kind: ScopeKind) -> Scope:
        scope = Scope(node=node, kind=kind, parent=self.current)
        if self.root is None:
            self.root = scope
        self.current = scope
        return scope

    def leave(self) -> Scope:
        scope = self.current
        self.current = scope.parent
        return scope

    @contextmanager
    def scoped(self, node: Node, kind: ScopeKind) -> Iterator[Scope]:
        scope = self.enter(node, kind)
        try:
            yield scope
        finally:
            self.leave()

    def nearest(self, kind: ScopeKind) -> Optional[Scope]:
        scope = self.current
        while scope is not None and scope.kind != kind:
            scope = scope.parent
        return scope

    # ── declarations ─────────────────────────────────────────────

    def register(self, node: Node) -> list[str]:
        """Record the names *node* declares in the current scope."""
        ntype = node.type
        scope = self.current
        key = binding_key(node)
        if key is not None:
            return [scope.define(key, node)]
        if ntype == "variable_declarator":
            name = node.field("name")
            if name.type == "identifier":
                return [scope.define(name.text, node)]
            return self.register(name)
        if ntype in ("object_pattern", "array_pattern"):
            return [n for child in node.children for n in self.register(child)]
        if ntype == "pair_pattern":
            return self.register(node.field("value"))
        if ntype in ("assignment_pattern", "object_assignment_pattern"):
            return self.register(node.field("left"))
        if ntype == "rest_pattern":
            return self.register(node.children[0]) if node.children else []
        if ntype == "method_definition":
            return self._register_method(node)
        if ntype == "field_definition":
            prop = node.field("property")
            return [scope.define("this." + prop.text.lstrip("#"), node)]
        if ntype == "class_declaration" or ntype in constants.FUNCTION_DECLARATION_TYPES:
            return [scope.define(node.field("name").text, node)]
        return []

    def _register_method(self, node: Node) -> list[str]:
        kind = _accessor_kind(node)
        if kind is None:
            return [self.current.define(node.field("name").text.lstrip("#"), node)]
        owner = self.nearest(ScopeKind.CLASS) or self.current
        (owner.getters if kind == "get" else owner.setters).append(node)
        return []

    # ── lookups ──────────────────────────────────────────────────

    def resolve(self, node: Node, capture: bool = True) -> Optional[Node]:
        """Find the definition *node* refers to.

        When the definition lives in a strict ancestor and is a value binding,
        the name is added to ``using`` of every scope between the current one
        and the defining one. Misses return None.
        """
        name = binding_key(node)
        if name is None:
            return None
        scope = self.current
        while scope is not None:
            definition = scope.definitions.get(name)
            if definition is not None:
                if (
                    capture
                    and scope is not self.current
                    and definition.type in constants.VARIABLE_DEFINITION_TYPES
                ):
                    self._capture(name, scope)
                return definition
            scope = scope.parent
        return None

    def _capture(self, name: str, defining: Scope):
        scope = self.current
        while scope is not None and scope is not defining:
            if name not in scope.using:
                scope.using.append(name)
                logger.debug("Scope %s captures %s", scope.kind.value, name)
            scope = scope.parent

    def captures_of(self, scope: Scope) -> list[str]:
        return [name for name in scope.using if name not in scope.definitions]

    def getters_of(self, scope: Scope) -> list[Node]:
        return list(scope.getters)

    def setters_of(self, scope: Scope) -> list[Node]:
        return list(scope.setters)
