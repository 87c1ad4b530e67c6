"""Builtin Evaluator: rewrites JS builtin calls and members into PHP primitives.

Every rule either returns the node unchanged (no match, generic emission
follows) or a synthetic replacement built from the original child nodes.
A source node is never placed twice in a replacement, and arguments only
move ahead of their receiver when they are free of side effects.
"""

from __future__ import annotations

import logging
from typing import Optional

from . import constants
from .naming import is_string_literal
from .nodes import Node
from .scope import ScopeResolver

logger = logging.getLogger(__name__)


class Builtins:
    """Rewrite tables, keyed by JS name."""

    # recv.m(args) → f(recv, args)
    RECEIVER_FIRST: dict[str, str] = {
        "push": "array_push",
        "pop": "array_pop",
        "shift": "array_shift",
        "unshift": "array_unshift",
        "reverse": "array_reverse",
        "concat": "array_merge",
        "slice": "array_slice",
        "filter": "array_filter",
        "reduce": "array_reduce",
        "toUpperCase": "strtoupper",
        "toLowerCase": "strtolower",
        "trim": "trim",
        "trimStart": "ltrim",
        "trimEnd": "rtrim",
        "startsWith": "str_starts_with",
        "endsWith": "str_ends_with",
        "repeat": "str_repeat",
        "toString": "strval",
    }

    # Receiver-first variants used when the receiver is known to be a string.
    STRING_RECEIVER_FIRST: dict[str, str] = {
        "indexOf": "strpos",
        "includes": "str_contains",
        "slice": "substr",
    }

    # recv.m(args) → f(args, recv)
    REORDERED: dict[str, str] = {
        "indexOf": "array_search",
        "includes": "in_array",
        "join": "implode",
        "split": "explode",
        "map": "array_map",
        "replace": "str_replace",
        "hasOwnProperty": "array_key_exists",
    }

    STATIC_CALLS: dict[tuple[str, str], str] = {
        ("Object", "keys"): "array_keys",
        ("Object", "values"): "array_values",
        ("Object", "assign"): "array_merge",
        ("Array", "isArray"): "is_array",
        ("JSON", "stringify"): "json_encode",
        ("JSON", "parse"): "json_decode",
        ("Math", "floor"): "floor",
        ("Math", "ceil"): "ceil",
        ("Math", "round"): "round",
        ("Math", "abs"): "abs",
        ("Math", "max"): "max",
        ("Math", "min"): "min",
        ("Math", "pow"): "pow",
        ("Math", "sqrt"): "sqrt",
        ("Math", "random"): "lcg_value",
        ("Number", "isInteger"): "is_int",
        ("String", "fromCharCode"): "chr",
        ("console", "log"): "var_dump",
        ("console", "error"): "error_log",
    }

    GLOBAL_CALLS: dict[str, str] = {
        "parseInt": "intval",
        "parseFloat": "floatval",
        "isNaN": "is_nan",
        "String": "strval",
        "Boolean": "boolval",
        "encodeURIComponent": "rawurlencode",
        "decodeURIComponent": "rawurldecode",
    }

    STATIC_MEMBERS: dict[tuple[str, str], str] = {
        ("Math", "PI"): "M_PI",
        ("Math", "E"): "M_E",
        ("Number", "MAX_SAFE_INTEGER"): "PHP_INT_MAX",
        ("Number", "MIN_SAFE_INTEGER"): "PHP_INT_MIN",
    }

    GLOBAL_CONSTANTS: dict[str, str] = {
        "NaN": "NAN",
        "Infinity": "INF",
    }


_PURE_LEAVES: frozenset[str] = frozenset(
    {
        "identifier",
        "number",
        "string",
        "true",
        "false",
        "null",
        "undefined",
        "this",
        "regex",
    }
)


def synthetic_call(function: str, args: list[Node], parent: Optional[Node] = None) -> Node:
    """Build ``function(args...)`` around existing argument nodes."""
    callee = Node.synthetic("identifier", text=function)
    callee.is_callee = True
    arguments = Node.synthetic("arguments", children=tuple(args))
    call = Node.synthetic("call_expression", function=callee, arguments=arguments)
    call.parent = parent
    return call


def synthetic_literal(type: str, text: str) -> Node:
    return Node.synthetic(type, text=text)


class BuiltinEvaluator:
    """Matches call, member and global-name nodes against the ``Builtins`` tables."""

    def __init__(self, resolver: ScopeResolver):
        self._resolver = resolver

    # ── classification helpers ───────────────────────────────────

    def is_unbound(self, node: Node) -> bool:
        return node.type == "identifier" and self._resolver.resolve(node, capture=False) is None

    def is_string_typed(self, node: Optional[Node]) -> bool:
        """True when *node* statically denotes a string.

        Only literals, identifiers declared with a literal string initializer
        and ``+`` chains of those qualify.
        """
        if node is None:
            return False
        if is_string_literal(node):
            return True
        if node.type == "identifier":
            definition = self._resolver.resolve(node, capture=False)
            return (
                definition is not None
                and definition.type == "variable_declarator"
                and is_string_literal(definition.field("value"))
            )
        if node.type == "binary_expression" and node.operator == "+":
            return self.is_string_typed(node.field("left")) and self.is_string_typed(
                node.field("right")
            )
        return False

    def is_pure(self, node: Node) -> bool:
        ntype = node.type
        if ntype in _PURE_LEAVES:
            return True
        if ntype in constants.FUNCTION_EXPRESSION_TYPES:
            return True
        if ntype == "template_string":
            return not node.children_of_type("template_substitution")
        if ntype == "member_expression":
            return self.is_pure(node.field("object"))
        if ntype == "unary_expression" and node.operator in ("-", "+", "!"):
            return self.is_pure(node.field("argument"))
        return False

    # ── entry point ──────────────────────────────────────────────

    def evaluate(self, node: Node) -> Node:
        if node.type == "call_expression" and not node.is_construction:
            return self._evaluate_call(node)
        if node.type == "member_expression":
            return self._evaluate_member(node)
        if node.type == "identifier":
            return self._evaluate_identifier(node)
        return node

    def _rewritten(self, node: Node, replacement: Node, description: str) -> Node:
        logger.debug("Rewrote %s at %s to %s", description, node.location, replacement.text or replacement.type)
        return replacement

    # ── calls ────────────────────────────────────────────────────

    def _evaluate_call(self, node: Node) -> Node:
        callee = node.field("function")
        args_node = node.field("arguments")
        if callee is None or (args_node is not None and args_node.type != "arguments"):
            return node
        args = list(args_node.children) if args_node is not None else []
        if len(args) == 1:
            # The call's own parentheses wrap a lone argument.
            args[0].suppress_parens = True

        if callee.type == "identifier":
            function = Builtins.GLOBAL_CALLS.get(callee.text)
            if function and self.is_unbound(callee):
                return self._rewritten(node, synthetic_call(function, args, node.parent), callee.text)
            return node

        if callee.type != "member_expression" or callee.has_token("?."):
            return node
        receiver = callee.field("object")
        method = callee.field("property").text

        if receiver.type == "identifier" and self.is_unbound(receiver):
            function = Builtins.STATIC_CALLS.get((receiver.text, method))
            if function:
                return self._rewritten(
                    node, synthetic_call(function, args, node.parent), f"{receiver.text}.{method}"
                )

        if method in ("call", "apply"):
            return self._evaluate_indirect(node, receiver, method, args)

        if method == "slice" and len(args) > 1:
            return node

        if self.is_string_typed(receiver) and method in Builtins.STRING_RECEIVER_FIRST:
            function = Builtins.STRING_RECEIVER_FIRST[method]
            return self._rewritten(node, synthetic_call(function, [receiver] + args, node.parent), method)

        if method in Builtins.RECEIVER_FIRST:
            function = Builtins.RECEIVER_FIRST[method]
            return self._rewritten(node, synthetic_call(function, [receiver] + args, node.parent), method)

        if method in Builtins.REORDERED and all(self.is_pure(a) for a in args):
            return self._evaluate_reordered(node, receiver, method, args)

        return node

    def _evaluate_reordered(self, node: Node, receiver: Node, method: str, args: list[Node]) -> Node:
        function = Builtins.REORDERED[method]
        if method == "join" and not args:
            args = [synthetic_literal("string", "','")]
        elif method == "split" and not args:
            return node
        elif method == "replace":
            if len(args) != 2:
                return node
            if args[0].type == "regex":
                function = "preg_replace"
        elif len(args) != 1:
            return node
        extra = [synthetic_literal("true", "true")] if method == "includes" else []
        return self._rewritten(
            node, synthetic_call(function, args + [receiver] + extra, node.parent), method
        )

    def _evaluate_indirect(self, node: Node, target: Node, method: str, args: list[Node]) -> Node:
        """``f.call(ctx, ...)`` / ``f.apply(ctx, list)`` as a generic callable invocation.

        The bound ``this`` is dropped, so the rewrite is only an approximation
        for callables that depend on it.
        """
        if args:
            if not self.is_pure(args[0]):
                return node
            args = args[1:]
        if method == "apply" and len(args) > 1:
            return node
        if method == "apply" and not args:
            args = [Node.synthetic("array")]
        function = constants.INVOKE_CALLABLE if method == "call" else constants.INVOKE_CALLABLE_ARRAY
        replacement = synthetic_call(function, [self._callable(target)] + args, node.parent)
        logger.warning(
            "Indirect invocation at %s rewritten to %s(); bound this is not preserved",
            node.location,
            function,
        )
        return replacement

    @staticmethod
    def _callable(target: Node) -> Node:
        if target.type != "member_expression" or target.has_token("?."):
            return target
        name = target.field("property").text.lstrip("#")
        return Node.synthetic(
            "array",
            children=(target.field("object"), synthetic_literal("string", f"'{name}'")),
        )

    # ── members and names ────────────────────────────────────────

    @staticmethod
    def _is_call_target(node: Node) -> bool:
        parent = node.parent
        return (
            parent is not None
            and parent.type in ("call_expression", "new_expression")
            and (parent.field("function") is node or parent.field("constructor") is node)
        )

    @staticmethod
    def _is_write_target(node: Node) -> bool:
        parent = node.parent
        if parent is None:
            return False
        if parent.type in ("assignment_expression", "augmented_assignment_expression"):
            return parent.field("left") is node
        return parent.type == "update_expression"

    def _evaluate_member(self, node: Node) -> Node:
        if self._is_call_target(node) or self._is_write_target(node):
            return node
        receiver = node.field("object")
        prop = node.field("property").text
        if receiver.type == "identifier" and self.is_unbound(receiver):
            constant = Builtins.STATIC_MEMBERS.get((receiver.text, prop))
            if constant:
                return self._rewritten(node, self._constant(constant, node), f"{receiver.text}.{prop}")
        if prop == "length" and not node.has_token("?."):
            function = "strlen" if self.is_string_typed(receiver) else "count"
            return self._rewritten(node, synthetic_call(function, [receiver], node.parent), "length")
        return node

    def _evaluate_identifier(self, node: Node) -> Node:
        constant = Builtins.GLOBAL_CONSTANTS.get(node.text)
        if constant and self.is_unbound(node):
            return self._constant(constant, node)
        return node

    @staticmethod
    def _constant(name: str, original: Node) -> Node:
        constant = Node.synthetic("identifier", text=name)
        constant.is_static = True
        constant.parent = original.parent
        return constant
