"""Node Dispatcher: JavaScript AST → PHP source text.

One handler per node kind, looked up in ``self._DISPATCH``. Handlers emit
through the shared :class:`Emitter`, build scopes through the
:class:`ScopeResolver` as they enter functions and classes, and consult the
:class:`BuiltinEvaluator` on every call, member and global name.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from . import constants
from .builtins import BuiltinEvaluator, synthetic_call
from .emitter import Emitter
from .errors import UnsupportedConstructError
from .naming import classize, clone, is_capitalized, string_value
from .nodes import Comment, Node
from .positions import PositionIndex
from .scope import Scope, ScopeKind, ScopeResolver, binding_key
from .translate_types import TranslateOptions

logger = logging.getLogger(__name__)

_ESCAPE_TOKEN = re.compile(
    r"\\u\{[0-9A-Fa-f]+\}|\\u([0-9A-Fa-f]{4})|\\x[0-9A-Fa-f]{2}|\\(.)|(\$)|(\")",
    re.DOTALL,
)
_PLAIN_SINGLE_QUOTED = re.compile(r"^(?:[^\\]|\\[\\'])*$", re.DOTALL)
_KEPT_ESCAPES = frozenset("nrtvf\\0")
_REGEX_ESCAPE = re.compile(r"([\\'])")
_UNSUPPORTED_ASSIGNMENTS = frozenset({"&&=", "||="})
_REWRITTEN_OPERATORS = {">>>": ">>", ">>>=": ">>="}
# PHP operators that bind tighter than string concatenation.
_ABOVE_CONCAT = frozenset({"+", "-", "*", "/", "%", "**", "<<", ">>"})


def _double_quoted_escape(match: re.Match) -> str:
    """Rewrite one escape (or special character) for a PHP double-quoted string."""
    text = match.group(0)
    if match.group(1):
        return "\\u{" + match.group(1) + "}"
    if match.group(2) is not None:
        char = match.group(2)
        if char in _KEPT_ESCAPES:
            return text
        if char in ('"', "$"):
            return "\\" + char
        if char == "b":
            return "\\x08"
        if char == "\n":
            return ""
        return char
    if match.group(3) or match.group(4):
        return "\\" + text
    return text


def to_double_quoted(body: str) -> str:
    return '"' + _ESCAPE_TOKEN.sub(_double_quoted_escape, body) + '"'


class Translator:
    """Walks one adapted JavaScript tree and returns the PHP text.

    A translator is single-use: the emitter buffer, scope tree and position
    index all belong to the translation in flight.
    """

    def __init__(
        self,
        options: Optional[TranslateOptions] = None,
        positions: Optional[PositionIndex] = None,
    ):
        self.options = options or TranslateOptions()
        self._positions = positions
        self.emitter = Emitter(positions)
        self.scopes = ScopeResolver()
        self.builtins = BuiltinEvaluator(self.scopes)
        self._declared_fields: list[set[str]] = []
        self._DISPATCH: dict[str, Callable[[Node], None]] = {
            # program structure
            "program": self._visit_program,
            "statement_block": self._visit_statement_block,
            "expression_statement": self._visit_expression_statement,
            "empty_statement": self._visit_nothing,
            "lexical_declaration": self._visit_declaration,
            "variable_declaration": self._visit_declaration,
            "variable_declarator": self._visit_variable_declarator,
            "object_pattern": self._visit_object_pattern,
            "array_pattern": self._visit_array_pattern,
            "pair_pattern": self._visit_pair_pattern,
            "shorthand_property_identifier_pattern": self._visit_shorthand_property,
            "object_assignment_pattern": self._visit_destructuring_default,
            "assignment_pattern": self._visit_assignment_pattern,
            "rest_pattern": self._visit_spread,
            # names and literals
            "identifier": self._visit_identifier,
            "property_identifier": self._visit_property_name,
            "private_property_identifier": self._visit_property_name,
            "shorthand_property_identifier": self._visit_shorthand_property,
            "computed_property_name": self._visit_computed_property_name,
            "this": self._visit_this,
            "super": self._visit_super,
            "true": self._visit_keyword_literal,
            "false": self._visit_keyword_literal,
            "null": self._visit_keyword_literal,
            "undefined": self._visit_undefined,
            "number": self._visit_number,
            "string": self._visit_string,
            "regex": self._visit_regex,
            "template_string": self._visit_template_string,
            # operators
            "binary_expression": self._visit_binary_expression,
            "assignment_expression": self._visit_assignment_expression,
            "augmented_assignment_expression": self._visit_augmented_assignment,
            "ternary_expression": self._visit_ternary_expression,
            "unary_expression": self._visit_unary_expression,
            "update_expression": self._visit_update_expression,
            "sequence_expression": self._visit_sequence_expression,
            "spread_element": self._visit_spread,
            "yield_expression": self._visit_yield_expression,
            "await_expression": self._visit_await_expression,
            # calls and members
            "call_expression": self._visit_call_expression,
            "new_expression": self._visit_new_expression,
            "arguments": self._visit_arguments,
            "member_expression": self._visit_member_expression,
            "subscript_expression": self._visit_subscript_expression,
            # functions and classes
            "function_declaration": self._visit_function_declaration,
            "generator_function_declaration": self._visit_function_declaration,
            "function": self._visit_function_expression,
            "function_expression": self._visit_function_expression,
            "generator_function": self._visit_function_expression,
            "arrow_function": self._visit_function_expression,
            "class_declaration": self._visit_class_declaration,
            "class_body": self._visit_class_body,
            "method_definition": self._visit_method_definition,
            "field_definition": self._visit_field_definition,
            # literals with members
            "object": self._visit_object,
            "pair": self._visit_pair,
            "array": self._visit_array,
            "elision": self._visit_elision,
            # control flow
            "return_statement": self._visit_return_statement,
            "if_statement": self._visit_if_statement,
            "else_clause": self._visit_else_clause,
            "while_statement": self._visit_while_statement,
            "do_statement": self._visit_do_statement,
            "for_statement": self._visit_for_statement,
            "for_in_statement": self._visit_for_in_statement,
            "switch_statement": self._visit_switch_statement,
            "switch_body": self._visit_switch_body,
            "switch_case": self._visit_switch_case,
            "switch_default": self._visit_switch_case,
            "break_statement": self._visit_jump_statement,
            "continue_statement": self._visit_jump_statement,
            "labeled_statement": self._visit_labeled_statement,
            "try_statement": self._visit_try_statement,
            "catch_clause": self._visit_catch_clause,
            "finally_clause": self._visit_finally_clause,
            "throw_statement": self._visit_throw_statement,
            # modules
            "import_statement": self._visit_import_statement,
            "export_statement": self._visit_export_statement,
        }

    # ── entry points ─────────────────────────────────────────────

    def translate(self, root: Node) -> str:
        self.emitter.emit(constants.PHP_OPEN_TAG)
        if self.options.watermark:
            self.emitter.emit(f"/* {self.options.watermark} */\n")
        self.visit(root)
        return self.emitter.getvalue()

    def visit(self, node: Node, parent: Optional[Node] = None):
        """Emit *node*, wrapped in its comments, line sync and source parentheses."""
        if parent is not None:
            node.parent = parent
        handler = self._DISPATCH.get(node.type)
        if handler is None:
            raise UnsupportedConstructError(node)
        if node.suppress_loc:
            handler(node)
            return
        self.emitter.loc_start(node)
        handler(node)
        self.emitter.loc_end(node)

    # ── shared emission helpers ──────────────────────────────────

    def _visit_nothing(self, node: Node):
        pass

    def _join(self, nodes: list[Node], parent: Node, separator: str = ", "):
        for idx, child in enumerate(nodes):
            if idx:
                self.emitter.emit(separator)
            self.visit(child, parent)

    def _padded(self, open_text: str, body: Callable[[], object], close_text: str):
        """Like ``Emitter.block`` but a one-line body is padded with spaces."""
        em = self.emitter
        first_line = em.line
        em.emit(open_text)
        em.incr_indent()
        em.emit(" ")
        body()
        if em.line != first_line:
            em.ensure_newline()
            em.decr_indent()
            em.emit(close_text)
        else:
            em.decr_indent()
            em.emit(" " + close_text)

    @staticmethod
    def _has_content(node: Node) -> bool:
        return bool(node.children or node.inner_comments)

    def _visit_body(self, body: Node, parent: Node):
        """Emit a statement body, always braced."""
        if body.type == "statement_block" and not self._has_content(body):
            self.emitter.block("{", lambda: self.visit(body, parent), "}")
        else:
            self._padded("{", lambda: self.visit(body, parent), "}")

    def _parenthesized_condition(self, condition: Node, parent: Node):
        condition.suppress_parens = True
        self.emitter.block("(", lambda: self.visit(condition, parent), ")")

    def _visit_statements(self, statements: list[Node], parent: Node):
        """Emit a statement list, hoisting function declarations first."""
        program_level = self.scopes.current.kind == ScopeKind.PROGRAM
        for statement in statements:
            declaration = statement
            if statement.type == "export_statement":
                declaration = statement.field("declaration")
            if declaration is not None and declaration.type in constants.FUNCTION_DECLARATION_TYPES:
                self.scopes.register(declaration if program_level else declaration.field("name"))
        for statement in statements:
            self.visit(statement, parent)

    def _qualify(self, name: str) -> str:
        if self.options.namespace:
            return self.options.namespace + constants.NAMESPACE_ACCESSOR + name
        return name

    def _emit_use_lines(self, lines: list[str]):
        for idx, line in enumerate(lines):
            if idx:
                self.emitter.break_line()
            self.emitter.emit(line)

    # ── program and blocks ───────────────────────────────────────

    def _visit_program(self, node: Node):
        em = self.emitter
        with self.scopes.scoped(node, ScopeKind.PROGRAM):
            statements = [c for c in node.children if c.type != "hash_bang_line"]
            if self.options.namespace:
                em.emit(f"namespace {self.options.namespace};")
                em.break_line()
            statements = self._visit_module_preamble(statements, node)
            self._visit_statements(statements, node)

    def _visit_module_preamble(self, statements: list[Node], program: Node) -> list[Node]:
        """Consume leading strictness pragmas and ``require`` boilerplate.

        Returns the statements that remain to be emitted.
        """
        remaining = list(statements)
        while remaining:
            statement = remaining[0]
            if (
                self._is_pragma(statement)
                or self._require_path(self._expression_of(statement)) is not None
            ):
                self._emit_comments_only(statement)
            elif statement.type in constants.DECLARATION_TYPES and self._is_require_declaration(statement):
                self.emitter.loc_start(statement)
                self._visit_require_declaration(statement)
                self.emitter.loc_end(statement)
            else:
                break
            remaining.pop(0)
        return remaining

    def _emit_comments_only(self, node: Node):
        for comment in node.leading_comments + node.trailing_comments:
            self.emitter.emit_comment(comment)

    @staticmethod
    def _expression_of(statement: Node) -> Optional[Node]:
        if statement.type == "expression_statement" and statement.children:
            return statement.children[0]
        return None

    def _is_pragma(self, statement: Node) -> bool:
        expression = self._expression_of(statement)
        return (
            expression is not None
            and expression.type == "string"
            and expression.text in constants.STRICT_PRAGMAS
        )

    @staticmethod
    def _require_path(node: Optional[Node]) -> Optional[str]:
        if node is None or node.type != "call_expression":
            return None
        callee, args = node.field("function"), node.field("arguments")
        if callee is None or callee.type != "identifier" or callee.text != constants.MODULE_LOADER:
            return None
        if args is None or len(args.children) != 1 or args.children[0].type != "string":
            return None
        return string_value(args.children[0])

    def _is_require_declaration(self, statement: Node) -> bool:
        declarators = statement.children_of_type("variable_declarator")
        return bool(declarators) and all(
            self._require_path(d.field("value")) is not None for d in declarators
        )

    def _visit_require_declaration(self, node: Node):
        lines: list[str] = []
        for declarator in node.children_of_type("variable_declarator"):
            name = declarator.field("name")
            if name.type == "identifier":
                lines.append(f"use {self._qualify(name.text)};")
            elif name.type == "object_pattern":
                lines.extend(self._require_pattern_lines(name))
            else:
                raise UnsupportedConstructError(name, "module require binding")
        self._emit_use_lines(lines)

    def _require_pattern_lines(self, pattern: Node) -> list[str]:
        lines = []
        for prop in pattern.children:
            if prop.type == "shorthand_property_identifier_pattern":
                key, local = prop.text, prop.text
            elif prop.type == "pair_pattern" and prop.field("value").type == "identifier":
                key, local = prop.field("key").text, prop.field("value").text
            else:
                raise UnsupportedConstructError(prop, "module require binding")
            line = f"use {self._qualify(classize(key))}"
            if key != local:
                line += f" as {classize(local)}"
            lines.append(line + ";")
        return lines

    def _visit_statement_block(self, node: Node):
        self._visit_statements(node.children, node)

    def _visit_expression_statement(self, node: Node):
        expression = self._expression_of(node)
        if expression is None or self._is_pragma(node):
            return
        if expression.type == "call_expression":
            callee = expression.field("function")
            if callee is not None and callee.type in constants.FUNCTION_EXPRESSION_TYPES:
                expression.is_iife = True
        self.visit(expression, node)
        self.emitter.ensure_statement_terminator()

    # ── declarations and patterns ────────────────────────────────

    @staticmethod
    def _in_for_head(declaration: Optional[Node]) -> bool:
        parent = declaration.parent if declaration is not None else None
        return (
            parent is not None
            and parent.type in constants.FOR_HEAD_TYPES
            and parent.field("initializer") is declaration
        )

    def _visit_declaration(self, node: Node):
        in_for_head = self._in_for_head(node)
        for idx, declarator in enumerate(node.children_of_type("variable_declarator")):
            if idx:
                if in_for_head:
                    self.emitter.replace_terminator_with_separator()
                else:
                    self.emitter.emit(" ")
            self.visit(declarator, node)

    def _visit_variable_declarator(self, node: Node):
        em = self.emitter
        self.scopes.register(node)
        name, value = node.field("name"), node.field("value")
        self.visit(name, node)
        if value is not None:
            em.emit(" = ")
            self.visit(value, node)
        elif not self._in_for_head(node.parent):
            em.emit(" = null")
        em.ensure_statement_terminator()

    def _visit_object_pattern(self, node: Node):
        self._padded("[", lambda: self._join(node.children, node), "]")

    def _visit_array_pattern(self, node: Node):
        elements = list(node.children)
        while elements and elements[-1].type == constants.ELISION_TYPE:
            elements.pop()
        self.emitter.block("[", lambda: self._join(elements, node), "]")

    def _visit_pair_pattern(self, node: Node):
        key, value = node.field("key"), node.field("value")
        self._emit_key(key, node)
        self.emitter.emit(" => ")
        self.visit(value, node)

    def _visit_shorthand_property(self, node: Node):
        self.scopes.resolve(node)
        self.emitter.emit(f'"{node.text}" => {constants.VARIABLE_SIGIL}{node.text}')

    def _visit_destructuring_default(self, node: Node):
        raise UnsupportedConstructError(node, "destructuring default")

    def _visit_assignment_pattern(self, node: Node):
        if node.parent is None or node.parent.type != "formal_parameters":
            raise UnsupportedConstructError(node, "destructuring default")
        self.visit(node.field("left"), node)
        self.emitter.emit(" = ")
        self.visit(node.field("right"), node)

    def _visit_spread(self, node: Node):
        if node.type == "rest_pattern" and node.parent is not None and node.parent.type == "object_pattern":
            raise UnsupportedConstructError(node, "object rest")
        self.emitter.emit("...")
        self.visit(node.children[0], node)

    # ── names and literals ───────────────────────────────────────

    def _visit_identifier(self, node: Node):
        em = self.emitter
        name = node.text
        if node.is_static or node.is_callee or node.is_member_property:
            em.emit(name)
            return
        if name == "undefined":
            em.emit("null")
            return
        constant = self.builtins.evaluate(node)
        if constant is not node:
            em.emit(constant.text)
            return
        definition = self.scopes.resolve(node)
        if definition is None and name == "arguments":
            em.emit("func_get_args()")
        elif definition is not None and definition.type in constants.FUNCTION_DECLARATION_TYPES:
            em.emit(f"'{name}'")
        elif definition is not None and definition.type == "class_declaration":
            em.emit(f"{name}::class")
        else:
            em.emit(constants.VARIABLE_SIGIL + name)

    def _visit_property_name(self, node: Node):
        self.emitter.emit(node.text.lstrip("#"))

    def _visit_computed_property_name(self, node: Node):
        self.visit(node.children[0], node)

    def _emit_key(self, key: Node, parent: Node):
        if key.type in ("property_identifier", "private_property_identifier"):
            key.parent = parent
            self.emitter.loc_start(key)
            self.emitter.emit(f'"{key.text.lstrip("#")}"')
            self.emitter.loc_end(key)
        else:
            self.visit(key, parent)

    def _visit_this(self, node: Node):
        self.emitter.emit("$this")

    def _visit_super(self, node: Node):
        self.emitter.emit("parent")

    def _visit_keyword_literal(self, node: Node):
        self.emitter.emit(node.text)

    def _visit_undefined(self, node: Node):
        self.emitter.emit("null")

    def _visit_number(self, node: Node):
        text = node.text.replace("_", "")
        if text.endswith("n"):
            text = text[:-1]
        self.emitter.emit(text)

    def _visit_string(self, node: Node):
        text = node.text
        quote, body = text[0], text[1:-1]
        if body == "undefined":
            self.emitter.emit(f"{quote}{constants.UNDEFINED_TYPE_NAME}{quote}")
        elif quote == "'" and _PLAIN_SINGLE_QUOTED.match(body):
            self.emitter.emit(text)
        else:
            self.emitter.emit(to_double_quoted(body))

    def _visit_regex(self, node: Node):
        pattern = node.field("pattern").text
        flags_node = node.field("flags")
        flags = "".join(f for f in (flags_node.text if flags_node else "") if f in constants.PCRE_FLAGS)
        literal = _REGEX_ESCAPE.sub(r"\\\1", f"/{pattern}/{flags}")
        self.emitter.emit(f"'{literal}'")

    def _visit_template_string(self, node: Node):
        em = self.emitter
        source = node.source
        cursor = node.start_byte + 1
        em.emit('"')
        for substitution in node.children_of_type("template_substitution"):
            chunk = source[cursor : substitution.start_byte].decode("utf-8")
            em.emit_verbatim(_ESCAPE_TOKEN.sub(_double_quoted_escape, chunk))
            self._emit_substitution(substitution.children[0], substitution)
            cursor = substitution.end_byte
        chunk = source[cursor : node.end_byte - 1].decode("utf-8")
        em.emit_verbatim(_ESCAPE_TOKEN.sub(_double_quoted_escape, chunk))
        em.emit('"')

    def _emit_substitution(self, expression: Node, parent: Node):
        expression.suppress_parens = True
        if self._is_interpolable(expression):
            self.emitter.emit("{")
            self.visit(expression, parent)
            self.emitter.emit("}")
        else:
            self.emitter.emit('" . (')
            self.visit(expression, parent)
            self.emitter.emit(') . "')

    def _is_interpolable(self, node: Node) -> bool:
        if node.type == "this":
            return True
        if node.type == "identifier":
            if node.text in ("undefined", "arguments") or self.builtins.evaluate(node) is not node:
                return False
            # Function and class names are not emitted as variables.
            definition = self.scopes.resolve(node, capture=False)
            return definition is None or (
                definition.type not in constants.FUNCTION_DECLARATION_TYPES
                and definition.type != "class_declaration"
            )
        if node.type == "member_expression":
            prop = node.field("property")
            return (
                not node.has_token("?.")
                and not is_capitalized(prop.text)
                and self.builtins.evaluate(node) is node
                and self._is_interpolable(node.field("object"))
                and not self._is_static_ref(node.field("object"))
            )
        if node.type == "subscript_expression":
            index = node.field("index")
            return index is not None and index.type in ("identifier", "number", "string") and (
                self._is_interpolable(node.field("object"))
            )
        return False

    # ── operators ────────────────────────────────────────────────

    def _visit_binary_expression(self, node: Node):
        em = self.emitter
        operator = node.operator
        left, right = node.field("left"), node.field("right")
        if operator == "in":
            subscript = Node.synthetic("subscript_expression", object=right, index=left)
            self.visit(synthetic_call("isset", [subscript], node.parent), node.parent)
            return
        if operator == "instanceof":
            right.is_static = True
        elif operator == "+" and self.builtins.is_string_typed(left) and self.builtins.is_string_typed(right):
            operator = "."
            node.is_concat = True
        operator = _REWRITTEN_OPERATORS.get(operator, operator)
        if operator in _ABOVE_CONCAT:
            for operand in (left, right):
                if operand.type == "binary_expression" and self.builtins.is_string_typed(operand):
                    operand.needs_parens = True
        self.visit(left, node)
        em.emit(f" {operator} ")
        em.incr_indent()
        self.visit(right, node)
        em.decr_indent()

    def _register_target(self, left: Node):
        """Declare an assignment target in the current scope if it is new."""
        if left.type in ("object_pattern", "array_pattern"):
            self.scopes.register(left)
            return
        key = binding_key(left)
        if key is None:
            return
        if key.startswith("this.") or self.scopes.resolve(left, capture=False) is None:
            self.scopes.register(left)

    def _visit_assignment_expression(self, node: Node):
        left, right = node.field("left"), node.field("right")
        self._register_target(left)
        self.visit(left, node)
        self.emitter.emit(" = ")
        self.visit(right, node)

    def _visit_augmented_assignment(self, node: Node):
        operator = node.operator
        if operator in _UNSUPPORTED_ASSIGNMENTS:
            raise UnsupportedConstructError(node, "logical assignment")
        left, right = node.field("left"), node.field("right")
        if operator == "+=" and self.builtins.is_string_typed(left) and self.builtins.is_string_typed(right):
            operator = ".="
            node.is_concat = True
        operator = _REWRITTEN_OPERATORS.get(operator, operator)
        self.visit(left, node)
        self.emitter.emit(f" {operator} ")
        self.visit(right, node)

    def _visit_ternary_expression(self, node: Node):
        em = self.emitter
        condition = node.field("condition")
        condition.suppress_parens = True
        em.emit("(")
        self.visit(condition, node)
        em.emit(") ? ")
        self._visit_branch(node.field("consequence"), node)
        em.emit(" : ")
        self._visit_branch(node.field("alternative"), node)

    def _visit_branch(self, branch: Node, parent: Node):
        # PHP rejects unparenthesized nested conditionals.
        nested = branch.type == "ternary_expression" and not (
            self._positions is not None and self._positions.is_parenthesized(branch)
        )
        if nested:
            self.emitter.emit("(")
        self.visit(branch, parent)
        if nested:
            self.emitter.emit(")")

    def _visit_unary_expression(self, node: Node):
        em = self.emitter
        operator = node.operator
        argument = node.field("argument")
        if operator == "typeof":
            self.visit(synthetic_call("gettype", [argument], node.parent), node.parent)
        elif operator == "delete":
            self.visit(synthetic_call("unset", [argument], node.parent), node.parent)
        elif operator == "void":
            if self.builtins.is_pure(argument):
                em.emit("null")
            else:
                em.emit("(")
                self.visit(argument, node)
                em.emit(" ? null : null)")
        else:
            em.emit(operator)
            if self._would_fuse(operator, argument):
                em.emit(" ")
            self.visit(argument, node)

    @staticmethod
    def _would_fuse(operator: str, argument: Node) -> bool:
        if operator not in ("-", "+"):
            return False
        if argument.type == "unary_expression":
            return argument.operator == operator
        return argument.type == "update_expression" and argument.text.startswith(operator)

    def _visit_update_expression(self, node: Node):
        argument = node.field("argument")
        prefix = argument.start_byte > node.start_byte
        if prefix:
            self.emitter.emit(node.operator)
        self.visit(argument, node)
        if not prefix:
            self.emitter.emit(node.operator)

    def _visit_sequence_expression(self, node: Node):
        self._join(node.children, node)

    def _visit_yield_expression(self, node: Node):
        logger.warning("yield at %s emitted as a plain expression", node.location)
        self.emitter.emit("/* yield */ ")
        if node.children:
            self.visit(node.children[0], node)
        else:
            self.emitter.emit("null")

    def _visit_await_expression(self, node: Node):
        logger.warning("await at %s emitted as a plain expression", node.location)
        self.emitter.emit("/* await */ ")
        self.visit(node.children[0], node)

    # ── calls and members ────────────────────────────────────────

    def _visit_call_expression(self, node: Node):
        em = self.emitter
        callee, args = node.field("function"), node.field("arguments")
        if args is not None and args.type == "template_string":
            raise UnsupportedConstructError(node, "tagged template")
        if callee.type in constants.FUNCTION_EXPRESSION_TYPES and not node.is_construction:
            self._visit_inline_call(node, callee, args)
            return

        definition = self.scopes.resolve(callee, capture=False)
        replacement = self.builtins.evaluate(node)
        if replacement is not node:
            replacement.suppress_loc = True
            self.visit(replacement, node.parent)
            return
        callee.is_callee = callee.is_callee or (
            definition is None or definition.type not in constants.VARIABLE_DEFINITION_TYPES
        )

        items = args.children if args is not None else []
        if (
            callee.type == "identifier"
            and callee.text == constants.APPEND_FUNCTION
            and len(items) == 2
            and node.parent is not None
            and node.parent.type == "expression_statement"
        ):
            self.visit(items[0], args)
            em.emit("[] = ")
            self.visit(items[1], args)
            return

        if callee.type == "super":
            em.loc_start(callee)
            em.emit(constants.PHP_PARENT_CONSTRUCTOR)
            em.loc_end(callee)
        else:
            self.visit(callee, node)
        if args is None:
            em.emit("()")
        else:
            self.visit(args, node)

    def _visit_arguments(self, node: Node):
        em = self.emitter
        if len(node.children) == 1:
            node.children[0].suppress_parens = True
        em.emit("(")
        em.incr_indent()
        self._join(node.children, node)
        em.decr_indent()
        em.emit(")")

    def _visit_inline_call(self, node: Node, callee: Node, args: Optional[Node]):
        """A function expression invoked in place.

        Under a declarator or a plain assignment the function is bound to the
        target first and then called through it; anywhere else the call goes
        through the generic callable invocation.
        """
        em = self.emitter
        callee.suppress_parens = True
        target = None if node.is_iife else self._rebind_target(node)
        if target is not None:
            variable = constants.VARIABLE_SIGIL + target
            self.visit(callee, node)
            em.emit(constants.STATEMENT_TERMINATOR)
            em.break_line()
            em.emit(f"{variable} = {variable}")
            self.visit(args, node)
            return
        items = args.children if args is not None else []
        if len(items) == 1:
            items[0].suppress_parens = True
        em.emit(constants.INVOKE_CALLABLE + "(")
        self.visit(callee, node)
        for arg in items:
            em.emit(", ")
            self.visit(arg, args)
        em.emit(")")

    @staticmethod
    def _rebind_target(call: Node) -> Optional[str]:
        parent = call.parent
        if parent is None:
            return None
        if parent.type == "variable_declarator" and parent.field("value") is call:
            name = parent.field("name")
        elif parent.type == "assignment_expression" and parent.field("right") is call:
            name = parent.field("left")
        else:
            return None
        return name.text if name.type == "identifier" else None

    def _visit_new_expression(self, node: Node):
        constructor = node.field("constructor")
        construction = clone(
            node,
            type="call_expression",
            fields={"function": [constructor], "arguments": node.field_all("arguments")},
            suppress_parens=True,
            suppress_loc=True,
            is_construction=True,
        )
        self.emitter.emit("new ")
        self.visit(construction, node.parent)

    def _is_static_ref(self, node: Node) -> bool:
        """A class-like reference: a capitalized non-variable name or a namespace path."""
        if node.type == "identifier":
            if not is_capitalized(node.text):
                return False
            definition = self.scopes.resolve(node, capture=False)
            return definition is None or definition.type not in constants.VARIABLE_DEFINITION_TYPES
        if node.type == "member_expression" and not node.has_token("?."):
            return is_capitalized(node.field("property").text) and self._is_static_ref(
                node.field("object")
            )
        return False

    def _accessor(self, node: Node, obj: Node, name: str) -> str:
        if node.has_token("?."):
            return constants.NULLSAFE_ACCESSOR
        object_static = self._is_static_ref(obj)
        property_static = is_capitalized(name)
        if object_static and property_static:
            return constants.NAMESPACE_ACCESSOR
        if object_static or property_static or obj.type == "super":
            if not node.is_callee and not property_static and obj.type != "super":
                return constants.STATIC_ACCESSOR + constants.VARIABLE_SIGIL
            return constants.STATIC_ACCESSOR
        return constants.INSTANCE_ACCESSOR

    def _visit_member_expression(self, node: Node):
        replacement = self.builtins.evaluate(node)
        if replacement is not node:
            replacement.suppress_loc = True
            self.visit(replacement, node.parent)
            return
        obj, prop = node.field("object"), node.field("property")
        accessor = self._accessor(node, obj, prop.text.lstrip("#"))
        if obj.type == "identifier" and self._is_static_ref(obj):
            obj.is_static = True
        prop.is_member_property = True
        self.visit(obj, node)
        self.emitter.emit(accessor)
        self.visit(prop, node)

    def _visit_subscript_expression(self, node: Node):
        index = node.field("index")
        self.visit(node.field("object"), node)
        self.emitter.block("[", lambda: self.visit(index, node), "]")

    # ── functions ────────────────────────────────────────────────

    def _emit_function(self, node: Node, header: str, closure: bool) -> Scope:
        """Emit a function header, parameters and body inside a new scope.

        The body is walked before the capture list is known, so the
        ``use (...)`` clause of a closure, or the ``global`` statements of a
        program-scoped function, are spliced into the header afterwards.
        """
        em = self.emitter
        params = node.field("parameters") or node.field("parameter")
        body = node.field("body")
        expression_body = body.type != "statement_block"
        with self.scopes.scoped(node, ScopeKind.FUNCTION) as scope:
            em.emit(header + "(")
            em.incr_indent()
            self._visit_parameters(params, node)
            em.decr_indent()
            em.emit(") ")
            em.push_insertion_point()
            first_line = em.line
            em.emit("{")
            em.incr_indent()
            em.push_insertion_point()
            padded = expression_body or self._has_content(body)
            if padded:
                em.emit(" ")
            self.visit(body, node)
            if expression_body:
                em.insert_at(0, " return")
                em.emit(constants.STATEMENT_TERMINATOR)
            captures = self.scopes.captures_of(scope)
            if captures and closure:
                clause = ", ".join("&" + constants.VARIABLE_SIGIL + name for name in captures)
                em.insert_at(1, f"use ({clause}) ")
            elif captures:
                self._insert_globals(captures, multiline=em.line != first_line)
            em.pop_insertion_point()
            if em.line != first_line:
                em.ensure_newline()
                em.decr_indent()
                em.emit("}")
            else:
                em.decr_indent()
                em.emit(" }" if padded else "}")
            em.pop_insertion_point()
        return scope

    def _insert_globals(self, names: list[str], multiline: bool):
        em = self.emitter
        statements = [f"global {constants.VARIABLE_SIGIL}{name};" for name in names]
        if multiline:
            em.insert_at(0, "".join("\n" + em.indentation + s for s in statements))
        else:
            em.insert_at(0, "".join(" " + s for s in statements))

    def _visit_parameters(self, params: Optional[Node], function: Node):
        if params is None:
            return
        if params.type == "identifier":
            self.scopes.register(params)
            self.visit(params, function)
            return
        for param in params.children:
            target = param.field("left") if param.type == "assignment_pattern" else param
            if target is not None and target.type in ("object_pattern", "array_pattern"):
                raise UnsupportedConstructError(param, "destructured parameter")
            self.scopes.register(param)
        if len(params.children) == 1:
            params.children[0].suppress_parens = True
        self._join(params.children, params)

    def _visit_function_declaration(self, node: Node):
        name = node.field("name").text
        if self.scopes.current.kind == ScopeKind.PROGRAM:
            self._emit_function(node, f"function {name}", closure=False)
            return
        self.emitter.emit(f"{constants.VARIABLE_SIGIL}{name} = ")
        self._emit_function(node, "function ", closure=True)
        self.emitter.emit(constants.STATEMENT_TERMINATOR)

    def _visit_function_expression(self, node: Node):
        self._emit_function(node, "function ", closure=True)

    # ── classes ──────────────────────────────────────────────────

    def _visit_class_declaration(self, node: Node):
        em = self.emitter
        body = node.field("body")
        self.scopes.register(node)
        em.emit(f"class {node.field('name').text} ")
        for heritage in node.children_of_type("class_heritage"):
            base = heritage.children[0] if heritage.children else None
            if base is None or base.type not in ("identifier", "member_expression"):
                raise UnsupportedConstructError(heritage, "computed superclass")
            em.emit(f"extends {base.text.replace('.', constants.NAMESPACE_ACCESSOR)} ")
        declared = {
            "this." + member.field("property").text.lstrip("#")
            for member in body.children_of_type("field_definition")
        }
        self._declared_fields.append(declared)
        try:
            with self.scopes.scoped(node, ScopeKind.CLASS):
                em.block("{", lambda: self.visit(body, node), "}")
        finally:
            self._declared_fields.pop()

    def _visit_class_body(self, node: Node):
        em = self.emitter
        scope = self.scopes.current
        for member in node.children:
            constructor = self._is_constructor(member)
            if constructor:
                em.push_insertion_point()
            self.visit(member, node)
            if constructor:
                em.pop_insertion_point()
        getters, setters = self.scopes.getters_of(scope), self.scopes.setters_of(scope)
        if not getters and not setters:
            return
        with em.synthetic():
            if getters:
                self._emit_accessor_dispatcher(getters, setter=False)
            if setters:
                self._emit_accessor_dispatcher(setters, setter=True)

    @staticmethod
    def _is_constructor(member: Node) -> bool:
        if member.type != "method_definition":
            return False
        name = member.field("name")
        return name is not None and name.text == "constructor" and not member.has_token("static")

    def _emit_accessor_dispatcher(self, accessors: list[Node], setter: bool):
        """Synthesize ``__get``/``__set`` switching on the requested property name."""
        em = self.emitter
        property_param = constants.VARIABLE_SIGIL + constants.PHP_PROPERTY_PARAM
        value_param = constants.VARIABLE_SIGIL + constants.PHP_VALUE_PARAM
        if setter:
            signature = f"{constants.PHP_MAGIC_SET}({property_param}, {value_param})"
        else:
            signature = f"{constants.PHP_MAGIC_GET}({property_param})"
        em.ensure_newline()
        with self.scopes.scoped(accessors[0], ScopeKind.FUNCTION) as scope:
            em.emit(f"public function {signature} ")

            def dispatch():
                em.push_insertion_point()
                for accessor in accessors:
                    em.newline()
                    name = accessor.field("name").text.lstrip("#")
                    em.emit(f"if ({property_param} === '{name}') ")
                    em.block("{", lambda a=accessor: self._emit_accessor_body(a, setter), "}")
                captures = self.scopes.captures_of(scope)
                if captures:
                    self._insert_globals(captures, multiline=True)
                em.pop_insertion_point()

            em.block("{", dispatch, "}")

    def _emit_accessor_body(self, accessor: Node, setter: bool):
        em = self.emitter
        params = accessor.field("parameters")
        if setter and params is not None and params.children:
            param = params.children[0]
            if param.type != "identifier":
                raise UnsupportedConstructError(param, "destructured setter parameter")
            self.scopes.register(param)
            if param.text != constants.PHP_VALUE_PARAM:
                em.newline()
                em.emit(f"{constants.VARIABLE_SIGIL}{param.text} = {constants.VARIABLE_SIGIL}{constants.PHP_VALUE_PARAM};")
        body = accessor.field("body")
        statements = body.children
        if not statements:
            return
        em.newline()
        em.realign(statements[0].start_line)
        self._visit_statements(statements, body)
        for comment in body.inner_comments:
            em.emit_comment(comment)

    def _visit_method_definition(self, node: Node):
        em = self.emitter
        name_node = node.field("name")
        in_object = node.parent is not None and node.parent.type == "object"
        if node.has_token("get") or node.has_token("set"):
            if in_object:
                raise UnsupportedConstructError(node, "accessor in object literal")
            self.scopes.register(node)
            return
        if name_node.type == "computed_property_name":
            raise UnsupportedConstructError(node, "computed method name")
        name = name_node.text.lstrip("#")
        if in_object:
            em.emit(f'"{name}" => ')
            self._emit_function(node, "function ", closure=True)
            return
        self.scopes.register(node)
        em.emit("public ")
        if node.has_token("static"):
            em.emit("static ")
        if not self._is_constructor(node):
            self._emit_function(node, f"function {name}", closure=False)
            return
        held = self._hold_field_comments(node)
        scope = self._emit_function(node, f"function {constants.PHP_CONSTRUCTOR}", closure=False)
        self._promote_fields(scope, held)

    def _promotable(self, constructor: Node) -> dict[str, Node]:
        """Top-level ``this.x = ...`` statements of a constructor, first per name."""
        declared = self._declared_fields[-1] if self._declared_fields else set()
        found: dict[str, Node] = {}
        for statement in constructor.field("body").children:
            expression = self._expression_of(statement)
            if expression is None or expression.type != "assignment_expression":
                continue
            key = binding_key(expression.field("left"))
            if key and key.startswith("this.") and key not in declared and key not in found:
                found[key] = statement
        return found

    def _hold_field_comments(self, constructor: Node) -> dict[str, list[Comment]]:
        held: dict[str, list[Comment]] = {}
        for key, statement in self._promotable(constructor).items():
            comments = [c for c in statement.leading_comments if c.is_block and not c.emitted]
            for comment in comments:
                comment.emitted = True
            if comments:
                # The doc comment moves above the promoted field.
                last = min(comments[-1].location.end_line, statement.start_line - 1)
                statement.skipped_lines = (comments[0].location.start_line, last)
            held[key] = comments
        return held

    def _promote_fields(self, scope: Scope, held: dict[str, list[Comment]]):
        """Declare constructor-assigned properties before the constructor."""
        em = self.emitter
        declared = self._declared_fields[-1] if self._declared_fields else set()
        names = [key for key in scope.definitions if key.startswith("this.") and key not in declared]
        if not names:
            return
        at_line_start = em.at_line_start()
        text = ""
        for key in names:
            doc = ""
            for comment in held.get(key, []):
                comment.emitted = False
                doc += em.render_comment(comment)
            field = f"{doc}public {constants.VARIABLE_SIGIL}{key[len('this.'):]};"
            text += field + "\n" + em.indentation if at_line_start else "\n" + em.indentation + field
            declared.add(key)
            logger.debug("Promoted constructor property %s to a field", key)
        em.insert_at(0, text)

    def _visit_field_definition(self, node: Node):
        em = self.emitter
        prop, value = node.field("property"), node.field("value")
        if prop.type == "computed_property_name":
            raise UnsupportedConstructError(node, "computed field name")
        self.scopes.register(node)
        em.emit("public ")
        if node.has_token("static"):
            em.emit("static ")
        em.emit(constants.VARIABLE_SIGIL + prop.text.lstrip("#"))
        if value is not None:
            em.emit(" = ")
            self.visit(value, node)
        em.emit(constants.STATEMENT_TERMINATOR)

    # ── object and array literals ────────────────────────────────

    def _visit_object(self, node: Node):
        open_text, close_text = self.options.array_open, self.options.array_close
        if not self._has_content(node):
            self.emitter.emit(open_text + close_text)
            return
        self._padded(open_text, lambda: self._join(node.children, node), close_text)

    def _visit_pair(self, node: Node):
        self._emit_key(node.field("key"), node)
        self.emitter.emit(" => ")
        self.visit(node.field("value"), node)

    def _visit_array(self, node: Node):
        self.emitter.block(
            self.options.array_open,
            lambda: self._join(node.children, node),
            self.options.array_close,
        )

    def _visit_elision(self, node: Node):
        # Skipped slots stay empty in a destructuring target.
        if node.parent is None or node.parent.type != "array_pattern":
            self.emitter.emit("null")

    # ── control flow ─────────────────────────────────────────────

    def _visit_return_statement(self, node: Node):
        self.emitter.emit("return")
        if node.children:
            self.emitter.emit(" ")
            self.visit(node.children[0], node)
        self.emitter.ensure_statement_terminator()

    def _visit_if_statement(self, node: Node):
        em = self.emitter
        em.emit("if ")
        self._parenthesized_condition(node.field("condition"), node)
        em.emit(" ")
        self._visit_body(node.field("consequence"), node)
        alternative = node.field("alternative")
        if alternative is not None:
            em.emit(" ")
            self.visit(alternative, node)

    def _visit_else_clause(self, node: Node):
        self.emitter.emit("else ")
        branch = node.children[0]
        if branch.type == "if_statement":
            self.visit(branch, node)
        else:
            self._visit_body(branch, node)

    def _visit_while_statement(self, node: Node):
        self.emitter.emit("while ")
        self._parenthesized_condition(node.field("condition"), node)
        self.emitter.emit(" ")
        self._visit_body(node.field("body"), node)

    def _visit_do_statement(self, node: Node):
        em = self.emitter
        em.emit("do ")
        self._visit_body(node.field("body"), node)
        em.emit(" while ")
        self._parenthesized_condition(node.field("condition"), node)
        em.ensure_statement_terminator()

    @staticmethod
    def _for_clause(part: Optional[Node]) -> Optional[Node]:
        if part is None or part.type == "empty_statement":
            return None
        if part.type == "expression_statement":
            return part.children[0] if part.children else None
        return part

    def _visit_for_statement(self, node: Node):
        em = self.emitter

        def head():
            for name in ("initializer", "condition"):
                part = self._for_clause(node.field(name))
                if part is None:
                    em.emit(constants.STATEMENT_TERMINATOR)
                else:
                    self.visit(part, node)
                    em.ensure_statement_terminator()
                em.emit(" ")
            increments = node.field_all("increment")
            self._join(increments, node)

        em.emit("for ")
        em.block("(", head, ")")
        em.emit(" ")
        self._visit_body(node.field("body"), node)

    def _visit_for_in_statement(self, node: Node):
        em = self.emitter
        left, right = node.field("left"), node.field("right")
        over_values = (node.operator or ("of" if node.has_token("of") else "in")) == "of"
        self.scopes.register(left)
        discarded = constants.VARIABLE_SIGIL + constants.DISCARDED_BINDING

        def head():
            self.visit(right, node)
            em.emit(" as ")
            if over_values:
                em.emit(f"{discarded} => ")
                self.visit(left, node)
            else:
                self.visit(left, node)
                em.emit(f" => {discarded}")

        em.emit("foreach ")
        em.block("(", head, ")")
        em.emit(" ")
        self._visit_body(node.field("body"), node)

    def _visit_switch_statement(self, node: Node):
        self.emitter.emit("switch ")
        self._parenthesized_condition(node.field("value"), node)
        self.emitter.emit(" ")
        self.visit(node.field("body"), node)

    def _visit_switch_body(self, node: Node):
        self.emitter.block("{", lambda: self._visit_statements(node.children, node), "}")

    def _visit_switch_case(self, node: Node):
        em = self.emitter
        value = node.field("value")
        if value is None:
            em.emit("default:")
        else:
            em.emit("case ")
            self.visit(value, node)
            em.emit(":")
        statements = node.field_all("body")
        em.incr_indent()
        if statements:
            em.emit(" ")
            self._visit_statements(statements, node)
        em.decr_indent()

    def _visit_jump_statement(self, node: Node):
        keyword = "break" if node.type == "break_statement" else "continue"
        self.emitter.emit(keyword)
        label = node.field("label")
        if label is not None:
            logger.warning("Label %r at %s dropped from %s", label.text, node.location, keyword)
            self.emitter.emit(f" /* {label.text} */")
        self.emitter.emit(constants.STATEMENT_TERMINATOR)

    def _visit_labeled_statement(self, node: Node):
        self.visit(node.field("body"), node)

    def _visit_try_statement(self, node: Node):
        em = self.emitter
        em.emit("try ")
        self._visit_body(node.field("body"), node)
        for part in ("handler", "finalizer"):
            clause = node.field(part)
            if clause is not None:
                em.emit(" ")
                self.visit(clause, node)

    def _visit_catch_clause(self, node: Node):
        em = self.emitter
        param = node.field("parameter")
        exception = constants.PHP_EXCEPTION_CLASS
        if self.options.namespace:
            exception = constants.NAMESPACE_ACCESSOR + exception
        with self.scopes.scoped(node, ScopeKind.CATCH):
            em.emit(f"catch ({exception}")
            if param is not None:
                if param.type != "identifier":
                    raise UnsupportedConstructError(param, "destructured catch binding")
                self.scopes.register(param)
                param.suppress_parens = True
                em.emit(" ")
                self.visit(param, node)
            em.emit(") ")
            self._visit_body(node.field("body"), node)

    def _visit_finally_clause(self, node: Node):
        self.emitter.emit("finally ")
        self._visit_body(node.field("body"), node)

    def _visit_throw_statement(self, node: Node):
        self.emitter.emit("throw ")
        self.visit(node.children[0], node)
        self.emitter.ensure_statement_terminator()

    # ── modules ──────────────────────────────────────────────────

    def _visit_import_statement(self, node: Node):
        clauses = node.children_of_type("import_clause")
        if not clauses:
            return
        module = self._qualify(classize(string_value(node.field("source"))))
        lines: list[str] = []
        for part in clauses[0].children:
            if part.type == "identifier":
                lines.append(f"use {module} as {part.text};")
            elif part.type == "namespace_import":
                lines.append(f"use {module} as {part.children[0].text};")
            elif part.type == "named_imports":
                for specifier in part.children_of_type("import_specifier"):
                    line = f"use {module}{constants.NAMESPACE_ACCESSOR}{specifier.field('name').text}"
                    alias = specifier.field("alias")
                    if alias is not None:
                        line += f" as {alias.text}"
                    lines.append(line + ";")
        self._emit_use_lines(lines)

    def _visit_export_statement(self, node: Node):
        declaration = node.field("declaration")
        if declaration is not None:
            self.visit(declaration, node)
            return
        value = node.field("value")
        if value is None:
            return
        self.emitter.emit("return ")
        self.visit(value, node)
        self.emitter.ensure_statement_terminator()
