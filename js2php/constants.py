"""Named constants: eliminates magic strings across the codebase."""

from __future__ import annotations

SOURCE_LANGUAGE = "javascript"
SUPPORTED_SOURCE_LANGUAGES: tuple[str, ...] = (SOURCE_LANGUAGE,)

PHP_OPEN_TAG = "<?php\n"
VARIABLE_SIGIL = "$"
INDENT = "\t"
STATEMENT_TERMINATOR = ";"

# ── target-language names ────────────────────────────────────────

PHP_CONSTRUCTOR = "__construct"
PHP_PARENT_CONSTRUCTOR = "parent::__construct"
PHP_MAGIC_GET = "__get"
PHP_MAGIC_SET = "__set"
PHP_PROPERTY_PARAM = "_property"
PHP_VALUE_PARAM = "value"
PHP_EXCEPTION_CLASS = "Exception"
DISCARDED_BINDING = "___"

INVOKE_CALLABLE = "call_user_func"
INVOKE_CALLABLE_ARRAY = "call_user_func_array"
APPEND_FUNCTION = "array_push"

UNDEFINED_TYPE_NAME = "NULL"

# ── accessor tokens ──────────────────────────────────────────────

NAMESPACE_ACCESSOR = "\\"
STATIC_ACCESSOR = "::"
INSTANCE_ACCESSOR = "->"
NULLSAFE_ACCESSOR = "?->"

# ── JS node kinds ────────────────────────────────────────────────

COMMENT_TYPES: frozenset[str] = frozenset({"comment", "html_comment"})
PAREN_EXPR_TYPE = "parenthesized_expression"
ELISION_TYPE = "elision"
ARRAY_TYPES: frozenset[str] = frozenset({"array", "array_pattern"})
OPTIONAL_CHAIN_TYPE = "optional_chain"

FUNCTION_EXPRESSION_TYPES: frozenset[str] = frozenset(
    {
        "function",
        "function_expression",
        "generator_function",
        "arrow_function",
    }
)
FUNCTION_DECLARATION_TYPES: frozenset[str] = frozenset(
    {"function_declaration", "generator_function_declaration"}
)
DECLARATION_TYPES: frozenset[str] = frozenset(
    {"lexical_declaration", "variable_declaration"}
)
STRING_TYPES: frozenset[str] = frozenset({"string", "template_string"})

# Definitions that are values in the source (and so need capture in a closure).
VARIABLE_DEFINITION_TYPES: frozenset[str] = frozenset(
    {
        "identifier",
        "variable_declarator",
        "shorthand_property_identifier_pattern",
    }
)

STRICT_PRAGMAS: frozenset[str] = frozenset({'"use strict"', "'use strict'"})
MODULE_LOADER = "require"

FOR_HEAD_TYPES: frozenset[str] = frozenset({"for_statement"})

# ── regex flags understood by PCRE ───────────────────────────────

PCRE_FLAGS: frozenset[str] = frozenset("imsux")
