"""Whole-translation properties: determinism, line structure, parentheses and comments."""

from __future__ import annotations

from js2php import TranslateOptions, translate

PROGRAM = """\
var a = 1;
var b = 2;

if (a) {
  b = 3;
}
"""

COMMENTED = """\
// leading
var a = 1; // trailing
/* block */
function f() {
  // only comment
}
"""


def _translate(source: str, **options) -> str:
    return translate(source, TranslateOptions(**options))


class TestDeterminism:
    def test_same_input_same_output(self):
        assert _translate(PROGRAM) == _translate(PROGRAM)

    def test_translations_are_independent(self):
        first = _translate("var x = 1;\nfunction f() { return x; }")
        _translate("var y = 2;\nvar g = () => y;")
        assert _translate("var x = 1;\nfunction f() { return x; }") == first


class TestLineStructure:
    def test_statements_keep_their_source_lines(self):
        lines = _translate(PROGRAM).split("\n")
        assert lines[1] == "$a = 1;"
        assert lines[2] == "$b = 2;"
        assert lines[3] == ""
        assert lines[4] == "if ($a) {"
        assert lines[5] == "\t$b = 3;"
        assert lines[6] == "}"

    def test_blank_lines_are_preserved(self):
        assert "$a = 1;\n\n\n$b = 2;" in _translate("var a = 1;\n\n\nvar b = 2;\n")

    def test_namespace_line_does_not_shift_blank_lines(self):
        php = _translate("var a = 1;\n\nvar b = 2;\n", namespace="App")
        assert "namespace App;\n$a = 1;\n\n$b = 2;" in php


class TestParentheses:
    def test_grouping_is_preserved(self):
        assert "$a = ($b + $c) * $d;" in _translate("var a = (b + c) * d;")
        assert "$g = $h * ($i - $j);" in _translate("var g = h * (i - j);")

    def test_redundant_parentheses_are_kept(self):
        assert "$e = ($f);" in _translate("var e = (f);")

    def test_call_parentheses_are_not_doubled(self):
        php = _translate("f(a);\nvar a2 = [];\na2.push(1);")
        assert "f($a);" in php
        assert "$a2[] = 1;" in php

    def test_no_parentheses_are_invented(self):
        assert "$x = $a + $b * $c;" in _translate("var x = a + b * c;")


class TestComments:
    def test_every_comment_is_emitted_once(self):
        php = _translate(COMMENTED)
        for text in ("// leading", "// trailing", "/* block */", "// only comment"):
            assert php.count(text) == 1

    def test_comments_keep_their_position(self):
        php = _translate(COMMENTED)
        assert "// leading\n$a = 1; // trailing\n/* block */" in php
