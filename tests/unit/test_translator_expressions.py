"""Tests for translating declarations, literals, operators, calls and members."""

from __future__ import annotations

from js2php import TranslateOptions, translate


def _translate(source: str, **options) -> str:
    return translate(source, TranslateOptions(**options))


class TestDeclarations:
    def test_simple_declaration(self):
        assert "$x = 1;" in _translate("var x = 1;")

    def test_uninitialized_declaration_is_null(self):
        assert "$x = null;" in _translate("let x;")

    def test_multiple_declarators(self):
        assert "$a = 1; $b = null;" in _translate("var a = 1, b;")

    def test_object_destructuring(self):
        php = _translate("var { a, b: c } = o;")
        assert '[ "a" => $a, "b" => $c ] = $o;' in php

    def test_array_destructuring(self):
        assert "[$x, $y] = $pair;" in _translate("var [x, y] = pair;")

    def test_array_destructuring_keeps_skipped_slots(self):
        assert "[$x, , $y] = $arr;" in _translate("var [x, , y] = arr;")
        assert "[, $y] = $arr;" in _translate("var [, y] = arr;")

    def test_trailing_holes_are_dropped_from_patterns(self):
        assert "[$x] = $arr;" in _translate("var [x, ,] = arr;")


class TestLiterals:
    def test_object_literal(self):
        assert '$o = [ "a" => 1, "b" => 2 ];' in _translate("var o = { a: 1, b: 2 };")

    def test_object_literal_verbose(self):
        php = _translate("var o = { a: 1, b: 2 };", concise_arrays=False)
        assert '$o = array( "a" => 1, "b" => 2 );' in php

    def test_empty_object(self):
        assert "$o = [];" in _translate("var o = {};")

    def test_shorthand_property(self):
        assert '[ "a" => $a ]' in _translate("var a = 1;\nvar o = { a };")

    def test_array_literal(self):
        assert "$l = [1, 2];" in _translate("var l = [1, 2];")
        assert "$l = array(1, 2);" in _translate("var l = [1, 2];", concise_arrays=False)

    def test_array_holes_become_null(self):
        assert "$l = [1, null, 3];" in _translate("var l = [1, , 3];")
        assert "$l = [1, null];" in _translate("var l = [1, ,];")

    def test_numbers(self):
        assert "$n = 1000;" in _translate("var n = 1_000;")
        assert "$n = 10;" in _translate("var n = 10n;")
        assert "$n = 0xFF;" in _translate("var n = 0xFF;")

    def test_keyword_literals(self):
        php = _translate("var a = [true, false, null, undefined];")
        assert "[true, false, null, null]" in php

    def test_plain_single_quoted_string_is_kept(self):
        assert "$a = 'it\\'s';" in _translate("var a = 'it\\'s';")
        assert "$a = 'say \"hi\"';" in _translate("var a = 'say \"hi\"';")

    def test_double_quoted_string(self):
        assert '$b = "hi";' in _translate('var b = "hi";')
        assert '$b = "it\'s";' in _translate('var b = "it\'s";')

    def test_escapes_force_double_quotes(self):
        assert '$c = "a\\nb";' in _translate("var c = 'a\\nb';")

    def test_dollar_is_escaped(self):
        assert '$d = "cost \\$5";' in _translate('var d = "cost $5";')

    def test_unicode_escape(self):
        assert '$e = "\\u{00e9}";' in _translate("var e = '\\u00e9';")

    def test_undefined_type_name(self):
        assert "'NULL'" in _translate("var t = 'undefined';")

    def test_regex(self):
        assert "$r = '/a\\\\/b/i';" in _translate("var r = /a\\/b/gi;")


class TestTemplates:
    def test_bound_identifier_is_interpolated(self):
        php = _translate("var who = 'x';\nvar s = `hi ${who}!`;")
        assert '$s = "hi {$who}!";' in php

    def test_unbound_identifier_is_interpolated(self):
        assert '$s = "hi {$who}!";' in _translate("var s = `hi ${who}!`;")

    def test_function_name_is_concatenated(self):
        php = _translate("function f() {}\nvar s = `${f}`;")
        assert "\"\" . ('f') . \"\"" in php

    def test_member_of_this_is_interpolated(self):
        php = _translate("function f() { return `${this.name}`; }")
        assert '"{$this->name}"' in php

    def test_expression_is_concatenated(self):
        php = _translate("var s = `sum ${a + b}`;")
        assert '$s = "sum " . ($a + $b) . "";' in php

    def test_dollar_in_template(self):
        assert '"cost \\$5"' in _translate("var s = `cost $5`;")


class TestOperators:
    def test_arithmetic(self):
        assert "$c = $a + $b;" in _translate("var c = a + b;")

    def test_string_concatenation(self):
        assert "$s = 'a' . 'b';" in _translate("var s = 'a' + 'b';")
        php = _translate("var p = 'a';\nvar q = p + 'b';")
        assert "$q = $p . 'b';" in php

    def test_concatenation_under_arithmetic_is_parenthesized(self):
        assert "$s = (\"a\" . \"b\") + 1;" in _translate("var s = \"a\" + \"b\" + 1;")
        php = _translate("var a = 'x', b = 'y';\nvar t = a + b + n;")
        assert "$t = ($a . $b) + $n;" in php

    def test_source_parentheses_are_not_doubled(self):
        php = _translate("var s = ('a' + 'b') - 1;")
        assert "$s = ('a' . 'b') - 1;" in php

    def test_unknown_operands_keep_plus(self):
        assert "$q = $p + 'b';" in _translate("var q = p + 'b';")

    def test_string_append(self):
        assert "$s .= 'x';" in _translate("var s = '';\ns += 'x';")

    def test_unsigned_shift(self):
        assert "$y = $x >> 1;" in _translate("var y = x >>> 1;")

    def test_in_operator(self):
        assert "$has = isset($o['k']);" in _translate("var has = 'k' in o;")

    def test_instanceof(self):
        assert "$ok = $e instanceof Error;" in _translate("var ok = e instanceof Error;")

    def test_typeof(self):
        php = _translate("var t = typeof x === 'undefined';")
        assert "$t = gettype($x) === 'NULL';" in php

    def test_delete(self):
        assert "unset($o->k);" in _translate("delete o.k;")

    def test_void(self):
        assert "$u = null;" in _translate("var u = void 0;")
        assert "$u = (f() ? null : null);" in _translate("var u = void f();")

    def test_unary_operators_do_not_fuse(self):
        assert "$y = - -$x;" in _translate("var y = - -x;")
        assert "$y = !$x;" in _translate("var y = !x;")

    def test_update(self):
        php = _translate("i++;\n++j;")
        assert "$i++;" in php
        assert "++$j;" in php

    def test_nested_ternary_is_parenthesized(self):
        php = _translate("var t = a ? b : c ? d : e;")
        assert "$t = ($a) ? $b : (($c) ? $d : $e);" in php

    def test_assignment(self):
        assert "$x = $y = 2;" in _translate("x = y = 2;")


class TestCallsAndMembers:
    def test_unbound_function_call(self):
        assert "f($a, 1);" in _translate("f(a, 1);")

    def test_bound_variable_call(self):
        assert "$g(1);" in _translate("var g = h;\ng(1);")

    def test_instance_member(self):
        assert "$v = $obj->prop;" in _translate("var v = obj.prop;")
        assert "$obj->run(1);" in _translate("obj.run(1);")

    def test_static_member(self):
        assert "$v = Foo::$bar;" in _translate("var v = Foo.bar;")
        assert "Foo::bar();" in _translate("Foo.bar();")

    def test_namespace_path(self):
        assert "Foo\\Bar::baz();" in _translate("Foo.Bar.baz();")

    def test_optional_chaining(self):
        assert "$n = $a?->b;" in _translate("var n = a?.b;")

    def test_subscript(self):
        assert "$v = $a[0];" in _translate("var v = a[0];")

    def test_new(self):
        assert "$d = new Date();" in _translate("var d = new Date;")
        assert "$e = new Error('x');" in _translate("var e = new Error('x');")

    def test_spread_argument(self):
        assert "f(...$args);" in _translate("f(...args);")

    def test_builtin_call(self):
        assert "$n = floor($x);" in _translate("var n = Math.floor(x);")
        assert "$i = intval($s, 10);" in _translate("var i = parseInt(s, 10);")
        assert "var_dump('hi');" in _translate("console.log('hi');")

    def test_reordered_builtin(self):
        assert "$s = implode('-', $parts);" in _translate("var s = parts.join('-');")

    def test_push_statement_becomes_append(self):
        php = _translate("var a = [];\na.push(1);")
        assert "$a[] = 1;" in php

    def test_push_with_several_values(self):
        assert "array_push($a, 1, 2);" in _translate("a.push(1, 2);")

    def test_length(self):
        assert "$n = count($xs);" in _translate("var n = xs.length;")
        assert "$n = strlen($s);" in _translate("var s = 'abc';\nvar n = s.length;")

    def test_builtin_constants(self):
        assert "$m = M_PI;" in _translate("var m = Math.PI;")
        assert "$n = NAN;" in _translate("var n = NaN;")

    def test_indirect_call(self):
        assert "call_user_func($f, 1);" in _translate("f.call(this, 1);")

    def test_function_reference(self):
        assert "$fns = ['cb'];" in _translate("function cb() {}\nvar fns = [cb];")

    def test_class_reference(self):
        assert "$k = A::class;" in _translate("class A {}\nvar k = A;")

    def test_arguments_object(self):
        assert "return func_get_args();" in _translate("function f() { return arguments; }")
