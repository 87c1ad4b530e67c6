"""Tests for translating classes, constructors, fields and accessors."""

from __future__ import annotations

from js2php import TranslateOptions, translate

COUNTER = """\
class Counter {
  constructor() {
    this.count = 0;
  }
  increment() {
    this.count++;
  }
}
"""

PERSON = """\
class Person {
  constructor(name) {
    /** The name */
    this.name = name;
    this.name = name.trim();
  }
}
"""

POINT = """\
class Point {
  constructor() {
    /**
     * Horizontal.
     */
    this.x = 0;
  }
}
"""

BOX = """\
class Box {
  get size() {
    return this._size;
  }
  set size(v) {
    this._size = v;
  }
}
"""


def _translate(source: str, **options) -> str:
    return translate(source, TranslateOptions(**options))


class TestClassDeclarations:
    def test_methods_and_constructor(self):
        php = _translate(COUNTER)
        assert "class Counter {" in php
        assert "public function __construct() {" in php
        assert "public function increment() {" in php
        assert "$this->count++;" in php

    def test_empty_class(self):
        assert "class A {}" in _translate("class A {}")

    def test_inheritance_and_parent_constructor(self):
        php = _translate("class B extends A {\n  constructor(x) {\n    super(x);\n  }\n}")
        assert "class B extends A {" in php
        assert "parent::__construct($x);" in php

    def test_namespaced_base_class(self):
        assert "class B extends Lib\\A {" in _translate("class B extends Lib.A {}")

    def test_static_method_and_construction(self):
        php = _translate("class M {\n  static make() { return new M(); }\n}")
        assert "public static function make() { return new M(); }" in php

    def test_parent_method_call(self):
        php = _translate("class B extends A {\n  run() { return super.run(); }\n}")
        assert "return parent::run();" in php


class TestFields:
    def test_field_definitions(self):
        php = _translate("class C {\n  count = 0;\n  static #secret = 1;\n}")
        assert "public $count = 0;" in php
        assert "public static $secret = 1;" in php

    def test_constructor_assignments_are_promoted(self):
        php = _translate(COUNTER)
        assert "public $count;" in php
        assert php.index("public $count;") < php.index("function __construct")

    def test_promoted_field_declared_once(self):
        php = _translate(PERSON)
        assert php.count("public $name;") == 1

    def test_doc_comment_moves_with_promoted_field(self):
        php = _translate(PERSON)
        assert php.count("The name") == 1
        assert php.index("/** The name */") < php.index("public $name;")

    def test_moved_doc_comment_leaves_no_blank_lines(self):
        php = _translate(POINT)
        assert "\t/**\n\t * Horizontal.\n\t */\n\tpublic $x;" in php
        assert "public function __construct() {\n\t\t$this->x = 0;" in php

    def test_single_line_doc_comment_leaves_no_blank_line(self):
        assert "__construct($name) {\n\t\t$this->name = $name;" in _translate(PERSON)

    def test_declared_field_is_not_promoted_again(self):
        php = _translate("class C {\n  n = 0;\n  constructor() {\n    this.n = 1;\n  }\n}")
        assert php.count("public $n") == 1


class TestAccessors:
    def test_getter_dispatch(self):
        php = _translate(BOX)
        assert "public function __get($_property) {" in php
        assert "if ($_property === 'size') {" in php
        assert "return $this->_size;" in php

    def test_setter_dispatch(self):
        php = _translate(BOX)
        assert "public function __set($_property, $value) {" in php
        assert "$v = $value;" in php
        assert "$this->_size = $v;" in php

    def test_accessors_are_not_emitted_as_methods(self):
        php = _translate(BOX)
        assert "function size" not in php
