"""Tests for type inference, the interface registry and the annotation pass."""

import json
from dataclasses import replace

import pytest

from js2ts.lexer import tokenize
from js2ts.parser import parse
from js2ts.config import ConfigError, TranspilerConfig
from js2ts.inferrer import TypeInferrer, number_name
from js2ts.registry import InterfaceRegistry, RegistryFrozenError
from js2ts.annotator import annotate, is_complex
from js2ts.transpiler import transpile_source
from js2ts.descriptors import (
  ANY,
  NULL,
  VOID,
  NUMBER,
  STRING,
  BOOLEAN,
  UNKNOWN,
  UNDEFINED,
  ArrayType,
  Reference,
  UnionType,
  ObjectShape,
  FunctionSignature,
  render,
  make_union,
)


def parse_source(source: str):
  return parse(tokenize(source))


def expr(source: str):
  """Parse a single expression statement and return its expression."""
  return parse_source(source).body[0].expr


def function(source: str):
  return parse_source(source).body[0]


def code(source: str, **options) -> str:
  result = transpile_source(source, TranspilerConfig(**options))
  assert result.success, result.error
  return result.code


class TestDescriptors:
  def test_make_union(self):
    assert make_union([]) == UNKNOWN
    assert make_union([NUMBER, NUMBER]) == NUMBER
    assert make_union([NUMBER, make_union([STRING, NUMBER]), BOOLEAN]) == UnionType((NUMBER, STRING, BOOLEAN))

  def test_render(self):
    assert render(ArrayType(make_union([NUMBER, STRING]))) == "(number | string)[]"
    assert render(ObjectShape((("a", NUMBER), ("b-c", STRING)))) == '{ a: number; "b-c": string }'
    assert render(ObjectShape(())) == "{}"
    assert render(FunctionSignature((("a", NUMBER), ("b", UNKNOWN)), VOID)) == "(a: number, b: unknown) => void"
    assert render(make_union([FunctionSignature((), VOID), NULL])) == "(() => void) | null"


class TestInferrer:
  def setup_method(self):
    self.inferrer = TypeInferrer()

  def test_literals(self):
    assert self.inferrer.infer(expr('"a";')) == STRING
    assert self.inferrer.infer(expr("42;")) == NUMBER
    assert self.inferrer.infer(expr("true;")) == BOOLEAN
    assert self.inferrer.infer(expr("null;")) == NULL
    assert self.inferrer.infer(expr("/ab/;")) == UNKNOWN

  def test_inference_is_idempotent(self):
    node = expr('[1, "a"];')
    assert self.inferrer.infer(node) == self.inferrer.infer(node)

  def test_arrays(self):
    assert self.inferrer.infer(expr("[];")) == ArrayType(UNKNOWN)
    assert self.inferrer.infer(expr("[1, 2, 3];")) == ArrayType(NUMBER)
    mixed = self.inferrer.infer(expr('[1, "a", 2, true, "b"];'))
    assert mixed == ArrayType(UnionType((NUMBER, STRING, BOOLEAN)))
    assert self.inferrer.infer(expr("[1, , 2];")) == ArrayType(UnionType((NUMBER, UNDEFINED)))

  def test_object(self):
    shape = self.inferrer.infer(expr('({ a: 1, b: "x", [k]: 2, ...rest, get c() { return 1; } });'))
    assert shape == ObjectShape((("a", NUMBER), ("b", STRING)))

  def test_binary(self):
    assert self.inferrer.infer(expr('"a" + 1;')) == STRING
    assert self.inferrer.infer(expr("1 + 2;")) == NUMBER
    assert self.inferrer.infer(expr("a + b;")) == UNKNOWN
    assert self.inferrer.infer(expr("a - b;")) == NUMBER
    assert self.inferrer.infer(expr("a === b;")) == BOOLEAN
    assert self.inferrer.infer(expr("a instanceof B;")) == BOOLEAN
    assert self.inferrer.infer(expr("a & b;")) == UNKNOWN

  def test_calls(self):
    assert self.inferrer.infer(expr("parseInt(x);")) == NUMBER
    assert self.inferrer.infer(expr("String(x);")) == STRING
    assert self.inferrer.infer(expr("Boolean(x);")) == BOOLEAN
    assert self.inferrer.infer(expr("foo();")) == UNKNOWN

  def test_everything_else_is_unknown(self):
    assert self.inferrer.infer(expr("`hi`;")) == UNKNOWN
    assert self.inferrer.infer(expr("a.b;")) == UNKNOWN
    assert self.inferrer.infer(expr("!a;")) == UNKNOWN
    assert self.inferrer.infer(expr("a || b;")) == UNKNOWN

  def test_identifiers_use_scope(self):
    assert self.inferrer.infer(expr("x;"), {"x": NUMBER}) == NUMBER
    assert self.inferrer.infer(expr("y;"), {"x": NUMBER}) == UNKNOWN

  def test_parameter_arithmetic(self):
    func = function("function f(x) { return x + 1; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == NUMBER
    func = function("function f(x) { return x * y; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == NUMBER

  def test_parameter_array_methods(self):
    func = function("function f(x, y) { x.push(y); }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == ArrayType(UNKNOWN)
    assert self.inferrer.infer_parameter(func.params[1], func.body) == UNKNOWN

  def test_parameter_string_methods(self):
    func = function("function f(s) { return s.charAt(0); }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == STRING

  def test_parameter_comparison(self):
    func = function('function f(role) { return role === "admin"; }')
    assert self.inferrer.infer_parameter(func.params[0], func.body) == STRING
    func = function("function f(value) { return value === null; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == UNKNOWN

  def test_parameter_relational_comparison(self):
    func = function("function f(limit) { return limit < 10; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == NUMBER
    func = function("function f(a, b) { return a >= b; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == UNKNOWN

  def test_parameter_added_to_number(self):
    func = function("function f(x) { return 1 + x; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == NUMBER
    func = function('function f(x) { return x + "!"; }')
    assert self.inferrer.infer_parameter(func.params[0], func.body) == UNKNOWN

  def test_rest_parameter_is_an_array_in_scope(self):
    func = function("function f(first, ...rest) { return rest; }")
    assert self.inferrer.infer_parameters(func) == {"first": UNKNOWN, "rest": ArrayType(UNKNOWN)}
    assert self.inferrer.infer_function(func) == FunctionSignature((("first", UNKNOWN), ("...rest", ArrayType(UNKNOWN))), ArrayType(UNKNOWN))

  def test_numeric_keys_use_runtime_names(self):
    shape = self.inferrer.infer(expr("({ 0x10: 1, 1.5: 2, 1e-7: 3, .5: 4, 1e21: 5 });"))
    assert [name for name, _ in shape.properties] == ["16", "1.5", "1e-7", "0.5", "1e+21"]

  def test_number_name(self):
    assert number_name(255.0) == "255"
    assert number_name(0.000001) == "0.000001"
    assert number_name(1.25e-7) == "1.25e-7"
    assert number_name(1.5e22) == "1.5e+22"
    assert number_name(float("inf")) == "Infinity"

  def test_parameter_without_usage(self):
    func = function("function f(x) { return x; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == UNKNOWN

  def test_parameter_first_usage_wins(self):
    func = function('function f(x) { if (x === "a") { return x * 2; } }')
    assert self.inferrer.infer_parameter(func.params[0], func.body) == STRING

  def test_parameter_shadowed_in_nested_function(self):
    func = function("function f(x) { function g(x) { return x * 2; } return x; }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == UNKNOWN
    func = function("function f(x) { function g(y) { return x * y; } }")
    assert self.inferrer.infer_parameter(func.params[0], func.body) == NUMBER

  def test_return_scan(self):
    assert self.inferrer.infer_return(function("function f() {}").body) == VOID
    assert self.inferrer.infer_return(function("function f() { return; }").body) == VOID
    func = function('function f(x) { if (x) { return 1; } return "a"; }')
    assert self.inferrer.infer_return(func.body) == UnionType((NUMBER, STRING))

  def test_return_scan_skips_nested_functions(self):
    func = function("function f() { const g = () => { return 1; }; }")
    assert self.inferrer.infer_return(func.body) == VOID

  def test_return_with_numeric_operands(self):
    func = function("function f(a, b) { return a + b; }")
    assert self.inferrer.infer_return(func.body, {"a": NUMBER, "b": NUMBER}) == NUMBER
    assert self.inferrer.infer_return(func.body) == UNKNOWN

  def test_function_signature(self):
    arrow = expr("((x) => x * 2);")
    assert self.inferrer.infer(arrow) == FunctionSignature((("x", NUMBER),), NUMBER)
    func = expr("(function (...args) { args.push(1); });")
    assert self.inferrer.infer(func) == FunctionSignature((("...args", ArrayType(UNKNOWN)),), VOID)


class TestRegistry:
  def test_intern_is_idempotent(self):
    registry = InterfaceRegistry()
    shape = ObjectShape((("a", NUMBER), ("b", STRING), ("c", BOOLEAN)))
    assert registry.intern(shape) == "Interface1"
    assert registry.intern(shape) == "Interface1"
    assert len(registry.emit()) == 1

  def test_names_in_call_order(self):
    registry = InterfaceRegistry()
    assert registry.intern(ObjectShape((("a", NUMBER),))) == "Interface1"
    assert registry.intern(ObjectShape((("b", NUMBER),))) == "Interface2"
    assert registry.emit() == [("Interface1", "{ a: number }"), ("Interface2", "{ b: number }")]

  def test_order_is_significant(self):
    registry = InterfaceRegistry()
    first = registry.intern(ObjectShape((("a", NUMBER), ("b", STRING))))
    second = registry.intern(ObjectShape((("b", STRING), ("a", NUMBER))))
    assert first != second

  def test_start(self):
    registry = InterfaceRegistry(start=5)
    assert registry.intern(ObjectShape((("a", NUMBER),))) == "Interface6"

  def test_queries(self):
    registry = InterfaceRegistry()
    registry.intern(ObjectShape((("a", NUMBER),)))
    assert "{ a: number }" in registry
    assert registry.lookup("{ a: number }") == "Interface1"
    assert registry.lookup("{ b: number }") is None
    assert registry.declarations() == ["interface Interface1 { a: number }"]

  def test_frozen_after_emit(self):
    registry = InterfaceRegistry()
    shape = ObjectShape((("a", NUMBER),))
    registry.intern(shape)
    registry.emit()
    assert registry.intern(shape) == "Interface1"
    with pytest.raises(RegistryFrozenError):
      registry.intern(ObjectShape((("b", NUMBER),)))


class TestConfig:
  def test_defaults(self):
    config = TranspilerConfig()
    assert config.infer_types and config.generate_interfaces and config.preserve_comments
    assert not config.strict_mode and not config.add_explicit_any
    assert config.fallback == ANY

  def test_strict_fallback(self):
    assert TranspilerConfig(strict_mode=True).fallback == UNKNOWN

  def test_from_options(self):
    config = TranspilerConfig.from_options({"strictMode": True, "generate_interfaces": False})
    assert config.strict_mode
    assert not config.generate_interfaces

  def test_invalid_options(self):
    with pytest.raises(ConfigError, match="Unknown option"):
      TranspilerConfig.from_options({"verbose": True})
    with pytest.raises(ConfigError, match="must be a boolean"):
      TranspilerConfig.from_options({"inferTypes": "no"})

  def test_from_file(self, tmp_path):
    path = tmp_path / "js2ts.json"
    path.write_text(json.dumps({"addExplicitAny": True}))
    assert TranspilerConfig.from_file(path).add_explicit_any
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError):
      TranspilerConfig.from_file(path)


class TestAnnotator:
  def test_string_declaration(self):
    assert code('const message = "Hello World";') == 'const message: string = "Hello World";\n'
    result = annotate(parse_source('const message = "Hello World";'), TranspilerConfig())
    assert result.program.body[0].declarations[0].type_ann == STRING

  def test_declarator_without_initializer(self):
    assert code("let x;") == "let x;\n"

  def test_unknown_is_omitted(self):
    assert code("function add(a, b) {\n  return a + b;\n}") == "function add(a, b) {\n  return a + b;\n}\n"

  def test_explicit_any(self):
    source = "function add(a, b) {\n  return a + b;\n}"
    assert code(source, add_explicit_any=True) == "function add(a: any, b: any): any {\n  return a + b;\n}\n"

  def test_strict_explicit_fallback(self):
    assert code("function f(a) {}", add_explicit_any=True, strict_mode=True) == "function f(a: unknown): void {}\n"

  def test_parameter_and_return(self):
    assert code("function double(x) {\n  return x * 2;\n}") == "function double(x: number): number {\n  return x * 2;\n}\n"
    assert code("function addItem(list, item) {\n  list.push(item);\n}") == (
      "function addItem(list: unknown[], item): void {\n  list.push(item);\n}\n"
    )

  def test_arrow_expression_body(self):
    assert code("const double = (x) => x * 2;") == "const double: (x: number) => number = (x: number): number => x * 2;\n"

  def test_no_return_type_for_constructors_setters_async_and_generators(self):
    source = "class A {\n  constructor(n) {\n    this.n = n * 1;\n  }\n  set v(x) {\n    this._v = x;\n  }\n}\n"
    assert code(source) == source.replace("constructor(n)", "constructor(n: number)")
    source = "async function load(url) {\n  return 1;\n}\nfunction* gen() {\n  yield 1;\n}\n"
    assert code(source) == source

  def test_class_members(self):
    source = "class Shape {\n  static count = 0;\n  get area() {\n    return 0;\n  }\n}\n"
    assert code(source) == "class Shape {\n  static count: number = 0;\n  get area(): number {\n    return 0;\n  }\n}\n"

  def test_infer_types_off(self):
    program = parse_source("const a = { x: 1, y: 2, z: 3 };\nfunction f(x) { return x * 2; }")
    result = annotate(program, TranspilerConfig(infer_types=False, add_explicit_any=True))
    assert result.program is program
    assert result.declarations == []

  def test_unchanged_nodes_are_shared(self):
    program = parse_source("const a = 1;\nfoo();")
    result = annotate(program, TranspilerConfig())
    assert result.program is not program
    assert result.program.body[1] is program.body[1]

  def test_existing_annotation_is_kept(self):
    program = parse_source('const s = "x";')
    stmt = program.body[0]
    typed = replace(stmt, declarations=(replace(stmt.declarations[0], type_ann=NUMBER),))
    program = replace(program, body=(typed,))
    result = annotate(program, TranspilerConfig())
    assert result.program is program
    assert result.program.body[0].declarations[0].type_ann == NUMBER

  def test_complex_object_gets_interface(self):
    source = 'const user = { name: "Alice", age: 30, email: "a@b.c" };'
    assert code(source) == (
      "interface Interface1 { name: string; age: number; email: string }\n\n"
      'const user: Interface1 = {\n  name: "Alice",\n  age: 30,\n  email: "a@b.c"\n};\n'
    )

  def test_simple_nested_object_stays_inline(self):
    result = annotate(parse_source('const config = { server: { host: "localhost", port: 8080 }, debug: true };'), TranspilerConfig())
    assert result.declarations == ["interface Interface1 { server: { host: string; port: number }; debug: boolean }"]

  def test_nested_interfaces(self):
    source = 'const data = { id: 1, name: "x", tags: ["a", "b"], meta: { a: 1, b: 2, c: 3 } };'
    result = annotate(parse_source(source), TranspilerConfig())
    assert result.declarations == [
      "interface Interface1 { a: number; b: number; c: number }",
      "interface Interface2 { id: number; name: string; tags: string[]; meta: Interface1 }",
    ]
    assert result.program.body[0].declarations[0].type_ann == Reference("Interface2")
    assert "} as Interface1)" in code(source)

  def test_identical_shapes_share_a_name(self):
    source = 'const a = { x: 1, y: "s", z: true };\nconst b = { x: 2, y: "t", z: false };\nconst c = { z: true, y: "s", x: 1 };'
    result = annotate(parse_source(source), TranspilerConfig())
    anns = [stmt.declarations[0].type_ann for stmt in result.program.body]
    assert anns == [Reference("Interface1"), Reference("Interface1"), Reference("Interface2")]
    assert len(result.declarations) == 2

  def test_object_argument_is_cast(self):
    assert code('save({ id: 1, name: "x", ok: true });') == (
      "interface Interface1 { id: number; name: string; ok: boolean }\n\n"
      'save(({\n  id: 1,\n  name: "x",\n  ok: true\n} as Interface1));\n'
    )

  def test_interfaces_disabled(self):
    result = annotate(parse_source("const user = { a: 1, b: 2, c: 3 };"), TranspilerConfig(generate_interfaces=False))
    assert result.declarations == []
    assert code("const user = { a: 1, b: 2, c: 3 };", generate_interfaces=False).startswith("const user: { a: number; b: number; c: number } = {")

  def test_object_returned_from_function_uses_parameter_scope(self):
    result = annotate(parse_source('function make(n) { return { a: n * 2, b: n, c: "x" }; }'), TranspilerConfig())
    assert result.declarations == ["interface Interface1 { a: number; b: number; c: string }"]
    assert result.program.body[0].return_type == Reference("Interface1")

  def test_numeric_keys_match_the_interface(self):
    assert code("const t = { 0x10: 1, 'a b': 2, c: 3 };") == (
      'interface Interface1 { "16": number; "a b": number; c: number }\n\n'
      "const t: Interface1 = {\n  0x10: 1,\n  'a b': 2,\n  c: 3\n};\n"
    )

  def test_rest_parameter_return_type(self):
    assert code("function f(a = 1, ...rest) { return rest; }") == (
      "function f(a = 1, ...rest: unknown[]): unknown[] {\n  return rest;\n}\n"
    )

  def test_required_modules(self):
    source = "const fs = require(\"fs\");\nconst p = require('path');\nrequire(\"fs\");"
    assert annotate(parse_source(source), TranspilerConfig()).required_modules == ["fs", "path"]

  def test_is_complex(self):
    assert is_complex(ObjectShape((("a", NUMBER), ("b", NUMBER), ("c", NUMBER))))
    assert is_complex(ObjectShape((("a", ArrayType(NUMBER)),)))
    assert not is_complex(ObjectShape((("a", NUMBER), ("b", STRING))))
