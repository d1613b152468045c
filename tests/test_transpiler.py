"""Tests for the transpiler pipeline and command-line interface."""

import json

from js2ts.cli import main
from js2ts.config import TranspilerConfig
from js2ts.registry import InterfaceRegistry
from js2ts.transpiler import Transpiler, transpile_source

SAMPLE = """// User helpers
const user = { name: "Alice", age: 30, email: "alice@example.com" };

function greet(name) {
  return "Hello, " + name;
}

class Counter {
  constructor(start) {
    this.count = start;
  }

  increment(step) {
    this.count += step * 1;
    return this.count;
  }
}

const fs = require("fs");
"""


class TestTranspiler:
  def test_transpile_sample(self):
    result = transpile_source(SAMPLE)
    assert result.success
    assert result.interface_count == 1
    assert result.required_modules == ["fs"]
    assert result.code.startswith("interface Interface1 { name: string; age: number; email: string }\n\n// User helpers\n")
    assert "const user: Interface1 = {" in result.code
    assert "function greet(name): string {" in result.code
    assert "increment(step: number) {" in result.code

  def test_parse_error(self):
    result = transpile_source("const = 5;")
    assert not result.success
    assert result.code is None
    assert result.error.startswith("Parse error: Expected variable name")

  def test_lexer_error_is_a_parse_error(self):
    result = transpile_source('const s = "abc')
    assert not result.success
    assert result.error.startswith("Parse error: Unterminated string literal")

  def test_explicit_registry(self):
    registry = InterfaceRegistry(start=10)
    result = Transpiler().transpile_code("const p = { x: 1, y: 2, z: 3 };", registry)
    assert "const p: Interface11 = {" in result.code
    assert len(registry) == 1

  def test_transpile_file(self, tmp_path):
    source = tmp_path / "app.js"
    source.write_text('const message = "Hello World";\n')
    output = tmp_path / "out" / "app.ts"
    result = Transpiler().transpile_file(source, output)
    assert result.success
    assert result.input_path == source
    assert output.read_text() == 'const message: string = "Hello World";\n'

  def test_missing_input_file(self, tmp_path):
    result = Transpiler().transpile_file(tmp_path / "missing.js", tmp_path / "missing.ts")
    assert not result.success
    assert "Input file not found" in result.error
    assert not (tmp_path / "missing.ts").exists()

  def test_undecodable_input_file(self, tmp_path):
    source = tmp_path / "bad.js"
    source.write_bytes(b"const s = '\xff\xfe';\n")
    result = Transpiler().transpile_file(source, tmp_path / "bad.ts")
    assert not result.success
    assert result.error.startswith(f"Cannot read {source}")
    assert result.input_path == source
    assert not (tmp_path / "bad.ts").exists()

  def test_failed_file_writes_nothing(self, tmp_path):
    source = tmp_path / "bad.js"
    source.write_text("let = ;")
    result = Transpiler().transpile_file(source, tmp_path / "bad.ts")
    assert not result.success
    assert not (tmp_path / "bad.ts").exists()

  def test_transpile_directory(self, tmp_path):
    (tmp_path / "b.js").write_text("const p = { x: 1, y: 2, z: 3 };\n")
    (tmp_path / "a.js").write_text("const q = { x: 4, y: 5, z: 6 };\n")
    (tmp_path / "notes.txt").write_text("ignored")
    results = Transpiler().transpile_directory(tmp_path)
    assert [r.input_path.name for r in results] == ["a.js", "b.js"]
    assert all(r.success for r in results)
    # Each file gets its own registry
    assert "const p: Interface1 = {" in (tmp_path / "b.ts").read_text()
    assert "const q: Interface1 = {" in (tmp_path / "a.ts").read_text()

  def test_transpile_directory_shared_registry(self, tmp_path):
    (tmp_path / "a.js").write_text("const p = { x: 1, y: 2, z: 3 };\n")
    (tmp_path / "b.js").write_text('const q = { name: "n", tags: ["t"] };\nconst r = { x: 7, y: 8, z: 9 };\n')
    (tmp_path / "c.js").write_text("const = ;\n")
    results = Transpiler().transpile_directory(tmp_path, share_registry=True)
    assert [r.success for r in results] == [True, True, False]
    assert results[0].interface_count == 2
    b = (tmp_path / "b.ts").read_text()
    assert "const q: Interface2 = {" in b
    assert "const r: Interface1 = {" in b
    assert not (tmp_path / "c.ts").exists()

  def test_shared_registry_survives_undecodable_file(self, tmp_path):
    (tmp_path / "a.js").write_bytes(b"const s = '\xff';\n")
    (tmp_path / "b.js").write_text("const n = 1;\n")
    results = Transpiler().transpile_directory(tmp_path, share_registry=True)
    assert [r.success for r in results] == [False, True]
    assert "Cannot read" in results[0].error
    assert (tmp_path / "b.ts").read_text() == "const n: number = 1;\n"

  def test_missing_directory(self, tmp_path):
    results = Transpiler().transpile_directory(tmp_path / "nope")
    assert len(results) == 1
    assert not results[0].success

  def test_config_flows_through(self):
    result = Transpiler(TranspilerConfig(add_explicit_any=True)).transpile_code("function f(a) {}")
    assert result.code == "function f(a: any): void {}\n"


class TestCLI:
  def test_input_without_output(self, tmp_path, capsys):
    source = tmp_path / "app.js"
    source.write_text("const n = 1;\n")
    assert main(["-i", str(source)]) == 0
    assert (tmp_path / "app.ts").read_text() == "const n: number = 1;\n"
    assert "Transpiled" in capsys.readouterr().out

  def test_explicit_output(self, tmp_path):
    source = tmp_path / "app.js"
    source.write_text("function f(a) {}\n")
    target = tmp_path / "typed.ts"
    assert main(["-i", str(source), "-o", str(target), "--explicit-any", "--strict"]) == 0
    assert target.read_text() == "function f(a: unknown): void {}\n"

  def test_default_paths(self, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "input.js").write_text("let s = 'x';\n")
    assert main([]) == 0
    assert (tmp_path / "output.ts").read_text() == "let s: string = 'x';\n"

  def test_missing_default_input(self, tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main([]) == 1
    assert "Input file not found" in capsys.readouterr().err

  def test_parse_error_exit_code(self, tmp_path, capsys):
    source = tmp_path / "bad.js"
    source.write_text("let = ;")
    assert main(["-i", str(source)]) == 1
    assert "Parse error" in capsys.readouterr().err

  def test_undecodable_input_exit_code(self, tmp_path, capsys):
    source = tmp_path / "bad.js"
    source.write_bytes(b"\xff\xfe")
    assert main(["-i", str(source)]) == 1
    assert "Error: Cannot read" in capsys.readouterr().err

  def test_no_infer_and_no_comments(self, tmp_path):
    source = tmp_path / "app.js"
    source.write_text("// hi\nconst n = 1;\n")
    assert main(["-i", str(source), "--no-infer", "--no-comments"]) == 0
    assert (tmp_path / "app.ts").read_text() == "const n = 1;\n"

  def test_no_interfaces(self, tmp_path):
    source = tmp_path / "app.js"
    source.write_text("const p = { x: 1, y: 2, z: 3 };\n")
    assert main(["-i", str(source), "--no-interfaces"]) == 0
    assert (tmp_path / "app.ts").read_text().startswith("const p: { x: number; y: number; z: number } = {")

  def test_config_file_with_override(self, tmp_path):
    config = tmp_path / "js2ts.json"
    config.write_text(json.dumps({"inferTypes": False}))
    source = tmp_path / "app.js"
    source.write_text("function f(a) {}\n")
    assert main(["-i", str(source), "--config", str(config)]) == 0
    assert (tmp_path / "app.ts").read_text() == "function f(a) {}\n"

  def test_invalid_config(self, tmp_path, capsys):
    config = tmp_path / "js2ts.json"
    config.write_text(json.dumps({"colour": True}))
    assert main(["--config", str(config)]) == 1
    assert "Unknown option" in capsys.readouterr().err

  def test_directory(self, tmp_path, capsys):
    (tmp_path / "a.js").write_text("const a = 1;\n")
    (tmp_path / "b.js").write_text("const b = true;\n")
    assert main(["-d", str(tmp_path)]) == 0
    assert (tmp_path / "a.ts").read_text() == "const a: number = 1;\n"
    assert (tmp_path / "b.ts").read_text() == "const b: boolean = true;\n"
    assert "2 of 2 files transpiled" in capsys.readouterr().out

  def test_directory_with_failure(self, tmp_path):
    (tmp_path / "a.js").write_text("const = 1;\n")
    assert main(["-d", str(tmp_path), "--shared-interfaces"]) == 1
