"""Transpiler pipeline: JavaScript source in, annotated TypeScript out."""

import logging
from pathlib import Path
from dataclasses import dataclass, field

from .ast import Program
from .lexer import LexerError, tokenize
from .config import TranspilerConfig
from .parser import ParseError, parse
from .codegen import generate
from .registry import InterfaceRegistry
from .inferrer import TypeInferrer
from .annotator import annotate

_log = logging.getLogger(__name__)


@dataclass
class TranspileResult:
  """Result of a transpilation."""

  success: bool
  code: str | None = None
  error: str | None = None
  interface_count: int = 0
  required_modules: list[str] = field(default_factory=list)
  input_path: Path | None = None
  output_path: Path | None = None


class Transpiler:
  """Orchestrates the transpilation pipeline."""

  def __init__(self, config: TranspilerConfig | None = None) -> None:
    self.config = config or TranspilerConfig()
    self.inferrer = TypeInferrer()

  def parse(self, source: str) -> Program:
    return parse(tokenize(source))

  def transpile_code(self, source: str, registry: InterfaceRegistry | None = None) -> TranspileResult:
    """Transpile JavaScript source to TypeScript. Never raises."""
    try:
      # Parsing
      program = self.parse(source)

      # Annotation (interns complex shapes into the registry)
      result = annotate(program, self.config, registry, self.inferrer)

      # Printing
      code = generate(result.program, result.declarations, self.config.preserve_comments)

      return TranspileResult(
        success=True,
        code=code,
        interface_count=len(result.declarations),
        required_modules=result.required_modules,
      )

    except (LexerError, ParseError) as e:
      return TranspileResult(success=False, error=f"Parse error: {e}")
    except Exception as e:
      _log.exception("internal error while transpiling")
      return TranspileResult(success=False, error=f"Internal error: {e}")

  def transpile_file(self, input_path: Path, output_path: Path, registry: InterfaceRegistry | None = None) -> TranspileResult:
    """Transpile one file. The output is written only on success."""
    input_path, output_path = Path(input_path), Path(output_path)
    if not input_path.is_file():
      _log.error("input file not found: %s", input_path)
      return TranspileResult(success=False, error=f"Input file not found: {input_path}", input_path=input_path)

    try:
      source = read_source(input_path)
    except (OSError, UnicodeDecodeError) as e:
      result = TranspileResult(success=False, error=f"Cannot read {input_path}: {e}")
    else:
      result = self.transpile_code(source, registry)
    result.input_path, result.output_path = input_path, output_path
    if result.success and result.code is not None:
      self._write(result)
    if not result.success:
      _log.error("failed to transpile %s: %s", input_path, result.error)
    return result

  def transpile_directory(self, directory: Path, share_registry: bool = False) -> list[TranspileResult]:
    """Transpile every *.js file in a directory to a sibling .ts file."""
    directory = Path(directory)
    if not directory.is_dir():
      _log.error("directory not found: %s", directory)
      return [TranspileResult(success=False, error=f"Directory not found: {directory}", input_path=directory)]

    files = sorted(directory.glob("*.js"))
    if share_registry:
      return self._transpile_shared(files)
    return [self.transpile_file(path, path.with_suffix(".ts")) for path in files]

  def _transpile_shared(self, files: list[Path]) -> list[TranspileResult]:
    """Annotate every file against one registry, then print each with the shared declarations."""
    registry = InterfaceRegistry()
    results: list[TranspileResult] = []
    annotated = []
    for path in files:
      result = TranspileResult(success=False, input_path=path, output_path=path.with_suffix(".ts"))
      results.append(result)
      try:
        program = self.parse(read_source(path))
        annotated.append((result, annotate(program, self.config, registry, self.inferrer, emit=False)))
      except (OSError, UnicodeDecodeError) as e:
        result.error = f"Cannot read {path}: {e}"
      except (LexerError, ParseError) as e:
        result.error = f"Parse error: {e}"
      except Exception as e:
        _log.exception("internal error while transpiling %s", path)
        result.error = f"Internal error: {e}"
      if result.error is not None:
        _log.error("failed to transpile %s: %s", path, result.error)

    declarations = registry.declarations()
    for result, annotation in annotated:
      result.code = generate(annotation.program, declarations, self.config.preserve_comments)
      result.success = True
      result.interface_count = len(declarations)
      result.required_modules = annotation.required_modules
      self._write(result)
    return results

  def _write(self, result: TranspileResult) -> None:
    """Write a successful result to its output path, failing the result if that is impossible."""
    try:
      result.output_path.parent.mkdir(parents=True, exist_ok=True)
      result.output_path.write_text(result.code, encoding="utf-8")
    except OSError as e:
      result.success = False
      result.error = f"Cannot write {result.output_path}: {e}"
      _log.error("failed to write %s: %s", result.output_path, e)
      return
    _log.info("transpiled %s -> %s (%d interfaces)", result.input_path, result.output_path, result.interface_count)


def read_source(path: Path) -> str:
  """Read a JavaScript file. Raises UnicodeDecodeError for input that is not UTF-8."""
  return path.read_text(encoding="utf-8")


def transpile_source(source: str, config: TranspilerConfig | None = None) -> TranspileResult:
  """Convenience function to transpile source code."""
  return Transpiler(config).transpile_code(source)
