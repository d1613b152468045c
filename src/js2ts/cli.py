"""Command-line interface for the js2ts transpiler."""

import sys
import logging
import argparse
from dataclasses import replace
from pathlib import Path

from .config import ConfigError, TranspilerConfig
from .transpiler import Transpiler

_log = logging.getLogger(__name__)

DEFAULT_INPUT = Path("input.js")
DEFAULT_OUTPUT = Path("output.ts")


def _configure_logging(verbosity: int) -> None:
  """Set up the js2ts logger: 0 -> WARNING, 1 -> INFO, 2+ -> DEBUG."""
  level = logging.WARNING
  if verbosity == 1:
    level = logging.INFO
  elif verbosity >= 2:
    level = logging.DEBUG

  handler = logging.StreamHandler(sys.stderr)
  handler.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s", datefmt="%H:%M:%S"))
  root = logging.getLogger("js2ts")
  root.setLevel(level)
  root.handlers = [handler]
  root.propagate = False


def _build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="js2ts",
    description="Transpile JavaScript to TypeScript with inferred type annotations",
  )
  parser.add_argument("-i", "--input", type=Path, help="Input JavaScript file (default: input.js)")
  parser.add_argument("-o", "--output", type=Path, help="Output TypeScript file (default: input with .ts suffix)")
  parser.add_argument("-d", "--directory", type=Path, help="Transpile every .js file in a directory")
  parser.add_argument("--strict", action="store_true", help="With --explicit-any, annotate uninferable sites as unknown instead of any")
  parser.add_argument("--no-infer", action="store_true", help="Disable type inference")
  parser.add_argument("--no-interfaces", action="store_true", help="Inline object types instead of generating interfaces")
  parser.add_argument("--explicit-any", action="store_true", help="Annotate types that cannot be inferred")
  parser.add_argument("--no-comments", action="store_true", help="Drop comments from the output")
  parser.add_argument("--config", type=Path, help="JSON options file; command-line flags override it")
  parser.add_argument("--shared-interfaces", action="store_true", help="Share one interface registry across a directory")
  parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v INFO, -vv DEBUG)")
  return parser


def _load_config(args: argparse.Namespace) -> TranspilerConfig:
  config = TranspilerConfig.from_file(args.config) if args.config else TranspilerConfig()
  overrides = {}
  if args.strict:
    overrides["strict_mode"] = True
  if args.no_infer:
    overrides["infer_types"] = False
  if args.no_interfaces:
    overrides["generate_interfaces"] = False
  if args.explicit_any:
    overrides["add_explicit_any"] = True
  if args.no_comments:
    overrides["preserve_comments"] = False
  return replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
  """Main entry point for the js2ts transpiler."""
  args = _build_parser().parse_args(argv)
  _configure_logging(args.verbose)

  try:
    config = _load_config(args)
  except (ConfigError, OSError) as e:
    print(f"Error: {e}", file=sys.stderr)
    return 1

  transpiler = Transpiler(config)

  if args.directory:
    results = transpiler.transpile_directory(args.directory, share_registry=args.shared_interfaces)
    failed = [r for r in results if not r.success]
    for result in results:
      if result.success:
        print(f"Transpiled {result.input_path} -> {result.output_path}")
      else:
        print(f"Error: {result.input_path}: {result.error}", file=sys.stderr)
    print(f"{len(results) - len(failed)} of {len(results)} files transpiled")
    return 1 if failed else 0

  input_path = args.input or DEFAULT_INPUT
  if args.output:
    output_path = args.output
  elif args.input:
    output_path = args.input.with_suffix(".ts")
  else:
    output_path = DEFAULT_OUTPUT

  result = transpiler.transpile_file(input_path, output_path)
  if not result.success:
    print(f"Error: {result.error}", file=sys.stderr)
    return 1

  print(f"Transpiled {input_path} -> {output_path}")
  if result.interface_count:
    print(f"Generated {result.interface_count} interface(s)")
  if result.required_modules:
    print(f"Required modules: {', '.join(result.required_modules)}")
  return 0


if __name__ == "__main__":
  sys.exit(main())
