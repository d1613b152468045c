"""Transpiler options."""

import json
from pathlib import Path
from dataclasses import dataclass, fields
from collections.abc import Mapping

from .descriptors import ANY, UNKNOWN, TypeDescriptor

# External option names (camelCase) -> field names
OPTION_NAMES: dict[str, str] = {
  "strictMode": "strict_mode",
  "inferTypes": "infer_types",
  "generateInterfaces": "generate_interfaces",
  "addExplicitAny": "add_explicit_any",
  "preserveComments": "preserve_comments",
}


class ConfigError(Exception):
  """Raised for an invalid options table."""


@dataclass(frozen=True, slots=True)
class TranspilerConfig:
  # With add_explicit_any, strict mode writes `unknown` instead of `any` at sites that cannot be inferred
  strict_mode: bool = False
  infer_types: bool = True
  generate_interfaces: bool = True
  add_explicit_any: bool = False
  preserve_comments: bool = True

  @property
  def fallback(self) -> TypeDescriptor:
    """Annotation for uninferable sites under add_explicit_any: `any`, or `unknown` in strict mode."""
    return UNKNOWN if self.strict_mode else ANY

  @classmethod
  def from_options(cls, options: Mapping[str, object]) -> "TranspilerConfig":
    """Build a config from an options table with camelCase or snake_case keys."""
    field_names = {f.name for f in fields(cls)}
    values: dict[str, bool] = {}
    for key, value in options.items():
      name = OPTION_NAMES.get(key, key)
      if name not in field_names:
        raise ConfigError(f"Unknown option '{key}'")
      if not isinstance(value, bool):
        raise ConfigError(f"Option '{key}' must be a boolean, got {type(value).__name__}")
      values[name] = value
    return cls(**values)

  @classmethod
  def from_file(cls, path: Path) -> "TranspilerConfig":
    """Load an options table from a JSON file."""
    try:
      options = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
      raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(options, dict):
      raise ConfigError(f"Config file {path} must contain a JSON object")
    return cls.from_options(options)
