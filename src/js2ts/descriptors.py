"""Type descriptors inferred for JavaScript values and their TypeScript rendering."""

import re
import json
from dataclasses import dataclass
from collections.abc import Iterable

PRIMITIVE_KINDS = frozenset({"string", "number", "boolean", "null", "undefined", "void", "any", "unknown"})

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


@dataclass(frozen=True, slots=True)
class Primitive:
  """Primitive type like string, number or unknown."""

  kind: str


@dataclass(frozen=True, slots=True)
class ArrayType:
  """Array type like number[]."""

  element: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class UnionType:
  """Union of two or more distinct types. Build through make_union()."""

  members: tuple["TypeDescriptor", ...]


@dataclass(frozen=True, slots=True)
class ObjectShape:
  """Structural object type, properties in source declaration order."""

  properties: tuple[tuple[str, "TypeDescriptor"], ...]


@dataclass(frozen=True, slots=True)
class FunctionSignature:
  """Function type: (a: number, b: string) => boolean."""

  params: tuple[tuple[str, "TypeDescriptor"], ...]
  return_type: "TypeDescriptor"


@dataclass(frozen=True, slots=True)
class Reference:
  """Reference to a named declaration, usually a synthesized interface."""

  name: str


TypeDescriptor = Primitive | ArrayType | UnionType | ObjectShape | FunctionSignature | Reference

STRING = Primitive("string")
NUMBER = Primitive("number")
BOOLEAN = Primitive("boolean")
NULL = Primitive("null")
UNDEFINED = Primitive("undefined")
VOID = Primitive("void")
ANY = Primitive("any")
UNKNOWN = Primitive("unknown")


def is_unknown(t: TypeDescriptor) -> bool:
  return t == UNKNOWN


def unique(types: Iterable[TypeDescriptor]) -> list[TypeDescriptor]:
  """Deduplicate by structural equality, keeping first-seen order."""
  seen: list[TypeDescriptor] = []
  for t in types:
    if t not in seen:
      seen.append(t)
  return seen


def make_union(types: Iterable[TypeDescriptor]) -> TypeDescriptor:
  """Union of the given types, flattened and collapsed to a single member where possible."""
  flat: list[TypeDescriptor] = []
  for t in types:
    if isinstance(t, UnionType):
      flat.extend(t.members)
    else:
      flat.append(t)
  members = unique(flat)
  if not members:
    return UNKNOWN
  if len(members) == 1:
    return members[0]
  return UnionType(tuple(members))


def property_key(name: str) -> str:
  """Property name as written in a type literal, quoted when not an identifier."""
  if IDENTIFIER_RE.match(name):
    return name
  return json.dumps(name)


def render(t: TypeDescriptor) -> str:
  """Render a type descriptor as TypeScript type syntax."""
  match t:
    case Primitive(kind):
      return kind
    case ArrayType(element):
      inner = render(element)
      if isinstance(element, (UnionType, FunctionSignature)):
        inner = f"({inner})"
      return f"{inner}[]"
    case UnionType(members):
      parts = []
      for member in members:
        text = render(member)
        # `() => a | b` would swallow the rest of the union
        parts.append(f"({text})" if isinstance(member, FunctionSignature) else text)
      return " | ".join(parts)
    case ObjectShape(properties):
      if not properties:
        return "{}"
      fields = "; ".join(f"{property_key(name)}: {render(value)}" for name, value in properties)
      return f"{{ {fields} }}"
    case FunctionSignature(params, return_type):
      param_strs = ", ".join(f"{name}: {render(value)}" for name, value in params)
      return f"({param_strs}) => {render(return_type)}"
    case Reference(name):
      return name
  return "unknown"
