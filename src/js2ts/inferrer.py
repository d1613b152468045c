"""Rule-based type inference for JavaScript expressions and function bodies."""

import math
from decimal import Decimal
from collections.abc import Iterator, Mapping

from .ast import (
  Param,
  IfStmt,
  ForStmt,
  CallExpr,
  TryStmt,
  ArrayExpr,
  BlockStmt,
  ForInStmt,
  WhileStmt,
  BinaryExpr,
  Identifier,
  MemberExpr,
  ObjectExpr,
  ReturnStmt,
  SwitchStmt,
  DoWhileStmt,
  LabeledStmt,
  NullLiteral,
  FunctionDecl,
  FunctionExpr,
  ArrowFunction,
  SpreadElement,
  StringLiteral,
  NumberLiteral,
  BooleanLiteral,
  FunctionNode,
  Expr,
  Stmt,
  iter_children,
)
from .descriptors import (
  NULL,
  VOID,
  NUMBER,
  STRING,
  BOOLEAN,
  UNKNOWN,
  UNDEFINED,
  ArrayType,
  ObjectShape,
  TypeDescriptor,
  FunctionSignature,
  unique,
  make_union,
)

Scope = Mapping[str, TypeDescriptor]

ARITHMETIC_OPS = {"-", "*", "/", "%", "**"}
COMPARISON_OPS = {"==", "===", "!=", "!==", "<", ">", "<=", ">="}
BOOLEAN_OPS = COMPARISON_OPS | {"instanceof", "in"}

ARRAY_METHODS = {"push", "pop", "shift", "unshift", "splice"}
STRING_METHODS = {"charAt", "substring", "indexOf"}

CALL_RESULTS: dict[str, TypeDescriptor] = {
  "parseInt": NUMBER,
  "parseFloat": NUMBER,
  "String": STRING,
  "Boolean": BOOLEAN,
}

# Types that tell nothing about a parameter compared against them
UNINFORMATIVE = (UNKNOWN, NULL, UNDEFINED)


def property_name(key: Expr) -> str | None:
  """Static name of a non-computed property key."""
  match key:
    case Identifier(name):
      return name
    case StringLiteral(value):
      return value
    case NumberLiteral(value):
      return number_name(value)
  return None


def number_name(value: float) -> str:
  """The property name a numeric key stands for at runtime: `0x10` is "16", `1e-7` is "1e-7"."""
  if math.isinf(value):
    return "Infinity"
  if value.is_integer() and value < 1e21:
    return str(int(value))
  _, digits, exponent = Decimal(repr(value)).normalize().as_tuple()
  text = "".join(map(str, digits))
  k = len(digits)
  n = exponent + k  # decimal point position relative to the digits
  if 0 < n <= 21:
    return f"{text[:n]}.{text[n:]}"
  if -6 < n <= 0:
    return "0." + "0" * -n + text
  mantissa = text if k == 1 else f"{text[0]}.{text[1:]}"
  sign = "+" if n > 0 else "-"
  return f"{mantissa}e{sign}{abs(n - 1)}"


def is_function(node) -> bool:
  return isinstance(node, (FunctionDecl, FunctionExpr, ArrowFunction))


def shadows(node, name: str) -> bool:
  """True if a nested function redeclares `name` as one of its parameters."""
  return is_function(node) and any(p.name == name for p in node.params)


class TypeInferrer:
  """Derives type descriptors from syntax. Pure: never mutates the tree."""

  def infer(self, node, scope: Scope | None = None) -> TypeDescriptor:
    """Infer the type of an expression. Total: unanalyzable input gives unknown."""
    scope = scope or {}
    match node:
      case StringLiteral():
        return STRING
      case NumberLiteral():
        return NUMBER
      case BooleanLiteral():
        return BOOLEAN
      case NullLiteral():
        return NULL
      case ArrayExpr(elements):
        return self.infer_array(elements, scope)
      case ObjectExpr():
        return self.infer_object(node, scope)
      case FunctionExpr() | ArrowFunction():
        return self.infer_function(node)
      case BinaryExpr(left, op, right):
        return self.infer_binary(left, op, right, scope)
      case CallExpr(Identifier(name), _):
        return CALL_RESULTS.get(name, UNKNOWN)
      case Identifier(name):
        return scope.get(name, UNKNOWN)
      case _:
        return UNKNOWN

  def infer_array(self, elements: tuple, scope: Scope) -> TypeDescriptor:
    if not elements:
      return ArrayType(UNKNOWN)
    types = []
    for element in elements:
      if element is None:
        types.append(UNDEFINED)
      elif isinstance(element, SpreadElement):
        types.append(UNKNOWN)
      else:
        types.append(self.infer(element, scope))
    return ArrayType(make_union(unique(types)))

  def infer_object(self, node: ObjectExpr, scope: Scope | None = None) -> ObjectShape:
    """Shape of an object literal; computed keys, spreads and accessors are skipped."""
    properties: list[tuple[str, TypeDescriptor]] = []
    for prop in node.properties:
      if isinstance(prop, SpreadElement) or prop.computed or prop.kind not in ("init", "method"):
        continue
      name = property_name(prop.key)
      if name is None:
        continue
      properties.append((name, self.infer(prop.value, scope)))
    return ObjectShape(tuple(properties))

  def infer_binary(self, left: Expr, op: str, right: Expr, scope: Scope) -> TypeDescriptor:
    if op == "+":
      left_type = self.infer(left, scope)
      right_type = self.infer(right, scope)
      if STRING in (left_type, right_type):
        return STRING
      if left_type == NUMBER and right_type == NUMBER:
        return NUMBER
      return UNKNOWN
    if op in ARITHMETIC_OPS:
      return NUMBER
    if op in BOOLEAN_OPS:
      return BOOLEAN
    return UNKNOWN

  def infer_parameters(self, node: FunctionNode) -> dict[str, TypeDescriptor]:
    """Usage-based types for every parameter of a function, keyed by name. Rest parameters are arrays."""
    scope = {}
    for param in node.params:
      param_type = self.infer_parameter(param, node.body)
      if param.rest and not isinstance(param_type, ArrayType):
        param_type = ArrayType(param_type)
      scope[param.name] = param_type
    return scope

  def infer_function(self, node: FunctionNode) -> FunctionSignature:
    scope = self.infer_parameters(node)
    params = []
    for param in node.params:
      param_type = scope[param.name]
      params.append((f"...{param.name}" if param.rest else param.name, param_type))
    return FunctionSignature(tuple(params), self.infer_body_return(node, scope))

  def infer_body_return(self, node: FunctionNode, scope: Scope) -> TypeDescriptor:
    """Return type of a function: its body expression for concise arrows, else the return scan."""
    if isinstance(node, ArrowFunction) and not isinstance(node.body, BlockStmt):
      return self.infer(node.body, scope)
    return self.infer_return(node.body, scope)

  # === Parameter usage ===

  def infer_parameter(self, param: Param, body) -> TypeDescriptor:
    """Type of a parameter from the first usage site in the body that tells anything."""
    for node in self._walk_usage(body, param.name):
      found = self._usage_type(node, param.name)
      if found is not None:
        return found
    return UNKNOWN

  def _walk_usage(self, node, name: str) -> Iterator:
    """Pre-order walk that skips nested functions shadowing `name`."""
    yield node
    for child in iter_children(node):
      if shadows(child, name):
        continue
      yield from self._walk_usage(child, name)

  def _usage_type(self, node, name: str) -> TypeDescriptor | None:
    match node:
      case BinaryExpr(left, op, right):
        if Identifier(name) not in (left, right):
          return None
        other = right if left == Identifier(name) else left
        if op in ARITHMETIC_OPS:
          return NUMBER
        if op == "+" and self.infer(other) == NUMBER:
          return NUMBER
        if op in COMPARISON_OPS:
          other_type = self.infer(other)
          if other_type not in UNINFORMATIVE:
            return other_type
        return None
      case CallExpr(MemberExpr(Identifier(obj), Identifier(method), False)) if obj == name:
        if method in ARRAY_METHODS:
          return ArrayType(UNKNOWN)
        if method in STRING_METHODS:
          return STRING
    return None

  # === Return scan ===

  def infer_return(self, body: BlockStmt, scope: Scope | None = None) -> TypeDescriptor:
    """Union of the function's own return statements, or void when there are none."""
    types = [self.infer(stmt.argument, scope) if stmt.argument is not None else VOID for stmt in self._returns(body)]
    if not types:
      return VOID
    return make_union(types)

  def _returns(self, stmt: Stmt) -> Iterator[ReturnStmt]:
    """Return statements reachable without entering a nested function."""
    match stmt:
      case ReturnStmt():
        yield stmt
      case BlockStmt(body):
        for child in body:
          yield from self._returns(child)
      case IfStmt(_, consequent, alternate):
        yield from self._returns(consequent)
        if alternate is not None:
          yield from self._returns(alternate)
      case ForStmt(body=body) | ForInStmt(body=body) | WhileStmt(body=body) | DoWhileStmt(body=body) | LabeledStmt(body=body):
        yield from self._returns(body)
      case SwitchStmt(_, cases):
        for case in cases:
          for child in case.body:
            yield from self._returns(child)
      case TryStmt(block, _, handler, finalizer):
        for part in (block, handler, finalizer):
          if part is not None:
            yield from self._returns(part)
