"""AST node definitions for the supported JavaScript subset.

Annotation sites carry an optional TypeDescriptor (`type_ann` / `return_type`)
that is None in parsed trees and filled in by the annotation pass.
"""

from dataclasses import dataclass, fields, is_dataclass
from collections.abc import Iterator

from .descriptors import TypeDescriptor, Primitive, ArrayType, UnionType, ObjectShape, FunctionSignature, Reference

DESCRIPTOR_TYPES = (Primitive, ArrayType, UnionType, ObjectShape, FunctionSignature, Reference)

# === Expressions ===


@dataclass(frozen=True, slots=True)
class Identifier:
  """Identifier reference like foo."""

  name: str


@dataclass(frozen=True, slots=True)
class StringLiteral:
  """String literal like "hello" or 'hello'."""

  value: str
  raw: str


@dataclass(frozen=True, slots=True)
class NumberLiteral:
  """Number literal like 42, 3.14 or 0xff."""

  value: float
  raw: str


@dataclass(frozen=True, slots=True)
class BooleanLiteral:
  """Boolean literal: true or false."""

  value: bool


@dataclass(frozen=True, slots=True)
class NullLiteral:
  """The null literal."""


@dataclass(frozen=True, slots=True)
class RegExpLiteral:
  """Regular expression literal like /ab+c/gi."""

  raw: str


@dataclass(frozen=True, slots=True)
class BigIntLiteral:
  """BigInt literal like 10n."""

  raw: str


@dataclass(frozen=True, slots=True)
class TemplateLiteral:
  """Template literal, kept as source text including backticks."""

  raw: str


@dataclass(frozen=True, slots=True)
class ThisExpr:
  """The this keyword."""


@dataclass(frozen=True, slots=True)
class SuperExpr:
  """The super keyword."""


@dataclass(frozen=True, slots=True)
class ArrayExpr:
  """Array literal like [1, 2, 3]. Holes are None."""

  elements: tuple["Expr | None", ...]


@dataclass(frozen=True, slots=True)
class Property:
  """Object literal property.

  kind is "init" for `key: value` and shorthand, "method" for `key() {}`,
  "get"/"set" for accessors. For computed keys, `key` is the key expression.
  """

  key: "Expr"
  value: "Expr"
  kind: str = "init"
  computed: bool = False
  shorthand: bool = False


@dataclass(frozen=True, slots=True)
class SpreadElement:
  """Spread in arrays, calls and object literals: ...items."""

  argument: "Expr"


@dataclass(frozen=True, slots=True)
class ObjectExpr:
  """Object literal like { a: 1, b: "x" }."""

  properties: tuple[Property | SpreadElement, ...]
  type_ann: TypeDescriptor | None = None


@dataclass(frozen=True, slots=True)
class Param:
  """Function parameter, optionally with a default value or as a rest parameter."""

  name: str
  default: "Expr | None" = None
  rest: bool = False
  type_ann: TypeDescriptor | None = None


@dataclass(frozen=True, slots=True)
class FunctionExpr:
  """Function expression: function name(a, b) { ... }."""

  name: str | None
  params: tuple[Param, ...]
  body: "BlockStmt"
  is_async: bool = False
  is_generator: bool = False
  return_type: TypeDescriptor | None = None


@dataclass(frozen=True, slots=True)
class ArrowFunction:
  """Arrow function: (a, b) => a + b or (a) => { ... }."""

  params: tuple[Param, ...]
  body: "BlockStmt | Expr"
  is_async: bool = False
  return_type: TypeDescriptor | None = None


@dataclass(frozen=True, slots=True)
class ClassExpr:
  """Class expression: class Name extends Base { ... }."""

  name: str | None
  superclass: "Expr | None"
  body: tuple["ClassMember", ...]


@dataclass(frozen=True, slots=True)
class BinaryExpr:
  """Binary expression like a + b or x === y."""

  left: "Expr"
  op: str
  right: "Expr"


@dataclass(frozen=True, slots=True)
class LogicalExpr:
  """Short-circuit expression: a && b, a || b, a ?? b."""

  left: "Expr"
  op: str
  right: "Expr"


@dataclass(frozen=True, slots=True)
class UnaryExpr:
  """Unary expression like !x, -x or typeof x."""

  op: str
  argument: "Expr"


@dataclass(frozen=True, slots=True)
class UpdateExpr:
  """Increment or decrement: i++, --i."""

  op: str
  argument: "Expr"
  prefix: bool


@dataclass(frozen=True, slots=True)
class AssignExpr:
  """Assignment like x = 1 or total += n."""

  target: "Expr"
  op: str
  value: "Expr"


@dataclass(frozen=True, slots=True)
class ConditionalExpr:
  """Ternary: test ? consequent : alternate."""

  test: "Expr"
  consequent: "Expr"
  alternate: "Expr"


@dataclass(frozen=True, slots=True)
class CallExpr:
  """Call like foo(1, 2) or obj.method?.(x)."""

  callee: "Expr"
  args: tuple["Expr", ...]
  optional: bool = False


@dataclass(frozen=True, slots=True)
class NewExpr:
  """Constructor call: new Map()."""

  callee: "Expr"
  args: tuple["Expr", ...]


@dataclass(frozen=True, slots=True)
class MemberExpr:
  """Member access: obj.prop, obj[key], obj?.prop."""

  object: "Expr"
  property: "Expr"
  computed: bool = False
  optional: bool = False


@dataclass(frozen=True, slots=True)
class SequenceExpr:
  """Comma expression: a, b."""

  expressions: tuple["Expr", ...]


@dataclass(frozen=True, slots=True)
class AwaitExpr:
  """await expr."""

  argument: "Expr"


@dataclass(frozen=True, slots=True)
class YieldExpr:
  """yield expr or yield* expr."""

  argument: "Expr | None"
  delegate: bool = False


# Expression union type
Expr = (
  Identifier
  | StringLiteral
  | NumberLiteral
  | BooleanLiteral
  | NullLiteral
  | RegExpLiteral
  | BigIntLiteral
  | TemplateLiteral
  | ThisExpr
  | SuperExpr
  | ArrayExpr
  | ObjectExpr
  | SpreadElement
  | FunctionExpr
  | ArrowFunction
  | ClassExpr
  | BinaryExpr
  | LogicalExpr
  | UnaryExpr
  | UpdateExpr
  | AssignExpr
  | ConditionalExpr
  | CallExpr
  | NewExpr
  | MemberExpr
  | SequenceExpr
  | AwaitExpr
  | YieldExpr
)

Literal = StringLiteral | NumberLiteral | BooleanLiteral | NullLiteral | RegExpLiteral | BigIntLiteral


# === Class members ===


@dataclass(frozen=True, slots=True)
class MethodDef:
  """Class method. kind is "constructor", "method", "get" or "set"."""

  key: "Expr"
  value: FunctionExpr
  kind: str = "method"
  static: bool = False
  computed: bool = False
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassProperty:
  """Class field: count = 0; or static items;."""

  key: "Expr"
  value: "Expr | None"
  static: bool = False
  computed: bool = False
  type_ann: TypeDescriptor | None = None
  comments: tuple[str, ...] = ()


ClassMember = MethodDef | ClassProperty


# === Statements ===


@dataclass(frozen=True, slots=True)
class VarDeclarator:
  """Single binding in a declaration: name = init."""

  name: str
  init: Expr | None
  type_ann: TypeDescriptor | None = None


@dataclass(frozen=True, slots=True)
class VarDecl:
  """Variable declaration: const a = 1, b = 2;"""

  kind: str  # "var", "let" or "const"
  declarations: tuple[VarDeclarator, ...]
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FunctionDecl:
  """Function declaration: function name(a, b) { ... }"""

  name: str
  params: tuple[Param, ...]
  body: "BlockStmt"
  is_async: bool = False
  is_generator: bool = False
  return_type: TypeDescriptor | None = None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassDecl:
  """Class declaration: class Name extends Base { ... }"""

  name: str
  superclass: Expr | None
  body: tuple[ClassMember, ...]
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BlockStmt:
  """Block: { ... }"""

  body: tuple["Stmt", ...]
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExprStmt:
  """Expression used as a statement."""

  expr: Expr
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ReturnStmt:
  """Return statement: return expr; or return;"""

  argument: Expr | None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class IfStmt:
  """If statement with optional else branch."""

  test: Expr
  consequent: "Stmt"
  alternate: "Stmt | None"
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ForStmt:
  """Classic for loop: for (init; test; update) body"""

  init: "VarDecl | Expr | None"
  test: Expr | None
  update: Expr | None
  body: "Stmt"
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ForInStmt:
  """for (left in right) body, or for (left of right) body when `of` is set."""

  left: "VarDecl | Expr"
  right: Expr
  body: "Stmt"
  of: bool = False
  is_await: bool = False
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class WhileStmt:
  """While loop."""

  test: Expr
  body: "Stmt"
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DoWhileStmt:
  """do body while (test);"""

  body: "Stmt"
  test: Expr
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BreakStmt:
  label: str | None = None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ContinueStmt:
  label: str | None = None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ThrowStmt:
  argument: Expr
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TryStmt:
  """try { } catch (param) { } finally { }"""

  block: BlockStmt
  param: str | None
  handler: BlockStmt | None
  finalizer: BlockStmt | None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SwitchCase:
  """case test: body, or default: body when test is None."""

  test: Expr | None
  body: tuple["Stmt", ...]
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SwitchStmt:
  discriminant: Expr
  cases: tuple[SwitchCase, ...]
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LabeledStmt:
  label: str
  body: "Stmt"
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EmptyStmt:
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ImportDecl:
  """import x, { a, b as c } from "mod"; import * as ns from "mod"; import "mod";"""

  source: StringLiteral
  default: str | None = None
  namespace: str | None = None
  named: tuple[tuple[str, str], ...] = ()  # (imported, local) pairs
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportNamedDecl:
  """export <declaration>; or export { a, b as c } [from "mod"];"""

  declaration: "VarDecl | FunctionDecl | ClassDecl | None"
  specifiers: tuple[tuple[str, str], ...] = ()  # (local, exported) pairs
  source: StringLiteral | None = None
  comments: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportDefaultDecl:
  """export default <declaration or expression>;"""

  declaration: "FunctionDecl | ClassDecl | Expr"
  comments: tuple[str, ...] = ()


# Statement union type
Stmt = (
  VarDecl
  | FunctionDecl
  | ClassDecl
  | BlockStmt
  | ExprStmt
  | ReturnStmt
  | IfStmt
  | ForStmt
  | ForInStmt
  | WhileStmt
  | DoWhileStmt
  | BreakStmt
  | ContinueStmt
  | ThrowStmt
  | TryStmt
  | SwitchStmt
  | LabeledStmt
  | EmptyStmt
  | ImportDecl
  | ExportNamedDecl
  | ExportDefaultDecl
)

FunctionNode = FunctionDecl | FunctionExpr | ArrowFunction


# === Top-level ===


@dataclass(frozen=True, slots=True)
class Program:
  """Root node: the statements of one source file."""

  body: tuple[Stmt, ...]
  trailing_comments: tuple[str, ...] = ()


def iter_children(node) -> Iterator:
  """Yield the direct child nodes of a node in source order."""
  for field in fields(node):
    value = getattr(node, field.name)
    if isinstance(value, tuple):
      for item in value:
        if is_dataclass(item):
          yield item
    elif is_dataclass(value) and not isinstance(value, DESCRIPTOR_TYPES):
      yield value
