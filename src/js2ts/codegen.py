"""TypeScript printer for annotated JavaScript syntax trees."""

from collections.abc import Callable, Iterable

from .ast import (
  Expr,
  Stmt,
  Param,
  IfStmt,
  NewExpr,
  Program,
  ForStmt,
  Property,
  CallExpr,
  ClassDecl,
  ClassExpr,
  EmptyStmt,
  ExprStmt,
  ForInStmt,
  MethodDef,
  AwaitExpr,
  BlockStmt,
  BreakStmt,
  ThisExpr,
  SuperExpr,
  ThrowStmt,
  TryStmt,
  UnaryExpr,
  VarDecl,
  WhileStmt,
  YieldExpr,
  ArrayExpr,
  AssignExpr,
  BinaryExpr,
  Identifier,
  ImportDecl,
  MemberExpr,
  ObjectExpr,
  ReturnStmt,
  SwitchStmt,
  UpdateExpr,
  DoWhileStmt,
  LabeledStmt,
  LogicalExpr,
  NullLiteral,
  ClassMember,
  ContinueStmt,
  FunctionDecl,
  FunctionExpr,
  SequenceExpr,
  ArrowFunction,
  ClassProperty,
  RegExpLiteral,
  SpreadElement,
  StringLiteral,
  VarDeclarator,
  BigIntLiteral,
  NumberLiteral,
  BooleanLiteral,
  ConditionalExpr,
  TemplateLiteral,
  ExportNamedDecl,
  ExportDefaultDecl,
)
from .descriptors import Reference, TypeDescriptor, render

INDENT = "  "

BINARY_PRECEDENCE: dict[str, int] = {
  "??": 4,
  "||": 4,
  "&&": 5,
  "|": 6,
  "^": 7,
  "&": 8,
  "==": 9,
  "!=": 9,
  "===": 9,
  "!==": 9,
  "<": 10,
  ">": 10,
  "<=": 10,
  ">=": 10,
  "instanceof": 10,
  "in": 10,
  "<<": 11,
  ">>": 11,
  ">>>": 11,
  "+": 12,
  "-": 12,
  "*": 13,
  "/": 13,
  "%": 13,
  "**": 14,
}

SEQUENCE_PREC = 1
ASSIGN_PREC = 2
CONDITIONAL_PREC = 3
UNARY_PREC = 15
POSTFIX_PREC = 16
CALL_PREC = 17
PRIMARY_PREC = 18


def precedence(node: Expr) -> int:
  """Binding strength of an expression; lower binds looser."""
  match node:
    case SequenceExpr():
      return SEQUENCE_PREC
    case AssignExpr() | ArrowFunction() | YieldExpr() | SpreadElement():
      return ASSIGN_PREC
    case ConditionalExpr():
      return CONDITIONAL_PREC
    case BinaryExpr(_, op, _) | LogicalExpr(_, op, _):
      return BINARY_PRECEDENCE[op]
    case UnaryExpr() | AwaitExpr():
      return UNARY_PREC
    case UpdateExpr(_, _, prefix):
      return UNARY_PREC if prefix else POSTFIX_PREC
    case CallExpr() | NewExpr() | MemberExpr():
      return CALL_PREC
  return PRIMARY_PREC


def annotation(t: TypeDescriptor | None) -> str:
  return f": {render(t)}" if t is not None else ""


def starts_with_declaration(node: Expr) -> bool:
  """True if the leftmost token of the printed expression would read as a declaration."""
  while True:
    match node:
      case CallExpr(callee):
        node = callee
      case MemberExpr(obj):
        node = obj
      case BinaryExpr(left) | LogicalExpr(left):
        node = left
      case AssignExpr(target):
        node = target
      case ConditionalExpr(test):
        node = test
      case SequenceExpr(expressions):
        node = expressions[0]
      case UpdateExpr(_, argument, False):
        node = argument
      case ObjectExpr(_, type_ann):
        return not isinstance(type_ann, Reference)
      case FunctionExpr() | ClassExpr():
        return True
      case _:
        return False


class CodeGenerator:
  """Prints a program as TypeScript source."""

  def __init__(self, preserve_comments: bool = True) -> None:
    self.output: list[str] = []
    self.indent = 0
    self.preserve_comments = preserve_comments

  def _emit(self, line: str) -> None:
    self.output.append(f"{INDENT * self.indent}{line}" if line else "")

  def _emit_comments(self, comments: tuple[str, ...]) -> None:
    if self.preserve_comments:
      for comment in comments:
        self._emit(comment)

  def _capture(self, emit_fn: Callable[[], None]) -> list[str]:
    """Run emit_fn and return the lines it emitted instead of keeping them."""
    saved, self.output = self.output, []
    try:
      emit_fn()
      return self.output
    finally:
      self.output = saved

  def _block_text(self, body: Iterable[Stmt]) -> str:
    """A brace block usable inside an expression, indented one level past the current line."""
    body = tuple(body)
    if not body:
      return "{}"

    def emit_body() -> None:
      self.indent += 1
      for stmt in body:
        self._gen_stmt(stmt)
      self.indent -= 1

    lines = self._capture(emit_body)
    return "{\n" + "\n".join(lines) + "\n" + INDENT * self.indent + "}"

  def generate(self, program: Program, declarations: Iterable[str] = ()) -> str:
    """Print interface declarations followed by the program."""
    declarations = list(declarations)
    for i, decl in enumerate(declarations):
      if i:
        self._emit("")
      self._emit(decl)
    if declarations:
      self._emit("")

    for stmt in program.body:
      self._gen_stmt(stmt)
    self._emit_comments(program.trailing_comments)
    return "\n".join(self.output) + "\n"

  # === Statements ===

  def _emit_body(self, stmt: Stmt) -> None:
    """Emit the statements of a clause body one level deeper; non-block bodies get braces."""
    self.indent += 1
    if isinstance(stmt, BlockStmt):
      self._emit_comments(stmt.comments)
      for child in stmt.body:
        self._gen_stmt(child)
    else:
      self._gen_stmt(stmt)
    self.indent -= 1

  def _emit_prefixed(self, prefix: str, emit_fn: Callable[[], None]) -> None:
    """Emit a declaration with a keyword prefix such as 'export ' on its first line."""
    lines = self._capture(emit_fn)
    if lines:
      head = INDENT * self.indent
      lines[0] = head + prefix + lines[0][len(head) :]
    self.output.extend(lines)

  def _gen_stmt(self, stmt: Stmt) -> None:
    self._emit_comments(stmt.comments)
    match stmt:
      case VarDecl():
        self._emit(f"{self._var_decl(stmt)};")

      case FunctionDecl(name, params, body, is_async, is_generator, return_type):
        head = self._function_head(name, params, return_type, is_async, is_generator)
        self._emit(f"{head} {self._block_text(body.body)}")

      case ClassDecl(name, superclass, body):
        self._emit_class(name, superclass, body)

      case BlockStmt(body):
        self._emit(self._block_text(body))

      case ExprStmt(expr):
        text = self._expr(expr, SEQUENCE_PREC)
        # A leading '{', 'function' or 'class' would start a declaration instead
        if starts_with_declaration(expr):
          text = f"({text})"
        self._emit(f"{text};")

      case ReturnStmt(argument):
        if argument is None:
          self._emit("return;")
        else:
          self._emit(f"return {self._expr(argument, SEQUENCE_PREC)};")

      case IfStmt():
        self._emit_if(stmt, "")

      case ForStmt(init, test, update, body):
        init_text = ""
        if isinstance(init, VarDecl):
          init_text = self._var_decl(init)
        elif init is not None:
          init_text = self._expr(init, SEQUENCE_PREC)
        test_text = f" {self._expr(test, SEQUENCE_PREC)}" if test is not None else ""
        update_text = f" {self._expr(update, SEQUENCE_PREC)}" if update is not None else ""
        self._emit(f"for ({init_text};{test_text};{update_text}) {{")
        self._emit_body(body)
        self._emit("}")

      case ForInStmt(left, right, body, of, is_await):
        left_text = self._var_decl(left) if isinstance(left, VarDecl) else self._expr(left, CALL_PREC)
        keyword = "for await" if is_await else "for"
        operator = "of" if of else "in"
        self._emit(f"{keyword} ({left_text} {operator} {self._expr(right, ASSIGN_PREC)}) {{")
        self._emit_body(body)
        self._emit("}")

      case WhileStmt(test, body):
        self._emit(f"while ({self._expr(test, SEQUENCE_PREC)}) {{")
        self._emit_body(body)
        self._emit("}")

      case DoWhileStmt(body, test):
        self._emit("do {")
        self._emit_body(body)
        self._emit(f"}} while ({self._expr(test, SEQUENCE_PREC)});")

      case BreakStmt(label):
        self._emit(f"break {label};" if label else "break;")

      case ContinueStmt(label):
        self._emit(f"continue {label};" if label else "continue;")

      case ThrowStmt(argument):
        self._emit(f"throw {self._expr(argument, SEQUENCE_PREC)};")

      case TryStmt(block, param, handler, finalizer):
        self._emit("try {")
        self._emit_body(block)
        if handler is not None:
          self._emit(f"}} catch ({param}) {{" if param else "} catch {")
          self._emit_body(handler)
        if finalizer is not None:
          self._emit("} finally {")
          self._emit_body(finalizer)
        self._emit("}")

      case SwitchStmt(discriminant, cases):
        self._emit(f"switch ({self._expr(discriminant, SEQUENCE_PREC)}) {{")
        self.indent += 1
        for case in cases:
          self._emit_comments(case.comments)
          if case.test is None:
            self._emit("default:")
          else:
            self._emit(f"case {self._expr(case.test, SEQUENCE_PREC)}:")
          self.indent += 1
          for child in case.body:
            self._gen_stmt(child)
          self.indent -= 1
        self.indent -= 1
        self._emit("}")

      case LabeledStmt(label, body):
        self._emit(f"{label}:")
        self._gen_stmt(body)

      case EmptyStmt():
        self._emit(";")

      case ImportDecl():
        self._emit(self._import(stmt))

      case ExportNamedDecl(None, specifiers, source):
        if specifiers == (("*", "*"),):
          names = "*"
        else:
          names = "{ " + ", ".join(self._specifier(a, b) for a, b in specifiers) + " }" if specifiers else "{}"
        tail = f" from {source.raw}" if source is not None else ""
        self._emit(f"export {names}{tail};")

      case ExportNamedDecl(declaration):
        self._emit_prefixed("export ", lambda: self._gen_stmt(declaration))

      case ExportDefaultDecl(FunctionDecl() | ClassDecl() as declaration):
        self._emit_prefixed("export default ", lambda: self._gen_stmt(declaration))

      case ExportDefaultDecl(declaration):
        self._emit(f"export default {self._expr(declaration, ASSIGN_PREC)};")

  def _emit_if(self, stmt: IfStmt, lead: str) -> None:
    self._emit(f"{lead}if ({self._expr(stmt.test, SEQUENCE_PREC)}) {{")
    self._emit_body(stmt.consequent)
    alternate = stmt.alternate
    if alternate is None:
      self._emit("}")
    elif isinstance(alternate, IfStmt) and not alternate.comments:
      self._emit_if(alternate, "} else ")
    else:
      self._emit("} else {")
      self._emit_body(alternate)
      self._emit("}")

  def _var_decl(self, decl: VarDecl) -> str:
    return f"{decl.kind} " + ", ".join(self._declarator(d) for d in decl.declarations)

  def _declarator(self, decl: VarDeclarator) -> str:
    text = decl.name + annotation(decl.type_ann)
    if decl.init is not None:
      text += f" = {self._initializer(decl.init, decl.type_ann)}"
    return text

  def _initializer(self, init: Expr, type_ann: TypeDescriptor | None) -> str:
    # The declared type already names the interface, so no cast is needed
    if isinstance(init, ObjectExpr) and type_ann is not None:
      return self._object(init, cast=False)
    return self._expr(init, ASSIGN_PREC)

  def _import(self, decl: ImportDecl) -> str:
    parts = []
    if decl.default:
      parts.append(decl.default)
    if decl.namespace:
      parts.append(f"* as {decl.namespace}")
    if decl.named:
      parts.append("{ " + ", ".join(self._specifier(a, b) for a, b in decl.named) + " }")
    if not parts:
      return f"import {decl.source.raw};"
    return f"import {', '.join(parts)} from {decl.source.raw};"

  def _specifier(self, name: str, alias: str) -> str:
    return name if name == alias else f"{name} as {alias}"

  # === Functions and classes ===

  def _params(self, params: tuple[Param, ...]) -> str:
    parts = []
    for param in params:
      text = ("..." if param.rest else "") + param.name + annotation(param.type_ann)
      if param.default is not None:
        text += f" = {self._expr(param.default, ASSIGN_PREC)}"
      parts.append(text)
    return ", ".join(parts)

  def _function_head(
    self,
    name: str | None,
    params: tuple[Param, ...],
    return_type: TypeDescriptor | None,
    is_async: bool,
    is_generator: bool,
  ) -> str:
    keyword = ("async " if is_async else "") + ("function*" if is_generator else "function")
    name_text = f" {name}" if name else ""
    return f"{keyword}{name_text}({self._params(params)}){annotation(return_type)}"

  def _method(self, prefix: str, key: str, value: FunctionExpr) -> str:
    modifiers = ("async " if value.is_async else "") + ("*" if value.is_generator else "")
    head = f"{prefix}{modifiers}{key}({self._params(value.params)}){annotation(value.return_type)}"
    return f"{head} {self._block_text(value.body.body)}"

  def _property_key(self, key: Expr, computed: bool) -> str:
    if computed:
      return f"[{self._expr(key, ASSIGN_PREC)}]"
    match key:
      case Identifier(name):
        return name
      case StringLiteral(_, raw) | NumberLiteral(_, raw):
        return raw
    return self._expr(key, PRIMARY_PREC)

  def _class_text(self, name: str | None, superclass: Expr | None, body: tuple[ClassMember, ...]) -> str:
    head = "class" + (f" {name}" if name else "")
    if superclass is not None:
      head += f" extends {self._expr(superclass, CALL_PREC)}"
    if not body:
      return f"{head} {{}}"

    def emit_members() -> None:
      self.indent += 1
      for member in body:
        self._emit_member(member)
      self.indent -= 1

    lines = self._capture(emit_members)
    return f"{head} {{\n" + "\n".join(lines) + "\n" + INDENT * self.indent + "}"

  def _emit_class(self, name: str, superclass: Expr | None, body: tuple[ClassMember, ...]) -> None:
    self._emit(self._class_text(name, superclass, body))

  def _emit_member(self, member: ClassMember) -> None:
    self._emit_comments(member.comments)
    prefix = "static " if member.static else ""
    key = self._property_key(member.key, member.computed)
    match member:
      case MethodDef(_, value, kind):
        accessor = f"{kind} " if kind in ("get", "set") else ""
        self._emit(self._method(prefix + accessor, key, value))
      case ClassProperty(_, value, _, _, type_ann):
        text = f"{prefix}{key}{annotation(type_ann)}"
        if value is not None:
          text += f" = {self._initializer(value, type_ann)}"
        self._emit(f"{text};")

  # === Expressions ===

  def _expr(self, node: Expr, min_prec: int) -> str:
    """Print an expression, parenthesized if it binds looser than min_prec."""
    text = self._expr_text(node)
    if precedence(node) < min_prec:
      return f"({text})"
    return text

  def _expr_text(self, node: Expr) -> str:
    match node:
      case Identifier(name):
        return name
      case StringLiteral(_, raw) | NumberLiteral(_, raw):
        return raw
      case BooleanLiteral(value):
        return "true" if value else "false"
      case NullLiteral():
        return "null"
      case RegExpLiteral(raw) | BigIntLiteral(raw) | TemplateLiteral(raw):
        return raw
      case ThisExpr():
        return "this"
      case SuperExpr():
        return "super"

      case ArrayExpr(elements):
        parts = ["" if e is None else self._expr(e, ASSIGN_PREC) for e in elements]
        # A trailing hole needs its own comma
        if elements and elements[-1] is None:
          parts.append("")
        return f"[{', '.join(parts)}]"

      case ObjectExpr():
        return self._object(node, cast=True)

      case SpreadElement(argument):
        return f"...{self._expr(argument, ASSIGN_PREC)}"

      case FunctionExpr(name, params, body, is_async, is_generator, return_type):
        head = self._function_head(name, params, return_type, is_async, is_generator)
        return f"{head} {self._block_text(body.body)}"

      case ArrowFunction(params, body, is_async, return_type):
        head = ("async " if is_async else "") + f"({self._params(params)}){annotation(return_type)} =>"
        if isinstance(body, BlockStmt):
          return f"{head} {self._block_text(body.body)}"
        body_text = self._expr(body, ASSIGN_PREC)
        if body_text.startswith("{"):
          body_text = f"({body_text})"
        return f"{head} {body_text}"

      case ClassExpr(name, superclass, body):
        return self._class_text(name, superclass, body)

      case BinaryExpr(left, op, right):
        prec = BINARY_PRECEDENCE[op]
        if op == "**":
          # Exponentiation is right-associative and rejects a unary left operand
          return f"{self._expr(left, POSTFIX_PREC)} ** {self._expr(right, prec)}"
        return f"{self._expr(left, prec)} {op} {self._expr(right, prec + 1)}"

      case LogicalExpr(left, op, right):
        prec = BINARY_PRECEDENCE[op]
        return f"{self._logical_operand(left, op, prec)} {op} {self._logical_operand(right, op, prec + 1)}"

      case UnaryExpr(op, argument):
        arg = self._expr(argument, UNARY_PREC)
        if op.isalpha():
          return f"{op} {arg}"
        # Keep `- -x` and `+ +x` from fusing into `--x`
        if arg.startswith(op[0]) and op in ("-", "+"):
          return f"{op} {arg}"
        return f"{op}{arg}"

      case UpdateExpr(op, argument, prefix):
        arg = self._expr(argument, POSTFIX_PREC)
        return f"{op}{arg}" if prefix else f"{arg}{op}"

      case AssignExpr(target, op, value):
        return f"{self._expr(target, CALL_PREC)} {op} {self._expr(value, ASSIGN_PREC)}"

      case ConditionalExpr(test, consequent, alternate):
        return f"{self._expr(test, CONDITIONAL_PREC + 1)} ? {self._expr(consequent, ASSIGN_PREC)} : {self._expr(alternate, ASSIGN_PREC)}"

      case CallExpr(callee, args, optional):
        dot = "?." if optional else ""
        return f"{self._expr(callee, CALL_PREC)}{dot}({self._args(args)})"

      case NewExpr(callee, args):
        # `new (f())()` differs from `new f()()`
        callee_text = self._expr(callee, PRIMARY_PREC if self._contains_call(callee) else CALL_PREC)
        return f"new {callee_text}({self._args(args)})"

      case MemberExpr(obj, prop, computed, optional):
        obj_text = self._expr(obj, CALL_PREC)
        if isinstance(obj, NumberLiteral) and obj_text.isdigit():
          obj_text = f"({obj_text})"
        if computed:
          return f"{obj_text}{'?.' if optional else ''}[{self._expr(prop, SEQUENCE_PREC)}]"
        return f"{obj_text}{'?.' if optional else '.'}{self._expr_text(prop)}"

      case SequenceExpr(expressions):
        return ", ".join(self._expr(e, ASSIGN_PREC) for e in expressions)

      case AwaitExpr(argument):
        return f"await {self._expr(argument, UNARY_PREC)}"

      case YieldExpr(argument, delegate):
        keyword = "yield*" if delegate else "yield"
        if argument is None:
          return keyword
        return f"{keyword} {self._expr(argument, ASSIGN_PREC)}"

    raise ValueError(f"Cannot print node {type(node).__name__}")

  def _logical_operand(self, operand: Expr, op: str, min_prec: int) -> str:
    # `??` cannot be mixed with `&&` or `||` without parentheses
    if isinstance(operand, LogicalExpr) and (operand.op == "??") != (op == "??"):
      return f"({self._expr_text(operand)})"
    return self._expr(operand, min_prec)

  def _contains_call(self, node: Expr) -> bool:
    while isinstance(node, MemberExpr):
      node = node.object
    return isinstance(node, CallExpr)

  def _args(self, args: tuple[Expr, ...]) -> str:
    return ", ".join(self._expr(a, ASSIGN_PREC) for a in args)

  def _object(self, node: ObjectExpr, cast: bool) -> str:
    """Print an object literal; a literal typed as an interface is cast to it when cast is set."""
    if not node.properties:
      text = "{}"
    else:
      self.indent += 1
      lines = [INDENT * self.indent + self._property(p) for p in node.properties]
      self.indent -= 1
      text = "{\n" + ",\n".join(lines) + "\n" + INDENT * self.indent + "}"
    if cast and isinstance(node.type_ann, Reference):
      return f"({text} as {node.type_ann.name})"
    return text

  def _property(self, prop: Property | SpreadElement) -> str:
    if isinstance(prop, SpreadElement):
      return self._expr_text(prop)
    key = self._property_key(prop.key, prop.computed)
    match prop.kind:
      case "get" | "set":
        return self._method(f"{prop.kind} ", key, prop.value)
      case "method":
        return self._method("", key, prop.value)
    if prop.shorthand:
      return key
    return f"{key}: {self._expr(prop.value, ASSIGN_PREC)}"


def generate(program: Program, declarations: Iterable[str] = (), preserve_comments: bool = True) -> str:
  """Convenience function to print a program as TypeScript."""
  return CodeGenerator(preserve_comments).generate(program, declarations)
