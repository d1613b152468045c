"""Recursive descent parser for the supported JavaScript subset."""

from dataclasses import replace

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
  SwitchCase,
  SwitchStmt,
  UpdateExpr,
  DoWhileStmt,
  LabeledStmt,
  LogicalExpr,
  NullLiteral,
  ContinueStmt,
  FunctionDecl,
  FunctionExpr,
  SequenceExpr,
  ArrowFunction,
  ClassMember,
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
from .lexer import decode_string
from .tokens import KEYWORDS, Token, TokenType


class ParseError(Exception):
  """Raised when the parser encounters a syntax error."""

  def __init__(self, message: str, token: Token) -> None:
    super().__init__(f"{message} at line {token.line}, column {token.column}")
    self.token = token


# Binary operator precedence (higher = binds tighter)
PRECEDENCE: dict[TokenType, int] = {
  TokenType.NULLISH: 1,
  TokenType.OR: 1,
  TokenType.AND: 2,
  TokenType.PIPE: 3,
  TokenType.CARET: 4,
  TokenType.AMP: 5,
  TokenType.EQ: 6,
  TokenType.NE: 6,
  TokenType.STRICT_EQ: 6,
  TokenType.STRICT_NE: 6,
  TokenType.LT: 7,
  TokenType.GT: 7,
  TokenType.LE: 7,
  TokenType.GE: 7,
  TokenType.INSTANCEOF: 7,
  TokenType.IN: 7,
  TokenType.SHL: 8,
  TokenType.SHR: 8,
  TokenType.USHR: 8,
  TokenType.PLUS: 9,
  TokenType.MINUS: 9,
  TokenType.STAR: 10,
  TokenType.SLASH: 10,
  TokenType.PERCENT: 10,
  TokenType.STARSTAR: 11,
}

LOGICAL_OPS: set[TokenType] = {TokenType.AND, TokenType.OR, TokenType.NULLISH}

ASSIGNMENT_OPS: set[TokenType] = {
  TokenType.ASSIGN,
  TokenType.PLUS_ASSIGN,
  TokenType.MINUS_ASSIGN,
  TokenType.STAR_ASSIGN,
  TokenType.SLASH_ASSIGN,
  TokenType.PERCENT_ASSIGN,
  TokenType.STARSTAR_ASSIGN,
  TokenType.SHL_ASSIGN,
  TokenType.SHR_ASSIGN,
  TokenType.USHR_ASSIGN,
  TokenType.AMP_ASSIGN,
  TokenType.PIPE_ASSIGN,
  TokenType.CARET_ASSIGN,
  TokenType.AND_ASSIGN,
  TokenType.OR_ASSIGN,
  TokenType.NULLISH_ASSIGN,
}

UNARY_OPS: set[TokenType] = {
  TokenType.BANG,
  TokenType.MINUS,
  TokenType.PLUS,
  TokenType.TILDE,
  TokenType.TYPEOF,
  TokenType.VOID,
  TokenType.DELETE,
}

# Keywords are valid property names: obj.default, promise.catch(...)
NAME_TOKENS: set[TokenType] = {TokenType.IDENT, *KEYWORDS.values()}


class Parser:
  """Parses tokens into an AST."""

  def __init__(self, tokens: list[Token]) -> None:
    self.tokens = tokens
    self.pos = 0
    # Inside a for-statement head, `in` ends the init expression
    self.no_in = False

  def _current(self) -> Token:
    return self.tokens[self.pos]

  def _peek(self, offset: int = 1) -> Token:
    pos = self.pos + offset
    if pos >= len(self.tokens):
      return self.tokens[-1]
    return self.tokens[pos]

  def _at_end(self) -> bool:
    return self._current().type == TokenType.EOF

  def _check(self, *types: TokenType) -> bool:
    return self._current().type in types

  def _check_word(self, word: str) -> bool:
    """Check for a contextual keyword such as 'of', 'async' or 'static'."""
    token = self._current()
    return token.type == TokenType.IDENT and token.value == word

  def _advance(self) -> Token:
    token = self._current()
    if not self._at_end():
      self.pos += 1
    return token

  def _expect(self, type: TokenType, message: str) -> Token:
    if not self._check(type):
      raise ParseError(message, self._current())
    return self._advance()

  def _expect_word(self, word: str) -> Token:
    if not self._check_word(word):
      raise ParseError(f"Expected '{word}'", self._current())
    return self._advance()

  def _expect_ident(self, message: str) -> str:
    token = self._current()
    if token.type == TokenType.IDENT:
      return self._advance().value
    if token.type in (TokenType.LBRACE, TokenType.LBRACKET):
      raise ParseError("Destructuring patterns are not supported", token)
    raise ParseError(message, token)

  def _consume_semicolon(self) -> None:
    """Consume ';' or accept an automatically inserted one."""
    if self._check(TokenType.SEMICOLON):
      self._advance()
      return
    if self._check(TokenType.RBRACE, TokenType.EOF) or self._current().newline_before:
      return
    raise ParseError("Expected ';'", self._current())

  def _nested(self, parse_fn):
    """Run parse_fn with `in` allowed again (inside brackets or function bodies)."""
    saved, self.no_in = self.no_in, False
    try:
      return parse_fn()
    finally:
      self.no_in = saved

  # === Parsing Functions ===

  def parse(self) -> Program:
    """Parse the entire program."""
    body: list[Stmt] = []
    while not self._at_end():
      body.append(self._parse_statement())
    return Program(tuple(body), self._current().comments)

  def _parse_statement(self) -> Stmt:
    """Parse a statement and attach the comments that precede it."""
    comments = self._current().comments
    stmt = self._parse_statement_kind()
    if comments:
      stmt = replace(stmt, comments=comments)
    return stmt

  def _parse_statement_kind(self) -> Stmt:
    token = self._current()
    match token.type:
      case TokenType.LBRACE:
        return self._parse_block()
      case TokenType.VAR | TokenType.LET | TokenType.CONST:
        decl = self._parse_var_decl()
        self._consume_semicolon()
        return decl
      case TokenType.FUNCTION:
        return self._parse_function_decl()
      case TokenType.CLASS:
        return self._parse_class_decl()
      case TokenType.IF:
        return self._parse_if()
      case TokenType.FOR:
        return self._parse_for()
      case TokenType.WHILE:
        return self._parse_while()
      case TokenType.DO:
        return self._parse_do_while()
      case TokenType.RETURN:
        return self._parse_return()
      case TokenType.BREAK | TokenType.CONTINUE:
        return self._parse_jump()
      case TokenType.THROW:
        return self._parse_throw()
      case TokenType.TRY:
        return self._parse_try()
      case TokenType.SWITCH:
        return self._parse_switch()
      case TokenType.SEMICOLON:
        self._advance()
        return EmptyStmt()
      case TokenType.IMPORT if self._peek().type not in (TokenType.LPAREN, TokenType.DOT):
        return self._parse_import()
      case TokenType.EXPORT:
        return self._parse_export()
      case TokenType.IDENT if token.value == "async" and self._is_async_function():
        return self._parse_function_decl()
      case TokenType.IDENT if self._peek().type == TokenType.COLON:
        label = self._advance().value
        self._advance()  # consume ':'
        return LabeledStmt(label, self._parse_statement())
    return self._parse_expr_stmt()

  def _is_async_function(self) -> bool:
    next_token = self._peek()
    return next_token.type == TokenType.FUNCTION and not next_token.newline_before

  def _parse_block(self) -> BlockStmt:
    """Parse: { statements }"""
    self._expect(TokenType.LBRACE, "Expected '{'")
    body: list[Stmt] = []
    while not self._check(TokenType.RBRACE):
      if self._at_end():
        raise ParseError("Expected '}'", self._current())
      body.append(self._parse_statement())
    self._advance()  # consume '}'
    return BlockStmt(tuple(body))

  def _parse_var_decl(self) -> VarDecl:
    """Parse: var|let|const name [= expr], ... (without the terminating ';')"""
    kind = self._advance().value
    declarations: list[VarDeclarator] = []
    while True:
      name = self._expect_ident("Expected variable name")
      init = None
      if self._check(TokenType.ASSIGN):
        self._advance()
        init = self._parse_assignment()
      declarations.append(VarDeclarator(name, init))
      if not self._check(TokenType.COMMA):
        break
      self._advance()
    return VarDecl(kind, tuple(declarations))

  def _parse_params(self) -> tuple[Param, ...]:
    """Parse: (a, b = 1, ...rest)"""
    self._expect(TokenType.LPAREN, "Expected '('")
    params: list[Param] = []
    while not self._check(TokenType.RPAREN):
      if self._check(TokenType.ELLIPSIS):
        self._advance()
        params.append(Param(self._expect_ident("Expected parameter name"), rest=True))
      else:
        name = self._expect_ident("Expected parameter name")
        default = None
        if self._check(TokenType.ASSIGN):
          self._advance()
          default = self._nested(self._parse_assignment)
        params.append(Param(name, default))
      if not self._check(TokenType.RPAREN):
        self._expect(TokenType.COMMA, "Expected ',' or ')'")
    self._advance()  # consume ')'
    return tuple(params)

  def _parse_function_body(self) -> BlockStmt:
    return self._nested(self._parse_block)

  def _parse_function_head(self) -> tuple[bool, bool, str | None]:
    """Parse: [async] function [*] [name] and return (is_async, is_generator, name)."""
    is_async = False
    if self._check_word("async"):
      self._advance()
      is_async = True
    self._expect(TokenType.FUNCTION, "Expected 'function'")
    is_generator = False
    if self._check(TokenType.STAR):
      self._advance()
      is_generator = True
    name = None
    if self._check(TokenType.IDENT):
      name = self._advance().value
    return is_async, is_generator, name

  def _parse_function_decl(self) -> FunctionDecl:
    """Parse: [async] function [*] name(params) { body }"""
    is_async, is_generator, name = self._parse_function_head()
    if name is None:
      raise ParseError("Expected function name", self._current())
    params = self._parse_params()
    body = self._parse_function_body()
    return FunctionDecl(name, params, body, is_async, is_generator)

  def _parse_function_expr(self) -> FunctionExpr:
    is_async, is_generator, name = self._parse_function_head()
    params = self._parse_params()
    body = self._parse_function_body()
    return FunctionExpr(name, params, body, is_async, is_generator)

  def _parse_class_head(self) -> tuple[str | None, Expr | None, tuple[ClassMember, ...]]:
    self._expect(TokenType.CLASS, "Expected 'class'")
    name = None
    if self._check(TokenType.IDENT):
      name = self._advance().value
    superclass = None
    if self._check(TokenType.EXTENDS):
      self._advance()
      superclass = self._parse_call_member()
    return name, superclass, self._nested(self._parse_class_body)

  def _parse_class_decl(self) -> ClassDecl:
    """Parse: class Name [extends Base] { members }"""
    name_token = self._peek()
    name, superclass, body = self._parse_class_head()
    if name is None:
      raise ParseError("Expected class name", name_token)
    return ClassDecl(name, superclass, body)

  def _parse_class_body(self) -> tuple[ClassMember, ...]:
    self._expect(TokenType.LBRACE, "Expected '{'")
    members: list[ClassMember] = []
    while not self._check(TokenType.RBRACE):
      if self._at_end():
        raise ParseError("Expected '}'", self._current())
      if self._check(TokenType.SEMICOLON):
        self._advance()
        continue
      comments = self._current().comments
      member = self._parse_class_member()
      if comments:
        member = replace(member, comments=comments)
      members.append(member)
    self._advance()  # consume '}'
    return tuple(members)

  def _is_modifier(self, word: str) -> bool:
    """A contextual modifier like 'static' or 'get' that is not itself the member name."""
    if not self._check_word(word):
      return False
    next_token = self._peek()
    if next_token.type in (TokenType.LPAREN, TokenType.ASSIGN, TokenType.SEMICOLON, TokenType.RBRACE, TokenType.COMMA, TokenType.COLON):
      return False
    return not (word == "async" and next_token.newline_before)

  def _parse_class_member(self) -> ClassMember:
    static = False
    if self._is_modifier("static"):
      self._advance()
      static = True
    is_async, is_generator, kind = self._parse_method_modifiers()
    key, computed = self._parse_property_name()

    if self._check(TokenType.LPAREN) or is_async or is_generator or kind != "method":
      value = self._parse_method_function(is_async, is_generator)
      if kind == "method" and not static and not computed and isinstance(key, Identifier) and key.name == "constructor":
        kind = "constructor"
      return MethodDef(key, value, kind, static, computed)

    value = None
    if self._check(TokenType.ASSIGN):
      self._advance()
      value = self._nested(self._parse_assignment)
    self._consume_semicolon()
    return ClassProperty(key, value, static, computed)

  def _parse_method_modifiers(self) -> tuple[bool, bool, str]:
    """Parse [async] [*] [get|set] before a method name."""
    is_async = False
    if self._is_modifier("async"):
      self._advance()
      is_async = True
    is_generator = False
    if self._check(TokenType.STAR):
      self._advance()
      is_generator = True
    kind = "method"
    if not is_async and not is_generator and (self._is_modifier("get") or self._is_modifier("set")):
      kind = self._advance().value
    return is_async, is_generator, kind

  def _parse_method_function(self, is_async: bool, is_generator: bool) -> FunctionExpr:
    params = self._parse_params()
    body = self._parse_function_body()
    return FunctionExpr(None, params, body, is_async, is_generator)

  def _parse_property_name(self) -> tuple[Expr, bool]:
    """Parse a property key and return (key, computed)."""
    token = self._current()
    if token.type == TokenType.LBRACKET:
      self._advance()
      key = self._nested(self._parse_assignment)
      self._expect(TokenType.RBRACKET, "Expected ']'")
      return key, True
    if token.type in NAME_TOKENS:
      self._advance()
      return Identifier(token.value), False
    if token.type == TokenType.STRING:
      self._advance()
      return StringLiteral(decode_string(token.value), token.value), False
    if token.type == TokenType.NUMBER:
      return self._parse_number(), False
    raise ParseError("Expected property name", token)

  def _parse_if(self) -> IfStmt:
    """Parse: if (test) stmt [else stmt]"""
    self._advance()  # consume 'if'
    test = self._parse_paren_expression()
    consequent = self._parse_statement()
    alternate = None
    if self._check(TokenType.ELSE):
      self._advance()
      alternate = self._parse_statement()
    return IfStmt(test, consequent, alternate)

  def _parse_paren_expression(self) -> Expr:
    self._expect(TokenType.LPAREN, "Expected '('")
    expr = self._nested(self._parse_expression)
    self._expect(TokenType.RPAREN, "Expected ')'")
    return expr

  def _parse_for(self) -> ForStmt | ForInStmt:
    """Parse: for ([init]; [test]; [update]) body, or for (left in|of right) body"""
    self._advance()  # consume 'for'
    is_await = False
    if self._check(TokenType.AWAIT):
      self._advance()
      is_await = True
    self._expect(TokenType.LPAREN, "Expected '(' after 'for'")

    init: VarDecl | Expr | None = None
    if not self._check(TokenType.SEMICOLON):
      self.no_in = True
      try:
        if self._check(TokenType.VAR, TokenType.LET, TokenType.CONST):
          init = self._parse_var_decl()
        else:
          init = self._parse_expression()
      finally:
        self.no_in = False

      if self._check(TokenType.IN) or self._check_word("of"):
        of = self._advance().value == "of"
        right = self._parse_assignment() if of else self._parse_expression()
        self._expect(TokenType.RPAREN, "Expected ')'")
        body = self._parse_statement()
        return ForInStmt(init, right, body, of, is_await)

    self._expect(TokenType.SEMICOLON, "Expected ';' in for statement")
    test = None if self._check(TokenType.SEMICOLON) else self._parse_expression()
    self._expect(TokenType.SEMICOLON, "Expected ';' in for statement")
    update = None if self._check(TokenType.RPAREN) else self._parse_expression()
    self._expect(TokenType.RPAREN, "Expected ')'")
    body = self._parse_statement()
    return ForStmt(init, test, update, body)

  def _parse_while(self) -> WhileStmt:
    """Parse: while (test) body"""
    self._advance()  # consume 'while'
    test = self._parse_paren_expression()
    return WhileStmt(test, self._parse_statement())

  def _parse_do_while(self) -> DoWhileStmt:
    """Parse: do body while (test);"""
    self._advance()  # consume 'do'
    body = self._parse_statement()
    self._expect(TokenType.WHILE, "Expected 'while'")
    test = self._parse_paren_expression()
    if self._check(TokenType.SEMICOLON):
      self._advance()
    return DoWhileStmt(body, test)

  def _at_statement_end(self) -> bool:
    return self._check(TokenType.SEMICOLON, TokenType.RBRACE, TokenType.EOF) or self._current().newline_before

  def _parse_return(self) -> ReturnStmt:
    """Parse: return [expr];"""
    self._advance()  # consume 'return'
    argument = None if self._at_statement_end() else self._parse_expression()
    self._consume_semicolon()
    return ReturnStmt(argument)

  def _parse_jump(self) -> BreakStmt | ContinueStmt:
    """Parse: break [label]; or continue [label];"""
    keyword = self._advance()
    label = None
    if self._check(TokenType.IDENT) and not self._current().newline_before:
      label = self._advance().value
    self._consume_semicolon()
    if keyword.type == TokenType.BREAK:
      return BreakStmt(label)
    return ContinueStmt(label)

  def _parse_throw(self) -> ThrowStmt:
    """Parse: throw expr;"""
    self._advance()  # consume 'throw'
    if self._current().newline_before:
      raise ParseError("Illegal newline after throw", self._current())
    argument = self._parse_expression()
    self._consume_semicolon()
    return ThrowStmt(argument)

  def _parse_try(self) -> TryStmt:
    """Parse: try { } [catch [(e)] { }] [finally { }]"""
    self._advance()  # consume 'try'
    block = self._parse_block()
    param = None
    handler = None
    finalizer = None
    if self._check(TokenType.CATCH):
      self._advance()
      if self._check(TokenType.LPAREN):
        self._advance()
        param = self._expect_ident("Expected catch parameter")
        self._expect(TokenType.RPAREN, "Expected ')'")
      handler = self._parse_block()
    if self._check(TokenType.FINALLY):
      self._advance()
      finalizer = self._parse_block()
    if handler is None and finalizer is None:
      raise ParseError("Expected 'catch' or 'finally'", self._current())
    return TryStmt(block, param, handler, finalizer)

  def _parse_switch(self) -> SwitchStmt:
    """Parse: switch (expr) { case a: ... default: ... }"""
    self._advance()  # consume 'switch'
    discriminant = self._parse_paren_expression()
    self._expect(TokenType.LBRACE, "Expected '{'")
    cases: list[SwitchCase] = []
    while not self._check(TokenType.RBRACE):
      comments = self._current().comments
      if self._check(TokenType.CASE):
        self._advance()
        test = self._parse_expression()
      elif self._check(TokenType.DEFAULT):
        self._advance()
        test = None
      else:
        raise ParseError("Expected 'case' or 'default'", self._current())
      self._expect(TokenType.COLON, "Expected ':'")
      body: list[Stmt] = []
      while not self._check(TokenType.CASE, TokenType.DEFAULT, TokenType.RBRACE):
        if self._at_end():
          raise ParseError("Expected '}'", self._current())
        body.append(self._parse_statement())
      cases.append(SwitchCase(test, tuple(body), comments))
    self._advance()  # consume '}'
    return SwitchStmt(discriminant, tuple(cases))

  def _parse_module_source(self) -> StringLiteral:
    token = self._expect(TokenType.STRING, "Expected module specifier")
    return StringLiteral(decode_string(token.value), token.value)

  def _parse_specifiers(self) -> tuple[tuple[str, str], ...]:
    """Parse: { a, b as c } and return (name, alias) pairs."""
    self._expect(TokenType.LBRACE, "Expected '{'")
    specifiers: list[tuple[str, str]] = []
    while not self._check(TokenType.RBRACE):
      token = self._current()
      if token.type not in NAME_TOKENS:
        raise ParseError("Expected name", token)
      name = self._advance().value
      alias = name
      if self._check_word("as"):
        self._advance()
        alias_token = self._current()
        if alias_token.type not in NAME_TOKENS:
          raise ParseError("Expected name after 'as'", alias_token)
        alias = self._advance().value
      specifiers.append((name, alias))
      if not self._check(TokenType.RBRACE):
        self._expect(TokenType.COMMA, "Expected ',' or '}'")
    self._advance()  # consume '}'
    return tuple(specifiers)

  def _parse_import(self) -> ImportDecl:
    """Parse the import declaration forms."""
    self._advance()  # consume 'import'
    if self._check(TokenType.STRING):
      source = self._parse_module_source()
      self._consume_semicolon()
      return ImportDecl(source)

    default = None
    namespace = None
    named: tuple[tuple[str, str], ...] = ()
    if self._check(TokenType.IDENT):
      default = self._advance().value
      if self._check(TokenType.COMMA):
        self._advance()
    if self._check(TokenType.STAR):
      self._advance()
      self._expect_word("as")
      namespace = self._expect_ident("Expected namespace name")
    elif self._check(TokenType.LBRACE):
      named = self._parse_specifiers()
    self._expect_word("from")
    source = self._parse_module_source()
    self._consume_semicolon()
    return ImportDecl(source, default, namespace, named)

  def _parse_export(self) -> ExportNamedDecl | ExportDefaultDecl:
    """Parse the export declaration forms."""
    self._advance()  # consume 'export'
    if self._check(TokenType.DEFAULT):
      self._advance()
      if self._check(TokenType.FUNCTION) or (self._check_word("async") and self._is_async_function()):
        if self._peek().type == TokenType.LPAREN or (self._peek().type == TokenType.STAR and self._peek(2).type == TokenType.LPAREN):
          expr = self._parse_function_expr()
          return ExportDefaultDecl(expr)
        return ExportDefaultDecl(self._parse_function_decl())
      if self._check(TokenType.CLASS) and self._peek().type == TokenType.IDENT:
        return ExportDefaultDecl(self._parse_class_decl())
      expr = self._parse_assignment()
      self._consume_semicolon()
      return ExportDefaultDecl(expr)

    if self._check(TokenType.VAR, TokenType.LET, TokenType.CONST):
      decl = self._parse_var_decl()
      self._consume_semicolon()
      return ExportNamedDecl(decl)
    if self._check(TokenType.FUNCTION) or (self._check_word("async") and self._is_async_function()):
      return ExportNamedDecl(self._parse_function_decl())
    if self._check(TokenType.CLASS):
      return ExportNamedDecl(self._parse_class_decl())

    if self._check(TokenType.STAR):
      self._advance()
      specifiers: tuple[tuple[str, str], ...] = (("*", "*"),)
    else:
      specifiers = self._parse_specifiers()
    source = None
    if self._check_word("from"):
      self._advance()
      source = self._parse_module_source()
    self._consume_semicolon()
    return ExportNamedDecl(None, specifiers, source)

  def _parse_expr_stmt(self) -> ExprStmt:
    """Parse an expression statement."""
    expr = self._parse_expression()
    self._consume_semicolon()
    return ExprStmt(expr)

  # === Expression Parsing with Precedence Climbing ===

  def _parse_expression(self) -> Expr:
    """Parse an expression, including comma sequences."""
    expr = self._parse_assignment()
    if not self._check(TokenType.COMMA):
      return expr
    expressions = [expr]
    while self._check(TokenType.COMMA):
      self._advance()
      expressions.append(self._parse_assignment())
    return SequenceExpr(tuple(expressions))

  def _parse_assignment(self) -> Expr:
    """Parse an assignment expression, arrow function or yield."""
    if self._is_arrow_start():
      return self._parse_arrow()
    if self._check(TokenType.YIELD):
      return self._parse_yield()

    start = self._current()
    left = self._parse_conditional()
    if self._current().type in ASSIGNMENT_OPS:
      if not isinstance(left, (Identifier, MemberExpr)):
        raise ParseError("Invalid assignment target", start)
      op = self._advance().value
      value = self._parse_assignment()
      return AssignExpr(left, op, value)
    return left

  def _is_arrow_start(self) -> bool:
    """Look ahead for `x =>`, `(...) =>`, `async x =>` or `async (...) =>`."""
    offset = 0
    if self._check_word("async") and not self._peek().newline_before and self._peek().type in (TokenType.IDENT, TokenType.LPAREN):
      offset = 1
    token = self._peek(offset)
    if token.type == TokenType.IDENT:
      arrow = self._peek(offset + 1)
      return arrow.type == TokenType.ARROW and not arrow.newline_before
    if token.type != TokenType.LPAREN:
      return False
    # Find the matching ')' and check that '=>' follows it
    depth = 0
    index = self.pos + offset
    while index < len(self.tokens):
      match self.tokens[index].type:
        case TokenType.LPAREN | TokenType.LBRACKET | TokenType.LBRACE:
          depth += 1
        case TokenType.RPAREN | TokenType.RBRACKET | TokenType.RBRACE:
          depth -= 1
          if depth == 0:
            break
        case TokenType.EOF:
          return False
      index += 1
    if index + 1 >= len(self.tokens):
      return False
    arrow = self.tokens[index + 1]
    return arrow.type == TokenType.ARROW and not arrow.newline_before

  def _parse_arrow(self) -> ArrowFunction:
    """Parse: [async] params => body"""
    is_async = False
    if self._check_word("async") and self._peek().type != TokenType.ARROW:
      self._advance()
      is_async = True
    if self._check(TokenType.IDENT):
      params: tuple[Param, ...] = (Param(self._advance().value),)
    else:
      params = self._parse_params()
    self._expect(TokenType.ARROW, "Expected '=>'")
    if self._check(TokenType.LBRACE):
      body: BlockStmt | Expr = self._parse_function_body()
    else:
      body = self._parse_assignment()
    return ArrowFunction(params, body, is_async)

  def _parse_yield(self) -> YieldExpr:
    self._advance()  # consume 'yield'
    delegate = False
    if self._check(TokenType.STAR):
      self._advance()
      delegate = True
    if self._check(TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE, TokenType.COMMA, TokenType.COLON) or self._at_statement_end():
      return YieldExpr(None, delegate)
    return YieldExpr(self._parse_assignment(), delegate)

  def _parse_conditional(self) -> Expr:
    """Parse: test ? consequent : alternate"""
    test = self._parse_binary(0)
    if not self._check(TokenType.QUESTION):
      return test
    self._advance()
    consequent = self._nested(self._parse_assignment)
    self._expect(TokenType.COLON, "Expected ':' in conditional expression")
    alternate = self._parse_assignment()
    return ConditionalExpr(test, consequent, alternate)

  def _parse_binary(self, min_prec: int) -> Expr:
    """Parse binary expression with precedence climbing."""
    left = self._parse_unary()

    while True:
      token = self._current()
      prec = PRECEDENCE.get(token.type)

      if prec is None or prec < min_prec:
        break
      if token.type == TokenType.IN and self.no_in:
        break

      self._advance()
      # Exponentiation is right-associative
      right = self._parse_binary(prec if token.type == TokenType.STARSTAR else prec + 1)
      if token.type in LOGICAL_OPS:
        left = LogicalExpr(left, token.value, right)
      else:
        left = BinaryExpr(left, token.value, right)

    return left

  def _parse_unary(self) -> Expr:
    """Parse unary expression."""
    token = self._current()
    if token.type in UNARY_OPS:
      self._advance()
      return UnaryExpr(token.value, self._parse_unary())
    if token.type == TokenType.AWAIT:
      self._advance()
      return AwaitExpr(self._parse_unary())
    if token.type in (TokenType.PLUSPLUS, TokenType.MINUSMINUS):
      self._advance()
      return UpdateExpr(token.value, self._parse_unary(), True)
    return self._parse_postfix()

  def _parse_postfix(self) -> Expr:
    expr = self._parse_call_member()
    token = self._current()
    if token.type in (TokenType.PLUSPLUS, TokenType.MINUSMINUS) and not token.newline_before:
      self._advance()
      return UpdateExpr(token.value, expr, False)
    return expr

  def _parse_call_member(self) -> Expr:
    """Parse member accesses, calls and `new` on top of a primary expression."""
    if self._check(TokenType.NEW):
      expr = self._parse_new()
    else:
      expr = self._parse_primary()
    return self._parse_member_chain(expr, allow_calls=True)

  def _parse_new(self) -> NewExpr:
    """Parse: new Callee[(args)]"""
    self._advance()  # consume 'new'
    if self._check(TokenType.NEW):
      callee = self._parse_new()
    else:
      callee = self._parse_member_chain(self._parse_primary(), allow_calls=False)
    args: tuple[Expr, ...] = ()
    if self._check(TokenType.LPAREN):
      args = self._parse_arguments()
    return NewExpr(callee, args)

  def _parse_member_name(self) -> Identifier:
    token = self._current()
    if token.type not in NAME_TOKENS:
      raise ParseError("Expected property name", token)
    self._advance()
    return Identifier(token.value)

  def _parse_member_chain(self, expr: Expr, allow_calls: bool) -> Expr:
    while True:
      token = self._current()
      match token.type:
        case TokenType.DOT:
          self._advance()
          expr = MemberExpr(expr, self._parse_member_name())
        case TokenType.LBRACKET:
          self._advance()
          index = self._nested(self._parse_expression)
          self._expect(TokenType.RBRACKET, "Expected ']'")
          expr = MemberExpr(expr, index, computed=True)
        case TokenType.LPAREN if allow_calls:
          expr = CallExpr(expr, self._parse_arguments())
        case TokenType.QUESTION_DOT if allow_calls:
          self._advance()
          if self._check(TokenType.LPAREN):
            expr = CallExpr(expr, self._parse_arguments(), optional=True)
          elif self._check(TokenType.LBRACKET):
            self._advance()
            index = self._nested(self._parse_expression)
            self._expect(TokenType.RBRACKET, "Expected ']'")
            expr = MemberExpr(expr, index, computed=True, optional=True)
          else:
            expr = MemberExpr(expr, self._parse_member_name(), optional=True)
        case TokenType.TEMPLATE:
          raise ParseError("Tagged templates are not supported", token)
        case _:
          return expr

  def _parse_arguments(self) -> tuple[Expr, ...]:
    """Parse: (arg, ...spread)"""
    self._expect(TokenType.LPAREN, "Expected '('")
    saved, self.no_in = self.no_in, False
    args: list[Expr] = []
    while not self._check(TokenType.RPAREN):
      if self._check(TokenType.ELLIPSIS):
        self._advance()
        args.append(SpreadElement(self._parse_assignment()))
      else:
        args.append(self._parse_assignment())
      if not self._check(TokenType.RPAREN):
        self._expect(TokenType.COMMA, "Expected ',' or ')'")
    self._advance()  # consume ')'
    self.no_in = saved
    return tuple(args)

  def _parse_number(self) -> NumberLiteral | BigIntLiteral:
    raw = self._advance().value
    if raw.endswith("n"):
      return BigIntLiteral(raw)
    text = raw.replace("_", "")
    if text[:2].lower() in ("0x", "0o", "0b"):
      return NumberLiteral(float(int(text, 0)), raw)
    return NumberLiteral(float(text), raw)

  def _parse_primary(self) -> Expr:
    """Parse primary expression."""
    token = self._current()
    match token.type:
      case TokenType.IDENT if token.value == "async" and self._is_async_function():
        return self._parse_function_expr()
      case TokenType.IDENT:
        self._advance()
        return Identifier(token.value)
      case TokenType.NUMBER:
        return self._parse_number()
      case TokenType.STRING:
        self._advance()
        return StringLiteral(decode_string(token.value), token.value)
      case TokenType.TEMPLATE:
        self._advance()
        return TemplateLiteral(token.value)
      case TokenType.REGEX:
        self._advance()
        return RegExpLiteral(token.value)
      case TokenType.TRUE | TokenType.FALSE:
        self._advance()
        return BooleanLiteral(token.type == TokenType.TRUE)
      case TokenType.NULL:
        self._advance()
        return NullLiteral()
      case TokenType.THIS:
        self._advance()
        return ThisExpr()
      case TokenType.SUPER:
        self._advance()
        return SuperExpr()
      case TokenType.LPAREN:
        return self._parse_paren_expression()
      case TokenType.LBRACKET:
        return self._nested(self._parse_array_literal)
      case TokenType.LBRACE:
        return self._nested(self._parse_object_literal)
      case TokenType.FUNCTION:
        return self._parse_function_expr()
      case TokenType.CLASS:
        name, superclass, body = self._parse_class_head()
        return ClassExpr(name, superclass, body)
    raise ParseError(f"Unexpected token '{token.value or token.type.name}'", token)

  def _parse_array_literal(self) -> ArrayExpr:
    """Parse: [a, , ...rest]"""
    self._advance()  # consume '['
    elements: list[Expr | None] = []
    while not self._check(TokenType.RBRACKET):
      if self._check(TokenType.COMMA):
        self._advance()
        elements.append(None)
        continue
      if self._check(TokenType.ELLIPSIS):
        self._advance()
        elements.append(SpreadElement(self._parse_assignment()))
      else:
        elements.append(self._parse_assignment())
      if not self._check(TokenType.RBRACKET):
        self._expect(TokenType.COMMA, "Expected ',' or ']'")
    self._advance()  # consume ']'
    return ArrayExpr(tuple(elements))

  def _parse_object_literal(self) -> ObjectExpr:
    """Parse: { key: value, shorthand, method() {}, [computed]: v, ...spread }"""
    self._advance()  # consume '{'
    properties: list[Property | SpreadElement] = []
    while not self._check(TokenType.RBRACE):
      if self._check(TokenType.ELLIPSIS):
        self._advance()
        properties.append(SpreadElement(self._parse_assignment()))
      else:
        properties.append(self._parse_property())
      if not self._check(TokenType.RBRACE):
        self._expect(TokenType.COMMA, "Expected ',' or '}'")
    self._advance()  # consume '}'
    return ObjectExpr(tuple(properties))

  def _parse_property(self) -> Property:
    is_async, is_generator, kind = self._parse_method_modifiers()
    key_token = self._current()
    key, computed = self._parse_property_name()

    if self._check(TokenType.LPAREN) or is_async or is_generator or kind != "method":
      value = self._parse_method_function(is_async, is_generator)
      return Property(key, value, kind, computed)

    if self._check(TokenType.COLON):
      self._advance()
      return Property(key, self._parse_assignment(), "init", computed)

    if not computed and key_token.type == TokenType.IDENT:
      return Property(key, Identifier(key_token.value), "init", False, shorthand=True)
    raise ParseError("Expected ':' after property name", self._current())


def parse(tokens: list[Token]) -> Program:
  """Convenience function to parse tokens."""
  return Parser(tokens).parse()
