"""Lexer for JavaScript source text."""

from .tokens import KEYWORDS, PUNCTUATORS, Token, TokenType

# Longest punctuator first so that ">>>=" wins over ">>" and ">"
PUNCTUATOR_LENGTHS = sorted({len(p) for p in PUNCTUATORS}, reverse=True)

# After one of these tokens a "/" is division, anywhere else it starts a regex
DIVISION_CONTEXT: set[TokenType] = {
  TokenType.IDENT,
  TokenType.NUMBER,
  TokenType.STRING,
  TokenType.TEMPLATE,
  TokenType.REGEX,
  TokenType.RPAREN,
  TokenType.RBRACKET,
  TokenType.RBRACE,
  TokenType.THIS,
  TokenType.SUPER,
  TokenType.TRUE,
  TokenType.FALSE,
  TokenType.NULL,
  TokenType.PLUSPLUS,
  TokenType.MINUSMINUS,
}

SIMPLE_ESCAPES: dict[str, str] = {
  "n": "\n",
  "t": "\t",
  "r": "\r",
  "b": "\b",
  "f": "\f",
  "v": "\v",
  "0": "\0",
}


class LexerError(Exception):
  """Raised when the lexer encounters invalid input."""

  def __init__(self, message: str, line: int, column: int) -> None:
    super().__init__(f"{message} at line {line}, column {column}")
    self.line, self.column = line, column


def is_ident_start(ch: str) -> bool:
  return ch.isalpha() or ch in "_$"


def is_ident_part(ch: str) -> bool:
  return ch.isalnum() or ch in "_$"


def is_hex(text: str, length: int | None = None) -> bool:
  if not text or (length is not None and len(text) != length):
    return False
  return all(c in "0123456789abcdefABCDEF" for c in text)


def decode_string(raw: str) -> str:
  """Decode the value of a quoted string literal, quotes included in `raw`."""
  body = raw[1:-1]
  chars: list[str] = []
  i = 0
  while i < len(body):
    ch = body[i]
    if ch != "\\":
      chars.append(ch)
      i += 1
      continue
    i += 1
    esc = body[i] if i < len(body) else ""
    if esc in SIMPLE_ESCAPES:
      chars.append(SIMPLE_ESCAPES[esc])
      i += 1
    elif esc == "x" and is_hex(body[i + 1 : i + 3], 2):
      chars.append(chr(int(body[i + 1 : i + 3], 16)))
      i += 3
    elif esc == "u" and body[i + 1 : i + 2] == "{" and "}" in body[i:]:
      end = body.index("}", i)
      chars.append(chr(int(body[i + 2 : end], 16)) if is_hex(body[i + 2 : end]) else body[i + 2 : end])
      i = end + 1
    elif esc == "u" and is_hex(body[i + 1 : i + 5], 4):
      chars.append(chr(int(body[i + 1 : i + 5], 16)))
      i += 5
    elif esc in ("\n", "\r"):
      # Line continuation
      i += 1
    else:
      chars.append(esc)
      i += 1
  return "".join(chars)


class Lexer:
  """Tokenizes JavaScript source code, keeping comments as token trivia."""

  def __init__(self, source: str) -> None:
    self.source = source
    self.pos = 0
    self.line = 1
    self.column = 1
    self.tokens: list[Token] = []
    self.pending_comments: list[str] = []
    self.saw_newline = False

  def _current(self) -> str:
    return self.source[self.pos] if self.pos < len(self.source) else ""

  def _peek(self, offset: int = 1) -> str:
    pos = self.pos + offset
    return self.source[pos] if pos < len(self.source) else ""

  def _advance(self) -> str:
    ch = self._current()
    self.pos += 1
    self.line, self.column = (self.line + 1, 1) if ch == "\n" else (self.line, self.column + 1)
    return ch

  def _emit(self, type: TokenType, value: str, line: int, col: int) -> None:
    newline_before = self.saw_newline or not self.tokens
    self.tokens.append(Token(type, value, line, col, newline_before, tuple(self.pending_comments)))
    self.pending_comments = []
    self.saw_newline = False

  def _read_while(self, pred) -> str:
    start = self.pos
    while self._current() and pred(self._current()):
      self._advance()
    return self.source[start : self.pos]

  def _regex_allowed(self) -> bool:
    return not self.tokens or self.tokens[-1].type not in DIVISION_CONTEXT

  def _read_line_comment(self) -> None:
    self.pending_comments.append(self._read_while(lambda c: c != "\n").rstrip())

  def _read_block_comment(self, line: int, col: int) -> None:
    start = self.pos
    self._advance()
    self._advance()
    while self._current() and not (self._current() == "*" and self._peek() == "/"):
      if self._advance() == "\n":
        self.saw_newline = True
    if not self._current():
      raise LexerError("Unterminated comment", line, col)
    self._advance()
    self._advance()
    self.pending_comments.append(self.source[start : self.pos])

  def _read_string(self, quote: str, line: int, col: int) -> None:
    """Read a quoted string literal, keeping its source text."""
    start = self.pos
    self._advance()  # consume opening quote
    while self._current() and self._current() != quote:
      if self._current() == "\n":
        raise LexerError("Unterminated string literal", line, col)
      if self._current() == "\\":
        self._advance()
      self._advance()
    if not self._current():
      raise LexerError("Unterminated string literal", line, col)
    self._advance()  # consume closing quote
    self._emit(TokenType.STRING, self.source[start : self.pos], line, col)

  def _skip_template(self, line: int, col: int) -> None:
    """Skip over a template literal, including nested substitutions."""
    self._advance()  # consume opening backtick
    while True:
      ch = self._current()
      if not ch:
        raise LexerError("Unterminated template literal", line, col)
      if ch == "`":
        self._advance()
        return
      if ch == "\\":
        self._advance()
        self._advance()
      elif ch == "$" and self._peek() == "{":
        self._advance()
        self._advance()
        self._skip_substitution(line, col)
      else:
        self._advance()

  def _skip_substitution(self, line: int, col: int) -> None:
    depth = 1
    while depth:
      ch = self._current()
      if not ch:
        raise LexerError("Unterminated template literal", line, col)
      match ch:
        case "{":
          depth += 1
          self._advance()
        case "}":
          depth -= 1
          self._advance()
        case "'" | '"':
          start_line, start_col = self.line, self.column
          quote = self._advance()
          while self._current() and self._current() != quote:
            if self._current() == "\\":
              self._advance()
            self._advance()
          if not self._current():
            raise LexerError("Unterminated string literal", start_line, start_col)
          self._advance()
        case "`":
          self._skip_template(self.line, self.column)
        case _:
          self._advance()

  def _read_template(self, line: int, col: int) -> None:
    start = self.pos
    self._skip_template(line, col)
    self._emit(TokenType.TEMPLATE, self.source[start : self.pos], line, col)

  def _read_regex(self, line: int, col: int) -> None:
    """Read a regular expression literal with its flags."""
    start = self.pos
    self._advance()  # consume opening slash
    in_class = False
    while True:
      ch = self._current()
      if not ch or ch == "\n":
        raise LexerError("Unterminated regular expression", line, col)
      if ch == "\\":
        self._advance()
      elif ch == "[":
        in_class = True
      elif ch == "]":
        in_class = False
      elif ch == "/" and not in_class:
        self._advance()
        break
      self._advance()
    self._read_while(is_ident_part)
    self._emit(TokenType.REGEX, self.source[start : self.pos], line, col)

  def _read_number(self, line: int, col: int) -> None:
    start = self.pos
    if self._current() == "0" and self._peek() in ("x", "X", "b", "B", "o", "O"):
      self._advance()
      self._advance()
      self._read_while(lambda c: c.isalnum() or c == "_")
    else:
      self._read_while(lambda c: c.isdigit() or c == "_")
      if self._current() == "." and self._peek() != ".":
        self._advance()
        self._read_while(lambda c: c.isdigit() or c == "_")
      if self._current() in ("e", "E") and (self._peek().isdigit() or self._peek() in ("+", "-")):
        self._advance()
        self._advance()
        self._read_while(str.isdigit)
      if self._current() == "n":
        self._advance()
    if is_ident_start(self._current()):
      raise LexerError("Identifier directly after number", self.line, self.column)
    self._emit(TokenType.NUMBER, self.source[start : self.pos], line, col)

  def _read_punctuator(self, line: int, col: int) -> None:
    for length in PUNCTUATOR_LENGTHS:
      text = self.source[self.pos : self.pos + length]
      if text not in PUNCTUATORS:
        continue
      # `a?.5:b` is a conditional, not optional chaining
      if text == "?." and self._peek(2).isdigit():
        continue
      for _ in range(length):
        self._advance()
      self._emit(PUNCTUATORS[text], text, line, col)
      return
    raise LexerError(f"Unexpected character '{self._current()}'", line, col)

  def tokenize(self) -> list[Token]:
    """Tokenize the entire source and return a list of tokens."""
    if self.source.startswith("#!"):
      self._read_line_comment()

    while self.pos < len(self.source):
      ch = self._current()
      line, col = self.line, self.column

      match ch:
        case "\n":
          self._advance()
          self.saw_newline = True
        case c if c.isspace():
          self._advance()
        case "/" if self._peek() == "/":
          self._read_line_comment()
        case "/" if self._peek() == "*":
          self._read_block_comment(line, col)
        case "/" if self._regex_allowed():
          self._read_regex(line, col)
        case c if c.isdigit() or (c == "." and self._peek().isdigit()):
          self._read_number(line, col)
        case '"' | "'":
          self._read_string(ch, line, col)
        case "`":
          self._read_template(line, col)
        case c if is_ident_start(c):
          ident = self._read_while(is_ident_part)
          self._emit(KEYWORDS.get(ident, TokenType.IDENT), ident, line, col)
        case _:
          self._read_punctuator(line, col)

    self._emit(TokenType.EOF, "", self.line, self.column)
    return self.tokens


def tokenize(source: str) -> list[Token]:
  """Convenience function to tokenize source code."""
  return Lexer(source).tokenize()
