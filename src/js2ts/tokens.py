"""Token definitions for the JavaScript lexer."""

from enum import Enum, auto
from dataclasses import dataclass


class TokenType(Enum):
  # Keywords
  VAR = auto()
  LET = auto()
  CONST = auto()
  FUNCTION = auto()
  RETURN = auto()
  IF = auto()
  ELSE = auto()
  FOR = auto()
  WHILE = auto()
  DO = auto()
  BREAK = auto()
  CONTINUE = auto()
  NEW = auto()
  THIS = auto()
  SUPER = auto()
  CLASS = auto()
  EXTENDS = auto()
  TRUE = auto()
  FALSE = auto()
  NULL = auto()
  TYPEOF = auto()
  INSTANCEOF = auto()
  IN = auto()
  VOID = auto()
  DELETE = auto()
  TRY = auto()
  CATCH = auto()
  FINALLY = auto()
  THROW = auto()
  SWITCH = auto()
  CASE = auto()
  DEFAULT = auto()
  IMPORT = auto()
  EXPORT = auto()
  AWAIT = auto()
  YIELD = auto()

  # Identifiers and literals
  IDENT = auto()
  NUMBER = auto()
  STRING = auto()
  TEMPLATE = auto()
  REGEX = auto()

  # Punctuation
  LPAREN = auto()
  RPAREN = auto()
  LBRACKET = auto()
  RBRACKET = auto()
  LBRACE = auto()
  RBRACE = auto()
  COMMA = auto()
  SEMICOLON = auto()
  COLON = auto()
  DOT = auto()
  ELLIPSIS = auto()
  QUESTION = auto()
  QUESTION_DOT = auto()
  ARROW = auto()

  # Arithmetic
  PLUS = auto()
  MINUS = auto()
  STAR = auto()
  SLASH = auto()
  PERCENT = auto()
  STARSTAR = auto()
  PLUSPLUS = auto()
  MINUSMINUS = auto()

  # Comparison
  EQ = auto()
  NE = auto()
  STRICT_EQ = auto()
  STRICT_NE = auto()
  LT = auto()
  GT = auto()
  LE = auto()
  GE = auto()

  # Bitwise and logical
  SHL = auto()
  SHR = auto()
  USHR = auto()
  AMP = auto()
  PIPE = auto()
  CARET = auto()
  TILDE = auto()
  BANG = auto()
  AND = auto()
  OR = auto()
  NULLISH = auto()

  # Assignment
  ASSIGN = auto()
  PLUS_ASSIGN = auto()
  MINUS_ASSIGN = auto()
  STAR_ASSIGN = auto()
  SLASH_ASSIGN = auto()
  PERCENT_ASSIGN = auto()
  STARSTAR_ASSIGN = auto()
  SHL_ASSIGN = auto()
  SHR_ASSIGN = auto()
  USHR_ASSIGN = auto()
  AMP_ASSIGN = auto()
  PIPE_ASSIGN = auto()
  CARET_ASSIGN = auto()
  AND_ASSIGN = auto()
  OR_ASSIGN = auto()
  NULLISH_ASSIGN = auto()

  # End of file
  EOF = auto()


KEYWORDS: dict[str, TokenType] = {
  "var": TokenType.VAR,
  "let": TokenType.LET,
  "const": TokenType.CONST,
  "function": TokenType.FUNCTION,
  "return": TokenType.RETURN,
  "if": TokenType.IF,
  "else": TokenType.ELSE,
  "for": TokenType.FOR,
  "while": TokenType.WHILE,
  "do": TokenType.DO,
  "break": TokenType.BREAK,
  "continue": TokenType.CONTINUE,
  "new": TokenType.NEW,
  "this": TokenType.THIS,
  "super": TokenType.SUPER,
  "class": TokenType.CLASS,
  "extends": TokenType.EXTENDS,
  "true": TokenType.TRUE,
  "false": TokenType.FALSE,
  "null": TokenType.NULL,
  "typeof": TokenType.TYPEOF,
  "instanceof": TokenType.INSTANCEOF,
  "in": TokenType.IN,
  "void": TokenType.VOID,
  "delete": TokenType.DELETE,
  "try": TokenType.TRY,
  "catch": TokenType.CATCH,
  "finally": TokenType.FINALLY,
  "throw": TokenType.THROW,
  "switch": TokenType.SWITCH,
  "case": TokenType.CASE,
  "default": TokenType.DEFAULT,
  "import": TokenType.IMPORT,
  "export": TokenType.EXPORT,
  "await": TokenType.AWAIT,
  "yield": TokenType.YIELD,
}

# Punctuators, matched longest first by the lexer
PUNCTUATORS: dict[str, TokenType] = {
  ">>>=": TokenType.USHR_ASSIGN,
  "...": TokenType.ELLIPSIS,
  "===": TokenType.STRICT_EQ,
  "!==": TokenType.STRICT_NE,
  "**=": TokenType.STARSTAR_ASSIGN,
  "<<=": TokenType.SHL_ASSIGN,
  ">>=": TokenType.SHR_ASSIGN,
  ">>>": TokenType.USHR,
  "&&=": TokenType.AND_ASSIGN,
  "||=": TokenType.OR_ASSIGN,
  "??=": TokenType.NULLISH_ASSIGN,
  "=>": TokenType.ARROW,
  "==": TokenType.EQ,
  "!=": TokenType.NE,
  "<=": TokenType.LE,
  ">=": TokenType.GE,
  "&&": TokenType.AND,
  "||": TokenType.OR,
  "??": TokenType.NULLISH,
  "?.": TokenType.QUESTION_DOT,
  "++": TokenType.PLUSPLUS,
  "--": TokenType.MINUSMINUS,
  "**": TokenType.STARSTAR,
  "<<": TokenType.SHL,
  ">>": TokenType.SHR,
  "+=": TokenType.PLUS_ASSIGN,
  "-=": TokenType.MINUS_ASSIGN,
  "*=": TokenType.STAR_ASSIGN,
  "/=": TokenType.SLASH_ASSIGN,
  "%=": TokenType.PERCENT_ASSIGN,
  "&=": TokenType.AMP_ASSIGN,
  "|=": TokenType.PIPE_ASSIGN,
  "^=": TokenType.CARET_ASSIGN,
  "(": TokenType.LPAREN,
  ")": TokenType.RPAREN,
  "[": TokenType.LBRACKET,
  "]": TokenType.RBRACKET,
  "{": TokenType.LBRACE,
  "}": TokenType.RBRACE,
  ",": TokenType.COMMA,
  ";": TokenType.SEMICOLON,
  ":": TokenType.COLON,
  ".": TokenType.DOT,
  "?": TokenType.QUESTION,
  "+": TokenType.PLUS,
  "-": TokenType.MINUS,
  "*": TokenType.STAR,
  "/": TokenType.SLASH,
  "%": TokenType.PERCENT,
  "<": TokenType.LT,
  ">": TokenType.GT,
  "&": TokenType.AMP,
  "|": TokenType.PIPE,
  "^": TokenType.CARET,
  "~": TokenType.TILDE,
  "!": TokenType.BANG,
  "=": TokenType.ASSIGN,
}


@dataclass(frozen=True, slots=True)
class Token:
  type: TokenType
  value: str  # Source text of the token (strings and templates keep their quotes)
  line: int
  column: int
  newline_before: bool = False  # A line break separates this token from the previous one
  comments: tuple[str, ...] = ()  # Comments between the previous token and this one

  def __repr__(self) -> str:
    return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
