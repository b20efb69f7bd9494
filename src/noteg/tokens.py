"""Token kinds and token representation for the NoteG lexer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from noteg.source import Position, Span


class TokenKind(Enum):
    # Literals
    STRING = auto()
    NUMBER = auto()
    BOOL = auto()
    NULL = auto()

    IDENTIFIER = auto()

    # Keywords
    LET = auto()
    CONST = auto()
    FN = auto()
    IF = auto()
    THEN = auto()
    ELSE = auto()
    MATCH = auto()
    WITH = auto()
    TYPE = auto()
    MODULE = auto()
    IMPORT = auto()
    EXPORT = auto()

    # Operators
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    EQUAL = auto()
    NOT_EQUAL = auto()
    LESS = auto()
    GREATER = auto()
    LESS_EQUAL = auto()
    GREATER_EQUAL = auto()
    AND = auto()
    OR = auto()
    BANG = auto()
    ASSIGN = auto()
    ARROW = auto()
    FAT_ARROW = auto()
    PIPE_ARROW = auto()
    DOT = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    COMMA = auto()
    COLON = auto()

    # Template interpolation
    TEMPLATE_START = auto()
    TEMPLATE_END = auto()

    # Special
    NEWLINE = auto()
    EOF = auto()
    ERROR = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str
    start: Position
    end: Position
    file: str = "<input>"

    @property
    def span(self) -> Span:
        return Span(self.file, self.start, self.end)


KEYWORDS: dict[str, TokenKind] = {
    "let": TokenKind.LET,
    "const": TokenKind.CONST,
    "fn": TokenKind.FN,
    "if": TokenKind.IF,
    "then": TokenKind.THEN,
    "else": TokenKind.ELSE,
    "match": TokenKind.MATCH,
    "with": TokenKind.WITH,
    "type": TokenKind.TYPE,
    "module": TokenKind.MODULE,
    "import": TokenKind.IMPORT,
    "export": TokenKind.EXPORT,
    "true": TokenKind.BOOL,
    "false": TokenKind.BOOL,
    "null": TokenKind.NULL,
}

TWO_CHAR_OPERATORS: dict[str, TokenKind] = {
    "==": TokenKind.EQUAL,
    "!=": TokenKind.NOT_EQUAL,
    "<=": TokenKind.LESS_EQUAL,
    ">=": TokenKind.GREATER_EQUAL,
    "&&": TokenKind.AND,
    "||": TokenKind.OR,
    "->": TokenKind.ARROW,
    "=>": TokenKind.FAT_ARROW,
    "|>": TokenKind.PIPE_ARROW,
}

ONE_CHAR_TOKENS: dict[str, TokenKind] = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "<": TokenKind.LESS,
    ">": TokenKind.GREATER,
    "!": TokenKind.BANG,
    "=": TokenKind.ASSIGN,
    ".": TokenKind.DOT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
    ",": TokenKind.COMMA,
    ":": TokenKind.COLON,
}

NEWLINE_SUPPRESSED_AFTER: frozenset[TokenKind] = frozenset({
    TokenKind.COMMA,
    TokenKind.PLUS,
    TokenKind.MINUS,
    TokenKind.STAR,
    TokenKind.SLASH,
    TokenKind.EQUAL,
    TokenKind.NOT_EQUAL,
    TokenKind.LESS,
    TokenKind.GREATER,
    TokenKind.LESS_EQUAL,
    TokenKind.GREATER_EQUAL,
    TokenKind.AND,
    TokenKind.OR,
    TokenKind.PIPE_ARROW,
    TokenKind.FAT_ARROW,
    TokenKind.ARROW,
    TokenKind.COLON,
    TokenKind.ASSIGN,
    TokenKind.DOT,
})
