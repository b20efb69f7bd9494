"""Lexer for the NoteG language.

Produces a stream of tokens from source text. Lexing is total: malformed
input becomes an ERROR token in place and scanning carries on, so the
token list always ends with exactly one EOF token.

Template interpolation shares characters with block syntax. ``{{`` is
matched before ``{``, and ``}}`` only closes a template when the innermost
open region is one; elsewhere it is two RBRACE tokens. Inside a string
literal ``{{`` suspends the string, and the matching ``}}`` resumes it.
"""

from __future__ import annotations

from noteg.source import Position
from noteg.tokens import (
    KEYWORDS,
    NEWLINE_SUPPRESSED_AFTER,
    ONE_CHAR_TOKENS,
    TWO_CHAR_OPERATORS,
    Token,
    TokenKind,
)

# Open-region markers kept on the lexer's region stack
_PAREN = "("
_BRACKET = "["
_BRACE = "{"
_TEMPLATE = "{{"
_STRING_TEMPLATE = '"{{'

_CLOSERS = {")": _PAREN, "]": _BRACKET, "}": _BRACE}
_OPENERS = {"(": _PAREN, "[": _BRACKET, "{": _BRACE}

# Regions in which a line break does not end a statement
_NEWLINE_FREE_REGIONS = frozenset({_PAREN, _BRACKET, _TEMPLATE, _STRING_TEMPLATE})

_ESCAPES = {"n": "\n", "t": "\t", "\\": "\\", '"': '"', "{": "{", "}": "}"}


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_ident_start(ch: str) -> bool:
    """Identifiers are ASCII letters, digits and underscores."""
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def is_ident_char(ch: str) -> bool:
    return is_ident_start(ch) or _is_digit(ch)


class Lexer:
    """Tokenizes NoteG source code."""

    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.col = 1
        self.prev_token: Token | None = None
        self.tokens: list[Token] = []
        self._regions: list[str] = []

    def lex(self) -> list[Token]:
        """Tokenize the entire source and return the token list."""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch in " \t\r":
                self._advance()
            elif ch == "\n":
                self._handle_newline()
            elif ch == "/" and self._peek(1) == "/":
                self._skip_line_comment()
            elif ch == '"':
                start = self._position()
                self._advance()
                self._lex_string_body(start)
            elif _is_digit(ch):
                self._lex_number()
            elif is_ident_start(ch):
                self._lex_identifier()
            else:
                self._lex_operator_or_punct()

        for region in reversed(self._regions):
            if region == _STRING_TEMPLATE:
                self._emit(TokenKind.ERROR, "unterminated string literal", self._position())
            elif region == _TEMPLATE:
                self._emit(TokenKind.ERROR, "unterminated template expression", self._position())

        self._emit(TokenKind.EOF, "", self._position())
        return self.tokens

    # ── Helpers ───────────────────────────────────────────────────

    def _peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return "\0"

    def _advance(self) -> str:
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        return ch

    def _position(self) -> Position:
        return Position(self.line, self.col, self.pos)

    def _emit(self, kind: TokenKind, value: str, start: Position) -> Token:
        tok = Token(kind, value, start, self._position(), self.filename)
        self.tokens.append(tok)
        self.prev_token = tok
        return tok

    # ── Newlines and comments ────────────────────────────────────

    def _handle_newline(self) -> None:
        start = self._position()
        self._advance()

        if self._regions and self._regions[-1] in _NEWLINE_FREE_REGIONS:
            return
        if self.prev_token is not None and self.prev_token.kind in NEWLINE_SUPPRESSED_AFTER:
            return
        # Don't emit duplicate newlines
        if self.prev_token is not None and self.prev_token.kind == TokenKind.NEWLINE:
            return

        self._emit(TokenKind.NEWLINE, "\n", start)

    def _skip_line_comment(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] != "\n":
            self._advance()

    # ── Strings ──────────────────────────────────────────────────

    def _lex_string_body(self, start: Position) -> None:
        """Lex string text up to the closing quote or an interpolation.

        *start* is where the current string part begins: the opening quote,
        or the end of the ``}}`` that resumed the string.
        """
        text: list[str] = []
        bad_escape: str | None = None

        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if ch == '"':
                self._advance()
                if bad_escape is not None:
                    self._emit(TokenKind.ERROR, f"unknown escape sequence: \\{bad_escape}", start)
                else:
                    self._emit(TokenKind.STRING, "".join(text), start)
                return
            if ch == "\n":
                break
            if ch == "\\":
                self._advance()
                if self.pos >= len(self.source) or self.source[self.pos] == "\n":
                    break
                esc = self._advance()
                if esc in _ESCAPES:
                    text.append(_ESCAPES[esc])
                elif bad_escape is None:
                    bad_escape = esc
                continue
            if ch == "{" and self._peek(1) == "{":
                if bad_escape is not None:
                    self._emit(TokenKind.ERROR, f"unknown escape sequence: \\{bad_escape}", start)
                else:
                    self._emit(TokenKind.STRING, "".join(text), start)
                open_start = self._position()
                self._advance()
                self._advance()
                self._emit(TokenKind.TEMPLATE_START, "{{", open_start)
                self._regions.append(_STRING_TEMPLATE)
                return
            text.append(self._advance())

        # Scanning resumes at the line break (or end of input)
        self._emit(TokenKind.ERROR, "unterminated string literal", start)

    # ── Numbers ──────────────────────────────────────────────────

    def _lex_number(self) -> None:
        start = self._position()
        text: list[str] = []
        while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
            text.append(self._advance())

        # A single decimal point must be followed by at least one digit
        if self._peek() == "." and _is_digit(self._peek(1)):
            text.append(self._advance())
            while self.pos < len(self.source) and _is_digit(self.source[self.pos]):
                text.append(self._advance())

        self._emit(TokenKind.NUMBER, "".join(text), start)

    # ── Identifiers and keywords ─────────────────────────────────

    def _lex_identifier(self) -> None:
        start = self._position()
        text: list[str] = []
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            if not is_ident_char(ch):
                break
            text.append(self._advance())
        word = "".join(text)
        self._emit(KEYWORDS.get(word, TokenKind.IDENTIFIER), word, start)

    # ── Operators and punctuation ────────────────────────────────

    def _lex_operator_or_punct(self) -> None:
        start = self._position()
        ch = self.source[self.pos]
        two = self.source[self.pos:self.pos + 2]

        if two == "{{":
            self._advance()
            self._advance()
            self._regions.append(_TEMPLATE)
            self._emit(TokenKind.TEMPLATE_START, "{{", start)
            return

        if two == "}}" and self._regions and self._regions[-1] in (_TEMPLATE, _STRING_TEMPLATE):
            region = self._regions.pop()
            self._advance()
            self._advance()
            self._emit(TokenKind.TEMPLATE_END, "}}", start)
            if region == _STRING_TEMPLATE:
                self._lex_string_body(self._position())
            return

        if two in TWO_CHAR_OPERATORS:
            self._advance()
            self._advance()
            self._emit(TWO_CHAR_OPERATORS[two], two, start)
            return

        self._advance()
        kind = ONE_CHAR_TOKENS.get(ch)
        if kind is None:
            self._emit(TokenKind.ERROR, f"unexpected character: {ch!r}", start)
            return

        if ch in _OPENERS:
            self._regions.append(_OPENERS[ch])
        elif ch in _CLOSERS and self._regions and self._regions[-1] == _CLOSERS[ch]:
            self._regions.pop()
        self._emit(kind, ch, start)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Scan *source* into tokens. Never raises; errors become ERROR tokens."""
    return Lexer(source, filename).lex()
