"""Pygments lexer for the NoteG language.

Built on the toolchain's own tokenizer, so highlighting always agrees with
what the parser sees. Text between tokens is whitespace or comments.
"""

from __future__ import annotations

import re

from pygments.lexer import Lexer
from pygments.token import (
    Comment,
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)

from noteg.builtins import BUILTIN_DOCS
from noteg.lexer import tokenize
from noteg.tokens import Token, TokenKind

_GAP_RE = re.compile(r"(//[^\n]*)|(\s+)|(.)", re.DOTALL)

_KIND_MAP = {
    TokenKind.STRING: String.Double,
    TokenKind.TEMPLATE_START: String.Interpol,
    TokenKind.TEMPLATE_END: String.Interpol,
    TokenKind.BOOL: Keyword.Constant,
    TokenKind.NULL: Keyword.Constant,
    TokenKind.LET: Keyword.Declaration,
    TokenKind.CONST: Keyword.Declaration,
    TokenKind.FN: Keyword.Declaration,
    TokenKind.TYPE: Keyword.Declaration,
    TokenKind.MODULE: Keyword.Declaration,
    TokenKind.IMPORT: Keyword.Namespace,
    TokenKind.EXPORT: Keyword.Namespace,
    TokenKind.IF: Keyword,
    TokenKind.THEN: Keyword,
    TokenKind.ELSE: Keyword,
    TokenKind.MATCH: Keyword,
    TokenKind.WITH: Keyword,
    TokenKind.FAT_ARROW: Punctuation,
    TokenKind.LPAREN: Punctuation,
    TokenKind.RPAREN: Punctuation,
    TokenKind.LBRACE: Punctuation,
    TokenKind.RBRACE: Punctuation,
    TokenKind.LBRACKET: Punctuation,
    TokenKind.RBRACKET: Punctuation,
    TokenKind.COMMA: Punctuation,
    TokenKind.COLON: Punctuation,
    TokenKind.NEWLINE: Text.Whitespace,
    TokenKind.ERROR: Error,
}


def _token_type(tok: Token):
    if tok.kind == TokenKind.NUMBER:
        return Number.Float if "." in tok.value else Number.Integer
    if tok.kind == TokenKind.IDENTIFIER:
        if tok.value in BUILTIN_DOCS:
            return Name.Builtin
        if tok.value[:1].isupper():
            return Name.Class
        return Name
    return _KIND_MAP.get(tok.kind, Operator)


def _gap_tokens(text: str, start: int, end: int):
    for m in _GAP_RE.finditer(text, start, end):
        if m.group(1):
            yield m.start(), Comment.Single, m.group()
        elif m.group(2):
            yield m.start(), Text.Whitespace, m.group()
        else:
            yield m.start(), Text, m.group()


class NotegLexer(Lexer):
    """Pygments lexer for the NoteG language."""

    name = "NoteG"
    aliases = ["noteg"]
    filenames = ["*.noteg"]
    mimetypes = ["text/x-noteg"]

    def get_tokens_unprocessed(self, text):
        pos = 0
        for tok in tokenize(text):
            start, end = tok.start.offset, tok.end.offset
            if tok.kind == TokenKind.EOF or end <= start:
                continue
            if start > pos:
                yield from _gap_tokens(text, pos, start)
            yield start, _token_type(tok), text[start:end]
            pos = end
        if pos < len(text):
            yield from _gap_tokens(text, pos, len(text))
