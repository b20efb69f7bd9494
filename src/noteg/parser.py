"""Parser for the NoteG language.

Transforms a token stream into an AST using a Pratt expression parser for
expressions and recursive descent for statements. Every binary band is
right-associative: an operator's right operand is parsed at the operator's
own binding power, so ``a - b - c`` groups as ``a - (b - c)``.

Errors never escape: each one is recorded with its position, the offending
token is discarded, and statement parsing is retried, so a single pass
reports every independent error.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from noteg.ast_nodes import (
    ArrayLiteral,
    ArrayPattern,
    ArrayType,
    BinaryExpr,
    BindingPattern,
    BlockExpr,
    BoolLit,
    CallExpr,
    ConstStmt,
    ExportDecl,
    Expr,
    ExprStmt,
    FieldExpr,
    FunctionType,
    Identifier,
    IfExpr,
    ImportDecl,
    IndexExpr,
    LambdaExpr,
    LetStmt,
    LiteralPattern,
    MatchArm,
    MatchExpr,
    ModuleDecl,
    NamedType,
    NullLit,
    NumberLit,
    Pattern,
    PipeExpr,
    Program,
    RecordField,
    RecordLiteral,
    RecordPattern,
    RecordPatternField,
    RecordType,
    RecordTypeField,
    Stmt,
    StringLit,
    TemplateExpr,
    TypeDecl,
    TypeExpr,
    UnaryExpr,
    WildcardPattern,
)
from noteg.errors import LEXICAL_ERROR, PARSE_ERROR, Diagnostic, error
from noteg.lexer import tokenize
from noteg.source import Position, Span
from noteg.tokens import KEYWORDS, Token, TokenKind

# ── Binding powers for the Pratt parser ──────────────────────────

_INFIX_BP: dict[TokenKind, int] = {
    TokenKind.PIPE_ARROW: 1,
    TokenKind.OR: 2,
    TokenKind.AND: 3,
    TokenKind.EQUAL: 4,
    TokenKind.NOT_EQUAL: 4,
    TokenKind.LESS: 5,
    TokenKind.GREATER: 5,
    TokenKind.LESS_EQUAL: 5,
    TokenKind.GREATER_EQUAL: 5,
    TokenKind.PLUS: 6,
    TokenKind.MINUS: 6,
    TokenKind.STAR: 7,
    TokenKind.SLASH: 7,
}


# Tokens usable as record keys and field names
_NAME_KINDS = frozenset({TokenKind.IDENTIFIER, *KEYWORDS.values()})


@dataclass
class ParseResult:
    """Either a complete program or the full list of parse errors."""

    program: Program | None
    errors: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Parser:
    """Parses a list of tokens into a NoteG AST."""

    def __init__(self, tokens: list[Token], filename: str = "<input>") -> None:
        self.tokens = tokens
        self.pos = 0
        self.filename = filename
        self.diagnostics: list[Diagnostic] = []

    # ── Token access ─────────────────────────────────────────────

    def _current(self) -> Token:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return self.tokens[-1]  # EOF

    def _peek(self, offset: int = 0) -> Token:
        idx = self.pos + offset
        if idx < len(self.tokens):
            return self.tokens[idx]
        return self.tokens[-1]

    def _at(self, kind: TokenKind) -> bool:
        return self._current().kind == kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._current().kind in kinds

    def _advance(self) -> Token:
        tok = self._current()
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def _expect(self, kind: TokenKind, what: str) -> Token:
        if self._current().kind == kind:
            return self._advance()
        self._fail(f"expected {what}")

    def _skip_newlines(self) -> None:
        while self._at(TokenKind.NEWLINE):
            self._advance()

    def _peek_past_newlines(self) -> Token:
        idx = self.pos
        while idx < len(self.tokens) - 1 and self.tokens[idx].kind == TokenKind.NEWLINE:
            idx += 1
        return self.tokens[idx]

    def _on_new_line(self) -> bool:
        """True when a line break precedes the current token.

        The lexer drops the NEWLINE after tokens such as ``>``, which can
        end a type argument list.
        """
        if self.pos == 0:
            return False
        return self._current().start.line > self.tokens[self.pos - 1].end.line

    def _span(self, start: Span, end: Span) -> Span:
        return Span(self.filename, start.start, end.end)

    # ── Errors ───────────────────────────────────────────────────

    def _fail(self, message: str) -> None:
        """Record an error at the current token and abort the statement."""
        tok = self._current()
        if tok.kind == TokenKind.ERROR:
            self.diagnostics.append(error(LEXICAL_ERROR, tok.value, tok.span))
        else:
            self.diagnostics.append(
                error(PARSE_ERROR, f"{message}, got {_describe(tok)}", tok.span)
            )
        raise _ParseError

    def _error_at(self, message: str, span: Span) -> None:
        """Record an error without aborting."""
        self.diagnostics.append(error(PARSE_ERROR, message, span))

    # ── Top-level parsing ────────────────────────────────────────

    def parse(self) -> ParseResult:
        """Parse the entire token stream into a Program."""
        statements = self._parse_statement_list(TokenKind.EOF)
        end = self._current().end
        span = Span(self.filename, Position(1, 1, 0), end)
        if self.diagnostics:
            return ParseResult(None, list(self.diagnostics))
        return ParseResult(Program(statements, span))

    def _parse_statement_list(self, terminator: TokenKind) -> list[Stmt]:
        """Parse statements until *terminator* (not consumed) or EOF."""
        statements: list[Stmt] = []
        self._skip_newlines()
        while not self._at(terminator) and not self._at(TokenKind.EOF):
            try:
                statements.append(self._parse_statement())
                if not (
                    self._at_any(TokenKind.NEWLINE, terminator, TokenKind.EOF)
                    or self._on_new_line()
                ):
                    self._fail("expected end of statement")
            except _ParseError:
                # Discard the offending token and retry
                if not self._at(terminator) and not self._at(TokenKind.EOF):
                    self._advance()
            self._skip_newlines()
        return statements

    # ── Statements ───────────────────────────────────────────────

    def _parse_statement(self) -> Stmt:
        tok = self._current()

        if tok.kind in (TokenKind.LET, TokenKind.CONST):
            return self._parse_binding()
        if tok.kind == TokenKind.FN and self._peek(1).kind == TokenKind.IDENTIFIER:
            return self._parse_function_decl()
        if tok.kind == TokenKind.TYPE and self._peek(1).kind == TokenKind.IDENTIFIER:
            return self._parse_type_decl()
        if tok.kind == TokenKind.MODULE:
            return self._parse_module_decl()
        if tok.kind == TokenKind.IMPORT:
            return self._parse_import_decl()
        if tok.kind == TokenKind.EXPORT:
            return self._parse_export_decl()

        expr = self._parse_expression(0)
        return ExprStmt(expr, expr.span)

    def _parse_binding(self) -> LetStmt | ConstStmt:
        keyword = self._advance()
        name_tok = self._expect(TokenKind.IDENTIFIER, f"identifier after '{keyword.value}'")
        self._expect(TokenKind.ASSIGN, f"'=' after '{keyword.value} {name_tok.value}'")
        value = self._parse_expression(0)
        span = self._span(keyword.span, value.span)
        if keyword.kind == TokenKind.CONST:
            return ConstStmt(name_tok.value, value, span)
        return LetStmt(name_tok.value, value, span)

    def _parse_function_decl(self) -> LetStmt:
        """``fn name(params) body`` binds a lambda to *name*."""
        start = self._advance()  # fn
        name_tok = self._advance()
        lam = self._parse_lambda_rest(start.span)
        return LetStmt(name_tok.value, lam, self._span(start.span, lam.span))

    def _parse_type_decl(self) -> TypeDecl:
        start = self._advance()  # type
        name_tok = self._advance()
        self._expect(TokenKind.ASSIGN, f"'=' after 'type {name_tok.value}'")
        type_expr = self._parse_type_expr()
        return TypeDecl(name_tok.value, type_expr, self._span(start.span, type_expr.span))

    def _parse_module_decl(self) -> ModuleDecl:
        start = self._advance()  # module
        name_tok = self._expect(TokenKind.IDENTIFIER, "module name")
        self._expect(TokenKind.LBRACE, f"'{{' after 'module {name_tok.value}'")
        body = self._parse_statement_list(TokenKind.RBRACE)
        end = self._expect(TokenKind.RBRACE, "'}' to close module")
        return ModuleDecl(name_tok.value, body, self._span(start.span, end.span))

    def _parse_import_decl(self) -> ImportDecl:
        start = self._advance()  # import
        names: list[str] = []
        if self._at(TokenKind.IDENTIFIER):
            names.append(self._advance().value)
            while self._at(TokenKind.COMMA):
                self._advance()
                names.append(self._expect(TokenKind.IDENTIFIER, "imported name").value)
            if not (self._at(TokenKind.IDENTIFIER) and self._current().value == "from"):
                self._fail("expected 'from' after imported names")
            self._advance()
        source_tok = self._expect(TokenKind.STRING, "module path string")
        return ImportDecl(names, source_tok.value, self._span(start.span, source_tok.span))

    def _parse_export_decl(self) -> ExportDecl:
        start = self._advance()  # export
        if self._at_any(TokenKind.LET, TokenKind.CONST):
            binding = self._parse_binding()
            return ExportDecl(binding, self._span(start.span, binding.span))
        if self._at(TokenKind.FN) and self._peek(1).kind == TokenKind.IDENTIFIER:
            fn_decl = self._parse_function_decl()
            return ExportDecl(fn_decl, self._span(start.span, fn_decl.span))

        first = self._expect(TokenKind.IDENTIFIER, "binding or name after 'export'")
        names = [first.value]
        end = first
        while self._at(TokenKind.COMMA):
            self._advance()
            end = self._expect(TokenKind.IDENTIFIER, "exported name")
            names.append(end.value)
        return ExportDecl(names, self._span(start.span, end.span))

    # ── Pratt expression parser ──────────────────────────────────

    def _parse_expression(self, min_bp: int) -> Expr:
        """Parse an expression whose operators bind at least *min_bp*.

        Operands and operators are collected in a loop and folded through
        an operator stack, so a long chain does not deepen the call stack.
        """
        operands: list[Expr] = [self._parse_unary()]
        operators: list[tuple[Token, int]] = []

        while True:
            tok = self._current()
            bp = _INFIX_BP.get(tok.kind)
            if bp is None or bp < min_bp:
                break
            # Right-associative: only strictly tighter operators fold first
            while operators and operators[-1][1] > bp:
                self._fold(operands, operators)
            self._advance()
            self._skip_newlines()
            operators.append((tok, bp))
            operands.append(self._parse_unary())

        while operators:
            self._fold(operands, operators)
        return operands[0]

    def _fold(self, operands: list[Expr], operators: list[tuple[Token, int]]) -> None:
        tok, _ = operators.pop()
        right = operands.pop()
        left = operands.pop()
        span = self._span(left.span, right.span)
        if tok.kind == TokenKind.PIPE_ARROW:
            operands.append(PipeExpr(left, right, span))
        else:
            operands.append(BinaryExpr(left, tok.value, right, span))

    def _parse_unary(self) -> Expr:
        prefixes: list[Token] = []
        while self._at_any(TokenKind.BANG, TokenKind.MINUS):
            prefixes.append(self._advance())
        expr = self._parse_postfix(self._parse_primary())
        for tok in reversed(prefixes):
            expr = UnaryExpr(tok.value, expr, self._span(tok.span, expr.span))
        return expr

    def _parse_postfix(self, expr: Expr) -> Expr:
        """Call parentheses, ``.field`` access and ``[index]`` access."""
        while True:
            if self._at(TokenKind.LPAREN):
                args, end = self._parse_delimited(
                    TokenKind.RPAREN, "')' to close argument list", self._parse_argument,
                )
                expr = CallExpr(expr, args, self._span(expr.span, end.span))
            elif self._at(TokenKind.DOT):
                self._advance()
                name_tok = self._current()
                if name_tok.kind not in _NAME_KINDS:
                    self._fail("expected field name after '.'")
                self._advance()
                expr = FieldExpr(expr, name_tok.value, self._span(expr.span, name_tok.span))
            elif self._at(TokenKind.LBRACKET):
                self._advance()
                index = self._parse_expression(0)
                end = self._expect(TokenKind.RBRACKET, "']' to close index")
                expr = IndexExpr(expr, index, self._span(expr.span, end.span))
            else:
                return expr

    def _parse_argument(self) -> Expr:
        return self._parse_expression(0)

    def _parse_delimited(self, closer: TokenKind, what: str, item):
        """Parse ``open item, item, ... close``; returns (items, closing token).

        The opening token is at the cursor. A comma or a line break separates
        items, and a trailing comma is allowed.
        """
        self._advance()  # opener
        items = []
        self._skip_newlines()
        while not self._at(closer):
            items.append(item())
            saw_newline = self._at(TokenKind.NEWLINE)
            self._skip_newlines()
            if self._at(TokenKind.COMMA):
                self._advance()
                self._skip_newlines()
            elif not self._at(closer) and not saw_newline:
                self._fail(f"expected ',' or {what}")
        end = self._advance()
        return items, end

    # ── Primary expressions ──────────────────────────────────────

    def _parse_primary(self) -> Expr:
        tok = self._current()

        if tok.kind == TokenKind.NUMBER:
            self._advance()
            return NumberLit(float(tok.value), tok.span)

        if tok.kind == TokenKind.STRING:
            nxt = self._peek(1)
            if nxt.kind == TokenKind.TEMPLATE_START and nxt.start.offset == tok.end.offset:
                return self._parse_template()
            self._advance()
            return StringLit(tok.value, tok.span)

        if tok.kind == TokenKind.TEMPLATE_START:
            return self._parse_template()

        if tok.kind == TokenKind.BOOL:
            self._advance()
            return BoolLit(tok.value == "true", tok.span)

        if tok.kind == TokenKind.NULL:
            self._advance()
            return NullLit(tok.span)

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            return Identifier(tok.value, tok.span)

        # `type` is a keyword, but `type(x)` calls the builtin
        if tok.kind == TokenKind.TYPE and self._peek(1).kind == TokenKind.LPAREN:
            self._advance()
            return Identifier(tok.value, tok.span)

        if tok.kind == TokenKind.LPAREN:
            self._advance()
            self._skip_newlines()
            expr = self._parse_expression(0)
            self._skip_newlines()
            self._expect(TokenKind.RPAREN, "')' to close parenthesized expression")
            return expr

        if tok.kind == TokenKind.LBRACKET:
            elements, end = self._parse_delimited(
                TokenKind.RBRACKET, "']' to close array", self._parse_argument,
            )
            return ArrayLiteral(elements, self._span(tok.span, end.span))

        if tok.kind == TokenKind.LBRACE:
            if self._looks_like_record():
                return self._parse_record()
            return self._parse_block()

        if tok.kind == TokenKind.FN:
            self._advance()
            return self._parse_lambda_rest(tok.span)

        if tok.kind == TokenKind.IF:
            return self._parse_if_expr()

        if tok.kind == TokenKind.MATCH:
            return self._parse_match_expr()

        self._fail("expected expression")

    def _parse_template(self) -> TemplateExpr:
        """Collect adjacent string parts and ``{{ expr }}`` interpolations."""
        start = self._current().span
        parts: list[Expr] = []
        end = start
        expect_string = self._at(TokenKind.STRING)

        while True:
            tok = self._current()
            if parts or end is not start:
                if tok.start.offset != end.end.offset:
                    break
            if tok.kind == TokenKind.STRING and (expect_string or end is not start):
                self._advance()
                if tok.value:
                    parts.append(StringLit(tok.value, tok.span))
                end = tok.span
                expect_string = False
                # A string part only continues into an adjacent interpolation
                nxt = self._current()
                if not (nxt.kind == TokenKind.TEMPLATE_START
                        and nxt.start.offset == tok.end.offset):
                    break
            elif tok.kind == TokenKind.TEMPLATE_START:
                self._advance()
                expr = self._parse_expression(0)
                end_tok = self._expect(TokenKind.TEMPLATE_END, "'}}' to close template expression")
                parts.append(expr)
                end = end_tok.span
            else:
                break

        return TemplateExpr(parts, self._span(start, end))

    def _looks_like_record(self) -> bool:
        """``{`` followed by ``name:`` or ``"name":`` opens a record literal."""
        idx = self.pos + 1
        while idx < len(self.tokens) and self.tokens[idx].kind == TokenKind.NEWLINE:
            idx += 1
        if idx + 1 >= len(self.tokens):
            return False
        key, colon = self.tokens[idx], self.tokens[idx + 1]
        return (key.kind in _NAME_KINDS or key.kind == TokenKind.STRING) \
            and colon.kind == TokenKind.COLON

    def _parse_record(self) -> RecordLiteral:
        start = self._current().span
        seen: set[str] = set()

        def parse_field() -> RecordField:
            key = self._current()
            if key.kind not in _NAME_KINDS and key.kind != TokenKind.STRING:
                self._fail("expected field name")
            self._advance()
            self._expect(TokenKind.COLON, f"':' after field '{key.value}'")
            self._skip_newlines()
            value = self._parse_expression(0)
            if key.value in seen:
                self._error_at(f"duplicate field '{key.value}' in record literal", key.span)
            seen.add(key.value)
            return RecordField(key.value, value, self._span(key.span, value.span))

        fields, end = self._parse_delimited(TokenKind.RBRACE, "'}' to close record", parse_field)
        return RecordLiteral(fields, self._span(start, end.span))

    def _parse_block(self) -> BlockExpr:
        start = self._advance()  # {
        statements = self._parse_statement_list(TokenKind.RBRACE)
        end = self._expect(TokenKind.RBRACE, "'}' to close block")
        return BlockExpr(statements, self._span(start.span, end.span))

    def _parse_lambda_rest(self, start: Span) -> LambdaExpr:
        """Parameters and body of a lambda; the ``fn`` (and name) are consumed."""
        if not self._at(TokenKind.LPAREN):
            self._fail("expected '(' to open parameter list")
        param_toks, _ = self._parse_delimited(
            TokenKind.RPAREN, "')' to close parameter list",
            lambda: self._expect(TokenKind.IDENTIFIER, "parameter name"),
        )
        params: list[str] = []
        for ptok in param_toks:
            if ptok.value in params:
                self._error_at(f"duplicate parameter '{ptok.value}'", ptok.span)
            params.append(ptok.value)

        if self._at_any(TokenKind.FAT_ARROW, TokenKind.ARROW):
            self._advance()
            body = self._parse_expression(0)
        elif self._at(TokenKind.LBRACE):
            body = self._parse_block()
        else:
            self._fail("expected '=>' or '{' before function body")
        return LambdaExpr(params, body, self._span(start, body.span))

    def _parse_if_expr(self) -> IfExpr:
        start = self._advance()  # if
        condition = self._parse_expression(0)
        self._skip_newlines()
        if self._at(TokenKind.THEN):
            self._advance()
            self._skip_newlines()
            then_branch = self._parse_expression(0)
        elif self._at(TokenKind.LBRACE):
            then_branch = self._parse_block()
        else:
            self._fail("expected 'then' after if condition")

        else_branch = None
        end = then_branch.span
        if self._peek_past_newlines().kind == TokenKind.ELSE:
            self._skip_newlines()
            self._advance()  # else
            self._skip_newlines()
            else_branch = self._parse_expression(0)
            end = else_branch.span
        return IfExpr(condition, then_branch, else_branch, self._span(start.span, end))

    def _parse_match_expr(self) -> MatchExpr:
        start = self._advance()  # match
        subject = self._parse_expression(0)
        self._expect(TokenKind.WITH, "'with' after match subject")
        self._skip_newlines()
        if not self._at(TokenKind.LBRACE):
            self._fail("expected '{' to open match arms")
        arms, end = self._parse_delimited(TokenKind.RBRACE, "'}' to close match", self._parse_match_arm)
        return MatchExpr(subject, arms, self._span(start.span, end.span))

    def _parse_match_arm(self) -> MatchArm:
        pattern = self._parse_pattern()
        self._expect(TokenKind.FAT_ARROW, "'=>' after pattern")
        self._skip_newlines()
        body = self._parse_expression(0)
        return MatchArm(pattern, body, self._span(pattern.span, body.span))

    # ── Patterns ─────────────────────────────────────────────────

    def _parse_pattern(self) -> Pattern:
        tok = self._current()

        if tok.kind == TokenKind.IDENTIFIER:
            self._advance()
            if tok.value == "_":
                return WildcardPattern(tok.span)
            return BindingPattern(tok.value, tok.span)

        if tok.kind == TokenKind.NUMBER:
            self._advance()
            return LiteralPattern(float(tok.value), tok.span)
        if tok.kind == TokenKind.MINUS and self._peek(1).kind == TokenKind.NUMBER:
            self._advance()
            num = self._advance()
            return LiteralPattern(-float(num.value), self._span(tok.span, num.span))
        if tok.kind == TokenKind.STRING:
            self._advance()
            return LiteralPattern(tok.value, tok.span)
        if tok.kind == TokenKind.BOOL:
            self._advance()
            return LiteralPattern(tok.value == "true", tok.span)
        if tok.kind == TokenKind.NULL:
            self._advance()
            return LiteralPattern(None, tok.span)

        if tok.kind == TokenKind.LBRACKET:
            elements, end = self._parse_delimited(
                TokenKind.RBRACKET, "']' to close array pattern", self._parse_pattern,
            )
            return ArrayPattern(elements, self._span(tok.span, end.span))

        if tok.kind == TokenKind.LBRACE:
            fields, end = self._parse_delimited(
                TokenKind.RBRACE, "'}' to close record pattern", self._parse_record_pattern_field,
            )
            return RecordPattern(fields, self._span(tok.span, end.span))

        self._fail("expected pattern")

    def _parse_record_pattern_field(self) -> RecordPatternField:
        name_tok = self._current()
        if name_tok.kind not in _NAME_KINDS:
            self._fail("expected field name in record pattern")
        self._advance()
        if self._at(TokenKind.COLON):
            self._advance()
            pattern = self._parse_pattern()
        else:
            pattern = BindingPattern(name_tok.value, name_tok.span)
        return RecordPatternField(name_tok.value, pattern, self._span(name_tok.span, pattern.span))

    # ── Type expressions ─────────────────────────────────────────

    def _parse_type_expr(self) -> TypeExpr:
        tok = self._current()

        if tok.kind in (TokenKind.IDENTIFIER, TokenKind.NULL):
            self._advance()
            args: list[TypeExpr] = []
            end = tok.span
            if self._at(TokenKind.LESS):
                self._advance()
                args.append(self._parse_type_expr())
                while self._at(TokenKind.COMMA):
                    self._advance()
                    args.append(self._parse_type_expr())
                end = self._expect(TokenKind.GREATER, "'>' to close type arguments").span
            return NamedType(tok.value, args, self._span(tok.span, end))

        if tok.kind == TokenKind.LBRACKET:
            self._advance()
            element = self._parse_type_expr()
            end = self._expect(TokenKind.RBRACKET, "']' to close array type")
            return ArrayType(element, self._span(tok.span, end.span))

        if tok.kind == TokenKind.LBRACE:
            fields, end = self._parse_delimited(
                TokenKind.RBRACE, "'}' to close record type", self._parse_record_type_field,
            )
            return RecordType(fields, self._span(tok.span, end.span))

        if tok.kind == TokenKind.LPAREN:
            params, _ = self._parse_delimited(
                TokenKind.RPAREN, "')' to close parameter types", self._parse_type_expr,
            )
            self._expect(TokenKind.ARROW, "'->' in function type")
            result = self._parse_type_expr()
            return FunctionType(params, result, self._span(tok.span, result.span))

        self._fail("expected type")

    def _parse_record_type_field(self) -> RecordTypeField:
        name_tok = self._current()
        if name_tok.kind not in _NAME_KINDS:
            self._fail("expected field name in record type")
        self._advance()
        self._expect(TokenKind.COLON, f"':' after field '{name_tok.value}'")
        type_expr = self._parse_type_expr()
        return RecordTypeField(name_tok.value, type_expr, self._span(name_tok.span, type_expr.span))


def _describe(tok: Token) -> str:
    if tok.kind == TokenKind.EOF:
        return "end of input"
    if tok.kind == TokenKind.NEWLINE:
        return "newline"
    if tok.kind == TokenKind.STRING:
        return f"string {tok.value!r}"
    return f"'{tok.value}'"


class _ParseError(Exception):
    """Internal exception for parser error recovery."""


def parse(source: str, filename: str = "<input>") -> ParseResult:
    """Lex and parse *source*. Never raises for malformed input."""
    tokens = tokenize(source, filename)
    try:
        return Parser(tokens, filename).parse()
    except RecursionError:
        return ParseResult(None, [error(PARSE_ERROR, "expression nested too deeply")])
