"""Compile NoteG source to JavaScript.

The compiler lowers a desugared Program statement by statement. Every
top-level statement becomes exactly one output line, after a fixed header
and the bundled runtime preamble.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field

from noteg import __version__
from noteg.ast_nodes import (
    ArrayLiteral,
    BinaryExpr,
    BlockExpr,
    BoolLit,
    CallExpr,
    ConstStmt,
    ExportDecl,
    Expr,
    ExprStmt,
    FieldExpr,
    Identifier,
    IfExpr,
    ImportDecl,
    IndexExpr,
    LambdaExpr,
    LetStmt,
    MatchExpr,
    ModuleDecl,
    NullLit,
    NumberLit,
    PipeExpr,
    Program,
    RecordLiteral,
    Stmt,
    StringLit,
    TemplateExpr,
    TypeDecl,
    UnaryExpr,
)
from noteg.desugar import desugar, desugar_expr
from noteg.errors import PARSE_ERROR, CompileError, Diagnostic, error
from noteg.js_runtime import PREAMBLE_NAMES, escape_identifier, load_preamble
from noteg.parser import parse
from noteg.values import format_number

logger = logging.getLogger(__name__)

PROFILES = ("es2022", "commonjs")

MATCH_PLACEHOLDER = "(void 0 /* noteg: match expressions are not implemented */)"

_OPERATORS = {
    "+": "+", "-": "-", "*": "*", "/": "/",
    "==": "===", "!=": "!==",
    "<": "<", ">": ">", "<=": "<=", ">=": ">=",
    "&&": "&&", "||": "||",
}


@dataclass
class CompileOptions:
    profile: str = "es2022"
    minify: bool = False
    source_map: bool = False
    strict: bool = True


@dataclass
class CompileResult:
    """Generated code, or one aggregated error message."""

    code: str | None = None
    error: str | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class JsEmitter:
    """Emit JavaScript from a desugared NoteG program."""

    def __init__(self, program: Program, options: CompileOptions) -> None:
        self._program = program
        self._options = options
        # NoteG name to emitted name, one map per open JavaScript scope
        self._scopes: list[dict[str, str]] = []
        # Names bound more than once in each open scope
        self._rebound: list[set[str]] = []
        self._fresh: Counter[str] = Counter()

    # ── Public API ─────────────────────────────────────────────

    def emit(self) -> str:
        out: list[str] = [
            f"// Generated by noteg {__version__} (profile: {self._options.profile})",
        ]
        if self._options.strict:
            out.append('"use strict";')
        out.append(load_preamble())

        self._push_scope(self._program.statements, PREAMBLE_NAMES)
        for stmt in self._program.statements:
            out.append(self._emit_top_level(stmt))
        self._pop_scope()

        return "\n".join(out) + "\n"

    # ── Scopes ─────────────────────────────────────────────────

    def _push_scope(self, stmts: list[Stmt], declared: tuple[str, ...] | list[str] = ()) -> None:
        self._scopes.append({name: escape_identifier(name) for name in declared})
        self._rebound.append(_rebound_names(stmts))

    def _pop_scope(self) -> None:
        self._scopes.pop()
        self._rebound.pop()

    def _resolve(self, name: str) -> str:
        for scope in reversed(self._scopes):
            if name in scope:
                return scope[name]
        return escape_identifier(name)

    def _declare(self, keyword: str, name: str, value: str) -> str:
        """Declare *name*, or assign it when this scope already has it.

        *value* is emitted by the caller before the binding takes effect.
        A name that shadows an outer binding gets a fresh ``name$N`` so the
        initializer can still read the outer one. NoteG identifiers never
        contain ``$``, so fresh names cannot collide with user names.
        """
        scope = self._scopes[-1]
        if name in scope:
            return f"{scope[name]} = {value};"

        js_name = escape_identifier(name)
        if any(name in outer for outer in self._scopes[:-1]):
            self._fresh[name] += 1
            js_name = f"{js_name}${self._fresh[name]}"
        scope[name] = js_name
        if keyword == "const" and name in self._rebound[-1]:
            keyword = "let"
        return f"{keyword} {js_name} = {value};"

    # ── Statements ─────────────────────────────────────────────

    def _emit_top_level(self, stmt: Stmt) -> str:
        if isinstance(stmt, ExportDecl):
            return self._emit_export(stmt)
        if isinstance(stmt, ImportDecl):
            return self._emit_import(stmt)
        return self._emit_stmt(stmt)

    def _emit_stmt(self, stmt: Stmt) -> str:
        if isinstance(stmt, LetStmt):
            return self._declare("let", stmt.name, self._emit_expr(stmt.value))
        if isinstance(stmt, ConstStmt):
            return self._declare("const", stmt.name, self._emit_expr(stmt.value))
        if isinstance(stmt, ExprStmt):
            return f"{self._emit_expr(stmt.expr)};"
        if isinstance(stmt, TypeDecl):
            return f"/* type {stmt.name} */"
        if isinstance(stmt, ModuleDecl):
            return self._emit_module(stmt)
        if isinstance(stmt, ImportDecl):
            return f"/* noteg: import {json.dumps(stmt.source)} is only supported at the top level */"
        if isinstance(stmt, ExportDecl):
            # Inside modules and blocks an export only marks names
            if isinstance(stmt.target, list):
                return f"/* export {', '.join(stmt.target)} */"
            return self._emit_stmt(stmt.target)
        raise TypeError(f"unknown statement node: {type(stmt).__name__}")

    def _emit_export(self, stmt: ExportDecl) -> str:
        commonjs = self._options.profile == "commonjs"
        names = [escape_identifier(n) for n in stmt.exported_names]

        if isinstance(stmt.target, list):
            if commonjs:
                return " ".join(f"module.exports.{n} = {n};" for n in names)
            return f"export {{ {', '.join(names)} }};"

        line = self._emit_stmt(stmt.target)
        name = names[0]
        if commonjs:
            return f"{line} module.exports.{name} = {name};"
        if line.startswith(("let ", "const ")):
            return f"export {line}"
        return f"{line} export {{ {name} }};"

    def _emit_import(self, stmt: ImportDecl) -> str:
        source = json.dumps(stmt.source)
        commonjs = self._options.profile == "commonjs"
        if not stmt.names:
            return f"require({source});" if commonjs else f"import {source};"

        specs: list[str] = []
        for name in stmt.names:
            js_name = escape_identifier(name)
            self._scopes[-1][name] = js_name
            if js_name == name:
                specs.append(name)
            elif commonjs:
                specs.append(f"{name}: {js_name}")
            else:
                specs.append(f"{name} as {js_name}")
        if commonjs:
            return f"const {{ {', '.join(specs)} }} = require({source});"
        return f"import {{ {', '.join(specs)} }} from {source};"

    def _emit_module(self, decl: ModuleDecl) -> str:
        self._push_scope(decl.body)
        body = [self._emit_stmt(s) for s in decl.body]

        exported: list[str] = []
        for stmt in decl.body:
            if not isinstance(stmt, ExportDecl):
                continue
            for name in stmt.exported_names:
                key, js_name = escape_identifier(name), self._resolve(name)
                exported.append(key if key == js_name else f"{key}: {js_name}")
        self._pop_scope()
        body.append(f"return {{ {', '.join(exported)} }};" if exported else "return {};")
        return self._declare("const", decl.name, f"(() => {{ {' '.join(body)} }})()")

    def _emit_statements_returning(self, stmts: list[Stmt]) -> str:
        """Statements of a block body, ending with a return of its value."""
        lines: list[str] = []
        for stmt in stmts[:-1]:
            lines.append(self._emit_stmt(stmt))

        last = stmts[-1]
        if isinstance(last, ExprStmt):
            lines.append(f"return {self._emit_expr(last.expr)};")
        else:
            lines.append(self._emit_stmt(last))
            lines.append(f"return {self._statement_result(last)};")
        return " ".join(lines)

    # ── Expressions ────────────────────────────────────────────

    def _emit_expr(self, expr: Expr) -> str:
        if isinstance(expr, NumberLit):
            return format_number(expr.value)

        if isinstance(expr, StringLit):
            return json.dumps(expr.value, ensure_ascii=False)

        if isinstance(expr, BoolLit):
            return "true" if expr.value else "false"

        if isinstance(expr, NullLit):
            return "null"

        if isinstance(expr, Identifier):
            return self._resolve(expr.name)

        if isinstance(expr, BinaryExpr):
            return self._emit_binary(expr)

        if isinstance(expr, UnaryExpr):
            return f"({expr.op}{self._emit_expr(expr.operand)})"

        if isinstance(expr, CallExpr):
            callee = self._emit_operand(expr.callee)
            args = ", ".join(self._emit_expr(a) for a in expr.args)
            return f"{callee}({args})"

        if isinstance(expr, LambdaExpr):
            return self._emit_lambda(expr)

        if isinstance(expr, IfExpr):
            cond = self._emit_expr(expr.condition)
            then = self._emit_expr(expr.then_branch)
            other = self._emit_expr(expr.else_branch) if expr.else_branch is not None else "null"
            return f"({cond} ? {then} : {other})"

        if isinstance(expr, MatchExpr):
            return MATCH_PLACEHOLDER

        if isinstance(expr, BlockExpr):
            if not expr.statements:
                return "null"
            self._push_scope(expr.statements)
            body = self._emit_statements_returning(expr.statements)
            self._pop_scope()
            return f"(() => {{ {body} }})()"

        if isinstance(expr, ArrayLiteral):
            return "[" + ", ".join(self._emit_expr(e) for e in expr.elements) + "]"

        if isinstance(expr, RecordLiteral):
            if not expr.fields:
                return "({})"
            fields = ", ".join(
                f"{_record_key(f.name)}: {self._emit_expr(f.value)}" for f in expr.fields
            )
            return f"({{ {fields} }})"

        if isinstance(expr, FieldExpr):
            return f"{self._emit_operand(expr.obj)}.{escape_identifier(expr.name)}"

        if isinstance(expr, IndexExpr):
            return f"{self._emit_operand(expr.obj)}[{self._emit_expr(expr.index)}]"

        if isinstance(expr, TemplateExpr):
            return self._emit_template(expr)

        if isinstance(expr, PipeExpr):
            return self._emit_expr(desugar_expr(expr))

        raise TypeError(f"unknown expression node: {type(expr).__name__}")

    def _emit_binary(self, expr: BinaryExpr) -> str:
        """Emit a right-nested operator chain without recursing down it."""
        spine: list[BinaryExpr] = []
        node: Expr = expr
        while isinstance(node, BinaryExpr):
            spine.append(node)
            node = node.right

        code = self._emit_expr(node)
        for binary in reversed(spine):
            left = self._emit_expr(binary.left)
            code = f"({left} {_OPERATORS.get(binary.op, binary.op)} {code})"
        return code

    def _emit_operand(self, expr: Expr) -> str:
        """Callee or object of a postfix operation."""
        if isinstance(expr, NumberLit):
            return f"({self._emit_expr(expr)})"
        return self._emit_expr(expr)

    def _statement_result(self, stmt: Stmt) -> str:
        """JavaScript expression for the value a non-expression statement yields."""
        if isinstance(stmt, ExportDecl):
            if isinstance(stmt.target, list):
                return "null"
            stmt = stmt.target
        if isinstance(stmt, (LetStmt, ConstStmt, ModuleDecl)):
            return self._resolve(stmt.name)
        return "null"

    def _emit_lambda(self, expr: LambdaExpr) -> str:
        params = ", ".join(escape_identifier(p) for p in expr.params)
        if isinstance(expr.body, BlockExpr):
            # The block shares the function's scope so a rebinding of a
            # parameter assigns instead of redeclaring it
            stmts = expr.body.statements
            self._push_scope(stmts, expr.params)
            body = self._emit_statements_returning(stmts) if stmts else "return null;"
            self._pop_scope()
            return f"(({params}) => {{ {body} }})"
        self._push_scope([], expr.params)
        body = self._emit_expr(expr.body)
        self._pop_scope()
        return f"(({params}) => {body})"

    def _emit_template(self, expr: TemplateExpr) -> str:
        pieces: list[str] = []
        for part in expr.parts:
            if isinstance(part, StringLit):
                pieces.append(_escape_template_text(part.value))
            else:
                pieces.append(f"${{$interp({self._emit_expr(part)})}}")
        return "`" + "".join(pieces) + "`"


def _rebound_names(stmts: list[Stmt]) -> set[str]:
    counts: Counter[str] = Counter()
    for stmt in stmts:
        if isinstance(stmt, ExportDecl) and not isinstance(stmt.target, list):
            stmt = stmt.target
        if isinstance(stmt, (LetStmt, ConstStmt, ModuleDecl)):
            counts[stmt.name] += 1
    return {name for name, n in counts.items() if n > 1}


def _record_key(name: str) -> str:
    if name.isidentifier() and name.isascii():
        return escape_identifier(name)
    return json.dumps(name)


def _escape_template_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def compile_source(
    source: str,
    options: CompileOptions | None = None,
    filename: str = "<input>",
) -> CompileResult:
    """Compile *source* to JavaScript. Never raises for bad programs."""
    options = options or CompileOptions()

    if options.profile not in PROFILES:
        return CompileResult(
            error=f"unknown emission profile: {options.profile!r} "
                  f"(expected one of: {', '.join(PROFILES)})",
        )

    result = parse(source, filename)
    if not result.ok:
        return CompileResult(error=str(CompileError(result.errors)), diagnostics=list(result.errors))

    if options.minify:
        logger.debug("minify requested; output is emitted unminified")
    if options.source_map:
        logger.debug("source maps are not generated")

    try:
        program = desugar(result.program)
        code = JsEmitter(program, options).emit()
    except RecursionError:
        diag = error(PARSE_ERROR, "expression nested too deeply to compile")
        return CompileResult(error=str(CompileError([diag])), diagnostics=[diag])
    logger.debug("compiled %s: %d statement(s)", filename, len(program.statements))
    return CompileResult(code=code)
