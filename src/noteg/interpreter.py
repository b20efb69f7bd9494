"""Tree-walking interpreter for NoteG programs.

Evaluates a desugared Program against a fresh global environment. The
first runtime error stops evaluation; it is raised internally as
NotegRuntimeError and turned into a diagnostic at the interpret() boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

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
from noteg.builtins import make_globals
from noteg.desugar import desugar
from noteg.environment import Environment
from noteg.errors import RUNTIME_ERROR, Diagnostic, NotegRuntimeError, error
from noteg.parser import parse
from noteg.source import Span
from noteg.values import Builtin, Closure, Value, to_display, type_name, values_equal

logger = logging.getLogger(__name__)

_NOT_INTERPOLABLE = frozenset({"array", "record", "function", "builtin"})


@dataclass
class InterpretResult:
    """The program's final value, or the error that stopped it."""

    value: Value = None
    error: Diagnostic | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


class Interpreter:
    """Evaluates statements and expressions of a desugared program."""

    def __init__(
        self,
        globals_env: Environment | None = None,
        *,
        output: Callable[[str], None] | None = None,
    ) -> None:
        self.globals = globals_env if globals_env is not None else make_globals(output)

    def run(self, program: Program) -> Value:
        """Run every top-level statement; the last one's value is returned."""
        return self._exec_statements(program.statements, self.globals)

    # ── Statements ───────────────────────────────────────────────

    def _exec_statements(self, stmts: list[Stmt], env: Environment) -> Value:
        value: Value = None
        for stmt in stmts:
            value = self._exec(stmt, env)
        return value

    def _exec(self, stmt: Stmt, env: Environment) -> Value:
        if isinstance(stmt, (LetStmt, ConstStmt)):
            value = self._eval(stmt.value, env)
            if isinstance(value, Closure) and value.name is None:
                value.name = stmt.name
            env.define(stmt.name, value)
            return value

        if isinstance(stmt, ExprStmt):
            return self._eval(stmt.expr, env)

        if isinstance(stmt, (TypeDecl, ImportDecl)):
            return None

        if isinstance(stmt, ModuleDecl):
            return self._exec_module(stmt, env)

        if isinstance(stmt, ExportDecl):
            if isinstance(stmt.target, list):
                for name in stmt.target:
                    if name not in env:
                        raise NotegRuntimeError(f"cannot export undefined name: {name}", stmt.span)
                return None
            return self._exec(stmt.target, env)

        raise NotegRuntimeError(f"unknown statement: {type(stmt).__name__}", stmt.span)

    def _exec_module(self, decl: ModuleDecl, env: Environment) -> dict[str, Value]:
        """Run the body in its own scope and bind the exported names as a record."""
        module_env = env.child()
        self._exec_statements(decl.body, module_env)

        exports: dict[str, Value] = {}
        for stmt in decl.body:
            if not isinstance(stmt, ExportDecl):
                continue
            for name in stmt.exported_names:
                try:
                    exports[name] = module_env.lookup_local(name)
                except KeyError:
                    raise NotegRuntimeError(
                        f"module {decl.name} exports undefined name: {name}", stmt.span,
                    ) from None
        env.define(decl.name, exports)
        return exports

    # ── Expressions ──────────────────────────────────────────────

    def _eval(self, expr: Expr, env: Environment) -> Value:
        if isinstance(expr, NumberLit):
            return expr.value
        if isinstance(expr, StringLit):
            return expr.value
        if isinstance(expr, BoolLit):
            return expr.value
        if isinstance(expr, NullLit):
            return None

        if isinstance(expr, Identifier):
            try:
                return env.lookup(expr.name)
            except KeyError:
                raise NotegRuntimeError(f"undefined variable: {expr.name}", expr.span) from None

        if isinstance(expr, BinaryExpr):
            return self._eval_binary(expr, env)
        if isinstance(expr, UnaryExpr):
            return self._eval_unary(expr, env)
        if isinstance(expr, CallExpr):
            return self._eval_call(expr, env)

        if isinstance(expr, LambdaExpr):
            return Closure(list(expr.params), expr.body, env)

        if isinstance(expr, IfExpr):
            cond = self._eval(expr.condition, env)
            if not isinstance(cond, bool):
                raise NotegRuntimeError(
                    f"if condition must be a bool, got {type_name(cond)}", expr.condition.span,
                )
            if cond:
                return self._eval(expr.then_branch, env)
            if expr.else_branch is not None:
                return self._eval(expr.else_branch, env)
            return None

        if isinstance(expr, MatchExpr):
            raise NotegRuntimeError("match expressions are not yet implemented", expr.span)

        if isinstance(expr, BlockExpr):
            return self._exec_statements(expr.statements, env.child())

        if isinstance(expr, ArrayLiteral):
            return [self._eval(e, env) for e in expr.elements]

        if isinstance(expr, RecordLiteral):
            return {f.name: self._eval(f.value, env) for f in expr.fields}

        if isinstance(expr, FieldExpr):
            obj = self._eval(expr.obj, env)
            if not isinstance(obj, dict):
                raise NotegRuntimeError(
                    f"cannot access field '{expr.name}' on {type_name(obj)}", expr.span,
                )
            if expr.name not in obj:
                raise NotegRuntimeError(f"record has no field '{expr.name}'", expr.span)
            return obj[expr.name]

        if isinstance(expr, IndexExpr):
            return self._eval_index(expr, env)

        if isinstance(expr, TemplateExpr):
            pieces: list[str] = []
            for part in expr.parts:
                value = self._eval(part, env)
                kind = type_name(value)
                if kind in _NOT_INTERPOLABLE:
                    raise NotegRuntimeError(f"cannot interpolate a value of type {kind}", part.span)
                pieces.append(to_display(value))
            return "".join(pieces)

        if isinstance(expr, PipeExpr):
            raise NotegRuntimeError("pipe expression was not desugared", expr.span)

        raise NotegRuntimeError(f"unknown expression: {type(expr).__name__}", expr.span)

    def _eval_binary(self, expr: BinaryExpr, env: Environment) -> Value:
        """Evaluate a right-nested operator chain with an explicit stack."""
        pending: list[tuple[BinaryExpr, Value]] = []
        node: Expr = expr
        while True:
            if not isinstance(node, BinaryExpr):
                result = self._eval(node, env)
                break
            left = self._eval(node.left, env)
            if node.op in ("&&", "||"):
                _require_bool(node.op, left, node.left.span)
                if (node.op == "&&" and not left) or (node.op == "||" and left):
                    result = left
                    break
            pending.append((node, left))
            node = node.right

        for binary, left in reversed(pending):
            result = _apply_binary(binary, left, result)
        return result

    def _eval_unary(self, expr: UnaryExpr, env: Environment) -> Value:
        operand = self._eval(expr.operand, env)
        if expr.op == "-":
            if not isinstance(operand, float):
                raise NotegRuntimeError(
                    f"cannot negate a value of type {type_name(operand)}", expr.span,
                )
            return -operand
        if expr.op == "!":
            if not isinstance(operand, bool):
                raise NotegRuntimeError(
                    f"'!' expects a bool, got {type_name(operand)}", expr.span,
                )
            return not operand
        raise NotegRuntimeError(f"unknown operator: {expr.op}", expr.span)

    def _eval_call(self, expr: CallExpr, env: Environment) -> Value:
        callee = self._eval(expr.callee, env)
        args = [self._eval(a, env) for a in expr.args]

        if isinstance(callee, Closure):
            if len(args) != len(callee.params):
                name = callee.name or "<anonymous>"
                raise NotegRuntimeError(
                    f"function {name} expects {len(callee.params)} argument(s), got {len(args)}",
                    expr.span,
                )
            call_env = callee.env.child()
            for param, arg in zip(callee.params, args):
                call_env.define(param, arg)
            return self._eval(callee.body, call_env)

        if isinstance(callee, Builtin):
            if callee.arity is not None and len(args) != callee.arity:
                raise NotegRuntimeError(
                    f"{callee.name} expects {callee.arity} argument(s), got {len(args)}",
                    expr.span,
                )
            try:
                return callee.fn(*args)
            except NotegRuntimeError as exc:
                if exc.span is None:
                    raise NotegRuntimeError(exc.message, expr.span) from None
                raise

        raise NotegRuntimeError(f"cannot call a value of type {type_name(callee)}", expr.span)

    def _eval_index(self, expr: IndexExpr, env: Environment) -> Value:
        obj = self._eval(expr.obj, env)
        index = self._eval(expr.index, env)
        if not isinstance(obj, (list, str)):
            raise NotegRuntimeError(f"cannot index a value of type {type_name(obj)}", expr.span)
        if not isinstance(index, float):
            raise NotegRuntimeError(
                f"index must be a number, got {type_name(index)}", expr.index.span,
            )
        if not index.is_integer():
            raise NotegRuntimeError(
                f"index must be an integer, got {to_display(index)}", expr.index.span,
            )
        i = int(index)
        if not 0 <= i < len(obj):
            raise NotegRuntimeError(
                f"index {i} out of bounds for {type_name(obj)} of length {len(obj)}",
                expr.index.span,
            )
        return obj[i]


def _apply_binary(expr: BinaryExpr, left: Value, right: Value) -> Value:
    op = expr.op

    if op in ("&&", "||"):
        _require_bool(op, right, expr.right.span)
        return right

    if op == "==":
        return values_equal(left, right)
    if op == "!=":
        return not values_equal(left, right)

    if op in ("<", ">", "<=", ">="):
        if not (
            (isinstance(left, float) and isinstance(right, float))
            or (isinstance(left, str) and isinstance(right, str))
        ):
            raise _operand_error(op, left, right, expr.span)
        if op == "<":
            return left < right
        if op == ">":
            return left > right
        if op == "<=":
            return left <= right
        return left >= right

    if op == "+" and isinstance(left, str) and isinstance(right, str):
        return left + right
    if not (isinstance(left, float) and isinstance(right, float)):
        raise _operand_error(op, left, right, expr.span)
    if op == "+":
        return left + right
    if op == "-":
        return left - right
    if op == "*":
        return left * right
    if op == "/":
        if right == 0:
            raise NotegRuntimeError("division by zero", expr.span)
        return left / right
    raise NotegRuntimeError(f"unknown operator: {op}", expr.span)


def _require_bool(op: str, value: Value, span: Span) -> None:
    if not isinstance(value, bool):
        raise NotegRuntimeError(f"'{op}' expects bool operands, got {type_name(value)}", span)


def _operand_error(op: str, left: Value, right: Value, span: Span) -> NotegRuntimeError:
    return NotegRuntimeError(
        f"cannot apply '{op}' to {type_name(left)} and {type_name(right)}", span,
    )


def interpret(
    source: str,
    filename: str = "<input>",
    *,
    output: Callable[[str], None] | None = None,
) -> InterpretResult:
    """Parse, desugar and evaluate *source*. Never raises for bad programs."""
    result = parse(source, filename)
    if not result.ok:
        logger.debug("parse failed with %d error(s)", len(result.errors))
        return InterpretResult(None, result.errors[0], list(result.errors))

    interpreter = Interpreter(output=output)
    try:
        value = interpreter.run(desugar(result.program))
    except NotegRuntimeError as exc:
        diag = exc.to_diagnostic()
        logger.debug("runtime error: %s", diag.summary())
        return InterpretResult(None, diag, [diag])
    except RecursionError:
        diag = error(RUNTIME_ERROR, "maximum recursion depth exceeded")
        return InterpretResult(None, diag, [diag])
    return InterpretResult(value)
