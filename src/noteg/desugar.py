"""Desugaring pass for the NoteG AST.

Runs between parsing and both back ends. The only surface form removed is
the pipe: ``x |> f(a)`` becomes ``f(x, a)`` and ``x |> e`` becomes ``e(x)``
for any other right side. The rewrite is bottom-up over the frozen AST
and rebuilds nodes with dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import replace

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


class Desugarer:
    """Rewrites pipe expressions into plain calls."""

    def desugar(self, program: Program) -> Program:
        return replace(program, statements=self._stmts(program.statements))

    def _stmts(self, stmts: list[Stmt]) -> list[Stmt]:
        return [self._stmt(s) for s in stmts]

    def _stmt(self, stmt: Stmt) -> Stmt:
        if isinstance(stmt, (LetStmt, ConstStmt)):
            return replace(stmt, value=self._expr(stmt.value))
        if isinstance(stmt, ExprStmt):
            return replace(stmt, expr=self._expr(stmt.expr))
        if isinstance(stmt, ModuleDecl):
            return replace(stmt, body=self._stmts(stmt.body))
        if isinstance(stmt, ExportDecl):
            if isinstance(stmt.target, list):
                return stmt
            return replace(stmt, target=self._stmt(stmt.target))
        if isinstance(stmt, (TypeDecl, ImportDecl)):
            return stmt
        raise TypeError(f"unknown statement node: {type(stmt).__name__}")

    def _expr(self, expr: Expr) -> Expr:
        if isinstance(expr, (NumberLit, StringLit, BoolLit, NullLit, Identifier)):
            return expr
        if isinstance(expr, (PipeExpr, BinaryExpr)):
            return self._chain(expr)
        if isinstance(expr, UnaryExpr):
            return replace(expr, operand=self._expr(expr.operand))
        if isinstance(expr, CallExpr):
            return replace(
                expr,
                callee=self._expr(expr.callee),
                args=[self._expr(a) for a in expr.args],
            )
        if isinstance(expr, LambdaExpr):
            return replace(expr, body=self._expr(expr.body))
        if isinstance(expr, IfExpr):
            return replace(
                expr,
                condition=self._expr(expr.condition),
                then_branch=self._expr(expr.then_branch),
                else_branch=(
                    self._expr(expr.else_branch) if expr.else_branch is not None else None
                ),
            )
        if isinstance(expr, MatchExpr):
            return replace(
                expr,
                subject=self._expr(expr.subject),
                arms=[replace(arm, body=self._expr(arm.body)) for arm in expr.arms],
            )
        if isinstance(expr, BlockExpr):
            return replace(expr, statements=self._stmts(expr.statements))
        if isinstance(expr, ArrayLiteral):
            return replace(expr, elements=[self._expr(e) for e in expr.elements])
        if isinstance(expr, RecordLiteral):
            return replace(
                expr,
                fields=[replace(f, value=self._expr(f.value)) for f in expr.fields],
            )
        if isinstance(expr, FieldExpr):
            return replace(expr, obj=self._expr(expr.obj))
        if isinstance(expr, IndexExpr):
            return replace(expr, obj=self._expr(expr.obj), index=self._expr(expr.index))
        if isinstance(expr, TemplateExpr):
            return replace(expr, parts=[self._expr(p) for p in expr.parts])
        raise TypeError(f"unknown expression node: {type(expr).__name__}")

    def _chain(self, expr: PipeExpr | BinaryExpr) -> Expr:
        """Rewrite a right-nested operator chain without recursing down it."""
        spine: list[PipeExpr | BinaryExpr] = []
        while isinstance(expr, (PipeExpr, BinaryExpr)):
            spine.append(expr)
            expr = expr.right

        result = self._expr(expr)
        for node in reversed(spine):
            left = self._expr(node.left)
            if isinstance(node, PipeExpr):
                result = self._pipe(left, result, node)
            else:
                result = replace(node, left=left, right=result)
        return result

    def _pipe(self, left: Expr, right: Expr, pipe: PipeExpr) -> CallExpr:
        # Both sides are already pipe-free
        if isinstance(right, CallExpr):
            return CallExpr(right.callee, [left, *right.args], pipe.span)
        return CallExpr(right, [left], pipe.span)


def desugar(program: Program) -> Program:
    """Return *program* with every pipe rewritten into a call."""
    return Desugarer().desugar(program)


def desugar_expr(expr: Expr) -> Expr:
    return Desugarer()._expr(expr)
