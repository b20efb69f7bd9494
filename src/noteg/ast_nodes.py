"""AST node definitions for the NoteG language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from noteg.source import Span

# ── Type expressions ─────────────────────────────────────────────


@dataclass(frozen=True)
class NamedType:
    name: str
    args: list[TypeExpr]
    span: Span


@dataclass(frozen=True)
class ArrayType:
    element: TypeExpr
    span: Span


@dataclass(frozen=True)
class RecordTypeField:
    name: str
    type_expr: TypeExpr
    span: Span


@dataclass(frozen=True)
class RecordType:
    fields: list[RecordTypeField]
    span: Span


@dataclass(frozen=True)
class FunctionType:
    params: list[TypeExpr]
    result: TypeExpr
    span: Span


TypeExpr = Union[NamedType, ArrayType, RecordType, FunctionType]


# ── Patterns ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class WildcardPattern:
    span: Span


@dataclass(frozen=True)
class BindingPattern:
    name: str
    span: Span


@dataclass(frozen=True)
class LiteralPattern:
    value: float | str | bool | None
    span: Span


@dataclass(frozen=True)
class ArrayPattern:
    elements: list[Pattern]
    span: Span


@dataclass(frozen=True)
class RecordPatternField:
    name: str
    pattern: Pattern
    span: Span


@dataclass(frozen=True)
class RecordPattern:
    fields: list[RecordPatternField]
    span: Span


Pattern = Union[WildcardPattern, BindingPattern, LiteralPattern, ArrayPattern, RecordPattern]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class NumberLit:
    value: float
    span: Span


@dataclass(frozen=True)
class StringLit:
    value: str
    span: Span


@dataclass(frozen=True)
class BoolLit:
    value: bool
    span: Span


@dataclass(frozen=True)
class NullLit:
    span: Span


@dataclass(frozen=True)
class Identifier:
    name: str
    span: Span


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: str
    right: Expr
    span: Span


@dataclass(frozen=True)
class UnaryExpr:
    op: str
    operand: Expr
    span: Span


@dataclass(frozen=True)
class CallExpr:
    callee: Expr
    args: list[Expr]
    span: Span


@dataclass(frozen=True)
class LambdaExpr:
    params: list[str]
    body: Expr
    span: Span


@dataclass(frozen=True)
class IfExpr:
    condition: Expr
    then_branch: Expr
    else_branch: Expr | None
    span: Span


@dataclass(frozen=True)
class MatchArm:
    pattern: Pattern
    body: Expr
    span: Span


@dataclass(frozen=True)
class MatchExpr:
    subject: Expr
    arms: list[MatchArm]
    span: Span


@dataclass(frozen=True)
class BlockExpr:
    statements: list[Stmt]
    span: Span


@dataclass(frozen=True)
class ArrayLiteral:
    elements: list[Expr]
    span: Span


@dataclass(frozen=True)
class RecordField:
    name: str
    value: Expr
    span: Span


@dataclass(frozen=True)
class RecordLiteral:
    fields: list[RecordField]
    span: Span


@dataclass(frozen=True)
class FieldExpr:
    obj: Expr
    name: str
    span: Span


@dataclass(frozen=True)
class IndexExpr:
    obj: Expr
    index: Expr
    span: Span


@dataclass(frozen=True)
class PipeExpr:
    left: Expr
    right: Expr
    span: Span


@dataclass(frozen=True)
class TemplateExpr:
    parts: list[Expr]  # StringLit segments and embedded expressions, in order
    span: Span


Expr = Union[
    NumberLit, StringLit, BoolLit, NullLit, Identifier,
    BinaryExpr, UnaryExpr, CallExpr, LambdaExpr, IfExpr, MatchExpr,
    BlockExpr, ArrayLiteral, RecordLiteral, FieldExpr, IndexExpr,
    PipeExpr, TemplateExpr,
]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class LetStmt:
    name: str
    value: Expr
    span: Span


@dataclass(frozen=True)
class ConstStmt:
    name: str
    value: Expr
    span: Span


@dataclass(frozen=True)
class ExprStmt:
    expr: Expr
    span: Span


@dataclass(frozen=True)
class TypeDecl:
    name: str
    type_expr: TypeExpr
    span: Span


@dataclass(frozen=True)
class ModuleDecl:
    name: str
    body: list[Stmt]
    span: Span


@dataclass(frozen=True)
class ImportDecl:
    names: list[str]  # empty for a bare ``import "path"``
    source: str
    span: Span


@dataclass(frozen=True)
class ExportDecl:
    target: LetStmt | ConstStmt | list[str]
    span: Span

    @property
    def exported_names(self) -> list[str]:
        if isinstance(self.target, list):
            return list(self.target)
        return [self.target.name]


Stmt = Union[LetStmt, ConstStmt, ExprStmt, TypeDecl, ModuleDecl, ImportDecl, ExportDecl]


@dataclass(frozen=True)
class Program:
    statements: list[Stmt]
    span: Span
