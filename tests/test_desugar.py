"""Tests for pipe desugaring."""

from __future__ import annotations

import dataclasses

from noteg.ast_nodes import BinaryExpr, CallExpr, Identifier, LambdaExpr, NumberLit, PipeExpr
from noteg.desugar import desugar
from tests.helpers import parse_ok


def desugared_expr(source: str):
    program = desugar(parse_ok(source))
    return program.statements[-1].expr


def contains_pipe(node) -> bool:
    """Walk every dataclass field looking for a PipeExpr."""
    if isinstance(node, PipeExpr):
        return True
    if isinstance(node, list):
        return any(contains_pipe(item) for item in node)
    if dataclasses.is_dataclass(node):
        return any(contains_pipe(getattr(node, f.name)) for f in dataclasses.fields(node))
    return False


class TestPipeRewrite:
    def test_pipe_into_name(self):
        expr = desugared_expr("x |> f")
        assert isinstance(expr, CallExpr)
        assert expr.callee.name == "f"
        assert [a.name for a in expr.args] == ["x"]

    def test_pipe_into_call_prepends_argument(self):
        expr = desugared_expr("x |> f(1, 2)")
        assert expr.callee.name == "f"
        assert isinstance(expr.args[0], Identifier)
        assert [a.value for a in expr.args[1:]] == [1.0, 2.0]

    def test_chain_rewrites_bottom_up(self):
        # a |> (f() |> g()) becomes g(a, f())
        expr = desugared_expr("a |> f() |> g()")
        assert expr.callee.name == "g"
        assert expr.args[0].name == "a"
        inner = expr.args[1]
        assert isinstance(inner, CallExpr)
        assert inner.callee.name == "f"
        assert inner.args == []

    def test_pipe_into_lambda(self):
        expr = desugared_expr("5 |> fn(x) => x * 2")
        assert isinstance(expr.callee, LambdaExpr)
        assert isinstance(expr.args[0], NumberLit)

    def test_span_kept(self):
        program = parse_ok("x |> f")
        before = program.statements[0].expr.span
        assert desugar(program).statements[0].expr.span == before


class TestNoPipesRemain:
    def test_nested_everywhere(self):
        source = "\n".join([
            "let a = x |> f",
            "let b = fn(y) => y |> g",
            "let c = { v: 1 |> h }",
            "let d = [1 |> h, 2]",
            'let e = "{{ 3 |> h }}"',
            "let f2 = if (1 |> h) then { 2 |> h } else 3 |> h",
            "module M {\n  export let m = 4 |> h\n}",
            "match 1 |> h with { _ => 2 |> h }",
            "(a |> b)[0 |> c].d",
        ])
        program = parse_ok(source)
        assert contains_pipe(program)
        assert not contains_pipe(desugar(program))

    def test_program_without_pipes_unchanged(self):
        program = parse_ok("let x = 1 + 2\nprint(x)")
        assert desugar(program) == program


class TestLongChains:
    def test_long_pipe_chain(self):
        expr = desugared_expr("x" + " |> f" * 2000)
        assert isinstance(expr, CallExpr)
        assert expr.callee.name == "f"
        assert len(expr.args) == 2000
        assert expr.args[0].name == "x"

    def test_pipes_inside_long_binary_chain(self):
        expr = desugared_expr(" + ".join(["(1 |> f)"] * 2000))
        count = 0
        while isinstance(expr, BinaryExpr):
            assert isinstance(expr.left, CallExpr)
            expr, count = expr.right, count + 1
        assert count == 1999
        assert isinstance(expr, CallExpr)
        assert expr.args[0].value == 1.0
