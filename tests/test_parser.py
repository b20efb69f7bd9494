"""Tests for the NoteG parser."""

from __future__ import annotations

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
    MatchExpr,
    ModuleDecl,
    NamedType,
    NullLit,
    NumberLit,
    PipeExpr,
    RecordLiteral,
    RecordPattern,
    RecordType,
    StringLit,
    TemplateExpr,
    TypeDecl,
    UnaryExpr,
    WildcardPattern,
)
from noteg.errors import LEXICAL_ERROR, PARSE_ERROR
from noteg.lexer import tokenize
from noteg.parser import Parser, parse
from tests.helpers import parse_errors, parse_ok


def parse_stmt(source: str):
    """Helper: parse and return the first statement."""
    program = parse_ok(source)
    assert len(program.statements) >= 1
    return program.statements[0]


def parse_expr(source: str):
    """Helper: parse a single expression statement and return its expression."""
    stmt = parse_stmt(source)
    assert isinstance(stmt, ExprStmt)
    return stmt.expr


class TestLiterals:
    def test_number(self):
        expr = parse_expr("42")
        assert isinstance(expr, NumberLit)
        assert expr.value == 42.0

    def test_decimal(self):
        assert parse_expr("2.5").value == 2.5

    def test_string(self):
        expr = parse_expr('"hi"')
        assert isinstance(expr, StringLit)
        assert expr.value == "hi"

    def test_bool_and_null(self):
        assert parse_expr("true") == BoolLit(True, parse_expr("true").span)
        assert isinstance(parse_expr("false"), BoolLit)
        assert isinstance(parse_expr("null"), NullLit)

    def test_array(self):
        expr = parse_expr("[1, 2, 3]")
        assert isinstance(expr, ArrayLiteral)
        assert [e.value for e in expr.elements] == [1.0, 2.0, 3.0]

    def test_array_trailing_comma(self):
        assert len(parse_expr("[1, 2,]").elements) == 2

    def test_record(self):
        expr = parse_expr('{ name: "x", age: 3 }')
        assert isinstance(expr, RecordLiteral)
        assert [f.name for f in expr.fields] == ["name", "age"]

    def test_record_with_string_key(self):
        expr = parse_expr('{ "content-type": "html" }')
        assert isinstance(expr, RecordLiteral)
        assert expr.fields[0].name == "content-type"

    def test_record_with_keyword_key(self):
        expr = parse_expr('{ type: "page" }')
        assert isinstance(expr, RecordLiteral)
        assert expr.fields[0].name == "type"

    def test_multiline_record(self):
        expr = parse_expr("{\n  a: 1,\n  b: 2\n}")
        assert isinstance(expr, RecordLiteral)
        assert len(expr.fields) == 2

    def test_empty_braces_are_empty_block(self):
        expr = parse_expr("{}")
        assert isinstance(expr, BlockExpr)
        assert expr.statements == []


class TestPrecedence:
    def test_multiplication_binds_tighter(self):
        expr = parse_expr("1 + 2 * 3")
        assert isinstance(expr, BinaryExpr)
        assert expr.op == "+"
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.op == "*"

    def test_same_band_groups_right(self):
        expr = parse_expr("a - b - c")
        assert expr.op == "-"
        assert isinstance(expr.left, Identifier)
        assert isinstance(expr.right, BinaryExpr)
        assert expr.right.left.name == "b"

    def test_parentheses_override(self):
        expr = parse_expr("(a - b) - c")
        assert isinstance(expr.left, BinaryExpr)
        assert isinstance(expr.right, Identifier)

    def test_comparison_below_arithmetic(self):
        expr = parse_expr("1 + 2 < 4")
        assert expr.op == "<"
        assert expr.left.op == "+"

    def test_equality_below_comparison(self):
        expr = parse_expr("a < b == c")
        assert expr.op == "=="
        assert expr.left.op == "<"

    def test_and_binds_tighter_than_or(self):
        expr = parse_expr("a || b && c")
        assert expr.op == "||"
        assert expr.right.op == "&&"

    def test_pipe_is_lowest(self):
        expr = parse_expr("a + 1 |> f")
        assert isinstance(expr, PipeExpr)
        assert isinstance(expr.left, BinaryExpr)

    def test_pipe_chain_groups_right(self):
        expr = parse_expr("x |> f |> g")
        assert isinstance(expr, PipeExpr)
        assert isinstance(expr.left, Identifier)
        assert isinstance(expr.right, PipeExpr)

    def test_unary_binds_tighter_than_binary(self):
        expr = parse_expr("-a * b")
        assert expr.op == "*"
        assert isinstance(expr.left, UnaryExpr)
        assert expr.left.op == "-"

    def test_not(self):
        expr = parse_expr("!a == b")
        assert expr.op == "=="
        assert isinstance(expr.left, UnaryExpr)

    def test_binary_continues_on_next_line(self):
        expr = parse_expr("1 +\n2")
        assert isinstance(expr, BinaryExpr)


class TestLongExpressions:
    def test_long_chain_groups_right(self):
        expr = parse_expr(" + ".join(["1"] * 2500))
        depth = 0
        while isinstance(expr, BinaryExpr):
            assert isinstance(expr.left, NumberLit)
            expr, depth = expr.right, depth + 1
        assert depth == 2499
        assert isinstance(expr, NumberLit)

    def test_bands_kept_in_long_chain(self):
        expr = parse_expr(" || ".join(["a && b"] * 1500))
        assert expr.op == "||"
        assert expr.left.op == "&&"
        assert expr.right.op == "||"

    def test_long_prefix_run(self):
        expr = parse_expr("!" * 2000 + "a")
        count = 0
        while isinstance(expr, UnaryExpr):
            expr, count = expr.operand, count + 1
        assert count == 2000
        assert expr.name == "a"

    def test_prefix_applies_after_postfix(self):
        expr = parse_expr("-a.b")
        assert isinstance(expr, UnaryExpr)
        assert isinstance(expr.operand, FieldExpr)

    def test_deep_nesting_is_an_error(self):
        errors = parse_errors("(" * 5000 + "1" + ")" * 5000)
        assert errors[0].code == PARSE_ERROR
        assert errors[0].message == "expression nested too deeply"


class TestPostfix:
    def test_call(self):
        expr = parse_expr("f(1, 2)")
        assert isinstance(expr, CallExpr)
        assert expr.callee.name == "f"
        assert len(expr.args) == 2

    def test_curried_call(self):
        expr = parse_expr("f(1)(2)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, CallExpr)

    def test_field_then_index(self):
        expr = parse_expr("a.b[0]")
        assert isinstance(expr, IndexExpr)
        assert isinstance(expr.obj, FieldExpr)
        assert expr.obj.name == "b"

    def test_call_on_field(self):
        expr = parse_expr("site.render(page)")
        assert isinstance(expr, CallExpr)
        assert isinstance(expr.callee, FieldExpr)

    def test_type_builtin_call(self):
        expr = parse_expr("type(x)")
        assert isinstance(expr, CallExpr)
        assert expr.callee == Identifier("type", expr.callee.span)


class TestLambdas:
    def test_arrow_lambda(self):
        expr = parse_expr("fn(x, y) => x + y")
        assert isinstance(expr, LambdaExpr)
        assert expr.params == ["x", "y"]
        assert isinstance(expr.body, BinaryExpr)

    def test_thin_arrow_lambda(self):
        assert isinstance(parse_expr("fn(x) -> x"), LambdaExpr)

    def test_block_lambda(self):
        expr = parse_expr("fn(x) {\n  let y = x\n  y\n}")
        assert isinstance(expr.body, BlockExpr)
        assert len(expr.body.statements) == 2

    def test_no_params(self):
        assert parse_expr("fn() => 1").params == []

    def test_named_function_is_let(self):
        stmt = parse_stmt("fn add(a, b) => a + b")
        assert isinstance(stmt, LetStmt)
        assert stmt.name == "add"
        assert isinstance(stmt.value, LambdaExpr)

    def test_nested_lambda(self):
        expr = parse_expr("fn(n) => fn(x) => x + n")
        assert isinstance(expr.body, LambdaExpr)

    def test_duplicate_parameter(self):
        errors = parse_errors("fn(x, x) => x")
        assert "duplicate parameter 'x'" in errors[0].message


class TestConditionals:
    def test_if_then_else(self):
        expr = parse_expr("if a then b else c")
        assert isinstance(expr, IfExpr)
        assert expr.else_branch.name == "c"

    def test_if_without_else(self):
        assert parse_expr("if a then b").else_branch is None

    def test_block_without_then(self):
        expr = parse_expr("if a { 1 } else { 2 }")
        assert isinstance(expr.then_branch, BlockExpr)
        assert isinstance(expr.else_branch, BlockExpr)

    def test_else_on_next_line(self):
        expr = parse_expr("if a then 1\nelse 2")
        assert isinstance(expr.else_branch, NumberLit)

    def test_else_if_chain(self):
        expr = parse_expr("if a then 1 else if b then 2 else 3")
        assert isinstance(expr.else_branch, IfExpr)

    def test_missing_then(self):
        errors = parse_errors("if a b")
        assert "expected 'then'" in errors[0].message


class TestMatch:
    def test_match_arms(self):
        expr = parse_expr('match x with { 1 => "one", _ => "other" }')
        assert isinstance(expr, MatchExpr)
        assert len(expr.arms) == 2
        assert isinstance(expr.arms[0].pattern, LiteralPattern)
        assert isinstance(expr.arms[1].pattern, WildcardPattern)

    def test_newline_separated_arms(self):
        expr = parse_expr("match x with {\n  1 => a\n  n => b\n}")
        assert len(expr.arms) == 2
        assert isinstance(expr.arms[1].pattern, BindingPattern)

    def test_structured_patterns(self):
        expr = parse_expr("match p with { [a, _] => a, { name: n, age } => n, -1 => 0 }")
        first, second, third = (arm.pattern for arm in expr.arms)
        assert isinstance(first, ArrayPattern)
        assert isinstance(second, RecordPattern)
        assert [f.name for f in second.fields] == ["name", "age"]
        assert third.value == -1.0


class TestTemplates:
    def test_string_template(self):
        expr = parse_expr('"Hello {{ name }}!"')
        assert isinstance(expr, TemplateExpr)
        assert isinstance(expr.parts[0], StringLit)
        assert isinstance(expr.parts[1], Identifier)
        assert expr.parts[2].value == "!"

    def test_empty_literal_parts_dropped(self):
        expr = parse_expr('"{{ x }}"')
        assert len(expr.parts) == 1
        assert isinstance(expr.parts[0], Identifier)

    def test_expression_in_template(self):
        expr = parse_expr('"sum: {{ a + b }}"')
        assert isinstance(expr.parts[1], BinaryExpr)

    def test_bare_template(self):
        expr = parse_expr("{{ title }}")
        assert isinstance(expr, TemplateExpr)
        assert expr.parts[0].name == "title"

    def test_adjacent_strings_stay_separate(self):
        program = parse_ok('f("a", "b")')
        call = program.statements[0].expr
        assert all(isinstance(a, StringLit) for a in call.args)

    def test_plain_string_is_not_template(self):
        assert isinstance(parse_expr('"no interpolation"'), StringLit)


class TestBlocks:
    def test_block_statements(self):
        expr = parse_expr("{\n  let a = 1\n  a + 1\n}")
        assert isinstance(expr, BlockExpr)
        assert isinstance(expr.statements[0], LetStmt)
        assert isinstance(expr.statements[1], ExprStmt)

    def test_nested_blocks(self):
        expr = parse_expr("{ {1}}")
        assert isinstance(expr.statements[0].expr, BlockExpr)


class TestStatements:
    def test_let(self):
        stmt = parse_stmt("let x = 1")
        assert isinstance(stmt, LetStmt)
        assert stmt.name == "x"

    def test_const(self):
        assert isinstance(parse_stmt("const x = 1"), ConstStmt)

    def test_multiple_statements(self):
        program = parse_ok("let a = 1\n\nlet b = 2\na + b\n")
        assert len(program.statements) == 3

    def test_type_record(self):
        stmt = parse_stmt("type Point = { x: number, y: number }")
        assert isinstance(stmt, TypeDecl)
        assert isinstance(stmt.type_expr, RecordType)
        assert len(stmt.type_expr.fields) == 2

    def test_type_array(self):
        assert isinstance(parse_stmt("type Names = [string]").type_expr, ArrayType)

    def test_type_function(self):
        stmt = parse_stmt("type Op = (number, number) -> number")
        assert isinstance(stmt.type_expr, FunctionType)
        assert len(stmt.type_expr.params) == 2

    def test_type_generic(self):
        stmt = parse_stmt("type Index = Map<string, Array<number>>")
        assert isinstance(stmt.type_expr, NamedType)
        assert stmt.type_expr.args[1].args[0].name == "number"

    def test_generic_type_followed_by_statement(self):
        program = parse_ok("type Box = Array<number>\nlet x = 1")
        assert len(program.statements) == 2

    def test_module(self):
        stmt = parse_stmt("module Math {\n  export let pi = 3.14\n  let hidden = 1\n}")
        assert isinstance(stmt, ModuleDecl)
        assert stmt.name == "Math"
        assert len(stmt.body) == 2
        assert isinstance(stmt.body[0], ExportDecl)

    def test_bare_import(self):
        stmt = parse_stmt('import "layouts"')
        assert isinstance(stmt, ImportDecl)
        assert stmt.names == []
        assert stmt.source == "layouts"

    def test_named_import(self):
        stmt = parse_stmt('import header, footer from "partials"')
        assert stmt.names == ["header", "footer"]
        assert stmt.source == "partials"

    def test_export_binding(self):
        stmt = parse_stmt("export let x = 1")
        assert isinstance(stmt, ExportDecl)
        assert isinstance(stmt.target, LetStmt)
        assert stmt.exported_names == ["x"]

    def test_export_function(self):
        stmt = parse_stmt("export fn f(x) => x")
        assert stmt.exported_names == ["f"]

    def test_export_names(self):
        stmt = parse_stmt("export a, b")
        assert stmt.target == ["a", "b"]

    def test_statement_span(self):
        stmt = parse_stmt("let x = 10")
        assert (stmt.span.start_line, stmt.span.start_col) == (1, 1)
        assert stmt.span.end_col == 11

    def test_parser_class_on_tokens(self):
        result = Parser(tokenize("1 + 1", "t.noteg"), "t.noteg").parse()
        assert result.ok
        assert result.program.span.file == "t.noteg"


class TestErrors:
    def test_missing_identifier(self):
        errors = parse_errors("let = 5")
        assert errors[0].code == PARSE_ERROR
        assert "expected identifier after 'let'" in errors[0].message
        assert (errors[0].position.line, errors[0].position.column) == (1, 5)

    def test_every_independent_error_reported(self):
        errors = parse_errors("let = 1\nlet y = 2\nlet = 3")
        assert len(errors) == 2
        assert [e.position.line for e in errors] == [1, 3]

    def test_lexical_error_reported(self):
        errors = parse_errors('let s = "abc')
        assert errors[0].code == LEXICAL_ERROR
        assert errors[0].message == "unterminated string literal"

    def test_unexpected_character(self):
        errors = parse_errors("a & b")
        assert "unexpected character" in errors[0].message

    def test_trailing_tokens(self):
        errors = parse_errors("let x = 1 2")
        assert "expected end of statement" in errors[0].message

    def test_unclosed_paren(self):
        errors = parse_errors("f(1, 2")
        assert errors

    def test_duplicate_record_field(self):
        errors = parse_errors("{ a: 1, a: 2 }")
        assert "duplicate field 'a'" in errors[0].message

    def test_error_inside_block_recovers(self):
        errors = parse_errors("{\n  let = 1\n  2\n}\nlet = 3")
        assert len(errors) == 2

    def test_parse_never_raises(self):
        for source in ["}", ")", "let", "fn", "if", "match x with", "{{", "export", "import"]:
            result = parse(source)
            assert not result.ok
