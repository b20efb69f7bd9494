"""Shared test helpers for the NoteG test suite."""

from __future__ import annotations

from noteg.ast_nodes import Program
from noteg.compiler import CompileOptions, compile_source
from noteg.errors import Diagnostic
from noteg.interpreter import interpret
from noteg.parser import parse


def parse_ok(source: str) -> Program:
    """Parse source, asserting there are no errors."""
    result = parse(source, "test.noteg")
    assert result.ok, [d.summary() for d in result.errors]
    return result.program


def parse_errors(source: str) -> list[Diagnostic]:
    """Parse source, asserting it fails. Returns the errors."""
    result = parse(source, "test.noteg")
    assert not result.ok, "expected parse errors"
    assert result.program is None
    return result.errors


def run(source: str):
    """Interpret source, asserting success. Returns the final value."""
    result = interpret(source, "test.noteg", output=lambda _: None)
    assert result.ok, result.error.summary()
    return result.value


def run_output(source: str) -> list[str]:
    """Interpret source and return everything it printed."""
    lines: list[str] = []
    result = interpret(source, "test.noteg", output=lines.append)
    assert result.ok, result.error.summary()
    return lines


def run_fails(source: str, fragment: str) -> Diagnostic:
    """Interpret source, asserting an error whose message contains *fragment*."""
    result = interpret(source, "test.noteg", output=lambda _: None)
    assert not result.ok, f"expected an error, got value {result.value!r}"
    assert fragment in result.error.message, result.error.message
    return result.error


def compile_js(source: str, **options) -> str:
    """Compile source to JavaScript, asserting success."""
    result = compile_source(source, CompileOptions(**options), "test.noteg")
    assert result.ok, result.error
    return result.code


def body_lines(code: str, count: int) -> list[str]:
    """The last *count* lines of generated code (the user statements)."""
    return code.rstrip("\n").splitlines()[-count:]
