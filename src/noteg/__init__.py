"""The NoteG language toolchain: lexer, parser, interpreter and compiler."""

from __future__ import annotations

__version__ = "0.1.0"

from noteg.compiler import CompileOptions, CompileResult, compile_source
from noteg.desugar import desugar
from noteg.interpreter import InterpretResult, interpret
from noteg.lexer import tokenize
from noteg.parser import ParseResult, parse

__all__ = [
    "CompileOptions",
    "CompileResult",
    "InterpretResult",
    "ParseResult",
    "__version__",
    "compile_source",
    "desugar",
    "interpret",
    "parse",
    "tokenize",
]
