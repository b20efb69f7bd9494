"""NoteG Language Server, a pygls-based LSP for .noteg files.

Provides parse diagnostics, hover, go-to-definition and document symbols
via stdio transport.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from noteg import __version__
from noteg.ast_nodes import (
    ConstStmt,
    ExportDecl,
    LambdaExpr,
    LetStmt,
    ModuleDecl,
    Program,
    Stmt,
    TypeDecl,
)
from noteg.builtins import BUILTIN_DOCS
from noteg.errors import Diagnostic, Severity
from noteg.parser import parse
from noteg.source import Span

logger = logging.getLogger(__name__)

# ── Conversion helpers ────────────────────────────────────────────

_SEVERITY_MAP = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.NOTE: lsp.DiagnosticSeverity.Information,
}


def span_to_range(span: Span) -> lsp.Range:
    """Convert a 1-indexed, end-exclusive Span to a 0-indexed LSP Range."""
    return lsp.Range(
        start=lsp.Position(line=span.start_line - 1, character=span.start_col - 1),
        end=lsp.Position(line=span.end_line - 1, character=span.end_col - 1),
    )


def _to_lsp_diag(d: Diagnostic) -> lsp.Diagnostic:
    span_range = lsp.Range(start=lsp.Position(0, 0), end=lsp.Position(0, 0))
    if d.labels:
        span_range = span_to_range(d.labels[0].span)
    return lsp.Diagnostic(
        range=span_range,
        severity=_SEVERITY_MAP.get(d.severity, lsp.DiagnosticSeverity.Error),
        source="noteg",
        code=d.code,
        message=f"[{d.code}] {d.message}",
    )


# ── Per-document state ────────────────────────────────────────────


@dataclass
class DocumentState:
    """Cached analysis results for a single open document."""

    source: str = ""
    program: Program | None = None
    diagnostics: list[lsp.Diagnostic] = field(default_factory=list)


def _top_level_bindings(program: Program) -> dict[str, Stmt]:
    """Top-level names mapped to the statement that last binds them."""
    bindings: dict[str, Stmt] = {}
    for stmt in program.statements:
        if isinstance(stmt, ExportDecl) and not isinstance(stmt.target, list):
            stmt = stmt.target
        if isinstance(stmt, (LetStmt, ConstStmt, TypeDecl, ModuleDecl)):
            bindings[stmt.name] = stmt
    return bindings


def _describe_binding(stmt: Stmt) -> str:
    if isinstance(stmt, (LetStmt, ConstStmt)):
        keyword = "const" if isinstance(stmt, ConstStmt) else "let"
        if isinstance(stmt.value, LambdaExpr):
            return f"fn {stmt.name}({', '.join(stmt.value.params)})"
        return f"{keyword} {stmt.name}"
    if isinstance(stmt, TypeDecl):
        return f"type {stmt.name}"
    if isinstance(stmt, ModuleDecl):
        return f"module {stmt.name}"
    return ""


# ── Server ────────────────────────────────────────────────────────

server = LanguageServer(
    "noteg-lsp", __version__,
    text_document_sync_kind=lsp.TextDocumentSyncKind.Full,
)
_state: dict[str, DocumentState] = {}


def _analyze(uri: str, source: str) -> DocumentState:
    """Parse the document, cache the result, return its state."""
    ds = DocumentState(source=source)
    result = parse(source, uri)
    ds.program = result.program
    ds.diagnostics = [_to_lsp_diag(d) for d in result.errors]
    logger.debug("analyzed %s: %d diagnostic(s)", uri, len(ds.diagnostics))
    _state[uri] = ds
    return ds


def _get_word_at(source: str, line: int, character: int) -> str:
    """Extract the word at the given 0-indexed position."""
    lines = source.splitlines()
    if line < 0 or line >= len(lines):
        return ""
    text = lines[line]
    if character < 0 or character >= len(text):
        # Cursor may sit right after the word
        if 0 < character <= len(text):
            character -= 1
        else:
            return ""

    start = character
    while start > 0 and (text[start - 1].isalnum() or text[start - 1] == "_"):
        start -= 1

    end = character
    while end < len(text) and (text[end].isalnum() or text[end] == "_"):
        end += 1

    return text[start:end]


def hover_text(ds: DocumentState, word: str) -> str | None:
    """Markdown hover contents for *word*, or None."""
    if ds.program is not None:
        stmt = _top_level_bindings(ds.program).get(word)
        if stmt is not None:
            return f"```noteg\n{_describe_binding(stmt)}\n```"
    builtin = BUILTIN_DOCS.get(word)
    if builtin is not None:
        return f"**{builtin.name}**\n\n`{builtin.signature}`\n\n{builtin.doc}"
    return None


def _stmt_to_symbol(stmt: Stmt) -> lsp.DocumentSymbol | None:
    """Convert a statement to an LSP DocumentSymbol."""
    if isinstance(stmt, ExportDecl) and not isinstance(stmt.target, list):
        stmt = stmt.target

    if isinstance(stmt, (LetStmt, ConstStmt)):
        if isinstance(stmt.value, LambdaExpr):
            kind = lsp.SymbolKind.Function
        elif isinstance(stmt, ConstStmt):
            kind = lsp.SymbolKind.Constant
        else:
            kind = lsp.SymbolKind.Variable
        return lsp.DocumentSymbol(
            name=stmt.name,
            kind=kind,
            range=span_to_range(stmt.span),
            selection_range=span_to_range(stmt.span),
            detail=_describe_binding(stmt),
        )
    if isinstance(stmt, TypeDecl):
        return lsp.DocumentSymbol(
            name=stmt.name,
            kind=lsp.SymbolKind.Class,
            range=span_to_range(stmt.span),
            selection_range=span_to_range(stmt.span),
        )
    if isinstance(stmt, ModuleDecl):
        children = [s for s in (_stmt_to_symbol(inner) for inner in stmt.body) if s is not None]
        return lsp.DocumentSymbol(
            name=stmt.name,
            kind=lsp.SymbolKind.Module,
            range=span_to_range(stmt.span),
            selection_range=span_to_range(stmt.span),
            children=children,
        )
    return None


# ── LSP Feature Handlers ─────────────────────────────────────────


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    uri = params.text_document.uri
    ds = _analyze(uri, params.text_document.text)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    # Full sync: the last change holds the whole text
    source = params.content_changes[-1].text if params.content_changes else ""
    ds = _analyze(uri, source)
    server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(
        uri=uri,
        diagnostics=ds.diagnostics,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    _state.pop(params.text_document.uri, None)


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    ds = _state.get(params.text_document.uri)
    if ds is None:
        return None

    word = _get_word_at(ds.source, params.position.line, params.position.character)
    if not word:
        return None

    content = hover_text(ds, word)
    if content is None:
        return None
    return lsp.Hover(contents=lsp.MarkupContent(
        kind=lsp.MarkupKind.Markdown,
        value=content,
    ))


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
def definition(params: lsp.DefinitionParams) -> lsp.Location | None:
    uri = params.text_document.uri
    ds = _state.get(uri)
    if ds is None or ds.program is None:
        return None

    word = _get_word_at(ds.source, params.position.line, params.position.character)
    stmt = _top_level_bindings(ds.program).get(word)
    if stmt is None:
        return None
    return lsp.Location(uri=uri, range=span_to_range(stmt.span))


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.DocumentSymbol]:
    ds = _state.get(params.text_document.uri)
    if ds is None or ds.program is None:
        return []

    symbols: list[lsp.DocumentSymbol] = []
    for stmt in ds.program.statements:
        sym = _stmt_to_symbol(stmt)
        if sym is not None:
            symbols.append(sym)
    return symbols


def main() -> None:
    """Start the NoteG language server on stdio."""
    server.start_io()
