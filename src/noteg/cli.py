"""NoteG toolchain CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from noteg import __version__
from noteg.compiler import PROFILES, CompileOptions, compile_source
from noteg.config import find_config, load_config
from noteg.errors import DiagnosticRenderer
from noteg.interpreter import interpret
from noteg.lexer import tokenize
from noteg.parser import parse
from noteg.project import scaffold
from noteg.values import to_display

SOURCE_SUFFIX = ".noteg"


def _read_source(file: str) -> tuple[str, str]:
    return Path(file).read_text(), str(file)


def _report(diagnostics, source: str, filename: str) -> None:
    renderer = DiagnosticRenderer(color=True, sources={filename: source})
    for diag in diagnostics:
        click.echo(renderer.render(diag), err=True)


@click.group()
@click.version_option(__version__, prog_name="noteg")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """The NoteG language toolchain."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def tokens(file: str) -> None:
    """Print the token stream of a NoteG source file."""
    source, filename = _read_source(file)
    for tok in tokenize(source, filename):
        click.echo(f"{tok.start.line}:{tok.start.column} {tok.kind.name} {tok.value!r}")


@main.command(name="parse")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def parse_cmd(file: str) -> None:
    """View the AST of a NoteG source file."""
    source, filename = _read_source(file)
    result = parse(source, filename)
    if not result.ok:
        _report(result.errors, source, filename)
        raise SystemExit(1)
    _dump_ast(result.program, 0)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def run(file: str) -> None:
    """Interpret a NoteG source file."""
    source, filename = _read_source(file)
    result = interpret(source, filename)
    if not result.ok:
        _report(result.diagnostics, source, filename)
        raise SystemExit(1)
    if result.value is not None:
        click.echo(to_display(result.value))


@main.command(name="compile")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Write JavaScript here instead of stdout.")
@click.option("--profile", type=click.Choice(PROFILES), default=None,
              help="Module format of the generated code.")
@click.option("--strict/--no-strict", default=None, help="Emit a strict-mode directive.")
@click.option("--minify/--no-minify", default=None, help="Request minified output.")
@click.option("--source-map/--no-source-map", default=None, help="Request a source map.")
def compile_cmd(
    file: str,
    output: str | None,
    profile: str | None,
    strict: bool | None,
    minify: bool | None,
    source_map: bool | None,
) -> None:
    """Compile a NoteG source file to JavaScript."""
    source, filename = _read_source(file)

    options = CompileOptions()
    try:
        config = load_config(find_config(Path(file)))
        options = CompileOptions(
            profile=config.compile.profile,
            minify=config.compile.minify,
            source_map=config.compile.source_map,
            strict=config.compile.strict,
        )
    except FileNotFoundError:
        pass

    if profile is not None:
        options.profile = profile
    if strict is not None:
        options.strict = strict
    if minify is not None:
        options.minify = minify
    if source_map is not None:
        options.source_map = source_map

    result = compile_source(source, options, filename)
    if not result.ok:
        if result.diagnostics:
            _report(result.diagnostics, source, filename)
        click.echo(f"error: {result.error}", err=True)
        raise SystemExit(1)

    if output is None:
        click.echo(result.code, nl=False)
    else:
        out_path = Path(output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(result.code)
        click.echo(f"compiled {filename} -> {out_path}")


@main.command()
@click.argument("path", default=".", type=click.Path(exists=True))
def check(path: str) -> None:
    """Parse every NoteG file under PATH and report errors."""
    target = Path(path)
    files = sorted(target.rglob(f"*{SOURCE_SUFFIX}")) if target.is_dir() else [target]

    if not files:
        click.echo(f"warning: no {SOURCE_SUFFIX} files found", err=True)
        return

    had_errors = False
    for noteg_file in files:
        source, filename = _read_source(str(noteg_file))
        result = parse(source, filename)
        if not result.ok:
            had_errors = True
            _report(result.errors, source, filename)

    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def highlight(file: str) -> None:
    """Print a NoteG source file with terminal syntax highlighting."""
    from pygments import highlight as pygments_highlight
    from pygments.formatters import TerminalFormatter

    from noteg.highlight import NotegLexer

    source, _ = _read_source(file)
    click.echo(pygments_highlight(source, NotegLexer(), TerminalFormatter()), nl=False)


@main.command()
@click.argument("name")
def new(name: str) -> None:
    """Create a new NoteG project."""
    try:
        project_dir = scaffold(name)
        click.echo(f"created project '{name}' at {project_dir}")
    except FileExistsError as e:
        click.echo(f"error: {e}", err=True)
        raise SystemExit(1)


@main.command()
def lsp() -> None:
    """Start the NoteG language server."""
    from noteg.lsp import main as lsp_main

    lsp_main()


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            if field_name == "span":
                continue
            value = getattr(node, field_name)
            if isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
