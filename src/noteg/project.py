"""Project scaffolding for `noteg new`."""

from __future__ import annotations

from pathlib import Path

_NOTEG_TOML_TEMPLATE = """\
[package]
name = "{name}"
version = "0.1.0"
authors = []

[compile]
profile = "es2022"
minify = false
source_map = false
strict = true
"""

_MAIN_NOTEG_TEMPLATE = """\
// Hello from NoteG!
let name = "{name}"

fn shout(text) => text + "!"

print("Hello from {{{{ name }}}}" |> shout)
"""

_GITIGNORE = """\
dist/
__pycache__/
"""

_README_TEMPLATE = """\
# {name}

A NoteG project.

## Run

```bash
noteg run src/main.noteg
```

## Compile

```bash
noteg compile src/main.noteg -o dist/main.js
```
"""


def scaffold(name: str, parent: Path | None = None) -> Path:
    """Create a new NoteG project directory. Returns the project path."""
    base = parent or Path.cwd()
    project_dir = base / name

    if project_dir.exists():
        raise FileExistsError(f"Directory '{name}' already exists")

    src_dir = project_dir / "src"
    src_dir.mkdir(parents=True)

    (project_dir / "noteg.toml").write_text(_NOTEG_TOML_TEMPLATE.format(name=name))
    (src_dir / "main.noteg").write_text(_MAIN_NOTEG_TEMPLATE.format(name=name))
    (project_dir / ".gitignore").write_text(_GITIGNORE)
    (project_dir / "README.md").write_text(_README_TEMPLATE.format(name=name))

    return project_dir
