"""JavaScript runtime support for compiled NoteG programs.

The preamble is bundled as ``noteg/runtime/preamble.js`` and inlined at the
top of every compiled file.
"""

from __future__ import annotations

import importlib.resources
from functools import lru_cache

# Names the preamble binds with ``let``; user code may rebind them
PREAMBLE_NAMES: tuple[str, ...] = ("print", "len", "str", "num", "type")

ESCAPE_PREFIX = "_$"

JS_RESERVED_WORDS: frozenset[str] = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const",
    "continue", "debugger", "default", "delete", "do", "else", "enum",
    "eval", "export", "extends", "false", "finally", "for", "function",
    "if", "implements", "import", "in", "instanceof", "interface", "let",
    "new", "null", "package", "private", "protected", "public", "return",
    "static", "super", "switch", "this", "throw", "true", "try", "typeof",
    "undefined", "var", "void", "while", "with", "yield",
})


def escape_identifier(name: str) -> str:
    """Prefix JavaScript reserved words with ``_$``.

    NoteG identifiers cannot contain ``$``, so escaped names never collide
    with user names or with the preamble's ``$`` helpers.
    """
    if name in JS_RESERVED_WORDS:
        return f"{ESCAPE_PREFIX}{name}"
    return name


@lru_cache(maxsize=1)
def load_preamble() -> str:
    """Return the bundled preamble source, without a trailing newline."""
    pkg = importlib.resources.files("noteg.runtime")
    return pkg.joinpath("preamble.js").read_text(encoding="utf-8").rstrip("\n")
