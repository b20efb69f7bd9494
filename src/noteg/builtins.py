"""The builtin function table installed into every global environment."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable

import click

from noteg.environment import Environment
from noteg.errors import NotegRuntimeError
from noteg.values import Builtin, Value, to_display, type_name


@dataclass(frozen=True)
class BuiltinDoc:
    name: str
    signature: str
    doc: str


BUILTIN_DOCS: dict[str, BuiltinDoc] = {
    d.name: d
    for d in [
        BuiltinDoc("print", "(value: any) -> null", "Print a value to stdout"),
        BuiltinDoc("len", "(value: string | array) -> number", "Get the length of a string or array"),
        BuiltinDoc("str", "(value: any) -> string", "Convert a value to a string"),
        BuiltinDoc("num", "(value: string) -> number", "Parse a string as a number"),
        BuiltinDoc("type", "(value: any) -> string", "Get the type of a value"),
    ]
}

# Plain decimal literals only; mirrors the compiled runtime's ``num``
_DECIMAL = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def _len(value: Value) -> float:
    if isinstance(value, (str, list)):
        return float(len(value))
    raise NotegRuntimeError(f"len: expected string or array, got {type_name(value)}")


def _str(value: Value) -> str:
    return to_display(value)


def _num(value: Value) -> float:
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _DECIMAL.fullmatch(text):
            result = float(text)
            if math.isfinite(result):
                return result
        raise NotegRuntimeError(f"num: cannot convert {value!r} to a number")
    raise NotegRuntimeError(f"num: expected string or number, got {type_name(value)}")


def _type(value: Value) -> str:
    return type_name(value)


def make_globals(output: Callable[[str], None] | None = None) -> Environment:
    """Build a fresh global environment holding the builtin functions.

    ``print`` writes through *output*; the default is ``click.echo``.
    """
    write = output if output is not None else click.echo

    def _print(*args: Value) -> None:
        write(" ".join(to_display(a) for a in args))
        return None

    env = Environment()
    for builtin in (
        Builtin("print", _print, None),
        Builtin("len", _len, 1),
        Builtin("str", _str, 1),
        Builtin("num", _num, 1),
        Builtin("type", _type, 1),
    ):
        env.define(builtin.name, builtin)
    return env
