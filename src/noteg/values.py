"""Runtime values for the NoteG interpreter.

Values are plain Python objects: ``None`` for null, ``bool``, ``float``
for every number, ``str``, ``list`` for arrays and ``dict`` for records.
Only functions need dedicated classes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from noteg.ast_nodes import Expr
    from noteg.environment import Environment


@dataclass(eq=False)
class Closure:
    """A user function together with the environment it was created in."""

    params: list[str]
    body: Expr
    env: Environment
    name: str | None = None


@dataclass(eq=False)
class Builtin:
    """A native function. ``arity`` of None accepts any argument count."""

    name: str
    fn: Callable[..., Any]
    arity: int | None = None


Value = Union[None, bool, float, str, list, dict, Closure, Builtin]


def type_name(value: Value) -> str:
    # bool before float: True is not a number here
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "record"
    if isinstance(value, Closure):
        return "function"
    if isinstance(value, Builtin):
        return "builtin"
    raise TypeError(f"not a NoteG value: {value!r}")


def format_number(value: float) -> str:
    """Format *value* the way JavaScript's ``String(number)`` does.

    Integral numbers print without a fractional part, and magnitudes of
    1e21 and above or below 1e-6 switch to exponent form.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    # Shortest round-trip digits, as value = 0.<digits> * 10**point
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    point = len(digit_tuple) + exponent
    count = len(digits)

    if count <= point <= 21:
        text = digits + "0" * (point - count)
    elif 0 < point <= 21:
        text = f"{digits[:point]}.{digits[point:]}"
    elif -6 < point <= 0:
        text = "0." + "0" * -point + digits
    else:
        power = point - 1
        mantissa = digits if count == 1 else f"{digits[0]}.{digits[1:]}"
        text = f"{mantissa}e{'+' if power >= 0 else '-'}{abs(power)}"
    return "-" + text if value < 0 else text


def to_display(value: Value) -> str:
    """String form used by ``print``, ``str`` and templates."""
    if isinstance(value, str):
        return value
    return _repr(value)


def _repr(value: Value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    if isinstance(value, list):
        return "[" + ", ".join(_repr(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{k}: {_repr(v)}" for k, v in value.items()) + "}"
    if isinstance(value, Closure):
        return f"<fn {value.name}>" if value.name else "<fn>"
    if isinstance(value, Builtin):
        return f"<builtin {value.name}>"
    raise TypeError(f"not a NoteG value: {value!r}")


def values_equal(left: Value, right: Value) -> bool:
    """Structural for primitives, identity for arrays, records and functions."""
    if type_name(left) != type_name(right):
        return False
    if left is None or isinstance(left, (bool, float, str)):
        return left == right
    return left is right
