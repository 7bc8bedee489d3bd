"""
Runtime value model for rusp.

Values are plain Python objects: `int` (kept inside the signed 64-bit range),
`float`, `str`, `bool`, the `UNIT` singleton and `Closure` instances.
`value_kind` classifies them; `to_text` and `debug_repr` give the canonical
and debug text forms used by the coercion engine and the built-ins.
"""
import math
from decimal import Decimal
from enum import Enum
from typing import Any

from rusp.evaluator.closure import Closure

INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1

ANONYMOUS_NAME = "*anonymous*"


class Unit:
    """The empty result of statement-like expressions. Use the `UNIT` instance."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNIT"

    def __reduce__(self):
        return (Unit, ())


UNIT = Unit()


class ValueKind(str, Enum):
    INT = "Int"
    FLOAT = "Float"
    STR = "Str"
    BOOL = "Bool"
    UNIT = "Unit"
    CLOSURE = "Closure"

    def __str__(self) -> str:
        return self.value


def value_kind(value: Any) -> ValueKind:
    """
    Classifies a runtime value.

    Args:
        value: Any value produced by the evaluator.

    Returns:
        The matching ValueKind. A Python bool is Bool, never Int.

    Raises:
        TypeError: If the object is not a rusp value.
    """
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STR
    if value is UNIT:
        return ValueKind.UNIT
    if isinstance(value, Closure):
        return ValueKind.CLOSURE
    raise TypeError(f"Not a rusp value: {value!r} ({type(value).__name__})")


def in_int_range(value: int) -> bool:
    return INT_MIN <= value <= INT_MAX


def float_text(value: float) -> str:
    """
    Plain decimal text with the fewest digits that round-trip: no exponent
    and no trailing `.0` (`3.0` is `3`, `1e16` is `10000000000000000`).
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_text(value: Any) -> str:
    """Canonical text form, used by `+` on strings, text comparisons and printing."""
    kind = value_kind(value)
    if kind is ValueKind.STR:
        return value
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.INT:
        return str(value)
    if kind is ValueKind.FLOAT:
        return float_text(value)
    if kind is ValueKind.UNIT:
        return "()"
    return f"fn {value.name or ANONYMOUS_NAME}"


def debug_repr(value: Any) -> str:
    """Debug form written by `dbg`, e.g. `Int(42)` or `Str("hi")`."""
    kind = value_kind(value)
    if kind is ValueKind.STR:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'Str("{escaped}")'
    if kind is ValueKind.UNIT:
        return "Unit"
    if kind is ValueKind.CLOSURE:
        return f"Closure({value.name or ANONYMOUS_NAME}/{len(value.params)})"
    if kind is ValueKind.FLOAT and math.isfinite(value):
        return f"Float({value!r})"
    return f"{kind.value}({to_text(value)})"
