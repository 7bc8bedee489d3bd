"""
Coercion engine: resolves every binary operator over two runtime values.

Numeric operands follow the promotion lattice Int < Float < Str. Once a Str
operand appears, `+` concatenates canonical text forms and comparisons compare
them; every other pairing the lattice does not cover is a TypeMismatch.
"""
import logging
import math
import operator
from typing import Any, Callable, Dict

from rusp.evaluator.values import (
    ValueKind, value_kind, to_text, in_int_range,
)
from rusp.system.errors import (
    TypeMismatchError, DivisionByZeroError, IntegerOverflowError,
)

logger = logging.getLogger(__name__)

# Two closures never compare equal, not even a closure with itself.
CLOSURES_COMPARE_EQUAL = False

NUMERIC_KINDS = (ValueKind.INT, ValueKind.FLOAT)
TEXT_KINDS = (ValueKind.INT, ValueKind.FLOAT, ValueKind.STR)

_ORDERINGS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


def _is_odd_integer(value: float) -> bool:
    return math.isfinite(value) and value.is_integer() and int(value) % 2 == 1


def float_divide(left: float, right: float) -> float:
    """IEEE-754 division: a zero divisor gives a signed infinity or NaN."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def float_power(base: float, exponent: float) -> float:
    """IEEE-754 `pow`: poles give infinities, domain errors give NaN."""
    if base == 0.0 and exponent < 0.0:
        if _is_odd_integer(exponent):
            return math.copysign(math.inf, base)
        return math.inf
    try:
        return math.pow(base, exponent)
    except ValueError:
        return math.nan
    except OverflowError:
        if base < 0.0 and _is_odd_integer(exponent):
            return -math.inf
        return math.inf


class CoercionEngine:
    """
    Applies binary operators to already-evaluated operands.
    Each operator maps to a handler in `OPERATOR_HANDLERS`; handlers receive
    the operator text so related operators can share one implementation.
    """

    def __init__(self):
        self.OPERATOR_HANDLERS: Dict[str, Callable[[str, Any, Any], Any]] = {
            "+": self._apply_add,
            "-": self._apply_arithmetic,
            "*": self._apply_arithmetic,
            "/": self._apply_divide,
            "**": self._apply_power,
            "<": self._apply_ordering,
            "<=": self._apply_ordering,
            ">": self._apply_ordering,
            ">=": self._apply_ordering,
            "=": self._apply_equal,
            "==": self._apply_equal,
            "!=": self._apply_not_equal,
            "&&": self._apply_logical,
            "||": self._apply_logical,
        }
        logger.debug(f"CoercionEngine initialized with operators: {list(self.OPERATOR_HANDLERS.keys())}")

    def apply(self, op: str, left: Any, right: Any) -> Any:
        """
        Resolves `left op right`.

        Args:
            op: One of the binary operator tokens.
            left: Evaluated left operand.
            right: Evaluated right operand.

        Returns:
            The resulting runtime value.

        Raises:
            TypeMismatchError: If the operand kinds are not valid for the operator.
            DivisionByZeroError: For Int division (or Int power) by zero.
            IntegerOverflowError: If an Int result leaves the signed 64-bit range.
            ValueError: For an unknown operator token.
        """
        handler = self.OPERATOR_HANDLERS.get(op)
        if handler is None:
            raise ValueError(f"Unknown binary operator '{op}'")
        result = handler(op, left, right)
        logger.debug(f"  '{op}': {left!r} {op} {right!r} -> {result!r}")
        return result

    # --- Helpers ---

    def _mismatch(self, op: str, left: Any, right: Any, details: str = "") -> TypeMismatchError:
        left_kind, right_kind = value_kind(left), value_kind(right)
        return TypeMismatchError(
            f"cannot apply '{op}' to {left_kind.value} and {right_kind.value}",
            operator=op,
            operand_kinds=(left_kind.value, right_kind.value),
            error_details=details,
        )

    def _checked_int(self, op: str, result: int) -> int:
        if not in_int_range(result):
            raise IntegerOverflowError(op, error_details=f"result {result} does not fit in 64 bits")
        return result

    def _numeric_kinds(self, op: str, left: Any, right: Any):
        left_kind, right_kind = value_kind(left), value_kind(right)
        if left_kind not in NUMERIC_KINDS or right_kind not in NUMERIC_KINDS:
            raise self._mismatch(op, left, right)
        return left_kind, right_kind

    # --- Arithmetic ---

    def _apply_add(self, op: str, left: Any, right: Any) -> Any:
        left_kind, right_kind = value_kind(left), value_kind(right)
        if ValueKind.STR in (left_kind, right_kind):
            if left_kind in TEXT_KINDS and right_kind in TEXT_KINDS:
                return to_text(left) + to_text(right)
            raise self._mismatch(op, left, right, "only Int, Float and Str concatenate")
        return self._apply_arithmetic(op, left, right)

    def _apply_arithmetic(self, op: str, left: Any, right: Any) -> Any:
        left_kind, right_kind = self._numeric_kinds(op, left, right)
        fn = {"+": operator.add, "-": operator.sub, "*": operator.mul}[op]
        if left_kind is ValueKind.INT and right_kind is ValueKind.INT:
            return self._checked_int(op, fn(left, right))
        return fn(float(left), float(right))

    def _apply_divide(self, op: str, left: Any, right: Any) -> Any:
        left_kind, right_kind = self._numeric_kinds(op, left, right)
        if left_kind is ValueKind.INT and right_kind is ValueKind.INT:
            if right == 0:
                raise DivisionByZeroError(op)
            # Truncates toward zero, unlike Python's floor division.
            quotient = abs(left) // abs(right)
            if (left < 0) != (right < 0):
                quotient = -quotient
            return self._checked_int(op, quotient)
        return float_divide(float(left), float(right))

    def _apply_power(self, op: str, left: Any, right: Any) -> Any:
        left_kind, right_kind = self._numeric_kinds(op, left, right)
        if left_kind is ValueKind.INT and right_kind is ValueKind.INT:
            if right >= 0:
                if abs(left) >= 2 and right > 63:
                    raise IntegerOverflowError(op, error_details=f"{left} ** {right} does not fit in 64 bits")
                return self._checked_int(op, left ** right)
            if left == 0:
                raise DivisionByZeroError(op)
        return float_power(float(left), float(right))

    # --- Comparison ---

    def _apply_ordering(self, op: str, left: Any, right: Any) -> bool:
        left_kind, right_kind = value_kind(left), value_kind(right)
        compare = _ORDERINGS[op]
        if ValueKind.STR in (left_kind, right_kind):
            if left_kind in TEXT_KINDS and right_kind in TEXT_KINDS:
                return compare(to_text(left), to_text(right))
            raise self._mismatch(op, left, right)
        self._numeric_kinds(op, left, right)
        if left_kind is ValueKind.INT and right_kind is ValueKind.INT:
            return compare(left, right)
        return compare(float(left), float(right))

    def _apply_equal(self, op: str, left: Any, right: Any) -> bool:
        left_kind, right_kind = value_kind(left), value_kind(right)
        if left_kind is ValueKind.BOOL or right_kind is ValueKind.BOOL:
            if left_kind is right_kind:
                return left == right
            raise self._mismatch(op, left, right, "Bool only compares with Bool")
        if left_kind is ValueKind.UNIT or right_kind is ValueKind.UNIT:
            if left_kind is right_kind:
                return True
            raise self._mismatch(op, left, right, "Unit only compares with Unit")
        if left_kind is ValueKind.CLOSURE or right_kind is ValueKind.CLOSURE:
            if left_kind is right_kind:
                return CLOSURES_COMPARE_EQUAL
            raise self._mismatch(op, left, right, "a closure only compares with a closure")
        if ValueKind.STR in (left_kind, right_kind):
            return to_text(left) == to_text(right)
        if left_kind is ValueKind.INT and right_kind is ValueKind.INT:
            return left == right
        return float(left) == float(right)

    def _apply_not_equal(self, op: str, left: Any, right: Any) -> bool:
        return not self._apply_equal(op, left, right)

    # --- Logical ---

    def _apply_logical(self, op: str, left: Any, right: Any) -> bool:
        if value_kind(left) is not ValueKind.BOOL or value_kind(right) is not ValueKind.BOOL:
            raise self._mismatch(op, left, right, f"'{op}' requires Bool operands")
        return (left and right) if op == "&&" else (left or right)
