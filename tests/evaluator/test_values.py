"""
Unit tests for the runtime value model: kinds, text form and debug form.
"""

import math

import pytest

from rusp.evaluator.closure import Closure
from rusp.evaluator.environment import RuspEnvironment
from rusp.evaluator.values import (
    UNIT, Unit, ValueKind, value_kind, to_text, debug_repr, in_int_range, INT_MAX, INT_MIN,
)
from rusp.parser.ast_nodes import Literal


@pytest.fixture
def closure():
    return Closure(["x"], Literal(value=1), RuspEnvironment(), name="inc")

# --- value_kind ---

@pytest.mark.parametrize("value, kind", [
    (1, ValueKind.INT),
    (-3, ValueKind.INT),
    (1.5, ValueKind.FLOAT),
    ("s", ValueKind.STR),
    (True, ValueKind.BOOL),
    (False, ValueKind.BOOL),
    (UNIT, ValueKind.UNIT),
])
def test_value_kind(value, kind):
    assert value_kind(value) is kind

def test_value_kind_closure(closure):
    assert value_kind(closure) is ValueKind.CLOSURE

def test_value_kind_rejects_foreign_objects():
    with pytest.raises(TypeError):
        value_kind([1, 2])
    with pytest.raises(TypeError):
        value_kind(None)

def test_unit_is_singleton():
    assert Unit() is UNIT
    assert repr(UNIT) == "UNIT"

def test_value_kind_is_str_enum():
    assert ValueKind.INT == "Int"
    assert str(ValueKind.CLOSURE) == "Closure"

# --- to_text ---

@pytest.mark.parametrize("value, text", [
    (42, "42"),
    (-7, "-7"),
    (6.8, "6.8"),
    (3.0, "3"),
    (-0.0, "-0"),
    (1e16, "10000000000000000"),
    (1e-7, "0.0000001"),
    (123456.75, "123456.75"),
    (0.1, "0.1"),
    ("da", "da"),
    (True, "true"),
    (False, "false"),
    (UNIT, "()"),
    (math.inf, "inf"),
    (-math.inf, "-inf"),
    (math.nan, "NaN"),
])
def test_to_text(value, text):
    assert to_text(value) == text

def test_to_text_closure(closure):
    assert to_text(closure) == "fn inc"
    anonymous = Closure([], Literal(value=1), RuspEnvironment())
    assert to_text(anonymous) == "fn *anonymous*"

# --- debug_repr ---

def test_debug_repr():
    assert debug_repr(3.0) == "Float(3.0)"
    assert debug_repr(float("inf")) == "Float(inf)"
    assert debug_repr(42) == "Int(42)"
    assert debug_repr(2.5) == "Float(2.5)"
    assert debug_repr(True) == "Bool(true)"
    assert debug_repr("a\"b") == 'Str("a\\"b")'
    assert debug_repr(UNIT) == "Unit"

def test_debug_repr_closure(closure):
    assert debug_repr(closure) == "Closure(inc/1)"

# --- Int range ---

def test_in_int_range_bounds():
    assert in_int_range(INT_MAX)
    assert in_int_range(INT_MIN)
    assert not in_int_range(INT_MAX + 1)
    assert not in_int_range(INT_MIN - 1)
