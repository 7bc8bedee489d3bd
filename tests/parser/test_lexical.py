"""
Tests for the lexical layer of the rusp grammar: literals, keywords,
identifiers, operators, comments and token positions.
"""

import pytest

from rusp.parser.ast_nodes import Literal, Identifier, Let, BinaryOp, BuiltinCall
from rusp.system.errors import RuspSyntaxError


def literal_values(parser, source):
    return [node.value for node in parser.parse_string(source)]

# --- Keywords and identifiers ---

def test_keyword_prefix_is_an_identifier(parser):
    (node,) = parser.parse_string("lettuce")
    assert node == Identifier(name="lettuce", line=1, column=1)

def test_builtin_prefix_is_an_identifier(parser):
    nodes = parser.parse_string("printer inputs dbg_x")
    assert [n.name for n in nodes] == ["printer", "inputs", "dbg_x"]

def test_unicode_identifiers(parser):
    nodes = parser.parse_string("привет 变量 _x1")
    assert [n.name for n in nodes] == ["привет", "变量", "_x1"]

# --- Numbers ---

def test_integers_and_floats(parser):
    assert literal_values(parser, "42 5.8 0.5") == [42, 5.8, 0.5]
    assert [type(v) for v in literal_values(parser, "1 1.0")] == [int, float]

def test_sign_followed_by_digit_is_part_of_number(parser):
    assert literal_values(parser, "-7 +3 -0.5") == [-7, 3, -0.5]

def test_lone_sign_is_operator(parser):
    (node,) = parser.parse_string("(- x 1)")
    assert isinstance(node, BinaryOp) and node.op == "-"
    assert node.right.value == 1

def test_integer_literal_bounds(parser):
    assert literal_values(parser, "9223372036854775807") == [2 ** 63 - 1]
    assert literal_values(parser, "-9223372036854775808") == [-(2 ** 63)]
    with pytest.raises(RuspSyntaxError, match="out of 64-bit range"):
        parser.parse_string("9223372036854775808")

@pytest.mark.parametrize("source", ["12abc", "1.", "1.5.2", "(+ 1 -5x)"])
def test_malformed_number(parser, source):
    with pytest.raises(RuspSyntaxError, match="Malformed number"):
        parser.parse_string(source)

# --- Operators ---

@pytest.mark.parametrize("op", ["**", "*", "<=", "<", ">=", ">", "==", "=", "!=", "&&", "||", "+", "/", "-"])
def test_every_operator_head(parser, op):
    (node,) = parser.parse_string(f"({op} a b)")
    assert isinstance(node, BinaryOp)
    assert node.op == op

def test_bang_head_is_not_builtin(parser):
    (node,) = parser.parse_string("(! x)")
    assert isinstance(node, BuiltinCall) and node.name == "!"

def test_unexpected_character(parser):
    with pytest.raises(RuspSyntaxError, match="Unexpected character '@'") as excinfo:
        parser.parse_string("let x = 1\nlet y = @")
    assert excinfo.value.line == 2
    assert excinfo.value.column == 9

# --- Strings ---

def test_string_escapes(parser):
    (node,) = parser.parse_string(r'"a\"b\\c\nd\te\rf"')
    assert isinstance(node, Literal)
    assert node.value == 'a"b\\c\nd\te\rf'

def test_string_may_span_lines(parser):
    assert literal_values(parser, '"a\nb"') == ["a\nb"]

def test_unterminated_string(parser):
    with pytest.raises(RuspSyntaxError, match="Unterminated string") as excinfo:
        parser.parse_string('let s = "abc')
    assert excinfo.value.column == 9
    assert excinfo.value.incomplete

def test_unknown_escape(parser):
    with pytest.raises(RuspSyntaxError, match="Unknown escape") as excinfo:
        parser.parse_string(r'"\q"')
    assert "\\q" in excinfo.value.error_details

# --- Comments and positions ---

def test_line_comments_are_skipped(parser):
    assert literal_values(parser, "1 // comment (\n2") == [1, 2]

def test_positions_are_one_based(parser):
    let, call = parser.parse_string("let x = 1\n  (f)")
    assert isinstance(let, Let)
    assert (let.line, let.column) == (1, 1)
    assert (let.init.line, let.init.column) == (1, 9)
    assert (call.line, call.column) == (2, 3)
