"""AST node definitions for rusp programs.

Nodes are immutable pydantic models produced by the parser and consumed
read-only by the evaluator. Each variant is its own class so the evaluator
can dispatch on ``type(node)``.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

ARITHMETIC_OPERATORS = ("+", "-", "*", "/", "**")
COMPARISON_OPERATORS = ("<", "<=", ">", ">=")
EQUALITY_OPERATORS = ("=", "==", "!=")
LOGICAL_OPERATORS = ("&&", "||")
BINARY_OPERATORS = ARITHMETIC_OPERATORS + COMPARISON_OPERATORS + EQUALITY_OPERATORS + LOGICAL_OPERATORS

BUILTIN_NAMES = ("print", "println", "eprint", "eprintln", "dbg", "input", "!")


class Node(BaseModel):
    """Base class of every AST node. `line`/`column` locate the first token."""
    model_config = ConfigDict(frozen=True)

    line: Optional[int] = None
    column: Optional[int] = None


class Literal(Node):
    """A constant Int, Float, Str or Bool."""
    value: Any

    @field_validator("value")
    @classmethod
    def _check_constant(cls, value: Any) -> Any:
        if not isinstance(value, (bool, int, float, str)):
            raise ValueError(f"literal must be an int, float, str or bool, got {type(value).__name__}")
        return value


class Identifier(Node):
    name: str


class Let(Node):
    """`let name = init`: declares in the current scope, yields Unit."""
    name: str
    init: Node


class Assign(Node):
    """`name = value`: mutates the nearest existing binding, yields Unit."""
    name: str
    value: Node


class Block(Node):
    body: List[Node] = []


class If(Node):
    condition: Node
    then_branch: Node
    else_branch: Optional[Node] = None


class While(Node):
    condition: Node
    body: Node


class FunctionLiteral(Node):
    """
    `fn (params) body`. When `name` is set the closure can refer to itself
    by that name from inside its own body.
    """
    params: List[str]
    body: Node
    name: Optional[str] = None

    @field_validator("params")
    @classmethod
    def _unique_params(cls, params: List[str]) -> List[str]:
        duplicates = sorted({p for p in params if params.count(p) > 1})
        if duplicates:
            raise ValueError(f"duplicate parameter name(s): {', '.join(duplicates)}")
        return params


class Call(Node):
    callee: Node
    args: List[Node] = []


class BinaryOp(Node):
    op: str
    left: Node
    right: Node

    @field_validator("op")
    @classmethod
    def _known_operator(cls, op: str) -> str:
        if op not in BINARY_OPERATORS:
            raise ValueError(f"unknown binary operator '{op}'")
        return op


class BuiltinCall(Node):
    name: str
    args: List[Node] = []

    @field_validator("name")
    @classmethod
    def _known_builtin(cls, name: str) -> str:
        if name not in BUILTIN_NAMES:
            raise ValueError(f"unknown built-in '{name}'")
        return name
