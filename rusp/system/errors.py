"""
System-wide custom error types.
"""
from typing import Optional, Sequence


class RuspSyntaxError(ValueError):
    """
    Custom exception raised when lexing or parsing rusp source fails.
    Inherits from ValueError for general compatibility but provides specific context.
    """
    def __init__(self, message: str, source: str = "", line: Optional[int] = None,
                 column: Optional[int] = None, error_details: str = "",
                 incomplete: bool = False):
        """
        Initializes the RuspSyntaxError.

        Args:
            message: A high-level error message.
            source: The original source text that caused the error.
            line: 1-based line of the offending token, if known.
            column: 1-based column of the offending token, if known.
            error_details: Specific details (e.g. the offending token).
            incomplete: True when the input simply ended too early (open bracket,
                        open string), so more input could complete it.
        """
        full_message = message
        if line is not None:
            full_message = f"{message} (line {line}, column {column})"
            excerpt = source_line(source, line)
            if excerpt is not None:
                full_message += f"\n  {line:4d} | {excerpt}"
                if column:
                    full_message += f"\n       | {' ' * (column - 1)}^"
        if error_details:
            full_message += f"\nDetails: {error_details}"
        super().__init__(full_message)
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        self.error_details = error_details
        self.incomplete = incomplete


class RuspEvaluationError(Exception):
    """
    Base exception raised during the evaluation phase of a rusp program.
    Every runtime error kind is a subclass; `kind` names it in diagnostics.
    """
    kind = "EvaluationError"

    def __init__(self, message: str, expression: str = "", error_details: str = "",
                 line: Optional[int] = None):
        """
        Initializes the RuspEvaluationError.

        Args:
            message: A high-level error message describing the evaluation failure.
            expression: S-expression text of the node being evaluated when the error occurred.
            error_details: Specific details about the error.
            line: 1-based source line of that node, if known.
        """
        super().__init__(message)
        self.message = message
        self.expression = expression
        self.error_details = error_details
        self.line = line

    def attach_context(self, expression: str, line: Optional[int]) -> None:
        """Records the innermost located expression; later (outer) calls are ignored."""
        if self.expression:
            return
        self.expression = expression
        self.line = line

    def __str__(self) -> str:
        full_message = f"{self.kind}: {self.message}"
        if self.line is not None:
            full_message += f" (line {self.line})"
        if self.expression:
            full_message += f"\nExpression: '{self.expression}'"
        if self.error_details:
            full_message += f"\nDetails: {self.error_details}"
        return full_message


class UndefinedVariableError(RuspEvaluationError):
    """Raised when a name is read or assigned but bound nowhere in the scope chain."""
    kind = "UndefinedVariable"

    def __init__(self, name: str, **kwargs):
        super().__init__(f"variable '{name}' is not defined", **kwargs)
        self.name = name


class TypeMismatchError(RuspEvaluationError):
    """Raised for operands the coercion lattice rejects and for non-Bool conditions."""
    kind = "TypeMismatch"

    def __init__(self, message: str, operator: str = "", operand_kinds: Sequence[str] = (), **kwargs):
        super().__init__(message, **kwargs)
        self.operator = operator
        self.operand_kinds = tuple(operand_kinds)


class ArityMismatchError(RuspEvaluationError):
    """Raised when a closure or built-in receives the wrong number of arguments."""
    kind = "ArityMismatch"

    def __init__(self, callee: str, expected: str, received: int, **kwargs):
        super().__init__(f"{callee} expects {expected} argument(s), got {received}", **kwargs)
        self.callee = callee
        self.expected = expected
        self.received = received


class NotCallableError(RuspEvaluationError):
    """Raised when the callee of a call evaluates to something other than a closure."""
    kind = "NotCallable"

    def __init__(self, received_kind: str, **kwargs):
        super().__init__(f"value of type {received_kind} is not callable", **kwargs)
        self.received_kind = received_kind


class DivisionByZeroError(RuspEvaluationError):
    """Raised for integer division (or integer power) by zero."""
    kind = "DivisionByZero"

    def __init__(self, operator: str = "/", **kwargs):
        super().__init__(f"integer division by zero in '{operator}'", **kwargs)
        self.operator = operator


class IntegerOverflowError(RuspEvaluationError):
    """Raised when an Int result leaves the signed 64-bit range."""
    kind = "IntegerOverflow"

    def __init__(self, operator: str, **kwargs):
        super().__init__(f"integer overflow in '{operator}'", **kwargs)
        self.operator = operator


class StackOverflowError(RuspEvaluationError):
    """Raised when call nesting exhausts the configured depth or the host stack."""
    kind = "StackOverflow"

    def __init__(self, depth: int, **kwargs):
        super().__init__(f"maximum call depth exceeded ({depth} nested calls)", **kwargs)
        self.depth = depth


def source_line(source: str, line: int) -> Optional[str]:
    """Returns the 1-based `line` of `source`, or None when out of range."""
    lines = source.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None
