"""
Processor for rusp built-in functions.
BuiltinProcessor centralizes the call contracts of the host-provided
functions: the print family, dbg, input and logical negation.
"""
import logging
from typing import Any, List, TYPE_CHECKING

from rusp.evaluator.values import UNIT, ValueKind, value_kind, to_text, debug_repr
from rusp.system.errors import ArityMismatchError, TypeMismatchError

if TYPE_CHECKING:
    from .evaluator import RuspEvaluator  # Forward reference for type hinting

logger = logging.getLogger(__name__)


class BuiltinProcessor:
    """
    Applies built-ins for the RuspEvaluator.
    Arguments arrive already evaluated, left to right. Streams are read from
    the evaluator on every call so a redirected sys.stdout is honoured.
    """
    def __init__(self, evaluator_instance: 'RuspEvaluator'):
        """
        Initializes the BuiltinProcessor.

        Args:
            evaluator_instance: The RuspEvaluator whose streams the built-ins use.
        """
        self.evaluator = evaluator_instance
        logger.debug("BuiltinProcessor initialized.")

    def _check_arity(self, name: str, args: List[Any], minimum: int, maximum: int) -> None:
        if not minimum <= len(args) <= maximum:
            expected = str(minimum) if minimum == maximum else f"{minimum} to {maximum}"
            raise ArityMismatchError(f"built-in '{name}'", expected, len(args))

    def _write(self, stream, args: List[Any], newline: bool) -> Any:
        text = "".join(to_text(arg) for arg in args)
        stream.write(text + ("\n" if newline else ""))
        return UNIT

    def apply_print(self, args: List[Any]) -> Any:
        """`(print a b ...)`: text forms, no separator, no newline, to stdout."""
        logger.debug(f"BuiltinProcessor.apply_print: {len(args)} arg(s)")
        return self._write(self.evaluator.stdout, args, newline=False)

    def apply_println(self, args: List[Any]) -> Any:
        logger.debug(f"BuiltinProcessor.apply_println: {len(args)} arg(s)")
        return self._write(self.evaluator.stdout, args, newline=True)

    def apply_eprint(self, args: List[Any]) -> Any:
        logger.debug(f"BuiltinProcessor.apply_eprint: {len(args)} arg(s)")
        return self._write(self.evaluator.stderr, args, newline=False)

    def apply_eprintln(self, args: List[Any]) -> Any:
        logger.debug(f"BuiltinProcessor.apply_eprintln: {len(args)} arg(s)")
        return self._write(self.evaluator.stderr, args, newline=True)

    def apply_dbg(self, args: List[Any]) -> Any:
        """`(dbg x)`: writes `[dbg] <Kind>(<value>)` to stderr and returns `x` unchanged."""
        self._check_arity("dbg", args, 1, 1)
        value = args[0]
        self.evaluator.stderr.write(f"[dbg] {debug_repr(value)}\n")
        return value

    def apply_input(self, args: List[Any]) -> str:
        """
        `(input [prompt])`: writes the prompt, then reads one line from stdin.

        Returns:
            The line without its trailing "\\n" or "\\r\\n"; "" at end of input.
        """
        self._check_arity("input", args, 0, 1)
        out = self.evaluator.stdout
        if args:
            out.write(to_text(args[0]))
        out.flush()
        line = self.evaluator.stdin.readline()
        logger.debug(f"BuiltinProcessor.apply_input: read {len(line)} char(s)")
        if line.endswith("\r\n"):
            return line[:-2]
        if line.endswith("\n"):
            return line[:-1]
        return line

    def apply_not(self, args: List[Any]) -> bool:
        self._check_arity("!", args, 1, 1)
        kind = value_kind(args[0])
        if kind is not ValueKind.BOOL:
            raise TypeMismatchError(f"'!' requires a Bool operand, got {kind.value}",
                                    operator="!", operand_kinds=(kind.value,))
        return not args[0]
