"""
Tree-walking evaluator for rusp programs.
Dispatches on AST node type, using RuspEnvironment for scoping, the
CoercionEngine for operators and the BuiltinProcessor for host functions.
"""

import logging
import sys
from typing import Any, Callable, Dict, List, Optional, TextIO

from rusp.parser.parser import RuspParser
from rusp.parser.ast_dump import dump_node
from rusp.parser.ast_nodes import (
    Node, Literal, Identifier, Let, Assign, Block, If, While,
    FunctionLiteral, Call, BinaryOp, BuiltinCall,
)
from rusp.evaluator.environment import RuspEnvironment
from rusp.evaluator.closure import Closure
from rusp.evaluator.coercion import CoercionEngine
from rusp.evaluator.builtins import BuiltinProcessor
from rusp.evaluator.values import UNIT, ValueKind, value_kind
from rusp.system.errors import (
    RuspSyntaxError, RuspEvaluationError, TypeMismatchError, NotCallableError,
    ArityMismatchError, StackOverflowError,
)
from rusp.system.models import InterpreterSettings

logger = logging.getLogger(__name__)


class RuspEvaluator:
    """
    Evaluates rusp AST nodes.

    Every node evaluates to a value; statement-like forms yield UNIT. Errors
    are never recovered from: they propagate to the caller after recording
    the innermost failing expression.
    """

    def __init__(
        self,
        settings: Optional[InterpreterSettings] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        stdin: Optional[TextIO] = None,
    ):
        """
        Initializes the evaluator.

        Args:
            settings: Interpreter settings; defaults are used when omitted.
            stdout: Stream for print/println/input prompts. Defaults to the current sys.stdout.
            stderr: Stream for eprint/eprintln/dbg. Defaults to the current sys.stderr.
            stdin: Stream read by input. Defaults to the current sys.stdin.
        """
        self.settings = settings if settings is not None else InterpreterSettings()
        self._stdout = stdout
        self._stderr = stderr
        self._stdin = stdin
        self.parser = RuspParser()
        self.coercion = CoercionEngine()
        self.builtin_processor = BuiltinProcessor(self)
        self._call_depth = 0
        self._deepest_call = 0

        self.NODE_HANDLERS: Dict[type, Callable[[Any, RuspEnvironment], Any]] = {
            Literal: self._eval_literal,
            Identifier: self._eval_identifier,
            Let: self._eval_let,
            Assign: self._eval_assign,
            Block: self._eval_block,
            If: self._eval_if,
            While: self._eval_while,
            FunctionLiteral: self._eval_function_literal,
            Call: self._eval_call,
            BinaryOp: self._eval_binary_op,
            BuiltinCall: self._eval_builtin_call,
        }
        self.BUILTIN_APPLIERS: Dict[str, Callable[[List[Any]], Any]] = {
            "print": self.builtin_processor.apply_print,
            "println": self.builtin_processor.apply_println,
            "eprint": self.builtin_processor.apply_eprint,
            "eprintln": self.builtin_processor.apply_eprintln,
            "dbg": self.builtin_processor.apply_dbg,
            "input": self.builtin_processor.apply_input,
            "!": self.builtin_processor.apply_not,
        }
        logger.debug(f"RuspEvaluator initialized (max_call_depth={self.settings.max_call_depth}). "
                     f"BUILTIN_APPLIERS keys: {list(self.BUILTIN_APPLIERS.keys())}")

    # --- Streams, resolved at write time ---

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr if self._stderr is not None else sys.stderr

    @property
    def stdin(self) -> TextIO:
        return self._stdin if self._stdin is not None else sys.stdin

    # --- Entry points ---

    def evaluate_string(self, source: str, env: Optional[RuspEnvironment] = None) -> Any:
        """
        Parses and evaluates rusp source text.

        Args:
            source: The program text.
            env: Global scope to run in; a fresh one is created when omitted.

        Returns:
            The value of the last top-level expression, or UNIT for an empty program.

        Raises:
            RuspSyntaxError: If the source does not parse.
            RuspEvaluationError: (or a subclass) if evaluation fails.
        """
        logger.info(f"Evaluating rusp source: {source[:100]!r}")
        try:
            nodes = self.parser.parse_string(source)
            result = self.evaluate_program(nodes, env)
        except RuspSyntaxError as e:
            logger.info(f"rusp syntax error: {e.message} (line {e.line})")
            raise
        except RuspEvaluationError as e:
            logger.info(f"rusp evaluation error: {e.kind}: {e.message}")
            raise
        logger.info(f"Finished evaluating rusp source. Result kind: {value_kind(result).value}")
        return result

    def evaluate_program(self, nodes: List[Node], env: Optional[RuspEnvironment] = None) -> Any:
        """
        Evaluates top-level expressions in order, directly in `env`.

        Args:
            nodes: Parsed top-level expressions.
            env: Global scope; a fresh RuspEnvironment when omitted.

        Returns:
            The last expression's value, or UNIT when `nodes` is empty.

        Raises:
            StackOverflowError: If the Python stack is exhausted by deep recursion.
        """
        env = env if env is not None else RuspEnvironment()
        self._call_depth = 0
        self._deepest_call = 0
        result: Any = UNIT
        try:
            for node in nodes:
                result = self.evaluate(node, env)
        except RecursionError as e:
            logger.debug(f"Host recursion limit hit at call depth {self._deepest_call}")
            raise StackOverflowError(
                self._deepest_call,
                error_details="the host recursion limit was reached; raise --recursion-limit or reduce recursion depth",
            ) from e
        return result

    def evaluate(self, node: Node, env: RuspEnvironment) -> Any:
        """
        Evaluates a single node in `env`.

        Raises:
            RuspEvaluationError: (subclasses) for any runtime error, with the
                                 innermost located expression attached.
            TypeError: If `node` is not a rusp AST node.
        """
        handler = self.NODE_HANDLERS.get(type(node))
        if handler is None:
            raise TypeError(f"Cannot evaluate object of type {type(node).__name__}")
        try:
            return handler(node, env)
        except RuspEvaluationError as e:
            if node.line is not None and not e.expression:
                e.attach_context(dump_node(node), node.line)
            raise

    # --- Node handlers ---

    def _eval_literal(self, node: Literal, env: RuspEnvironment) -> Any:
        return node.value

    def _eval_identifier(self, node: Identifier, env: RuspEnvironment) -> Any:
        return env.get(node.name)

    def _eval_let(self, node: Let, env: RuspEnvironment) -> Any:
        value = self.evaluate(node.init, env)
        env.define(node.name, value)
        return UNIT

    def _eval_assign(self, node: Assign, env: RuspEnvironment) -> Any:
        value = self.evaluate(node.value, env)
        env.set(node.name, value)
        return UNIT

    def _eval_block(self, node: Block, env: RuspEnvironment) -> Any:
        block_env = env.child_scope()
        result: Any = UNIT
        for expr in node.body:
            result = self.evaluate(expr, block_env)
        return result

    def _eval_condition(self, form: str, condition: Node, env: RuspEnvironment) -> bool:
        value = self.evaluate(condition, env)
        kind = value_kind(value)
        if kind is not ValueKind.BOOL:
            raise TypeMismatchError(f"'{form}' condition must be Bool, got {kind.value}",
                                    operator=form, operand_kinds=(kind.value,))
        return value

    def _eval_if(self, node: If, env: RuspEnvironment) -> Any:
        if self._eval_condition("if", node.condition, env):
            return self.evaluate(node.then_branch, env)
        if node.else_branch is not None:
            return self.evaluate(node.else_branch, env)
        return UNIT

    def _eval_while(self, node: While, env: RuspEnvironment) -> Any:
        iterations = 0
        while self._eval_condition("while", node.condition, env):
            self.evaluate(node.body, env)
            iterations += 1
        logger.debug(f"While loop finished after {iterations} iteration(s)")
        return UNIT

    def _eval_function_literal(self, node: FunctionLiteral, env: RuspEnvironment) -> Closure:
        if node.name is None:
            return Closure(node.params, node.body, env)
        # Letrec: the name lives in a scope between the definition site and
        # every call frame, and is patched once the closure exists.
        self_scope = env.child_scope()
        self_scope.define(node.name, UNIT)
        closure = Closure(node.params, node.body, self_scope, name=node.name)
        self_scope.set(node.name, closure)
        return closure

    def _eval_call(self, node: Call, env: RuspEnvironment) -> Any:
        callee = self.evaluate(node.callee, env)
        if not isinstance(callee, Closure):
            raise NotCallableError(value_kind(callee).value)
        args = [self.evaluate(arg, env) for arg in node.args]
        if len(args) != callee.arity:
            raise ArityMismatchError(callee.describe(), str(callee.arity), len(args))
        if self._call_depth >= self.settings.max_call_depth:
            raise StackOverflowError(self._call_depth)

        call_env = callee.env.extend(dict(zip(callee.params, args)))
        self._call_depth += 1
        self._deepest_call = max(self._deepest_call, self._call_depth)
        try:
            return self.evaluate(callee.body, call_env)
        finally:
            self._call_depth -= 1

    def _eval_binary_op(self, node: BinaryOp, env: RuspEnvironment) -> Any:
        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        return self.coercion.apply(node.op, left, right)

    def _eval_builtin_call(self, node: BuiltinCall, env: RuspEnvironment) -> Any:
        args = [self.evaluate(arg, env) for arg in node.args]
        return self.BUILTIN_APPLIERS[node.name](args)
