"""
Defines the Closure class: a function value created by evaluating a
FunctionLiteral, paired with the environment it was defined in.
"""
import logging
from typing import List, Optional

from rusp.parser.ast_nodes import Node
from rusp.evaluator.environment import RuspEnvironment

logger = logging.getLogger(__name__)


class Closure:
    def __init__(self, params: List[str], body: Node, env: RuspEnvironment, name: Optional[str] = None):
        """
        Represents a lexically-scoped function value.

        Args:
            params: Formal parameter names, in call order.
            body: The single body expression node.
            env: The RuspEnvironment captured at definition time (shared, not copied).
                 For a named function this is the letrec scope holding its own name.
            name: Optional name, used for self-reference, display and diagnostics.
        """
        self.params: List[str] = list(params)
        self.body: Node = body
        self.env: RuspEnvironment = env
        self.name: Optional[str] = name
        logger.debug(f"Closure created: name={name}, params=({', '.join(self.params)}), def_env_id={id(env)}")

    @property
    def arity(self) -> int:
        return len(self.params)

    def describe(self) -> str:
        """Name used in arity diagnostics."""
        return f"function '{self.name}'" if self.name else "anonymous function"

    def __repr__(self):
        return f"<Closure name={self.name} params=({', '.join(self.params)}) def_env_id={id(self.env)}>"
