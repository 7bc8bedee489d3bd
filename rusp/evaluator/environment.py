"""
Lexical environment for rusp evaluation.

A RuspEnvironment is one scope: a dict of bindings plus a shared reference to
its parent. Closures hold the scope they were created in, so mutating a
binding in place is visible to every closure sharing that scope.
"""

import logging
from typing import Any, Dict, Optional

from rusp.system.errors import UndefinedVariableError

logger = logging.getLogger(__name__)


class RuspEnvironment:
    """
    Represents one lexical scope, supporting variable lookup, declaration,
    assignment and nested scopes.
    """

    def __init__(
        self,
        bindings: Optional[Dict[str, Any]] = None,
        parent: Optional['RuspEnvironment'] = None
    ):
        """
        Initializes a new RuspEnvironment.

        Args:
            bindings: An optional dictionary of initial variable bindings for this scope.
            parent: An optional parent environment for creating nested scopes.
                    Defaults to None, indicating a global scope.
        """
        self._bindings: Dict[str, Any] = bindings if bindings is not None else {}
        self._parent: Optional['RuspEnvironment'] = parent
        logger.debug(f"Initialized RuspEnvironment id={id(self)} (Parent: {id(parent) if parent else None}, Bindings: {list(self._bindings.keys())})")

    @property
    def parent(self) -> Optional['RuspEnvironment']:
        return self._parent

    @property
    def depth(self) -> int:
        """Number of scopes above this one (0 for a global scope)."""
        depth = 0
        env = self._parent
        while env is not None:
            depth += 1
            env = env._parent
        return depth

    def get(self, name: str) -> Any:
        """
        Looks up a variable in this scope and then outward through its parents.

        Args:
            name: The identifier to look up.

        Returns:
            The value bound to the name in the nearest scope that declares it.

        Raises:
            UndefinedVariableError: If no scope in the chain declares the name.
        """
        env: Optional[RuspEnvironment] = self
        while env is not None:
            if name in env._bindings:
                logger.debug(f"  Found '{name}' in env id={id(env)} (looked up from {id(self)})")
                return env._bindings[name]
            env = env._parent
        logger.debug(f"  '{name}' not found in chain starting from env id={id(self)}")
        raise UndefinedVariableError(name)

    def define(self, name: str, value: Any) -> None:
        """
        Declares or redeclares a variable in the *current* scope. Parent scopes
        are untouched, so an inner declaration shadows an outer one.
        """
        logger.debug(f"Defining '{name}' = {type(value).__name__} in env {id(self)}")
        self._bindings[name] = value

    def set(self, name: str, value: Any) -> None:
        """Sets the value of an *existing* variable in the current or an ancestor scope.

        The nearest binding found walking outward is replaced in place; no new
        binding is ever created.

        Args:
            name: The identifier to assign.
            value: The new value.

        Raises:
            UndefinedVariableError: If the name is not declared anywhere in the chain.
        """
        env: Optional[RuspEnvironment] = self
        while env is not None:
            if name in env._bindings:
                logger.debug(f"Found '{name}' in env {id(env)}, updating value to {type(value).__name__}.")
                env._bindings[name] = value
                return
            env = env._parent
        logger.debug(f"Cannot assign '{name}': not declared in any scope reachable from env {id(self)}")
        raise UndefinedVariableError(name, error_details="assignment requires a prior 'let' declaration")

    def child_scope(self) -> 'RuspEnvironment':
        """Creates an empty scope whose parent is this one (block entry, calls)."""
        return RuspEnvironment(parent=self)

    def extend(self, bindings: Dict[str, Any]) -> 'RuspEnvironment':
        """
        Creates a child scope pre-populated with `bindings`, used for call frames.

        Args:
            bindings: Names and already-evaluated values for the new scope.

        Returns:
            A new RuspEnvironment whose parent is this one.
        """
        logger.debug(f"Extending env {id(self)} with bindings: {list(bindings.keys())}")
        return RuspEnvironment(bindings=dict(bindings), parent=self)

    def contains(self, name: str) -> bool:
        env: Optional[RuspEnvironment] = self
        while env is not None:
            if name in env._bindings:
                return True
            env = env._parent
        return False

    # --- Helpers for inspection ---

    def get_local_bindings(self) -> Dict[str, Any]:
        """Returns a copy of the bindings declared directly in this scope."""
        return self._bindings.copy()

    def __repr__(self) -> str:
        parent_id = id(self._parent) if self._parent else None
        return f"<RuspEnvironment id={id(self)} parent={parent_id} bindings={list(self._bindings.keys())}>"
