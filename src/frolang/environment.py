"""Lexical scopes for the evaluator."""

from __future__ import annotations

from .objects import Value


class Environment:
    """One scope: local bindings plus a reference to the enclosing scope.

    Closures hold their defining Environment, which keeps the whole chain
    above it alive for as long as the closure is reachable.
    """

    def __init__(self, outer: Environment | None = None) -> None:
        self.store: dict[str, Value] = {}
        self.outer: Environment | None = outer

    def enclosed(self) -> Environment:
        return Environment(self)

    def bind(self, name: str, value: Value) -> None:
        """Create or overwrite a binding in this scope."""
        self.store[name] = value

    def get(self, name: str) -> Value | None:
        env: Environment | None = self
        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.outer
        return None

    def set(self, name: str, value: Value) -> bool:
        """Rebind name in the nearest scope that defines it.

        Returns False, changing nothing, when no scope in the chain does.
        """
        env: Environment | None = self
        while env is not None:
            if name in env.store:
                env.store[name] = value
                return True
            env = env.outer
        return False
