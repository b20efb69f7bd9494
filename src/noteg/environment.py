"""Lexically scoped variable environments for the interpreter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from noteg.values import Value


class Environment:
    """A single scope level, linked to its enclosing scope."""

    def __init__(self, parent: Environment | None = None) -> None:
        self.parent = parent
        self._values: dict[str, Value] = {}

    def define(self, name: str, value: Value) -> None:
        """Bind *name* in this scope, overwriting any local binding."""
        self._values[name] = value

    def lookup(self, name: str) -> Value:
        """Resolve *name* innermost-first. Raises KeyError if unbound."""
        env: Environment | None = self
        while env is not None:
            if name in env._values:
                return env._values[name]
            env = env.parent
        raise KeyError(name)

    def lookup_local(self, name: str) -> Value:
        return self._values[name]

    def child(self) -> Environment:
        return Environment(self)

    def __contains__(self, name: str) -> bool:
        try:
            self.lookup(name)
        except KeyError:
            return False
        return True
