from typing import Any, Dict, Iterable, List, Optional

from .ast import FuncDecl, Node
from .errors import UndefinedVariableError
from .types import FunctionValue


class Environment:
    """A scope mapping names to values, chained to its enclosing scope.

    The parent link is only used for outward lookup. Scopes are plain
    objects, so a function value keeps its defining scope alive for as
    long as the function itself is reachable.
    """
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def declare(self, name: str, value: Any):
        # shadows any binding of the same name in an enclosing scope
        self.values[name] = value

    def lookup_scope(self, name: str) -> Optional['Environment']:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self.lookup_scope(name) is not None

    def get(self, name: str) -> Any:
        scope = self.lookup_scope(name)
        if scope is None:
            raise UndefinedVariableError(name)
        return scope.values[name]

    def set(self, name: str, value: Any):
        scope = self.lookup_scope(name)
        if scope is None:
            raise UndefinedVariableError(name)
        scope.values[name] = value

    def push_scope(self) -> 'Environment':
        return Environment(parent=self)

    def pop_scope(self) -> 'Environment':
        if self.parent is None:
            raise RuntimeError('cannot pop the outermost scope')
        return self.parent

    def hoist(self, statements: Iterable[Node]) -> List[str]:
        """Bind every function declared directly in `statements`.

        Runs before any of the statements execute, so sibling functions
        can call each other regardless of textual order. Nested blocks
        are not scanned; they hoist their own declarations when entered.
        Returns the hoisted names.
        """
        hoisted = []
        for stmt in statements:
            if isinstance(stmt, FuncDecl):
                self.declare(stmt.name, FunctionValue(stmt.name, stmt.params, stmt.body, self))
                hoisted.append(stmt.name)
        return hoisted

    def names(self) -> List[str]:
        """Names visible from this scope, innermost first."""
        seen: Dict[str, None] = {}
        env: Optional[Environment] = self
        while env is not None:
            for name in env.values:
                seen.setdefault(name, None)
            env = env.parent
        return list(seen)
