from dataclasses import dataclass
from typing import Any, Callable, List, Optional


@dataclass(eq=False)
class BuiltinFunction:
    """A callable value implemented in Python rather than in script code.

    `arity` of None accepts any number of arguments; `fn` receives the
    already-evaluated argument list.
    """
    name: str
    arity: Optional[int]
    fn: Callable[[List[Any]], Any]

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
