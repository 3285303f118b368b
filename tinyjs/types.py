"""Runtime values and the coercion rules shared by the operators.

Script values map onto plain Python objects:

* Number    -> ``float`` (never ``int`` and never ``bool``)
* String    -> ``str``
* Boolean   -> ``bool``
* Function  -> :class:`FunctionValue` or :class:`BuiltinFunction`
* Undefined -> the :data:`UNDEFINED` singleton

Because ``bool`` is a subclass of ``int`` but not of ``float``, an
``isinstance(value, float)`` check never mistakes a Boolean for a Number.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List

from .builtin_function import BuiltinFunction

if TYPE_CHECKING:
    from .ast import Block
    from .environment import Environment


class UndefinedType:
    """Marker type for the script `undefined` value."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return 'undefined'


UNDEFINED = UndefinedType()


@dataclass(eq=False)
class FunctionValue:
    """A user-defined function.

    `closure` is the scope the declaration was hoisted into; calls create
    their local scope as a child of it, so free variables resolve
    lexically.
    """
    name: str
    params: List[str]
    body: 'Block'
    closure: 'Environment'

    def __repr__(self) -> str:
        return f"<function {self.name}>"


NUMERIC_STRING = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity')


def is_callable(value: Any) -> bool:
    return isinstance(value, (FunctionValue, BuiltinFunction))


def type_name(value: Any) -> str:
    """Return the script-level type name of a value."""
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, float):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if is_callable(value):
        return 'function'
    if value is UNDEFINED:
        return 'undefined'
    raise TypeError(f"not a script value: {value!r}")


def to_number(value: Any) -> float:
    """Coerce a value to a Number.

    Booleans become 0 or 1. Strings are trimmed; an empty string is 0, a
    decimal literal (optionally signed, with exponent) or ``Infinity`` is
    parsed, anything else is NaN. Undefined and functions are NaN.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if NUMERIC_STRING.fullmatch(text):
            return float(text.replace('Infinity', 'inf'))
        return math.nan
    return math.nan


def format_number(value: float) -> str:
    """Format a Number the way JavaScript's ``Number#toString`` does.

    ``repr`` already yields the shortest digits that round-trip; only the
    choice between positional and exponent notation differs. Exponent
    notation is used below 1e-6 and from 1e21 up, written ``1e-7`` and
    ``1e+21``.
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    text = repr(value)
    if 'e' not in text:
        return text
    mantissa, exponent = text.split('e')
    exp = int(exponent)
    if -7 < exp < 21:
        return format(Decimal(text), 'f')
    return f"{mantissa}e{exp:+d}"


def to_string(value: Any) -> str:
    """Coerce a value to its String form, as used by `+` concatenation."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if value is UNDEFINED:
        return 'undefined'
    return repr(value)


def format_value(value: Any) -> str:
    """Return the text the shell prints for a result.

    Identical to :func:`to_string` except that Undefined formats as the
    empty string, meaning "print nothing".
    """
    if value is UNDEFINED:
        return ''
    return to_string(value)


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return value != 0.0 and not math.isnan(value)
    if isinstance(value, str):
        return len(value) > 0
    if value is UNDEFINED:
        return False
    return True


def loose_equals(a: Any, b: Any) -> bool:
    """Equality used by `==` and `!=`.

    Operands of the same type compare by value (functions by identity).
    Undefined equals only Undefined and functions never equal another
    type. Any other mix of Number, String and Boolean compares as Numbers.
    """
    type_a = type_name(a)
    type_b = type_name(b)
    if type_a == type_b:
        if type_a == 'function':
            return a is b
        return a == b
    if 'undefined' in (type_a, type_b) or 'function' in (type_a, type_b):
        return False
    return to_number(a) == to_number(b)
