from enum import Enum
from typing import Any, Optional


class LexErrorKind(Enum):
    UNTERMINATED_STRING = 'unterminated string'
    UNRECOGNIZED_CHARACTER = 'unrecognized character'


class ParseErrorKind(Enum):
    UNEXPECTED_TOKEN = 'unexpected token'
    UNEXPECTED_EOF = 'unexpected end of input'
    MISSING_SEMICOLON = 'missing semicolon'
    MISSING_CLOSING_PAREN = 'missing closing parenthesis'
    MISSING_CLOSING_BRACE = 'missing closing brace'
    INVALID_ASSIGNMENT_TARGET = 'invalid assignment target'
    INVALID_PREFIX_TARGET = 'invalid prefix operand'
    INVALID_PARAMETER = 'invalid parameter'


class RuntimeErrorKind(Enum):
    UNDEFINED_VARIABLE = 'undefined variable'
    INVALID_ASSIGNMENT = 'invalid assignment'
    NOT_CALLABLE = 'not callable'
    CALL_STACK_EXCEEDED = 'call stack exceeded'


class ScriptError(Exception):
    """Base class for every error a tinyjs program can raise.

    `name` is the label shown to the user (``ReferenceError: x is not
    defined``). Position information is optional because runtime errors
    raised from the value layer do not know where they happened.
    """
    name = 'Error'

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        text = f"{self.name}: {self.message}"
        if self.line is not None:
            text += f" at {self.line}:{self.column}"
        return text


class LexError(ScriptError):
    name = 'LexError'

    def __init__(self, kind: LexErrorKind, message: str, line: int, column: int):
        super().__init__(message, line, column)
        self.kind = kind


class ParseError(ScriptError):
    name = 'ParseError'

    def __init__(self, kind: ParseErrorKind, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, expected: Optional[str] = None, found: Optional[str] = None):
        super().__init__(message, line, column)
        self.kind = kind
        self.expected = expected
        self.found = found


class ScriptRuntimeError(ScriptError):
    name = 'RuntimeError'
    kind: Optional[RuntimeErrorKind] = None


class UndefinedVariableError(ScriptRuntimeError):
    name = 'ReferenceError'
    kind = RuntimeErrorKind.UNDEFINED_VARIABLE

    def __init__(self, var_name: str):
        super().__init__(f"{var_name} is not defined")
        self.var_name = var_name


class InvalidAssignmentError(ScriptRuntimeError):
    kind = RuntimeErrorKind.INVALID_ASSIGNMENT


class NotCallableError(ScriptRuntimeError):
    name = 'TypeError'
    kind = RuntimeErrorKind.NOT_CALLABLE


class CallStackExceededError(ScriptRuntimeError):
    name = 'RangeError'
    kind = RuntimeErrorKind.CALL_STACK_EXCEEDED

    def __init__(self):
        super().__init__('Maximum call stack size exceeded')


class ReturnSignal:
    """Result of executing a `return` statement.

    Statement execution hands this back instead of raising so that every
    block, loop and call can check for it and stop early.
    """
    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"ReturnSignal({self.value!r})"
