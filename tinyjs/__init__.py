# tinyjs language package
# A small interpreter for a JavaScript-flavoured scripting language.
from .errors import LexError, ParseError, ScriptError, ScriptRuntimeError
from .environment import Environment
from .interpreter import Interpreter, create_session, run, run_file, run_program
from .parser import parse_program
from .types import UNDEFINED, format_value

__all__ = [
    'run',
    'run_program',
    'run_file',
    'create_session',
    'parse_program',
    'format_value',
    'Interpreter',
    'Environment',
    'UNDEFINED',
    'ScriptError',
    'LexError',
    'ParseError',
    'ScriptRuntimeError',
]
