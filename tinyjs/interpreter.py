"""Tree-walking interpreter for tinyjs.

`Interpreter.execute` runs statements and `Interpreter.evaluate` computes
expressions, both by dispatching on the AST node class. Statement
execution returns either the statement's completion value or a
`ReturnSignal`; every construct that runs a statement list checks for the
signal and stops early so `return` unwinds to the nearest call.
"""

from __future__ import annotations

import math
import sys
from typing import Any, Dict, List, Optional, TextIO

from .ast import (
    Assign, BinaryOp, Block, BooleanLiteral, Call, ExprStmt, FuncDecl,
    Identifier, IfStmt, Node, NumberLiteral, Program, ReturnStmt,
    StringLiteral, UnaryOp, VarDecl, WhileStmt,
)
from .builtin_function import BuiltinFunction
from .environment import Environment
from .errors import (
    CallStackExceededError, InvalidAssignmentError, NotCallableError,
    ReturnSignal, ScriptError, ScriptRuntimeError,
)
from .parser import parse_program
from .types import (
    UNDEFINED, FunctionValue, is_callable, is_truthy, loose_equals,
    to_number, to_string,
)

# Statements whose completion is empty: they leave the previous
# completion value in place.
EMPTY_COMPLETION = (VarDecl, FuncDecl)

ARITHMETIC_OPS = ('-', '*', '/', '%', '**')
RELATIONAL_OPS = ('<', '>', '<=', '>=')

# Deepest chain of script function calls before a RangeError. The Python
# recursion limit is raised while a program runs so that this many calls
# fit; each call costs roughly a dozen interpreter frames.
MAX_CALL_DEPTH = 1000
FRAMES_PER_CALL = 30

MISSING = object()


###############################################################################
# Builtins
###############################################################################

def builtin_print(args: List[Any]) -> Any:
    print(' '.join(to_string(a) for a in args))
    return UNDEFINED


def create_session() -> Environment:
    """Return a fresh top-level scope with the builtins bound.

    The same session can be passed to any number of `run` calls; later
    inputs see the declarations made by earlier ones.
    """
    env = Environment()
    env.declare('print', BuiltinFunction('print', None, builtin_print))
    return env


###############################################################################
# Numeric helpers
###############################################################################

def divide(x: float, y: float) -> float:
    if y == 0:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def modulo(x: float, y: float) -> float:
    if y == 0 or math.isnan(x) or math.isnan(y) or math.isinf(x):
        return math.nan
    if math.isinf(y):
        return x
    return math.fmod(x, y)


def power(x: float, y: float) -> float:
    if math.isnan(y):
        return math.nan
    if y == 0:
        return 1.0
    try:
        return math.pow(x, y)
    except OverflowError:
        if x < 0 and y % 2 == 1:
            return -math.inf
        return math.inf
    except ValueError:
        # zero to a negative power, or a negative base to a fractional one
        if x == 0:
            return math.inf
        return math.nan


###############################################################################
# Interpreter implementation
###############################################################################


class Interpreter:
    """Executes tinyjs ASTs against a scope chain.

    `debug_level` controls tracing: 1 logs top-level statements, 2 adds
    declarations and calls, 3 adds branch and loop conditions, 4 logs
    every expression result. Trace lines go to `debug_file` when given,
    otherwise to stderr.
    """
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = None,
                 session: Optional[Environment] = None):
        self.global_env = session if session is not None else create_session()
        self.debug_level = debug_level
        self.debug_fp: Optional[TextIO] = None
        self.call_depth = 0
        if debug_level > 0 and debug_file:
            self.debug_fp = open(debug_file, 'w', encoding='utf-8')

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Any:
        """Run a whole program and return its completion value.

        A top-level `return` stops the program and its value becomes the
        result. Bindings made before a failing statement stay in `env`;
        functions hoisted from statements after it are unbound again.
        """
        if env is None:
            env = self.global_env
        previous = {stmt.name: env.values.get(stmt.name, MISSING)
                    for stmt in program.body if isinstance(stmt, FuncDecl)}
        env.hoist(program.body)
        hoisted = {name: env.values[name] for name in previous}
        completion = UNDEFINED
        index = 0
        limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(limit, MAX_CALL_DEPTH * FRAMES_PER_CALL))
        try:
            for index, stmt in enumerate(program.body):
                if self.debug_level >= 1:
                    self.debug(f"statement {type(stmt).__name__}")
                result = self.execute(stmt, env)
                if isinstance(result, ReturnSignal):
                    return result.value
                if not isinstance(stmt, EMPTY_COMPLETION):
                    completion = result
        except RecursionError:
            self.unbind_hoisted(program.body, index, env, previous, hoisted)
            raise CallStackExceededError() from None
        except ScriptError:
            self.unbind_hoisted(program.body, index, env, previous, hoisted)
            raise
        finally:
            sys.setrecursionlimit(limit)
        return completion

    def unbind_hoisted(self, body: List[Node], failed_at: int, env: Environment,
                       previous: Dict[str, Any], hoisted: Dict[str, Any]):
        """Undo hoisting for function declarations after `failed_at`.

        A binding that no longer holds the hoisted function was replaced by
        a statement that ran, so it is left alone. When an earlier
        declaration of the same name ran, that declaration is bound again.
        """
        executed: Dict[str, FuncDecl] = {}
        for stmt in body[:failed_at + 1]:
            if isinstance(stmt, FuncDecl):
                executed[stmt.name] = stmt
        for stmt in body[failed_at + 1:]:
            if not isinstance(stmt, FuncDecl) or env.values.get(stmt.name) is not hoisted[stmt.name]:
                continue
            if stmt.name in executed:
                decl = executed[stmt.name]
                env.declare(decl.name, FunctionValue(decl.name, decl.params, decl.body, env))
            elif previous[stmt.name] is MISSING:
                del env.values[stmt.name]
            else:
                env.declare(stmt.name, previous[stmt.name])
            if self.debug_level >= 2:
                self.debug(f"unbind function {stmt.name}")

    def execute_block(self, statements: List[Node], env: Environment) -> Any:
        env.hoist(statements)
        completion = UNDEFINED
        for stmt in statements:
            result = self.execute(stmt, env)
            # propagate return signals
            if isinstance(result, ReturnSignal):
                return result
            if not isinstance(stmt, EMPTY_COMPLETION):
                completion = result
        return completion

    def execute(self, node: Node, env: Environment) -> Any:
        if isinstance(node, ExprStmt):
            return self.evaluate(node.expr, env)
        if isinstance(node, VarDecl):
            value = self.evaluate(node.init, env) if node.init is not None else UNDEFINED
            env.declare(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name} = {value!r}")
            return UNDEFINED
        if isinstance(node, FuncDecl):
            # bound when the enclosing statement list was hoisted
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}")
            return UNDEFINED
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else UNDEFINED
            return ReturnSignal(value)
        if isinstance(node, IfStmt):
            branches = [(node.condition, node.then_block)] + list(node.elifs)
            for condition, block in branches:
                cond = self.evaluate(condition, env)
                truthy = is_truthy(cond)
                if self.debug_level >= 3:
                    self.debug(f"if condition {cond!r} -> {truthy}")
                if truthy:
                    return self.execute(block, env)
            if node.else_block is not None:
                return self.execute(node.else_block, env)
            return UNDEFINED
        if isinstance(node, WhileStmt):
            completion = UNDEFINED
            while True:
                cond = self.evaluate(node.condition, env)
                truthy = is_truthy(cond)
                if self.debug_level >= 3:
                    self.debug(f"while condition {cond!r} -> {truthy}")
                if not truthy:
                    break
                res = self.execute(node.body, env)
                if isinstance(res, ReturnSignal):
                    return res
                completion = res
            return completion
        if isinstance(node, Block):
            block_env = env.push_scope()
            return self.execute_block(node.statements, block_env)
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def evaluate(self, node: Node, env: Environment) -> Any:
        value = self.evaluate_node(node, env)
        if self.debug_level >= 4:
            self.debug(f"{type(node).__name__} -> {value!r}")
        return value

    def evaluate_node(self, node: Node, env: Environment) -> Any:
        if isinstance(node, (NumberLiteral, StringLiteral, BooleanLiteral)):
            return node.value
        if isinstance(node, Identifier):
            return env.get(node.name)
        if isinstance(node, UnaryOp):
            if node.op in ('++', '--'):
                if not isinstance(node.operand, Identifier):
                    raise InvalidAssignmentError('Invalid left-hand side expression in prefix operation')
                current = to_number(env.get(node.operand.name))
                value = current + 1 if node.op == '++' else current - 1
                env.set(node.operand.name, value)
                return value
            operand = self.evaluate(node.operand, env)
            if node.op == '!':
                return not is_truthy(operand)
            if node.op == '-':
                return -to_number(operand)
            if node.op == '+':
                return to_number(operand)
            raise ScriptRuntimeError(f"unsupported unary operator {node.op}")
        if isinstance(node, BinaryOp):
            left = self.evaluate(node.left, env)
            # Short-circuit for && and ||
            if node.op == '&&':
                if not is_truthy(left):
                    return False
                return is_truthy(self.evaluate(node.right, env))
            if node.op == '||':
                if is_truthy(left):
                    return True
                return is_truthy(self.evaluate(node.right, env))
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right)
        if isinstance(node, Assign):
            if not isinstance(node.target, Identifier):
                raise InvalidAssignmentError('Left side of assignment must be an identifier')
            name = node.target.name
            if node.op == '=':
                value = self.evaluate(node.value, env)
            else:
                # compound forms read the current value first
                current = env.get(name)
                value = self.apply_binary_op(node.op[:-1], current, self.evaluate(node.value, env))
            env.set(name, value)
            return value
        if isinstance(node, Call):
            func = self.evaluate(node.callee, env)
            args = [self.evaluate(arg, env) for arg in node.args]
            if not is_callable(func):
                raise NotCallableError(f"{node.callee.name} is not a function")
            return self.call_function(func, args)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def call_function(self, func: Any, args: List[Any]) -> Any:
        if isinstance(func, BuiltinFunction):
            # Check arity; None means variadic
            if func.arity is not None and len(args) != func.arity:
                raise ScriptRuntimeError(f"{func.name} expects {func.arity} arguments")
            if self.debug_level >= 2:
                self.debug(f"call builtin {func.name}")
            return func.fn(args)
        if isinstance(func, FunctionValue):
            if self.debug_level >= 2:
                self.debug(f"call {func.name}({', '.join(repr(a) for a in args)})")
            call_env = func.closure.push_scope()
            for i, param in enumerate(func.params):
                call_env.declare(param, args[i] if i < len(args) else UNDEFINED)
            if self.call_depth >= MAX_CALL_DEPTH:
                raise CallStackExceededError()
            self.call_depth += 1
            try:
                res = self.execute_block(func.body.statements, call_env)
            finally:
                self.call_depth -= 1
            if isinstance(res, ReturnSignal):
                return res.value
            return UNDEFINED
        raise NotCallableError(f"{func!r} is not a function")

    def apply_binary_op(self, op: str, a: Any, b: Any) -> Any:
        if op == '+':
            # If either operand is a string, concatenate
            if isinstance(a, str) or isinstance(b, str):
                return to_string(a) + to_string(b)
            return to_number(a) + to_number(b)
        if op in ARITHMETIC_OPS:
            x, y = to_number(a), to_number(b)
            if op == '-':
                return x - y
            if op == '*':
                return x * y
            if op == '/':
                return divide(x, y)
            if op == '%':
                return modulo(x, y)
            return power(x, y)
        if op in RELATIONAL_OPS:
            if not (isinstance(a, str) and isinstance(b, str)):
                a, b = to_number(a), to_number(b)
            if op == '<':
                return a < b
            if op == '>':
                return a > b
            if op == '<=':
                return a <= b
            return a >= b
        if op == '==':
            return loose_equals(a, b)
        if op == '!=':
            return not loose_equals(a, b)
        raise ScriptRuntimeError(f"unknown operator {op}")


###############################################################################
# Entry points
###############################################################################

def run(source: str, session: Environment, interpreter: Optional[Interpreter] = None) -> Any:
    """Parse and run `source` in `session`, returning the completion value.

    The whole input is tokenized and parsed before anything executes, so
    a LexError or ParseError leaves the session untouched.
    """
    program = parse_program(source)
    if interpreter is None:
        interpreter = Interpreter(session=session)
    return interpreter.run(program, session)


def run_program(source: str, debug_level: int = 0) -> Any:
    """Run a program from source in a fresh session."""
    ast_program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level)
    try:
        return interpreter.run(ast_program)
    finally:
        interpreter.close()


def run_file(file_path: str, debug_level: int = 0, debug_file: Optional[str] = None) -> Interpreter:
    """Run a tinyjs file, returning the interpreter so its globals can be inspected."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    ast_program = parse_program(source)
    interpreter = Interpreter(debug_level=debug_level, debug_file=debug_file)
    try:
        interpreter.run(ast_program)
    finally:
        interpreter.close()
    return interpreter
