import math
import sys

import pytest

from tinyjs.ast import Assign, ExprStmt, NumberLiteral, Program, UnaryOp
from tinyjs.builtin_function import BuiltinFunction
from tinyjs.errors import (
    CallStackExceededError, InvalidAssignmentError, NotCallableError,
    ScriptRuntimeError, UndefinedVariableError,
)
from tinyjs.interpreter import Interpreter, create_session, run, run_program
from tinyjs.types import UNDEFINED


@pytest.mark.parametrize('source, expected', [
    ('2 + 3 * 4;', 14.0),
    ('2 ** 3 ** 2;', 512.0),
    ('(2 + 3) * 4;', 20.0),
    ('10 - 4 - 3;', 3.0),
    ('7 / 2;', 3.5),
    ('7 % 3;', 1.0),
    ('-7 % 3;', -1.0),
    ('2 ** -1;', 0.5),
    ('-2 ** 2;', 4.0),
])
def test_arithmetic(source, expected):
    assert run_program(source) == expected


def test_division_by_zero_does_not_trap():
    assert run_program('1 / 0;') == math.inf
    assert run_program('-1 / 0;') == -math.inf
    assert math.isnan(run_program('0 / 0;'))
    assert math.isnan(run_program('5 % 0;'))


def test_power_edge_cases():
    assert run_program('0 ** -1;') == math.inf
    assert run_program('10 ** 400;') == math.inf
    assert math.isnan(run_program('(-8) ** 0.5;'))


def test_string_concatenation():
    assert run_program('"a" + 1;') == 'a1'
    assert run_program('"x" + true;') == 'xtrue'
    assert run_program('1 + 2 + "3";') == '33'
    assert run_program('"apple" + false;') == 'applefalse'


def test_boolean_arithmetic():
    assert run_program('true + 1;') == 2.0
    assert run_program('"6" / "2";') == 3.0
    assert math.isnan(run_program('"apple" * 2;'))


def test_unary_operators():
    assert run_program('!0;') is True
    assert run_program('!"a";') is False
    assert run_program('!!1;') is True
    assert run_program('-true;') == -1.0
    assert run_program('+"5";') == 5.0
    assert math.isnan(run_program('+"apple";'))


def test_relational_operators():
    assert run_program('"b" > "a";') is True
    assert run_program('"10" < 9;') is False
    assert run_program('2 <= 2;') is True
    assert run_program('"apple" < 1;') is False
    assert run_program('"apple" >= 1;') is False


def test_equality_operators():
    assert run_program('"1" == 1;') is True
    assert run_program('1 != 2;') is True
    assert run_program('true == "1";') is True
    assert run_program('let u; u == 0;') is False
    assert run_program('let u; let v; u == v;') is True


def test_logical_operators_yield_booleans():
    assert run_program('1 && "a";') is True
    assert run_program('0 || "";') is False


def test_and_short_circuits():
    assert run_program('let hit = false; false && (hit = true); hit;') is False
    assert run_program('let hit = false; true && (hit = true); hit;') is True


def test_or_short_circuits():
    assert run_program('let hit = false; true || (hit = true); hit;') is False
    assert run_program('let hit = false; false || (hit = true); hit;') is True


def test_prefix_increment_and_decrement():
    assert run_program('let n = 5; ++n;') == 6.0
    assert run_program('let n = 5; --n; n;') == 4.0
    assert run_program('let s = "4"; ++s;') == 5.0
    assert run_program('let b = true; ++b;') == 2.0


def test_compound_assignment():
    assert run_program('let s = "a"; s += 1; s;') == 'a1'
    assert run_program('let x = 10; x -= 3; x *= 2; x /= 7; x;') == 2.0


def test_assignment_yields_stored_value():
    assert run_program('let a; let b; a = b = 4; a + b;') == 8.0


def test_assignment_to_undeclared_name_fails():
    with pytest.raises(UndefinedVariableError):
        run_program('z = 1;')


def test_shadowing_inside_function():
    source = 'let x = 1; function f() { let x = 2; return x; } '
    assert run_program(source + 'f();') == 2.0
    assert run_program(source + 'f(); x;') == 1.0


def test_functions_are_hoisted():
    assert run_program('f(); function f() { return 1; }') == 1.0


def test_hoisting_inside_function_bodies():
    source = '''
    function outer() {
        return inner() + 1;
        function inner() { return 41; }
    }
    outer();
    '''
    assert run_program(source) == 42.0


def test_let_is_not_hoisted():
    with pytest.raises(UndefinedVariableError):
        run_program('x; let x = 1;')


def test_while_loop():
    assert run_program('let x = 0; while (x < 3) { x = x + 1; } x;') == 3.0


def test_while_body_scope_is_fresh_each_iteration():
    with pytest.raises(UndefinedVariableError):
        run_program('let i = 0; while (i < 2) { let t = i; i += 1; } t;')


def test_else_if_runs_only_first_match():
    assert run_program('if (false) { 1; } else if (true) { 2; } else { 3; }') == 2.0
    source = '''
    let log = "";
    if (false) { log += "a"; }
    else if (true) { log += "b"; }
    else if (true) { log += "c"; }
    else { log += "d"; }
    log;
    '''
    assert run_program(source) == 'b'


def test_if_without_matching_branch_is_undefined():
    assert run_program('if (0) { 1; }') is UNDEFINED


def test_missing_arguments_are_undefined():
    assert run_program('function f(a, b) { return b; } f(1);') is UNDEFINED


def test_surplus_arguments_are_evaluated():
    assert run_program('let hits = 0; function f(a) { return a; } f(1, hits += 1); hits;') == 1.0


def test_arguments_evaluated_left_to_right():
    source = '''
    let order = "";
    function mark(tag) { order += tag; return tag; }
    function pair(a, b) { return a + b; }
    pair(mark("L"), mark("R"));
    order;
    '''
    assert run_program(source) == 'LR'


def test_return_unwinds_loops_and_branches():
    source = '''
    function find() {
        let i = 0;
        while (true) {
            i += 1;
            if (i == 3) { return i; }
        }
    }
    find();
    '''
    assert run_program(source) == 3.0


def test_function_without_return_is_undefined():
    assert run_program('function f() { 1; } f();') is UNDEFINED


def test_functions_resolve_globals_lexically():
    assert run_program('function g() { return later; } let later = 5; g();') == 5.0


def test_nested_function_sees_enclosing_locals():
    source = 'function outer() { let v = 7; function inner() { return v; } return inner(); } outer();'
    assert run_program(source) == 7.0


def test_recursion():
    source = 'function fact(n) { if (n <= 1) { return 1; } return n * fact(n - 1); } fact(10);'
    assert run_program(source) == 3628800.0


def test_top_level_return_halts_program():
    session = create_session()
    assert run('let x = 1; return x + 1; x = 100;', session) == 2.0
    assert session.get('x') == 1.0


def test_pure_expressions_are_idempotent():
    session = create_session()
    run('let a = 2; let b = 3;', session)
    before = dict(session.values)
    first = run('a * b + 1 == 7 && "s" + a;', session)
    second = run('a * b + 1 == 7 && "s" + a;', session)
    assert first == second
    assert session.values == before


def test_undeclared_identifier():
    with pytest.raises(UndefinedVariableError) as excinfo:
        run_program('y;')
    assert isinstance(excinfo.value, ScriptRuntimeError)
    assert str(excinfo.value) == 'ReferenceError: y is not defined'


def test_calling_a_non_function():
    with pytest.raises(NotCallableError) as excinfo:
        run_program('let x = 1; x();')
    assert str(excinfo.value) == 'TypeError: x is not a function'


def test_runaway_recursion():
    with pytest.raises(CallStackExceededError) as excinfo:
        run_program('function f(n) { return f(n + 1); } f(0);')
    assert 'Maximum call stack size exceeded' in str(excinfo.value)


def test_deep_recursion():
    source = 'function sum(n) { if (n == 0) { return 0; } return n + sum(n - 1); } sum(500);'
    assert run_program(source) == 125250.0


def test_recursion_limit_is_restored():
    limit = sys.getrecursionlimit()
    run_program('function f(n) { if (n == 0) { return 0; } return f(n - 1); } f(50);')
    with pytest.raises(CallStackExceededError):
        run_program('function f(n) { return f(n + 1); } f(0);')
    assert sys.getrecursionlimit() == limit


def test_invalid_assignment_target_in_tree():
    program = Program([ExprStmt(Assign(NumberLiteral(1.0), '=', NumberLiteral(2.0)))])
    with pytest.raises(InvalidAssignmentError):
        Interpreter().run(program)


def test_invalid_prefix_target_in_tree():
    program = Program([ExprStmt(UnaryOp('++', NumberLiteral(1.0)))])
    with pytest.raises(InvalidAssignmentError):
        Interpreter().run(program)


def test_print_builtin(capsys):
    assert run_program('print("a", 1, true, 2.5);') is UNDEFINED
    assert capsys.readouterr().out == 'a 1 true 2.5\n'


def test_builtin_arity_is_checked():
    session = create_session()
    session.declare('twice', BuiltinFunction('twice', 1, lambda args: args[0] * 2))
    assert run('twice(2);', session) == 4.0
    with pytest.raises(ScriptRuntimeError) as excinfo:
        run('twice(1, 2);', session)
    assert 'twice expects 1 arguments' in str(excinfo.value)


def test_debug_trace_to_file(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=4, debug_file=str(debug_file))
    run('function f(a) { return a; } let x = f(1); if (x) { x; }', interp.global_env, interp)
    interp.close()
    trace = debug_file.read_text(encoding='utf-8')
    assert 'statement VarDecl' in trace
    assert 'call f(1.0)' in trace
    assert 'declare x = 1.0' in trace
    assert 'if condition 1.0 -> True' in trace
    assert 'Identifier -> 1.0' in trace


def test_debug_trace_to_stderr(capsys):
    run_program('let x = 1;', debug_level=2)
    assert 'declare x = 1.0' in capsys.readouterr().err


def test_no_trace_without_debug_level(capsys):
    run_program('let x = 1;')
    assert capsys.readouterr().err == ''
