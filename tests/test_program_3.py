from pathlib import Path

from tinyjs.interpreter import parse_program, Interpreter

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_3_functions(capsys):
    with open(EXAMPLES / 'program_3.tjs', 'r', encoding='utf-8') as f:
        source = f.read()
    ast = parse_program(source)
    interp = Interpreter()
    interp.run(ast)
    out = capsys.readouterr().out.strip()
    assert out == '120\n55\nHello, Ada\nundefined, Ada'
