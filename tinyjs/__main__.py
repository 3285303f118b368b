"""CLI entry point for the tinyjs interpreter.

Usage:
    python -m tinyjs [-v|-vv|-vvv|-vvvv]                  (interactive)
    python -m tinyjs [-v...] <program_file>
    python -m tinyjs [-v...] -c '<source>'
    python -m tinyjs [-v...] --emit-ast <program_file>
    python -m tinyjs [-v...] --ast <ast_json_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  -c            Run the given source text and print its result
  --emit-ast    Parse the given file and emit an AST JSON file
  --ast         Execute a previously emitted AST JSON file

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Without a program the interpreter starts
an interactive session whose declarations persist between inputs.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .ast import Program
from .ast_json import ast_from_obj, ast_to_obj
from .errors import ParseError, ParseErrorKind, ScriptError
from .interpreter import Interpreter
from .parser import END_OF_INPUT, parse_program
from .types import format_value

DEBUG_FILE = 'debug.txt'


def is_incomplete(err: ParseError) -> bool:
    """True when more input could still turn `err` into a valid program."""
    return err.found == END_OF_INPUT and err.kind is not ParseErrorKind.MISSING_SEMICOLON


def run_repl(interpreter: Interpreter) -> None:
    print("tinyjs interpreter")
    print("Type `.vars` to list bindings, `exit` or `quit` to leave.")
    buffer: list[str] = []
    while True:
        try:
            prompt = "> " if not buffer else "... "
            line = input(prompt)
            if not buffer and line.strip() in {"exit", "quit"}:
                break
            if not buffer and line.strip() == ".vars":
                print(" ".join(interpreter.global_env.names()))
                continue
            buffer.append(line)
            source = "\n".join(buffer)
            try:
                program = parse_program(source)
            except ParseError as e:
                if is_incomplete(e):
                    continue
                print(e)
                buffer.clear()
                continue
            except ScriptError as e:
                print(e)
                buffer.clear()
                continue
            buffer.clear()
            try:
                text = format_value(interpreter.run(program))
            except ScriptError as e:
                print(e)
                continue
            if text:
                print(text)
        except KeyboardInterrupt:
            print("\nInterrupted.")
            buffer.clear()
        except EOFError:
            print()
            break


def read_source(path: Path) -> str:
    if not path.exists():
        print(f"Error: file {path} not found", file=sys.stderr)
        sys.exit(1)
    with open(path, 'r', encoding='utf-8') as f:
        return f.read()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog='tinyjs', description="tinyjs language interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-c', metavar='SOURCE', dest='source', help='run SOURCE and print its result')
    group.add_argument('--emit-ast', metavar='PROGRAM_FILE', help='emit AST JSON for the given program file')
    group.add_argument('--ast', metavar='AST_JSON_FILE', help='execute AST from a JSON file')
    parser.add_argument('program', nargs='?', help='program file to execute; omit for an interactive session')
    args = parser.parse_args(argv)

    # Emit AST mode
    if args.emit_ast:
        program_file = Path(args.emit_ast)
        source = read_source(program_file)
        try:
            ast_program = parse_program(source)
        except ScriptError as e:
            print(e, file=sys.stderr)
            sys.exit(1)
        out_path = program_file.with_name(program_file.name + '.ast.json')
        with open(out_path, 'w', encoding='utf-8') as out:
            json.dump(ast_to_obj(ast_program), out, ensure_ascii=False, indent=2)
        print(str(out_path))
        return

    interpreter = Interpreter(debug_level=args.v, debug_file=DEBUG_FILE)
    try:
        # Execute from AST JSON
        if args.ast:
            ast_path = Path(args.ast)
            if not ast_path.exists():
                print(f"Error: file {ast_path} not found", file=sys.stderr)
                sys.exit(1)
            try:
                with open(ast_path, 'r', encoding='utf-8') as f:
                    ast_program = ast_from_obj(json.load(f))
            except (KeyError, TypeError, ValueError) as e:
                print(f"Error: malformed AST file {ast_path}: {e}", file=sys.stderr)
                sys.exit(1)
            if not isinstance(ast_program, Program):
                print(f"Error: malformed AST file {ast_path}: top-level node must be a Program", file=sys.stderr)
                sys.exit(1)
            execute(interpreter, lambda: ast_program)
            return

        if args.source is not None:
            result = execute(interpreter, lambda: parse_program(args.source))
            text = format_value(result)
            if text:
                print(text)
            return

        if not args.program:
            run_repl(interpreter)
            return

        source = read_source(Path(args.program))
        execute(interpreter, lambda: parse_program(source))
    finally:
        interpreter.close()


def execute(interpreter: Interpreter, load):
    try:
        return interpreter.run(load())
    except ScriptError as e:
        print(e, file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
