"""Parser producing a tinyjs AST from a token list.

Statements are parsed by recursive descent. Expressions use precedence
climbing: each infix operator has a (left, right) binding power pair and
an operator keeps absorbing operands while its left power is at least the
minimum the caller asked for. Right-associative operators get a right
power lower than their left power.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from lark import Token

from .ast import (
    Assign, BinaryOp, Block, BooleanLiteral, Call, ExprStmt, FuncDecl,
    Identifier, IfStmt, Node, NumberLiteral, Program, ReturnStmt,
    StringLiteral, UnaryOp, VarDecl, WhileStmt,
)
from .errors import ParseError, ParseErrorKind
from .lexer import tokenize

# Binding powers, lowest to highest
ASSIGN_OPS = ('ASSIGN', 'PLUS_ASSIGN', 'MINUS_ASSIGN', 'STAR_ASSIGN', 'SLASH_ASSIGN')

INFIX_BINDING = {
    'ASSIGN': (2, 1), 'PLUS_ASSIGN': (2, 1), 'MINUS_ASSIGN': (2, 1),
    'STAR_ASSIGN': (2, 1), 'SLASH_ASSIGN': (2, 1),
    'OR': (3, 4),
    'AND': (5, 6),
    'EQ': (7, 8), 'NE': (7, 8),
    'LT': (9, 10), 'GT': (9, 10), 'LE': (9, 10), 'GE': (9, 10),
    'PLUS': (11, 12), 'MINUS': (11, 12),
    'STAR': (13, 14), 'SLASH': (13, 14), 'PERCENT': (13, 14),
    'POW': (16, 15),
}

PREFIX_OPS = ('BANG', 'MINUS', 'PLUS', 'INC', 'DEC')
PREFIX_BINDING = 17

END_OF_INPUT = 'end of input'


def describe(token: Token) -> str:
    if token.type == 'EOF':
        return END_OF_INPUT
    if token.type == 'STRING':
        return repr(token.value)
    return f"'{token}'"


class Parser:
    def __init__(self, tokens: Iterable[Token]):
        self.tokens: List[Token] = list(tokens)
        if not self.tokens or self.tokens[-1].type != 'EOF':
            last = self.tokens[-1] if self.tokens else None
            self.tokens.append(Token('EOF', '', line=getattr(last, 'end_line', 1),
                                     column=getattr(last, 'end_column', 1)))
        self.pos = 0

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.type != 'EOF':
            self.pos += 1
        return token

    def match(self, *types: str) -> bool:
        return self.peek().type in types

    def error(self, kind: ParseErrorKind, token: Token, expected: Optional[str] = None,
              message: Optional[str] = None) -> ParseError:
        found = describe(token)
        if message is None:
            message = kind.value
            if expected is not None:
                message += f": expected {expected}, found {found}"
            else:
                message += f": {found}"
        return ParseError(kind, message, token.line, token.column, expected, found)

    def consume(self, expected: str, kind: ParseErrorKind = ParseErrorKind.UNEXPECTED_TOKEN,
                display: Optional[str] = None) -> Token:
        token = self.peek()
        if token.type != expected:
            if token.type == 'EOF' and kind is ParseErrorKind.UNEXPECTED_TOKEN:
                kind = ParseErrorKind.UNEXPECTED_EOF
            raise self.error(kind, token, display or expected)
        return self.advance()

    def consume_semicolon(self) -> None:
        self.consume('SEMICOLON', ParseErrorKind.MISSING_SEMICOLON, "';'")

    # Statements

    def parse_program(self) -> Program:
        statements: List[Node] = []
        while not self.match('EOF'):
            if self.match('SEMICOLON'):
                self.advance()
                continue
            statements.append(self.parse_statement())
        return Program(statements)

    def parse_statement(self) -> Node:
        token = self.peek()
        if token.type == 'LET':
            return self.parse_var_decl()
        if token.type == 'FUNCTION':
            return self.parse_func_decl()
        if token.type == 'RETURN':
            return self.parse_return_stmt()
        if token.type == 'IF':
            return self.parse_if_stmt()
        if token.type == 'WHILE':
            return self.parse_while_stmt()
        expr = self.parse_expression()
        self.consume_semicolon()
        return ExprStmt(expr)

    def parse_var_decl(self) -> VarDecl:
        self.consume('LET')
        name = self.consume('NAME', display='identifier')
        init = None
        if self.match('ASSIGN'):
            self.advance()
            init = self.parse_expression()
        self.consume_semicolon()
        return VarDecl(str(name), init)

    def parse_func_decl(self) -> FuncDecl:
        self.consume('FUNCTION')
        name = self.consume('NAME', display='function name')
        self.consume('LPAR', display="'('")
        params: List[str] = []
        if not self.match('RPAR'):
            while True:
                param = self.peek()
                if param.type != 'NAME':
                    if param.type == 'EOF':
                        raise self.error(ParseErrorKind.UNEXPECTED_EOF, param, 'parameter name')
                    raise self.error(ParseErrorKind.INVALID_PARAMETER, param, 'parameter name')
                params.append(str(self.advance()))
                if not self.match('COMMA'):
                    break
                self.advance()
        self.consume('RPAR', ParseErrorKind.MISSING_CLOSING_PAREN, "')'")
        body = self.parse_block()
        return FuncDecl(str(name), params, body)

    def parse_block(self) -> Block:
        self.consume('LBRACE', display="'{'")
        statements: List[Node] = []
        while not self.match('RBRACE'):
            if self.match('EOF'):
                raise self.error(ParseErrorKind.MISSING_CLOSING_BRACE, self.peek(), "'}'")
            # stray semicolons
            if self.match('SEMICOLON'):
                self.advance()
                continue
            statements.append(self.parse_statement())
        self.advance()
        return Block(statements)

    def parse_if_stmt(self) -> IfStmt:
        self.consume('IF')
        condition = self.parse_condition()
        then_block = self.parse_block()
        node = IfStmt(condition, then_block)
        while self.match('ELSE'):
            self.advance()
            if self.match('IF'):
                self.advance()
                elif_condition = self.parse_condition()
                node.elifs.append((elif_condition, self.parse_block()))
            else:
                node.else_block = self.parse_block()
                break
        return node

    def parse_while_stmt(self) -> WhileStmt:
        self.consume('WHILE')
        condition = self.parse_condition()
        body = self.parse_block()
        return WhileStmt(condition, body)

    def parse_condition(self) -> Node:
        self.consume('LPAR', display="'('")
        condition = self.parse_expression()
        self.consume('RPAR', ParseErrorKind.MISSING_CLOSING_PAREN, "')'")
        return condition

    def parse_return_stmt(self) -> ReturnStmt:
        self.consume('RETURN')
        if self.match('SEMICOLON'):
            self.advance()
            return ReturnStmt(None)
        value = self.parse_expression()
        self.consume_semicolon()
        return ReturnStmt(value)

    # Expressions

    def parse_expression(self, min_bp: int = 0) -> Node:
        token = self.advance()
        if token.type in PREFIX_OPS:
            operand = self.parse_expression(PREFIX_BINDING)
            if token.type in ('INC', 'DEC') and not isinstance(operand, Identifier):
                raise self.error(ParseErrorKind.INVALID_PREFIX_TARGET, token,
                                 message=f"invalid operand for prefix {token}: expected identifier")
            left: Node = UnaryOp(str(token), operand)
        else:
            left = self.parse_primary(token)

        while True:
            op = self.peek()
            if op.type not in INFIX_BINDING:
                break
            left_bp, right_bp = INFIX_BINDING[op.type]
            if left_bp < min_bp:
                break
            self.advance()
            right = self.parse_expression(right_bp)
            if op.type in ASSIGN_OPS:
                if not isinstance(left, Identifier):
                    raise self.error(ParseErrorKind.INVALID_ASSIGNMENT_TARGET, op,
                                     message='left side of assignment must be an identifier')
                left = Assign(left, str(op), right)
            else:
                left = BinaryOp(str(op), left, right)
        return left

    def parse_primary(self, token: Token) -> Node:
        if token.type == 'NUMBER':
            return NumberLiteral(token.value)
        if token.type == 'STRING':
            return StringLiteral(token.value)
        if token.type in ('TRUE', 'FALSE'):
            return BooleanLiteral(token.type == 'TRUE')
        if token.type == 'NAME':
            if self.match('LPAR'):
                return self.parse_call(Identifier(str(token)))
            return Identifier(str(token))
        if token.type == 'LPAR':
            expr = self.parse_expression()
            self.consume('RPAR', ParseErrorKind.MISSING_CLOSING_PAREN, "')'")
            return expr
        if token.type == 'EOF':
            raise self.error(ParseErrorKind.UNEXPECTED_EOF, token, 'expression')
        raise self.error(ParseErrorKind.UNEXPECTED_TOKEN, token, 'expression')

    def parse_call(self, callee: Identifier) -> Call:
        self.consume('LPAR')
        args: List[Node] = []
        if not self.match('RPAR'):
            while True:
                args.append(self.parse_expression())
                if not self.match('COMMA'):
                    break
                self.advance()
        self.consume('RPAR', ParseErrorKind.MISSING_CLOSING_PAREN, "')'")
        return Call(callee, args)


def parse(tokens: Iterable[Token]) -> Program:
    """Parse a token sequence into a Program."""
    return Parser(tokens).parse_program()


def parse_program(source: str) -> Program:
    """Tokenize and parse source text into a Program AST."""
    return parse(tokenize(source))
