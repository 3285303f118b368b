"""Tokenizer for tinyjs source text.

The terminal table is written as a Lark grammar and compiled once with
Lark's basic lexer. Lark orders string terminals longest-first, so `**`
wins over `*` and `>=` over `>`, and it retypes identifier matches that
spell a keyword (``let`` becomes a LET token rather than a NAME).
"""

from __future__ import annotations

from typing import Iterator, List

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters

from .errors import LexError, LexErrorKind

TOKEN_GRAMMAR = r"""
    start: _token*

    _token: NUMBER | STRING | NAME | _keyword | _operator | _punct

    _keyword: LET | FUNCTION | RETURN | IF | ELSE | WHILE | TRUE | FALSE
    _operator: POW | PLUS_ASSIGN | MINUS_ASSIGN | STAR_ASSIGN | SLASH_ASSIGN
             | INC | DEC | EQ | NE | GE | LE | AND | OR
             | PLUS | MINUS | STAR | SLASH | PERCENT
             | LT | GT | ASSIGN | BANG
    _punct: LPAR | RPAR | LBRACE | RBRACE | COMMA | SEMICOLON

    LET: "let"
    FUNCTION: "function"
    RETURN: "return"
    IF: "if"
    ELSE: "else"
    WHILE: "while"
    TRUE: "true"
    FALSE: "false"

    POW: "**"
    PLUS_ASSIGN: "+="
    MINUS_ASSIGN: "-="
    STAR_ASSIGN: "*="
    SLASH_ASSIGN: "/="
    INC: "++"
    DEC: "--"
    EQ: "=="
    NE: "!="
    GE: ">="
    LE: "<="
    AND: "&&"
    OR: "||"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    LT: "<"
    GT: ">"
    ASSIGN: "="
    BANG: "!"

    LPAR: "("
    RPAR: ")"
    LBRACE: "{"
    RBRACE: "}"
    COMMA: ","
    SEMICOLON: ";"

    NUMBER: /\d+(\.\d*)?/
    STRING: /"[^"]*"|'[^']*'/
    %import common.CNAME -> NAME

    LINE_COMMENT: /\/\/[^\n]*/
    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
"""

KEYWORDS = ('LET', 'FUNCTION', 'RETURN', 'IF', 'ELSE', 'WHILE', 'TRUE', 'FALSE')

_lexer = Lark(TOKEN_GRAMMAR, parser='lalr', lexer='basic')


def iter_tokens(source: str) -> Iterator[Token]:
    """Yield the tokens of `source` lazily, without the trailing EOF.

    NUMBER tokens carry a float and STRING tokens carry the text between
    the quotes. Raises LexError on the first character no terminal
    accepts.
    """
    try:
        for token in _lexer.lex(source):
            if token.type == 'NUMBER':
                yield token.update(value=float(token))
            elif token.type == 'STRING':
                yield token.update(value=token[1:-1])
            else:
                yield token
    except UnexpectedCharacters as e:
        if e.char in ('"', "'"):
            raise LexError(LexErrorKind.UNTERMINATED_STRING,
                           f"unterminated string literal starting with {e.char}",
                           e.line, e.column) from None
        raise LexError(LexErrorKind.UNRECOGNIZED_CHARACTER,
                       f"unrecognized character {e.char!r}",
                       e.line, e.column) from None


def eof_token(source: str) -> Token:
    line = source.count('\n') + 1
    column = len(source) - source.rfind('\n')
    return Token('EOF', '', start_pos=len(source), line=line, column=column)


def tokenize(source: str) -> List[Token]:
    """Convert source text into a list of tokens ending with an EOF token."""
    tokens = list(iter_tokens(source))
    tokens.append(eof_token(source))
    return tokens
