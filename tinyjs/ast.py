"""Abstract Syntax Tree (AST) definitions for tinyjs.

The node set is closed: the parser only ever produces the classes below
and the interpreter dispatches on them with `isinstance`. Trees are never
modified after parsing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


# Expressions

@dataclass
class NumberLiteral(Node):
    value: float


@dataclass
class StringLiteral(Node):
    value: str


@dataclass
class BooleanLiteral(Node):
    value: bool


@dataclass
class Identifier(Node):
    name: str


@dataclass
class UnaryOp(Node):
    op: str  # '!', '-', '+', '++' or '--'
    operand: Node


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class Assign(Node):
    target: Identifier
    op: str  # '=', '+=', '-=', '*=' or '/='
    value: Node


@dataclass
class Call(Node):
    callee: Identifier
    args: List[Node] = field(default_factory=list)


# Statements

@dataclass
class Block(Node):
    statements: List[Node]


@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class ExprStmt(Node):
    expr: Node


@dataclass
class VarDecl(Node):
    name: str
    init: Optional[Node]  # None binds undefined


@dataclass
class FuncDecl(Node):
    name: str
    params: List[str]
    body: Block


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]


@dataclass
class IfStmt(Node):
    condition: Node
    then_block: Block
    elifs: List[Tuple[Node, Block]] = field(default_factory=list)
    else_block: Optional[Block] = None


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Block
