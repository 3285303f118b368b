"""JSON serialization/deserialization for the tinyjs AST.

Nodes become dicts tagged with a "type" key naming the node class, so a
parsed program can be written out with `--emit-ast` and executed later
with `--ast` without re-parsing the source.
"""

from __future__ import annotations

from typing import Any

from .ast import (
    Assign, BinaryOp, Block, BooleanLiteral, Call, ExprStmt, FuncDecl,
    Identifier, IfStmt, NumberLiteral, Program, ReturnStmt, StringLiteral,
    UnaryOp, VarDecl, WhileStmt,
)


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None

    if isinstance(node, Program):
        return {"type": "Program", "body": [ast_to_obj(n) for n in node.body]}
    if isinstance(node, Block):
        return {"type": "Block", "statements": [ast_to_obj(s) for s in node.statements]}
    if isinstance(node, VarDecl):
        return {"type": "VarDecl", "name": node.name, "init": ast_to_obj(node.init)}
    if isinstance(node, FuncDecl):
        return {
            "type": "FuncDecl",
            "name": node.name,
            "params": list(node.params),
            "body": ast_to_obj(node.body),
        }
    if isinstance(node, IfStmt):
        return {
            "type": "IfStmt",
            "condition": ast_to_obj(node.condition),
            "then_block": ast_to_obj(node.then_block),
            "elifs": [[ast_to_obj(c), ast_to_obj(b)] for (c, b) in node.elifs],
            "else_block": ast_to_obj(node.else_block),
        }
    if isinstance(node, WhileStmt):
        return {"type": "WhileStmt", "condition": ast_to_obj(node.condition), "body": ast_to_obj(node.body)}
    if isinstance(node, ReturnStmt):
        return {"type": "ReturnStmt", "value": ast_to_obj(node.value)}
    if isinstance(node, ExprStmt):
        return {"type": "ExprStmt", "expr": ast_to_obj(node.expr)}
    if isinstance(node, Assign):
        return {
            "type": "Assign",
            "target": ast_to_obj(node.target),
            "op": node.op,
            "value": ast_to_obj(node.value),
        }
    if isinstance(node, BinaryOp):
        return {"type": "BinaryOp", "op": node.op, "left": ast_to_obj(node.left), "right": ast_to_obj(node.right)}
    if isinstance(node, UnaryOp):
        return {"type": "UnaryOp", "op": node.op, "operand": ast_to_obj(node.operand)}
    if isinstance(node, Call):
        return {"type": "Call", "callee": ast_to_obj(node.callee), "args": [ast_to_obj(a) for a in node.args]}
    if isinstance(node, NumberLiteral):
        return {"type": "NumberLiteral", "value": node.value}
    if isinstance(node, StringLiteral):
        return {"type": "StringLiteral", "value": node.value}
    if isinstance(node, BooleanLiteral):
        return {"type": "BooleanLiteral", "value": node.value}
    if isinstance(node, Identifier):
        return {"type": "Identifier", "name": node.name}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    if t == "Program":
        return Program(body=[ast_from_obj(n) for n in obj["body"]])
    if t == "Block":
        return Block(statements=[ast_from_obj(s) for s in obj["statements"]])
    if t == "VarDecl":
        return VarDecl(name=obj["name"], init=ast_from_obj(obj.get("init")))
    if t == "FuncDecl":
        return FuncDecl(name=obj["name"], params=list(obj["params"]), body=ast_from_obj(obj["body"]))
    if t == "IfStmt":
        return IfStmt(
            condition=ast_from_obj(obj["condition"]),
            then_block=ast_from_obj(obj["then_block"]),
            elifs=[(ast_from_obj(c), ast_from_obj(b)) for (c, b) in obj.get("elifs", [])],
            else_block=ast_from_obj(obj.get("else_block")),
        )
    if t == "WhileStmt":
        return WhileStmt(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]))
    if t == "ReturnStmt":
        return ReturnStmt(value=ast_from_obj(obj.get("value")))
    if t == "ExprStmt":
        return ExprStmt(expr=ast_from_obj(obj["expr"]))
    if t == "Assign":
        return Assign(target=ast_from_obj(obj["target"]), op=obj.get("op", "="), value=ast_from_obj(obj["value"]))
    if t == "BinaryOp":
        return BinaryOp(op=obj["op"], left=ast_from_obj(obj["left"]), right=ast_from_obj(obj["right"]))
    if t == "UnaryOp":
        return UnaryOp(op=obj["op"], operand=ast_from_obj(obj["operand"]))
    if t == "Call":
        return Call(callee=ast_from_obj(obj["callee"]), args=[ast_from_obj(a) for a in obj["args"]])
    if t == "NumberLiteral":
        return NumberLiteral(value=float(obj["value"]))
    if t == "StringLiteral":
        return StringLiteral(value=obj["value"])
    if t == "BooleanLiteral":
        return BooleanLiteral(value=bool(obj["value"]))
    if t == "Identifier":
        return Identifier(name=obj["name"])

    raise ValueError(f"Unknown AST node type: {t}")
