"""
Defines the two syntax trees produced by the stackc parser.

Expressions:
    IntLiteral(value)            integer constant
    VarRef(name)                 variable read (unset variables read as 0)
    BinaryOp(op, left, right)    op is one of "ADD", "SUB", "MUL"

Statements:
    Seq(first, second)           `first ; second`
    Read(name)                   `> name`
    Write(name)                  `< name`
    Assign(name, expr)           `= name expr`
    IfTrue(name, body)           `? name body`, body runs when name is non-zero
    IfFalse(name, body)          `! name body`, body runs when name is zero
    While(name, body)            `@ name body`, repeats while name is non-zero
    Block(inner)                 `{ inner }`

Both variant sets are closed: `Expr` and `Stmt` are unions of the classes above,
and consumers dispatch on the `kind` tag. Nodes are frozen dataclasses and are
never shared between parents.

Helpers:
    format_expr(expr): fully parenthesized infix rendering.
    evaluate(expr, env): integer value of an expression.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, ClassVar, Union


class Node:
    """Mixin shared by every tree node."""

    kind: ClassVar[str]

    def to_dict(self) -> dict[str, Any]:
        """Converts the node and its descendants into plain dictionaries (JSON ready)."""
        data: dict[str, Any] = {"kind": self.kind}
        for f in fields(self):  # type: ignore[arg-type]
            val = getattr(self, f.name)
            data[f.name] = val.to_dict() if isinstance(val, Node) else val
        return data


@dataclass(frozen=True)
class IntLiteral(Node):
    kind: ClassVar[str] = "int"
    value: int


@dataclass(frozen=True)
class VarRef(Node):
    kind: ClassVar[str] = "var"
    name: str


@dataclass(frozen=True)
class BinaryOp(Node):
    kind: ClassVar[str] = "binop"
    op: str
    left: Expr
    right: Expr


Expr = Union[IntLiteral, VarRef, BinaryOp]


@dataclass(frozen=True)
class Seq(Node):
    kind: ClassVar[str] = "seq"
    first: Stmt
    second: Stmt


@dataclass(frozen=True)
class Read(Node):
    kind: ClassVar[str] = "read"
    name: str


@dataclass(frozen=True)
class Write(Node):
    kind: ClassVar[str] = "write"
    name: str


@dataclass(frozen=True)
class Assign(Node):
    kind: ClassVar[str] = "assign"
    name: str
    expr: Expr


@dataclass(frozen=True)
class IfTrue(Node):
    kind: ClassVar[str] = "if_true"
    name: str
    body: Stmt


@dataclass(frozen=True)
class IfFalse(Node):
    kind: ClassVar[str] = "if_false"
    name: str
    body: Stmt


@dataclass(frozen=True)
class While(Node):
    kind: ClassVar[str] = "while"
    name: str
    body: Stmt


@dataclass(frozen=True)
class Block(Node):
    kind: ClassVar[str] = "block"
    inner: Stmt


Stmt = Union[Seq, Read, Write, Assign, IfTrue, IfFalse, While, Block]

OPERATOR_SYMBOLS: dict[str, str] = {"ADD": "+", "SUB": "-", "MUL": "*"}


def sequence(statements: list[Stmt]) -> Stmt:
    """Folds statements into a right-nested Seq chain: [a, b, c] -> Seq(a, Seq(b, c))."""
    if not statements:
        raise ValueError("sequence() needs at least one statement")
    result = statements[-1]
    for stmt in reversed(statements[:-1]):
        result = Seq(stmt, result)
    return result


def flatten(stmt: Stmt) -> list[Stmt]:
    """Inverse of `sequence`: walks the right spine of a Seq chain."""
    items: list[Stmt] = []
    while isinstance(stmt, Seq):
        items.append(stmt.first)
        stmt = stmt.second
    items.append(stmt)
    return items


def format_expr(expr: Expr) -> str:
    """Renders an expression in infix form, parenthesizing every binary operation."""
    if isinstance(expr, IntLiteral):
        return str(expr.value)
    if isinstance(expr, VarRef):
        return expr.name
    if isinstance(expr, BinaryOp):
        left = format_expr(expr.left)
        right = format_expr(expr.right)
        return f"({left} {OPERATOR_SYMBOLS[expr.op]} {right})"
    raise TypeError(f"Not an expression node: {expr!r}")


def evaluate(expr: Expr, env: Mapping[str, int] | None = None) -> int:
    """Computes the value of `expr`; names missing from `env` read as 0."""
    env = env or {}
    if isinstance(expr, IntLiteral):
        return expr.value
    if isinstance(expr, VarRef):
        return env.get(expr.name, 0)
    if isinstance(expr, BinaryOp):
        left = evaluate(expr.left, env)
        right = evaluate(expr.right, env)
        if expr.op == "ADD":
            return left + right
        if expr.op == "SUB":
            return left - right
        if expr.op == "MUL":
            return left * right
        raise ValueError(f"Unknown operator: {expr.op}")
    raise TypeError(f"Not an expression node: {expr!r}")
