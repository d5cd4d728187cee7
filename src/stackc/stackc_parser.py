"""
stackc Language Parser

Parses the flat token list produced by `stackc_lexer` into a statement tree whose
leaves include expression trees (see `stackc_ast`).

Grammar
-------
    statement        ::= simple-statement ( ';' statement )?
    simple-statement ::= '>' IDENT
                       | '<' IDENT
                       | '=' IDENT additive
                       | '@' IDENT simple-statement
                       | '?' IDENT simple-statement
                       | '!' IDENT simple-statement
                       | '{' statement '}'
    additive         ::= multiplicative ( ( '+' | '-' ) additive )?
    multiplicative   ::= primary ( '*' multiplicative )?
    primary          ::= INTEGER | IDENT | '(' additive ')'

Parser Behavior
---------------
- Backtracking recursive descent. A rule that does not match returns ``None``
  and leaves the cursor exactly where it found it; every rule runs through
  `Cursor.attempt`, which records the entry position and restores it on a
  non-match.
- Binary chains are collected in a loop and folded right, so the tree leans
  right without one level of recursion per operator. At the additive level
  a `+` or `-` that differs from the operator being collected switches the
  operator instead of ending the chain, so `a - b + c` parses as
  `SUB(a, ADD(b, c))`.
- When the operand after an operator (or the statement after a `;`) fails to
  parse, the operator (or `;`) is given back and the shorter match stands.
  The given-back `;` must then be consumed by someone else: `{<x;}` and a
  top-level `<x;` both fail.
- `Parser.parse()` succeeds only when the whole token list is consumed.
- Nesting deeper than `max_depth` rule attempts raises `NestingTooDeep`.

Entry Points
------------
- `parse()`: full program, or ``None``.
- `parse_statement()`, `parse_simple_statement()`: statement rules.
- `parse_expression()`, `parse_binary()`, `parse_primary()`: expression rules.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import TypeVar

from stackc.stackc_ast import (
    Assign,
    BinaryOp,
    Block,
    Expr,
    IfFalse,
    IfTrue,
    IntLiteral,
    Read,
    Stmt,
    VarRef,
    While,
    Write,
    sequence,
)
from stackc.stackc_constants import additive_tokens, operator_mnemonics
from stackc.stackc_errors import NestingTooDeep
from stackc.stackc_lexer import Token

logger = logging.getLogger(__name__)

# A nested guard costs about five interpreter frames per rule attempt.
DEFAULT_MAX_DEPTH = max(sys.getrecursionlimit() // 6, 1)

T = TypeVar("T")


class Cursor:
    """
    A position into a token list, with a fixed end bound and a nesting guard.

    Attributes
    ----------
    tokens : list[Token]
        The token list being parsed.
    position : int
        Index of the next unconsumed token.
    end : int
        One past the last token the cursor may consume.
    depth : int
        Number of rule attempts currently on the call stack.
    max_depth : int
        Limit on `depth`; exceeding it raises `NestingTooDeep`.
    """

    def __init__(
        self,
        tokens: list[Token],
        position: int = 0,
        end: int | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.tokens = tokens
        self.position = position
        self.end = len(tokens) if end is None else end
        self.depth = 0
        self.max_depth = max_depth

    def at_end(self) -> bool:
        return self.position >= self.end

    def current(self) -> Token | None:
        return None if self.at_end() else self.tokens[self.position]

    def advance(self) -> Token:
        tok = self.current()
        if tok is None:
            raise IndexError(f"Cursor advanced past end bound {self.end}")
        self.position += 1
        return tok

    def match(self, *types: str) -> Token | None:
        """Consumes and returns the current token if its type is one of `types`."""
        tok = self.current()
        if tok is not None and tok.type in types:
            self.position += 1
            return tok
        return None

    def attempt(self, rule: Callable[..., T | None], *args: object) -> T | None:
        """Runs `rule`; on a ``None`` result the cursor is restored to its entry position."""
        mark = self.position
        if self.depth >= self.max_depth:
            raise NestingTooDeep(self.max_depth, mark)
        self.depth += 1
        try:
            result = rule(*args)
        except NestingTooDeep:
            self.position = mark
            raise
        finally:
            self.depth -= 1
        if result is None:
            self.position = mark
        return result


class Parser:
    """
    stackc Parser Class

    Attributes
    ----------
    tokens : list[Token]
        The input token list.
    cursor : Cursor
        Shared cursor used by every rule.
    """

    def __init__(self, tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.tokens: list[Token] = tokens
        self.cursor = Cursor(tokens, max_depth=max_depth)
        self._statement_rules: dict[str, Callable[[], Stmt | None]] = {
            "INPUT": self._read,
            "OUTPUT": self._write,
            "ASSIGN": self._assign,
            "IF_TRUE": self._if_true,
            "IF_FALSE": self._if_false,
            "LOOP": self._while,
            "LBRACE": self._block,
        }

    @property
    def position(self) -> int:
        return self.cursor.position

    def parse(self) -> Stmt | None:
        """Parse a full program; ``None`` unless every token was consumed."""
        tree = self.parse_statement()
        if tree is None:
            logger.debug("No statement matched at token index 0")
            return None
        if not self.cursor.at_end():
            logger.debug(
                f"Unconsumed input from token index {self.position}: {self.cursor.current()}"
            )
            return None
        return tree

    # Statements

    def parse_statement(self) -> Stmt | None:
        return self.cursor.attempt(self._statement)

    def _statement(self) -> Stmt | None:
        first = self.parse_simple_statement()
        if first is None:
            return None
        statements = [first]
        while True:
            nxt = self.cursor.attempt(self._continuation)
            if nxt is None:
                break
            statements.append(nxt)
        return sequence(statements)

    def _continuation(self) -> Stmt | None:
        if self.cursor.match("SEMICOLON") is None:
            return None
        return self.parse_simple_statement()

    def parse_simple_statement(self) -> Stmt | None:
        return self.cursor.attempt(self._simple_statement)

    def _simple_statement(self) -> Stmt | None:
        tok = self.cursor.current()
        if tok is None or tok.type not in self._statement_rules:
            return None
        self.cursor.advance()
        return self._statement_rules[tok.type]()

    def _name(self) -> str | None:
        tok = self.cursor.match("IDENT")
        return None if tok is None else str(tok.value)

    def _read(self) -> Stmt | None:
        name = self._name()
        return None if name is None else Read(name)

    def _write(self) -> Stmt | None:
        name = self._name()
        return None if name is None else Write(name)

    def _assign(self) -> Stmt | None:
        name = self._name()
        if name is None:
            return None
        expr = self.parse_expression()
        return None if expr is None else Assign(name, expr)

    def _guarded(self) -> tuple[str, Stmt] | None:
        name = self._name()
        if name is None:
            return None
        body = self.parse_simple_statement()
        return None if body is None else (name, body)

    def _if_true(self) -> Stmt | None:
        parts = self._guarded()
        return None if parts is None else IfTrue(*parts)

    def _if_false(self) -> Stmt | None:
        parts = self._guarded()
        return None if parts is None else IfFalse(*parts)

    def _while(self) -> Stmt | None:
        parts = self._guarded()
        return None if parts is None else While(*parts)

    def _block(self) -> Stmt | None:
        inner = self.parse_statement()
        if inner is None or self.cursor.match("RBRACE") is None:
            return None
        return Block(inner)

    # Expressions

    def parse_expression(self) -> Expr | None:
        return self.parse_binary("PLUS")

    def parse_binary(self, operator: str) -> Expr | None:
        """Parse a right-leaning chain for `operator` ("PLUS", "MINUS" or "TIMES")."""
        return self.cursor.attempt(self._binary, operator)

    def _binary(self, operator: str) -> Expr | None:
        first = self._chain_operand(operator)
        if first is None:
            return None

        # Chains are collected left to right, then folded right.
        operands: list[Expr] = [first]
        operators: list[str] = []
        while True:
            tok = self.cursor.current()
            if tok is None:
                break
            if tok.type != operator:
                if operator in additive_tokens and tok.type in additive_tokens:
                    operator = tok.type
                else:
                    break
            right = self.cursor.attempt(self._operand, operator)
            if right is None:
                break
            operators.append(operator)
            operands.append(right)

        expr = operands.pop()
        while operators:
            expr = BinaryOp(operator_mnemonics[operators.pop()], operands.pop(), expr)
        return expr

    def _chain_operand(self, operator: str) -> Expr | None:
        if operator == "TIMES":
            return self.parse_primary()
        return self.parse_binary("TIMES")

    def _operand(self, operator: str) -> Expr | None:
        self.cursor.advance()
        return self._chain_operand(operator)

    def parse_primary(self) -> Expr | None:
        return self.cursor.attempt(self._primary)

    def _primary(self) -> Expr | None:
        tok = self.cursor.match("INTEGER", "IDENT", "LPAREN")
        if tok is None:
            return None
        if tok.type == "INTEGER":
            return IntLiteral(int(tok.value))
        if tok.type == "IDENT":
            return VarRef(str(tok.value))
        inner = self.parse_expression()
        if inner is None or self.cursor.match("RPAREN") is None:
            return None
        return inner


def parse_tokens(tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> Stmt | None:
    """Parses a complete program from `tokens`, or returns ``None``."""
    return Parser(tokens, max_depth=max_depth).parse()
