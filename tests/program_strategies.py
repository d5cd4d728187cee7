"""Hypothesis strategies for stackc source text, plus a reference tree-walking interpreter."""

from collections import deque
from collections.abc import Iterator

from hypothesis import strategies as st

from stackc.stackc_ast import (
    Assign,
    Block,
    IfFalse,
    IfTrue,
    Node,
    Read,
    Seq,
    Stmt,
    While,
    Write,
    evaluate,
)

names = st.sampled_from(["a", "b", "c"])

expressions = st.recursive(
    st.one_of(st.integers(min_value=0, max_value=9).map(str), names),
    lambda inner: st.one_of(
        st.tuples(inner, st.sampled_from("+-*"), inner).map("".join),
        inner.map(lambda e: f"({e})"),
    ),
    max_leaves=6,
)

simple_statements = st.recursive(
    st.one_of(
        names.map(lambda n: f"<{n}"),
        st.tuples(names, expressions).map(lambda t: f"={t[0]} {t[1]}"),
    ),
    lambda inner: st.one_of(
        st.tuples(st.sampled_from("?!@"), names, inner).map(
            lambda t: f"{t[0]}{t[1]} {t[2]}"
        ),
        st.lists(inner, min_size=1, max_size=3).map(lambda xs: "{" + ";".join(xs) + "}"),
    ),
    max_leaves=8,
)

programs = st.lists(simple_statements, min_size=1, max_size=4).map(";".join)


class BudgetExceeded(Exception):
    pass


def interpret(stmt: Stmt, inputs: list[int] | None = None, budget: int = 500) -> list[int]:
    """Runs a statement tree directly; raises BudgetExceeded after `budget` statements."""
    env: dict[str, int] = {}
    pending = deque(inputs or [])
    outputs: list[int] = []
    steps = 0

    def run(node: Stmt) -> None:
        nonlocal steps
        steps += 1
        if steps > budget:
            raise BudgetExceeded()
        if isinstance(node, Seq):
            run(node.first)
            run(node.second)
        elif isinstance(node, Block):
            run(node.inner)
        elif isinstance(node, Read):
            env[node.name] = pending.popleft()
        elif isinstance(node, Write):
            outputs.append(env.get(node.name, 0))
        elif isinstance(node, Assign):
            env[node.name] = evaluate(node.expr, env)
        elif isinstance(node, IfTrue):
            if env.get(node.name, 0) != 0:
                run(node.body)
        elif isinstance(node, IfFalse):
            if env.get(node.name, 0) == 0:
                run(node.body)
        elif isinstance(node, While):
            while env.get(node.name, 0) != 0:
                run(node.body)
                steps += 1
                if steps > budget:
                    raise BudgetExceeded()
        else:
            raise TypeError(node)

    run(stmt)
    return outputs


def subtrees(node: Node) -> Iterator[Node]:
    """Yields `node` and every node below it."""
    yield node
    for child in vars(node).values():
        if isinstance(child, Node):
            yield from subtrees(child)


def guarded(node: Node) -> Iterator[IfTrue | IfFalse | While]:
    for sub in subtrees(node):
        if isinstance(sub, (IfTrue, IfFalse, While)):
            yield sub


__all__ = [
    "BudgetExceeded",
    "expressions",
    "guarded",
    "interpret",
    "names",
    "programs",
    "simple_statements",
    "subtrees",
]
