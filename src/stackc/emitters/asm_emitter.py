"""
Translates stackc syntax trees into stack-machine assembly.

This module defines the `AsmEmitter` class, the code generator behind
`stackc_compile.Compiler`, and the `Emission` accumulator it threads through
every generation step.

Instruction set:
    PUSH n      push an integer
    LOAD v      push the value of variable v (0 if never stored)
    STORE v     pop into variable v
    ADD SUB MUL pop right, pop left, push the result
    READ        push the next input value
    WRITE       pop and output a value
    JMPF k      pop; jump when the value is zero
    JMPT k      pop; jump when the value is non-zero
    JMP k       unconditional jump
    QUIT        stop

Jump offsets count instructions, not bytes, and are relative to the
instruction following the jump: a jump at index i with offset k lands on
index i + 1 + k. `JMPF 0` is therefore a no-op, and a loop's closing
`JMP` carries a negative offset.

Behavior:
    - Every emit_* method appends lines to the given `Emission` and advances
      its counter by exactly the number of lines appended, children included.
    - Guarded bodies are generated into a child `Emission` first, so the
      forward jump is written with its final offset before the body lines.

Raises:
    - `TypeError`: If asked to emit something that is not a tree node.
    - `NotImplementedError`: If a node kind has no emit_* method.
"""

from __future__ import annotations

from stackc.stackc_ast import (
    Assign,
    BinaryOp,
    Block,
    IfFalse,
    IfTrue,
    IntLiteral,
    Node,
    Read,
    Seq,
    VarRef,
    While,
    Write,
    flatten,
)


class Emission:
    """Accumulates assembly lines together with the running instruction counter.

    Attributes:
        lines (list[str]): Instructions emitted into this buffer, in order.
        start (int): Absolute index of the first instruction of this buffer.
        counter (int): Absolute index the next emitted instruction will occupy.
    """

    def __init__(self, counter: int = 0) -> None:
        self.lines: list[str] = []
        self.start = counter
        self.counter = counter

    def __len__(self) -> int:
        return len(self.lines)

    def emit(self, line: str) -> None:
        self.lines.append(line)
        self.counter += 1

    def child(self, skip: int = 0) -> Emission:
        """A fresh buffer whose first instruction sits `skip` places after this one's counter."""
        return Emission(self.counter + skip)

    def extend(self, other: Emission) -> None:
        if other.start != self.counter:
            raise ValueError(
                f"Cannot splice buffer starting at {other.start} at index {self.counter}"
            )
        self.lines.extend(other.lines)
        self.counter += len(other.lines)

    def text(self) -> str:
        return "".join(f"{line}\n" for line in self.lines)


class AsmEmitter:
    """Emits assembly for stackc statement and expression trees.

    Attributes:
        out (Emission): The program-level buffer, starting at instruction 0.
    """

    def __init__(self) -> None:
        self.out = Emission()

    def get_output(self) -> str:
        """Returns the emitted program followed by the closing QUIT line."""
        return self.out.text() + "QUIT\n"

    def emit_program(self, tree: Node) -> str:
        self.emit(tree, self.out)
        return self.get_output()

    def emit(self, node: Node, out: Emission) -> None:
        """Dispatches `node` to its emit_<kind> method."""
        if not isinstance(node, Node):
            raise TypeError(f"Expected a syntax tree node, got {type(node).__name__}")
        method = getattr(self, f"emit_{node.kind}", None)
        if method is None:
            raise NotImplementedError(f"No emitter method for node kind '{node.kind}'")
        method(node, out)

    # Expressions

    def emit_int(self, node: IntLiteral, out: Emission) -> None:
        out.emit(f"PUSH {node.value}")

    def emit_var(self, node: VarRef, out: Emission) -> None:
        out.emit(f"LOAD {node.name}")

    def emit_binop(self, node: BinaryOp, out: Emission) -> None:
        # Operator chains lean right; walk the spine and emit the operators last.
        pending: list[str] = []
        expr: Node = node
        while isinstance(expr, BinaryOp):
            self.emit(expr.left, out)
            pending.append(expr.op)
            expr = expr.right
        self.emit(expr, out)
        for op in reversed(pending):
            out.emit(op)

    # Statements

    def emit_seq(self, node: Seq, out: Emission) -> None:
        # Long programs are right-nested chains; walk the spine instead of recursing.
        for stmt in flatten(node):
            self.emit(stmt, out)

    def emit_block(self, node: Block, out: Emission) -> None:
        self.emit(node.inner, out)

    def emit_read(self, node: Read, out: Emission) -> None:
        out.emit("READ")
        out.emit(f"STORE {node.name}")

    def emit_write(self, node: Write, out: Emission) -> None:
        out.emit(f"LOAD {node.name}")
        out.emit("WRITE")

    def emit_assign(self, node: Assign, out: Emission) -> None:
        self.emit(node.expr, out)
        out.emit(f"STORE {node.name}")

    def emit_if_true(self, node: IfTrue, out: Emission) -> None:
        self._emit_guarded(node, "JMPF", out)

    def emit_if_false(self, node: IfFalse, out: Emission) -> None:
        self._emit_guarded(node, "JMPT", out)

    def _emit_guarded(self, node: IfTrue | IfFalse, jump: str, out: Emission) -> None:
        out.emit(f"LOAD {node.name}")
        body = out.child(skip=1)
        self.emit(node.body, body)
        out.emit(f"{jump} {len(body)}")
        out.extend(body)

    def emit_while(self, node: While, out: Emission) -> None:
        top = out.counter
        out.emit(f"LOAD {node.name}")
        body = out.child(skip=1)
        self.emit(node.body, body)
        # exit skips the body and the closing jump
        out.emit(f"JMPF {len(body) + 1}")
        out.extend(body)
        out.emit(f"JMP {top - out.counter - 1}")
