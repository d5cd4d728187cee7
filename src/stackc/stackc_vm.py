"""
Stack machine for executing stackc assembly.

The machine runs the text produced by `AsmEmitter` (see that module for the
instruction set). It exists so compiled programs, and in particular their jump
offsets, can be checked by running them instead of by reading them.

Machine model:
    - a value stack of Python integers
    - variables that read as 0 until stored
    - an input queue consumed by READ and an output list filled by WRITE
    - a program counter; after each instruction pc moves to pc + 1, and a
      taken jump adds its offset on top of that

Example:
    >>> vm = StackMachine.from_text("READ\\nSTORE x\\nLOAD x\\nWRITE\\nQUIT\\n", inputs=[7])
    >>> vm.run()
    [7]
"""

import logging
from collections import deque
from collections.abc import Iterable
from typing import NamedTuple

from stackc.stackc_errors import VMError

logger = logging.getLogger(__name__)

DEFAULT_STEP_LIMIT = 100_000

# mnemonic -> operand type (None for no operand)
OPCODES: dict[str, type | None] = {
    "PUSH": int,
    "LOAD": str,
    "STORE": str,
    "ADD": None,
    "SUB": None,
    "MUL": None,
    "READ": None,
    "WRITE": None,
    "JMPF": int,
    "JMPT": int,
    "JMP": int,
    "QUIT": None,
}

JUMPS = frozenset({"JMPF", "JMPT", "JMP"})


class Instruction(NamedTuple):
    op: str
    arg: int | str | None = None

    def __str__(self) -> str:
        return self.op if self.arg is None else f"{self.op} {self.arg}"


def parse_assembly(text: str) -> list[Instruction]:
    """Parses assembly text into instructions, skipping blank lines.

    Raises:
        VMError: On an unknown mnemonic or a missing, extra or malformed operand.
    """
    program: list[Instruction] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        op, _, operand = line.partition(" ")
        operand = operand.strip()
        if op not in OPCODES:
            raise VMError(f"Unknown mnemonic {op!r} on line {lineno}")
        operand_type = OPCODES[op]
        if operand_type is None:
            if operand:
                raise VMError(f"{op} takes no operand (line {lineno})")
            program.append(Instruction(op))
        elif not operand:
            raise VMError(f"{op} needs an operand (line {lineno})")
        elif operand_type is int:
            try:
                program.append(Instruction(op, int(operand)))
            except ValueError as e:
                raise VMError(f"Bad integer operand {operand!r} on line {lineno}") from e
        else:
            program.append(Instruction(op, operand))
    return program


def jump_target(index: int, instruction: Instruction) -> int:
    """Index a jump at `index` lands on when taken."""
    if instruction.op not in JUMPS:
        raise ValueError(f"{instruction.op} is not a jump")
    return index + 1 + int(instruction.arg)  # type: ignore[arg-type]


def format_listing(program: list[Instruction]) -> str:
    """Renders instructions with their indices and resolved jump targets."""
    width = len(str(max(len(program) - 1, 0)))
    lines = []
    for index, instruction in enumerate(program):
        text = f"{index:>{width}}: {instruction}"
        if instruction.op in JUMPS:
            text = f"{text:<{width + 16}} -> {jump_target(index, instruction)}"
        lines.append(text)
    return "\n".join(lines)


class StackMachine:
    """Executes a list of instructions.

    Attributes:
        program (list[Instruction]): The loaded program.
        inputs (deque[int]): Values still available to READ.
        outputs (list[int]): Values written so far.
        variables (dict[str, int]): Stored variables.
        stack (list[int]): The value stack.
        pc (int): Index of the next instruction.
        steps (int): Instructions executed so far; QUIT is not counted.
        step_limit (int): Execution stops with VMError after this many steps.
        halted (bool): True after QUIT or after running off the end.
    """

    def __init__(
        self,
        program: list[Instruction],
        inputs: Iterable[int] = (),
        step_limit: int = DEFAULT_STEP_LIMIT,
    ) -> None:
        self.program = program
        self.inputs: deque[int] = deque(inputs)
        self.outputs: list[int] = []
        self.variables: dict[str, int] = {}
        self.stack: list[int] = []
        self.pc = 0
        self.steps = 0
        self.step_limit = step_limit
        self.halted = False

    @classmethod
    def from_text(
        cls, text: str, inputs: Iterable[int] = (), step_limit: int = DEFAULT_STEP_LIMIT
    ) -> "StackMachine":
        return cls(parse_assembly(text), inputs=inputs, step_limit=step_limit)

    def pop(self) -> int:
        if not self.stack:
            raise VMError("Stack underflow", self.pc)
        return self.stack.pop()

    def step(self) -> bool:
        """Executes one instruction; returns False once the machine has halted."""
        if self.halted:
            return False
        if self.pc == len(self.program):
            self.halted = True
            return False
        if not 0 <= self.pc < len(self.program):
            raise VMError("Program counter out of range", self.pc)

        op, arg = self.program[self.pc]
        if op == "QUIT":
            self.halted = True
            return False
        if self.steps >= self.step_limit:
            raise VMError(f"Step limit of {self.step_limit} exceeded", self.pc)
        self.steps += 1
        next_pc = self.pc + 1

        if op == "PUSH":
            self.stack.append(int(arg))  # type: ignore[arg-type]
        elif op == "LOAD":
            self.stack.append(self.variables.get(str(arg), 0))
        elif op == "STORE":
            self.variables[str(arg)] = self.pop()
        elif op in ("ADD", "SUB", "MUL"):
            right = self.pop()
            left = self.pop()
            if op == "ADD":
                self.stack.append(left + right)
            elif op == "SUB":
                self.stack.append(left - right)
            else:
                self.stack.append(left * right)
        elif op == "READ":
            if not self.inputs:
                raise VMError("READ with no input left", self.pc)
            self.stack.append(self.inputs.popleft())
        elif op == "WRITE":
            self.outputs.append(self.pop())
        elif op == "JMPF":
            if self.pop() == 0:
                next_pc += int(arg)  # type: ignore[arg-type]
        elif op == "JMPT":
            if self.pop() != 0:
                next_pc += int(arg)  # type: ignore[arg-type]
        elif op == "JMP":
            next_pc += int(arg)  # type: ignore[arg-type]
        else:
            raise VMError(f"Unknown instruction {op!r}", self.pc)

        self.pc = next_pc
        return True

    def run(self) -> list[int]:
        """Runs until QUIT or the end of the program and returns the outputs."""
        while self.step():
            pass
        logger.debug(f"Halted at pc={self.pc} after {self.steps} steps")
        return self.outputs


def run_assembly(
    text: str, inputs: Iterable[int] = (), step_limit: int = DEFAULT_STEP_LIMIT
) -> list[int]:
    """Parses and runs `text`, returning the values it wrote."""
    return StackMachine.from_text(text, inputs=inputs, step_limit=step_limit).run()
