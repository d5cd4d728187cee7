"""
Exception types raised by the stackc toolchain.

Syntax errors are not exceptions here: parser rules report a non-match by
returning ``None``. These classes cover the conditions that must abort a
compilation or an execution outright.
"""


class StackcError(Exception):
    """Base class for all stackc errors."""


class NestingTooDeep(StackcError):
    """Raised when source nesting exceeds the parser's depth limit."""

    def __init__(self, limit: int, position: int) -> None:
        super().__init__(
            f"Nesting deeper than {limit} levels at token index {position}"
        )
        self.limit = limit
        self.position = position


class VMError(StackcError):
    """Raised by the stack machine when a program cannot continue."""

    def __init__(self, message: str, pc: int | None = None) -> None:
        if pc is not None:
            message = f"{message} (pc={pc})"
        super().__init__(message)
        self.pc = pc
