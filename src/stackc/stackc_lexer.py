"""
Lexical analyzer for the stackc language.

This module turns raw program text into the flat token list consumed by the parser:

Classes:
    CharacterStream: Stream abstraction for reading characters with line/column tracking.
    Token: A single token with type, payload, and source location.
    LexDiagnostic: A skipped, unrecognized character.
    Lexer: Converts a CharacterStream into a sequence of tokens.

Features:
    - Skips whitespace
    - Stops at end of input or at the first `.`, which is consumed but never tokenized
    - Recognizes:
        * Integer literals (maximal runs of ASCII digits)
        * Identifiers (maximal runs of lowercase ASCII letters; there are no keywords)
        * Single-character punctuation (see `token_hashmap`)
    - Unknown characters are skipped and reported, never fatal

Example:
    >>> tokens = tokenize("=x 5;<x.")
    >>> tokens[0]
    Token(ASSIGN, =)

Exports:
    - CharacterStream
    - Token
    - LexDiagnostic
    - Lexer
    - tokenize
    - format_tokens
    - token_hashmap
"""

import logging
import string
from typing import Any, NamedTuple

from stackc.stackc_constants import TERMINATOR, token_hashmap, token_symbols

logger = logging.getLogger(__name__)

DIGITS = frozenset(string.digits)
LETTERS = frozenset(string.ascii_lowercase)
WHITESPACE = frozenset(string.whitespace)

INT_BITS = 64
INT_MASK = (1 << INT_BITS) - 1


def to_signed(value: int) -> int:
    """Reinterprets a masked literal as a signed 64-bit integer; oversized literals wrap."""
    if value >= 1 << (INT_BITS - 1):
        return value - (1 << INT_BITS)
    return value


class CharacterStream:
    """
    Reads characters from a source string while tracking line and column.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"CharacterStreamError: read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character `offset` places ahead, or "" when out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """A single lexical token.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'INTEGER', 'LOOP', 'EOF').
        value (int | str): The integer for INTEGER tokens, the name for IDENT tokens,
            and the source character for punctuation.
        line (int): The 1-based line number where the token starts.
        col (int): The 1-based column number where the token starts.
    """

    def __init__(self, type_: str, value: int | str, line: int = 0, col: int = 0):
        self.type = type_
        self.value = value
        self.line = line
        self.col = col

    def format(self) -> str:
        """Renders the token back to the source text it was read from."""
        if self.type == "INTEGER":
            # wrapped literals print as unsigned 64-bit digits so they re-lex unchanged
            return str(int(self.value) & INT_MASK)
        if self.type == "IDENT":
            return str(self.value)
        if self.type in token_symbols:
            return token_symbols[self.type]
        return ""

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.line == other.line
            and self.col == other.col
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.line, self.col))


class LexDiagnostic(NamedTuple):
    """An unrecognized character that the lexer skipped."""

    char: str
    line: int
    col: int

    def __str__(self) -> str:
        return f"Unexpected character {self.char!r} ({ord(self.char)}) at line {self.line}, col {self.col}"


class Lexer:
    """Lexical analyzer for stackc.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        diagnostics (list[LexDiagnostic]): Characters skipped so far.
        terminated (bool): True once the `.` terminator has been consumed.
    """

    def __init__(self, stream: CharacterStream) -> None:
        self.stream = stream
        self.diagnostics: list[LexDiagnostic] = []
        self.terminated = False

    def peek(self) -> str:
        return self.stream.peek()

    def advance(self) -> str:
        return self.stream.next()

    def at_end(self) -> bool:
        return self.terminated or self.stream.end_of_file()

    def skip_whitespace(self) -> None:
        while not self.stream.end_of_file() and self.peek() in WHITESPACE:
            self.advance()

    def report(self, char: str, line: int, col: int) -> None:
        diagnostic = LexDiagnostic(char, line, col)
        self.diagnostics.append(diagnostic)
        logger.warning(str(diagnostic))

    def next_token(self) -> Token:
        """Consumes and returns the next Token, or an EOF token at the end.

        Unrecognized characters are skipped and recorded in `diagnostics`.
        """
        while True:
            self.skip_whitespace()
            if self.at_end():
                return Token("EOF", "EOF", self.stream.line, self.stream.column)

            ch = self.peek()
            line, col = self.stream.line, self.stream.column

            if ch == TERMINATOR:
                self.advance()
                self.terminated = True
                return Token("EOF", "EOF", line, col)

            # 1. Integer literal
            if ch in DIGITS:
                value = 0
                while self.peek() in DIGITS:
                    value = (value * 10 + int(self.advance())) & INT_MASK
                return Token("INTEGER", to_signed(value), line, col)

            # 2. Identifier
            if ch in LETTERS:
                name = ""
                while self.peek() in LETTERS:
                    name += self.advance()
                return Token("IDENT", name, line, col)

            # 3. Punctuation
            self.advance()
            if ch in token_hashmap:
                return Token(token_hashmap[ch], ch, line, col)

            # 4. Unknown character: skip and keep scanning
            self.report(ch, line, col)

    def tokens(self) -> list[Token]:
        """Drains the stream into a list of tokens, excluding EOF."""
        result: list[Token] = []
        while True:
            tok = self.next_token()
            if tok.type == "EOF":
                break
            result.append(tok)
        logger.debug(f"Lexed {len(result)} tokens, {len(self.diagnostics)} diagnostics")
        return result


def tokenize(source: str) -> list[Token]:
    """Tokenizes `source` eagerly, up to end of input or the first `.`."""
    return Lexer(CharacterStream(source)).tokens()


def format_tokens(tokens: list[Token]) -> str:
    """Renders tokens as source text that tokenizes back to the same types and values."""
    return " ".join(tok.format() for tok in tokens)


__all__ = [
    "CharacterStream",
    "LexDiagnostic",
    "Lexer",
    "Token",
    "format_tokens",
    "token_hashmap",
    "tokenize",
]
