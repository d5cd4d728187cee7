"""
Provides the `Compiler` pipeline that turns stackc source into assembly.

Stages:
    1. Lexing (`stackc_lexer`): eager, up to end of input or the first `.`.
    2. Parsing (`stackc_parser`): must match and consume every token.
    3. Emission (`emitters.asm_emitter`): assembly text ending in QUIT.

A program that does not parse, leaves tokens unconsumed, or nests deeper than
the parser allows compiles to the literal text ``FAIL``. Failure is an
ordinary result, not an exception.

Example:
    >>> compile_source("=x 5;<x.")
    'PUSH 5\\nSTORE x\\nLOAD x\\nWRITE\\nQUIT\\n'
    >>> compile_source("=x;.")
    'FAIL'
"""

import logging
from dataclasses import dataclass, field

from stackc.emitters.asm_emitter import AsmEmitter
from stackc.stackc_ast import Stmt
from stackc.stackc_errors import NestingTooDeep
from stackc.stackc_lexer import CharacterStream, LexDiagnostic, Lexer, Token
from stackc.stackc_parser import DEFAULT_MAX_DEPTH, Parser

logger = logging.getLogger(__name__)

FAIL = "FAIL"


@dataclass
class CompileResult:
    """Everything a single compilation produced.

    Attributes:
        ok: True when assembly was produced.
        output: The assembly text, or ``FAIL``.
        tokens: The token list the lexer produced.
        tree: The statement tree, when parsing succeeded.
        diagnostics: Characters the lexer skipped.
    """

    ok: bool
    output: str
    tokens: list[Token] = field(default_factory=list)
    tree: Stmt | None = None
    diagnostics: list[LexDiagnostic] = field(default_factory=list)


class Compiler:
    """Runs the lex, parse and emit stages over one source text.

    Attributes:
        max_depth (int): Nesting limit handed to the parser.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.max_depth = max_depth

    def lex(self, source: str) -> tuple[list[Token], list[LexDiagnostic]]:
        lexer = Lexer(CharacterStream(source))
        return lexer.tokens(), lexer.diagnostics

    def parse(self, tokens: list[Token]) -> Stmt | None:
        try:
            return Parser(tokens, max_depth=self.max_depth).parse()
        except NestingTooDeep as e:
            logger.error(str(e))
            return None
        except RecursionError:
            logger.error("Interpreter recursion limit reached while parsing")
            return None

    def compile(self, source: str) -> CompileResult:
        """Compiles `source` and returns the assembly or ``FAIL`` with intermediate results."""
        tokens, diagnostics = self.lex(source)
        tree = self.parse(tokens)
        if tree is None:
            logger.info("Compilation failed")
            return CompileResult(False, FAIL, tokens, None, diagnostics)
        output = AsmEmitter().emit_program(tree)
        logger.debug(f"Emitted {len(output.splitlines())} lines")
        return CompileResult(True, output, tokens, tree, diagnostics)


def compile_source(source: str, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Compiles `source` to assembly text, or returns ``FAIL``."""
    return Compiler(max_depth=max_depth).compile(source).output
