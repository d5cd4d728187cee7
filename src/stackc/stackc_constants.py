"""
Shared lookup tables for the stackc toolchain.

Exports:
    token_hashmap: punctuation character -> canonical token type.
    token_symbols: canonical token type -> punctuation character.
    operator_tokens: arithmetic token types, lowest precedence first.
    operator_mnemonics: arithmetic token type -> assembly mnemonic.
    statement_tokens: token types that open a simple statement.
    TERMINATOR: character that ends a program before end of input.
"""

TERMINATOR = "."

token_hashmap: dict[str, str] = {
    "+": "PLUS",
    "-": "MINUS",
    "*": "TIMES",
    "(": "LPAREN",
    ")": "RPAREN",
    "{": "LBRACE",
    "}": "RBRACE",
    ">": "INPUT",
    "<": "OUTPUT",
    "=": "ASSIGN",
    "?": "IF_TRUE",
    "!": "IF_FALSE",
    "@": "LOOP",
    ";": "SEMICOLON",
}

token_symbols: dict[str, str] = {v: k for k, v in token_hashmap.items()}

operator_tokens: tuple[str, ...] = ("PLUS", "MINUS", "TIMES")

additive_tokens: frozenset[str] = frozenset({"PLUS", "MINUS"})

operator_mnemonics: dict[str, str] = {
    "PLUS": "ADD",
    "MINUS": "SUB",
    "TIMES": "MUL",
}

statement_tokens: frozenset[str] = frozenset(
    {"INPUT", "OUTPUT", "ASSIGN", "IF_TRUE", "IF_FALSE", "LOOP", "LBRACE"}
)

__all__ = [
    "TERMINATOR",
    "additive_tokens",
    "operator_mnemonics",
    "operator_tokens",
    "statement_tokens",
    "token_hashmap",
    "token_symbols",
]
