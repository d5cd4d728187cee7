"""
stackc CLI Entrypoint.

Command-line interface for compiling stackc programs to stack-machine assembly.

Features:
    - Read source from `.stc` files, inline strings, or standard input.
    - Lex, parse and emit assembly; print it or write it to a file.
    - Inspect intermediate stages: tokens, syntax tree (JSON), indexed listing.
    - Run the compiled program on the bundled stack machine.

Example usage:
    stackc prog.stc
    echo "=x 5;<x." | stackc
    stackc -s ">x;@x{<x;=x 0}." --listing
    stackc -s ">a;>b;=c a*b;<c." --run -i 6 -i 7

Functions:
    run_stackc(...) -> int:
        Executes the pipeline for one source and returns the process exit status.

    main() -> None:
        Parses CLI arguments, configures logging and invokes `run_stackc`.
"""

import argparse
import json
import logging
import sys
from typing import cast

from stackc.stackc_ast import Stmt
from stackc.stackc_compile import FAIL, Compiler
from stackc.stackc_errors import VMError
from stackc.stackc_parser import DEFAULT_MAX_DEPTH
from stackc.stackc_vm import DEFAULT_STEP_LIMIT, StackMachine, format_listing, parse_assembly

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".stc"


def read_source(source: str | None, is_string: bool = False) -> str:
    """Returns program text from a literal string, a `.stc` file, or stdin when `source` is None.

    Raises:
        ValueError: If a file path does not end with `.stc`.
    """
    if source is None:
        return sys.stdin.read()
    if is_string:
        return source
    if not source.endswith(SOURCE_SUFFIX):
        raise ValueError(f"Only {SOURCE_SUFFIX} files are supported.")
    with open(source, encoding="utf-8") as f:
        return f.read()


def run_stackc(
    source: str | None,
    is_string: bool = False,
    out: str | None = None,
    show_tokens: bool = False,
    show_ast: bool = False,
    listing: bool = False,
    execute: bool = False,
    inputs: list[int] | None = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
    step_limit: int = DEFAULT_STEP_LIMIT,
) -> int:
    """
    Run the stackc toolchain over one program.

    Args:
        source: Program text (with `is_string`), a `.stc` path, or None for stdin.
        is_string: Treat `source` as program text.
        out: Write the result to this path instead of stdout.
        show_tokens: Emit the token list instead of assembly.
        show_ast: Emit the statement tree as JSON instead of assembly.
        listing: Emit an indexed listing with resolved jump targets.
        execute: Run the compiled program and emit the values it writes.
        inputs: Values supplied to READ when executing.
        max_depth: Parser nesting limit.
        step_limit: Instruction budget when executing.

    Returns:
        0 on success or on an ordinary compile failure (``FAIL``), 1 when execution fails.
    """
    text = read_source(source, is_string)
    result = Compiler(max_depth=max_depth).compile(text)

    # 1. Pick what to show
    if show_tokens:
        rendered = "".join(f"{tok.type:<10} {tok.format()}\n" for tok in result.tokens)
    elif not result.ok:
        rendered = FAIL
    elif show_ast:
        tree = cast(Stmt, result.tree)
        rendered = json.dumps(tree.to_dict(), indent=2) + "\n"
    elif listing:
        rendered = format_listing(parse_assembly(result.output)) + "\n"
    elif execute:
        vm = StackMachine.from_text(result.output, inputs=inputs or [], step_limit=step_limit)
        try:
            values = vm.run()
        except VMError as e:
            print(f"Runtime error: {e}", file=sys.stderr)
            return 1
        rendered = "".join(f"{v}\n" for v in values)
    else:
        rendered = result.output

    # 2. Output
    if out:
        with open(out, "w", encoding="utf-8") as f:
            f.write(rendered)
        logger.info(f"Wrote {out}")
    else:
        sys.stdout.write(rendered)
    return 0


def main() -> None:
    """
    Entry point for the stackc CLI.

    Supported flags:
        - `-s`, `--string`: Interpret source as program text instead of a file path.
        - `-o`, `--out`: Write the result to a file.
        - `--tokens`: Show the token list.
        - `--ast`: Show the statement tree as JSON.
        - `--listing`: Show the assembly with indices and jump targets.
        - `--run`: Execute the compiled program; `-i/--input` supplies READ values.
        - `--max-depth`: Parser nesting limit.
        - `--step-limit`: Instruction budget for `--run`.
        - `-v`, `--verbose`: Debug logging on stderr.
    """
    parser = argparse.ArgumentParser(prog="stackc")
    parser.add_argument(
        "source", nargs="?", help="Filename or program text (with -s); stdin when omitted"
    )
    parser.add_argument(
        "-s", "--string", action="store_true", help="Interpret source as program text"
    )
    parser.add_argument("-o", "--out", metavar="OUTFILE", help="Output to file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--tokens", action="store_true", help="Print the token list")
    mode.add_argument("--ast", action="store_true", help="Print the syntax tree as JSON")
    mode.add_argument(
        "--listing", action="store_true", help="Print assembly with indices and jump targets"
    )
    mode.add_argument(
        "--run", dest="execute", action="store_true", help="Run the compiled program"
    )
    parser.add_argument(
        "-i",
        "--input",
        dest="inputs",
        type=int,
        action="append",
        default=[],
        metavar="N",
        help="Value for READ (repeatable, used with --run)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Parser nesting limit (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--step-limit",
        type=int,
        default=DEFAULT_STEP_LIMIT,
        help=f"Instruction budget for --run (default: {DEFAULT_STEP_LIMIT})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()
    if args.max_depth < 1:
        parser.error("--max-depth must be positive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    status = run_stackc(
        source=args.source,
        is_string=args.string,
        out=args.out,
        show_tokens=args.tokens,
        show_ast=args.ast,
        listing=args.listing,
        execute=args.execute,
        inputs=args.inputs,
        max_depth=args.max_depth,
        step_limit=args.step_limit,
    )
    if status:
        sys.exit(status)


if __name__ == "__main__":
    main()
