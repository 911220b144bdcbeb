"""
cppmini - C++-Subset Compile-and-Run Command-Line Interface
===========================================================

This module implements the command-line interface for the cppmini
pipeline. It runs a source file against input tokens and prints the
program's output, or stops at a chosen phase for debugging.

Usage Examples
--------------
Run a program:
    $ cppmini hello.cpp

Supply input tokens:
    $ cppmini sum.cpp -i "3 4"
    $ cppmini sum.cpp --input-file numbers.txt

Inspect the pipeline:
    $ cppmini sum.cpp --tokens
    $ cppmini sum.cpp --ast

Verbose mode:
    $ cppmini -v sum.cpp
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from cppmini import __version__
from cppmini.cli.errors import ExitCode, handle_cli_exception
from cppmini.errors import CppMiniError
from cppmini.lang.ast import ASTPrinter
from cppmini.lang.compiler import CppMiniCompiler, RunOptions
from cppmini.lang.lexer import Lexer, TokenKind
from cppmini.lang.parser import parse_source


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def collect_input(values: tuple[str, ...], input_file: Optional[Path]) -> list[str]:
    """Whitespace-split every ``-i`` value, then the input file's contents."""
    tokens: list[str] = []
    for value in values:
        tokens.extend(value.split())
    if input_file is not None:
        tokens.extend(input_file.read_text(encoding="utf-8").split())
    return tokens


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "source_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-i", "--input", "input_values",
    multiple=True,
    help="Input tokens for cin, whitespace separated (can be repeated)",
)
@click.option(
    "--input-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read further input tokens from a file",
)
@click.option(
    "--tokens",
    is_flag=True,
    help="Print the token list and exit (for debugging)",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=1),
    default=None,
    help="Execution step budget (default: $CPPMINI_MAX_STEPS or 1000000)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="cppmini")
def main(
    source_file: Path,
    input_values: tuple[str, ...],
    input_file: Optional[Path],
    tokens: bool,
    ast: bool,
    max_steps: Optional[int],
    verbose: bool,
) -> None:
    """
    Compile and run a C++-subset program.

    SOURCE_FILE is the C++ source file to run.

    \b
    Examples:
        cppmini hello.cpp                 # Run and print output
        cppmini sum.cpp -i "3 4"          # Supply cin tokens
        cppmini sum.cpp --tokens          # Show the token list
        cppmini sum.cpp --ast             # Show the parsed AST
    """
    setup_logging(verbose)

    try:
        source = source_file.read_text(encoding="utf-8")
        filename = str(source_file)

        # Token dump mode
        if tokens:
            for token in Lexer(source, filename).tokenize():
                if token.kind == TokenKind.EOF:
                    break
                click.echo(f"{token.kind.name} {token.text} @{token.position}")
            return

        # AST dump mode
        if ast:
            click.echo(ASTPrinter().print(parse_source(source, filename)))
            return

        options = RunOptions.from_env()
        options.filename = filename
        if max_steps is not None:
            options.max_steps = max_steps

        input_tokens = collect_input(input_values, input_file)
        logger.debug("Running %s with %d input tokens", filename, len(input_tokens))

        result = CppMiniCompiler(options).run_source(source, input_tokens)

    except (CppMiniError, OSError) as e:
        handle_cli_exception(e, verbose)

    if not result.success:
        click.echo(result.render(), err=True)
        if verbose:
            click.echo(result.diagnostic, err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    click.echo(result.output)


if __name__ == "__main__":
    main()
