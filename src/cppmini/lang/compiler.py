"""
cppmini Compile-and-Run Driver
==============================

This module provides the single entry point that takes C++-subset source
text and input tokens to program output. It orchestrates the pipeline:

    Source → Lex → Parse → Check → Execute → Output

Usage
-----
Programmatic:
    >>> from cppmini.lang import compile_and_run
    >>> result = compile_and_run('int main() { cout << 6 * 7 << endl; }', [])
    >>> result.output
    '42'

Command line:
    $ cppmini program.cpp -i "3 4"

Pipeline Phases
---------------
1. **Lexical Analysis** (phase ``lexical``): tokens from normalized source
2. **Parsing** (phase ``syntax``): the whole Program, all or nothing
3. **Literal Check** (phase ``type``): declaration initializers
4. **Execution** (phase ``runtime``): the tree-walking interpreter

Error Handling
--------------
The first failing phase stops the pipeline. compile_and_run never raises
for pipeline failures: it returns a RunResult whose ``error_phase`` and
``error_message`` describe the failure. Output produced before a runtime
failure is discarded, so a result is either complete output or an error.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Union

from cppmini.errors import CppMiniError
from cppmini.lang.ast import Program
from cppmini.lang.checker import LiteralChecker
from cppmini.lang.interpreter import (
    DEFAULT_MAX_CALL_DEPTH,
    DEFAULT_MAX_STEPS,
    Interpreter,
)
from cppmini.lang.lexer import Lexer, Token
from cppmini.lang.parser import Parser


logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """
    Driver configuration options.

    Attributes:
        filename: Name used for the source in diagnostics
        max_steps: Execution budget in statements plus loop iterations
        max_call_depth: Maximum number of nested user-function calls
        check_literals: Run the literal checker phase
    """
    filename: str = "<input>"
    max_steps: int = DEFAULT_MAX_STEPS
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    check_literals: bool = True

    def __post_init__(self):
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.max_call_depth <= 0:
            raise ValueError(f"max_call_depth must be positive, got {self.max_call_depth}")

    @classmethod
    def from_env(cls) -> "RunOptions":
        """
        Create RunOptions from environment variables.

        Environment variables (all optional):
            CPPMINI_MAX_STEPS: Execution step budget (integer)
            CPPMINI_MAX_DEPTH: Call depth budget (integer)

        Returns:
            RunOptions with values from environment variables
        """
        options = cls()

        if steps := os.environ.get("CPPMINI_MAX_STEPS"):
            try:
                value = int(steps)
                if value > 0:
                    options.max_steps = value
            except ValueError:
                pass  # Ignore invalid values

        if depth := os.environ.get("CPPMINI_MAX_DEPTH"):
            try:
                value = int(depth)
                if value > 0:
                    options.max_call_depth = value
            except ValueError:
                pass  # Ignore invalid values

        return options


@dataclass
class RunResult:
    """
    Result of one compile-and-run.

    Exactly one of ``output`` (on success) or ``error_phase`` and
    ``error_message`` (on failure) is meaningful.

    Attributes:
        success: True if every phase completed
        output: Program output, or the no-output sentinel
        error_phase: "lexical", "syntax", "type" or "runtime" on failure
        error_message: Short description of the failure
        diagnostic: Full formatted error with location and source context
        error: The exception that stopped the pipeline
        tokens: Token list (if lexing succeeded)
        program: Parsed Program (if parsing succeeded)
    """
    success: bool = False
    output: str = ""
    error_phase: Optional[str] = None
    error_message: Optional[str] = None
    diagnostic: Optional[str] = None
    error: Optional[CppMiniError] = None
    tokens: list[Token] = field(default_factory=list)
    program: Optional[Program] = None

    def render(self) -> str:
        """Single string shown to a user: the output or a phase-tagged error."""
        if self.success:
            return self.output
        return f"{self.error_phase} error: {self.error_message}"


class CppMiniCompiler:
    """
    Staged compile-and-run pipeline.

    Example:
        compiler = CppMiniCompiler(RunOptions(max_steps=10_000))
        result = compiler.run_source(source, ["5"])
        print(result.render())

    Attributes:
        options: Driver configuration options
    """

    def __init__(self, options: Optional[RunOptions] = None):
        self.options = options or RunOptions()

    def run_source(self, source: str, input_tokens: Iterable[str] = ()) -> RunResult:
        """
        Compile and run source text.

        Args:
            source: C++-subset source text
            input_tokens: Pre-split input tokens consumed by ``cin``

        Returns:
            RunResult with the output or the first failing phase
        """
        result = RunResult()
        filename = self.options.filename

        try:
            # Stage 1: Lexical analysis
            lexer = Lexer(source, filename)
            result.tokens = self._lex(lexer)
            source_lines = lexer.source.split("\n")

            # Stage 2: Parsing
            result.program = self._parse(result.tokens, source_lines)

            # Stage 3: Literal check
            if self.options.check_literals:
                self._check(result.program)

            # Stage 4: Execution
            result.output = self._execute(result.program, input_tokens, source_lines)
            result.success = True

        except CppMiniError as e:
            logger.debug("%s phase failed: %s", e.phase, e.message)
            result.success = False
            result.output = ""
            result.error_phase = e.phase
            result.error_message = e.message
            result.diagnostic = str(e)
            result.error = e

        return result

    def run_file(self, filepath: str, input_tokens: Iterable[str] = ()) -> RunResult:
        """
        Compile and run a source file.

        Raises:
            FileNotFoundError: If the source file does not exist
        """
        with open(filepath, encoding="utf-8") as f:
            source = f.read()
        options = replace(self.options, filename=filepath)
        return CppMiniCompiler(options).run_source(source, input_tokens)

    def _lex(self, lexer: Lexer) -> list[Token]:
        """Tokenize normalized source."""
        tokens = lexer.tokenize()
        logger.debug("Lexed %d tokens", len(tokens))
        return tokens

    def _parse(self, tokens: list[Token], source_lines: list[str]) -> Program:
        """Parse tokens into a Program."""
        return Parser(tokens, self.options.filename, source_lines).parse()

    def _check(self, program: Program) -> None:
        """Run the literal checker over every declaration."""
        LiteralChecker().check(program)

    def _execute(self, program: Program, input_tokens: Iterable[str],
                 source_lines: list[str]) -> str:
        """Run the program and return its output text."""
        interpreter = Interpreter(
            program,
            input_tokens,
            max_steps=self.options.max_steps,
            max_call_depth=self.options.max_call_depth,
            source_lines=source_lines,
        )
        return interpreter.run()


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_and_run(
    source: str,
    input_tokens: Union[str, Iterable[str]] = (),
    options: Optional[RunOptions] = None,
) -> RunResult:
    """
    Compile and run C++-subset source in one call.

    This is the primary high-level interface. It is deterministic: the same
    source and tokens always give the same result, and no state survives
    between calls.

    Args:
        source: C++-subset source text
        input_tokens: Input tokens; a single string is split on whitespace
        options: Driver options (defaults if None)

    Returns:
        RunResult; pipeline failures are reported in it, never raised

    Example:
        >>> result = compile_and_run('int x; cin >> x; cout << x * 2;', ["21"])
        >>> result.output
        '42'
    """
    if isinstance(input_tokens, str):
        input_tokens = input_tokens.split()
    return CppMiniCompiler(options).run_source(source, list(input_tokens))
