"""
cppmini - Compile-and-Run Toolkit for a C++ Subset
==================================================

This package takes the source text of a small C++ program plus a list of
input tokens and returns the program's output, or a phase-tagged error.

Main Components
---------------
- **lang**: the pipeline itself (lexer, parser, literal checker,
  interpreter and the compile_and_run driver)

- **cli**: the ``cppmini`` command-line tool

Quick Start
-----------
Run a program:
    >>> from cppmini import compile_and_run
    >>> compile_and_run('cout << "hi" << endl;').output
    'hi'

Or use the command-line tool:
    $ cppmini hello.cpp
    $ cppmini sum.cpp -i "3 4"
    $ cppmini sum.cpp --ast

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from cppmini.errors import CppMiniError, SourceLocation
from cppmini.lang import (
    CppMiniCompiler,
    RunOptions,
    RunResult,
    compile_and_run,
)

__all__ = [
    # Version info
    "__version__",
    # Driver
    "CppMiniCompiler",
    "RunOptions",
    "RunResult",
    "compile_and_run",
    # Exception hierarchy
    "CppMiniError",
    "SourceLocation",
]
