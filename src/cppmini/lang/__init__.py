"""
cppmini C++-Subset Toolchain
============================

This package implements a compile-and-run pipeline for a small,
teaching-oriented subset of C++. Programs are never translated to another
language: the parsed AST is executed directly by a tree-walking
interpreter.

- A regex-table lexer with a fixed rule priority
- A precedence-climbing parser producing a structured AST
- A best-effort literal checker for declaration initializers
- A tree-walking interpreter with native vector, map and pair support

Pipeline
--------
    Source → Lexer → Parser → AST → Literal Checker → Interpreter → Output

Usage
-----
>>> from cppmini.lang import compile_and_run
>>> result = compile_and_run('''
... #include <iostream>
... using namespace std;
... int main() {
...     int n;
...     cin >> n;
...     cout << n * n << endl;
...     return 0;
... }
... ''', ["12"])
>>> result.output
'144'

Language Subset
---------------
Supported features:
- Types: int, float, double, char, bool, string, auto, vector, map, pair
- Operators: arithmetic, relational, logical, bitwise, compound assignment
- Control flow: if/else, while, do-while, for, break, continue, return
- Functions: definitions, prototypes, reference parameters, templates,
  overloading by argument count, recursion
- Streams: cout with endl, cin into any assignable expression

Not supported:
- class, struct, namespaces other than std, pointer dereference
- The conditional operator ``?:``
"""

# =============================================================================
# Public API Imports
# =============================================================================

from cppmini.lang.compiler import (
    CppMiniCompiler,
    RunOptions,
    RunResult,
    compile_and_run,
)
from cppmini.lang.errors import (
    LexicalError,
    CppSyntaxError,
    UnbalancedGenericsError,
    UnsupportedConstructError,
    CppTypeError,
    CppRuntimeError,
    InputExhaustedError,
    OutOfRangeError,
    UnboundNameError,
    ZeroDivisionFault,
    ExecutionBudgetError,
)
from cppmini.lang.lexer import Lexer, Token, TokenKind, tokenize
from cppmini.lang.parser import Parser, parse_source, parse_tokens
from cppmini.lang.checker import LiteralChecker, check_declaration, fold_literal
from cppmini.lang.interpreter import Interpreter, execute, link
from cppmini.lang.runtime import NO_OUTPUT, HEADER_REGISTRY
from cppmini.lang.types import TypeSpec
from cppmini.lang.ast import ASTPrinter, ASTVisitor, Program

__all__ = [
    # Main API
    "CppMiniCompiler",
    "RunOptions",
    "RunResult",
    "compile_and_run",
    # Errors
    "LexicalError",
    "CppSyntaxError",
    "UnbalancedGenericsError",
    "UnsupportedConstructError",
    "CppTypeError",
    "CppRuntimeError",
    "InputExhaustedError",
    "OutOfRangeError",
    "UnboundNameError",
    "ZeroDivisionFault",
    "ExecutionBudgetError",
    # Lexer
    "Lexer",
    "Token",
    "TokenKind",
    "tokenize",
    # Parser
    "Parser",
    "parse_source",
    "parse_tokens",
    # Checker
    "LiteralChecker",
    "check_declaration",
    "fold_literal",
    # Interpreter
    "Interpreter",
    "execute",
    "link",
    "NO_OUTPUT",
    "HEADER_REGISTRY",
    # AST
    "TypeSpec",
    "ASTPrinter",
    "ASTVisitor",
    "Program",
]
