"""
cppmini Pipeline Error Hierarchy
================================

This module defines the phase-tagged exceptions raised by the lexer,
parser, literal checker and interpreter. Every class carries a ``phase``
attribute which the driver reports back to the caller unchanged.

Exception Hierarchy
-------------------
CppMiniError (base, see cppmini.errors)
├── LexicalError - no lexical rule matches at a position
├── CppSyntaxError - expected-token mismatch
│   ├── UnbalancedGenericsError - generic argument brackets do not close
│   └── UnsupportedConstructError - keyword not allowed in statement position
├── CppTypeError - initializer incompatible with declared type
└── CppRuntimeError - any fault while the program runs
    ├── InputExhaustedError - cin read with no tokens left
    ├── OutOfRangeError - container access outside its bounds
    ├── UnboundNameError - reference to an undeclared name
    ├── ZeroDivisionFault - integer division or modulo by zero
    └── ExecutionBudgetError - step or call-depth budget exceeded

Positions
---------
Lexical and syntax errors carry ``position``, the 0-based character offset
into the normalized source, in addition to the 1-based SourceLocation used
by the formatted message.
"""

from typing import Optional

from cppmini.errors import CppMiniError, SourceLocation


# =============================================================================
# Lexical Errors
# =============================================================================

class LexicalError(CppMiniError):
    """
    Raised when no lexical rule matches the text at a position.

    Attributes:
        position: Offset of the offending character
        character: The offending character
    """

    phase = "lexical"

    def __init__(
        self,
        position: int,
        character: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.position = position
        self.character = character
        super().__init__(
            f"unexpected character {character!r} at position {position}",
            location,
            source_line=source_line,
        )


# =============================================================================
# Syntax Errors
# =============================================================================

class CppSyntaxError(CppMiniError):
    """
    Raised when the parser finds a token the grammar does not allow.

    Attributes:
        expected: Description of what the parser wanted
        found: Text of the token actually found
        position: Offset of the found token
    """

    phase = "syntax"

    def __init__(
        self,
        expected: str,
        found: str,
        position: Optional[int] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        hint: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.expected = expected
        self.found = found
        self.position = position
        if message is None:
            message = f"expected {expected}, found {found!r}"
            if position is not None:
                message += f" at position {position}"
        super().__init__(message, location, hint, source_line)


class UnbalancedGenericsError(CppSyntaxError):
    """Generic argument list whose angle brackets never return to depth zero."""

    def __init__(
        self,
        found: str,
        position: Optional[int] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        message = "unbalanced generic arguments"
        if position is not None:
            message += f" near {found!r} at position {position}"
        super().__init__(
            "'>'", found, position, location, source_line,
            message=message,
        )


class UnsupportedConstructError(CppSyntaxError):
    """
    A recognized keyword that cannot start a statement in this subset.

    Example: ``class``, ``struct`` or ``delete`` in statement position.
    """

    def __init__(
        self,
        keyword: str,
        position: Optional[int] = None,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.keyword = keyword
        message = f"unsupported construct '{keyword}'"
        if position is not None:
            message += f" at position {position}"
        super().__init__(
            "statement", keyword, position, location, source_line,
            message=message,
        )


# =============================================================================
# Type Errors
# =============================================================================

class CppTypeError(CppMiniError):
    """
    Declaration initializer incompatible with the declared primitive type.

    Attributes:
        declared: Declared base type name (e.g. "int")
        inferred: Kind inferred for the initializer ("int", "float",
                  "string"), or None when the initializer was not foldable
        name: Declared variable name
    """

    phase = "type"

    def __init__(
        self,
        declared: str,
        inferred: Optional[str],
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.declared = declared
        self.inferred = inferred
        self.name = name
        if inferred is None:
            message = (f"cannot initialize {declared} '{name}' "
                       f"with a non-literal expression")
        else:
            message = (f"cannot initialize {declared} '{name}' "
                       f"with a value of type {inferred}")
        super().__init__(message, location, source_line=source_line)


# =============================================================================
# Runtime Errors
# =============================================================================

class CppRuntimeError(CppMiniError):
    """Base class for faults raised while the program executes."""

    phase = "runtime"


class InputExhaustedError(CppRuntimeError):
    """An input statement ran with no input tokens left."""

    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__("input exhausted", location)


class OutOfRangeError(CppRuntimeError):
    """Container element access outside the valid range."""
    pass


class UnboundNameError(CppRuntimeError):
    """
    Reference to a name with no binding in any enclosing frame.

    Attributes:
        name: The unresolved name
    """

    def __init__(self, name: str, location: Optional[SourceLocation] = None):
        self.name = name
        super().__init__(f"'{name}' was not declared in this scope", location)


class ZeroDivisionFault(CppRuntimeError):
    """Integer division or modulo by zero."""

    def __init__(self, location: Optional[SourceLocation] = None):
        super().__init__("division by zero", location)


class ExecutionBudgetError(CppRuntimeError):
    """The program exceeded its step or call-depth budget."""
    pass
