"""
cppmini Error Base
==================

This module defines the root of the cppmini exception hierarchy and the
source location type shared by every phase of the pipeline.

All exceptions raised by the toolkit inherit from CppMiniError, so a
caller can catch every pipeline failure with a single except clause:

    try:
        program = parse_source(text)
    except CppMiniError as e:
        print(e)

Error Message Format
--------------------
Errors that know where they happened follow the usual compiler format:

    filename:line:column: error: description
        source_line_text
            ^ (pointer to error location)
    hint: suggestion for fixing (when available)

The phase-specific subclasses (lexical, syntax, type, runtime) live in
cppmini.lang.errors.
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source text, used for error reporting.

    Attributes:
        filename: Name of the source (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Base Exception Class
# =============================================================================

class CppMiniError(Exception):
    """
    Base exception for all cppmini errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text of the offending line (optional)
    """

    # Pipeline phase that produced the error; overridden by subclasses
    phase: str = "internal"

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def attach_location(
        self,
        location: SourceLocation,
        source_line: Optional[str] = None,
    ) -> None:
        """Record where the error happened if it was raised without a location."""
        if self.location is not None:
            return
        self.location = location
        if self.source_line is None:
            self.source_line = source_line
        self.args = (self._format_message(),)

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            demo.cpp:3:9: error: expected expression, found ';'
                int x = ;
                        ^
            hint: every declaration initializer needs a value
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)
