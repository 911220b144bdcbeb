"""
cppmini Lexer (Tokenizer)
=========================

This module converts source text into the ordered token sequence read by
the parser.

Scanning Rules
--------------
At each position the lexer tries a fixed table of regular expressions in
priority order and takes the first rule that matches. Rule order is part
of the contract (the first match wins, not the longest):

| Priority | Rule                       | Token kind  |
|----------|----------------------------|-------------|
| 1        | // and /* */ comments      | (discarded) |
| 2        | #include <...> / "..."     | INCLUDE     |
| 3        | << >>                      | STREAM      |
| 4        | ++ -- == != <= >= && ...   | OPERATOR    |
| 5        | reserved words             | KEYWORD     |
| 6        | identifiers                | IDENTIFIER  |
| 7        | 12, 3.5, 1e9               | NUMBER      |
| 8        | 'c'                        | CHAR        |
| 9        | "text"                     | STRING      |
| 10       | ::                         | SCOPE       |
| 11       | + - * / = < > ! ...        | OPERATOR    |
| 12       | ( ) [ ] { } ; , :          | DELIMITER   |
| 13       | whitespace                 | (discarded) |

A position matched by no rule raises LexicalError with the offset and the
offending character.

Normalization
-------------
Before scanning, CRLF and lone CR line endings become LF and zero-width
characters (U+200B..U+200D, U+FEFF) are removed, so text pasted from
editors and web pages scans the same as typed text. Token positions refer
to the normalized text.

Example Usage
-------------
>>> from cppmini.lang.lexer import tokenize
>>> [t.text for t in tokenize('cout << x;')]
['cout', '<<', 'x', ';', '']
"""

import bisect
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from cppmini.errors import SourceLocation
from cppmini.lang.errors import LexicalError


logger = logging.getLogger(__name__)


# =============================================================================
# Token Types
# =============================================================================

class TokenKind(Enum):
    """Classification of a token."""
    KEYWORD = auto()        # reserved word
    IDENTIFIER = auto()     # variable, function or type name
    NUMBER = auto()         # integer or decimal literal
    STRING = auto()         # "..." literal (raw text, quotes included)
    CHAR = auto()           # '.' literal (raw text, quotes included)
    STREAM = auto()         # << >>
    OPERATOR = auto()       # arithmetic, logical, assignment, member
    SCOPE = auto()          # ::
    DELIMITER = auto()      # ( ) [ ] { } ; , :
    INCLUDE = auto()        # #include directive
    EOF = auto()            # end of input


KEYWORDS: frozenset[str] = frozenset({
    # Types and modifiers
    "int", "float", "double", "char", "void", "bool", "auto",
    "const", "static", "string", "vector", "map", "pair",
    # Control flow
    "if", "else", "while", "for", "do", "return", "break", "continue",
    # Streams
    "cout", "cin", "endl",
    # Literals and allocation
    "true", "false", "new", "delete",
    # Recognized but mostly unsupported
    "class", "struct", "public", "private", "protected",
    "namespace", "using", "template", "typename",
})


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single lexeme.

    Attributes:
        kind: The TokenKind classification
        text: Exact source text of the lexeme
        position: 0-based offset of the first character
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        filename: Name of the source
    """
    kind: TokenKind
    text: str
    position: int
    line: int = 1
    column: int = 1
    filename: str = "<input>"

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.text!r}, @{self.position})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.line, self.column)

    def is_(self, kind: TokenKind, text: Optional[str] = None) -> bool:
        """Return True if this token has the given kind (and text, if given)."""
        return self.kind == kind and (text is None or self.text == text)

    def is_keyword(self, *words: str) -> bool:
        """Return True if this token is one of the given keywords."""
        return self.kind == TokenKind.KEYWORD and self.text in words

    def is_delimiter(self, *chars: str) -> bool:
        """Return True if this token is one of the given delimiters."""
        return self.kind == TokenKind.DELIMITER and self.text in chars

    def is_operator(self, *ops: str) -> bool:
        """Return True if this token is one of the given operators."""
        return self.kind == TokenKind.OPERATOR and self.text in ops


# =============================================================================
# Lexer Implementation
# =============================================================================

_ZERO_WIDTH = re.compile("[\\u200b-\\u200d\\ufeff]")

_WORD_END = r"(?![A-Za-z0-9_])"


class Lexer:
    """
    Regex-table tokenizer.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = lexer.tokenize()

    Attributes:
        source: The normalized source text
        filename: Name of the source file (for error reporting)
    """

    # (pattern, kind) in priority order; kind None means "discard"
    RULES: list[tuple[re.Pattern, Optional[TokenKind]]] = [
        (re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL), None),
        (re.compile(r'#include\s*(?:<[^>\n]+>|"[^"\n]+")'), TokenKind.INCLUDE),
        (re.compile(r"<<|>>"), TokenKind.STREAM),
        (re.compile(r"\+\+|--|==|!=|<=|>=|&&|\|\||->|\+=|-=|\*=|/=|%="),
         TokenKind.OPERATOR),
        (re.compile(r"(?:" + "|".join(sorted(KEYWORDS, key=len, reverse=True))
                    + r")" + _WORD_END), TokenKind.KEYWORD),
        (re.compile(r"[A-Za-z_][A-Za-z0-9_]*"), TokenKind.IDENTIFIER),
        (re.compile(r"\d+\.?\d*(?:[eE][+-]?\d+)?"), TokenKind.NUMBER),
        (re.compile(r"'(?:\\.|[^'\\\n])'"), TokenKind.CHAR),
        (re.compile(r'"(?:\\.|[^"\\\n])*"'), TokenKind.STRING),
        (re.compile(r"::"), TokenKind.SCOPE),
        (re.compile(r"[+\-*/=<>!%&|~^.]"), TokenKind.OPERATOR),
        (re.compile(r"[\[\](){};,:]"), TokenKind.DELIMITER),
        (re.compile(r"\s+"), None),
    ]

    def __init__(self, source: str, filename: str = "<input>"):
        """
        Initialize the lexer with source code.

        Args:
            source: Raw source text (normalized on construction)
            filename: Name of the source file (for error messages)
        """
        self.source = normalize_source(source)
        self.filename = filename
        self._lines = self.source.split("\n")

        # Offsets of the first character of every line, for column lookup
        self._line_starts = [0]
        for index, char in enumerate(self.source):
            if char == "\n":
                self._line_starts.append(index + 1)

    def tokenize(self) -> list[Token]:
        """
        Scan the whole source.

        Returns:
            Token list, always terminated by a single EOF token

        Raises:
            LexicalError: If a position matches no rule
        """
        tokens: list[Token] = []
        pos = 0
        length = len(self.source)

        while pos < length:
            for pattern, kind in self.RULES:
                match = pattern.match(self.source, pos)
                if match is None or match.end() == pos:
                    continue
                if kind is not None:
                    tokens.append(self._make_token(kind, match.group(), pos))
                pos = match.end()
                break
            else:
                line, column = self._line_column(pos)
                raise LexicalError(
                    pos,
                    self.source[pos],
                    SourceLocation(self.filename, line, column),
                    self._lines[line - 1],
                )

        tokens.append(self._make_token(TokenKind.EOF, "", length))
        logger.debug("Scanned %d tokens from %s", len(tokens) - 1, self.filename)
        return tokens

    def source_line(self, line: int) -> Optional[str]:
        """Return the text of a 1-indexed line, or None if out of range."""
        if 0 < line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _make_token(self, kind: TokenKind, text: str, pos: int) -> Token:
        line, column = self._line_column(pos)
        return Token(kind, text, pos, line, column, self.filename)

    def _line_column(self, pos: int) -> tuple[int, int]:
        """Map an offset to a 1-indexed (line, column) pair."""
        index = bisect.bisect_right(self._line_starts, pos) - 1
        return index + 1, pos - self._line_starts[index] + 1


# =============================================================================
# Convenience Functions
# =============================================================================

def normalize_source(source: str) -> str:
    """Unify line endings and strip zero-width characters."""
    source = source.replace("\r\n", "\n").replace("\r", "\n")
    return _ZERO_WIDTH.sub("", source)


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """
    Tokenize source text.

    Args:
        source: Source text
        filename: Source name for error messages

    Returns:
        Token list terminated by an EOF token

    Raises:
        LexicalError: If the text contains an unrecognized character
    """
    return Lexer(source, filename).tokenize()
