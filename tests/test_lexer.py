"""
Lexer Test Suite
================

Tests for the regex-table tokenizer: rule priority, token kinds and
positions, normalization, and lexical errors.

Test Organization
-----------------
- TestTokenKinds: Classification of each kind of lexeme
- TestRulePriority: First-match-wins ordering of the rule table
- TestPositions: Offsets, lines and columns
- TestNormalization: Line endings and zero-width characters
- TestLexicalErrors: Unmatched characters
"""

import pytest

from cppmini.lang.errors import LexicalError
from cppmini.lang.lexer import KEYWORDS, Lexer, TokenKind, normalize_source, tokenize


def kinds(source: str) -> list[TokenKind]:
    return [t.kind for t in tokenize(source)[:-1]]


def texts(source: str) -> list[str]:
    return [t.text for t in tokenize(source)[:-1]]


# =============================================================================
# Token Kinds
# =============================================================================

class TestTokenKinds:
    """Tests for classification of lexemes."""

    def test_empty_source(self):
        """Empty source should produce only the EOF token."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].kind == TokenKind.EOF
        assert tokens[0].text == ""

    def test_whitespace_and_comments_only(self):
        """Comments and whitespace are discarded, never tokens."""
        tokens = tokenize("  // line comment\n /* block\n comment */ \t\n")
        assert [t.kind for t in tokens] == [TokenKind.EOF]

    def test_keywords(self):
        """Every reserved word lexes as a keyword."""
        for word in KEYWORDS:
            token = tokenize(word)[0]
            assert token.kind == TokenKind.KEYWORD, word
            assert token.text == word

    def test_identifiers(self):
        """Names that only start with a keyword are identifiers."""
        for name in ["main", "_tmp", "integer", "format", "cout2", "newer"]:
            token = tokenize(name)[0]
            assert token.kind == TokenKind.IDENTIFIER, name
            assert token.text == name

    def test_numbers(self):
        """Integer, decimal and exponent forms are single numbers."""
        assert texts("42 3.14 1e9 2.5E-3 7.") == ["42", "3.14", "1e9", "2.5E-3", "7."]
        assert set(kinds("42 3.14 1e9")) == {TokenKind.NUMBER}

    def test_string_and_char(self):
        """String and char literals keep their quotes and escapes."""
        tokens = tokenize(r'"a \"b\"" ' + r"'\n' 'x'")
        assert tokens[0].kind == TokenKind.STRING
        assert tokens[0].text == r'"a \"b\""'
        assert tokens[1].kind == TokenKind.CHAR
        assert tokens[1].text == r"'\n'"
        assert tokens[2].kind == TokenKind.CHAR

    def test_include_directive(self):
        """An include directive is one token."""
        tokens = tokenize('#include <iostream>\n#include "mine.h"')
        assert [t.kind for t in tokens[:-1]] == [TokenKind.INCLUDE, TokenKind.INCLUDE]
        assert tokens[0].text == "#include <iostream>"

    def test_stream_operators(self):
        """<< and >> are stream operators."""
        assert kinds("cout << x >> y") == [
            TokenKind.KEYWORD, TokenKind.STREAM, TokenKind.IDENTIFIER,
            TokenKind.STREAM, TokenKind.IDENTIFIER,
        ]

    def test_scope_and_delimiters(self):
        """:: is scope resolution; a lone ':' is a delimiter."""
        assert kinds("std::sort") == [TokenKind.IDENTIFIER, TokenKind.SCOPE,
                                      TokenKind.IDENTIFIER]
        assert kinds("( ) [ ] { } ; , :") == [TokenKind.DELIMITER] * 9

    def test_operators(self):
        """Multi- and single-character operators."""
        assert texts("a += b->c && !d") == ["a", "+=", "b", "->", "c", "&&", "!", "d"]
        assert kinds("+ - * / % = < > ! & | ~ ^ .") == [TokenKind.OPERATOR] * 14


# =============================================================================
# Rule Priority
# =============================================================================

class TestRulePriority:
    """Tests for first-match-wins rule ordering."""

    def test_multi_char_operators_before_single(self):
        """'++' is one token, not two '+'."""
        assert texts("i++ + ++j") == ["i", "++", "+", "++", "j"]

    def test_comparison_before_single(self):
        """'<=' and '==' are single tokens."""
        assert texts("a <= b == c") == ["a", "<=", "b", "==", "c"]

    def test_stream_before_comparison(self):
        """'>>' ending nested generics lexes as one stream token."""
        tokens = tokenize("vector<vector<int>> v;")
        assert [t.text for t in tokens[:-1]] == [
            "vector", "<", "vector", "<", "int", ">>", "v", ";",
        ]
        assert tokens[5].kind == TokenKind.STREAM

    def test_comment_before_division(self):
        """'//' starts a comment rather than two divisions."""
        assert texts("a / b // c / d") == ["a", "/", "b"]

    def test_keyword_needs_whole_word(self):
        """Keyword recognition is whole-word only."""
        assert kinds("int intValue") == [TokenKind.KEYWORD, TokenKind.IDENTIFIER]


# =============================================================================
# Positions
# =============================================================================

class TestPositions:
    """Tests for token offsets, lines and columns."""

    def test_offsets(self):
        """Each token records its 0-based offset."""
        tokens = tokenize("int x = 5;")
        assert [t.position for t in tokens] == [0, 4, 6, 8, 9, 10]

    def test_line_and_column(self):
        """Lines and columns are 1-based."""
        tokens = tokenize("int a;\n  a = 2;")
        second_a = tokens[3]
        assert second_a.text == "a"
        assert (second_a.line, second_a.column) == (2, 3)
        assert second_a.position == 9

    def test_location_carries_filename(self):
        """Token locations name the source."""
        token = Lexer("x", "demo.cpp").tokenize()[0]
        assert str(token.location) == "demo.cpp:1:1"

    def test_eof_position(self):
        """The EOF token sits just past the last character."""
        tokens = tokenize("x;")
        assert tokens[-1].position == 2


# =============================================================================
# Normalization
# =============================================================================

class TestNormalization:
    """Tests for source normalization before scanning."""

    def test_crlf(self):
        """CRLF and CR line endings become LF."""
        assert normalize_source("a\r\nb\rc") == "a\nb\nc"

    def test_zero_width_removed(self):
        """Zero-width characters pasted from editors are dropped."""
        assert texts("\ufeffint\u200b x;") == ["int", "x", ";"]

    def test_crlf_lines(self):
        """Line numbers count CRLF as one line break."""
        tokens = tokenize("a\r\nb")
        assert tokens[1].line == 2


# =============================================================================
# Lexical Errors
# =============================================================================

class TestLexicalErrors:
    """Tests for characters no rule matches."""

    def test_unknown_character(self):
        """An unmatched character reports its offset and text."""
        with pytest.raises(LexicalError) as exc_info:
            tokenize("int x = 5 @ 3;")
        error = exc_info.value
        assert error.position == 10
        assert error.character == "@"
        assert error.phase == "lexical"
        assert "position 10" in error.message

    def test_error_location_and_context(self):
        """The formatted error shows the line and a caret."""
        with pytest.raises(LexicalError) as exc_info:
            Lexer("int a;\nint b = $;", "demo.cpp").tokenize()
        text = str(exc_info.value)
        assert text.startswith("demo.cpp:2:9: error:")
        assert "int b = $;" in text
        assert text.splitlines()[2].endswith("^")

    def test_unterminated_string(self):
        """An unterminated string leaves a stray quote."""
        with pytest.raises(LexicalError) as exc_info:
            tokenize('cout << "abc')
        assert exc_info.value.character == '"'
