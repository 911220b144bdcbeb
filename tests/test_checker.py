"""
Literal Checker Test Suite
==========================

Tests for constant folding and the declared-type / folded-kind matrix.
"""

import pytest

from cppmini.lang.checker import LiteralChecker, check_declaration, fold_literal
from cppmini.lang.errors import CppTypeError
from cppmini.lang.lexer import tokenize
from cppmini.lang.parser import Parser, parse_source


def fold(source: str):
    return fold_literal(Parser(tokenize(source)).parse_expression())


def declaration(source: str):
    return parse_source(source).body[0]


# =============================================================================
# Folding
# =============================================================================

class TestFolding:
    """Tests for the arithmetic-only folder."""

    def test_int_literal(self):
        """Integer literals fold to int."""
        assert fold("7") == ("int", 7)

    def test_float_promotion(self):
        """Any float operand makes the result float."""
        assert fold("1 + 2.5") == ("float", 3.5)

    def test_int_division_truncates(self):
        """int / int truncates toward zero."""
        assert fold("7 / 2") == ("int", 3)
        assert fold("-7 / 2") == ("int", -3)

    def test_parentheses_and_unary(self):
        """Grouping and unary signs fold."""
        assert fold("-(2 + 3) * 2") == ("int", -10)

    def test_string_literal(self):
        """A bare string literal folds to string."""
        assert fold('"hi"') == ("string", "hi")

    def test_not_foldable(self):
        """Names, calls, modulo and string arithmetic are not foldable."""
        for source in ["x + 1", "f(2)", "7 % 2", '"a" + "b"', "'c'", "true"]:
            assert fold(source) is None, source

    def test_division_by_zero_not_foldable(self):
        """Constant division by zero is left to run time."""
        assert fold("1 / 0") is None


# =============================================================================
# Declaration Matrix
# =============================================================================

class TestDeclarationMatrix:
    """Tests for declared type against folded kind."""

    @pytest.mark.parametrize("source", [
        "int x = 5;",
        "int x = 2 * (3 + 4);",
        "int x = y + 1;",
        "float f = 3;",
        "double d = 1.5 * 2;",
        "double d = sqrt(2);",
        'string s = "hello";',
        'std::string s = "hello";',
        "char c = 65;",
        "bool b = 2.5;",
        "auto a = 1.5;",
        "vector<int> v = {1, 2};",
        "int* p = new int;",
        "int a[3] = {1, 2, 3};",
        "int x;",
    ])
    def test_accepted(self, source):
        """Compatible or unchecked initializers pass."""
        check_declaration(declaration(source))

    @pytest.mark.parametrize("source, inferred", [
        ("int x = 2.5;", "float"),
        ("int x = 1 + 0.5;", "float"),
        ('int x = "5";', "string"),
        ('double d = "1.0";', "string"),
        ("string s = 5;", "int"),
        ("string s = 1.5;", "float"),
        ("string s = name + \"!\";", None),
        ("string s = 'c';", None),
    ])
    def test_rejected(self, source, inferred):
        """Incompatible initializers raise a type error."""
        with pytest.raises(CppTypeError) as exc_info:
            check_declaration(declaration(source))
        assert exc_info.value.inferred == inferred
        assert exc_info.value.phase == "type"

    def test_error_message_names_variable(self):
        """The message names the declared type and variable."""
        with pytest.raises(CppTypeError) as exc_info:
            check_declaration(declaration("int count = 2.5;"))
        assert exc_info.value.message == "cannot initialize int 'count' with a value of type float"


# =============================================================================
# Checker Visitor
# =============================================================================

class TestLiteralChecker:
    """Tests for the tree-wide checker."""

    def test_checks_nested_declarations(self):
        """Declarations inside functions and loops are checked."""
        program = parse_source("int main() { for (int i = 0; i < 2; i++) { int x = 0.5; } }")
        with pytest.raises(CppTypeError):
            LiteralChecker().check(program)

    def test_counts_initializers(self):
        """Only declarations with initializers are counted."""
        program = parse_source("int a = 1, b; double c = 2; int f(int n) { int d = n; return d; }")
        checker = LiteralChecker()
        checker.check(program)
        assert checker.checked == 3
