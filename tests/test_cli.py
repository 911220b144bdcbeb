"""
CLI Test Suite
==============

Tests for the cppmini command-line tool.
"""

import pytest
from click.testing import CliRunner

from cppmini.cli.cppmini import collect_input, main
from cppmini.cli.errors import ExitCode


@pytest.fixture
def write_source(tmp_path):
    """Write a C++ source file and return its path as a string."""
    def write(text: str, name: str = "prog.cpp") -> str:
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return write


# =============================================================================
# CLI Tests
# =============================================================================

class TestCppMiniCLI:
    """Tests for the cppmini CLI tool."""

    def test_cli_help(self):
        """Test CLI help output."""
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Compile and run a C++-subset program" in result.output

    def test_cli_version(self):
        """Test CLI version output."""
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "cppmini" in result.output

    def test_cli_runs_program(self, write_source):
        """Test running a program prints its output."""
        path = write_source("int main() { cout << 6 * 7 << endl; }")

        result = CliRunner().invoke(main, [path])

        assert result.exit_code == ExitCode.SUCCESS
        assert result.output == "42\n"

    def test_cli_input_tokens(self, write_source):
        """Test -i values are split into cin tokens."""
        path = write_source("int a, b, c; cin >> a >> b >> c; cout << a + b + c;")

        result = CliRunner().invoke(main, [path, "-i", "1 2", "-i", "3"])

        assert result.exit_code == 0
        assert result.output.strip() == "6"

    def test_cli_input_file(self, write_source, tmp_path):
        """Test input tokens read from a file."""
        path = write_source("int n; cin >> n; cout << n * n;")
        numbers = tmp_path / "numbers.txt"
        numbers.write_text("9\n")

        result = CliRunner().invoke(main, [path, "--input-file", str(numbers)])

        assert result.exit_code == 0
        assert result.output.strip() == "81"

    def test_cli_syntax_error(self, write_source):
        """Test a syntax error exits with the build error code."""
        path = write_source("int x = ;")

        result = CliRunner().invoke(main, [path])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "syntax error:" in result.output

    def test_cli_runtime_budget(self, write_source):
        """Test --max-steps stops an infinite loop."""
        path = write_source("while (true) {}")

        result = CliRunner().invoke(main, [path, "--max-steps", "100"])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "runtime error: execution exceeded the budget of 100 steps" in result.output

    def test_cli_rejects_zero_budget(self, write_source):
        """Test --max-steps must be positive."""
        path = write_source("int x;")

        result = CliRunner().invoke(main, [path, "--max-steps", "0"])

        assert result.exit_code == 2

    def test_cli_budget_from_environment(self, write_source):
        """Test the step budget can come from the environment."""
        path = write_source("for (;;) {}")

        result = CliRunner().invoke(main, [path], env={"CPPMINI_MAX_STEPS": "50"})

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "budget of 50 steps" in result.output

    def test_cli_missing_file(self, tmp_path):
        """Test a missing source file is a usage error."""
        result = CliRunner().invoke(main, [str(tmp_path / "nope.cpp")])

        assert result.exit_code == 2

    def test_cli_tokens(self, write_source):
        """Test the token dump."""
        path = write_source("int x = 5;")

        result = CliRunner().invoke(main, [path, "--tokens"])

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0] == "KEYWORD int @0"
        assert lines[-1] == "DELIMITER ; @9"
        assert len(lines) == 5

    def test_cli_tokens_lexical_error(self, write_source):
        """Test a lexical error during the token dump."""
        path = write_source("int x = $;")

        result = CliRunner().invoke(main, [path, "--tokens"])

        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "lexical error:" in result.output

    def test_cli_ast(self, write_source):
        """Test the AST dump."""
        path = write_source("int main() { return 0; }")

        result = CliRunner().invoke(main, [path, "--ast"])

        assert result.exit_code == 0
        assert "Function: " in result.output


class TestCollectInput:
    """Tests for input token collection."""

    def test_values_then_file(self, tmp_path):
        """Values come first, then the file's tokens."""
        extra = tmp_path / "extra.txt"
        extra.write_text("c\td\n")
        assert collect_input(("a  b",), extra) == ["a", "b", "c", "d"]

    def test_nothing(self):
        """No values and no file give no tokens."""
        assert collect_input((), None) == []
