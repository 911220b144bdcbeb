"""
Driver Test Suite
=================

Tests for the compile-and-run driver: end-to-end programs, phase
reporting, options and determinism.

Test Organization
-----------------
- TestEndToEnd: Small complete programs
- TestPhaseErrors: Each phase reports its own failures
- TestRunOptions: Option validation and environment configuration
- TestCompiler: The staged CppMiniCompiler class
"""

import pytest

from cppmini import CppMiniCompiler, RunOptions, RunResult, compile_and_run
from cppmini.lang.errors import CppSyntaxError, ExecutionBudgetError
from cppmini.lang.interpreter import DEFAULT_MAX_STEPS
from cppmini.lang.runtime import NO_OUTPUT


# =============================================================================
# End-to-End Programs
# =============================================================================

class TestEndToEnd:
    """Tests for complete programs through every phase."""

    def test_print_variable(self):
        """A global declaration and a print."""
        result = compile_and_run("int x = 5; cout << x << endl;")
        assert result.success
        assert result.output == "5"

    def test_reads_input(self):
        """cin consumes the supplied tokens."""
        result = compile_and_run("int a; cin >> a; cout << a * 2 << endl;", ["21"])
        assert result.output == "42"

    def test_for_loop_lines(self):
        """One line per endl, without a trailing newline."""
        result = compile_and_run("for (int i = 0; i < 3; i++) { cout << i << endl; }")
        assert result.output == "0\n1\n2"

    def test_vector_size(self):
        """push_back grows the vector."""
        source = "vector<int> v; v.push_back(1); v.push_back(2); cout << v.size() << endl;"
        assert compile_and_run(source).output == "2"

    def test_full_program(self):
        """A program with headers, functions and containers."""
        source = """
        #include <iostream>
        #include <vector>
        #include <algorithm>
        using namespace std;

        int sumOf(const vector<int>& values) {
            int total = 0;
            for (int i = 0; i < values.size(); i++) {
                total += values[i];
            }
            return total;
        }

        int main() {
            int n;
            cin >> n;
            vector<int> values;
            for (int i = 0; i < n; i++) {
                int x;
                cin >> x;
                values.push_back(x);
            }
            sort(values.begin(), values.end());
            cout << "min " << values[0] << endl;
            cout << "sum " << sumOf(values) << endl;
            return 0;
        }
        """
        result = compile_and_run(source, "4 8 3 5 1")
        assert result.success, result.diagnostic
        assert result.output == "min 1\nsum 17"

    def test_no_output(self):
        """A silent program yields the sentinel."""
        assert compile_and_run("int x = 1;").output == NO_OUTPUT

    def test_string_input_is_split(self):
        """A single input string is split on whitespace."""
        source = "int a, b; cin >> a >> b; cout << a + b;"
        assert compile_and_run(source, "  2\n 3 ").output == "5"

    def test_deterministic(self):
        """The same source and input give the same result every time."""
        source = "int n; cin >> n; vector<int> v; for (int i = 0; i < n; i++) v.push_back(i * i); cout << v.back();"
        first = compile_and_run(source, ["4"])
        second = compile_and_run(source, ["4"])
        assert first.output == second.output == "9"


# =============================================================================
# Phase Errors
# =============================================================================

class TestPhaseErrors:
    """Tests for first-failing-phase reporting."""

    def test_lexical(self):
        """An unknown character fails in the lexical phase."""
        result = compile_and_run("int x = 5 @ 2;")
        assert not result.success
        assert result.error_phase == "lexical"
        assert result.program is None

    def test_syntax(self):
        """A missing initializer names the ';' token and its position."""
        result = compile_and_run("int x = ;")
        assert result.error_phase == "syntax"
        assert isinstance(result.error, CppSyntaxError)
        assert "';'" in result.error_message
        assert "position 8" in result.error_message
        assert result.tokens

    def test_type(self):
        """A float literal for an int fails the literal check."""
        result = compile_and_run("int x = 2.5; cout << x;")
        assert result.error_phase == "type"
        assert result.render() == f"type error: {result.error_message}"

    def test_type_check_can_be_disabled(self):
        """Without the literal check the value is truncated at run time."""
        options = RunOptions(check_literals=False)
        assert compile_and_run("int x = 2.5; cout << x;", options=options).output == "2"

    def test_infinite_loop_is_a_runtime_error(self):
        """while(true){} ends with a budget error, not a hang."""
        result = compile_and_run("while(true){}", options=RunOptions(max_steps=5_000))
        assert result.error_phase == "runtime"
        assert isinstance(result.error, ExecutionBudgetError)
        assert "5000 steps" in result.error_message

    def test_runtime_failure_discards_output(self):
        """Output written before a runtime fault is not returned."""
        result = compile_and_run("cout << 1 << endl; int z = 0; cout << 1 / z;")
        assert not result.success
        assert result.output == ""
        assert result.error_phase == "runtime"

    def test_diagnostic_has_context(self):
        """The diagnostic names the file, line and source text."""
        options = RunOptions(filename="prog.cpp")
        result = compile_and_run("int a = 1;\ncout << b;", options=options)
        assert result.diagnostic.startswith("prog.cpp:2:1: error:")
        assert "cout << b;" in result.diagnostic

    def test_input_exhausted(self):
        """Reading past the input is a runtime error."""
        result = compile_and_run("int a; cin >> a;")
        assert result.error_phase == "runtime"
        assert result.error_message == "input exhausted"

    @pytest.mark.parametrize("source", [
        "int x = " + "(" * 2000 + "1" + ")" * 2000 + ";",
        "int x = " + "- " * 5000 + "1;",
    ])
    def test_deep_nesting_is_syntax_error(self, source):
        """Pathologically nested expressions fail in the syntax phase."""
        result = compile_and_run(source)
        assert result.error_phase == "syntax"
        assert "nesting too deep" in result.error_message

    @pytest.mark.parametrize("source", [
        "vector<int> v; v.resize(20000000); cout << v.size();",
        "vector<int> v; v.assign(20000000, 1);",
        "int* p = new int[20000000];",
        "int a[20000000];",
    ])
    def test_large_allocation_hits_budget(self, source):
        """A single huge allocation is stopped by the step budget."""
        result = compile_and_run(source, options=RunOptions(max_steps=1000))
        assert result.error_phase == "runtime"
        assert isinstance(result.error, ExecutionBudgetError)

    def test_unknown_parameter_type(self):
        """A prototype with an unknown parameter type still parses."""
        result = compile_and_run("void f(Foo x); cout << 1 << endl;")
        assert result.error is None
        assert result.output == "1"


# =============================================================================
# Run Options
# =============================================================================

class TestRunOptions:
    """Tests for RunOptions."""

    def test_defaults(self):
        """Default options check literals with the default budgets."""
        options = RunOptions()
        assert options.check_literals
        assert options.max_steps == DEFAULT_MAX_STEPS

    @pytest.mark.parametrize("kwargs", [
        {"max_steps": 0},
        {"max_steps": -5},
        {"max_call_depth": 0},
    ])
    def test_budgets_must_be_positive(self, kwargs):
        """Non-positive budgets are rejected."""
        with pytest.raises(ValueError):
            RunOptions(**kwargs)

    def test_from_env(self, monkeypatch):
        """Budgets can come from the environment."""
        monkeypatch.setenv("CPPMINI_MAX_STEPS", "1234")
        monkeypatch.setenv("CPPMINI_MAX_DEPTH", "12")
        options = RunOptions.from_env()
        assert options.max_steps == 1234
        assert options.max_call_depth == 12

    def test_from_env_ignores_invalid(self, monkeypatch):
        """Invalid or non-positive values fall back to defaults."""
        monkeypatch.setenv("CPPMINI_MAX_STEPS", "lots")
        monkeypatch.setenv("CPPMINI_MAX_DEPTH", "-1")
        options = RunOptions.from_env()
        assert options == RunOptions()


# =============================================================================
# Compiler Class
# =============================================================================

class TestCompiler:
    """Tests for CppMiniCompiler."""

    def test_run_file(self, tmp_path):
        """run_file reads the source and names it in diagnostics."""
        path = tmp_path / "bad.cpp"
        path.write_text("int main() {\n  cout << nope;\n}\n")
        result = CppMiniCompiler().run_file(str(path))
        assert isinstance(result, RunResult)
        assert result.error_phase == "runtime"
        assert result.diagnostic.startswith(f"{path}:2:3: error:")

    def test_run_file_missing(self, tmp_path):
        """A missing file is an ordinary FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            CppMiniCompiler().run_file(str(tmp_path / "missing.cpp"))

    def test_render_success(self):
        """render gives the output on success."""
        result = CppMiniCompiler().run_source('cout << "ok";')
        assert result.render() == "ok"

    def test_run_file_keeps_options(self, tmp_path):
        """run_file does not change the caller's options."""
        path = tmp_path / "prog.cpp"
        path.write_text("cout << 1;")
        options = RunOptions()
        compiler = CppMiniCompiler(options)
        compiler.run_file(str(path))
        assert options.filename == "<input>"
        assert compiler.options.filename == "<input>"
