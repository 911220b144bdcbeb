"""
Runtime Support Test Suite
==========================

Tests for the interpreter-native containers, value conversions, library
functions, header registry, and the input/output helpers.

Test Organization
-----------------
- TestVector: vector<T> behaviour and bounds checks
- TestMap: map<K, V> behaviour
- TestConversions: default values, coercion and formatting
- TestLibrary: sort, max, to_string and friends
- TestHeaderRegistry: Header to library function resolution
- TestInputOutput: InputCursor and OutputBuffer
"""

import math

import pytest

from cppmini.lang.errors import CppRuntimeError, InputExhaustedError, OutOfRangeError
from cppmini.lang.runtime import (
    HEADER_REGISTRY,
    NO_OUTPUT,
    Char,
    InputCursor,
    Map,
    MapEnd,
    MapEntry,
    OutputBuffer,
    Pair,
    Vector,
    call_string_method,
    coerce,
    copy_value,
    default_value,
    format_value,
    lib_max,
    lib_min,
    lib_reverse,
    lib_sort,
    lib_stoi,
    lib_to_string,
    parse_input,
    resolve_headers,
    truthy,
)
from cppmini.lang.types import make_type


INT = make_type("int")
DOUBLE = make_type("double")
STRING = make_type("string")


# =============================================================================
# Vector
# =============================================================================

class TestVector:
    """Tests for the vector implementation."""

    def test_push_back_coerces(self):
        """push_back converts to the element type."""
        v = Vector(INT)
        v.push_back(2.9)
        v.push_back(Char("A"))
        assert v.items == [2, 65]
        assert v.size() == 2

    def test_indexing_bounds(self):
        """Indexing outside the vector raises out_of_range."""
        v = Vector(INT, [1, 2, 3])
        assert v.get(2) == 3
        v.set(0, 9)
        assert v.front() == 9
        with pytest.raises(OutOfRangeError):
            v.get(3)
        with pytest.raises(OutOfRangeError):
            v.at(-1)

    def test_empty_vector_access(self):
        """front, back and pop_back on an empty vector fail."""
        v = Vector(INT)
        assert v.empty()
        for operation in (v.front, v.back, v.pop_back):
            with pytest.raises(OutOfRangeError):
                operation()

    def test_resize_and_assign(self):
        """resize pads with defaults; assign refills."""
        v = Vector(DOUBLE, [1.0])
        v.resize(3)
        assert v.items == [1.0, 0.0, 0.0]
        v.assign(2, 7)
        assert v.items == [7.0, 7.0]
        v.resize(1)
        assert v.items == [7.0]

    def test_iterators(self):
        """begin/end positions support arithmetic and comparison."""
        v = Vector(INT, [1, 2, 3])
        first, last = v.begin(), v.end()
        assert last - first == 3
        assert first + 3 == last
        assert first < last


# =============================================================================
# Map
# =============================================================================

class TestMap:
    """Tests for the map implementation."""

    def test_index_default_inserts(self):
        """Reading a missing key inserts the value type's default."""
        m = Map(STRING, INT)
        assert m.get("a") == 0
        assert m.size() == 1
        assert m.count("a") == 1

    def test_insert_does_not_overwrite(self):
        """insert keeps an existing key's value."""
        m = Map(INT, STRING)
        assert m.insert(Pair(1, "one"))
        assert not m.insert(Pair(1, "uno"))
        assert m.get(1) == "one"

    def test_insert_brace_list(self):
        """insert accepts a two-element brace list."""
        m = Map(INT, STRING)
        assert m.insert([2, "two"])
        assert not m.insert([2, "dos"])
        assert m.get(2) == "two"
        with pytest.raises(CppRuntimeError):
            m.insert([1, "a", "b"])

    def test_find(self):
        """find returns a live entry or the end sentinel."""
        m = Map(STRING, INT)
        m.set("x", 5)
        entry = m.find("x")
        assert isinstance(entry, MapEntry)
        assert entry.first == "x"
        entry.second = 6
        assert m.get("x") == 6
        assert m.find("y") is m.end()
        assert isinstance(m.end(), MapEnd)

    def test_erase_and_clear(self):
        """erase reports how many keys were removed."""
        m = Map(INT, INT)
        m.set(1, 1)
        assert m.erase(1) == 1
        assert m.erase(1) == 0
        m.set(2, 2)
        m.clear()
        assert m.empty()

    def test_keys_are_coerced(self):
        """Keys are converted to the key type."""
        m = Map(INT, INT)
        m.set(2.7, 1)
        assert list(m.entries) == [2]


# =============================================================================
# Conversions
# =============================================================================

class TestConversions:
    """Tests for default values, coercion and formatting."""

    def test_default_values(self):
        """Each declared type has a zero value."""
        assert default_value(INT) == 0
        assert default_value(DOUBLE) == 0.0
        assert default_value(STRING) == ""
        assert default_value(make_type("bool")) is False
        assert isinstance(default_value(make_type("vector", INT)), Vector)
        pair = default_value(make_type("pair", INT, STRING))
        assert (pair.first, pair.second) == (0, "")

    def test_int_truncates(self):
        """Storing a float in an int truncates toward zero."""
        assert coerce(3.99, INT) == 3
        assert coerce(-3.99, INT) == -3
        assert coerce(True, INT) == 1

    def test_char_conversions(self):
        """chars convert from codes and one-character strings."""
        assert coerce(66, make_type("char")) == "B"
        assert isinstance(coerce("x", make_type("char")), Char)

    def test_string_rejects_numbers(self):
        """Numbers do not silently become strings."""
        with pytest.raises(CppRuntimeError):
            coerce(5, STRING)

    def test_brace_list_to_containers(self):
        """Brace lists build the declared container."""
        v = coerce([1, 2.5], make_type("vector", INT))
        assert v.items == [1, 2]
        m = coerce([[1, "a"], [2, "b"]], make_type("map", INT, STRING))
        assert m.entries == {1: "a", 2: "b"}
        p = coerce([3, "c"], make_type("pair", INT, STRING))
        assert (p.first, p.second) == (3, "c")

    def test_containers_are_copied(self):
        """Assigning a container copies it deeply."""
        inner = Vector(INT, [1])
        outer = Vector(make_type("vector", INT), [inner])
        copied = coerce(outer, make_type("vector", make_type("vector", INT)))
        copied.items[0].items.append(2)
        assert inner.items == [1]
        assert copy_value(5) == 5

    def test_format_value(self):
        """Printing rules for each scalar."""
        assert format_value(True) == "1"
        assert format_value(False) == "0"
        assert format_value(2.5) == "2.5"
        assert format_value(1 / 3) == "0.333333"
        assert format_value(4.0) == "4"
        assert format_value(Char("z")) == "z"
        with pytest.raises(CppRuntimeError):
            format_value(Vector(INT))

    def test_truthy(self):
        """Conditions accept scalars only."""
        assert truthy(3) and not truthy(0.0) and truthy(Char("a"))
        with pytest.raises(CppRuntimeError):
            truthy("text")

    def test_parse_input(self):
        """Input tokens convert by target type."""
        assert parse_input("42", INT) == 42
        assert parse_input("2.5", DOUBLE) == 2.5
        assert parse_input("hello", make_type("char")) == "h"
        assert parse_input("007", STRING) == "007"
        assert parse_input("7", None) == 7
        assert parse_input("7.5", None) == 7.5
        assert parse_input("word", None) == "word"
        with pytest.raises(CppRuntimeError):
            parse_input("abc", INT)


# =============================================================================
# Library Functions
# =============================================================================

class TestLibrary:
    """Tests for the library function implementations."""

    def test_sort_range(self):
        """sort orders the iterator range in place."""
        v = Vector(INT, [3, 1, 2, 0])
        lib_sort(v.begin(), v.begin() + 3)
        assert v.items == [1, 2, 3, 0]

    def test_sort_strings(self):
        """Strings sort lexicographically."""
        v = Vector(STRING, ["pear", "apple"])
        lib_sort(v.begin(), v.end())
        assert v.items == ["apple", "pear"]

    def test_reverse(self):
        """reverse flips the range."""
        v = Vector(INT, [1, 2, 3])
        lib_reverse(v.begin(), v.end())
        assert v.items == [3, 2, 1]

    def test_sort_needs_iterators(self):
        """Mismatched arguments are a runtime error."""
        with pytest.raises(CppRuntimeError):
            lib_sort(1, 2)

    def test_max_min(self):
        """max and min compare numerically."""
        assert lib_max(3, 7) == 7
        assert lib_min(3, 7) == 3
        assert lib_max(2.5, 1) == 2.5

    def test_conversions(self):
        """to_string and stoi."""
        assert lib_to_string(42) == "42"
        assert lib_to_string(1.5) == "1.500000"
        assert lib_stoi(" 12 ") == 12
        with pytest.raises(CppRuntimeError):
            lib_stoi("x")

    def test_string_methods(self):
        """Read-only string members."""
        assert call_string_method("hello", "length", []) == 5
        assert call_string_method("hello", "substr", [1, 3]) == "ell"
        assert call_string_method("hello", "find", ["l"]) == 2
        assert call_string_method("hello", "at", [1]) == "e"
        with pytest.raises(OutOfRangeError):
            call_string_method("hi", "at", [5])


# =============================================================================
# Header Registry
# =============================================================================

class TestHeaderRegistry:
    """Tests for header-driven library visibility."""

    def test_algorithm(self):
        """<algorithm> exposes sort, reverse, max and min."""
        assert set(resolve_headers(["algorithm"])) == {"sort", "reverse", "max", "min"}

    def test_iostream_exposes_nothing(self):
        """<iostream> adds no functions."""
        assert resolve_headers(["iostream", "vector"]) == {}

    def test_unknown_header_ignored(self):
        """Unrecognized headers contribute nothing."""
        assert resolve_headers(["fstream"]) == {}

    def test_stdcpp_exposes_everything(self):
        """bits/stdc++.h exposes every library function."""
        assert set(resolve_headers(["bits/stdc++.h"])) == set(HEADER_REGISTRY["bits/stdc++.h"])
        assert "sqrt" in resolve_headers(["bits/stdc++.h"])

    def test_math(self):
        """<cmath> functions return doubles."""
        functions = resolve_headers(["cmath"])
        assert functions["sqrt"](16) == 4.0
        assert functions["pow"](2, 10) == 1024.0
        assert math.isnan(functions["sqrt"](-1))
        assert functions["abs"](-3) == 3


# =============================================================================
# Input and Output
# =============================================================================

class TestInputOutput:
    """Tests for the input cursor and output buffer."""

    def test_cursor_pulls_in_order(self):
        """Tokens are consumed front to back."""
        cursor = InputCursor(["a", "b"])
        assert cursor.pull() == "a"
        assert cursor.pull() == "b"
        with pytest.raises(InputExhaustedError) as exc_info:
            cursor.pull()
        assert exc_info.value.message == "input exhausted"

    def test_empty_output_sentinel(self):
        """A run that writes nothing renders the sentinel."""
        assert OutputBuffer().render() == NO_OUTPUT

    def test_lines(self):
        """end_line terminates lines; a final endl adds no empty line."""
        out = OutputBuffer()
        out.write("a")
        out.write("b")
        out.end_line()
        out.write("c")
        out.end_line()
        assert out.render() == "ab\nc"

    def test_embedded_newlines_and_flush(self):
        """Newlines inside text split lines; a dangling line is flushed."""
        out = OutputBuffer()
        out.write("x\ny")
        out.write("z")
        assert out.render() == "x\nyz"

    def test_blank_lines_kept(self):
        """Consecutive endl produce empty lines."""
        out = OutputBuffer()
        out.end_line()
        out.write("a")
        out.end_line()
        assert out.render() == "\na"
