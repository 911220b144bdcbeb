"""
cppmini Runtime Support Library
===============================

Interpreter-native stand-ins for the parts of the C++ standard library the
subset uses, plus the input cursor and output buffer of a run.

Contents
--------
- Values: Char (a one-character str marked as ``char``), Vector, Map,
  Pair, MapEntry, Iterator
- Conversions: default_value, coerce, as_number, truthy, format_value,
  parse_input
- Library functions: sort, reverse, max, min, make_pair, to_string, stoi,
  stod, abs, sqrt, pow, floor, ceil
- HEADER_REGISTRY: which library functions each header makes visible.
  The interpreter's link step reads it once per run.
- InputCursor and OutputBuffer

Containers are always available to declarations, with or without their
header; library functions are only visible through an included header.
"""

import logging
import math
from collections import deque
from typing import Any, Callable, Iterable, Optional, Sequence

from cppmini.lang.types import TypeSpec, make_type
from cppmini.lang.errors import (
    CppRuntimeError,
    InputExhaustedError,
    OutOfRangeError,
)


logger = logging.getLogger(__name__)


# Printed when a program runs to completion without writing anything
NO_OUTPUT = "Program executed successfully (no output)"


# =============================================================================
# Values
# =============================================================================

class Char(str):
    """A ``char`` value: a one-character string that does arithmetic as its code."""

    __slots__ = ()

    @property
    def code(self) -> int:
        return ord(self)


class Iterator:
    """
    Position in a Vector, as returned by ``begin()`` and ``end()``.

    Supports ``it + n``, ``it - n``, ``it2 - it1`` and comparisons, which is
    what ``sort(v.begin(), v.end())`` style calls need.
    """

    __slots__ = ("container", "index")

    def __init__(self, container: "Vector", index: int):
        self.container = container
        self.index = index

    def _check(self, other: "Iterator") -> None:
        if not isinstance(other, Iterator) or other.container is not self.container:
            raise CppRuntimeError("iterators refer to different containers")

    def __add__(self, offset: int) -> "Iterator":
        return Iterator(self.container, self.index + int(offset))

    def __sub__(self, other):
        if isinstance(other, Iterator):
            self._check(other)
            return self.index - other.index
        return Iterator(self.container, self.index - int(other))

    def __eq__(self, other) -> bool:
        return (isinstance(other, Iterator) and other.container is self.container
                and other.index == self.index)

    def __lt__(self, other: "Iterator") -> bool:
        self._check(other)
        return self.index < other.index

    def __hash__(self) -> int:
        return hash((id(self.container), self.index))


class Vector:
    """
    ``vector<T>``: a growable sequence with bounds-checked access.

    Attributes:
        element_type: Declared element type (None when unknown)
        items: Backing Python list
    """

    METHODS = frozenset({
        "push_back", "pop_back", "at", "size", "empty", "clear",
        "front", "back", "resize", "assign", "begin", "end",
    })

    def __init__(self, element_type: Optional[TypeSpec] = None,
                 items: Optional[Iterable[Any]] = None):
        self.element_type = element_type
        self.items: list[Any] = list(items) if items is not None else []

    def __repr__(self) -> str:
        return f"Vector({self.items!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Vector) and self.items == other.items

    def __len__(self) -> int:
        return len(self.items)

    def _check_index(self, index: int, operation: str) -> int:
        index = int(as_number(index))
        if not 0 <= index < len(self.items):
            raise OutOfRangeError(
                f"{operation}: index {index} out of range for vector of size {len(self.items)}"
            )
        return index

    def get(self, index: int) -> Any:
        """``v[i]`` read."""
        return self.items[self._check_index(index, "vector[]")]

    def set(self, index: int, value: Any) -> None:
        """``v[i] = value``."""
        self.items[self._check_index(index, "vector[]")] = value

    def push_back(self, value: Any) -> None:
        self.items.append(coerce(value, self.element_type))

    def pop_back(self) -> None:
        if not self.items:
            raise OutOfRangeError("vector::pop_back: vector is empty")
        self.items.pop()

    def at(self, index: int) -> Any:
        return self.items[self._check_index(index, "vector::at")]

    def size(self) -> int:
        return len(self.items)

    def empty(self) -> bool:
        return not self.items

    def clear(self) -> None:
        self.items.clear()

    def front(self) -> Any:
        if not self.items:
            raise OutOfRangeError("vector::front: vector is empty")
        return self.items[0]

    def back(self) -> Any:
        if not self.items:
            raise OutOfRangeError("vector::back: vector is empty")
        return self.items[-1]

    def resize(self, count: int, value: Any = None) -> None:
        count = int(as_number(count))
        if count < 0:
            raise OutOfRangeError(f"vector::resize: negative size {count}")
        fill = default_value(self.element_type) if value is None else value
        del self.items[count:]
        while len(self.items) < count:
            self.items.append(coerce(fill, self.element_type))

    def assign(self, count: int, value: Any) -> None:
        self.items.clear()
        self.resize(count, value)

    def begin(self) -> Iterator:
        return Iterator(self, 0)

    def end(self) -> Iterator:
        return Iterator(self, len(self.items))


class Pair:
    """``pair<A, B>`` with mutable ``first`` and ``second``."""

    FIELDS = frozenset({"first", "second"})

    def __init__(self, first: Any, second: Any,
                 first_type: Optional[TypeSpec] = None,
                 second_type: Optional[TypeSpec] = None):
        self.first = first
        self.second = second
        self.first_type = first_type
        self.second_type = second_type

    def __repr__(self) -> str:
        return f"Pair({self.first!r}, {self.second!r})"

    def __eq__(self, other) -> bool:
        return (isinstance(other, Pair) and self.first == other.first
                and self.second == other.second)

    def field_type(self, name: str) -> Optional[TypeSpec]:
        return self.first_type if name == "first" else self.second_type


class MapEnd:
    """The ``end()`` position of one Map; ``find`` returns it for missing keys."""

    __slots__ = ("map",)

    def __init__(self, owner: "Map"):
        self.map = owner

    def __repr__(self) -> str:
        return "MapEnd()"


class MapEntry:
    """
    A found element of a Map, as returned by ``find``.

    ``first`` is the key; ``second`` reads and writes the live value.
    """

    __slots__ = ("map", "key")

    def __init__(self, owner: "Map", key: Any):
        self.map = owner
        self.key = key

    def __repr__(self) -> str:
        return f"MapEntry({self.key!r})"

    def __eq__(self, other) -> bool:
        return (isinstance(other, MapEntry) and other.map is self.map
                and other.key == self.key)

    def __hash__(self) -> int:
        return hash((id(self.map), self.key))

    @property
    def first(self) -> Any:
        return self.key

    @property
    def second(self) -> Any:
        return self.map.entries[self.key]

    @second.setter
    def second(self, value: Any) -> None:
        self.map.entries[self.key] = value

    def field_type(self, name: str) -> Optional[TypeSpec]:
        return self.map.key_type if name == "first" else self.map.value_type


class Map:
    """
    ``map<K, V>``: an associative container with unique keys.

    Attributes:
        key_type: Declared key type (None when unknown)
        value_type: Declared value type (None when unknown)
        entries: Backing dict
    """

    METHODS = frozenset({"insert", "find", "count", "size", "empty", "end", "erase", "clear"})

    def __init__(self, key_type: Optional[TypeSpec] = None,
                 value_type: Optional[TypeSpec] = None):
        self.key_type = key_type
        self.value_type = value_type
        self.entries: dict[Any, Any] = {}
        self._end = MapEnd(self)

    def __repr__(self) -> str:
        return f"Map({self.entries!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Map) and self.entries == other.entries

    def _key(self, key: Any) -> Any:
        return coerce(key, self.key_type)

    def get(self, key: Any) -> Any:
        """``m[key]`` read; inserts a default value for a missing key."""
        key = self._key(key)
        if key not in self.entries:
            self.entries[key] = default_value(self.value_type)
        return self.entries[key]

    def set(self, key: Any, value: Any) -> None:
        """``m[key] = value``."""
        self.entries[self._key(key)] = value

    def insert(self, entry: Any) -> bool:
        """Insert a pair or ``{key, value}`` list unless the key is already present."""
        if isinstance(entry, list):
            entry = _pair_from(entry, None)
        elif not isinstance(entry, Pair):
            raise CppRuntimeError("map::insert expects a pair")
        key = self._key(entry.first)
        if key in self.entries:
            return False
        self.entries[key] = coerce(entry.second, self.value_type)
        return True

    def find(self, key: Any):
        key = self._key(key)
        if key in self.entries:
            return MapEntry(self, key)
        return self._end

    def count(self, key: Any) -> int:
        return 1 if self._key(key) in self.entries else 0

    def erase(self, key: Any) -> int:
        key = self._key(key)
        if key in self.entries:
            del self.entries[key]
            return 1
        return 0

    def size(self) -> int:
        return len(self.entries)

    def empty(self) -> bool:
        return not self.entries

    def clear(self) -> None:
        self.entries.clear()

    def end(self) -> MapEnd:
        return self._end


# =============================================================================
# Conversions
# =============================================================================

def default_value(var_type: Optional[TypeSpec]) -> Any:
    """Value of a declared-but-uninitialized variable of ``var_type``."""
    if var_type is None:
        return 0
    if var_type.is_pointer:
        return None
    base = var_type.base
    if base == "vector":
        return Vector(var_type.element_type(0))
    if base == "map":
        return Map(var_type.element_type(0), var_type.element_type(1))
    if base == "pair":
        first_type = var_type.element_type(0)
        second_type = var_type.element_type(1)
        return Pair(default_value(first_type), default_value(second_type),
                    first_type, second_type)
    if base == "string":
        return ""
    if base in ("float", "double"):
        return 0.0
    if base == "char":
        return Char("\0")
    if base == "bool":
        return False
    return 0


def copy_value(value: Any) -> Any:
    """Copy containers (recursively); scalars are returned unchanged."""
    if isinstance(value, Vector):
        return Vector(value.element_type, (copy_value(item) for item in value.items))
    if isinstance(value, Map):
        result = Map(value.key_type, value.value_type)
        result.entries = {key: copy_value(item) for key, item in value.entries.items()}
        return result
    if isinstance(value, Pair):
        return Pair(copy_value(value.first), copy_value(value.second),
                    value.first_type, value.second_type)
    return value


def type_name(value: Any) -> str:
    """C++-style name of a runtime value, for error messages."""
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "double"
    if isinstance(value, Char):
        return "char"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Vector):
        return "vector"
    if isinstance(value, Map):
        return "map"
    if isinstance(value, (Pair, MapEntry)):
        return "pair"
    if value is None:
        return "void"
    return "iterator"


def as_number(value: Any):
    """Numeric value of a scalar: bools become 0/1 and chars their code."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Char):
        return value.code
    raise CppRuntimeError(f"expected a number, got {type_name(value)}")


def truthy(value: Any) -> bool:
    """Condition value of a scalar."""
    if value is None:
        return False
    if isinstance(value, (bool, int, float, Char)):
        return as_number(value) != 0
    if isinstance(value, (Iterator, MapEntry, MapEnd, Vector, Map, Pair)):
        return True
    raise CppRuntimeError(f"could not convert {type_name(value)} to bool")


def _pair_from(elements: Sequence[Any], var_type: Optional[TypeSpec]) -> Pair:
    if isinstance(elements, Pair):
        elements = [elements.first, elements.second]
    if len(elements) != 2:
        raise CppRuntimeError("pair initializer needs exactly two values")
    first_type = var_type.element_type(0) if var_type else None
    second_type = var_type.element_type(1) if var_type else None
    return Pair(coerce(elements[0], first_type), coerce(elements[1], second_type),
                first_type, second_type)


def coerce(value: Any, var_type: Optional[TypeSpec]) -> Any:
    """
    Convert ``value`` for storage in a variable of ``var_type``.

    Containers are copied, giving declarations, assignments and by-value
    parameters C++ value semantics. A brace list (Python list) becomes the
    declared container.

    Raises:
        CppRuntimeError: If the value cannot be converted
    """
    if var_type is None or var_type.is_pointer:
        return copy_value(value)

    base = var_type.base

    if isinstance(value, list):
        if base == "vector":
            element_type = var_type.element_type(0)
            return Vector(element_type, (coerce(item, element_type) for item in value))
        if base == "map":
            result = Map(var_type.element_type(0), var_type.element_type(1))
            for item in value:
                entry = _pair_from(item if isinstance(item, (list, Pair)) else [item],
                                   make_type("pair"))
                result.set(entry.first, coerce(entry.second, result.value_type))
            return result
        if base == "pair":
            return _pair_from(value, var_type)
        if len(value) == 1:
            return coerce(value[0], var_type)
        raise CppRuntimeError(f"cannot initialize {var_type} from a brace list")

    if base == "int":
        if isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                raise CppRuntimeError(f"cannot convert {value} to int")
            return int(value)
        if isinstance(value, str) and not isinstance(value, Char):
            raise CppRuntimeError("cannot convert string to int")
        return int(as_number(value))
    if base in ("float", "double"):
        if isinstance(value, str) and not isinstance(value, Char):
            raise CppRuntimeError(f"cannot convert string to {base}")
        return float(as_number(value))
    if base == "char":
        if isinstance(value, Char):
            return value
        if isinstance(value, str):
            if len(value) != 1:
                raise CppRuntimeError("cannot convert string to char")
            return Char(value)
        code = int(as_number(value))
        if not 0 <= code < 0x110000:
            raise CppRuntimeError(f"character code {code} out of range")
        return Char(chr(code))
    if base == "bool":
        return truthy(value)
    if base == "string":
        if not isinstance(value, str):
            raise CppRuntimeError(f"cannot convert {type_name(value)} to string")
        return str(value)
    if base == "vector" and not isinstance(value, Vector):
        raise CppRuntimeError(f"cannot convert {type_name(value)} to vector")
    if base == "map" and not isinstance(value, Map):
        raise CppRuntimeError(f"cannot convert {type_name(value)} to map")
    if base == "pair":
        if isinstance(value, MapEntry):
            return _pair_from([value.first, value.second], var_type)
        if not isinstance(value, Pair):
            raise CppRuntimeError(f"cannot convert {type_name(value)} to pair")
        return _pair_from(value, var_type)
    return copy_value(value)


def format_value(value: Any) -> str:
    """Text written by ``cout << value``."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return format(value, "g")
    if isinstance(value, (int, str)):
        return str(value)
    raise CppRuntimeError(f"cannot print a value of type {type_name(value)}")


def parse_input(token: str, var_type: Optional[TypeSpec]) -> Any:
    """
    Convert one input token for a ``cin >>`` target of ``var_type``.

    Untyped targets get numeric coercion: integer if possible, then
    floating point, else the raw text.
    """
    base = var_type.base if var_type is not None else None
    try:
        if base in ("int", "bool"):
            number = int(token)
            return number != 0 if base == "bool" else number
        if base in ("float", "double"):
            return float(token)
    except ValueError:
        raise CppRuntimeError(f"invalid input {token!r} for {base}") from None
    if base == "char":
        return Char(token[0])
    if base == "string":
        return token
    for convert in (int, float):
        try:
            return convert(token)
        except ValueError:
            continue
    return token


# =============================================================================
# Library Functions
# =============================================================================

def _ordering_key(value: Any):
    if isinstance(value, str) and not isinstance(value, Char):
        return value
    return as_number(value)


def _iterator_range(first: Any, last: Any, name: str) -> tuple[Vector, int, int]:
    if isinstance(first, Vector) and last is None:
        return first, 0, len(first.items)
    if not (isinstance(first, Iterator) and isinstance(last, Iterator)):
        raise CppRuntimeError(f"{name} expects two iterators")
    first._check(last)
    return first.container, first.index, last.index


def lib_sort(first: Any, last: Any = None) -> None:
    """``sort(v.begin(), v.end())``; also accepts a whole vector."""
    container, start, stop = _iterator_range(first, last, "sort")
    container.items[start:stop] = sorted(container.items[start:stop], key=_ordering_key)


def lib_reverse(first: Any, last: Any = None) -> None:
    container, start, stop = _iterator_range(first, last, "reverse")
    container.items[start:stop] = container.items[start:stop][::-1]


def lib_max(a: Any, b: Any) -> Any:
    return b if _ordering_key(a) < _ordering_key(b) else a


def lib_min(a: Any, b: Any) -> Any:
    return b if _ordering_key(b) < _ordering_key(a) else a


def lib_make_pair(first: Any, second: Any) -> Pair:
    return Pair(copy_value(first), copy_value(second))


def lib_to_string(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:f}"
    return str(as_number(value))


def lib_stoi(text: Any) -> int:
    try:
        return int(str(text).strip())
    except ValueError:
        raise CppRuntimeError(f"stoi: invalid argument {text!r}") from None


def lib_stod(text: Any) -> float:
    try:
        return float(str(text).strip())
    except ValueError:
        raise CppRuntimeError(f"stod: invalid argument {text!r}") from None


def lib_abs(value: Any):
    return abs(as_number(value))


def lib_sqrt(value: Any) -> float:
    number = as_number(value)
    return math.sqrt(number) if number >= 0 else math.nan


def lib_pow(base: Any, exponent: Any) -> float:
    try:
        return float(math.pow(as_number(base), as_number(exponent)))
    except (OverflowError, ValueError):
        return math.nan


def lib_floor(value: Any) -> float:
    return float(math.floor(as_number(value)))


def lib_ceil(value: Any) -> float:
    return float(math.ceil(as_number(value)))


LIBRARY_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "sort": lib_sort,
    "reverse": lib_reverse,
    "max": lib_max,
    "min": lib_min,
    "make_pair": lib_make_pair,
    "to_string": lib_to_string,
    "stoi": lib_stoi,
    "stod": lib_stod,
    "abs": lib_abs,
    "sqrt": lib_sqrt,
    "pow": lib_pow,
    "floor": lib_floor,
    "ceil": lib_ceil,
}

# Library functions made visible by each recognized header
HEADER_REGISTRY: dict[str, frozenset[str]] = {
    "iostream": frozenset(),
    "vector": frozenset(),
    "map": frozenset({"make_pair"}),
    "utility": frozenset({"make_pair"}),
    "algorithm": frozenset({"sort", "reverse", "max", "min"}),
    "string": frozenset({"to_string", "stoi", "stod"}),
    "cmath": frozenset({"abs", "sqrt", "pow", "floor", "ceil"}),
    "math.h": frozenset({"abs", "sqrt", "pow", "floor", "ceil"}),
    "cstdlib": frozenset({"abs"}),
    "bits/stdc++.h": frozenset(LIBRARY_FUNCTIONS),
}


def resolve_headers(headers: Iterable[str]) -> dict[str, Callable[..., Any]]:
    """
    Build the library function table for a set of included headers.

    Unrecognized headers contribute nothing.
    """
    visible: dict[str, Callable[..., Any]] = {}
    for header in headers:
        names = HEADER_REGISTRY.get(header)
        if names is None:
            logger.debug("Ignoring unrecognized header <%s>", header)
            continue
        for name in names:
            visible[name] = LIBRARY_FUNCTIONS[name]
    return visible


# =============================================================================
# String Methods
# =============================================================================

STRING_METHODS = frozenset({"length", "size", "empty", "substr", "at", "find"})


def call_string_method(text: str, name: str, args: Sequence[Any]) -> Any:
    """Run a non-mutating ``std::string`` method."""
    if name in ("length", "size"):
        return len(text)
    if name == "empty":
        return not text
    if name == "at":
        index = int(as_number(args[0]))
        if not 0 <= index < len(text):
            raise OutOfRangeError(
                f"string::at: index {index} out of range for string of size {len(text)}"
            )
        return Char(text[index])
    if name == "substr":
        start = int(as_number(args[0])) if args else 0
        if start > len(text):
            raise OutOfRangeError(f"string::substr: position {start} out of range")
        if len(args) > 1:
            return text[start:start + int(as_number(args[1]))]
        return text[start:]
    if name == "find":
        return text.find(str(args[0]))
    raise CppRuntimeError(f"string has no member named '{name}'")


# =============================================================================
# Input and Output
# =============================================================================

class InputCursor:
    """Pull-based reader over the pre-split input tokens of a run."""

    def __init__(self, tokens: Iterable[str]):
        self._tokens = deque(tokens)

    def pull(self) -> str:
        """
        Remove and return the next token.

        Raises:
            InputExhaustedError: If no tokens are left
        """
        if not self._tokens:
            raise InputExhaustedError()
        return self._tokens.popleft()


class OutputBuffer:
    """
    Append-only program output.

    Text accumulates on the current line; ``end_line`` (for ``endl``) or a
    newline inside written text completes it.
    """

    def __init__(self):
        self.lines: list[str] = []
        self._current: list[str] = []

    def write(self, text: str) -> None:
        *complete, rest = text.split("\n")
        for segment in complete:
            self._current.append(segment)
            self.end_line()
        if rest:
            self._current.append(rest)

    def end_line(self) -> None:
        self.lines.append("".join(self._current))
        self._current = []

    def render(self) -> str:
        """
        Return the output text, flushing any unterminated line.

        Returns:
            Lines joined with newlines, or NO_OUTPUT if nothing was written
        """
        lines = list(self.lines)
        if self._current:
            lines.append("".join(self._current))
        if not lines:
            return NO_OUTPUT
        return "\n".join(lines)
