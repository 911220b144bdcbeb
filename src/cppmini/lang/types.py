"""
cppmini Type Descriptors
========================

This module defines TypeSpec, the parsed form of a declared type.

A type is written as:

    [const|static]* base [<arg, ...>] [*|&]*

where ``base`` is a primitive keyword (int, float, double, char, bool,
void, string, auto), a container keyword (vector, map, pair), a
``std::``-qualified name, or a template parameter name. Generic
arguments nest to any depth:

    map<string, vector<int>>
    const std::vector<pair<int, char>>&

TypeSpec is structural only; containers are never instantiated
generically. The interpreter uses the element types to pick default
values and to coerce scalars on assignment.
"""

from dataclasses import dataclass
from typing import Optional


CONTAINER_TYPES = frozenset({"vector", "map", "pair"})


@dataclass(frozen=True)
class TypeSpec:
    """
    A declared type.

    Attributes:
        name: Base name as written, e.g. "int", "vector", "std::string"
        modifiers: Leading modifiers in source order ("const", "static")
        args: Generic arguments for vector/map/pair
        pointer_depth: Number of trailing '*'
        is_reference: True if a trailing '&' was given
    """
    name: str
    modifiers: tuple[str, ...] = ()
    args: tuple["TypeSpec", ...] = ()
    pointer_depth: int = 0
    is_reference: bool = False

    @property
    def base(self) -> str:
        """Base name with any ``std::`` qualifier removed."""
        if self.name.startswith("std::"):
            return self.name[len("std::"):]
        return self.name

    @property
    def is_const(self) -> bool:
        return "const" in self.modifiers

    @property
    def is_pointer(self) -> bool:
        return self.pointer_depth > 0

    def is_container(self) -> bool:
        """Return True for vector, map and pair types (not pointers to them)."""
        return self.base in CONTAINER_TYPES and not self.is_pointer

    def element_type(self, index: int = 0) -> Optional["TypeSpec"]:
        """Return the generic argument at ``index``, or None if absent."""
        if index < len(self.args):
            return self.args[index]
        return None

    def __str__(self) -> str:
        parts = list(self.modifiers)
        text = self.name
        if self.args:
            inner = ", ".join(str(arg) for arg in self.args)
            text += f"<{inner}>"
        parts.append(text)
        result = " ".join(parts)
        result += "*" * self.pointer_depth
        if self.is_reference:
            result += "&"
        return result


def make_type(name: str, *args: TypeSpec) -> TypeSpec:
    """Build a plain TypeSpec, e.g. ``make_type("vector", make_type("int"))``."""
    return TypeSpec(name=name, args=tuple(args))
