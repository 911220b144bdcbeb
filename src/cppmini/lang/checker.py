"""
cppmini Literal Checker
=======================

Best-effort static check of declaration initializers against the declared
primitive type. This is not type inference: an initializer is only judged
when it folds to a constant using literals, unary and binary ``+ - * /``
and parentheses. Anything else is skipped without error. An initializer
nested too deeply to fold is treated as not foldable.

Rules
-----
| Declared          | Folded int | Folded float | Folded string | Not foldable |
|-------------------|------------|--------------|---------------|--------------|
| int               | ok         | error        | error         | ok           |
| float / double    | ok         | ok           | error         | ok           |
| string            | error      | error        | ok            | error        |
| anything else     | ok         | ok           | ok            | ok           |

A string is "folded" only when the initializer is a bare string literal.
Pointer, reference, array and container declarations are never checked.
"""

import logging
from typing import Optional, Union

from cppmini.lang.ast import (
    ASTNode,
    ASTVisitor,
    Binary,
    BinaryOperator,
    Expression,
    Literal,
    LiteralKind,
    Unary,
    UnaryOperator,
    VariableDeclaration,
)
from cppmini.lang.errors import CppTypeError


logger = logging.getLogger(__name__)


FoldedValue = tuple[str, Union[int, float, str]]

_FOLDABLE_OPERATORS = {
    BinaryOperator.ADD,
    BinaryOperator.SUBTRACT,
    BinaryOperator.MULTIPLY,
    BinaryOperator.DIVIDE,
}


def fold_literal(expr: Expression) -> Optional[FoldedValue]:
    """
    Fold an initializer into ``(kind, value)``.

    Returns:
        ("int" | "float" | "string", value), or None if the expression
        uses anything beyond literals and + - * /
    """
    if isinstance(expr, Literal):
        if expr.kind in (LiteralKind.INT, LiteralKind.FLOAT, LiteralKind.STRING):
            return expr.kind.value, expr.value
        return None

    if isinstance(expr, Unary) and expr.operator in (UnaryOperator.NEGATE,
                                                      UnaryOperator.POSITIVE):
        operand = fold_literal(expr.operand)
        if operand is None or operand[0] == "string":
            return None
        kind, value = operand
        return kind, -value if expr.operator == UnaryOperator.NEGATE else value

    if isinstance(expr, Binary) and expr.operator in _FOLDABLE_OPERATORS:
        left = fold_literal(expr.left)
        right = fold_literal(expr.right)
        if left is None or right is None or "string" in (left[0], right[0]):
            return None
        kind = "int" if left[0] == right[0] == "int" else "float"
        a, b = left[1], right[1]
        if expr.operator == BinaryOperator.ADD:
            return kind, a + b
        if expr.operator == BinaryOperator.SUBTRACT:
            return kind, a - b
        if expr.operator == BinaryOperator.MULTIPLY:
            return kind, a * b
        if b == 0:
            return None
        if kind == "int":
            quotient = abs(a) // abs(b)
            return kind, quotient if (a < 0) == (b < 0) else -quotient
        return kind, a / b

    return None


def check_declaration(declaration: VariableDeclaration) -> None:
    """
    Check one declaration's initializer.

    Raises:
        CppTypeError: If the initializer is incompatible with the type
    """
    if declaration.initializer is None:
        return
    var_type = declaration.var_type
    if (var_type.is_pointer or var_type.is_reference or declaration.is_array
            or var_type.is_container()):
        return

    declared = var_type.base
    try:
        folded = fold_literal(declaration.initializer)
    except RecursionError:
        folded = None

    if folded is None:
        if declared == "string":
            raise CppTypeError(declared, None, declaration.name, declaration.location)
        return

    kind = folded[0]
    if declared == "int" and kind != "int":
        raise CppTypeError(declared, kind, declaration.name, declaration.location)
    if declared in ("float", "double") and kind == "string":
        raise CppTypeError(declared, kind, declaration.name, declaration.location)
    if declared == "string" and kind != "string":
        raise CppTypeError(declared, kind, declaration.name, declaration.location)


class LiteralChecker(ASTVisitor):
    """
    Runs check_declaration over every variable declaration in a tree.

    Usage:
        LiteralChecker().check(program)
    """

    def __init__(self):
        self.checked = 0

    def check(self, node: ASTNode) -> None:
        """
        Check all declarations under ``node``.

        Raises:
            CppTypeError: On the first incompatible initializer
        """
        self.checked = 0
        try:
            self.visit(node)
        except RecursionError:
            logger.debug("Literal check stopped early: nesting too deep")
            return
        logger.debug("Checked %d declaration initializers", self.checked)

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        if node.initializer is not None:
            self.checked += 1
        check_declaration(node)
