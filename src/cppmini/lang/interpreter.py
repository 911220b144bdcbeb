"""
cppmini Execution Backend
=========================

This module runs a parsed Program by walking its AST directly. There is
no code generation and nothing is ever evaluated as host-language text.

Execution Model
---------------
1. **Link**: ``link()`` scans the top level once. Function definitions and
   prototypes go into a function table (overloads are told apart by
   arity), ``#include`` headers are resolved through the runtime's
   HEADER_REGISTRY into the table of visible library functions, and every
   other top-level node is kept, in order, as global initialization.

2. **Run**: the global initialization runs in the global frame. If a
   ``main`` was defined it is then called once; otherwise the global
   initialization itself is the program (a synthesized ``main``).

Scoping
-------
Environments are chained frames. Blocks and ``for`` statements push a
frame and pop it on exit, a name resolves to its nearest enclosing
binding, and a function call starts a frame whose parent is the global
frame.

Budgets
-------
Every executed statement and loop iteration costs one step, and filling
a container element by element (arrays, ``new T[n]``, ``resize`` and
``assign``) costs one step per element. Exceeding
``max_steps`` or nesting calls deeper than ``max_call_depth`` raises
ExecutionBudgetError, so ``while (true) {}`` ends with a runtime error
instead of hanging the caller.

Failure Semantics
-----------------
Faults surface as CppRuntimeError subclasses carrying the location of the
innermost statement that was running. ``Interpreter.run`` converts any
stray Python arithmetic, lookup or type fault into CppRuntimeError, so
nothing else escapes to the caller.
"""

import logging
import math
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Union

from cppmini.lang.ast import (
    ASTNode,
    ASTVisitor,
    Assignment,
    Binary,
    BinaryOperator,
    Block,
    Break,
    Call,
    Continue,
    DeclarationList,
    DoWhile,
    Endl,
    Expression,
    ExpressionStatement,
    For,
    FunctionDecl,
    FunctionDef,
    Identifier,
    If,
    Include,
    Index,
    InitList,
    Input,
    Literal,
    LiteralKind,
    Member,
    New,
    Postfix,
    PostfixOperator,
    Print,
    Program,
    Return,
    Statement,
    Unary,
    UnaryOperator,
    UsingDirective,
    VariableDeclaration,
    While,
)
from cppmini.lang.errors import (
    CppRuntimeError,
    ExecutionBudgetError,
    OutOfRangeError,
    UnboundNameError,
    ZeroDivisionFault,
)
from cppmini.lang.runtime import (
    Char,
    InputCursor,
    Iterator,
    Map,
    MapEntry,
    OutputBuffer,
    Pair,
    STRING_METHODS,
    Vector,
    as_number,
    call_string_method,
    coerce,
    default_value,
    format_value,
    parse_input,
    resolve_headers,
    truthy,
    type_name,
)
from cppmini.lang.types import TypeSpec


logger = logging.getLogger(__name__)


DEFAULT_MAX_STEPS = 1_000_000
DEFAULT_MAX_CALL_DEPTH = 200

# Python frames an interpreted call may use; sizes the recursion limit
_FRAMES_PER_CALL = 40


# =============================================================================
# Control Flow Signals
# =============================================================================

class _Signal(Exception):
    pass


class _Return(_Signal):
    def __init__(self, value: Any):
        super().__init__()
        self.value = value


class _Break(_Signal):
    pass


class _Continue(_Signal):
    pass


# =============================================================================
# Bindings and References
# =============================================================================

class Cell:
    """Storage for one variable."""

    __slots__ = ("value", "var_type")

    def __init__(self, value: Any, var_type: Optional[TypeSpec] = None):
        self.value = value
        self.var_type = var_type


class Environment:
    """One lexical frame, chained to its enclosing frame."""

    def __init__(self, parent: Optional["Environment"] = None):
        self.parent = parent
        self.cells: dict[str, Any] = {}

    def declare(self, name: str, cell: Any) -> None:
        self.cells[name] = cell

    def lookup(self, name: str) -> Optional[Any]:
        """Return the nearest binding of ``name``, or None."""
        frame = self
        while frame is not None:
            cell = frame.cells.get(name)
            if cell is not None:
                return cell
            frame = frame.parent
        return None


class Reference:
    """An assignable location."""

    var_type: Optional[TypeSpec] = None

    def get(self) -> Any:
        raise NotImplementedError

    def set(self, value: Any) -> None:
        raise NotImplementedError


class CellReference(Reference):
    def __init__(self, cell: Any):
        self.cell = cell
        self.var_type = cell.var_type

    def get(self) -> Any:
        return self.cell.value

    def set(self, value: Any) -> None:
        self.cell.value = value


class VectorSlotReference(Reference):
    def __init__(self, vector: Vector, index: Any):
        self.vector = vector
        self.index = index
        self.var_type = vector.element_type

    def get(self) -> Any:
        return self.vector.get(self.index)

    def set(self, value: Any) -> None:
        self.vector.set(self.index, value)


class MapSlotReference(Reference):
    def __init__(self, owner: Map, key: Any):
        self.map = owner
        self.key = key
        self.var_type = owner.value_type

    def get(self) -> Any:
        return self.map.get(self.key)

    def set(self, value: Any) -> None:
        self.map.set(self.key, value)


class FieldReference(Reference):
    """``p.first`` / ``it->second`` on a Pair or MapEntry."""

    def __init__(self, owner: Union[Pair, MapEntry], name: str):
        self.owner = owner
        self.name = name
        self.var_type = owner.field_type(name)

    def get(self) -> Any:
        return getattr(self.owner, self.name)

    def set(self, value: Any) -> None:
        if isinstance(self.owner, MapEntry) and self.name == "first":
            raise CppRuntimeError("cannot assign to the key of a map element")
        setattr(self.owner, self.name, value)


class StringSlotReference(Reference):
    """``s[i]`` on a string variable; writes rebuild the string."""

    def __init__(self, target: Reference, index: int):
        self.target = target
        self.index = index
        self.var_type = TypeSpec("char")

    def _checked_index(self, text: str) -> int:
        if not 0 <= self.index < len(text):
            raise OutOfRangeError(
                f"string[]: index {self.index} out of range for string of size {len(text)}"
            )
        return self.index

    def get(self) -> Any:
        text = self.target.get()
        return Char(text[self._checked_index(text)])

    def set(self, value: Any) -> None:
        text = self.target.get()
        index = self._checked_index(text)
        self.target.set(text[:index] + value + text[index + 1:])


class ReferenceCell:
    """A variable bound by reference to a non-variable location (``int& r = v[0];``)."""

    def __init__(self, reference: Reference):
        self._reference = reference
        self.var_type = reference.var_type

    @property
    def value(self) -> Any:
        return self._reference.get()

    @value.setter
    def value(self, value: Any) -> None:
        self._reference.set(value)


# =============================================================================
# Link Step
# =============================================================================

FunctionNode = Union[FunctionDef, FunctionDecl]


@dataclass
class LinkedProgram:
    """
    A Program prepared for execution.

    Attributes:
        functions: Function name to its overloads (definitions win over
                   prototypes with the same arity)
        library: Library functions visible through the included headers
        headers: Included header names in source order
        init: Top-level nodes other than functions, in source order
        main: The user-defined ``main``, or None when it is synthesized
    """
    functions: dict[str, list[FunctionNode]] = field(default_factory=dict)
    library: dict[str, Callable[..., Any]] = field(default_factory=dict)
    headers: list[str] = field(default_factory=list)
    init: list[Statement] = field(default_factory=list)
    main: Optional[FunctionDef] = None


def link(program: Program) -> LinkedProgram:
    """Register functions and resolve headers for ``program``."""
    linked = LinkedProgram()

    for node in program.body:
        if isinstance(node, Include):
            linked.headers.append(node.header)
        elif isinstance(node, (FunctionDef, FunctionDecl)):
            overloads = linked.functions.setdefault(node.name, [])
            same_arity = [i for i, other in enumerate(overloads)
                          if len(other.params) == len(node.params)]
            if not same_arity:
                overloads.append(node)
            elif isinstance(node, FunctionDef):
                overloads[same_arity[0]] = node
        else:
            linked.init.append(node)

    for overload in linked.functions.get("main", []):
        if isinstance(overload, FunctionDef):
            linked.main = overload
            break

    linked.library = resolve_headers(linked.headers)
    logger.debug(
        "Linked %d functions, headers %s, main %s",
        len(linked.functions), linked.headers,
        "defined" if linked.main else "synthesized",
    )
    return linked


# =============================================================================
# Operators
# =============================================================================

_COMPARISONS = {
    BinaryOperator.EQUAL: lambda a, b: a == b,
    BinaryOperator.NOT_EQUAL: lambda a, b: a != b,
    BinaryOperator.LESS: lambda a, b: a < b,
    BinaryOperator.GREATER: lambda a, b: a > b,
    BinaryOperator.LESS_EQ: lambda a, b: a <= b,
    BinaryOperator.GREATER_EQ: lambda a, b: a >= b,
}

_INTEGER_ONLY = {
    BinaryOperator.MODULO,
    BinaryOperator.BITWISE_AND,
    BinaryOperator.BITWISE_OR,
    BinaryOperator.BITWISE_XOR,
    BinaryOperator.LEFT_SHIFT,
    BinaryOperator.RIGHT_SHIFT,
}


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and not isinstance(value, Char)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (bool, int, float, Char))


def _invalid_operands(op: BinaryOperator, a: Any, b: Any) -> CppRuntimeError:
    return CppRuntimeError(
        f"invalid operands to binary {op.value}: {type_name(a)} and {type_name(b)}"
    )


def compare_values(op: BinaryOperator, a: Any, b: Any) -> bool:
    """Apply a comparison operator with C++ operand rules."""
    if isinstance(a, str) and isinstance(b, str):
        return _COMPARISONS[op](str(a), str(b))
    if _is_scalar(a) and _is_scalar(b):
        return _COMPARISONS[op](as_number(a), as_number(b))
    if isinstance(a, Iterator) and isinstance(b, Iterator):
        a._check(b)
        return _COMPARISONS[op](a.index, b.index)
    if op in (BinaryOperator.EQUAL, BinaryOperator.NOT_EQUAL):
        return _COMPARISONS[op](a, b)
    raise _invalid_operands(op, a, b)


def binary_operation(op: BinaryOperator, a: Any, b: Any) -> Any:
    """
    Apply a non-short-circuit binary operator.

    Integer division truncates toward zero, ``%`` takes the sign of the
    dividend, and integer division or modulo by zero is a runtime error.
    Floating division by zero gives an infinity or NaN.
    """
    if op in _COMPARISONS:
        return compare_values(op, a, b)

    if op == BinaryOperator.ADD and (_is_text(a) or _is_text(b)):
        if isinstance(a, str) and isinstance(b, str):
            return str(a) + str(b)
        raise _invalid_operands(op, a, b)

    if isinstance(a, Iterator) and op in (BinaryOperator.ADD, BinaryOperator.SUBTRACT):
        if isinstance(b, Iterator):
            return a - b
        return a + as_number(b) if op == BinaryOperator.ADD else a - as_number(b)

    if not (_is_scalar(a) and _is_scalar(b)):
        raise _invalid_operands(op, a, b)
    x = as_number(a)
    y = as_number(b)

    if op in _INTEGER_ONLY:
        if isinstance(x, float) or isinstance(y, float):
            raise _invalid_operands(op, a, b)
        if op == BinaryOperator.MODULO:
            if y == 0:
                raise ZeroDivisionFault()
            remainder = abs(x) % abs(y)
            return remainder if x >= 0 else -remainder
        if op == BinaryOperator.BITWISE_AND:
            return x & y
        if op == BinaryOperator.BITWISE_OR:
            return x | y
        if op == BinaryOperator.BITWISE_XOR:
            return x ^ y
        if y < 0:
            raise CppRuntimeError(f"negative shift count {y}")
        return x << y if op == BinaryOperator.LEFT_SHIFT else x >> y

    if op == BinaryOperator.ADD:
        return x + y
    if op == BinaryOperator.SUBTRACT:
        return x - y
    if op == BinaryOperator.MULTIPLY:
        return x * y
    if op == BinaryOperator.DIVIDE:
        if isinstance(x, int) and isinstance(y, int):
            if y == 0:
                raise ZeroDivisionFault()
            quotient = abs(x) // abs(y)
            return quotient if (x < 0) == (y < 0) else -quotient
        if y == 0:
            if x == 0 or math.isnan(x):
                return math.nan
            return math.copysign(math.inf, x) * math.copysign(1.0, y)
        return x / y

    raise _invalid_operands(op, a, b)


# =============================================================================
# Interpreter
# =============================================================================

class Interpreter(ASTVisitor):
    """
    Tree-walking interpreter for one run of a Program.

    Statement visitors execute for effect; expression visitors return the
    expression's value. A fresh Interpreter is used for every run.

    Usage:
        interpreter = Interpreter(program, ["21"])
        output = interpreter.run()

    Attributes:
        linked: The linked program
        output: Output buffer of the run
        steps: Steps executed so far
    """

    def __init__(
        self,
        program: Program,
        input_tokens: Iterable[str] = (),
        max_steps: int = DEFAULT_MAX_STEPS,
        max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
        source_lines: Optional[list[str]] = None,
    ):
        self.program = program
        self.linked = link(program)
        self.input = InputCursor(input_tokens)
        self.output = OutputBuffer()
        self.max_steps = max_steps
        self.max_call_depth = max_call_depth
        self.source_lines = source_lines or []

        self.globals = Environment()
        self.env = self.globals
        self.steps = 0
        self.depth = 0

    def run(self) -> str:
        """
        Execute the program.

        Returns:
            The rendered output text (or the no-output sentinel)

        Raises:
            CppRuntimeError: On any fault during execution
        """
        previous_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(previous_limit,
                                  self.max_call_depth * _FRAMES_PER_CALL + 1000))
        try:
            self._run_program()
        except (_Break, _Continue):
            raise CppRuntimeError("break or continue outside of a loop") from None
        except RecursionError:
            raise ExecutionBudgetError("expression or call nesting too deep") from None
        except (ArithmeticError, LookupError, TypeError, ValueError) as exc:
            raise CppRuntimeError(str(exc)) from exc
        finally:
            sys.setrecursionlimit(previous_limit)
            logger.debug("Executed %d steps", self.steps)

        return self.output.render()

    def _run_program(self) -> None:
        try:
            self._execute_all(self.linked.init)
        except _Return:
            if self.linked.main is not None:
                raise CppRuntimeError("return statement outside of a function") from None
            # A top-level return ends the synthesized main
            return
        if self.linked.main is not None:
            self._invoke(self.linked.main, Environment(self.globals))

    # =========================================================================
    # Statement Execution
    # =========================================================================

    def _tick(self) -> None:
        self._charge(1)

    def _charge(self, count: int) -> None:
        """Consume ``count`` steps; element-wise allocation costs one per element."""
        if count <= 0:
            return
        self.steps += count
        if self.steps > self.max_steps:
            raise ExecutionBudgetError(
                f"execution exceeded the budget of {self.max_steps} steps"
            )

    def _execute(self, statement: Statement) -> None:
        self._tick()
        try:
            self.visit(statement)
        except CppRuntimeError as error:
            line = statement.location.line
            source_line = self.source_lines[line - 1] if 0 < line <= len(self.source_lines) else None
            error.attach_location(statement.location, source_line)
            raise

    def _execute_all(self, statements: Iterable[Statement]) -> None:
        for statement in statements:
            self._execute(statement)

    def _execute_scoped(self, statement: Statement) -> None:
        """Execute ``statement`` in a new child frame."""
        saved = self.env
        self.env = Environment(saved)
        try:
            self._execute(statement)
        finally:
            self.env = saved

    def generic_visit(self, node: ASTNode) -> Any:
        raise CppRuntimeError(f"cannot execute {node.__class__.__name__}")

    def visit_Include(self, node: Include) -> None:
        pass

    def visit_UsingDirective(self, node: UsingDirective) -> None:
        pass

    def visit_FunctionDecl(self, node: FunctionDecl) -> None:
        pass

    def visit_FunctionDef(self, node: FunctionDef) -> None:
        raise CppRuntimeError(
            f"function '{node.name}' must be defined at the top level"
        )

    def visit_VariableDeclaration(self, node: VariableDeclaration) -> None:
        var_type = node.var_type

        if node.is_array:
            cell = Cell(self._build_array(node), TypeSpec("vector", args=(var_type,)))
        elif var_type.is_reference and node.initializer is not None:
            cell = self._bind_reference(node.initializer, var_type)
        elif node.initializer is not None:
            cell = Cell(coerce(self.visit(node.initializer), var_type), var_type)
        else:
            cell = Cell(default_value(var_type), var_type)

        self.env.declare(node.name, cell)

    def _build_array(self, node: VariableDeclaration) -> Vector:
        elements: Any = []
        if node.initializer is not None:
            elements = self.visit(node.initializer)
            if isinstance(elements, str):
                elements = [Char(c) for c in elements] + [Char("\0")]
            if not isinstance(elements, list):
                raise CppRuntimeError(f"array '{node.name}' needs a brace initializer")

        if node.array_size is not None:
            size = int(as_number(self.visit(node.array_size)))
        else:
            size = len(elements)
        if size < 0:
            raise CppRuntimeError(f"array '{node.name}' has negative size {size}")
        if len(elements) > size:
            raise CppRuntimeError(f"too many initializers for array '{node.name}'")
        self._charge(size)

        items = [coerce(element, node.var_type) for element in elements]
        items.extend(default_value(node.var_type) for _ in range(size - len(items)))
        return Vector(node.var_type, items)

    def visit_DeclarationList(self, node: DeclarationList) -> None:
        for declaration in node.declarations:
            self.visit(declaration)

    def visit_Block(self, node: Block) -> None:
        saved = self.env
        self.env = Environment(saved)
        try:
            self._execute_all(node.statements)
        finally:
            self.env = saved

    def visit_If(self, node: If) -> None:
        if truthy(self.visit(node.condition)):
            self._execute_scoped(node.then_branch)
        elif node.else_branch is not None:
            self._execute_scoped(node.else_branch)

    def visit_While(self, node: While) -> None:
        while truthy(self.visit(node.condition)):
            self._tick()
            try:
                self._execute_scoped(node.body)
            except _Break:
                break
            except _Continue:
                continue

    def visit_DoWhile(self, node: DoWhile) -> None:
        while True:
            self._tick()
            try:
                self._execute_scoped(node.body)
            except _Break:
                break
            except _Continue:
                pass
            if not truthy(self.visit(node.condition)):
                break

    def visit_For(self, node: For) -> None:
        saved = self.env
        self.env = Environment(saved)
        try:
            if node.init is not None:
                self._execute(node.init)
            while node.condition is None or truthy(self.visit(node.condition)):
                self._tick()
                try:
                    self._execute_scoped(node.body)
                except _Break:
                    break
                except _Continue:
                    pass
                if node.update is not None:
                    self.visit(node.update)
        finally:
            self.env = saved

    def visit_Return(self, node: Return) -> None:
        value = self.visit(node.value) if node.value is not None else None
        raise _Return(value)

    def visit_Break(self, node: Break) -> None:
        raise _Break()

    def visit_Continue(self, node: Continue) -> None:
        raise _Continue()

    def visit_Input(self, node: Input) -> None:
        for target in node.targets:
            reference = self._reference(target)
            token = self.input.pull()
            self._assign(reference, parse_input(token, reference.var_type))

    def visit_Print(self, node: Print) -> None:
        for part in node.parts:
            if isinstance(part, Endl):
                self.output.end_line()
            else:
                self.output.write(format_value(self.visit(part)))

    def visit_ExpressionStatement(self, node: ExpressionStatement) -> None:
        self.visit(node.expression)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_Literal(self, node: Literal) -> Any:
        if node.kind == LiteralKind.CHAR:
            return Char(node.value)
        return node.value

    def visit_Identifier(self, node: Identifier) -> Any:
        cell = self.env.lookup(node.name)
        if cell is None:
            raise UnboundNameError(node.name)
        return cell.value

    def visit_Endl(self, node: Endl) -> str:
        return "\n"

    def visit_InitList(self, node: InitList) -> list:
        return [self.visit(element) for element in node.elements]

    def visit_New(self, node: New) -> Any:
        if node.array_size is None:
            return default_value(node.type_spec)
        size = int(as_number(self.visit(node.array_size)))
        if size < 0:
            raise CppRuntimeError(f"new[] with negative size {size}")
        self._charge(size)
        return Vector(node.type_spec, (default_value(node.type_spec) for _ in range(size)))

    def visit_Unary(self, node: Unary) -> Any:
        op = node.operator
        if op in (UnaryOperator.PRE_INCREMENT, UnaryOperator.PRE_DECREMENT):
            reference = self._reference(node.operand)
            delta = 1 if op == UnaryOperator.PRE_INCREMENT else -1
            self._assign(reference, binary_operation(BinaryOperator.ADD, reference.get(), delta))
            return reference.get()

        value = self.visit(node.operand)
        if op == UnaryOperator.LOGICAL_NOT:
            return not truthy(value)
        number = as_number(value)
        if op == UnaryOperator.NEGATE:
            return -number
        if op == UnaryOperator.POSITIVE:
            return number
        if isinstance(number, float):
            raise CppRuntimeError("invalid operand to unary ~: double")
        return ~number

    def visit_Postfix(self, node: Postfix) -> Any:
        reference = self._reference(node.operand)
        old = reference.get()
        delta = 1 if node.operator == PostfixOperator.INCREMENT else -1
        self._assign(reference, binary_operation(BinaryOperator.ADD, old, delta))
        return old

    def visit_Binary(self, node: Binary) -> Any:
        if node.operator == BinaryOperator.LOGICAL_AND:
            return truthy(self.visit(node.left)) and truthy(self.visit(node.right))
        if node.operator == BinaryOperator.LOGICAL_OR:
            return truthy(self.visit(node.left)) or truthy(self.visit(node.right))
        left = self.visit(node.left)
        right = self.visit(node.right)
        return binary_operation(node.operator, left, right)

    def visit_Assignment(self, node: Assignment) -> Any:
        reference = self._reference(node.target)
        value = self.visit(node.value)
        arithmetic = node.operator.binary
        if arithmetic is not None:
            value = binary_operation(arithmetic, reference.get(), value)
        self._assign(reference, value)
        return reference.get()

    def visit_Index(self, node: Index) -> Any:
        container = self.visit(node.object)
        index = self.visit(node.index)
        if isinstance(container, Vector):
            return container.get(index)
        if isinstance(container, Map):
            return container.get(index)
        if isinstance(container, str):
            position = int(as_number(index))
            if not 0 <= position < len(container):
                raise OutOfRangeError(
                    f"string[]: index {position} out of range for string of size {len(container)}"
                )
            return Char(container[position])
        raise CppRuntimeError(f"cannot index a value of type {type_name(container)}")

    def visit_Member(self, node: Member) -> Any:
        if node.operator == "::":
            raise CppRuntimeError(f"cannot use '{self._qualified_name(node)}' as a value")
        owner = self.visit(node.object)
        if isinstance(owner, (Pair, MapEntry)) and node.field in Pair.FIELDS:
            return getattr(owner, node.field)
        if isinstance(owner, (Vector, Map, str)):
            raise CppRuntimeError(f"member function '{node.field}' must be called")
        raise CppRuntimeError(f"{type_name(owner)} has no member named '{node.field}'")

    def visit_Call(self, node: Call) -> Any:
        callee = node.callee
        if isinstance(callee, Identifier):
            return self._call_named(callee.name, node.args)
        if isinstance(callee, Member) and callee.operator == "::":
            if not (isinstance(callee.object, Identifier) and callee.object.name == "std"):
                raise UnboundNameError(self._qualified_name(callee))
            return self._call_library(callee.field, node.args)
        if isinstance(callee, Member):
            return self._call_method(callee, node.args)
        raise CppRuntimeError("expression is not callable")

    @staticmethod
    def _qualified_name(node: Member) -> str:
        if isinstance(node.object, Identifier):
            return f"{node.object.name}::{node.field}"
        return node.field

    # =========================================================================
    # Calls
    # =========================================================================

    def _call_named(self, name: str, arg_exprs: list[Expression]) -> Any:
        if name in self.linked.functions:
            return self._call_user(name, arg_exprs)
        return self._call_library(name, arg_exprs)

    def _call_library(self, name: str, arg_exprs: list[Expression]) -> Any:
        function = self.linked.library.get(name)
        if function is None:
            raise UnboundNameError(name)
        args = [self.visit(arg) for arg in arg_exprs]
        try:
            return function(*args)
        except TypeError as exc:
            raise CppRuntimeError(f"invalid arguments in call to '{name}'") from exc

    def _call_user(self, name: str, arg_exprs: list[Expression]) -> Any:
        overloads = [f for f in self.linked.functions[name]
                     if len(f.params) == len(arg_exprs)]
        if not overloads:
            raise CppRuntimeError(
                f"no matching function for call to '{name}' with {len(arg_exprs)} arguments"
            )
        function = overloads[0]
        if isinstance(function, FunctionDecl):
            raise CppRuntimeError(f"{name} not implemented")

        # Arguments are evaluated in the caller's frame
        frame = Environment(self.globals)
        for param, arg in zip(function.params, arg_exprs):
            if param.param_type.is_reference:
                cell = self._bind_reference(arg, param.param_type)
            else:
                cell = Cell(coerce(self.visit(arg), param.param_type), param.param_type)
            if param.name:
                frame.declare(param.name, cell)

        return self._invoke(function, frame)

    def _invoke(self, function: FunctionDef, frame: Environment) -> Any:
        if self.depth >= self.max_call_depth:
            raise ExecutionBudgetError(
                f"call depth exceeded the budget of {self.max_call_depth} nested calls"
            )
        self.depth += 1
        saved = self.env
        self.env = frame
        try:
            self._execute_all(function.body.statements)
            value = None
        except _Return as signal:
            value = signal.value
        except (_Break, _Continue):
            raise CppRuntimeError("break or continue outside of a loop") from None
        finally:
            self.env = saved
            self.depth -= 1

        return_type = function.return_type
        if return_type.base == "void":
            return None
        if value is None:
            return default_value(return_type)
        return coerce(value, return_type)

    def _call_method(self, member: Member, arg_exprs: list[Expression]) -> Any:
        owner = self.visit(member.object)
        args = [self.visit(arg) for arg in arg_exprs]
        name = member.field

        if isinstance(owner, Vector) and name in ("resize", "assign") and args:
            kept = owner.size() if name == "resize" else 0
            self._charge(int(as_number(args[0])) - kept)

        if isinstance(owner, Vector) and name in Vector.METHODS or \
                isinstance(owner, Map) and name in Map.METHODS:
            try:
                return getattr(owner, name)(*args)
            except TypeError as exc:
                raise CppRuntimeError(
                    f"invalid arguments in call to {type_name(owner)}::{name}"
                ) from exc

        if isinstance(owner, str) and not isinstance(owner, Char):
            if name in ("push_back", "append", "pop_back", "clear"):
                self._mutate_string(self._reference(member.object), name, args)
                return None
            if name in STRING_METHODS:
                return call_string_method(owner, name, args)

        raise CppRuntimeError(f"{type_name(owner)} has no member function '{name}'")

    @staticmethod
    def _mutate_string(reference: Reference, name: str, args: list[Any]) -> None:
        text = reference.get()
        if name == "clear":
            reference.set("")
        elif name == "pop_back":
            if not text:
                raise OutOfRangeError("string::pop_back: string is empty")
            reference.set(text[:-1])
        else:
            if len(args) != 1 or not isinstance(args[0], str):
                raise CppRuntimeError(f"invalid arguments in call to string::{name}")
            reference.set(text + args[0])

    # =========================================================================
    # References
    # =========================================================================

    def _reference(self, expr: Expression) -> Reference:
        """Resolve an assignable expression to a Reference."""
        if isinstance(expr, Identifier):
            cell = self.env.lookup(expr.name)
            if cell is None:
                raise UnboundNameError(expr.name)
            return CellReference(cell)

        if isinstance(expr, Index):
            container = self.visit(expr.object)
            index = self.visit(expr.index)
            if isinstance(container, Vector):
                return VectorSlotReference(container, index)
            if isinstance(container, Map):
                return MapSlotReference(container, index)
            if isinstance(container, str):
                return StringSlotReference(self._reference(expr.object), int(as_number(index)))
            raise CppRuntimeError(f"cannot index a value of type {type_name(container)}")

        if isinstance(expr, Member) and expr.operator in (".", "->"):
            owner = self.visit(expr.object)
            if isinstance(owner, (Pair, MapEntry)) and expr.field in Pair.FIELDS:
                return FieldReference(owner, expr.field)
            raise CppRuntimeError(f"{type_name(owner)} has no member named '{expr.field}'")

        raise CppRuntimeError("expression is not assignable")

    def _bind_reference(self, expr: Expression, var_type: TypeSpec) -> Any:
        """Cell for a reference binding; const references accept temporaries."""
        if isinstance(expr, (Identifier, Index, Member)):
            reference = self._reference(expr)
            if isinstance(reference, CellReference):
                return reference.cell
            return ReferenceCell(reference)
        if var_type.is_const:
            return Cell(coerce(self.visit(expr), var_type), var_type)
        raise CppRuntimeError("cannot bind a non-const reference to a temporary value")

    @staticmethod
    def _assign(reference: Reference, value: Any) -> None:
        reference.set(coerce(value, reference.var_type))


# =============================================================================
# Convenience Functions
# =============================================================================

def execute(
    program: Program,
    input_tokens: Iterable[str] = (),
    max_steps: int = DEFAULT_MAX_STEPS,
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
) -> str:
    """
    Run a Program against input tokens.

    Returns:
        Output text, or the no-output sentinel

    Raises:
        CppRuntimeError: On any runtime fault
    """
    return Interpreter(program, input_tokens, max_steps, max_call_depth).run()
