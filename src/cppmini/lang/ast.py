"""
cppmini Abstract Syntax Tree (AST) Definitions
==============================================

This module defines the node types produced by the parser and consumed
by the literal checker and the interpreter.

Node Hierarchy
--------------
ASTNode (base)
├── Program - root node, top-level nodes in source order
├── Declarations
│   ├── Include - #include directive
│   ├── VariableDeclaration - variable declaration
│   ├── DeclarationList - several declarators sharing one type
│   ├── Param - function parameter
│   ├── FunctionDecl - prototype without a body
│   ├── FunctionDef - function definition
│   └── UsingDirective - using namespace NAME;
├── Statements
│   ├── Block - { ... }, opens a new scope
│   ├── If, While, DoWhile, For
│   ├── Return, Break, Continue
│   ├── Input - cin >> a >> b;
│   ├── Print - cout << a << endl;
│   └── ExpressionStatement
└── Expressions
    ├── Literal - int, float, string, char and bool constants
    ├── Identifier - name reference
    ├── Unary - prefix operators
    ├── Postfix - x++ / x--
    ├── Binary - binary operators
    ├── Assignment - = += -= *= /= %=
    ├── Call - callee(args)
    ├── Member - obj.field, ptr->field, ns::name
    ├── Index - obj[index]
    ├── New - new T / new T[n]
    ├── InitList - {a, b, c} initializer
    └── Endl - the endl marker inside a Print

Design Notes
------------
- All nodes are frozen dataclasses; nothing mutates a tree once built
- Each node stores its source location for error reporting
- Operators are Enums whose values are the source symbols
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from cppmini.errors import SourceLocation
from cppmini.lang.types import TypeSpec


# =============================================================================
# AST Node Base Classes
# =============================================================================

@dataclass(frozen=True)
class ASTNode:
    """
    Base class for all AST nodes.

    Attributes:
        location: Source location where this node appears
    """
    location: SourceLocation

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}@{self.location.line}:{self.location.column}"


@dataclass(frozen=True, repr=False)
class Expression(ASTNode):
    """Base class for nodes that evaluate to a value."""
    pass


@dataclass(frozen=True, repr=False)
class Statement(ASTNode):
    """Base class for nodes executed for their effect."""
    pass


@dataclass(frozen=True, repr=False)
class Declaration(Statement):
    """Base class for nodes that introduce names."""
    pass


# =============================================================================
# Program Root Node
# =============================================================================

@dataclass(frozen=True, repr=False)
class Program(ASTNode):
    """
    Root of the AST.

    Attributes:
        body: Top-level nodes (includes, declarations, functions and
              statements) in source order
    """
    body: list[Statement] = field(default_factory=list)


# =============================================================================
# Declaration Nodes
# =============================================================================

@dataclass(frozen=True, repr=False)
class Include(Declaration):
    """
    ``#include`` directive.

    Attributes:
        header: Header name without delimiters, e.g. "vector"
        system: True for <...>, False for "..."
    """
    header: str = ""
    system: bool = True


@dataclass(frozen=True, repr=False)
class UsingDirective(Declaration):
    """``using namespace NAME;`` (accepted, has no effect)."""
    namespace: str = ""


@dataclass(frozen=True, repr=False)
class VariableDeclaration(Declaration):
    """
    Variable declaration.

    Represents declarations like:
        int x;
        double y = 2.5;
        vector<int> v = {1, 2, 3};
        int grid[10];

    Attributes:
        var_type: Declared type
        name: Variable name
        initializer: Optional initializer expression
        array_size: Size expression for C-style arrays (None for a[])
        is_array: True for C-style array declarators
    """
    var_type: TypeSpec = None
    name: str = ""
    initializer: Optional[Expression] = None
    array_size: Optional[Expression] = None
    is_array: bool = False


@dataclass(frozen=True, repr=False)
class DeclarationList(Declaration):
    """
    Several declarators sharing one type, as in ``int a = 1, b, c = 3;``.

    Executes in the enclosing scope, unlike a Block.
    """
    declarations: list[VariableDeclaration] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class Param(Declaration):
    """
    Function parameter.

    Attributes:
        param_type: Declared type (``is_reference`` marks by-reference)
        name: Parameter name
    """
    param_type: TypeSpec = None
    name: str = ""


@dataclass(frozen=True, repr=False)
class FunctionDecl(Declaration):
    """
    Function prototype (declaration without a body).

    Attributes:
        return_type: Declared return type
        name: Function name
        params: Parameter list
        template_params: Names introduced by a ``template <...>`` header
    """
    return_type: TypeSpec = None
    name: str = ""
    params: list[Param] = field(default_factory=list)
    template_params: list[str] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class FunctionDef(Declaration):
    """
    Function definition.

    Attributes:
        return_type: Declared return type
        name: Function name
        params: Parameter list
        body: Function body
        template_params: Names introduced by a ``template <...>`` header
    """
    return_type: TypeSpec = None
    name: str = ""
    params: list[Param] = field(default_factory=list)
    body: "Block" = None
    template_params: list[str] = field(default_factory=list)


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True, repr=False)
class Block(Statement):
    """Compound statement ``{ ... }``."""
    statements: list[Statement] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class If(Statement):
    condition: Expression = None
    then_branch: Statement = None
    else_branch: Optional[Statement] = None


@dataclass(frozen=True, repr=False)
class While(Statement):
    condition: Expression = None
    body: Statement = None


@dataclass(frozen=True, repr=False)
class DoWhile(Statement):
    body: Statement = None
    condition: Expression = None


@dataclass(frozen=True, repr=False)
class For(Statement):
    """
    ``for (init; condition; update) body``.

    Attributes:
        init: A declaration or an expression statement, or None
        condition: Loop condition (None means always true)
        update: Expression evaluated after each iteration
        body: Loop body
    """
    init: Optional[Statement] = None
    condition: Optional[Expression] = None
    update: Optional[Expression] = None
    body: Statement = None


@dataclass(frozen=True, repr=False)
class Return(Statement):
    value: Optional[Expression] = None


@dataclass(frozen=True, repr=False)
class Break(Statement):
    pass


@dataclass(frozen=True, repr=False)
class Continue(Statement):
    pass


@dataclass(frozen=True, repr=False)
class Input(Statement):
    """``cin >> a >> b;``: one input token is read per target."""
    targets: list[Expression] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class Print(Statement):
    """``cout << a << endl;``: parts are expressions or Endl markers."""
    parts: list[Expression] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class ExpressionStatement(Statement):
    expression: Expression = None


# =============================================================================
# Expression Nodes
# =============================================================================

class LiteralKind(Enum):
    """Kinds of literal constants."""
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    CHAR = "char"
    BOOL = "bool"


class UnaryOperator(Enum):
    """Prefix operators."""
    NEGATE = "-"
    POSITIVE = "+"
    LOGICAL_NOT = "!"
    BITWISE_NOT = "~"
    PRE_INCREMENT = "++"
    PRE_DECREMENT = "--"


class PostfixOperator(Enum):
    """Postfix operators."""
    INCREMENT = "++"
    DECREMENT = "--"


class BinaryOperator(Enum):
    """Binary operators, valued by their source symbol."""
    LOGICAL_OR = "||"
    LOGICAL_AND = "&&"
    BITWISE_OR = "|"
    BITWISE_XOR = "^"
    BITWISE_AND = "&"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS = "<"
    GREATER = ">"
    LESS_EQ = "<="
    GREATER_EQ = ">="
    LEFT_SHIFT = "<<"
    RIGHT_SHIFT = ">>"
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    MODULO = "%"


class AssignmentOperator(Enum):
    """Assignment operators."""
    ASSIGN = "="
    ADD_ASSIGN = "+="
    SUB_ASSIGN = "-="
    MUL_ASSIGN = "*="
    DIV_ASSIGN = "/="
    MOD_ASSIGN = "%="

    @property
    def binary(self) -> Optional[BinaryOperator]:
        """The arithmetic operator a compound assignment applies."""
        if self is AssignmentOperator.ASSIGN:
            return None
        return BinaryOperator(self.value[0])


@dataclass(frozen=True, repr=False)
class Literal(Expression):
    """
    Literal constant.

    Attributes:
        kind: Literal kind
        value: Decoded Python value (int, float, str or bool)
        text: Source text of the literal
    """
    kind: LiteralKind = LiteralKind.INT
    value: Union[int, float, str, bool] = 0
    text: str = ""


@dataclass(frozen=True, repr=False)
class Identifier(Expression):
    name: str = ""


@dataclass(frozen=True, repr=False)
class Unary(Expression):
    operator: UnaryOperator = None
    operand: Expression = None


@dataclass(frozen=True, repr=False)
class Postfix(Expression):
    operator: PostfixOperator = None
    operand: Expression = None


@dataclass(frozen=True, repr=False)
class Binary(Expression):
    operator: BinaryOperator = None
    left: Expression = None
    right: Expression = None


@dataclass(frozen=True, repr=False)
class Assignment(Expression):
    """Assignment; right-associative, so ``a = b = 1`` nests to the right."""
    operator: AssignmentOperator = AssignmentOperator.ASSIGN
    target: Expression = None
    value: Expression = None


@dataclass(frozen=True, repr=False)
class Call(Expression):
    callee: Expression = None
    args: list[Expression] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class Member(Expression):
    """
    Member or scope access.

    Attributes:
        object: The accessed expression
        operator: ".", "->" or "::"
        field: Member name
    """
    object: Expression = None
    operator: str = "."
    field: str = ""


@dataclass(frozen=True, repr=False)
class Index(Expression):
    object: Expression = None
    index: Expression = None


@dataclass(frozen=True, repr=False)
class New(Expression):
    """``new T`` or ``new T[size]``."""
    type_spec: TypeSpec = None
    array_size: Optional[Expression] = None


@dataclass(frozen=True, repr=False)
class InitList(Expression):
    """Brace initializer ``{a, b, c}``."""
    elements: list[Expression] = field(default_factory=list)


@dataclass(frozen=True, repr=False)
class Endl(Expression):
    """The ``endl`` / ``std::endl`` line terminator in a Print."""
    pass


# =============================================================================
# AST Visitor Pattern
# =============================================================================

class ASTVisitor:
    """
    Base class for AST visitors.

    Subclasses override ``visit_<ClassName>`` methods for the node types
    they care about; every other node falls through to generic_visit,
    which visits its children.

    Usage:
        class CallCounter(ASTVisitor):
            def __init__(self):
                self.calls = 0

            def visit_Call(self, node):
                self.calls += 1
                self.generic_visit(node)
    """

    def visit(self, node: ASTNode) -> Any:
        """Dispatch to the visit method for the node's class."""
        method_name = f"visit_{node.__class__.__name__}"
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> None:
        """Visit all child nodes."""
        for field_value in node.__dict__.values():
            if isinstance(field_value, ASTNode):
                self.visit(field_value)
            elif isinstance(field_value, list):
                for item in field_value:
                    if isinstance(item, ASTNode):
                        self.visit(item)


# =============================================================================
# AST Pretty Printer
# =============================================================================

class ASTPrinter(ASTVisitor):
    """
    Pretty printer for AST debugging.

    Usage:
        printer = ASTPrinter()
        print(printer.print(program))
    """

    def __init__(self):
        self.output: list[str] = []
        self.indent_level = 0

    def print(self, node: ASTNode) -> str:
        """Print the AST and return it as a string."""
        self.output = []
        self.indent_level = 0
        self.visit(node)
        return "\n".join(self.output)

    def _emit(self, text: str) -> None:
        self.output.append("  " * self.indent_level + text)

    def _nested(self, node: Optional[ASTNode], label: Optional[str] = None) -> None:
        if node is None:
            return
        if label:
            self._emit(label)
        self.indent_level += 1
        self.visit(node)
        self.indent_level -= 1

    def visit_Program(self, node: Program):
        self._emit("Program")
        self.indent_level += 1
        for item in node.body:
            self.visit(item)
        self.indent_level -= 1

    def visit_Include(self, node: Include):
        self._emit(f"Include <{node.header}>" if node.system else f'Include "{node.header}"')

    def visit_UsingDirective(self, node: UsingDirective):
        self._emit(f"Using namespace {node.namespace}")

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        size = f"[{expression_text(node.array_size)}]" if node.is_array else ""
        init = f" = {expression_text(node.initializer)}" if node.initializer else ""
        self._emit(f"Declare: {node.var_type} {node.name}{size}{init}")

    def visit_DeclarationList(self, node: DeclarationList):
        for declaration in node.declarations:
            self.visit(declaration)

    def _signature(self, node) -> str:
        params = ", ".join(f"{p.param_type} {p.name}" for p in node.params)
        prefix = ""
        if node.template_params:
            prefix = f"template<{', '.join(node.template_params)}> "
        return f"{prefix}{node.return_type} {node.name}({params})"

    def visit_FunctionDecl(self, node: FunctionDecl):
        self._emit(f"Prototype: {self._signature(node)}")

    def visit_FunctionDef(self, node: FunctionDef):
        self._emit(f"Function: {self._signature(node)}")
        self._nested(node.body)

    def visit_Block(self, node: Block):
        self._emit("Block")
        self.indent_level += 1
        for statement in node.statements:
            self.visit(statement)
        self.indent_level -= 1

    def visit_If(self, node: If):
        self._emit(f"If ({expression_text(node.condition)})")
        self.indent_level += 1
        self._nested(node.then_branch, "Then:")
        self._nested(node.else_branch, "Else:")
        self.indent_level -= 1

    def visit_While(self, node: While):
        self._emit(f"While ({expression_text(node.condition)})")
        self._nested(node.body)

    def visit_DoWhile(self, node: DoWhile):
        self._emit(f"DoWhile ({expression_text(node.condition)})")
        self._nested(node.body)

    def visit_For(self, node: For):
        self._emit(f"For (; {expression_text(node.condition)}; {expression_text(node.update)})")
        self.indent_level += 1
        self._nested(node.init, "Init:")
        self._nested(node.body, "Body:")
        self.indent_level -= 1

    def visit_Return(self, node: Return):
        if node.value is not None:
            self._emit(f"Return {expression_text(node.value)}")
        else:
            self._emit("Return")

    def visit_Break(self, node: Break):
        self._emit("Break")

    def visit_Continue(self, node: Continue):
        self._emit("Continue")

    def visit_Input(self, node: Input):
        self._emit("Input: " + ", ".join(expression_text(t) for t in node.targets))

    def visit_Print(self, node: Print):
        self._emit("Print: " + ", ".join(expression_text(p) for p in node.parts))

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        self._emit(f"Expr: {expression_text(node.expression)}")


def expression_text(expr: Optional[Expression]) -> str:
    """Render an expression as fully parenthesized source-like text."""
    if expr is None:
        return ""
    if isinstance(expr, Literal):
        if expr.kind in (LiteralKind.STRING, LiteralKind.CHAR):
            return expr.text
        if expr.kind == LiteralKind.BOOL:
            return "true" if expr.value else "false"
        return str(expr.value)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Endl):
        return "endl"
    if isinstance(expr, Unary):
        return f"({expr.operator.value}{expression_text(expr.operand)})"
    if isinstance(expr, Postfix):
        return f"({expression_text(expr.operand)}{expr.operator.value})"
    if isinstance(expr, Binary):
        return (f"({expression_text(expr.left)} {expr.operator.value} "
                f"{expression_text(expr.right)})")
    if isinstance(expr, Assignment):
        return (f"({expression_text(expr.target)} {expr.operator.value} "
                f"{expression_text(expr.value)})")
    if isinstance(expr, Call):
        args = ", ".join(expression_text(a) for a in expr.args)
        return f"{expression_text(expr.callee)}({args})"
    if isinstance(expr, Member):
        return f"{expression_text(expr.object)}{expr.operator}{expr.field}"
    if isinstance(expr, Index):
        return f"{expression_text(expr.object)}[{expression_text(expr.index)}]"
    if isinstance(expr, New):
        if expr.array_size is not None:
            return f"new {expr.type_spec}[{expression_text(expr.array_size)}]"
        return f"new {expr.type_spec}"
    if isinstance(expr, InitList):
        return "{" + ", ".join(expression_text(e) for e in expr.elements) + "}"
    return "?"
