"""
cppmini Recursive Descent Parser
================================

This module turns the lexer's token list into an AST. Statements are
parsed by recursive descent; expressions by precedence climbing.

Grammar (Simplified EBNF)
-------------------------
program      ::= statement*
statement    ::= block | INCLUDE | declaration | print | input
               | if | while | do_while | for | return | break | continue
               | using | ';' | expr ';'
declaration  ::= template_hdr? type IDENTIFIER
                   ( '(' params ')' ( block | ';' )
                   | declarator_tail (',' IDENTIFIER declarator_tail)* ';' )
declarator_tail ::= ('[' expr? ']')? ('=' expr)?
type         ::= ('const' | 'static')* base generic_args? ('*' | '&')*
generic_args ::= '<' type (',' type)* '>'
print        ::= 'cout' ('<<' (endl | expr))+ ';'
input        ::= 'cin' ('>>' expr)* ';'
for          ::= 'for' '(' (declaration | expr? ';') expr? ';' expr? ')' statement

Expression Binding Powers (lowest to highest)
---------------------------------------------
0.  assignment     = += -= *= /= %=   (right-associative)
1.  logical_or     ||
2.  logical_and    &&
3.  bitwise_or     |
4.  bitwise_xor    ^
5.  bitwise_and    &
6.  equality       == !=
7.  relational     < > <= >=
8.  shift          << >>
9.  additive       + -
10. multiplicative * / %
11. member/scope   . -> :: (with calls and indexing, in the postfix loop)

Inside ``cout``/``cin`` statements each operand is parsed at the additive
power, so ``<<`` and ``>>`` always separate parts; a shift inside a part
needs parentheses.

Generic Arguments
-----------------
``vector<vector<int>>`` ends with a single ``>>`` token. The parser keeps
an explicit depth counter while reading generic argument lists and lets
one ``>>`` close two levels. Reaching any other token while a list is
open raises UnbalancedGenericsError.

Example Usage
-------------
>>> from cppmini.lang.parser import parse_source
>>> program = parse_source('int x = 5; cout << x << endl;')
>>> [type(node).__name__ for node in program.body]
['VariableDeclaration', 'Print']
"""

import logging
from typing import Optional

from cppmini.errors import SourceLocation
from cppmini.lang.lexer import Lexer, Token, TokenKind
from cppmini.lang.types import TypeSpec
from cppmini.lang.ast import (
    Program,
    Include,
    UsingDirective,
    VariableDeclaration,
    DeclarationList,
    Param,
    FunctionDecl,
    FunctionDef,
    Block,
    If,
    While,
    DoWhile,
    For,
    Return,
    Break,
    Continue,
    Input,
    Print,
    ExpressionStatement,
    Statement,
    Expression,
    Literal,
    LiteralKind,
    Identifier,
    Unary,
    UnaryOperator,
    Postfix,
    PostfixOperator,
    Binary,
    BinaryOperator,
    Assignment,
    AssignmentOperator,
    Call,
    Member,
    Index,
    New,
    InitList,
    Endl,
)
from cppmini.lang.errors import (
    CppSyntaxError,
    UnbalancedGenericsError,
    UnsupportedConstructError,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Grammar Tables
# =============================================================================

ASSIGNMENT_POWER = 0
ADDITIVE_POWER = 9

BINARY_POWERS: dict[str, int] = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6, "!=": 6,
    "<": 7, ">": 7, "<=": 7, ">=": 7,
    "<<": 8, ">>": 8,
    "+": 9, "-": 9,
    "*": 10, "/": 10, "%": 10,
}

ASSIGNMENT_OPERATORS = frozenset(op.value for op in AssignmentOperator)

PREFIX_OPERATORS = frozenset(op.value for op in UnaryOperator)

# Keywords that introduce a declaration or function in statement position
DECLARATION_KEYWORDS = frozenset({
    "int", "float", "double", "char", "bool", "void", "const", "static",
    "auto", "template", "string", "vector", "map", "pair",
})

# Base type keywords accepted by the type grammar
BASE_TYPE_KEYWORDS = frozenset({
    "int", "float", "double", "char", "bool", "void", "auto", "string",
})

CONTAINER_KEYWORDS = frozenset({"vector", "map", "pair"})

# Integer spellings the subset folds into plain int
INTEGER_ALIASES = frozenset({"long", "short", "unsigned", "signed", "size_t"})

# Keywords that may start an expression statement
EXPRESSION_KEYWORDS = frozenset({"true", "false", "new", "endl"})

ESCAPE_SEQUENCES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
    "?": "?",
}


class Parser:
    """
    Recursive descent parser for the C++ subset.

    The parser object is the whole parse state: the token list, a cursor
    into it, and the bookkeeping for generic brackets and template type
    names. A fresh Parser is used for every parse, and any grammar rule
    can be driven on its own (``parse_type``, ``parse_expression``).

    Attributes:
        tokens: Token list ending with an EOF token
        filename: Source filename for error reporting
    """

    def __init__(
        self,
        tokens: list[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer (EOF-terminated)
            filename: Source filename for error messages
            source_lines: Source lines for error context
        """
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            end = tokens[-1].position + len(tokens[-1].text) if tokens else 0
            tokens = list(tokens) + [Token(TokenKind.EOF, "", end, filename=filename)]
        self.tokens = tokens
        self.filename = filename
        self.source_lines = source_lines or []

        self._pos = 0

        # Open generic argument lists, and whether a '>>' already closed
        # the innermost one on behalf of the list around it
        self._generic_depth = 0
        self._split_closer = False

        # Names introduced by template headers; they act as type names
        self._type_names: set[str] = set()

    def parse(self) -> Program:
        """
        Parse the whole token list.

        Returns:
            Program with every top-level node in source order

        Raises:
            CppSyntaxError: On the first grammar violation, or when nesting
                            is too deep to parse
        """
        body: list[Statement] = []
        try:
            while not self.at_end():
                body.append(self.parse_statement())
        except RecursionError:
            token = self._peek()
            raise CppSyntaxError(
                "less deeply nested code",
                self._describe(token),
                token.position,
                token.location,
                self._source_line(token.line),
                message=f"nesting too deep at position {token.position}",
            ) from None

        logger.debug("Parsed %d top-level nodes", len(body))
        return Program(location=SourceLocation(self.filename, 1, 1), body=body)

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def at_end(self) -> bool:
        """Check if every token but EOF has been consumed."""
        return self._peek().kind == TokenKind.EOF

    def _peek(self, offset: int = 0) -> Token:
        pos = self._pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _advance(self) -> Token:
        token = self._peek()
        if token.kind != TokenKind.EOF:
            self._pos += 1
        return token

    def _match_delimiter(self, char: str) -> Optional[Token]:
        if self._peek().is_delimiter(char):
            return self._advance()
        return None

    def _match_operator(self, *ops: str) -> Optional[Token]:
        if self._peek().is_operator(*ops):
            return self._advance()
        return None

    def _match_keyword(self, *words: str) -> Optional[Token]:
        if self._peek().is_keyword(*words):
            return self._advance()
        return None

    def _expect_delimiter(self, char: str) -> Token:
        token = self._match_delimiter(char)
        if token is None:
            raise self._error(f"'{char}'")
        return token

    def _expect_keyword(self, word: str) -> Token:
        token = self._match_keyword(word)
        if token is None:
            raise self._error(f"'{word}'")
        return token

    def _expect_identifier(self, description: str = "identifier") -> Token:
        if self._peek().kind == TokenKind.IDENTIFIER:
            return self._advance()
        raise self._error(description)

    def _error(self, expected: str, token: Optional[Token] = None) -> CppSyntaxError:
        """Build a syntax error pointing at ``token`` (default: current)."""
        token = token or self._peek()
        return CppSyntaxError(
            expected,
            self._describe(token),
            token.position,
            token.location,
            self._source_line(token.line),
        )

    @staticmethod
    def _describe(token: Token) -> str:
        return "end of input" if token.kind == TokenKind.EOF else token.text

    def _source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    def _is_std(self, word: Optional[str] = None, offset: int = 0) -> bool:
        """Check for ``std::`` (followed by ``word`` if given) at offset."""
        if not (self._peek(offset).is_(TokenKind.IDENTIFIER, "std")
                and self._peek(offset + 1).kind == TokenKind.SCOPE):
            return False
        if word is None:
            return True
        return self._peek(offset + 2).text == word

    def _match_stream(self, word: str) -> Optional[Token]:
        """Consume ``cout``/``cin``/``endl``, optionally std-qualified."""
        token = self._peek()
        if token.is_keyword(word):
            return self._advance()
        if self._is_std(word):
            self._advance()
            self._advance()
            self._advance()
            return token
        return None

    # =========================================================================
    # Type Grammar
    # =========================================================================

    def parse_type(self) -> TypeSpec:
        """
        Parse a type: modifiers, base, generic arguments and suffixes.

        Raises:
            CppSyntaxError: If no base type is present
            UnbalancedGenericsError: If generic brackets do not balance
        """
        modifiers: list[str] = []
        while self._peek().is_keyword("const", "static"):
            modifiers.append(self._advance().text)

        token = self._peek()
        args: tuple[TypeSpec, ...] = ()

        if token.is_keyword(*CONTAINER_KEYWORDS):
            name = self._advance().text
            if self._peek().is_operator("<"):
                args = self._parse_generic_args()
        elif self._is_std():
            self._advance()
            self._advance()
            qualified = self._advance()
            if qualified.kind not in (TokenKind.IDENTIFIER, TokenKind.KEYWORD):
                raise self._error("type name", qualified)
            name = f"std::{qualified.text}"
            if qualified.text in CONTAINER_KEYWORDS and self._peek().is_operator("<"):
                args = self._parse_generic_args()
        elif token.is_keyword(*BASE_TYPE_KEYWORDS):
            name = self._advance().text
        elif token.kind == TokenKind.IDENTIFIER and token.text in INTEGER_ALIASES:
            self._parse_integer_alias()
            name = "int"
        elif token.kind == TokenKind.IDENTIFIER:
            name = self._advance().text
        else:
            raise self._error("type")

        pointer_depth = 0
        is_reference = False
        # A '>>' that closed this list on behalf of an outer one leaves the
        # suffixes to the outer type
        while not self._split_closer and self._peek().is_operator("*", "&"):
            if self._advance().text == "*":
                pointer_depth += 1
            else:
                is_reference = True

        return TypeSpec(
            name=name,
            modifiers=tuple(modifiers),
            args=args,
            pointer_depth=pointer_depth,
            is_reference=is_reference,
        )

    def _parse_integer_alias(self) -> None:
        """Consume spellings like ``long long``, ``unsigned int``, ``size_t``."""
        while (self._peek().kind == TokenKind.IDENTIFIER
               and self._peek().text in INTEGER_ALIASES):
            self._advance()
        self._match_keyword("int")

    def _parse_generic_args(self) -> tuple[TypeSpec, ...]:
        """Parse ``<type, ...>`` with explicit depth tracking."""
        self._advance()  # '<'
        self._generic_depth += 1

        args = [self.parse_type()]
        while not self._split_closer and self._match_delimiter(","):
            args.append(self.parse_type())

        self._close_generic()
        return tuple(args)

    def _close_generic(self) -> None:
        if self._split_closer:
            self._split_closer = False
        else:
            token = self._peek()
            if token.is_operator(">"):
                self._advance()
            elif token.is_(TokenKind.STREAM, ">>") and self._generic_depth >= 2:
                self._advance()
                self._split_closer = True
            else:
                raise UnbalancedGenericsError(
                    self._describe(token),
                    token.position,
                    token.location,
                    self._source_line(token.line),
                )
        self._generic_depth -= 1

    def _starts_declaration(self) -> bool:
        """Check whether the current token begins a declaration."""
        token = self._peek()
        if token.is_keyword(*DECLARATION_KEYWORDS):
            return True
        if self._is_std() and self._peek(2).is_keyword("string", *CONTAINER_KEYWORDS):
            return True
        if token.kind != TokenKind.IDENTIFIER:
            return False
        if token.text in INTEGER_ALIASES:
            return True
        if token.text in self._type_names:
            following = self._peek(1)
            return following.kind == TokenKind.IDENTIFIER or following.is_operator("&", "*")
        return False

    # =========================================================================
    # Statements
    # =========================================================================

    def parse_statement(self) -> Statement:
        """Parse one statement, dispatching on its leading token."""
        token = self._peek()

        if token.is_delimiter("{"):
            return self._parse_block()
        if token.kind == TokenKind.INCLUDE:
            return self._parse_include()
        if token.is_delimiter(";"):
            self._advance()
            return Block(location=token.location)
        if self._starts_declaration():
            return self._parse_declaration()

        cout = self._match_stream("cout")
        if cout is not None:
            return self._parse_print(cout)
        cin = self._match_stream("cin")
        if cin is not None:
            return self._parse_input(cin)

        if token.kind == TokenKind.KEYWORD:
            handler = {
                "if": self._parse_if,
                "while": self._parse_while,
                "do": self._parse_do_while,
                "for": self._parse_for,
                "return": self._parse_return,
                "break": self._parse_break,
                "continue": self._parse_continue,
                "using": self._parse_using,
            }.get(token.text)
            if handler is not None:
                return handler()
            if token.text not in EXPRESSION_KEYWORDS:
                raise UnsupportedConstructError(
                    token.text,
                    token.position,
                    token.location,
                    self._source_line(token.line),
                )

        return self._parse_expression_statement()

    def _parse_block(self) -> Block:
        location = self._expect_delimiter("{").location
        statements = []
        while not self._peek().is_delimiter("}"):
            if self.at_end():
                raise self._error("'}'")
            statements.append(self.parse_statement())
        self._advance()
        return Block(location=location, statements=statements)

    def _parse_include(self) -> Include:
        token = self._advance()
        target = token.text[len("#include"):].strip()
        return Include(
            location=token.location,
            header=target[1:-1].strip(),
            system=target.startswith("<"),
        )

    def _parse_using(self) -> UsingDirective:
        token = self._advance()
        if not self._peek().is_keyword("namespace"):
            raise UnsupportedConstructError(
                "using", token.position, token.location, self._source_line(token.line),
            )
        self._advance()
        name = self._expect_identifier("namespace name")
        self._expect_delimiter(";")
        return UsingDirective(location=token.location, namespace=name.text)

    def _parse_template_header(self) -> list[str]:
        """Parse ``template <typename T, class U>`` and register the names."""
        self._expect_keyword("template")
        if not self._match_operator("<"):
            raise self._error("'<'")
        names = []
        while True:
            if not self._match_keyword("typename", "class"):
                raise self._error("'typename'")
            name = self._expect_identifier("template parameter name").text
            names.append(name)
            self._type_names.add(name)
            if not self._match_delimiter(","):
                break
        if not self._match_operator(">"):
            raise self._error("'>'")
        return names

    def _parse_declaration(self) -> Statement:
        """
        Parse a variable declaration or a function.

        A ``(`` after the name makes it a function: a definition when a
        body follows, a prototype when ``;`` follows.
        """
        location = self._peek().location
        template_params: list[str] = []
        if self._peek().is_keyword("template"):
            template_params = self._parse_template_header()

        var_type = self.parse_type()
        name = self._expect_identifier("declaration name")

        if self._peek().is_delimiter("("):
            params = self._parse_params()
            if self._peek().is_delimiter("{"):
                body = self._parse_block()
                return FunctionDef(
                    location=location,
                    return_type=var_type,
                    name=name.text,
                    params=params,
                    body=body,
                    template_params=template_params,
                )
            if self._match_delimiter(";"):
                return FunctionDecl(
                    location=location,
                    return_type=var_type,
                    name=name.text,
                    params=params,
                    template_params=template_params,
                )
            raise self._error("'{' or ';'")

        if template_params:
            raise self._error("'('")

        declarations = [self._parse_declarator_tail(var_type, name)]
        while self._match_delimiter(","):
            # Suffixes bind to each declarator: int a, *b, &c = a;
            declarator_type = self._strip_suffixes(var_type)
            while self._peek().is_operator("*", "&"):
                declarator_type = self._apply_suffix(declarator_type, self._advance().text)
            declarator_name = self._expect_identifier("declaration name")
            declarations.append(self._parse_declarator_tail(declarator_type, declarator_name))
        self._expect_delimiter(";")

        if len(declarations) == 1:
            return declarations[0]
        return DeclarationList(location=location, declarations=declarations)

    def _parse_declarator_tail(self, var_type: TypeSpec, name: Token) -> VariableDeclaration:
        array_size = None
        is_array = False
        if self._match_delimiter("["):
            is_array = True
            # int a[] = {...} takes its size from the initializer
            if not self._peek().is_delimiter("]"):
                array_size = self.parse_expression()
            self._expect_delimiter("]")

        initializer = None
        if self._match_operator("="):
            initializer = self.parse_expression()

        return VariableDeclaration(
            location=name.location,
            var_type=var_type,
            name=name.text,
            initializer=initializer,
            array_size=array_size,
            is_array=is_array,
        )

    @staticmethod
    def _strip_suffixes(var_type: TypeSpec) -> TypeSpec:
        return TypeSpec(name=var_type.name, modifiers=var_type.modifiers, args=var_type.args)

    @staticmethod
    def _apply_suffix(var_type: TypeSpec, suffix: str) -> TypeSpec:
        return TypeSpec(
            name=var_type.name,
            modifiers=var_type.modifiers,
            args=var_type.args,
            pointer_depth=var_type.pointer_depth + (suffix == "*"),
            is_reference=var_type.is_reference or suffix == "&",
        )

    def _parse_params(self) -> list[Param]:
        """Parse ``(type name, ...)``; names are optional in prototypes."""
        self._expect_delimiter("(")
        params: list[Param] = []

        if self._peek().is_keyword("void") and self._peek(1).is_delimiter(")"):
            self._advance()

        while not self._peek().is_delimiter(")"):
            location = self._peek().location
            param_type = self.parse_type()
            name = ""
            if self._peek().kind == TokenKind.IDENTIFIER:
                name = self._advance().text
            if self._match_delimiter("["):
                self._expect_delimiter("]")
                # Array parameters alias the caller's storage
                param_type = TypeSpec(name="vector", args=(param_type,), is_reference=True)
            params.append(Param(location=location, param_type=param_type, name=name))
            if not self._match_delimiter(","):
                break

        self._expect_delimiter(")")
        return params

    def _parse_print(self, cout: Token) -> Print:
        parts: list[Expression] = []
        while self._peek().is_(TokenKind.STREAM, "<<"):
            self._advance()
            endl = self._match_stream("endl")
            if endl is not None:
                parts.append(Endl(location=endl.location))
            else:
                parts.append(self.parse_expression(ADDITIVE_POWER))
        if not parts:
            raise self._error("'<<'")
        self._expect_delimiter(";")
        return Print(location=cout.location, parts=parts)

    def _parse_input(self, cin: Token) -> Input:
        targets: list[Expression] = []
        while self._peek().is_(TokenKind.STREAM, ">>"):
            self._advance()
            targets.append(self.parse_expression(ADDITIVE_POWER))
        self._expect_delimiter(";")
        return Input(location=cin.location, targets=targets)

    def _parse_condition(self) -> Expression:
        self._expect_delimiter("(")
        condition = self.parse_expression()
        self._expect_delimiter(")")
        return condition

    def _parse_if(self) -> If:
        location = self._advance().location
        condition = self._parse_condition()
        then_branch = self.parse_statement()
        else_branch = None
        if self._match_keyword("else"):
            else_branch = self.parse_statement()
        return If(
            location=location,
            condition=condition,
            then_branch=then_branch,
            else_branch=else_branch,
        )

    def _parse_while(self) -> While:
        location = self._advance().location
        condition = self._parse_condition()
        body = self.parse_statement()
        return While(location=location, condition=condition, body=body)

    def _parse_do_while(self) -> DoWhile:
        location = self._advance().location
        body = self.parse_statement()
        self._expect_keyword("while")
        condition = self._parse_condition()
        self._expect_delimiter(";")
        return DoWhile(location=location, body=body, condition=condition)

    def _parse_for(self) -> For:
        location = self._advance().location
        self._expect_delimiter("(")

        # Init clause: a declaration or an expression statement, each of
        # which consumes its own ';'
        init: Optional[Statement] = None
        if self._match_delimiter(";") is None:
            if self._starts_declaration():
                init = self._parse_declaration()
                if isinstance(init, (FunctionDef, FunctionDecl)):
                    raise self._error("variable declaration", self.tokens[self._pos - 1])
            else:
                init = self._parse_expression_statement()

        condition = None
        if not self._peek().is_delimiter(";"):
            condition = self.parse_expression()
        self._expect_delimiter(";")

        update = None
        if not self._peek().is_delimiter(")"):
            update = self.parse_expression()
        self._expect_delimiter(")")

        body = self.parse_statement()
        return For(
            location=location,
            init=init,
            condition=condition,
            update=update,
            body=body,
        )

    def _parse_return(self) -> Return:
        location = self._advance().location
        value = None
        if not self._peek().is_delimiter(";"):
            value = self.parse_expression()
        self._expect_delimiter(";")
        return Return(location=location, value=value)

    def _parse_break(self) -> Break:
        location = self._advance().location
        self._expect_delimiter(";")
        return Break(location=location)

    def _parse_continue(self) -> Continue:
        location = self._advance().location
        self._expect_delimiter(";")
        return Continue(location=location)

    def _parse_expression_statement(self) -> ExpressionStatement:
        location = self._peek().location
        expression = self.parse_expression()
        self._expect_delimiter(";")
        return ExpressionStatement(location=location, expression=expression)

    # =========================================================================
    # Expressions
    # =========================================================================

    def parse_expression(self, min_power: int = ASSIGNMENT_POWER) -> Expression:
        """
        Parse an expression by precedence climbing.

        Args:
            min_power: Lowest binding power an operator may have to be
                       consumed at this level

        Returns:
            The expression tree
        """
        left = self._parse_unary()

        while True:
            token = self._peek()
            power = self._binary_power(token)
            if power is None or power < min_power:
                break
            self._advance()

            if token.text in ASSIGNMENT_OPERATORS:
                # Right-associative: recurse at the same power
                right = self.parse_expression(ASSIGNMENT_POWER)
                left = Assignment(
                    location=left.location,
                    operator=AssignmentOperator(token.text),
                    target=left,
                    value=right,
                )
            else:
                right = self.parse_expression(power + 1)
                left = Binary(
                    location=left.location,
                    operator=BinaryOperator(token.text),
                    left=left,
                    right=right,
                )

        return left

    @staticmethod
    def _binary_power(token: Token) -> Optional[int]:
        if token.kind == TokenKind.STREAM:
            return BINARY_POWERS[token.text]
        if token.kind != TokenKind.OPERATOR:
            return None
        if token.text in ASSIGNMENT_OPERATORS:
            return ASSIGNMENT_POWER
        return BINARY_POWERS.get(token.text)

    def _parse_unary(self) -> Expression:
        """Parse prefix operators, then a postfix chain."""
        token = self._peek()
        if token.kind == TokenKind.OPERATOR and token.text in PREFIX_OPERATORS:
            self._advance()
            operand = self._parse_unary()
            return Unary(
                location=token.location,
                operator=UnaryOperator(token.text),
                operand=operand,
            )
        return self._parse_postfix(self._parse_primary())

    def _parse_postfix(self, expr: Expression) -> Expression:
        """Apply calls, member access, indexing and ++/-- until none match."""
        while True:
            token = self._peek()

            if token.is_delimiter("("):
                expr = Call(location=expr.location, callee=expr, args=self._parse_arguments())

            elif token.is_delimiter("["):
                self._advance()
                index = self.parse_expression()
                self._expect_delimiter("]")
                expr = Index(location=expr.location, object=expr, index=index)

            elif token.is_operator(".", "->") or token.kind == TokenKind.SCOPE:
                self._advance()
                member = self._peek()
                if member.kind == TokenKind.IDENTIFIER or (
                        token.kind == TokenKind.SCOPE and member.kind == TokenKind.KEYWORD):
                    self._advance()
                else:
                    raise self._error("member name")
                expr = Member(
                    location=expr.location,
                    object=expr,
                    operator=token.text,
                    field=member.text,
                )

            elif token.is_operator("++", "--"):
                self._advance()
                expr = Postfix(
                    location=expr.location,
                    operator=PostfixOperator(token.text),
                    operand=expr,
                )

            else:
                return expr

    def _parse_arguments(self) -> list[Expression]:
        self._expect_delimiter("(")
        args: list[Expression] = []
        if not self._peek().is_delimiter(")"):
            while True:
                args.append(self.parse_expression())
                if not self._match_delimiter(","):
                    break
        self._expect_delimiter(")")
        return args

    def _parse_primary(self) -> Expression:
        """Parse literals, names, grouping, brace lists and ``new``."""
        token = self._peek()
        location = token.location

        if token.kind == TokenKind.NUMBER:
            self._advance()
            if any(c in token.text for c in ".eE"):
                return Literal(location=location, kind=LiteralKind.FLOAT,
                               value=float(token.text), text=token.text)
            return Literal(location=location, kind=LiteralKind.INT,
                           value=int(token.text), text=token.text)

        if token.kind == TokenKind.STRING:
            self._advance()
            return Literal(location=location, kind=LiteralKind.STRING,
                           value=decode_escapes(token.text[1:-1]), text=token.text)

        if token.kind == TokenKind.CHAR:
            self._advance()
            return Literal(location=location, kind=LiteralKind.CHAR,
                           value=decode_escapes(token.text[1:-1]), text=token.text)

        if token.kind == TokenKind.IDENTIFIER:
            self._advance()
            return Identifier(location=location, name=token.text)

        if token.is_keyword("true", "false"):
            self._advance()
            return Literal(location=location, kind=LiteralKind.BOOL,
                           value=token.text == "true", text=token.text)

        if token.is_keyword("endl"):
            self._advance()
            return Endl(location=location)

        if token.is_keyword("new"):
            return self._parse_new()

        if token.is_delimiter("("):
            self._advance()
            expr = self.parse_expression()
            self._expect_delimiter(")")
            return expr

        if token.is_delimiter("[", "{"):
            return self._parse_init_list()

        raise self._error("expression")

    def _parse_new(self) -> New:
        location = self._advance().location
        type_spec = self.parse_type()
        array_size = None
        if self._match_delimiter("["):
            array_size = self.parse_expression()
            self._expect_delimiter("]")
        elif self._peek().is_delimiter("(") and self._peek(1).is_delimiter(")"):
            self._advance()
            self._advance()
        return New(location=location, type_spec=type_spec, array_size=array_size)

    def _parse_init_list(self) -> InitList:
        """Parse ``{a, b}`` or the bracketed form ``[a, b]``."""
        opener = self._advance()
        closer = "}" if opener.text == "{" else "]"
        elements: list[Expression] = []
        while not self._peek().is_delimiter(closer):
            elements.append(self.parse_expression())
            if not self._match_delimiter(","):
                break
        self._expect_delimiter(closer)
        return InitList(location=opener.location, elements=elements)


# =============================================================================
# Convenience Functions
# =============================================================================

def decode_escapes(raw: str) -> str:
    """Decode backslash escapes in the body of a string or char literal."""
    if "\\" not in raw:
        return raw
    result = []
    chars = iter(raw)
    for char in chars:
        if char != "\\":
            result.append(char)
            continue
        escaped = next(chars, "\\")
        result.append(ESCAPE_SEQUENCES.get(escaped, escaped))
    return "".join(result)


def parse_tokens(tokens: list[Token], filename: str = "<input>",
                 source_lines: Optional[list[str]] = None) -> Program:
    """Parse an EOF-terminated token list into a Program."""
    return Parser(tokens, filename, source_lines).parse()


def parse_source(source: str, filename: str = "<input>") -> Program:
    """
    Lex and parse source text.

    Args:
        source: Source text
        filename: Source filename for error messages

    Returns:
        The root Program node

    Raises:
        LexicalError: If the text cannot be tokenized
        CppSyntaxError: If parsing fails
    """
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()
    return Parser(tokens, filename, lexer.source.split("\n")).parse()
