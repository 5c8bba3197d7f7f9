"""FroLang AST: parse-time node definitions.

Every node keeps the token that introduced it, for diagnostics, and renders
itself back to source with string(). Rendering fully parenthesises operator
expressions and terminates simple statements with ';', so parsing the rendered
text yields a tree that renders identically.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .tokens import Token, escape_string


# ============================================================
# BASE
# ============================================================


class Node:
    """Base for all AST nodes."""

    token: Token

    def token_literal(self) -> str:
        return self.token.value

    def string(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.string()


class Statement(Node):
    """Base for statement nodes."""


class Expression(Node):
    """Base for expression nodes."""


def _block_body(statements: list[Statement]) -> str:
    out = "{"
    for st in statements:
        out += "\n" + st.string()
    return out + "\n}"


# ============================================================
# PROGRAM
# ============================================================


@dataclass
class Program(Node):
    """Top-level statement sequence."""

    statements: list[Statement] = field(default_factory=list)

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ""

    def string(self) -> str:
        return "\n".join(st.string() for st in self.statements)


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class LetStatement(Statement):
    """let name = value;"""

    token: Token
    name: Identifier
    value: Expression

    def string(self) -> str:
        return "let " + self.name.string() + " = " + self.value.string() + ";"


@dataclass
class ReturnStatement(Statement):
    """return value; (value may be omitted)"""

    token: Token
    value: Expression | None

    def string(self) -> str:
        if self.value is None:
            return "return;"
        return "return " + self.value.string() + ";"


@dataclass
class ExpressionStatement(Statement):
    """expr;"""

    token: Token
    expression: Expression

    def string(self) -> str:
        return self.expression.string() + ";"


@dataclass
class BlockStatement(Statement):
    """{ stmt* }"""

    token: Token
    statements: list[Statement] = field(default_factory=list)

    def string(self) -> str:
        return _block_body(self.statements)


@dataclass
class ForStatement(Statement):
    """for (name in iterable) { ... }"""

    token: Token
    variable: Identifier
    iterable: Expression
    body: BlockStatement

    def string(self) -> str:
        return (
            "for ("
            + self.variable.string()
            + " in "
            + self.iterable.string()
            + ") "
            + self.body.string()
        )


@dataclass
class WhileStatement(Statement):
    """while (cond) { ... }"""

    token: Token
    condition: Expression
    body: BlockStatement

    def string(self) -> str:
        return "while (" + self.condition.string() + ") " + self.body.string()


@dataclass
class BreakStatement(Statement):
    token: Token

    def string(self) -> str:
        return "break;"


@dataclass
class ContinueStatement(Statement):
    token: Token

    def string(self) -> str:
        return "continue;"


@dataclass
class TryStatement(Statement):
    """try { ... } catch (name) { ... } finally { ... }"""

    token: Token
    body: BlockStatement
    error_name: Identifier
    catch_body: BlockStatement
    finally_body: BlockStatement | None = None

    def string(self) -> str:
        out = (
            "try "
            + self.body.string()
            + " catch ("
            + self.error_name.string()
            + ") "
            + self.catch_body.string()
        )
        if self.finally_body is not None:
            out += " finally " + self.finally_body.string()
        return out


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Identifier(Expression):
    token: Token
    value: str

    def string(self) -> str:
        return self.value


@dataclass
class IntegerLiteral(Expression):
    token: Token
    value: int

    def string(self) -> str:
        return self.token.value


@dataclass
class FloatLiteral(Expression):
    token: Token
    value: float

    def string(self) -> str:
        return self.token.value


@dataclass
class BooleanLiteral(Expression):
    token: Token
    value: bool

    def string(self) -> str:
        return "true" if self.value else "false"


@dataclass
class StringLiteral(Expression):
    token: Token
    value: str

    def string(self) -> str:
        return escape_string(self.value)


@dataclass
class ArrayLiteral(Expression):
    """[a, b, ...]"""

    token: Token
    elements: list[Expression] = field(default_factory=list)

    def string(self) -> str:
        return "[" + ", ".join(e.string() for e in self.elements) + "]"


@dataclass
class HashLiteral(Expression):
    """{k: v, ...}; pairs kept in source order."""

    token: Token
    pairs: list[tuple[Expression, Expression]] = field(default_factory=list)

    def string(self) -> str:
        items = [k.string() + ": " + v.string() for k, v in self.pairs]
        return "{" + ", ".join(items) + "}"


@dataclass
class FunctionLiteral(Expression):
    """fn(params) { ... }; name is set when bound by let."""

    token: Token
    parameters: list[Identifier]
    body: BlockStatement
    name: str = ""

    def string(self) -> str:
        params = ", ".join(p.string() for p in self.parameters)
        return "fn(" + params + ") " + self.body.string()


@dataclass
class PrefixExpression(Expression):
    """op right"""

    token: Token
    operator: str
    right: Expression

    def string(self) -> str:
        return "(" + self.operator + self.right.string() + ")"


@dataclass
class InfixExpression(Expression):
    """left op right"""

    token: Token
    left: Expression
    operator: str
    right: Expression

    def string(self) -> str:
        return (
            "("
            + self.left.string()
            + " "
            + self.operator
            + " "
            + self.right.string()
            + ")"
        )


@dataclass
class AssignExpression(Expression):
    """name = value"""

    token: Token
    name: Identifier
    value: Expression

    def string(self) -> str:
        return "(" + self.name.string() + " = " + self.value.string() + ")"


@dataclass
class IndexExpression(Expression):
    """left[index]"""

    token: Token
    left: Expression
    index: Expression

    def string(self) -> str:
        return "(" + self.left.string() + "[" + self.index.string() + "])"


@dataclass
class CallExpression(Expression):
    """function(args)"""

    token: Token
    function: Expression
    arguments: list[Expression] = field(default_factory=list)

    def string(self) -> str:
        args = ", ".join(a.string() for a in self.arguments)
        return self.function.string() + "(" + args + ")"


@dataclass
class IfExpression(Expression):
    """if (cond) { ... } else { ... }"""

    token: Token
    condition: Expression
    consequence: BlockStatement
    alternative: BlockStatement | None = None

    def string(self) -> str:
        out = "if (" + self.condition.string() + ") " + self.consequence.string()
        if self.alternative is not None:
            out += " else " + self.alternative.string()
        return out
