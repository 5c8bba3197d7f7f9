"""FroLang parser: recursive descent statements, Pratt expressions.

The parser pulls tokens from a Lexer one at a time, keeping the current token
and one token of lookahead. Expression parsing is table driven: each Parser
instance owns its prefix and infix rule tables, keyed by token type.

Errors never abort the parse. Each failure records a ParseError and the
offending construct is dropped, so one pass reports as many problems as it can.
Every statement rule leaves the current token on the last token it consumed;
parse_program (and block parsing) step past it.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from .ast import (
    ArrayLiteral,
    AssignExpression,
    BlockStatement,
    BooleanLiteral,
    BreakStatement,
    CallExpression,
    ContinueStatement,
    Expression,
    ExpressionStatement,
    FloatLiteral,
    ForStatement,
    FunctionLiteral,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    LetStatement,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
    TryStatement,
    WhileStatement,
)
from .tokens import (
    TK_AND,
    TK_ASSIGN,
    TK_BANG,
    TK_BREAK,
    TK_CATCH,
    TK_COLON,
    TK_COMMA,
    TK_COMMENT_END,
    TK_COMMENT_START,
    TK_CONTINUE,
    TK_ELSE,
    TK_EOF,
    TK_EQ,
    TK_FALSE,
    TK_FINALLY,
    TK_FLOAT,
    TK_FN,
    TK_FOR,
    TK_GT,
    TK_GT_EQ,
    TK_IDENT,
    TK_IF,
    TK_ILLEGAL,
    TK_IN,
    TK_INT,
    TK_LBRACE,
    TK_LBRACKET,
    TK_LET,
    TK_LPAREN,
    TK_LT,
    TK_LT_EQ,
    TK_MINUS,
    TK_NOT_EQ,
    TK_OR,
    TK_PLUS,
    TK_RBRACE,
    TK_RBRACKET,
    TK_RETURN,
    TK_RPAREN,
    TK_SEMICOLON,
    TK_SLASH,
    TK_STAR,
    TK_STRING,
    TK_TRUE,
    TK_TRY,
    TK_WHILE,
    Lexer,
    Token,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Precedence levels, lowest to highest
LOWEST = 1
EQUALS = 2
LESS_GREATER = 3
SUM = 4
PRODUCT = 5
PREFIX = 6
CALL = 7
INDEX = 8

PRECEDENCES: dict[str, int] = {
    TK_ASSIGN: EQUALS,
    TK_EQ: EQUALS,
    TK_NOT_EQ: EQUALS,
    TK_AND: EQUALS,
    TK_OR: EQUALS,
    TK_IN: EQUALS,
    TK_LT: LESS_GREATER,
    TK_LT_EQ: LESS_GREATER,
    TK_GT: LESS_GREATER,
    TK_GT_EQ: LESS_GREATER,
    TK_PLUS: SUM,
    TK_MINUS: SUM,
    TK_STAR: PRODUCT,
    TK_SLASH: PRODUCT,
    TK_LPAREN: CALL,
    TK_LBRACKET: INDEX,
}

BINARY_OPS: tuple[str, ...] = (
    TK_EQ,
    TK_NOT_EQ,
    TK_AND,
    TK_OR,
    TK_IN,
    TK_LT,
    TK_LT_EQ,
    TK_GT,
    TK_GT_EQ,
    TK_PLUS,
    TK_MINUS,
    TK_STAR,
    TK_SLASH,
)

_INT64_MAX = (1 << 63) - 1


class ParseError(Exception):
    """Parse error with location info."""

    def __init__(self, msg: str, line: int, col: int):
        self.msg: str = msg
        self.line: int = line
        self.col: int = col
        super().__init__(msg + " at line " + str(line) + " col " + str(col))


def _describe(tok: Token) -> str:
    if tok.type == TK_EOF:
        return "EOF"
    return "'" + tok.value + "'"


class Parser:
    """Pratt parser for FroLang."""

    def __init__(self, lexer: Lexer):
        self.lexer: Lexer = lexer
        self.errors: list[ParseError] = []
        self.cur: Token = lexer.next_token()
        self.peek: Token = lexer.next_token()

        self.statement_rules: dict[str, Callable[[], Statement | None]] = {
            TK_LET: self.parse_let_statement,
            TK_RETURN: self.parse_return_statement,
            TK_FOR: self.parse_for_statement,
            TK_WHILE: self.parse_while_statement,
            TK_BREAK: self.parse_break_statement,
            TK_CONTINUE: self.parse_continue_statement,
            TK_TRY: self.parse_try_statement,
            TK_COMMENT_START: self.skip_comment,
        }
        self.prefix_rules: dict[str, Callable[[], Expression | None]] = {
            TK_IDENT: self.parse_identifier,
            TK_INT: self.parse_integer_literal,
            TK_FLOAT: self.parse_float_literal,
            TK_STRING: self.parse_string_literal,
            TK_TRUE: self.parse_boolean_literal,
            TK_FALSE: self.parse_boolean_literal,
            TK_BANG: self.parse_prefix_expression,
            TK_MINUS: self.parse_prefix_expression,
            TK_LPAREN: self.parse_grouped_expression,
            TK_LBRACKET: self.parse_array_literal,
            TK_LBRACE: self.parse_hash_literal,
            TK_IF: self.parse_if_expression,
            TK_FN: self.parse_function_literal,
        }
        self.infix_rules: dict[str, Callable[[Expression], Expression | None]] = {
            TK_ASSIGN: self.parse_assign_expression,
            TK_LPAREN: self.parse_call_expression,
            TK_LBRACKET: self.parse_index_expression,
        }
        for op in BINARY_OPS:
            self.infix_rules[op] = self.parse_infix_expression

    # ── Helpers ──────────────────────────────────────────────

    def advance(self) -> None:
        self.cur = self.peek
        self.peek = self.lexer.next_token()

    def cur_is(self, type_: str) -> bool:
        return self.cur.type == type_

    def peek_is(self, type_: str) -> bool:
        return self.peek.type == type_

    def expect_peek(self, type_: str) -> bool:
        """Advance if the next token has the given type, else record an error."""
        if self.peek_is(type_):
            self.advance()
            return True
        self.error_at(
            self.peek,
            "expected next token to be "
            + type_
            + ", got "
            + self.peek.type
            + " instead",
        )
        return False

    def error_at(self, tok: Token, msg: str) -> None:
        self.errors.append(ParseError(msg, tok.line, tok.col))

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek.type, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur.type, LOWEST)

    def skip_semicolon(self) -> None:
        if self.peek_is(TK_SEMICOLON):
            self.advance()

    # ── Top Level ────────────────────────────────────────────

    def parse_program(self) -> Program:
        program = Program()
        while not self.cur_is(TK_EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                program.statements.append(stmt)
            self.advance()
        logger.debug(
            "parsed %d statements, %d errors", len(program.statements), len(self.errors)
        )
        return program

    def parse_statement(self) -> Statement | None:
        rule = self.statement_rules.get(self.cur.type)
        if rule is not None:
            return rule()
        return self.parse_expression_statement()

    def parse_block(self) -> BlockStatement | None:
        """Block = '{' Statement* '}' (current token is '{')"""
        block = BlockStatement(self.cur)
        self.advance()
        while not self.cur_is(TK_RBRACE) and not self.cur_is(TK_EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                block.statements.append(stmt)
            self.advance()
        if self.cur_is(TK_EOF):
            self.error_at(
                self.cur, "expected next token to be " + TK_RBRACE + ", got EOF instead"
            )
            return None
        return block

    def _expect_block(self) -> BlockStatement | None:
        if not self.expect_peek(TK_LBRACE):
            return None
        return self.parse_block()

    # ── Statements ───────────────────────────────────────────

    def skip_comment(self) -> None:
        """Comment = '/*' ... '*/', never enters the tree."""
        while not self.cur_is(TK_COMMENT_END) and not self.cur_is(TK_EOF):
            self.advance()
        return None

    def parse_let_statement(self) -> LetStatement | None:
        """Let = 'let' IDENT '=' Expr ';'?"""
        tok = self.cur
        if not self.expect_peek(TK_IDENT):
            return None
        name = Identifier(self.cur, self.cur.value)
        if not self.expect_peek(TK_ASSIGN):
            return None
        self.advance()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        if isinstance(value, FunctionLiteral):
            value.name = name.value
        self.skip_semicolon()
        return LetStatement(tok, name, value)

    def parse_return_statement(self) -> ReturnStatement | None:
        """Return = 'return' Expr? ';'?"""
        tok = self.cur
        if (
            self.peek_is(TK_SEMICOLON)
            or self.peek_is(TK_RBRACE)
            or self.peek_is(TK_EOF)
        ):
            self.skip_semicolon()
            return ReturnStatement(tok, None)
        self.advance()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        self.skip_semicolon()
        return ReturnStatement(tok, value)

    def parse_break_statement(self) -> BreakStatement:
        tok = self.cur
        self.skip_semicolon()
        return BreakStatement(tok)

    def parse_continue_statement(self) -> ContinueStatement:
        tok = self.cur
        self.skip_semicolon()
        return ContinueStatement(tok)

    def parse_for_statement(self) -> ForStatement | None:
        """For = 'for' '('? IDENT 'in' Expr ')'? Block"""
        tok = self.cur
        parens = self.peek_is(TK_LPAREN)
        if parens:
            self.advance()
        if not self.expect_peek(TK_IDENT):
            return None
        variable = Identifier(self.cur, self.cur.value)
        if not self.expect_peek(TK_IN):
            return None
        self.advance()
        iterable = self.parse_expression(LOWEST)
        if iterable is None:
            return None
        if parens and not self.expect_peek(TK_RPAREN):
            return None
        body = self._expect_block()
        if body is None:
            return None
        self.skip_semicolon()
        return ForStatement(tok, variable, iterable, body)

    def parse_while_statement(self) -> WhileStatement | None:
        """While = 'while' Expr Block"""
        tok = self.cur
        self.advance()
        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        body = self._expect_block()
        if body is None:
            return None
        self.skip_semicolon()
        return WhileStatement(tok, condition, body)

    def parse_try_statement(self) -> TryStatement | None:
        """Try = 'try' Block 'catch' ( IDENT | '(' IDENT ')' ) Block ( 'finally' Block )?"""
        tok = self.cur
        body = self._expect_block()
        if body is None:
            return None
        if not self.expect_peek(TK_CATCH):
            return None
        parens = self.peek_is(TK_LPAREN)
        if parens:
            self.advance()
        if not self.expect_peek(TK_IDENT):
            return None
        error_name = Identifier(self.cur, self.cur.value)
        if parens and not self.expect_peek(TK_RPAREN):
            return None
        catch_body = self._expect_block()
        if catch_body is None:
            return None
        finally_body: BlockStatement | None = None
        if self.peek_is(TK_FINALLY):
            self.advance()
            finally_body = self._expect_block()
            if finally_body is None:
                return None
        self.skip_semicolon()
        return TryStatement(tok, body, error_name, catch_body, finally_body)

    def parse_expression_statement(self) -> ExpressionStatement | None:
        tok = self.cur
        expr = self.parse_expression(LOWEST)
        if expr is None:
            return None
        self.skip_semicolon()
        return ExpressionStatement(tok, expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expression(self, precedence: int) -> Expression | None:
        prefix = self.prefix_rules.get(self.cur.type)
        if prefix is None:
            if self.cur_is(TK_ILLEGAL):
                self.error_at(self.cur, "illegal token: " + self.cur.value)
            else:
                self.error_at(self.cur, "no prefix parse rule for " + _describe(self.cur))
            return None
        left = prefix()
        while (
            left is not None
            and not self.peek_is(TK_SEMICOLON)
            and precedence < self.peek_precedence()
        ):
            infix = self.infix_rules.get(self.peek.type)
            if infix is None:
                return left
            self.advance()
            left = infix(left)
        return left

    def parse_identifier(self) -> Identifier:
        return Identifier(self.cur, self.cur.value)

    def parse_integer_literal(self) -> IntegerLiteral | None:
        tok = self.cur
        try:
            value = int(tok.value)
        except ValueError:
            value = -1
        if value < 0 or value > _INT64_MAX:
            self.error_at(tok, 'could not parse "' + tok.value + '" as integer')
            return None
        return IntegerLiteral(tok, value)

    def parse_float_literal(self) -> FloatLiteral | None:
        tok = self.cur
        try:
            value = float(tok.value)
        except ValueError:
            self.error_at(tok, 'could not parse "' + tok.value + '" as float')
            return None
        return FloatLiteral(tok, value)

    def parse_string_literal(self) -> StringLiteral:
        return StringLiteral(self.cur, self.cur.value)

    def parse_boolean_literal(self) -> BooleanLiteral:
        return BooleanLiteral(self.cur, self.cur_is(TK_TRUE))

    def parse_prefix_expression(self) -> PrefixExpression | None:
        """Prefix = ( '!' | '-' ) Expr"""
        tok = self.cur
        self.advance()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(tok, tok.value, right)

    def parse_infix_expression(self, left: Expression) -> InfixExpression | None:
        tok = self.cur
        precedence = self.cur_precedence()
        self.advance()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(tok, left, tok.value, right)

    def parse_assign_expression(self, left: Expression) -> AssignExpression | None:
        """Assign = IDENT '=' Expr (right-associative)"""
        tok = self.cur
        self.advance()
        value = self.parse_expression(LOWEST)
        if not isinstance(left, Identifier):
            self.error_at(tok, "cannot assign to non-identifier")
            return None
        if value is None:
            return None
        return AssignExpression(tok, left, value)

    def parse_grouped_expression(self) -> Expression | None:
        self.advance()
        expr = self.parse_expression(LOWEST)
        if expr is None or not self.expect_peek(TK_RPAREN):
            return None
        return expr

    def parse_if_expression(self) -> IfExpression | None:
        """If = 'if' Expr Block ( 'else' ( If | Block ) )?"""
        tok = self.cur
        self.advance()
        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        consequence = self._expect_block()
        if consequence is None:
            return None
        alternative: BlockStatement | None = None
        if self.peek_is(TK_ELSE):
            self.advance()
            if self.peek_is(TK_IF):
                self.advance()
                else_tok = self.cur
                nested = self.parse_if_expression()
                if nested is None:
                    return None
                alternative = BlockStatement(
                    else_tok, [ExpressionStatement(else_tok, nested)]
                )
            else:
                alternative = self._expect_block()
                if alternative is None:
                    return None
        return IfExpression(tok, condition, consequence, alternative)

    def parse_function_literal(self) -> FunctionLiteral | None:
        """Fn = 'fn' '(' Params ')' Block"""
        tok = self.cur
        if not self.expect_peek(TK_LPAREN):
            return None
        params = self.parse_list(TK_RPAREN, self.parse_parameter)
        if params is None:
            return None
        body = self._expect_block()
        if body is None:
            return None
        return FunctionLiteral(tok, params, body)

    def parse_parameter(self) -> Identifier | None:
        if not self.cur_is(TK_IDENT):
            self.error_at(self.cur, "expected identifier, got " + _describe(self.cur))
            return None
        return Identifier(self.cur, self.cur.value)

    def parse_array_literal(self) -> ArrayLiteral | None:
        tok = self.cur
        elements = self.parse_list(TK_RBRACKET, self._parse_list_item)
        if elements is None:
            return None
        return ArrayLiteral(tok, elements)

    def parse_hash_literal(self) -> HashLiteral | None:
        """Hash = '{' ( Expr ':' Expr ( ',' Expr ':' Expr )* ','? )? '}'"""
        tok = self.cur
        pairs: list[tuple[Expression, Expression]] = []
        while not self.peek_is(TK_RBRACE):
            self.advance()
            key = self.parse_expression(LOWEST)
            if key is None or not self.expect_peek(TK_COLON):
                return None
            self.advance()
            value = self.parse_expression(LOWEST)
            if value is None:
                return None
            pairs.append((key, value))
            if not self.peek_is(TK_RBRACE) and not self.expect_peek(TK_COMMA):
                return None
        self.advance()
        return HashLiteral(tok, pairs)

    def parse_call_expression(self, function: Expression) -> CallExpression | None:
        tok = self.cur
        args = self.parse_list(TK_RPAREN, self._parse_list_item)
        if args is None:
            return None
        return CallExpression(tok, function, args)

    def parse_index_expression(self, left: Expression) -> IndexExpression | None:
        tok = self.cur
        self.advance()
        index = self.parse_expression(LOWEST)
        if index is None or not self.expect_peek(TK_RBRACKET):
            return None
        return IndexExpression(tok, left, index)

    def _parse_list_item(self) -> Expression | None:
        return self.parse_expression(LOWEST)

    def parse_list(self, end: str, parse_item: Callable[[], T | None]) -> list[T] | None:
        """List = ( Item ( ',' Item )* )? end (current token is the opener)"""
        items: list[T] = []
        if self.peek_is(end):
            self.advance()
            return items
        self.advance()
        item = parse_item()
        if item is None:
            return None
        items.append(item)
        while self.peek_is(TK_COMMA):
            self.advance()
            self.advance()
            item = parse_item()
            if item is None:
                return None
            items.append(item)
        if not self.expect_peek(end):
            return None
        return items


def parse(source: str) -> tuple[Program, list[ParseError]]:
    """Parse FroLang source. Returns the program and any syntax errors."""
    parser = Parser(Lexer(source))
    try:
        program = parser.parse_program()
    except RecursionError:
        logger.debug("recursion limit reached while parsing")
        parser.error_at(parser.cur, "expression nested too deeply")
        program = Program()
    return program, parser.errors
