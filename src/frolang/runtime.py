"""FroLang evaluator: walks the AST against a chain of environments.

Errors are values: a raised Error, a ReturnSignal, and the break/continue
signals all travel back through the ordinary return value of eval(), and every
caller checks for them before doing anything else. Python exceptions are kept
for the host boundary (syntax errors surfaced by run(), recursion exhaustion).
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from .ast import (
    ArrayLiteral,
    AssignExpression,
    BlockStatement,
    BooleanLiteral,
    BreakStatement,
    CallExpression,
    ContinueStatement,
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
    Node,
    PrefixExpression,
    Program,
    ReturnStatement,
    StringLiteral,
    TryStatement,
    WhileStatement,
)
from .builtins import BUILTINS
from .environment import Environment
from .objects import (
    BREAK_SIGNAL,
    CONTINUE_SIGNAL,
    FALSE,
    NULL,
    TRUE,
    Array,
    Builtin,
    Error,
    Float,
    Function,
    Hash,
    Hashable,
    HashKey,
    HashPair,
    Integer,
    Iterable,
    ReturnSignal,
    String,
    Value,
    is_error,
    is_signal,
    is_truthy,
    native_bool,
)
from .parse import ParseError, parse
from .tokens import Token

logger = logging.getLogger(__name__)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


# ============================================================
# Diagnostics
# ============================================================


class FrolangError(Exception):
    """Base error for FroLang host-level failures."""

    def __init__(self, msg: str, tok: Token | None = None):
        if tok is None:
            super().__init__(msg)
        else:
            super().__init__(msg + " at " + tok.location())
        self.msg = msg
        self.tok = tok


class FrolangSyntaxError(FrolangError):
    """Source failed to parse; holds every collected ParseError."""

    def __init__(self, errors: list[ParseError]):
        super().__init__("; ".join(str(e) for e in errors))
        self.errors = errors


class FrolangFault(FrolangError):
    """Fatal, uncatchable failure such as host recursion exhaustion."""


# ============================================================
# Helpers
# ============================================================


def _wrap_int64(v: int) -> int:
    if _INT64_MIN <= v <= _INT64_MAX:
        return v
    return ((v - _INT64_MIN) & ((1 << 64) - 1)) + _INT64_MIN


def _int_divmod_trunc(a: int, b: int) -> tuple[int, int]:
    if b == 0:
        raise ZeroDivisionError
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    r = a - q * b
    return (q, r)


def values_equal(a: Value, b: Value) -> bool:
    """Language-level ==: numbers by value, strings by content, else identity."""
    if isinstance(a, (Integer, Float)) and isinstance(b, (Integer, Float)):
        return a.value == b.value
    if isinstance(a, String) and isinstance(b, String):
        return a.value == b.value
    return a is b


def _located(msg: str, tok: Token) -> Error:
    return Error(msg + " at " + tok.location())


def _loop_escape(v: Value | None) -> Error | None:
    if v is BREAK_SIGNAL:
        return Error("break outside of a loop")
    if v is CONTINUE_SIGNAL:
        return Error("continue outside of a loop")
    return None


# ============================================================
# Evaluator
# ============================================================


class Evaluator:
    """Tree-walking evaluator. Each instance owns its builtin table."""

    def __init__(self, stdout: TextIO | None = None) -> None:
        self.stdout: TextIO = stdout if stdout is not None else sys.stdout
        self.builtins: dict[str, Builtin] = {
            name: Builtin(name, fn) for name, fn in BUILTINS.items()
        }

    # ---- Entry points ------------------------------------------------------

    def eval_program(self, program: Program, env: Environment) -> Value | None:
        """Run a program. Returns its last value, an Error, or None."""
        logger.debug("evaluating %d statements", len(program.statements))
        try:
            result: Value | None = None
            for st in program.statements:
                result = self.eval(st, env)
                if isinstance(result, ReturnSignal):
                    return result.value
                if is_error(result):
                    return result
                escaped = _loop_escape(result)
                if escaped is not None:
                    return escaped
            return result
        except RecursionError as e:
            logger.debug("recursion limit reached")
            raise FrolangFault("maximum recursion depth exceeded") from e

    def eval(self, node: Node, env: Environment) -> Value | None:
        # Statements
        if isinstance(node, ExpressionStatement):
            return self.eval(node.expression, env)

        if isinstance(node, LetStatement):
            val = self.eval_value(node.value, env)
            if is_signal(val):
                return val
            env.bind(node.name.value, val)
            return None

        if isinstance(node, ReturnStatement):
            if node.value is None:
                return ReturnSignal(NULL)
            val = self.eval_value(node.value, env)
            if is_signal(val):
                return val
            return ReturnSignal(val)

        if isinstance(node, BlockStatement):
            return self.eval_block(node, env)

        if isinstance(node, ForStatement):
            return self._eval_for(node, env)

        if isinstance(node, WhileStatement):
            return self._eval_while(node, env)

        if isinstance(node, BreakStatement):
            return BREAK_SIGNAL

        if isinstance(node, ContinueStatement):
            return CONTINUE_SIGNAL

        if isinstance(node, TryStatement):
            return self._eval_try(node, env)

        # Expressions
        if isinstance(node, IntegerLiteral):
            return Integer(node.value)

        if isinstance(node, FloatLiteral):
            return Float(node.value)

        if isinstance(node, StringLiteral):
            return String(node.value)

        if isinstance(node, BooleanLiteral):
            return native_bool(node.value)

        if isinstance(node, Identifier):
            return self._eval_identifier(node, env)

        if isinstance(node, PrefixExpression):
            right = self.eval_value(node.right, env)
            if is_signal(right):
                return right
            return self._eval_prefix(node.operator, right)

        if isinstance(node, InfixExpression):
            left = self.eval_value(node.left, env)
            if is_signal(left):
                return left
            right = self.eval_value(node.right, env)
            if is_signal(right):
                return right
            return self.eval_infix(node.operator, left, right)

        if isinstance(node, AssignExpression):
            val = self.eval_value(node.value, env)
            if is_signal(val):
                return val
            if not env.set(node.name.value, val):
                return _located("identifier not defined: " + node.name.value, node.token)
            return val

        if isinstance(node, IfExpression):
            cond = self.eval_value(node.condition, env)
            if is_signal(cond):
                return cond
            if is_truthy(cond):
                result = self.eval_block(node.consequence, env)
            elif node.alternative is not None:
                result = self.eval_block(node.alternative, env)
            else:
                return NULL
            return NULL if result is None else result

        if isinstance(node, FunctionLiteral):
            return Function(node.parameters, node.body, env, node.name)

        if isinstance(node, CallExpression):
            fn = self.eval_value(node.function, env)
            if is_signal(fn):
                return fn
            args: list[Value] = []
            for a in node.arguments:
                val = self.eval_value(a, env)
                if is_signal(val):
                    return val
                args.append(val)
            return self.apply_function(fn, args)

        if isinstance(node, ArrayLiteral):
            elements: list[Value] = []
            for e in node.elements:
                val = self.eval_value(e, env)
                if is_signal(val):
                    return val
                elements.append(val)
            return Array(elements)

        if isinstance(node, HashLiteral):
            return self._eval_hash_literal(node, env)

        if isinstance(node, IndexExpression):
            left = self.eval_value(node.left, env)
            if is_signal(left):
                return left
            index = self.eval_value(node.index, env)
            if is_signal(index):
                return index
            return self.eval_index(left, index)

        return Error("unsupported node: " + type(node).__name__)

    def eval_value(self, node: Node, env: Environment) -> Value:
        """Evaluate where a value is required; no value reads as null."""
        val = self.eval(node, env)
        if val is None:
            return NULL
        return val

    # ---- Statements --------------------------------------------------------

    def eval_block(self, block: BlockStatement, env: Environment) -> Value | None:
        result: Value | None = None
        for st in block.statements:
            result = self.eval(st, env)
            if is_signal(result):
                return result
        return result

    def _eval_for(self, st: ForStatement, env: Environment) -> Value | None:
        it = self.eval_value(st.iterable, env)
        if is_signal(it):
            return it
        if not isinstance(it, Iterable):
            return Error("not iterable: " + it.type_name())
        loop_env = env.enclosed()
        for element in it.iter_elements():
            loop_env.bind(st.variable.value, element)
            result = self.eval_block(st.body, loop_env)
            if result is BREAK_SIGNAL:
                break
            if result is CONTINUE_SIGNAL:
                continue
            if is_signal(result):
                return result
        return None

    def _eval_while(self, st: WhileStatement, env: Environment) -> Value | None:
        loop_env = env.enclosed()
        while True:
            cond = self.eval_value(st.condition, loop_env)
            if is_signal(cond):
                return cond
            if not is_truthy(cond):
                return None
            result = self.eval_block(st.body, loop_env)
            if result is BREAK_SIGNAL:
                return None
            if result is CONTINUE_SIGNAL:
                continue
            if is_signal(result):
                return result

    def _eval_try(self, st: TryStatement, env: Environment) -> Value | None:
        result = self.eval_block(st.body, env)
        if isinstance(result, Error) and result.raised:
            logger.debug("caught error: %s", result.message)
            catch_env = env.enclosed()
            catch_env.bind(st.error_name.value, result.caught())
            result = self.eval_block(st.catch_body, catch_env)
        if st.finally_body is not None:
            fin = self.eval_block(st.finally_body, env)
            if is_signal(fin):
                return fin
        return result

    # ---- Expressions -------------------------------------------------------

    def _eval_identifier(self, node: Identifier, env: Environment) -> Value:
        val = env.get(node.value)
        if val is not None:
            return val
        builtin = self.builtins.get(node.value)
        if builtin is not None:
            return builtin
        return _located("identifier not found: " + node.value, node.token)

    def _eval_prefix(self, op: str, right: Value) -> Value:
        if op == "!":
            return native_bool(not is_truthy(right))
        if op == "-":
            if isinstance(right, Integer):
                return Integer(_wrap_int64(-right.value))
            if isinstance(right, Float):
                return Float(-right.value)
            return Error("invalid operand: -" + right.type_name())
        return Error("unknown operator: " + op + right.type_name())

    def eval_infix(self, op: str, left: Value, right: Value) -> Value:
        # Eager: both operands are already evaluated
        if op == "&":
            return native_bool(is_truthy(left) and is_truthy(right))
        if op == "|":
            return native_bool(is_truthy(left) or is_truthy(right))
        if op == "in":
            return self._eval_in(left, right)
        if isinstance(left, (Integer, Float)) and isinstance(right, (Integer, Float)):
            return self._eval_numeric(op, left, right)
        if isinstance(left, String) and isinstance(right, String):
            return self._eval_string(op, left, right)
        if op == "==":
            return native_bool(values_equal(left, right))
        if op == "!=":
            return native_bool(not values_equal(left, right))
        desc = left.type_name() + " " + op + " " + right.type_name()
        if left.type_name() != right.type_name():
            return Error("type mismatch: " + desc)
        return Error("unknown operator: " + desc)

    def _eval_numeric(self, op: str, left: Integer | Float, right: Integer | Float) -> Value:
        if isinstance(left, Integer) and isinstance(right, Integer):
            a = left.value
            b = right.value
            if op == "+":
                return Integer(_wrap_int64(a + b))
            if op == "-":
                return Integer(_wrap_int64(a - b))
            if op == "*":
                return Integer(_wrap_int64(a * b))
            if op == "/":
                try:
                    q, _ = _int_divmod_trunc(a, b)
                except ZeroDivisionError:
                    return Error("division by zero")
                return Integer(_wrap_int64(q))
        else:
            x = float(left.value)
            y = float(right.value)
            if op == "+":
                return Float(x + y)
            if op == "-":
                return Float(x - y)
            if op == "*":
                return Float(x * y)
            if op == "/":
                if y == 0:
                    return Error("division by zero")
                return Float(x / y)
        lv = left.value
        rv = right.value
        if op == "<":
            return native_bool(lv < rv)
        if op == "<=":
            return native_bool(lv <= rv)
        if op == ">":
            return native_bool(lv > rv)
        if op == ">=":
            return native_bool(lv >= rv)
        if op == "==":
            return native_bool(lv == rv)
        if op == "!=":
            return native_bool(lv != rv)
        return Error(
            "unknown operator: " + left.type_name() + " " + op + " " + right.type_name()
        )

    def _eval_string(self, op: str, left: String, right: String) -> Value:
        if op == "+":
            return String(left.value + right.value)
        if op == "==":
            return native_bool(left.value == right.value)
        if op == "!=":
            return native_bool(left.value != right.value)
        return Error("unknown operator: STRING " + op + " STRING")

    def _eval_in(self, needle: Value, haystack: Value) -> Value:
        if isinstance(haystack, Hash):
            if not isinstance(needle, Hashable):
                return FALSE
            return native_bool(needle.hash_key() in haystack.pairs)
        if isinstance(haystack, Iterable):
            for element in haystack.iter_elements():
                if values_equal(needle, element):
                    return TRUE
            return FALSE
        return Error("invalid operand: in " + haystack.type_name())

    def _eval_hash_literal(self, node: HashLiteral, env: Environment) -> Value:
        pairs: dict[HashKey, HashPair] = {}
        for key_node, value_node in node.pairs:
            key = self.eval_value(key_node, env)
            if is_signal(key):
                return key
            if not isinstance(key, Hashable):
                return Error("unhashable key: " + key.type_name())
            val = self.eval_value(value_node, env)
            if is_signal(val):
                return val
            pairs[key.hash_key()] = HashPair(key, val)
        return Hash(pairs)

    def eval_index(self, left: Value, index: Value) -> Value:
        if isinstance(left, Array) and isinstance(index, Integer):
            i = index.value
            if 0 <= i < len(left.elements):
                return left.elements[i]
            return NULL
        if isinstance(left, String) and isinstance(index, Integer):
            i = index.value
            if 0 <= i < len(left.value):
                return String(left.value[i])
            return NULL
        if isinstance(left, Hash):
            if not isinstance(index, Hashable):
                return Error("unhashable key: " + index.type_name())
            pair = left.pairs.get(index.hash_key())
            if pair is None:
                return NULL
            return pair.value
        return Error(
            "index operation not supported: "
            + left.type_name()
            + "["
            + index.type_name()
            + "]"
        )

    # ---- Functions ---------------------------------------------------------

    def apply_function(self, fn: Value, args: list[Value]) -> Value:
        if isinstance(fn, Function):
            if len(args) != len(fn.parameters):
                return Error(
                    "wrong number of arguments: got "
                    + str(len(args))
                    + ", want "
                    + str(len(fn.parameters))
                )
            call_env = fn.env.enclosed()
            for param, arg in zip(fn.parameters, args):
                call_env.bind(param.value, arg)
            result = self.eval_block(fn.body, call_env)
            if isinstance(result, ReturnSignal):
                return result.value
            if result is None:
                return NULL
            escaped = _loop_escape(result)
            if escaped is not None:
                return escaped
            return result
        if isinstance(fn, Builtin):
            return fn.fn(self, args)
        return Error("not a function: " + fn.type_name())


# ============================================================
# Top level
# ============================================================


def new_environment() -> Environment:
    return Environment()


def run(
    source: str,
    *,
    env: Environment | None = None,
    stdout: TextIO | None = None,
) -> Value | None:
    """Parse and evaluate FroLang source.

    Raises FrolangSyntaxError if the source does not parse. Runtime errors
    come back as Error values, not exceptions.
    """
    program, errors = parse(source)
    if errors:
        raise FrolangSyntaxError(errors)
    evaluator = Evaluator(stdout)
    return evaluator.eval_program(program, env if env is not None else new_environment())
