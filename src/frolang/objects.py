"""FroLang runtime values: the closed set the evaluator produces."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from .ast import BlockStatement, Identifier

if TYPE_CHECKING:
    from .environment import Environment
    from .runtime import Evaluator


# ============================================================
# Type names
# ============================================================

INTEGER = "INTEGER"
FLOAT = "FLOAT"
STRING = "STRING"
BOOLEAN = "BOOLEAN"
ARRAY = "ARRAY"
HASH = "HASH"
NULL_TYPE = "NULL"
FUNCTION = "FUNCTION"
BUILTIN = "BUILTIN"
ERROR = "ERROR"
RETURN_VALUE = "RETURN_VALUE"
BREAK = "BREAK"
CONTINUE = "CONTINUE"

# Hash key kind shared by integers and floats, so 2 and 2.0 collide
NUMBER_KEY = "NUMBER"

_MASK64 = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_FNV_OFFSET = 0xCBF29CE484222325
_FNV_PRIME = 0x100000001B3


def fnv1a_64(data: bytes) -> int:
    h = _FNV_OFFSET
    for b in data:
        h ^= b
        h = (h * _FNV_PRIME) & _MASK64
    return h


@dataclass(frozen=True)
class HashKey:
    """Canonical {kind, 64-bit hash} identity of a hashable value."""

    kind: str
    value: int


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def type_name(self) -> str:
        raise NotImplementedError

    def inspect(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.inspect()


class Hashable(Value):
    """A value usable as a hash key."""

    def hash_key(self) -> HashKey:
        raise NotImplementedError


class Iterable(Value):
    """A value a for loop can walk."""

    def iter_elements(self) -> list[Value]:
        raise NotImplementedError


@dataclass
class Integer(Hashable):
    value: int

    def type_name(self) -> str:
        return INTEGER

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(NUMBER_KEY, self.value & _MASK64)


@dataclass
class Float(Hashable):
    value: float

    def type_name(self) -> str:
        return FLOAT

    def inspect(self) -> str:
        return repr(self.value)

    def hash_key(self) -> HashKey:
        # Whole floats in int64 range share the Integer key; others keep their own kind
        if self.value.is_integer() and _INT64_MIN <= self.value <= _INT64_MAX:
            return HashKey(NUMBER_KEY, int(self.value) & _MASK64)
        bits = int.from_bytes(struct.pack(">d", self.value), "big")
        return HashKey(FLOAT, bits)


@dataclass
class String(Hashable, Iterable):
    value: str

    def type_name(self) -> str:
        return STRING

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(STRING, fnv1a_64(self.value.encode("utf-8")))

    def iter_elements(self) -> list[Value]:
        return [String(ch) for ch in self.value]


class Boolean(Hashable):
    """Exactly two instances exist: TRUE and FALSE."""

    __slots__ = ("value",)

    def __init__(self, value: bool):
        self.value: bool = value

    def __repr__(self) -> str:
        return "Boolean(" + self.inspect() + ")"

    def type_name(self) -> str:
        return BOOLEAN

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(BOOLEAN, 1 if self.value else 0)


class Null(Value):
    """Exactly one instance exists: NULL."""

    def __repr__(self) -> str:
        return "Null()"

    def type_name(self) -> str:
        return NULL_TYPE

    def inspect(self) -> str:
        return "null"


TRUE = Boolean(True)
FALSE = Boolean(False)
NULL = Null()


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


@dataclass(eq=False)
class Array(Iterable):
    """Ordered elements; operations build new arrays instead of mutating."""

    elements: list[Value] = field(default_factory=list)

    def type_name(self) -> str:
        return ARRAY

    def inspect(self) -> str:
        return "[" + ", ".join(e.inspect() for e in self.elements) + "]"

    def iter_elements(self) -> list[Value]:
        return list(self.elements)


@dataclass
class HashPair:
    key: Value
    value: Value


@dataclass(eq=False)
class Hash(Iterable):
    """Insertion-ordered mapping from HashKey to the original key/value pair."""

    pairs: dict[HashKey, HashPair] = field(default_factory=dict)

    def type_name(self) -> str:
        return HASH

    def inspect(self) -> str:
        items = [p.key.inspect() + ": " + p.value.inspect() for p in self.pairs.values()]
        return "{" + ", ".join(items) + "}"

    def iter_elements(self) -> list[Value]:
        return [p.key for p in self.pairs.values()]


@dataclass(eq=False)
class Function(Value):
    """A closure: parameters, body, and the environment it was defined in."""

    parameters: list[Identifier]
    body: BlockStatement
    env: Environment
    name: str = ""

    def type_name(self) -> str:
        return FUNCTION

    def inspect(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return "fn(" + params + ") " + self.body.string()


@dataclass(eq=False)
class Builtin(Value):
    name: str
    fn: Callable[[Evaluator, list[Value]], Value]

    def type_name(self) -> str:
        return BUILTIN

    def inspect(self) -> str:
        return "builtin function " + self.name


@dataclass(eq=False)
class Error(Value):
    """A runtime error.

    Errors propagate while raised is set. The copy bound by a catch clause
    has raised cleared, so it can be passed around like any other value.
    """

    message: str
    raised: bool = True

    def type_name(self) -> str:
        return ERROR

    def inspect(self) -> str:
        return "ERROR: " + self.message

    def caught(self) -> Error:
        return Error(self.message, raised=False)


# ============================================================
# Control flow signals (internal)
# ============================================================


@dataclass(eq=False)
class ReturnSignal(Value):
    """Unwinds to the nearest function call boundary."""

    value: Value

    def type_name(self) -> str:
        return RETURN_VALUE

    def inspect(self) -> str:
        return self.value.inspect()


class BreakSignal(Value):
    def type_name(self) -> str:
        return BREAK

    def inspect(self) -> str:
        return "break"


class ContinueSignal(Value):
    def type_name(self) -> str:
        return CONTINUE

    def inspect(self) -> str:
        return "continue"


BREAK_SIGNAL = BreakSignal()
CONTINUE_SIGNAL = ContinueSignal()


def is_error(v: Value | None) -> bool:
    return isinstance(v, Error) and v.raised


def is_signal(v: Value | None) -> bool:
    """True for anything that must stop a statement sequence."""
    return isinstance(v, (ReturnSignal, BreakSignal, ContinueSignal)) or is_error(v)


def is_truthy(v: Value) -> bool:
    if isinstance(v, Boolean):
        return v.value
    if isinstance(v, (Integer, Float)):
        return v.value != 0
    if isinstance(v, String):
        return v.value != ""
    if isinstance(v, Array):
        return len(v.elements) > 0
    if isinstance(v, Hash):
        return len(v.pairs) > 0
    return False
