"""FroLang built-in functions.

Each builtin takes the calling Evaluator and the already-evaluated argument
list and returns exactly one Value; misuse comes back as an Error value.
Collection builtins never mutate their arguments.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from .objects import (
    NULL,
    Array,
    Error,
    Hash,
    Hashable,
    Integer,
    String,
    Value,
)

if TYPE_CHECKING:
    from .runtime import Evaluator


def _arity(name: str, args: list[Value], *allowed: int) -> Error | None:
    if len(args) in allowed:
        return None
    want = " or ".join(str(n) for n in allowed)
    return Error(
        "wrong number of arguments to "
        + name
        + ": got "
        + str(len(args))
        + ", want "
        + want
    )


def _min_arity(name: str, args: list[Value], least: int) -> Error | None:
    if len(args) >= least:
        return None
    return Error(
        "wrong number of arguments to "
        + name
        + ": got "
        + str(len(args))
        + ", want at least "
        + str(least)
    )


def _bad_arg(name: str, expected: str, got: Value) -> Error:
    return Error("argument to " + name + " must be " + expected + ", got " + got.type_name())


# ============================================================
# General
# ============================================================


def _bi_print(rt: Evaluator, args: list[Value]) -> Value:
    rt.stdout.write(" ".join(a.inspect() for a in args) + "\n")
    return NULL


def _bi_type(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("type", args, 1)
    if err is not None:
        return err
    return String(args[0].type_name())


def _bi_str(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("str", args, 1)
    if err is not None:
        return err
    return String(args[0].inspect())


def _bi_len(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("len", args, 1)
    if err is not None:
        return err
    x = args[0]
    if isinstance(x, String):
        return Integer(len(x.value))
    if isinstance(x, Array):
        return Integer(len(x.elements))
    if isinstance(x, Hash):
        return Integer(len(x.pairs))
    return _bad_arg("len", "STRING, ARRAY or HASH", x)


def _bi_reversed(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("reversed", args, 1)
    if err is not None:
        return err
    x = args[0]
    if isinstance(x, String):
        return String(x.value[::-1])
    if isinstance(x, Array):
        return Array(x.elements[::-1])
    return _bad_arg("reversed", "STRING or ARRAY", x)


def _bi_slice(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("slice", args, 3)
    if err is not None:
        return err
    x, start_v, end_v = args
    if not isinstance(x, (String, Array)):
        return _bad_arg("slice", "STRING or ARRAY", x)
    if not isinstance(start_v, Integer) or not isinstance(end_v, Integer):
        return Error(
            "slice bounds must be INTEGER, got "
            + start_v.type_name()
            + " and "
            + end_v.type_name()
        )
    length = len(x.value) if isinstance(x, String) else len(x.elements)
    start = start_v.value
    end = min(end_v.value, length)
    if start < 0 or start > length or start > end:
        return Error(
            "slice needs 0 <= start <= length and start <= end, got start="
            + str(start)
            + ", end="
            + str(end)
        )
    if isinstance(x, String):
        return String(x.value[start:end])
    return Array(x.elements[start:end])


def _bi_range(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("range", args, 2)
    if err is not None:
        return err
    start_v, end_v = args
    if not isinstance(start_v, Integer) or not isinstance(end_v, Integer):
        return Error(
            "range bounds must be INTEGER, got "
            + start_v.type_name()
            + " and "
            + end_v.type_name()
        )
    if end_v.value < start_v.value:
        return Error(
            "range needs end >= start, got start="
            + str(start_v.value)
            + ", end="
            + str(end_v.value)
        )
    return Array([Integer(i) for i in range(start_v.value, end_v.value)])


# ============================================================
# Strings
# ============================================================


def _bi_lower(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("lower", args, 1)
    if err is not None:
        return err
    if not isinstance(args[0], String):
        return _bad_arg("lower", "STRING", args[0])
    return String(args[0].value.lower())


def _bi_upper(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("upper", args, 1)
    if err is not None:
        return err
    if not isinstance(args[0], String):
        return _bad_arg("upper", "STRING", args[0])
    return String(args[0].value.upper())


def _bi_split(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("split", args, 1)
    if err is not None:
        return err
    if not isinstance(args[0], String):
        return _bad_arg("split", "STRING", args[0])
    return Array(args[0].iter_elements())


def _bi_join(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("join", args, 1, 2)
    if err is not None:
        return err
    arr = args[0]
    if not isinstance(arr, Array):
        return _bad_arg("join", "ARRAY", arr)
    sep = ", "
    if len(args) == 2:
        if not isinstance(args[1], String):
            return Error("separator for join must be STRING, got " + args[1].type_name())
        sep = args[1].value
    return String(sep.join(e.inspect() for e in arr.elements))


# ============================================================
# Arrays
# ============================================================


def _bi_push(rt: Evaluator, args: list[Value]) -> Value:
    err = _min_arity("push", args, 2)
    if err is not None:
        return err
    if not isinstance(args[0], Array):
        return _bad_arg("push", "ARRAY", args[0])
    return Array(args[0].elements + args[1:])


def _bi_unshift(rt: Evaluator, args: list[Value]) -> Value:
    err = _min_arity("unshift", args, 2)
    if err is not None:
        return err
    if not isinstance(args[0], Array):
        return _bad_arg("unshift", "ARRAY", args[0])
    return Array(args[1:] + args[0].elements)


def _bi_pop(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("pop", args, 1)
    if err is not None:
        return err
    arr = args[0]
    if not isinstance(arr, Array):
        return _bad_arg("pop", "ARRAY", arr)
    if not arr.elements:
        return Error("cannot pop from an empty array")
    return Array(arr.elements[:-1])


def _bi_shift(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("shift", args, 1)
    if err is not None:
        return err
    arr = args[0]
    if not isinstance(arr, Array):
        return _bad_arg("shift", "ARRAY", arr)
    if not arr.elements:
        return Error("cannot shift from an empty array")
    return Array(arr.elements[1:])


# ============================================================
# Hashes
# ============================================================


def _bi_keys(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("keys", args, 1)
    if err is not None:
        return err
    if not isinstance(args[0], Hash):
        return _bad_arg("keys", "HASH", args[0])
    return Array(args[0].iter_elements())


def _bi_values(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("values", args, 1)
    if err is not None:
        return err
    if not isinstance(args[0], Hash):
        return _bad_arg("values", "HASH", args[0])
    return Array([p.value for p in args[0].pairs.values()])


def _bi_delete(rt: Evaluator, args: list[Value]) -> Value:
    err = _arity("delete", args, 2)
    if err is not None:
        return err
    h, key = args
    if not isinstance(h, Hash):
        return _bad_arg("delete", "HASH", h)
    if not isinstance(key, Hashable):
        return Error("unhashable key: " + key.type_name())
    drop = key.hash_key()
    return Hash({k: p for k, p in h.pairs.items() if k != drop})


BUILTINS: dict[str, Callable[[Evaluator, list[Value]], Value]] = {
    "print": _bi_print,
    "type": _bi_type,
    "str": _bi_str,
    "len": _bi_len,
    "reversed": _bi_reversed,
    "slice": _bi_slice,
    "range": _bi_range,
    "lower": _bi_lower,
    "upper": _bi_upper,
    "split": _bi_split,
    "join": _bi_join,
    "push": _bi_push,
    "unshift": _bi_unshift,
    "pop": _bi_pop,
    "shift": _bi_shift,
    "keys": _bi_keys,
    "values": _bi_values,
    "delete": _bi_delete,
}
