"""Tests for the builtin function table."""

import io

import pytest

from frolang import run
from frolang.builtins import BUILTINS
from frolang.objects import is_error


def _inspect(source: str) -> str:
    result = run(source, stdout=io.StringIO())
    assert result is not None
    assert not is_error(result), result.inspect()
    return result.inspect()


def _error(source: str) -> str:
    result = run(source, stdout=io.StringIO())
    assert is_error(result), "expected an error, got " + repr(result)
    return result.message


def test_table_is_complete():
    assert set(BUILTINS) == {
        "print",
        "type",
        "str",
        "len",
        "reversed",
        "slice",
        "range",
        "lower",
        "upper",
        "split",
        "join",
        "push",
        "unshift",
        "pop",
        "shift",
        "keys",
        "values",
        "delete",
    }


@pytest.mark.parametrize(
    "source,expected",
    [
        ("type(1)", "INTEGER"),
        ("type(1.5)", "FLOAT"),
        ('type("")', "STRING"),
        ("type([])", "ARRAY"),
        ("type({})", "HASH"),
        ("type(len)", "BUILTIN"),
        ("type(fn() {})", "FUNCTION"),
        ("str([1, 2])", "[1, 2]"),
        ('len("héllo")', "5"),
        ("len([1, 2, 3])", "3"),
        ('len({"a": 1})', "1"),
        ('reversed("abc")', "cba"),
        ("reversed([1, 2, 3])", "[3, 2, 1]"),
        ("slice([1, 2, 3, 4], 1, 3)", "[2, 3]"),
        ('slice("hello", 1, 100)', "ello"),
        ("range(2, 5)", "[2, 3, 4]"),
        ("range(3, 3)", "[]"),
        ('lower("AbC")', "abc"),
        ('upper("AbC")', "ABC"),
        ('split("abc")', "[a, b, c]"),
        ("join([1, 2, 3])", "1, 2, 3"),
        ('join(["a", "b"], "-")', "a-b"),
        ("push([1], 2, 3)", "[1, 2, 3]"),
        ("unshift([3], 1, 2)", "[1, 2, 3]"),
        ("pop([1, 2, 3])", "[1, 2]"),
        ("shift([1, 2, 3])", "[2, 3]"),
        ('keys({"b": 1, "a": 2})', "[b, a]"),
        ('values({"b": 1, "a": 2})', "[1, 2]"),
        ('delete({"a": 1, "b": 2}, "a")', "{b: 2}"),
        ('delete({"a": 1}, "zzz")', "{a: 1}"),
    ],
)
def test_builtin_results(source, expected):
    assert _inspect(source) == expected


def test_collection_builtins_do_not_mutate():
    source = """
    let xs = [1, 2];
    let ys = push(xs, 3);
    let h = {"a": 1};
    let g = delete(h, "a");
    [len(xs), len(ys), len(h), len(g)]
    """
    assert _inspect(source) == "[2, 3, 1, 0]"


@pytest.mark.parametrize(
    "source,message",
    [
        ("len()", "wrong number of arguments to len: got 0, want 1"),
        ("len(1)", "argument to len must be STRING, ARRAY or HASH, got INTEGER"),
        ("join()", "wrong number of arguments to join: got 0, want 1 or 2"),
        ("push([])", "wrong number of arguments to push: got 1, want at least 2"),
        ('join([1], 2)', "separator for join must be STRING, got INTEGER"),
        ('slice([1], "a", 1)', "slice bounds must be INTEGER, got STRING and INTEGER"),
        (
            "slice([1, 2, 3], 2, 1)",
            "slice needs 0 <= start <= length and start <= end, got start=2, end=1",
        ),
        ("range(5, 1)", "range needs end >= start, got start=5, end=1"),
        ("range(1.0, 2)", "range bounds must be INTEGER, got FLOAT and INTEGER"),
        ("pop([])", "cannot pop from an empty array"),
        ("shift([])", "cannot shift from an empty array"),
        ("delete({}, [])", "unhashable key: ARRAY"),
        ("keys([])", "argument to keys must be HASH, got ARRAY"),
        ("upper(1)", "argument to upper must be STRING, got INTEGER"),
    ],
)
def test_builtin_errors(source, message):
    assert _error(source) == message
