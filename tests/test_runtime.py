"""Tests for the evaluator entry points and host-level failure modes."""

import io
import sys

import pytest

from frolang import FrolangFault, FrolangSyntaxError, evaluate, run
from frolang.environment import Environment
from frolang.objects import NULL, Error, Function, Integer, is_error
from frolang.runtime import Evaluator, values_equal


def _eval(source: str):
    out = io.StringIO()
    result = run(source, stdout=out)
    return result, out.getvalue()


def test_result_is_last_statement_value():
    result, _ = _eval("let x = 2; x * 21")
    assert result == Integer(42)


def test_let_only_program_has_no_value():
    result, _ = _eval("let x = 1;")
    assert result is None


def test_top_level_return_unwraps():
    result, _ = _eval("return 7; 8")
    assert result == Integer(7)


def test_print_writes_to_evaluator_stdout():
    result, out = _eval('print("a", 1, [2]); print()')
    assert result is NULL
    assert out == "a 1 [2]\n\n"


def test_closures_capture_defining_scope():
    source = """
    let counter = fn() {
        let n = 0;
        fn() { n = n + 1; n }
    };
    let c = counter();
    c(); c();
    c()
    """
    result, _ = _eval(source)
    assert result == Integer(3)


def test_environment_persists_across_runs():
    env = Environment()
    evaluate("let x = 10;", env=env)
    assert evaluate("x + 1", env=env) == Integer(11)


def test_function_value_keeps_its_name():
    env = Environment()
    evaluate("let sq = fn(x) { x * x };", env=env)
    fn = env.get("sq")
    assert isinstance(fn, Function)
    assert fn.name == "sq"
    assert fn.inspect() == "fn(x) {\n(x * x);\n}"


def test_syntax_errors_raise():
    with pytest.raises(FrolangSyntaxError) as info:
        run("let = 1;")
    assert len(info.value.errors) >= 1
    assert "expected next token to be IDENT" in str(info.value)


def test_runtime_errors_are_values():
    result, _ = _eval('1 + "a"')
    assert is_error(result)
    assert result.message == "type mismatch: INTEGER + STRING"


def test_errors_stop_the_program():
    result, out = _eval('print("before"); missing; print("after")')
    assert is_error(result)
    assert result.message == "identifier not found: missing at line 1 col 18"
    assert out == "before\n"


def test_escaping_break_is_an_error():
    result, _ = _eval("break;")
    assert isinstance(result, Error)
    assert result.message == "break outside of a loop"


def test_escaping_continue_from_function_is_an_error():
    result, _ = _eval("let f = fn() { continue; }; f()")
    assert is_error(result)
    assert result.message == "continue outside of a loop"


def test_deep_recursion_is_fatal():
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(500)
    try:
        with pytest.raises(FrolangFault):
            run("let f = fn(n) { f(n + 1) }; f(0)")
    finally:
        sys.setrecursionlimit(limit)


def test_int64_wraparound():
    result, _ = _eval("9223372036854775807 + 1")
    assert result == Integer(-(1 << 63))


def test_integer_division_truncates_toward_zero():
    result, _ = _eval("-7 / 2")
    assert result == Integer(-3)


def test_division_by_zero():
    for source in ["1 / 0", "1.0 / 0", "1 / 0.0"]:
        result, _ = _eval(source)
        assert is_error(result)
        assert result.message == "division by zero"


def test_values_equal():
    assert values_equal(Integer(2), Integer(2))
    assert not values_equal(Integer(2), NULL)
    assert values_equal(NULL, NULL)


def test_each_evaluator_owns_its_builtins():
    a = Evaluator()
    b = Evaluator()
    assert a.builtins["len"] is not b.builtins["len"]
    assert a.builtins["len"].fn is b.builtins["len"].fn


def test_deep_nesting_raises_syntax_error():
    with pytest.raises(FrolangSyntaxError) as info:
        run("-" * 5000 + "1")
    assert "expression nested too deeply" in str(info.value)
