"""Tests for runtime values, hash keys, truthiness, and scopes."""

from frolang.environment import Environment
from frolang.objects import (
    FALSE,
    NULL,
    NUMBER_KEY,
    TRUE,
    Array,
    Error,
    Float,
    Hash,
    HashPair,
    Integer,
    String,
    fnv1a_64,
    is_error,
    is_signal,
    is_truthy,
    native_bool,
)


def test_fnv1a_64_reference_vectors():
    assert fnv1a_64(b"") == 0xCBF29CE484222325
    assert fnv1a_64(b"a") == 0xAF63DC4C8601EC8C


def test_integer_and_integral_float_share_a_key():
    assert Integer(2).hash_key() == Float(2.0).hash_key()
    assert Integer(2).hash_key().kind == NUMBER_KEY


def test_fractional_float_key_differs_from_integers():
    assert Float(2.5).hash_key() != Integer(2).hash_key()
    assert Float(2.5).hash_key() == Float(2.5).hash_key()


def test_string_keys_by_content():
    assert String("abc").hash_key() == String("abc").hash_key()
    assert String("abc").hash_key() != String("abd").hash_key()


def test_string_and_number_keys_never_collide():
    assert String("1").hash_key() != Integer(1).hash_key()


def test_boolean_keys():
    assert TRUE.hash_key() != FALSE.hash_key()
    assert native_bool(True) is TRUE


def test_truthiness():
    assert is_truthy(TRUE)
    assert not is_truthy(FALSE)
    assert not is_truthy(NULL)
    assert not is_truthy(Integer(0))
    assert is_truthy(Integer(-1))
    assert not is_truthy(Float(0.0))
    assert not is_truthy(String(""))
    assert is_truthy(String("x"))
    assert not is_truthy(Array([]))
    assert is_truthy(Array([NULL]))
    assert not is_truthy(Hash())


def test_inspect():
    assert Integer(-3).inspect() == "-3"
    assert Float(2.0).inspect() == "2.0"
    assert String("hi").inspect() == "hi"
    assert Array([Integer(1), String("a")]).inspect() == "[1, a]"
    assert NULL.inspect() == "null"
    assert Error("boom").inspect() == "ERROR: boom"


def test_hash_inspect_keeps_insertion_order():
    h = Hash()
    for key, val in [(String("b"), Integer(1)), (String("a"), Integer(2))]:
        h.pairs[key.hash_key()] = HashPair(key, val)
    assert h.inspect() == "{b: 1, a: 2}"
    assert [k.inspect() for k in h.iter_elements()] == ["b", "a"]


def test_caught_error_is_inert():
    err = Error("boom")
    assert is_error(err)
    assert is_signal(err)
    inert = err.caught()
    assert inert.message == "boom"
    assert not is_error(inert)
    assert not is_signal(inert)


def test_environment_chain():
    outer = Environment()
    outer.bind("x", Integer(1))
    inner = outer.enclosed()
    assert inner.get("x") == Integer(1)
    inner.bind("x", Integer(2))
    assert outer.get("x") == Integer(1)
    assert inner.get("missing") is None


def test_environment_set_rebinds_nearest_definition():
    outer = Environment()
    outer.bind("x", Integer(1))
    inner = outer.enclosed()
    assert inner.set("x", Integer(5))
    assert outer.get("x") == Integer(5)
    assert "x" not in inner.store
    assert not inner.set("y", Integer(0))
    assert inner.get("y") is None


def test_fractional_float_key_never_matches_an_integer():
    # 4602678819172646912 is the bit pattern of 0.5
    assert Float(0.5).hash_key() != Integer(4602678819172646912).hash_key()
    assert Float(0.5).hash_key().kind == "FLOAT"


def test_whole_float_beyond_int64_has_its_own_key():
    wrapped = 10000000000000000000 - (1 << 64)
    assert Float(1e19).hash_key() != Integer(wrapped).hash_key()
    assert Float(-9223372036854775808.0).hash_key() == Integer(-(1 << 63)).hash_key()
