from __future__ import annotations

from templet.decode import DeferredLookup, decode, resolve_operand
from templet.models import UNDEFINED


def test_decode_keywords() -> None:
    assert decode("null") is None
    assert decode("undefined") is UNDEFINED
    assert decode("true") is True
    assert decode("false") is False


def test_decode_quoted_strings() -> None:
    assert decode("'abc'") == "abc"
    assert decode('"a b"') == "a b"
    assert decode("`x`") == "x"
    assert decode("''") == ""


def test_decode_quoted_numeral_stays_string() -> None:
    assert decode('"5"') == "5"
    assert decode("5") == 5


def test_decode_numbers() -> None:
    assert decode("-2.5") == -2.5
    assert decode("1e2") == 100.0


def test_decode_falls_back_to_deferred_lookup() -> None:
    operand = decode("limits.max")

    assert operand == DeferredLookup("limits.max")
    assert operand({"limits": {"max": 9}}) == 9
    assert resolve_operand(operand, {}) is UNDEFINED


def test_decode_unbalanced_quote_is_a_path() -> None:
    assert decode('"abc') == DeferredLookup('"abc')


def test_resolve_operand_passes_literals_through() -> None:
    assert resolve_operand(5, {"x": 1}) == 5
    assert resolve_operand(None, {}) is None
