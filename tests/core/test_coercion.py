# tests/core/test_coercion.py
import pytest

from tiny_console.core.command_registry import Param, ParamType
from tiny_console.core.errors import ArgumentTypeError, ArityMismatch
from tiny_console.core.services.coercion_service import (
    Vector2,
    Vector3,
    arity_bounds,
    coerce,
    greedy_value,
    parse_bool,
    parse_int,
)


@pytest.mark.parametrize("raw, expected", [
    ("true", True), ("TRUE", True), ("1", True), ("yes", True),
    ("false", False), ("0", False), ("No", False),
])
def test_parse_bool_accepts_word_variants(raw, expected):
    assert parse_bool(raw) is expected


def test_parse_bool_rejects_anything_else():
    with pytest.raises(ValueError):
        parse_bool("maybe")


@pytest.mark.parametrize("raw, expected", [
    ("42", 42), ("-7", -7), ("0x1F", 31), ("0X1f", 31), ("-0x10", -16), ("+0x10", 16),
])
def test_parse_int_decimal_and_hex(raw, expected):
    assert parse_int(raw) == expected


@pytest.mark.parametrize("raw", ["1.5", "abc", "0x", "0xZZ"])
def test_parse_int_rejects_non_integers(raw):
    with pytest.raises(ValueError):
        parse_int(raw)


def test_coerce_scalars():
    params = [
        Param("flag", ParamType.BOOL),
        Param("count", ParamType.INT),
        Param("scale", ParamType.FLOAT),
        Param("label", ParamType.TEXT),
    ]
    assert coerce(["yes", "0x0A", "1e3", "hello world"], params) == [True, 10, 1000.0, "hello world"]


def test_coerce_vector_consumes_one_token_per_component():
    params = [Param("pos", ParamType.VECTOR3), Param("speed", ParamType.INT)]
    values = coerce(["1", "2.5", "-3", "9"], params)
    assert values == [Vector3(1.0, 2.5, -3.0), 9]
    assert values[0].z == -3.0


def test_coerce_missing_arguments():
    params = [Param("a", ParamType.FLOAT), Param("b", ParamType.FLOAT)]
    with pytest.raises(ArityMismatch) as exc_info:
        coerce(["2"], params)
    assert str(exc_info.value) == "Missing arguments. Expected 2 value(s), got 1."


def test_coerce_too_many_arguments():
    params = [Param("a", ParamType.FLOAT), Param("b", ParamType.FLOAT, default=1.0)]
    with pytest.raises(ArityMismatch) as exc_info:
        coerce(["1", "2", "3"], params)
    assert str(exc_info.value) == "Too many arguments. Expected 1-2 value(s), got 3."


def test_coerce_vector_cut_short():
    with pytest.raises(ArityMismatch):
        coerce(["1", "2"], [Param("pos", ParamType.VECTOR3)])


def test_argument_type_error_reports_position():
    params = [Param("a", ParamType.FLOAT), Param("b", ParamType.INT)]
    with pytest.raises(ArgumentTypeError) as exc_info:
        coerce(["2", "x"], params)
    error = exc_info.value
    assert (error.index, error.expected, error.raw) == (1, "int", "x")
    assert str(error) == 'Argument 2: expected int, got "x".'


def test_argument_type_error_inside_vector_points_at_component():
    params = [Param("flag", ParamType.BOOL), Param("pos", ParamType.VECTOR2)]
    with pytest.raises(ArgumentTypeError) as exc_info:
        coerce(["true", "1", "up"], params)
    assert exc_info.value.index == 2
    assert exc_info.value.expected == "vector2"


def test_omitted_trailing_params_take_defaults():
    params = [
        Param("name", ParamType.TEXT),
        Param("count", ParamType.INT, default=3),
        Param("at", ParamType.VECTOR2, default=Vector2(0.0, 0.0)),
    ]
    assert coerce(["goblin"], params) == ["goblin", 3, Vector2(0.0, 0.0)]
    assert coerce(["goblin", "5"], params) == ["goblin", 5, Vector2(0.0, 0.0)]


def test_greedy_text_joins_the_rest_of_the_line():
    params = [Param("target", ParamType.TEXT), Param("message", ParamType.TEXT, default="", greedy=True)]
    assert coerce(["bob", "see", "you", "soon"], params) == ["bob", "see you soon"]
    assert coerce(["bob"], params) == ["bob", ""]


def test_arity_bounds():
    assert arity_bounds([]) == (0, 0)
    assert arity_bounds([Param("v", ParamType.VECTOR4), Param("n", ParamType.INT, default=0)]) == (4, 5)
    assert arity_bounds([Param("rest", ParamType.TEXT, greedy=True)]) == (1, -1)


def test_no_params_accepts_no_tokens():
    assert coerce([], []) == []
    with pytest.raises(ArityMismatch):
        coerce(["extra"], [])


def test_greedy_text_takes_the_raw_tail_verbatim():
    """Quotes inside the tail reach the handler untouched."""
    params = [Param("expression", ParamType.TEXT, greedy=True)]
    tokens = ["say(hello", "world)"]
    tails = ['say("hello world")', 'world")']
    assert coerce(tokens, params, tails) == ['say("hello world")']


def test_greedy_single_quoted_token_loses_its_outer_quotes():
    params = [Param("target", ParamType.TEXT), Param("message", ParamType.TEXT, greedy=True)]
    assert coerce(["bob", "see   you"], params, ['bob "see   you"', '"see   you"']) == ["bob", "see   you"]


def test_greedy_value_without_tails_requotes():
    assert greedy_value(["set_name", "John Smith"], 0) == 'set_name "John Smith"'
    assert greedy_value(["set_name", "John Smith"], 1) == "John Smith"
