from __future__ import annotations

import pytest

from payload_binding.binding.primitives import (
    CoercionError,
    parse_bool,
    parse_float,
    parse_int,
    parse_uint,
    set_with_proper_type,
)
from payload_binding.binding.types import ErrorCode, FieldKind


def test_int_empty_string_is_zero() -> None:
    assert parse_int("") == 0
    assert parse_uint("") == 0


@pytest.mark.parametrize("raw, expected", [("42", 42), ("-12", -12), ("+7", 7), ("007", 7)])
def test_int_parses_base_10(raw: str, expected: int) -> None:
    assert parse_int(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "1.5", "1e3", " 1", "1_000", "0x10", "-"])
def test_int_rejects_non_integers(raw: str) -> None:
    """Whitespace, underscores and non base-10 forms are not integers."""
    with pytest.raises(CoercionError) as e:
        parse_int(raw)
    assert e.value.code == ErrorCode.integer_type
    assert e.value.detail == "Value could not be parsed as integer"


def test_int_respects_declared_width() -> None:
    assert parse_int("127", bits=8) == 127
    assert parse_int("-128", bits=8) == -128
    with pytest.raises(CoercionError):
        parse_int("128", bits=8)
    with pytest.raises(CoercionError):
        parse_int(str(1 << 63))


def test_uint_rejects_signs_and_overflow() -> None:
    assert parse_uint("255", bits=8) == 255
    for raw in ("-1", "+1", "256"):
        with pytest.raises(CoercionError) as e:
            parse_uint(raw, bits=8)
        assert e.value.detail == "Value could not be parsed as unsigned integer"


def test_bool_checkbox_and_literals() -> None:
    """`on` is the checkbox convention; empty is `false`."""
    assert parse_bool("on") is True
    assert parse_bool("") is False
    for raw in ("1", "t", "T", "TRUE", "true", "True"):
        assert parse_bool(raw) is True
    for raw in ("0", "f", "F", "FALSE", "false", "False"):
        assert parse_bool(raw) is False


@pytest.mark.parametrize("raw", ["notabool", "yes", "ON", "tRuE"])
def test_bool_rejects_other_literals(raw: str) -> None:
    with pytest.raises(CoercionError) as e:
        parse_bool(raw)
    assert e.value.code == ErrorCode.boolean_type


def test_float_parsing() -> None:
    assert parse_float("") == 0.0
    assert parse_float("1e3") == 1000.0
    assert parse_float("-.5") == -0.5
    assert parse_float("inf") == float("inf")


def test_float_rejects_garbage_with_width_in_message() -> None:
    with pytest.raises(CoercionError) as e:
        parse_float("abc")
    assert e.value.code == ErrorCode.float_type
    assert e.value.detail == "Value could not be parsed as 64-bit float"

    with pytest.raises(CoercionError) as e:
        parse_float("1 0", bits=32)
    assert e.value.detail == "Value could not be parsed as 32-bit float"


def test_float32_rounds_and_overflows() -> None:
    """Single precision: 0.1 is not representable, 1e39 does not fit."""
    assert parse_float("0.5", bits=32) == 0.5
    f = parse_float("0.1", bits=32)
    assert f != 0.1
    assert abs(f - 0.1) < 1e-7
    with pytest.raises(CoercionError):
        parse_float("1e39", bits=32)
    with pytest.raises(CoercionError):
        parse_float("1e400", bits=32)


def test_set_with_proper_type_never_writes_false() -> None:
    """Booleans already default to `False`, so only `True` is written."""
    assert set_with_proper_type(FieldKind.boolean, "false") == (False, False)
    assert set_with_proper_type(FieldKind.boolean, "on") == (True, True)
    assert set_with_proper_type(FieldKind.string, "x y") == (True, "x y")
    assert set_with_proper_type(FieldKind.integer, "3") == (True, 3)
    assert set_with_proper_type(FieldKind.struct, "x") == (False, None)


@pytest.mark.parametrize("bits", [32, 64])
def test_float_rejects_out_of_range_literals(bits: int) -> None:
    """`1e400` does not fit either width; a spelled-out infinity still parses."""
    with pytest.raises(CoercionError) as e:
        parse_float("1e400", bits=bits)
    assert e.value.code == ErrorCode.float_type
    assert e.value.detail == f"Value could not be parsed as {bits}-bit float"

    assert parse_float("-Infinity", bits=bits) == float("-inf")
