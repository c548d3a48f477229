from __future__ import annotations

import math
import re
import struct
from typing import Any

from .types import ErrorCode, FieldKind


class CoercionError(ValueError):
    """A raw value that could not be coerced, with the classification to report it under."""

    def __init__(self, code: ErrorCode, detail: str) -> None:
        super().__init__(detail)
        self.code = code            # classification of the coercion failure.
        self.detail = detail        # message reported for the field.


_SIGNED_INT = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_INT = re.compile(r"[0-9]+")
# decimal, exponent, and the inf/nan spellings. No whitespace, no underscores.
_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

_TRUE_LITERALS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_LITERALS = {"0", "f", "F", "FALSE", "false", "False"}


## -- integer fields

def parse_int(v: str, *, bits: int = 64) -> int:
    """Parse a base-10 signed integer of width `bits`. Empty string is `0`."""
    if v == "":
        v = "0"
    if not _SIGNED_INT.fullmatch(v):
        raise CoercionError(ErrorCode.integer_type, "Value could not be parsed as integer")
    n = int(v)
    # range of the declared width
    if not -(1 << (bits - 1)) <= n < (1 << (bits - 1)):
        raise CoercionError(ErrorCode.integer_type, "Value could not be parsed as integer")
    return n


def parse_uint(v: str, *, bits: int = 64) -> int:
    """Parse a base-10 unsigned integer of width `bits`. Empty string is `0`."""
    if v == "":
        v = "0"
    if not _UNSIGNED_INT.fullmatch(v):
        raise CoercionError(ErrorCode.integer_type, "Value could not be parsed as unsigned integer")
    n = int(v)
    if n >= (1 << bits):
        raise CoercionError(ErrorCode.integer_type, "Value could not be parsed as unsigned integer")
    return n


## -- boolean fields

def parse_bool(v: str) -> bool:
    """
    Parse a boolean literal.

    - `"on"` is `True` (checkbox convention).
    - empty string is `"false"`.
    """
    if v == "on":
        return True
    if v == "":
        v = "false"
    if v in _TRUE_LITERALS:
        return True
    if v in _FALSE_LITERALS:
        return False
    raise CoercionError(ErrorCode.boolean_type, "Value could not be parsed as boolean")


## -- float fields

def parse_float(v: str, *, bits: int = 64) -> float:
    """
    Parse a float with `bits` precision. Empty string is `"0.0"`.

    32-bit values are rounded to single precision and overflow is rejected.
    """
    if v == "":
        v = "0.0"
    message = f"Value could not be parsed as {bits}-bit float"
    if not _FLOAT.fullmatch(v):
        raise CoercionError(ErrorCode.float_type, message)
    f = float(v)
    # out-of-range literals, not an inf spelling
    if math.isinf(f) and not v.lstrip("+-").lower().startswith("inf"):
        raise CoercionError(ErrorCode.float_type, message)
    if bits == 32:
        try:
            f = struct.unpack("f", struct.pack("f", f))[0]
        except OverflowError:
            raise CoercionError(ErrorCode.float_type, message)
    return f


def set_with_proper_type(kind: FieldKind, v: str, *, bits: int = 64) -> tuple[bool, Any]:
    """
    Coerce one raw string into `kind`.

    Returns `(write, value)`. `write` is `False` when the field must keep its
    current value: a parsed boolean `False` is never written, since booleans
    already default to `False`. Raises `CoercionError` on failure.
    """
    if kind is FieldKind.integer:
        return True, parse_int(v, bits=bits)
    if kind is FieldKind.unsigned:
        return True, parse_uint(v, bits=bits)
    if kind is FieldKind.boolean:
        b = parse_bool(v)
        return b, b
    if kind is FieldKind.float:
        return True, parse_float(v, bits=bits)
    if kind is FieldKind.string:
        return True, v
    # no coercion exists for other kinds
    return False, None
