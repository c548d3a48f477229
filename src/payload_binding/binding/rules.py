from __future__ import annotations

import re
from typing import Any

from .schema import FieldSpec, Rule
from .types import ErrorCode, Errors

_ALPHA_DASH = re.compile(r"[^A-Za-z0-9_-]")
_ALPHA_DASH_DOT = re.compile(r"[^A-Za-z0-9_.-]")
_EMAIL = re.compile(
    r"[\w!#$%&'*+/=?^`{|}~-]+(?:\.[\w!#$%&'*+/=?^`{|}~-]+)*"
    r"@(?:\w(?:[\w-]*\w)?\.)+[a-zA-Z0-9](?:[\w-]*\w)?",
    re.ASCII,
)
_URL = re.compile(
    r"(http|https)://[\w-]+(\.[\w-]+)+([\w.,@?^=%&:/~+#-]*[\w@?^=%&/~+#-])?",
    re.ASCII,
)


def _size(value: Any) -> int | None:
    """Code points of a string, element count of a sequence, else `None`."""
    if isinstance(value, (str, list, tuple)):
        return len(value)
    return None


def check_rule(rule: Rule, f: FieldSpec, value: Any) -> ErrorCode | None:
    """The classification `rule` is violated under, or `None` if it holds."""
    name = rule.name

    if name == "Required":
        # structural equality with the declared kind's zero value
        return ErrorCode.required if value == f.zero() else None

    if name == "AlphaDash":
        return ErrorCode.alpha_dash if _ALPHA_DASH.search(str(value)) else None

    if name == "AlphaDashDot":
        return ErrorCode.alpha_dash_dot if _ALPHA_DASH_DOT.search(str(value)) else None

    if name == "MinSize":
        n = _size(value)
        return ErrorCode.min_size if n is not None and n < rule.arg else None

    if name == "MaxSize":
        n = _size(value)
        return ErrorCode.max_size if n is not None and n > rule.arg else None

    if name == "Email":
        return None if _EMAIL.fullmatch(str(value)) else ErrorCode.email

    if name == "Url":
        s = str(value)
        # empty is absent, not invalid
        if s == "":
            return None
        return None if _URL.fullmatch(s) else ErrorCode.url

    return None


def apply_rules(errors: Errors, f: FieldSpec, value: Any) -> None:
    """Evaluate every rule of `f` against `value`; each violation is recorded once."""
    for rule in f.rules:
        code = check_rule(rule, f, value)
        if code is None:
            continue
        message = "Required" if code is ErrorCode.required else code.value
        errors.add([f.error_name], code, message)
