from __future__ import annotations

import dataclasses
from typing import Any, Iterable, Protocol, runtime_checkable

from .rules import apply_rules
from .schema import schema_for
from .types import Errors, FieldError, FieldKind


@runtime_checkable
class Validator(Protocol):
    """
    Shapes implement this for checks the rule vocabulary cannot express.

    Called after the structural pass; the returned errors are appended in order.
    Returning `None` reports nothing.
    `ctx` is whatever the caller passed along (the request, for the dispatcher).
    """
    def validate(self, ctx: Any) -> Iterable[FieldError] | None: ...


def validate_struct(errors: Errors, obj: Any) -> Errors:
    """
    Required and rule checks over a populated shape, depth-first.

    Nested shapes (and non-`None` optional shapes) are checked before the
    rules of the field holding them.
    """
    schema = schema_for(type(obj))

    for f in schema.fields:
        if f.ignored or not f.exported:
            continue

        value = getattr(obj, f.name)
        if f.kind is FieldKind.struct or (f.kind is FieldKind.pointer and value is not None):
            validate_struct(errors, value)

        apply_rules(errors, f, value)
    return errors


def _validate_one(errors: Errors, obj: Any, ctx: Any) -> None:
    if not (dataclasses.is_dataclass(obj) and not isinstance(obj, type)):
        raise TypeError(f"Only shape instances can be validated, got {type(obj).__name__}")
    validate_struct(errors, obj)
    if isinstance(obj, Validator):
        errors.extend(obj.validate(ctx) or ())


def validate(value: Any, ctx: Any = None) -> Errors:
    """
    Validate a shape instance, or a list/tuple of them.

    A list gives the concatenation of each element's errors, in order.
    """
    errors = Errors()
    if isinstance(value, (list, tuple)):
        for item in value:
            _validate_one(errors, item, ctx)
    else:
        _validate_one(errors, value, ctx)
    return errors
