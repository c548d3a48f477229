from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from .primitives import CoercionError, set_with_proper_type
from .schema import FieldSpec, schema_for
from .types import Errors, FieldKind

logger = logging.getLogger(__name__)

# Typing:
# a raw input is either a werkzeug `MultiDict` (has `getlist`) or a plain
# mapping of key -> list of values.
RawValues = Mapping[str, Sequence[str]]
RawFiles = Mapping[str, Sequence[Any]]


def getlist(raw: Any, key: str) -> list[Any]:
    """All values for `key`, in arrival order. Absent keys give `[]`."""
    if raw is None:
        return []
    if hasattr(raw, "getlist"):
        return list(raw.getlist(key))
    v = raw.get(key)
    if v is None:
        return []
    if isinstance(v, (str, bytes)):
        return [v]
    return list(v)


def map_form(obj: Any, values: RawValues, files: RawFiles | None, errors: Errors) -> None:
    """
    Populate `obj` in place from raw form values and file handles.

    Fields are visited in declaration order:
    - inline optional shape: allocated, walked, reset to `None` if still zero afterwards.
    - nested / embedded shape: walked in place, no key prefix.
    - keyed leaf: bound from `values`, else from `files`.

    Coercion failures are appended to `errors`; the walk always continues.
    """
    schema = schema_for(type(obj))

    for f in schema.fields:
        if f.kind is FieldKind.pointer and f.inline:
            if not f.exported:
                continue
            nested = schema_for(f.model)
            inner = nested.zero()
            map_form(inner, values, files, errors)
            # present only if any inner data was supplied
            setattr(obj, f.name, None if inner == nested.zero() else inner)

        elif f.kind is FieldKind.struct:
            if not f.exported:
                continue
            map_form(getattr(obj, f.name), values, files, errors)

        elif f.key and not f.ignored:
            if not f.exported:
                continue

            raw = getlist(values, f.key)
            if raw and f.kind not in (FieldKind.file, FieldKind.file_slice):
                _bind_values(obj, f, raw, errors)
                continue

            handles = getlist(files, f.key)
            if handles:
                _bind_files(obj, f, handles)


def _bind_values(obj: Any, f: FieldSpec, raw: list[str], errors: Errors) -> None:
    """Bind one or more raw strings into a scalar or slice field."""
    if f.kind is FieldKind.slice:
        # 1:1 with the raw values. Failed elements keep the element zero.
        elem_zero = FieldSpec(name=f.name, kind=f.elem).zero()
        out = [elem_zero] * len(raw)
        for i, v in enumerate(raw):
            write, value = _coerce(f, f.elem, v, errors)
            if write:
                out[i] = value
        setattr(obj, f.name, out)
        return

    write, value = _coerce(f, f.kind, raw[0], errors)
    if write:
        setattr(obj, f.name, value)


def _bind_files(obj: Any, f: FieldSpec, handles: list[Any]) -> None:
    """Bind file handles, passed through unchanged."""
    if f.kind is FieldKind.file_slice:
        setattr(obj, f.name, list(handles))
    elif f.kind is FieldKind.file:
        setattr(obj, f.name, handles[0])


def _coerce(f: FieldSpec, kind: FieldKind | None, v: str, errors: Errors) -> tuple[bool, Any]:
    try:
        return set_with_proper_type(kind, v, bits=f.bits)
    except CoercionError as e:
        logger.debug("could not coerce %s=%r: %s", f.key, v, e.detail)
        errors.add([f.key], e.code, e.detail)
        return False, None
