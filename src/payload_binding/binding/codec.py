from __future__ import annotations

import struct
from typing import Any, get_args, get_origin

from .schema import FieldSpec, Schema, schema_for
from .types import FieldKind

_SKIP = object()    # leave the field at its current value


def _doc_type(v: Any) -> str:
    """Document-level name of a decoded value's type."""
    if v is None:
        return "null"
    if isinstance(v, bool):
        return "boolean"
    if isinstance(v, (int, float)):
        return "number"
    if isinstance(v, str):
        return "string"
    if isinstance(v, list):
        return "array"
    if isinstance(v, dict):
        return "object"
    return type(v).__name__


class DocumentDecoder:
    """
    Maps a decoded self-describing document (dicts, lists, scalars) onto a shape.

    Keys are matched by `FieldSpec.codec_key`, inline shapes are read from the
    parent's object. Types are checked strictly: a mismatch keeps the field at
    its zero value, and only the first mismatch is kept in `first_error`.
    """

    def __init__(self) -> None:
        self.first_error: str | None = None

    def _mismatch(self, v: Any, where: str, expected: str) -> Any:
        if self.first_error is None:
            self.first_error = f"cannot decode {_doc_type(v)} into {where} of type {expected}"
        return _SKIP

    def decode(self, model: Any, doc: Any) -> Any:
        """Decode `doc` into `model`, a shape or `list[shape]`."""
        if get_origin(model) is list:
            (elem,) = get_args(model)
            if doc is None:
                return []
            if not isinstance(doc, list):
                self._mismatch(doc, "value", f"list[{elem.__name__}]")
                return []
            return [self.shape(elem, item, f"[{i}]") for i, item in enumerate(doc)]
        return self.shape(model, doc, model.__name__)

    def shape(self, model: type, doc: Any, where: str) -> Any:
        schema = schema_for(model)
        obj = schema.zero()
        if doc is None:
            return obj
        if not isinstance(doc, dict):
            self._mismatch(doc, where, model.__name__)
            return obj
        self._fill(obj, schema, doc, where)
        return obj

    def _fill(self, obj: Any, schema: Schema, doc: dict[str, Any], where: str) -> None:
        for f in schema.fields:
            if not f.exported:
                continue

            if f.inline:
                nested = schema_for(f.model)
                if f.kind is FieldKind.struct:
                    self._fill(getattr(obj, f.name), nested, doc, where)
                else:
                    inner = nested.zero()
                    self._fill(inner, nested, doc, where)
                    setattr(obj, f.name, None if inner == nested.zero() else inner)
                continue

            if f.codec_key == "-" or f.codec_key not in doc:
                continue
            value = self._value(f, doc[f.codec_key], f"{where}.{f.codec_key}")
            if value is not _SKIP:
                setattr(obj, f.name, value)

    def _value(self, f: FieldSpec, v: Any, where: str) -> Any:
        k = f.kind

        if k in (FieldKind.file, FieldKind.file_slice):
            # file handles only come from multipart bodies
            return _SKIP
        if k is FieldKind.other:
            return v

        if k is FieldKind.struct:
            if v is None:
                return _SKIP
            return self.shape(f.model, v, where)
        if k is FieldKind.pointer:
            if v is None:
                return None
            return self.shape(f.model, v, where)

        if k in (FieldKind.slice, FieldKind.struct_slice):
            if v is None:
                return []
            if not isinstance(v, list):
                return self._mismatch(v, where, "list")
            if k is FieldKind.struct_slice:
                return [self.shape(f.model, item, f"{where}[{i}]") for i, item in enumerate(v)]
            out = []
            for i, item in enumerate(v):
                elem = self._scalar(f.elem, f.bits, item, f"{where}[{i}]")
                out.append(FieldSpec(name=f.name, kind=f.elem).zero() if elem is _SKIP else elem)
            return out

        return self._scalar(k, f.bits, v, where)

    def _scalar(self, kind: FieldKind | None, bits: int, v: Any, where: str) -> Any:
        if kind is FieldKind.string:
            return v if isinstance(v, str) else self._mismatch(v, where, "string")

        if kind is FieldKind.boolean:
            return v if isinstance(v, bool) else self._mismatch(v, where, "boolean")

        if kind in (FieldKind.integer, FieldKind.unsigned):
            expected = f"{'int' if kind is FieldKind.integer else 'uint'}{bits}"
            if isinstance(v, bool) or not isinstance(v, int):
                return self._mismatch(v, where, expected)
            if kind is FieldKind.integer:
                in_range = -(1 << (bits - 1)) <= v < (1 << (bits - 1))
            else:
                in_range = 0 <= v < (1 << bits)
            return v if in_range else self._mismatch(v, where, expected)

        if kind is FieldKind.float:
            expected = f"float{bits}"
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                return self._mismatch(v, where, expected)
            try:
                f = float(v)
                if bits == 32:
                    f = struct.unpack("f", struct.pack("f", f))[0]
            except OverflowError:
                return self._mismatch(v, where, expected)
            return f

        return _SKIP
