from __future__ import annotations

import dataclasses
import functools
import inspect
import logging
import re
import types
from dataclasses import MISSING, dataclass, field
from typing import Annotated, Any, Callable, ClassVar, Iterable, Union, get_args, get_origin, get_type_hints

from werkzeug.datastructures import FileStorage

from .types import FieldKind

logger = logging.getLogger(__name__)


class SchemaError(TypeError):
    """A shape declaration that cannot be turned into a schema. Raised at derivation time."""


## -- width markers for integer and float fields

@dataclass(frozen=True, slots=True)
class IntBits:
    bits: int
    signed: bool = True


@dataclass(frozen=True, slots=True)
class FloatBits:
    bits: int


Int8 = Annotated[int, IntBits(8)]
Int16 = Annotated[int, IntBits(16)]
Int32 = Annotated[int, IntBits(32)]
Int64 = Annotated[int, IntBits(64)]
UInt = Annotated[int, IntBits(64, signed=False)]
UInt8 = Annotated[int, IntBits(8, signed=False)]
UInt16 = Annotated[int, IntBits(16, signed=False)]
UInt32 = Annotated[int, IntBits(32, signed=False)]
UInt64 = UInt
Float32 = Annotated[float, FloatBits(32)]
Float64 = Annotated[float, FloatBits(64)]


## -- rules

_PLAIN_RULES = {"Required", "AlphaDash", "AlphaDashDot", "Email", "Url"}
_SIZED_RULES = {"MinSize", "MaxSize"}
_RULE = re.compile(r"(?P<name>[A-Za-z]+)(?:\((?P<arg>[^()]*)\))?")
_RULE_ARG = re.compile(r"[0-9]+")


@dataclass(frozen=True, slots=True)
class Rule:
    """One validation rule attached to a field, e.g. `MinSize(5)`."""
    name: str
    arg: int | None = None


def parse_rules(specs: Iterable[str], *, field_name: str) -> tuple[Rule, ...]:
    """
    Parse rule specifications such as `"Required;MinSize(10)"`.

    Raises `SchemaError` on unknown names and malformed arguments instead of
    treating them as a rule with argument `0`.
    """
    out: list[Rule] = []
    for spec in specs:
        for part in spec.split(";"):
            part = part.strip()
            if not part:
                continue
            m = _RULE.fullmatch(part)
            if m is None:
                raise SchemaError(f"{field_name}: malformed rule {part!r}")
            name, arg = m.group("name"), m.group("arg")

            if name in _PLAIN_RULES:
                if arg is not None:
                    raise SchemaError(f"{field_name}: rule {name} takes no argument")
                out.append(Rule(name))
            elif name in _SIZED_RULES:
                if arg is None or not _RULE_ARG.fullmatch(arg.strip()):
                    raise SchemaError(f"{field_name}: rule {name} needs a non-negative integer argument, got {arg!r}")
                out.append(Rule(name, int(arg)))
            else:
                raise SchemaError(f"{field_name}: unknown rule {name!r}")
    return tuple(out)


## -- field declaration

_META = "payload_binding"


@dataclass(frozen=True, slots=True)
class FieldMeta:
    """What `form_field` stores in a dataclass field's metadata."""
    key: str | None = None          # external form key, `-` ignores the field.
    rules: tuple[str, ...] = ()
    json: str | None = None         # self-describing key, defaults to the attribute name.
    inline: bool = False            # walk the substructure at the parent's level.


_NO_META = FieldMeta()


def form_field(key: str | None = None, *rules: str, json: str | None = None, inline: bool = False, **kwargs: Any) -> Any:
    """
    Declare a bindable field.

    `key` is looked up in the raw input, `rules` are validation rule specs and
    `inline` promotes a substructure's fields to the parent's level.
    Remaining keyword arguments go to `dataclasses.field`.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[_META] = FieldMeta(key=key, rules=tuple(rules), json=json, inline=inline)
    return field(metadata=metadata, **kwargs)


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """A field descriptor: kind, external key and rules of one shape attribute."""
    name: str                       # attribute name on the shape.
    kind: FieldKind
    key: str | None = None          # lookup key in the raw input map.
    codec_key: str | None = None    # lookup key in a self-describing document.
    rules: tuple[Rule, ...] = ()
    inline: bool = False
    exported: bool = True           # private attributes are neither set nor read.
    init: bool = True
    bits: int = 64                  # width of the scalar, or of each slice element.
    elem: FieldKind | None = None   # element kind of `slice` fields.
    model: type | None = None       # shape of `struct`, `pointer` and `struct_slice` fields.

    @property
    def ignored(self) -> bool:
        return self.key == "-"

    @property
    def error_name(self) -> str:
        """Name used in error field paths."""
        if self.key and self.key != "-":
            return self.key
        return self.name

    def zero(self) -> Any:
        """The zero value of this field's declared kind."""
        k = self.kind
        if k is FieldKind.string:
            return ""
        if k in (FieldKind.integer, FieldKind.unsigned):
            return 0
        if k is FieldKind.boolean:
            return False
        if k is FieldKind.float:
            return 0.0
        if k in (FieldKind.slice, FieldKind.struct_slice, FieldKind.file_slice):
            return []
        if k is FieldKind.struct:
            return schema_for(self.model).zero()
        # pointer, file, other
        return None


@dataclass(frozen=True, slots=True)
class Schema:
    """Field descriptors of one shape, in declaration order."""
    model: type
    fields: tuple[FieldSpec, ...]

    def zero(self) -> Any:
        """A fresh instance with every field at its zero value."""
        return self.model(**{f.name: f.zero() for f in self.fields if f.init})


## -- annotation classification

def _strip_annotated(hint: Any) -> Any:
    while get_origin(hint) is Annotated:
        hint = get_args(hint)[0]
    return hint


def _is_shape(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def _scalar(hint: Any) -> tuple[FieldKind, int] | None:
    """Kind and width of a primitive annotation, `None` if it is not one."""
    marker: Any = None
    if get_origin(hint) is Annotated:
        hint, *extras = get_args(hint)
        marker = next((e for e in extras if isinstance(e, (IntBits, FloatBits))), None)

    # bool before int: `bool` is an `int` subclass
    if hint is bool:
        return FieldKind.boolean, 64
    if hint is int:
        if isinstance(marker, IntBits):
            return (FieldKind.integer if marker.signed else FieldKind.unsigned), marker.bits
        return FieldKind.integer, 64
    if hint is float:
        return FieldKind.float, marker.bits if isinstance(marker, FloatBits) else 64
    if hint is str:
        return FieldKind.string, 64
    return None


def _optional_inner(hint: Any) -> Any:
    """`X` for `Optional[X]` / `X | None`, else `None`."""
    if get_origin(hint) in (Union, types.UnionType):
        args = get_args(hint)
        rest = [a for a in args if a is not type(None)]
        if len(args) == 2 and len(rest) == 1:
            return rest[0]
    return None


def _classify(hint: Any) -> tuple[FieldKind, int, FieldKind | None, type | None]:
    """Returns `(kind, bits, elem, model)` for a resolved type hint."""
    scalar = _scalar(hint)
    if scalar is not None:
        return scalar[0], scalar[1], None, None

    hint = _strip_annotated(hint)
    if hint is FileStorage:
        return FieldKind.file, 64, None, None
    if _is_shape(hint):
        return FieldKind.struct, 64, None, hint

    inner = _optional_inner(hint)
    if inner is not None:
        inner = _strip_annotated(inner)
        if _is_shape(inner):
            return FieldKind.pointer, 64, None, inner
        if inner is FileStorage:
            return FieldKind.file, 64, None, None
        return FieldKind.other, 64, None, None

    if get_origin(hint) is list and get_args(hint):
        elem = get_args(hint)[0]
        scalar = _scalar(elem)
        if scalar is not None:
            return FieldKind.slice, scalar[1], scalar[0], None
        elem = _strip_annotated(elem)
        if elem is FileStorage:
            return FieldKind.file_slice, 64, None, None
        if _is_shape(elem):
            return FieldKind.struct_slice, 64, None, elem

    return FieldKind.other, 64, None, None


def _describe(f: dataclasses.Field, hint: Any, *, owner: str) -> FieldSpec:
    meta: FieldMeta = f.metadata.get(_META, _NO_META)
    kind, bits, elem, model = _classify(hint)
    qualified = f"{owner}.{f.name}"

    if meta.inline and kind not in (FieldKind.struct, FieldKind.pointer):
        raise SchemaError(f"{qualified}: only shape-typed fields can be inlined")

    return FieldSpec(
        name=f.name,
        kind=kind,
        key=meta.key or None,
        codec_key=meta.json if meta.json is not None else f.name,
        rules=parse_rules(meta.rules, field_name=qualified),
        inline=meta.inline,
        exported=not f.name.startswith("_"),
        init=f.init,
        bits=bits,
        elem=elem,
        model=model,
    )


@functools.lru_cache(maxsize=None)
def schema_for(model: type) -> Schema:
    """
    Derive the schema of a dataclass shape.

    Derived once per shape and cached; schemas are immutable and safe to share.
    """
    if not _is_shape(model):
        raise SchemaError(f"{model!r} is not a dataclass shape")
    if model.__dataclass_params__.frozen:
        raise SchemaError(f"{model.__qualname__}: frozen shapes cannot be bound")

    hints = get_type_hints(model, include_extras=True)
    fields = tuple(
        _describe(f, hints[f.name], owner=model.__qualname__)
        for f in dataclasses.fields(model)
    )
    logger.debug("derived schema for %s (%d fields)", model.__qualname__, len(fields))
    return Schema(model=model, fields=fields)


def _zero_factory(hint: Any) -> Callable[[], Any]:
    kind, _bits, _elem, model = _classify(hint)
    return FieldSpec(name="", kind=kind, model=model).zero


def binding_model(cls: type | None = None, /, **dataclass_kwargs: Any) -> Any:
    """
    `dataclasses.dataclass` that also gives every field without a default its
    zero value as default, so shapes can be built partially (`Post(title="x")`).
    """
    def wrap(cls: type) -> type:
        hints = get_type_hints(cls, include_extras=True)
        for name in inspect.get_annotations(cls):
            hint = hints[name]
            if hint is ClassVar or get_origin(hint) is ClassVar:
                continue
            current = cls.__dict__.get(name, MISSING)
            if isinstance(current, dataclasses.Field):
                if current.default is MISSING and current.default_factory is MISSING:
                    current.default_factory = _zero_factory(hint)
            elif current is MISSING:
                setattr(cls, name, field(default_factory=_zero_factory(hint)))
        return dataclass(cls, **dataclass_kwargs)

    return wrap if cls is None else wrap(cls)
