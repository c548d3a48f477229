from __future__ import annotations

import logging
from typing import Any, get_args, get_origin

from .codec import DocumentDecoder
from .registry import DecodeError, get_codec
from .schema import schema_for
from .types import ErrorCode, Errors
from .validation import validate
from .walker import RawFiles, RawValues, map_form

logger = logging.getLogger(__name__)


def ensure_model_type(model: Any) -> None:
    """
    Binding targets are shape types, never instances: the engine allocates a
    fresh value per call. Passing an instance is a caller defect.
    """
    if get_origin(model) is list:
        args = get_args(model)
        if len(args) == 1 and isinstance(args[0], type):
            return
    if not isinstance(model, type):
        raise TypeError("Instances are not accepted as binding models")


def bind_form(
    model: type,
    values: RawValues,
    files: RawFiles | None = None,
    *,
    ctx: Any = None,
    errors: Errors | None = None,
) -> tuple[Any, Errors]:
    """
    Bind raw form values (and file handles) into a fresh `model` instance, then validate it.

    Returns `(value, errors)`. Errors are ordered: anything already in
    `errors`, then coercion errors, then validation errors.
    """
    ensure_model_type(model)
    if get_origin(model) is list:
        raise TypeError("Form input binds into a single shape, not a list")
    errors = Errors() if errors is None else errors

    obj = schema_for(model).zero()
    map_form(obj, values, files, errors)
    errors.extend(validate(obj, ctx))
    return obj, errors


def bind_self_describing(
    model: Any,
    body: bytes,
    *,
    codec: str = "json",
    ctx: Any = None,
    errors: Errors | None = None,
) -> tuple[Any, Errors]:
    """
    Decode a complete self-describing body (JSON, YAML) into `model`, then validate it.

    `model` may be a shape or `list[shape]`. Decode failures become one
    request-level `deserialization` error; validation still runs on whatever
    was decoded.
    """
    ensure_model_type(model)
    errors = Errors() if errors is None else errors
    spec = get_codec(codec)

    try:
        doc = spec.decode(body)
    except DecodeError as e:
        logger.info("%s body could not be decoded: %s", spec.name, e)
        errors.add([], ErrorCode.deserialization, str(e))
        doc = None

    decoder = DocumentDecoder()
    value = decoder.decode(model, doc)
    if decoder.first_error is not None:
        logger.info("%s body does not fit %s: %s", spec.name, model, decoder.first_error)
        errors.add([], ErrorCode.deserialization, decoder.first_error)

    errors.extend(validate(value, ctx))
    return value, errors
