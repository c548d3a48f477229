from __future__ import annotations

import logging
from tempfile import SpooledTemporaryFile
from typing import IO, Any

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import RequestEntityTooLarge, abort
from werkzeug.formparser import FormDataParser
from werkzeug.wrappers import Request, Response

from payload_binding.binding.engine import bind_form, bind_self_describing, ensure_model_type
from payload_binding.binding.registry import codec_for_content_type
from payload_binding.binding.types import ErrorCode, Errors
from payload_binding.config import get_max_memory

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=utf-8"
STATE_CHANGING_METHODS = {"POST", "PUT", "PATCH"}


def _stream_factory(
    total_content_length: int | None,
    content_type: str | None,
    filename: str | None,
    content_length: int | None = None,
) -> IO[bytes]:
    """File parts stay in memory up to `get_max_memory()` bytes, then spill to disk."""
    return SpooledTemporaryFile(max_size=get_max_memory(), mode="rb+")


def _parse_body(request: Request, errors: Errors) -> tuple[MultiDict, MultiDict]:
    """Parse a form body. A malformed body is a request-level `deserialization` error."""
    parser = FormDataParser(
        stream_factory=_stream_factory,
        max_content_length=request.max_content_length,
        silent=False,
    )
    try:
        _, form, files = parser.parse(
            request.stream,
            request.mimetype,
            request.content_length,
            request.mimetype_params,
        )
    except (ValueError, RequestEntityTooLarge) as e:
        logger.info("form body could not be parsed: %s", e)
        errors.add([], ErrorCode.deserialization, str(e) or type(e).__name__)
        return MultiDict(), MultiDict()
    return form, files


def _bind_form_request(model: type, request: Request, ctx: Any, *, multipart: bool = False) -> tuple[Any, Errors]:
    errors = Errors()
    form, files = _parse_body(request, errors)

    # body values come before query-string values; multipart binds its parts only
    values: MultiDict = MultiDict()
    for key, value in form.items(multi=True):
        values.add(key, value)
    if not multipart:
        for key, value in request.args.items(multi=True):
            values.add(key, value)

    return bind_form(model, values, files, ctx=ctx, errors=errors)


def bind_request(model: Any, request: Request, *, ctx: Any = None) -> tuple[Any, Errors]:
    """
    Pick a decoding strategy from the request's method and Content-Type, then bind.

    - state-changing methods, or any request with a Content-Type:
        - `form-urlencoded`: form binding (body, then query string).
        - `multipart/form-data`: form binding from the parts (values and files) only.
        - `json` / `yaml`: self-describing decode.
        - empty or unsupported: `(None, [content-type error])`, nothing is bound.
    - otherwise: form binding from the query string.

    `ctx` is handed to validation hooks and defaults to the request.
    Performs no error handling, see `error_response` / `bind_or_abort`.
    """
    ensure_model_type(model)
    content_type = request.headers.get("Content-Type", "")
    ctx = request if ctx is None else ctx

    if request.method in STATE_CHANGING_METHODS or content_type:
        if "form-urlencoded" in content_type or "multipart/form-data" in content_type:
            logger.debug("binding %s %s as form", request.method, request.path)
            multipart = "multipart/form-data" in content_type
            return _bind_form_request(model, request, ctx, multipart=multipart)

        codec = codec_for_content_type(content_type)
        if codec is not None:
            logger.debug("binding %s %s as %s", request.method, request.path, codec.name)
            return bind_self_describing(model, request.get_data(), codec=codec.name, ctx=ctx)

        errors = Errors()
        if content_type == "":
            errors.add([], ErrorCode.content_type, "Empty Content-Type")
        else:
            errors.add([], ErrorCode.content_type, "Unsupported Content-Type")
        logger.debug("rejecting %s %s: content type %r", request.method, request.path, content_type)
        return None, errors

    return _bind_form_request(model, request, ctx)


def error_status(errors: Errors) -> int:
    """Default failure policy: 400 for undecodable bodies, 415 for content types, else 422."""
    if errors.has(ErrorCode.deserialization):
        return 400
    if errors.has(ErrorCode.content_type):
        return 415
    return 422


def error_response(errors: Errors) -> Response | None:
    """A JSON error response for `errors`, or `None` when there are none."""
    if not errors:
        return None
    return Response(errors.render(), status=error_status(errors), content_type=JSON_CONTENT_TYPE)


def bind_or_abort(model: Any, request: Request, *, ctx: Any = None) -> Any:
    """`bind_request` with the default failure policy applied: aborts with the error response."""
    value, errors = bind_request(model, request, ctx=ctx)
    response = error_response(errors)
    if response is not None:
        abort(response)
    return value
