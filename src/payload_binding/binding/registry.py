from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

import yaml

# Typing:
# a decoder turns a complete request body into a plain document
# (dicts, lists, scalars). `None` means "empty document".
Decoder = Callable[[bytes], Any]


class DecodeError(ValueError):
    """A body the codec could not decode."""


def _decode_json(body: bytes) -> Any:
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(str(e)) from e


def _decode_yaml(body: bytes) -> Any:
    try:
        return yaml.safe_load(body)
    except yaml.YAMLError as e:
        raise DecodeError(str(e)) from e


@dataclass(frozen=True)
class CodecSpec:
    """A self-describing payload codec."""
    name: str
    content_type_marker: str    # substring identifying the codec in a Content-Type.
    decode: Decoder


_CODECS: dict[str, CodecSpec] = {
    "json": CodecSpec(name="json", content_type_marker="json", decode=_decode_json),
    "yaml": CodecSpec(name="yaml", content_type_marker="yaml", decode=_decode_yaml),
}


def get_codec(name: str) -> CodecSpec:
    """A registry of the self-describing codecs the engine can delegate to."""
    try:
        return _CODECS[name]
    except KeyError:
        raise ValueError(f"Unknown codec: {name}") from None


def codec_for_content_type(content_type: str) -> CodecSpec | None:
    """The codec whose marker appears in `content_type`, if any."""
    for spec in _CODECS.values():
        if spec.content_type_marker in content_type:
            return spec
    return None
