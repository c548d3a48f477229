from __future__ import annotations

import importlib
from pathlib import Path
from urllib.parse import parse_qsl

from werkzeug.datastructures import MultiDict

_CODEC_SUFFIXES = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def load_model(ref: str) -> type:
    """
    Import a shape from a `package.module:Class` reference.
    Nested classes are reached with dots after the colon (`mod:Outer.Inner`).
    """
    module_name, _, attr_path = ref.partition(":")
    if not module_name or not attr_path:
        raise ValueError(f"Expected `package.module:Class`, got {ref!r}")

    obj: object = importlib.import_module(module_name)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    if not isinstance(obj, type):
        raise ValueError(f"{ref!r} is not a class")
    return obj


def parse_form_data(data: str) -> MultiDict:
    """URL-encoded `data` as a multi-value map. Repeated keys keep every value, in order."""
    return MultiDict(parse_qsl(data, keep_blank_values=True))


def read_form_file(path: Path) -> MultiDict:
    """A file holding one URL-encoded body."""
    return parse_form_data(path.read_text(encoding="utf-8").strip())


def codec_for_path(path: Path) -> str:
    """Codec name implied by a file suffix (`.json`, `.yaml`, `.yml`)."""
    try:
        return _CODEC_SUFFIXES[path.suffix.lower()]
    except KeyError:
        raise ValueError(f"Cannot infer a codec from {path.name!r}, pass --codec") from None
