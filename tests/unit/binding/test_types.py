from __future__ import annotations

import json

from payload_binding.binding.types import ErrorCode, Errors, FieldError, code_to_text


def test_add_and_has() -> None:
    errors = Errors()
    assert not errors.has(ErrorCode.required)

    errors.add(["id"], ErrorCode.required, "Required")
    errors.add([], "LengthError", "Life is too short")

    assert errors.has(ErrorCode.required)
    assert errors.has("required")
    assert errors.has("LengthError")
    assert not errors.has(ErrorCode.deserialization)
    assert errors[0] == FieldError(("id",), ErrorCode.required, "Required")


def test_duplicates_are_preserved_in_order() -> None:
    errors = Errors()
    errors.add(["rating"], ErrorCode.integer_type, "Value could not be parsed as integer")
    errors.add(["rating"], ErrorCode.integer_type, "Value could not be parsed as integer")
    assert len(errors) == 2


def test_payload_and_render() -> None:
    """Classifications render as their tag, not the enum member name."""
    errors = Errors()
    errors.add(["id"], ErrorCode.required, "Required")
    errors.add([], ErrorCode.content_type, "Empty Content-Type")

    assert errors.to_payload() == [
        {"fieldNames": ["id"], "classification": "required", "message": "Required"},
        {"fieldNames": [], "classification": "content-type", "message": "Empty Content-Type"},
    ]
    assert errors.render() == (
        '[{"fieldNames": ["id"], "classification": "required", "message": "Required"}, '
        '{"fieldNames": [], "classification": "content-type", "message": "Empty Content-Type"}]'
    )
    assert json.loads(errors.render()) == errors.to_payload()


def test_code_to_text() -> None:
    assert code_to_text(ErrorCode.alpha_dash) == "AlphaDash"
    assert code_to_text("Custom") == "Custom"
