from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable


class ErrorCode(str, Enum):
    """Typed error classifications."""
    deserialization = "deserialization"
    content_type = "content-type"
    required = "required"
    integer_type = "integer-type"
    boolean_type = "boolean-type"
    float_type = "float-type"

    # rule tags
    alpha_dash = "AlphaDash"
    alpha_dash_dot = "AlphaDashDot"
    min_size = "MinSize"
    max_size = "MaxSize"
    email = "Email"
    url = "Url"


class FieldKind(str, Enum):
    """Declared kind of a schema field."""
    string = "string"
    integer = "integer"
    unsigned = "unsigned"
    boolean = "boolean"
    float = "float"                 # 32 or 64 bit, see `FieldSpec.bits`
    slice = "slice"                 # list of a primitive kind
    struct = "struct"               # nested or embedded shape, always present
    pointer = "pointer"             # optional shape, `None` when unset
    struct_slice = "struct_slice"   # list of shapes (self-describing decode only)
    file = "file"
    file_slice = "file_slice"
    other = "other"                 # never bound, zero is `None`


def code_to_text(x: Any) -> str:
    """
    Converts enum-like (value `__attr__`) or plain strings of a given classification to `str`.
    """
    if hasattr(x, "value"):
        return str(getattr(x, "value"))
    return str(x)


@dataclass(frozen=True, slots=True)
class FieldError:
    """One field-scoped error."""
    field_names: tuple[str, ...]    # root-to-leaf, empty for request-level errors.
    classification: str             # `ErrorCode` or a caller-supplied tag.
    message: str

    def to_mapping(self) -> dict[str, Any]:
        """Wire shape of this error."""
        return {
            "fieldNames": list(self.field_names),
            "classification": code_to_text(self.classification),
            "message": self.message,
        }


class Errors(list[FieldError]):
    """
    Ordered, append-only error list shared by the binding and validation passes.

    Order is discovery order. Duplicates are kept.
    """

    def add(self, field_names: Iterable[str], classification: str, message: str) -> None:
        """Append one error."""
        self.append(FieldError(tuple(field_names), classification, message))

    def has(self, classification: str) -> bool:
        """Whether any error carries `classification`."""
        wanted = code_to_text(classification)
        return any(code_to_text(e.classification) == wanted for e in self)

    def to_payload(self) -> list[dict[str, Any]]:
        return [e.to_mapping() for e in self]

    def render(self) -> str:
        """Deterministic JSON rendering (used for responses and comparisons)."""
        return json.dumps(self.to_payload(), ensure_ascii=False)
