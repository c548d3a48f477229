from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from werkzeug.datastructures import FileStorage


@dataclass(frozen=True)
class BindSummary:
    """What the CLI reports for one bind."""
    model: str
    errors: int
    status: int     # the status the default failure policy would respond with.

    def render_one_line(self) -> str:
        """How a bind is summarized in the terminal."""
        return f"{self.model}: errors={self.errors} status={self.status}"


def to_document(value: Any) -> Any:
    """
    A bound value as plain JSON-ready data.
    Private attributes are left out, file handles are shown by filename.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_document(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if not f.name.startswith("_")
        }
    if isinstance(value, list):
        return [to_document(v) for v in value]
    if isinstance(value, FileStorage):
        return value.filename
    return value
