from __future__ import annotations

from typing import Any, Callable

import pytest
from werkzeug.test import EnvironBuilder
from werkzeug.wrappers import Request


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """
    Build an in-process werkzeug `Request`.
    Keyword arguments go to `EnvironBuilder` (`data`, `content_type`, `query_string`, ...).
    """
    def _make(method: str = "POST", path: str = "/test", **kwargs: Any) -> Request:
        builder = EnvironBuilder(method=method, path=path, **kwargs)
        try:
            return Request(builder.get_environ())
        finally:
            builder.close()

    return _make
