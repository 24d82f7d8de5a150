from __future__ import annotations

import uuid
from contextvars import ContextVar
from typing import Optional

# Correlates log lines of one HTTP request or one scheduler tick.
_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def generate_request_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex}"


def set_request_id(request_id: str | None) -> None:
    """Store request id in context (None to clear)."""
    _request_id_ctx.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id_ctx.get()
