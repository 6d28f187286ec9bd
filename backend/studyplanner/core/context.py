"""Per-request context shared with log records."""
from __future__ import annotations

from contextvars import ContextVar, Token

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def bind_request_id(request_id: str) -> Token:
    """Attach a request id to the current context and return the reset token."""
    return request_id_ctx_var.set(request_id)


def get_request_id() -> str | None:
    return request_id_ctx_var.get()
