"""Request ID propagation.

Request-scoped tracing information lives in contextvars so it survives async
boundaries and reaches outbound calls to the generation service.
"""

import uuid
from contextvars import ContextVar

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get the current request ID from context."""
    return request_id_ctx.get()


def set_request_id(value: str | None) -> str:
    """Set the request ID in context, generating one when absent."""
    if not value:
        value = str(uuid.uuid4())
    request_id_ctx.set(value)
    return value


def clear_tracing_context() -> None:
    """Clear request-scoped tracing context after request completion."""
    request_id_ctx.set(None)


def get_tracing_headers() -> dict[str, str]:
    """Headers to forward on outbound requests."""
    headers: dict[str, str] = {}
    if rid := request_id_ctx.get():
        headers["X-Request-ID"] = rid
    return headers
