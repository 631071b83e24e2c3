"""Utilities for correlating gateway requests in the logs.

Each outbound request carries an identifier in the ``X-Request-ID`` header and
in the log records emitted around it. Callers that want several requests to
share one identifier (for example the two phases of a friend listing) bind it
with :func:`set_request_id`; otherwise the gateway generates a fresh one.
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar, Token

__all__ = [
    "REQUEST_ID_CONTEXT",
    "REQUEST_ID_HEADER",
    "clear_request_id",
    "ensure_request_id",
    "get_request_id",
    "set_request_id",
]

REQUEST_ID_HEADER = "X-Request-ID"

# Each asyncio task gets its own copy of the context, so concurrent fetches
# never see each other's identifiers.
REQUEST_ID_CONTEXT: ContextVar[str] = ContextVar("request_id", default="")


def set_request_id(request_id: str) -> Token[str]:
    """Persist the provided request identifier in the context variable.

    Returning the token allows callers to ``reset`` the context back to its
    prior value once the correlated work finishes.
    """

    return REQUEST_ID_CONTEXT.set(request_id)


def get_request_id() -> str:
    """Retrieve the current request identifier (empty string when unset)."""

    return REQUEST_ID_CONTEXT.get()


def ensure_request_id() -> str:
    """Return the bound identifier, or a new one when nothing is bound."""

    current = get_request_id()
    if current:
        return current
    return f"req_{uuid.uuid4().hex[:12]}"


def clear_request_id(token: Token[str] | None = None) -> None:
    """Reset the request identifier to an empty string.

    Supplying a token mirrors the behaviour of ``ContextVar.reset``.
    """

    if token is not None:
        REQUEST_ID_CONTEXT.reset(token)
    else:
        REQUEST_ID_CONTEXT.set("")
