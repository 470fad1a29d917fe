"""Per-request context stored in contextvars.

Values set here are picked up by the logging processors, so every log line
emitted while serving a request carries the request id and, once the caller
has authenticated, the user id.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID, generating one when the client did not send it.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_user_id() -> str | None:
    """Get the authenticated user ID for the current request."""
    return user_id_var.get()


def set_user_id(user_id: str | UUID | None) -> None:
    """Set the authenticated user ID for the current request."""
    user_id_var.set(str(user_id) if user_id is not None else None)


def get_trace_id() -> str | None:
    """Get the distributed trace ID for the current request."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the distributed trace ID for the current request."""
    trace_id_var.set(trace_id)


def get_context() -> dict[str, Any]:
    """Return the non-empty context values as a dictionary."""
    context: dict[str, Any] = {}

    if request_id := get_request_id():
        context["request_id"] = request_id
    if user_id := get_user_id():
        context["user_id"] = user_id
    if trace_id := get_trace_id():
        context["trace_id"] = trace_id

    return context


def clear_context() -> None:
    """Reset all context variables (called when a request finishes)."""
    request_id_var.set("")
    user_id_var.set(None)
    trace_id_var.set(None)
