"""Trace ID context propagation for request correlation.

Trace IDs are UUIDv4 strings stored in a context variable so every log line
emitted while handling a request (including from awaited coroutines) carries
the same identifier.

Example:
    >>> from libs.core.common.logging.context import generate_trace_id, set_trace_id
    >>> set_trace_id(generate_trace_id())
"""

import contextvars
import uuid

_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

# HTTP header used to accept and echo trace IDs
TRACE_ID_HEADER = "X-Trace-ID"


def generate_trace_id() -> str:
    """Generate a new unique trace ID (UUID v4 string)."""
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    """Return the trace ID of the current context, or None if unset."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current context.

    Args:
        trace_id: The trace ID to set

    Raises:
        ValueError: If trace_id is empty
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    """Remove the trace ID from the current context."""
    _trace_id_var.set(None)
