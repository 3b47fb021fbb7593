"""ASGI middleware for trace IDs and request logging.

The middleware works at the raw ASGI level (not BaseHTTPMiddleware) so the
trace ID header is also injected into error responses produced by FastAPI's
exception handlers.

Example:
    >>> from fastapi import FastAPI
    >>> from libs.core.common.logging.middleware import add_trace_id_middleware
    >>>
    >>> app = FastAPI()
    >>> add_trace_id_middleware(app)
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from libs.core.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    generate_trace_id,
    set_trace_id,
)

logger = logging.getLogger(__name__)

# Called as on_complete(method, path, status_code, duration_seconds)
RequestObserver = Callable[[str, str, int, float], None]


class ASGITraceIDMiddleware:
    """ASGI middleware that manages trace IDs and logs request completion.

    Flow per HTTP request:
    1. Take the trace ID from the X-Trace-ID header, or generate one when it
       is absent or not valid UTF-8
    2. Set it in the logging context
    3. Inject it into the response headers
    4. Log method, path, status and duration once the response started
    5. Clear the context
    """

    def __init__(self, app: ASGIApp, on_complete: RequestObserver | None = None) -> None:
        self.app = app
        self.on_complete = on_complete

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        trace_id = _incoming_trace_id(scope)
        set_trace_id(trace_id)

        status_code = 500
        started = time.perf_counter()

        async def send_with_trace_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                response_headers = list(message.get("headers", []))
                response_headers.append((TRACE_ID_HEADER.lower().encode(), trace_id.encode()))
                message["headers"] = response_headers
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace_id)
        finally:
            duration = time.perf_counter() - started
            method = scope.get("method", "")
            path = scope.get("path", "")
            logger.info(
                "HTTP request completed",
                extra={
                    "context": _request_context(method, path, status_code, duration),
                },
            )
            if self.on_complete is not None:
                self.on_complete(method, path, status_code, duration)
            clear_trace_id()


def _incoming_trace_id(scope: Scope) -> str:
    headers = dict(scope.get("headers", []))
    trace_id_bytes = headers.get(TRACE_ID_HEADER.lower().encode())
    if not trace_id_bytes:
        return generate_trace_id()
    try:
        return trace_id_bytes.decode()
    except UnicodeDecodeError:
        # Undecodable header; start a fresh trace
        return generate_trace_id()


def _request_context(method: str, path: str, status_code: int, duration: float) -> dict[str, Any]:
    return {
        "method": method,
        "path": path,
        "status": status_code,
        "duration_ms": round(duration * 1000, 2),
    }


def add_trace_id_middleware(app: FastAPI, on_complete: RequestObserver | None = None) -> None:
    """Install ASGITraceIDMiddleware on a FastAPI application.

    Args:
        app: FastAPI application instance
        on_complete: Optional observer called after every HTTP request
            (used to feed request metrics)
    """
    app.add_middleware(ASGITraceIDMiddleware, on_complete=on_complete)
