"""Example JSON endpoint."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter

from apps.homepage_backend.schemas import ExampleResponse

router = APIRouter(prefix="/api")

EXAMPLE_MESSAGE = "Hello from the homepage backend!"


@router.get("/example")
async def example() -> ExampleResponse:
    """Static demo payload with the current UTC time (RFC 3339)."""
    return ExampleResponse(message=EXAMPLE_MESSAGE, timestamp=datetime.now(UTC))
