"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from payment_advice import __version__

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    service: str
    version: str


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Plain text liveness probe."""
    return "Payment advice PDF service is running."


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check.

    Returns:
        HealthResponse indicating service is running
    """
    return HealthResponse(
        status="healthy",
        service="payment-advice",
        version=__version__,
    )
