"""
Health Router

Unauthenticated liveness endpoint.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from flowsync.models.contracts.health import BasicHealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=BasicHealthResponse,
    summary="Liveness check",
)
async def health() -> BasicHealthResponse:
    """Return ok while the server is accepting requests."""
    return BasicHealthResponse(timestamp=datetime.now(timezone.utc).isoformat())
