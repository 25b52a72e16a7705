"""
Health check contract models for flowsync.
"""

from typing import Literal

from pydantic import BaseModel, Field


class BasicHealthResponse(BaseModel):
    """Basic health check response (liveness check)"""
    status: Literal["ok"] = Field(default="ok", description="Health status (always ok if the server responds)")
    timestamp: str = Field(..., description="Health check timestamp (ISO 8601)")
