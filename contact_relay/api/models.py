"""Data models for API endpoints.

This module defines Pydantic models for response serialization and the
OpenAPI schema.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def isoformat_utc(value: datetime) -> str:
    """Format a timestamp as ISO 8601 UTC with millisecond precision.

    Naive values are taken to be UTC already.

    Args:
        value: Timestamp returned by the datastore

    Returns:
        String such as ``2026-10-19T09:30:00.123Z``
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


class ContactMessage(BaseModel):
    """A persisted contact form submission.

    Attributes:
        id: Server-assigned identifier, increasing with each insert
        name: Trimmed submitter name
        email: Trimmed submitter email
        message: Trimmed message content
        created_at: ISO 8601 timestamp assigned by the datastore
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(..., description="Server-assigned identifier", examples=[42])
    name: str = Field(..., description="Submitter's name", examples=["Ada Lovelace"])
    email: str = Field(..., description="Submitter's email", examples=["ada@example.com"])
    message: str = Field(
        ...,
        description="Message content",
        examples=["Hello from the contact form."],
    )
    created_at: str = Field(
        ...,
        alias="createdAt",
        description="ISO 8601 formatted creation timestamp",
        examples=["2026-10-19T09:30:00.123Z"],
    )

    def to_dict(self) -> dict:
        """Return the wire representation (``createdAt`` key)."""
        return self.model_dump(by_alias=True)


class HealthResponse(BaseModel):
    """Health check response model."""

    ok: bool = Field(..., description="The service process is up")
    uptime: float = Field(..., description="Seconds since the service started")
    db: Literal["up", "down"] = Field(..., description="Datastore health check result")


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., description="Human-readable error", examples=["Invalid email"])
