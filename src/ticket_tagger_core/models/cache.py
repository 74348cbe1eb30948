"""Conditional-request cache record model."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, Field


class CacheRecord(BaseModel):
    """Last known-good response for one cache key, validated by its ETag."""

    key: str = Field(min_length=1, description="Digest of namespace, URL and identity")
    etag: str = Field(min_length=1, description="Validator returned by the origin")
    payload: Any = Field(description="Deserialized response body")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the origin last returned a full response",
    )

    def expires_at(self, ttl_seconds: int) -> datetime:
        """Return the instant this record becomes eligible for eviction."""
        return self.created_at + timedelta(seconds=ttl_seconds)
