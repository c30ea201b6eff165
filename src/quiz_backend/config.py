"""Application configuration."""

import os
from datetime import time
from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    NonNegativeInt,
    StringConstraints,
    TypeAdapter,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from quiz_backend.domain.batches import BatchDefinition

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    quiz_timezone: str = "UTC"
    quiz_batches: str = "[]"
    name_scope: Literal["batch", "global"] = "batch"
    session_grace_minutes: int | None = None
    leaderboard_limit: int = 10
    cors_allowed_origins: str = "*"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


class BatchEntry(BaseModel):
    """One configured batch as written in ``quiz_batches``."""

    batch_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    window_start: time
    window_duration_minutes: NonNegativeInt

    def to_definition(self) -> BatchDefinition:
        return BatchDefinition(
            batch_id=self.batch_id,
            window_start=self.window_start,
            window_duration_minutes=self.window_duration_minutes,
        )


_BATCH_ENTRIES = TypeAdapter(list[BatchEntry])


def parse_batch_definitions(raw: str | None) -> list[BatchDefinition]:
    """Parse batch definitions from a JSON list.

    Each entry looks like
    ``{"batch_id": "b1", "window_start": "10:00", "window_duration_minutes": 30}``.
    Raises pydantic's ``ValidationError`` (a ``ValueError``) on malformed input.
    """
    if raw is None or not raw.strip():
        return []
    return [entry.to_definition() for entry in _BATCH_ENTRIES.validate_json(raw)]


def parse_cors_origins(raw: str | None) -> list[str]:
    """Parse allowed CORS origins; empty or ``*`` allows any origin."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",")]
    return [origin for origin in origins if origin] or ["*"]
