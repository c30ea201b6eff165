"""Domain models for quiz sessions."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ParticipantKey:
    """Identifies one participant within one batch."""

    name: str
    batch_id: str


@dataclass(frozen=True)
class Session:
    """An admitted participant that has not submitted a result yet."""

    key: ParticipantKey
    started_at: datetime
