"""Domain models for finished quiz attempts."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AttemptResult:
    """A participant's finished attempt in a batch."""

    name: str
    batch_id: str
    score: int
    completion_time_seconds: float
    quiz_start_time: datetime
    entry_time: datetime
    submitted_at: datetime

    def to_dict(self) -> dict[str, object]:
        """Serialize using the public camelCase field names."""
        return {
            "name": self.name,
            "batchId": self.batch_id,
            "score": self.score,
            "completionTime": self.completion_time_seconds,
            "quizStartTime": self.quiz_start_time.isoformat(),
            "entryTime": self.entry_time.isoformat(),
            "submittedAt": self.submitted_at.isoformat(),
        }
