"""Batch catalog: which quiz batches exist and when they are open."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from quiz_backend.domain.batches import BatchDefinition, BatchWindow
from quiz_backend.domain.errors import ErrorKind, QuizError
from quiz_backend.services.clock import localize


@dataclass
class BatchCatalog:
    """Static mapping of batch ids to their daily windows."""

    definitions: dict[str, BatchDefinition]
    timezone: ZoneInfo

    @classmethod
    def from_definitions(
        cls, definitions: Iterable[BatchDefinition], timezone: ZoneInfo
    ) -> "BatchCatalog":
        """Build a catalog, rejecting duplicate batch ids."""
        mapping: dict[str, BatchDefinition] = {}
        for definition in definitions:
            if definition.batch_id in mapping:
                raise ValueError(f"Duplicate batch id: {definition.batch_id}")
            mapping[definition.batch_id] = definition
        return cls(definitions=mapping, timezone=timezone)

    def get(self, batch_id: str) -> BatchDefinition | None:
        """Return the definition for a batch, if present."""
        return self.definitions.get(batch_id)

    def list_batches(self) -> list[BatchDefinition]:
        """Return all batches ordered by id."""
        return [self.definitions[key] for key in sorted(self.definitions)]

    def window_of(self, batch_id: str, now: datetime) -> BatchWindow:
        """Return the window containing ``now``, else the one starting that day."""
        definition = self.get(batch_id)
        if definition is None:
            raise QuizError(ErrorKind.UNKNOWN_BATCH, f"Unknown batch: {batch_id}")
        local_now = localize(now, self.timezone)
        for window in self._candidate_windows(definition, local_now.date()):
            if window.contains(local_now):
                return window
        return self._window_on(definition, local_now.date())

    def is_open(self, batch_id: str, now: datetime) -> bool:
        """Return True if the batch exists and ``now`` is inside its window."""
        definition = self.get(batch_id)
        if definition is None:
            return False
        local_now = localize(now, self.timezone)
        return any(
            window.contains(local_now)
            for window in self._candidate_windows(definition, local_now.date())
        )

    def _candidate_windows(
        self, definition: BatchDefinition, day: date
    ) -> list[BatchWindow]:
        # Yesterday's window can still be running after midnight.
        return [
            self._window_on(definition, day - timedelta(days=1)),
            self._window_on(definition, day),
        ]

    def _window_on(self, definition: BatchDefinition, day: date) -> BatchWindow:
        start = datetime.combine(day, definition.window_start, tzinfo=self.timezone)
        duration = timedelta(minutes=definition.window_duration_minutes)
        end = (start.astimezone(UTC) + duration).astimezone(self.timezone)
        return BatchWindow(batch_id=definition.batch_id, start=start, end=end)
