from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..scope.model import BatchSelector
from .model import AttendanceEvent


class AttendanceRepository(Protocol):
    """Store boundary for attendance events.

    Returns raw events; deduplication and conflict logic belong to callers.
    """

    def query_by_scope(
        self,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: Optional[str],
        on_date: Optional[date] = None,
        student_ids: Optional[Sequence[str]] = None,
    ) -> Sequence[AttendanceEvent]:
        """``subject_id=None`` matches every subject; ``on_date=None`` is full history."""

        raise NotImplementedError

    def query_by_student(self, student_id: str) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def batch_upsert(self, events: Sequence[AttendanceEvent]) -> None:
        """Write all events keyed by ``event_id``, all-or-nothing."""

        raise NotImplementedError
