from __future__ import annotations

from typing import Iterable

from .keys import dedup_key
from .model import AttendanceEvent


def _rank(event: AttendanceEvent) -> tuple[int, str]:
    return event.written_at, event.event_id


def reduce_events(events: Iterable[AttendanceEvent]) -> list[AttendanceEvent]:
    """Collapse events sharing a dedup key into the latest write.

    The greatest ``written_at`` wins; ties go to the greater ``event_id`` so the
    result does not depend on input order. Every read path that renders
    history or computes statistics goes through here first.
    """

    winners: dict[str, AttendanceEvent] = {}
    for e in events:
        key = dedup_key(e.on_date, e.student_id, e.lecture_slot)
        current = winners.get(key)
        if current is None or _rank(e) > _rank(current):
            winners[key] = e
    return list(winners.values())


def sort_for_display(events: Iterable[AttendanceEvent]) -> list[AttendanceEvent]:
    return sorted(events, key=lambda e: (e.on_date, e.lecture_slot, e.student_id))
