from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from ..scope.model import BatchSelector
from ..users.model import Actor
from .model import AttendanceEvent
from .reader import reduce_events
from .repository import AttendanceRepository


@dataclass(frozen=True)
class ConflictReport:
    """Events held by another author that a pending commit would overwrite.

    Details cover the first conflicting slot; ``other_slots`` lists the rest.
    """

    slot: int
    author_id: str
    author_name: Optional[str]
    present: int
    total: int
    latest_written_at: int
    other_slots: tuple[int, ...] = ()

    @property
    def absent(self) -> int:
        return self.total - self.present

    @property
    def slots(self) -> tuple[int, ...]:
        return (self.slot, *self.other_slots)

    def as_dict(self) -> dict:
        return {
            "slot": self.slot,
            "author_id": self.author_id,
            "author_name": self.author_name,
            "present": self.present,
            "absent": self.absent,
            "total": self.total,
            "latest_written_at": self.latest_written_at,
            "other_slots": list(self.other_slots),
        }


class ConflictDetector:
    """Pre-flight check run right before a commit.

    Advisory only: it reports foreign authorship and never blocks a write.
    Authors are compared by stable user id, not display name.
    """

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def detect(
        self,
        *,
        actor: Actor,
        branch_id: str,
        batch: BatchSelector,
        on_date: date,
        candidates: Sequence[AttendanceEvent],
    ) -> Optional[ConflictReport]:
        if not candidates:
            return None

        slots = sorted({c.lecture_slot for c in candidates})
        student_ids = sorted({c.student_id for c in candidates})

        # Every subject: the dedup key space of a slot ignores subject.
        committed = reduce_events(
            self._attendance.query_by_scope(
                branch_id=branch_id,
                batch=batch,
                subject_id=None,
                on_date=on_date,
                student_ids=student_ids,
            )
        )
        affected = set(student_ids)

        first: Optional[tuple[int, AttendanceEvent]] = None
        other_slots: list[int] = []

        for slot in slots:
            in_slot = [e for e in committed if e.lecture_slot == slot and e.student_id in affected]
            hit = next((e for e in in_slot if e.author_id != actor.user_id), None)
            if hit is None:
                continue
            if first is None:
                first = (slot, hit)
            else:
                other_slots.append(slot)

        if first is None:
            return None

        slot, hit = first
        held = [
            e
            for e in committed
            if e.lecture_slot == slot and e.student_id in affected and e.author_id == hit.author_id
        ]
        return ConflictReport(
            slot=slot,
            author_id=hit.author_id,
            author_name=hit.author_name,
            present=sum(1 for e in held if e.is_present),
            total=len(held),
            latest_written_at=max(e.written_at for e in held),
            other_slots=tuple(other_slots),
        )
