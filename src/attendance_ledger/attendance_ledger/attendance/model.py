from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional, Sequence

from ..core.constants import DEFAULT_LECTURE_SLOT
from ..core.enums import Standing
from ..scope.model import BatchSelector


@dataclass(frozen=True)
class AttendanceEvent:
    """One student's presence/absence for one lecture occurrence.

    ``written_at`` is commit time in epoch milliseconds and only breaks ties;
    ``on_date`` is the business date.
    """

    event_id: str
    on_date: date
    student_id: str
    subject_id: str
    branch_id: str
    batch_id: str
    is_present: bool
    author_id: str
    written_at: int
    lecture_slot: int = DEFAULT_LECTURE_SLOT
    author_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "date": self.on_date.strftime("%Y-%m-%d"),
            "student_id": self.student_id,
            "subject_id": self.subject_id,
            "branch_id": self.branch_id,
            "batch_id": self.batch_id,
            "lecture_slot": self.lecture_slot,
            "is_present": self.is_present,
            "marked_by": self.author_id,
            "marked_by_name": self.author_name,
            "written_at": self.written_at,
        }


@dataclass(frozen=True)
class CommitRequest:
    """A faculty member's marks for one class, one date, one or more slots.

    Roster students missing from ``marks`` are recorded present.
    """

    branch_id: str
    batch: BatchSelector
    subject_id: str
    on_date: date
    slots: Sequence[int]
    marks: Mapping[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class CommitResult:
    events_written: int
    slots: tuple[int, ...]
    overrode_author_id: Optional[str] = None


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    percentage: int
    standing: Standing

    @property
    def absent(self) -> int:
        return self.total - self.present

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "percentage": self.percentage,
            "standing": self.standing.value,
        }


@dataclass(frozen=True)
class StudentStatsRow:
    student_id: str
    display_name: str
    roll_label: str
    stats: AttendanceStats


@dataclass(frozen=True)
class ClassStats:
    overall: AttendanceStats
    students: list[StudentStatsRow]


@dataclass(frozen=True)
class MarkingSheetRow:
    student_id: str
    display_name: str
    roll_label: str
    batch_id: str
    is_present: bool
    marked_by: Optional[str] = None
