from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from ..core.constants import AT_RISK_THRESHOLD
from ..core.enums import Standing
from ..hierarchy.model import Student
from .model import AttendanceEvent, AttendanceStats, StudentStatsRow


def percentage(present: int, total: int) -> int:
    """Whole percent, halves rounded up; 0 when there is nothing to count."""
    if total <= 0:
        return 0
    return (present * 200 + total) // (total * 2)


def classify(percent: int, *, threshold: int = AT_RISK_THRESHOLD) -> Standing:
    return Standing.AT_RISK if percent < threshold else Standing.ON_TRACK


def summarize(events: Iterable[AttendanceEvent], *, threshold: int = AT_RISK_THRESHOLD) -> AttendanceStats:
    total = 0
    present = 0
    for e in events:
        total += 1
        if e.is_present:
            present += 1
    percent = percentage(present, total)
    return AttendanceStats(total=total, present=present, percentage=percent, standing=classify(percent, threshold=threshold))


def aggregate(
    events: Iterable[AttendanceEvent],
    subject_id: str,
    *,
    threshold: int = AT_RISK_THRESHOLD,
) -> AttendanceStats:
    """Stats for one subject over an already deduplicated event set."""
    return summarize((e for e in events if e.subject_id == subject_id), threshold=threshold)


def aggregate_by_subject(
    events: Iterable[AttendanceEvent],
    subject_ids: Sequence[str],
    *,
    threshold: int = AT_RISK_THRESHOLD,
) -> dict[str, AttendanceStats]:
    grouped: dict[str, list[AttendanceEvent]] = defaultdict(list)
    for e in events:
        grouped[e.subject_id].append(e)
    return {sid: summarize(grouped.get(sid, []), threshold=threshold) for sid in subject_ids}


def aggregate_by_student(
    events: Iterable[AttendanceEvent],
    students: Sequence[Student],
    *,
    threshold: int = AT_RISK_THRESHOLD,
) -> list[StudentStatsRow]:
    grouped: dict[str, list[AttendanceEvent]] = defaultdict(list)
    for e in events:
        grouped[e.student_id].append(e)
    return [
        StudentStatsRow(
            student_id=s.student_id,
            display_name=s.display_name,
            roll_label=s.roll_label,
            stats=summarize(grouped.get(s.student_id, []), threshold=threshold),
        )
        for s in students
    ]
