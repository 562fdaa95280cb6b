from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from typing import Optional, Sequence

from ..common.clock import WriteClock
from ..common.validators import normalize_slot_selection, require_key_component
from ..core.constants import AT_RISK_THRESHOLD
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictAcknowledgmentRequired,
    ScopeDenied,
    ValidationError,
)
from ..hierarchy.model import Student
from ..hierarchy.repository import HierarchyRepository
from ..scope.model import ALL_BATCHES, BatchSelector, ResolvedScope
from ..scope.resolver import AssignmentResolver
from ..users.model import Actor
from .conflicts import ConflictDetector, ConflictReport
from .keys import identity_key
from .model import (
    AttendanceEvent,
    AttendanceStats,
    ClassStats,
    CommitRequest,
    CommitResult,
    MarkingSheetRow,
)
from .reader import reduce_events, sort_for_display
from .repository import AttendanceRepository
from .stats import aggregate, aggregate_by_student, aggregate_by_subject

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreflightResult:
    conflict: Optional[ConflictReport] = None

    @property
    def clear(self) -> bool:
        return self.conflict is None


class AttendanceService:
    """Use cases for recording and reading attendance.

    Every read reduces raw events by dedup key before anything is rendered
    or counted.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        hierarchy: HierarchyRepository,
        resolver: AssignmentResolver,
        *,
        detector: ConflictDetector | None = None,
        clock: WriteClock | None = None,
        at_risk_threshold: int = AT_RISK_THRESHOLD,
    ):
        self._attendance = attendance
        self._hierarchy = hierarchy
        self._resolver = resolver
        self._detector = detector or ConflictDetector(attendance)
        self._clock = clock or WriteClock()
        self._threshold = int(at_risk_threshold)

    # --- scope ---

    def resolve_scope(self, actor: Actor) -> ResolvedScope:
        if actor.role != Role.FACULTY:
            raise AuthorizationError("Only faculty have a teaching scope")
        return self._resolver.resolve(actor.user_id)

    def _authorize_class(self, actor: Actor, branch_id: str, batch: BatchSelector, subject_id: str) -> None:
        if actor.is_admin:
            return
        if actor.role != Role.FACULTY:
            raise AuthorizationError("Class views are limited to faculty and admins")

        scope = self._resolver.resolve(actor.user_id)
        if not scope.allows(branch_id, batch, subject_id):
            raise ScopeDenied(f"{subject_id} in {branch_id}/{batch} is outside your assigned classes")

    def _authorize_student(self, actor: Actor, student_id: str) -> None:
        if actor.is_admin:
            return
        if actor.role == Role.STUDENT:
            if actor.user_id != student_id:
                raise AuthorizationError("Students can only view their own attendance")
            return
        if actor.role != Role.FACULTY:
            raise AuthorizationError("Student views are limited to the student, faculty and admins")

        # Faculty see students enrolled in a batch they teach, under any subject.
        scope = self._resolver.resolve(actor.user_id)
        for branch_id in scope.branch_ids():
            taught = set().union(*scope.branches[branch_id].values())
            for s in self._hierarchy.list_students(branch_id, ALL_BATCHES):
                if s.student_id == student_id and s.batch_id in taught:
                    return
        raise ScopeDenied(f"Student {student_id} is not in any of your assigned classes")

    # --- commit ---

    def _candidates(self, actor: Actor, request: CommitRequest) -> tuple[tuple[int, ...], list[AttendanceEvent]]:
        if actor.role != Role.FACULTY:
            raise AuthorizationError("Only faculty can record attendance")

        slots = normalize_slot_selection(request.slots)
        branch_id = require_key_component(request.branch_id, "branch_id")
        subject_id = require_key_component(request.subject_id, "subject_id")
        self._authorize_class(actor, branch_id, request.batch, subject_id)

        roster = self._hierarchy.list_students(branch_id, request.batch)
        if not roster:
            raise ValidationError("No students enrolled in the selected class")

        enrolled = {s.student_id for s in roster}
        unknown = sorted(set(request.marks) - enrolled)
        if unknown:
            raise ValidationError(f"Not enrolled in the selected class: {', '.join(unknown)}")

        events = [
            AttendanceEvent(
                event_id=identity_key(request.on_date, s.student_id, subject_id, slot),
                on_date=request.on_date,
                student_id=s.student_id,
                subject_id=subject_id,
                branch_id=branch_id,
                batch_id=s.batch_id,
                lecture_slot=slot,
                is_present=bool(request.marks.get(s.student_id, True)),
                author_id=actor.user_id,
                author_name=actor.display_name,
                written_at=0,
            )
            for slot in slots
            for s in roster
        ]
        return slots, events

    def preflight_commit(self, actor: Actor, request: CommitRequest) -> PreflightResult:
        _, candidates = self._candidates(actor, request)
        report = self._detector.detect(
            actor=actor,
            branch_id=request.branch_id,
            batch=request.batch,
            on_date=request.on_date,
            candidates=candidates,
        )
        return PreflightResult(conflict=report)

    def commit(self, actor: Actor, request: CommitRequest, *, acknowledge_conflict: bool = False) -> CommitResult:
        slots, candidates = self._candidates(actor, request)

        report = self._detector.detect(
            actor=actor,
            branch_id=request.branch_id,
            batch=request.batch,
            on_date=request.on_date,
            candidates=candidates,
        )
        if report and not acknowledge_conflict:
            raise ConflictAcknowledgmentRequired(report)
        if report:
            logger.warning(
                "faculty %s overrides %s on %s slot(s) %s",
                actor.user_id,
                report.author_id,
                request.on_date,
                list(report.slots),
            )

        written_at = self._clock.now()
        events = [replace(e, written_at=written_at) for e in candidates]
        self._attendance.batch_upsert(events)

        logger.info(
            "faculty %s committed %d event(s) for %s/%s/%s on %s slots=%s",
            actor.user_id,
            len(events),
            request.branch_id,
            request.batch,
            request.subject_id,
            request.on_date,
            list(slots),
        )
        return CommitResult(
            events_written=len(events),
            slots=slots,
            overrode_author_id=report.author_id if report else None,
        )

    # --- reads ---

    def _class_events(
        self,
        branch_id: str,
        batch: BatchSelector,
        subject_id: str,
        on_date: Optional[date] = None,
    ) -> list[AttendanceEvent]:
        # Reduce across every subject first so a later write under another
        # subject supersedes a stale one, then keep the requested subject.
        raw = self._attendance.query_by_scope(branch_id=branch_id, batch=batch, subject_id=None, on_date=on_date)
        return [e for e in reduce_events(raw) if e.subject_id == subject_id]

    def get_history(self, actor: Actor, student_id: str) -> list[AttendanceEvent]:
        self._authorize_student(actor, student_id)
        return sort_for_display(reduce_events(self._attendance.query_by_student(student_id)))

    def get_class_snapshot(
        self,
        actor: Actor,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: str,
        on_date: date,
    ) -> list[AttendanceEvent]:
        self._authorize_class(actor, branch_id, batch, subject_id)
        return sort_for_display(self._class_events(branch_id, batch, subject_id, on_date))

    def get_subject_stats(
        self,
        actor: Actor,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: str,
    ) -> ClassStats:
        self._authorize_class(actor, branch_id, batch, subject_id)
        events = self._class_events(branch_id, batch, subject_id)
        roster = self._hierarchy.list_students(branch_id, batch)
        return ClassStats(
            overall=aggregate(events, subject_id, threshold=self._threshold),
            students=aggregate_by_student(events, roster, threshold=self._threshold),
        )

    def get_student_dashboard(self, actor: Actor, student_id: str) -> dict[str, AttendanceStats]:
        self._authorize_student(actor, student_id)
        events = reduce_events(self._attendance.query_by_student(student_id))

        seen = {e.subject_id for e in events}
        catalog = [s for s in self._hierarchy.list_subjects() if s in seen]
        subject_ids = catalog + sorted(seen - set(catalog))
        return aggregate_by_subject(events, subject_ids, threshold=self._threshold)

    def get_marking_sheet(
        self,
        actor: Actor,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: str,
        on_date: date,
        slots: Sequence[int],
    ) -> list[MarkingSheetRow]:
        """Roster prefilled for marking: present by default, committed status of the primary slot on top."""
        primary = normalize_slot_selection(slots)[0]
        self._authorize_class(actor, branch_id, batch, subject_id)

        roster = self._hierarchy.list_students(branch_id, batch)
        committed = {
            e.student_id: e
            for e in self._class_events(branch_id, batch, subject_id, on_date)
            if e.lecture_slot == primary
        }

        rows: list[MarkingSheetRow] = []
        for s in roster:
            e = committed.get(s.student_id)
            rows.append(
                MarkingSheetRow(
                    student_id=s.student_id,
                    display_name=s.display_name,
                    roll_label=s.roll_label,
                    batch_id=s.batch_id,
                    is_present=e.is_present if e else True,
                    marked_by=e.author_id if e else None,
                )
            )
        return rows

    def export_class_history(
        self,
        actor: Actor,
        *,
        branch_id: str,
        batch: BatchSelector,
        subject_id: str,
    ) -> list[dict]:
        self._authorize_class(actor, branch_id, batch, subject_id)
        events = sort_for_display(self._class_events(branch_id, batch, subject_id))
        roster: dict[str, Student] = {s.student_id: s for s in self._hierarchy.list_students(branch_id, batch)}

        out: list[dict] = []
        for e in events:
            s = roster.get(e.student_id)
            out.append(
                {
                    "date": e.on_date.strftime("%Y-%m-%d"),
                    "lecture": f"Lecture {e.lecture_slot}",
                    "student_name": s.display_name if s else "Unknown",
                    "roll_no": s.roll_label if s else "-",
                    "status": "Present" if e.is_present else "Absent",
                    "marked_by": e.author_name or e.author_id,
                }
            )
        return out
