from __future__ import annotations

from datetime import date

import pytest

from src.attendance_ledger.attendance_ledger.attendance.keys import identity_key
from src.attendance_ledger.attendance_ledger.attendance.model import CommitRequest
from src.attendance_ledger.attendance_ledger.core.enums import Role, Standing
from src.attendance_ledger.attendance_ledger.core.exceptions import (
    AuthorizationError,
    ConflictAcknowledgmentRequired,
    InvalidSlotSelection,
    ScopeDenied,
    StoreUnavailable,
    ValidationError,
)
from src.attendance_ledger.attendance_ledger.scope.model import ALL_BATCHES, SpecificBatch
from src.attendance_ledger.attendance_ledger.users.model import Actor
from tests.fakes import make_event


def _request(lecture_date, *, batch=SpecificBatch("a1"), subject_id="math", slots=(1,), marks=None):
    return CommitRequest(
        branch_id="cse",
        batch=batch,
        subject_id=subject_id,
        on_date=lecture_date,
        slots=list(slots),
        marks=marks or {},
    )


def test_repeated_commit_overwrites_the_same_event(service, ledger, f2, lecture_date):
    service.commit(f2, _request(lecture_date, marks={"s1": True}))
    service.commit(f2, _request(lecture_date, marks={"s1": False}))

    key = identity_key(lecture_date, "s1", "math", 1)
    stored = [e for e in ledger.all() if e.event_id == key]
    assert len(stored) == 1
    assert stored[0].is_present is False
    assert stored[0].written_at == 2000


def test_wildcard_grant_commit_then_snapshot(service, ledger, f1, lecture_date):
    result = service.commit(f1, _request(lecture_date, batch=ALL_BATCHES))

    assert result.events_written == 3
    snapshot = service.get_class_snapshot(
        f1, branch_id="cse", batch=ALL_BATCHES, subject_id="math", on_date=lecture_date
    )
    assert sorted(e.student_id for e in snapshot) == ["s1", "s2", "s3"]
    assert all(e.is_present for e in snapshot)
    # the wildcard never reaches storage
    assert {e.batch_id for e in ledger.all()} == {"a1", "a2"}


def test_multi_slot_commit_writes_every_slot_with_one_timestamp(service, ledger, f2, lecture_date):
    result = service.commit(f2, _request(lecture_date, slots=[3, 1, 3]))

    assert result.slots == (1, 3)
    assert result.events_written == 4
    assert {e.written_at for e in ledger.all()} == {1000}


def test_missing_marks_default_to_present(service, ledger, f2, lecture_date):
    service.commit(f2, _request(lecture_date, marks={"s2": False}))

    status = {e.student_id: e.is_present for e in ledger.all()}
    assert status == {"s1": True, "s2": False}


def test_zero_slots_is_rejected_without_store_access(service, ledger, f2, lecture_date):
    with pytest.raises(InvalidSlotSelection):
        service.commit(f2, _request(lecture_date, slots=[]))
    assert ledger.upsert_calls == 0
    assert ledger.scope_queries == []


def test_out_of_scope_commit_is_denied_before_store(service, ledger, f2, lecture_date):
    with pytest.raises(ScopeDenied):
        service.commit(f2, _request(lecture_date, batch=SpecificBatch("a2")))
    with pytest.raises(ScopeDenied):
        service.commit(f2, _request(lecture_date, batch=ALL_BATCHES))
    assert ledger.upsert_calls == 0
    assert ledger.scope_queries == []


def test_unknown_student_in_marks_is_rejected(service, f2, lecture_date):
    with pytest.raises(ValidationError):
        service.commit(f2, _request(lecture_date, marks={"s3": True}))


def test_only_faculty_can_commit(service, admin, lecture_date):
    with pytest.raises(AuthorizationError):
        service.commit(admin, _request(lecture_date))


def test_conflict_requires_acknowledgment(service, ledger, f1, f2, lecture_date):
    ledger.seed(make_event(on_date=lecture_date, author_id="f1", author_name="Prof. Rao", written_at=100))

    preflight = service.preflight_commit(f2, _request(lecture_date))
    assert not preflight.clear
    assert preflight.conflict.author_id == "f1"
    assert (preflight.conflict.present, preflight.conflict.total) == (1, 1)

    with pytest.raises(ConflictAcknowledgmentRequired) as exc:
        service.commit(f2, _request(lecture_date, marks={"s1": False}))
    assert exc.value.report.author_id == "f1"
    assert ledger.upsert_calls == 0

    result = service.commit(f2, _request(lecture_date, marks={"s1": False}), acknowledge_conflict=True)
    assert result.overrode_author_id == "f1"

    [s1] = [e for e in service.get_history(f2, "s1")]
    assert s1.is_present is False
    assert s1.author_id == "f2"


def test_original_author_recommits_without_conflict(service, ledger, f1, lecture_date):
    ledger.seed(make_event(on_date=lecture_date, author_id="f1", written_at=100))
    assert service.preflight_commit(f1, _request(lecture_date, batch=ALL_BATCHES)).clear


def test_store_failure_surfaces_as_retryable(service, ledger, f2, lecture_date):
    ledger.fail_writes = True
    with pytest.raises(StoreUnavailable) as exc:
        service.commit(f2, _request(lecture_date))
    assert exc.value.retryable is True
    assert ledger.all() == []


def test_stats_count_each_lecture_once(service, ledger, f2, admin, lecture_date):
    ledger.seed(
        make_event(on_date=lecture_date, subject_id="math", is_present=True, written_at=100),
        make_event(on_date=lecture_date, subject_id="physics", is_present=False, written_at=50),
        make_event(on_date=date(2024, 1, 11), subject_id="math", is_present=False, written_at=300),
        make_event(on_date=date(2024, 1, 12), subject_id="math", student_id="s2", is_present=True, written_at=400),
    )

    stats = service.get_subject_stats(f2, branch_id="cse", batch=SpecificBatch("a1"), subject_id="math")

    assert (stats.overall.total, stats.overall.present, stats.overall.percentage) == (3, 2, 67)
    by_student = {row.student_id: row.stats for row in stats.students}
    assert (by_student["s1"].total, by_student["s1"].present, by_student["s1"].percentage) == (2, 1, 50)
    assert by_student["s1"].standing == Standing.AT_RISK
    assert by_student["s2"].standing == Standing.ON_TRACK

    physics = service.get_subject_stats(admin, branch_id="cse", batch=SpecificBatch("a1"), subject_id="physics")
    assert physics.overall.total == 0


def test_later_write_under_other_subject_hides_stale_subject(service, ledger, f2, lecture_date):
    ledger.seed(
        make_event(on_date=lecture_date, subject_id="math", written_at=100),
        make_event(on_date=lecture_date, subject_id="physics", written_at=200, is_present=False),
    )

    math = service.get_class_snapshot(
        f2, branch_id="cse", batch=SpecificBatch("a1"), subject_id="math", on_date=lecture_date
    )
    physics = service.get_class_snapshot(
        f2, branch_id="cse", batch=SpecificBatch("a1"), subject_id="physics", on_date=lecture_date
    )
    assert math == []
    assert [e.is_present for e in physics] == [False]


def test_student_sees_only_own_history(service, ledger, lecture_date):
    ledger.seed(make_event(on_date=lecture_date, student_id="s1"), make_event(on_date=lecture_date, student_id="s2"))
    student = Actor(user_id="s1", display_name="Asha", role=Role.STUDENT)

    assert [e.student_id for e in service.get_history(student, "s1")] == ["s1"]
    with pytest.raises(AuthorizationError):
        service.get_history(student, "s2")


def test_student_cannot_open_class_views(service, lecture_date):
    student = Actor(user_id="s1", display_name="Asha", role=Role.STUDENT)
    with pytest.raises(AuthorizationError):
        service.get_class_snapshot(
            student, branch_id="cse", batch=SpecificBatch("a1"), subject_id="math", on_date=lecture_date
        )


def test_student_dashboard_per_subject(service, ledger, lecture_date):
    ledger.seed(
        make_event(on_date=lecture_date, subject_id="physics", slot=1, is_present=True),
        make_event(on_date=lecture_date, subject_id="math", slot=2, is_present=False),
        make_event(on_date=lecture_date, subject_id="history", slot=3, is_present=True),
    )
    student = Actor(user_id="s1", display_name="Asha", role=Role.STUDENT)

    dashboard = service.get_student_dashboard(student, "s1")

    assert list(dashboard) == ["math", "physics", "history"]
    assert dashboard["math"].percentage == 0
    assert dashboard["physics"].percentage == 100


def test_marking_sheet_prefills_primary_slot(service, ledger, f2, lecture_date):
    ledger.seed(
        make_event(on_date=lecture_date, student_id="s2", slot=2, is_present=False, author_id="f1"),
        make_event(on_date=lecture_date, student_id="s1", slot=5, is_present=False),
    )

    rows = service.get_marking_sheet(
        f2, branch_id="cse", batch=SpecificBatch("a1"), subject_id="math", on_date=lecture_date, slots=[5, 2]
    )

    assert [(r.student_id, r.is_present, r.marked_by) for r in rows] == [("s1", True, None), ("s2", False, "f1")]


def test_export_rows_use_roster_names(service, ledger, f2, lecture_date):
    ledger.seed(make_event(on_date=lecture_date, is_present=False, author_name="Prof. Rao"))

    rows = service.export_class_history(f2, branch_id="cse", batch=SpecificBatch("a1"), subject_id="math")

    assert rows == [
        {
            "date": "2024-01-10",
            "lecture": "Lecture 1",
            "student_name": "Asha",
            "roll_no": "CS1",
            "status": "Absent",
            "marked_by": "Prof. Rao",
        }
    ]


def test_faculty_without_grants_has_empty_scope(service):
    nobody = Actor(user_id="f9", display_name="New Hire", role=Role.FACULTY)
    assert service.resolve_scope(nobody).is_empty


def test_faculty_reads_only_students_they_teach(service, ledger, f2, lecture_date):
    ledger.seed(
        make_event(on_date=lecture_date, student_id="s1"),
        make_event(on_date=lecture_date, student_id="s3", batch_id="a2"),
    )

    assert [e.student_id for e in service.get_history(f2, "s1")] == ["s1"]
    assert list(service.get_student_dashboard(f2, "s1")) == ["math"]
    with pytest.raises(ScopeDenied):
        service.get_history(f2, "s3")
    with pytest.raises(ScopeDenied):
        service.get_student_dashboard(f2, "s4")


def test_wildcard_faculty_and_admin_read_any_student(service, ledger, f1, admin, lecture_date):
    ledger.seed(make_event(on_date=lecture_date, student_id="s3", batch_id="a2"))

    assert [e.student_id for e in service.get_history(f1, "s3")] == ["s3"]
    assert [e.student_id for e in service.get_history(admin, "s3")] == ["s3"]
    with pytest.raises(ScopeDenied):
        service.get_history(f1, "s4")
