from __future__ import annotations

from datetime import date

import pytest

from src.attendance_ledger.attendance_ledger.attendance.service import AttendanceService
from src.attendance_ledger.attendance_ledger.core.enums import Role
from src.attendance_ledger.attendance_ledger.hierarchy.model import Student
from src.attendance_ledger.attendance_ledger.scope.model import ALL_BATCHES, SpecificBatch, TeachingGrant
from src.attendance_ledger.attendance_ledger.scope.resolver import AssignmentResolver
from src.attendance_ledger.attendance_ledger.users.model import Actor
from tests.fakes import InMemoryAttendance, InMemoryGrants, InMemoryHierarchy, SteppingClock


@pytest.fixture
def lecture_date() -> date:
    return date(2024, 1, 10)


@pytest.fixture
def hierarchy() -> InMemoryHierarchy:
    return InMemoryHierarchy(
        batches={"cse": ["a1", "a2"], "ece": ["b1"]},
        students=[
            Student(student_id="s1", display_name="Asha", branch_id="cse", batch_id="a1", roll_no="CS1"),
            Student(student_id="s2", display_name="Bilal", branch_id="cse", batch_id="a1", roll_no="CS2"),
            Student(student_id="s3", display_name="Chen", branch_id="cse", batch_id="a2", roll_no="CS10"),
            Student(student_id="s4", display_name="Dara", branch_id="ece", batch_id="b1", roll_no="EC1"),
        ],
        subjects=["math", "physics", "circuits"],
    )


@pytest.fixture
def grants() -> InMemoryGrants:
    return InMemoryGrants(
        [
            TeachingGrant(grant_id="g1", faculty_id="f1", subject_id="math", branch_id="cse", batch=ALL_BATCHES),
            TeachingGrant(grant_id="g2", faculty_id="f2", subject_id="math", branch_id="cse", batch=SpecificBatch("a1")),
            TeachingGrant(grant_id="g3", faculty_id="f2", subject_id="physics", branch_id="cse", batch=SpecificBatch("a1")),
        ]
    )


@pytest.fixture
def ledger() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def service(ledger, hierarchy, grants, clock) -> AttendanceService:
    return AttendanceService(ledger, hierarchy, AssignmentResolver(grants, hierarchy), clock=clock)


@pytest.fixture
def f1() -> Actor:
    return Actor(user_id="f1", display_name="Prof. Rao", role=Role.FACULTY)


@pytest.fixture
def f2() -> Actor:
    return Actor(user_id="f2", display_name="Prof. Iyer", role=Role.FACULTY)


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin", display_name="Admin", role=Role.ADMIN)
