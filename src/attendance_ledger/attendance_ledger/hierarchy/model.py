from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Student:
    """Roster entry supplied by the hierarchy directory."""

    student_id: str
    display_name: str
    branch_id: str
    batch_id: str
    roll_no: Optional[str] = None
    enrollment_id: Optional[str] = None

    @property
    def roll_label(self) -> str:
        return self.roll_no or self.enrollment_id or "-"


def roll_sort_key(student: Student) -> tuple:
    """Natural ordering on roll number ("CS2" before "CS10"), case-insensitive."""
    raw = (student.roll_no or student.enrollment_id or "").lower()
    parts = re.split(r"(\d+)", raw)
    return tuple((0, int(p)) if p.isdigit() else (1, p) for p in parts if p), student.student_id
