"""Ledger key scheme.

The identity key names one logical fact (date, student, subject, slot) and
is the storage key, so re-submitting the same fact overwrites it. The dedup
key drops the subject: a slot on a given day is one physical lecture even if
it was once recorded under a stale subject mapping.
"""

from __future__ import annotations

from datetime import date

from ..common.validators import normalize_slot, require_key_component
from ..core.constants import KEY_SEPARATOR


def _date_part(on_date: date) -> str:
    return on_date.strftime("%Y-%m-%d")


def identity_key(on_date: date, student_id: str, subject_id: str, lecture_slot: int | None) -> str:
    return KEY_SEPARATOR.join(
        [
            _date_part(on_date),
            require_key_component(student_id, "student_id"),
            require_key_component(subject_id, "subject_id"),
            f"L{normalize_slot(lecture_slot)}",
        ]
    )


def dedup_key(on_date: date, student_id: str, lecture_slot: int | None) -> str:
    return KEY_SEPARATOR.join(
        [
            _date_part(on_date),
            require_key_component(student_id, "student_id"),
            f"L{normalize_slot(lecture_slot)}",
        ]
    )
