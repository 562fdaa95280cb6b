from datetime import date

import pytest

from src.attendance_ledger.attendance_ledger.attendance.keys import dedup_key, identity_key
from src.attendance_ledger.attendance_ledger.core.exceptions import ValidationError


def test_identity_key_is_deterministic():
    d = date(2024, 1, 10)
    assert identity_key(d, "s1", "math", 3) == identity_key(d, "s1", "math", 3)
    assert identity_key(d, "s1", "math", 3) == "2024-01-10|s1|math|L3"


def test_identity_key_defaults_slot_to_one():
    d = date(2024, 1, 10)
    assert identity_key(d, "s1", "math", None) == identity_key(d, "s1", "math", 1)


def test_dedup_key_ignores_subject():
    d = date(2024, 1, 10)
    assert dedup_key(d, "s1", 2) == "2024-01-10|s1|L2"
    assert identity_key(d, "s1", "math", 2) != identity_key(d, "s1", "physics", 2)


def test_underscored_ids_do_not_collide():
    d = date(2024, 1, 10)
    assert identity_key(d, "s_1", "math", 1) != identity_key(d, "s", "1_math", 1)


def test_separator_in_component_is_rejected():
    with pytest.raises(ValidationError):
        identity_key(date(2024, 1, 10), "s|1", "math", 1)


def test_slot_out_of_range_is_rejected():
    with pytest.raises(ValidationError):
        dedup_key(date(2024, 1, 10), "s1", 8)
