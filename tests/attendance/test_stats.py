from src.attendance_ledger.attendance_ledger.attendance.stats import (
    aggregate,
    aggregate_by_subject,
    classify,
    percentage,
)
from src.attendance_ledger.attendance_ledger.core.enums import Standing
from tests.fakes import make_event


def test_ten_events_seven_present():
    events = [make_event(student_id=f"s{i}", is_present=i < 7) for i in range(10)]

    stats = aggregate(events, "math")

    assert (stats.total, stats.present, stats.percentage) == (10, 7, 70)
    assert stats.absent == 3
    assert stats.standing == Standing.AT_RISK


def test_no_events_is_zero_percent():
    stats = aggregate([], "math")
    assert (stats.total, stats.present, stats.percentage) == (0, 0, 0)


def test_other_subjects_are_ignored():
    events = [make_event(subject_id="math"), make_event(student_id="s2", subject_id="physics", is_present=False)]
    stats = aggregate(events, "math")
    assert (stats.total, stats.present) == (1, 1)


def test_half_percent_rounds_up():
    assert percentage(5, 8) == 63
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67


def test_threshold_boundary():
    assert classify(75) == Standing.ON_TRACK
    assert classify(74) == Standing.AT_RISK
    assert classify(80, threshold=85) == Standing.AT_RISK


def test_aggregate_by_subject_includes_empty_subjects():
    out = aggregate_by_subject([make_event(subject_id="math")], ["math", "physics"])
    assert out["math"].percentage == 100
    assert out["physics"].total == 0
