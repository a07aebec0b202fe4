from types import SimpleNamespace

import pytest

from study_planner.conflicts import ConflictDetector
from study_planner.exceptions import TimeConflict


def slot(id, start, end, is_active=True):
    return SimpleNamespace(id=id, start_time=start, end_time=end, is_active=is_active)


def test_touching_intervals_do_not_overlap():
    assert not ConflictDetector.overlaps("09:00", "10:00", "10:00", "11:00")
    assert not ConflictDetector.overlaps("10:00", "11:00", "09:00", "10:00")


def test_partial_and_nested_overlap():
    assert ConflictDetector.overlaps("09:00", "10:00", "09:30", "10:30")
    assert ConflictDetector.overlaps("09:00", "12:00", "10:00", "11:00")


def test_find_conflict_skips_inactive_and_excluded():
    existing = [slot(1, "09:00", "10:00", is_active=False), slot(2, "09:30", "11:00")]
    assert ConflictDetector.find_conflict("09:00", "10:00", existing).id == 2
    assert ConflictDetector.find_conflict("09:00", "10:00", existing, exclude_id=2) is None


def test_check_names_conflicting_slot():
    with pytest.raises(TimeConflict) as exc_info:
        ConflictDetector.check("09:30", "10:30", [slot(7, "09:00", "10:00")])
    assert exc_info.value.conflicting_id == 7


def test_batch_conflicts_only_on_same_day():
    placements = [
        (1, 1, "09:00", "10:00"),
        (2, 1, "09:30", "10:30"),
        (3, 2, "09:00", "10:00"),
    ]
    assert ConflictDetector.find_batch_conflicts(placements) == [(1, 2)]
