from datetime import date

import pytest

from study_planner import crud
from study_planner.crud import progress as progress_crud
from study_planner.exceptions import InvalidHours, SubjectNotFound, DuplicateProgressEntry
from study_planner.models import ProgressEntry
from study_planner.schemas import ProgressUpdate, SlotCreate

MONDAY = date(2026, 10, 19)


def test_same_key_aggregates_into_one_entry(db, user, math):
    first, aggregated = crud.upsert_progress(db, user.id, math.id, MONDAY, 1.5)
    assert aggregated is False

    second, aggregated = crud.upsert_progress(db, user.id, math.id, MONDAY, 2.0)
    assert aggregated is True
    assert second.id == first.id
    assert second.hours_studied == pytest.approx(3.5)
    assert db.query(ProgressEntry).count() == 1


def test_notes_replaced_only_when_given(db, user, math):
    crud.upsert_progress(db, user.id, math.id, MONDAY, 1.0, notes="algebra")
    entry, _ = crud.upsert_progress(db, user.id, math.id, MONDAY, 1.0)
    assert entry.notes == "algebra"

    entry, _ = crud.upsert_progress(db, user.id, math.id, MONDAY, 0.5, notes="geometry")
    assert entry.notes == "geometry"


def test_zero_hours_is_allowed(db, user, math):
    entry, _ = crud.upsert_progress(db, user.id, math.id, MONDAY, 0.0)
    assert entry.hours_studied == 0.0


def test_negative_hours_rejected(db, user, math):
    with pytest.raises(InvalidHours):
        crud.upsert_progress(db, user.id, math.id, MONDAY, -1.0)
    assert db.query(ProgressEntry).count() == 0


def test_other_users_subject_rejected(db, user, other_user, math):
    with pytest.raises(SubjectNotFound):
        crud.upsert_progress(db, other_user.id, math.id, MONDAY, 1.0)


def test_update_onto_existing_key_is_rejected(db, user, math, physics):
    crud.upsert_progress(db, user.id, math.id, MONDAY, 1.0)
    entry, _ = crud.upsert_progress(db, user.id, physics.id, MONDAY, 1.0)
    with pytest.raises(DuplicateProgressEntry):
        crud.update_progress(db, user.id, entry.id, ProgressUpdate(subject_id=math.id))


def test_subject_progress_stats(db, user, math):
    crud.upsert_progress(db, user.id, math.id, MONDAY, 1.0)
    crud.upsert_progress(db, user.id, math.id, date(2026, 10, 20), 3.0)

    result = crud.subject_progress(db, user.id, math.id)
    assert [e.date for e in result["progress"]] == [date(2026, 10, 20), MONDAY]
    assert result["stats"] == {
        "total_hours": 4.0,
        "total_sessions": 2,
        "avg_hours_per_session": 2.0,
        "total_days_studied": 2,
    }


def test_auto_log_folds_todays_slots(db, user, math, physics):
    crud.create_slot(db, user.id, SlotCreate(subject_id=math.id, day_of_week=1, start_time="09:00", end_time="10:30"))
    crud.create_slot(db, user.id, SlotCreate(subject_id=physics.id, day_of_week=1, start_time="11:00", end_time="12:00"))
    crud.create_slot(db, user.id, SlotCreate(day_of_week=1, start_time="13:00", end_time="14:00"))
    crud.upsert_progress(db, user.id, physics.id, MONDAY, 0.5)

    result = crud.auto_log_today(db, user.id, today=MONDAY)

    assert result["created"] == 1
    assert result["aggregated"] == 1
    assert result["skipped"] == 1
    assert result["errors"] == []
    hours = {e.subject_id: e.hours_studied for e in db.query(ProgressEntry).all()}
    assert hours[math.id] == pytest.approx(1.5)
    assert hours[physics.id] == pytest.approx(1.5)


def test_auto_log_twice_adds_twice(db, user, math):
    crud.create_slot(db, user.id, SlotCreate(subject_id=math.id, day_of_week=1, start_time="09:00", end_time="10:00"))
    crud.auto_log_today(db, user.id, today=MONDAY)
    crud.auto_log_today(db, user.id, today=MONDAY)

    entry = db.query(ProgressEntry).one()
    assert entry.hours_studied == pytest.approx(2.0)


def test_auto_log_with_no_slots(db, user):
    result = crud.auto_log_today(db, user.id, today=MONDAY)
    assert result == {"date": MONDAY, "created": 0, "aggregated": 0, "skipped": 0, "errors": []}


def test_lost_insert_race_aggregates_instead(db, session_factory, monkeypatch, user, math):
    # Another session commits the same key after this call looked it up
    rival = session_factory()
    rival.add(ProgressEntry(user_id=user.id, subject_id=math.id, date=MONDAY, hours_studied=1.0))
    rival.commit()
    rival.close()

    real_find = progress_crud._find_entry
    lookups = []

    def stale_find(*args):
        lookups.append(args)
        return None if len(lookups) == 1 else real_find(*args)

    monkeypatch.setattr(progress_crud, "_find_entry", stale_find)

    entry, aggregated = crud.upsert_progress(db, user.id, math.id, MONDAY, 2.0)

    assert aggregated is True
    assert entry.hours_studied == pytest.approx(3.0)
    assert db.query(ProgressEntry).count() == 1
