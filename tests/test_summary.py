from datetime import date

import pytest

from study_planner import crud
from study_planner.models import PlannerSlot, ProgressEntry, Task, Goal
from study_planner.schemas import SlotCreate, TaskCreate, GoalCreate, GoalUpdate
from study_planner.crud.summary import completion_rate
from study_planner.exceptions import SubjectNotFound

MONDAY = date(2026, 10, 19)


def test_weekly_summary_has_seven_buckets_when_empty(db, user):
    summary = crud.weekly_summary(db, user.id)
    assert [d["day_of_week"] for d in summary] == list(range(7))
    assert all(d["slots_count"] == 0 and d["total_minutes"] == 0 and d["subjects"] == [] for d in summary)


def test_weekly_summary_groups_by_subject(db, user, math, physics):
    crud.create_slot(db, user.id, SlotCreate(subject_id=math.id, day_of_week=1, start_time="09:00", end_time="10:00"))
    crud.create_slot(db, user.id, SlotCreate(subject_id=math.id, day_of_week=1, start_time="10:00", end_time="11:30"))
    crud.create_slot(db, user.id, SlotCreate(subject_id=physics.id, day_of_week=1, start_time="13:00", end_time="13:30"))
    crud.create_slot(db, user.id, SlotCreate(day_of_week=1, start_time="18:00", end_time="19:00"))
    crud.create_slot(db, user.id, SlotCreate(
        subject_id=physics.id, day_of_week=3, start_time="09:00", end_time="10:00", is_active=False
    ))

    monday = crud.weekly_summary(db, user.id)[1]
    assert monday["slots_count"] == 4
    assert monday["total_minutes"] == 240

    by_name = {s["name"]: s for s in monday["subjects"]}
    assert by_name["Math"]["total_minutes"] == 150
    assert by_name["Math"]["slots_count"] == 2
    assert by_name["Unassigned"]["subject_id"] is None
    assert monday["subjects"][0]["name"] == "Math"

    assert crud.weekly_summary(db, user.id)[3]["slots_count"] == 0


def test_completion_rate_is_a_ratio():
    assert completion_rate(0, 0) == 0.0
    assert completion_rate(1, 3) == pytest.approx(0.3333)
    assert completion_rate(2, 2) == 1.0


def test_progress_overview(db, user, math, physics):
    crud.upsert_progress(db, user.id, math.id, MONDAY, 2.0)
    crud.upsert_progress(db, user.id, physics.id, MONDAY, 1.0)
    crud.upsert_progress(db, user.id, math.id, date(2026, 10, 12), 1.0)
    task = crud.create_task(db, user.id, TaskCreate(title="Revise"))
    crud.toggle_task(db, user.id, task.id)
    crud.create_task(db, user.id, TaskCreate(title="Practice"))

    overview = crud.progress_overview(db, user.id, today=MONDAY)

    assert overview["overall_stats"]["total_hours"] == 4.0
    assert overview["overall_stats"]["total_sessions"] == 3
    assert overview["overall_stats"]["total_days_studied"] == 2
    assert [w["week"] for w in overview["weekly_progress"]] == ["2026-W43", "2026-W42"]
    assert overview["progress_by_subject"][0]["subject_name"] == "Math"
    assert overview["progress_by_subject"][0]["total_hours"] == 3.0
    assert len(overview["recent_progress"]) == 3
    assert overview["tasks"] == {"total": 2, "completed": 1, "completion_rate": 0.5}
    assert overview["goals"] == {"total": 0, "completed": 0, "completion_rate": 0.0}


def test_deleting_subject_keeps_dependents(db, user, math):
    slot = crud.create_slot(db, user.id, SlotCreate(subject_id=math.id, day_of_week=1, start_time="09:00", end_time="10:00"))
    entry, _ = crud.upsert_progress(db, user.id, math.id, MONDAY, 1.0)
    task = crud.create_task(db, user.id, TaskCreate(title="Revise", subject_id=math.id))
    goal = crud.create_goal(db, user.id, GoalCreate(title="Finish calculus", subject_id=math.id, target_hours=10))

    crud.delete_subject(db, user.id, math.id)
    db.expire_all()

    assert db.get(PlannerSlot, slot.id).subject_id is None
    assert db.get(ProgressEntry, entry.id).subject_id is None
    assert db.get(Task, task.id).subject_id is None
    assert db.get(Goal, goal.id).subject_id is None


def test_goal_completes_when_hours_reach_target(db, user):
    goal = crud.create_goal(db, user.id, GoalCreate(title="Ten hours", target_hours=10))
    goal = crud.add_goal_hours(db, user.id, goal.id, 6)
    assert goal.is_completed is False
    goal = crud.add_goal_hours(db, user.id, goal.id, 4)
    assert goal.is_completed is True

    goal = crud.update_goal(db, user.id, goal.id, GoalUpdate(target_hours=20))
    assert goal.is_completed is False


def test_subject_stats(db, user, math, physics):
    crud.upsert_progress(db, user.id, math.id, MONDAY, 2.0)
    crud.upsert_progress(db, user.id, math.id, date(2026, 10, 20), 1.0)
    crud.upsert_progress(db, user.id, physics.id, MONDAY, 4.0)
    crud.upsert_progress(db, user.id, math.id, date(2026, 8, 3), 9.0)
    for n in range(6):
        crud.create_task(db, user.id, TaskCreate(title=f"Task {n}", subject_id=math.id))
    crud.create_task(db, user.id, TaskCreate(title="Optics", subject_id=physics.id))
    crud.create_goal(db, user.id, GoalCreate(title="Finish calculus", subject_id=math.id, target_hours=10))

    stats = crud.subject_stats(db, user.id, math.id, today=date(2026, 10, 21))

    assert stats["weekly_progress"] == [{"week": "2026-W43", "hours_studied": 3.0, "days_studied": 2}]
    assert [t.title for t in stats["recent_tasks"]] == ["Task 5", "Task 4", "Task 3", "Task 2", "Task 1"]
    assert [g.title for g in stats["recent_goals"]] == ["Finish calculus"]


def test_subject_stats_requires_owned_subject(db, other_user, math):
    with pytest.raises(SubjectNotFound):
        crud.subject_stats(db, other_user.id, math.id)


def test_goal_stats(db, user, math):
    done = crud.create_goal(db, user.id, GoalCreate(title="Two hours", subject_id=math.id, target_hours=2))
    crud.add_goal_hours(db, user.id, done.id, 2)
    crud.create_goal(db, user.id, GoalCreate(title="Eight hours", subject_id=math.id, target_hours=8))
    crud.create_goal(db, user.id, GoalCreate(title="Read more", target_hours=5))

    stats = crud.goal_stats(db, user.id)

    assert stats["stats"] == {
        "total_goals": 3,
        "completed_goals": 1,
        "pending_goals": 2,
        "total_target_hours": 15.0,
        "total_completed_hours": 2.0,
    }
    by_name = {s["subject_name"]: s for s in stats["completion_by_subject"]}
    assert by_name["Math"]["completion_rate"] == 0.5
    assert by_name["Math"]["total_target_hours"] == 10.0
    assert by_name["Unassigned"]["completion_rate"] == 0.0
    assert stats["completion_by_subject"][0]["subject_name"] == "Math"
    assert [g.title for g in stats["recent_goals"]] == ["Read more", "Eight hours", "Two hours"]


def test_goal_stats_with_no_goals(db, user):
    stats = crud.goal_stats(db, user.id)
    assert stats["stats"]["total_goals"] == 0
    assert stats["completion_by_subject"] == []
    assert stats["recent_goals"] == []
