"""Read-only reporting over the weekly template and the study-hours ledger"""
from datetime import date, timedelta
from sqlalchemy import func, desc, case
from sqlalchemy.orm import Session, joinedload
from study_planner.crud.subject import require_subject
from study_planner.models import PlannerSlot, Subject, ProgressEntry, Task, Goal
from typing import Iterable, List, Optional

RECENT_ENTRIES = 10
RECENT_ITEMS = 5
WEEKLY_WINDOW_DAYS = 28

def completion_rate(completed: int, total: int) -> float:
    """completed / total, 0 when there is nothing to complete"""
    if not total:
        return 0.0
    return round(completed / total, 4)

def ledger_stats(entries: Iterable[ProgressEntry]) -> dict:
    """Totals over a set of ledger entries"""
    entries = list(entries)
    total_hours = sum(e.hours_studied or 0.0 for e in entries)
    sessions = len(entries)
    return {
        "total_hours": round(total_hours, 4),
        "total_sessions": sessions,
        "avg_hours_per_session": round(total_hours / sessions, 4) if sessions else 0.0,
        "total_days_studied": len({e.date for e in entries}),
    }

def weekly_summary(db: Session, user_id: int) -> List[dict]:
    """
    Active slot counts and minutes per day-of-week, broken down by subject.
    Always returns seven buckets, Sunday (0) first, empty days included.
    """
    total_minutes = func.coalesce(func.sum(PlannerSlot.duration_minutes), 0)
    rows = db.query(
        PlannerSlot.day_of_week,
        Subject.id,
        Subject.name,
        Subject.color,
        func.count(PlannerSlot.id),
        total_minutes
    ).outerjoin(
        Subject, PlannerSlot.subject_id == Subject.id
    ).filter(
        PlannerSlot.user_id == user_id,
        PlannerSlot.is_active.is_(True)
    ).group_by(
        PlannerSlot.day_of_week, Subject.id, Subject.name, Subject.color
    ).order_by(
        PlannerSlot.day_of_week, desc(total_minutes)
    ).all()

    summary = [
        {"day_of_week": day, "slots_count": 0, "total_minutes": 0, "subjects": []}
        for day in range(7)
    ]
    for day, subject_id, name, color, count, minutes in rows:
        bucket = summary[day]
        bucket["slots_count"] += int(count)
        bucket["total_minutes"] += int(minutes)
        bucket["subjects"].append({
            "subject_id": subject_id,
            "name": name if subject_id is not None else "Unassigned",
            "color": color,
            "slots_count": int(count),
            "total_minutes": int(minutes),
        })
    return summary

def _weekly_progress(db: Session, user_id: int, today: date, subject_id: Optional[int] = None) -> List[dict]:
    since = today - timedelta(days=WEEKLY_WINDOW_DAYS)
    query = db.query(ProgressEntry.date, ProgressEntry.hours_studied).filter(
        ProgressEntry.user_id == user_id,
        ProgressEntry.date >= since,
        ProgressEntry.date <= today
    )
    if subject_id is not None:
        query = query.filter(ProgressEntry.subject_id == subject_id)
    entries = query.all()

    weeks = {}
    for entry_date, hours in entries:
        year, week, _ = entry_date.isocalendar()
        key = f"{year}-W{week:02d}"
        bucket = weeks.setdefault(key, {"week": key, "hours_studied": 0.0, "days": set()})
        bucket["hours_studied"] += hours or 0.0
        bucket["days"].add(entry_date)

    return [
        {"week": b["week"], "hours_studied": round(b["hours_studied"], 4), "days_studied": len(b["days"])}
        for b in sorted(weeks.values(), key=lambda b: b["week"], reverse=True)
    ]

def _progress_by_subject(db: Session, user_id: int) -> List[dict]:
    total_hours = func.coalesce(func.sum(ProgressEntry.hours_studied), 0.0)
    rows = db.query(
        Subject.id,
        Subject.name,
        Subject.color,
        total_hours,
        func.count(ProgressEntry.id)
    ).outerjoin(
        ProgressEntry,
        (ProgressEntry.subject_id == Subject.id) & (ProgressEntry.user_id == user_id)
    ).filter(
        Subject.user_id == user_id
    ).group_by(
        Subject.id, Subject.name, Subject.color
    ).order_by(desc(total_hours), Subject.name).all()

    return [
        {
            "subject_id": subject_id,
            "subject_name": name,
            "subject_color": color,
            "total_hours": round(float(hours), 4),
            "total_sessions": int(sessions),
            "avg_hours_per_session": round(float(hours) / sessions, 4) if sessions else 0.0,
        }
        for subject_id, name, color, hours, sessions in rows
    ]

def _completion(db: Session, model, user_id: int) -> dict:
    total = db.query(func.count(model.id)).filter(model.user_id == user_id).scalar() or 0
    completed = db.query(func.count(model.id)).filter(
        model.user_id == user_id,
        model.is_completed.is_(True)
    ).scalar() or 0
    return {"total": total, "completed": completed, "completion_rate": completion_rate(completed, total)}

def progress_overview(db: Session, user_id: int, today: Optional[date] = None) -> dict:
    """Ledger totals, per-subject hours, recent weeks and task/goal completion"""
    today = today or date.today()
    entries = db.query(ProgressEntry).filter(ProgressEntry.user_id == user_id).all()

    recent = db.query(ProgressEntry).options(joinedload(ProgressEntry.subject)).filter(
        ProgressEntry.user_id == user_id
    ).order_by(
        ProgressEntry.date.desc(), ProgressEntry.created_at.desc(), ProgressEntry.id.desc()
    ).limit(RECENT_ENTRIES).all()

    return {
        "overall_stats": ledger_stats(entries),
        "weekly_progress": _weekly_progress(db, user_id, today),
        "progress_by_subject": _progress_by_subject(db, user_id),
        "recent_progress": recent,
        "tasks": _completion(db, Task, user_id),
        "goals": _completion(db, Goal, user_id),
    }

def subject_stats(db: Session, user_id: int, subject_id: int, today: Optional[date] = None) -> dict:
    """
    Recent activity for one subject: ISO-week hours over the last 28 days and
    its five most recent tasks and goals.

    Raises:
        SubjectNotFound: subject does not belong to the user
    """
    today = today or date.today()
    require_subject(db, user_id, subject_id)

    recent_tasks = db.query(Task).options(joinedload(Task.subject)).filter(
        Task.user_id == user_id,
        Task.subject_id == subject_id
    ).order_by(Task.created_at.desc(), Task.id.desc()).limit(RECENT_ITEMS).all()

    recent_goals = db.query(Goal).options(joinedload(Goal.subject)).filter(
        Goal.user_id == user_id,
        Goal.subject_id == subject_id
    ).order_by(Goal.created_at.desc(), Goal.id.desc()).limit(RECENT_ITEMS).all()

    return {
        "weekly_progress": _weekly_progress(db, user_id, today, subject_id=subject_id),
        "recent_tasks": recent_tasks,
        "recent_goals": recent_goals,
    }

def goal_stats(db: Session, user_id: int) -> dict:
    """Goal counts and hour totals, overall and per subject, plus the latest goals"""
    completed = func.count(case((Goal.is_completed.is_(True), 1)))
    target_hours = func.coalesce(func.sum(Goal.target_hours), 0.0)
    completed_hours = func.coalesce(func.sum(Goal.completed_hours), 0.0)

    total, done, target, achieved = db.query(
        func.count(Goal.id), completed, target_hours, completed_hours
    ).filter(Goal.user_id == user_id).one()

    rows = db.query(
        Subject.id,
        Subject.name,
        Subject.color,
        func.count(Goal.id),
        completed,
        target_hours,
        completed_hours
    ).select_from(Goal).outerjoin(
        Subject, Goal.subject_id == Subject.id
    ).filter(
        Goal.user_id == user_id
    ).group_by(Subject.id, Subject.name, Subject.color).all()

    by_subject = [
        {
            "subject_id": subject_id,
            "subject_name": name if subject_id is not None else "Unassigned",
            "subject_color": color,
            "total_goals": int(count),
            "completed_goals": int(finished),
            "total_target_hours": round(float(hours), 4),
            "total_completed_hours": round(float(hours_done), 4),
            "completion_rate": completion_rate(int(finished), int(count)),
        }
        for subject_id, name, color, count, finished, hours, hours_done in rows
    ]
    by_subject.sort(key=lambda s: s["completion_rate"], reverse=True)

    recent = db.query(Goal).options(joinedload(Goal.subject)).filter(
        Goal.user_id == user_id
    ).order_by(Goal.created_at.desc(), Goal.id.desc()).limit(RECENT_ITEMS).all()

    return {
        "stats": {
            "total_goals": int(total or 0),
            "completed_goals": int(done or 0),
            "pending_goals": int(total or 0) - int(done or 0),
            "total_target_hours": round(float(target), 4),
            "total_completed_hours": round(float(achieved), 4),
        },
        "completion_by_subject": by_subject,
        "recent_goals": recent,
    }
