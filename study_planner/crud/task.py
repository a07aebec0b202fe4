import logging
from collections import Counter
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from study_planner.config import settings
from study_planner.crud.pagination import paginate
from study_planner.crud.planner_slot import get_slots_for_day
from study_planner.crud.subject import require_subject
from study_planner.crud.summary import completion_rate
from study_planner.exceptions import TaskNotFound
from study_planner.models import Task, PlannerSlot
from study_planner.schemas import TaskCreate, TaskUpdate
from study_planner.timeutils import TimeArithmetic
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

def get_task(db: Session, user_id: int, task_id: int) -> Task:
    """Get a task owned by the user or raise TaskNotFound"""
    task = db.query(Task).options(joinedload(Task.subject)).filter(
        Task.id == task_id,
        Task.user_id == user_id
    ).first()
    if not task:
        raise TaskNotFound(f"Task {task_id} not found")
    return task

def list_tasks(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    subject_id: Optional[int] = None,
    priority: Optional[str] = None,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[Task], dict]:
    """
    Paginated tasks, newest first.

    Args:
        status: "completed" or "pending"
    """
    query = db.query(Task).options(joinedload(Task.subject)).filter(Task.user_id == user_id)
    if status:
        query = query.filter(Task.is_completed.is_(status == "completed"))
    if subject_id:
        query = query.filter(Task.subject_id == subject_id)
    if priority:
        query = query.filter(Task.priority == priority)
    query = query.order_by(Task.created_at.desc(), Task.id.desc())
    return paginate(query, page, limit)

def get_tasks_for_date(db: Session, user_id: int, created_date: date) -> List[Task]:
    """Tasks created on a calendar day"""
    return db.query(Task).options(joinedload(Task.subject)).filter(
        Task.user_id == user_id,
        Task.created_date == created_date
    ).order_by(Task.id).all()

def create_task(db: Session, user_id: int, task: TaskCreate, today: Optional[date] = None) -> Task:
    """Create a manual task"""
    if task.subject_id is not None:
        require_subject(db, user_id, task.subject_id)

    db_task = Task(
        user_id=user_id,
        created_date=today or date.today(),
        **task.model_dump()
    )
    db.add(db_task)
    db.commit()
    db.refresh(db_task)
    logger.info(f"Task created: {db_task.title} by user {user_id}")
    return db_task

def update_task(db: Session, user_id: int, task_id: int, patch: TaskUpdate) -> Task:
    """Update a task; omitted fields are left alone"""
    db_task = get_task(db, user_id, task_id)
    data = patch.model_dump(exclude_unset=True)

    if data.get("subject_id") is not None:
        require_subject(db, user_id, data["subject_id"])
    for key in ("title", "priority", "is_completed"):
        if key in data and data[key] is None:
            data.pop(key)

    for key, value in data.items():
        setattr(db_task, key, value)
    db.commit()
    db.refresh(db_task)
    logger.info(f"Task updated: {db_task.title} by user {user_id}")
    return db_task

def toggle_task(db: Session, user_id: int, task_id: int) -> Task:
    """Flip the completion flag"""
    db_task = get_task(db, user_id, task_id)
    db_task.is_completed = not db_task.is_completed
    db.commit()
    db.refresh(db_task)
    logger.info(f"Task {'completed' if db_task.is_completed else 'uncompleted'}: {db_task.title} by user {user_id}")
    return db_task

def delete_task(db: Session, user_id: int, task_id: int):
    db_task = get_task(db, user_id, task_id)
    db.delete(db_task)
    db.commit()
    logger.info(f"Task deleted: {db_task.title} by user {user_id}")

def _task_from_slot(user_id: int, slot: PlannerSlot, today: date) -> Task:
    if slot.title:
        title = slot.title
    elif slot.subject is not None:
        title = f"Study {slot.subject.name}"
    else:
        title = "Study session"

    return Task(
        user_id=user_id,
        subject_id=slot.subject_id,
        slot_id=slot.id,
        title=title,
        description=slot.description,
        priority="medium",
        created_date=today
    )

def derive_today_tasks(
    db: Session,
    user_id: int,
    today: Optional[date] = None,
    guard: Optional[str] = None
) -> Tuple[List[Task], bool]:
    """
    Materialize today's tasks from the weekly template.

    Args:
        today: Calendar day to derive for (defaults to date.today())
        guard: "any" - any task created today blocks derivation entirely,
               including a manual one.
               "per_slot" - each active slot gets one task per day; manual
               tasks never block. Defaults to settings.task_guard

    Returns:
        (tasks created today, whether this call generated any)
    """
    today = today or date.today()
    guard = guard or settings.task_guard

    slots = get_slots_for_day(db, user_id, TimeArithmetic.day_of_week(today), active_only=True)
    existing = get_tasks_for_date(db, user_id, today)

    if guard == "per_slot":
        derived = {task.slot_id for task in existing if task.slot_id is not None}
        pending = [slot for slot in slots if slot.id not in derived]
    else:
        pending = [] if existing else slots

    if not pending:
        return existing, False

    db.add_all([_task_from_slot(user_id, slot, today) for slot in pending])
    try:
        db.commit()
    except IntegrityError:
        # uq_task_user_slot_day: a concurrent request derived these first
        db.rollback()
        logger.info(f"Tasks for {today} already derived for user {user_id}")
        return get_tasks_for_date(db, user_id, today), False

    logger.info(f"Auto-generated {len(pending)} tasks for {today} for user {user_id}")
    return get_tasks_for_date(db, user_id, today), True

def task_stats(db: Session, user_id: int, today: Optional[date] = None) -> dict:
    """Completion counts, overdue count, per-subject completion and priority mix"""
    today = today or date.today()
    tasks = db.query(Task).options(joinedload(Task.subject)).filter(Task.user_id == user_id).all()

    completed = [t for t in tasks if t.is_completed]
    overdue = [t for t in tasks if not t.is_completed and t.due_date and t.due_date < today]

    by_subject = {}
    for task in tasks:
        bucket = by_subject.setdefault(task.subject_id, {
            "subject_id": task.subject_id,
            "subject_name": task.subject_name,
            "total": 0,
            "completed": 0
        })
        bucket["total"] += 1
        bucket["completed"] += int(task.is_completed)

    completion_by_subject = []
    for bucket in by_subject.values():
        bucket["completion_rate"] = completion_rate(bucket["completed"], bucket["total"])
        completion_by_subject.append(bucket)
    completion_by_subject.sort(key=lambda b: b["completion_rate"], reverse=True)

    return {
        "total_tasks": len(tasks),
        "completed_tasks": len(completed),
        "pending_tasks": len(tasks) - len(completed),
        "overdue_tasks": len(overdue),
        "completion_by_subject": completion_by_subject,
        "priority_distribution": dict(Counter(t.priority for t in tasks)),
    }
