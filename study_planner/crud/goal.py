import logging
from sqlalchemy.orm import Session, joinedload
from study_planner.crud.pagination import paginate
from study_planner.crud.subject import require_subject
from study_planner.exceptions import GoalNotFound, InvalidHours
from study_planner.models import Goal
from study_planner.schemas import GoalCreate, GoalUpdate
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

def get_goal(db: Session, user_id: int, goal_id: int) -> Goal:
    """Get a goal owned by the user or raise GoalNotFound"""
    goal = db.query(Goal).options(joinedload(Goal.subject)).filter(
        Goal.id == goal_id,
        Goal.user_id == user_id
    ).first()
    if not goal:
        raise GoalNotFound(f"Goal {goal_id} not found")
    return goal

def list_goals(
    db: Session,
    user_id: int,
    status: Optional[str] = None,
    subject_id: Optional[int] = None,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[Goal], dict]:
    query = db.query(Goal).options(joinedload(Goal.subject)).filter(Goal.user_id == user_id)
    if status:
        query = query.filter(Goal.is_completed.is_(status == "completed"))
    if subject_id:
        query = query.filter(Goal.subject_id == subject_id)
    return paginate(query.order_by(Goal.created_at.desc(), Goal.id.desc()), page, limit)

def create_goal(db: Session, user_id: int, goal: GoalCreate) -> Goal:
    if goal.subject_id is not None:
        require_subject(db, user_id, goal.subject_id)
    db_goal = Goal(user_id=user_id, completed_hours=0.0, **goal.model_dump())
    db.add(db_goal)
    db.commit()
    db.refresh(db_goal)
    logger.info(f"Goal created: {db_goal.title} by user {user_id}")
    return db_goal

def update_goal(db: Session, user_id: int, goal_id: int, patch: GoalUpdate) -> Goal:
    db_goal = get_goal(db, user_id, goal_id)
    data = patch.model_dump(exclude_unset=True)
    if data.get("subject_id") is not None:
        require_subject(db, user_id, data["subject_id"])
    if "title" in data and data["title"] is None:
        data.pop("title")

    for key, value in data.items():
        setattr(db_goal, key, value)
    if "target_hours" in data:
        db_goal.is_completed = (db_goal.completed_hours or 0.0) >= (db_goal.target_hours or 0.0)
    db.commit()
    db.refresh(db_goal)
    logger.info(f"Goal updated: {db_goal.title} by user {user_id}")
    return db_goal

def add_goal_hours(db: Session, user_id: int, goal_id: int, hours: float) -> Goal:
    """Add completed hours; the goal completes once they reach its target"""
    if hours is None or hours < 0:
        raise InvalidHours()
    db_goal = get_goal(db, user_id, goal_id)
    db_goal.completed_hours = (db_goal.completed_hours or 0.0) + hours
    db_goal.is_completed = db_goal.completed_hours >= (db_goal.target_hours or 0.0)
    db.commit()
    db.refresh(db_goal)
    logger.info(f"Goal progress updated: {db_goal.title} by user {user_id}")
    return db_goal

def delete_goal(db: Session, user_id: int, goal_id: int):
    db_goal = get_goal(db, user_id, goal_id)
    db.delete(db_goal)
    db.commit()
    logger.info(f"Goal deleted: {db_goal.title} by user {user_id}")
