import logging
from datetime import date
from sqlalchemy.orm import Session
from study_planner.crud.planner_slot import get_slots_for_day
from study_planner.crud.progress import upsert_progress
from study_planner.exceptions import StudyPlannerError
from study_planner.models import PlannerSlot
from study_planner.timeutils import TimeArithmetic
from typing import Optional

logger = logging.getLogger(__name__)

def slot_hours(slot: PlannerSlot) -> float:
    """Scheduled hours of a slot; duration is recomputed from its times when missing"""
    minutes = slot.duration_minutes
    if not minutes and slot.start_time and slot.end_time:
        try:
            minutes = TimeArithmetic.duration_minutes(slot.start_time, slot.end_time)
        except StudyPlannerError:
            minutes = 0
    return (minutes or 0) / 60

def auto_log_today(db: Session, user_id: int, today: Optional[date] = None) -> dict:
    """
    Fold today's scheduled slots into the study-hours ledger.

    Each active slot for today's day-of-week adds its hours to the
    (subject, today) entry. Calling this twice on one day adds the hours twice;
    callers must run it at most once per user per day.

    A failed fold is logged and reported in `errors` without undoing the
    folds that already succeeded.

    Returns:
        Dict with date, created, aggregated, skipped and errors
    """
    today = today or date.today()
    result = {"date": today, "created": 0, "aggregated": 0, "skipped": 0, "errors": []}

    slots = get_slots_for_day(db, user_id, TimeArithmetic.day_of_week(today), active_only=True)
    if not slots:
        logger.info(f"No planner slots for {today} for user {user_id}")
        return result

    for slot in slots:
        hours = slot_hours(slot)
        if hours <= 0 or slot.subject_id is None:
            result["skipped"] += 1
            continue

        try:
            _, aggregated = upsert_progress(db, user_id, slot.subject_id, today, hours)
        except StudyPlannerError as e:
            logger.warning(f"Auto log skipped slot {slot.id} for user {user_id}: {e.message}")
            result["errors"].append(f"Slot {slot.id}: {e.message}")
            continue

        if aggregated:
            result["aggregated"] += 1
        else:
            result["created"] += 1

    logger.info(
        f"Auto log complete for {today}: {result['created']} created, "
        f"{result['aggregated']} aggregated, {result['skipped']} skipped by user {user_id}"
    )
    return result
