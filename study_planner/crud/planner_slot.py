"""
Weekly planner slots.

Every write re-checks the overlap rule for the affected (user, day-of-week):
no two active slots of one user may share a minute on the same day. The
check-then-write sequence runs under a per-(user, day) lock because SQL has
no portable constraint for interval exclusion.
"""
import logging
from sqlalchemy.orm import Session, joinedload
from study_planner.config import settings
from study_planner.conflicts import ConflictDetector
from study_planner.crud.pagination import paginate
from study_planner.crud.subject import require_subject
from study_planner.exceptions import SlotNotFound, StudyPlannerError
from study_planner.locks import slot_locks, slot_day_keys
from study_planner.models import PlannerSlot
from study_planner.schemas import SlotCreate, SlotUpdate, SlotMove
from study_planner.timeutils import TimeArithmetic
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

ALL_DAYS = range(7)

def get_slots_for_day(db: Session, user_id: int, day_of_week: int, active_only: bool = False) -> List[PlannerSlot]:
    """Slots for one day-of-week ordered by start time"""
    TimeArithmetic.validate_day(day_of_week)
    query = db.query(PlannerSlot).options(joinedload(PlannerSlot.subject)).filter(
        PlannerSlot.user_id == user_id,
        PlannerSlot.day_of_week == day_of_week
    )
    if active_only:
        query = query.filter(PlannerSlot.is_active.is_(True))
    return query.order_by(PlannerSlot.start_time).all()

def get_slot(db: Session, user_id: int, slot_id: int) -> PlannerSlot:
    """Get a slot owned by the user or raise SlotNotFound"""
    slot = db.query(PlannerSlot).options(joinedload(PlannerSlot.subject)).filter(
        PlannerSlot.id == slot_id,
        PlannerSlot.user_id == user_id
    ).first()
    if not slot:
        raise SlotNotFound(f"Planner slot {slot_id} not found")
    return slot

def list_slots(
    db: Session,
    user_id: int,
    day_of_week: Optional[int] = None,
    page: int = 1,
    limit: Optional[int] = None
) -> Tuple[List[PlannerSlot], dict]:
    """Paginated slots ordered by day then start time"""
    query = db.query(PlannerSlot).options(joinedload(PlannerSlot.subject)).filter(
        PlannerSlot.user_id == user_id
    )
    if day_of_week is not None:
        TimeArithmetic.validate_day(day_of_week)
        query = query.filter(PlannerSlot.day_of_week == day_of_week)
    query = query.order_by(PlannerSlot.day_of_week, PlannerSlot.start_time)
    return paginate(query, page, limit)

def create_slot(db: Session, user_id: int, slot: SlotCreate) -> PlannerSlot:
    """
    Create a weekly slot.

    Raises:
        SubjectNotFound: subject does not belong to the user
        NonPositiveDuration: end time is not after start time
        TimeConflict: an active slot on the same day overlaps
    """
    TimeArithmetic.validate_day(slot.day_of_week)
    computed = TimeArithmetic.duration_minutes(slot.start_time, slot.end_time)
    if slot.subject_id is not None:
        require_subject(db, user_id, slot.subject_id)

    with slot_locks.hold(*slot_day_keys(user_id, [slot.day_of_week])):
        if slot.is_active:
            ConflictDetector.check(
                slot.start_time,
                slot.end_time,
                get_slots_for_day(db, user_id, slot.day_of_week, active_only=True)
            )

        db_slot = PlannerSlot(
            user_id=user_id,
            subject_id=slot.subject_id,
            day_of_week=slot.day_of_week,
            start_time=slot.start_time,
            end_time=slot.end_time,
            duration_minutes=slot.duration_minutes or computed,
            title=slot.title,
            description=slot.description,
            is_active=slot.is_active
        )
        db.add(db_slot)
        db.commit()

    db.refresh(db_slot)
    logger.info(f"New planner slot created for day {db_slot.day_of_week} by user {user_id}")
    return db_slot

def update_slot(db: Session, user_id: int, slot_id: int, patch: SlotUpdate) -> PlannerSlot:
    """
    Apply a partial update, re-checking ownership and conflicts against the
    merged result while ignoring the slot itself.
    """
    db_slot = get_slot(db, user_id, slot_id)
    data = patch.model_dump(exclude_unset=True)
    # Explicit nulls clear the subject or the optional text fields
    data = {k: v for k, v in data.items() if v is not None or k in ("subject_id", "title", "description")}

    day = data.get("day_of_week", db_slot.day_of_week)
    start = data.get("start_time", db_slot.start_time)
    end = data.get("end_time", db_slot.end_time)
    is_active = data.get("is_active", db_slot.is_active)

    TimeArithmetic.validate_day(day)
    computed = TimeArithmetic.duration_minutes(start, end)
    if data.get("subject_id") is not None:
        require_subject(db, user_id, data["subject_id"])

    placement_changed = any(k in data for k in ("day_of_week", "start_time", "end_time", "is_active"))
    times_changed = "start_time" in data or "end_time" in data

    with slot_locks.hold(*slot_day_keys(user_id, {db_slot.day_of_week, day})):
        if placement_changed and is_active:
            ConflictDetector.check(
                start,
                end,
                get_slots_for_day(db, user_id, day, active_only=True),
                exclude_id=db_slot.id
            )

        for key, value in data.items():
            setattr(db_slot, key, value)
        if "duration_minutes" not in data and times_changed:
            db_slot.duration_minutes = computed
        db.commit()

    db.refresh(db_slot)
    logger.info(f"Planner slot updated: {slot_id} by user {user_id}")
    return db_slot

def delete_slot(db: Session, user_id: int, slot_id: int):
    """Hard-delete a slot owned by the user"""
    db_slot = get_slot(db, user_id, slot_id)
    db.delete(db_slot)
    db.commit()
    logger.info(f"Planner slot deleted: {slot_id} by user {user_id}")

def _validate_move(db: Session, user_id: int, move: SlotMove) -> Tuple[PlannerSlot, int]:
    slot = get_slot(db, user_id, move.id)
    TimeArithmetic.validate_day(move.day_of_week)
    return slot, TimeArithmetic.duration_minutes(move.start_time, move.end_time)

def _apply_move(slot: PlannerSlot, move: SlotMove, minutes: int):
    slot.day_of_week = move.day_of_week
    slot.start_time = move.start_time
    slot.end_time = move.end_time
    slot.duration_minutes = minutes

def _reschedule_independently(db: Session, user_id: int, moves: List[SlotMove]) -> List[dict]:
    results = []
    for move in moves:
        try:
            slot, minutes = _validate_move(db, user_id, move)
            if slot.is_active:
                ConflictDetector.check(
                    move.start_time,
                    move.end_time,
                    get_slots_for_day(db, user_id, move.day_of_week, active_only=True),
                    exclude_id=slot.id
                )
        except StudyPlannerError as e:
            results.append({"id": move.id, "success": False, "error": e.message})
            continue

        _apply_move(slot, move, minutes)
        # Later items in the batch must see this placement
        db.flush()
        results.append({"id": move.id, "success": True, "error": None})

    db.commit()
    return results

def _reschedule_atomically(db: Session, user_id: int, moves: List[SlotMove]) -> List[dict]:
    errors = {}
    validated = []
    for move in moves:
        try:
            slot, minutes = _validate_move(db, user_id, move)
            validated.append((slot, move, minutes))
        except StudyPlannerError as e:
            errors[move.id] = e.message

    # Final placement of every active slot once all valid moves are applied
    final = {
        slot.id: (slot.id, slot.day_of_week, slot.start_time, slot.end_time)
        for slot in db.query(PlannerSlot).filter(
            PlannerSlot.user_id == user_id,
            PlannerSlot.is_active.is_(True)
        )
    }
    for slot, move, _ in validated:
        if slot.is_active:
            final[slot.id] = (slot.id, move.day_of_week, move.start_time, move.end_time)

    moved_ids = {move.id for move in moves}
    for slot_id, other_id in ConflictDetector.find_batch_conflicts(list(final.values())):
        if slot_id in moved_ids:
            errors.setdefault(slot_id, f"Time conflict detected with slot {other_id}")
        if other_id in moved_ids:
            errors.setdefault(other_id, f"Time conflict detected with slot {slot_id}")

    if errors:
        db.rollback()
        return [
            {"id": move.id, "success": False, "error": errors.get(move.id, "Batch rejected")}
            for move in moves
        ]

    for slot, move, minutes in validated:
        _apply_move(slot, move, minutes)
    db.commit()
    return [{"id": move.id, "success": True, "error": None} for move in moves]

def bulk_reschedule(db: Session, user_id: int, moves: List[SlotMove], atomic: Optional[bool] = None) -> List[dict]:
    """
    Relocate several slots at once (drag-and-drop).

    Args:
        moves: Target day/start/end per slot id
        atomic: Validate the whole batch before applying any of it.
            Defaults to settings.bulk_reschedule_atomic

    Returns:
        One {id, success, error} dict per move, in request order. In the default
        mode each move stands alone, so one bad move does not block the rest.
    """
    if atomic is None:
        atomic = settings.bulk_reschedule_atomic

    with slot_locks.hold(*slot_day_keys(user_id, ALL_DAYS)):
        if atomic:
            results = _reschedule_atomically(db, user_id, moves)
        else:
            results = _reschedule_independently(db, user_id, moves)

    succeeded = sum(1 for r in results if r["success"])
    logger.info(f"Bulk update completed for {len(moves)} slots ({succeeded} moved) by user {user_id}")
    return results
