"""
Study-hours ledger.

A ledger entry is keyed by (user, subject, date) and the key is unique in the
database. Logging more time against an existing key adds to its hours instead
of creating a second row.
"""
import logging
from datetime import date
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from study_planner.crud.pagination import paginate
from study_planner.crud.subject import require_subject
from study_planner.crud.summary import ledger_stats
from study_planner.exceptions import InvalidHours, ProgressNotFound, DuplicateProgressEntry
from study_planner.models import ProgressEntry
from study_planner.schemas import ProgressUpdate
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

def _find_entry(db: Session, user_id: int, subject_id: int, entry_date: date) -> Optional[ProgressEntry]:
    return db.query(ProgressEntry).filter(
        ProgressEntry.user_id == user_id,
        ProgressEntry.subject_id == subject_id,
        ProgressEntry.date == entry_date
    ).first()

def _fold(entry: ProgressEntry, hours: float, notes: Optional[str]):
    entry.hours_studied = (entry.hours_studied or 0.0) + hours
    if notes:
        entry.notes = notes

def upsert_progress(
    db: Session,
    user_id: int,
    subject_id: int,
    entry_date: date,
    hours: float,
    notes: Optional[str] = None
) -> Tuple[ProgressEntry, bool]:
    """
    Log study hours, summing into any existing entry for the same key.

    Args:
        entry_date: Calendar day the hours belong to
        hours: Non-negative hours to add
        notes: Replaces stored notes only when given

    Returns:
        (entry, aggregated) where aggregated is False for a fresh insert

    Raises:
        InvalidHours: hours is negative
        SubjectNotFound: subject does not belong to the user
    """
    if hours is None or hours < 0:
        raise InvalidHours(f"Hours studied must be non-negative, got {hours!r}")
    subject = require_subject(db, user_id, subject_id)

    existing = _find_entry(db, user_id, subject_id, entry_date)
    if existing is None:
        entry = ProgressEntry(
            user_id=user_id,
            subject_id=subject_id,
            date=entry_date,
            hours_studied=hours,
            notes=notes
        )
        db.add(entry)
        try:
            db.commit()
            db.refresh(entry)
            logger.info(f"Progress entry created: {hours}h for subject {subject.name} by user {user_id}")
            return entry, False
        except IntegrityError:
            # uq_progress_user_subject_date: another writer inserted the key first
            db.rollback()
            existing = _find_entry(db, user_id, subject_id, entry_date)
            if existing is None:
                raise

    _fold(existing, hours, notes)
    db.commit()
    db.refresh(existing)
    logger.info(
        f"Progress aggregated: +{hours}h (total {existing.hours_studied}h) "
        f"for subject {subject.name} by user {user_id}"
    )
    return existing, True

def get_progress(db: Session, user_id: int, progress_id: int) -> ProgressEntry:
    """Get a ledger entry owned by the user or raise ProgressNotFound"""
    entry = db.query(ProgressEntry).options(joinedload(ProgressEntry.subject)).filter(
        ProgressEntry.id == progress_id,
        ProgressEntry.user_id == user_id
    ).first()
    if not entry:
        raise ProgressNotFound(f"Progress entry {progress_id} not found")
    return entry

def list_progress(
    db: Session,
    user_id: int,
    subject_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: int = 10
) -> Tuple[List[ProgressEntry], dict]:
    """Paginated ledger entries, most recent date first"""
    query = db.query(ProgressEntry).options(joinedload(ProgressEntry.subject)).filter(
        ProgressEntry.user_id == user_id
    )
    if subject_id:
        query = query.filter(ProgressEntry.subject_id == subject_id)
    if start_date:
        query = query.filter(ProgressEntry.date >= start_date)
    if end_date:
        query = query.filter(ProgressEntry.date <= end_date)
    query = query.order_by(ProgressEntry.date.desc(), ProgressEntry.id.desc())
    return paginate(query, page, limit)

def update_progress(db: Session, user_id: int, progress_id: int, patch: ProgressUpdate) -> ProgressEntry:
    """
    Overwrite fields of one entry. Moving it onto a (subject, date) that already
    has an entry is rejected rather than merged.
    """
    entry = get_progress(db, user_id, progress_id)
    data = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None or k == "notes"}

    if "hours_studied" in data and data["hours_studied"] < 0:
        raise InvalidHours()
    if "subject_id" in data:
        require_subject(db, user_id, data["subject_id"])

    subject_id = data.get("subject_id", entry.subject_id)
    entry_date = data.get("date", entry.date)
    clash = _find_entry(db, user_id, subject_id, entry_date)
    if clash is not None and clash.id != entry.id:
        raise DuplicateProgressEntry()

    for key, value in data.items():
        setattr(entry, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateProgressEntry()
    db.refresh(entry)
    logger.info(f"Progress entry updated: {entry.hours_studied}h for subject {entry.subject_name} by user {user_id}")
    return entry

def delete_progress(db: Session, user_id: int, progress_id: int):
    entry = get_progress(db, user_id, progress_id)
    hours = entry.hours_studied
    db.delete(entry)
    db.commit()
    logger.info(f"Progress entry deleted: {hours}h by user {user_id}")

def subject_progress(db: Session, user_id: int, subject_id: int) -> dict:
    """All ledger entries for one subject plus totals"""
    require_subject(db, user_id, subject_id)
    entries = db.query(ProgressEntry).options(joinedload(ProgressEntry.subject)).filter(
        ProgressEntry.user_id == user_id,
        ProgressEntry.subject_id == subject_id
    ).order_by(ProgressEntry.date.desc()).all()

    return {
        "progress": entries,
        "stats": ledger_stats(entries),
    }
