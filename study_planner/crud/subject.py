import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from study_planner.config import settings
from study_planner.models import Subject
from study_planner.schemas import SubjectCreate, SubjectUpdate
from study_planner.exceptions import SubjectNotFound, DuplicateSubjectName
from typing import List, Optional

logger = logging.getLogger(__name__)

def get_subject(db: Session, user_id: int, subject_id: int) -> Optional[Subject]:
    """Get a subject owned by the user"""
    return db.query(Subject).filter(
        Subject.id == subject_id,
        Subject.user_id == user_id
    ).first()

def require_subject(db: Session, user_id: int, subject_id: int) -> Subject:
    """Get a subject owned by the user or raise SubjectNotFound"""
    subject = get_subject(db, user_id, subject_id)
    if not subject:
        raise SubjectNotFound(f"Subject {subject_id} not found")
    return subject

def list_subjects(db: Session, user_id: int) -> List[Subject]:
    """All subjects for a user, alphabetical"""
    return db.query(Subject).filter(Subject.user_id == user_id).order_by(Subject.name).all()

def _name_taken(db: Session, user_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Subject.id).filter(Subject.user_id == user_id, Subject.name == name)
    if exclude_id is not None:
        query = query.filter(Subject.id != exclude_id)
    return query.first() is not None

def create_subject(db: Session, user_id: int, subject: SubjectCreate) -> Subject:
    """Create a subject; names are unique per user"""
    if _name_taken(db, user_id, subject.name):
        raise DuplicateSubjectName()
    
    db_subject = Subject(
        user_id=user_id,
        name=subject.name,
        color=subject.color or settings.default_subject_color,
        description=subject.description
    )
    db.add(db_subject)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateSubjectName()
    db.refresh(db_subject)
    logger.info(f"Subject created: {db_subject.name} by user {user_id}")
    return db_subject

def update_subject(db: Session, user_id: int, subject_id: int, patch: SubjectUpdate) -> Subject:
    """Update name, color or description"""
    db_subject = require_subject(db, user_id, subject_id)
    data = patch.model_dump(exclude_unset=True)
    
    if data.get("name") and _name_taken(db, user_id, data["name"], exclude_id=subject_id):
        raise DuplicateSubjectName()
    
    for key, value in data.items():
        if key == "name" and not value:
            continue
        setattr(db_subject, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateSubjectName()
    db.refresh(db_subject)
    logger.info(f"Subject updated: {db_subject.name} by user {user_id}")
    return db_subject

def delete_subject(db: Session, user_id: int, subject_id: int):
    """
    Delete a subject. Slots, tasks, goals and progress entries that reference it
    are kept with their subject reference cleared.
    """
    db_subject = require_subject(db, user_id, subject_id)
    name = db_subject.name
    
    # The relationships carry no delete cascade, so the ORM nulls each dependent
    db.delete(db_subject)
    db.commit()
    logger.info(f"Subject deleted: {name} by user {user_id}")
