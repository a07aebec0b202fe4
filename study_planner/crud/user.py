import logging
from sqlalchemy.orm import Session
from study_planner.models import User
from study_planner.schemas import UserCreate
from study_planner.exceptions import UserNotFound
from typing import Optional

logger = logging.getLogger(__name__)

def create_user(db: Session, user: UserCreate) -> User:
    """Create a new user"""
    db_user = User(**user.model_dump())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"User created: {db_user.id}")
    return db_user

def get_user(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def delete_user(db: Session, user_id: int):
    """Delete a user and everything they own"""
    db_user = get_user(db, user_id)
    if not db_user:
        raise UserNotFound()
    db.delete(db_user)
    db.commit()
    logger.info(f"User deleted: {user_id}")
