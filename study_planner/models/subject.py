from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from study_planner.database import Base

class Subject(Base):
    """Subject a user studies; referenced by slots, tasks, goals and progress"""
    __tablename__ = "subjects"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_subject_user_name"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(16), default="#3B82F6")  # hex color tag
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="subjects")
    
    # No delete cascade: dependents keep their rows with subject_id set to NULL
    planner_slots = relationship("PlannerSlot", back_populates="subject")
    tasks = relationship("Task", back_populates="subject")
    progress_entries = relationship("ProgressEntry", back_populates="subject")
    goals = relationship("Goal", back_populates="subject")
