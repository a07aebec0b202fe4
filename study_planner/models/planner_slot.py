from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from study_planner.database import Base

class PlannerSlot(Base):
    """Recurring weekly study slot"""
    __tablename__ = "planner_slots"
    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_planner_slot_day"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True)
    
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)  # "HH:MM", exclusive
    duration_minutes = Column(Integer)
    
    title = Column(String(255))
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)  # soft-disable
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="planner_slots")
    subject = relationship("Subject", back_populates="planner_slots")
    tasks = relationship("Task", back_populates="slot")
    
    @property
    def subject_name(self):
        return self.subject.name if self.subject else None
    
    @property
    def subject_color(self):
        return self.subject.color if self.subject else None
