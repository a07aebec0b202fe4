from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, date
from study_planner.database import Base

PRIORITIES = ("low", "medium", "high")

class Task(Base):
    """To-do item, entered by hand or derived from a planner slot"""
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "priority IN (" + ", ".join(f"'{p}'" for p in PRIORITIES) + ")",
            name="ck_task_priority"
        ),
        # A slot yields at most one derived task per day; manual tasks have no slot
        UniqueConstraint("user_id", "slot_id", "created_date", name="uq_task_user_slot_day"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True)
    slot_id = Column(Integer, ForeignKey("planner_slots.id", ondelete="SET NULL"), nullable=True)
    
    title = Column(String(200), nullable=False)
    description = Column(Text)
    is_completed = Column(Boolean, default=False, nullable=False)
    priority = Column(String(16), default="medium", nullable=False)
    due_date = Column(Date)
    
    created_date = Column(Date, default=date.today, nullable=False)  # calendar day of creation
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="tasks")
    subject = relationship("Subject", back_populates="tasks")
    slot = relationship("PlannerSlot", back_populates="tasks")
    
    @property
    def subject_name(self):
        return self.subject.name if self.subject else None
    
    @property
    def subject_color(self):
        return self.subject.color if self.subject else None
