from sqlalchemy import Column, Integer, String, Text, Float, Boolean, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from study_planner.database import Base

class Goal(Base):
    """Target number of study hours, optionally tied to a subject"""
    __tablename__ = "goals"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True)
    
    title = Column(String(200), nullable=False)
    description = Column(Text)
    target_hours = Column(Float, default=0.0)
    completed_hours = Column(Float, default=0.0)
    is_completed = Column(Boolean, default=False, nullable=False)
    due_date = Column(Date)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="goals")
    subject = relationship("Subject", back_populates="goals")
    
    @property
    def subject_name(self):
        return self.subject.name if self.subject else None
