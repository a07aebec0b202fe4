from sqlalchemy import Column, Integer, Float, Text, Date, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from study_planner.database import Base

class ProgressEntry(Base):
    """Study-hours ledger: one row per (user, subject, date), hours are summed into it"""
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", "date", name="uq_progress_user_subject_date"),
        CheckConstraint("hours_studied >= 0", name="ck_progress_hours"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True)
    
    date = Column(Date, nullable=False)
    hours_studied = Column(Float, default=0.0, nullable=False)
    notes = Column(Text)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="progress_entries")
    subject = relationship("Subject", back_populates="progress_entries")
    
    @property
    def subject_name(self):
        return self.subject.name if self.subject else None
    
    @property
    def subject_color(self):
        return self.subject.color if self.subject else None
