from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional, Literal
from datetime import date, datetime

from study_planner.models import PRIORITIES
from study_planner.timeutils import TimeArithmetic

# Fields named "date" shadow the type inside their class body
DateType = date

Priority = Literal[PRIORITIES]
HEX_COLOR = r"^#(?:[0-9a-fA-F]{3}){1,2}$"


def _normalize_time(value):
    if value is None:
        return value
    return TimeArithmetic.normalize(value)


class Pagination(BaseModel):
    """Paging metadata returned by list endpoints"""
    page: int
    limit: int
    total: int
    pages: int


# ---------------------------------------------------------------- users

class UserCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: str

class UserResponse(UserCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- subjects

class SubjectCreate(BaseModel):
    """Schema for creating a subject"""
    name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    description: Optional[str] = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Subject name must not be blank")
        return value

class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    description: Optional[str] = Field(default=None, max_length=500)

class SubjectResponse(BaseModel):
    id: int
    name: str
    color: Optional[str] = None
    description: Optional[str] = None

    class Config:
        from_attributes = True


# ---------------------------------------------------------------- planner slots

class SlotCreate(BaseModel):
    """Schema for creating a weekly planner slot"""
    subject_id: Optional[int] = Field(default=None, ge=1)
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=480)
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    is_active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

class SlotUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""
    subject_id: Optional[int] = Field(default=None, ge=1)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, ge=15, le=480)
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

class SlotMove(BaseModel):
    """One drag-and-drop relocation inside a bulk reschedule"""
    id: int
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, value):
        return _normalize_time(value)

class BulkRescheduleRequest(BaseModel):
    slots: List[SlotMove] = Field(min_length=1)
    atomic: Optional[bool] = None

class BulkRescheduleItem(BaseModel):
    id: int
    success: bool
    error: Optional[str] = None

class SlotResponse(BaseModel):
    id: int
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None
    day_of_week: int
    start_time: str
    end_time: str
    duration_minutes: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True

class SlotPage(BaseModel):
    planner_slots: List[SlotResponse]
    pagination: Pagination


# ---------------------------------------------------------------- tasks

class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    subject_id: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[date] = None
    priority: Priority = "medium"

class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    subject_id: Optional[int] = Field(default=None, ge=1)
    due_date: Optional[date] = None
    priority: Optional[Priority] = None
    is_completed: Optional[bool] = None

class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    slot_id: Optional[int] = None
    is_completed: bool
    priority: str
    due_date: Optional[date] = None
    created_date: date

    class Config:
        from_attributes = True

class TodayTasksResponse(BaseModel):
    tasks: List[TaskResponse]
    auto_generated: bool

class TaskPage(BaseModel):
    tasks: List[TaskResponse]
    pagination: Pagination


# ---------------------------------------------------------------- progress

class ProgressCreate(BaseModel):
    """Schema for logging study hours; same (subject, date) is aggregated"""
    subject_id: int = Field(ge=1)
    date: DateType
    hours_studied: float = Field(ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

class ProgressUpdate(BaseModel):
    subject_id: Optional[int] = Field(default=None, ge=1)
    date: Optional[DateType] = None
    hours_studied: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=500)

class ProgressResponse(BaseModel):
    id: int
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None
    date: DateType
    hours_studied: float
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class ProgressUpsertResponse(BaseModel):
    progress: ProgressResponse
    aggregated: bool

class ProgressPage(BaseModel):
    progress: List[ProgressResponse]
    pagination: Pagination

class AutoLogResult(BaseModel):
    """Outcome of folding today's slots into the ledger"""
    date: DateType
    created: int = 0
    aggregated: int = 0
    skipped: int = 0
    errors: List[str] = []


# ---------------------------------------------------------------- goals

class GoalCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    subject_id: Optional[int] = Field(default=None, ge=1)
    target_hours: float = Field(default=0.0, ge=0)
    due_date: Optional[date] = None

class GoalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    subject_id: Optional[int] = Field(default=None, ge=1)
    target_hours: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[date] = None

class GoalHours(BaseModel):
    completed_hours: float = Field(ge=0)

class GoalResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    target_hours: float
    completed_hours: float
    is_completed: bool
    due_date: Optional[date] = None

    class Config:
        from_attributes = True

class GoalPage(BaseModel):
    goals: List[GoalResponse]
    pagination: Pagination


# ---------------------------------------------------------------- summaries

class SubjectMinutes(BaseModel):
    subject_id: Optional[int] = None
    name: str
    color: Optional[str] = None
    slots_count: int
    total_minutes: int

class DaySummary(BaseModel):
    """One day-of-week bucket of the weekly template"""
    day_of_week: int
    slots_count: int = 0
    total_minutes: int = 0
    subjects: List[SubjectMinutes] = []

class LedgerStats(BaseModel):
    total_hours: float = 0.0
    total_sessions: int = 0
    avg_hours_per_session: float = 0.0
    total_days_studied: int = 0

class SubjectHours(BaseModel):
    subject_id: int
    subject_name: str
    subject_color: Optional[str] = None
    total_hours: float
    total_sessions: int
    avg_hours_per_session: float

class WeekHours(BaseModel):
    week: str  # ISO "YYYY-Www"
    hours_studied: float
    days_studied: int

class CompletionStats(BaseModel):
    total: int = 0
    completed: int = 0
    completion_rate: float = 0.0

    @model_validator(mode="after")
    def check_counts(self):
        if self.completed > self.total:
            raise ValueError("completed cannot exceed total")
        return self

class ProgressOverview(BaseModel):
    overall_stats: LedgerStats
    weekly_progress: List[WeekHours]
    progress_by_subject: List[SubjectHours]
    recent_progress: List[ProgressResponse]
    tasks: CompletionStats
    goals: CompletionStats

class SubjectProgress(BaseModel):
    progress: List[ProgressResponse]
    stats: LedgerStats

class SubjectCompletion(BaseModel):
    subject_id: Optional[int] = None
    subject_name: Optional[str] = None
    total: int
    completed: int
    completion_rate: float

class TaskStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    overdue_tasks: int
    completion_by_subject: List[SubjectCompletion]
    priority_distribution: dict

class SubjectStats(BaseModel):
    """Last four weeks of one subject plus its latest tasks and goals"""
    weekly_progress: List[WeekHours]
    recent_tasks: List[TaskResponse]
    recent_goals: List[GoalResponse]

class GoalTotals(BaseModel):
    total_goals: int = 0
    completed_goals: int = 0
    pending_goals: int = 0
    total_target_hours: float = 0.0
    total_completed_hours: float = 0.0

class GoalSubjectCompletion(BaseModel):
    subject_id: Optional[int] = None
    subject_name: str
    subject_color: Optional[str] = None
    total_goals: int
    completed_goals: int
    total_target_hours: float
    total_completed_hours: float
    completion_rate: float

class GoalStats(BaseModel):
    stats: GoalTotals
    completion_by_subject: List[GoalSubjectCompletion]
    recent_goals: List[GoalResponse]
