"""Error taxonomy for planner operations.

Validation errors are raised before the store is touched, ownership errors
when a referenced record is missing or belongs to another user, and conflict
errors when a write would break a uniqueness or overlap rule.
"""
from typing import Optional


class StudyPlannerError(Exception):
    """Base class for all planner errors"""
    message = "Study planner error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


# Validation

class PlannerValidationError(StudyPlannerError, ValueError):
    message = "Validation failed"


class InvalidTimeFormat(PlannerValidationError):
    message = "Time must be in HH:MM format"


class NonPositiveDuration(PlannerValidationError):
    message = "End time must be after start time"


class InvalidDayOfWeek(PlannerValidationError):
    message = "Day of week must be between 0 (Sunday) and 6 (Saturday)"


class InvalidHours(PlannerValidationError):
    message = "Hours studied must be a non-negative number"


# Ownership

class NotFoundError(StudyPlannerError):
    message = "Record not found"


class UserNotFound(NotFoundError):
    message = "User not found"


class SubjectNotFound(NotFoundError):
    message = "Subject not found"


class SlotNotFound(NotFoundError):
    message = "Planner slot not found"


class TaskNotFound(NotFoundError):
    message = "Task not found"


class ProgressNotFound(NotFoundError):
    message = "Progress entry not found"


class GoalNotFound(NotFoundError):
    message = "Goal not found"


# Conflicts

class ConflictError(StudyPlannerError):
    message = "Conflict"


class TimeConflict(ConflictError):
    message = "Time slot conflicts with existing planner slot"

    def __init__(self, conflicting_id: Optional[int] = None, message: Optional[str] = None):
        super().__init__(message)
        self.conflicting_id = conflicting_id


class DuplicateSubjectName(ConflictError):
    message = "Subject with this name already exists"


class DuplicateProgressEntry(ConflictError):
    message = "Progress entry already exists for this date and subject"
