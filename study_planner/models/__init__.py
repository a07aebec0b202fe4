from study_planner.models.user import User
from study_planner.models.subject import Subject
from study_planner.models.planner_slot import PlannerSlot
from study_planner.models.task import Task, PRIORITIES
from study_planner.models.progress_entry import ProgressEntry
from study_planner.models.goal import Goal

__all__ = [
    "User",
    "Subject",
    "PlannerSlot",
    "Task",
    "PRIORITIES",
    "ProgressEntry",
    "Goal",
]
