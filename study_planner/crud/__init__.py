from study_planner.crud.user import create_user, get_user, delete_user
from study_planner.crud.subject import (
    get_subject,
    require_subject,
    list_subjects,
    create_subject,
    update_subject,
    delete_subject
)
from study_planner.crud.planner_slot import (
    get_slot,
    get_slots_for_day,
    list_slots,
    create_slot,
    update_slot,
    delete_slot,
    bulk_reschedule
)
from study_planner.crud.task import (
    get_task,
    list_tasks,
    create_task,
    update_task,
    toggle_task,
    delete_task,
    derive_today_tasks,
    task_stats
)
from study_planner.crud.progress import (
    upsert_progress,
    get_progress,
    list_progress,
    update_progress,
    delete_progress,
    subject_progress
)
from study_planner.crud.autolog import auto_log_today
from study_planner.crud.summary import weekly_summary, progress_overview, subject_stats, goal_stats
from study_planner.crud.goal import (
    get_goal,
    list_goals,
    create_goal,
    update_goal,
    add_goal_hours,
    delete_goal
)

__all__ = [
    "create_user",
    "get_user",
    "delete_user",
    "get_subject",
    "require_subject",
    "list_subjects",
    "create_subject",
    "update_subject",
    "delete_subject",
    "get_slot",
    "get_slots_for_day",
    "list_slots",
    "create_slot",
    "update_slot",
    "delete_slot",
    "bulk_reschedule",
    "get_task",
    "list_tasks",
    "create_task",
    "update_task",
    "toggle_task",
    "delete_task",
    "derive_today_tasks",
    "task_stats",
    "upsert_progress",
    "get_progress",
    "list_progress",
    "update_progress",
    "delete_progress",
    "subject_progress",
    "auto_log_today",
    "weekly_summary",
    "progress_overview",
    "subject_stats",
    "goal_stats",
    "get_goal",
    "list_goals",
    "create_goal",
    "update_goal",
    "add_goal_hours",
    "delete_goal",
]
