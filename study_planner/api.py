"""REST surface. Every route is scoped to the caller named by the X-User-Id header."""
import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from study_planner import crud, schemas
from study_planner.database import get_db, init_db
from study_planner.exceptions import (
    StudyPlannerError,
    PlannerValidationError,
    NotFoundError,
    SubjectNotFound,
    ConflictError,
)
from study_planner.logging_config import setup_logging
from study_planner.models import PRIORITIES

logger = logging.getLogger(__name__)

WRITE_METHODS = {"POST", "PUT", "PATCH"}
PRIORITY_PATTERN = f"^({'|'.join(PRIORITIES)})$"


def current_user_id(
    x_user_id: Optional[int] = Header(default=None),
    db: Session = Depends(get_db)
) -> int:
    """Identity is issued upstream; only its presence and existence are checked here"""
    if x_user_id is None or crud.get_user(db, x_user_id) is None:
        raise HTTPException(status_code=401, detail="Unknown or missing user")
    return x_user_id


def _status_for(request: Request, exc: StudyPlannerError) -> int:
    if isinstance(exc, SubjectNotFound) and request.method in WRITE_METHODS:
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, PlannerValidationError):
        return 400
    return 500


async def planner_error_handler(request: Request, exc: StudyPlannerError):
    body = {"error": exc.message}
    if getattr(exc, "conflicting_id", None) is not None:
        body["conflicting_slot_id"] = exc.conflicting_id
    return JSONResponse(status_code=_status_for(request, exc), content=body)


# ---------------------------------------------------------------- slots

slots_router = APIRouter(prefix="/slots", tags=["slots"])


@slots_router.get("", response_model=schemas.SlotPage)
def api_list_slots(
    day_of_week: Optional[int] = Query(default=None, ge=0, le=6),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=100, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    slots, pagination = crud.list_slots(db, user_id, day_of_week, page, limit)
    return {"planner_slots": slots, "pagination": pagination}


@slots_router.post("", response_model=schemas.SlotResponse, status_code=201)
def api_create_slot(slot: schemas.SlotCreate, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.create_slot(db, user_id, slot)


@slots_router.get("/day/{day_of_week}", response_model=List[schemas.SlotResponse])
def api_slots_for_day(day_of_week: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.get_slots_for_day(db, user_id, day_of_week)


@slots_router.put("/bulk", response_model=List[schemas.BulkRescheduleItem])
def api_bulk_reschedule(
    request: schemas.BulkRescheduleRequest,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.bulk_reschedule(db, user_id, request.slots, atomic=request.atomic)


@slots_router.get("/weekly-summary", response_model=List[schemas.DaySummary])
def api_weekly_summary(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.weekly_summary(db, user_id)


@slots_router.get("/{slot_id}", response_model=schemas.SlotResponse)
def api_get_slot(slot_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.get_slot(db, user_id, slot_id)


@slots_router.put("/{slot_id}", response_model=schemas.SlotResponse)
def api_update_slot(
    slot_id: int,
    patch: schemas.SlotUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.update_slot(db, user_id, slot_id, patch)


@slots_router.delete("/{slot_id}", status_code=204)
def api_delete_slot(slot_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    crud.delete_slot(db, user_id, slot_id)
    return Response(status_code=204)


# ---------------------------------------------------------------- progress

progress_router = APIRouter(prefix="/progress", tags=["progress"])


@progress_router.get("", response_model=schemas.ProgressPage)
def api_list_progress(
    subject_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    entries, pagination = crud.list_progress(db, user_id, subject_id, start_date, end_date, page, limit)
    return {"progress": entries, "pagination": pagination}


@progress_router.post("", response_model=schemas.ProgressUpsertResponse)
def api_log_progress(
    entry: schemas.ProgressCreate,
    response: Response,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    progress, aggregated = crud.upsert_progress(
        db, user_id, entry.subject_id, entry.date, entry.hours_studied, entry.notes
    )
    response.status_code = 200 if aggregated else 201
    return {"progress": progress, "aggregated": aggregated}


@progress_router.get("/overview", response_model=schemas.ProgressOverview)
def api_progress_overview(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.progress_overview(db, user_id)


@progress_router.post("/auto-log-today", response_model=schemas.AutoLogResult)
def api_auto_log_today(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.auto_log_today(db, user_id)


@progress_router.get("/subject/{subject_id}", response_model=schemas.SubjectProgress)
def api_subject_progress(subject_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.subject_progress(db, user_id, subject_id)


@progress_router.get("/{progress_id}", response_model=schemas.ProgressResponse)
def api_get_progress(progress_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.get_progress(db, user_id, progress_id)


@progress_router.put("/{progress_id}", response_model=schemas.ProgressResponse)
def api_update_progress(
    progress_id: int,
    patch: schemas.ProgressUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.update_progress(db, user_id, progress_id, patch)


@progress_router.delete("/{progress_id}", status_code=204)
def api_delete_progress(progress_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    crud.delete_progress(db, user_id, progress_id)
    return Response(status_code=204)


# ---------------------------------------------------------------- tasks

tasks_router = APIRouter(prefix="/tasks", tags=["tasks"])


@tasks_router.get("", response_model=schemas.TaskPage)
def api_list_tasks(
    status: Optional[str] = Query(default=None, pattern="^(completed|pending)$"),
    subject_id: Optional[int] = None,
    priority: Optional[str] = Query(default=None, pattern=PRIORITY_PATTERN),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    tasks, pagination = crud.list_tasks(db, user_id, status, subject_id, priority, page, limit)
    return {"tasks": tasks, "pagination": pagination}


@tasks_router.get("/today", response_model=schemas.TodayTasksResponse)
def api_today_tasks(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    tasks, auto_generated = crud.derive_today_tasks(db, user_id)
    return {"tasks": tasks, "auto_generated": auto_generated}


@tasks_router.get("/stats", response_model=schemas.TaskStats)
def api_task_stats(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.task_stats(db, user_id)


@tasks_router.post("", response_model=schemas.TaskResponse, status_code=201)
def api_create_task(task: schemas.TaskCreate, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.create_task(db, user_id, task)


@tasks_router.get("/{task_id}", response_model=schemas.TaskResponse)
def api_get_task(task_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.get_task(db, user_id, task_id)


@tasks_router.put("/{task_id}", response_model=schemas.TaskResponse)
def api_update_task(
    task_id: int,
    patch: schemas.TaskUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.update_task(db, user_id, task_id, patch)


@tasks_router.patch("/{task_id}/toggle", response_model=schemas.TaskResponse)
def api_toggle_task(task_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.toggle_task(db, user_id, task_id)


@tasks_router.delete("/{task_id}", status_code=204)
def api_delete_task(task_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    crud.delete_task(db, user_id, task_id)
    return Response(status_code=204)


# ---------------------------------------------------------------- subjects

subjects_router = APIRouter(prefix="/subjects", tags=["subjects"])


@subjects_router.get("", response_model=List[schemas.SubjectResponse])
def api_list_subjects(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.list_subjects(db, user_id)


@subjects_router.post("", response_model=schemas.SubjectResponse, status_code=201)
def api_create_subject(
    subject: schemas.SubjectCreate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.create_subject(db, user_id, subject)


@subjects_router.get("/{subject_id}/stats", response_model=schemas.SubjectStats)
def api_subject_stats(subject_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.subject_stats(db, user_id, subject_id)


@subjects_router.get("/{subject_id}", response_model=schemas.SubjectResponse)
def api_get_subject(subject_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    subject = crud.get_subject(db, user_id, subject_id)
    if subject is None:
        raise HTTPException(status_code=404, detail="Subject not found")
    return subject


@subjects_router.put("/{subject_id}", response_model=schemas.SubjectResponse)
def api_update_subject(
    subject_id: int,
    patch: schemas.SubjectUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    if crud.get_subject(db, user_id, subject_id) is None:
        raise HTTPException(status_code=404, detail="Subject not found")
    return crud.update_subject(db, user_id, subject_id, patch)


@subjects_router.delete("/{subject_id}", status_code=204)
def api_delete_subject(subject_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    if crud.get_subject(db, user_id, subject_id) is None:
        raise HTTPException(status_code=404, detail="Subject not found")
    crud.delete_subject(db, user_id, subject_id)
    return Response(status_code=204)


# ---------------------------------------------------------------- goals

goals_router = APIRouter(prefix="/goals", tags=["goals"])


@goals_router.get("", response_model=schemas.GoalPage)
def api_list_goals(
    status: Optional[str] = Query(default=None, pattern="^(completed|pending)$"),
    subject_id: Optional[int] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    goals, pagination = crud.list_goals(db, user_id, status, subject_id, page, limit)
    return {"goals": goals, "pagination": pagination}


@goals_router.get("/stats", response_model=schemas.GoalStats)
def api_goal_stats(user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.goal_stats(db, user_id)


@goals_router.post("", response_model=schemas.GoalResponse, status_code=201)
def api_create_goal(goal: schemas.GoalCreate, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.create_goal(db, user_id, goal)


@goals_router.get("/{goal_id}", response_model=schemas.GoalResponse)
def api_get_goal(goal_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    return crud.get_goal(db, user_id, goal_id)


@goals_router.put("/{goal_id}", response_model=schemas.GoalResponse)
def api_update_goal(
    goal_id: int,
    patch: schemas.GoalUpdate,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.update_goal(db, user_id, goal_id, patch)


@goals_router.patch("/{goal_id}/progress", response_model=schemas.GoalResponse)
def api_goal_progress(
    goal_id: int,
    hours: schemas.GoalHours,
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db)
):
    return crud.add_goal_hours(db, user_id, goal_id, hours.completed_hours)


@goals_router.delete("/{goal_id}", status_code=204)
def api_delete_goal(goal_id: int, user_id: int = Depends(current_user_id), db: Session = Depends(get_db)):
    crud.delete_goal(db, user_id, goal_id)
    return Response(status_code=204)


def create_app(run_migrations: bool = True) -> FastAPI:
    """Build the application; migrations run once here, never per request"""
    setup_logging()
    if run_migrations:
        init_db()

    app = FastAPI(title="Study Planner")
    app.add_exception_handler(StudyPlannerError, planner_error_handler)
    for router in (slots_router, progress_router, tasks_router, subjects_router, goals_router):
        app.include_router(router)
    return app
