import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from datetime import datetime, date
from sqlalchemy.exc import IntegrityError

from study_planner.database import SessionLocal, init_db, drop_db
from study_planner.crud import (
    create_user, get_user,
    create_subject, list_subjects,
    create_slot, list_slots, bulk_reschedule, delete_slot,
    weekly_summary, derive_today_tasks,
    upsert_progress, auto_log_today, progress_overview
)
from study_planner.exceptions import StudyPlannerError
from study_planner.logging_config import setup_logging
from study_planner.schemas import UserCreate, SubjectCreate, SlotCreate, SlotMove

app = typer.Typer(help="Study Planner CLI - weekly study slots, daily tasks and hours tracking")
console = Console()

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    setup_logging("DEBUG" if verbose else None)


def _parse_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    return datetime.strptime(value, "%Y-%m-%d").date()


def _require_user(db, user_id: int) -> bool:
    if not get_user(db, user_id):
        console.print(f"[red]✗[/red] User ID {user_id} not found")
        return False
    return True


@app.command()
def init():
    """Apply database migrations"""
    applied = init_db()
    console.print(f"[green]✓[/green] Database ready ({applied} migrations applied)")


@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    console.print("[yellow]Dropping all tables...[/yellow]")
    drop_db()
    console.print("[yellow]Recreating tables...[/yellow]")
    init_db()
    console.print("[green]✓[/green] Database reset complete! All data deleted.")


@app.command("create-user")
def create_user_cmd(
    name: str = typer.Option(..., prompt="Name"),
    email: str = typer.Option(..., prompt="Email")
):
    """Create a user"""
    db = SessionLocal()
    try:
        user = create_user(db, UserCreate(name=name, email=email))
        console.print(f"[green]✓[/green] User created! User ID: {user.id}")
    except IntegrityError:
        db.rollback()
        console.print(f"[red]✗[/red] A user with email {email} already exists")
    finally:
        db.close()


@app.command()
def add_subject(
    user_id: int = typer.Option(..., prompt="User ID"),
    name: str = typer.Option(..., prompt="Subject name"),
    color: Optional[str] = typer.Option(None, help="Hex color, e.g. #10B981"),
    description: Optional[str] = typer.Option(None, help="Optional description")
):
    """Add a subject"""
    db = SessionLocal()
    try:
        if not _require_user(db, user_id):
            return
        subject = create_subject(db, user_id, SubjectCreate(name=name, color=color, description=description))
        console.print(f"[green]✓[/green] Subject created! ID: {subject.id} ({subject.name})")
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
    finally:
        db.close()


@app.command("list-subjects")
def list_subjects_cmd(user_id: int):
    """List a user's subjects"""
    db = SessionLocal()
    try:
        subjects = list_subjects(db, user_id)
        console.print(f"\n[bold]Subjects for user {user_id}:[/bold]")
        for subject in subjects:
            console.print(f"  {subject.id}. {subject.name} [dim]{subject.color}[/dim]")
    finally:
        db.close()


@app.command()
def add_slot(
    user_id: int = typer.Option(..., prompt="User ID"),
    day: int = typer.Option(..., prompt="Day of week (0=Sunday .. 6=Saturday)"),
    start: str = typer.Option(..., prompt="Start time (HH:MM)"),
    end: str = typer.Option(..., prompt="End time (HH:MM)"),
    subject_id: Optional[int] = typer.Option(None, help="Subject ID"),
    title: Optional[str] = typer.Option(None, help="Slot title")
):
    """Add a recurring weekly study slot"""
    db = SessionLocal()
    try:
        if not _require_user(db, user_id):
            return
        slot = create_slot(db, user_id, SlotCreate(
            subject_id=subject_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            title=title
        ))
        console.print(f"[green]✓[/green] Slot created! ID: {slot.id}")
        console.print(f"  {DAY_NAMES[slot.day_of_week]} {slot.start_time}-{slot.end_time} ({slot.duration_minutes} min)")
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid slot: {e}")
    finally:
        db.close()


@app.command("list-slots")
def list_slots_cmd(
    user_id: int,
    day: Optional[int] = typer.Option(None, help="Only this day of week")
):
    """Show the weekly template"""
    db = SessionLocal()
    try:
        slots, pagination = list_slots(db, user_id, day_of_week=day)
        if not slots:
            console.print(f"[yellow]No planner slots for user {user_id}[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Day", style="cyan")
        table.add_column("Time", style="green")
        table.add_column("Subject", style="yellow")
        table.add_column("Duration", style="blue", justify="right")
        table.add_column("Active")

        for slot in slots:
            table.add_row(
                str(slot.id),
                DAY_NAMES[slot.day_of_week],
                f"{slot.start_time}-{slot.end_time}",
                slot.title or slot.subject_name or "-",
                f"{slot.duration_minutes} min",
                "yes" if slot.is_active else "no"
            )

        console.print(table)
        console.print(f"[dim]{pagination['total']} slots[/dim]")
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
    finally:
        db.close()


@app.command()
def move_slot(
    user_id: int = typer.Option(..., prompt="User ID"),
    slot_id: int = typer.Option(..., prompt="Slot ID"),
    day: int = typer.Option(..., prompt="New day of week (0-6)"),
    start: str = typer.Option(..., prompt="New start time (HH:MM)"),
    end: str = typer.Option(..., prompt="New end time (HH:MM)")
):
    """Reschedule one slot"""
    db = SessionLocal()
    try:
        results = bulk_reschedule(db, user_id, [
            SlotMove(id=slot_id, day_of_week=day, start_time=start, end_time=end)
        ])
        result = results[0]
        if result["success"]:
            console.print(f"[green]✓[/green] Slot {slot_id} moved to {DAY_NAMES[day]} {start}-{end}")
        else:
            console.print(f"[red]✗[/red] {result['error']}")
    except ValueError as e:
        console.print(f"[red]✗[/red] Invalid move: {e}")
    finally:
        db.close()


@app.command("delete-slot")
def delete_slot_cmd(user_id: int, slot_id: int):
    """Delete a slot"""
    db = SessionLocal()
    try:
        delete_slot(db, user_id, slot_id)
        console.print(f"[green]✓[/green] Slot {slot_id} deleted")
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
    finally:
        db.close()


@app.command("weekly-summary")
def weekly_summary_cmd(user_id: int):
    """Minutes planned per day and subject"""
    db = SessionLocal()
    try:
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Day", style="cyan")
        table.add_column("Slots", justify="right")
        table.add_column("Minutes", style="blue", justify="right")
        table.add_column("Subjects", style="yellow")

        for day in weekly_summary(db, user_id):
            subjects_str = ", ".join(f"{s['name']} ({s['total_minutes']}m)" for s in day["subjects"])
            table.add_row(
                DAY_NAMES[day["day_of_week"]],
                str(day["slots_count"]),
                str(day["total_minutes"]),
                subjects_str or "-"
            )

        console.print(table)
    finally:
        db.close()


@app.command()
def today_tasks(
    user_id: int,
    on: Optional[str] = typer.Option(None, help="Date (YYYY-MM-DD), default: today")
):
    """Show today's tasks, generating them from the planner if none exist"""
    db = SessionLocal()
    try:
        if not _require_user(db, user_id):
            return
        tasks, generated = derive_today_tasks(db, user_id, today=_parse_date(on))
        if generated:
            console.print(f"[green]✓[/green] Generated {len(tasks)} tasks from planner slots")
        if not tasks:
            console.print("[yellow]No tasks for today[/yellow]")
            return
        for task in tasks:
            mark = "[green]✓[/green]" if task.is_completed else "☐"
            console.print(f"  {mark} {task.title} [dim]({task.priority})[/dim]")
    except ValueError:
        console.print(f"[red]✗[/red] Invalid date {on!r}, expected YYYY-MM-DD")
    finally:
        db.close()


@app.command()
def log_progress(
    user_id: int = typer.Option(..., prompt="User ID"),
    subject_id: int = typer.Option(..., prompt="Subject ID"),
    hours: float = typer.Option(..., prompt="Hours studied"),
    on: Optional[str] = typer.Option(None, help="Date (YYYY-MM-DD), default: today"),
    notes: Optional[str] = typer.Option(None, help="Optional notes")
):
    """Log study hours (added to any hours already logged for that day)"""
    db = SessionLocal()
    try:
        entry, aggregated = upsert_progress(db, user_id, subject_id, _parse_date(on), hours, notes)
        verb = "added to existing entry" if aggregated else "logged"
        console.print(f"[green]✓[/green] {hours}h {verb}. Total for {entry.date}: {entry.hours_studied:.2f}h")
    except StudyPlannerError as e:
        console.print(f"[red]✗[/red] {e.message}")
    except ValueError:
        console.print(f"[red]✗[/red] Invalid date {on!r}, expected YYYY-MM-DD")
    finally:
        db.close()


@app.command("auto-log-today")
def auto_log(
    user_id: int,
    on: Optional[str] = typer.Option(None, help="Date (YYYY-MM-DD), default: today")
):
    """Log today's scheduled slots as studied (run once per day)"""
    db = SessionLocal()
    try:
        result = auto_log_today(db, user_id, today=_parse_date(on))
        console.print(f"[green]✓[/green] Auto log complete for {result['date']}")
        console.print(f"  Created: {result['created']}  Aggregated: {result['aggregated']}  Skipped: {result['skipped']}")
        for error in result["errors"]:
            console.print(f"  [red]{error}[/red]")
    except ValueError:
        console.print(f"[red]✗[/red] Invalid date {on!r}, expected YYYY-MM-DD")
    finally:
        db.close()


@app.command()
def overview(user_id: int):
    """Study hours and completion overview"""
    db = SessionLocal()
    try:
        if not _require_user(db, user_id):
            return
        data = progress_overview(db, user_id)
        stats = data["overall_stats"]

        console.print(f"\n[bold]Progress Overview - user {user_id}[/bold]\n")
        console.print(f"[cyan]Statistics:[/cyan]")
        console.print(f"  Total hours: {stats['total_hours']:.2f}")
        console.print(f"  Sessions: {stats['total_sessions']}")
        console.print(f"  Average per session: {stats['avg_hours_per_session']:.2f}h")
        console.print(f"  Days studied: {stats['total_days_studied']}")
        console.print(f"  Tasks completed: {data['tasks']['completed']}/{data['tasks']['total']}")
        console.print(f"  Goals completed: {data['goals']['completed']}/{data['goals']['total']}")

        if data["progress_by_subject"]:
            table = Table(show_header=True, header_style="bold magenta")
            table.add_column("Subject", style="cyan")
            table.add_column("Hours", style="green", justify="right")
            table.add_column("Sessions", justify="right")
            table.add_column("Avg/session", style="blue", justify="right")
            for row in data["progress_by_subject"]:
                table.add_row(
                    row["subject_name"],
                    f"{row['total_hours']:.2f}",
                    str(row["total_sessions"]),
                    f"{row['avg_hours_per_session']:.2f}"
                )
            console.print(table)
    finally:
        db.close()


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Port")
):
    """Run the REST API"""
    import uvicorn
    uvicorn.run("study_planner.api:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    app()
