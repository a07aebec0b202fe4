import pytest
from typer.testing import CliRunner

import cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_session(monkeypatch, session_factory):
    monkeypatch.setattr(cli, "SessionLocal", session_factory)


def test_create_user_and_subject(user):
    result = runner.invoke(cli.app, ["add-subject", "--user-id", str(user.id), "--name", "Biology"])
    assert result.exit_code == 0
    assert "Subject created" in result.output

    listing = runner.invoke(cli.app, ["list-subjects", str(user.id)])
    assert "Biology" in listing.output


def test_create_user_command():
    result = runner.invoke(cli.app, ["create-user", "--name", "Linus", "--email", "linus@example.com"])
    assert result.exit_code == 0
    assert "User created" in result.output


def test_add_slot_reports_conflict(user):
    args = ["add-slot", "--user-id", str(user.id), "--day", "1", "--start", "09:00", "--end", "10:00"]
    assert "Slot created" in runner.invoke(cli.app, args).output

    clash = runner.invoke(cli.app, ["add-slot", "--user-id", str(user.id), "--day", "1",
                                    "--start", "09:30", "--end", "10:30"])
    assert "conflicts" in clash.output

    listing = runner.invoke(cli.app, ["list-slots", str(user.id)])
    assert "Monday" in listing.output


def test_log_progress_aggregates(user, math):
    args = ["log-progress", "--user-id", str(user.id), "--subject-id", str(math.id),
            "--hours", "1.5", "--on", "2026-10-19"]
    runner.invoke(cli.app, args)
    result = runner.invoke(cli.app, args[:-4] + ["--hours", "2", "--on", "2026-10-19"])
    assert "added to existing entry" in result.output
    assert "3.50h" in result.output


def test_weekly_summary_lists_every_day(user):
    result = runner.invoke(cli.app, ["weekly-summary", str(user.id)])
    assert result.exit_code == 0
    for day in cli.DAY_NAMES:
        assert day in result.output


def test_list_slots_rejects_bad_day(user):
    result = runner.invoke(cli.app, ["list-slots", str(user.id), "--day", "9"])
    assert result.exit_code == 0
    assert "✗" in result.output
    assert "Day of week" in result.output


def test_malformed_date_is_reported(user, math):
    result = runner.invoke(cli.app, ["log-progress", "--user-id", str(user.id), "--subject-id", str(math.id),
                                     "--hours", "1", "--on", "19/10/2026"])
    assert result.exit_code == 0
    assert "Invalid date" in result.output

    result = runner.invoke(cli.app, ["auto-log-today", str(user.id), "--on", "yesterday"])
    assert result.exit_code == 0
    assert "Invalid date" in result.output


def test_duplicate_email_is_reported(user):
    result = runner.invoke(cli.app, ["create-user", "--name", "Ada", "--email", "ada@example.com"])
    assert result.exit_code == 0
    assert "already exists" in result.output
