import pytest
from fastapi.testclient import TestClient

from study_planner.api import create_app
from study_planner.database import get_db


@pytest.fixture
def client(session_factory):
    app = create_app(run_migrations=False)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers(user):
    return {"X-User-Id": str(user.id)}


def test_missing_or_unknown_user_is_unauthorized(client, user):
    assert client.get("/slots").status_code == 401
    assert client.get("/slots", headers={"X-User-Id": "9999"}).status_code == 401


def test_slot_lifecycle(client, headers, math):
    response = client.post("/slots", headers=headers, json={
        "subject_id": math.id, "day_of_week": 1, "start_time": "9:00", "end_time": "10:30"
    })
    assert response.status_code == 201
    slot = response.json()
    assert slot["start_time"] == "09:00"
    assert slot["duration_minutes"] == 90
    assert slot["subject_name"] == "Math"

    conflict = client.post("/slots", headers=headers, json={
        "day_of_week": 1, "start_time": "10:00", "end_time": "11:00"
    })
    assert conflict.status_code == 409
    assert conflict.json()["conflicting_slot_id"] == slot["id"]

    listing = client.get("/slots", headers=headers).json()
    assert listing["pagination"]["total"] == 1

    assert client.get("/slots/day/1", headers=headers).json()[0]["id"] == slot["id"]
    assert client.delete(f"/slots/{slot['id']}", headers=headers).status_code == 204
    assert client.get(f"/slots/{slot['id']}", headers=headers).status_code == 404


def test_slot_validation_errors(client, headers):
    backwards = client.post("/slots", headers=headers, json={
        "day_of_week": 1, "start_time": "10:00", "end_time": "09:00"
    })
    assert backwards.status_code == 400

    malformed = client.post("/slots", headers=headers, json={
        "day_of_week": 1, "start_time": "25:00", "end_time": "26:00"
    })
    assert malformed.status_code == 422


def test_foreign_subject_on_write_is_bad_request(client, db, other_user, math):
    response = client.post("/slots", headers={"X-User-Id": str(other_user.id)}, json={
        "subject_id": math.id, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"
    })
    assert response.status_code == 400


def test_bulk_reschedule(client, headers):
    slot = client.post("/slots", headers=headers, json={
        "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"
    }).json()

    response = client.put("/slots/bulk", headers=headers, json={"slots": [
        {"id": slot["id"], "day_of_week": 2, "start_time": "09:00", "end_time": "10:00"},
        {"id": 9999, "day_of_week": 2, "start_time": "11:00", "end_time": "12:00"},
    ]})
    assert response.status_code == 200
    assert [item["success"] for item in response.json()] == [True, False]


def test_weekly_summary_route(client, headers):
    summary = client.get("/slots/weekly-summary", headers=headers).json()
    assert len(summary) == 7


def test_progress_insert_then_aggregate(client, headers, math):
    body = {"subject_id": math.id, "date": "2026-10-19", "hours_studied": 1.5}
    first = client.post("/progress", headers=headers, json=body)
    assert first.status_code == 201
    assert first.json()["aggregated"] is False

    second = client.post("/progress", headers=headers, json={**body, "hours_studied": 2.0})
    assert second.status_code == 200
    assert second.json()["aggregated"] is True
    assert second.json()["progress"]["hours_studied"] == pytest.approx(3.5)

    assert client.get("/progress", headers=headers).json()["pagination"]["total"] == 1


def test_negative_hours_rejected(client, headers, math):
    response = client.post("/progress", headers=headers, json={
        "subject_id": math.id, "date": "2026-10-19", "hours_studied": -1
    })
    assert response.status_code == 422


def test_progress_overview_route(client, headers):
    overview = client.get("/progress/overview", headers=headers).json()
    assert overview["overall_stats"]["total_sessions"] == 0
    assert overview["tasks"]["completion_rate"] == 0.0


def test_today_tasks_route(client, headers):
    response = client.get("/tasks/today", headers=headers)
    assert response.status_code == 200
    assert response.json() == {"tasks": [], "auto_generated": False}


def test_task_toggle_route(client, headers):
    task = client.post("/tasks", headers=headers, json={"title": "Revise"}).json()
    toggled = client.patch(f"/tasks/{task['id']}/toggle", headers=headers)
    assert toggled.json()["is_completed"] is True


def test_subject_crud_routes(client, headers):
    created = client.post("/subjects", headers=headers, json={"name": "Chemistry"})
    assert created.status_code == 201
    assert created.json()["color"] == "#3B82F6"

    duplicate = client.post("/subjects", headers=headers, json={"name": "Chemistry"})
    assert duplicate.status_code == 409

    subject_id = created.json()["id"]
    assert client.delete(f"/subjects/{subject_id}", headers=headers).status_code == 204
    assert client.get(f"/subjects/{subject_id}", headers=headers).status_code == 404


def test_goal_progress_route(client, headers):
    goal = client.post("/goals", headers=headers, json={"title": "Five hours", "target_hours": 5}).json()
    response = client.patch(f"/goals/{goal['id']}/progress", headers=headers, json={"completed_hours": 5})
    assert response.json()["is_completed"] is True


def test_put_null_subject_unassigns_slot(client, headers, math):
    slot = client.post("/slots", headers=headers, json={
        "subject_id": math.id, "day_of_week": 1, "start_time": "09:00", "end_time": "10:00"
    }).json()
    response = client.put(f"/slots/{slot['id']}", headers=headers, json={"subject_id": None})
    assert response.status_code == 200
    assert response.json()["subject_id"] is None


def test_goal_list_is_paginated(client, headers):
    for title in ("One", "Two", "Three"):
        client.post("/goals", headers=headers, json={"title": title, "target_hours": 1})
    page = client.get("/goals", headers=headers, params={"limit": 2}).json()
    assert len(page["goals"]) == 2
    assert page["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


def test_goal_stats_route(client, headers, math):
    goal = client.post("/goals", headers=headers, json={
        "title": "Five hours", "subject_id": math.id, "target_hours": 5
    }).json()
    client.patch(f"/goals/{goal['id']}/progress", headers=headers, json={"completed_hours": 5})

    stats = client.get("/goals/stats", headers=headers).json()
    assert stats["stats"]["completed_goals"] == 1
    assert stats["completion_by_subject"][0]["subject_name"] == "Math"
    assert stats["recent_goals"][0]["id"] == goal["id"]


def test_subject_stats_route(client, headers, math, other_user):
    client.post("/tasks", headers=headers, json={"title": "Revise", "subject_id": math.id})
    response = client.get(f"/subjects/{math.id}/stats", headers=headers)
    assert response.status_code == 200
    assert [t["title"] for t in response.json()["recent_tasks"]] == ["Revise"]

    foreign = client.get(f"/subjects/{math.id}/stats", headers={"X-User-Id": str(other_user.id)})
    assert foreign.status_code == 404
