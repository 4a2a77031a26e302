"""HTTP-level tests for the reorder and curation endpoints."""

from datetime import timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest

from taskcurator.api.v1 import curation as curation_api
from taskcurator.testing.factories import create_project, create_task, create_user

pytestmark = pytest.mark.integration

API = "/api/v1"


@pytest.fixture
async def owner(db):
    return await create_user(db)


@pytest.fixture
async def project(db, owner):
    return await create_project(db, owner)


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


async def test_readiness_checks_the_database(client):
    response = await client.get(f"{API}/health/ready")

    assert response.status_code == 200
    assert response.json()["checks"]["database"] == "healthy"


async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"


class TestReorder:
    async def test_confirmation_round_trip(self, client, db, project):
        first = await create_task(db, project, priority="high")
        await create_task(db, project, priority="medium")
        await create_task(db, project, priority="low")
        await db.commit()
        url = f"{API}/projects/{project.id}/tasks/{first.id}/reorder"

        pending = await client.post(url, json={"new_position": 3})

        assert pending.status_code == 200
        body = pending.json()
        assert body["success"] is False
        assert body["requires_confirmation"] is True
        assert body["confirmation_data"]["type"] == "moving_to_lower_priority"
        assert body["confirmation_data"]["new_priority"] == "low"

        confirmed = await client.post(url, json={"new_position": 3, "confirmed": True})

        body = confirmed.json()
        assert confirmed.status_code == 200
        assert body["success"] is True
        assert body["reorder_data"]["new_position"] == 3
        assert body["reorder_data"]["new_priority"] == "low"
        assert body["message"] == "Task reordered successfully. Priority changed from high to low."

    async def test_noop(self, client, db, project):
        task = await create_task(db, project)
        await db.commit()

        response = await client.post(
            f"{API}/projects/{project.id}/tasks/{task.id}/reorder", json={"new_position": 1}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Task is already at this position."

    async def test_position_out_of_range(self, client, db, project):
        task = await create_task(db, project)
        await db.commit()

        response = await client.post(
            f"{API}/projects/{project.id}/tasks/{task.id}/reorder", json={"new_position": 2}
        )

        assert response.status_code == 422

    async def test_position_must_be_positive(self, client, db, project):
        task = await create_task(db, project)
        await db.commit()

        response = await client.post(
            f"{API}/projects/{project.id}/tasks/{task.id}/reorder", json={"new_position": 0}
        )

        assert response.status_code == 422

    async def test_task_in_another_project_is_not_found(self, client, db, owner, project):
        other = await create_project(db, owner)
        task = await create_task(db, other)
        await db.commit()

        response = await client.post(
            f"{API}/projects/{project.id}/tasks/{task.id}/reorder", json={"new_position": 1}
        )

        assert response.status_code == 404


class TestCuration:
    async def test_inline_run_then_today_list(self, client, db, owner, project, today):
        overdue = await create_task(
            db, project, due_date=today - timedelta(days=1), current_story_points=2
        )
        active = await create_task(db, project, status="in_progress", current_story_points=2)
        await db.commit()

        run = await client.post(
            f"{API}/curation/run", json={"user_id": str(owner.id), "run_inline": True}
        )

        assert run.status_code == 202
        assert run.json()["status"] == "completed"
        assert run.json()["summary"]["projects_curated"] == 1

        listing = await client.get(f"{API}/curation/users/{owner.id}/today")

        assert listing.status_code == 200
        body = listing.json()
        assert body["work_date"] == today.isoformat()
        assert [a["item_id"] for a in body["assignments"]] == [str(overdue.id), str(active.id)]
        assert [a["current_index"] for a in body["assignments"]] == [1, 2]
        (record,) = body["curations"]
        assert record["project_id"] == str(project.id)
        assert record["ai_generated"] is False
        assert record["suggestions"]

    async def test_moving_an_assignment(self, client, db, owner, project, today):
        first = await create_task(db, project, status="in_progress", current_story_points=1)
        second = await create_task(db, project, status="in_progress", current_story_points=1)
        await db.commit()
        await client.post(f"{API}/curation/run", json={"user_id": str(owner.id), "run_inline": True})
        listing = (await client.get(f"{API}/curation/users/{owner.id}/today")).json()
        first_entry = next(a for a in listing["assignments"] if a["item_id"] == str(first.id))

        moved = await client.patch(
            f"{API}/curation/assignments/{first_entry['id']}", json={"current_index": 3}
        )

        assert moved.status_code == 200
        assert moved.json()["current_index"] == 3
        assert moved.json()["moved_count"] == 1
        listing = (await client.get(f"{API}/curation/users/{owner.id}/today")).json()
        assert [a["item_id"] for a in listing["assignments"]][-1] == str(first.id)
        assert str(second.id) in [a["item_id"] for a in listing["assignments"]]

    async def test_moving_unknown_assignment(self, client):
        response = await client.patch(
            f"{API}/curation/assignments/{uuid4()}", json={"current_index": 1}
        )

        assert response.status_code == 404

    async def test_unknown_user_inline_run(self, client):
        response = await client.post(
            f"{API}/curation/run", json={"user_id": str(uuid4()), "run_inline": True}
        )

        assert response.status_code == 404

    async def test_run_is_queued_by_default(self, client, owner, monkeypatch):
        calls = []

        def fake_delay(*args):
            calls.append(args)
            return SimpleNamespace(id="celery-task-1")

        monkeypatch.setattr(
            curation_api, "run_user_curation", SimpleNamespace(delay=fake_delay)
        )

        response = await client.post(f"{API}/curation/run", json={"user_id": str(owner.id)})

        assert response.status_code == 202
        assert response.json() == {"status": "queued", "task_id": "celery-task-1"}
        assert calls == [(str(owner.id), None)]

    async def test_empty_day(self, client, owner):
        response = await client.get(
            f"{API}/curation/users/{owner.id}/today", params={"work_date": "2026-01-01"}
        )

        assert response.status_code == 200
        assert response.json() == {"work_date": "2026-01-01", "assignments": [], "curations": []}
