"""
Тесты для realtime: брокер изменений, захват из сессии, WebSocket.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from projecthub.core.config import settings
from projecthub.main import app
from projecthub.models import Profile, TaskStatus
from projecthub.realtime import (
    DELETE,
    INSERT,
    UPDATE,
    ChangeBroker,
    ChangeCapture,
    ChangeEvent,
)
from projecthub.repositories import ProfileRepository
from projecthub.services import TaskService


@pytest_asyncio.fixture
async def broker():
    """Отдельный брокер с захватом изменений на время теста."""
    broker = ChangeBroker(queue_size=10)
    capture = ChangeCapture(broker).install()
    yield broker
    capture.uninstall()


# ============================================================================
# BROKER
# ============================================================================


def test_event_matches_filters_as_strings():
    change = ChangeEvent("tasks", UPDATE, {"id": 5, "project_id": 2})

    assert change.matches({})
    assert change.matches({"project_id": "2"})
    assert not change.matches({"project_id": 3})
    assert not change.matches({"missing": 1})


def test_event_matches_enum_and_bool_columns():
    """Test: фильтр из query string совпадает со значением enum и bool колонок."""
    change = ChangeEvent(
        "tasks", UPDATE, {"status": TaskStatus.DONE, "project_id": 1, "is_subtask": True}
    )

    assert change.matches({"status": "done"})
    assert change.matches({"status": TaskStatus.DONE})
    assert change.matches({"is_subtask": "true"})
    assert not change.matches({"status": "todo"})
    assert not change.matches({"is_subtask": "false"})


def test_publish_to_matching_subscriptions():
    broker = ChangeBroker()
    tasks = broker.subscribe("tasks", project_id=1)
    comments = broker.subscribe("task_comments")

    delivered = broker.publish(
        [
            ChangeEvent("tasks", INSERT, {"id": 1, "project_id": 1}),
            ChangeEvent("tasks", INSERT, {"id": 2, "project_id": 2}),
        ]
    )

    assert delivered == 1
    assert [e.record["id"] for e in tasks.pending()] == [1]
    assert comments.pending() == []


def test_full_queue_drops_oldest():
    """Test: отстающий подписчик теряет самые старые события."""
    broker = ChangeBroker(queue_size=2)
    subscription = broker.subscribe("tasks")

    broker.publish([ChangeEvent("tasks", UPDATE, {"id": i}) for i in range(5)])

    assert [e.record["id"] for e in subscription.pending()] == [3, 4]
    assert subscription.dropped == 3


def test_closed_subscription_receives_nothing():
    broker = ChangeBroker()
    with broker.subscribe("tasks") as subscription:
        assert broker.subscriber_count == 1

    assert broker.subscriber_count == 0
    broker.publish([ChangeEvent("tasks", INSERT, {"id": 1})])
    assert subscription.pending() == []
    # Повторное закрытие безопасно
    subscription.close()


# ============================================================================
# CHANGE CAPTURE
# ============================================================================


@pytest.mark.asyncio
async def test_committed_insert_is_published(test_db, broker):
    subscription = broker.subscribe("profiles")

    profile = await ProfileRepository(test_db).create(Profile(email="new@example.com"))
    assert subscription.pending() == []  # flush ещё не commit

    await test_db.commit()

    events = subscription.pending()
    assert [(e.event, e.record["id"]) for e in events] == [(INSERT, profile.id)]
    assert events[0].record["email"] == "new@example.com"


@pytest.mark.asyncio
async def test_rolled_back_changes_are_not_published(test_db, broker):
    subscription = broker.subscribe("profiles")

    await ProfileRepository(test_db).create(Profile(email="ghost@example.com"))
    await test_db.rollback()

    assert subscription.pending() == []


@pytest.mark.asyncio
async def test_update_and_delete_are_published(test_db, broker, member):
    subscription = broker.subscribe("profiles", id=member.id)
    repo = ProfileRepository(test_db)

    await repo.update_obj(member, display_name="Renamed")
    await test_db.commit()
    await repo.delete_obj(member)
    await test_db.commit()

    events = subscription.pending()
    assert [e.event for e in events] == [UPDATE, DELETE]
    assert events[0].record["display_name"] == "Renamed"


@pytest.mark.asyncio
async def test_task_changes_filtered_by_project(test_db, broker, project, member):
    """Test: подписка на задачи одного проекта видит перенос задачи на доске."""
    subscription = broker.subscribe("tasks", project_id=project.id)
    service = TaskService(test_db)

    task = await service.create_task(member, "Realtime", project.id)
    await test_db.commit()
    await service.move_task(member, task.id, "Review")
    await test_db.commit()

    events = subscription.pending()
    assert [e.event for e in events] == [INSERT, UPDATE]
    assert events[-1].record["kanban_column"] == "review"
    assert events[-1].record["version"] == 2


# ============================================================================
# WEBSOCKET
# ============================================================================


def test_websocket_ping():
    client = TestClient(app)
    with client.websocket_connect(f"/api/v1/realtime/tasks?api_key={settings.API_KEY}") as ws:
        ws.send_text("ping")
        assert ws.receive_json() == {"type": "pong"}


def test_websocket_rejects_invalid_key():
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/api/v1/realtime/tasks?api_key=wrong"):
            pass

    assert exc_info.value.code == 1008


def test_websocket_rejects_unknown_table():
    client = TestClient(app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect(
            "/api/v1/realtime/secrets", headers={"X-API-Key": settings.API_KEY}
        ):
            pass

    assert exc_info.value.code == 1008


@pytest.mark.asyncio
async def test_task_changes_filtered_by_status(test_db, broker, project, member):
    """Test: подписка status=done получает только перенос задачи в Done."""
    subscription = broker.subscribe("tasks", project_id=str(project.id), status="done")
    service = TaskService(test_db)

    task = await service.create_task(member, "Finish me", project.id)
    await test_db.commit()
    assert subscription.pending() == []

    await service.move_task(member, task.id, "Done")
    await test_db.commit()

    events = subscription.pending()
    assert [(e.event, e.record["id"]) for e in events] == [(UPDATE, task.id)]
    assert events[0].record["kanban_column"] == "done"
