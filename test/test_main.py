import pytest
import pytest_asyncio
import os
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport

# --- SETUP: Use the in-memory store before importing app components ---
os.environ["STORE_BACKEND"] = "memory"

# --- App Imports ---
from main import app, startup_event
from app.database.connection import get_sync_controller
from app.database.gateway import InMemoryGateway, StoreError
from app.services.notification_sync import NotificationSyncController

BASE_URL = "/api/weather-notifications"


# --- Pytest Fixtures ---

@pytest.fixture
def gateway() -> InMemoryGateway:
    return InMemoryGateway()


@pytest.fixture
def controller(gateway: InMemoryGateway) -> NotificationSyncController:
    return NotificationSyncController(gateway)


@pytest_asyncio.fixture(scope="function")
async def client(controller: NotificationSyncController) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_sync_controller] = lambda: controller
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    del app.dependency_overrides[get_sync_controller]


async def create(client: AsyncClient, title: str, type: str = "warning"):
    return await client.post(BASE_URL + "/", json={
        "title": title, "description": "Heavy rain expected",
        "date": "2024-06-01T08:00:00", "type": type,
    })


# =================================================================================
# --- TEST CASES ---
# =================================================================================

@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Weather Admin API is running"}


@pytest.mark.asyncio
async def test_list_starts_empty(client: AsyncClient):
    response = await client.get(BASE_URL + "/")
    assert response.status_code == 200
    assert response.json() == {"notifications": [], "loading": False, "creating": False, "count": 0}


@pytest.mark.asyncio
async def test_create_notification(client: AsyncClient):
    response = await create(client, "Storm Warning")
    assert response.status_code == 201
    body = response.json()
    assert body["status"]["message"] == "Notification added successfully"
    assert body["status"]["level"] == "success"
    assert body["state"]["count"] == 1
    [notification] = body["state"]["notifications"]
    assert notification["title"] == "Storm Warning"
    assert notification["type"] == "warning"
    assert notification["id"]
    assert notification["date_label"] == "2024-06-01"


@pytest.mark.asyncio
async def test_create_notification_missing_fields(client: AsyncClient):
    response = await client.post(BASE_URL + "/", json={"title": "Only a title"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Please fill in all fields"


@pytest.mark.asyncio
async def test_create_notification_store_failure(client: AsyncClient, gateway: InMemoryGateway, mocker):
    mocker.patch.object(gateway, "insert", side_effect=StoreError("quota exceeded"))
    response = await create(client, "Storm Warning")
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to add notification: quota exceeded"


@pytest.mark.asyncio
async def test_refresh_picks_up_external_writes(client: AsyncClient, gateway: InMemoryGateway):
    await gateway.insert({"title": "From elsewhere", "description": "", "type": "info"})
    assert (await client.get(BASE_URL + "/")).json()["count"] == 0

    response = await client.post(BASE_URL + "/refresh")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] is None
    assert [n["title"] for n in body["state"]["notifications"]] == ["From elsewhere"]


@pytest.mark.asyncio
async def test_refresh_store_failure(client: AsyncClient, gateway: InMemoryGateway, mocker):
    mocker.patch.object(gateway, "list_documents", side_effect=StoreError("permission denied"))
    response = await client.post(BASE_URL + "/refresh")
    assert response.status_code == 502
    assert response.json()["detail"] == "Failed to load notifications: permission denied"


@pytest.mark.asyncio
async def test_delete_notification_by_id(client: AsyncClient):
    await create(client, "First")
    body = (await create(client, "Second", type="info")).json()
    second_id = body["state"]["notifications"][0]["id"]

    response = await client.delete(f"{BASE_URL}/{second_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["status"]["message"] == "Notification deleted successfully"
    assert [n["title"] for n in body["state"]["notifications"]] == ["First"]


@pytest.mark.asyncio
async def test_delete_unknown_id_reconciles(client: AsyncClient):
    await create(client, "Kept")
    response = await client.delete(f"{BASE_URL}/missing-id")
    assert response.status_code == 502
    assert response.json()["detail"].startswith("Failed to delete notification:")

    state = (await client.get(BASE_URL + "/")).json()
    assert [n["title"] for n in state["notifications"]] == ["Kept"]


@pytest.mark.asyncio
async def test_delete_notification_at_index(client: AsyncClient):
    await create(client, "First")
    await create(client, "Second")

    response = await client.delete(f"{BASE_URL}/at/0")
    assert response.status_code == 200
    assert [n["title"] for n in response.json()["state"]["notifications"]] == ["First"]


@pytest.mark.asyncio
async def test_delete_notification_at_bad_index(client: AsyncClient):
    response = await client.delete(f"{BASE_URL}/at/3")
    assert response.status_code == 404
    assert response.json()["detail"] == "Notification not found"


@pytest.mark.asyncio
async def test_status_messages_history(client: AsyncClient):
    await client.post(BASE_URL + "/", json={})
    await create(client, "Storm Warning")

    response = await client.get(BASE_URL + "/messages")
    assert response.status_code == 200
    assert [m["code"] for m in response.json()] == ["invalid_input", "created"]


@pytest.mark.asyncio
async def test_startup_loads_existing_notifications(client: AsyncClient, gateway: InMemoryGateway,
                                                    controller: NotificationSyncController, mocker):
    await gateway.insert({"title": "Frost overnight", "description": "Cover plants", "type": "info"})
    mocker.patch("main.get_sync_controller", return_value=controller)

    await startup_event()

    state = (await client.get(BASE_URL + "/")).json()
    assert state["loading"] is False
    assert [(n["title"], n["type"]) for n in state["notifications"]] == [("Frost overnight", "info")]


@pytest.mark.asyncio
async def test_create_reports_failed_reload(client: AsyncClient, gateway: InMemoryGateway, mocker):
    mocker.patch.object(gateway, "list_documents", side_effect=StoreError("deadline exceeded"))
    response = await create(client, "Storm Warning")
    assert response.status_code == 201
    status = response.json()["status"]
    assert status["code"] == "created"
    assert [r["message"] for r in status["related"]] == ["Failed to load notifications: deadline exceeded"]
