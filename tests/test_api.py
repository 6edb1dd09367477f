"""
HTTP surface tests with FastAPI's TestClient.

Simulator classifier, console delivery, in-memory SQLite.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from frontdesk.adapters.simulator_classifier import SimulatorClassificationClient
from frontdesk.adapters.sqlite_store import SqliteHotelStore
from frontdesk.api import create_app
from frontdesk.bootstrap import Services
from frontdesk.communication.console_provider import ConsoleDeliveryProvider
from frontdesk.domain.records import Channel, Guest, Hotel
from frontdesk.pipeline import CallIntake, MessageIntake

HOTEL_NUMBER = "+33100000001"
GUEST_NUMBER = "+33611111111"
URGENT_TEXT = "Water is leaking from the ceiling, please come immediately"


async def _seed(store):
    await store.add_hotel(Hotel("h1", "Hotel Le Matisse", phone_number=HOTEL_NUMBER))
    await store.add_hotel(Hotel("h2", "Other Hotel", phone_number="+33100000002"))
    await store.add_guest(Guest("g1", "h1", "Sophie", phone=GUEST_NUMBER))
    await store.add_guest(Guest("g2", "h2", "Marc"))


@pytest.fixture
def client():
    store = SqliteHotelStore(":memory:")
    asyncio.run(_seed(store))
    classifier = SimulatorClassificationClient()
    providers = {Channel.WEB_CHAT: ConsoleDeliveryProvider(), Channel.SMS: ConsoleDeliveryProvider()}
    services = Services(
        store=store,
        classifier=classifier,
        providers=providers,
        message_intake=MessageIntake(store, classifier, providers),
        call_intake=CallIntake(store, classifier),
    )
    return TestClient(create_app(services))


def _post_message(client, text, channel="sms", **body):
    payload = {"content": text, "hotelId": "h1", "guestId": "g1"}
    payload.update(body)
    return client.post(f"/api/messages/webhook/{channel}", json=payload)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def test_message_webhook_replies(client):
    resp = _post_message(client, "Could we get fresh towels?")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "success"
    data = body["data"]
    assert data["action"] == "responded"
    assert data["message"]["channel"] == "SMS"
    assert data["aiResponse"]["autonomous"] is True
    assert data["aiResponse"]["status"] == "DELIVERED"
    assert data["task"] is None


def test_message_webhook_escalates(client):
    data = _post_message(client, URGENT_TEXT).json()["data"]
    assert data["action"] == "escalated"
    assert data["task"]["priority"] == "URGENT"
    assert data["task"]["metadata"]["message_id"] == data["message"]["message_id"]


def test_message_webhook_hotel_from_header(client):
    resp = client.post(
        "/api/messages/webhook/web-chat",
        json={"content": "Hello"},
        headers={"X-Hotel-Id": "h1"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["message"]["hotel_id"] == "h1"


def test_message_webhook_validation_error(client):
    resp = _post_message(client, "   ")
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"


def test_message_webhook_cross_tenant_guest(client):
    resp = _post_message(client, "Hello", hotelId="h2")
    assert resp.status_code == 400


def test_message_webhook_unknown_hotel(client):
    resp = _post_message(client, "Hello", hotelId="nope", guestId=None)
    assert resp.status_code == 404


def test_message_webhook_unknown_channel(client):
    assert _post_message(client, "Hello", channel="pigeon").status_code == 400


def test_list_and_get_messages_are_tenant_scoped(client):
    data = _post_message(client, "Could we get fresh towels?").json()["data"]
    message_id = data["message"]["message_id"]

    resp = client.get("/api/messages", headers={"X-Hotel-Id": "h1"})
    assert resp.json()["data"]["total"] == 2

    resp = client.get("/api/messages", params={"direction": "inbound"}, headers={"X-Hotel-Id": "h1"})
    assert [m["message_id"] for m in resp.json()["data"]["messages"]] == [message_id]

    assert client.get(f"/api/messages/{message_id}", headers={"X-Hotel-Id": "h1"}).status_code == 200
    assert client.get(f"/api/messages/{message_id}", headers={"X-Hotel-Id": "h2"}).status_code == 404
    assert client.get("/api/messages", headers={"X-Hotel-Id": "h2"}).json()["data"]["total"] == 0

    resp = client.get("/api/messages", params={"guestId": "g1", "direction": "outbound"}, headers={"X-Hotel-Id": "h1"})
    assert resp.json()["data"]["total"] == 1
    assert client.get("/api/messages", params={"guestId": "g2"}, headers={"X-Hotel-Id": "h1"}).json()["data"]["total"] == 0


def test_list_requires_hotel_header(client):
    resp = client.get("/api/messages")
    assert resp.status_code == 400
    assert resp.json()["status"] == "error"


def test_bad_filter_is_rejected(client):
    headers = {"X-Hotel-Id": "h1"}
    assert client.get("/api/messages", params={"limit": 0}, headers=headers).status_code == 400
    assert client.get("/api/messages", params={"channel": "fax"}, headers=headers).status_code == 400


def test_staff_message(client):
    resp = client.post(
        "/api/messages",
        json={"channel": "SMS", "content": "Your room is ready", "guestId": "g1"},
        headers={"X-Hotel-Id": "h1"},
    )
    assert resp.status_code == 200
    message = resp.json()["data"]["message"]
    assert message["direction"] == "OUTBOUND"
    assert message["status"] == "DELIVERED"


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------


def _start_call(client, sid="CA100"):
    return client.post(
        "/api/calls/webhook/twilio",
        data={"From": GUEST_NUMBER, "To": HOTEL_NUMBER, "CallSid": sid},
    )


def test_call_lifecycle(client):
    call = _start_call(client).json()["data"]["call"]
    assert call["status"] == "IN_PROGRESS"
    assert call["guest_id"] == "g1"

    resp = client.post(
        "/api/calls/webhook/twilio/transcript",
        data={"To": HOTEL_NUMBER, "CallSid": "CA100", "TranscriptionText": "The heating is broken"},
    )
    assert resp.json()["data"]["call"]["intent"] == "maintenance"

    resp = client.post(
        "/api/calls/webhook/twilio/status",
        data={"To": HOTEL_NUMBER, "CallSid": "CA100", "CallStatus": "completed", "CallDuration": "42"},
    )
    done = resp.json()["data"]["call"]
    assert done["status"] == "COMPLETED"
    assert done["duration_seconds"] == 42

    resp = client.get(f"/api/calls/{call['call_id']}", headers={"X-Hotel-Id": "h1"})
    assert resp.json()["data"]["call"]["transcript"] == "The heating is broken"
    assert client.get(f"/api/calls/{call['call_id']}", headers={"X-Hotel-Id": "h2"}).status_code == 404


def test_intermediate_status_callback_is_ignored(client):
    _start_call(client)
    resp = client.post(
        "/api/calls/webhook/twilio/status",
        data={"To": HOTEL_NUMBER, "CallSid": "CA100", "CallStatus": "ringing"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["call"]["status"] == "IN_PROGRESS"


def test_call_to_unknown_number(client):
    resp = client.post(
        "/api/calls/webhook/twilio",
        data={"From": GUEST_NUMBER, "To": "+33199999999", "CallSid": "CA1"},
    )
    assert resp.status_code == 404


def test_transcript_for_unknown_call(client):
    resp = client.post(
        "/api/calls/webhook/twilio/transcript",
        data={"To": HOTEL_NUMBER, "CallSid": "CA404", "TranscriptionText": "hello"},
    )
    assert resp.status_code == 404


def test_list_calls(client):
    _start_call(client, "CA1")
    _start_call(client, "CA2")
    resp = client.get("/api/calls", params={"status": "in_progress"}, headers={"X-Hotel-Id": "h1"})
    assert resp.json()["data"]["total"] == 2


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def test_tasks_listing_and_update(client):
    task = _post_message(client, URGENT_TEXT).json()["data"]["task"]
    headers = {"X-Hotel-Id": "h1"}

    resp = client.get("/api/tasks", params={"priority": "urgent"}, headers=headers)
    assert [t["task_id"] for t in resp.json()["data"]["tasks"]] == [task["task_id"]]

    resp = client.patch(f"/api/tasks/{task['task_id']}", json={"status": "completed"}, headers=headers)
    assert resp.status_code == 200
    updated = resp.json()["data"]["task"]
    assert updated["status"] == "COMPLETED"
    assert updated["completed_at"] is not None

    resp = client.patch(f"/api/tasks/{task['task_id']}", json={"status": "completed"}, headers={"X-Hotel-Id": "h2"})
    assert resp.status_code == 404


def test_create_task_by_staff(client):
    resp = client.post(
        "/api/tasks",
        json={"title": "Restock minibar", "category": "HOUSEKEEPING", "priority": "LOW", "slaMinutes": 120},
        headers={"X-Hotel-Id": "h1"},
    )
    assert resp.status_code == 200
    task = resp.json()["data"]["task"]
    assert task["status"] == "PENDING"
    assert task["sla_minutes"] == 120
    assert task["metadata"] == {"source": "staff"}

    resp = client.get(f"/api/tasks/{task['task_id']}", headers={"X-Hotel-Id": "h1"})
    assert resp.json()["data"]["task"]["title"] == "Restock minibar"


def test_create_task_rejects_bad_category(client):
    resp = client.post(
        "/api/tasks", json={"title": "x", "category": "SPA"}, headers={"X-Hotel-Id": "h1"}
    )
    assert resp.status_code == 400


def test_create_task_links_only_own_guests(client):
    headers = {"X-Hotel-Id": "h1"}
    resp = client.post("/api/tasks", json={"title": "Call back", "guestId": "g2"}, headers=headers)
    assert resp.status_code == 400
    resp = client.post("/api/tasks", json={"title": "Call back", "bookingId": "b-elsewhere"}, headers=headers)
    assert resp.status_code == 400
    assert client.get("/api/tasks", headers=headers).json()["data"]["total"] == 0

    resp = client.post("/api/tasks", json={"title": "Call back", "guestId": "g1"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["task"]["guest_id"] == "g1"


def _staff_task(client, **body):
    payload = {"title": "Fix shower", "category": "MAINTENANCE", "priority": "LOW"}
    payload.update(body)
    return client.post("/api/tasks", json=payload, headers={"X-Hotel-Id": "h1"}).json()["data"]["task"]


def test_edit_task_priority_and_due_time(client):
    task = _staff_task(client)
    url = f"/api/tasks/{task['task_id']}"

    resp = client.put(url, json={"priority": "urgent", "dueAt": "2026-04-02T12:00:00+00:00"}, headers={"X-Hotel-Id": "h1"})
    assert resp.status_code == 200
    edited = resp.json()["data"]["task"]
    assert edited["priority"] == "URGENT"
    assert edited["due_at"].startswith("2026-04-02T12:00:00")
    assert edited["status"] == "PENDING"
    assert edited["assignee_id"] is None

    assert client.put(url, json={"priority": "asap"}, headers={"X-Hotel-Id": "h1"}).status_code == 400
    assert client.put(url, json={"priority": "LOW"}, headers={"X-Hotel-Id": "h2"}).status_code == 404


def test_assign_task_starts_it(client):
    task = _staff_task(client)
    url = f"/api/tasks/{task['task_id']}/assign"

    resp = client.patch(url, json={"assigneeId": "staff-7"}, headers={"X-Hotel-Id": "h1"})
    assert resp.status_code == 200
    assigned = resp.json()["data"]["task"]
    assert assigned["assignee_id"] == "staff-7"
    assert assigned["status"] == "IN_PROGRESS"

    resp = client.get("/api/tasks", params={"assigneeId": "staff-7"}, headers={"X-Hotel-Id": "h1"})
    assert [t["task_id"] for t in resp.json()["data"]["tasks"]] == [task["task_id"]]

    assert client.patch(url, json={"assigneeId": " "}, headers={"X-Hotel-Id": "h1"}).status_code == 400
    assert client.patch(url, json={"assigneeId": "staff-8"}, headers={"X-Hotel-Id": "h2"}).status_code == 404
