"""Tests for the notification endpoints and websocket stream."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from main import create_app
from timekeeper.domain.entities import NotificationType


@pytest.fixture()
def inbox(services, db_session, employee):
    """Three notifications for the employee: two unread IN_APP and one read."""

    ledger = services.ledger(db_session)
    first = ledger.notify(employee.id, "First", "m", NotificationType.IN_APP)
    second = ledger.notify(employee.id, "Second", "m", NotificationType.IN_APP)
    read = ledger.notify(employee.id, "Read", "m", NotificationType.IN_APP)
    ledger.mark_read(read.id, employee.id)
    return [first, second, read]


def test_requests_without_token_are_rejected(client) -> None:
    response = client.get("/notifications/")

    assert response.status_code == 401


def test_list_and_unread_count(client, auth, employee, inbox) -> None:
    headers = auth(employee.email)

    listing = client.get("/notifications/", params={"page_size": 2}, headers=headers)
    count = client.get("/notifications/unread-count", headers=headers)

    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 3
    assert body["total_pages"] == 2
    assert len(body["items"]) == 2
    assert count.json() == {"count": 2}


def test_mark_read_and_mark_all_read(client, auth, employee, inbox) -> None:
    headers = auth(employee.email)

    response = client.patch(f"/notifications/{inbox[0].id}/read", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "READ"
    assert response.json()["read_at"] is not None

    response = client.patch("/notifications/mark-all-read", headers=headers)
    assert response.json() == {"updated": 1}
    assert client.get("/notifications/unread-count", headers=headers).json() == {"count": 0}


def test_other_users_notifications_are_not_found(
    client, auth, create_user, inbox
) -> None:
    intruder = create_user("eve@example.com", "Eve", "Other")
    headers = auth(intruder.email)

    assert client.patch(f"/notifications/{inbox[0].id}/read", headers=headers).status_code == 404
    assert client.delete(f"/notifications/{inbox[0].id}", headers=headers).status_code == 404


def test_delete_notification(client, auth, employee, inbox) -> None:
    headers = auth(employee.email)

    response = client.delete(f"/notifications/{inbox[1].id}", headers=headers)

    assert response.status_code == 204
    assert client.get("/notifications/", headers=headers).json()["total"] == 2


def test_test_notification_over_sms_is_recorded_as_failed(client, auth, employee) -> None:
    response = client.post(
        "/notifications/test",
        json={"type": "sms", "title": "Ping", "message": "Hello"},
        headers=auth(employee.email),
    )

    assert response.status_code == 201
    assert response.json()["type"] == "SMS"
    assert response.json()["status"] == "FAILED"
    assert response.json()["sent_at"] is None


def test_timesheet_reminder_endpoint_sends_email(client, auth, employee, transport) -> None:
    response = client.post(
        "/notifications/timesheet-reminder",
        json={"reminder_date": "2024-06-04"},
        headers=auth(employee.email),
    )

    assert response.status_code == 201
    assert response.json()["status"] == "SENT"
    assert response.json()["data"]["date"] == "2024-06-04"
    assert transport.sent[0].subject == "Timesheet Reminder - 6/4/2024"


def test_weekly_report_and_project_update(client, auth, employee, transport) -> None:
    headers = auth(employee.email)

    report = client.post(
        "/notifications/weekly-report",
        json={"total_hours": 40, "projects": 3, "tasks": 12},
        headers=headers,
    )
    update = client.post(
        "/notifications/project-update",
        json={"project_name": "Apollo", "message": "Kickoff on Monday"},
        headers=headers,
    )

    assert report.status_code == 201
    assert update.json()["title"] == "Project Update: Apollo"
    assert len(transport.sent) == 2


def test_inactive_users_are_rejected(client, auth, create_user) -> None:
    former = create_user("former@example.com", is_active=False)

    response = client.get("/notifications/", headers=auth(former.email))

    assert response.status_code == 400


def test_missing_services_return_503(auth, employee) -> None:
    client = TestClient(create_app())

    response = client.get("/notifications/", headers=auth(employee.email))

    assert response.status_code == 503


def test_websocket_streams_unread_and_handles_acks(client, auth, employee, inbox) -> None:
    token = auth(employee.email)["Authorization"].split(" ", 1)[1]

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert {item["title"] for item in init["data"]} == {"First", "Second"}

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}

        websocket.send_json({"type": "ack", "ids": [inbox[0].id, "bogus"]})
        assert websocket.receive_json() == {"type": "ack", "updated": 1}

    headers = auth(employee.email)
    assert client.get("/notifications/unread-count", headers=headers).json() == {"count": 1}


def test_websocket_rejects_invalid_tokens(client) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/notifications/ws?token=not-a-token") as websocket:
            websocket.receive_json()
