"""Tests for the administrative email endpoints."""

from __future__ import annotations

import pytest


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/email/status"),
        ("get", "/email/templates"),
        ("post", "/email/test-connection"),
        ("get", "/email/scheduler"),
        ("post", "/email/cleanup"),
    ],
)
def test_email_routes_require_admin(client, auth, employee, method, path) -> None:
    response = getattr(client, method)(path, headers=auth(employee.email))

    assert response.status_code == 403


def test_status_and_templates(client, auth, admin) -> None:
    headers = auth(admin.email)

    status = client.get("/email/status", headers=headers).json()
    templates = client.get("/email/templates", headers=headers).json()

    assert status["enabled"] is True
    assert status["provider"]
    assert {template["id"] for template in templates} >= {
        "default",
        "minimal",
        "detailed",
        "timesheet_reminder",
    }


def test_connection_check(client, auth, admin, transport) -> None:
    headers = auth(admin.email)

    assert client.post("/email/test-connection", headers=headers).json()["success"] is True
    transport.verify_error = "connection refused"
    assert client.post("/email/test-connection", headers=headers).json() == {
        "success": False,
        "message": "Email connection failed",
    }


def test_send_test_and_welcome_emails(client, auth, admin, transport) -> None:
    headers = auth(admin.email)

    sent = client.post(
        "/email/test",
        json={"to": "someone@example.com", "subject": "Hi", "message": "Testing"},
        headers=headers,
    )
    welcome = client.post(
        "/email/send-welcome",
        json={"to": "new@example.com", "user_name": "Nia"},
        headers=headers,
    )

    assert sent.json()["success"] is True
    assert welcome.json()["success"] is True
    assert [email.to for email in transport.sent] == ["someone@example.com", "new@example.com"]
    assert transport.sent[1].subject == "Welcome to Acme Timesheets"
    assert "https://app.example.com/login" in transport.sent[1].html


def test_scheduler_status_and_cleanup(client, auth, admin) -> None:
    headers = auth(admin.email)

    status = client.get("/email/scheduler", headers=headers).json()
    cleanup = client.post("/email/cleanup", json={"max_age_days": 7}, headers=headers)

    assert status["running"] is False
    assert cleanup.json() == {"deleted": 0}


def test_admin_sends_reminder_to_another_user(client, auth, admin, employee, transport) -> None:
    response = client.post(
        "/email/send-reminder",
        json={"user_email": employee.email, "reminder_date": "2024-06-05", "hours_to_log": "6"},
        headers=auth(admin.email),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["user_id"] == employee.id
    assert body["status"] == "SENT"
    [email] = transport.sent
    assert email.to == employee.email
    assert email.subject == "Timesheet Reminder - 6/5/2024"
    assert "Hours to log: 6" in email.text


def test_admin_sends_weekly_report_to_another_user(
    client, auth, admin, employee, transport
) -> None:
    response = client.post(
        "/email/send-weekly-report",
        json={"user_email": employee.email, "total_hours": 32, "projects": 2, "tasks": 5},
        headers=auth(admin.email),
    )

    assert response.status_code == 201
    assert response.json()["user_id"] == employee.id
    assert response.json()["data"]["reportData"]["totalHours"] == 32
    assert "Total Hours: 32" in transport.sent[0].text


def test_dispatch_to_unknown_user_is_not_found(client, auth, admin, transport) -> None:
    response = client.post(
        "/email/send-reminder",
        json={"user_email": "nobody@example.com"},
        headers=auth(admin.email),
    )

    assert response.status_code == 404
    assert transport.sent == []


def test_dispatch_routes_require_admin(client, auth, employee, create_user) -> None:
    other = create_user("bob@example.com", "Bob", "Stone")
    headers = auth(employee.email)

    reminder = client.post(
        "/email/send-reminder", json={"user_email": other.email}, headers=headers
    )
    report = client.post(
        "/email/send-weekly-report", json={"user_email": other.email}, headers=headers
    )

    assert reminder.status_code == 403
    assert report.status_code == 403
