"""Tests for the comment mention endpoints."""

from __future__ import annotations


def test_comment_mentions_are_resolved_and_notified(
    client, auth, employee, create_user, transport
) -> None:
    bob = create_user("bob@example.com", "Bob", "Stone")

    response = client.post(
        "/mentions/",
        json={
            "comment_id": 55,
            "content": "@bob can you double check the estimate? @bob",
            "task_id": 9,
            "task_name": "Estimate",
        },
        headers=auth(employee.email),
    )

    assert response.status_code == 201
    body = response.json()
    assert [m["user_id"] for m in body["mentioned"]] == [bob.id]
    assert [m["mentioned_user_id"] for m in body["mentions"]] == [bob.id]
    assert {n["type"] for n in body["notifications"]} == {"IN_APP", "EMAIL"}
    assert body["notifications"][0]["message"] == (
        "Ana Silva mentioned you in a comment on task: Estimate"
    )
    assert [email.to for email in transport.sent] == ["bob@example.com"]


def test_comment_without_mentions(client, auth, employee) -> None:
    response = client.post(
        "/mentions/",
        json={"comment_id": 56, "content": "nothing to see"},
        headers=auth(employee.email),
    )

    assert response.json() == {"mentioned": [], "mentions": [], "notifications": []}


def test_mention_listing_and_removal(client, auth, employee, create_user) -> None:
    bob = create_user("bob@example.com", "Bob", "Stone")
    client.post(
        "/mentions/",
        json={"comment_id": 60, "content": "@bob @silva"},
        headers=auth(employee.email),
    )

    by_comment = client.get("/mentions/comment/60", headers=auth(bob.email))
    mine = client.get("/mentions/me", headers=auth(bob.email))
    removed = client.delete("/mentions/comment/60", headers=auth(employee.email))

    assert len(by_comment.json()) == 2
    assert [m["comment_id"] for m in mine.json()] == [60]
    assert removed.json() == {"deleted": 2}
    assert client.get("/mentions/me", headers=auth(bob.email)).json() == []
