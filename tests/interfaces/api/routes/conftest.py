"""Fixtures for exercising the HTTP routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from main import create_app
from timekeeper.infrastructure.security import create_access_token


@pytest.fixture()
def app(services):
    """Application wired to the test notification services.

    The lifespan is not entered, so the services built by the shared fixtures
    are attached directly.
    """

    application = create_app()
    application.state.notification_services = services
    return application


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def auth():
    """Return a factory of bearer headers for a user email."""

    def _auth(email: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}

    return _auth


@pytest.fixture()
def employee(create_user):
    return create_user("ana@example.com", "Ana", "Silva")


@pytest.fixture()
def admin(create_user):
    return create_user("root@example.com", "Rita", "Admin", role="ADMIN")
