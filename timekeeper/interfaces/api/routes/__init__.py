from fastapi import FastAPI

from .email import router as email_router
from .mentions import router as mentions_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notifications_router)
    app.include_router(mentions_router)
    app.include_router(email_router)
