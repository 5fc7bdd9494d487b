import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from timekeeper.application.notifications import build_notification_services
from timekeeper.config import get_settings
from timekeeper.infrastructure.database import SessionLocal, engine, initialize_database
from timekeeper.infrastructure.notifications import notification_manager
from timekeeper.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Prepare the database and notification services, and release them on shutdown."""

    initialize_database()
    services = build_notification_services(get_settings(), SessionLocal)
    app.state.notification_services = services
    services.startup()
    try:
        yield
    finally:
        await notification_manager.close_all()
        services.shutdown()
        app.state.notification_services = None
        engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = get_settings()
    app = FastAPI(title="Timekeeper Notifications", lifespan=lifespan)

    # Allow requests from the web client.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
