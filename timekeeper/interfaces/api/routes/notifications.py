"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from timekeeper.application.notifications import (
    NotificationNotFoundError,
    NotificationServices,
)
from timekeeper.domain.entities import DirectoryUser, Notification
from timekeeper.infrastructure.database import SessionLocal, get_db
from timekeeper.infrastructure.notifications import notification_manager, serialize_notification
from timekeeper.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_services,
    resolve_current_user,
)
from timekeeper.interfaces.api.schemas import (
    MarkAllReadResponse,
    NotificationPageRead,
    NotificationRead,
    NotificationTestRequest,
    ProjectUpdateRequest,
    TimesheetReminderRequest,
    UnreadCountRead,
    WeeklyReportRequest,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


def _to_read_model(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationPageRead:
    """Return the authenticated user's notifications, newest first."""

    result = services.ledger(db).list_for_user(current_user.id, page, page_size)
    return NotificationPageRead(
        items=[_to_read_model(notification) for notification in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> UnreadCountRead:
    return UnreadCountRead(count=services.ledger(db).unread_count(current_user.id))


@router.patch("/mark-all-read", response_model=MarkAllReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(updated=services.ledger(db).mark_all_read(current_user.id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationRead:
    """Mark one of the authenticated user's notifications as read."""

    try:
        notification = services.ledger(db).mark_read(notification_id, current_user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _to_read_model(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> Response:
    try:
        services.ledger(db).delete(notification_id, current_user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/test", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def send_test_notification(
    payload: NotificationTestRequest,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationRead:
    """Create a sample notification for the current user and deliver it."""

    notification = services.ledger(db).notify(
        current_user.id,
        payload.title,
        payload.message,
        payload.notification_type(),
        {"type": "test"},
        recipient=current_user,
    )
    return _to_read_model(notification)


@router.post(
    "/timesheet-reminder",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def send_timesheet_reminder(
    payload: TimesheetReminderRequest | None = None,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationRead:
    reminder_date = payload.reminder_date if payload else None
    notification = services.ledger(db).send_timesheet_reminder(current_user, reminder_date)
    return _to_read_model(notification)


@router.post(
    "/weekly-report",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def send_weekly_report(
    payload: WeeklyReportRequest,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationRead:
    notification = services.ledger(db).send_weekly_report(current_user, payload.as_report())
    return _to_read_model(notification)


@router.post(
    "/project-update",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def send_project_update(
    payload: ProjectUpdateRequest,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> NotificationRead:
    notification = services.ledger(db).send_project_update(
        current_user, payload.project_name, payload.message
    )
    return _to_read_model(notification)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    services: NotificationServices | None = getattr(
        websocket.app.state, "notification_services", None
    )
    if not token or services is None:
        await websocket.close(code=1008)
        return

    session = SessionLocal()
    try:
        user = resolve_current_user(token, session)
        if not user.is_active:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
        pending_notifications = services.ledger(session).list_unread(user.id)
    except HTTPException:
        await websocket.close(code=1008)
        return
    except Exception:
        logger.exception("Could not open notification stream")
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    await notification_manager.connect(user.id, websocket)
    try:
        if pending_notifications:
            await websocket.send_json(
                {"type": "init", "data": [serialize_notification(n) for n in pending_notifications]}
            )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = [value for value in message.get("ids", []) if isinstance(value, int)]
                if ids:
                    with SessionLocal() as ack_session:
                        updated = services.ledger(ack_session).mark_many_read(ids, user.id)
                    await websocket.send_json({"type": "ack", "updated": updated})
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user.id, websocket)
    except Exception:
        notification_manager.disconnect(user.id, websocket)
        raise
