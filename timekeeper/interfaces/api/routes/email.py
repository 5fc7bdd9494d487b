"""Administrative routes for the email channel and background jobs."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from timekeeper.application.notifications import NotificationServices
from timekeeper.domain.entities import DirectoryUser
from timekeeper.infrastructure.database import get_db
from timekeeper.infrastructure.email import OutgoingEmail
from timekeeper.infrastructure.repositories import UserRepository
from timekeeper.interfaces.api.dependencies import get_notification_services, require_admin
from timekeeper.interfaces.api.schemas import (
    CleanupRequest,
    CleanupResult,
    ConnectionTestRead,
    EmailSendResult,
    EmailStatusRead,
    EmailTemplateRead,
    EmailTestSendRequest,
    NotificationRead,
    ReminderDispatchRequest,
    SchedulerStatusRead,
    WeeklyReportDispatchRequest,
    WelcomeEmailRequest,
)

router = APIRouter(prefix="/email", tags=["email"])
logger = logging.getLogger(__name__)


def _send(
    services: NotificationServices, to: str, template_id: str, variables: dict
) -> EmailSendResult:
    content = services.templates.render(
        template_id, variables, recipient_email=to, today=services.clock().date()
    )
    result = services.email_channel.deliver(
        OutgoingEmail(to=to, subject=content.subject, html=content.html, text=content.text)
    )
    return EmailSendResult(success=result.ok, detail=result.reason)


def _directory_user(db: Session, email: str) -> DirectoryUser:
    user = UserRepository(db).get_by_email(email)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {email} not found",
        )
    return user


@router.get("/status", response_model=EmailStatusRead)
def email_status(
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> EmailStatusRead:
    return EmailStatusRead(**services.email_status())


@router.get("/templates", response_model=list[EmailTemplateRead])
def list_email_templates(
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> list[EmailTemplateRead]:
    return [
        EmailTemplateRead(
            id=template.id,
            name=template.name,
            subject=template.subject,
            variables=sorted(template.variables),
        )
        for template in services.templates.list_templates()
    ]


@router.post("/test-connection", response_model=ConnectionTestRead)
def check_email_connection(
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> ConnectionTestRead:
    """Check that the configured email transport accepts connections."""

    if services.email_channel.test_connection():
        return ConnectionTestRead(success=True, message="Email connection successful")
    return ConnectionTestRead(success=False, message="Email connection failed")


@router.post("/test", response_model=EmailSendResult)
def send_test_email(
    payload: EmailTestSendRequest,
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(require_admin),
) -> EmailSendResult:
    variables = {
        "subject": payload.subject,
        "message": payload.message,
        "userName": current_user.full_name,
        **payload.variables,
    }
    result = _send(services, str(payload.to), payload.template, variables)
    if not result.success:
        logger.warning("Test email to %s failed: %s", payload.to, result.detail)
    return result


@router.post("/send-welcome", response_model=EmailSendResult)
def send_welcome_email(
    payload: WelcomeEmailRequest,
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> EmailSendResult:
    company = services.templates.company_name
    variables = {
        "subject": f"Welcome to {company}",
        "message": (
            f"Hello {payload.user_name}, your account is ready. "
            "You can now log your hours and follow your projects."
        ),
        "actionUrl": f"{services.settings.frontend_url.rstrip('/')}/login",
        "actionText": "Sign in",
    }
    return _send(services, str(payload.to), "default", variables)


@router.post(
    "/send-reminder",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def send_reminder_to_user(
    payload: ReminderDispatchRequest,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> NotificationRead:
    """Send a timesheet reminder to the user registered under ``user_email``."""

    user = _directory_user(db, str(payload.user_email))
    notification = services.ledger(db).send_timesheet_reminder(
        user, payload.reminder_date, hours_to_log=payload.hours_to_log
    )
    return NotificationRead.model_validate(notification)


@router.post(
    "/send-weekly-report",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
)
def send_weekly_report_to_user(
    payload: WeeklyReportDispatchRequest,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> NotificationRead:
    user = _directory_user(db, str(payload.user_email))
    notification = services.ledger(db).send_weekly_report(user, payload.as_report())
    return NotificationRead.model_validate(notification)


@router.get("/scheduler", response_model=SchedulerStatusRead)
def scheduler_status(
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> SchedulerStatusRead:
    return SchedulerStatusRead(**services.scheduler.status())


@router.post("/cleanup", response_model=CleanupResult)
def cleanup_notifications(
    payload: CleanupRequest | None = None,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(require_admin),
) -> CleanupResult:
    """Purge read or sent notifications older than the retention period."""

    max_age_days = (payload.max_age_days if payload else None) or (
        services.settings.notification_retention_days
    )
    deleted = services.ledger(db).cleanup(max_age_days)
    return CleanupResult(deleted=deleted)
