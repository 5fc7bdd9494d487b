"""Routes resolving ``@mentions`` in task comments."""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from timekeeper.application.notifications import NotificationServices
from timekeeper.domain.entities import DirectoryUser
from timekeeper.infrastructure.database import get_db
from timekeeper.interfaces.api.dependencies import (
    get_current_active_user,
    get_notification_services,
)
from timekeeper.interfaces.api.schemas import (
    CommentMentionsCreate,
    CommentMentionsResult,
    MentionCandidateRead,
    MentionRead,
    MentionsDeleted,
    NotificationRead,
)

router = APIRouter(prefix="/mentions", tags=["mentions"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=CommentMentionsResult, status_code=status.HTTP_201_CREATED)
def process_comment_mentions(
    payload: CommentMentionsCreate,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> CommentMentionsResult:
    """Resolve the mentions of a comment written by the current user and notify them."""

    outcome = services.mentions(db).process_comment(
        payload.comment_id,
        payload.content,
        current_user.full_name,
        payload.task_id,
        payload.task_name,
    )
    return CommentMentionsResult(
        mentioned=[MentionCandidateRead.model_validate(c) for c in outcome.candidates],
        mentions=[MentionRead.model_validate(m) for m in outcome.mentions],
        notifications=[NotificationRead.model_validate(n) for n in outcome.notifications],
    )


@router.get("/comment/{comment_id}", response_model=list[MentionRead])
def list_comment_mentions(
    comment_id: int,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(get_current_active_user),
) -> list[MentionRead]:
    mentions = services.mentions(db).mentions_for_comment(comment_id)
    return [MentionRead.model_validate(mention) for mention in mentions]


@router.get("/me", response_model=list[MentionRead])
def list_my_mentions(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    current_user: DirectoryUser = Depends(get_current_active_user),
) -> list[MentionRead]:
    """Return the mentions of the current user, newest first."""

    mentions = services.mentions(db).mentions_for_user(current_user.id, limit=limit)
    return [MentionRead.model_validate(mention) for mention in mentions]


@router.delete("/comment/{comment_id}", response_model=MentionsDeleted)
def remove_comment_mentions(
    comment_id: int,
    db: Session = Depends(get_db),
    services: NotificationServices = Depends(get_notification_services),
    _: DirectoryUser = Depends(get_current_active_user),
) -> MentionsDeleted:
    deleted = services.mentions(db).remove_for_comment(comment_id)
    logger.info("Removed %d mentions of comment %s", deleted, comment_id)
    return MentionsDeleted(deleted=deleted)
