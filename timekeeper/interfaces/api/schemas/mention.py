"""Schemas for comment mentions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .notification import NotificationRead


class MentionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    comment_id: int
    mentioned_user_id: int
    created_at: datetime | None = None


class MentionCandidateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    first_name: str
    last_name: str
    email: str


class CommentMentionsCreate(BaseModel):
    """A comment whose ``@mentions`` should be resolved and notified."""

    comment_id: int = Field(..., ge=1)
    content: str = Field(..., min_length=1, max_length=10000)
    task_id: int | None = Field(default=None, ge=1)
    task_name: str = Field(default="", max_length=200)


class CommentMentionsResult(BaseModel):
    mentioned: list[MentionCandidateRead]
    mentions: list[MentionRead]
    notifications: list[NotificationRead]


class MentionsDeleted(BaseModel):
    deleted: int


__all__ = [
    "CommentMentionsCreate",
    "CommentMentionsResult",
    "MentionCandidateRead",
    "MentionRead",
    "MentionsDeleted",
]
