"""Resolve ``@name`` mentions in comments and notify the mentioned users."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from timekeeper.domain.entities import Mention, MentionCandidate, Notification, NotificationType
from timekeeper.infrastructure.repositories import UserMentionRepository, UserRepository

from .ledger import NotificationLedger

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)")
MENTION_TITLE = "You were mentioned in a comment"


@dataclass
class MentionOutcome:
    candidates: Sequence[MentionCandidate] = field(default_factory=list)
    mentions: Sequence[Mention] = field(default_factory=list)
    notifications: Sequence[Notification] = field(default_factory=list)


class MentionResolver:
    def __init__(
        self, session: Session, ledger: NotificationLedger, *, search_limit: int = 5
    ) -> None:
        self.ledger = ledger
        self.search_limit = search_limit
        self._users = UserRepository(session)
        self._mentions = UserMentionRepository(session)

    def parse(self, text: str) -> list[MentionCandidate]:
        """Return the users matched by every ``@token`` in ``text``.

        Each token matches active users whose first name, last name or email
        contains it, ignoring case. Users matched more than once are reported
        once, in order of first appearance.
        """

        found: dict[int, MentionCandidate] = {}
        for token in dict.fromkeys(MENTION_PATTERN.findall(text or "")):
            for candidate in self._users.search_by_name_or_email(
                token, limit=self.search_limit
            ):
                found.setdefault(candidate.user_id, candidate)
        return list(found.values())

    def store(
        self, comment_id: int, mentions: Sequence[MentionCandidate]
    ) -> Sequence[Mention]:
        if not mentions:
            return []
        return self._mentions.add_many(
            comment_id, (mention.user_id for mention in mentions)
        )

    def notify(
        self,
        comment_id: int,
        mentions: Sequence[MentionCandidate],
        author_name: str,
        task_id: int | None,
        task_name: str,
    ) -> list[Notification]:
        """Send an in-app and an email notification to every mentioned user.

        A failure for one recipient is logged and does not stop the others.
        """

        message = f"{author_name} mentioned you in a comment on task: {task_name}"
        data = {
            "type": "mention",
            "commentId": comment_id,
            "taskId": task_id,
            "taskName": task_name,
            "commentAuthor": author_name,
        }
        notifications: list[Notification] = []
        for mention in mentions:
            try:
                for channel in (NotificationType.IN_APP, NotificationType.EMAIL):
                    notifications.append(
                        self.ledger.notify(mention.user_id, MENTION_TITLE, message, channel, data)
                    )
            except Exception:
                logger.exception(
                    "Failed to send mention notification to user %s", mention.user_id
                )
                # A failed flush leaves the shared session unusable for the next recipient.
                self.ledger.session.rollback()
        return notifications

    def process_comment(
        self,
        comment_id: int,
        content: str,
        author_name: str,
        task_id: int | None,
        task_name: str,
    ) -> MentionOutcome:
        candidates = self.parse(content)
        if not candidates:
            return MentionOutcome()
        mentions = self.store(comment_id, candidates)
        notifications = self.notify(comment_id, candidates, author_name, task_id, task_name)
        logger.info(
            "Comment %s mentioned %d user(s); %d notification(s) created",
            comment_id,
            len(candidates),
            len(notifications),
        )
        return MentionOutcome(
            candidates=candidates, mentions=mentions, notifications=notifications
        )

    def mentions_for_comment(self, comment_id: int) -> Sequence[Mention]:
        return self._mentions.list_for_comment(comment_id)

    def mentions_for_user(self, user_id: int, *, limit: int | None = 50) -> Sequence[Mention]:
        return self._mentions.list_for_user(user_id, limit=limit)

    def remove_for_comment(self, comment_id: int) -> int:
        return self._mentions.delete_for_comment(comment_id)


__all__ = ["MENTION_PATTERN", "MentionOutcome", "MentionResolver"]
