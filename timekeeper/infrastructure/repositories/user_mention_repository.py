"""Persistence helpers for comment mentions."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timekeeper.domain.entities import Mention
from timekeeper.infrastructure.models import UserMentionModel
from timekeeper.utils import ensure_app_timezone


class UserMentionRepository:
    """Store and query :class:`Mention` links between comments and users."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, comment_id: int, user_ids: Iterable[int]) -> Sequence[Mention]:
        """Insert one mention per user, skipping pairs that already exist.

        Returns every mention stored for ``comment_id`` afterwards.
        """

        existing = {
            user_id
            for (user_id,) in self.session.query(UserMentionModel.mentioned_user_id)
            .filter(UserMentionModel.comment_id == comment_id)
            .all()
        }
        missing = [user_id for user_id in dict.fromkeys(user_ids) if user_id not in existing]
        if missing:
            self.session.add_all(
                UserMentionModel(comment_id=comment_id, mentioned_user_id=user_id)
                for user_id in missing
            )
            try:
                self.session.commit()
            except IntegrityError:
                # Another request stored some of the pairs first; insert one by one.
                self.session.rollback()
                for user_id in missing:
                    self._add_one(comment_id, user_id)
        return self.list_for_comment(comment_id)

    def _add_one(self, comment_id: int, user_id: int) -> None:
        self.session.add(UserMentionModel(comment_id=comment_id, mentioned_user_id=user_id))
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()

    def list_for_comment(self, comment_id: int) -> Sequence[Mention]:
        query = (
            self.session.query(UserMentionModel)
            .filter(UserMentionModel.comment_id == comment_id)
            .order_by(UserMentionModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def list_for_user(self, user_id: int, *, limit: int | None = 50) -> Sequence[Mention]:
        query = (
            self.session.query(UserMentionModel)
            .filter(UserMentionModel.mentioned_user_id == user_id)
            .order_by(UserMentionModel.created_at.desc(), UserMentionModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def delete_for_comment(self, comment_id: int) -> int:
        deleted = (
            self.session.query(UserMentionModel)
            .filter(UserMentionModel.comment_id == comment_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _to_entity(model: UserMentionModel) -> Mention:
        return Mention(
            id=model.id,
            comment_id=model.comment_id,
            mentioned_user_id=model.mentioned_user_id,
            created_at=ensure_app_timezone(model.created_at),
        )


__all__ = ["UserMentionRepository"]
