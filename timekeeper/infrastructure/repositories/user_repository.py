"""Read access to the user directory."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from timekeeper.domain.entities import DirectoryUser, MentionCandidate, NotificationPreferences
from timekeeper.infrastructure.models import UserModel, UserPreferencesModel


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserRepository:
    """Look up users and their notification preferences."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> DirectoryUser | None:
        model = self._get_model(id=user_id)
        return self._to_entity(model) if model else None

    def get_by_email(self, email: str) -> DirectoryUser | None:
        model = self._get_model(email=email)
        return self._to_entity(model) if model else None

    def find_active_users_with_preferences(self) -> Sequence[DirectoryUser]:
        query = (
            self.session.query(UserModel)
            .options(joinedload(UserModel.preferences))
            .filter(UserModel.is_active.is_(True))
            .order_by(UserModel.id.asc())
        )
        return [self._to_entity(model) for model in query.all()]

    def search_by_name_or_email(
        self, fragment: str, *, limit: int = 5
    ) -> Sequence[MentionCandidate]:
        """Return active users whose first name, last name or email contains ``fragment``."""

        pattern = f"%{_escape_like(fragment)}%"
        query = (
            self.session.query(UserModel)
            .filter(UserModel.is_active.is_(True))
            .filter(
                or_(
                    UserModel.first_name.ilike(pattern, escape="\\"),
                    UserModel.last_name.ilike(pattern, escape="\\"),
                    UserModel.email.ilike(pattern, escape="\\"),
                )
            )
            .order_by(UserModel.id.asc())
            .limit(limit)
        )
        return [
            MentionCandidate(
                user_id=model.id,
                first_name=model.first_name,
                last_name=model.last_name,
                email=model.email,
            )
            for model in query.all()
        ]

    def _get_model(self, **filters) -> UserModel | None:
        return (
            self.session.query(UserModel)
            .options(joinedload(UserModel.preferences))
            .filter_by(**filters)
            .first()
        )

    @staticmethod
    def _to_entity(model: UserModel) -> DirectoryUser:
        return DirectoryUser(
            id=model.id,
            first_name=model.first_name,
            last_name=model.last_name,
            email=model.email,
            is_active=model.is_active,
            role=model.role or "EMPLOYEE",
            preferences=UserRepository._preferences_to_entity(model.preferences),
        )

    @staticmethod
    def _preferences_to_entity(
        model: UserPreferencesModel | None,
    ) -> NotificationPreferences:
        if model is None:
            return NotificationPreferences()
        return NotificationPreferences(
            email_notifications=bool(model.email_notifications),
            timesheet_reminders=bool(model.timesheet_reminders),
            reminder_time=model.reminder_time,
            reminder_days=frozenset(model.reminder_days or ()),
        )


__all__ = ["UserRepository"]
