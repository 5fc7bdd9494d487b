"""Existence checks against logged timesheet entries."""

from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from timekeeper.infrastructure.models import TimesheetModel


class TimesheetRepository:
    """Answer whether a user already logged time for a day."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def exists_for_date(self, user_id: int, day: date) -> bool:
        query = self.session.query(TimesheetModel.id).filter(
            TimesheetModel.user_id == user_id,
            TimesheetModel.date == day,
        )
        return self.session.query(query.exists()).scalar()


__all__ = ["TimesheetRepository"]
