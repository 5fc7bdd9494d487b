"""SQLAlchemy models for the user directory read model."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from timekeeper.domain.entities import DEFAULT_REMINDER_DAYS, DEFAULT_REMINDER_TIME
from timekeeper.infrastructure.database import Base


class UserModel(Base):
    """Database representation of the system user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(120), nullable=False, unique=True, index=True)
    first_name = Column(String(80), nullable=False)
    last_name = Column(String(80), nullable=False)
    role = Column(String(20), nullable=False, default="EMPLOYEE", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    preferences = relationship(
        "UserPreferencesModel",
        back_populates="user",
        uselist=False,
        lazy="joined",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class UserPreferencesModel(Base):
    """Notification preferences stored for a user."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=False)
    timesheet_reminders = Column(Boolean, nullable=False, default=True)
    reminder_time = Column(String(5), nullable=False, default=DEFAULT_REMINDER_TIME)
    reminder_days = Column(
        JSON, nullable=False, default=lambda: list(DEFAULT_REMINDER_DAYS)
    )

    user = relationship("UserModel", back_populates="preferences")


__all__ = ["UserModel", "UserPreferencesModel"]
