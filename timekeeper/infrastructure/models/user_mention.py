"""SQLAlchemy model linking comments to the users they mention."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from timekeeper.infrastructure.database import Base
from timekeeper.utils import now_in_app_naive_datetime


class UserMentionModel(Base):
    """A single ``@mention`` of a user inside a task comment."""

    __tablename__ = "user_mentions"
    __table_args__ = (
        UniqueConstraint(
            "comment_id", "mentioned_user_id", name="uq_user_mentions_comment_user"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Comments live in the task service; only their identifier is stored here.
    comment_id = Column(Integer, nullable=False, index=True)
    mentioned_user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(
        DateTime(), nullable=False, default=now_in_app_naive_datetime, index=True
    )

    mentioned_user = relationship("UserModel", lazy="joined")


__all__ = ["UserMentionModel"]
