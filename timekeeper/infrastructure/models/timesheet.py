"""SQLAlchemy model for logged timesheet entries."""

from sqlalchemy import Column, Date, ForeignKey, Index, Integer, Numeric, String

from timekeeper.infrastructure.database import Base


class TimesheetModel(Base):
    """Hours a user logged for a given day."""

    __tablename__ = "timesheets"
    __table_args__ = (Index("ix_timesheets_user_date", "user_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    task_name = Column(String(200), nullable=False)
    hours_worked = Column(Numeric(4, 2), nullable=False)


__all__ = ["TimesheetModel"]
