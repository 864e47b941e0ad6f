from sqlalchemy import String, Integer, Boolean, Date, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime

from birthday_api.core.clock import utcnow
from birthday_api.models.base import Base

class Birthday(Base):
    """A recurring date owned by one user. Written by the CRUD service, read here."""
    __tablename__ = "birthdays"
    __table_args__ = (
        Index("ix_birthdays_user_date", "user_id", "birth_date"),
        Index("ix_birthdays_user_name", "user_id", "name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(100))
    # Only month/day matter for recurrence. Nullable so a broken row surfaces as MalformedBirthdayError.
    birth_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    relationship_label: Mapped[str] = mapped_column("relationship", String(100), default="")
    notes: Mapped[str] = mapped_column(Text, default="")
    notify_before: Mapped[int] = mapped_column(Integer, default=7)  # 0..365, stored preference
    allow_notifications: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)