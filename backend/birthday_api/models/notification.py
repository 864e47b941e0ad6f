from sqlalchemy import Integer, String, Boolean, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from birthday_api.core.clock import utcnow
from birthday_api.models.base import Base
from birthday_api.models.birthday import Birthday

NOTIFICATION_TYPES = ("birthday", "reminder", "system", "update")

class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    type: Mapped[str] = mapped_column(String(64), default="system")
    message: Mapped[str] = mapped_column(String(1024))
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    birthday_id: Mapped[int | None] = mapped_column(ForeignKey("birthdays.id", ondelete="SET NULL"), nullable=True)
    # "metadata" is reserved on declarative classes, hence the attribute name
    meta: Mapped[dict[str, str]] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    birthday: Mapped[Birthday | None] = relationship(Birthday)
