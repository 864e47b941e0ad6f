import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from birthday_api.models.birthday import Birthday
from birthday_api.models.notification import NOTIFICATION_TYPES, Notification

logger = logging.getLogger(__name__)

BIRTHDAY_TYPE = "birthday"

def create_notification(
    db: Session,
    user_id: int,
    message: str,
    type: str = "system",
    metadata: Optional[dict[str, str]] = None,
    birthday_id: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> Notification:
    """Insert and commit a notification, returning it with id and timestamp assigned."""
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"unknown notification type: {type}")
    n = Notification(user_id=user_id, message=message, type=type, meta=dict(metadata or {}), birthday_id=birthday_id)
    if created_at is not None:
        n.created_at = created_at
    try:
        db.add(n)
        db.commit()
    except SQLAlchemyError:
        logger.error("Error creating notification for user_id=%s", user_id)
        raise
    db.refresh(n)
    logger.debug("notification %s created for user_id=%s type=%s", n.id, user_id, type)
    return n

def birthday_message(name: str, days: int) -> str:
    if days == 0:
        return f"🎉 Today is {name}'s birthday!"
    if days == 1:
        return f"⏰ Tomorrow is {name}'s birthday"
    return f"📅 {name}'s birthday is in {days} days"

def create_birthday_reminder(db: Session, user_id: int, birthday: Birthday, days: int, now: Optional[datetime] = None) -> Notification:
    return create_notification(
        db,
        user_id,
        birthday_message(birthday.name, days),
        type=BIRTHDAY_TYPE,
        metadata={"days_until": str(days)},
        birthday_id=birthday.id,
        created_at=now,
    )

def unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification).filter(Notification.user_id == user_id, Notification.read == False).count()  # noqa: E712
