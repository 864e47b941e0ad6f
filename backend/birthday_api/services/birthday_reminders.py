"""One pass over every user's birthdays, emitting deduplicated reminder notifications.

A notification is committed as soon as it is built, so a failure half way
through a pass keeps what was already written. The next pass re-checks the rest.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from birthday_api.core.clock import as_naive_utc, utcnow
from birthday_api.core.config import settings
from birthday_api.models.birthday import Birthday
from birthday_api.models.notification import Notification
from birthday_api.models.user import User
from birthday_api.services.notifications import BIRTHDAY_TYPE, create_birthday_reminder
from birthday_api.services.occurrence import days_until, local_today

logger = logging.getLogger(__name__)

ALERT_WINDOWS = (7, 3, 1, 0)
DEDUP_LOOKBACK = timedelta(hours=48)


class BirthdayReminderError(Exception):
    """Base class for errors raised while checking birthdays."""


class MalformedBirthdayError(BirthdayReminderError):
    """A stored birthday that cannot be scheduled (no date)."""

    def __init__(self, birthday_id: int):
        super().__init__(f"birthday {birthday_id} has no date")
        self.birthday_id = birthday_id


@dataclass
class ScanReport:
    started_at: datetime
    today: str
    users: int = 0
    checked: int = 0
    skipped_disabled: int = 0
    already_notified: int = 0
    created: int = 0
    failed: bool = False
    error: Optional[str] = None

    def as_dict(self) -> dict:
        d = asdict(self)
        d["started_at"] = self.started_at.isoformat()
        return d


def already_notified(db: Session, user_id: int, birthday_id: int, days: int, now: datetime) -> bool:
    cutoff = now - DEDUP_LOOKBACK
    existing = (
        db.query(Notification.id)
        .filter(
            Notification.user_id == user_id,
            Notification.birthday_id == birthday_id,
            Notification.type == BIRTHDAY_TYPE,
            Notification.meta["days_until"].as_string() == str(days),
            Notification.created_at >= cutoff,
        )
        .first()
    )
    return existing is not None


def _birthday_days(b: Birthday, today) -> int:
    if b.birth_date is None:
        raise MalformedBirthdayError(b.id)
    return days_until(b.birth_date, today)


def run_scan_cycle(db: Session, now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ScanReport:
    """Check every birthday once. Never raises; a failure ends the pass early and is reported.

    ``now`` may be naive UTC or aware; it is stored as naive UTC like every timestamp column.
    """
    now = utcnow() if now is None else as_naive_utc(now)
    if tz is None:
        tz = settings.reminder_tz
    today = local_today(now, tz)
    report = ScanReport(started_at=now, today=today.isoformat())
    try:
        users = db.query(User).order_by(User.id).all()
        for user in users:
            report.users += 1
            birthdays = db.query(Birthday).filter(Birthday.user_id == user.id).order_by(Birthday.id).all()
            for b in birthdays:
                if not b.allow_notifications:
                    report.skipped_disabled += 1
                    continue
                report.checked += 1
                days = _birthday_days(b, today)
                if days not in ALERT_WINDOWS:
                    continue
                if already_notified(db, user.id, b.id, days, now):
                    report.already_notified += 1
                    continue
                create_birthday_reminder(db, user.id, b, days, now=now)
                report.created += 1
    except Exception as exc:
        report.failed = True
        report.error = f"{type(exc).__name__}: {exc}"
        logger.exception("Birthday reminder check aborted after %s new notification(s)", report.created)
        try:
            db.rollback()
        except SQLAlchemyError:
            logger.warning("rollback after failed birthday check also failed", exc_info=True)
        return report
    logger.info(
        "Birthday reminder check completed for %s: users=%s checked=%s created=%s duplicates=%s disabled=%s",
        report.today, report.users, report.checked, report.created, report.already_notified, report.skipped_disabled,
    )
    return report


def scan_birthdays(session_factory: Callable[[], Session], now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> ScanReport:
    db = session_factory()
    try:
        return run_scan_cycle(db, now=now, tz=tz)
    finally:
        db.close()
