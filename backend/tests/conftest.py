import os

# Settings are read at import time; point them at an in-memory database before the app loads.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REMINDERS_ENABLED", "0")
os.environ.setdefault("REMINDER_TIMEZONE", "UTC")

from datetime import date, datetime, timedelta, timezone

import jwt
import pytest

from birthday_api.core.config import settings
from birthday_api.db.session import engine, SessionLocal
from birthday_api.models.base import Base
from birthday_api.models.birthday import Birthday
from birthday_api.models.user import User
from birthday_api.models import notification  # noqa: F401


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def add_user(db, email: str, role: str = "user") -> User:
    u = User(email=email, full_name=email.split("@")[0], role=role, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def add_birthday(db, user: User, name: str, birth_date: date | None, allow_notifications: bool = True) -> Birthday:
    b = Birthday(user_id=user.id, name=name, birth_date=birth_date, allow_notifications=allow_notifications)
    db.add(b)
    db.commit()
    db.refresh(b)
    return b


def make_token(email: str, roles: list[str], expires_in: timedelta = timedelta(minutes=60)) -> str:
    """Token in the auth service's format (sub=email, roles=[...])."""
    payload = {"sub": email, "roles": roles, "exp": datetime.now(tz=timezone.utc) + expires_in}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
