from datetime import date, datetime, timedelta, timezone

from sqlalchemy.exc import OperationalError

from birthday_api.db.session import SessionLocal
from birthday_api.models.notification import Notification
from birthday_api.services import birthday_reminders
from birthday_api.services.birthday_reminders import MalformedBirthdayError, run_scan_cycle, scan_birthdays
from birthday_api.services.notifications import create_notification
from conftest import add_birthday, add_user

UTC = timezone.utc


def _notifications(db):
    return db.query(Notification).order_by(Notification.id).all()


def test_seven_day_alert(db):
    u = add_user(db, "alice@example.com")
    b = add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)

    report = run_scan_cycle(db, now=now, tz=UTC)

    assert report.created == 1
    assert not report.failed
    [n] = _notifications(db)
    assert n.user_id == u.id
    assert n.birthday_id == b.id
    assert n.type == "birthday"
    assert n.read is False
    assert n.meta == {"days_until": "7"}
    assert "7 days" in n.message
    assert n.created_at == now


def test_today_and_tomorrow_phrasing(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Bob", date(1990, 3, 17))
    add_birthday(db, u, "Carol", date(1988, 3, 18))

    run_scan_cycle(db, now=datetime(2024, 3, 17, 8, 0), tz=UTC)

    messages = [n.message for n in _notifications(db)]
    assert messages == ["🎉 Today is Bob's birthday!", "⏰ Tomorrow is Carol's birthday"]


def test_rerun_two_hours_later_is_deduplicated(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Bob", date(1990, 3, 17))

    first = run_scan_cycle(db, now=datetime(2024, 3, 17, 8, 0), tz=UTC)
    second = run_scan_cycle(db, now=datetime(2024, 3, 17, 10, 0), tz=UTC)

    assert first.created == 1
    assert second.created == 0
    assert second.already_notified == 1
    assert len(_notifications(db)) == 1


def test_only_exact_windows_alert(db):
    u = add_user(db, "alice@example.com")
    today = date(2024, 6, 1)
    for offset in range(0, 12):
        add_birthday(db, u, f"friend{offset}", today + timedelta(days=offset))

    report = run_scan_cycle(db, now=datetime(2024, 6, 1, 8, 0), tz=UTC)

    assert report.checked == 12
    assert sorted(int(n.meta["days_until"]) for n in _notifications(db)) == [0, 1, 3, 7]


def test_disabled_birthday_is_skipped_per_birthday(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Muted", date(1990, 3, 17), allow_notifications=False)
    loud = add_birthday(db, u, "Loud", date(1991, 3, 17))

    report = run_scan_cycle(db, now=datetime(2024, 3, 17, 8, 0), tz=UTC)

    assert report.skipped_disabled == 1
    assert [n.birthday_id for n in _notifications(db)] == [loud.id]


def test_lookback_is_48_hours(db):
    u = add_user(db, "alice@example.com")
    b = add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)
    create_notification(db, u.id, "old", type="birthday", metadata={"days_until": "7"}, birthday_id=b.id,
                        created_at=now - timedelta(hours=49))

    assert run_scan_cycle(db, now=now, tz=UTC).created == 1
    assert len(_notifications(db)) == 2


def test_other_day_count_does_not_suppress(db):
    u = add_user(db, "alice@example.com")
    b = add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)
    create_notification(db, u.id, "recent", type="birthday", metadata={"days_until": "3"}, birthday_id=b.id,
                        created_at=now - timedelta(hours=1))

    assert birthday_reminders.already_notified(db, u.id, b.id, 3, now)
    assert not birthday_reminders.already_notified(db, u.id, b.id, 7, now)
    assert run_scan_cycle(db, now=now, tz=UTC).created == 1


def test_storage_failure_stops_cycle_and_keeps_earlier_work(db, monkeypatch):
    first_user = add_user(db, "alice@example.com")
    second_user = add_user(db, "bob@example.com")
    add_birthday(db, first_user, "Carol", date(1990, 3, 17))
    add_birthday(db, second_user, "Dave", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)

    real_guard = birthday_reminders.already_notified
    calls = []

    def flaky_guard(session, user_id, birthday_id, days, at):
        calls.append(user_id)
        if len(calls) == 2:
            raise OperationalError("SELECT notifications", {}, Exception("database is locked"))
        return real_guard(session, user_id, birthday_id, days, at)

    monkeypatch.setattr(birthday_reminders, "already_notified", flaky_guard)
    report = run_scan_cycle(db, now=now, tz=UTC)

    assert report.failed
    assert "OperationalError" in report.error
    assert report.created == 1
    assert [n.user_id for n in _notifications(db)] == [first_user.id]

    # the next cycle picks up what was missed
    monkeypatch.setattr(birthday_reminders, "already_notified", real_guard)
    retry = run_scan_cycle(db, now=now + timedelta(hours=24), tz=UTC)
    assert retry.created == 1
    assert sorted(n.user_id for n in _notifications(db)) == [first_user.id, second_user.id]


def test_birthday_without_date_ends_cycle(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Bob", date(1990, 3, 17))
    broken = add_birthday(db, u, "Nobody", None)
    add_birthday(db, u, "Carol", date(1990, 3, 17))

    report = run_scan_cycle(db, now=datetime(2024, 3, 10, 8, 0), tz=UTC)

    assert report.failed
    assert MalformedBirthdayError.__name__ in report.error
    assert str(broken.id) in report.error
    assert report.created == 1


def test_scan_birthdays_uses_its_own_session(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Bob", date(1990, 3, 17))

    report = scan_birthdays(SessionLocal, now=datetime(2024, 3, 14, 8, 0), tz=UTC)

    assert report.created == 1
    assert report.as_dict()["today"] == "2024-03-14"
    assert _notifications(db)[0].meta == {"days_until": "3"}


def test_recent_alert_inside_lookback_suppresses(db):
    u = add_user(db, "alice@example.com")
    b = add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)
    create_notification(db, u.id, "earlier", type="birthday", metadata={"days_until": "7"}, birthday_id=b.id,
                        created_at=now - timedelta(hours=47))

    report = run_scan_cycle(db, now=now, tz=UTC)

    assert report.created == 0
    assert report.already_notified == 1


def test_lookback_boundary_is_inclusive(db):
    u = add_user(db, "alice@example.com")
    b = add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 8, 0)
    create_notification(db, u.id, "earlier", type="birthday", metadata={"days_until": "7"}, birthday_id=b.id,
                        created_at=now - timedelta(hours=48))

    assert birthday_reminders.already_notified(db, u.id, b.id, 7, now)
    assert run_scan_cycle(db, now=now, tz=UTC).created == 0


def test_aware_now_is_stored_as_naive_utc(db):
    u = add_user(db, "alice@example.com")
    add_birthday(db, u, "Bob", date(1990, 3, 17))
    now = datetime(2024, 3, 10, 10, 0, tzinfo=timezone(timedelta(hours=2)))

    first = run_scan_cycle(db, now=now, tz=UTC)
    second = run_scan_cycle(db, now=datetime(2024, 3, 10, 9, 0), tz=UTC)

    assert first.created == 1
    assert _notifications(db)[0].created_at == datetime(2024, 3, 10, 8, 0)
    assert second.created == 0


def test_malformed_birthday_error_is_a_reminder_error():
    assert issubclass(MalformedBirthdayError, birthday_reminders.BirthdayReminderError)
    assert MalformedBirthdayError(42).birthday_id == 42
