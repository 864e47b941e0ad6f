"""Daily trigger for the birthday scan.

One asyncio task per scheduler. It waits for the next TRIGGER_HOUR in the
configured zone, runs a scan in a worker thread, then computes the following
trigger from the one that just fired. Working in wall-clock time keeps the run
at 08:00 across DST changes instead of drifting by an hour.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from birthday_api.core.clock import as_utc, utcnow
from birthday_api.services.birthday_reminders import ScanReport, scan_birthdays

logger = logging.getLogger(__name__)

TRIGGER_HOUR = 8

STATE_STOPPED = "stopped"
STATE_WAITING = "waiting"
STATE_RUNNING = "running"


def next_trigger_at(now: datetime, tz: tzinfo, hour: int = TRIGGER_HOUR) -> datetime:
    """First ``hour``:00 in ``tz`` strictly after ``now``, returned in UTC."""
    now_utc = as_utc(now)
    local_date = now_utc.astimezone(tz).date()
    candidate = datetime.combine(local_date, time(hour), tzinfo=tz).astimezone(timezone.utc)
    if candidate <= now_utc:
        candidate = datetime.combine(local_date + timedelta(days=1), time(hour), tzinfo=tz).astimezone(timezone.utc)
    return candidate


def seconds_until_next_trigger(now: datetime, tz: tzinfo, hour: int = TRIGGER_HOUR) -> float:
    return (next_trigger_at(now, tz, hour) - as_utc(now)).total_seconds()


class ReminderScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        tz: tzinfo,
        trigger_hour: int = TRIGGER_HOUR,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        scan: Callable[..., ScanReport] = scan_birthdays,
    ) -> None:
        self._session_factory = session_factory
        self._tz = tz
        self._hour = trigger_hour
        self._clock = clock
        self._sleep = sleep
        self._scan = scan
        self._task: Optional[asyncio.Task[None]] = None
        self._lock = asyncio.Lock()
        self.state = STATE_STOPPED
        self.cycles = 0
        self.last_report: Optional[ScanReport] = None

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self.state = STATE_WAITING
        self._task = asyncio.create_task(self._run(), name="birthday-reminders")

    async def stop(self) -> None:
        """Cancel the loop and wait for it; a scan already running is allowed to finish."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self.state = STATE_STOPPED
        logger.info("birthday reminder scheduler stopped")

    async def trigger_now(self) -> Optional[ScanReport]:
        """Run one scan immediately. Returns None if a scan is already in progress."""
        if self._lock.locked():
            logger.warning("birthday check already in progress, skipping trigger")
            return None
        async with self._lock:
            now = self._clock()
            scan = asyncio.ensure_future(asyncio.to_thread(self._scan, self._session_factory, now, self._tz))
            try:
                report = await asyncio.shield(scan)
            except asyncio.CancelledError:
                # The worker thread cannot be interrupted; hold the lock until it is done.
                await asyncio.wait({scan})
                raise
            self.cycles += 1
            self.last_report = report
            return report

    async def _run(self) -> None:
        fire_at = next_trigger_at(self._clock(), self._tz, self._hour)
        first_delay = (fire_at - as_utc(self._clock())).total_seconds()
        logger.info(
            "Scheduling birthday checks to run daily at %02d:00 (%s). First run in %d minutes",
            self._hour, self._tz, round(first_delay / 60),
        )
        while True:
            delay = max(0.0, (fire_at - as_utc(self._clock())).total_seconds())
            await self._sleep(delay)
            try:
                await self.trigger_now()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("birthday check crashed; next run stays scheduled")
            self.state = STATE_RUNNING
            # From the later of the last trigger and now, so a clock jump does not replay missed days
            fire_at = next_trigger_at(max(fire_at, as_utc(self._clock())), self._tz, self._hour)
