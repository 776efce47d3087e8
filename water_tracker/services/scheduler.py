"""Background scheduler that runs the daily usage rollover.

Runs as a single asyncio task for the life of the application. It sleeps until
the next configured fire time in the usage time zone, runs the rollover batch
in a worker thread and repeats. Missed fires (the process was down) are not
caught up; the next run simply happens at the following fire time.
"""

import asyncio
import logging
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from water_tracker.config import get_settings
from water_tracker.services import clock, rollover

logger = logging.getLogger(__name__)


def next_fire_time(after: datetime, fire_time: time, tz: ZoneInfo) -> datetime:
    """First fire instant strictly later than ``after``.

    Args:
        after: Aware reference time.
        fire_time: Local wall-clock time of day to fire at.
        tz: Time zone the wall-clock time is expressed in.

    Returns:
        Aware datetime in ``tz``.
    """
    local = after.astimezone(tz)
    day = local.date()
    while True:
        # Round trip through UTC moves a wall time skipped by DST to a real one
        candidate = (
            datetime.combine(day, fire_time, tzinfo=tz)
            .astimezone(timezone.utc)
            .astimezone(tz)
        )
        if candidate > local:
            return candidate
        day += timedelta(days=1)


def seconds_until(target: datetime, now: datetime) -> float:
    """Real elapsed seconds from ``now`` to ``target``, DST-safe."""
    delta = target.astimezone(timezone.utc) - now.astimezone(timezone.utc)
    return max(delta.total_seconds(), 0.0)


async def run_rollover_scheduler() -> None:
    """Fire the rollover once per day at the configured local time.

    Stops only when cancelled; errors from a run are logged and the loop
    carries on to the next fire.
    """
    settings = get_settings()

    if not settings.rollover.enabled:
        logger.info("Rollover scheduler disabled")
        return

    tz = clock.usage_timezone()
    fire_time = settings.rollover.fire_time

    logger.info(
        "Rollover scheduler started: fire_time=%s, timezone=%s",
        fire_time.strftime("%H:%M"),
        settings.rollover.timezone,
    )

    fire_at = next_fire_time(clock.local_now(), fire_time, tz)

    while True:
        try:
            delay = seconds_until(fire_at, clock.local_now())
            logger.debug("Next rollover at %s (in %.0fs)", fire_at.isoformat(), delay)
            await asyncio.sleep(delay)

            report = await asyncio.to_thread(rollover.run_rollover, fire_at.date())
            if report.success:
                logger.info(
                    "Scheduled rollover for %s done: %d users",
                    report.day,
                    report.users_processed,
                )
            else:
                logger.warning(
                    "Scheduled rollover for %s had %d failures",
                    report.day,
                    report.users_failed,
                )

        except asyncio.CancelledError:
            logger.info("Rollover scheduler stopped")
            raise
        except Exception as e:
            logger.exception("Rollover scheduler error: %s", e)

        # Advance from the fire just handled so an early wake-up cannot repeat it
        fire_at = next_fire_time(max(fire_at, clock.local_now()), fire_time, tz)
