"""Tests for the rollover scheduler."""

import asyncio
from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest

from water_tracker.config import get_settings
from water_tracker.services import rollover, scheduler

UTC = ZoneInfo("UTC")
LONDON = ZoneInfo("Europe/London")
# Clocks jump from 00:00 to 01:00 on 2026-09-06, so local midnight never happens
SANTIAGO = ZoneInfo("America/Santiago")


class TestNextFireTime:
    """Test next_fire_time."""

    def test_later_the_same_day(self):
        after = datetime(2026, 10, 18, 5, 30, tzinfo=UTC)

        assert scheduler.next_fire_time(after, time(23, 0), UTC) == datetime(
            2026, 10, 18, 23, 0, tzinfo=UTC
        )

    def test_midnight_is_the_next_day(self):
        after = datetime(2026, 10, 18, 5, 30, tzinfo=UTC)

        assert scheduler.next_fire_time(after, time(0, 0), UTC) == datetime(
            2026, 10, 19, 0, 0, tzinfo=UTC
        )

    def test_strictly_after_a_fire_instant(self):
        fired = datetime(2026, 10, 19, 0, 0, tzinfo=UTC)

        assert scheduler.next_fire_time(fired, time(0, 0), UTC) == datetime(
            2026, 10, 20, 0, 0, tzinfo=UTC
        )

    def test_uses_local_calendar_day(self):
        # 23:30 UTC on the 18th is already 00:30 on the 19th in London (BST)
        after = datetime(2026, 7, 18, 23, 30, tzinfo=timezone.utc)

        fire = scheduler.next_fire_time(after, time(0, 0), LONDON)

        assert fire.date() == date(2026, 7, 20)
        assert fire.utcoffset().total_seconds() == 3600

    def test_skipped_wall_time_moves_to_a_real_instant(self):
        after = datetime(2026, 9, 5, 12, 0, tzinfo=SANTIAGO)

        fire = scheduler.next_fire_time(after, time(0, 0), SANTIAGO)

        assert fire.date() == date(2026, 9, 6)
        assert fire.hour == 1
        assert fire.astimezone(timezone.utc) == datetime(
            2026, 9, 6, 4, 0, tzinfo=timezone.utc
        )
        # Round trips cleanly, unlike the nonexistent 00:00
        assert fire.astimezone(timezone.utc).astimezone(SANTIAGO) == fire
        assert scheduler.next_fire_time(fire, time(0, 0), SANTIAGO).date() == date(
            2026, 9, 7
        )


def test_seconds_until_spans_dst_change():
    # Clocks go back on 2026-10-25 in London, so that local day has 25 hours
    now = datetime(2026, 10, 25, 0, 0, tzinfo=LONDON)
    target = datetime(2026, 10, 26, 0, 0, tzinfo=LONDON)

    assert scheduler.seconds_until(target, now) == 25 * 3600


def test_seconds_until_never_negative():
    now = datetime(2026, 10, 18, 1, 0, tzinfo=UTC)

    assert scheduler.seconds_until(datetime(2026, 10, 18, tzinfo=UTC), now) == 0.0


def test_disabled_scheduler_returns_immediately():
    asyncio.run(asyncio.wait_for(scheduler.run_rollover_scheduler(), timeout=1))


def test_scheduler_runs_rollover_for_fire_date(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings.rollover, "enabled", True)
    monkeypatch.setattr(settings.rollover, "fire_time", time(0, 0))

    now = datetime(2026, 10, 18, 23, 59, 30, tzinfo=UTC)
    monkeypatch.setattr(scheduler.clock, "local_now", lambda: now)

    sleeps = []
    runs = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) > 1:
            raise asyncio.CancelledError()

    def fake_run_rollover(today):
        runs.append(today)
        return rollover.RolloverReport(success=True, day=today, users_processed=3)

    monkeypatch.setattr(scheduler.asyncio, "sleep", fake_sleep)
    monkeypatch.setattr(scheduler.rollover, "run_rollover", fake_run_rollover)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(scheduler.run_rollover_scheduler())

    assert sleeps[0] == 30
    assert runs == [date(2026, 10, 19)]


def test_scheduler_survives_failed_run(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings.rollover, "enabled", True)
    monkeypatch.setattr(
        scheduler.clock,
        "local_now",
        lambda: datetime(2026, 10, 18, 12, 0, tzinfo=UTC),
    )

    attempts = []

    async def fake_sleep(seconds):
        if len(attempts) >= 2:
            raise asyncio.CancelledError()

    def failing_run_rollover(today):
        attempts.append(today)
        raise RuntimeError("boom")

    monkeypatch.setattr(scheduler.asyncio, "sleep", fake_sleep)
    monkeypatch.setattr(scheduler.rollover, "run_rollover", failing_run_rollover)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(scheduler.run_rollover_scheduler())

    # The second fire is for the following day, not a repeat of the first
    assert attempts == [date(2026, 10, 19), date(2026, 10, 20)]
