"""Tests for the usage ledger rules."""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from water_tracker.models.usage import MAX_USAGE, UsageEntry, UsageLedger
from water_tracker.services.errors import InvalidReading

TODAY = date(2026, 10, 18)
TOMORROW = TODAY + timedelta(days=1)


class TestApplyReading:
    """Test UsageLedger.apply_reading."""

    def test_overwrites_open_entry_for_today(self):
        ledger = UsageLedger.opened_on(TODAY)

        ledger.apply_reading(10, TODAY)
        entry = ledger.apply_reading(7, TODAY)

        assert entry == UsageEntry(date=TODAY, usage=7)
        assert ledger.entries == [UsageEntry(date=TODAY, usage=7)]

    def test_opens_entry_when_today_missing(self):
        ledger = UsageLedger()

        entry = ledger.apply_reading(5, TODAY)

        assert entry.date == TODAY
        assert ledger.entries == [UsageEntry(date=TODAY, usage=5)]

    def test_never_touches_history(self):
        ledger = UsageLedger(
            entries=[UsageEntry(date=TODAY, usage=1)],
            history=[UsageEntry(date=TODAY - timedelta(days=1), usage=9)],
        )

        ledger.apply_reading(3, TODAY)

        assert ledger.history == [UsageEntry(date=TODAY - timedelta(days=1), usage=9)]

    @pytest.mark.parametrize("bad", [-1, "5", 2.5, True, None, 2**63])
    def test_rejects_non_integer_or_negative(self, bad):
        ledger = UsageLedger.opened_on(TODAY)

        with pytest.raises(InvalidReading):
            ledger.apply_reading(bad, TODAY)

        assert ledger.entries == [UsageEntry(date=TODAY, usage=0)]


class TestRollover:
    """Test UsageLedger.rollover."""

    def test_archives_open_entry_and_opens_zero(self):
        ledger = UsageLedger.opened_on(TODAY)
        ledger.apply_reading(42, TODAY)

        ledger.rollover(TOMORROW)

        assert ledger.history == [UsageEntry(date=TODAY, usage=42)]
        assert ledger.entries == [UsageEntry(date=TOMORROW, usage=0)]

    def test_archives_untouched_zero_entry(self):
        ledger = UsageLedger.opened_on(TODAY)

        ledger.rollover(TOMORROW)

        assert ledger.history == [UsageEntry(date=TODAY, usage=0)]

    def test_second_rollover_same_day_archives_zero_entry(self):
        ledger = UsageLedger.opened_on(TODAY)
        ledger.apply_reading(42, TODAY)

        ledger.rollover(TOMORROW)
        ledger.rollover(TOMORROW)

        assert ledger.history == [
            UsageEntry(date=TODAY, usage=42),
            UsageEntry(date=TOMORROW, usage=0),
        ]
        assert ledger.entries == [UsageEntry(date=TOMORROW, usage=0)]

    def test_archives_stale_entries_in_order(self):
        yesterday = TODAY - timedelta(days=1)
        ledger = UsageLedger(entries=[UsageEntry(date=yesterday, usage=3)])
        ledger.apply_reading(8, TODAY)

        ledger.rollover(TOMORROW)

        assert ledger.history == [
            UsageEntry(date=yesterday, usage=3),
            UsageEntry(date=TODAY, usage=8),
        ]

    def test_rollover_without_open_entry(self):
        ledger = UsageLedger()

        ledger.rollover(TODAY)

        assert ledger.history == []
        assert ledger.entries == [UsageEntry(date=TODAY, usage=0)]


class TestLatest:
    """Test UsageLedger.latest."""

    def test_returns_last_open_entry(self):
        ledger = UsageLedger(
            entries=[
                UsageEntry(date=TODAY - timedelta(days=1), usage=3),
                UsageEntry(date=TODAY, usage=4),
            ]
        )

        assert ledger.latest() == UsageEntry(date=TODAY, usage=4)

    def test_placeholder_when_empty(self):
        latest = UsageLedger().latest()

        assert latest.date == "N/A"
        assert latest.usage == 0


def test_documents_use_stored_field_names():
    ledger = UsageLedger.opened_on(TODAY)
    ledger.rollover(TOMORROW)

    assert ledger.to_document() == {
        "usageEntries": [{"date": "2026-10-19", "usage": 0}],
        "usageHistory": [{"date": "2026-10-18", "usage": 0}],
    }
    assert ledger.entries_document() == {
        "usageEntries": [{"date": "2026-10-19", "usage": 0}],
    }


def test_loads_stored_document():
    ledger = UsageLedger.model_validate(
        {
            "usageEntries": [{"date": "2026-10-18", "usage": 12}],
            "usageHistory": [],
        }
    )

    assert ledger.latest() == UsageEntry(date=TODAY, usage=12)


def test_entry_usage_fits_signed_64_bit():
    assert UsageEntry(date=TODAY, usage=MAX_USAGE).usage == MAX_USAGE

    with pytest.raises(ValidationError):
        UsageEntry(date=TODAY, usage=MAX_USAGE + 1)
