"""Usage entries and the per-user ledger that owns the daily rollover rules.

A ledger holds the open entries (normally exactly one, dated today) and the
append-only history. Readings overwrite the open entry for their date; a
rollover archives the open entries and opens a fresh zero entry.
"""

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from water_tracker.services.errors import InvalidReading

NOT_AVAILABLE = "N/A"

# Largest value MongoDB stores as an integer (signed 64-bit)
MAX_USAGE = 2**63 - 1


class UsageEntry(BaseModel):
    """Total water usage reported for one calendar date."""

    model_config = ConfigDict(populate_by_name=True)

    date: datetime.date | Literal["N/A"] = Field(
        description="Calendar date of the reading"
    )
    usage: int = Field(
        default=0, ge=0, le=MAX_USAGE, description="Absolute usage for the date"
    )


class UsageLedger(BaseModel):
    """Open usage entries plus the archived history for one user."""

    model_config = ConfigDict(populate_by_name=True)

    entries: list[UsageEntry] = Field(default_factory=list, alias="usageEntries")
    history: list[UsageEntry] = Field(default_factory=list, alias="usageHistory")

    @classmethod
    def opened_on(cls, today: datetime.date) -> "UsageLedger":
        """Create a ledger with a single zero entry for ``today``."""
        return cls(entries=[UsageEntry(date=today, usage=0)], history=[])

    def apply_reading(self, new_usage: int, today: datetime.date) -> UsageEntry:
        """Record ``new_usage`` as the total for ``today``.

        Overwrites the open entry for ``today`` when there is one, otherwise
        opens a new entry. History is never touched.

        Raises:
            InvalidReading: If ``new_usage`` is not a non-negative integer.
        """
        if isinstance(new_usage, bool) or not isinstance(new_usage, int):
            raise InvalidReading(f"Usage must be an integer, got {new_usage!r}")
        if new_usage < 0:
            raise InvalidReading(f"Usage must not be negative, got {new_usage}")
        if new_usage > MAX_USAGE:
            raise InvalidReading(f"Usage must not exceed {MAX_USAGE}, got {new_usage}")

        for entry in self.entries:
            if entry.date == today:
                entry.usage = new_usage
                return entry

        entry = UsageEntry(date=today, usage=new_usage)
        self.entries.append(entry)
        return entry

    def rollover(self, today: datetime.date) -> None:
        """Archive the open entries and start ``today`` at zero.

        Entries are archived whether or not they were ever updated. Stale open
        entries left by a missed rollover are archived too, oldest first.
        Running this twice on the same day archives the fresh zero entry the
        first call opened, so callers must run it at most once per day.
        """
        self.history.extend(entry.model_copy() for entry in self.entries)
        self.entries = [UsageEntry(date=today, usage=0)]

    def latest(self) -> UsageEntry:
        """Return the most recently opened entry, or an ``N/A`` placeholder."""
        if not self.entries:
            return UsageEntry(date=NOT_AVAILABLE, usage=0)
        return self.entries[-1]

    def entries_document(self) -> dict:
        """Serialized open entries, as stored on the user document."""
        return {
            "usageEntries": [e.model_dump(mode="json") for e in self.entries],
        }

    def to_document(self) -> dict:
        """Serialized open entries and history, as stored on the user document."""
        return self.model_dump(mode="json", by_alias=True)
