"""Usage ingestion authenticated by API key.

Each call reads the user document fresh, applies the reading to a local
ledger and writes the open entries back in a single update. Two concurrent
readings for the same key race on that read-modify-write and the later write
wins; there is no optimistic locking.
"""

import logging
import re
from datetime import date

from water_tracker.models.usage import MAX_USAGE, UsageEntry
from water_tracker.services import clock, user_store
from water_tracker.services.errors import InvalidReading, MissingParameter, UserNotFound

logger = logging.getLogger(__name__)

_READING_RE = re.compile(r"([+-]?)0*(\d+)")


def parse_reading(raw_usage: str) -> int:
    """Parse a reported usage value.

    Args:
        raw_usage: Decimal integer, optionally surrounded by whitespace.

    Returns:
        The reading as a non-negative int.

    Raises:
        InvalidReading: If the value is not an integer, is negative or does
            not fit in a signed 64-bit integer.
    """
    match = _READING_RE.fullmatch(str(raw_usage).strip())
    if not match:
        raise InvalidReading(f"Usage must be a whole number, got {raw_usage!r}")

    sign, digits = match.groups()
    # Length check first: int() refuses very long digit strings
    if len(digits) > len(str(MAX_USAGE)) or int(digits) > MAX_USAGE:
        raise InvalidReading(f"Usage must not exceed {MAX_USAGE}")

    value = int(digits)
    if sign == "-" and value:
        raise InvalidReading(f"Usage must not be negative, got -{value}")
    return value


def ingest(
    api_key: str | None, raw_usage: str | None, today: date | None = None
) -> UsageEntry:
    """Apply a usage report to the ledger of the user owning ``api_key``.

    Args:
        api_key: Ingestion credential of the reporting user.
        raw_usage: Reported total usage for today, as received.
        today: Calendar date of the reading, defaults to the local date.

    Returns:
        The open entry after the update.

    Raises:
        MissingParameter: If either argument is absent or empty.
        InvalidReading: If ``raw_usage`` is not a non-negative integer.
        UserNotFound: If no user holds ``api_key``.
        StorePersistenceError: If the store read or write fails.
    """
    if not api_key or raw_usage is None or not str(raw_usage).strip():
        raise MissingParameter("API key and new usage are required")

    new_usage = parse_reading(raw_usage)

    user = user_store.find_by_api_key(api_key)
    if user is None:
        raise UserNotFound("No user holds the given API key")

    if today is None:
        today = clock.local_today()

    ledger = user.ledger
    entry = ledger.apply_reading(new_usage, today)
    user_store.update_user(user.id, ledger.entries_document())

    logger.info("Recorded usage %d for %s on %s", entry.usage, user.username, today)
    return entry
