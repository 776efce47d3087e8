"""Daily rollover of usage ledgers.

Archives each non-admin user's open entry into history and opens a zero entry
for the new day. Users are processed independently on a bounded thread pool;
a failure for one user is logged and reported without stopping the others.
The batch is not transactional, and a crash part-way through leaves the
remaining users for the next scheduled run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date

from pydantic import BaseModel, Field

from water_tracker.config import get_settings
from water_tracker.models.user import User
from water_tracker.services import clock, user_store

logger = logging.getLogger(__name__)


class RolloverReport(BaseModel):
    """Outcome of one rollover run."""

    success: bool
    day: date
    users_processed: int = 0
    users_failed: int = 0
    errors: list[str] = Field(default_factory=list)


def rollover_user(user: User, today: date) -> None:
    """Roll one user's ledger over to ``today`` and persist it."""
    ledger = user.ledger
    ledger.rollover(today)
    user_store.update_user(user.id, ledger.to_document())
    logger.debug("Rolled over usage for %s to %s", user.username, today)


def run_rollover(
    today: date | None = None, max_workers: int | None = None
) -> RolloverReport:
    """Roll every non-admin user over to ``today``.

    Args:
        today: Date of the new open entries, defaults to the local date.
        max_workers: Concurrency bound, defaults to the configured one.

    Returns:
        Report with per-user failure messages.
    """
    if today is None:
        today = clock.local_today()
    if max_workers is None:
        max_workers = get_settings().rollover.max_workers

    logger.info("Resetting daily usage for %s...", today)

    try:
        users = user_store.list_non_admin_users()
    except Exception as e:
        logger.error("Could not enumerate users for rollover: %s", e, exc_info=True)
        return RolloverReport(success=False, day=today, errors=[str(e)])

    processed = 0
    errors: list[str] = []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(rollover_user, user, today): user for user in users
        }
        for future in as_completed(futures):
            user = futures[future]
            try:
                future.result()
                processed += 1
            except Exception as e:
                error_msg = f"Failed to roll over usage for {user.username}: {e}"
                errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

    logger.info(
        "Rollover complete for %s: %d processed, %d failed",
        today,
        processed,
        len(errors),
    )
    return RolloverReport(
        success=not errors,
        day=today,
        users_processed=processed,
        users_failed=len(errors),
        errors=errors,
    )
