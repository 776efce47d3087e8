"""Usage ingestion, dashboards and the manual rollover trigger."""

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from water_tracker.models.usage import UsageEntry
from water_tracker.models.user import User, UserUsageSummary
from water_tracker.security import require_admin
from water_tracker.services import accounts, ingestion, rollover

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["usage"])


class UpdateUsageResponse(BaseModel):
    """Response from the usage ingestion endpoint."""

    message: str
    entry: UsageEntry


class UserDashboardResponse(BaseModel):
    """Latest reading for one user."""

    username: str
    api_key: str | None
    latest_usage: UsageEntry


@router.get("/update_water_usage", response_model=UpdateUsageResponse)
def update_water_usage(
    apikey: str | None = Query(default=None, description="Ingestion API key"),
    new_usage: str | None = Query(default=None, description="Total usage today"),
) -> UpdateUsageResponse:
    """Report today's total water usage for the user owning ``apikey``.

    Parameters are validated by the service so that missing and malformed
    values get the same error shape as every other failure.
    """
    entry = ingestion.ingest(apikey, new_usage)
    return UpdateUsageResponse(message="Water usage updated successfully!", entry=entry)


@router.get("/user_dashboard", response_model=UserDashboardResponse)
def user_dashboard(
    username: str | None = Query(default=None),
) -> UserDashboardResponse:
    """Latest usage entry for one user, ``N/A`` dated if there is none."""
    user = accounts.get_user(username)
    return UserDashboardResponse(
        username=user.username,
        api_key=user.api_key,
        latest_usage=user.ledger.latest(),
    )


@router.get("/admin_dashboard", response_model=list[UserUsageSummary])
def admin_dashboard(_: User = Depends(require_admin)) -> list[UserUsageSummary]:
    """Latest usage of every non-admin user."""
    return accounts.list_usage_summaries()


@router.post("/usage/rollover", response_model=rollover.RolloverReport)
def trigger_rollover(admin: User = Depends(require_admin)) -> rollover.RolloverReport:
    """Run the daily rollover now (RPC pattern, for external schedulers).

    Calling this on a day the scheduler already ran archives the fresh zero
    entries a second time.
    """
    logger.info("Manual rollover requested by %s", admin.username)
    return rollover.run_rollover()
