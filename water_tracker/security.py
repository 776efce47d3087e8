"""Security dependencies for the FastAPI application."""

import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from water_tracker.models.user import User
from water_tracker.services import accounts
from water_tracker.services.errors import CredentialMismatch

logger = logging.getLogger(__name__)

admin_basic = HTTPBasic(
    description="Admin username and password",
    auto_error=False,
)


def require_admin(
    credentials: HTTPBasicCredentials | None = Depends(admin_basic),
) -> User:
    """Validate HTTP Basic credentials and require an admin account."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin credentials required",
            headers={"WWW-Authenticate": "Basic"},
        )

    try:
        user = accounts.authenticate(credentials.username, credentials.password)
    except CredentialMismatch as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Basic"},
        ) from exc

    if not user.is_admin:
        logger.warning("Non-admin %s attempted an admin action", user.username)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )

    return user
