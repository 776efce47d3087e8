"""Registration and login endpoints."""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from water_tracker.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["accounts"])


class CredentialsRequest(BaseModel):
    """Request body for register and login."""

    username: str = Field(description="Login name")
    password: str = Field(description="Plain text password")


class RegisterResponse(BaseModel):
    """Response from the register endpoint."""

    id: str
    username: str
    api_key: str


class LoginResponse(BaseModel):
    """Response from the login endpoint."""

    username: str
    is_admin: bool
    dashboard: str


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
def register(request: CredentialsRequest) -> RegisterResponse:
    """Create an account and issue its usage API key.

    The API key is returned once here and then only shown on dashboards.
    """
    user = accounts.register(request.username, request.password)
    return RegisterResponse(id=user.id, username=user.username, api_key=user.api_key)


@router.post("/login", response_model=LoginResponse)
def login(request: CredentialsRequest) -> LoginResponse:
    """Check credentials and point the caller at the right dashboard."""
    user = accounts.authenticate(request.username, request.password)

    if user.is_admin:
        dashboard = "/admin_dashboard"
    else:
        dashboard = "/user_dashboard?" + urlencode({"username": user.username})

    return LoginResponse(
        username=user.username, is_admin=user.is_admin, dashboard=dashboard
    )
