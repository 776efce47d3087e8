"""Account registration, login and admin bootstrap.

Passwords are stored as bcrypt hashes. API keys are random URL-safe tokens
issued once at registration and used as the only credential for reporting
usage.
"""

import logging
import secrets

import bcrypt

from water_tracker.config import get_settings
from water_tracker.models.usage import UsageLedger
from water_tracker.models.user import ADMIN_USERNAME, User, UserUsageSummary
from water_tracker.services import clock, user_store
from water_tracker.services.errors import (
    CredentialMismatch,
    DuplicateUsername,
    MissingParameter,
    UserNotFound,
)

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured cost."""
    rounds = get_settings().app.password_hash_rounds
    hashed = bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


_dummy_hash: str | None = None


def _burn_password_check(password: str) -> None:
    """Spend the same bcrypt work as a real check, for unknown usernames."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password(secrets.token_urlsafe(16))
    verify_password(password, _dummy_hash)


def normalize_username(username: str | None) -> str:
    """Canonical form of a login name, as stored."""
    return (username or "").strip()


def generate_api_key() -> str:
    """Generate a new ingestion API key."""
    return secrets.token_urlsafe(32)


def register(username: str, password: str) -> User:
    """Create a user with a fresh API key and a zero entry for today.

    Args:
        username: Requested login name.
        password: Plain text password, hashed before storage.

    Returns:
        The stored user, including its ID and API key.

    Raises:
        MissingParameter: If username or password is blank.
        DuplicateUsername: If the username is already taken or reserved for
            the admin account.
    """
    username = normalize_username(username)
    if not username or not password:
        raise MissingParameter("Username and password are required")

    if (
        username == ADMIN_USERNAME
        or user_store.find_by_username(username) is not None
    ):
        raise DuplicateUsername(f"Username already exists: {username}")

    ledger = UsageLedger.opened_on(clock.local_today())
    user = User(
        username=username,
        password_hash=hash_password(password),
        api_key=generate_api_key(),
        is_admin=False,
        usage_entries=ledger.entries,
        usage_history=ledger.history,
    )

    # The unique index still catches a concurrent registration of the same name
    user = user_store.insert_user(user)
    logger.info("Registered user %s (%s)", user.username, user.id)
    return user


def authenticate(username: str, password: str) -> User:
    """Check login credentials.

    Raises:
        CredentialMismatch: For an unknown username or a wrong password alike.
    """
    username = normalize_username(username)
    if not username or not password:
        raise CredentialMismatch()

    user = user_store.find_by_username(username)
    if user is None:
        _burn_password_check(password)
    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login attempt for %s", username)
        raise CredentialMismatch()

    return user


def get_user(username: str) -> User:
    """Fetch a user by username.

    Raises:
        MissingParameter: If no username is given.
        UserNotFound: If there is no such user.
    """
    username = normalize_username(username)
    if not username:
        raise MissingParameter("Username is required")

    user = user_store.find_by_username(username)
    if user is None:
        raise UserNotFound(f"User not found: {username}")
    return user


def ensure_admin_exists(password: str | None = None) -> bool:
    """Create the admin account unless it already exists.

    Safe to call on every start-up; a second concurrent caller loses on the
    unique username index.

    Args:
        password: Admin password, defaults to the configured one.

    Returns:
        True if the admin account was created by this call.
    """
    if user_store.find_by_username(ADMIN_USERNAME) is not None:
        logger.debug("Admin user already present")
        return False

    if password is None:
        password = get_settings().app.admin_password

    ledger = UsageLedger.opened_on(clock.local_today())
    admin = User(
        username=ADMIN_USERNAME,
        password_hash=hash_password(password),
        is_admin=True,
        usage_entries=ledger.entries,
        usage_history=ledger.history,
    )

    try:
        user_store.insert_user(admin)
    except DuplicateUsername:
        logger.info("Admin user was created concurrently")
        return False

    logger.info("Admin user created")
    return True


def list_usage_summaries() -> list[UserUsageSummary]:
    """Latest usage of every non-admin user, for the admin dashboard."""
    return [
        UserUsageSummary(
            username=user.username,
            api_key=user.api_key or "N/A",
            latest_usage=user.ledger.latest().usage,
        )
        for user in user_store.list_non_admin_users()
    ]
