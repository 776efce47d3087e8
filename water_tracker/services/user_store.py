"""User document storage on top of the MongoDB users collection.

Every function reads or writes the store directly; nothing is cached between
calls. Driver failures surface as ``StorePersistenceError``.
"""

import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.errors import DuplicateKeyError, PyMongoError

from water_tracker.models.user import User
from water_tracker.services import database
from water_tracker.services.errors import (
    DuplicateUsername,
    StorePersistenceError,
    UserNotFound,
)

logger = logging.getLogger(__name__)

NON_ADMIN_FILTER = {"isAdmin": {"$ne": True}}


def _find_one(query: dict) -> User | None:
    try:
        doc = database.get_users_collection().find_one(query)
    except PyMongoError as exc:
        logger.error("User lookup failed for %s: %s", list(query), exc)
        raise StorePersistenceError(f"Failed to read user: {exc}") from exc
    return User.model_validate(doc) if doc else None


def find_by_username(username: str) -> User | None:
    """Look up a user by username."""
    return _find_one({"username": username})


def find_by_api_key(api_key: str) -> User | None:
    """Look up a user by ingestion API key."""
    return _find_one({"apiKey": api_key})


def list_non_admin_users() -> list[User]:
    """Return every non-admin user in insertion order."""
    try:
        docs = list(database.get_users_collection().find(NON_ADMIN_FILTER))
    except PyMongoError as exc:
        logger.error("Failed to list users: %s", exc)
        raise StorePersistenceError(f"Failed to list users: {exc}") from exc
    return [User.model_validate(doc) for doc in docs]


def insert_user(user: User) -> User:
    """Insert a new user document and return it with its assigned ID.

    Raises:
        DuplicateUsername: If the unique username index rejects the insert.
        StorePersistenceError: On any other driver failure.
    """
    try:
        result = database.get_users_collection().insert_one(user.to_document())
    except DuplicateKeyError as exc:
        raise DuplicateUsername(f"Username already exists: {user.username}") from exc
    except PyMongoError as exc:
        logger.error("Failed to insert user %s: %s", user.username, exc)
        raise StorePersistenceError(f"Failed to create user: {exc}") from exc

    logger.debug("Inserted user %s as %s", user.username, result.inserted_id)
    return user.model_copy(update={"id": str(result.inserted_id)})


def update_user(user_id: str, fields: dict) -> None:
    """Overwrite top-level fields of one user document.

    Raises:
        UserNotFound: If no document has ``user_id``.
        StorePersistenceError: If the write fails.
    """
    try:
        object_id = ObjectId(user_id)
    except (InvalidId, TypeError) as exc:
        raise UserNotFound(f"Unknown user id: {user_id}") from exc

    try:
        result = database.get_users_collection().update_one(
            {"_id": object_id}, {"$set": fields}
        )
    except PyMongoError as exc:
        logger.error("Failed to update user %s: %s", user_id, exc)
        raise StorePersistenceError(f"Failed to update user: {exc}") from exc

    if result.matched_count == 0:
        raise UserNotFound(f"Unknown user id: {user_id}")
