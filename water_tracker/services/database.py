"""MongoDB database service for user and usage storage.

Provides functions for connecting to MongoDB and getting at the users
collection with proper indexing.
"""

import logging

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from water_tracker.config import get_settings

logger = logging.getLogger(__name__)

# Global MongoDB client instance
_client: MongoClient | None = None


def get_client() -> MongoClient:
    """Get or create the MongoDB client singleton.

    Returns:
        MongoClient instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        logger.info("Connecting to MongoDB...")
        _client = MongoClient(settings.mongo.uri)
        logger.info("MongoDB connection established")
    return _client


def set_client(client: MongoClient | None) -> None:
    """Replace the client singleton, e.g. with an in-memory client in tests."""
    global _client
    _client = client


def get_database() -> Database:
    """Get the water tracker database.

    Returns:
        Database instance for user data.
    """
    settings = get_settings()
    client = get_client()
    return client[settings.mongo.db_name]


def get_collection(name: str) -> Collection:
    """Get a collection by name from the water tracker database.

    Args:
        name: Collection name.

    Returns:
        Collection instance.
    """
    db = get_database()
    return db[name]


def get_users_collection() -> Collection:
    """Get the collection holding user documents."""
    return get_collection(get_settings().mongo.users_collection)


def ensure_indexes() -> None:
    """Create database indexes for lookups and uniqueness.

    Creates indexes on:
    - users: (username) unique, one account per name
    - users: (apiKey) sparse unique, admin accounts carry no key
    - users: (isAdmin) for the rollover and dashboard enumerations
    """
    users_col = get_users_collection()

    logger.info("Ensuring database indexes...")

    users_col.create_index(
        [("username", ASCENDING)],
        name="username_unique",
        unique=True,
    )
    users_col.create_index(
        [("apiKey", ASCENDING)],
        name="api_key_unique",
        unique=True,
        sparse=True,
    )
    users_col.create_index([("isAdmin", ASCENDING)], name="is_admin_idx")

    logger.info("Database indexes created successfully")


def close_client() -> None:
    """Close the MongoDB client connection gracefully."""
    global _client
    if _client is not None:
        logger.info("Closing MongoDB connection...")
        _client.close()
        _client = None
        logger.info("MongoDB connection closed")
