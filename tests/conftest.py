"""Pytest configuration and fixtures for testing."""

import os

import mongomock
import pytest
from fastapi.testclient import TestClient

from water_tracker.config import reset_settings
from water_tracker.main import app
from water_tracker.services import accounts, database

ADMIN_PASSWORD = "admin-test-password"


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables before any tests run."""
    # MongoDB Configuration (the client itself is replaced by mongomock)
    os.environ["MONGO_URI"] = "mongodb://localhost:27017"
    os.environ["MONGO_DB_NAME"] = "water_tracker_test"

    # Rollover Configuration
    os.environ["ROLLOVER_ENABLED"] = "false"
    os.environ["ROLLOVER_TIMEZONE"] = "UTC"
    os.environ["ROLLOVER_MAX_WORKERS"] = "1"

    # Application Configuration
    os.environ["ADMIN_PASSWORD"] = ADMIN_PASSWORD
    os.environ["PASSWORD_HASH_ROUNDS"] = "4"
    os.environ["LOG_LEVEL"] = "INFO"

    reset_settings()

    yield

    reset_settings()


@pytest.fixture(autouse=True)
def mongo_client():
    """Point the database service at a fresh in-memory MongoDB."""
    client = mongomock.MongoClient()
    database.set_client(client)
    database.ensure_indexes()

    yield client

    database.set_client(None)


@pytest.fixture
def users_collection(mongo_client):
    """The users collection backing the store."""
    return database.get_users_collection()


@pytest.fixture
def test_client(mongo_client):
    """Create a test client for the FastAPI application.

    Entering the client runs the lifespan, so the admin account exists.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def alice():
    """A registered non-admin user."""
    return accounts.register("alice", "wonderland")


@pytest.fixture
def admin_auth():
    """HTTP Basic credentials of the bootstrap admin."""
    return ("admin", ADMIN_PASSWORD)
