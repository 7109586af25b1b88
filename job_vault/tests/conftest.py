"""
Pytest configuration and shared fixtures for the JobVault tracker tests.
"""
import asyncio
import os
import pytest
import pytest_asyncio
from unittest.mock import patch

from job_vault.backend.config.settings import Settings
from job_vault.backend.gateway.local import LocalGateway
from job_vault.backend.services.application_store import ApplicationStore
from job_vault.backend.services.auth_store import AuthStore


TEST_SECRET_KEY = "test-secret-key-for-jwt-tokens-12345678901234567890"


# Settings / Gateway Setup
@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at an in-memory database and a temporary bucket."""
    return Settings(
        testing=True,
        secret_key=TEST_SECRET_KEY,
        storage_directory=str(tmp_path / "storage"),
        public_base_url="http://testserver",
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def gateway(test_settings):
    """A fresh local gateway with its own empty database."""
    gw = LocalGateway(test_settings)
    yield gw
    await gw.close()


# User Fixtures
@pytest.fixture
def test_user_data():
    """Sample user data for testing."""
    return {
        "email": "test@example.com",
        "password": "testpassword123",
        "full_name": "Test User"
    }


@pytest.fixture
def other_user_data():
    return {
        "email": "other@example.com",
        "password": "otherpassword123",
        "full_name": "Other User"
    }


@pytest_asyncio.fixture
async def auth_store(gateway):
    """Auth store whose initial session event has already been delivered."""
    store = AuthStore(gateway)
    await asyncio.sleep(0)
    yield store
    store.close()


@pytest_asyncio.fixture
async def signed_in_user(auth_store, test_user_data):
    return await auth_store.sign_up(**test_user_data)


@pytest_asyncio.fixture
async def store(gateway, auth_store, signed_in_user, test_settings):
    """Application store for a signed-in user."""
    app_store = ApplicationStore(gateway, auth_store=auth_store, settings=test_settings)
    yield app_store
    app_store.close()


# Application Test Data
@pytest.fixture
def sample_draft():
    """Draft for a new application."""
    return {
        "company": "Acme Corp",
        "role": "Backend Engineer",
        "status": "Applied",
        "applied_date": "2024-01-15",
        "jd_text": "Build APIs in Python.",
        "notes": "Referred by a friend",
        "application_url": "https://acme.example.com/jobs/42",
    }


@pytest.fixture
def make_draft(sample_draft):
    def _make(**overrides):
        data = dict(sample_draft)
        data.update(overrides)
        return data
    return _make


# Environment Variable Mocks
@pytest.fixture(autouse=True)
def mock_environment_variables():
    """Mock environment variables for testing."""
    test_env = {
        "SECRET_KEY": TEST_SECRET_KEY,
        "LOG_LEVEL": "DEBUG"
    }

    with patch.dict(os.environ, test_env):
        yield test_env
