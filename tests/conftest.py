"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import datetime, timezone
from unittest.mock import Mock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("GEOCODER_BASE_URL", "https://geocoder.test")
os.environ.setdefault("GEOCODER_TIMEOUT_SECONDS", "2")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from stylehub.models.geo import Coordinate, SearchOrigin
from stylehub.services import supabase_client
from stylehub.utils.config import GeocoderSettings, SearchSettings
from stylehub.utils.logging_config import LoggingConfig
from tests.utils.factories import (
    DOWNTOWN_SD,
    create_business_profile_data,
    create_listing_data,
    create_talent_profile_data,
    create_user_data,
)
from tests.utils.fake_supabase import FakeSupabase


@pytest.fixture(autouse=True)
def _keep_pytest_log_handlers(monkeypatch):
    """Handlers call ensure_configured(); don't let it replace caplog's handler."""
    monkeypatch.setattr(LoggingConfig, "_configured", True)


@pytest.fixture
def fake_store(monkeypatch):
    """In-memory Supabase installed as the client singleton."""
    store = FakeSupabase()
    monkeypatch.setattr(supabase_client, "_client", store)
    return store


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = Mock()
    client.table = Mock(return_value=Mock())
    return client


@pytest.fixture
def geocoder_settings():
    """Provider settings with the San Diego defaults and a test base URL."""
    return GeocoderSettings(base_url="https://geocoder.test", timeout_seconds=2.0)


@pytest.fixture
def search_settings():
    return SearchSettings()


@pytest.fixture
def downtown_origin():
    """15-mile search around downtown San Diego."""
    return SearchOrigin(coordinate=Coordinate(lat=DOWNTOWN_SD[0], lng=DOWNTOWN_SD[1]), radius_miles=15)


@pytest.fixture
def marketplace(fake_store):
    """Seeded store: a talent, a direct-owner employer, a profile-owner employer.

    Listings: ``direct`` (owner_id set), ``legacy`` (business_profile_id only),
    ``orphan`` (neither).
    """
    talent = create_user_data("talent")
    employer = create_user_data("employer")
    legacy_employer = create_user_data("employer")
    profile = create_business_profile_data(legacy_employer["user_id"])

    direct = create_listing_data(owner_id=employer["user_id"])
    legacy = create_listing_data(business_profile_id=profile["profile_id"])
    orphan = create_listing_data()

    fake_store.seed("users", talent, employer, legacy_employer)
    fake_store.seed("business_profiles", profile)
    fake_store.seed("talent_profiles", create_talent_profile_data(talent["user_id"]))
    fake_store.seed("listings", direct, legacy, orphan)

    return {
        "store": fake_store,
        "talent": talent,
        "employer": employer,
        "legacy_employer": legacy_employer,
        "profile": profile,
        "direct": direct,
        "legacy": legacy,
        "orphan": orphan,
    }


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2025-03-01 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
