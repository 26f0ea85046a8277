"""Tests for settings and the service factories."""

import pytest
from pydantic import ValidationError

from takeaway.core.config import EnvironmentMode, MapsProvider, Settings, get_settings
from takeaway.services.config_store import StaticConfigStore, get_config_store, reset_config_store
from takeaway.services.geo import MockGeoService, get_geo_service, reset_geo_service
from takeaway.services.notifications import (
    MockNotificationService,
    get_notification_service,
    reset_notification_service,
)


@pytest.fixture
def fresh_factories():
    get_settings.cache_clear()
    reset_config_store()
    reset_geo_service()
    reset_notification_service()
    yield
    get_settings.cache_clear()
    reset_config_store()
    reset_geo_service()
    reset_notification_service()


class TestSettings:
    """Tests for Settings parsing and validation."""

    def test_env_mode_case_insensitive(self):
        settings = Settings(env_mode="PRODUCTION")
        assert settings.env_mode == EnvironmentMode.PRODUCTION
        assert settings.is_production is True
        assert settings.use_real_services is True

    def test_invalid_env_mode(self):
        with pytest.raises(ValidationError):
            Settings(env_mode="qa")

    def test_maps_provider(self):
        assert Settings(maps_provider="Google").maps_provider == MapsProvider.GOOGLE
        with pytest.raises(ValidationError):
            Settings(maps_provider="osm")

    def test_geo_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(geo_timeout_seconds=0)

    def test_production_config_reports_missing_keys(self):
        settings = Settings(
            env_mode="production",
            maps_provider="google",
            mapbox_token=None,
            google_maps_api_key=None,
            sendgrid_api_key=None,
        )
        assert settings.validate_production_config() == ["GOOGLE_MAPS_API_KEY", "SENDGRID_API_KEY"]

    def test_development_needs_no_keys(self):
        settings = Settings(env_mode="development", sendgrid_api_key=None)
        assert settings.validate_production_config() == []


class TestFactories:
    """Tests for the cached development-mode factories."""

    def test_development_services(self, fresh_factories):
        assert isinstance(get_config_store(), StaticConfigStore)
        assert isinstance(get_geo_service(), MockGeoService)
        assert isinstance(get_notification_service(), MockNotificationService)

    def test_factories_are_cached(self, fresh_factories):
        assert get_config_store() is get_config_store()
        assert get_geo_service() is get_geo_service()

    def test_reset_builds_new_instance(self, fresh_factories):
        first = get_geo_service()
        reset_geo_service()
        assert get_geo_service() is not first
