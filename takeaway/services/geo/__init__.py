"""
Geo Service Factory

Provides a single entry point for obtaining a geo service instance.
Selects the mock service in development and the configured maps provider
(Mapbox or Google Maps) otherwise.

Usage:
    from takeaway.services.geo import get_geo_service

    geo_service = get_geo_service()
    point = await geo_service.geocode("WF9 4PY")
"""

import logging
from functools import lru_cache

from takeaway.core.config import MapsProvider, get_settings
from takeaway.services.geo.base import BaseGeoService, Coordinate, haversine_miles
from takeaway.services.geo.google import GoogleGeoService
from takeaway.services.geo.mapbox import MapboxGeoService
from takeaway.services.geo.mock import MockGeoService

logger = logging.getLogger(__name__)


@lru_cache()
def get_geo_service() -> BaseGeoService:
    """
    Get the configured geo service instance.

    Returns:
        BaseGeoService: Configured geo service instance

    Raises:
        ValueError: If a real provider is selected but its key is missing
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Geo Service: Using MockGeoService (development mode)")
        return MockGeoService(
            failure_rate=0.05,  # 5% simulated failures
            min_latency=0.05,
            max_latency=0.3,
        )

    logger.info(
        f"Geo Service: Using {settings.maps_provider.value} "
        f"({settings.env_mode.value} mode)"
    )
    if settings.maps_provider == MapsProvider.GOOGLE:
        return GoogleGeoService()
    return MapboxGeoService()


def reset_geo_service() -> None:
    """
    Clear the cached geo service instance.

    Useful for testing or when configuration changes at runtime.
    """
    get_geo_service.cache_clear()
    logger.debug("Geo service cache cleared")


__all__ = [
    "get_geo_service",
    "reset_geo_service",
    "BaseGeoService",
    "Coordinate",
    "haversine_miles",
    "MockGeoService",
    "MapboxGeoService",
    "GoogleGeoService",
]
