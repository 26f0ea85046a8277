"""
Google Maps Geo Service Implementation

Production implementation using the Google Maps Geocoding and Distance
Matrix APIs. Used when MAPS_PROVIDER=google outside development.

Requirements:
    - GOOGLE_MAPS_API_KEY must be set in environment
    - Geocoding API and Distance Matrix API enabled in Google Cloud Console

API Documentation:
    https://developers.google.com/maps/documentation/geocoding
    https://developers.google.com/maps/documentation/distance-matrix
"""

import asyncio
import logging
from typing import Optional

import googlemaps
from googlemaps.exceptions import ApiError, Timeout, TransportError

from takeaway.core.config import get_settings
from takeaway.services.geo.base import BaseGeoService, Coordinate, METERS_PER_MILE

logger = logging.getLogger(__name__)


class GoogleGeoService(BaseGeoService):
    """
    Production Google Maps geo service implementation.

    The googlemaps client is synchronous; calls run in a worker thread so
    they do not block the event loop.

    Configuration:
        Requires GOOGLE_MAPS_API_KEY environment variable.
    """

    def __init__(self):
        """
        Initialize Google Maps client with API key.

        Raises:
            ValueError: If GOOGLE_MAPS_API_KEY is not configured
        """
        settings = get_settings()

        if not settings.google_maps_api_key:
            raise ValueError(
                "GOOGLE_MAPS_API_KEY is required when MAPS_PROVIDER=google. "
                "Set it in your .env file or environment variables."
            )

        self._client = googlemaps.Client(
            key=settings.google_maps_api_key,
            timeout=settings.geo_timeout_seconds,
            retry_over_query_limit=False,
        )
        self._country = settings.geo_country.upper()

        logger.info("GoogleGeoService initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "google"

    async def geocode(self, query: str) -> Optional[Coordinate]:
        """Geocode an address or postcode with the Geocoding API."""
        if not query or not query.strip():
            return None

        logger.debug(f"Google: Geocoding - {query}")

        try:
            results = await asyncio.to_thread(
                self._client.geocode,
                query,
                components={"country": self._country},
            )
        except Timeout:
            logger.error("Google: Geocoding timeout")
            return None
        except ApiError as e:
            logger.error(f"Google: Geocoding API error - {e}")
            return None
        except TransportError as e:
            logger.error(f"Google: Transport error - {e}")
            return None

        if not results:
            logger.info(f"Google: No geocoding match - {query}")
            return None

        location = results[0].get("geometry", {}).get("location", {})
        lat = location.get("lat")
        lng = location.get("lng")
        if lat is None or lng is None:
            return None

        return Coordinate(lat=float(lat), lng=float(lng))

    async def driving_distance_miles(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> Optional[float]:
        """Driving distance using the Distance Matrix API."""
        try:
            result = await asyncio.to_thread(
                self._client.distance_matrix,
                origins=[(origin.lat, origin.lng)],
                destinations=[(destination.lat, destination.lng)],
                mode="driving",
                units="imperial",
            )
        except (Timeout, ApiError, TransportError) as e:
            logger.error(f"Google: Distance calculation error - {e}")
            return None

        try:
            element = result["rows"][0]["elements"][0]
        except (KeyError, IndexError):
            logger.error("Google: Malformed distance matrix response")
            return None

        if element.get("status") != "OK":
            logger.info(f"Google: No route - {element.get('status')}")
            return None

        meters = (element.get("distance") or {}).get("value")
        if not isinstance(meters, (int, float)):
            logger.error("Google: Malformed distance matrix response")
            return None

        return meters / METERS_PER_MILE

    async def health_check(self) -> bool:
        """
        Verify Google Maps API connectivity.

        Makes a simple geocode request to verify credentials and connectivity.
        """
        try:
            result = await asyncio.to_thread(self._client.geocode, "London")
        except (Timeout, ApiError, TransportError) as e:
            logger.error(f"Google: Health check failed - {e}")
            return False

        return bool(result)
