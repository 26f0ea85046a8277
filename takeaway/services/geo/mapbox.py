"""
Mapbox Geo Service Implementation

Production implementation using the Mapbox Geocoding v5 and Directions
Matrix APIs over ``httpx``. Used when MAPS_PROVIDER=mapbox (the default)
outside development.

Requirements:
    - MAPBOX_TOKEN must be set in environment
"""

import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from takeaway.core.config import get_settings
from takeaway.services.geo.base import BaseGeoService, Coordinate, METERS_PER_MILE

logger = logging.getLogger(__name__)

GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places/{query}.json"
MATRIX_URL = "https://api.mapbox.com/directions-matrix/v1/mapbox/driving/{coordinates}"


class MapboxGeoService(BaseGeoService):
    """
    Mapbox geocoding/routing service.

    Args:
        client: Optional pre-built ``httpx.AsyncClient`` (tests inject one
            backed by ``httpx.MockTransport``)
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        settings = get_settings()

        if not settings.mapbox_token:
            raise ValueError(
                "MAPBOX_TOKEN is required when MAPS_PROVIDER=mapbox. "
                "Set it in your .env file or environment variables."
            )

        self._token = settings.mapbox_token
        self._country = settings.geo_country.lower()
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.geo_timeout_seconds)
        )

        logger.info("MapboxGeoService initialized")

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mapbox"

    async def _get_json(self, url: str, params: dict[str, Any]) -> Optional[dict]:
        """GET a Mapbox endpoint, returning None on any HTTP-level failure."""
        try:
            response = await self._client.get(
                url, params={"access_token": self._token, **params}
            )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException:
            logger.error(f"Mapbox: Timeout calling {url.split('?')[0]}")
        except httpx.HTTPStatusError as e:
            logger.error(f"Mapbox: HTTP {e.response.status_code} from API")
        except httpx.HTTPError as e:
            logger.error(f"Mapbox: Transport error - {e}")
        except ValueError:
            logger.error("Mapbox: Response was not valid JSON")
        return None

    async def geocode(self, query: str) -> Optional[Coordinate]:
        """Forward-geocode a query, biased to the configured country."""
        if not query or not query.strip():
            return None

        data = await self._get_json(
            GEOCODING_URL.format(query=quote(query.strip(), safe="")),
            {"limit": 1, "country": self._country},
        )
        if not data:
            return None

        features = data.get("features") or []
        if not features:
            logger.info(f"Mapbox: No geocoding match - {query}")
            return None

        # Mapbox returns [lng, lat]
        center = features[0].get("center") if isinstance(features[0], dict) else None
        if not isinstance(center, list) or len(center) != 2:
            logger.error(f"Mapbox: Malformed geocoding response - {query}")
            return None

        lng, lat = center
        return Coordinate(lat=float(lat), lng=float(lng))

    async def driving_distance_miles(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> Optional[float]:
        """Driving distance from the Directions Matrix API."""
        coordinates = f"{origin.lng},{origin.lat};{destination.lng},{destination.lat}"
        data = await self._get_json(
            MATRIX_URL.format(coordinates=coordinates),
            {"annotations": "distance"},
        )
        if not data:
            return None

        try:
            meters = data["distances"][0][1]
        except (KeyError, IndexError, TypeError):
            meters = None

        if not isinstance(meters, (int, float)):
            logger.info("Mapbox: No route between points")
            return None

        return meters / METERS_PER_MILE

    async def health_check(self) -> bool:
        """Geocode a well-known place to verify the token works."""
        return await self.geocode("London") is not None

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
