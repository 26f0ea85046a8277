"""
Mock Geo Service Implementation

Simulates a geocoding/routing provider without making real API calls.
Used in development mode (ENV_MODE=development) for local testing.

Behavior:
    - Geocodes deterministically: the same query always lands on the same
      point, scattered within a few miles of a centre point
    - Driving distance is the great-circle distance times a road factor
    - Optional simulated latency and random failure rate for testing
      error handling
    - ``known_locations`` pins specific queries to exact coordinates
"""

import asyncio
import hashlib
import logging
import random
from typing import Optional

from takeaway.services.geo.base import BaseGeoService, Coordinate, haversine_miles
from takeaway.services.postcodes import normalize_uk_postcode

logger = logging.getLogger(__name__)


class MockGeoService(BaseGeoService):
    """
    Mock implementation of the geo service.

    Attributes:
        center: Point around which mock coordinates are generated
        spread_degrees: Maximum lat/lng offset from the centre
        road_factor: Multiplier turning straight-line miles into driving miles
        failure_rate: Probability of simulated API failure (0.0-1.0)
        min_latency: Minimum response time in seconds
        max_latency: Maximum response time in seconds

    Example:
        >>> service = MockGeoService(failure_rate=0.0, max_latency=0.0)
        >>> point = await service.geocode("WF9 4PY")
        >>> point == await service.geocode("wf94py")
        True
    """

    # Hemsworth, West Yorkshire
    DEFAULT_CENTER = Coordinate(lat=53.6126, lng=-1.3496)

    def __init__(
        self,
        center: Optional[Coordinate] = None,
        spread_degrees: float = 0.06,
        road_factor: float = 1.3,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
        known_locations: Optional[dict[str, Coordinate]] = None,
    ):
        self.center = center or self.DEFAULT_CENTER
        self.spread_degrees = spread_degrees
        self.road_factor = road_factor
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max_latency
        self.known_locations = {
            self._key(query): point
            for query, point in (known_locations or {}).items()
        }

        logger.info(
            f"MockGeoService initialized "
            f"(failure_rate={failure_rate:.0%}, road_factor={road_factor})"
        )

    @property
    def provider_name(self) -> str:
        """Return the provider name."""
        return "mock"

    @staticmethod
    def _key(query: str) -> str:
        return normalize_uk_postcode(query)

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        """Determine if this request should simulate a failure."""
        return random.random() < self.failure_rate

    def _scatter(self, key: str) -> Coordinate:
        digest = hashlib.sha256(key.encode("utf-8")).digest()
        # Two values in [-1, 1) derived from the digest
        dx = int.from_bytes(digest[:4], "big") / 2**31 - 1
        dy = int.from_bytes(digest[4:8], "big") / 2**31 - 1
        return Coordinate(
            lat=round(self.center.lat + dy * self.spread_degrees, 6),
            lng=round(self.center.lng + dx * self.spread_degrees, 6),
        )

    async def geocode(self, query: str) -> Optional[Coordinate]:
        """Geocode a query (mock implementation)."""
        await self._simulate_latency()

        key = self._key(query)
        if not key:
            return None

        if self._should_fail():
            logger.debug(f"Mock: Simulated geocode failure for {query!r}")
            return None

        point = self.known_locations.get(key) or self._scatter(key)
        logger.debug(f"Mock: Geocoded {query!r} -> {point}")
        return point

    async def driving_distance_miles(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> Optional[float]:
        """Approximate driving distance (mock implementation)."""
        await self._simulate_latency()

        if self._should_fail():
            logger.debug("Mock: Simulated routing failure")
            return None

        return round(haversine_miles(origin, destination) * self.road_factor, 2)

    async def health_check(self) -> bool:
        """Mock health check always returns True."""
        logger.debug("Mock: Geo health check passed")
        return True
