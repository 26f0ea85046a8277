"""
Geo Service Abstract Base Class

Defines the interface contract for the geocoding/routing capability consumed
by the distance-band delivery rules. Mock, Mapbox and Google Maps
implementations all honour the same contract:

    - Failures (no match, timeouts, transport or API errors) are reported as
      ``None``, never raised. Retry policy, if any, lives in the adapter.
    - Distances are driving distances in miles.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

METERS_PER_MILE = 1609.344
EARTH_RADIUS_MILES = 3958.8


@dataclass(frozen=True)
class Coordinate:
    """
    A WGS84 point.

    Attributes:
        lat: Latitude in decimal degrees
        lng: Longitude in decimal degrees
    """
    lat: float
    lng: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"lat": self.lat, "lng": self.lng}


def haversine_miles(origin: Coordinate, destination: Coordinate) -> float:
    """Great-circle distance between two points in miles."""
    lat1, lng1 = math.radians(origin.lat), math.radians(origin.lng)
    lat2, lng2 = math.radians(destination.lat), math.radians(destination.lng)
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    s = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(s))


class BaseGeoService(ABC):
    """
    Abstract base class for geocoding/routing services.

    Example:
        >>> service = get_geo_service()
        >>> point = await service.geocode("WF9 4PY")
        >>> if point is not None:
        ...     miles = await service.driving_distance_miles(store, point)
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of the geo provider.

        Returns:
            str: Provider name (e.g., "mock", "mapbox", "google")
        """
        pass

    @abstractmethod
    async def geocode(self, query: str) -> Optional[Coordinate]:
        """
        Resolve a free-text address or postcode to a coordinate.

        Args:
            query: Address line or postcode

        Returns:
            Coordinate of the best match, or None if it cannot be resolved
        """
        pass

    @abstractmethod
    async def driving_distance_miles(
        self,
        origin: Coordinate,
        destination: Coordinate,
    ) -> Optional[float]:
        """
        Driving distance between two points.

        Args:
            origin: Start point (the store)
            destination: End point (the customer)

        Returns:
            Distance in miles, or None if no route could be calculated
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Verify connectivity to the geo service.

        Returns:
            bool: True if service is operational
        """
        pass
