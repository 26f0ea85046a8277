"""
Store Configuration Store Abstract Base Class

The ConfigStore is the single source of store configuration, opening hours
and holiday closures for the quoting and availability engines. The engines
only read from it; admin endpoints use the two update methods.

Implementations:
    - StaticConfigStore: JSON seed file, held in memory (development/tests)
    - DatabaseConfigStore: SQLAlchemy tables (staging/production)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Optional

from takeaway.services.availability import Holiday, OpeningHoursEntry
from takeaway.services.geo.base import Coordinate

DEFAULT_COLLECTION_LEAD_MINUTES = 15
DEFAULT_COLLECTION_BUFFER_MINUTES = 0
DEFAULT_DELIVERY_LEAD_MINUTES = 45
DEFAULT_DELIVERY_BUFFER_MINUTES = 15

TIME_SETTING_FIELDS = (
    "collection_lead_time_minutes",
    "collection_buffer_minutes",
    "delivery_lead_time_minutes",
    "delivery_buffer_minutes",
)


def _minutes(value: Any, default: int) -> int:
    return default if value is None else int(value)


@dataclass(frozen=True)
class StoreConfig:
    """
    Store configuration snapshot.

    ``active_rule_type`` is kept as the raw stored string so that an
    unrecognised value reaches the orchestrator and is reported there.
    The rule dicts are opaque here; rule providers parse them.

    Attributes:
        id: Store identifier
        name: Display name
        active_rule_type: "postcode" or "distance"
        postcode_rules: Raw postcode-prefix rules
        distance_rules: Raw distance-band rules
        location: Store coordinates (required for distance rules)
        collection_lead_time_minutes: Minutes before the first collection slot
        collection_buffer_minutes: Minutes before close with no collection slots
        delivery_lead_time_minutes: Minutes before the first delivery slot
        delivery_buffer_minutes: Minutes before close with no delivery slots
    """
    id: str
    active_rule_type: str
    name: str = ""
    currency: str = "£"
    address: Optional[str] = None
    postcode: Optional[str] = None
    location: Optional[Coordinate] = None
    postcode_rules: Optional[dict[str, Any]] = None
    distance_rules: Optional[dict[str, Any]] = None
    collection_lead_time_minutes: int = DEFAULT_COLLECTION_LEAD_MINUTES
    collection_buffer_minutes: int = DEFAULT_COLLECTION_BUFFER_MINUTES
    delivery_lead_time_minutes: int = DEFAULT_DELIVERY_LEAD_MINUTES
    delivery_buffer_minutes: int = DEFAULT_DELIVERY_BUFFER_MINUTES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoreConfig":
        """Build from a stored row/document using the persisted column names."""
        lat, lng = data.get("location_lat"), data.get("location_lng")
        location = None
        if lat is not None and lng is not None:
            location = Coordinate(lat=float(lat), lng=float(lng))

        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            currency=data.get("currency") or "£",
            address=data.get("address"),
            postcode=data.get("postcode"),
            location=location,
            active_rule_type=data.get("delivery_active_rule_type") or "postcode",
            postcode_rules=data.get("delivery_postcode_rules"),
            distance_rules=data.get("delivery_distance_rules"),
            collection_lead_time_minutes=_minutes(
                data.get("collection_lead_time_minutes"), DEFAULT_COLLECTION_LEAD_MINUTES
            ),
            collection_buffer_minutes=_minutes(
                data.get("collection_buffer_minutes"), DEFAULT_COLLECTION_BUFFER_MINUTES
            ),
            delivery_lead_time_minutes=_minutes(
                data.get("delivery_lead_time_minutes"), DEFAULT_DELIVERY_LEAD_MINUTES
            ),
            delivery_buffer_minutes=_minutes(
                data.get("delivery_buffer_before_close_minutes"), DEFAULT_DELIVERY_BUFFER_MINUTES
            ),
        )

    def to_dict(self) -> dict:
        """Convert to the persisted column layout."""
        return {
            "id": self.id,
            "name": self.name,
            "currency": self.currency,
            "address": self.address,
            "postcode": self.postcode,
            "location_lat": self.location.lat if self.location else None,
            "location_lng": self.location.lng if self.location else None,
            "delivery_active_rule_type": self.active_rule_type,
            "delivery_postcode_rules": self.postcode_rules,
            "delivery_distance_rules": self.distance_rules,
            "collection_lead_time_minutes": self.collection_lead_time_minutes,
            "collection_buffer_minutes": self.collection_buffer_minutes,
            "delivery_lead_time_minutes": self.delivery_lead_time_minutes,
            "delivery_buffer_before_close_minutes": self.delivery_buffer_minutes,
        }

    def with_time_settings(self, **minutes: Optional[int]) -> "StoreConfig":
        """Copy with any non-None lead/buffer fields replaced."""
        changes = {k: int(v) for k, v in minutes.items() if k in TIME_SETTING_FIELDS and v is not None}
        return replace(self, **changes)


class BaseConfigStore(ABC):
    """
    Abstract base class for store configuration backends.

    Read methods return fresh objects on every call; callers may not rely
    on mutations being shared between calls.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend name (e.g., "static", "database")."""
        pass

    @abstractmethod
    async def get_store_config(self, store_id: str) -> Optional[StoreConfig]:
        """
        Load a store configuration.

        Returns:
            StoreConfig, or None if no store has this id
        """
        pass

    @abstractmethod
    async def get_opening_hours(self, day_of_week: Optional[int] = None) -> list[OpeningHoursEntry]:
        """
        Opening hours ordered by day and opening time.

        Args:
            day_of_week: Restrict to one weekday (0 = Sunday); all days if None
        """
        pass

    @abstractmethod
    async def get_holidays(self, on_date: date) -> list[Holiday]:
        """Holiday windows on a single date."""
        pass

    @abstractmethod
    async def get_upcoming_holidays(self, from_date: date) -> list[Holiday]:
        """Holiday windows on or after ``from_date``, ordered by date."""
        pass

    @abstractmethod
    async def set_active_rule_type(self, store_id: str, rule_type: str) -> Optional[StoreConfig]:
        """
        Switch the active delivery rule engine.

        Returns:
            The updated config, or None if the store does not exist
        """
        pass

    @abstractmethod
    async def update_time_settings(
        self,
        store_id: str,
        **minutes: Optional[int],
    ) -> Optional[StoreConfig]:
        """
        Update lead-time/buffer settings; None values are left unchanged.

        Returns:
            The updated config, or None if the store does not exist
        """
        pass

    async def health_check(self) -> bool:
        """Verify the backend is reachable."""
        return True
