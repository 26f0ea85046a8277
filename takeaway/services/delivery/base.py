"""
Delivery Quoting Types and Rule Provider Base Class

Defines the shared vocabulary of the quoting engine:

    - PostcodeRules / DistanceRules: parsed views over the opaque rule
      configuration held in the store config
    - QuoteRequest: what the caller wants quoted
    - DeliveryDecision: the uniform result every rule provider returns
    - BaseRuleProvider: the Strategy interface implemented by the
      postcode-prefix and distance-band providers

Rule configuration arrives as plain JSON-like dicts (JSONB in the database,
a JSON file in development). ``from_dict`` raises ``ValueError`` on
malformed configuration; the orchestrator turns that into a generic
non-deliverable decision.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class FulfillmentMode(str, Enum):
    """How the customer receives the order."""
    DELIVERY = "delivery"
    COLLECTION = "collection"


class RuleType(str, Enum):
    """Delivery rule engines a store can activate."""
    POSTCODE = "postcode"
    DISTANCE = "distance"


def to_pence(amount: float) -> int:
    """Convert a currency amount in pounds to integer pence."""
    return int(round(amount * 100))


# =============================================================================
# RULE CONFIGURATION
# =============================================================================

@dataclass(frozen=True)
class PostcodeArea:
    """A prefix zone: postcode prefix plus flat fee in pounds."""
    pattern: str
    fee: float


@dataclass(frozen=True)
class PostcodeRules:
    """
    Postcode-prefix delivery rules.

    Attributes:
        normalize_uk_postcode: Whether input postcodes are UK-normalized
        default_min_order_threshold: Minimum order in pounds
        default_extra_fee_if_below_threshold: Surcharge in pounds applied
            when the subtotal is under the threshold
        areas: Prefix zones in configured order
    """
    normalize_uk_postcode: bool = True
    default_min_order_threshold: float = 0.0
    default_extra_fee_if_below_threshold: float = 0.0
    areas: tuple[PostcodeArea, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "PostcodeRules":
        if not isinstance(data, dict):
            raise ValueError("Postcode rules must be an object")

        raw_areas = data.get("areas") or []
        if not isinstance(raw_areas, list):
            raise ValueError("Postcode rules 'areas' must be a list")

        areas = []
        for raw in raw_areas:
            pattern = raw.get("pattern")
            # Seed files written by the admin tool use fee_gbp
            fee = raw.get("fee", raw.get("fee_gbp"))
            if not isinstance(pattern, str) or fee is None:
                raise ValueError(f"Malformed postcode area: {raw!r}")
            areas.append(PostcodeArea(pattern=pattern, fee=float(fee)))

        return cls(
            normalize_uk_postcode=bool(data.get("normalize_uk_postcode", True)),
            default_min_order_threshold=float(data.get("default_min_order_threshold") or 0),
            default_extra_fee_if_below_threshold=float(
                data.get("default_extra_fee_if_below_threshold") or 0
            ),
            areas=tuple(areas),
        )


@dataclass(frozen=True)
class DistanceBand:
    """
    A distance band.

    ``fee_if_subtotal_lt`` is carried for schema parity; with the current
    rules only ``fee_if_subtotal_gte`` is ever charged.
    """
    max_distance: float
    fee_if_subtotal_gte: float
    fee_if_subtotal_lt: float


@dataclass(frozen=True)
class DistanceRules:
    """
    Distance-band delivery rules (miles).

    Attributes:
        unit: Always "miles"
        bands: Bands sorted ascending by ``max_distance``
        no_service_beyond: Hard delivery radius in miles
    """
    no_service_beyond: float
    bands: tuple[DistanceBand, ...] = ()
    unit: str = "miles"

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "DistanceRules":
        if not isinstance(data, dict):
            raise ValueError("Distance rules must be an object")

        unit = data.get("unit", "miles")
        if unit != "miles":
            raise ValueError(f"Unsupported distance unit: {unit!r}")

        if data.get("no_service_beyond") is None:
            raise ValueError("Distance rules require 'no_service_beyond'")

        bands = []
        for raw in data.get("bands") or []:
            try:
                bands.append(DistanceBand(
                    max_distance=float(raw["max_distance"]),
                    fee_if_subtotal_gte=float(raw["fee_if_subtotal_gte"]),
                    fee_if_subtotal_lt=float(raw.get("fee_if_subtotal_lt", raw["fee_if_subtotal_gte"])),
                ))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Malformed distance band: {raw!r}") from e

        return cls(
            no_service_beyond=float(data["no_service_beyond"]),
            bands=tuple(sorted(bands, key=lambda b: b.max_distance)),
            unit=unit,
        )


# =============================================================================
# REQUEST / DECISION
# =============================================================================

@dataclass
class QuoteRequest:
    """
    A delivery quote request.

    Attributes:
        mode: Delivery or collection
        postcode: Customer postcode (raw, as typed)
        address: Customer address line; preferred over postcode for geocoding
        subtotal_pence: Basket subtotal in pence
        store_id: Store configuration to quote against
    """
    mode: FulfillmentMode = FulfillmentMode.DELIVERY
    postcode: str = ""
    address: str = ""
    subtotal_pence: int = 0
    store_id: str = "default"


@dataclass
class DeliveryDecision:
    """
    Uniform result returned by every rule provider.

    Attributes:
        is_deliverable: Whether the order can be fulfilled as requested
        fee_pence: Delivery fee in pence
        min_order_pence: Minimum subtotal in pence
        zone: Human label of the matched rule
        reason: Why the order is not deliverable (None when it is)
        debug: Diagnostic trace; callers must not depend on its shape
    """
    is_deliverable: bool
    fee_pence: int = 0
    min_order_pence: int = 0
    zone: Optional[str] = None
    reason: Optional[str] = None
    debug: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def undeliverable(
        cls,
        reason: str,
        min_order_pence: int = 0,
        **debug: Any,
    ) -> "DeliveryDecision":
        """Build a non-deliverable decision with a zero fee."""
        return cls(
            is_deliverable=False,
            fee_pence=0,
            min_order_pence=min_order_pence,
            zone=None,
            reason=reason,
            debug=debug,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "is_deliverable": self.is_deliverable,
            "fee_pence": self.fee_pence,
            "min_order_pence": self.min_order_pence,
            "zone": self.zone,
            "reason": self.reason,
            "debug": self.debug,
        }


# =============================================================================
# PROVIDER INTERFACE
# =============================================================================

class BaseRuleProvider(ABC):
    """
    Abstract base class for delivery rule providers.

    Providers receive the raw rule configuration and the request, and must
    return a ``DeliveryDecision`` for any address input. Only configuration
    errors are allowed to raise.
    """

    @property
    @abstractmethod
    def engine(self) -> str:
        """Name recorded in ``DeliveryDecision.debug['engine']``."""
        pass

    @abstractmethod
    async def quote(
        self,
        rules_config: Optional[dict[str, Any]],
        request: QuoteRequest,
    ) -> DeliveryDecision:
        """
        Price a delivery request.

        Args:
            rules_config: Opaque rule configuration for this engine
            request: The quote request

        Returns:
            DeliveryDecision: Priced (or rejected) delivery
        """
        pass
