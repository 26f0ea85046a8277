"""
Distance-Band Rule Provider

Prices delivery by driving distance from the store. The customer's address
(or postcode, when no address is given) is geocoded, routed from the store
location, and the first band whose ``max_distance`` covers the trip sets
the fee.

Both external calls are bounded by a timeout; a timeout is treated exactly
like the provider returning no result.
"""

import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

from takeaway.services.delivery.base import (
    BaseRuleProvider,
    DeliveryDecision,
    DistanceBand,
    DistanceRules,
    QuoteRequest,
    to_pence,
)
from takeaway.services.geo.base import BaseGeoService, Coordinate

logger = logging.getLogger(__name__)

T = TypeVar("T")


def select_band(distance_miles: float, rules: DistanceRules) -> Optional[DistanceBand]:
    """First band (ascending) that covers ``distance_miles``."""
    for band in rules.bands:
        if distance_miles <= band.max_distance:
            return band
    return None


def format_band_zone(band: DistanceBand) -> str:
    return f"<= {band.max_distance:g}mi"


class DistanceBandProvider(BaseRuleProvider):
    """
    Rule provider backed by driving-distance bands.

    Args:
        geo_service: Geocoding/routing capability
        store_location: Where deliveries start from
        timeout_seconds: Upper bound for each geo call
    """

    def __init__(
        self,
        geo_service: BaseGeoService,
        store_location: Coordinate,
        timeout_seconds: float = 5.0,
    ):
        self.geo_service = geo_service
        self.store_location = store_location
        self.timeout_seconds = timeout_seconds

    @property
    def engine(self) -> str:
        return "distance"

    async def _bounded(self, call: Awaitable[T], what: str) -> Optional[T]:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(
                f"{self.geo_service.provider_name}: {what} timed out "
                f"after {self.timeout_seconds}s"
            )
            return None

    async def quote(
        self,
        rules_config: Optional[dict[str, Any]],
        request: QuoteRequest,
    ) -> DeliveryDecision:
        rules = DistanceRules.from_dict(rules_config)

        query = (request.address or "").strip() or (request.postcode or "").strip()
        customer: Optional[Coordinate] = None
        if query:
            customer = await self._bounded(self.geo_service.geocode(query), "geocode")
        if customer is None:
            return DeliveryDecision.undeliverable(
                "Unable to geocode address",
                engine="distance",
                address=request.address,
                postcode=request.postcode,
            )

        distance_miles = await self._bounded(
            self.geo_service.driving_distance_miles(self.store_location, customer),
            "route",
        )
        if distance_miles is None:
            return DeliveryDecision.undeliverable(
                "Unable to calculate route",
                engine="distance",
                customer=customer.to_dict(),
            )

        if distance_miles > rules.no_service_beyond:
            return DeliveryDecision.undeliverable(
                "Out of delivery range",
                engine="distance",
                distance_miles=distance_miles,
                max_range=rules.no_service_beyond,
            )

        band = select_band(distance_miles, rules)
        if band is None:
            return DeliveryDecision.undeliverable(
                "Out of delivery range",
                engine="distance",
                distance_miles=distance_miles,
            )

        # The lt fee is only reachable for a negative subtotal. The intended
        # threshold has not been defined, so both fields are kept as-is.
        subtotal = request.subtotal_pence / 100
        fee = band.fee_if_subtotal_gte if subtotal >= 0 else band.fee_if_subtotal_lt

        return DeliveryDecision(
            is_deliverable=True,
            fee_pence=to_pence(fee),
            min_order_pence=0,
            zone=format_band_zone(band),
            reason=None,
            debug={
                "engine": "distance",
                "distance_miles": distance_miles,
                "band": band.max_distance,
            },
        )
