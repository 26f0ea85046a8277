"""
Delivery Quote Orchestrator

Single entry point for pricing an order's fulfilment. Loads the store
configuration, picks the rule provider named by ``active_rule_type`` and
returns its decision unchanged.

``quote_delivery`` never raises: configuration problems, provider bugs and
unexpected collaborator errors are logged and reported as a non-deliverable
decision with a generic reason.

Usage:
    from takeaway.services.delivery import DeliveryQuoteService, QuoteRequest

    service = DeliveryQuoteService(get_config_store(), geo_factory=get_geo_service)
    decision = await service.quote_delivery(
        QuoteRequest(postcode="WF9 4PY", subtotal_pence=1500)
    )
"""

import logging
from typing import Callable, Optional

from takeaway.services.config_store.base import BaseConfigStore, StoreConfig
from takeaway.services.delivery.base import (
    BaseRuleProvider,
    DeliveryDecision,
    FulfillmentMode,
    QuoteRequest,
    RuleType,
)
from takeaway.services.delivery.distance import DistanceBandProvider
from takeaway.services.delivery.postcode import PostcodePrefixProvider
from takeaway.services.geo.base import BaseGeoService

logger = logging.getLogger(__name__)


class DeliveryQuoteService:
    """
    Quote orchestrator.

    Args:
        config_store: Source of store configuration
        geo_service: Geocoding/routing used by distance rules
        geo_factory: Builds the geo service on first use when ``geo_service``
            is not given; only distance quotes call it
        timeout_seconds: Upper bound for each geo call
    """

    def __init__(
        self,
        config_store: BaseConfigStore,
        geo_service: Optional[BaseGeoService] = None,
        geo_factory: Optional[Callable[[], BaseGeoService]] = None,
        timeout_seconds: float = 5.0,
    ):
        if geo_service is None and geo_factory is None:
            raise ValueError("Either geo_service or geo_factory is required")
        self.config_store = config_store
        self.geo_service = geo_service
        self.geo_factory = geo_factory
        self.timeout_seconds = timeout_seconds

    def _geo(self) -> BaseGeoService:
        if self.geo_service is None:
            self.geo_service = self.geo_factory()
        return self.geo_service

    def _provider_for(self, rule_type: RuleType, config: StoreConfig) -> BaseRuleProvider:
        if rule_type == RuleType.POSTCODE:
            return PostcodePrefixProvider()

        if config.location is None:
            raise ValueError(f"Store {config.id} has distance rules but no location")
        return DistanceBandProvider(
            self._geo(),
            config.location,
            timeout_seconds=self.timeout_seconds,
        )

    async def quote_delivery(self, request: QuoteRequest) -> DeliveryDecision:
        """
        Quote delivery (or collection) for a request.

        Args:
            request: Mode, postcode/address, subtotal and store id

        Returns:
            DeliveryDecision: Always returned, never raised
        """
        if request.mode == FulfillmentMode.COLLECTION:
            return DeliveryDecision(
                is_deliverable=True,
                fee_pence=0,
                min_order_pence=0,
                zone=None,
                debug={"engine": "collection"},
            )

        try:
            config = await self.config_store.get_store_config(request.store_id)
            if config is None:
                logger.warning(f"Quote requested for unknown store {request.store_id!r}")
                return DeliveryDecision.undeliverable(
                    "Store configuration not found",
                    engine="error",
                    store=request.store_id,
                )

            try:
                rule_type = RuleType(config.active_rule_type)
            except ValueError:
                logger.error(
                    f"Store {config.id}: invalid delivery rule type {config.active_rule_type!r}"
                )
                return DeliveryDecision.undeliverable(
                    "Invalid delivery rule type",
                    engine="error",
                    rule_type=config.active_rule_type,
                )

            provider = self._provider_for(rule_type, config)
            rules_config = (
                config.postcode_rules if rule_type == RuleType.POSTCODE else config.distance_rules
            )
            decision = await provider.quote(rules_config, request)

            logger.info(
                f"Quote [{provider.engine}] store={config.id} "
                f"deliverable={decision.is_deliverable} fee={decision.fee_pence} "
                f"reason={decision.reason}"
            )
            return decision

        except Exception as e:
            logger.exception(f"Error calculating delivery fee: {e}")
            return DeliveryDecision.undeliverable(
                "Error calculating delivery fee",
                engine="error",
                error=str(e),
            )
