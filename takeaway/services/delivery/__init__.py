"""
Delivery Quoting

Usage:
    from takeaway.services.config_store import get_config_store
    from takeaway.services.delivery import DeliveryQuoteService, QuoteRequest
    from takeaway.services.geo import get_geo_service

    service = DeliveryQuoteService(get_config_store(), get_geo_service())
    decision = await service.quote_delivery(QuoteRequest(postcode="WF9 4PY"))
"""

from takeaway.services.delivery.base import (
    BaseRuleProvider,
    DeliveryDecision,
    DistanceRules,
    FulfillmentMode,
    PostcodeRules,
    QuoteRequest,
    RuleType,
    to_pence,
)
from takeaway.services.delivery.distance import DistanceBandProvider
from takeaway.services.delivery.orchestrator import DeliveryQuoteService
from takeaway.services.delivery.postcode import PostcodePrefixProvider

__all__ = [
    "DeliveryQuoteService",
    "BaseRuleProvider",
    "PostcodePrefixProvider",
    "DistanceBandProvider",
    "DeliveryDecision",
    "QuoteRequest",
    "FulfillmentMode",
    "RuleType",
    "PostcodeRules",
    "DistanceRules",
    "to_pence",
]
