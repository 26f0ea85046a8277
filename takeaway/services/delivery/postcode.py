"""
Postcode-Prefix Rule Provider

Prices delivery by matching the customer's postcode against configured
prefix zones. The most specific (longest) prefix wins: with zones
``WF9 4`` and ``WF9``, the postcode ``WF9 4PY`` lands in ``WF9 4``.
Among equally long prefixes the first one configured wins.
"""

import logging
from typing import Any, Optional

from takeaway.services.delivery.base import (
    BaseRuleProvider,
    DeliveryDecision,
    PostcodeArea,
    PostcodeRules,
    QuoteRequest,
    to_pence,
)
from takeaway.services.postcodes import is_valid_uk_postcode_format, normalize_uk_postcode

logger = logging.getLogger(__name__)


def match_longest_prefix(
    postcode: str,
    areas: tuple[PostcodeArea, ...],
) -> Optional[PostcodeArea]:
    """
    Find the longest area pattern that prefixes ``postcode``.

    ``sorted`` is stable, so equal-length patterns keep their configured
    order.
    """
    by_specificity = sorted(areas, key=lambda area: len(area.pattern), reverse=True)
    for area in by_specificity:
        if postcode.startswith(area.pattern.upper()):
            return area
    return None


def quote_by_postcode_prefix(
    rules: PostcodeRules,
    postcode: Optional[str],
    subtotal_pence: int,
) -> DeliveryDecision:
    """
    Price a delivery against postcode prefix zones.

    Args:
        rules: Parsed postcode rules
        postcode: Raw customer postcode
        subtotal_pence: Basket subtotal in pence

    Returns:
        DeliveryDecision: Deliverable with fee (plus any small-order
        surcharge), or non-deliverable with a reason
    """
    if rules.normalize_uk_postcode:
        normalized = normalize_uk_postcode(postcode)
    else:
        normalized = (postcode or "").strip().upper()

    if not is_valid_uk_postcode_format(normalized):
        return DeliveryDecision.undeliverable(
            "Invalid postcode", engine="postcode", normalized=normalized
        )

    min_order_pence = to_pence(rules.default_min_order_threshold)

    match = match_longest_prefix(normalized, rules.areas)
    if match is None:
        return DeliveryDecision.undeliverable(
            "Out of delivery area",
            min_order_pence=min_order_pence,
            engine="postcode",
            normalized=normalized,
        )

    fee_pence = to_pence(match.fee)
    below_threshold = subtotal_pence / 100 < rules.default_min_order_threshold
    if below_threshold:
        fee_pence += to_pence(rules.default_extra_fee_if_below_threshold)

    return DeliveryDecision(
        is_deliverable=True,
        fee_pence=fee_pence,
        min_order_pence=min_order_pence,
        zone=match.pattern,
        reason=None,
        debug={
            "engine": "postcode",
            "normalized": normalized,
            "matched_prefix": match.pattern,
            "small_order_surcharge": below_threshold,
        },
    )


class PostcodePrefixProvider(BaseRuleProvider):
    """Rule provider backed by postcode prefix zones. Performs no I/O."""

    @property
    def engine(self) -> str:
        return "postcode"

    async def quote(
        self,
        rules_config: Optional[dict[str, Any]],
        request: QuoteRequest,
    ) -> DeliveryDecision:
        rules = PostcodeRules.from_dict(rules_config)
        decision = quote_by_postcode_prefix(rules, request.postcode, request.subtotal_pence)
        logger.debug(
            f"Postcode quote: {request.postcode!r} -> "
            f"deliverable={decision.is_deliverable} fee={decision.fee_pence}"
        )
        return decision
