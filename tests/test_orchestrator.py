"""Tests for DeliveryQuoteService (the quote orchestrator)."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from takeaway.services.config_store import StaticConfigStore
from takeaway.services.delivery import DeliveryQuoteService, FulfillmentMode, QuoteRequest
from takeaway.services.geo import Coordinate, MockGeoService

STORE_LOCATION = Coordinate(lat=53.5958, lng=-1.2835)


def _service(document, geo):
    return DeliveryQuoteService(StaticConfigStore(document), geo, timeout_seconds=1.0)


@pytest.fixture
def distance_document(seed_document):
    doc = copy.deepcopy(seed_document)
    doc["stores"][0]["delivery_active_rule_type"] = "distance"
    return doc


class TestQuoteDelivery:
    """Tests for DeliveryQuoteService.quote_delivery."""

    async def test_collection_is_free_and_skips_lookup(self, mock_geo):
        store = AsyncMock()
        service = DeliveryQuoteService(store, mock_geo)

        decision = await service.quote_delivery(QuoteRequest(mode=FulfillmentMode.COLLECTION))

        assert decision.is_deliverable is True
        assert decision.fee_pence == 0
        assert decision.min_order_pence == 0
        assert decision.zone is None
        assert decision.debug["engine"] == "collection"
        store.get_store_config.assert_not_called()

    async def test_geo_built_only_for_distance_rules(self, seed_document):
        factory = MagicMock(side_effect=ValueError("MAPBOX_TOKEN is required"))
        service = DeliveryQuoteService(StaticConfigStore(seed_document), geo_factory=factory)

        collection = await service.quote_delivery(QuoteRequest(mode=FulfillmentMode.COLLECTION))
        postcode = await service.quote_delivery(QuoteRequest(postcode="WF9 4PY", subtotal_pence=1500))

        assert collection.is_deliverable is True
        assert postcode.fee_pence == 230
        factory.assert_not_called()

    async def test_geo_factory_failure_gives_generic_error(self, distance_document):
        factory = MagicMock(side_effect=ValueError("MAPBOX_TOKEN is required"))
        service = DeliveryQuoteService(StaticConfigStore(distance_document), geo_factory=factory)

        decision = await service.quote_delivery(QuoteRequest(postcode="WF9 4PY"))

        assert decision.is_deliverable is False
        assert decision.reason == "Error calculating delivery fee"
        factory.assert_called_once()

    def test_needs_a_geo_source(self, static_store):
        with pytest.raises(ValueError):
            DeliveryQuoteService(static_store)

    async def test_postcode_rules(self, seed_document, mock_geo):
        decision = await _service(seed_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF94PY", subtotal_pence=1500)
        )
        assert decision.is_deliverable is True
        assert decision.fee_pence == 230
        assert decision.zone == "WF9 4"

    async def test_postcode_rules_small_order(self, seed_document, mock_geo):
        decision = await _service(seed_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY", subtotal_pence=500)
        )
        assert decision.fee_pence == 330

    async def test_distance_rules(self, distance_document):
        geo = MockGeoService(
            center=STORE_LOCATION,
            known_locations={"WF9 4PY": Coordinate(lat=53.61, lng=-1.30)},
        )
        decision = await _service(distance_document, geo).quote_delivery(
            QuoteRequest(postcode="wf94py", subtotal_pence=1500)
        )
        # About 1.55 road miles: second band
        assert decision.debug["engine"] == "distance"
        assert decision.is_deliverable is True
        assert decision.fee_pence == 250
        assert decision.zone == "<= 3mi"

    async def test_unknown_store(self, seed_document, mock_geo):
        decision = await _service(seed_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY", store_id="nowhere")
        )
        assert decision.is_deliverable is False
        assert decision.reason == "Store configuration not found"

    async def test_invalid_rule_type(self, seed_document, mock_geo):
        seed_document["stores"][0]["delivery_active_rule_type"] = "zones"
        decision = await _service(seed_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY")
        )
        assert decision.reason == "Invalid delivery rule type"

    async def test_missing_rules_gives_generic_error(self, seed_document, mock_geo):
        seed_document["stores"][0]["delivery_postcode_rules"] = None
        decision = await _service(seed_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY")
        )
        assert decision.is_deliverable is False
        assert decision.reason == "Error calculating delivery fee"
        assert decision.debug["engine"] == "error"
        assert "error" in decision.debug

    async def test_distance_without_store_location(self, distance_document, mock_geo):
        del distance_document["stores"][0]["location_lat"]
        decision = await _service(distance_document, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY")
        )
        assert decision.reason == "Error calculating delivery fee"

    async def test_config_store_exception_never_propagates(self, mock_geo):
        store = AsyncMock()
        store.get_store_config.side_effect = RuntimeError("connection reset")
        decision = await DeliveryQuoteService(store, mock_geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY")
        )
        assert decision.reason == "Error calculating delivery fee"
        assert decision.debug["error"] == "connection reset"

    async def test_geo_exception_never_propagates(self, distance_document):
        geo = AsyncMock()
        geo.geocode.side_effect = RuntimeError("boom")
        decision = await _service(distance_document, geo).quote_delivery(
            QuoteRequest(postcode="WF9 4PY")
        )
        assert decision.reason == "Error calculating delivery fee"
