"""Tests for the static and database config stores."""

from datetime import date, time

import pytest

from takeaway.seed import seed_database
from takeaway.services.config_store import StaticConfigStore, StoreConfig
from takeaway.services.config_store.database import DatabaseConfigStore


class TestStoreConfig:
    """Tests for StoreConfig conversions."""

    def test_from_dict_maps_delivery_buffer_column(self, seed_document):
        config = StoreConfig.from_dict(seed_document["stores"][0])
        assert config.delivery_buffer_minutes == 15
        assert config.to_dict()["delivery_buffer_before_close_minutes"] == 15

    def test_defaults_for_missing_minutes(self):
        config = StoreConfig.from_dict({"id": "s1"})
        assert config.active_rule_type == "postcode"
        assert config.collection_lead_time_minutes == 15
        assert config.delivery_lead_time_minutes == 45
        assert config.location is None

    def test_with_time_settings_ignores_none_and_unknown(self, seed_document):
        config = StoreConfig.from_dict(seed_document["stores"][0])
        updated = config.with_time_settings(
            collection_lead_time_minutes=20,
            delivery_buffer_minutes=None,
            name=5,
        )
        assert updated.collection_lead_time_minutes == 20
        assert updated.delivery_buffer_minutes == 15
        assert updated.name == "China Palace"


class TestStaticConfigStore:
    """Tests for StaticConfigStore."""

    async def test_get_store_config(self, static_store):
        config = await static_store.get_store_config("default")
        assert config.name == "China Palace"
        assert config.active_rule_type == "postcode"
        assert config.location.lat == pytest.approx(53.5958)
        assert await static_store.get_store_config("missing") is None

    async def test_caller_document_not_modified(self, seed_document):
        store = StaticConfigStore(seed_document)
        await store.set_active_rule_type("default", "distance")
        assert seed_document["stores"][0]["delivery_active_rule_type"] == "postcode"

    async def test_returned_rules_are_copies(self, static_store):
        config = await static_store.get_store_config("default")
        config.postcode_rules["areas"].clear()
        again = await static_store.get_store_config("default")
        assert len(again.postcode_rules["areas"]) == 5

    async def test_opening_hours_by_day(self, static_store):
        friday = await static_store.get_opening_hours(5)
        assert [(e.open_time, e.close_time) for e in friday] == [
            (time(12), time(14)),
            (time(16), time(0)),
        ]
        assert len(await static_store.get_opening_hours()) == 8

    async def test_holidays(self, static_store):
        christmas = await static_store.get_holidays(date(2026, 12, 25))
        assert [h.description for h in christmas] == ["Christmas Day"]
        upcoming = await static_store.get_upcoming_holidays(date(2026, 12, 26))
        assert [h.date for h in upcoming] == [date(2026, 12, 26), date(2027, 1, 1)]

    async def test_set_active_rule_type(self, static_store):
        updated = await static_store.set_active_rule_type("default", "distance")
        assert updated.active_rule_type == "distance"
        assert (await static_store.get_store_config("default")).active_rule_type == "distance"
        assert await static_store.set_active_rule_type("missing", "distance") is None

    async def test_update_time_settings(self, static_store):
        updated = await static_store.update_time_settings(
            "default", delivery_lead_time_minutes=60, delivery_buffer_minutes=30
        )
        assert updated.delivery_lead_time_minutes == 60

        reloaded = await static_store.get_store_config("default")
        assert reloaded.delivery_lead_time_minutes == 60
        assert reloaded.delivery_buffer_minutes == 30
        assert reloaded.collection_lead_time_minutes == 15

    async def test_update_time_settings_unknown_store(self, static_store):
        assert await static_store.update_time_settings("missing", collection_buffer_minutes=5) is None


class TestDatabaseConfigStore:
    """Tests for DatabaseConfigStore against a seeded SQLite database."""

    @pytest.fixture
    def store(self, seeded_session_maker):
        return DatabaseConfigStore(seeded_session_maker)

    async def test_matches_static_store(self, store, static_store):
        from_db = await store.get_store_config("default")
        from_file = await static_store.get_store_config("default")
        assert from_db == from_file

    async def test_opening_hours(self, store):
        friday = await store.get_opening_hours(5)
        assert [e.open_time for e in friday] == [time(12), time(16)]
        monday = await store.get_opening_hours(1)
        assert monday[0].is_closed is True

    async def test_holidays(self, store):
        boxing_day = await store.get_holidays(date(2026, 12, 26))
        assert boxing_day[0].end_time == time(16, 59)
        assert len(await store.get_upcoming_holidays(date(2026, 1, 1))) == 3
        assert await store.get_upcoming_holidays(date(2027, 6, 1)) == []

    async def test_set_active_rule_type_persists(self, store):
        await store.set_active_rule_type("default", "distance")
        assert (await store.get_store_config("default")).active_rule_type == "distance"
        assert await store.set_active_rule_type("missing", "distance") is None

    async def test_update_time_settings_persists(self, store):
        await store.update_time_settings(
            "default", collection_buffer_minutes=10, delivery_buffer_minutes=25
        )
        reloaded = await store.get_store_config("default")
        assert reloaded.collection_buffer_minutes == 10
        assert reloaded.delivery_buffer_minutes == 25
        assert reloaded.delivery_lead_time_minutes == 45

    async def test_health_check(self, store):
        assert store.backend_name == "database"
        assert await store.health_check() is True


class TestSeedDatabase:
    """Tests for seed_database."""

    async def test_seeds_every_table(self, session_maker, seed_document):
        inserted = await seed_database(seed_document, session_maker)
        assert inserted == {
            "store_config": 1,
            "store_opening_hours": 8,
            "store_holidays": 3,
            "categories": 3,
            "menu_items": 9,
        }

    async def test_second_run_is_a_no_op(self, seeded_session_maker, seed_document):
        assert await seed_database(seed_document, seeded_session_maker) == {}
