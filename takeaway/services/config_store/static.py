"""
Static (JSON file) Config Store

Serves store configuration, opening hours and holidays from a JSON seed
document held in memory. Used in development and tests; admin updates
change the in-memory copy only and are lost on restart.

Document layout (see ``takeaway/data/store.sample.json``):

    {
      "stores": [{"id": "default", "delivery_active_rule_type": "postcode", ...}],
      "opening_hours": [{"day_of_week": 5, "open_time": "16:00", "close_time": "00:00"}],
      "holidays": [{"holiday_date": "2026-12-25", "start_time": "00:00", "end_time": "23:59"}],
      "menu": {...}
    }
"""

import copy
import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from takeaway.services.availability import Holiday, OpeningHoursEntry
from takeaway.services.config_store.base import BaseConfigStore, StoreConfig

logger = logging.getLogger(__name__)


def load_seed_document(path: Union[str, Path]) -> dict[str, Any]:
    """Read and parse a seed JSON document."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class StaticConfigStore(BaseConfigStore):
    """
    In-memory config store built from a seed document.

    Args:
        document: Parsed seed document (deep-copied; the caller's dict is
            never modified)
    """

    def __init__(self, document: dict[str, Any]):
        document = copy.deepcopy(document)
        self._stores: dict[str, dict[str, Any]] = {
            str(s["id"]): s for s in document.get("stores", [])
        }
        self._hours = sorted(
            (OpeningHoursEntry.from_dict(h) for h in document.get("opening_hours", [])),
            key=lambda e: (e.day_of_week, e.open_time),
        )
        self._holidays = sorted(
            (Holiday.from_dict(h) for h in document.get("holidays", [])),
            key=lambda h: (h.date, h.start_time),
        )

        logger.info(
            f"StaticConfigStore loaded {len(self._stores)} store(s), "
            f"{len(self._hours)} opening-hours entries, {len(self._holidays)} holiday(s)"
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticConfigStore":
        return cls(load_seed_document(path))

    @property
    def backend_name(self) -> str:
        return "static"

    async def get_store_config(self, store_id: str) -> Optional[StoreConfig]:
        row = self._stores.get(store_id)
        if row is None:
            return None
        return StoreConfig.from_dict(copy.deepcopy(row))

    async def get_opening_hours(self, day_of_week: Optional[int] = None) -> list[OpeningHoursEntry]:
        if day_of_week is None:
            return list(self._hours)
        return [e for e in self._hours if e.day_of_week == day_of_week]

    async def get_holidays(self, on_date: date) -> list[Holiday]:
        return [h for h in self._holidays if h.date == on_date]

    async def get_upcoming_holidays(self, from_date: date) -> list[Holiday]:
        return [h for h in self._holidays if h.date >= from_date]

    async def set_active_rule_type(self, store_id: str, rule_type: str) -> Optional[StoreConfig]:
        row = self._stores.get(store_id)
        if row is None:
            return None
        row["delivery_active_rule_type"] = rule_type
        logger.info(f"Store {store_id}: delivery rule type set to {rule_type}")
        return await self.get_store_config(store_id)

    async def update_time_settings(
        self,
        store_id: str,
        **minutes: Optional[int],
    ) -> Optional[StoreConfig]:
        current = await self.get_store_config(store_id)
        if current is None:
            return None
        updated = current.with_time_settings(**minutes)
        self._stores[store_id].update({
            k: v for k, v in updated.to_dict().items()
            if k.endswith("_minutes")
        })
        logger.info(f"Store {store_id}: time settings updated {minutes}")
        return updated
