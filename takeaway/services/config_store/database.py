"""
Database Config Store

Reads store configuration, opening hours and holidays from the
``store_config``, ``store_opening_hours`` and ``store_holidays`` tables.
Every method opens its own short-lived session, so a single instance is
safe to share across requests.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from takeaway.models import HolidayRecord, OpeningHoursRecord, StoreConfigRecord
from takeaway.services.availability import Holiday, OpeningHoursEntry
from takeaway.services.config_store.base import BaseConfigStore, StoreConfig

logger = logging.getLogger(__name__)


def _hours_from_record(record: OpeningHoursRecord) -> OpeningHoursEntry:
    return OpeningHoursEntry(
        day_of_week=record.day_of_week,
        open_time=record.open_time.replace(second=0, microsecond=0),
        close_time=record.close_time.replace(second=0, microsecond=0),
        is_closed=bool(record.is_closed),
    )


def _holiday_from_record(record: HolidayRecord) -> Holiday:
    return Holiday(
        date=record.holiday_date,
        start_time=record.start_time.replace(second=0, microsecond=0),
        end_time=record.end_time.replace(second=0, microsecond=0),
        description=record.description,
    )


class DatabaseConfigStore(BaseConfigStore):
    """
    SQLAlchemy-backed config store.

    Args:
        session_maker: Async session factory (``takeaway.database.async_session_maker``)
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    @property
    def backend_name(self) -> str:
        return "database"

    async def get_store_config(self, store_id: str) -> Optional[StoreConfig]:
        async with self.session_maker() as session:
            record = await session.get(StoreConfigRecord, store_id)
            if record is None:
                return None
            return StoreConfig.from_dict(record.to_dict())

    async def get_opening_hours(self, day_of_week: Optional[int] = None) -> list[OpeningHoursEntry]:
        query = select(OpeningHoursRecord).order_by(
            OpeningHoursRecord.day_of_week, OpeningHoursRecord.open_time
        )
        if day_of_week is not None:
            query = query.where(OpeningHoursRecord.day_of_week == day_of_week)

        async with self.session_maker() as session:
            result = await session.execute(query)
            return [_hours_from_record(r) for r in result.scalars().all()]

    async def get_holidays(self, on_date: date) -> list[Holiday]:
        query = (
            select(HolidayRecord)
            .where(HolidayRecord.holiday_date == on_date)
            .order_by(HolidayRecord.start_time)
        )
        async with self.session_maker() as session:
            result = await session.execute(query)
            return [_holiday_from_record(r) for r in result.scalars().all()]

    async def get_upcoming_holidays(self, from_date: date) -> list[Holiday]:
        query = (
            select(HolidayRecord)
            .where(HolidayRecord.holiday_date >= from_date)
            .order_by(HolidayRecord.holiday_date, HolidayRecord.start_time)
        )
        async with self.session_maker() as session:
            result = await session.execute(query)
            return [_holiday_from_record(r) for r in result.scalars().all()]

    async def set_active_rule_type(self, store_id: str, rule_type: str) -> Optional[StoreConfig]:
        async with self.session_maker() as session:
            record = await session.get(StoreConfigRecord, store_id)
            if record is None:
                return None
            record.delivery_active_rule_type = rule_type
            await session.commit()
            await session.refresh(record)
            logger.info(f"Store {store_id}: delivery rule type set to {rule_type}")
            return StoreConfig.from_dict(record.to_dict())

    async def update_time_settings(
        self,
        store_id: str,
        **minutes: Optional[int],
    ) -> Optional[StoreConfig]:
        async with self.session_maker() as session:
            record = await session.get(StoreConfigRecord, store_id)
            if record is None:
                return None

            updated = StoreConfig.from_dict(record.to_dict()).with_time_settings(**minutes)
            for column, value in updated.to_dict().items():
                if column.endswith("_minutes"):
                    setattr(record, column, value)

            await session.commit()
            logger.info(f"Store {store_id}: time settings updated {minutes}")
            return updated

    async def health_check(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
