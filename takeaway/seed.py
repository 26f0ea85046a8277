"""
Database Seeding

Loads the store configuration, opening hours, holidays and menu from the
JSON seed document (the same document the static config store serves)
into the database. Tables that already hold rows are left untouched.

Usage:
    from takeaway.seed import seed_database
    from takeaway.services.config_store import load_seed_document

    await seed_database(load_seed_document("takeaway/data/store.sample.json"))
"""

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from takeaway.models import (
    Category,
    HolidayRecord,
    MenuItem,
    OpeningHoursRecord,
    StoreConfigRecord,
)
from takeaway.services.availability import Holiday, OpeningHoursEntry

logger = logging.getLogger(__name__)

STORE_COLUMNS = {c.name for c in StoreConfigRecord.__table__.columns} - {"created_at", "updated_at"}


async def _is_empty(session: AsyncSession, model) -> bool:
    count = (await session.execute(select(func.count()).select_from(model))).scalar_one()
    return count == 0


async def seed_database(
    document: dict[str, Any],
    session_maker: async_sessionmaker[AsyncSession],
) -> dict[str, int]:
    """
    Insert seed rows into every empty table.

    Args:
        document: Parsed seed document
        session_maker: Session factory to write through

    Returns:
        Number of rows inserted per table (tables that already had data are skipped)
    """
    inserted: dict[str, int] = {}

    async with session_maker() as session:
        if await _is_empty(session, StoreConfigRecord):
            stores = document.get("stores", [])
            for store in stores:
                session.add(StoreConfigRecord(**{k: v for k, v in store.items() if k in STORE_COLUMNS}))
            inserted["store_config"] = len(stores)

        if await _is_empty(session, OpeningHoursRecord):
            hours = [OpeningHoursEntry.from_dict(h) for h in document.get("opening_hours", [])]
            for entry in hours:
                session.add(OpeningHoursRecord(
                    day_of_week=entry.day_of_week,
                    open_time=entry.open_time,
                    close_time=entry.close_time,
                    is_closed=entry.is_closed,
                ))
            inserted["store_opening_hours"] = len(hours)

        if await _is_empty(session, HolidayRecord):
            holidays = [Holiday.from_dict(h) for h in document.get("holidays", [])]
            for holiday in holidays:
                session.add(HolidayRecord(
                    holiday_date=holiday.date,
                    start_time=holiday.start_time,
                    end_time=holiday.end_time,
                    description=holiday.description,
                ))
            inserted["store_holidays"] = len(holidays)

        if await _is_empty(session, Category):
            categories = document.get("menu", {}).get("categories", [])
            item_count = 0
            for cat in categories:
                session.add(Category(
                    id=cat["id"],
                    name=cat["name"],
                    display_order=cat.get("display_order", 0),
                ))
                for position, item in enumerate(cat.get("items", []), start=1):
                    session.add(MenuItem(
                        id=item["id"],
                        category_id=cat["id"],
                        name=item["name"],
                        description=item.get("description") or "",
                        price_pence=int(item["price_pence"]),
                        image_url=item.get("image_url"),
                        is_available=item.get("is_available", True),
                        display_order=item.get("display_order", position),
                    ))
                    item_count += 1
            inserted["categories"] = len(categories)
            inserted["menu_items"] = item_count

        await session.commit()

    for table, count in inserted.items():
        logger.info(f"Seeded {count} row(s) into {table}")
    if not inserted:
        logger.info("Database is not empty, nothing seeded")
    return inserted
