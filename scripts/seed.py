"""
Database Seed Script

Creates the tables and seeds every empty one from the JSON seed document.
Tables that already hold rows are left alone, so re-running is safe.
Run from project root: python scripts/seed.py [--file path/to/store.json]
"""

import argparse
import asyncio
from pathlib import Path

from takeaway.core.config import get_settings, setup_logging
from takeaway.database import async_session_maker, engine, init_db
from takeaway.seed import seed_database
from takeaway.services.config_store import load_seed_document


async def main(path: Path) -> None:
    await init_db()
    try:
        await seed_database(load_seed_document(path), async_session_maker)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    setup_logging()
    parser = argparse.ArgumentParser(description="Seed the takeaway database")
    parser.add_argument("--file", type=Path, default=get_settings().store_seed_file)
    args = parser.parse_args()

    asyncio.run(main(args.file))
