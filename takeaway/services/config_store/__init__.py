"""
Config Store Factory

Provides a single entry point for obtaining the store configuration
backend. Development reads the JSON seed file; staging and production read
the database.

Usage:
    from takeaway.services.config_store import get_config_store

    config_store = get_config_store()
    config = await config_store.get_store_config("default")
"""

import logging
from functools import lru_cache

from takeaway.core.config import get_settings
from takeaway.services.config_store.base import (
    TIME_SETTING_FIELDS,
    BaseConfigStore,
    StoreConfig,
)
from takeaway.services.config_store.static import StaticConfigStore, load_seed_document

logger = logging.getLogger(__name__)


@lru_cache()
def get_config_store() -> BaseConfigStore:
    """
    Get the configured config store instance.

    Returns:
        BaseConfigStore: Static store in development, database store otherwise
    """
    settings = get_settings()

    if settings.is_development:
        logger.info(f"Config Store: Using StaticConfigStore ({settings.store_seed_file})")
        return StaticConfigStore.from_file(settings.store_seed_file)

    from takeaway.database import async_session_maker
    from takeaway.services.config_store.database import DatabaseConfigStore

    logger.info(f"Config Store: Using DatabaseConfigStore ({settings.env_mode.value} mode)")
    return DatabaseConfigStore(async_session_maker)


def reset_config_store() -> None:
    """Clear the cached config store instance."""
    get_config_store.cache_clear()
    logger.debug("Config store cache cleared")


__all__ = [
    "get_config_store",
    "reset_config_store",
    "BaseConfigStore",
    "StoreConfig",
    "StaticConfigStore",
    "load_seed_document",
    "TIME_SETTING_FIELDS",
]
