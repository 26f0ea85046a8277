"""
Core module initialization.
Exports configuration and logging utilities.
"""

from takeaway.core.config import get_settings, setup_logging, Settings, EnvironmentMode, MapsProvider

__all__ = ["get_settings", "setup_logging", "Settings", "EnvironmentMode", "MapsProvider"]
