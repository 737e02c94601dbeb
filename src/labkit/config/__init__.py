"""
labkit configuration.

Pydantic-based settings read from LABKIT_* environment variables and
an optional .env file, plus the core layout resolved from them.
"""

from labkit.config.layout import CoreLayout
from labkit.config.settings import Settings, get_settings

__all__ = [
    "CoreLayout",
    "Settings",
    "get_settings",
]
