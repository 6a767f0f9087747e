"""
Core Module

Provides foundational utilities used across the application:
- Configuration management
- Logging setup
"""

from .config import (
    DEFAULT_HMAC_SECRET,
    DEFAULT_TOKEN_VALIDITY_SECONDS,
    Settings,
    get_settings,
)
from .logger import get_logger, level_name, setup_logging

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "DEFAULT_HMAC_SECRET",
    "DEFAULT_TOKEN_VALIDITY_SECONDS",
    # Logging
    "setup_logging",
    "get_logger",
    "level_name",
]
