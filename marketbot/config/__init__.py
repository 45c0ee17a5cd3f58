"""
Configuration package.

This package contains configuration loading and startup validation.
"""

from marketbot.config.config import Settings
from marketbot.config.config_validator import ConfigValidator, validate_and_log

__all__ = [
    "Settings",
    "ConfigValidator",
    "validate_and_log",
]
