"""
Core module - Base abstractions

Provides foundational components used across taskdock:
- Base exception hierarchy
- Configuration management
"""

from taskdock.core.config import Settings, get_settings, reset_settings
from taskdock.core.exceptions import ConfigurationError, TaskdockError

__all__ = [
    "Settings",
    "get_settings",
    "reset_settings",
    "TaskdockError",
    "ConfigurationError",
]
