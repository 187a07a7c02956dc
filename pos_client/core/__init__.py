"""
Core module initialization.
Exports configuration and logging utilities.
"""

from pos_client.core.config import (
    get_settings,
    setup_logging,
    get_logger,
    Settings,
    EnvironmentMode,
)

__all__ = ["get_settings", "setup_logging", "get_logger", "Settings", "EnvironmentMode"]
