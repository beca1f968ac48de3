"""
==============================================================================
Configuration Package
==============================================================================

Centralized configuration management using Pydantic Settings.

Usage:
------
    from inventory_scanner.config import get_settings

    settings = get_settings()
    print(settings.camera_index)
    print(settings.scan_frequency)

==============================================================================
"""

from .settings import PATCH_SIZES, Settings, get_settings

__all__ = [
    "PATCH_SIZES",
    "Settings",
    "get_settings",
]
