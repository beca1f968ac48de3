"""
==============================================================================
Core Package
==============================================================================

Core infrastructure shared by the detection package and the API.

Modules:
--------
- exceptions: detection error taxonomy, AppException and factories
- dependencies: FastAPI dependency injection functions

Usage:
------
    from inventory_scanner.core import exceptions
    raise exceptions.invalid_barcode()

==============================================================================
"""

from .exceptions import (
    AppException,
    DecodeFailure,
    DetectionError,
    DeviceUnavailable,
    InputUnreadable,
    InvalidState,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "DecodeFailure",
    "DetectionError",
    "DeviceUnavailable",
    "InputUnreadable",
    "InvalidState",
    "register_exception_handlers",
]
