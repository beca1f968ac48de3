"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request and response schemas using Pydantic for validation.

This package provides:
- Scan: Scan requests and scanned-item responses

==============================================================================
"""

from .scan import (
    CameraScanRequest,
    ClearItemsResponse,
    ScannedItemListResponse,
    ScannedItemResponse,
    ScanRequest,
    ScanResponse,
)

__all__ = [
    # Scan
    "CameraScanRequest",
    "ClearItemsResponse",
    "ScannedItemListResponse",
    "ScannedItemResponse",
    "ScanRequest",
    "ScanResponse",
]
