"""
==============================================================================
API v1 Endpoints
==============================================================================

Routers:
--------
- health: Health check endpoints
- scan: Manual, upload and camera-snapshot scanning
- items: Scan history

==============================================================================
"""

from . import health, items, scan

__all__ = ["health", "items", "scan"]
