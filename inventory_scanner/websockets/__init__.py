"""
==============================================================================
WebSocket Package
==============================================================================

Real-time WebSocket handlers for barcode scanning.

Handlers:
---------
- scanner: Live camera streaming and one-shot frame detection

==============================================================================
"""

from .scanner import router as scanner_router

__all__ = ["scanner_router"]
