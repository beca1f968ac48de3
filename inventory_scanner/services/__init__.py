"""
==============================================================================
Services Package - Business Logic
==============================================================================

Service layer between the API endpoints and the database.

==============================================================================
"""

from .inventory_service import UNKNOWN_ITEM_NAME, InventoryService

__all__ = ["InventoryService", "UNKNOWN_ITEM_NAME"]
