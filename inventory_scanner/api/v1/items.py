"""
==============================================================================
Scanned Item Endpoints
==============================================================================

List and clear the scan history.

==============================================================================
"""

from fastapi import APIRouter, Depends

from inventory_scanner.core.dependencies import get_inventory_service
from inventory_scanner.schemas import (
    ClearItemsResponse,
    ScannedItemListResponse,
    ScannedItemResponse,
)
from inventory_scanner.services import InventoryService


router = APIRouter(prefix="/items", tags=["Items"])


class ItemController:
    """Controller for scanned-item operations."""

    def __init__(self, service: InventoryService):
        self._service = service

    def list_items(self) -> ScannedItemListResponse:
        items = [ScannedItemResponse(**item.to_dict()) for item in self._service.list_items()]
        return ScannedItemListResponse(data=items, total=len(items))

    def clear_items(self) -> ClearItemsResponse:
        deleted = self._service.clear_items()
        return ClearItemsResponse(message="All items cleared", deleted=deleted)


@router.get("", response_model=ScannedItemListResponse)
async def list_items(service: InventoryService = Depends(get_inventory_service)):
    """List all scanned items, newest first."""
    return ItemController(service).list_items()


@router.delete("", response_model=ClearItemsResponse)
async def clear_items(service: InventoryService = Depends(get_inventory_service)):
    """Delete the whole scan history."""
    return ItemController(service).clear_items()
