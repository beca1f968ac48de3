"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for request-scoped services.

Dependency Hierarchy:
--------------------
    ┌─────────────────┐        ┌──────────────────────┐
    │   get_db()      │        │  get_orchestrator()  │
    └────────┬────────┘        └──────────────────────┘
             │
    ┌────────▼────────────┐
    │get_inventory_service│
    └─────────────────────┘

Each request that decodes an image gets its own DetectionOrchestrator,
cleaned up when the request finishes.

==============================================================================
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.orm import Session

from inventory_scanner.db.database import get_db
from inventory_scanner.detection import DetectionOrchestrator
from inventory_scanner.services import InventoryService


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    """Inventory service bound to the request's database session."""
    return InventoryService(db)


async def get_orchestrator() -> AsyncGenerator[DetectionOrchestrator, None]:
    """
    Yield a one-shot detection session for the current request.

    Yields:
        DetectionOrchestrator, cleaned up after the response
    """
    orchestrator = DetectionOrchestrator()
    try:
        yield orchestrator
    finally:
        orchestrator.cleanup()
