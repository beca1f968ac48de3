"""
==============================================================================
Inventory Service Module
==============================================================================

Records detected barcodes as scanned items.

This module implements:
- InventoryService: Class handling the scanned-items store
- Catalog resolution of barcode → name and price
- Listing and clearing the scan history

Unknown Barcodes:
----------------
A barcode with no catalog match is still recorded, named "Unknown item"
at price 0.0, so the scan history stays complete.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from inventory_scanner.catalog import ProductCatalog, get_catalog
from inventory_scanner.core import exceptions
from inventory_scanner.db.models import ScannedItem, ScanSource


# Module logger
logger = logging.getLogger(__name__)


UNKNOWN_ITEM_NAME = "Unknown item"


class InventoryService:
    """
    Service for scanned-item operations.

    Attributes:
        _db: Database session
        _catalog: Product catalog used to resolve names and prices

    Example:
        >>> service = InventoryService(db_session)
        >>> item = service.record_scan("ITEM-42", source=ScanSource.UPLOAD, format="QR_CODE")
        >>> service.list_items()[0].barcode
        'ITEM-42'
    """

    def __init__(self, db: Session, catalog: Optional[ProductCatalog] = None) -> None:
        """
        Initialize the inventory service.

        Args:
            db: SQLAlchemy database session
            catalog: Product catalog (defaults to the global catalog)
        """
        self._db = db
        self._catalog = catalog or get_catalog()

    # =========================================================================
    # RECORDING
    # =========================================================================

    def _resolve(self, barcode: str) -> Tuple[str, float]:
        if self._catalog is None:
            logger.warning("⚠️ Product catalog not loaded")
            return UNKNOWN_ITEM_NAME, 0.0

        product = self._catalog.find_by_scanned_barcode(barcode)
        if product is None:
            return UNKNOWN_ITEM_NAME, 0.0
        return product.name, product.price

    def record_scan(
        self,
        barcode: str,
        source: ScanSource = ScanSource.MANUAL,
        format: Optional[str] = None,
    ) -> ScannedItem:
        """
        Record one scanned barcode.

        Args:
            barcode: Barcode payload (surrounding whitespace is stripped)
            source: Where the barcode came from
            format: Symbology reported by the decoder

        Returns:
            Persisted ScannedItem

        Raises:
            AppException: INVALID_BARCODE if the barcode is empty
        """
        barcode = (barcode or "").strip()
        if not barcode:
            raise exceptions.invalid_barcode()

        name, price = self._resolve(barcode)
        item = ScannedItem(
            barcode=barcode,
            name=name,
            price=price,
            format=format,
            source=source,
        )

        try:
            self._db.add(item)
            self._db.commit()
            self._db.refresh(item)
        except Exception:
            self._db.rollback()
            raise

        logger.info(f"🧾 Scanned {barcode} → {name} ({source})")
        return item

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_items(self) -> List[ScannedItem]:
        """Get all scanned items, newest first."""
        return (
            self._db.query(ScannedItem)
            .order_by(ScannedItem.timestamp.desc(), ScannedItem.id.desc())
            .all()
        )

    def clear_items(self) -> int:
        """
        Delete the whole scan history.

        Returns:
            Number of rows deleted
        """
        deleted = self._db.query(ScannedItem).delete()
        self._db.commit()
        logger.info(f"🗑️ Cleared {deleted} scanned items")
        return deleted
