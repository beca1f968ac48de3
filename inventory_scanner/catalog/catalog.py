"""
==============================================================================
Product Catalog Module
==============================================================================

Barcode → product lookup used when recording scanned items.

Features:
---------
- JSON-based product storage grouped by category
- Exact barcode lookup, then wildcard (substring) matching for long
  payloads that embed a shorter product code
- Fast lookup index

JSON Structure:
--------------
{
  "snacks": [
    {"barcode": "012345678905", "name": "Trail Mix", "price": 4.99},
    ...
  ],
  "drinks": [...]
}

==============================================================================
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .models import Product


# Module logger
logger = logging.getLogger(__name__)


class ProductCatalog:
    """
    Product catalog manager.

    Example:
        >>> catalog = ProductCatalog(Path("data/products.json"))
        >>> catalog.find_by_scanned_barcode("0012345678905").name
        'Trail Mix 500g'
    """

    def __init__(self, products_file: Path) -> None:
        """
        Initialize catalog from JSON file.

        Args:
            products_file: Path to products.json
        """
        self._products_file = products_file
        self._products: List[Product] = []
        self._by_barcode: Dict[str, Product] = {}

        self._load()

    @property
    def products(self) -> List[Product]:
        """Get all products."""
        return self._products.copy()

    # =========================================================================
    # LOADING
    # =========================================================================

    def _load(self) -> None:
        """Load products from JSON file."""
        try:
            with self._products_file.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.error(f"Products file not found: {self._products_file}")
            raise
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON: {e}")
            raise

        self._products.clear()
        self._by_barcode.clear()

        for category, items in data.items():
            if not isinstance(items, list):
                logger.warning(f"Skipping invalid category: {category}")
                continue

            for item in items:
                if "barcode" not in item or "name" not in item:
                    continue

                product = Product(
                    barcode=str(item["barcode"]),
                    name=item["name"],
                    price=float(item.get("price", 0.0)),
                    category=category,
                )
                self._products.append(product)
                self._by_barcode[product.barcode] = product

        logger.info(f"✅ Loaded {len(self._products)} products")

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def find_by_barcode(self, barcode: str) -> Optional[Product]:
        """Exact barcode lookup."""
        return self._by_barcode.get(barcode)

    def find_by_scanned_barcode(self, scanned: str) -> Optional[Product]:
        """
        Find product by scanned payload (exact, then wildcard).

        Wildcard matching succeeds when a stored barcode is a substring of
        the scanned payload; the longest stored barcode wins.
        """
        product = self.find_by_barcode(scanned)
        if product:
            return product

        best: Optional[Product] = None
        for stored, candidate in self._by_barcode.items():
            if stored in scanned and (best is None or len(stored) > len(best.barcode)):
                best = candidate

        if best:
            logger.debug(f"Wildcard match: {scanned} → {best.barcode}")
        return best


# =============================================================================
# SINGLETON INSTANCE MANAGEMENT
# =============================================================================

_catalog_instance: Optional[ProductCatalog] = None


def get_catalog() -> Optional[ProductCatalog]:
    """Get the global catalog instance."""
    return _catalog_instance


def init_catalog(products_file: Path) -> ProductCatalog:
    """
    Initialize the global catalog instance.

    Args:
        products_file: Path to products.json

    Returns:
        ProductCatalog instance
    """
    global _catalog_instance
    _catalog_instance = ProductCatalog(products_file)
    return _catalog_instance
