"""
==============================================================================
Catalog Package - Product Lookup
==============================================================================

Product catalog resolving scanned barcodes to names and prices.

Classes:
--------
- Product: Pydantic model for products
- ProductCatalog: Catalog manager with exact and wildcard lookup

==============================================================================
"""

from .models import Product
from .catalog import ProductCatalog, get_catalog, init_catalog

__all__ = [
    "Product",
    "ProductCatalog",
    "get_catalog",
    "init_catalog",
]
