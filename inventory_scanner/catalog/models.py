"""
==============================================================================
Product Models Module
==============================================================================

Pydantic models for product catalog items.

==============================================================================
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Product(BaseModel):
    """
    Product model for catalog items.

    Attributes:
        barcode: Barcode payload printed on the item
        name: Product display name
        price: Unit price
        category: Optional grouping (e.g., "snacks")
    """

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    barcode: str = Field(..., min_length=1, description="Barcode payload")
    name: str = Field(..., min_length=1, description="Product name")
    price: float = Field(default=0.0, ge=0, description="Unit price")
    category: Optional[str] = Field(default=None, description="Category")
