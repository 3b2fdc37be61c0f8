"""Product schema definitions.

This module defines the Product record as returned by the API, the parsed
write payload, and the paginated listing response.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ProductFields(BaseModel):
    """Validated product fields, ready to be persisted."""

    name: str
    description: str
    price: float = Field(ge=0)
    originalPrice: Optional[float] = Field(default=None, ge=0)
    quantity: int = Field(ge=0)
    category: str
    subcategory: str
    specs: List[str] = Field(default_factory=list)


class Product(ProductFields):
    id: str = Field(description="The unique identifier of the product.")
    image: str = Field(description="URL of the externally hosted image.")
    createdAt: datetime
    updatedAt: Optional[datetime] = None


class ProductPage(BaseModel):
    """One page of a product listing."""

    products: List[Product]
    currentPage: int
    totalPages: int
    totalProducts: int


class MessageResponse(BaseModel):
    message: str
