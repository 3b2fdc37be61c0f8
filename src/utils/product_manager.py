"""Product management utilities.

This module provides the catalog store: product persistence in MongoDB,
paginated listing and the distinct category list.
"""

import logging
from datetime import datetime
from typing import List, Optional

import pytz
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

from core.database import PRODUCTS_COLLECTION
from core.exceptions import InvalidProductIdError, ProductNotFoundError
from schemas.product import Product, ProductFields, ProductPage
from utils.converters import document_to_product, fields_to_document
from utils.query_builder import ProductQuery, total_pages

logger = logging.getLogger(__name__)


def parse_product_id(product_id: str) -> ObjectId:
    """Parse a product id.

    Raises:
        InvalidProductIdError: If the id is not a valid ObjectId.
    """
    if not ObjectId.is_valid(product_id):
        raise InvalidProductIdError(product_id)
    return ObjectId(product_id)


class ProductManager:
    """Manages product data persistence and queries."""

    def __init__(self, db: Database):
        """Initialize ProductManager.

        Args:
            db: pymongo Database holding the products collection.
        """
        self.collection = db[PRODUCTS_COLLECTION]

    def list_products(self, query: ProductQuery) -> ProductPage:
        """Fetch one page of products.

        Args:
            query: Resolved filter and pagination window.

        Returns:
            The requested page with pagination metadata.
        """
        cursor = (
            self.collection.find(query.filter)
            .sort(query.sort)
            .skip(query.skip)
            .limit(query.limit)
        )
        products = [document_to_product(doc) for doc in cursor]
        total = self.collection.count_documents(query.filter)
        return ProductPage(
            products=products,
            currentPage=query.page,
            totalPages=total_pages(total, query.limit),
            totalProducts=total,
        )

    def get_product(self, product_id: str) -> Product:
        """Get a product by id.

        Args:
            product_id: The product's id as a string.

        Returns:
            The product.

        Raises:
            InvalidProductIdError: If the id is malformed.
            ProductNotFoundError: If no product has this id.
        """
        doc = self.collection.find_one({"_id": parse_product_id(product_id)})
        if doc is None:
            raise ProductNotFoundError(product_id)
        return document_to_product(doc)

    def create_product(self, fields: ProductFields, image: str) -> Product:
        """Create a new product.

        Args:
            fields: Validated product fields.
            image: URL of the product image.

        Returns:
            The stored product.
        """
        now = datetime.now(pytz.utc)
        doc = fields_to_document(fields)
        doc.update({"image": image, "createdAt": now, "updatedAt": now})
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Created product: %s (id=%s)", fields.name, result.inserted_id)
        return document_to_product(doc)

    def update_product(
        self, product_id: str, fields: ProductFields, image: Optional[str] = None
    ) -> Product:
        """Replace a product's fields.

        Args:
            product_id: The product's id as a string.
            fields: Validated product fields.
            image: New image URL; the current image is kept when None.

        Returns:
            The updated product.

        Raises:
            InvalidProductIdError: If the id is malformed.
            ProductNotFoundError: If no product has this id.
        """
        oid = parse_product_id(product_id)
        changes = fields_to_document(fields)
        changes["updatedAt"] = datetime.now(pytz.utc)
        if image:
            changes["image"] = image

        update = {"$set": changes}
        if fields.originalPrice is None:
            update["$unset"] = {"originalPrice": ""}

        doc = self.collection.find_one_and_update(
            {"_id": oid}, update, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise ProductNotFoundError(product_id)
        logger.info("Updated product: %s", product_id)
        return document_to_product(doc)

    def ensure_exists(self, product_id: str) -> None:
        """Check that a product exists without loading it.

        Raises:
            InvalidProductIdError: If the id is malformed.
            ProductNotFoundError: If no product has this id.
        """
        oid = parse_product_id(product_id)
        if self.collection.find_one({"_id": oid}, {"_id": 1}) is None:
            raise ProductNotFoundError(product_id)

    def delete_product(self, product_id: str) -> None:
        """Hard-delete a product.

        Raises:
            InvalidProductIdError: If the id is malformed.
            ProductNotFoundError: If no product has this id.
        """
        result = self.collection.delete_one({"_id": parse_product_id(product_id)})
        if result.deleted_count == 0:
            raise ProductNotFoundError(product_id)
        logger.info("Deleted product: %s", product_id)

    def list_categories(self) -> List[str]:
        """List the distinct product categories, sorted."""
        return sorted(c for c in self.collection.distinct("category") if c)
