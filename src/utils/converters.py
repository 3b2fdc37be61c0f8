"""Conversions between MongoDB documents and schema objects."""

from typing import Any, Dict

from schemas.product import Product, ProductFields
from schemas.user import User


def user_to_document(user: User) -> Dict[str, Any]:
    """Build the stored form of a user, without its id."""
    return {
        "username": user.username,
        "passwordHash": user.password_hash,
        "role": user.role.value,
        "createdAt": user.created_at,
    }


def document_to_user(doc: Dict[str, Any]) -> User:
    return User(
        id=str(doc["_id"]),
        username=doc["username"],
        password_hash=doc["passwordHash"],
        role=doc.get("role", "user"),
        created_at=doc["createdAt"],
    )


def fields_to_document(fields: ProductFields) -> Dict[str, Any]:
    """Build the stored form of product fields.

    ``originalPrice`` is only stored when present.
    """
    doc = fields.model_dump()
    if doc.get("originalPrice") is None:
        doc.pop("originalPrice", None)
    return doc


def document_to_product(doc: Dict[str, Any]) -> Product:
    return Product(
        id=str(doc["_id"]),
        name=doc["name"],
        description=doc["description"],
        price=doc["price"],
        originalPrice=doc.get("originalPrice"),
        quantity=doc["quantity"],
        category=doc["category"],
        subcategory=doc["subcategory"],
        specs=list(doc.get("specs") or []),
        image=doc["image"],
        createdAt=doc["createdAt"],
        updatedAt=doc.get("updatedAt"),
    )
