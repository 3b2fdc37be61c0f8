"""Parsing of product write forms.

Product create/update requests arrive as multipart form fields, so every
value is a string. This module checks presence, parses numbers strictly and
decodes ``specs`` (a JSON array of strings) into a ProductFields object.
"""

import json
import math
from dataclasses import dataclass
from typing import List, Optional

from core.exceptions import BadRequestError
from schemas.product import ProductFields


@dataclass
class ProductForm:
    """Raw form values as received, before validation."""

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    originalPrice: Optional[str] = None
    quantity: Optional[str] = None
    category: Optional[str] = None
    subCategory: Optional[str] = None
    specs: Optional[str] = None


REQUIRED_FIELDS = ("name", "description", "price", "quantity", "category", "subCategory")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def parse_price(value: str, name: str) -> float:
    """Parse a non-negative, finite decimal amount."""
    try:
        number = float(value.strip())
    except ValueError:
        raise BadRequestError(f"Invalid '{name}': must be a number")
    if not math.isfinite(number) or number < 0:
        raise BadRequestError(f"Invalid '{name}': must be a non-negative number")
    return number


def parse_quantity(value: str) -> int:
    """Parse a non-negative whole number of units."""
    try:
        number = int(value.strip())
    except ValueError:
        raise BadRequestError("Invalid 'quantity': must be a whole number")
    if number < 0:
        raise BadRequestError("Invalid 'quantity': must not be negative")
    return number


def parse_specs(value: Optional[str]) -> List[str]:
    """Decode the specs field.

    Args:
        value: JSON array of strings, e.g. ``["Nitrile", "Size M"]``.

    Returns:
        The list of specs; empty when the field is absent or blank.

    Raises:
        BadRequestError: If the value is not a JSON array of strings.
    """
    if _is_blank(value):
        return []
    try:
        specs = json.loads(value)
    except json.JSONDecodeError:
        raise BadRequestError("Invalid 'specs': must be a JSON array of strings")
    if not isinstance(specs, list) or not all(isinstance(s, str) for s in specs):
        raise BadRequestError("Invalid 'specs': must be a JSON array of strings")
    return [s.strip() for s in specs if s.strip()]


def parse_product_form(form: ProductForm) -> ProductFields:
    """Validate a product form.

    Args:
        form: Raw form values.

    Returns:
        Parsed product fields.

    Raises:
        BadRequestError: If a required field is missing (all missing fields
            are named) or a value cannot be parsed.
    """
    missing = [name for name in REQUIRED_FIELDS if _is_blank(getattr(form, name))]
    if missing:
        raise BadRequestError(
            f"Missing required product fields: {', '.join(missing)}"
        )

    original_price = None
    if not _is_blank(form.originalPrice):
        original_price = parse_price(form.originalPrice, "originalPrice")

    return ProductFields(
        name=form.name.strip(),
        description=form.description.strip(),
        price=parse_price(form.price, "price"),
        originalPrice=original_price,
        quantity=parse_quantity(form.quantity),
        category=form.category.strip(),
        subcategory=form.subCategory.strip(),
        specs=parse_specs(form.specs),
    )
