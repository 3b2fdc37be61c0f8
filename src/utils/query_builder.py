"""Product listing query construction.

Turns the raw ``page``, ``limit``, ``search`` and ``category`` query
parameters into a MongoDB filter plus pagination window.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING

from config import ALL_CATEGORIES, DEFAULT_PAGE_LIMIT
from core.exceptions import BadRequestError

# Fields a free-text search is matched against
SEARCH_FIELDS = ("name", "description", "category", "subcategory", "specs")

# Newest first; _id breaks ties between equal timestamps so pages stay disjoint
DEFAULT_SORT: List[Tuple[str, int]] = [("createdAt", DESCENDING), ("_id", DESCENDING)]

# Largest integer BSON can carry; skip and limit must both fit
MAX_BSON_INT = 2**63 - 1


@dataclass
class ProductQuery:
    """A fully resolved listing query."""

    filter: Dict[str, Any]
    page: int
    limit: int
    sort: List[Tuple[str, int]] = field(default_factory=lambda: list(DEFAULT_SORT))

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def parse_positive_int(value: Optional[str], name: str, default: int) -> int:
    """Parse a positive integer query parameter.

    Args:
        value: Raw parameter value, or None if absent.
        name: Parameter name, used in the error message.
        default: Value used when the parameter is absent or blank.

    Returns:
        The parsed integer.

    Raises:
        BadRequestError: If the value is not an integer or is below 1.
    """
    if value is None or not value.strip():
        return default
    try:
        number = int(value.strip())
    except ValueError:
        raise BadRequestError(f"Invalid '{name}' parameter: must be an integer")
    if number < 1:
        raise BadRequestError(f"Invalid '{name}' parameter: must be at least 1")
    return number


def build_product_filter(
    search: Optional[str] = None, category: Optional[str] = None
) -> Dict[str, Any]:
    """Build the MongoDB filter for a listing.

    Args:
        search: Case-insensitive substring, matched literally against the
            search fields. Ignored when blank.
        category: Exact category to filter on. Ignored when blank or "All".

    Returns:
        A MongoDB filter document.
    """
    query: Dict[str, Any] = {}

    if search and search.strip():
        pattern = re.escape(search.strip())
        query["$or"] = [
            {name: {"$regex": pattern, "$options": "i"}} for name in SEARCH_FIELDS
        ]

    if category and category != ALL_CATEGORIES:
        query["category"] = category

    return query


def build_product_query(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> ProductQuery:
    """Translate raw listing parameters into a ProductQuery.

    Raises:
        BadRequestError: If page or limit is not a positive integer, or the
            pagination window is too large for the store.
    """
    query = ProductQuery(
        filter=build_product_filter(search, category),
        page=parse_positive_int(page, "page", 1),
        limit=parse_positive_int(limit, "limit", DEFAULT_PAGE_LIMIT),
    )
    if query.limit > MAX_BSON_INT:
        raise BadRequestError("Invalid 'limit' parameter: value is too large")
    if query.skip > MAX_BSON_INT:
        raise BadRequestError("Invalid 'page' parameter: value is too large")
    return query


def total_pages(total_products: int, limit: int) -> int:
    return math.ceil(total_products / limit)
