import math
from typing import Any, List, Tuple

from sqlalchemy.orm import Query

from telehealth.utils.exceptions import ValidationError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20


def check_page_params(page: int, limit: int) -> None:
    details = []
    if page is None or page < 1:
        details.append({"field": "page", "message": "page must be a positive integer"})
    if limit is None or limit < 1:
        details.append({"field": "limit", "message": "limit must be a positive integer"})
    if details:
        raise ValidationError("Invalid pagination", details=details)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], int, int]:
    """Slice an ordered query to one 1-indexed page.

    Returns (items, total, total_pages).
    """
    check_page_params(page, limit)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total, total_pages(total, limit)
