"""
Page/limit coercion and page metadata shared by member endpoints.
"""

import math
import re
from collections.abc import Sequence
from typing import Any, TypeVar

from church_clerk.models.domain.contribution_domain import PageInfo

T = TypeVar("T")

DEFAULT_PAGE = 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def coerce_positive_int(value: Any, default: int) -> int:
    """
    Parse a page/limit query value the way the web clients expect.

    Leading integer digits are honoured ("3abc" -> 3). Absent, non-numeric
    and zero values fall back to `default`; the result is floored at 1.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, float) and not math.isfinite(value):
        return default

    if isinstance(value, int | float):
        parsed = int(value)
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return default
        parsed = int(match.group(1))

    return max(1, parsed or default)


def build_page_info(total_items: int, page: int, limit: int) -> PageInfo:
    total_pages = -(-total_items // limit)
    return PageInfo(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        has_prev=page > 1,
        has_next=page < total_pages,
        prev_page=page - 1 if page > 1 else None,
        next_page=page + 1 if page < total_pages else None,
        limit=limit,
    )


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(items: Sequence[T], page: int, limit: int) -> tuple[list[T], PageInfo]:
    """Slice one page out of an in-memory sequence. Pages past the end are empty."""
    start = offset_for(page, limit)
    return list(items[start : start + limit]), build_page_info(len(items), page, limit)
