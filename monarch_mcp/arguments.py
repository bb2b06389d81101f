"""
Argument adapter: validated tool input -> positional call arguments.

Runs after schema validation, so defaults such as limit=50 are already
present when the transaction limit is clamped and the date window filled.
"""

import calendar
from datetime import date, timedelta
from typing import Any, Optional

from .operations import CallShape, classify_call


MAX_TRANSACTION_LIMIT = 100
DEFAULT_WINDOW_DAYS = 30


def trailing_window(days: int = DEFAULT_WINDOW_DAYS, today: Optional[date] = None) -> tuple[str, str]:
    """(start, end) as YYYY-MM-DD, ending today inclusive."""
    end = today or date.today()
    start = end - timedelta(days=days)
    return start.isoformat(), end.isoformat()


def month_bounds(month: str) -> tuple[str, str]:
    """First and last day of a YYYY-MM month."""
    year, month_number = (int(part) for part in month.split("-"))
    last_day = calendar.monthrange(year, month_number)[1]
    return date(year, month_number, 1).isoformat(), date(year, month_number, last_day).isoformat()


def adapt_arguments(key: str, args: dict[str, Any]) -> list[Any]:
    """Reshape a validated record into the argument list the operation expects."""
    args = args or {}
    shape = classify_call(key)

    if shape is CallShape.NO_ARGUMENTS:
        return []

    if shape is CallShape.ID:
        return [args.get("id")]

    if shape is CallShape.TRANSACTION_ID:
        return [args.get("transactionId")]

    if shape is CallShape.DATE_RANGE:
        if not args.get("startDate") and not args.get("endDate"):
            return []
        return [args]

    if shape is CallShape.TRANSACTION_FILTER:
        filters = dict(args)
        limit = filters.get("limit")
        if isinstance(limit, int) and limit > MAX_TRANSACTION_LIMIT:
            filters["limit"] = MAX_TRANSACTION_LIMIT
        if not filters.get("startDate") and not filters.get("endDate"):
            filters["startDate"], filters["endDate"] = trailing_window()
        return [filters]

    if shape is CallShape.ID_AND_DATA:
        return [args.get("id"), args.get("data")]

    if shape is CallShape.DATA:
        return [args.get("data")]

    return [] if not args else [args]
