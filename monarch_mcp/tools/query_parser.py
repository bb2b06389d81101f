"""
Smart Query Parser - free text -> transaction filters

Best-effort extraction for the smart query tool. Each signal is matched
independently; a signal that isn't found is simply left out. Never raises.

Signals:
1. limit: "last 5", "top 3", "10 largest" (only accepted up to 100)
2. search: first matching merchant/category keyword
3. startDate/endDate: "this month", "last month", "this week"
4. absAmountRange: "over $50", "under $1,000.00"
5. _sortByAmount: "desc" for largest/biggest/highest, "asc" for smallest/lowest

Pattern order is the tie-break. The count pattern only accepts a number
right next to a count word, so "over $10" is never read as a limit.
"""

import re
from datetime import date, timedelta
from typing import Any, Optional


MAX_LIMIT = 100

_COUNT_RE = re.compile(
    r"(?:last|recent|top|first)\s+(\d+)|(\d+)\s+(?:last|recent|top|largest|biggest|smallest)"
)

_AMOUNT_RE = re.compile(
    r"(?:over|above|more than)\s*\$?(\d+(?:,\d{3})*(?:\.\d{2})?)"
    r"|(?:under|below|less than)\s*\$?(\d+(?:,\d{3})*(?:\.\d{2})?)"
)

# (pattern, search term); first match wins
MERCHANT_PATTERNS = [
    (re.compile(r"amazon|amzn"), "amazon"),
    (re.compile(r"walmart|wal-mart"), "walmart"),
    (re.compile(r"target"), "target"),
    (re.compile(r"costco"), "costco"),
    (re.compile(r"starbucks"), "starbucks"),
    (re.compile(r"mcdonalds|mcdonald's"), "mcdonalds"),
    (re.compile(r"netflix"), "netflix"),
    (re.compile(r"spotify"), "spotify"),
    (re.compile(r"uber|lyft"), "uber"),
    (re.compile(r"apple|app store"), "apple"),
    (re.compile(r"google|youtube"), "google"),
    (re.compile(r"gas\s+station|gasoline|fuel"), "gas"),
    (re.compile(r"restaurant|dining|food"), "restaurant"),
    (re.compile(r"grocery|groceries"), "grocery"),
    (re.compile(r"subscription|subscriptions"), "subscription"),
]


def _month_start(day: date) -> date:
    return day.replace(day=1)


def relative_window(text: str, today: Optional[date] = None) -> Optional[tuple[str, str]]:
    """Concrete (start, end) for "this month" / "last month" / "this week"."""
    today = today or date.today()

    if "this month" in text:
        return _month_start(today).isoformat(), today.isoformat()

    if "last month" in text:
        last_month_end = _month_start(today) - timedelta(days=1)
        return _month_start(last_month_end).isoformat(), last_month_end.isoformat()

    if "this week" in text:
        # Weeks start on Sunday
        start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)
        return start_of_week.isoformat(), today.isoformat()

    return None


def parse_query(query: str, today: Optional[date] = None) -> dict[str, Any]:
    """Extract whatever filters the text mentions."""
    filters: dict[str, Any] = {}
    text = (query or "").lower()

    count = _COUNT_RE.search(text)
    if count:
        number = int(count.group(1) or count.group(2))
        if number <= MAX_LIMIT:
            filters["limit"] = number

    for pattern, search in MERCHANT_PATTERNS:
        if pattern.search(text):
            filters["search"] = search
            break

    window = relative_window(text, today)
    if window:
        filters["startDate"], filters["endDate"] = window

    amount = _AMOUNT_RE.search(text)
    if amount:
        lower_bound, upper_bound = amount.group(1), amount.group(2)
        if lower_bound is not None:
            filters["absAmountRange"] = [float(lower_bound.replace(",", "")), None]
        else:
            filters["absAmountRange"] = [None, float(upper_bound.replace(",", ""))]

    if any(word in text for word in ("largest", "biggest", "highest")):
        filters["_sortByAmount"] = "desc"
    elif any(word in text for word in ("smallest", "lowest")):
        filters["_sortByAmount"] = "asc"

    return filters
