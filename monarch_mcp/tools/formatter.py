"""
Result Formatter - bounded, readable text for Monarch results

Raw client results can be large. Everything returned to the agent goes
through format_result(), which keeps output bounded:

- brief: one line, count + total
- summary: header, first N items one per line, "and N more", total line
- detailed: header, first N items as multi-line blocks, "and N more", total line

Accounts, transactions, categories and budgets get dedicated renderers.
Anything else falls back to a generic list or key/value rendering.
"""

import json
import math
from datetime import date
from typing import Any, Optional

from ..operations import ResultCategory, classify_result


# (summary cap, detailed cap) per renderer
ACCOUNT_LIMITS = (15, 15)
TRANSACTION_LIMITS = (20, 25)
CATEGORY_LIMITS = (15, 15)
BUDGET_LIMITS = (10, 10)
GENERIC_LIMIT = 10

IMPORTANT_FIELDS = (
    "id",
    "name",
    "displayName",
    "amount",
    "balance",
    "currentBalance",
    "displayBalance",
    "date",
    "description",
    "category",
    "type",
    "status",
    "total",
    "count",
)


class TaggedTransactions(list):
    """
    A transaction list that remembers how a smart query produced it.

    filters: the fields the query parser extracted (may include _sortByAmount)
    query: the original free-text query, shown as a banner
    """

    def __init__(self, items=(), filters: Optional[dict] = None, query: Optional[str] = None):
        super().__init__(items)
        self.filters = dict(filters or {})
        self.query = query


# -----------------------------------------------------------------------------
# Value helpers
# -----------------------------------------------------------------------------

def _number(value: Any) -> str:
    """en-US style: thousands separators, at most three decimals, no trailing zeros."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return str(value)
    if value.is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _money(value: Any) -> str:
    return f"${_number(value or 0)}"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _percent_of(spent: float, budgeted: float) -> int:
    if budgeted <= 0:
        return 0
    return _round_half_up(spent / budgeted * 100)


def _short_date(value: Any) -> str:
    if not value:
        return "Unknown date"
    try:
        parsed = date.fromisoformat(str(value)[:10])
    except ValueError:
        return str(value)
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def _nested_name(value: Any, key: str = "name") -> Optional[str]:
    if isinstance(value, dict):
        return value.get(key)
    return value or None


def _account_name(account: dict) -> str:
    return account.get("displayName") or account.get("name") or "Unnamed account"


def _account_type(account: dict) -> str:
    return (
        _nested_name(account.get("type"), "display")
        or _nested_name(account.get("subtype"), "display")
        or "Unknown"
    )


def _account_balance(account: dict) -> float:
    return account.get("currentBalance") or account.get("displayBalance") or 0


def _merchant(txn: dict) -> str:
    return (
        txn.get("merchantName")
        or _nested_name(txn.get("merchant"))
        or txn.get("description")
        or txn.get("plaidName")
        or "Unknown merchant"
    )


def _signed_money(amount: float) -> str:
    sign = "+" if amount >= 0 else "-"
    return f"{sign}${_number(abs(amount))}"


def _budget_numbers(budget: dict) -> tuple[float, float]:
    spent = budget.get("actual") or budget.get("spent") or 0
    budgeted = budget.get("budgeted") or budget.get("limit") or 0
    return spent, budgeted


def _budget_name(budget: dict) -> str:
    return _nested_name(budget.get("category")) or budget.get("name") or "Unnamed budget"


def _more(total: int, shown: int, noun: str) -> Optional[str]:
    if total > shown:
        return f"... and {total - shown} more {noun}"
    return None


def _caps(limits: tuple[int, int], verbosity: str) -> int:
    return limits[1] if verbosity == "detailed" else limits[0]


def _finish(lines: list[str], total: int, shown: int, noun: str, trailer: str, sep: str) -> str:
    body = sep.join(lines)
    more = _more(total, shown, noun)
    if more:
        body += f"{sep}{more}"
    return f"{body}\n\n{trailer}"


# -----------------------------------------------------------------------------
# Category renderers
# -----------------------------------------------------------------------------

def format_accounts(accounts: list[dict], verbosity: str = "summary") -> str:
    total_balance = sum(account.get("currentBalance") or 0 for account in accounts)

    if verbosity == "brief":
        return f"🏦 {len(accounts)} accounts, Total Balance: {_money(total_balance)}"

    shown = accounts[:_caps(ACCOUNT_LIMITS, verbosity)]
    trailer = f"**Total Balance: {_money(total_balance)}**"

    if verbosity == "detailed":
        blocks = [
            f"• **{_account_name(a)}**\n"
            f"  Type: {_account_type(a)}\n"
            f"  Balance: {_money(_account_balance(a))}\n"
            f"  Institution: {_nested_name(a.get('institution')) or 'Manual'}\n"
            f"  ID: {a.get('id') or 'N/A'}"
            for a in shown
        ]
        header = f"🏦 **Accounts** ({len(accounts)} total)\n\n"
        return header + _finish(blocks, len(accounts), len(shown), "accounts", trailer, "\n\n")

    hidden = sum(1 for a in accounts if a.get("isHidden"))
    lines = [
        f"• **{_account_name(a)}** ({_account_type(a)}) - {_money(_account_balance(a))}"
        for a in shown
    ]
    header = f"🏦 **Accounts** ({len(accounts)} total, {hidden} hidden)\n\n"
    return header + _finish(lines, len(accounts), len(shown), "accounts", trailer, "\n")


def format_transactions(transactions: list[dict], original_args: Optional[dict] = None) -> str:
    original_args = original_args or {}
    verbosity = original_args.get("verbosity") or "summary"
    sort_order = original_args.get("_sortByAmount")

    # Sort a copy; the caller's list is never reordered
    ordered = list(transactions)
    if sort_order in ("desc", "asc"):
        ordered = sorted(
            ordered,
            key=lambda t: abs(t.get("amount") or 0),
            reverse=(sort_order == "desc"),
        )

    total_volume = sum(abs(t.get("amount") or 0) for t in ordered)

    if verbosity == "brief":
        return f"💳 {len(ordered)} transactions, Total: {_money(total_volume)}"

    shown = ordered[:_caps(TRANSACTION_LIMITS, verbosity)]
    header = f"💳 **Transaction Summary** ({len(ordered)} transactions)\n\n"
    trailer = f"**Total Transaction Volume: {_money(total_volume)}**"

    entries = []
    for index, txn in enumerate(shown, 1):
        marker = f"{index}. " if sort_order else "• "
        amount = txn.get("amount") or 0
        category = _nested_name(txn.get("category")) or "Uncategorized"
        account = _nested_name(txn.get("account"), "displayName") or "Unknown"
        headline = f"{marker}{_short_date(txn.get('date'))} - **{_merchant(txn)}**"

        if verbosity == "detailed":
            block = [
                headline,
                f"  Amount: {_signed_money(amount)}",
                f"  Category: {category}",
                f"  Account: {account}",
                f"  ID: {txn.get('id') or 'N/A'}",
            ]
            if txn.get("notes"):
                block.append(f"  Notes: {txn['notes']}")
            entries.append("\n".join(block))
        else:
            entries.append(f"{headline} {_signed_money(amount)} ({category}, {account})")

    sep = "\n\n" if verbosity == "detailed" else "\n"
    return header + _finish(entries, len(ordered), len(shown), "transactions", trailer, sep)


def format_categories(categories: list[dict], verbosity: str = "summary") -> str:
    groups = {_nested_name(c.get("group")) for c in categories if c.get("group")}
    group_line = f"{len(groups)} category groups"

    if verbosity == "brief":
        return f"🏷️ {len(categories)} categories in {group_line}"

    shown = categories[:_caps(CATEGORY_LIMITS, verbosity)]
    header = f"🏷️ **Categories** ({len(categories)} total)\n\n"
    trailer = f"**{group_line}**"

    def label(cat: dict) -> str:
        group = _nested_name(cat.get("group"))
        return f"• **{cat.get('name')}**" + (f" ({group})" if group else "")

    if verbosity == "detailed":
        blocks = [f"{label(c)}\n  ID: {c.get('id') or 'N/A'}" for c in shown]
        return header + _finish(blocks, len(categories), len(shown), "categories", trailer, "\n\n")

    lines = [label(c) for c in shown]
    return header + _finish(lines, len(categories), len(shown), "categories", trailer, "\n")


def format_budgets(budgets: list[dict], verbosity: str = "summary") -> str:
    total_spent = sum(_budget_numbers(b)[0] for b in budgets)
    total_budgeted = sum(_budget_numbers(b)[1] for b in budgets)

    if verbosity == "brief":
        return (
            f"💰 {len(budgets)} budget categories, "
            f"{_money(total_spent)}/{_money(total_budgeted)} spent"
        )

    shown = budgets[:_caps(BUDGET_LIMITS, verbosity)]
    header = f"💰 **Budget Summary** ({len(budgets)} categories)\n\n"
    trailer = f"**Total: {_money(total_spent)} spent of {_money(total_budgeted)} budgeted**"

    entries = []
    for budget in shown:
        spent, budgeted = _budget_numbers(budget)
        percentage = _percent_of(spent, budgeted)
        remaining = budgeted - spent
        if verbosity == "detailed":
            entries.append(
                f"• **{_budget_name(budget)}**\n"
                f"  Budgeted: {_money(budgeted)}\n"
                f"  Spent: {_money(spent)} ({percentage}%)\n"
                f"  Remaining: {_money(remaining)}\n"
                f"  ID: {budget.get('id') or 'N/A'}"
            )
        else:
            entries.append(
                f"• **{_budget_name(budget)}**: {_money(spent)} of {_money(budgeted)} "
                f"({percentage}%), {_money(remaining)} left"
            )

    sep = "\n\n" if verbosity == "detailed" else "\n"
    return header + _finish(entries, len(budgets), len(shown), "budget categories", trailer, sep)


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------

def format_financial_summary(data: dict) -> str:
    lines = []
    if data.get("totalIncome") is not None:
        lines.append(f"💰 Total Income: {_money(data['totalIncome'])}")
    if data.get("totalExpenses") is not None:
        lines.append(f"💸 Total Expenses: {_money(data['totalExpenses'])}")
    if data.get("netIncome") is not None:
        lines.append(f"📈 Net Income: {_money(data['netIncome'])}")
    if data.get("totalTransactions") is not None:
        lines.append(f"📊 Total Transactions: {_number(data['totalTransactions'])}")
    return "\n".join(lines)


def format_account(account: dict) -> str:
    return (
        f"📊 **{_account_name(account)}**\n"
        f"Type: {_account_type(account)}\n"
        f"Balance: {_money(_account_balance(account))}\n"
        f"Institution: {_nested_name(account.get('institution')) or 'Manual'}\n"
        f"Updated: {_short_date(account.get('displayLastUpdatedAt')) if account.get('displayLastUpdatedAt') else 'Unknown'}"
    )


def relevant_fields(data: dict) -> dict:
    return {key: data[key] for key in IMPORTANT_FIELDS if data.get(key) is not None}


def _field_value(value: Any) -> str:
    if isinstance(value, dict):
        return value.get("name") or value.get("display") or json.dumps(value, default=str)
    if isinstance(value, (list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def format_object_result(key: str, data: dict) -> str:
    if "totalIncome" in data or "totalExpenses" in data:
        return format_financial_summary(data) or f"{key} returned an object"

    if "currentBalance" in data:
        return format_account(data)

    fields = relevant_fields(data)
    serialized = "\n".join(f"{name}: {_field_value(value)}" for name, value in fields.items())
    return serialized or f"{key} returned an object"


def format_generic_list(data: list) -> str:
    lines = [f"Found {len(data)} items:"]
    for i, item in enumerate(data[:GENERIC_LIMIT], 1):
        lines.append(f"{i}. {json.dumps(item, indent=2, default=str)}")
    more = _more(len(data), GENERIC_LIMIT, "items")
    if more:
        lines.append(more)
    return "\n".join(lines)


def format_list_result(key: str, data: list, original_args: Optional[dict] = None) -> str:
    original_args = original_args or {}

    if not data:
        return f"No {key.rsplit('_', 1)[-1]} found."

    verbosity = original_args.get("verbosity") or "summary"
    category = classify_result(key)

    if category is ResultCategory.ACCOUNTS:
        return format_accounts(data, verbosity)

    if category is ResultCategory.TRANSACTIONS:
        tagged_filters = getattr(data, "filters", None) or {}
        query = getattr(data, "query", None)
        formatted = format_transactions(data, {**tagged_filters, **original_args})
        if query:
            return f'🧠 **Smart Query**: "{query}"\n\n{formatted}'
        return formatted

    if category is ResultCategory.CATEGORIES:
        return format_categories(data, verbosity)

    if category is ResultCategory.BUDGETS:
        return format_budgets(data, verbosity)

    return format_generic_list(data)


def format_result(key: str, result: Any, original_args: Optional[dict] = None) -> str:
    """Render a raw client result as bounded text for the tool named `key`."""
    if isinstance(result, str):
        return result

    if result is None:
        return f"No data returned for {key}"

    if classify_result(key) is ResultCategory.SUMMARY:
        return str(result)

    if isinstance(result, (list, tuple)):
        return format_list_result(key, list(result) if isinstance(result, tuple) else result, original_args)

    if isinstance(result, dict):
        return format_object_result(key, result)

    return str(result)
