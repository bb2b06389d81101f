"""
Summary Tools - compact cross-cutting answers

Each summary tool combines one or two raw client calls into a single short
line, so the agent doesn't have to pull full account or transaction lists
for common questions:

- spending_getByCategoryMonth: top spending categories for a month
- accounts_getBalanceTrends: per-account balance change over a period
- budget_getVarianceSummary: how many budgets are over / on track / under
- insights_getQuickStats: net worth, this month's spending, recent activity

Their handlers return finished text; the formatter passes it through.
"""

import asyncio
from datetime import date
from typing import Any, Awaitable, Callable, Optional

import structlog
from mcp.types import TextContent
from pydantic import BaseModel

from ..arguments import month_bounds
from ..errors import ToolExecutionError
from ..schema import (
    BalanceTrendsInput,
    BudgetVarianceInput,
    QuickStatsInput,
    SpendingByCategoryInput,
    validate_arguments,
)
from ..tool_definitions import ToolDefinition, text_content
from .formatter import _money, _number


log = structlog.get_logger(__name__)

# Spending above this share of the limit counts as "on track" rather than "under"
ON_TRACK_THRESHOLD = 0.8

MONTH_TRANSACTION_LIMIT = 1000
RECENT_TRANSACTION_LIMIT = 100


def current_month(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime("%Y-%m")


def _transactions_of(response: Any) -> list[dict]:
    if isinstance(response, dict):
        return response.get("transactions") or []
    return response or []


# -----------------------------------------------------------------------------
# Summaries
# -----------------------------------------------------------------------------

async def spending_by_category(client: Any, args: dict) -> str:
    month = args.get("month") or current_month()
    top_n = args.get("topN") or 10
    start_date, end_date = month_bounds(month)

    response = await client.transactions.getTransactions({
        "startDate": start_date,
        "endDate": end_date,
        "limit": MONTH_TRANSACTION_LIMIT,
    })

    totals: dict[str, float] = {}
    for txn in _transactions_of(response):
        amount = txn.get("amount") or 0
        if amount < 0:
            category = (txn.get("category") or {}).get("name") or "Uncategorized"
            totals[category] = totals.get(category, 0) + abs(amount)

    top = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:top_n]
    total_spending = sum(amount for _, amount in top)

    breakdown = ", ".join(f"{category} ${amount:.0f}" for category, amount in top)
    return f"💸 {month} Spending: {breakdown} | Total: ${total_spending:.0f}"


async def balance_trends(client: Any, args: dict) -> str:
    period = args.get("period") or "month"
    accounts = await client.accounts.getAll()

    changes = []
    for account in accounts or []:
        balance = account.get("currentBalance") or account.get("displayBalance") or 0
        if period == "week":
            previous = account.get("balanceOneWeekAgo")
        else:
            previous = account.get("balanceOneMonthAgo")
        delta = balance - (previous or 0)
        sign = "+" if delta >= 0 else "-"
        name = account.get("displayName") or account.get("name")
        changes.append(f"{name}: {sign}${_number(abs(delta))}")

    return f"📈 Balance changes ({period}): {', '.join(changes)}"


async def budget_variance(client: Any, args: dict) -> str:
    month = args.get("month") or current_month()

    # The one tool that degrades instead of failing
    try:
        budgets = await client.budgets.getBudgets({"month": month})

        over_budget = on_track = under_budget = 0
        for budget in budgets or []:
            spent = budget.get("actual") or budget.get("spent") or 0
            limit = budget.get("budgeted") or budget.get("limit") or 0
            if spent > limit:
                over_budget += 1
            elif spent > ON_TRACK_THRESHOLD * limit:
                on_track += 1
            else:
                under_budget += 1
    except Exception as e:
        log.error("Failed to compute budget variance", month=month, error=str(e))
        return "💰 Budget data unavailable"

    return (
        f"💰 Budget Status: {over_budget} over budget, "
        f"{on_track} on track, {under_budget} under budget"
    )


async def quick_stats(client: Any, args: dict) -> str:
    # Both fetches always finish; the first failure is raised afterwards
    accounts, response = await asyncio.gather(
        client.accounts.getAll(),
        client.transactions.getTransactions({"limit": RECENT_TRANSACTION_LIMIT}),
        return_exceptions=True,
    )
    for outcome in (accounts, response):
        if isinstance(outcome, BaseException):
            raise outcome

    total_balance = sum(account.get("currentBalance") or 0 for account in accounts or [])
    transactions = _transactions_of(response)

    this_month = current_month()
    month_spending = sum(
        abs(txn["amount"])
        for txn in transactions
        if (txn.get("amount") or 0) < 0 and str(txn.get("date", ""))[:7] == this_month
    )

    return (
        f"⚡ Net Worth: {_money(total_balance)} | This Month: -${month_spending:.0f} | "
        f"{len(transactions)} recent transactions"
    )


# -----------------------------------------------------------------------------
# Tool definitions
# -----------------------------------------------------------------------------

# name -> (description, input model, groups it reads, implementation)
SUMMARY_TOOL_SPECS: dict[str, tuple[str, type[BaseModel], tuple[str, ...], Callable[[Any, dict], Awaitable[str]]]] = {
    "spending_getByCategoryMonth": (
        "Get spending breakdown by category for a month (compact summary)",
        SpendingByCategoryInput,
        ("transactions",),
        spending_by_category,
    ),
    "accounts_getBalanceTrends": (
        "Get account balance changes summary (gains/losses)",
        BalanceTrendsInput,
        ("accounts",),
        balance_trends,
    ),
    "budget_getVarianceSummary": (
        "Get budget vs actual spending summary",
        BudgetVarianceInput,
        ("budgets",),
        budget_variance,
    ),
    "insights_getQuickStats": (
        "Get key financial metrics in compact format",
        QuickStatsInput,
        ("accounts", "transactions"),
        quick_stats,
    ),
}


def build_summary_tools(client: Any, ensure_authenticated: Callable[[], Awaitable[None]]) -> list:
    """Summary tool definitions for the groups this client exposes."""

    def make_handler(name: str, schema: type[BaseModel], summarize) -> Callable[[Any], Awaitable[list[TextContent]]]:
        async def handler(raw_args: Any) -> list[TextContent]:
            args = validate_arguments(name, schema, raw_args)
            await ensure_authenticated()
            try:
                text = await summarize(client, args)
            except Exception as e:
                raise ToolExecutionError(name, str(e)) from e
            return text_content(text)
        return handler

    tools = []
    for name, (description, schema, groups, summarize) in SUMMARY_TOOL_SPECS.items():
        if any(getattr(client, group, None) is None for group in groups):
            continue
        tools.append(ToolDefinition(
            name=name,
            description=description,
            input_schema=schema,
            handler=make_handler(name, schema, summarize),
        ))
    return tools
