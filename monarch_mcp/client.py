"""
Monarch Client - grouped, camelCase facade over the monarchmoney SDK

The tool catalog discovers operations by group and name
(client.accounts.getAll, client.transactions.getTransactions, ...).
The monarchmoney SDK is one flat class with snake_case methods that
return raw GraphQL envelopes, so this module:

- groups the SDK calls into accounts / transactions / budgets / categories /
  cashflow / recurring / institutions
- translates camelCase argument keys to the SDK's keyword names
- unwraps the GraphQL envelopes into plain lists and records
- applies the absAmountRange filter, which the API doesn't support

Environment variables (read by config.load_config):
- MONARCH_API_BASE_URL: Override the Monarch API host
"""

import re
from typing import Any, Optional

import structlog
from monarchmoney import MonarchMoney
from monarchmoney.monarchmoney import MonarchMoneyEndpoints

from .arguments import month_bounds
from .config import MonarchConfig


log = structlog.get_logger(__name__)

# getTransactions filter keys -> SDK keyword names
_TRANSACTION_FILTERS = {
    "limit": "limit",
    "offset": "offset",
    "startDate": "start_date",
    "endDate": "end_date",
    "search": "search",
    "accountIds": "account_ids",
    "categoryIds": "category_ids",
    "tagIds": "tag_ids",
}


def snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def snake_keys(data: Optional[dict]) -> dict:
    return {snake_case(key): value for key, value in (data or {}).items()}


def unwrap(response: Any, *path: str) -> Any:
    """Follow `path` into a GraphQL envelope; None if any step is missing."""
    for key in path:
        if not isinstance(response, dict):
            return None
        response = response.get(key)
    return response


def within_amount_range(transaction: dict, amount_range) -> bool:
    low, high = (list(amount_range) + [None, None])[:2]
    amount = abs(transaction.get("amount") or 0)
    if low is not None and amount < low:
        return False
    if high is not None and amount > high:
        return False
    return True


def _summary_record(summary: Optional[dict], net_key: str) -> Optional[dict]:
    if not summary:
        return None
    record = {
        "totalIncome": summary.get("sumIncome"),
        "totalExpenses": summary.get("sumExpense"),
        "netIncome": summary.get(net_key),
    }
    if summary.get("count") is not None:
        record["totalTransactions"] = summary["count"]
    if summary.get("savingsRate") is not None:
        record["savingsRate"] = summary["savingsRate"]
    return record


class _Group:
    def __init__(self, sdk: MonarchMoney):
        self._sdk = sdk


class AccountsClient(_Group):
    async def getAll(self) -> list[dict]:
        return unwrap(await self._sdk.get_accounts(), "accounts") or []

    async def getById(self, account_id: str) -> Optional[dict]:
        for account in await self.getAll():
            if str(account.get("id")) == str(account_id):
                return account
        return None

    async def getBalances(self) -> list[dict]:
        return unwrap(await self._sdk.get_recent_account_balances(), "accounts") or []

    async def getBalanceHistory(self, options: Optional[dict] = None) -> list[dict]:
        start_date = (options or {}).get("startDate")
        response = await self._sdk.get_recent_account_balances(start_date=start_date)
        return unwrap(response, "accounts") or []

    async def getNetWorthHistory(self, options: Optional[dict] = None) -> list[dict]:
        options = options or {}
        response = await self._sdk.get_aggregate_snapshots(
            start_date=options.get("startDate"),
            end_date=options.get("endDate"),
        )
        return unwrap(response, "aggregateSnapshots") or []

    async def getTypeOptions(self) -> list[dict]:
        return unwrap(await self._sdk.get_account_type_options(), "accountTypeOptions") or []

    async def getHoldingsById(self, account_id: str) -> list[dict]:
        response = await self._sdk.get_account_holdings(account_id)
        edges = unwrap(response, "portfolio", "aggregateHoldings", "edges") or []
        return [edge.get("node", edge) for edge in edges]

    async def createManualAccount(self, data: dict) -> Any:
        response = await self._sdk.create_manual_account(**snake_keys(data))
        return unwrap(response, "createManualAccount", "account") or response

    async def updateAccount(self, account_id: str, data: Optional[dict] = None) -> Any:
        response = await self._sdk.update_account(account_id, **snake_keys(data))
        return unwrap(response, "updateAccount", "account") or response


class TransactionsClient(_Group):
    async def getTransactions(self, filters: Optional[dict] = None) -> list[dict]:
        filters = filters or {}
        kwargs = {
            sdk_name: filters[name]
            for name, sdk_name in _TRANSACTION_FILTERS.items()
            if filters.get(name) is not None
        }
        log.debug("Fetching transactions", filters=kwargs)

        response = await self._sdk.get_transactions(**kwargs)
        transactions = unwrap(response, "allTransactions", "results") or []

        amount_range = filters.get("absAmountRange")
        if amount_range:
            transactions = [t for t in transactions if within_amount_range(t, amount_range)]
        return transactions

    async def getTransactionDetails(self, transaction_id: str) -> Optional[dict]:
        response = await self._sdk.get_transaction_details(transaction_id)
        return unwrap(response, "getTransaction") or response

    async def getTransactionsSummary(self) -> Optional[dict]:
        response = await self._sdk.get_transactions_summary()
        aggregates = unwrap(response, "aggregates") or [{}]
        return _summary_record(aggregates[0].get("summary"), "sum")

    async def getTags(self) -> list[dict]:
        return unwrap(await self._sdk.get_transaction_tags(), "householdTransactionTags") or []

    async def createTransaction(self, data: dict) -> Any:
        response = await self._sdk.create_transaction(**snake_keys(data))
        return unwrap(response, "createTransaction", "transaction") or response

    async def updateTransaction(self, transaction_id: str, data: Optional[dict] = None) -> Any:
        response = await self._sdk.update_transaction(transaction_id, **snake_keys(data))
        return unwrap(response, "updateTransaction", "transaction") or response


class BudgetsClient(_Group):
    async def getBudgets(self, options: Optional[dict] = None) -> list[dict]:
        """
        One flat record per budgeted category.

        options may name a "month" (YYYY-MM) or a startDate/endDate range;
        with neither, the SDK's default window is used.
        """
        options = options or {}
        start_date, end_date = options.get("startDate"), options.get("endDate")
        if options.get("month"):
            start_date, end_date = month_bounds(options["month"])

        response = await self._sdk.get_budgets(start_date=start_date, end_date=end_date)

        names = {}
        for group in unwrap(response, "categoryGroups") or []:
            for category in group.get("categories") or []:
                names[category.get("id")] = category.get("name")

        budgets = []
        for entry in unwrap(response, "budgetData", "monthlyAmountsByCategory") or []:
            category_id = (entry.get("category") or {}).get("id")
            amounts = entry.get("monthlyAmounts") or [{}]
            current = amounts[0]
            budgets.append({
                "id": category_id,
                "category": {"id": category_id, "name": names.get(category_id)},
                "month": current.get("month"),
                "budgeted": current.get("plannedCashFlowAmount") or 0,
                "actual": current.get("actualAmount") or 0,
                "remaining": current.get("remainingAmount"),
            })
        return budgets


class CategoriesClient(_Group):
    async def getCategories(self) -> list[dict]:
        return unwrap(await self._sdk.get_transaction_categories(), "categories") or []

    async def getCategoryGroups(self) -> list[dict]:
        response = await self._sdk.get_transaction_category_groups()
        return unwrap(response, "categoryGroups") or []


class CashflowClient(_Group):
    async def getCashflowSummary(self) -> Optional[dict]:
        response = await self._sdk.get_cashflow_summary()
        summaries = unwrap(response, "summary") or [{}]
        return _summary_record(summaries[0].get("summary"), "savings")


class RecurringClient(_Group):
    async def getRecurringStreams(self) -> list[dict]:
        response = await self._sdk.get_recurring_transactions()
        return unwrap(response, "recurringTransactionItems") or []


class InstitutionsClient(_Group):
    async def getInstitutions(self) -> list[dict]:
        return unwrap(await self._sdk.get_institutions(), "credentials") or []


class MonarchClient:
    """Grouped Monarch Money client used by the tool catalog."""

    def __init__(self, config: Optional[MonarchConfig] = None, sdk: Optional[MonarchMoney] = None):
        if config is not None and config.api_base_url:
            MonarchMoneyEndpoints.BASE_URL = config.api_base_url
            log.info("Using Monarch API base URL", base_url=config.api_base_url)

        self._sdk = sdk if sdk is not None else MonarchMoney()
        self.accounts = AccountsClient(self._sdk)
        self.transactions = TransactionsClient(self._sdk)
        self.budgets = BudgetsClient(self._sdk)
        self.categories = CategoriesClient(self._sdk)
        self.cashflow = CashflowClient(self._sdk)
        self.recurring = RecurringClient(self._sdk)
        self.institutions = InstitutionsClient(self._sdk)

    async def login(self, email: str, password: str, mfa_secret_key: Optional[str] = None) -> None:
        await self._sdk.login(
            email=email,
            password=password,
            use_saved_session=False,
            save_session=False,
            mfa_secret_key=mfa_secret_key,
        )

    async def getSubscriptionDetails(self) -> Optional[dict]:
        response = await self._sdk.get_subscription_details()
        return unwrap(response, "subscription") or response

    async def requestAccountsRefresh(self) -> Any:
        account_ids = [account["id"] for account in await self.accounts.getAll()]
        return await self._sdk.request_accounts_refresh(account_ids)
