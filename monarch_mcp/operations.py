"""
Monarch MCP Operation Table

The fixed list of client operations we expose as tools, and the one place
where operation names are classified. Each name is classified exactly once
into three tags:

- SchemaKind: which input model validates its arguments
- CallShape: how validated arguments become positional call arguments
- ResultCategory: which renderer formats its result

Everything downstream switches on these tags instead of re-testing
substrings. Rule order inside each classifier is the tie-break and must
not change: a name can match several rules.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache


CLIENT_GROUP = "client"

# Groups the catalog looks for on the client, in catalog order
SDK_GROUPS = (
    "accounts",
    "transactions",
    "budgets",
    "categories",
    "cashflow",
    "recurring",
    "institutions",
    "insights",
)

SUPPORTED_OPERATIONS: dict[str, tuple[str, ...]] = {
    "accounts": (
        "getAll",
        "getById",
        "getBalances",
        "getBalanceHistory",
        "getNetWorthHistory",
        "getTypeOptions",
        "getHoldingsById",
        "createManualAccount",
        "updateAccount",
    ),
    "transactions": (
        "getTransactions",
        "getTransactionDetails",
        "getTransactionsSummary",
        "getTransactionsSummaryCard",
        "getTags",
        "createTransaction",
        "updateTransaction",
    ),
    "budgets": ("getBudgets",),
    "categories": ("getCategories", "getCategoryGroups"),
    "cashflow": ("getCashflowSummary",),
    "recurring": ("getRecurringStreams",),
    "institutions": ("getInstitutions",),
    "insights": ("getInsights",),
}

# Top-level client operations (tool name is the bare operation name)
CLIENT_OPERATIONS = ("get_me", "getSubscriptionDetails", "requestAccountsRefresh")

# Login operations are never exposed as tools
AUTH_OPERATIONS = frozenset({"login", "interactiveLogin"})

# Profile/summary/list endpoints that take no filters
NO_ARGUMENT_OPERATIONS = frozenset({
    "accounts_getAll",
    "accounts_getBalances",
    "accounts_getTypeOptions",
    "transactions_getTransactionsSummary",
    "transactions_getTransactionsSummaryCard",
    "transactions_getTags",
    "budgets_getBudgets",
    "categories_getCategories",
    "categories_getCategoryGroups",
    "cashflow_getCashflowSummary",
    "recurring_getRecurringStreams",
    "institutions_getInstitutions",
    "insights_getInsights",
    "get_me",
    "getSubscriptionDetails",
})

# Synthesized tools whose handlers already return finished text
SUMMARY_TOOLS = frozenset({
    "spending_getByCategoryMonth",
    "accounts_getBalanceTrends",
    "budget_getVarianceSummary",
    "insights_getQuickStats",
})

SMART_QUERY_TOOL = "transactions_smartQuery"

_DESCRIPTIONS = {
    "accounts_getAll": "Get all MonarchMoney accounts",
    "accounts_getById": "Get account by ID",
    "accounts_getBalances": "Get recent daily balances for all accounts",
    "accounts_getBalanceHistory": "Get account balance history",
    "accounts_getNetWorthHistory": "Get net worth history",
    "accounts_getTypeOptions": "Get the account types and subtypes Monarch supports",
    "accounts_getHoldingsById": "Get investment holdings for an account by ID",
    "accounts_createManualAccount": "Create a manual account",
    "accounts_updateAccount": "Update an account's settings or balance",
    "transactions_getTransactions": "Get transactions with filtering options",
    "transactions_getTransactionDetails": "Get detailed transaction information",
    "transactions_getTransactionsSummary": "Get transactions summary",
    "transactions_getTransactionsSummaryCard": "Get the transactions summary card",
    "transactions_getTags": "Get transaction tags",
    "transactions_createTransaction": "Create a manual transaction",
    "transactions_updateTransaction": "Update an existing transaction",
    "budgets_getBudgets": "Get budget information",
    "categories_getCategories": "Get all transaction categories",
    "categories_getCategoryGroups": "Get transaction category groups",
    "cashflow_getCashflowSummary": "Get cashflow summary",
    "recurring_getRecurringStreams": "Get recurring income/expense streams",
    "institutions_getInstitutions": "Get financial institutions",
    "insights_getInsights": "Get financial insights",
    "get_me": "Get current user profile information",
    "getSubscriptionDetails": "Get Monarch subscription details",
    "requestAccountsRefresh": "Ask Monarch to refresh all linked accounts",
}


class SchemaKind(Enum):
    LOOKUP_BY_ID = "lookup_by_id"
    DETAIL_LOOKUP = "detail_lookup"
    LIST_WITH_FILTER = "list_with_filter"
    HISTORY_RANGE = "history_range"
    MUTATION_UPDATE = "mutation_update"
    MUTATION_CREATE = "mutation_create"
    ACCOUNT_LIST = "account_list"
    LIST_PLAIN = "list_plain"
    EMPTY = "empty"


class CallShape(Enum):
    NO_ARGUMENTS = "no_arguments"
    ID = "id"
    TRANSACTION_ID = "transaction_id"
    DATE_RANGE = "date_range"
    TRANSACTION_FILTER = "transaction_filter"
    ID_AND_DATA = "id_and_data"
    DATA = "data"
    RECORD = "record"


class ResultCategory(Enum):
    SUMMARY = "summary"
    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    CATEGORIES = "categories"
    BUDGETS = "budgets"
    GENERIC = "generic"


@dataclass(frozen=True)
class OperationSpec:
    """Everything the catalog needs to know about one client operation."""
    group: str
    operation: str
    key: str
    schema_kind: SchemaKind
    call_shape: CallShape
    result_category: ResultCategory
    description: str


def identity_key(group: str, operation: str) -> str:
    """Tool name: bare operation for top-level calls, else group_operation."""
    return operation if group == CLIENT_GROUP else f"{group}_{operation}"


def classify_schema(group: str, operation: str) -> SchemaKind:
    """Pick the input model for an operation. First match wins."""
    if "ById" in operation:
        return SchemaKind.LOOKUP_BY_ID
    if group == "transactions" and operation == "getTransactionDetails":
        return SchemaKind.DETAIL_LOOKUP
    if "Transactions" in operation or operation == "getTransactions":
        return SchemaKind.LIST_WITH_FILTER
    if "History" in operation or "OverTime" in operation:
        return SchemaKind.HISTORY_RANGE
    if "update" in operation:
        return SchemaKind.MUTATION_UPDATE
    if "create" in operation:
        return SchemaKind.MUTATION_CREATE
    if group == "accounts" and operation == "getAll":
        return SchemaKind.ACCOUNT_LIST
    if "getAll" in operation or operation.startswith("get"):
        return SchemaKind.LIST_PLAIN
    return SchemaKind.EMPTY


def classify_call(key: str) -> CallShape:
    """Pick how validated input becomes call arguments. First match wins."""
    if key in NO_ARGUMENT_OPERATIONS:
        return CallShape.NO_ARGUMENTS
    if "ById" in key:
        return CallShape.ID
    if key == "transactions_getTransactionDetails":
        return CallShape.TRANSACTION_ID
    if "History" in key or "NetWorth" in key:
        return CallShape.DATE_RANGE
    if "Transactions" in key:
        return CallShape.TRANSACTION_FILTER
    if "update" in key:
        return CallShape.ID_AND_DATA
    if "create" in key:
        return CallShape.DATA
    return CallShape.RECORD


def classify_result(key: str) -> ResultCategory:
    """Pick the renderer used for list results."""
    if key in SUMMARY_TOOLS:
        return ResultCategory.SUMMARY
    if "accounts" in key:
        return ResultCategory.ACCOUNTS
    if "transactions" in key:
        return ResultCategory.TRANSACTIONS
    if "categories" in key:
        return ResultCategory.CATEGORIES
    if "budgets" in key:
        return ResultCategory.BUDGETS
    return ResultCategory.GENERIC


def describe(group: str, operation: str) -> str:
    key = identity_key(group, operation)
    return _DESCRIPTIONS.get(key, f"Execute {operation} on {group} module")


@lru_cache(maxsize=None)
def operation_spec(group: str, operation: str) -> OperationSpec:
    """Classify an operation once; later calls hit the cache."""
    key = identity_key(group, operation)
    return OperationSpec(
        group=group,
        operation=operation,
        key=key,
        schema_kind=classify_schema(group, operation),
        call_shape=classify_call(key),
        result_category=classify_result(key),
        description=describe(group, operation),
    )

