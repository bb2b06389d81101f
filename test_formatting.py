"""Tests for input validation, argument adaptation, result rendering and query parsing."""

from datetime import date, timedelta

import pytest

from monarch_mcp.arguments import adapt_arguments, month_bounds, trailing_window
from monarch_mcp.errors import ToolValidationError
from monarch_mcp.operations import (
    CallShape,
    ResultCategory,
    SchemaKind,
    classify_call,
    classify_result,
    classify_schema,
    operation_spec,
)
from monarch_mcp.schema import (
    ByIdInput,
    TransactionFilterInput,
    derive_schema,
    validate_arguments,
)
from monarch_mcp.tools.formatter import TaggedTransactions, format_result
from monarch_mcp.tools.query_parser import parse_query


ACCOUNTS = [
    {
        "id": "acc-1",
        "displayName": "Checking",
        "currentBalance": 1000,
        "type": {"display": "Cash"},
        "institution": {"name": "Chase"},
    },
    {
        "id": "acc-2",
        "displayName": "Savings",
        "currentBalance": 2500.5,
        "type": {"display": "Cash"},
        "isHidden": True,
    },
]


def make_transactions(count):
    return [
        {
            "id": f"txn-{i}",
            "date": "2024-03-05",
            "amount": -(i + 1),
            "merchant": {"name": f"Shop {i}"},
            "category": {"name": "Shopping"},
            "account": {"displayName": "Checking"},
        }
        for i in range(count)
    ]


class TestClassification:
    """Operation names map to one schema, call shape and renderer."""

    def test_lookup_by_id_wins_over_history(self):
        assert classify_schema("accounts", "getHoldingsById") is SchemaKind.LOOKUP_BY_ID
        assert classify_call("accounts_getHoldingsById") is CallShape.ID

    def test_transaction_details(self):
        assert classify_schema("transactions", "getTransactionDetails") is SchemaKind.DETAIL_LOOKUP
        assert classify_call("transactions_getTransactionDetails") is CallShape.TRANSACTION_ID

    def test_transactions_summary_takes_no_arguments(self):
        assert classify_call("transactions_getTransactionsSummary") is CallShape.NO_ARGUMENTS

    def test_history_and_mutations(self):
        assert classify_schema("accounts", "getNetWorthHistory") is SchemaKind.HISTORY_RANGE
        assert classify_call("accounts_getNetWorthHistory") is CallShape.DATE_RANGE
        assert classify_schema("transactions", "updateTransaction") is SchemaKind.MUTATION_UPDATE
        assert classify_call("transactions_updateTransaction") is CallShape.ID_AND_DATA
        assert classify_schema("accounts", "createManualAccount") is SchemaKind.MUTATION_CREATE
        assert classify_call("accounts_createManualAccount") is CallShape.DATA

    def test_account_list_and_plain_lists(self):
        assert classify_schema("accounts", "getAll") is SchemaKind.ACCOUNT_LIST
        assert classify_schema("budgets", "getBudgets") is SchemaKind.LIST_PLAIN
        assert classify_schema("client", "requestAccountsRefresh") is SchemaKind.EMPTY

    def test_result_categories(self):
        assert classify_result("insights_getQuickStats") is ResultCategory.SUMMARY
        assert classify_result("accounts_getAll") is ResultCategory.ACCOUNTS
        assert classify_result("transactions_smartQuery") is ResultCategory.TRANSACTIONS
        assert classify_result("categories_getCategories") is ResultCategory.CATEGORIES
        assert classify_result("budgets_getBudgets") is ResultCategory.BUDGETS
        assert classify_result("institutions_getInstitutions") is ResultCategory.GENERIC

    def test_operation_spec_is_cached(self):
        assert operation_spec("accounts", "getAll") is operation_spec("accounts", "getAll")

    def test_fallback_description(self):
        spec = operation_spec("insights", "getSomethingNew")
        assert spec.description == "Execute getSomethingNew on insights module"


class TestValidation:
    def test_transaction_filter_defaults(self):
        args = validate_arguments("transactions_getTransactions", TransactionFilterInput, {})
        assert args == {"limit": 50, "offset": 0, "verbosity": "summary"}

    def test_none_is_treated_as_empty(self):
        args = validate_arguments("transactions_getTransactions", TransactionFilterInput, None)
        assert args["limit"] == 50

    def test_large_limit_is_accepted(self):
        args = validate_arguments("transactions_getTransactions", TransactionFilterInput, {"limit": 500})
        assert args["limit"] == 500

    def test_missing_required_field(self):
        with pytest.raises(ToolValidationError) as exc_info:
            validate_arguments("accounts_getById", ByIdInput, {})
        assert "accounts_getById" in str(exc_info.value)
        assert "id" in str(exc_info.value)

    def test_bad_verbosity(self):
        with pytest.raises(ToolValidationError):
            validate_arguments(
                "transactions_getTransactions", TransactionFilterInput, {"verbosity": "loud"}
            )

    def test_derive_schema(self):
        assert derive_schema("accounts", "getById") is ByIdInput
        assert derive_schema("transactions", "getTransactions") is TransactionFilterInput


class TestAdaptArguments:
    def test_lookup_by_id(self):
        assert adapt_arguments("accounts_getById", {"id": "abc"}) == ["abc"]

    def test_no_argument_operation(self):
        assert adapt_arguments("accounts_getAll", {"verbosity": "brief"}) == []

    def test_transaction_id(self):
        assert adapt_arguments("transactions_getTransactionDetails", {"transactionId": "t1"}) == ["t1"]

    def test_limit_is_clamped(self):
        (filters,) = adapt_arguments("transactions_getTransactions", {"limit": 500, "offset": 0})
        assert filters["limit"] == 100

    def test_trailing_window_filled(self):
        start, end = trailing_window()
        (filters,) = adapt_arguments("transactions_getTransactions", {"limit": 50})
        assert filters["startDate"] == start
        assert filters["endDate"] == end
        assert date.fromisoformat(end) - date.fromisoformat(start) == timedelta(days=30)

    def test_explicit_dates_kept(self):
        (filters,) = adapt_arguments(
            "transactions_getTransactions", {"limit": 10, "startDate": "2024-01-01"}
        )
        assert filters["startDate"] == "2024-01-01"
        assert "endDate" not in filters

    def test_input_not_mutated(self):
        args = {"limit": 500}
        adapt_arguments("transactions_getTransactions", args)
        assert args == {"limit": 500}

    def test_history_range(self):
        assert adapt_arguments("accounts_getNetWorthHistory", {}) == []
        assert adapt_arguments("accounts_getNetWorthHistory", {"startDate": "2024-01-01"}) == [
            {"startDate": "2024-01-01"}
        ]

    def test_update_and_create(self):
        assert adapt_arguments("transactions_updateTransaction", {"id": "t1", "data": {"notes": "x"}}) == [
            "t1",
            {"notes": "x"},
        ]
        assert adapt_arguments("accounts_createManualAccount", {"data": {"accountName": "Cash"}}) == [
            {"accountName": "Cash"}
        ]

    def test_record_shape(self):
        assert adapt_arguments("requestAccountsRefresh", {}) == []

    def test_month_bounds(self):
        assert month_bounds("2024-02") == ("2024-02-01", "2024-02-29")
        assert month_bounds("2023-12") == ("2023-12-01", "2023-12-31")


class TestFormatAccounts:
    def test_brief(self):
        text = format_result("accounts_getAll", ACCOUNTS, {"verbosity": "brief"})
        assert text == "🏦 2 accounts, Total Balance: $3,500.5"

    def test_summary_counts_hidden(self):
        text = format_result("accounts_getAll", ACCOUNTS, {"verbosity": "summary"})
        assert "(2 total, 1 hidden)" in text
        assert "• **Checking** (Cash) - $1,000" in text
        assert text.endswith("**Total Balance: $3,500.5**")

    def test_detailed(self):
        text = format_result("accounts_getAll", ACCOUNTS, {"verbosity": "detailed"})
        assert "Type: Cash" in text
        assert "Balance: $1,000" in text
        assert "Institution: Chase" in text
        assert "ID: acc-1" in text
        assert "Checking" in text
        assert "Savings" in text

    def test_detailed_is_capped(self):
        accounts = [{"id": f"acc-{i}", "displayName": f"Account {i}", "currentBalance": i} for i in range(20)]
        text = format_result("accounts_getAll", accounts, {"verbosity": "detailed"})
        assert "... and 5 more accounts" in text
        assert "Account 14" in text
        assert "Account 15" not in text

    def test_idempotent(self):
        args = {"verbosity": "summary"}
        assert format_result("accounts_getAll", ACCOUNTS, args) == format_result("accounts_getAll", ACCOUNTS, args)


class TestFormatTransactions:
    def test_empty_list(self):
        text = format_result("transactions_getTransactions", [], {})
        assert "found" in text

    def test_brief(self):
        text = format_result("transactions_getTransactions", make_transactions(3), {"verbosity": "brief"})
        assert text == "💳 3 transactions, Total: $6"

    def test_summary_is_capped(self):
        text = format_result("transactions_getTransactions", make_transactions(30), {"verbosity": "summary"})
        assert "... and 10 more transactions" in text
        assert "Shop 19" in text
        assert "Shop 20" not in text

    def test_detailed_is_capped(self):
        text = format_result("transactions_getTransactions", make_transactions(30), {"verbosity": "detailed"})
        assert "... and 5 more transactions" in text
        assert "Shop 24" in text
        assert "Shop 25" not in text

    def test_detailed_shows_ids_and_notes(self):
        transactions = make_transactions(1)
        transactions[0]["notes"] = "birthday gift"
        text = format_result("transactions_getTransactions", transactions, {"verbosity": "detailed"})
        assert "ID: txn-0" in text
        assert "Notes: birthday gift" in text
        assert "3/5/2024" in text

    def test_sorted_by_amount_without_reordering_input(self):
        transactions = [
            {"id": "a", "amount": -5, "merchant": {"name": "Small"}},
            {"id": "b", "amount": -50, "merchant": {"name": "Large"}},
            {"id": "c", "amount": 20, "merchant": {"name": "Medium"}},
        ]
        text = format_result(
            "transactions_getTransactions", transactions, {"_sortByAmount": "desc"}
        )
        first = next(line for line in text.splitlines() if line.startswith("1. "))
        assert "Large" in first
        assert [t["id"] for t in transactions] == ["a", "b", "c"]

    def test_smart_query_banner(self):
        tagged = TaggedTransactions(make_transactions(2), filters={"search": "shop"}, query="shop stuff")
        text = format_result("transactions_smartQuery", tagged, {"verbosity": "summary"})
        assert text.startswith('🧠 **Smart Query**: "shop stuff"')


class TestFormatOther:
    def test_budgets_summary(self):
        budgets = [
            {"category": {"name": "Groceries"}, "actual": 50, "budgeted": 200},
            {"category": {"name": "Fun"}, "actual": 10, "budgeted": 0},
        ]
        text = format_result("budgets_getBudgets", budgets, {"verbosity": "summary"})
        assert "**Groceries**: $50 of $200 (25%)" in text
        assert "**Fun**: $10 of $0 (0%)" in text

    def test_budgets_brief(self):
        budgets = [{"actual": 50, "budgeted": 200}]
        text = format_result("budgets_getBudgets", budgets, {"verbosity": "brief"})
        assert text == "💰 1 budget categories, $50/$200 spent"

    def test_categories_brief(self):
        categories = [
            {"name": "Groceries", "group": {"name": "Food"}},
            {"name": "Dining", "group": {"name": "Food"}},
            {"name": "Rent", "group": {"name": "Housing"}},
        ]
        text = format_result("categories_getCategories", categories, {"verbosity": "brief"})
        assert text == "🏷️ 3 categories in 2 category groups"

    def test_none_result(self):
        assert format_result("accounts_getById", None, {}) == "No data returned for accounts_getById"

    def test_string_passes_through(self):
        assert format_result("insights_getQuickStats", "⚡ done", {}) == "⚡ done"

    def test_financial_summary_record(self):
        text = format_result(
            "cashflow_getCashflowSummary",
            {"totalIncome": 5000, "totalExpenses": 3200.25, "netIncome": 1799.75},
            {},
        )
        assert "💰 Total Income: $5,000" in text
        assert "💸 Total Expenses: $3,200.25" in text

    def test_object_fallback(self):
        assert format_result("getSubscriptionDetails", {"unrelated": 1}, {}) == (
            "getSubscriptionDetails returned an object"
        )

    def test_summary_without_values_falls_back(self):
        record = {"totalIncome": None, "totalExpenses": None, "netIncome": None}
        assert format_result("cashflow_getCashflowSummary", record, {}) == (
            "cashflow_getCashflowSummary returned an object"
        )

    def test_generic_list(self):
        text = format_result("institutions_getInstitutions", [{"name": f"Bank {i}"} for i in range(12)], {})
        assert text.startswith("Found 12 items:")
        assert "... and 2 more items" in text


class TestEmptyResults:
    """An empty list renders a "none found" message for every renderer and verbosity."""

    @pytest.mark.parametrize("verbosity", ["brief", "summary", "detailed"])
    @pytest.mark.parametrize("key", [
        "accounts_getAll",
        "transactions_getTransactions",
        "categories_getCategories",
        "budgets_getBudgets",
        "institutions_getInstitutions",
    ])
    def test_empty_list(self, key, verbosity):
        text = format_result(key, [], {"verbosity": verbosity})
        assert "found" in text


class TestParseQuery:
    def test_count_merchant_and_amount(self):
        assert parse_query("last 3 amazon purchases over $10") == {
            "limit": 3,
            "search": "amazon",
            "absAmountRange": [10.0, None],
        }

    def test_upper_bound_with_separators(self):
        assert parse_query("walmart under $1,000.00") == {
            "search": "walmart",
            "absAmountRange": [None, 1000.0],
        }

    def test_large_count_ignored(self):
        assert "limit" not in parse_query("top 500 charges")

    def test_this_month_and_sort(self):
        filters = parse_query("largest transactions this month", today=date(2024, 3, 15))
        assert filters == {
            "startDate": "2024-03-01",
            "endDate": "2024-03-15",
            "_sortByAmount": "desc",
        }

    def test_last_month(self):
        filters = parse_query("starbucks last month", today=date(2024, 3, 15))
        assert filters["startDate"] == "2024-02-01"
        assert filters["endDate"] == "2024-02-29"

    def test_this_week_starts_sunday(self):
        filters = parse_query("smallest charges this week", today=date(2024, 3, 13))
        assert filters["startDate"] == "2024-03-10"
        assert filters["_sortByAmount"] == "asc"

    def test_nothing_recognized(self):
        assert parse_query("coffee shops") == {}
