"""
Monarch MCP Input Schemas

Every tool validates its raw arguments against one of these models before
anything else happens. Fields mirror what the Monarch client expects
(camelCase), so a validated record can be handed to the argument adapter
as-is.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .errors import ToolValidationError
from .operations import SchemaKind, classify_schema


Verbosity = Literal["brief", "summary", "detailed"]

VERBOSITY_FIELD = Field(default="summary", description="Output detail level: brief, summary (default), or detailed")


class ByIdInput(BaseModel):
    """ID based lookup."""
    id: str = Field(description="The ID of the item to retrieve")


class TransactionDetailInput(BaseModel):
    """Transaction detail lookup."""
    transactionId: str = Field(description="The transaction ID to retrieve details for")


class TransactionFilterInput(BaseModel):
    """Transaction filter options."""
    # Not capped here; the argument adapter clamps to 100
    limit: int = Field(default=50, gt=0, description="Maximum number of results (default: 50, capped at 100)")
    offset: int = Field(default=0, ge=0, description="Pagination offset")
    startDate: Optional[str] = Field(default=None, description="Start date (YYYY-MM-DD)")
    endDate: Optional[str] = Field(default=None, description="End date (YYYY-MM-DD)")
    accountIds: Optional[list[str]] = Field(default=None, description="Filter by account IDs")
    categoryIds: Optional[list[str]] = Field(default=None, description="Filter by category IDs")
    search: Optional[str] = Field(default=None, description="Search term for merchant names or descriptions")
    absAmountRange: Optional[tuple[Optional[float], Optional[float]]] = Field(
        default=None, description="Filter by absolute amount range [min, max]; either bound may be null"
    )
    verbosity: Verbosity = VERBOSITY_FIELD


class DateRangeInput(BaseModel):
    """Date range options."""
    startDate: Optional[str] = Field(default=None, description="Start date (YYYY-MM-DD)")
    endDate: Optional[str] = Field(default=None, description="End date (YYYY-MM-DD)")


class UpdateInput(BaseModel):
    """Payload wrapper for update calls."""
    id: str = Field(description="Identifier for the item to update")
    data: dict[str, Any] = Field(description="Data for the operation")


class CreateInput(BaseModel):
    """Payload wrapper for create calls."""
    data: dict[str, Any] = Field(description="Data for the operation")


class AccountListInput(BaseModel):
    """Account list options."""
    includeHidden: Optional[bool] = Field(default=None, description="Include hidden accounts")
    verbosity: Verbosity = VERBOSITY_FIELD


class VerbosityInput(BaseModel):
    """Optional verbosity."""
    verbosity: Verbosity = VERBOSITY_FIELD


class EmptyInput(BaseModel):
    """Optional parameters."""


class SmartQueryInput(BaseModel):
    query: str = Field(
        description='Natural language query (e.g., "last 5 Amazon purchases", '
                    '"biggest transactions this month", "Starbucks charges over $10")'
    )
    verbosity: Verbosity = VERBOSITY_FIELD


# -----------------------------------------------------------------------------
# Summary tool inputs
# -----------------------------------------------------------------------------

class SpendingByCategoryInput(BaseModel):
    month: Optional[str] = Field(
        default=None, pattern=r"^\d{4}-\d{2}$",
        description="Month in YYYY-MM format (defaults to current month)",
    )
    topN: int = Field(default=10, gt=0, description="Number of top categories to show (default: 10)")


class BalanceTrendsInput(BaseModel):
    period: Literal["week", "month", "quarter"] = Field(
        default="month", description="Period for balance comparison"
    )


class BudgetVarianceInput(BaseModel):
    month: Optional[str] = Field(
        default=None, pattern=r"^\d{4}-\d{2}$",
        description="Month in YYYY-MM format (defaults to current month)",
    )


class QuickStatsInput(BaseModel):
    pass


_SCHEMAS: dict[SchemaKind, type[BaseModel]] = {
    SchemaKind.LOOKUP_BY_ID: ByIdInput,
    SchemaKind.DETAIL_LOOKUP: TransactionDetailInput,
    SchemaKind.LIST_WITH_FILTER: TransactionFilterInput,
    SchemaKind.HISTORY_RANGE: DateRangeInput,
    SchemaKind.MUTATION_UPDATE: UpdateInput,
    SchemaKind.MUTATION_CREATE: CreateInput,
    SchemaKind.ACCOUNT_LIST: AccountListInput,
    SchemaKind.LIST_PLAIN: VerbosityInput,
    SchemaKind.EMPTY: EmptyInput,
}


def schema_for_kind(kind: SchemaKind) -> type[BaseModel]:
    return _SCHEMAS[kind]


def derive_schema(group: str, operation: str) -> type[BaseModel]:
    """Return the input model for an operation, chosen by its name."""
    return _SCHEMAS[classify_schema(group, operation)]


def validate_arguments(tool_name: str, schema: type[BaseModel], raw: Any) -> dict[str, Any]:
    """
    Validate raw tool arguments and return the record with defaults applied.

    Unknown fields are dropped and unset optional fields are omitted, so
    validating {} against the transaction filter yields exactly
    {"limit": 50, "offset": 0, "verbosity": "summary"}.
    """
    try:
        model = schema.model_validate(raw if raw is not None else {})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        )
        raise ToolValidationError(tool_name, problems) from e

    return {key: value for key, value in model.model_dump().items() if value is not None}


def input_json_schema(schema: type[BaseModel]) -> dict[str, Any]:
    """JSON Schema advertised to MCP clients for a model."""
    json_schema = schema.model_json_schema()
    json_schema.setdefault("properties", {})
    json_schema["type"] = "object"
    return json_schema
