"""
Monarch MCP Tool Definitions

Builds the tool catalog from the Monarch client. Instead of a hand-written
Tool per operation, each supported operation in the operation table gets a
generated definition: its input schema, argument shape and renderer all
come from how the operation is classified.

Catalog order:
1. Grouped operations (accounts_getAll, transactions_getTransactions, ...)
2. transactions_smartQuery (natural-language transaction search)
3. Top-level client operations (getSubscriptionDetails, ...)
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import structlog
from mcp.types import TextContent, Tool
from pydantic import BaseModel

from .arguments import adapt_arguments
from .errors import MonarchMCPError, ToolExecutionError, UnsupportedToolError
from .operations import (
    AUTH_OPERATIONS,
    CLIENT_GROUP,
    CLIENT_OPERATIONS,
    SDK_GROUPS,
    SMART_QUERY_TOOL,
    SUPPORTED_OPERATIONS,
    OperationSpec,
    operation_spec,
)
from .schema import SmartQueryInput, input_json_schema, schema_for_kind, validate_arguments
from .tools.formatter import TaggedTransactions, format_result
from .tools.query_parser import parse_query


log = structlog.get_logger(__name__)

Handler = Callable[[Any], Awaitable[list[TextContent]]]
EnsureAuthenticated = Callable[[], Awaitable[None]]
FormatFn = Callable[[str, Any, dict], str]

SMART_QUERY_LIMIT = 25
SMART_QUERY_DESCRIPTION = (
    'Smart transaction search using natural language queries '
    '(e.g., "last 3 Amazon charges", "largest transactions this month")'
)


@dataclass
class ToolDefinition:
    """One invocable tool: name, description, input model and async handler."""
    name: str
    description: str
    input_schema: type[BaseModel]
    handler: Handler

    def to_mcp_tool(self) -> Tool:
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=input_json_schema(self.input_schema),
        )


def text_content(text: str) -> list[TextContent]:
    return [TextContent(type="text", text=text)]


def resolve_operation(client: Any, group: str, operation: str) -> Optional[Callable]:
    """The bound client method behind an operation, or None if it isn't there."""
    target = client if group == CLIENT_GROUP else getattr(client, group, None)
    if target is None:
        return None
    method = getattr(target, operation, None)
    return method if callable(method) else None


def build_tool_definition(
    spec: OperationSpec,
    client: Any,
    ensure_authenticated: EnsureAuthenticated,
    format_fn: FormatFn = format_result,
) -> ToolDefinition:
    """Generate the definition for one client operation."""
    schema = schema_for_kind(spec.schema_kind)

    async def handler(raw_args: Any) -> list[TextContent]:
        args = validate_arguments(spec.key, schema, raw_args)
        await ensure_authenticated()

        method = resolve_operation(client, spec.group, spec.operation)
        if method is None:
            raise UnsupportedToolError(spec.key)

        try:
            call_args = adapt_arguments(spec.key, args)
            response = await method(*call_args)
        except Exception as e:
            raise ToolExecutionError(spec.key, str(e)) from e

        return text_content(format_fn(spec.key, response, args))

    return ToolDefinition(
        name=spec.key,
        description=spec.description,
        input_schema=schema,
        handler=handler,
    )


def exposed_operations(client: Any) -> list[OperationSpec]:
    """Table operations the client actually has, grouped ones first."""
    specs = []
    for group in SDK_GROUPS:
        if getattr(client, group, None) is None:
            continue
        for operation in SUPPORTED_OPERATIONS.get(group, ()):
            if resolve_operation(client, group, operation) is not None:
                specs.append(operation_spec(group, operation))
    return specs


def exposed_client_operations(client: Any) -> list[OperationSpec]:
    return [
        operation_spec(CLIENT_GROUP, operation)
        for operation in CLIENT_OPERATIONS
        if operation not in AUTH_OPERATIONS
        and resolve_operation(client, CLIENT_GROUP, operation) is not None
    ]


# -----------------------------------------------------------------------------
# Smart query
# -----------------------------------------------------------------------------

def _unwrap_transactions(response: Any) -> Any:
    if isinstance(response, dict) and "transactions" in response:
        return response["transactions"]
    return response


async def run_smart_query(transactions: Any, query: str) -> Any:
    """
    Answer a free-text query with the transactions client.

    Uses the client's own smartQuery when it has one. Otherwise the parsed
    filters become a getTransactions request (limit 25 unless the query
    names a count); if nothing could be parsed, the text is used as a plain
    search term.
    """
    filters = parse_query(query)
    log.info("Parsed smart query", query=query, filters=filters)

    native = getattr(transactions, "smartQuery", None)
    if callable(native):
        response = await native(query)
    else:
        if filters:
            # Keys starting with "_" are rendering hints, not API filters
            request = {key: value for key, value in filters.items() if not key.startswith("_")}
            request.setdefault("limit", SMART_QUERY_LIMIT)
        else:
            request = {"search": query, "limit": SMART_QUERY_LIMIT}
        log.info("Executing smart query", request=request)
        response = await transactions.getTransactions(request)

    items = _unwrap_transactions(response)
    if isinstance(items, list):
        return TaggedTransactions(items, filters=filters, query=query)
    return items


def build_smart_query_tool(
    client: Any,
    ensure_authenticated: EnsureAuthenticated,
    format_fn: FormatFn = format_result,
) -> ToolDefinition:
    async def handler(raw_args: Any) -> list[TextContent]:
        args = validate_arguments(SMART_QUERY_TOOL, SmartQueryInput, raw_args)
        await ensure_authenticated()

        transactions = getattr(client, "transactions", None)
        if transactions is None:
            raise UnsupportedToolError(SMART_QUERY_TOOL)

        try:
            result = await run_smart_query(transactions, args["query"])
        except MonarchMCPError:
            raise
        except Exception as e:
            raise ToolExecutionError(SMART_QUERY_TOOL, str(e)) from e

        return text_content(format_fn(SMART_QUERY_TOOL, result, args))

    return ToolDefinition(
        name=SMART_QUERY_TOOL,
        description=SMART_QUERY_DESCRIPTION,
        input_schema=SmartQueryInput,
        handler=handler,
    )


# -----------------------------------------------------------------------------
# Catalog
# -----------------------------------------------------------------------------

def build_catalog(
    client: Any,
    ensure_authenticated: EnsureAuthenticated,
    format_fn: FormatFn = format_result,
) -> list[ToolDefinition]:
    """All tools for a client, in catalog order, with unique names."""
    tools = [
        build_tool_definition(spec, client, ensure_authenticated, format_fn)
        for spec in exposed_operations(client)
    ]
    names = {tool.name for tool in tools}

    if SMART_QUERY_TOOL not in names and getattr(client, "transactions", None) is not None:
        tools.append(build_smart_query_tool(client, ensure_authenticated, format_fn))
        names.add(SMART_QUERY_TOOL)

    for spec in exposed_client_operations(client):
        if spec.key in names:
            continue
        tools.append(build_tool_definition(spec, client, ensure_authenticated, format_fn))
        names.add(spec.key)

    return tools
