"""
Monarch MCP Handlers - Request processing logic

Owns the shared Monarch client, the login gate and the tool table.
Each call:
1. Looks the tool up by name
2. Runs its handler (validate -> authenticate -> call -> format)
3. Maps any failure to a single MCP error

Keeping this separate from server.py keeps the routing layer thin.
"""

from typing import Any, Optional

import structlog
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData, TextContent, Tool

from .auth import AuthGate, classify_login_error
from .client import MonarchClient
from .config import MonarchConfig, load_config
from .errors import AuthenticationError, ToolValidationError
from .tool_definitions import ToolDefinition, build_catalog
from .tools.summaries import build_summary_tools


log = structlog.get_logger(__name__)


class Handlers:
    """
    Central handler class for all Monarch tool calls.

    Initialized once with the client, then handles requests by
    dispatching to the generated tool definitions.
    """

    def __init__(self, client: Any = None, config: Optional[MonarchConfig] = None):
        self.config = config
        self.client = client if client is not None else MonarchClient(config)
        self.auth = AuthGate(self._login)

        self.tools: dict[str, ToolDefinition] = {}
        catalog = build_catalog(self.client, self.auth.ensure)
        for tool in catalog + build_summary_tools(self.client, self.auth.ensure):
            self.tools.setdefault(tool.name, tool)

        log.info("Tool catalog ready", tool_count=len(self.tools))

    async def _login(self) -> None:
        # Missing credentials fail fast and are never wrapped as a login failure
        config = self.config or load_config()
        self.config = config

        log.info("Logging in to Monarch Money", mfa=bool(config.mfa_secret))
        try:
            await self.client.login(config.email, config.password, mfa_secret_key=config.mfa_secret)
        except Exception as e:
            hint = classify_login_error(e)
            log.error("Monarch Money login failed", error=str(e), hint=hint)
            raise AuthenticationError(hint) from e

        log.info("Monarch Money login succeeded")

    def list_tools(self) -> list[Tool]:
        return [tool.to_mcp_tool() for tool in self.tools.values()]

    async def call(self, name: str, arguments: Optional[dict] = None) -> list[TextContent]:
        tool = self.tools.get(name)
        if tool is None:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

        try:
            return await tool.handler(arguments)
        except ToolValidationError as e:
            log.warning("Rejected tool arguments", tool=name, error=str(e))
            raise McpError(ErrorData(code=INVALID_PARAMS, message=str(e))) from e
        except Exception as e:
            log.error("Tool call failed", tool=name, error=str(e))
            raise McpError(ErrorData(code=INTERNAL_ERROR, message=f"Tool {name} failed: {e}")) from e
