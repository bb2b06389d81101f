"""
Monarch MCP Errors

Every failure a tool handler can produce is one of these. The dispatch
layer turns them into a single MCP error whose message names the tool
and the underlying cause - never a stack trace.
"""


class MonarchMCPError(Exception):
    """Base class for all errors raised by the tool layer."""


class ToolValidationError(MonarchMCPError):
    """Caller-supplied arguments did not match the tool's input schema."""

    def __init__(self, tool_name: str, detail: str):
        self.tool_name = tool_name
        self.detail = detail
        super().__init__(f"Invalid arguments for {tool_name}: {detail}")


class ConfigurationError(MonarchMCPError):
    """Required credentials are missing. Not retried."""


class AuthenticationError(MonarchMCPError):
    """Login failed. The message is a user-facing hint."""


class UnsupportedToolError(MonarchMCPError):
    """The client does not expose the operation behind a tool."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unsupported tool: {tool_name}")


class ToolExecutionError(MonarchMCPError):
    """The external operation itself failed."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        self.cause_message = message
        super().__init__(f"Failed to execute {tool_name}: {message}")
