"""
Monarch MCP Server

The main entry point that exposes Monarch Money to an agent via the
Model Context Protocol.

This file is intentionally kept as a thin routing layer.
All handler logic is in handlers.py.
"""

import asyncio

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .config import load_config
from .errors import ConfigurationError
from .handlers import Handlers
from .log import configure_logging


log = structlog.get_logger(__name__)

server = Server("monarch-money")
handlers: Handlers = None


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List available Monarch tools."""
    return handlers.list_tools()


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Route a tool call to its handler."""
    return await handlers.call(name, arguments)


def create_handlers() -> Handlers:
    # Missing credentials only fail the first tool call, not startup
    try:
        config = load_config()
    except ConfigurationError as e:
        log.warning("Starting without credentials", error=str(e))
        config = None
    return Handlers(config=config)


def main():
    """Main entry point."""
    global handlers

    configure_logging()
    handlers = create_handlers()

    async def run():
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())

    log.info("Starting Monarch MCP server", tools=len(handlers.tools))
    asyncio.run(run())


if __name__ == "__main__":
    main()
