"""
MCP server entrypoint for testgen-pipeline.

This module is intentionally thin:
- sets up the MCP server
- registers tools (from handlers)
- routes tool calls to handlers
"""


from __future__ import annotations

import asyncio
import logging
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent

from .config import get_settings
from .handlers.core import HANDLERS, TOOLS
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

# Create the MCP server instance
server = Server("testgen-pipeline")


# =============================================================================
# Tool Registration
# =============================================================================

@server.list_tools()
async def list_tools():
    """List all available tools."""
    return TOOLS


# =============================================================================
# Tool Router
# =============================================================================

@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Route tool calls to appropriate handlers."""
    logger.info("Tool called: %s", name)

    handler = HANDLERS.get(name)

    if handler:
        return await handler(arguments or {})

    return [TextContent(type="text", text=f"Unknown tool: {name}")]


# =============================================================================
# Entry Point
# =============================================================================

async def run_server():
    """Run the MCP server."""
    logger.info("Starting Testgen Pipeline MCP Server...")
    logger.info("Registered %d tools: %s", len(TOOLS), [t.name for t in TOOLS])

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def main():
    """Entry point."""
    # stdout carries the MCP protocol
    configure_logging(get_settings(), stream=sys.stderr)
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
