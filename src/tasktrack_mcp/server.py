"""TaskTrack MCP Server - Expose the task workflow to AI assistants."""
import os
import sys
import asyncio
import logging
import traceback
from typing import Any, Optional

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    Tool,
    TextContent,
    ImageContent,
    EmbeddedResource,
)

from . import tools
from . import handlers


# Configure logging to stderr (stdout carries the MCP protocol)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr,
    force=True
)
logger = logging.getLogger("tasktrack-mcp")

# API Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000/api")
DEFAULT_USER_ID = os.getenv("TASKTRACK_USER_ID")

logger.info(f"MCP Server starting with API_BASE_URL: {API_BASE_URL}")


# MCP Server instance
app = Server("tasktrack-mcp")

# Acting user for this connection (each stdio connection is its own process)
_session_user: Optional[dict] = None


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available MCP tools for task management."""
    return tools.get_tools()


def _error_detail(response: httpx.Response) -> str:
    """Extract the API's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


async def dispatch(
    name: str,
    arguments: dict,
    client: httpx.AsyncClient,
) -> list[TextContent]:
    """Run one tool call against the API, updating the session's acting user."""
    global _session_user

    handler = handlers.HANDLERS.get(name)
    if not handler:
        logger.warning(f"Unknown tool requested: {name}")
        return [TextContent(type="text", text=f"Unknown tool: {name}")]

    try:
        if _session_user is None and DEFAULT_USER_ID and name != "clear_user":
            _, _session_user = await handlers.handle_select_user(
                {"user_id": int(DEFAULT_USER_ID)}, client, None
            )

        arguments, user_error = handlers.apply_user_defaults(name, arguments, _session_user)
        if user_error is not None:
            return user_error

        content, _session_user = await handler(arguments, client, _session_user)
        return content

    except httpx.HTTPStatusError as e:
        error_detail = _error_detail(e.response)
        logger.error(
            f"HTTP error during {name} call: {e.response.status_code} "
            f"{e.request.method} {e.request.url} - {error_detail}"
        )
        return [TextContent(type="text", text=f"Error: {error_detail}")]

    except httpx.RequestError as e:
        # Network/connection errors
        logger.error(f"Request error during {name} call: {type(e).__name__}: {e}")
        return [TextContent(type="text", text=f"Error: Connection failed - {str(e)}")]

    except Exception as e:
        # Catch-all for unexpected errors
        logger.error(f"Unexpected error during {name} call with {arguments}:\n{traceback.format_exc()}")
        return [TextContent(type="text", text=f"Error: {type(e).__name__}: {str(e)}")]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent | ImageContent | EmbeddedResource]:
    """Handle MCP tool calls by delegating to handlers."""
    logger.info(f"Tool call: {name} with arguments: {arguments}")

    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        return await dispatch(name, dict(arguments or {}), client)


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


def run() -> None:
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
