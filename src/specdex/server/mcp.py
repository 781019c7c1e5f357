"""MCP server exposing the query tools over stdio.

:func:`create_mcp_server` builds a low-level :class:`mcp.server.Server` whose
``list_tools`` and ``call_tool`` handlers delegate to a
:class:`~specdex.server.tools.ToolDispatcher`.  :func:`serve_stdio` wires a
cache, engine and dispatcher together from a
:class:`~specdex.models.SpecdexConfig` and runs the server until the client
disconnects.

Every tool reply is a single text block holding the JSON envelope produced
by the dispatcher.  Failed calls raise :class:`ToolCallError`, which the
low-level server turns into a reply flagged ``isError`` whose text is the
same ``{"success": false, "error": ...}`` envelope.
stdout carries the protocol; all logging goes to stderr.
"""

from __future__ import annotations

import logging
from typing import Any, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from specdex import __version__
from specdex.cache import SpecCache
from specdex.models import SpecdexConfig
from specdex.parser import create_fetcher
from specdex.query import QueryEngine
from specdex.server.tools import ToolDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "specdex"
SERVER_INSTRUCTIONS = (
    "This MCP server answers questions about one OpenAPI document. Use "
    "search_endpoints and search_schemas to find operations and models, then "
    "get_endpoint_details and get_schema_details for full definitions with $ref "
    "pointers expanded. get_openapi_spec returns raw sections of the document."
)


class ToolCallError(Exception):
    """A tool call failed; the message is the JSON failure envelope."""


def list_tool_definitions(dispatcher: ToolDispatcher) -> List[Tool]:
    """Describe every tool the dispatcher serves."""
    return [
        Tool(name=spec.name, description=spec.description, inputSchema=spec.input_schema())
        for spec in dispatcher.specs
    ]


async def handle_tool_call(
    dispatcher: ToolDispatcher, name: str, arguments: Any
) -> List[TextContent]:
    """Run one tool call and wrap its JSON envelope in a text block.

    Raises:
        ToolCallError: If the dispatcher reports a failure.
    """
    result = await dispatcher.call(name, arguments if isinstance(arguments, dict) else None)
    if result.is_error:
        logger.debug("Tool %s returned an error: %s", name, result.payload.get("error"))
        raise ToolCallError(result.to_json())
    return [TextContent(type="text", text=result.to_json())]


def create_mcp_server(dispatcher: ToolDispatcher) -> Server:
    """Create the MCP server instance with its tool handlers registered."""
    server = Server(name=SERVER_NAME, version=__version__, instructions=SERVER_INSTRUCTIONS)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        return list_tool_definitions(dispatcher)

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> List[TextContent]:
        return await handle_tool_call(dispatcher, name, arguments)

    return server


def build_dispatcher(config: SpecdexConfig) -> ToolDispatcher:
    """Wire fetcher, cache and engine for *config* into a dispatcher."""
    cache = SpecCache(create_fetcher(config), ttl_seconds=config.cache_ttl_seconds)
    return ToolDispatcher(QueryEngine(cache))


async def serve_stdio(config: SpecdexConfig) -> None:
    """Run the MCP server over stdin/stdout until the client disconnects.

    The cache is cleared on the way out, whether the session ended normally
    or was interrupted.
    """
    dispatcher = build_dispatcher(config)
    server = create_mcp_server(dispatcher)
    logger.info("Starting MCP server for %s", config.spec_url)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        logger.debug("Cache at shutdown: %s", dispatcher.engine.cache.stats())
        dispatcher.engine.cache.clear()
        logger.info("MCP server stopped")
