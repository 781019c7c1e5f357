"""Serve command -- run the MCP server over stdio.

The server speaks the Model Context Protocol on stdin/stdout, so nothing but
protocol messages may reach stdout while it runs.  Diagnostics go to stderr
through :func:`~specdex.output.configure_logging`.
"""

from __future__ import annotations

import asyncio

import typer

from specdex.commands import config_from_context
from specdex.exceptions import SpecdexError
from specdex.output import debug, error


def serve_command(ctx: typer.Context) -> None:
    """Run the MCP server on stdin/stdout.

    Example::

        OPENAPI_SPEC_URL=https://petstore3.swagger.io/api/v3/openapi.json specdex serve
    """
    from specdex.server.mcp import serve_stdio

    try:
        config = config_from_context(ctx)
    except SpecdexError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    debug(f"Serving {config.spec_url} (cache TTL {config.cache_ttl_seconds:g}s)")
    asyncio.run(serve_stdio(config))
