"""Built-in CLI sub-commands for specdex.

This package groups the Typer sub-command modules that form the CLI's
command tree:

* :mod:`~specdex.commands.endpoints` -- search and show API operations.
* :mod:`~specdex.commands.schemas` -- search and show component schemas.
* :mod:`~specdex.commands.spec` -- print a raw section of the document.
* :mod:`~specdex.commands.serve` -- run the MCP server over stdio.

Query commands share :func:`run_query`, which resolves the configuration
from the root options stored in ``ctx.obj``, builds a fresh cache and engine
for the one-shot invocation, and turns a
:class:`~specdex.exceptions.SpecdexError` into an error message plus the
matching exit code.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from specdex.cache import SpecCache
from specdex.config import resolve_config
from specdex.exceptions import SpecdexError
from specdex.models import Pagination, SpecdexConfig
from specdex.output import debug, error, info, suggest
from specdex.parser import create_fetcher
from specdex.query import QueryEngine

_T = TypeVar("_T")


def config_from_context(ctx: typer.Context) -> SpecdexConfig:
    """Resolve the effective config using the root CLI flags as overrides."""
    obj = ctx.obj or {}
    return resolve_config(
        cli_spec_url=obj.get("spec"),
        cli_api_key=obj.get("api_key"),
        cli_ttl=obj.get("ttl"),
    )


def run_query(ctx: typer.Context, query: Callable[[QueryEngine], Awaitable[_T]]) -> _T:
    """Run *query* against a freshly wired engine and return its result.

    Raises:
        typer.Exit: With the error's exit code when a
            :class:`~specdex.exceptions.SpecdexError` is raised.
    """
    try:
        config = config_from_context(ctx)
        debug(f"Loading spec from {config.spec_url}")
        cache = SpecCache(create_fetcher(config), ttl_seconds=config.cache_ttl_seconds)
        result = asyncio.run(query(QueryEngine(cache)))
        stats = cache.stats()
        debug(f"Indexed {stats['endpoints']} endpoints and {stats['schemas']} schemas")
        return result
    except SpecdexError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def report_page(pagination: Pagination, noun: str) -> None:
    """Print a "Showing a-b of n" summary to stderr and a hint for the next page."""
    if pagination.total == 0:
        return
    first = min(pagination.offset + 1, pagination.total)
    last = min(pagination.offset + pagination.limit, pagination.total)
    info(f"Showing {first}-{last} of {pagination.total} {noun}")
    if pagination.has_more:
        suggest(f"Next page: --offset {pagination.offset + pagination.limit}")


def text_cell(value: Any, separator: str = ", ") -> str:
    """Render a literal document value as a table cell, ``-`` when empty."""
    if isinstance(value, list):
        value = separator.join(str(item) for item in value)
    if value is None or value == "":
        return "-"
    return str(value)
