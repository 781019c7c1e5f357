"""Spec command -- print the raw OpenAPI document or one of its sections."""

from __future__ import annotations

from typing import Optional

import typer

from specdex.commands import run_query
from specdex.output import format_response, info
from specdex.query import SPEC_SECTIONS


def spec_command(
    ctx: typer.Context,
    section: Optional[str] = typer.Option(
        None,
        "--section",
        "-s",
        help=f"Top-level section to print: {', '.join(SPEC_SECTIONS)} (default: full).",
    ),
    path_filter: Optional[str] = typer.Option(
        None, "--path-filter", "-f", help="Regex on path keys (paths and full only)."
    ),
) -> None:
    """Print the OpenAPI document, or one section of it, as JSON.

    Example::

        specdex spec --section info
        specdex spec --section paths --path-filter '^/pets'
    """
    data = run_query(ctx, lambda engine: engine.get_spec_section(section, path_filter))
    if data is None:
        info(f"The document has no '{section}' section.")
        return
    format_response(data)
