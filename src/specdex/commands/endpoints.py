"""Endpoint commands -- search and show API operations.

Provides the ``specdex endpoints`` sub-command group.  ``search`` filters
the endpoint index and prints one page of matches as a table (or the raw
result with ``--json``); ``show`` prints a single operation merged with its
path-level parameters, with ``$ref`` pointers expanded by default.
"""

from __future__ import annotations

from typing import List, Optional

import typer

from specdex.commands import report_page, run_query, text_cell
from specdex.models import dump_model
from specdex.output import OutputFormat, format_response, get_output, info
from specdex.query import DEFAULT_LIMIT


endpoints_app = typer.Typer(no_args_is_help=True)


@endpoints_app.command("search")
def search_endpoints(
    ctx: typer.Context,
    path: Optional[str] = typer.Option(
        None, "--path", "-p", help="Regex matched against the endpoint path."
    ),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="HTTP method (GET, POST, ...)."
    ),
    tags: Optional[List[str]] = typer.Option(
        None, "--tag", "-t", help="Tag to match; repeat for any-of matching."
    ),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Regex matched against summary or description."
    ),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-l", min=0, help="Page size."),
    offset: int = typer.Option(0, "--offset", min=0, help="Number of matches to skip."),
) -> None:
    """Search endpoints by path, method, tag, or description.

    Example::

        specdex endpoints search --path '^/pets' --method get
        specdex endpoints search --tag admin --tag users --limit 50
    """
    result = run_query(
        ctx,
        lambda engine: engine.search_endpoints(
            path_pattern=path,
            method=method,
            tags=tags,
            description=description,
            limit=limit,
            offset=offset,
        ),
    )

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_response(dump_model(result))
        return

    if not result.endpoints:
        info("No endpoints match.")
        return

    rows = [
        [e.method, e.path, text_cell(e.summary), text_cell(e.tags)]
        for e in result.endpoints
    ]
    output.print_table(["Method", "Path", "Summary", "Tags"], rows, title="Endpoints")
    report_page(result.pagination, "endpoints")


@endpoints_app.command("show")
def show_endpoint(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Exact path key, e.g. /pets/{petId}."),
    method: str = typer.Argument(..., help="HTTP method, any case."),
    no_resolve: bool = typer.Option(
        False, "--no-resolve", help="Keep $ref pointers instead of expanding them."
    ),
) -> None:
    """Show one endpoint with its parameters, request body and responses.

    Example::

        specdex endpoints show /pets/{petId} get
    """
    endpoint = run_query(
        ctx,
        lambda engine: engine.get_endpoint_details(path, method, resolve_refs=not no_resolve),
    )
    format_response(endpoint)
