"""Schema commands -- search and show component schemas.

Provides the ``specdex schemas`` sub-command group over
``components.schemas``.  ``search`` lists matching schema names with their
type and first few properties; ``show`` prints one schema with nested
``$ref`` pointers expanded up to ``--max-depth`` hops.
"""

from __future__ import annotations

from typing import Optional

import typer

from specdex.commands import report_page, run_query, text_cell
from specdex.models import dump_model
from specdex.output import OutputFormat, format_response, get_output, info
from specdex.parser.resolver import DEFAULT_MAX_DEPTH
from specdex.query import DEFAULT_LIMIT


schemas_app = typer.Typer(no_args_is_help=True)

_MAX_LISTED_PROPERTIES = 5


@schemas_app.command("search")
def search_schemas(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Regex matched against the schema name."
    ),
    property_name: Optional[str] = typer.Option(
        None, "--property", "-p", help="Substring of any property name."
    ),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", "-l", min=0, help="Page size."),
    offset: int = typer.Option(0, "--offset", min=0, help="Number of matches to skip."),
) -> None:
    """Search schemas by name or property name.

    Example::

        specdex schemas search --name 'Pet$'
        specdex schemas search --property email
    """
    result = run_query(
        ctx,
        lambda engine: engine.search_schemas(
            name_pattern=name,
            property_name=property_name,
            limit=limit,
            offset=offset,
        ),
    )

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_response(dump_model(result))
        return

    if not result.schemas:
        info("No schemas match.")
        return

    rows: list[list[str]] = []
    for schema in result.schemas:
        prop_names = schema.property_names or []
        props = text_cell(prop_names[:_MAX_LISTED_PROPERTIES])
        if len(prop_names) > _MAX_LISTED_PROPERTIES:
            props += "..."
        rows.append([str(schema.name), text_cell(schema.type, " | "), props])

    output.print_table(["Schema", "Type", "Properties"], rows, title="Schemas")
    report_page(result.pagination, "schemas")


@schemas_app.command("show")
def show_schema(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Exact schema name in components.schemas."),
    no_resolve: bool = typer.Option(
        False, "--no-resolve", help="Keep $ref pointers instead of expanding them."
    ),
    max_depth: int = typer.Option(
        DEFAULT_MAX_DEPTH, "--max-depth", min=0, help="Maximum nested $ref hops to expand."
    ),
) -> None:
    """Show one schema definition.

    Example::

        specdex schemas show Pet --max-depth 2
    """
    details = run_query(
        ctx,
        lambda engine: engine.get_schema_details(
            name, resolve_refs=not no_resolve, max_depth=max_depth
        ),
    )
    format_response(details)
