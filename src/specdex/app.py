"""Typer application and CLI entry point for specdex.

This module wires together the top-level Typer application and registers the
built-in sub-commands (``endpoints``, ``schemas``, ``spec``, ``serve``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``.  It installs signal handlers and invokes the Typer app.
Unhandled exceptions are written to a crash log under the data directory.

See Also:
    :mod:`specdex.config`: Configuration resolution.
    :mod:`specdex.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from specdex import __version__
from specdex.commands.endpoints import endpoints_app
from specdex.commands.schemas import schemas_app
from specdex.commands.serve import serve_command
from specdex.commands.spec import spec_command
from specdex.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED


app = typer.Typer(
    name="specdex",
    help="Search and browse OpenAPI 3.x documents, or serve them to MCP clients.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(endpoints_app, name="endpoints", help="Search and show API endpoints.")
app.add_typer(schemas_app, name="schemas", help="Search and show component schemas.")
app.command("spec")(spec_command)
app.command("serve")(serve_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specdex {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    spec: Optional[str] = typer.Option(
        None, "--spec", help="OpenAPI document URL or file path (overrides OPENAPI_SPEC_URL)."
    ),
    api_key: Optional[str] = typer.Option(
        None, "--api-key", help="Value sent as X-API-Key when fetching the document."
    ),
    ttl: Optional[float] = typer.Option(
        None, "--ttl", min=0, help="Cache freshness window in seconds."
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Output file path."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~specdex.output.OutputManager` and the
    package logger from CLI flags, and stores the config overrides
    (``spec``, ``api_key``, ``ttl``) in ``ctx.obj`` for the sub-commands.
    """
    from specdex.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
        output_file=output_file,
    )
    set_output(output)
    configure_logging(verbose=verbose, quiet=quiet)

    ctx.ensure_object(dict)
    ctx.obj["spec"] = spec
    ctx.obj["api_key"] = api_key
    ctx.obj["ttl"] = ttl
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from specdex.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``specdex`` console script.

    Unhandled :class:`~specdex.exceptions.SpecdexError` instances cause a
    clean exit with the error's ``exit_code``.  All other exceptions produce
    a crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as exc:
        from specdex.exceptions import SpecdexError
        from specdex.output import error

        if isinstance(exc, SpecdexError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
