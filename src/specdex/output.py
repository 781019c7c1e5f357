"""Output formatting and logging setup with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- query results only (JSON documents, tables).  This is what
  downstream tools pipe and parse.
* **stderr** -- all diagnostics (status, warnings, errors, log records).
  Never contaminates the data stream, which also keeps the MCP stdio
  transport clean while ``specdex serve`` is running.
* **TTY detection** -- Rich formatting when stdout is an interactive
  terminal, plain text when piped to another process.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes three layers:

1. :class:`OutputManager` -- a stateful object holding format preferences,
   Rich consoles, and quiet/verbose flags.  Created once in
   :func:`~specdex.app.main_callback` and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager``.
3. :func:`configure_logging`, which routes the package's :mod:`logging`
   records to stderr at a level derived from the same flags.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """Enumeration of supported output formats.

    ``AUTO`` resolves to ``RICH`` when stdout is an interactive TTY and colour
    is not disabled, or to ``PLAIN`` otherwise.  Callers can force a specific
    format via the ``--json`` or ``--plain`` CLI flags.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Central manager for all CLI output with stdout/stderr discipline.

    Args:
        format: Desired output format.  ``AUTO`` resolves based on TTY
            detection.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential informational messages on stderr.
        verbose: Enable debug-level messages on stderr.
        output_file: If set, write primary data output to this file path
            instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            self._format = (
                OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
            )
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def no_color(self) -> bool:
        return self._no_color

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write a query result to stdout (or the output file).

        Dicts and lists are rendered as indented JSON in JSON and plain mode
        and as highlighted JSON in Rich mode.  Anything else is printed as
        text.

        Args:
            data: The result -- usually a dict from
                :class:`~specdex.query.QueryEngine`.
        """
        if self._output_file:
            self._write_to_file(data)
            return

        if self._format == OutputFormat.RICH and isinstance(data, (dict, list)):
            syntax = Syntax(_dumps(data), "json", theme="monokai", word_wrap=True)
            self._stdout.print(syntax)
        elif isinstance(data, (dict, list)):
            self.print_data(_dumps(data))
        else:
            self.print_data(str(data))

    def print_data(self, text: str) -> None:
        """Print raw text to stdout (or append it to the output file)."""
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(text)
                if not text.endswith("\n"):
                    f.write("\n")
        else:
            print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print tabular data to stdout in the active format.

        * **Rich mode** -- styled :class:`~rich.table.Table`.
        * **JSON mode** -- array of objects keyed by header names.
        * **Plain mode** -- tab-separated values, one row per line.
        """
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(_dumps(records))

        elif self._format == OutputFormat.PLAIN:
            self.print_data("\t".join(headers))
            for row in rows:
                self.print_data("\t".join(row))

        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for h in headers:
                table.add_column(h)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message to stderr.  Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        """Print a green success message to stderr.  Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, style="green")

    def warning(self, message: str) -> None:
        """Print a yellow warning to stderr.  NOT suppressed by ``--quiet``."""
        self._emit(message, prefix="Warning: ", prefix_style="yellow")

    def error(self, message: str) -> None:
        """Print a bold-red error to stderr.  Never suppressed."""
        self._emit(message, prefix="Error: ", prefix_style="bold red")

    def suggest(self, message: str) -> None:
        """Print a dimmed next-step hint to stderr.  Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(f"→ {message}", style="dim")

    def debug(self, message: str) -> None:
        """Print a debug message to stderr.  Only shown with ``--verbose``."""
        if self._verbose:
            self._emit(message, style="dim", prefix="[debug] ", prefix_style="dim")

    def _emit(
        self,
        message: str,
        style: str = "",
        prefix: str = "",
        prefix_style: str = "",
    ) -> None:
        # Messages are never parsed as Rich markup.
        if self._no_color:
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
            return
        line = Text()
        if prefix:
            line.append(prefix, style=prefix_style)
        line.append(message, style=style)
        self._stderr.print(line)

    def log_handler(self) -> logging.Handler:
        """Build a stderr :class:`logging.Handler` matching this manager's colour mode."""
        if self._no_color:
            handler: logging.Handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            return handler
        return RichHandler(console=self._stderr, show_path=False, markup=False)

    def _write_to_file(self, data: Any) -> None:
        assert self._output_file is not None
        content = _dumps(data) if isinstance(data, (dict, list)) else str(data)
        with open(self._output_file, "w", encoding="utf-8") as f:
            f.write(content)
            if not content.endswith("\n"):
                f.write("\n")


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    """Check if stdout is a TTY."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #

_LOGGER_NAME = "specdex"
_log_handler: Optional[logging.Handler] = None


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route ``specdex.*`` log records to stderr.

    The level is ``DEBUG`` with ``--verbose``, ``ERROR`` with ``--quiet``
    and ``WARNING`` otherwise.  Calling it again replaces the handler
    installed by the previous call.

    Args:
        verbose: Show debug records (fetches, cache hits, ``$ref`` cycles).
        quiet: Only show errors.
    """
    global _log_handler

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    package_logger = logging.getLogger(_LOGGER_NAME)
    if _log_handler is not None:
        package_logger.removeHandler(_log_handler)

    _log_handler = get_output().log_handler()
    package_logger.addHandler(_log_handler)
    package_logger.setLevel(level)


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` and drop the log handler.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output, _log_handler
    _output = None
    if _log_handler is not None:
        package_logger = logging.getLogger(_LOGGER_NAME)
        package_logger.removeHandler(_log_handler)
        package_logger.setLevel(logging.NOTSET)
        _log_handler = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def format_response(data: Any) -> None:
    """Write a query result to stdout via the global :class:`OutputManager`."""
    get_output().format_response(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    """Print tabular data to stdout via the global :class:`OutputManager`."""
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
