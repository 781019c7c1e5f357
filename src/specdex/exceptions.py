"""Exception hierarchy for specdex.

All exceptions inherit from :class:`SpecdexError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specdex.exit_codes`.
The CLI entry point in :func:`specdex.app.main` catches ``SpecdexError`` and
exits with the matching code; the tool dispatcher in
:mod:`specdex.server.tools` turns it into a structured failure payload.

Subclass hierarchy::

    SpecdexError              (exit 1)
    +-- InvalidArgumentError  (exit 2)
    +-- NotFoundError         (exit 4)
    +-- FetchError            (exit 6)
    |   +-- SpecParseError    (exit 7)
    +-- ConfigError           (exit 1)

Unresolvable and circular ``$ref`` pointers are deliberately *not* part of
this hierarchy: they are embedded in query results as marker values (see
:mod:`specdex.parser.resolver`).
"""

from specdex.exit_codes import (
    EXIT_FETCH_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecdexError(Exception):
    """Base exception for all specdex errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidArgumentError(SpecdexError):
    """Raised for an unknown spec section, a malformed regex, or bad paging values."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(SpecdexError):
    """Raised when a path, method, or schema name has no exact match in the document."""

    exit_code = EXIT_NOT_FOUND


class FetchError(SpecdexError):
    """Raised when the OpenAPI document cannot be retrieved.

    Covers transport failures, non-2xx HTTP statuses and unreadable local
    files.  :class:`~specdex.cache.SpecCache` absorbs it whenever a previous
    document is available.
    """

    exit_code = EXIT_FETCH_ERROR


class SpecParseError(FetchError):
    """Raised when the retrieved body parses as neither a JSON nor a YAML mapping."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpecdexError):
    """Raised for configuration problems (missing spec source, invalid config file)."""

    exit_code = EXIT_GENERIC_FAILURE
