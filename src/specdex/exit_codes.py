"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specdex.exceptions.SpecdexError` subclass.
Shell wrappers can inspect the exit code to tell a missing schema apart from
an unreachable spec without parsing stderr.

Example::

    $ specdex schemas show Missing
    $ echo $?
    4   # EXIT_NOT_FOUND -- no schema with that name
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for configuration errors)."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments: unknown section, malformed regex, negative paging values."""

EXIT_NOT_FOUND = 4
"""The requested path, method, or schema does not exist in the document."""

EXIT_FETCH_ERROR = 6
"""The OpenAPI document could not be retrieved (network, HTTP status, file I/O)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document was retrieved but is neither a JSON nor a YAML mapping."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
