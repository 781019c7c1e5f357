"""specdex -- Search and browse OpenAPI 3.x documents from a CLI or an MCP server.

specdex fetches one OpenAPI document (over HTTP or from disk), keeps it in an
in-memory cache with a TTL, and answers five read-only queries over it:
searching endpoints, searching schemas, showing one endpoint or schema with
``$ref`` pointers expanded, and returning a section of the raw document.

The same queries are exposed two ways::

    specdex --spec https://api.example.com/openapi.json endpoints search --method get
    OPENAPI_SPEC_URL=./openapi.yaml specdex serve     # MCP server over stdio

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Environment / project-file configuration resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting and logging setup.
"""

__version__ = "0.1.0"
