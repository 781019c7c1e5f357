"""Query layer: search and detail operations over the cached document.

:class:`QueryEngine` is the single entry point used by both the MCP tool
dispatcher (:mod:`specdex.server.tools`) and the terminal commands
(:mod:`specdex.commands`).
"""

from specdex.query.engine import DEFAULT_LIMIT, SPEC_SECTIONS, QueryEngine

__all__ = ["DEFAULT_LIMIT", "SPEC_SECTIONS", "QueryEngine"]
