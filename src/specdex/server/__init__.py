"""Tool layer and MCP transport for specdex.

* :mod:`~specdex.server.tools` -- tool definitions, argument validation and
  the success/error envelopes.
* :mod:`~specdex.server.mcp` -- the MCP server bound to stdio.
"""

from specdex.server.tools import TOOL_SPECS, ToolDispatcher, ToolResult, ToolSpec

__all__ = ["TOOL_SPECS", "ToolDispatcher", "ToolResult", "ToolSpec"]
