"""Transport interfaces for MCP client communication.

The wire framing itself is supplied by the ``mcp`` SDK; this package only
adapts a `McpServerConfig` into an initialized ``ClientSession``.
"""

from .mcp import AsyncMCPTransport, StdioMCPTransport, server_parameters

__all__ = [
    "AsyncMCPTransport",
    "StdioMCPTransport",
    "server_parameters",
]
