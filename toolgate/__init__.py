"""toolgate: MCP capability providers behind a layered tool call permission gate."""

from .executor import ToolExecutor
from .mcp_client import CapabilityRegistry, McpServerConfig, ToolCall, ToolCallOutcome
from .permission import ConfigContext, PermissionEngine

__all__ = [
    "CapabilityRegistry",
    "ConfigContext",
    "McpServerConfig",
    "PermissionEngine",
    "ToolCall",
    "ToolCallOutcome",
    "ToolExecutor",
]
