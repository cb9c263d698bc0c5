"""Model Context Protocol (MCP) capability providers.

Connects to MCP servers launched as child processes and exposes their tools
through the function-calling interface under ``mcp__<server>__<tool>`` names.
"""

from .base import CapabilityConnection
from .connection import StdioCapabilityConnection
from .convert import convert_json_schema, mcp_tool_to_function
from .errors import (
    CapabilityError,
    EnvelopeError,
    InvalidArgumentsError,
    MalformedToolNameError,
    NotConnectedError,
    ProviderConnectionError,
    ProviderNotFoundError,
    SchemaConversionError,
    ToolCallError,
)
from .naming import build_tool_name, extract_server_name, is_mcp_tool, parse_tool_name
from .registry import CapabilityRegistry
from .schemas.config import McpServerConfig
from .schemas.core import ConnectionState, FunctionDeclaration, JsonSchema, ProviderStatus, ToolCall, ToolCallOutcome

__all__ = [
    "CapabilityConnection",
    "CapabilityError",
    "CapabilityRegistry",
    "EnvelopeError",
    "ConnectionState",
    "FunctionDeclaration",
    "InvalidArgumentsError",
    "JsonSchema",
    "MalformedToolNameError",
    "McpServerConfig",
    "NotConnectedError",
    "ProviderConnectionError",
    "ProviderNotFoundError",
    "ProviderStatus",
    "SchemaConversionError",
    "StdioCapabilityConnection",
    "ToolCall",
    "ToolCallError",
    "ToolCallOutcome",
    "build_tool_name",
    "convert_json_schema",
    "extract_server_name",
    "is_mcp_tool",
    "mcp_tool_to_function",
    "parse_tool_name",
]
