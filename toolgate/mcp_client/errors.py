"""Error types for the MCP client package.

Defines a small hierarchy of exceptions raised by connections, the registry and
the schema converter to signal lifecycle problems, malformed tool names, and
tool invocation failures.
"""

from __future__ import annotations

from typing import Any


class CapabilityError(Exception):
    """Base error for all capability provider exceptions."""


class ProviderConnectionError(CapabilityError):
    """Raised when a provider process cannot be launched or fails its handshake."""

    def __init__(self, provider: str, cause: object) -> None:
        self.provider = provider
        self.cause = cause
        super().__init__(f"Failed to connect to MCP server '{provider}': {cause}")


class NotConnectedError(CapabilityError):
    """Raised when a call targets a provider that is not Connected."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"MCP server '{provider}' is not connected")


class InvalidArgumentsError(CapabilityError):
    """Raised when tool arguments are neither an object nor null."""

    def __init__(self, provider: str, tool_name: str, value: Any) -> None:
        self.provider = provider
        self.tool_name = tool_name
        super().__init__(
            f"Tool arguments for '{tool_name}' on '{provider}' must be a JSON object or null, "
            f"got {type(value).__name__}: {value!r}"
        )


class ToolCallError(CapabilityError):
    """Raised for unsuccessful tool invocations with additional context."""

    def __init__(self, provider: str, tool_name: str, message: str) -> None:
        self.provider = provider
        self.tool_name = tool_name
        self.message = message
        super().__init__(f"Failed to call tool '{tool_name}' on MCP server '{provider}': {message}")


class SchemaConversionError(CapabilityError):
    """Raised when a tool's declared input schema cannot be converted."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Failed to convert schema for MCP tool '{tool_name}': {reason}")


class MalformedToolNameError(CapabilityError):
    """Raised when a name does not have the 'mcp__<server>__<tool>' shape."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown MCP tool '{name}': expected 'mcp__<server>__<tool>'")


class ProviderNotFoundError(CapabilityError):
    """Raised when no configured provider has the requested name."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(f"MCP server '{provider}' not found")


class EnvelopeError(CapabilityError):
    """Raised when a tool result is not a recognized envelope or reports failure."""

    def __init__(self, tool_name: str, message: str) -> None:
        self.tool_name = tool_name
        self.message = message
        super().__init__(message)
