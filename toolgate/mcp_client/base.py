"""Capability connection protocol.

Defines the small interface every capability provider connection satisfies so
that `CapabilityRegistry` can manage connections without knowing how they
reach their provider.

Usage:
- `StdioCapabilityConnection` implements this protocol for stdio MCP servers.
- Other transports can be added by implementing the same five operations.
"""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from pydantic import JsonValue

from .schemas.config import McpServerConfig
from .schemas.core import ConnectionState, FunctionDeclaration


@runtime_checkable
class CapabilityConnection(Protocol):
    """Protocol for one lifecycle-managed connection to a capability provider.

    Lifecycle operations on the same connection must not interleave.
    `list_tools` returns an empty list unless the connection is Connected.
    """

    @property
    def name(self) -> str: ...

    @property
    def config(self) -> McpServerConfig: ...

    @property
    def state(self) -> ConnectionState: ...

    def is_connected(self) -> bool: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    def list_tools(self) -> List[FunctionDeclaration]: ...

    async def call(self, tool_name: str, arguments: JsonValue) -> JsonValue: ...
