"""Registry of named capability provider connections.

`CapabilityRegistry` owns one `CapabilityConnection` per configured provider,
aggregates the tools of Connected providers, and routes namespaced tool calls
(``mcp__<server>__<tool>``) to the right connection.

Typical usage:
    registry = CapabilityRegistry(config.mcp_servers)
    connected = await registry.connect_all()
    tools = registry.list_capabilities()
    result = await registry.dispatch("mcp__filesystem__read_file", {"path": "/tmp/a.txt"})
    await registry.disconnect_all()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import JsonValue

from .base import CapabilityConnection
from .connection import StdioCapabilityConnection
from .errors import ProviderNotFoundError
from .naming import SEPARATOR, parse_tool_name
from .schemas.config import McpServerConfig
from .schemas.core import FunctionDeclaration, ProviderStatus

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[McpServerConfig], CapabilityConnection]


class CapabilityRegistry:
    """Owns the set of named capability connections.

    The provider map is only mutated under an exclusive lock during
    initialization; every other operation works on a snapshot of it, so
    operations on different providers never contend with each other.
    """

    def __init__(
        self,
        configs: Iterable[McpServerConfig] = (),
        *,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self._factory: ConnectionFactory = connection_factory or StdioCapabilityConnection
        self._connections: Dict[str, CapabilityConnection] = {}
        self._map_lock = asyncio.Lock()
        for cfg in configs:
            self._insert(cfg)

    async def __aenter__(self) -> "CapabilityRegistry":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect_all()

    async def initialize(self, configs: Iterable[McpServerConfig]) -> None:
        """Create connections for additional provider configs.

        Raises:
            ValueError: If a provider with the same name is already registered.
        """
        async with self._map_lock:
            for cfg in configs:
                self._insert(cfg)

    def _insert(self, cfg: McpServerConfig) -> None:
        if cfg.name in self._connections:
            raise ValueError(f"Duplicate MCP server name: '{cfg.name}'")
        if SEPARATOR in cfg.name:
            logger.warning(
                "MCP server name '%s' contains '%s'; its tools cannot be routed by namespaced name",
                cfg.name,
                SEPARATOR,
            )
        connection = self._factory(cfg)
        if not isinstance(connection, CapabilityConnection):
            raise TypeError(f"Connection {type(connection).__name__} does not conform to CapabilityConnection protocol")
        self._connections[cfg.name] = connection

    def _get(self, server_name: str) -> CapabilityConnection:
        connection = self._connections.get(server_name)
        if connection is None:
            raise ProviderNotFoundError(server_name)
        return connection

    def get_connection(self, server_name: str) -> CapabilityConnection:
        """Return the connection for ``server_name``.

        Raises:
            ProviderNotFoundError: If no provider has that name.
        """
        return self._get(server_name)

    async def connect(self, server_name: str) -> None:
        """Connect one provider.

        Raises:
            ProviderNotFoundError: If no provider has that name.
            ProviderConnectionError: If the provider fails to start.
        """
        await self._get(server_name).connect()

    async def disconnect(self, server_name: str) -> None:
        """Disconnect one provider.

        Raises:
            ProviderNotFoundError: If no provider has that name.
        """
        await self._get(server_name).disconnect()

    async def connect_all(self) -> List[str]:
        """Connect every enabled provider concurrently.

        A provider that fails to connect is logged and skipped; partial success
        is expected.

        Returns:
            Sorted names of the providers that are Connected afterwards.
        """
        enabled = [c for c in dict(self._connections).values() if c.config.enabled]
        await asyncio.gather(*(self._connect_isolated(c) for c in enabled))
        return sorted(c.name for c in enabled if c.is_connected())

    async def _connect_isolated(self, connection: CapabilityConnection) -> None:
        try:
            await connection.connect()
        except Exception as e:
            logger.warning("Failed to connect to MCP server '%s': %s", connection.name, e)

    async def disconnect_all(self) -> None:
        """Disconnect every provider. Never raises for individual providers."""
        connections = list(dict(self._connections).values())
        results = await asyncio.gather(*(c.disconnect() for c in connections), return_exceptions=True)
        for connection, result in zip(connections, results):
            if isinstance(result, Exception):
                logger.warning("Failed to disconnect MCP server '%s': %s", connection.name, result)

    def list_capabilities(self) -> List[FunctionDeclaration]:
        """Return the tools of every Connected provider, grouped by provider name."""
        tools: List[FunctionDeclaration] = []
        for name in sorted(self._connections):
            connection = self._connections[name]
            if connection.is_connected():
                tools.extend(connection.list_tools())
        return tools

    def list_provider_capabilities(self, server_name: str) -> List[FunctionDeclaration]:
        """Return the tools of one provider (empty unless it is Connected).

        Raises:
            ProviderNotFoundError: If no provider has that name.
        """
        connection = self._get(server_name)
        if not connection.is_connected():
            return []
        return connection.list_tools()

    def list_providers(self) -> List[ProviderStatus]:
        """Return every configured provider with its connection flag, sorted by name."""
        return [
            ProviderStatus(
                name=name,
                connected=self._connections[name].is_connected(),
                description=self._connections[name].config.description,
            )
            for name in sorted(self._connections)
        ]

    async def dispatch(self, name: str, arguments: JsonValue) -> JsonValue:
        """Route a namespaced tool call to its provider.

        The result is returned exactly as the connection produced it.

        Raises:
            MalformedToolNameError: If ``name`` is not ``mcp__<server>__<tool>``.
            ProviderNotFoundError: If the server segment names no provider.
            NotConnectedError, InvalidArgumentsError, ToolCallError: From the connection.
        """
        server_name, tool_name = parse_tool_name(name)
        connection = self._get(server_name)
        logger.debug("CapabilityRegistry.dispatch: %s -> server=%s tool=%s", name, server_name, tool_name)
        return await connection.call(tool_name, arguments)
