from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Protocol

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from ..schemas.config import McpServerConfig


class AsyncMCPTransport(Protocol):
    """Protocol for creating MCP ClientSession connections asynchronously.

    Implementations return an async context manager via ``session(config)``
    that yields an initialized ``ClientSession``. Leaving the context shuts the
    session and its underlying channel down.
    """

    def session(self, config: McpServerConfig):  # -> AsyncContextManager[ClientSession]
        ...


def server_parameters(config: McpServerConfig) -> StdioServerParameters:
    """Build stdio launch parameters from a server config.

    Configured variables are layered on top of the SDK's default environment.
    """
    return StdioServerParameters(
        command=config.command,
        args=list(config.args),
        env=dict(config.env) if config.env else None,
    )


class StdioMCPTransport(AsyncMCPTransport):
    """MCP transport that launches the server as a child process over stdio."""

    def session(self, config: McpServerConfig):
        @asynccontextmanager
        async def _cm() -> AsyncIterator[ClientSession]:
            async with stdio_client(server_parameters(config)) as (read_stream, write_stream):
                async with ClientSession(read_stream, write_stream) as session:
                    await session.initialize()
                    yield session

        return _cm()
