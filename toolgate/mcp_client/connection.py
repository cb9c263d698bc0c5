"""Lifecycle-managed connection to one stdio MCP server.

`StdioCapabilityConnection` drives a single provider through
Disconnected -> Connecting -> Connected -> Disconnecting -> Disconnected.
Lifecycle operations and calls on the same connection are serialised by a
per-connection ``asyncio.Lock``; different connections never contend.

The MCP SDK opens its channel inside anyio task groups, which must be entered
and exited from the same task. The session is therefore owned by a dedicated
background task (`_SessionRunner`) that keeps the transport context open until
`disconnect()` asks it to stop, so connect and disconnect may be awaited from
different tasks.

Typical usage:
    conn = StdioCapabilityConnection(McpServerConfig(name="fs", command="uvx", args=["mcp-server-fs"]))
    await conn.connect()
    tools = conn.list_tools()
    result = await conn.call("read_file", {"path": "/tmp/a.txt"})
    await conn.disconnect()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Callable, List, Optional

from mcp import ClientSession
from pydantic import BaseModel, JsonValue

from .base import CapabilityConnection
from .convert import mcp_tool_to_function
from .errors import (
    InvalidArgumentsError,
    MalformedToolNameError,
    NotConnectedError,
    ProviderConnectionError,
    SchemaConversionError,
    ToolCallError,
)
from .schemas.config import McpServerConfig
from .schemas.core import ConnectionState, FunctionDeclaration
from .transport.mcp import AsyncMCPTransport, StdioMCPTransport

logger = logging.getLogger(__name__)


class _SessionRunner:
    """Background task that holds an MCP session open until stopped."""

    def __init__(
        self,
        transport: AsyncMCPTransport,
        config: McpServerConfig,
        on_closed: Optional[Callable[["_SessionRunner"], None]] = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._on_closed = on_closed
        self._ready = asyncio.Event()
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self._error: Optional[Exception] = None
        self.session: Optional[ClientSession] = None

    @property
    def alive(self) -> bool:
        return self.session is not None

    async def start(self) -> ClientSession:
        """Open the session and wait until it is initialized.

        Raises:
            Exception: Whatever the transport raised while launching or initializing.
        """
        self._task = asyncio.create_task(self._run(), name=f"mcp-session:{self._config.name}")
        await self._ready.wait()
        if self.session is None:
            await asyncio.gather(self._task, return_exceptions=True)
            raise self._error or RuntimeError("session closed during initialization")
        return self.session

    async def stop(self) -> None:
        """Close the session and wait for the transport to shut down.

        Raises:
            Exception: An error raised by the transport while it was open or closing.
        """
        self._stop.set()
        if self._task is not None:
            await self._task
        if self._error is not None:
            raise self._error

    async def _run(self) -> None:
        try:
            async with self._transport.session(self._config) as session:
                self.session = session
                self._ready.set()
                await self._stop.wait()
        except Exception as e:
            self._error = e
            if self._ready.is_set():
                logger.warning("MCP session for server '%s' ended with error: %s", self._config.name, e)
        finally:
            opened = self.session is not None
            self.session = None
            self._ready.set()
            # Only an unrequested close after a successful open is reported.
            if opened and not self._stop.is_set() and self._on_closed is not None:
                self._on_closed(self)


class StdioCapabilityConnection(CapabilityConnection):
    """Connection to one MCP server launched as a child process.

    - `connect()` spawns the server, performs the MCP handshake and converts the
      advertised tools; tools with unconvertible schemas are skipped.
    - `call()` performs exactly one round trip, without retry.
    - `disconnect()` always ends Disconnected, whatever the shutdown outcome.
    """

    def __init__(self, config: McpServerConfig, *, transport: Optional[AsyncMCPTransport] = None) -> None:
        self._config = config
        self._transport: AsyncMCPTransport = transport or StdioMCPTransport()
        self._lock = asyncio.Lock()
        self._state = ConnectionState.DISCONNECTED
        self._tools: List[FunctionDeclaration] = []
        self._runner: Optional[_SessionRunner] = None

    def __repr__(self) -> str:
        return (
            f"StdioCapabilityConnection(name={self.name!r}, command={self._config.command!r}, "
            f"state={self._state.value!r}, tools={len(self._tools)})"
        )

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> McpServerConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._runner is not None and self._runner.alive

    def list_tools(self) -> List[FunctionDeclaration]:
        """Return the discovered tools; empty unless Connected."""
        if not self.is_connected():
            return []
        return list(self._tools)

    def _session_closed(self, runner: _SessionRunner) -> None:
        if runner is not self._runner or self._state is not ConnectionState.CONNECTED:
            return
        logger.warning("MCP server '%s' closed its session; marking it disconnected", self.name)
        self._tools = []
        self._state = ConnectionState.DISCONNECTED

    async def connect(self) -> None:
        """Launch the server, initialize the session and discover its tools.

        Idempotent when already Connected.

        Raises:
            ProviderConnectionError: If the process cannot be started or the
                handshake fails. The connection is left Disconnected.
        """
        async with self._lock:
            if self.is_connected():
                return

            logger.info("Connecting to MCP server '%s'...", self.name)
            self._state = ConnectionState.CONNECTING
            if self._runner is not None:
                await self._stop_runner()
            runner = _SessionRunner(self._transport, self._config, on_closed=self._session_closed)
            # Kept so an abandoned connect can still be cleaned up by disconnect().
            self._runner = runner
            try:
                session = await runner.start()
            except Exception as e:
                self._runner = None
                self._state = ConnectionState.DISCONNECTED
                raise ProviderConnectionError(self.name, e) from e
            except BaseException:
                self._state = ConnectionState.DISCONNECTED
                raise

            try:
                tools = await self._discover_tools(session)
            except BaseException:
                self._state = ConnectionState.DISCONNECTED
                raise
            if not runner.alive:
                await self._stop_runner()
                self._state = ConnectionState.DISCONNECTED
                raise ProviderConnectionError(self.name, "session closed during tool discovery")
            self._tools = tools
            self._state = ConnectionState.CONNECTED
            logger.info("Connected to MCP server '%s' with %d tools", self.name, len(self._tools))

    async def disconnect(self) -> None:
        """Shut the server down and clear the discovered tools.

        Idempotent. Shutdown errors are logged, never raised.
        """
        async with self._lock:
            if self._state is ConnectionState.DISCONNECTED and self._runner is None:
                return

            logger.info("Disconnecting from MCP server '%s'...", self.name)
            self._state = ConnectionState.DISCONNECTING
            try:
                await self._stop_runner()
            finally:
                self._tools = []
                self._state = ConnectionState.DISCONNECTED

    async def call(self, tool_name: str, arguments: JsonValue) -> JsonValue:
        """Invoke ``tool_name`` (un-namespaced) with ``arguments``.

        Args:
            tool_name: Tool name as reported by the server.
            arguments: A mapping or None.

        Returns:
            The server's ``CallToolResult`` as a JSON-compatible dict with
            camelCase keys (``content``, ``structuredContent``, ``isError``).

        Raises:
            NotConnectedError: If the connection is not Connected.
            InvalidArgumentsError: If ``arguments`` is neither a mapping nor None.
            ToolCallError: If the server or the channel reports a failure.
        """
        async with self._lock:
            session = self._runner.session if self._runner is not None else None
            if self._state is not ConnectionState.CONNECTED or session is None:
                raise NotConnectedError(self.name)
            if arguments is not None and not isinstance(arguments, Mapping):
                raise InvalidArgumentsError(self.name, tool_name, arguments)

            logger.debug(
                "StdioCapabilityConnection.call: server=%s tool=%s args_keys=%s",
                self.name,
                tool_name,
                list((arguments or {}).keys()),
            )
            try:
                result = await session.call_tool(tool_name, arguments=dict(arguments) if arguments is not None else None)
            except Exception as e:
                raise ToolCallError(self.name, tool_name, str(e)) from e
            return _to_json(result)

    async def _stop_runner(self) -> None:
        runner, self._runner = self._runner, None
        if runner is None:
            return
        try:
            await runner.stop()
        except Exception as e:
            logger.warning("Error during shutdown of MCP server '%s': %s", self.name, e)

    async def _discover_tools(self, session: ClientSession) -> List[FunctionDeclaration]:
        try:
            resp = await session.list_tools()
        except Exception as e:
            logger.warning("Failed to list tools from MCP server '%s': %s", self.name, e)
            return []

        logger.info("MCP server '%s' provided %d tools", self.name, len(resp.tools))
        declarations: List[FunctionDeclaration] = []
        for tool in resp.tools:
            try:
                declaration = mcp_tool_to_function(self.name, tool.name, tool.description, tool.inputSchema)
            except AttributeError as e:
                logger.warning("Skipping MCP tool from server '%s' with an unexpected shape: %s", self.name, e)
                continue
            except (SchemaConversionError, MalformedToolNameError) as e:
                logger.warning("Skipping MCP tool '%s' from server '%s': %s", tool.name, self.name, e)
                continue
            declarations.append(declaration)
        return declarations


def _to_json(result: Any) -> JsonValue:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return result
