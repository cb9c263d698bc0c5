from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import anyio
import pytest
from mcp import types

from toolgate.mcp_client.base import CapabilityConnection
from toolgate.mcp_client.connection import StdioCapabilityConnection
from toolgate.mcp_client.errors import (
    InvalidArgumentsError,
    NotConnectedError,
    ProviderConnectionError,
    ToolCallError,
)
from toolgate.mcp_client.schemas.config import McpServerConfig
from toolgate.mcp_client.registry import CapabilityRegistry
from toolgate.mcp_client.schemas.core import ConnectionState, ProviderStatus


def _tool(name: str, schema: Any, description: Optional[str] = "A tool") -> types.Tool:
    return types.Tool.model_construct(name=name, description=description, inputSchema=schema)


class _FakeSession:
    def __init__(self, tools: List[types.Tool], *, list_error: Optional[Exception] = None) -> None:
        self.tools = tools
        self.list_error = list_error
        self.calls: List[tuple[str, Optional[Dict[str, Any]]]] = []
        self.call_error: Optional[Exception] = None

    async def list_tools(self) -> types.ListToolsResult:
        if self.list_error is not None:
            raise self.list_error
        return types.ListToolsResult.model_construct(tools=self.tools)

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> types.CallToolResult:
        self.calls.append((name, arguments))
        if self.call_error is not None:
            raise self.call_error
        return types.CallToolResult(content=[types.TextContent(type="text", text=f"{name}:{arguments}")])


class _FakeTransport:
    def __init__(
        self,
        session: _FakeSession,
        *,
        open_error: Optional[Exception] = None,
        close_error: Optional[Exception] = None,
    ) -> None:
        self.fake_session = session
        self.open_error = open_error
        self.close_error = close_error
        self.opened = 0
        self.closed = 0

    def session(self, config: McpServerConfig):
        @asynccontextmanager
        async def _cm():
            self.opened += 1
            if self.open_error is not None:
                raise self.open_error
            try:
                yield self.fake_session
            finally:
                self.closed += 1
            if self.close_error is not None:
                raise self.close_error

        return _cm()


GOOD_SCHEMA = {"type": "object", "properties": {"text": {"type": "string"}}, "required": ["text"]}


def _connection(transport: _FakeTransport, name: str = "alpha") -> StdioCapabilityConnection:
    return StdioCapabilityConnection(McpServerConfig(name=name, command="alpha-server"), transport=transport)


def test_conforms_to_protocol() -> None:
    assert isinstance(_connection(_FakeTransport(_FakeSession([]))), CapabilityConnection)


@pytest.mark.asyncio
async def test_connect_discovers_and_namespaces_tools() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA), _tool("ping", {"type": "object"}, None)]))
    conn = _connection(transport)

    await conn.connect()

    assert conn.state is ConnectionState.CONNECTED
    assert conn.is_connected()
    tools = conn.list_tools()
    assert [t.name for t in tools] == ["mcp__alpha__echo", "mcp__alpha__ping"]
    assert tools[0].parameters.required == ["text"]
    assert tools[1].description == ""
    await conn.disconnect()


@pytest.mark.asyncio
async def test_connect_skips_unconvertible_tools(caplog: pytest.LogCaptureFixture) -> None:
    tools = [
        _tool("good_a", GOOD_SCHEMA),
        _tool("bad_a", {"type": "object", "properties": "nope"}),
        _tool("good_b", {"type": "object"}),
        _tool("bad_b", {"type": 7}),
        _tool("", {"type": "object"}),
    ]
    conn = _connection(_FakeTransport(_FakeSession(tools)))

    with caplog.at_level(logging.WARNING, logger="toolgate.mcp_client.connection"):
        await conn.connect()

    assert conn.is_connected()
    assert [t.name for t in conn.list_tools()] == ["mcp__alpha__good_a", "mcp__alpha__good_b"]
    skipped = [r for r in caplog.records if "Skipping MCP tool" in r.getMessage()]
    assert len(skipped) == 3
    await conn.disconnect()


@pytest.mark.asyncio
async def test_connect_survives_list_tools_failure() -> None:
    conn = _connection(_FakeTransport(_FakeSession([], list_error=RuntimeError("boom"))))
    await conn.connect()
    assert conn.is_connected()
    assert conn.list_tools() == []
    await conn.disconnect()


@pytest.mark.asyncio
async def test_connect_is_idempotent() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]))
    conn = _connection(transport)
    await conn.connect()
    await conn.connect()
    assert transport.opened == 1
    await conn.disconnect()


@pytest.mark.asyncio
async def test_connect_failure_leaves_disconnected() -> None:
    transport = _FakeTransport(_FakeSession([]), open_error=FileNotFoundError("alpha-server"))
    conn = _connection(transport)

    with pytest.raises(ProviderConnectionError) as exc:
        await conn.connect()

    assert exc.value.provider == "alpha"
    assert "alpha" in str(exc.value)
    assert "alpha-server" in str(exc.value)
    assert conn.state is ConnectionState.DISCONNECTED
    assert conn.list_tools() == []


@pytest.mark.asyncio
async def test_call_requires_connection() -> None:
    conn = _connection(_FakeTransport(_FakeSession([])))
    with pytest.raises(NotConnectedError):
        await conn.call("echo", {})


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", ["text", 3, [1, 2], True])
async def test_call_rejects_non_object_arguments(arguments: Any) -> None:
    session = _FakeSession([_tool("echo", GOOD_SCHEMA)])
    conn = _connection(_FakeTransport(session))
    await conn.connect()

    with pytest.raises(InvalidArgumentsError):
        await conn.call("echo", arguments)

    assert session.calls == []
    await conn.disconnect()


@pytest.mark.asyncio
async def test_call_round_trip() -> None:
    session = _FakeSession([_tool("echo", GOOD_SCHEMA)])
    conn = _connection(_FakeTransport(session))
    await conn.connect()

    result = await conn.call("echo", {"text": "hi"})
    assert session.calls == [("echo", {"text": "hi"})]
    assert result["content"] == [{"type": "text", "text": "echo:{'text': 'hi'}"}]
    assert result["isError"] is False

    await conn.call("echo", None)
    assert session.calls[-1] == ("echo", None)
    await conn.disconnect()


@pytest.mark.asyncio
async def test_call_failure_is_wrapped_without_retry() -> None:
    session = _FakeSession([_tool("echo", GOOD_SCHEMA)])
    session.call_error = RuntimeError("tool exploded")
    conn = _connection(_FakeTransport(session))
    await conn.connect()

    with pytest.raises(ToolCallError) as exc:
        await conn.call("echo", {"text": "hi"})

    assert "tool exploded" in str(exc.value)
    assert len(session.calls) == 1
    assert conn.is_connected()
    await conn.disconnect()


@pytest.mark.asyncio
async def test_disconnect_is_idempotent_and_clears_tools() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]))
    conn = _connection(transport)
    await conn.disconnect()
    assert transport.opened == 0

    await conn.connect()
    await conn.disconnect()
    await conn.disconnect()

    assert transport.closed == 1
    assert conn.state is ConnectionState.DISCONNECTED
    assert conn.list_tools() == []
    with pytest.raises(NotConnectedError):
        await conn.call("echo", {})


@pytest.mark.asyncio
async def test_disconnect_swallows_shutdown_errors() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]), close_error=RuntimeError("stuck"))
    conn = _connection(transport)
    await conn.connect()

    await conn.disconnect()

    assert conn.state is ConnectionState.DISCONNECTED
    assert conn.list_tools() == []


@pytest.mark.asyncio
async def test_reconnect_after_disconnect() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]))
    conn = _connection(transport)
    await conn.connect()
    await conn.disconnect()
    await conn.connect()
    assert conn.is_connected()
    assert transport.opened == 2
    await conn.disconnect()


@pytest.mark.asyncio
async def test_connect_and_disconnect_from_different_tasks() -> None:
    transport = _FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]))
    conn = _connection(transport)
    await asyncio.create_task(conn.connect())
    assert conn.is_connected()
    await asyncio.create_task(conn.disconnect())
    assert transport.closed == 1
    assert not conn.is_connected()


class _ExitingTransport(_FakeTransport):
    """Runs the session inside a task group, like the stdio client does, and
    lets the test make the server process exit while the session is open."""

    def __init__(self, session: _FakeSession) -> None:
        super().__init__(session)
        self.exit_server = asyncio.Event()

    def session(self, config: McpServerConfig):
        @asynccontextmanager
        async def _cm():
            self.opened += 1
            try:
                async with anyio.create_task_group() as tg:

                    async def _reader() -> None:
                        await self.exit_server.wait()
                        raise RuntimeError("server process exited")

                    tg.start_soon(_reader)
                    try:
                        yield self.fake_session
                    finally:
                        tg.cancel_scope.cancel()
            finally:
                self.closed += 1

        return _cm()


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


@pytest.mark.asyncio
async def test_server_exit_after_connect_marks_provider_disconnected(caplog: pytest.LogCaptureFixture) -> None:
    transport = _ExitingTransport(_FakeSession([_tool("echo", GOOD_SCHEMA)]))
    registry = CapabilityRegistry(
        [McpServerConfig(name="alpha", command="alpha-server")],
        connection_factory=lambda cfg: StdioCapabilityConnection(cfg, transport=transport),
    )
    assert await registry.connect_all() == ["alpha"]
    assert [t.name for t in registry.list_capabilities()] == ["mcp__alpha__echo"]
    conn = registry.get_connection("alpha")

    with caplog.at_level(logging.WARNING, logger="toolgate.mcp_client.connection"):
        transport.exit_server.set()
        await _wait_until(lambda: conn.state is ConnectionState.DISCONNECTED)

    assert not conn.is_connected()
    assert conn.list_tools() == []
    assert registry.list_capabilities() == []
    assert registry.list_providers() == [ProviderStatus(name="alpha", connected=False)]
    with pytest.raises(NotConnectedError):
        await registry.dispatch("mcp__alpha__echo", {"text": "hi"})
    assert any("closed its session" in r.getMessage() for r in caplog.records)

    transport.exit_server.clear()
    await conn.connect()
    assert conn.is_connected()
    assert transport.opened == 2
    await registry.disconnect_all()
    assert conn.state is ConnectionState.DISCONNECTED


@pytest.mark.asyncio
async def test_server_exit_during_discovery_fails_connect() -> None:
    transport: Optional[_ExitingTransport] = None

    class _ExitOnList(_FakeSession):
        async def list_tools(self) -> types.ListToolsResult:
            assert transport is not None
            transport.exit_server.set()
            await _wait_until(lambda: transport.closed == 1)
            return await super().list_tools()

    transport = _ExitingTransport(_ExitOnList([_tool("echo", GOOD_SCHEMA)]))
    conn = _connection(transport)

    with pytest.raises(ProviderConnectionError):
        await conn.connect()

    assert conn.state is ConnectionState.DISCONNECTED
    assert conn.list_tools() == []


@pytest.mark.asyncio
async def test_cancelled_discovery_leaves_disconnected() -> None:
    listing = asyncio.Event()

    class _HangingSession(_FakeSession):
        async def list_tools(self) -> types.ListToolsResult:
            listing.set()
            await asyncio.Event().wait()
            return await super().list_tools()

    transport = _FakeTransport(_HangingSession([]))
    conn = _connection(transport)
    task = asyncio.create_task(conn.connect())
    await asyncio.wait_for(listing.wait(), 2.0)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert conn.state is ConnectionState.DISCONNECTED
    assert not conn.is_connected()
    await conn.disconnect()
    assert transport.closed == 1


@pytest.mark.asyncio
async def test_tools_without_typed_fields_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    legacy = SimpleNamespace(name="legacy", description="no input schema", input_schema={"type": "object"})
    conn = _connection(_FakeTransport(_FakeSession([_tool("echo", GOOD_SCHEMA), legacy])))

    with caplog.at_level(logging.WARNING, logger="toolgate.mcp_client.connection"):
        await conn.connect()

    assert [t.name for t in conn.list_tools()] == ["mcp__alpha__echo"]
    assert any("Skipping MCP tool" in r.getMessage() and "inputSchema" in r.getMessage() for r in caplog.records)
    await conn.disconnect()
