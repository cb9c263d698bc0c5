"""Gate-then-dispatch execution of agent tool calls."""

from __future__ import annotations

import logging
from typing import List

from .mcp_client.errors import CapabilityError
from .mcp_client.naming import is_mcp_tool
from .mcp_client.registry import CapabilityRegistry
from .mcp_client.schemas.core import FunctionDeclaration, ToolCall, ToolCallOutcome
from .permission.engine import PermissionEngine

logger = logging.getLogger(__name__)


class ToolExecutor:
    """Runs each tool call through the permission engine, then the registry.

    Failures come back as a `ToolCallOutcome` with ``ok=False`` so the agent
    loop can report them to the model instead of aborting.
    """

    def __init__(self, engine: PermissionEngine, registry: CapabilityRegistry) -> None:
        self._engine = engine
        self._registry = registry

    def declarations(self) -> List[FunctionDeclaration]:
        return self._registry.list_capabilities()

    async def execute(self, call: ToolCall) -> ToolCallOutcome:
        if not is_mcp_tool(call.name):
            logger.debug("ToolExecutor.execute: no backend for '%s'", call.name)
            return ToolCallOutcome(name=call.name, id=call.id, ok=False, error=f"Unknown tool '{call.name}'")

        if not await self._engine.check(call):
            return ToolCallOutcome(
                name=call.name,
                id=call.id,
                ok=False,
                denied=True,
                error=f"Tool call '{call.name}' was denied",
            )

        try:
            result = await self._registry.dispatch(call.name, call.arguments)
        except CapabilityError as e:
            logger.warning("Tool call '%s' failed: %s", call.name, e)
            return ToolCallOutcome(name=call.name, id=call.id, ok=False, error=str(e))
        return ToolCallOutcome(name=call.name, id=call.id, ok=True, result=result)
