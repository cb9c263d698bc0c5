"""Tool call permission engine.

``PermissionEngine.check`` is the gate every tool call passes before dispatch.
Decisions are made in a fixed order:

1. names approved for the session are allowed;
2. namespaced MCP tools of a trusted server are allowed, bypassing every
   later rule;
3. the effective pattern lists (the role's, else the global ones) apply:
   denied, then allowed, then ask;
4. otherwise the default level applies (the role's, else the global one,
   else ``always``).

``ask`` outcomes prompt on the terminal when one is attached and deny
otherwise. ``check`` always resolves to a bool and never raises.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Set

from rich.console import Console
from rich.text import Text

from ..mcp_client.naming import extract_server_name
from ..mcp_client.schemas.core import ToolCall
from .context import ConfigContext
from .models import AgentConfig, ConfirmChoice, PermissionLevel, ToolPermissions
from .patterns import matches_any_pattern
from .prompt import Prompter, TerminalPrompter
from .store import GrantStore

logger = logging.getLogger(__name__)


class PermissionEngine:
    """Evaluates tool calls against session grants, trust, and layered policy.

    A role policy, when given, fully shadows the global one; the two are never
    merged.
    """

    def __init__(
        self,
        context: ConfigContext,
        *,
        role_tool_call_permission: Optional[PermissionLevel | str] = None,
        role_tool_permissions: Optional[ToolPermissions] = None,
        prompter: Optional[Prompter] = None,
        grant_store: Optional[GrantStore] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._context = context
        self._role_level = (
            PermissionLevel.parse(role_tool_call_permission) if role_tool_call_permission is not None else None
        )
        self._role_permissions = role_tool_permissions
        self._console = console or Console()
        self._prompter: Prompter = prompter or TerminalPrompter(self._console)
        self._grant_store = grant_store
        self._session_allowed: Set[str] = context.read(_seed_grants)

    @property
    def session_allowed(self) -> frozenset[str]:
        return frozenset(self._session_allowed)

    async def check(self, call: ToolCall) -> bool:
        """Return True if ``call`` may be dispatched."""
        try:
            return await self._check(call)
        except Exception:
            logger.exception("Permission check for '%s' failed; denying", call.name)
            return False

    async def _check(self, call: ToolCall) -> bool:
        name = call.name
        # Snapshot so no lock is held across the prompt.
        cfg = self._context.snapshot()
        verbose = cfg.verbose_tool_calls

        if name in self._session_allowed:
            self._audit(call, "auto-allowed (session)", verbose)
            return True

        if self._is_trusted_server_tool(name, cfg):
            self._audit(call, "auto-allowed (trusted server)", verbose)
            return True

        permissions = self._role_permissions if self._role_permissions is not None else cfg.tool_permissions
        if permissions is not None:
            if permissions.denied and matches_any_pattern(name, permissions.denied):
                self._audit(call, "denied", verbose)
                return False
            if permissions.allowed and matches_any_pattern(name, permissions.allowed):
                self._audit(call, "auto-allowed (allowed list)", verbose)
                return True
            if permissions.ask and matches_any_pattern(name, permissions.ask):
                return await self._confirm(call, verbose)

        level = self._role_level or cfg.tool_call_permission or PermissionLevel.always
        if level is PermissionLevel.always:
            self._audit(call, "auto-allowed (global)", verbose)
            return True
        if level is PermissionLevel.never:
            self._audit(call, "denied (global)", verbose)
            return False
        return await self._confirm(call, verbose)

    @staticmethod
    def _is_trusted_server_tool(name: str, cfg: AgentConfig) -> bool:
        server_name = extract_server_name(name)
        if server_name is None:
            return False
        return any(s.name == server_name and s.trusted for s in cfg.mcp_servers)

    async def _confirm(self, call: ToolCall, verbose: bool) -> bool:
        if not self._prompter.is_interactive():
            # No terminal to ask on; fail closed.
            self._audit(call, "denied (no terminal)", verbose)
            return False

        try:
            choice = await asyncio.to_thread(self._prompter.ask, call)
        except Exception as e:
            logger.warning("Interactive confirmation for '%s' failed: %s", call.name, e)
            choice = ConfirmChoice.deny

        logger.debug("Tool call %s: user chose %s", call.name, choice.value)
        if choice is ConfirmChoice.once:
            return True
        if choice is ConfirmChoice.session:
            await self._remember(call.name)
            return True
        return False

    async def _remember(self, tool_name: str) -> None:
        self._session_allowed.add(tool_name)
        session_name: Optional[str] = None

        def _mutate(cfg: AgentConfig) -> None:
            nonlocal session_name
            cfg.conversation_tool_permissions.add(tool_name)
            if cfg.session is not None:
                cfg.session.tool_permissions.add(tool_name)
                session_name = cfg.session.name

        self._context.update(_mutate)

        if self._grant_store is None:
            return
        try:
            await asyncio.to_thread(self._grant_store.add_grant, tool_name, session_name)
        except Exception as e:
            logger.warning("Failed to persist tool permission for '%s': %s", tool_name, e)

    def _audit(self, call: ToolCall, status: str, verbose: bool) -> None:
        logger.debug("Tool call %s: %s", call.name, status)
        if verbose:
            args = json.dumps(call.arguments, ensure_ascii=False, default=str)
            self._console.print(Text(f"Call {call.name} {args} [{status}]", style="dim"))


def _seed_grants(cfg: AgentConfig) -> Set[str]:
    granted = set(cfg.conversation_tool_permissions)
    if cfg.session is not None:
        granted.update(cfg.session.tool_permissions)
    return granted
