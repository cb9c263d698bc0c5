from __future__ import annotations

from enum import Enum
from typing import Any, List, Optional

from pydantic import Field, field_validator, model_validator

from ..mcp_client.schemas.base import BaseSchema
from ..mcp_client.schemas.config import McpServerConfig


class PermissionLevel(str, Enum):
    """
    Fallback decision applied when no tool pattern matches.

    Attributes:
        always: Allow the call.
        never: Deny the call.
        ask: Ask the user interactively (denied when no terminal is attached).
    """

    always = "always"
    never = "never"
    ask = "ask"

    @classmethod
    def parse(cls, value: Any) -> "PermissionLevel":
        """Parse a level case-insensitively; unknown values fall back to ``ask``."""
        if isinstance(value, PermissionLevel):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ask


class ToolPermissions(BaseSchema):
    """
    Glob pattern lists deciding tool calls before the default level applies.

    Patterns only treat ``*`` as a wildcard. ``denied`` always wins over
    ``allowed``, which wins over ``ask``.
    """

    allowed: Optional[List[str]] = Field(
        default=None,
        description="Tool name patterns that are allowed without asking.",
        examples=[["fs_*", "mcp__filesystem__read_*"]],
    )
    denied: Optional[List[str]] = Field(
        default=None,
        description="Tool name patterns that are always denied.",
        examples=[["mcp__shell__*"]],
    )
    ask: Optional[List[str]] = Field(
        default=None,
        description="Tool name patterns that require interactive confirmation.",
        examples=[["mcp__git__push"]],
    )


class ConfirmChoice(str, Enum):
    """Outcome of an interactive confirmation."""

    once = "once"
    session = "session"
    deny = "deny"


class SessionState(BaseSchema):
    """The active named session and the tools approved within it."""

    name: str = Field(..., description="Session name.", min_length=1)
    tool_permissions: set[str] = Field(
        default_factory=set,
        description="Tool names approved for the remainder of this session.",
    )


class AgentConfig(BaseSchema):
    """Runtime configuration consulted for every tool call.

    Shared process-wide through `toolgate.permission.context.ConfigContext`.
    """

    mcp_servers: List[McpServerConfig] = Field(
        default_factory=list,
        description="Configured MCP capability providers.",
    )
    tool_call_permission: Optional[PermissionLevel] = Field(
        default=None,
        description="Global default level when no pattern matches. Unset means 'always'.",
    )
    tool_permissions: Optional[ToolPermissions] = Field(
        default=None,
        description="Global allow/deny/ask pattern lists.",
    )
    verbose_tool_calls: bool = Field(
        default=False,
        description="Print an audit line for every permission decision.",
    )
    conversation_tool_permissions: set[str] = Field(
        default_factory=set,
        description="Tool names remembered across invocations by 'approve for session'.",
    )
    session: Optional[SessionState] = Field(
        default=None,
        description="The active named session, if any.",
    )

    @field_validator("tool_call_permission", mode="before")
    @classmethod
    def _parse_level(cls, v: object) -> Optional[PermissionLevel]:
        if v is None:
            return None
        return PermissionLevel.parse(v)

    @model_validator(mode="after")
    def _unique_server_names(self) -> "AgentConfig":
        seen: set[str] = set()
        for server in self.mcp_servers:
            if server.name in seen:
                raise ValueError(f"Duplicate MCP server name: '{server.name}'")
            seen.add(server.name)
        return self
