from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import Field

from .base import BaseSchema


class McpServerConfig(BaseSchema):
    """Launch and trust settings for one stdio MCP capability provider.

    Loaded once by the external config store and treated as read-only for the
    lifetime of the process.
    """

    name: str = Field(
        ...,
        description=(
            "Unique name for this server. Used as the '<server>' segment of namespaced tool names, "
            "so it must not contain '__'."
        ),
        min_length=1,
        max_length=128,
        examples=["filesystem", "cron"],
    )
    command: str = Field(
        ...,
        description="Executable used to start the MCP server.",
        min_length=1,
        examples=["npx", "uvx", "/usr/local/bin/cron-mcp"],
    )
    args: List[str] = Field(
        default_factory=list,
        description="Arguments passed to the command.",
        examples=[["-y", "@modelcontextprotocol/server-filesystem", "/tmp"]],
    )
    env: Dict[str, str] = Field(
        default_factory=dict,
        description="Extra environment variables for the server process.",
        examples=[{"API_TOKEN": "secret"}],
    )
    enabled: bool = Field(
        default=True,
        description="Whether this server is connected automatically at startup.",
    )
    trusted: bool = Field(
        default=False,
        description="Whether calls to this server's tools bypass tool permission checks.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional description of what this server provides.",
    )
