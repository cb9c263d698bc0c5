"""Namespaced MCP tool identifiers.

MCP tools are surfaced to the model as ``mcp__<server>__<tool>``. The server
segment ends at the *first* ``__`` after the prefix, so server names must not
contain ``__`` themselves; the tool segment may.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .errors import MalformedToolNameError

MCP_TOOL_PREFIX = "mcp__"
SEPARATOR = "__"


def is_mcp_tool(name: str) -> bool:
    """Return True if ``name`` uses the MCP tool prefix."""
    return name.startswith(MCP_TOOL_PREFIX)


def build_tool_name(server_name: str, tool_name: str) -> str:
    """Build the namespaced identifier for ``tool_name`` on ``server_name``.

    Raises:
        MalformedToolNameError: If either segment is empty.
    """
    name = f"{MCP_TOOL_PREFIX}{server_name}{SEPARATOR}{tool_name}"
    if not server_name or not tool_name:
        raise MalformedToolNameError(name)
    return name


def split_tool_name(name: str) -> Optional[Tuple[str, str]]:
    """Return ``(server, tool)`` for a well-formed identifier, else None."""
    if not is_mcp_tool(name):
        return None
    server, sep, tool = name[len(MCP_TOOL_PREFIX) :].partition(SEPARATOR)
    if not sep or not server or not tool:
        return None
    return server, tool


def parse_tool_name(name: str) -> Tuple[str, str]:
    """Return ``(server, tool)`` for a namespaced identifier.

    Raises:
        MalformedToolNameError: If the prefix is missing, there is no separator,
            or either segment is empty.
    """
    parts = split_tool_name(name)
    if parts is None:
        raise MalformedToolNameError(name)
    return parts


def extract_server_name(name: str) -> Optional[str]:
    """Return the server segment of a namespaced identifier, or None."""
    parts = split_tool_name(name)
    return parts[0] if parts else None
