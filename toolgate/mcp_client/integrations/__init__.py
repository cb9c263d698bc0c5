"""Typed clients for specific MCP servers, layered over `CapabilityRegistry.dispatch`."""

from .cron import CronMcpClient

__all__ = ["CronMcpClient"]
