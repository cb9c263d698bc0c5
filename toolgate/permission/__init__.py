"""Tool call permissions: layered policy, trust bypass, and interactive approval."""

from .context import ConfigContext
from .engine import PermissionEngine
from .models import AgentConfig, ConfirmChoice, PermissionLevel, SessionState, ToolPermissions
from .patterns import matches_any_pattern, matches_pattern
from .prompt import Prompter, TerminalPrompter
from .store import GrantStore, InMemoryGrantStore, JsonFileGrantStore, PersistedGrants

__all__ = [
    "AgentConfig",
    "ConfigContext",
    "ConfirmChoice",
    "GrantStore",
    "InMemoryGrantStore",
    "JsonFileGrantStore",
    "PermissionEngine",
    "PermissionLevel",
    "PersistedGrants",
    "Prompter",
    "SessionState",
    "TerminalPrompter",
    "ToolPermissions",
    "matches_any_pattern",
    "matches_pattern",
]
