"""Process-wide mutable configuration behind a single lock.

`ConfigContext` is passed explicitly to whoever needs the runtime
configuration. Reads return owned deep copies, so nothing that crosses a
suspension point (an ``await`` or the interactive prompt) keeps the lock.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, TypeVar

from .models import AgentConfig, SessionState
from .store import PersistedGrants

T = TypeVar("T")


class ConfigContext:
    def __init__(self, config: Optional[AgentConfig] = None) -> None:
        self._config = config or AgentConfig()
        self._lock = threading.RLock()

    def snapshot(self) -> AgentConfig:
        """Return a deep copy of the current configuration."""
        with self._lock:
            return self._config.model_copy(deep=True)

    def read(self, getter: Callable[[AgentConfig], T]) -> T:
        """Apply ``getter`` under the lock. The getter must not retain references."""
        with self._lock:
            return getter(self._config)

    def update(self, mutate: Callable[[AgentConfig], None]) -> None:
        """Mutate the configuration in place under the lock."""
        with self._lock:
            mutate(self._config)

    def replace(self, config: AgentConfig) -> None:
        with self._lock:
            self._config = config.model_copy(deep=True)

    def merge_grants(self, grants: PersistedGrants, session_name: Optional[str] = None) -> None:
        """Seed remembered grants loaded from a `GrantStore`.

        When ``session_name`` is given it becomes the active named session and
        receives that session's stored grants.
        """

        def _mutate(cfg: AgentConfig) -> None:
            cfg.conversation_tool_permissions.update(grants.conversation)
            if session_name:
                if cfg.session is None or cfg.session.name != session_name:
                    cfg.session = SessionState(name=session_name)
                cfg.session.tool_permissions.update(grants.sessions.get(session_name, []))

        self.update(_mutate)
