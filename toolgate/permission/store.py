"""Durable storage for 'approve for session' tool grants.

Grants are recorded in two scopes: the general conversation scope, reused by
every invocation, and the scope of a named session.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from pydantic import Field

from ..mcp_client.schemas.base import BaseSchema

logger = logging.getLogger(__name__)


class PersistedGrants(BaseSchema):
    conversation: List[str] = Field(
        default_factory=list,
        description="Tool names approved for every conversation.",
    )
    sessions: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Tool names approved per named session.",
    )


@runtime_checkable
class GrantStore(Protocol):
    """Protocol for grant persistence backends."""

    def load(self) -> PersistedGrants: ...

    def add_grant(self, tool_name: str, session_name: Optional[str] = None) -> None: ...


class InMemoryGrantStore(GrantStore):
    """Grant store kept in process memory; useful for tests and ephemeral runs."""

    def __init__(self, grants: Optional[PersistedGrants] = None) -> None:
        self._grants = grants.model_copy(deep=True) if grants else PersistedGrants()
        self._lock = threading.Lock()

    def load(self) -> PersistedGrants:
        with self._lock:
            return self._grants.model_copy(deep=True)

    def add_grant(self, tool_name: str, session_name: Optional[str] = None) -> None:
        with self._lock:
            _add(self._grants, tool_name, session_name)


class JsonFileGrantStore(GrantStore):
    """Grant store backed by a JSON file, rewritten atomically on every grant."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> PersistedGrants:
        """Read the stored grants; a missing file yields no grants.

        Raises:
            OSError: If the file exists but cannot be read.
            pydantic.ValidationError: If the file content is not a valid grants document.
        """
        with self._lock:
            return self._read()

    def add_grant(self, tool_name: str, session_name: Optional[str] = None) -> None:
        """Record one grant, keeping every grant already stored."""
        with self._lock:
            grants = self._read()
            _add(grants, tool_name, session_name)
            self._write(grants)
        logger.debug("Persisted tool grant '%s' (session=%s) to %s", tool_name, session_name, self._path)

    def _read(self) -> PersistedGrants:
        if not self._path.exists():
            return PersistedGrants()
        raw = self._path.read_text(encoding="utf-8")
        if not raw.strip():
            return PersistedGrants()
        return PersistedGrants.model_validate_json(raw)

    def _write(self, grants: PersistedGrants) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(grants.model_dump_json(indent=2))
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


def _add(grants: PersistedGrants, tool_name: str, session_name: Optional[str]) -> None:
    grants.conversation = sorted(set(grants.conversation) | {tool_name})
    if session_name:
        current = set(grants.sessions.get(session_name, []))
        grants.sessions[session_name] = sorted(current | {tool_name})
