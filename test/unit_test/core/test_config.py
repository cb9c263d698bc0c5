from __future__ import annotations

import json

import pytest

from toolgate.core.config import Settings
from toolgate.permission.models import PermissionLevel
from toolgate.permission.store import JsonFileGrantStore

ENV_NAMES = [
    "TOOLGATE_LOG_LEVEL",
    "TOOLGATE_VERBOSE_TOOL_CALLS",
    "TOOLGATE_TOOL_CALL_PERMISSION",
    "TOOLGATE_TOOL_PERMISSIONS",
    "TOOLGATE_GRANT_STORE_PATH",
    "TOOLGATE_MCP_SERVERS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    s = Settings(_env_file=None)
    assert s.log_level == "INFO"
    assert s.mcp_servers == []
    assert s.tool_call_permission is None

    cfg = s.to_agent_config()
    assert cfg.tool_call_permission is None
    assert cfg.tool_permissions is None
    assert cfg.verbose_tool_calls is False


def test_environment_binding(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLGATE_VERBOSE_TOOL_CALLS", "true")
    monkeypatch.setenv("TOOLGATE_TOOL_CALL_PERMISSION", "NEVER")
    monkeypatch.setenv("TOOLGATE_TOOL_PERMISSIONS", json.dumps({"allowed": ["fs_*"], "denied": ["mcp__shell__*"]}))
    monkeypatch.setenv("TOOLGATE_GRANT_STORE_PATH", "/tmp/grants.json")
    monkeypatch.setenv(
        "TOOLGATE_MCP_SERVERS",
        json.dumps(
            [
                {"name": "fs", "command": "uvx", "args": ["mcp-server-fs"], "trusted": True},
                {"name": "cron", "command": "cron-mcp", "env": {"TZ": "UTC"}, "enabled": False},
            ]
        ),
    )

    s = Settings(_env_file=None)
    assert s.grant_store_path == "/tmp/grants.json"

    cfg = s.to_agent_config()
    assert cfg.verbose_tool_calls is True
    assert cfg.tool_call_permission is PermissionLevel.never
    assert cfg.tool_permissions is not None
    assert cfg.tool_permissions.allowed == ["fs_*"]
    assert cfg.tool_permissions.ask is None
    assert [(m.name, m.trusted, m.enabled) for m in cfg.mcp_servers] == [("fs", True, True), ("cron", False, False)]
    assert cfg.mcp_servers[1].env == {"TZ": "UTC"}


def test_unknown_level_falls_back_to_ask(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TOOLGATE_TOOL_CALL_PERMISSION", "sometimes")
    assert Settings(_env_file=None).to_agent_config().tool_call_permission is PermissionLevel.ask


def test_duplicate_server_names_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "TOOLGATE_MCP_SERVERS",
        json.dumps([{"name": "fs", "command": "a"}, {"name": "fs", "command": "b"}]),
    )
    with pytest.raises(ValueError):
        Settings(_env_file=None).to_agent_config()


def test_grant_store_from_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    assert Settings(_env_file=None).grant_store() is None

    path = tmp_path / "grants.json"
    monkeypatch.setenv("TOOLGATE_GRANT_STORE_PATH", str(path))
    store = Settings(_env_file=None).grant_store()
    assert isinstance(store, JsonFileGrantStore)
    assert store.path == path
