from __future__ import annotations

from toolgate.permission.context import ConfigContext
from toolgate.permission.models import AgentConfig, PermissionLevel, SessionState
from toolgate.permission.store import PersistedGrants


def test_snapshot_is_isolated() -> None:
    context = ConfigContext(AgentConfig(conversation_tool_permissions={"a"}))
    snap = context.snapshot()
    snap.conversation_tool_permissions.add("b")
    assert context.read(lambda cfg: set(cfg.conversation_tool_permissions)) == {"a"}


def test_update_mutates_in_place() -> None:
    context = ConfigContext()

    def _mutate(cfg: AgentConfig) -> None:
        cfg.tool_call_permission = PermissionLevel.never

    context.update(_mutate)
    assert context.snapshot().tool_call_permission is PermissionLevel.never


def test_replace_copies_config() -> None:
    context = ConfigContext()
    cfg = AgentConfig(verbose_tool_calls=True)
    context.replace(cfg)
    cfg.verbose_tool_calls = False
    assert context.snapshot().verbose_tool_calls is True


def test_merge_grants_into_named_session() -> None:
    context = ConfigContext()
    grants = PersistedGrants(conversation=["fs_cat"], sessions={"work": ["git_push"], "other": ["rm"]})

    context.merge_grants(grants, session_name="work")
    snap = context.snapshot()
    assert snap.conversation_tool_permissions == {"fs_cat"}
    assert snap.session == SessionState(name="work", tool_permissions={"git_push"})


def test_merge_grants_without_session() -> None:
    context = ConfigContext(AgentConfig(session=SessionState(name="keep")))
    context.merge_grants(PersistedGrants(conversation=["x"], sessions={"keep": ["y"]}))
    snap = context.snapshot()
    assert snap.conversation_tool_permissions == {"x"}
    assert snap.session is not None
    assert snap.session.tool_permissions == set()
