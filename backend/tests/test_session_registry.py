import time
from types import SimpleNamespace

from core.state import AnalysisMode, SessionState
from socrates.session.registry import SessionRegistry


def test_session_registry_register_touch_inactive_cleanup():
    registry = SessionRegistry()

    registry.register("s1", orchestrator=object())
    record = registry.get("s1")
    assert record is not None
    assert record.active is True
    assert registry.active_count() == 1

    before_touch = record.last_seen_at
    time.sleep(0.01)
    registry.touch("s1")
    assert registry.get("s1").last_seen_at >= before_touch

    registry.mark_inactive("s1")
    assert registry.get("s1").active is False
    assert registry.active_count() == 0

    # ttl=0 clamps internally to >=30s; force old timestamp for deterministic cleanup
    registry.get("s1").last_seen_at = time.time() - 3600
    removed = registry.cleanup_inactive(ttl_sec=0)
    assert removed == 1
    assert registry.get("s1") is None


def test_cleanup_keeps_active_and_recent_sessions():
    registry = SessionRegistry()
    registry.register("live", orchestrator=object())
    registry.register("recent", orchestrator=object())
    registry.mark_inactive("recent")

    assert registry.cleanup_inactive(ttl_sec=60) == 0
    assert registry.get("live") is not None
    assert registry.get("recent") is not None


def test_states_counts_active_sessions_by_state():
    def _orchestrator(state):
        return SimpleNamespace(session=SimpleNamespace(state=state, analysis_mode=AnalysisMode.GENERAL))

    registry = SessionRegistry()
    registry.register("a", _orchestrator(SessionState.STREAMING))
    registry.register("b", _orchestrator(SessionState.STREAMING))
    registry.register("c", _orchestrator(SessionState.IDLE))
    registry.register("d", _orchestrator(SessionState.CLOSED))
    registry.mark_inactive("d")

    assert registry.states() == {"streaming": 2, "idle": 1}
    assert registry.get("a").describe()["analysis_mode"] == "general"
