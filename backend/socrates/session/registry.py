import time
from dataclasses import dataclass, field
from threading import Lock
from typing import Any


@dataclass
class SessionRecord:
    orchestrator: Any
    created_at: float = field(default_factory=time.time)
    last_seen_at: float = field(default_factory=time.time)
    active: bool = True

    def describe(self) -> dict:
        session = getattr(self.orchestrator, "session", None)
        return {
            "active": self.active,
            "state": getattr(getattr(session, "state", None), "value", None),
            "analysis_mode": getattr(getattr(session, "analysis_mode", None), "value", None),
            "age_sec": round(time.time() - self.created_at, 1),
        }


class SessionRegistry:
    """
    Process-wide index of connections, used for health reporting and for
    evicting records of closed sockets. Sessions never read each other's
    state through it; each orchestrator owns its own session.
    """

    def __init__(self):
        self._lock = Lock()
        self._records: dict[str, SessionRecord] = {}

    def register(self, session_id: str, orchestrator) -> SessionRecord:
        record = SessionRecord(orchestrator=orchestrator)
        with self._lock:
            self._records[session_id] = record
        return record

    def touch(self, session_id: str) -> None:
        with self._lock:
            record = self._records.get(session_id)
            if record is not None:
                record.last_seen_at = time.time()

    def mark_inactive(self, session_id: str) -> None:
        with self._lock:
            record = self._records.get(session_id)
            if record is not None:
                record.active = False
                record.last_seen_at = time.time()

    def get(self, session_id: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(session_id)

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for record in self._records.values() if record.active)

    def states(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        with self._lock:
            records = list(self._records.values())
        for record in records:
            if not record.active:
                continue
            state = record.describe()["state"] or "unknown"
            counts[state] = counts.get(state, 0) + 1
        return counts

    def cleanup_inactive(self, ttl_sec: float) -> int:
        """Drops closed sessions idle for longer than ttl_sec (never below 30s)."""
        cutoff = time.time() - max(30.0, float(ttl_sec or 900.0))
        with self._lock:
            stale = [
                session_id
                for session_id, record in self._records.items()
                if not record.active and record.last_seen_at <= cutoff
            ]
            for session_id in stale:
                del self._records[session_id]
        return len(stale)


session_registry = SessionRegistry()
