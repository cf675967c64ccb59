"""Infrastructure layer for session state."""
from __future__ import annotations

import uuid
from typing import Protocol

from backend.core.state import WorkflowState
from backend.domain import SessionRecord


class SessionRepository(Protocol):
    """Storage contract for per-tab workflow state."""

    def create_session(self, now: float) -> str: ...

    def get_session(self, session_id: str) -> SessionRecord | None: ...

    def touch(self, session_id: str, now: float) -> SessionRecord | None: ...

    def save_state(self, session_id: str, state: WorkflowState) -> None: ...

    def delete_session(self, session_id: str) -> SessionRecord | None: ...

    def evict(self, *, idle_before: float, keep: int) -> list[SessionRecord]: ...

    def list_sessions(self) -> list[str]: ...


class InMemorySessionRepository:
    """Process-local session storage; everything is lost on restart.

    Records are kept in least-recently-seen order so the oldest session is
    always first.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}

    def create_session(self, now: float) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = SessionRecord(session_id=session_id, last_seen=now)
        return session_id

    def get_session(self, session_id: str) -> SessionRecord | None:
        return self._sessions.get(session_id)

    def touch(self, session_id: str, now: float) -> SessionRecord | None:
        record = self._sessions.pop(session_id, None)
        if record is None:
            return None
        record.last_seen = now
        self._sessions[session_id] = record
        return record

    def save_state(self, session_id: str, state: WorkflowState) -> None:
        record = self._sessions.get(session_id)
        if record is None:
            raise KeyError(session_id)
        record.state = state

    def delete_session(self, session_id: str) -> SessionRecord | None:
        return self._sessions.pop(session_id, None)

    def evict(self, *, idle_before: float, keep: int) -> list[SessionRecord]:
        """Remove sessions last seen before ``idle_before``, then the oldest
        ones until at most ``keep`` remain."""

        evicted = [record for record in self._sessions.values() if record.last_seen < idle_before]
        for record in evicted:
            del self._sessions[record.session_id]
        while len(self._sessions) > max(keep, 0):
            oldest = next(iter(self._sessions))
            evicted.append(self._sessions.pop(oldest))
        return evicted

    def list_sessions(self) -> list[str]:
        return list(self._sessions)
