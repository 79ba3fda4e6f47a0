"""
Scrape Sessions

A session tracks one search started through the HTTP API: its status, the
log entries streamed to the browser, and the final results. The store is
an interface so the server can be backed by something other than memory.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from threading import Lock
from typing import Any, Dict, List, Optional

from .events import EventSink, make_log_entry
from .models import BusinessRecord, SearchRequest

STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"


@dataclass
class Session:
    id: str
    request: SearchRequest
    status: str = STATUS_RUNNING
    logs: List[Dict[str, Any]] = field(default_factory=list)
    results: List[BusinessRecord] = field(default_factory=list)
    error: Optional[str] = None
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def finished(self) -> bool:
        return self.status != STATUS_RUNNING


class SessionStore:
    """Storage for scrape sessions."""

    def create(self, request: SearchRequest) -> Session:
        raise NotImplementedError

    def get(self, session_id: str) -> Optional[Session]:
        raise NotImplementedError

    def update(self, session_id: str, **fields) -> Optional[Session]:
        raise NotImplementedError

    def append_log(self, session_id: str, entry: Dict[str, Any]) -> None:
        raise NotImplementedError

    def logs_since(self, session_id: str, index: int) -> List[Dict[str, Any]]:
        """Log entries from position `index` on."""
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    """Thread-safe dict-backed store. Sessions live until deleted."""

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._lock = Lock()

    def create(self, request: SearchRequest) -> Session:
        session = Session(id=str(uuid.uuid4()), request=request)
        with self._lock:
            self._sessions[session.id] = session
            return self._snapshot(session)

    @staticmethod
    def _snapshot(session: Session) -> Session:
        # Callers get a copy so they never see a list being appended to
        return replace(session, logs=list(session.logs), results=list(session.results))

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return self._snapshot(session) if session else None

    def update(self, session_id: str, **fields) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            for name, value in fields.items():
                if not hasattr(session, name):
                    raise AttributeError(f"Session has no field '{name}'")
                setattr(session, name, value)
            return self._snapshot(session)

    def append_log(self, session_id: str, entry: Dict[str, Any]) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.logs.append(entry)

    def logs_since(self, session_id: str, index: int) -> List[Dict[str, Any]]:
        with self._lock:
            session = self._sessions.get(session_id)
            return list(session.logs[index:]) if session else []

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None


class SessionEventSink(EventSink):
    """Appends scraper events to a session's log."""

    def __init__(self, store: SessionStore, session_id: str):
        self.store = store
        self.session_id = session_id

    def on_event(self, kind, payload):
        self.store.append_log(self.session_id, make_log_entry(kind, payload))
