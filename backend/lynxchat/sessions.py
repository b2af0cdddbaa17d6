import threading
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass
class ConnectionSession:
    sid: str
    user_id: int
    username: str
    current_room: Optional[str] = None


class SessionStore:
    """Live connection sessions, keyed by Socket.IO sid."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sessions: Dict[str, ConnectionSession] = {}

    def open(self, sid: str, user_id: int, username: str) -> ConnectionSession:
        session = ConnectionSession(sid=sid, user_id=user_id, username=username)
        with self._lock:
            self._sessions[sid] = session
        return session

    def get(self, sid: str) -> Optional[ConnectionSession]:
        with self._lock:
            return self._sessions.get(sid)

    def close(self, sid: str) -> Optional[ConnectionSession]:
        with self._lock:
            return self._sessions.pop(sid, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
