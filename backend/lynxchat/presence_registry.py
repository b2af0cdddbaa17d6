"""Process-wide registry of live connections.

Maps a Socket.IO session id to the identity that opened it. A user may hold
several connections (one per device or tab); each connection belongs to
exactly one user. Nothing here is persisted, so a restart forgets everyone.
"""

import threading
from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass(frozen=True)
class PresenceEntry:
    user_id: int
    username: str


class PresenceRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, PresenceEntry] = {}

    def init_app(self, app) -> None:
        self.clear()
        app.extensions['lynxchat.presence'] = self

    def register(self, sid: str, user_id: int, username: str) -> PresenceEntry:
        entry = PresenceEntry(user_id=user_id, username=username)
        with self._lock:
            self._entries[sid] = entry
        return entry

    def unregister(self, sid: str) -> Optional[PresenceEntry]:
        with self._lock:
            return self._entries.pop(sid, None)

    def get(self, sid: str) -> Optional[PresenceEntry]:
        with self._lock:
            return self._entries.get(sid)

    def is_online(self, sid: str) -> bool:
        with self._lock:
            return sid in self._entries

    def find(self, username: str) -> Optional[str]:
        """Return the first live connection registered under ``username``.

        Display names are unique per account, but the same account may be
        connected more than once; insertion order decides which wins.
        """
        with self._lock:
            for sid, entry in self._entries.items():
                if entry.username == username:
                    return sid
        return None

    def online_users(self) -> List[str]:
        with self._lock:
            names = [e.username for e in self._entries.values()]
        return sorted(set(names))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
