"""
In-memory conversation history, keyed by session id.

Lives as long as the process. Each session keeps only its newest
MAX_TURNS turns; older ones are dropped first-in first-out.
"""
import logging
import threading
from typing import Dict, Iterable, List

from chat_relay.models.chat import Turn

log = logging.getLogger("sessions")

MAX_TURNS = 10


class SessionStore:
    """Bounded per-session turn lists."""

    def __init__(self, max_turns: int = MAX_TURNS):
        self.max_turns = max_turns
        self._sessions: Dict[str, List[Turn]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> List[Turn]:
        """Return a copy of the session's turns, oldest first (empty if unknown)."""
        with self._lock:
            return list(self._sessions.get(session_id, []))

    def append(self, session_id: str, turns: Iterable[Turn]) -> None:
        """Append turns, then trim to the newest max_turns."""
        with self._lock:
            history = self._sessions.setdefault(session_id, [])
            history.extend(turns)
            overflow = len(history) - self.max_turns
            if overflow > 0:
                del history[:overflow]
                log.debug(f"Session {session_id!r}: evicted {overflow} old turn(s)")

    def clear(self, session_id: str) -> bool:
        """Drop a session. Returns True if it existed."""
        with self._lock:
            existed = self._sessions.pop(session_id, None) is not None
        if existed:
            log.info(f"Session {session_id!r} cleared")
        return existed

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
