"""
In-process session store for single-instance deployments.

Contents are lost on restart; the registry's fallback policy covers that.
"""

import threading
import time
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import Session


class InMemorySessionRepository(ISessionRepository):
    """Dict-backed sessions guarded by one lock; every method is atomic"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._sessions: Dict[str, Session] = {}
        self._expires: Dict[str, float] = {}
        self._by_user: Dict[str, Set[str]] = {}
        self._tombstones: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _drop(self, session_id: str) -> Optional[Session]:
        session = self._sessions.pop(session_id, None)
        self._expires.pop(session_id, None)
        if session is not None:
            ids = self._by_user.get(session.user_id)
            if ids is not None:
                ids.discard(session_id)
                if not ids:
                    del self._by_user[session.user_id]
        return session

    def _live(self, session_id: str, now: float) -> Optional[Session]:
        session = self._sessions.get(session_id)
        if session is not None and self._expires.get(session_id, 0) <= now:
            self._drop(session_id)
            return None
        return session

    def _insert(self, session: Session, ttl_seconds: int) -> None:
        self._drop(session.session_id)
        self._sessions[session.session_id] = session.model_copy()
        self._expires[session.session_id] = self._clock() + ttl_seconds
        self._by_user.setdefault(session.user_id, set()).add(session.session_id)

    async def save(self, session: Session, ttl_seconds: int) -> Session:
        with self._lock:
            self._tombstones.pop(session.session_id, None)
            self._insert(session, ttl_seconds)
        return session

    async def restore(self, session: Session, ttl_seconds: int) -> bool:
        with self._lock:
            if self._tombstones.get(session.session_id, 0) > self._clock():
                return False
            self._tombstones.pop(session.session_id, None)
            self._insert(session, ttl_seconds)
            return True

    async def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._live(session_id, self._clock())
            return session.model_copy() if session else None

    async def list_by_user(self, user_id: str) -> List[Session]:
        with self._lock:
            now = self._clock()
            sessions = []
            for session_id in list(self._by_user.get(user_id, ())):
                session = self._live(session_id, now)
                if session is not None:
                    sessions.append(session.model_copy())
            return sessions

    async def touch(self, session_id: str, at: datetime) -> bool:
        with self._lock:
            session = self._live(session_id, self._clock())
            if session is None:
                return False
            session.last_activity_at = at
            return True

    async def delete(self, session_id: str, tombstone_ttl_seconds: int) -> Optional[Session]:
        with self._lock:
            session = self._drop(session_id)
            self._tombstones[session_id] = self._clock() + tombstone_ttl_seconds
            return session

    async def delete_all_for_user(self, user_id: str, tombstone_ttl_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            count = 0
            for session_id in list(self._by_user.get(user_id, ())):
                expired = self._expires.get(session_id, 0) <= now
                self._drop(session_id)
                self._tombstones[session_id] = now + tombstone_ttl_seconds
                if not expired:
                    count += 1
            return count

    async def is_revoked(self, session_id: str) -> bool:
        with self._lock:
            until = self._tombstones.get(session_id)
            if until is None:
                return False
            if until <= self._clock():
                del self._tombstones[session_id]
                return False
            return True

    async def purge_idle(
        self, idle_before: Optional[datetime], tombstone_ttl_seconds: int
    ) -> int:
        with self._lock:
            now = self._clock()
            expired = [sid for sid in self._sessions if self._expires.get(sid, 0) <= now]
            for session_id in expired:
                self._drop(session_id)
            idle = [
                sid
                for sid, session in self._sessions.items()
                if idle_before is not None and session.last_activity_at < idle_before
            ]
            for session_id in idle:
                self._drop(session_id)
                self._tombstones[session_id] = now + tombstone_ttl_seconds
            for session_id in [sid for sid, until in self._tombstones.items() if until <= now]:
                del self._tombstones[session_id]
            return len(idle)
