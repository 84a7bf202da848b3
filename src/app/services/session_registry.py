"""
Session Registry

Policy layer over the session store: recording, listing, touching,
revocation and the live/revoked/unknown cross-check.
"""

import hashlib
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import List, Optional

from src.app.repositories.session_repository import ISessionRepository
from src.domain.entities import DeviceInfo, Session

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    live = "live"
    revoked = "revoked"
    unknown = "unknown"


@dataclass
class SessionCheck:
    state: SessionState
    session: Optional[Session] = None
    # True when an unknown session was let through by the fallback policy
    fallback: bool = False

    @property
    def accepted(self) -> bool:
        return self.state == SessionState.live or self.fallback


class SessionRegistry:
    """
    Tracks active sessions per user.

    Business Rules:
    - A session id the store has never seen (e.g. after a restart dropped
      in-memory state) is accepted with a WARNING unless strict mode is on
    - A revoked session is always rejected, strict mode or not
    - revoke_all returns the number of sessions removed
    """

    def __init__(
        self,
        repository: ISessionRepository,
        session_ttl_seconds: int,
        strict_mode: bool = False,
        idle_timeout_seconds: int = 0,
    ):
        self.repository = repository
        self.session_ttl_seconds = session_ttl_seconds
        self.strict_mode = strict_mode
        self.idle_timeout_seconds = idle_timeout_seconds

    @staticmethod
    def _new_session(user_id: str, session_id: str, device: DeviceInfo) -> Session:
        now = datetime.now(UTC)
        return Session(
            session_id=session_id,
            user_id=user_id,
            device_id=device.device_id,
            ip_address=device.ip_address,
            user_agent=device.user_agent,
            created_at=now,
            last_activity_at=now,
        )

    async def record_session(self, user_id: str, session_id: str, device: DeviceInfo) -> Session:
        session = self._new_session(user_id, session_id, device)
        return await self.repository.save(session, self.session_ttl_seconds)

    async def restore_session(
        self, user_id: str, session_id: str, device: DeviceInfo
    ) -> Optional[Session]:
        """Re-record a session the store lost. None if it was revoked meanwhile."""
        session = self._new_session(user_id, session_id, device)
        if not await self.repository.restore(session, self.session_ttl_seconds):
            logger.warning(f"Refused to re-record revoked session {session_id} for user {user_id}")
            return None
        return session

    async def get(self, session_id: str) -> Optional[Session]:
        return await self.repository.get(session_id)

    async def list_sessions(self, user_id: str) -> List[Session]:
        sessions = await self.repository.list_by_user(user_id)
        return sorted(sessions, key=lambda s: s.last_activity_at, reverse=True)

    async def touch(self, session_id: str) -> bool:
        return await self.repository.touch(session_id, datetime.now(UTC))

    async def revoke(self, session_id: str) -> Optional[Session]:
        return await self.repository.delete(session_id, self.session_ttl_seconds)

    async def revoke_all(self, user_id: str) -> int:
        count = await self.repository.delete_all_for_user(user_id, self.session_ttl_seconds)
        logger.info(f"Revoked {count} session(s) for user {user_id}")
        return count

    async def check(self, user_id: str, session_id: str) -> SessionCheck:
        session = await self.repository.get(session_id)
        if session is not None:
            if session.user_id != user_id:
                return SessionCheck(state=SessionState.revoked)
            return SessionCheck(state=SessionState.live, session=session)

        if await self.repository.is_revoked(session_id):
            return SessionCheck(state=SessionState.revoked)

        if self.strict_mode:
            return SessionCheck(state=SessionState.unknown)

        logger.warning(
            f"Session {session_id} for user {user_id} not found in registry; "
            "allowing access based on token validity"
        )
        return SessionCheck(state=SessionState.unknown, fallback=True)

    async def purge_idle(self) -> int:
        """Sweep expired entries; revoke idle sessions when an idle timeout is set"""
        cutoff = None
        if self.idle_timeout_seconds > 0:
            cutoff = datetime.now(UTC) - timedelta(seconds=self.idle_timeout_seconds)
        return await self.repository.purge_idle(cutoff, self.session_ttl_seconds)


def device_fingerprint(user_agent: Optional[str], ip_address: Optional[str]) -> str:
    """Stable device id derived from user agent and client address"""
    raw = f"{user_agent or 'unknown'}_{ip_address or 'unknown'}"
    return hashlib.sha256(raw.encode()).hexdigest()[:32]
