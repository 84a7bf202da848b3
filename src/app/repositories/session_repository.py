from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.domain.entities import Session


class ISessionRepository(ABC):
    """
    Session store interface - application layer

    Implementations must make every method atomic per session id and per
    user: concurrent record/revoke calls for the same user never lose or
    resurrect an entry.
    """

    @abstractmethod
    async def save(self, session: Session, ttl_seconds: int) -> Session:
        """Insert or overwrite a session; clears any tombstone for its id"""
        pass

    @abstractmethod
    async def restore(self, session: Session, ttl_seconds: int) -> bool:
        """
        Insert a session unless its id carries a revocation tombstone.
        Returns False, leaving the store untouched, when it does.
        """
        pass

    @abstractmethod
    async def get(self, session_id: str) -> Optional[Session]:
        pass

    @abstractmethod
    async def list_by_user(self, user_id: str) -> List[Session]:
        pass

    @abstractmethod
    async def touch(self, session_id: str, at: datetime) -> bool:
        """Move last_activity_at forward. Returns False if the session is gone."""
        pass

    @abstractmethod
    async def delete(self, session_id: str, tombstone_ttl_seconds: int) -> Optional[Session]:
        """Remove one session and leave a revocation tombstone"""
        pass

    @abstractmethod
    async def delete_all_for_user(self, user_id: str, tombstone_ttl_seconds: int) -> int:
        """Remove every session of a user. Returns count removed."""
        pass

    @abstractmethod
    async def is_revoked(self, session_id: str) -> bool:
        pass

    @abstractmethod
    async def purge_idle(
        self, idle_before: Optional[datetime], tombstone_ttl_seconds: int
    ) -> int:
        """
        Drop expired sessions and tombstones, and revoke sessions whose last
        activity is older than idle_before (skipped when None).
        """
        pass
