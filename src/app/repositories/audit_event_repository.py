from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from src.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Append an audit event (immutable)"""
        pass

    @abstractmethod
    async def get_by_organization_paginated(
        self,
        organization_id: str,
        limit: int = 50,
        cursor: Optional[str] = None,
        event_type: Optional[str] = None,
    ) -> Tuple[List[AuditEvent], Optional[str]]:
        """Get audit events for an organization, newest first"""
        pass
