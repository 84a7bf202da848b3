"""
Get Audit Events Use Case

Retrieves security audit events for the caller's organization with pagination.
"""

from typing import Any, Dict, Optional

from libs.result import Error, Result, Return
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import UserRole


class GetAuditEventsUseCase:
    """
    Use case for retrieving audit events for an organization.

    Business Rules:
    - Caller must have role=admin
    - Results are organization-scoped
    - Results ordered by newest first
    - Supports cursor-based pagination and an optional event type filter
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def execute(
        self,
        role: str,
        organization_id: str,
        limit: int = 50,
        cursor: Optional[str] = None,
        event_type: Optional[str] = None,
    ) -> Result[Dict[str, Any]]:
        """
        Execute get audit events use case.

        Args:
            role: Role from the access token (must be admin)
            organization_id: Organization from the access token
            limit: Maximum number of events to return
            cursor: Pagination cursor (optional)
            event_type: Only return events of this type (optional)

        Returns:
            Result with events list and next_cursor, or Error
        """
        if role != UserRole.admin.value:
            return Return.err(
                Error("FORBIDDEN", "You do not have permission to view audit events")
            )

        async with self.uow:
            events, next_cursor = await self.uow.audit_events.get_by_organization_paginated(
                organization_id, limit=limit, cursor=cursor, event_type=event_type
            )

            events_list = [
                {
                    "id": str(event.id),
                    "event_type": event.event_type.value
                    if hasattr(event.event_type, "value")
                    else event.event_type,
                    "outcome": event.outcome.value
                    if hasattr(event.outcome, "value")
                    else event.outcome,
                    "user_id": str(event.user_id) if event.user_id else None,
                    "email": event.email,
                    "ip_address": event.ip_address,
                    "user_agent": event.user_agent,
                    "request_path": event.request_path,
                    "correlation_id": event.correlation_id,
                    "timestamp": event.created_at.isoformat() + "Z",
                    "details": event.details or {},
                }
                for event in events
            ]

            return Return.ok({"events": events_list, "next_cursor": next_cursor})
