"""
Audit API Routes

Handles audit event retrieval endpoints.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.error import to_http_error
from src.api.utils.envelope import Envelope
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.audit import GetAuditEventsUseCase
from src.app.use_cases.auth import AuthenticatedCaller
from src.depends import get_current_caller, get_unit_of_work
from src.domain.base import CamelModel
from src.domain.entities import AuditEventType

router = APIRouter(prefix="/audit", tags=["Audit"])


class AuditEventResponse(CamelModel):
    """Single audit event in response"""

    id: str
    event_type: str
    outcome: str
    user_id: Optional[str]
    email: Optional[str]
    ip_address: Optional[str]
    user_agent: Optional[str]
    request_path: Optional[str]
    correlation_id: Optional[str]
    timestamp: str
    details: Dict[str, Any]


class AuditEventsResponse(CamelModel):
    """GET /audit/auth-events response payload"""

    events: List[AuditEventResponse]
    next_cursor: Optional[str]


@router.get(
    "/auth-events",
    status_code=status.HTTP_200_OK,
    response_model=Envelope[AuditEventsResponse],
)
async def get_auth_events(
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    limit: int = Query(50, ge=1, le=100, description="Maximum number of events to return"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
    event_type: Optional[AuditEventType] = Query(None, alias="eventType"),
):
    """
    Get Authentication Audit Events

    Returns authentication-related audit logs for the caller's organization.
    Only accessible by admins.

    Query Parameters:
        - limit: Maximum number of events to return (1-100, default 50)
        - cursor: Pagination cursor for fetching next page
        - eventType: Restrict to a single event type

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 403 Forbidden: Caller is not an admin
    """
    result = await GetAuditEventsUseCase(uow).execute(
        role=caller.payload.role,
        organization_id=caller.payload.organization_id,
        limit=limit,
        cursor=cursor,
        event_type=event_type.value if event_type else None,
    )
    if result.is_err():
        raise to_http_error(result.error)

    return Envelope(
        message="Audit events retrieved",
        data=AuditEventsResponse.model_validate(result.value),
    )
