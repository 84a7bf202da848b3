"""
Audit Logger

Append-only security event recording that never breaks the auth flow.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
from uuid import UUID

from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, AuditEventType, AuditOutcome

logger = logging.getLogger(__name__)
fallback_logger = logging.getLogger("audit.fallback")


@dataclass
class RequestContext:
    """Who/where of the current request, attached to every audit entry"""

    ip_address: str = "unknown"
    user_agent: str = "unknown"
    request_path: Optional[str] = None
    correlation_id: Optional[str] = None


class AuditLogger:
    """
    Writes AuditEvent rows through a unit of work.

    Business Rules:
    - record() never raises; a failed write is reported on the
      `audit.fallback` logger with the serialized entry
    - The entry is committed on its own, so callers must commit their own
      changes before recording success
    """

    async def record(
        self,
        uow: UnitOfWork,
        event_type: AuditEventType,
        outcome: AuditOutcome = AuditOutcome.success,
        context: Optional[RequestContext] = None,
        user_id: Optional[Union[UUID, str]] = None,
        email: Optional[str] = None,
        organization_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditEvent]:
        context = context or RequestContext()
        event = AuditEvent(
            event_type=event_type,
            outcome=outcome,
            user_id=UUID(str(user_id)) if user_id else None,
            email=email,
            organization_id=organization_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            request_path=context.request_path,
            correlation_id=context.correlation_id,
            details=details or {},
        )
        try:
            created = await uow.audit_events.create(event)
            await uow.commit()
            return created
        except Exception as exc:
            await self._rollback_quietly(uow)
            fallback_logger.error(
                f"Audit write failed ({type(exc).__name__}): "
                + json.dumps(event.model_dump(mode="json"), default=str)
            )
            return None

    @staticmethod
    async def _rollback_quietly(uow: UnitOfWork):
        try:
            await uow.rollback()
        except Exception as exc:
            fallback_logger.error(f"Audit rollback failed: {type(exc).__name__}")
