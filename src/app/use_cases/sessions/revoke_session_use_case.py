"""
Revoke Session Use Case

Ends one of the caller's sessions, e.g. a lost device.
"""

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import RevokeSessionResponse
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import AuditEventType, AuditOutcome, TokenPayload
from src.domain.errors import StoreUnavailableError


class RevokeSessionUseCase:
    """
    Business Rules:
    - Users can only revoke their own sessions; someone else's session id
      is reported as not found
    - Revocation is audit-logged
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, caller: TokenPayload, session_id: str, context: RequestContext
    ) -> Result[RevokeSessionResponse]:
        try:
            session = await self.services.sessions.get(session_id)
            if session is None or session.user_id != caller.user_id:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))
            await self.services.sessions.revoke(session_id)
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))

        await self.services.audit.record(
            self.uow,
            AuditEventType.session_revoked,
            AuditOutcome.success,
            context,
            user_id=caller.user_id,
            email=caller.email,
            organization_id=caller.organization_id,
            details={
                "session_id": session_id,
                "current_session": session_id == caller.session_id,
            },
        )
        return Return.ok(RevokeSessionResponse(session_id=session_id))
