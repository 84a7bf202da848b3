"""
Logout All Use Case

Terminates every session of the calling user.
"""

from libs.result import Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import AuditEventType, AuditOutcome, TokenPayload
from src.domain.errors import StoreUnavailableError
from .dtos import LogoutAllResponse


class LogoutAllUseCase:
    """
    Business Rules:
    - Revokes every session of the caller, the current one included
    - Reports the number of sessions terminated
    - Revoked sessions leave tombstones, so their tokens fail verification
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, caller: TokenPayload, context: RequestContext
    ) -> Result[LogoutAllResponse]:
        try:
            count = await self.services.sessions.revoke_all(caller.user_id)
            # The caller's own session may be unknown after a restart
            await self.services.sessions.revoke(caller.session_id)
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))

        await self.services.audit.record(
            self.uow,
            AuditEventType.logout_all,
            AuditOutcome.success,
            context,
            user_id=caller.user_id,
            email=caller.email,
            organization_id=caller.organization_id,
            details={"sessions_terminated": count},
        )
        return Return.ok(LogoutAllResponse(sessions_terminated=count))
