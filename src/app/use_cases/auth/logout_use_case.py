"""
Logout Use Case

Best-effort session revocation. The caller clears cookies whatever happens
here; token problems only cost audit attribution.
"""

import logging
from typing import Optional

from libs.result import Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEventType, AuditOutcome, TokenPayload
from src.domain.errors import StoreUnavailableError, TokenExpiredError, TokenInvalidError
from .dtos import LogoutResponse

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Business Rules:
    - The access token is tried first, then the refresh token; expired
      tokens still identify the session
    - Logout never fails: unverifiable tokens or a store outage are logged
      and the result is still ok
    - Every logout is audited; without a token the entry is unattributed
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    def _identify(
        self, access_token: Optional[str], refresh_token: Optional[str]
    ) -> Optional[TokenPayload]:
        attempts = (
            (self.services.tokens.verify_access, access_token),
            (self.services.tokens.verify_refresh, refresh_token),
        )
        for verify, token in attempts:
            if not token:
                continue
            try:
                return verify(token, allow_expired=True)
            except (TokenExpiredError, TokenInvalidError):
                continue
        return None

    async def execute(
        self,
        access_token: Optional[str],
        refresh_token: Optional[str],
        context: RequestContext,
    ) -> Result[LogoutResponse]:
        payload = self._identify(access_token, refresh_token)
        if payload is None:
            logger.info("Logout without a verifiable token; clearing cookies only")
            await self.services.audit.record(
                self.uow,
                AuditEventType.logout,
                AuditOutcome.success,
                context,
                details={"reason": "no_verifiable_token"},
            )
            return Return.ok(LogoutResponse())

        try:
            await self.services.sessions.revoke(payload.session_id)
        except StoreUnavailableError as exc:
            logger.warning(f"Session revoke failed during logout: {exc}")

        await self.services.audit.record(
            self.uow,
            AuditEventType.logout,
            AuditOutcome.success,
            context,
            user_id=payload.user_id,
            email=payload.email,
            organization_id=payload.organization_id,
            details={"session_id": payload.session_id},
        )
        return Return.ok(LogoutResponse(session_id=payload.session_id))
