"""
Refresh Token Use Case

Mints a new access token from a valid refresh token without re-login.
"""

import logging
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.session_registry import SessionState
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import AuditEventType, AuditOutcome, DeviceInfo
from src.domain.errors import StoreUnavailableError, TokenExpiredError, TokenInvalidError
from .dtos import RefreshTokenResponse, identity_from_user

logger = logging.getLogger(__name__)


class RefreshTokenUseCase:
    """
    Use case for access token refresh.

    Business Rules:
    - Only a refresh-type token signed with the refresh secret is accepted
    - The new access token keeps the session id; the refresh token is not
      re-issued and its expiry never moves
    - Revoked sessions cannot refresh
    - A session unknown to the registry is re-recorded in fallback mode and
      rejected in strict mode
    - Identity claims are re-read from the user record
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, refresh_token: Optional[str], context: RequestContext
    ) -> Result[RefreshTokenResponse]:
        if not refresh_token:
            return Return.err(Error("TOKEN_MISSING", "Refresh token not provided"))

        try:
            payload = self.services.tokens.verify_refresh(refresh_token)
        except TokenExpiredError:
            return Return.err(Error("TOKEN_EXPIRED", "Refresh token has expired. Please log in again."))
        except TokenInvalidError:
            return Return.err(Error("TOKEN_INVALID", "Invalid refresh token"))

        store = self.services.user_store(self.uow)
        try:
            check = await self.services.sessions.check(payload.user_id, payload.session_id)
            if check.state == SessionState.revoked:
                return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
            if not check.accepted:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            async with self.uow:
                user = await store.find_by_id(payload.user_id)
                if user is None:
                    return Return.err(Error("USER_NOT_FOUND", "User not found"))
                if not user.is_active:
                    return Return.err(Error("ACCOUNT_INACTIVE", "Account is deactivated"))

                refreshed = self.services.tokens.refresh_access(
                    refresh_token, identity_from_user(user, payload.device_id)
                )

                if check.fallback:
                    restored = await self.services.sessions.restore_session(
                        payload.user_id,
                        payload.session_id,
                        DeviceInfo(
                            device_id=payload.device_id,
                            ip_address=context.ip_address,
                            user_agent=context.user_agent,
                        ),
                    )
                    if restored is None:
                        return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
                    logger.warning(f"Re-recorded unknown session {payload.session_id} on refresh")
                else:
                    await self.services.sessions.touch(payload.session_id)

                await self.services.audit.record(
                    self.uow,
                    AuditEventType.token_refresh,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                    details={"session_id": payload.session_id, "re_recorded": check.fallback},
                )

                return Return.ok(
                    RefreshTokenResponse(
                        access_token=refreshed.access_token,
                        expires_in=refreshed.expires_in,
                        session_id=payload.session_id,
                    )
                )
        except TokenExpiredError:
            return Return.err(Error("TOKEN_EXPIRED", "Refresh token has expired. Please log in again."))
        except TokenInvalidError:
            return Return.err(Error("TOKEN_INVALID", "Invalid refresh token"))
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
