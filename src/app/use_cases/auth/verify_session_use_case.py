"""
Verify Session Use Case

Turns a presented access token into a confirmed identity: signature and
expiry, a live active user, and the session registry cross-check.
"""

import logging
from datetime import UTC, datetime
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.auth_services import AuthServices
from src.app.services.session_registry import SessionState
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import TokenPayload, User
from src.domain.errors import StoreUnavailableError, TokenExpiredError, TokenInvalidError
from .dtos import SessionStatus, UserInfo, VerifySessionResponse

logger = logging.getLogger(__name__)


class AuthenticatedCaller:
    """Verified token claims plus the user they belong to"""

    def __init__(self, payload: TokenPayload, user: User, response: VerifySessionResponse):
        self.payload = payload
        self.user = user
        self.response = response

    @property
    def user_id(self) -> str:
        return self.payload.user_id

    @property
    def session_id(self) -> str:
        return self.payload.session_id


class VerifySessionUseCase:
    """
    Business Rules:
    - Expired and invalid tokens are reported separately so the client
      knows whether a refresh is worth trying
    - The user must still exist and be active
    - Revoked sessions are rejected; unknown sessions follow the registry
      policy (accepted with a warning unless strict mode is on)
    - Every verified request on a live session moves its last activity
      forward, so the idle sweep only reaches sessions nobody is using
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(self, access_token: Optional[str]) -> Result[AuthenticatedCaller]:
        if not access_token:
            return Return.err(Error("TOKEN_MISSING", "No authentication token provided"))

        try:
            payload = self.services.tokens.verify_access(access_token)
        except TokenExpiredError:
            return Return.err(Error("TOKEN_EXPIRED", "Access token has expired"))
        except TokenInvalidError:
            return Return.err(Error("TOKEN_INVALID", "Invalid authentication token"))

        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                user = await store.find_by_id(payload.user_id)
                if user is None:
                    return Return.err(Error("USER_NOT_FOUND", "User not found"))
                if not user.is_active:
                    return Return.err(Error("ACCOUNT_INACTIVE", "Account is deactivated"))
                user_info = UserInfo.from_user(user)

            check = await self.services.sessions.check(payload.user_id, payload.session_id)
            if check.state == SessionState.revoked:
                return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
            if not check.accepted:
                return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

            session = check.session
            if check.state == SessionState.live:
                await self.services.sessions.touch(payload.session_id)
                session = await self.services.sessions.get(payload.session_id) or session

            active_sessions = len(await self.services.sessions.list_sessions(payload.user_id))
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))

        response = VerifySessionResponse(
            user=user_info,
            session=SessionStatus(
                session_id=payload.session_id,
                device_id=payload.device_id,
                last_activity_at=session.last_activity_at if session else None,
                active_sessions=active_sessions,
                unverified=check.fallback,
            ),
            expires_at=datetime.fromtimestamp(payload.exp, tz=UTC),
        )
        return Return.ok(AuthenticatedCaller(payload, user, response))
