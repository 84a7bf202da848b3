"""
Login Use Case

Authenticates a user and opens a tracked session.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Optional

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.session_registry import device_fingerprint
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import INVALID_CREDENTIALS, rate_limited, store_unavailable
from src.domain.entities import (
    AuditEventType,
    AuditOutcome,
    DeviceInfo,
    TwoFactorEnabled,
    User,
)
from src.domain.errors import StoreUnavailableError
from .dtos import LoginCommand, LoginResponse, SessionInfo, UserInfo, identity_from_user

logger = logging.getLogger(__name__)

BACKUP_CODE_WARNING_THRESHOLD = 2


class LoginUseCase:
    """
    Use case for user login and token issuance.

    Business Rules:
    - Rate limited per client address before any credential work
    - Unknown email and wrong password fail identically, and both pay
      the same bcrypt cost
    - Inactive accounts are rejected only after the password checks out
    - Users with two-factor enabled must present a TOTP or backup code;
      a backup code is consumed on use
    - Order on success: tokens issued, session recorded, limiter reset,
      success audited
    - Every failure is audited with a reason; the client only sees the
      generic message
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, command: LoginCommand, context: RequestContext
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            command: Email, password and optional two-factor code
            context: Client address, user agent, path and correlation id

        Returns:
            Result with LoginResponse containing user, tokens and session, or Error
        """
        email = command.email.strip().lower()

        decision = await self.services.login_limiter.check(context.ip_address)
        if not decision.allowed:
            await self._audit_failure(email, context, "rate_limited")
            return Return.err(
                rate_limited(
                    "Too many login attempts. Please try again later.",
                    decision.retry_after,
                )
            )

        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                user = await store.find_by_email(email)

                if user is None:
                    self.services.hasher.verify_dummy(command.password)
                    return await self._fail(email, context, "user_not_found")

                if not self.services.hasher.verify(command.password, user.password_hash):
                    return await self._fail(email, context, "invalid_password", user)

                if not user.is_active:
                    return await self._fail(
                        email,
                        context,
                        "account_inactive",
                        user,
                        Error("ACCOUNT_INACTIVE", "Account is deactivated. Please contact support."),
                    )

                warning = None
                backup_codes_remaining = None
                two_factor = store.read_two_factor(user)
                if isinstance(two_factor, TwoFactorEnabled):
                    if not command.two_factor_code:
                        return await self._fail(
                            email,
                            context,
                            "two_factor_required",
                            user,
                            Error(
                                "TWO_FACTOR_REQUIRED",
                                "Two-factor authentication code required",
                                {"requires_two_factor": True},
                            ),
                        )

                    validation = self.services.two_factor.verify_token(
                        two_factor.secret, command.two_factor_code, two_factor.backup_codes
                    )
                    if not validation.is_valid:
                        return await self._fail(
                            email,
                            context,
                            "two_factor_invalid_code",
                            user,
                            Error("TWO_FACTOR_INVALID_CODE", "Invalid two-factor authentication code"),
                        )

                    updates = {"last_used_at": datetime.now(UTC)}
                    if validation.used_backup_code:
                        remaining = self.services.two_factor.remove_used_backup_code(
                            two_factor.backup_codes, validation.used_backup_code
                        )
                        updates["backup_codes"] = remaining
                        backup_codes_remaining = len(remaining)
                        if backup_codes_remaining <= BACKUP_CODE_WARNING_THRESHOLD:
                            warning = (
                                f"Only {backup_codes_remaining} backup code(s) remaining. "
                                "Please generate new backup codes."
                            )
                    await store.write_two_factor(user, two_factor.model_copy(update=updates))

                user = await store.update_by_id(user.id, {"last_login_at": datetime.utcnow()})
                await store.commit()

                device = DeviceInfo(
                    device_id=device_fingerprint(context.user_agent, context.ip_address),
                    ip_address=context.ip_address,
                    user_agent=context.user_agent,
                )
                tokens = self.services.tokens.issue_tokens(
                    identity_from_user(user, device.device_id)
                )
                await self.services.sessions.record_session(
                    str(user.id), tokens.session_id, device
                )
                active_sessions = len(await self.services.sessions.list_sessions(str(user.id)))

                await self.services.login_limiter.reset(context.ip_address)

                await self.services.audit.record(
                    self.uow,
                    AuditEventType.login_success,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                    details={
                        "session_id": tokens.session_id,
                        "device_id": device.device_id,
                        "used_backup_code": backup_codes_remaining is not None,
                    },
                )

                return Return.ok(
                    LoginResponse(
                        user=UserInfo.from_user(user),
                        access_token=tokens.access_token,
                        refresh_token=tokens.refresh_token,
                        expires_in=tokens.expires_in,
                        session=SessionInfo(
                            session_id=tokens.session_id,
                            device_id=device.device_id,
                            expires_at=datetime.now(UTC)
                            + timedelta(seconds=tokens.refresh_expires_in),
                            active_sessions=active_sessions,
                        ),
                        backup_codes_remaining=backup_codes_remaining,
                        warning=warning,
                    )
                )
        except StoreUnavailableError as exc:
            logger.error(f"Login aborted, store unavailable: {exc}")
            return Return.err(store_unavailable(exc))

    async def _fail(
        self,
        email: str,
        context: RequestContext,
        reason: str,
        user: Optional[User] = None,
        error: Error = INVALID_CREDENTIALS,
    ) -> Result[LoginResponse]:
        await self._audit_failure(email, context, reason, user)
        return Return.err(error)

    async def _audit_failure(
        self,
        email: str,
        context: RequestContext,
        reason: str,
        user: Optional[User] = None,
    ):
        await self.services.audit.record(
            self.uow,
            AuditEventType.login_failure,
            AuditOutcome.failure,
            context,
            user_id=user.id if user else None,
            email=email,
            organization_id=user.organization_id if user else None,
            details={"reason": reason},
        )
