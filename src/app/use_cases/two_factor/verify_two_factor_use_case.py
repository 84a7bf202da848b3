"""
Verify Two-Factor Use Case

Checks a TOTP or backup code for the caller. With action=setup a
successful TOTP check completes enrollment.
"""

from datetime import UTC, datetime
from enum import Enum

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import rate_limited, store_unavailable
from src.domain.entities import (
    AuditEventType,
    AuditOutcome,
    TokenPayload,
    TwoFactorEnabled,
    TwoFactorPendingSetup,
    TwoFactorStatus,
)
from src.domain.errors import StoreUnavailableError
from .dtos import TwoFactorVerifyResponse

BACKUP_CODE_WARNING_THRESHOLD = 2


class TwoFactorAction(str, Enum):
    setup = "setup"
    verify = "verify"


class VerifyTwoFactorUseCase:
    """
    Business Rules:
    - Rate limited per user
    - setup: requires pending_setup and a TOTP code (backup codes are not
      accepted before enrollment completes); moves status to enabled
    - verify: requires enabled; a matched backup code is removed and a
      warning is returned once two or fewer remain
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self,
        caller: TokenPayload,
        action: TwoFactorAction,
        code: str,
        context: RequestContext,
    ) -> Result[TwoFactorVerifyResponse]:
        limiter = self.services.two_factor_limiter
        decision = await limiter.check(caller.user_id)
        if not decision.allowed:
            return Return.err(
                rate_limited(
                    "Too many verification attempts. Please try again later.",
                    decision.retry_after,
                )
            )

        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                user = await store.find_by_id(caller.user_id)
                if user is None:
                    return Return.err(Error("USER_NOT_FOUND", "User not found"))
                config = store.read_two_factor(user)

                if action == TwoFactorAction.setup:
                    if isinstance(config, TwoFactorEnabled):
                        return Return.err(
                            Error(
                                "TWO_FACTOR_ALREADY_ENABLED",
                                "Two-factor authentication is already enabled",
                            )
                        )
                    if not isinstance(config, TwoFactorPendingSetup):
                        return Return.err(
                            Error(
                                "TWO_FACTOR_NOT_CONFIGURED",
                                "Two-factor setup has not been started",
                            )
                        )
                    validation = self.services.two_factor.verify_token(config.secret, code, [])
                else:
                    if not isinstance(config, TwoFactorEnabled):
                        return Return.err(
                            Error(
                                "TWO_FACTOR_NOT_CONFIGURED",
                                "Two-factor authentication is not enabled",
                            )
                        )
                    validation = self.services.two_factor.verify_token(
                        config.secret, code, config.backup_codes
                    )

                if not validation.is_valid:
                    await self.services.audit.record(
                        self.uow,
                        AuditEventType.two_factor_failure,
                        AuditOutcome.failure,
                        context,
                        user_id=user.id,
                        email=user.email,
                        organization_id=user.organization_id,
                        details={"action": action.value},
                    )
                    return Return.err(
                        Error("TWO_FACTOR_INVALID_CODE", "Invalid verification code")
                    )

                now = datetime.now(UTC)
                warning = None
                if action == TwoFactorAction.setup:
                    updated = TwoFactorEnabled(
                        method=config.method,
                        secret=config.secret,
                        backup_codes=config.backup_codes,
                        setup_completed_at=now,
                        last_used_at=now,
                    )
                    event_type = AuditEventType.two_factor_enabled
                else:
                    backup_codes = config.backup_codes
                    if validation.used_backup_code:
                        backup_codes = self.services.two_factor.remove_used_backup_code(
                            backup_codes, validation.used_backup_code
                        )
                        if len(backup_codes) <= BACKUP_CODE_WARNING_THRESHOLD:
                            warning = (
                                f"Only {len(backup_codes)} backup code(s) remaining. "
                                "Please generate new backup codes."
                            )
                    updated = config.model_copy(
                        update={"backup_codes": backup_codes, "last_used_at": now}
                    )
                    event_type = AuditEventType.security_event

                await store.write_two_factor(user, updated)
                await store.commit()
                await limiter.reset(caller.user_id)

                await self.services.audit.record(
                    self.uow,
                    event_type,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                    details={
                        "action": action.value,
                        "used_backup_code": validation.used_backup_code is not None,
                    },
                )

                return Return.ok(
                    TwoFactorVerifyResponse(
                        status=TwoFactorStatus.enabled.value,
                        used_backup_code=validation.used_backup_code is not None,
                        backup_codes_remaining=len(updated.backup_codes),
                        warning=warning,
                    )
                )
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
