"""
Disable Two-Factor Use Case
"""

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import rate_limited, store_unavailable
from src.domain.entities import (
    AuditEventType,
    AuditOutcome,
    TokenPayload,
    TwoFactorDisabled,
    TwoFactorPendingSetup,
    TwoFactorStatus,
)
from src.domain.errors import StoreUnavailableError
from .dtos import TwoFactorDisableResponse


class DisableTwoFactorUseCase:
    """
    Business Rules:
    - Requires a valid TOTP or backup code for the current secret
    - A pending setup can be abandoned with a TOTP code
    - The secret and backup codes are discarded
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, caller: TokenPayload, code: str, context: RequestContext
    ) -> Result[TwoFactorDisableResponse]:
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
                if isinstance(config, TwoFactorDisabled):
                    return Return.err(
                        Error(
                            "TWO_FACTOR_NOT_CONFIGURED",
                            "Two-factor authentication is not enabled",
                        )
                    )

                backup_codes = [] if isinstance(config, TwoFactorPendingSetup) else config.backup_codes
                validation = self.services.two_factor.verify_token(config.secret, code, backup_codes)
                if not validation.is_valid:
                    await self.services.audit.record(
                        self.uow,
                        AuditEventType.two_factor_failure,
                        AuditOutcome.failure,
                        context,
                        user_id=user.id,
                        email=user.email,
                        organization_id=user.organization_id,
                        details={"action": "disable"},
                    )
                    return Return.err(
                        Error("TWO_FACTOR_INVALID_CODE", "Invalid verification code")
                    )

                await store.write_two_factor(user, TwoFactorDisabled())
                await store.commit()
                await limiter.reset(caller.user_id)

                await self.services.audit.record(
                    self.uow,
                    AuditEventType.two_factor_disabled,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                )
                return Return.ok(TwoFactorDisableResponse(status=TwoFactorStatus.disabled.value))
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
