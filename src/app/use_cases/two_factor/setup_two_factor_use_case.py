"""
Setup Two-Factor Use Case

Starts TOTP enrollment. The account stays in pending setup until a code
generated from the new secret is verified.
"""

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import (
    AuditEventType,
    AuditOutcome,
    TokenPayload,
    TwoFactorEnabled,
    TwoFactorPendingSetup,
    TwoFactorStatus,
)
from src.domain.errors import StoreUnavailableError
from .dtos import TwoFactorSetupResponse


class SetupTwoFactorUseCase:
    """
    Business Rules:
    - Not allowed while two-factor is enabled (disable first)
    - Re-running setup while pending replaces the secret and backup codes
    - Status after setup is pending_setup, never enabled
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, caller: TokenPayload, context: RequestContext
    ) -> Result[TwoFactorSetupResponse]:
        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                user = await store.find_by_id(caller.user_id)
                if user is None:
                    return Return.err(Error("USER_NOT_FOUND", "User not found"))

                if isinstance(store.read_two_factor(user), TwoFactorEnabled):
                    return Return.err(
                        Error(
                            "TWO_FACTOR_ALREADY_ENABLED",
                            "Two-factor authentication is already enabled",
                        )
                    )

                setup = self.services.two_factor.generate_setup(user.email, str(user.id))
                await store.write_two_factor(
                    user,
                    TwoFactorPendingSetup(secret=setup.secret, backup_codes=setup.backup_codes),
                )
                await store.commit()

                await self.services.audit.record(
                    self.uow,
                    AuditEventType.two_factor_setup,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                )

                return Return.ok(
                    TwoFactorSetupResponse(
                        qr_code_url=setup.qr_code_url,
                        manual_entry_key=setup.manual_entry_key,
                        backup_codes=setup.backup_codes,
                        status=TwoFactorStatus.pending_setup.value,
                    )
                )
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
