"""
Register Use Case

Creates a CRM user account behind the password policy.
"""

import logging

from libs.result import Error, Result, Return
from src.app.services.audit_logger import RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.errors import rate_limited, store_unavailable
from src.domain.entities import AuditEventType, AuditOutcome, User, UserRole
from src.domain.errors import StoreUnavailableError
from .dtos import RegisterCommand, RegisterResponse, UserInfo

logger = logging.getLogger(__name__)


class RegisterUseCase:
    """
    Business Rules:
    - Rate limited per client address
    - Role must be one of admin/manager/agent
    - Password must pass every strength rule; all violations are reported
    - Email is unique (compared lower-cased)
    - New users join the default organization with onboarding pending
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(
        self, command: RegisterCommand, context: RequestContext
    ) -> Result[RegisterResponse]:
        email = command.email.strip().lower()

        decision = await self.services.register_limiter.check(context.ip_address)
        if not decision.allowed:
            return Return.err(
                rate_limited(
                    "Too many registration attempts. Please try again later.",
                    decision.retry_after,
                )
            )

        try:
            role = UserRole(command.role)
        except ValueError:
            return Return.err(Error("INVALID_ROLE", "Invalid role specified"))

        strength = self.services.hasher.validate_strength(command.password)
        if not strength.is_valid:
            return Return.err(
                Error(
                    "WEAK_PASSWORD",
                    "Password does not meet security requirements",
                    {
                        "errors": [{"field": "password", "message": message} for message in strength.errors],
                        "score": strength.score,
                    },
                )
            )

        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                existing = await store.find_by_email(email)
                if existing is not None:
                    await self.services.audit.record(
                        self.uow,
                        AuditEventType.register_failure,
                        AuditOutcome.failure,
                        context,
                        email=email,
                        details={"reason": "email_already_exists"},
                    )
                    return Return.err(
                        Error("EMAIL_ALREADY_EXISTS", "An account with this email already exists")
                    )

                user = await store.create(
                    User(
                        email=email,
                        password_hash=self.services.hasher.hash(command.password),
                        first_name=command.first_name.strip(),
                        last_name=command.last_name.strip(),
                        role=role,
                        organization_id=self.services.default_organization_id,
                    )
                )
                await store.commit()

                await self.services.audit.record(
                    self.uow,
                    AuditEventType.register_success,
                    AuditOutcome.success,
                    context,
                    user_id=user.id,
                    email=user.email,
                    organization_id=user.organization_id,
                    details={"role": role.value},
                )
                logger.info(f"Registered user {user.id} with role {role.value}")
                return Return.ok(RegisterResponse(user=UserInfo.from_user(user)))
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
