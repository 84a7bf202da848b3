"""
Auth Services

Process-wide collaborators shared by every use case. Built once at startup
(see src.depends.build_services) and handed to use cases next to the
request's unit of work.
"""

from dataclasses import dataclass

from src.app.services.audit_logger import AuditLogger
from src.app.services.password_hasher import PasswordHasher
from src.app.services.rate_limiter import RateLimiter
from src.app.services.session_registry import SessionRegistry
from src.app.services.token_service import TokenService
from src.app.services.two_factor_service import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.user_store import UserStore


@dataclass
class AuthServices:
    hasher: PasswordHasher
    tokens: TokenService
    sessions: SessionRegistry
    two_factor: TwoFactorService
    login_limiter: RateLimiter
    register_limiter: RateLimiter
    two_factor_limiter: RateLimiter
    audit: AuditLogger
    store_timeout_seconds: float = 5.0
    default_organization_id: str = "default-org"

    def user_store(self, uow: UnitOfWork) -> UserStore:
        return UserStore(uow, timeout_seconds=self.store_timeout_seconds)

    async def sweep(self) -> int:
        """Purge expired rate-limit windows/blocks and stale sessions"""
        purged = 0
        for limiter in (self.login_limiter, self.register_limiter, self.two_factor_limiter):
            purged += await limiter.purge_expired()
        purged += await self.sessions.purge_idle()
        return purged
