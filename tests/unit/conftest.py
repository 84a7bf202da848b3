import pytest
from unittest.mock import AsyncMock, MagicMock

from src.adapter.repositories.memory_rate_limit_repository import InMemoryRateLimitRepository
from src.adapter.repositories.memory_session_repository import InMemorySessionRepository
from src.app.services.audit_logger import AuditLogger, RequestContext
from src.app.services.auth_services import AuthServices
from src.app.services.password_hasher import PasswordHasher
from src.app.services.rate_limiter import RateLimiter
from src.app.services.session_registry import SessionRegistry
from src.app.services.token_service import TokenService
from src.app.services.two_factor_service import TwoFactorService
from src.domain.entities import RateLimitPolicy


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_id = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=lambda event: event)
    return uow


@pytest.fixture
def token_service():
    return TokenService(
        access_secret="test-access-secret",
        refresh_secret="test-refresh-secret",
        issuer="crm-auth",
        audience="crm-users",
    )


@pytest.fixture
def services(token_service):
    rate_limits = InMemoryRateLimitRepository()
    return AuthServices(
        hasher=PasswordHasher(),
        tokens=token_service,
        sessions=SessionRegistry(InMemorySessionRepository(), session_ttl_seconds=3600),
        two_factor=TwoFactorService(issuer="CRM"),
        login_limiter=RateLimiter(RateLimitPolicy(5, 900, 1800, "login"), rate_limits),
        register_limiter=RateLimiter(RateLimitPolicy(3, 3600, 7200, "register"), rate_limits),
        two_factor_limiter=RateLimiter(RateLimitPolicy(5, 300, 900, "2fa"), rate_limits),
        audit=AuditLogger(),
    )


@pytest.fixture
def context():
    return RequestContext(
        ip_address="203.0.113.7",
        user_agent="pytest-agent",
        request_path="/api/auth/login",
        correlation_id="test-correlation",
    )
