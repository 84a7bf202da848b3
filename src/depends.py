import logging

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.memory_rate_limit_repository import InMemoryRateLimitRepository
from src.adapter.repositories.memory_session_repository import InMemorySessionRepository
from src.adapter.repositories.redis_rate_limit_repository import RedisRateLimitRepository
from src.adapter.repositories.redis_session_repository import RedisSessionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import to_http_error
from src.api.utils.tokens import access_token_extractor
from src.app.services.audit_logger import AuditLogger
from src.app.services.auth_services import AuthServices
from src.app.services.password_hasher import PasswordHasher
from src.app.services.rate_limiter import RateLimiter
from src.app.services.session_registry import SessionRegistry
from src.app.services.token_service import TokenService
from src.app.services.two_factor_service import TwoFactorService
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthenticatedCaller, VerifySessionUseCase
from src.domain.entities import RateLimitPolicy

logger = logging.getLogger(__name__)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def build_services(config) -> AuthServices:
    """
    Wire the process-wide auth collaborators from config.

    CACHE_BACKEND=redis externalizes sessions and rate limits so several
    workers share them; the default keeps them in process memory.
    """
    if config.CACHE_BACKEND == "redis":
        client = aioredis.from_url(
            config.REDIS_URL,
            decode_responses=True,
            socket_timeout=config.STORE_TIMEOUT_SECONDS,
            socket_connect_timeout=config.STORE_TIMEOUT_SECONDS,
        )
        session_repository = RedisSessionRepository(client)
        rate_limit_repository = RedisRateLimitRepository(client)
        logger.info("Using Redis session and rate-limit stores")
    else:
        session_repository = InMemorySessionRepository()
        rate_limit_repository = InMemoryRateLimitRepository()
        logger.info("Using in-memory session and rate-limit stores")

    def limiter(name: str, prefix: str) -> RateLimiter:
        policy = RateLimitPolicy(
            max_attempts=getattr(config, f"{prefix}_RATE_LIMIT_MAX_ATTEMPTS"),
            window_seconds=getattr(config, f"{prefix}_RATE_LIMIT_WINDOW_SECONDS"),
            block_seconds=getattr(config, f"{prefix}_RATE_LIMIT_BLOCK_SECONDS"),
            name=name,
        )
        return RateLimiter(policy, rate_limit_repository)

    return AuthServices(
        hasher=PasswordHasher(
            rounds=config.BCRYPT_ROUNDS,
            min_length=config.PASSWORD_MIN_LENGTH,
            require_special=config.PASSWORD_REQUIRE_SPECIAL,
        ),
        tokens=TokenService(
            access_secret=config.JWT_ACCESS_SECRET,
            refresh_secret=config.JWT_REFRESH_SECRET,
            issuer=config.JWT_ISSUER,
            audience=config.JWT_AUDIENCE,
            access_ttl_seconds=config.ACCESS_TOKEN_TTL_SECONDS,
            refresh_ttl_seconds=config.REFRESH_TOKEN_TTL_SECONDS,
            algorithm=config.JWT_ALGORITHM,
        ),
        sessions=SessionRegistry(
            session_repository,
            session_ttl_seconds=config.REFRESH_TOKEN_TTL_SECONDS,
            strict_mode=config.SESSION_STRICT_MODE,
            idle_timeout_seconds=config.SESSION_IDLE_TIMEOUT_SECONDS,
        ),
        two_factor=TwoFactorService(
            issuer=config.TWO_FACTOR_ISSUER,
            backup_code_count=config.TWO_FACTOR_BACKUP_CODE_COUNT,
            valid_window=config.TWO_FACTOR_VALID_WINDOW,
        ),
        login_limiter=limiter("login", "LOGIN"),
        register_limiter=limiter("register", "REGISTER"),
        two_factor_limiter=limiter("2fa", "TWO_FACTOR"),
        audit=AuditLogger(),
        store_timeout_seconds=config.STORE_TIMEOUT_SECONDS,
        default_organization_id=config.DEFAULT_ORGANIZATION_ID,
    )


def get_services(request: Request) -> AuthServices:
    return request.app.state.services


def get_config(request: Request):
    return request.app.state.config


async def get_current_caller(
    request: Request,
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
) -> AuthenticatedCaller:
    """
    Dependency resolving the access token (Bearer header, then cookie) into
    a verified caller.

    Raises:
        ClientError: 401 for missing/expired/invalid tokens, unknown users
        and revoked sessions; 403 for inactive accounts; 503 when a store
        is unavailable
    """
    token = access_token_extractor.extract(request)
    result = await VerifySessionUseCase(uow, services).execute(token)
    if result.is_err():
        raise to_http_error(
            result.error,
            overrides={"USER_NOT_FOUND": 401, "SESSION_NOT_FOUND": 401},
        )
    return result.value

