import asyncio
import contextlib
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.domain.errors import AuthCoreError, StoreUnavailableError
from .error import ClientError, ServerError
from .utils.client_info import CORRELATION_HEADER
from .utils.cookies import clear_auth_cookies

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, details: dict = None) -> dict:
    body = {"success": False, "message": message, "code": code}
    details = details or {}
    if details.get("errors"):
        body["errors"] = details["errors"]
    if details.get("retry_after") is not None:
        body["retryAfter"] = details["retry_after"]
    if details.get("requires_two_factor"):
        body["requiresTwoFactor"] = True
    return body


async def handle_client_error(request: Request, exc: ClientError):
    error = exc.base_error
    logger.warning(f"Client error: {error.code} on {request.url.path}")
    response = JSONResponse(
        status_code=exc.status_code,
        content=_error_body(error.code, error.message, error.details),
        headers=exc.headers,
    )
    if exc.clear_cookies:
        clear_auth_cookies(response, request.app.state.config)
    return response


async def handle_server_error(request: Request, exc: ServerError):
    logger.error(f"Server error: {exc.base_error.code} - {exc.base_error.message}")
    response = JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "Internal server error"),
    )
    if exc.clear_cookies:
        clear_auth_cookies(response, request.app.state.config)
    return response


async def handle_auth_core_error(request: Request, exc: AuthCoreError):
    if isinstance(exc, StoreUnavailableError):
        logger.error(f"Store unavailable: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=_error_body(
                exc.code,
                "Service temporarily unavailable. Please try again shortly.",
                {"retry_after": exc.retry_after},
            ),
            headers={"Retry-After": str(exc.retry_after)},
        )
    logger.error(f"Unhandled auth core error: {exc.code} - {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("INTERNAL_ERROR", "Internal server error"),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(location) or "body", "message": err.get("msg", "Invalid value")})
    logger.warning(f"Validation error on {request.url.path}: {len(errors)} field(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", "Validation failed", {"errors": errors}),
    )


def _security_headers(production: bool) -> dict:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "X-XSS-Protection": "1; mode=block",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }
    if production:
        headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    return headers


async def _sweep_loop(services, interval_seconds: int):
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            purged = await services.sweep()
            if purged:
                logger.debug(f"Sweep purged {purged} expired entries")
        except StoreUnavailableError as exc:
            logger.warning(f"Sweep skipped, store unavailable: {exc}")
        except Exception:
            logger.exception("Sweep failed; retrying next interval")


def create_app(ApplicationConfig) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(ApplicationConfig.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from src.depends import build_services

    services = build_services(ApplicationConfig)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper = asyncio.create_task(
            _sweep_loop(services, ApplicationConfig.RATE_LIMIT_SWEEP_INTERVAL_SECONDS)
        )
        yield
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper

    app = FastAPI(title="CRM Auth API", version="0.1.0", lifespan=lifespan)
    app.state.config = ApplicationConfig
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    security_headers = _security_headers(ApplicationConfig.ENVIRONMENT == "production")

    @app.middleware("http")
    async def add_request_headers(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        for name, value in security_headers.items():
            response.headers.setdefault(name, value)
        return response

    from src.api.routes import audit, auth, health_check, sessions, two_factor, user

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, prefix=prefix, tags=["Health"])
    app.include_router(auth.router, prefix=prefix, tags=["Authentication"])
    app.include_router(sessions.router, prefix=prefix, tags=["Sessions"])
    app.include_router(two_factor.router, prefix=prefix, tags=["Two-Factor"])
    app.include_router(user.router, prefix=prefix, tags=["User"])
    app.include_router(audit.router, prefix=prefix, tags=["Audit"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(AuthCoreError, handle_auth_core_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    return app
