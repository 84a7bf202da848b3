import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import EmailStr, Field

from libs.result import Error
from src.api.error import ServerError, to_http_error
from src.api.utils.client_info import get_request_context
from src.api.utils.cookies import clear_auth_cookies, set_auth_cookies
from src.api.utils.envelope import Envelope
from src.api.utils.rate_limit import rate_limit_headers
from src.api.utils.tokens import access_token_extractor, refresh_token_extractor
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    ActivityResponse,
    AuthenticatedCaller,
    LoginCommand,
    LoginResponse,
    LoginUseCase,
    LogoutAllResponse,
    LogoutAllUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenResponse,
    RefreshTokenUseCase,
    RegisterCommand,
    RegisterResponse,
    RegisterUseCase,
    VerifySessionResponse,
)
from src.app.use_cases.sessions import RecordActivityUseCase
from src.depends import get_config, get_current_caller, get_services, get_unit_of_work
from src.domain.base import CamelModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class RegisterRequest(CamelModel):
    """
    Register HTTP request payload

    Strength rules are checked by the use case so every violation is
    reported at once.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: str = Field("agent", description="admin, manager or agent")


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=Envelope[RegisterResponse],
)
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
):
    """
    User Registration

    Raises:
        - 400 Bad Request: Weak password (itemized), invalid role or input
        - 409 Conflict: Email already exists
        - 429 Too Many Requests: Registration rate limit exceeded
    """
    context = get_request_context(request)
    command = RegisterCommand(
        email=body.email,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        role=body.role,
    )
    result = await RegisterUseCase(uow, services).execute(command, context)

    headers = rate_limit_headers(await services.register_limiter.status(context.ip_address))
    if result.is_err():
        raise to_http_error(result.error, headers=headers)

    response.headers.update(headers)
    return Envelope(message="Account created successfully", data=result.value)


class LoginRequest(CamelModel):
    """
    Login HTTP request payload

    twoFactorCode is required only for accounts with two-factor enabled.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")
    two_factor_code: Optional[str] = Field(None, description="TOTP or backup code")


@router.post("/login", status_code=status.HTTP_200_OK, response_model=Envelope[LoginResponse])
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
    config=Depends(get_config),
):
    """
    User Login

    Authenticates the user, opens a session and sets the auth cookies.
    Tokens are also returned in the body for non-browser clients.

    Raises:
        - 401 Unauthorized: Invalid credentials, or two-factor code required/invalid
        - 403 Forbidden: Account deactivated
        - 429 Too Many Requests: Login rate limit exceeded (Retry-After)
        - 503 Service Unavailable: User store unavailable
    """
    context = get_request_context(request)
    command = LoginCommand(
        email=body.email, password=body.password, two_factor_code=body.two_factor_code
    )
    result = await LoginUseCase(uow, services).execute(command, context)

    headers = rate_limit_headers(await services.login_limiter.status(context.ip_address))
    if result.is_err():
        raise to_http_error(result.error, headers=headers)

    data = result.value
    response.headers.update(headers)
    set_auth_cookies(response, config, data.access_token, data.refresh_token)
    return Envelope(message="Login successful", data=data)


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=Envelope[LogoutResponse])
async def logout(
    request: Request,
    response: Response,
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
    config=Depends(get_config),
):
    """
    Logout

    Revokes the current session when a token identifies it. Cookies are
    cleared on every outcome, including unexpected failures.
    """
    try:
        result = await LogoutUseCase(uow, services).execute(
            access_token_extractor.extract(request),
            refresh_token_extractor.extract(request),
            get_request_context(request),
        )
    except Exception as exc:
        logger.exception("Logout failed")
        raise ServerError(Error("LOGOUT_FAILED", str(exc)), clear_cookies=True) from exc

    clear_auth_cookies(response, config)
    return Envelope(message="Logged out successfully", data=result.value)


@router.post(
    "/logout-all", status_code=status.HTTP_200_OK, response_model=Envelope[LogoutAllResponse]
)
async def logout_all(
    request: Request,
    response: Response,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
    config=Depends(get_config),
):
    """
    Logout From All Devices

    Revokes every session of the caller and reports how many were terminated.

    Raises:
        - 401 Unauthorized: Missing, expired or invalid access token
    """
    result = await LogoutAllUseCase(uow, services).execute(
        caller.payload, get_request_context(request)
    )
    if result.is_err():
        raise to_http_error(result.error, clear_cookies=True)

    clear_auth_cookies(response, config)
    count = result.value.sessions_terminated
    return Envelope(message=f"Logged out from {count} session(s)", data=result.value)


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = Field(None, description="Refresh token; falls back to the cookie")


@router.post(
    "/refresh", status_code=status.HTTP_200_OK, response_model=Envelope[RefreshTokenResponse]
)
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
    config=Depends(get_config),
):
    """
    Refresh Access Token

    Issues a new access token for the refresh token's session. The refresh
    token itself is not rotated.

    Raises:
        - 401 Unauthorized: Missing/expired/invalid refresh token or revoked
          session; both auth cookies are cleared
    """
    token = (body.refresh_token if body else None) or refresh_token_extractor.extract(request)
    result = await RefreshTokenUseCase(uow, services).execute(token, get_request_context(request))

    if result.is_err():
        raise to_http_error(
            result.error,
            overrides={"USER_NOT_FOUND": 401, "SESSION_NOT_FOUND": 401},
            clear_cookies=result.error.code != "STORE_UNAVAILABLE",
        )

    set_auth_cookies(response, config, access_token=result.value.access_token)
    return Envelope(message="Token refreshed successfully", data=result.value)


@router.get(
    "/verify", status_code=status.HTTP_200_OK, response_model=Envelope[VerifySessionResponse]
)
async def verify(caller: AuthenticatedCaller = Depends(get_current_caller)):
    """
    Session Check

    Returns the caller's identity and session metadata.

    Raises:
        - 401 Unauthorized: Token missing/expired/invalid, user gone, session revoked
        - 403 Forbidden: Account deactivated
    """
    return Envelope(message="Session is valid", data=caller.response)


@router.post(
    "/activity", status_code=status.HTTP_200_OK, response_model=Envelope[ActivityResponse]
)
async def activity(
    request: Request,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    services: AuthServices = Depends(get_services),
):
    """
    Activity Ping

    Updates the session's last activity timestamp.
    """
    context = get_request_context(request)
    result = await RecordActivityUseCase(services).execute(
        caller.payload, context.ip_address, context.user_agent
    )
    if result.is_err():
        raise to_http_error(result.error)
    return Envelope(message="Activity recorded", data=result.value)
