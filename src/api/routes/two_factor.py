from fastapi import APIRouter, Depends, Request, status
from pydantic import Field

from src.api.error import to_http_error
from src.api.utils.client_info import get_request_context
from src.api.utils.envelope import Envelope
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthenticatedCaller
from src.app.use_cases.two_factor import (
    DisableTwoFactorUseCase,
    SetupTwoFactorUseCase,
    TwoFactorAction,
    TwoFactorDisableResponse,
    TwoFactorSetupResponse,
    TwoFactorVerifyResponse,
    VerifyTwoFactorUseCase,
)
from src.depends import get_current_caller, get_services, get_unit_of_work
from src.domain.base import CamelModel

router = APIRouter(prefix="/auth/2fa", tags=["Two-Factor"])

# Outside of login a wrong code is a bad request, not an authentication failure
CODE_OVERRIDES = {"TWO_FACTOR_INVALID_CODE": status.HTTP_400_BAD_REQUEST}


@router.post(
    "/setup", status_code=status.HTTP_200_OK, response_model=Envelope[TwoFactorSetupResponse]
)
async def setup_two_factor(
    request: Request,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
):
    """
    Start Two-Factor Enrollment

    Generates a secret, QR code and backup codes. The account stays in
    pending setup until a TOTP code is verified.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 409 Conflict: Two-factor already enabled
    """
    result = await SetupTwoFactorUseCase(uow, services).execute(
        caller.payload, get_request_context(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return Envelope(
        message="Scan the QR code and verify a code to enable two-factor authentication",
        data=result.value,
    )


class VerifyTwoFactorRequest(CamelModel):
    action: TwoFactorAction = Field(..., description="setup or verify")
    code: str = Field(..., min_length=1, max_length=32, description="TOTP or backup code")


@router.post(
    "/verify", status_code=status.HTTP_200_OK, response_model=Envelope[TwoFactorVerifyResponse]
)
async def verify_two_factor(
    body: VerifyTwoFactorRequest,
    request: Request,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
):
    """
    Verify Two-Factor Code

    action=setup completes enrollment with a TOTP code. action=verify checks
    a TOTP or backup code for an enabled account.

    Raises:
        - 400 Bad Request: Invalid code, or two-factor not in the required state
        - 429 Too Many Requests: Too many attempts
    """
    result = await VerifyTwoFactorUseCase(uow, services).execute(
        caller.payload, body.action, body.code, get_request_context(request)
    )
    if result.is_err():
        raise to_http_error(result.error, overrides=CODE_OVERRIDES)

    message = (
        "Two-factor authentication enabled"
        if body.action == TwoFactorAction.setup
        else "Code verified"
    )
    return Envelope(message=message, data=result.value)


class DisableTwoFactorRequest(CamelModel):
    code: str = Field(..., min_length=1, max_length=32, description="TOTP or backup code")


@router.post(
    "/disable", status_code=status.HTTP_200_OK, response_model=Envelope[TwoFactorDisableResponse]
)
async def disable_two_factor(
    body: DisableTwoFactorRequest,
    request: Request,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
):
    """
    Disable Two-Factor Authentication

    Raises:
        - 400 Bad Request: Invalid code or two-factor not configured
        - 429 Too Many Requests: Too many attempts
    """
    result = await DisableTwoFactorUseCase(uow, services).execute(
        caller.payload, body.code, get_request_context(request)
    )
    if result.is_err():
        raise to_http_error(result.error, overrides=CODE_OVERRIDES)
    return Envelope(message="Two-factor authentication disabled", data=result.value)
