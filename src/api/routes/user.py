from fastapi import APIRouter, Depends, Response, status

from src.api.error import to_http_error
from src.api.utils.cookies import set_auth_cookies
from src.api.utils.envelope import Envelope
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthenticatedCaller
from src.app.use_cases.users import CompleteOnboardingUseCase, OnboardingResponse
from src.depends import get_config, get_current_caller, get_services, get_unit_of_work

router = APIRouter(prefix="/users", tags=["User"])


@router.post(
    "/complete-onboarding",
    status_code=status.HTTP_200_OK,
    response_model=Envelope[OnboardingResponse],
)
async def complete_onboarding(
    response: Response,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
    config=Depends(get_config),
):
    """
    Complete Onboarding

    Marks onboarding as done and re-issues the access token so its claims
    reflect the new state. The session is unchanged.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 404 Not Found: User no longer exists
    """
    result = await CompleteOnboardingUseCase(uow, services).execute(caller.payload)
    if result.is_err():
        raise to_http_error(result.error)

    set_auth_cookies(response, config, access_token=result.value.access_token)
    return Envelope(message="Onboarding completed", data=result.value)
