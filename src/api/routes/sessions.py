from fastapi import APIRouter, Depends, Request, status

from src.api.error import to_http_error
from src.api.utils.client_info import get_request_context
from src.api.utils.envelope import Envelope
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import AuthenticatedCaller, RevokeSessionResponse, SessionListResponse
from src.app.use_cases.sessions import ListSessionsUseCase, RevokeSessionUseCase
from src.depends import get_current_caller, get_services, get_unit_of_work

router = APIRouter(prefix="/auth/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=Envelope[SessionListResponse])
async def list_sessions(
    caller: AuthenticatedCaller = Depends(get_current_caller),
    services: AuthServices = Depends(get_services),
):
    """
    List Active Sessions

    Returns the caller's sessions, most recently active first. The session
    behind the presented token is flagged as current.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 503 Service Unavailable: Session store unavailable
    """
    result = await ListSessionsUseCase(services).execute(caller.payload)
    if result.is_err():
        raise to_http_error(result.error)
    return Envelope(message="Sessions retrieved", data=result.value)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=Envelope[RevokeSessionResponse],
)
async def revoke_session(
    session_id: str,
    request: Request,
    caller: AuthenticatedCaller = Depends(get_current_caller),
    uow: UnitOfWork = Depends(get_unit_of_work),
    services: AuthServices = Depends(get_services),
):
    """
    Revoke Specific Session

    Ends one of the caller's own sessions. Sessions of other users are
    reported as not found.

    Raises:
        - 401 Unauthorized: Invalid or expired access token
        - 404 Not Found: Session does not exist or belongs to another user
    """
    result = await RevokeSessionUseCase(uow, services).execute(
        caller.payload, session_id, get_request_context(request)
    )
    if result.is_err():
        raise to_http_error(result.error)
    return Envelope(message="Session revoked", data=result.value)
