"""
Complete Onboarding Use Case

Marks the caller's onboarding as done and re-issues the access token so
its claims reflect the change.
"""

from libs.result import Error, Result, Return
from src.app.services.auth_services import AuthServices
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth.dtos import UserInfo, identity_from_user
from src.app.use_cases.errors import store_unavailable
from src.domain.base import CamelModel
from src.domain.entities import TokenPayload
from src.domain.errors import StoreUnavailableError


class OnboardingResponse(CamelModel):
    user: UserInfo
    access_token: str
    expires_in: int


class CompleteOnboardingUseCase:
    """
    Business Rules:
    - Idempotent: completing twice keeps the flag set
    - The new access token keeps the caller's session id
    """

    def __init__(self, uow: UnitOfWork, services: AuthServices):
        self.uow = uow
        self.services = services

    async def execute(self, caller: TokenPayload) -> Result[OnboardingResponse]:
        store = self.services.user_store(self.uow)
        try:
            async with self.uow:
                user = await store.update_by_id(
                    caller.user_id, {"is_onboarding_completed": True}
                )
                if user is None:
                    return Return.err(Error("USER_NOT_FOUND", "User not found"))
                await store.commit()

                access = self.services.tokens.issue_access(
                    identity_from_user(user, caller.device_id), caller.session_id
                )
                return Return.ok(
                    OnboardingResponse(
                        user=UserInfo.from_user(user),
                        access_token=access.access_token,
                        expires_in=access.expires_in,
                    )
                )
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))
