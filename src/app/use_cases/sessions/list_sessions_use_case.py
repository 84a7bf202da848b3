from libs.result import Result, Return
from src.app.services.auth_services import AuthServices
from src.app.use_cases.auth.dtos import SessionListResponse, SessionView
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import TokenPayload
from src.domain.errors import StoreUnavailableError


class ListSessionsUseCase:
    """Live sessions of the caller, most recently active first"""

    def __init__(self, services: AuthServices):
        self.services = services

    async def execute(self, caller: TokenPayload) -> Result[SessionListResponse]:
        try:
            sessions = await self.services.sessions.list_sessions(caller.user_id)
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))

        views = [SessionView.from_session(s, caller.session_id) for s in sessions]
        return Return.ok(SessionListResponse(sessions=views, total=len(views)))
