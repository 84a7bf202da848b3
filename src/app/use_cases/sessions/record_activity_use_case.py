"""
Record Activity Use Case

Moves the caller's session last-activity timestamp forward.
"""

import logging
from datetime import UTC, datetime

from libs.result import Error, Result, Return
from src.app.services.auth_services import AuthServices
from src.app.use_cases.auth.dtos import ActivityResponse
from src.app.use_cases.errors import store_unavailable
from src.domain.entities import DeviceInfo, TokenPayload
from src.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class RecordActivityUseCase:
    """
    Business Rules:
    - Called after the session check passed, so a missing entry here means
      the registry lost it and the fallback policy let the caller in;
      the session is re-recorded so later checks see it again
    - A session revoked since the check is never re-recorded
    """

    def __init__(self, services: AuthServices):
        self.services = services

    async def execute(self, caller: TokenPayload, ip_address: str, user_agent: str) -> Result[ActivityResponse]:
        try:
            touched = await self.services.sessions.touch(caller.session_id)
            if not touched:
                logger.warning(f"Activity for unknown session {caller.session_id}; re-recording")
                restored = await self.services.sessions.restore_session(
                    caller.user_id,
                    caller.session_id,
                    DeviceInfo(
                        device_id=caller.device_id,
                        ip_address=ip_address,
                        user_agent=user_agent,
                    ),
                )
                if restored is None:
                    return Return.err(Error("SESSION_REVOKED", "Session has been revoked"))
            session = await self.services.sessions.get(caller.session_id)
        except StoreUnavailableError as exc:
            return Return.err(store_unavailable(exc))

        return Return.ok(
            ActivityResponse(
                session_id=caller.session_id,
                last_activity_at=session.last_activity_at if session else datetime.now(UTC),
            )
        )
