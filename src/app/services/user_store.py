"""
User Store

The auth core's view of the external user records: find/update/create
with a bounded timeout, plus typed access to the two-factor blob.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import (
    TwoFactorConfig,
    TwoFactorEnabled,
    User,
    dump_two_factor_config,
    parse_two_factor_config,
)
from src.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class UserStore:
    """
    Business Rules:
    - Every call is bounded by timeout_seconds; a timeout or database error
      raises StoreUnavailableError and is never retried here
    - Emails are matched lower-cased
    - update_by_id() and create() flush only; the caller commits
    """

    def __init__(self, uow: UnitOfWork, timeout_seconds: float = 5.0):
        self.uow = uow
        self.timeout_seconds = timeout_seconds

    async def _call(self, awaitable):
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            logger.error(f"User store call timed out after {self.timeout_seconds}s")
            raise StoreUnavailableError("User store timed out") from exc
        except SQLAlchemyError as exc:
            logger.error(f"User store error: {type(exc).__name__}")
            raise StoreUnavailableError("User store unavailable") from exc

    async def find_by_email(self, email: str) -> Optional[User]:
        return await self._call(self.uow.users.get_by_email(email.strip().lower()))

    async def find_by_id(self, user_id: Union[UUID, str]) -> Optional[User]:
        try:
            uid = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            return None
        return await self._call(self.uow.users.get_by_id(uid))

    async def create(self, user: User) -> User:
        user.email = user.email.strip().lower()
        return await self._call(self.uow.users.create(user))

    async def update_by_id(
        self, user_id: Union[UUID, str], fields: Dict[str, Any]
    ) -> Optional[User]:
        user = await self.find_by_id(user_id)
        if user is None:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        user.updated_at = datetime.utcnow()
        return await self._call(self.uow.users.update(user))

    async def commit(self):
        await self._call(self.uow.commit())

    @staticmethod
    def read_two_factor(user: User) -> TwoFactorConfig:
        """Typed two-factor state; raises TwoFactorConfigError if corrupt"""
        return parse_two_factor_config(user.two_factor_config)

    async def write_two_factor(
        self, user: User, config: TwoFactorConfig
    ) -> Optional[User]:
        return await self.update_by_id(
            user.id,
            {
                "two_factor_config": dump_two_factor_config(config),
                "two_factor_enabled": isinstance(config, TwoFactorEnabled),
            },
        )
