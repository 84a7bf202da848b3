from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_repository import IUserRepository
from src.domain.entities import User


class UserRepository(IUserRepository):
    """CRM user records via SQLModel; writes flush, the unit of work commits"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _first(self, stmt) -> Optional[User]:
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Exact match; callers pass the lower-cased address"""
        return await self._first(select(User).where(User.email == email))

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        return await self._first(select(User).where(User.id == user_id))

    async def create(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user
