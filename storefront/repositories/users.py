"""
User Repository
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)
    
    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()
    
    async def add(self, user: User) -> User:
        user.email = user.email.strip().lower()
        self.session.add(user)
        await self.session.flush()
        return user
