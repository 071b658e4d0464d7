"""
Discount Code Repository
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import DiscountCode, utcnow


def normalize_code(code: str) -> str:
    """Codes compare case-insensitively; the stored form is upper-case."""
    return code.strip().upper()


class DiscountRepository:
    """Data access for the discount_codes table"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get(self, discount_id: UUID, refresh: bool = False) -> Optional[DiscountCode]:
        return await self.session.get(DiscountCode, discount_id, populate_existing=refresh)
    
    async def get_by_code(self, code: str) -> Optional[DiscountCode]:
        result = await self.session.execute(
            select(DiscountCode).where(DiscountCode.code == normalize_code(code)).limit(1)
        )
        return result.scalar_one_or_none()
    
    async def add(self, discount: DiscountCode) -> DiscountCode:
        discount.code = normalize_code(discount.code)
        self.session.add(discount)
        await self.session.flush()
        return discount
    
    async def save(self, discount: DiscountCode) -> DiscountCode:
        discount.code = normalize_code(discount.code)
        discount.updated_at = utcnow()
        await self.session.flush()
        return discount
    
    async def list(self, limit: int, offset: int) -> List[DiscountCode]:
        result = await self.session.execute(
            select(DiscountCode)
            .order_by(DiscountCode.created_at.desc(), DiscountCode.code)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())
    
    async def count(self) -> int:
        result = await self.session.execute(select(func.count(DiscountCode.id)))
        return result.scalar() or 0
    
    async def increment_used_count(self, discount_id: UUID) -> bool:
        """
        Atomically count one more use of a code.
        
        The increment is conditional on the cap, so ``used_count`` never
        exceeds ``max_uses`` even under concurrent checkouts.
        
        Returns:
            True if the counter was incremented.
        """
        stmt = (
            update(DiscountCode)
            .where(
                DiscountCode.id == discount_id,
                or_(
                    DiscountCode.max_uses.is_(None),
                    DiscountCode.used_count < DiscountCode.max_uses,
                ),
            )
            .values(used_count=DiscountCode.used_count + 1, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
