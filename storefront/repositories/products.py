"""
Product Repository
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import Product, utcnow


class ProductRepository:
    """Data access for the products table"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def get(self, product_id: UUID, refresh: bool = False) -> Optional[Product]:
        return await self.session.get(Product, product_id, populate_existing=refresh)
    
    async def add(self, product: Product) -> Product:
        self.session.add(product)
        await self.session.flush()
        return product
    
    async def list(
        self,
        limit: int,
        offset: int,
        active_only: bool = False,
        category: Optional[str] = None,
    ) -> List[Product]:
        query = select(Product)
        if active_only:
            query = query.where(Product.is_active.is_(True))
        if category:
            query = query.where(Product.category == category)
        query = query.order_by(Product.created_at.desc(), Product.id).offset(offset).limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def count(self, active_only: bool = False, category: Optional[str] = None) -> int:
        query = select(func.count(Product.id))
        if active_only:
            query = query.where(Product.is_active.is_(True))
        if category:
            query = query.where(Product.category == category)
        
        result = await self.session.execute(query)
        return result.scalar() or 0
    
    async def adjust_stock(self, product_id: UUID, delta: int) -> bool:
        """
        Add ``delta`` to the stock in a single conditional UPDATE.
        
        The row only changes when the resulting stock stays non-negative, so
        concurrent adjustments on the same product can never oversell.
        
        Returns:
            True if the row was updated, False if the product is missing or
            the adjustment would make its stock negative.
        """
        stmt = (
            update(Product)
            .where(Product.id == product_id, Product.stock + delta >= 0)
            .values(stock=Product.stock + delta, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
