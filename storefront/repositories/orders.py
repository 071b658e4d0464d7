"""
Order Repository
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, func, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import Order, OrderStatus, PaymentStatus, utcnow


class OrderRepository:
    """Data access for orders and their line items"""
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def add(self, order: Order) -> Order:
        """Persist an order header together with the items attached to it."""
        self.session.add(order)
        await self.session.flush()
        return order
    
    async def get(self, order_id: UUID) -> Optional[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
    
    async def get_by_number(self, order_number: str) -> Optional[Order]:
        result = await self.session.execute(
            select(Order)
            .where(Order.order_number == order_number)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()
    
    async def number_exists(self, order_number: str) -> bool:
        result = await self.session.execute(
            select(func.count(Order.id)).where(Order.order_number == order_number)
        )
        return (result.scalar() or 0) > 0
    
    def _conditions(self, user_id: Optional[UUID], status: Optional[OrderStatus]) -> list:
        conditions = []
        if user_id is not None:
            conditions.append(Order.user_id == user_id)
        if status is not None:
            conditions.append(Order.status == status)
        return conditions
    
    async def list(
        self,
        limit: int,
        offset: int,
        user_id: Optional[UUID] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        query = select(Order)
        conditions = self._conditions(user_id, status)
        if conditions:
            query = query.where(and_(*conditions))
        query = query.order_by(Order.created_at.desc(), Order.order_number.desc()).offset(offset).limit(limit)
        
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def count(self, user_id: Optional[UUID] = None, status: Optional[OrderStatus] = None) -> int:
        query = select(func.count(Order.id))
        conditions = self._conditions(user_id, status)
        if conditions:
            query = query.where(and_(*conditions))
        
        result = await self.session.execute(query)
        return result.scalar() or 0
    
    async def update_status(self, order_id: UUID, status: OrderStatus) -> None:
        await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(status=status, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
        )
    
    async def update_payment_status(
        self,
        order_id: UUID,
        payment_status: PaymentStatus,
        payment_reference: Optional[str] = None,
    ) -> None:
        values = {"payment_status": payment_status, "updated_at": utcnow()}
        if payment_reference is not None:
            values["payment_reference"] = payment_reference
        
        await self.session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
