"""
Order State Machine

Fulfilment status only moves along the edges of ``TRANSITIONS``:

    pending -> confirmed | cancelled
    confirmed -> processing | cancelled
    processing -> shipped | cancelled
    shipped -> delivered

``delivered`` and ``cancelled`` are terminal. Entering ``cancelled`` gives the
reserved stock back; the release happens before the status write in the same
transaction, so an order is never left cancelled with its stock still held.

Payment status is not guarded, but an approved payment confirms the order
when the table allows ``current -> confirmed``.
"""

from typing import Dict, FrozenSet, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import Order, OrderStatus, PaymentStatus
from storefront.errors import InvalidTransitionError, OrderNotFoundError
from storefront.repositories import OrderRepository
from storefront.services.inventory import InventoryLedger, StockLine

logger = structlog.get_logger(__name__)

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in TRANSITIONS.get(current, frozenset())


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS.get(status)


class OrderStateMachine:
    """Guards status changes and runs their side effects"""

    def __init__(self, session: AsyncSession, ledger: Optional[InventoryLedger] = None):
        self.orders = OrderRepository(session)
        self.ledger = ledger or InventoryLedger(session)

    async def _load(self, order_id: UUID) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    async def update_status(self, order_id: UUID, new_status: OrderStatus) -> Order:
        """
        Move an order to ``new_status``.

        Raises:
            OrderNotFoundError: no such order
            InvalidTransitionError: the table has no edge current -> new_status
        """
        order = await self._load(order_id)
        current = order.status

        if not can_transition(current, new_status):
            raise InvalidTransitionError(current.value, new_status.value)

        if new_status == OrderStatus.CANCELLED:
            await self.ledger.release(
                StockLine(item.product_id, item.quantity) for item in order.items
            )
            logger.info(
                "Stock released for cancelled order",
                order_number=order.order_number,
                lines=len(order.items),
            )

        await self.orders.update_status(order_id, new_status)
        logger.info(
            "Order status updated",
            order_number=order.order_number,
            from_status=current.value,
            to_status=new_status.value,
        )
        return await self._load(order_id)

    async def update_payment_status(
        self,
        order_id: UUID,
        payment_status: PaymentStatus,
        payment_reference: Optional[str] = None,
    ) -> Order:
        """
        Record a payment status. Approval confirms the order when allowed.
        """
        order = await self._load(order_id)
        await self.orders.update_payment_status(order_id, payment_status, payment_reference)
        logger.info(
            "Payment status updated",
            order_number=order.order_number,
            payment_status=payment_status.value,
        )

        if payment_status == PaymentStatus.APPROVED and order.status != OrderStatus.CONFIRMED:
            if can_transition(order.status, OrderStatus.CONFIRMED):
                await self.orders.update_status(order_id, OrderStatus.CONFIRMED)
                logger.info("Order confirmed by payment approval", order_number=order.order_number)
            else:
                logger.warning(
                    "order_auto_confirm_skipped",
                    order_number=order.order_number,
                    status=order.status.value,
                )

        return await self._load(order_id)
