"""
Order Orchestrator

Checkout and order lookups. A checkout prices every line from the current
catalogue, optionally applies a discount code, persists the order with its
items, reserves stock and records the discount use. All writes share the
caller's session, so a failure at any step leaves no trace once the unit of
work rolls back.
"""

import secrets
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.database.models import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    utcnow,
)
from storefront.errors import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidDiscountCodeError,
    OrderNotFoundError,
    ProductInactiveError,
    ProductNotFoundError,
)
from storefront.repositories import OrderRepository, ProductRepository
from storefront.schemas import CreateOrderRequest
from storefront.services.discounts import DiscountService
from storefront.services.inventory import InventoryLedger, StockLine
from storefront.services.order_status import OrderStateMachine
from storefront.services.pagination import Page, clamp_page

logger = structlog.get_logger(__name__)


def generate_order_number(prefix: str, now: Optional[datetime] = None) -> str:
    """
    Human readable order number: ``<prefix>-YYYYMMDD-NNNNNN``.

    Uniqueness is best effort; callers check for an existing order.
    """
    now = now or utcnow()
    return f"{prefix}-{now:%Y%m%d}-{secrets.randbelow(1_000_000):06d}"


class OrderService:
    """Checkout, lookups and status updates for orders"""

    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.settings = get_settings().orders
        self.orders = OrderRepository(session)
        self.products = ProductRepository(session)
        self.ledger = InventoryLedger(session)
        self.discounts = DiscountService(session, clock=clock)
        self.state_machine = OrderStateMachine(session, ledger=self.ledger)
        self.clock = clock

    # -------------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------------

    async def _price_items(self, request: CreateOrderRequest) -> List[OrderItem]:
        """Validate every line against the catalogue and snapshot its price."""
        requested: Dict[UUID, int] = defaultdict(int)
        lines = []

        for position, item in enumerate(request.items):
            product = await self.products.get(item.product_id, refresh=True)
            if product is None:
                raise ProductNotFoundError(item.product_id)
            if not product.is_active:
                raise ProductInactiveError(product.name)

            # Lines for the same product draw from the same stock
            requested[product.id] += item.quantity
            if product.stock < requested[product.id]:
                raise InsufficientStockError(
                    product.name,
                    available=product.stock,
                    requested=requested[product.id],
                )

            lines.append(OrderItem(
                position=position,
                product_id=product.id,
                product_name=product.name,
                price=product.price,
                quantity=item.quantity,
                subtotal=product.price * item.quantity,
            ))

        return lines

    async def _resolve_discount(self, code: Optional[str], subtotal: Decimal) -> tuple:
        """
        Returns (discount amount, DiscountCode or None).

        An unusable code yields no discount unless strict mode is configured.
        """
        if not code or not code.strip():
            return Decimal("0"), None

        validation = await self.discounts.validate(code, subtotal)
        if validation.valid:
            return validation.amount, validation.discount_code

        if self.settings.strict_discount_codes:
            raise InvalidDiscountCodeError(code, validation.message)

        logger.info("Discount code ignored at checkout", code=code, reason=validation.message)
        return Decimal("0"), None

    async def _next_order_number(self) -> str:
        attempts = max(self.settings.order_number_attempts, 1)
        for _ in range(attempts):
            number = generate_order_number(self.settings.order_number_prefix, self.clock())
            if not await self.orders.number_exists(number):
                return number
            logger.warning("Order number collision", order_number=number)
        # The unique constraint rejects the insert if this one collides too
        return number

    async def create_order(self, request: CreateOrderRequest, user_id: Optional[UUID] = None) -> Order:
        """
        Place an order.

        Raises:
            EmptyOrderError: no items
            ProductNotFoundError: a line references an unknown product
            ProductInactiveError: a line references an inactive product
            InsufficientStockError: not enough stock for a product
            InvalidDiscountCodeError: bad code while strict codes are enabled
        """
        if not request.items:
            raise EmptyOrderError()

        lines = await self._price_items(request)
        subtotal = sum((line.subtotal for line in lines), Decimal("0"))

        discount_amount, discount_code = await self._resolve_discount(request.discount_code, subtotal)
        total = max(subtotal - discount_amount, Decimal("0"))

        order = Order(
            order_number=await self._next_order_number(),
            user_id=user_id,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            subtotal=subtotal,
            discount=discount_amount,
            total=total,
            payment_method=request.payment_method,
            payment_status=PaymentStatus.PENDING,
            status=OrderStatus.PENDING,
            discount_code_id=discount_code.id if discount_code else None,
            shipping_address=request.shipping_address.model_dump(),
            utm_source=request.utm_source,
            utm_medium=request.utm_medium,
            utm_campaign=request.utm_campaign,
            items=lines,
        )
        await self.orders.add(order)

        await self.ledger.reserve(StockLine(line.product_id, line.quantity) for line in lines)

        if discount_code is not None:
            await self.discounts.apply(discount_code.id)

        logger.info(
            "Order created",
            order_number=order.order_number,
            items=len(lines),
            subtotal=str(subtotal),
            discount=str(discount_amount),
            total=str(total),
        )
        return order

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    async def get_order(self, order_id: UUID) -> Order:
        order = await self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    async def get_order_by_number(self, order_number: str) -> Order:
        order = await self.orders.get_by_number(order_number)
        if order is None:
            raise OrderNotFoundError(order_number)
        return order

    async def list_user_orders(self, user_id: UUID, page: int, page_size: int) -> Page:
        return await self.list_orders(page, page_size, user_id=user_id)

    async def list_orders(
        self,
        page: int,
        page_size: int,
        user_id: Optional[UUID] = None,
        status: Optional[OrderStatus] = None,
    ) -> Page:
        request = clamp_page(page, page_size, self.settings.default_page_size, self.settings.max_page_size)
        items = await self.orders.list(
            limit=request.page_size,
            offset=request.offset,
            user_id=user_id,
            status=status,
        )
        total = await self.orders.count(user_id=user_id, status=status)
        return Page.build(items, total, request)

    # -------------------------------------------------------------------------
    # Status updates
    # -------------------------------------------------------------------------

    async def update_status(self, order_id: UUID, status: OrderStatus) -> Order:
        return await self.state_machine.update_status(order_id, status)

    async def update_payment_status(
        self,
        order_id: UUID,
        payment_status: PaymentStatus,
        payment_reference: Optional[str] = None,
    ) -> Order:
        return await self.state_machine.update_payment_status(order_id, payment_status, payment_reference)
