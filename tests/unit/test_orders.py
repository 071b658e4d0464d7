"""
Unit Tests - Order Orchestrator
"""
import re
import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from storefront.config import get_settings
from storefront.database.models import DiscountType, Order, OrderStatus, PaymentStatus
from storefront.errors import (
    EmptyOrderError,
    InsufficientStockError,
    InvalidDiscountCodeError,
    OrderNotFoundError,
    ProductInactiveError,
    ProductNotFoundError,
)
from storefront.schemas import OrderItemRequest
from storefront.services import InventoryLedger, OrderService, generate_order_number


async def stock_of(service: OrderService, product_id) -> int:
    return (await service.products.get(product_id, refresh=True)).stock


async def order_count(test_db) -> int:
    return (await test_db.execute(select(func.count(Order.id)))).scalar()


class TestGenerateOrderNumber:
    """Tests for generate_order_number"""

    def test_format(self):
        number = generate_order_number("ORD", datetime(2025, 3, 9))
        assert re.fullmatch(r"ORD-20250309-\d{6}", number)


class TestCreateOrder:
    """Tests for OrderService.create_order"""

    async def test_prices_lines_and_reserves_stock(self, test_db, make_product, order_request):
        cup = await make_product(name="Mate Cup", price="250.00", stock=10)
        straw = await make_product(name="Bombilla", price="120.50", stock=5)
        service = OrderService(test_db)

        order = await service.create_order(order_request((cup, 2), (straw, 1)))

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.subtotal == Decimal("620.50")
        assert order.discount == 0
        assert order.total == Decimal("620.50")
        assert [(i.product_name, i.quantity, i.subtotal) for i in order.items] == [
            ("Mate Cup", 2, Decimal("500.00")),
            ("Bombilla", 1, Decimal("120.50")),
        ]
        assert await stock_of(service, cup.id) == 8
        assert await stock_of(service, straw.id) == 4

    async def test_price_is_a_snapshot(self, test_db, make_product, order_request):
        cup = await make_product(price="100.00")
        service = OrderService(test_db)
        order = await service.create_order(order_request((cup, 1)))
        await test_db.commit()

        cup.price = Decimal("999.00")
        await test_db.commit()

        reloaded = await service.get_order(order.id)
        assert reloaded.items[0].price == Decimal("100.00")

    async def test_links_user(self, test_db, make_product, order_request):
        cup = await make_product()
        user_id = uuid.uuid4()

        order = await OrderService(test_db).create_order(order_request((cup, 1)), user_id=user_id)

        assert order.user_id == user_id

    async def test_empty_order(self, test_db, order_request):
        with pytest.raises(EmptyOrderError):
            await OrderService(test_db).create_order(order_request())

    async def test_unknown_product(self, test_db, order_request):
        ghost = type("Ghost", (), {"id": uuid.uuid4()})()

        with pytest.raises(ProductNotFoundError):
            await OrderService(test_db).create_order(order_request((ghost, 1)))

    async def test_inactive_product(self, test_db, make_product, order_request):
        retired = await make_product(name="Old Termo", is_active=False)

        with pytest.raises(ProductInactiveError) as exc_info:
            await OrderService(test_db).create_order(order_request((retired, 1)))
        assert "Old Termo" in str(exc_info.value)

    async def test_insufficient_stock_alters_nothing(self, test_db, make_product, order_request):
        cup = await make_product(name="Mate Cup", stock=10)
        straw = await make_product(name="Bombilla", stock=1)
        service = OrderService(test_db)
        cup_id, straw_id = cup.id, straw.id

        with pytest.raises(InsufficientStockError):
            await service.create_order(order_request((cup, 2), (straw, 3)))
        await test_db.rollback()

        assert await stock_of(service, cup_id) == 10
        assert await stock_of(service, straw_id) == 1
        assert await order_count(test_db) == 0

    async def test_repeated_product_lines_share_stock(self, test_db, make_product, order_request):
        cup = await make_product(stock=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            await OrderService(test_db).create_order(order_request((cup, 2), (cup, 2)))
        assert exc_info.value.requested == 4

    async def test_failure_during_reservation_rolls_everything_back(
        self, test_db, make_product, make_discount, order_request, monkeypatch
    ):
        """Stock taken by a concurrent checkout between pricing and reservation"""
        cup = await make_product(name="Mate Cup", stock=10)
        straw = await make_product(name="Bombilla", stock=10)
        discount = await make_discount(code="SAVE10")
        service = OrderService(test_db)
        cup_id, straw_id, discount_id = cup.id, straw.id, discount.id

        original = InventoryLedger.adjust_stock
        calls = []

        async def flaky_adjust(self, product_id, delta):
            calls.append(product_id)
            if len(calls) == 2:
                raise InsufficientStockError("Bombilla", available=0, requested=-delta)
            return await original(self, product_id, delta)

        monkeypatch.setattr(InventoryLedger, "adjust_stock", flaky_adjust)

        with pytest.raises(InsufficientStockError):
            await service.create_order(order_request((cup, 2), (straw, 1), discount_code="SAVE10"))
        await test_db.rollback()
        monkeypatch.undo()

        assert await stock_of(service, cup_id) == 10
        assert await stock_of(service, straw_id) == 10
        assert await order_count(test_db) == 0
        assert (await service.discounts.discounts.get(discount_id, refresh=True)).used_count == 0


class TestCheckoutDiscounts:
    """Tests for discount handling during checkout"""

    async def test_valid_code_is_applied_and_counted(self, test_db, make_product, make_discount, order_request):
        cup = await make_product(price="200.00")
        discount = await make_discount(code="SAVE10", value="10", max_uses=5)
        service = OrderService(test_db)

        order = await service.create_order(order_request((cup, 2), discount_code="save10"))

        assert order.discount == Decimal("40.00")
        assert order.total == Decimal("360.00")
        assert order.discount_code_id == discount.id
        assert (await service.discounts.discounts.get(discount.id, refresh=True)).used_count == 1

    async def test_oversized_fixed_discount_makes_order_free(self, test_db, make_product, make_discount, order_request):
        cup = await make_product(price="50000.00", stock=5)
        await make_discount(code="HUGE", type=DiscountType.FIXED_AMOUNT, value="99999")

        order = await OrderService(test_db).create_order(order_request((cup, 1), discount_code="HUGE"))

        assert order.discount == Decimal("50000.00")
        assert order.total == 0

    async def test_invalid_code_is_ignored_by_default(self, test_db, make_product, make_discount, order_request):
        cup = await make_product(price="100.00")
        inactive = await make_discount(code="OLD", is_active=False)
        service = OrderService(test_db)

        order = await service.create_order(order_request((cup, 1), discount_code="OLD"))

        assert order.discount == 0
        assert order.total == Decimal("100.00")
        assert order.discount_code_id is None
        assert (await service.discounts.discounts.get(inactive.id, refresh=True)).used_count == 0

    async def test_unknown_code_is_ignored_by_default(self, test_db, make_product, order_request):
        cup = await make_product(price="100.00")

        order = await OrderService(test_db).create_order(order_request((cup, 1), discount_code="MISSING"))

        assert order.discount == 0

    async def test_strict_mode_rejects_invalid_code(self, test_db, make_product, order_request, monkeypatch):
        cup = await make_product()
        service = OrderService(test_db)
        monkeypatch.setattr(service, "settings", get_settings().orders.model_copy(update={"strict_discount_codes": True}))

        with pytest.raises(InvalidDiscountCodeError) as exc_info:
            await service.create_order(order_request((cup, 1), discount_code="MISSING"))
        assert exc_info.value.field == "discount_code"


class TestOrderNumbers:
    """Tests for order number allocation"""

    async def test_collision_is_regenerated(self, test_db, make_product, order_request, monkeypatch):
        cup = await make_product(stock=10)
        service = OrderService(test_db)
        numbers = iter(["ORD-20250101-000001", "ORD-20250101-000001", "ORD-20250101-000002"])
        monkeypatch.setattr(
            "storefront.services.orders.generate_order_number",
            lambda prefix, now=None: next(numbers),
        )

        first = await service.create_order(order_request((cup, 1)))
        second = await service.create_order(order_request((cup, 1)))

        assert first.order_number == "ORD-20250101-000001"
        assert second.order_number == "ORD-20250101-000002"


class TestLookups:
    """Tests for order reads"""

    async def test_get_by_number_is_idempotent(self, test_db, make_product, order_request):
        cup = await make_product()
        service = OrderService(test_db)
        order = await service.create_order(order_request((cup, 2)))

        first = await service.get_order_by_number(order.order_number)
        first_snapshot = (first.id, first.total, first.status, [(i.id, i.quantity) for i in first.items])
        second = await service.get_order_by_number(order.order_number)

        assert first_snapshot == (second.id, second.total, second.status, [(i.id, i.quantity) for i in second.items])

    async def test_missing_order(self, test_db):
        service = OrderService(test_db)
        with pytest.raises(OrderNotFoundError):
            await service.get_order(uuid.uuid4())
        with pytest.raises(OrderNotFoundError):
            await service.get_order_by_number("ORD-19990101-000000")

    async def test_user_orders_are_paginated(self, test_db, make_product, order_request):
        cup = await make_product(stock=100)
        service = OrderService(test_db)
        user_id = uuid.uuid4()
        for _ in range(3):
            await service.create_order(order_request((cup, 1)), user_id=user_id)
        await service.create_order(order_request((cup, 1)))

        page = await service.list_user_orders(user_id, page=1, page_size=2)

        assert page.total == 3
        assert page.total_pages == 2
        assert len(page.items) == 2
        assert all(o.user_id == user_id for o in page.items)

    async def test_list_orders_clamps_paging(self, test_db, make_product, order_request):
        cup = await make_product(stock=100)
        service = OrderService(test_db)
        for _ in range(12):
            await service.create_order(order_request((cup, 1)))

        page = await service.list_orders(page=0, page_size=0)

        assert page.page == 1
        assert page.page_size == 10
        assert len(page.items) == 10
        assert page.total == 12
        assert page.total_pages == 2

    async def test_list_orders_by_status(self, test_db, make_product, order_request):
        cup = await make_product(stock=100)
        service = OrderService(test_db)
        kept = await service.create_order(order_request((cup, 1)))
        dropped = await service.create_order(order_request((cup, 1)))
        await service.update_status(dropped.id, OrderStatus.CANCELLED)

        page = await service.list_orders(page=1, page_size=10, status=OrderStatus.PENDING)

        assert [o.id for o in page.items] == [kept.id]
