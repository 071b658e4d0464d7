"""
Test Suite Configuration
"""
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.database.models import (
    Base,
    DiscountCode,
    DiscountType,
    PaymentMethod,
    Product,
    utcnow,
)
from storefront.schemas import CreateOrderRequest, OrderItemRequest, ShippingAddress


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def test_engine():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_product(test_db):
    """Insert and commit a product"""

    async def factory(
        name: str = "Mate Cup",
        price: str = "100.00",
        stock: int = 10,
        is_active: bool = True,
        category: str = "home_garden",
    ) -> Product:
        product = Product(
            name=name,
            description=f"{name} for tests",
            category=category,
            price=Decimal(price),
            stock=stock,
            is_active=is_active,
        )
        test_db.add(product)
        await test_db.commit()
        return product

    return factory


@pytest.fixture
def make_discount(test_db):
    """Insert and commit a discount code valid from yesterday for a month"""

    async def factory(
        code: str = "SAVE10",
        type: DiscountType = DiscountType.PERCENTAGE,
        value: str = "10",
        min_purchase: Optional[str] = None,
        max_uses: Optional[int] = None,
        used_count: int = 0,
        is_active: bool = True,
        starts_in: timedelta = timedelta(days=-1),
        ends_in: timedelta = timedelta(days=30),
    ) -> DiscountCode:
        now = utcnow()
        discount = DiscountCode(
            code=code,
            description="test code",
            type=type,
            value=Decimal(value),
            min_purchase=Decimal(min_purchase) if min_purchase is not None else None,
            max_uses=max_uses,
            used_count=used_count,
            start_date=now + starts_in,
            end_date=now + ends_in,
            is_active=is_active,
        )
        test_db.add(discount)
        await test_db.commit()
        return discount

    return factory


def build_order_request(*lines, discount_code: Optional[str] = None) -> CreateOrderRequest:
    """Checkout payload for ``(product, quantity)`` pairs"""
    return CreateOrderRequest(
        customer_name="Ana Pereira",
        customer_email="ana@example.com",
        customer_phone="099123456",
        payment_method=PaymentMethod.CASH_ON_DELIVERY,
        shipping_address=ShippingAddress(
            street="Av. 18 de Julio",
            number="1234",
            city="Montevideo",
            department="Montevideo",
        ),
        items=[OrderItemRequest(product_id=p.id, quantity=q) for p, q in lines],
        discount_code=discount_code,
    )


@pytest.fixture
def order_request():
    return build_order_request
