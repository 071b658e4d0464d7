"""
Orders API Endpoints

Checkout, order lookups and the admin status workflow.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.connection import get_db_dependency
from storefront.database.models import Order, OrderStatus, PaymentMethod, PaymentStatus
from storefront.errors import ForbiddenError
from storefront.schemas import (
    CreateOrderRequest,
    ShippingAddress,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from storefront.serving.api.dependencies import (
    get_current_user,
    get_optional_user,
    get_order_service,
    require_admin,
)
from storefront.serving.cache import orders_cache
from storefront.services import OrderService, Page, TokenClaims

router = APIRouter()


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class OrderItemResponse(BaseModel):
    """Line item snapshot"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    product_name: str
    price: float
    quantity: int
    subtotal: float


class OrderSummary(BaseModel):
    """Order header"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    user_id: Optional[UUID]
    customer_name: str
    customer_email: str
    customer_phone: str
    subtotal: float
    discount: float
    total: float
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_reference: Optional[str]
    status: OrderStatus
    discount_code_id: Optional[UUID]
    shipping_address: ShippingAddress
    utm_source: Optional[str]
    utm_medium: Optional[str]
    utm_campaign: Optional[str]
    created_at: datetime
    updated_at: datetime


class OrderResponse(OrderSummary):
    """Order header with its items"""
    items: List[OrderItemResponse]


class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


def to_list_response(page: Page) -> OrderListResponse:
    return OrderListResponse(
        items=[OrderSummary.model_validate(o) for o in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


async def commit_and_invalidate(db: AsyncSession, order: Order) -> None:
    """Tracking cache entries are dropped only once the change is committed."""
    await db.commit()
    await orders_cache.delete(order.order_number)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    request: CreateOrderRequest,
    user: Optional[TokenClaims] = Depends(get_optional_user),
    service: OrderService = Depends(get_order_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> OrderResponse:
    """
    Place an order.

    Anonymous checkout is allowed; a valid token links the order to the user.
    """
    order = await service.create_order(request, user_id=user.user_id if user else None)
    await db.commit()
    return OrderResponse.model_validate(order)


@router.get("/number/{order_number}", response_model=OrderResponse)
async def get_order_by_number(
    order_number: str,
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Public order tracking by order number."""

    async def load() -> dict:
        order = await service.get_order_by_number(order_number)
        return OrderResponse.model_validate(order).model_dump(mode="json")

    return OrderResponse(**await orders_cache.get_or_load(order_number, load))


@router.get("/me", response_model=OrderListResponse)
async def list_my_orders(
    page: int = Query(1),
    page_size: int = Query(10),
    user: TokenClaims = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """Orders of the authenticated user, newest first."""
    return to_list_response(await service.list_user_orders(user.user_id, page, page_size))


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    user: TokenClaims = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Order details; customers only see their own orders."""
    order = await service.get_order(order_id)
    if not user.is_admin and order.user_id != user.user_id:
        raise ForbiddenError("Order belongs to another user")
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(1),
    page_size: int = Query(10),
    status: Optional[OrderStatus] = None,
    admin: TokenClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """All orders (admin), optionally filtered by status."""
    return to_list_response(await service.list_orders(page, page_size, status=status))


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    request: UpdateOrderStatusRequest,
    admin: TokenClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> OrderResponse:
    """Advance the fulfilment status. Cancelling returns the stock."""
    order = await service.update_status(order_id, request.status)
    await commit_and_invalidate(db, order)
    return OrderResponse.model_validate(order)


@router.patch("/{order_id}/payment", response_model=OrderResponse)
async def update_payment_status(
    order_id: UUID,
    request: UpdatePaymentStatusRequest,
    admin: TokenClaims = Depends(require_admin),
    service: OrderService = Depends(get_order_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> OrderResponse:
    """Record the payment status. Approval confirms a pending order."""
    order = await service.update_payment_status(order_id, request.payment_status, request.payment_reference)
    await commit_and_invalidate(db, order)
    return OrderResponse.model_validate(order)
