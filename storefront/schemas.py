"""
Request Schemas

Pydantic models that HTTP handlers bind request bodies to and that the
services accept as input.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from storefront.database.models import DiscountType, OrderStatus, PaymentMethod, PaymentStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


# =============================================================================
# ORDERS
# =============================================================================

class ShippingAddress(BaseModel):
    """Delivery address stored on the order"""
    street: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    department: str = Field(..., min_length=1)
    zip_code: str = ""
    details: str = ""


class OrderItemRequest(BaseModel):
    product_id: UUID
    quantity: int = Field(..., gt=0)


class CreateOrderRequest(BaseModel):
    """Checkout payload"""
    customer_name: str = Field(..., min_length=2, max_length=200)
    customer_email: str = Field(..., pattern=EMAIL_PATTERN, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    payment_method: PaymentMethod
    shipping_address: ShippingAddress
    items: List[OrderItemRequest] = Field(default_factory=list)
    discount_code: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: PaymentStatus
    payment_reference: Optional[str] = Field(None, max_length=100)


# =============================================================================
# DISCOUNT CODES
# =============================================================================

class CreateDiscountCodeRequest(BaseModel):
    code: str = Field(..., min_length=3, max_length=20)
    description: str = ""
    type: DiscountType
    value: Decimal = Field(..., gt=0)
    min_purchase: Optional[Decimal] = Field(None, gt=0)
    max_uses: Optional[int] = Field(None, gt=0)
    start_date: datetime
    end_date: datetime
    is_active: bool = True


class UpdateDiscountCodeRequest(BaseModel):
    """Partial update, unset fields keep their value"""
    code: Optional[str] = Field(None, min_length=3, max_length=20)
    description: Optional[str] = None
    type: Optional[DiscountType] = None
    value: Optional[Decimal] = Field(None, gt=0)
    min_purchase: Optional[Decimal] = Field(None, gt=0)
    max_uses: Optional[int] = Field(None, gt=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_active: Optional[bool] = None


class ValidateDiscountRequest(BaseModel):
    code: str = Field(..., min_length=1)
    purchase_total: Decimal = Field(..., gt=0)


# =============================================================================
# PRODUCTS
# =============================================================================

class CreateProductRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    price: Decimal = Field(..., gt=0)
    stock: int = Field(0, ge=0)
    is_active: bool = True


class AdjustStockRequest(BaseModel):
    """Signed stock delta: negative reserves, positive restores"""
    quantity: int


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str
