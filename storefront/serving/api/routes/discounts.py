"""
Discount Code Endpoints

Public code validation and the admin catalogue of codes.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.connection import get_db_dependency
from storefront.database.models import DiscountType
from storefront.schemas import (
    CreateDiscountCodeRequest,
    UpdateDiscountCodeRequest,
    ValidateDiscountRequest,
)
from storefront.serving.api.dependencies import get_discount_service, require_admin
from storefront.services import DiscountService, TokenClaims

router = APIRouter()


class DiscountCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    description: Optional[str]
    type: DiscountType
    value: float
    min_purchase: Optional[float]
    max_uses: Optional[int]
    used_count: int
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_at: datetime
    updated_at: datetime


class DiscountCodeListResponse(BaseModel):
    items: List[DiscountCodeResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class ValidateDiscountResponse(BaseModel):
    valid: bool
    discount_amount: float
    message: str
    discount_code: Optional[DiscountCodeResponse] = None


@router.post("/validate", response_model=ValidateDiscountResponse)
async def validate_discount(
    request: ValidateDiscountRequest,
    service: DiscountService = Depends(get_discount_service),
) -> ValidateDiscountResponse:
    """
    Check a code against a purchase total.

    An unusable code is not an error: the response carries valid=false and
    the reason.
    """
    result = await service.validate(request.code, request.purchase_total)
    return ValidateDiscountResponse(
        valid=result.valid,
        discount_amount=float(result.amount),
        message=result.message,
        discount_code=(
            DiscountCodeResponse.model_validate(result.discount_code)
            if result.discount_code is not None else None
        ),
    )


@router.get("", response_model=DiscountCodeListResponse)
async def list_discount_codes(
    page: int = Query(1),
    page_size: int = Query(10),
    admin: TokenClaims = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
) -> DiscountCodeListResponse:
    result = await service.list(page, page_size)
    return DiscountCodeListResponse(
        items=[DiscountCodeResponse.model_validate(d) for d in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.post("", response_model=DiscountCodeResponse, status_code=201)
async def create_discount_code(
    request: CreateDiscountCodeRequest,
    admin: TokenClaims = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> DiscountCodeResponse:
    discount = await service.create(request)
    await db.commit()
    return DiscountCodeResponse.model_validate(discount)


@router.get("/{discount_id}", response_model=DiscountCodeResponse)
async def get_discount_code(
    discount_id: UUID,
    admin: TokenClaims = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
) -> DiscountCodeResponse:
    return DiscountCodeResponse.model_validate(await service.get(discount_id))


@router.put("/{discount_id}", response_model=DiscountCodeResponse)
async def update_discount_code(
    discount_id: UUID,
    request: UpdateDiscountCodeRequest,
    admin: TokenClaims = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> DiscountCodeResponse:
    discount = await service.update(discount_id, request)
    await db.commit()
    return DiscountCodeResponse.model_validate(discount)


@router.delete("/{discount_id}", response_model=DiscountCodeResponse)
async def deactivate_discount_code(
    discount_id: UUID,
    admin: TokenClaims = Depends(require_admin),
    service: DiscountService = Depends(get_discount_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> DiscountCodeResponse:
    """Soft delete: the code is kept for order history but deactivated."""
    discount = await service.deactivate(discount_id)
    await db.commit()
    return DiscountCodeResponse.model_validate(discount)
