"""
Products API Endpoints

Catalogue reads and the admin stock controls.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.connection import get_db_dependency
from storefront.schemas import AdjustStockRequest, CreateProductRequest
from storefront.serving.api.dependencies import get_product_service, require_admin
from storefront.services import ProductService, TokenClaims

router = APIRouter()


class ProductResponse(BaseModel):
    """Product response model"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: Optional[str]
    category: Optional[str]
    price: float
    stock: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ProductListResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1),
    page_size: int = Query(10),
    category: Optional[str] = None,
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    """Active products, optionally filtered by category."""
    result = await service.list(page, page_size, category=category)
    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    service: ProductService = Depends(get_product_service),
) -> ProductResponse:
    return ProductResponse.model_validate(await service.get(product_id))


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    request: CreateProductRequest,
    admin: TokenClaims = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> ProductResponse:
    product = await service.create(request)
    await db.commit()
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}/stock", response_model=ProductResponse)
async def adjust_stock(
    product_id: UUID,
    request: AdjustStockRequest,
    admin: TokenClaims = Depends(require_admin),
    service: ProductService = Depends(get_product_service),
    db: AsyncSession = Depends(get_db_dependency),
) -> ProductResponse:
    """
    Apply a signed stock delta.

    Rejected with 409 when the result would go below zero.
    """
    product = await service.adjust_stock(product_id, request.quantity)
    await db.commit()
    return ProductResponse.model_validate(product)
