"""
Product Service

Read access to the catalogue for the storefront, plus the admin operations
that seed it and correct stock through the inventory ledger.
"""

from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.database.models import Product
from storefront.errors import ProductNotFoundError
from storefront.repositories import ProductRepository
from storefront.schemas import CreateProductRequest
from storefront.services.inventory import InventoryLedger
from storefront.services.pagination import Page, clamp_page

logger = structlog.get_logger(__name__)


class ProductService:
    def __init__(self, session: AsyncSession):
        self.products = ProductRepository(session)
        self.ledger = InventoryLedger(session)
        self.settings = get_settings().orders
    
    async def create(self, request: CreateProductRequest) -> Product:
        product = await self.products.add(Product(**request.model_dump()))
        logger.info("Product created", product_id=str(product.id), name=product.name)
        return product
    
    async def get(self, product_id: UUID) -> Product:
        product = await self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product
    
    async def list(
        self,
        page: int,
        page_size: int,
        active_only: bool = True,
        category: Optional[str] = None,
    ) -> Page:
        request = clamp_page(page, page_size, self.settings.default_page_size, self.settings.max_page_size)
        items = await self.products.list(
            limit=request.page_size,
            offset=request.offset,
            active_only=active_only,
            category=category,
        )
        total = await self.products.count(active_only=active_only, category=category)
        return Page.build(items, total, request)
    
    async def adjust_stock(self, product_id: UUID, delta: int) -> Product:
        return await self.ledger.adjust_stock(product_id, delta)
