"""
Inventory Ledger

Every stock change goes through :meth:`InventoryLedger.adjust_stock`, which
relies on the repository's conditional UPDATE for atomicity. A negative
delta reserves stock, a positive one restores it.
"""

from dataclasses import dataclass
from typing import Iterable, List
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.models import Product
from storefront.errors import InsufficientStockError, ProductNotFoundError
from storefront.repositories import ProductRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StockLine:
    """A quantity of one product to reserve or release."""
    product_id: UUID
    quantity: int


class InventoryLedger:
    """Atomic stock adjustments over the products table"""
    
    def __init__(self, session: AsyncSession):
        self.products = ProductRepository(session)
    
    async def adjust_stock(self, product_id: UUID, delta: int) -> Product:
        """
        Apply ``delta`` to a product's stock.
        
        Raises:
            ProductNotFoundError: the product does not exist
            InsufficientStockError: the stock would become negative
        """
        if await self.products.adjust_stock(product_id, delta):
            product = await self.products.get(product_id, refresh=True)
            logger.debug("Stock adjusted", product_id=str(product_id), delta=delta, stock=product.stock)
            return product
        
        product = await self.products.get(product_id, refresh=True)
        if product is None:
            raise ProductNotFoundError(product_id)
        
        logger.info(
            "Stock adjustment rejected",
            product_id=str(product_id),
            delta=delta,
            stock=product.stock,
        )
        raise InsufficientStockError(product.name, available=product.stock, requested=-delta)
    
    async def reserve(self, lines: Iterable[StockLine]) -> List[Product]:
        """Decrement stock for every line, in order. Stops at the first failure."""
        return [await self.adjust_stock(line.product_id, -line.quantity) for line in lines]
    
    async def release(self, lines: Iterable[StockLine]) -> List[Product]:
        """Return previously reserved stock for every line."""
        return [await self.adjust_stock(line.product_id, line.quantity) for line in lines]
