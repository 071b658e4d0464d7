"""
Repositories Module

One repository per table, each bound to the caller's AsyncSession.
"""
from .products import ProductRepository
from .orders import OrderRepository
from .discounts import DiscountRepository
from .users import UserRepository

__all__ = [
    "ProductRepository",
    "OrderRepository",
    "DiscountRepository",
    "UserRepository",
]
