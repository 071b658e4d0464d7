"""
Synthetic Data Module
"""
from .generators import DiscountCodeGenerator, ProductGenerator

__all__ = ["DiscountCodeGenerator", "ProductGenerator"]
