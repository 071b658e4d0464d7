"""
Data Ingestion Module
"""
from .seed_db import seed_admin, seed_discount_codes, seed_products

__all__ = ["seed_admin", "seed_discount_codes", "seed_products"]
