"""
Services Module
"""
from .inventory import InventoryLedger, StockLine
from .discounts import DiscountService, DiscountValidation
from .order_status import OrderStateMachine, TRANSITIONS, can_transition
from .orders import OrderService, generate_order_number
from .products import ProductService
from .auth import AuthService, CredentialService, TokenClaims
from .pagination import Page, PageRequest, clamp_page

__all__ = [
    "InventoryLedger",
    "StockLine",
    "DiscountService",
    "DiscountValidation",
    "OrderStateMachine",
    "TRANSITIONS",
    "can_transition",
    "OrderService",
    "generate_order_number",
    "ProductService",
    "AuthService",
    "CredentialService",
    "TokenClaims",
    "Page",
    "PageRequest",
    "clamp_page",
]
