"""
Domain Errors

Exception taxonomy shared by the services and the HTTP layer. The API maps
each family to a status code in ``storefront.serving.api.errors``.
"""

from typing import Optional
from uuid import UUID


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


# =============================================================================
# NOT FOUND
# =============================================================================

class NotFoundError(StorefrontError):
    """Raised when an entity does not exist."""

    pass


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: UUID):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class OrderNotFoundError(NotFoundError):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Order {reference} not found")


class DiscountNotFoundError(NotFoundError):
    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Discount code {reference} not found")


# =============================================================================
# CONFLICT
# =============================================================================

class ConflictError(StorefrontError):
    """Raised when a request clashes with the current state of an entity."""

    pass


class DuplicateDiscountCodeError(ConflictError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} already exists")


class InvalidTransitionError(ConflictError):
    """Raised when an order status change is not allowed from its current status."""

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid status transition from {current} to {requested}")


class DiscountLimitReachedError(ConflictError):
    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Discount code {code} usage limit reached")


# =============================================================================
# INVALID INPUT
# =============================================================================

class InvalidInputError(StorefrontError):
    """Raised when a request fails validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class EmptyOrderError(InvalidInputError):
    def __init__(self):
        super().__init__("An order must contain at least one item", field="items")


class ProductInactiveError(InvalidInputError):
    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f"Product {product_name} is not available", field="items")


class InvalidDiscountCodeError(InvalidInputError):
    def __init__(self, code: str, reason: str):
        self.code = code
        self.reason = reason
        super().__init__(f"{reason}: {code}", field="discount_code")


# =============================================================================
# OTHER
# =============================================================================

class InsufficientStockError(StorefrontError):
    """Raised when a stock adjustment would leave a product below zero."""

    def __init__(self, product_name: str, available: Optional[int] = None, requested: Optional[int] = None):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(f"Insufficient stock for product {product_name}")


class RateLimitedError(StorefrontError):
    """Raised when a client exceeded its request budget."""

    def __init__(self, message: str, retry_after: int):
        self.retry_after = retry_after
        super().__init__(message)


class UnauthenticatedError(StorefrontError):
    pass


class ForbiddenError(StorefrontError):
    pass


class UpstreamError(StorefrontError):
    """Raised when the backing store or another dependency fails."""

    pass
