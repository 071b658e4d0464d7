"""
FastAPI Dependencies

Service construction per request, bearer credential guards and the login
rate limit.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.database.connection import get_db_dependency
from storefront.errors import ForbiddenError, RateLimitedError, UnauthenticatedError
from storefront.serving.api.middleware import client_address
from storefront.serving.rate_limit import RateLimiter
from storefront.services import (
    AuthService,
    CredentialService,
    DiscountService,
    OrderService,
    ProductService,
    TokenClaims,
)

bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# SERVICES
# =============================================================================

def get_credential_service(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_order_service(db: AsyncSession = Depends(get_db_dependency)) -> OrderService:
    return OrderService(db)


def get_discount_service(db: AsyncSession = Depends(get_db_dependency)) -> DiscountService:
    return DiscountService(db)


def get_product_service(db: AsyncSession = Depends(get_db_dependency)) -> ProductService:
    return ProductService(db)


def get_auth_service(
    db: AsyncSession = Depends(get_db_dependency),
    credentials: CredentialService = Depends(get_credential_service),
) -> AuthService:
    return AuthService(db, credentials)


# =============================================================================
# CREDENTIALS
# =============================================================================

def get_current_user(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    credentials: CredentialService = Depends(get_credential_service),
) -> TokenClaims:
    """Claims of the caller; 401 without a valid bearer token."""
    if bearer is None or bearer.scheme.lower() != "bearer":
        raise UnauthenticatedError("Authentication token required")
    return credentials.validate(bearer.credentials)


def get_optional_user(
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    credentials: CredentialService = Depends(get_credential_service),
) -> Optional[TokenClaims]:
    """Claims of the caller if a valid token was sent, anonymous otherwise."""
    if bearer is None:
        return None
    try:
        return credentials.validate(bearer.credentials)
    except UnauthenticatedError:
        return None


def require_admin(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    if not user.is_admin:
        raise ForbiddenError("Administrator permissions required")
    return user


# =============================================================================
# RATE LIMITS
# =============================================================================

def get_login_limiter(request: Request) -> RateLimiter:
    return request.app.state.login_limiter


async def login_rate_limit(
    request: Request,
    limiter: RateLimiter = Depends(get_login_limiter),
) -> None:
    """Stricter per-address budget for login attempts."""
    decision = await limiter.hit(client_address(request))
    if not decision.allowed:
        raise RateLimitedError(
            f"Too many login attempts. Try again in {decision.retry_after_minutes} minutes.",
            retry_after=decision.retry_after_seconds,
        )
