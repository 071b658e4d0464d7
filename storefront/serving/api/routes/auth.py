"""
Authentication Endpoints
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from storefront.schemas import LoginRequest, RefreshRequest
from storefront.serving.api.dependencies import get_auth_service, login_rate_limit
from storefront.services import AuthService

router = APIRouter()


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(login_rate_limit)])
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    pair = await service.login(request.email, request.password)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    request: RefreshRequest,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    pair = await service.refresh(request.refresh_token)
    return TokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)
