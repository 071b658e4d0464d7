"""
Credentials

Signed access and refresh tokens (PyJWT) carrying (user id, email, role),
and the login flow that issues them after a bcrypt password check.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

import bcrypt
import jwt
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import get_settings
from storefront.config.settings import SecuritySettings
from storefront.database.models import UserRole
from storefront.errors import UnauthenticatedError
from storefront.repositories import UserRepository

logger = structlog.get_logger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class TokenClaims:
    user_id: UUID
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


class CredentialService:
    """Issue and validate signed credentials"""

    def __init__(self, settings: Optional[SecuritySettings] = None):
        self.settings = settings or get_settings().security

    def _secret(self, token_type: str) -> str:
        if token_type == REFRESH:
            return self.settings.jwt_refresh_secret_key.get_secret_value()
        return self.settings.jwt_secret_key.get_secret_value()

    def _issue(self, claims: TokenClaims, token_type: str, lifetime: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "role": claims.role.value,
            "type": token_type,
            "iat": now,
            "exp": now + lifetime,
        }
        return jwt.encode(payload, self._secret(token_type), algorithm=self.settings.jwt_algorithm)

    def issue_access_token(self, user_id: UUID, email: str, role: UserRole) -> str:
        return self._issue(
            TokenClaims(user_id, email, role),
            ACCESS,
            timedelta(minutes=self.settings.jwt_expiration_minutes),
        )

    def issue_refresh_token(self, user_id: UUID, email: str, role: UserRole) -> str:
        return self._issue(
            TokenClaims(user_id, email, role),
            REFRESH,
            timedelta(hours=self.settings.jwt_refresh_expiration_hours),
        )

    def issue_pair(self, user_id: UUID, email: str, role: UserRole) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(user_id, email, role),
            refresh_token=self.issue_refresh_token(user_id, email, role),
        )

    def validate(self, token: str, token_type: str = ACCESS) -> TokenClaims:
        """
        Decode a token and return its claims.

        Raises:
            UnauthenticatedError: bad signature, expired, malformed or of the
                wrong type
        """
        try:
            payload = jwt.decode(
                token,
                self._secret(token_type),
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["sub", "exp", "type"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise UnauthenticatedError("Token expired") from e
        except jwt.InvalidTokenError as e:
            raise UnauthenticatedError("Invalid token") from e

        if payload.get("type") != token_type:
            raise UnauthenticatedError("Invalid token type")

        try:
            return TokenClaims(
                user_id=UUID(payload["sub"]),
                email=payload.get("email", ""),
                role=UserRole(payload.get("role", UserRole.CUSTOMER.value)),
            )
        except ValueError as e:
            raise UnauthenticatedError("Invalid token claims") from e


class AuthService:
    """Login and token refresh"""

    def __init__(self, session: AsyncSession, credentials: Optional[CredentialService] = None):
        self.users = UserRepository(session)
        self.credentials = credentials or CredentialService()

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self.users.get_by_email(email)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Login failed", email=email)
            raise UnauthenticatedError("Invalid email or password")

        logger.info("Login succeeded", user_id=str(user.id))
        return self.credentials.issue_pair(user.id, user.email, user.role)

    async def refresh(self, refresh_token: str) -> TokenPair:
        claims = self.credentials.validate(refresh_token, REFRESH)
        user = await self.users.get(claims.user_id)
        if user is None or not user.is_active:
            raise UnauthenticatedError("User no longer active")
        return TokenPair(
            access_token=self.credentials.issue_access_token(user.id, user.email, user.role),
            refresh_token=refresh_token,
        )
