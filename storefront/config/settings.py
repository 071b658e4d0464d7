"""
Storefront Order Service configuration.

Every section reads its own environment prefix; ``Settings`` bundles them and
also reads ``.env``. Call ``get_settings()`` rather than building ``Settings``
directly so the process shares one instance.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL connection (``POSTGRES_*``), or ``DATABASE_URL`` when given."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = "localhost"
    port: int = 5432
    db: str = "storefront"
    user: str = "storefront"
    password: SecretStr = SecretStr("secure_password")
    echo: bool = Field(default=False, description="Log every SQL statement")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    auto_create_schema: bool = Field(default=False, description="Run create_all on startup")

    @property
    def async_url(self) -> str:
        if self.url:
            return self.url
        credentials = f"{self.user}:{self.password.get_secret_value()}"
        return f"postgresql+asyncpg://{credentials}@{self.host}:{self.port}/{self.db}"


class RedisSettings(BaseSettings):
    """Order tracking cache (``REDIS_*``). The service runs without it."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[SecretStr] = None
    url: Optional[str] = Field(default=None, alias="REDIS_URL")
    max_connections: int = 100
    socket_timeout: int = Field(default=5, description="Seconds")
    decode_responses: bool = True

    def get_url(self) -> str:
        if self.url:
            return self.url
        auth = f":{self.password.get_secret_value()}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class SecuritySettings(BaseSettings):
    """Token signing, the global request budget and CORS."""

    model_config = SettingsConfigDict(env_prefix="")

    jwt_secret_key: SecretStr = Field(default=SecretStr("jwt-secret-change-me"), alias="JWT_SECRET_KEY")
    jwt_refresh_secret_key: SecretStr = Field(
        default=SecretStr("jwt-refresh-secret-change-me"),
        alias="JWT_REFRESH_SECRET_KEY",
    )
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    jwt_expiration_minutes: int = Field(default=15, alias="JWT_EXPIRATION_MINUTES")
    jwt_refresh_expiration_hours: int = Field(default=168, alias="JWT_REFRESH_EXPIRATION_HOURS")

    # Per client IP, per worker process
    rate_limit_requests: int = Field(default=100, gt=0, alias="RATE_LIMIT_REQUESTS")
    rate_limit_window_seconds: int = Field(default=60, gt=0, alias="RATE_LIMIT_WINDOW_SECONDS")

    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]


class MonitoringSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "text"] = Field(default="json", alias="LOG_FORMAT")


class OrderSettings(BaseSettings):
    """Checkout behaviour and list paging (``ORDERS_*``)."""

    model_config = SettingsConfigDict(env_prefix="ORDERS_")

    order_number_prefix: str = "ORD"
    order_number_attempts: int = Field(default=5, ge=1)
    # False: an unusable code is ignored and the order is placed at full price
    strict_discount_codes: bool = False
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    @model_validator(mode="after")
    def check_page_sizes(self) -> "OrderSettings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("ORDERS_DEFAULT_PAGE_SIZE cannot exceed ORDERS_MAX_PAGE_SIZE")
        return self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Storefront Order API", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development",
        alias="APP_ENV",
    )
    version: str = "1.0.0"

    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    api_workers: int = Field(default=4, alias="API_WORKERS")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    orders: OrderSettings = Field(default_factory=OrderSettings)

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()
