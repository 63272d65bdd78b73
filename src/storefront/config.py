from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STOREFRONT_", env_file=".env", extra="ignore")

    app_name: str = "storefront"
    env: str = "dev"

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    redis_socket_timeout: float = Field(
        default=1.0, gt=0, validation_alias="REDIS_SOCKET_TIMEOUT"
    )
    redis_connect_timeout: float = Field(
        default=1.0, gt=0, validation_alias="REDIS_CONNECT_TIMEOUT"
    )
    redis_max_connections: int = Field(default=50, gt=0, validation_alias="REDIS_MAX_CONNECTIONS")

    # Read-through cache
    cache_key_prefix: str = Field(default="storefront", validation_alias="CACHE_KEY_PREFIX")
    cache_default_stale_time: int = Field(
        default=5, ge=0, validation_alias="CACHE_DEFAULT_STALE_TIME"
    )
    # Ceiling on how long a crashed holder can block other processes
    cache_lock_ttl: int = Field(default=10, gt=0, validation_alias="CACHE_LOCK_TTL")
    cache_lock_backoff_ms: int = Field(default=100, gt=0, validation_alias="CACHE_LOCK_BACKOFF_MS")
    cache_invalidate_batch_size: int = Field(
        default=100, gt=0, validation_alias="CACHE_INVALIDATE_BATCH_SIZE"
    )

    # Catalog TTLs (seconds)
    products_list_ttl: int = Field(default=60, gt=0, validation_alias="PRODUCTS_LIST_TTL")
    product_detail_ttl: int = Field(default=60, gt=0, validation_alias="PRODUCT_DETAIL_TTL")
    admin_list_ttl: int = Field(default=300, gt=0, validation_alias="ADMIN_LIST_TTL")
    catalog_stale_time: int = Field(default=10, ge=0, validation_alias="CATALOG_STALE_TIME")

    # Observability
    enable_metrics: bool = Field(default=True, validation_alias="ENABLE_METRICS")
    log_level: str = "INFO"
    log_json: bool = Field(default=True, validation_alias="LOG_JSON")


settings = Settings()
