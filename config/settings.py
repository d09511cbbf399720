from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Backend API (defaults match the local gateway used in development)
    API_BASE_URL: str = "http://localhost:8080"
    CATALOG_PREFIX: str = "/api/catalog/api/v1"
    ORDER_PREFIX: str = "/api/order/api/v1"
    API_TIMEOUT_SECONDS: float = 10.0
    API_MAX_ATTEMPTS: int = 3
    API_RETRY_BASE_DELAY: float = 1.0
    API_RETRY_MAX_DELAY: float = 30.0

    # Order tracking
    ORDER_POLL_INTERVAL_SECONDS: float = 5.0

    # Read-model staleness windows
    ORDER_LIST_STALE_SECONDS: float = 30.0
    ORDER_DETAIL_STALE_SECONDS: float = 10.0
    PRODUCT_LIST_STALE_SECONDS: float = 120.0
    PRODUCT_DETAIL_STALE_SECONDS: float = 300.0

    # Idempotency keys are kept for 24h
    IDEMPOTENCY_TTL_SECONDS: int = 86_400

    DEFAULT_PAGE_LIMIT: int = 20

    # "api" talks to the REST backend, "local" uses the persisted local store
    DATA_SOURCE: str = "api"

    # Client-side persistence: "memory" or "redis"
    STORAGE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    STORAGE_NAMESPACE: str = "tec-burger"

    # App
    APP_NAME: str = "Tec Burger Storefront"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
