from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./shipradar.db"
    LOG_LEVEL: str = "INFO"
    # Upstream vessel-tracking service (serves /api/get-tracked-vessels)
    API_BASE_URL: str = "http://localhost:5000"
    TRACKED_VESSELS_TIMEOUT: float = 30.0
    # Backoff delays (seconds) between fetch attempts; empty = single attempt
    TRACKED_VESSELS_RETRY_DELAYS: list[float] = []
    # Vessel grid
    GRID_PAGE_SIZE: int = 5
    MAX_QUERY_LIMIT: int = 500
    # Per-client request limit applied to every API route
    RATE_LIMIT: str = "60/minute"
    # API authentication (if unset, all requests pass)
    SHIPRADAR_API_KEY: str | None = None
    # CORS origins (comma-separated string for env var support)
    CORS_ORIGINS: str = "http://localhost:3000"


settings = Settings()
