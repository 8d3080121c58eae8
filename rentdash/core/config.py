"""Application settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration."""

    APP_NAME: str = "Rental Dashboard Reports"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # API
    API_V1_PREFIX: str = "/api/v1"
    PUBLIC_BASE_URL: str = "http://localhost:5173"

    # Upstream reports API
    REPORTS_API_BASE_URL: str = "http://localhost:3001/api"
    REPORTS_API_TIMEOUT: float = 30.0

    # Reports
    REPORT_HISTORY_LIMIT: int = 10
    MAX_REPORT_RANGE_DAYS: int = 730  # 2 years
    DEFAULT_REPORT_RANGE_DAYS: int = 30

    # Generation progress ticker (cosmetic only)
    PROGRESS_TICK_SECONDS: float = 0.2
    PROGRESS_RESET_SECONDS: float = 1.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
