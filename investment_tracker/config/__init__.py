"""
Application Settings
Load from environment variables
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3000

    # ======================
    # Storage
    # ======================
    PORTFOLIO_FILE: str = "data/portfolio.json"
    STATIC_DIR: str = "docs"
    CONFIG_DIR: str = "config"

    # ======================
    # Market Data
    # ======================
    YAHOO_BASE_URL: str = "https://query1.finance.yahoo.com"
    MFAPI_BASE_URL: str = "https://api.mfapi.in"
    DEFAULT_MARKET_SUFFIX: str = ".NS"
    QUOTE_TIMEOUT_SECONDS: float = 10.0
    NAV_TIMEOUT_SECONDS: float = 5.0
    SEARCH_TIMEOUT_SECONDS: float = 5.0
    SEARCH_RESULT_LIMIT: int = 8

    # ======================
    # Refresh
    # ======================
    REFRESH_CONCURRENCY: int = 1
    NAME_LOOKUP_DELAY_SECONDS: float = 0.5

    # ======================
    # Timezone
    # ======================
    TIMEZONE: str = "Asia/Kolkata"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
