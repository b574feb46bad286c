"""
Shop Reports Settings

Configuration management using pydantic settings.
Loads from environment variables with SHOP_REPORTS_ prefix.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """
    Application configuration settings.

    Environment variables:
    - SHOP_REPORTS_DATABASE_URL: SQLAlchemy database URL (default: local SQLite file)
    - SHOP_REPORTS_ECHO_SQL: Log every SQL statement (default: false)
    - SHOP_REPORTS_LOG_LEVEL: Root log level (default: INFO)
    - SHOP_REPORTS_DEFAULT_REPORT_LIMIT: Row limit for top-N reports (default: 5)
    - SHOP_REPORTS_SEED_ON_STARTUP: Load the demo dataset into an empty database (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="SHOP_REPORTS_",
        env_file=".env",
        extra="ignore",
    )

    database_url: str = "sqlite:///./shop_reports.db"
    echo_sql: bool = False
    log_level: str = "INFO"

    default_report_limit: int = 5

    seed_on_startup: bool = False


settings = Settings()
