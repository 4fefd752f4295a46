# posapp/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./pos.db"   # URL базы заказов

    TIMEZONE: str = "UTC"                    # часовой пояс точки продаж (периоды и бакеты)
    NET_PROFIT_MARGIN: float = 0.4           # условная маржа для netProfit
    CUSTOM_MONTHLY_THRESHOLD_DAYS: int = 60  # custom-диапазон длиннее → группировка по месяцам
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100
    MAX_PAGE: int = 1_000_000                # offset = (page - 1) * limit должен влезать в BIGINT

    CORS_ORIGINS: list[str] = ["*"]

    LOG_DIR: str = "log"
    LOG_PRINT: str = "1"
    LOG_PRINT_DB: str = "0"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
