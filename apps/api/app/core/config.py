from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./tradeguard.sqlite"
    LOG_LEVEL: str = "INFO"
    CORS_ALLOW_ORIGINS: str = "*"
    EVENTS_LIMIT: int = 50
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_API_BASE_URL: str = "https://api.telegram.org"
    TELEGRAM_POLL_TIMEOUT: int = 30

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"
    )


settings = Settings()
