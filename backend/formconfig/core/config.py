from pydantic_settings import BaseSettings
from typing import List
import logging


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "formconfig"
    APP_ENV: str = "development"
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./formconfig.db"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173", "http://127.0.0.1"]

    # Versioning
    INITIAL_VERSION: str = "1.0"
    # Publishing with no pending changes still advances the version unless disabled
    ALLOW_EMPTY_PUBLISH: bool = True

    # Seeding
    SEED_DEFAULT_CONFIGURATION: bool = True
    DEFAULT_CONFIGURATION_NAME: str = "Product Ticket Form"
    DEFAULT_TEMPLATE_NAME: str = "Default"

    # Editor recorded when the caller does not identify itself
    SYSTEM_USER: str = "system"

    class Config:
        env_file = ".env"


settings = Settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger(settings.APP_NAME)
