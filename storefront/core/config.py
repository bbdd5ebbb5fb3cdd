# storefront/core/config.py

import logging

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load variables from a local .env file into the environment.
load_dotenv()


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables.
    """
    PROJECT_NAME: str = "Storefront API"
    API_V1_STR: str = "/api/v1"

    # --- Database ---
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # --- JWT (authentication) ---
    SECRET_KEY: str = "super-secret-key-that-should-be-in-env"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(case_sensitive=True)


# Single settings instance shared by the whole application.
settings = Settings()


def setup_logging():
    """Configure the root logger once for the process."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=log_format,
        handlers=[logging.StreamHandler()],
    )
