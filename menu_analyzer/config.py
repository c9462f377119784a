# menu_analyzer/config.py
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    # App configuration from environment variables

    # Basic info
    APP_NAME: str = "Menu Analyzer API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Generative model (OpenRouter speaks the OpenAI wire format)
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_DEFAULT_MODEL: str = os.getenv(
        "DEFAULT_MODEL_NAME", "google/gemini-2.5-flash"
    )
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    MODEL_TIMEOUT_SECONDS: float = 60.0

    # Paths
    BASE_DIR: Path = Path(__file__).parent
    PROMPTS_DIR: Path = BASE_DIR / "core" / "prompts" / "templates"

    # Database
    DATABASE_URL: str = "sqlite:///./menu_analyzer.db"

    # Intake
    MAX_FILE_SIZE_MB: int = 15
    URL_FETCH_TIMEOUT_SECONDS: float = 15.0
    MIN_URL_TEXT_LENGTH: int = 50

    # Content validation thresholds
    VALIDATION_IMAGE_MIN_LENGTH: int = 10
    VALIDATION_MIN_LENGTH: int = 100
    VALIDATION_NO_PRICE_MAX_LENGTH: int = 500
    VALIDATION_NO_VOCAB_MAX_LENGTH: int = 200
    VALIDATION_REPETITION_MIN_TOKENS: int = 50
    VALIDATION_REPETITION_MIN_RATIO: float = 0.2

    # Quota
    DAILY_ANALYSIS_LIMIT: int = 10
    USAGE_TIMEZONE: str = "UTC"

    # Identity
    SESSION_COOKIE_NAME: str = "session"

    # Outbound CRM webhook
    CRM_WEBHOOK_URL: str = ""
    CRM_API_KEY: str = ""
    NOTIFY_TIMEOUT_SECONDS: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """Cache settings to avoid re-reading env file"""
    return Settings()
