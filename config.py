# config.py
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_ENV: str = "development"
    APP_PORT: int = 5000

    # LLM backend (optional). Leave GROQ_API_KEY empty to answer with rules only.
    GROQ_API_KEY: str = ""
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    GROQ_MODEL: str = "llama3-70b-8192"
    LLM_ENABLED: bool = True
    LLM_TIMEOUT_SECONDS: float = 25.0
    LLM_MAX_TOKENS: int = 1000

    # IANA zone used for day grouping and clock formatting
    CALENDAR_TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def llm_available(self) -> bool:
        return self.LLM_ENABLED and bool(self.GROQ_API_KEY.strip())


@lru_cache()
def get_settings() -> Settings:
    return Settings()
