"""Configuration settings for the program ingestor API."""
import os
from typing import Literal


EnvironmentType = Literal["development", "staging", "production"]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Application settings."""

    # Feature flags
    HELICONE_ENABLED: bool = False
    PARTIAL_PROGRAMS_ALLOWED: bool = True

    # Environment
    ENVIRONMENT: EnvironmentType = "development"

    # API Keys
    OPENAI_API_KEY: str | None = None
    HELICONE_API_KEY: str | None = None

    # Extraction
    OPENAI_MODEL: str = "gpt-4o"
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_ATTEMPTS: int = 3
    LLM_RETRY_BASE_SECONDS: float = 2.0

    # Uploads
    MAX_SHEET_ROWS: int = 100
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"

        # Feature flags
        self.HELICONE_ENABLED = os.getenv("HELICONE_ENABLED", "false").lower() == "true"
        self.PARTIAL_PROGRAMS_ALLOWED = os.getenv("PARTIAL_PROGRAMS_ALLOWED", "true").lower() == "true"

        # API Keys
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
        self.HELICONE_API_KEY = os.getenv("HELICONE_API_KEY")

        # Extraction
        self.OPENAI_MODEL = os.getenv("OPENAI_MODEL", self.OPENAI_MODEL)
        self.LLM_TIMEOUT_SECONDS = _env_float("LLM_TIMEOUT_SECONDS", self.LLM_TIMEOUT_SECONDS)
        self.LLM_MAX_ATTEMPTS = _env_int("LLM_MAX_ATTEMPTS", self.LLM_MAX_ATTEMPTS)
        self.LLM_RETRY_BASE_SECONDS = _env_float("LLM_RETRY_BASE_SECONDS", self.LLM_RETRY_BASE_SECONDS)

        # Uploads
        self.MAX_SHEET_ROWS = _env_int("MAX_SHEET_ROWS", self.MAX_SHEET_ROWS)
        self.MAX_UPLOAD_BYTES = _env_int("MAX_UPLOAD_BYTES", self.MAX_UPLOAD_BYTES)


settings = Settings()
