"""Runtime configuration for the SoundMatch service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]

# Load environment variables from project root .env (if present)
load_dotenv(ROOT_DIR / ".env")

DEFAULT_SUPPORTED_FORMATS = "image/jpeg,image/png,image/webp,image/gif"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


class ConfigurationError(ValueError):
    """Raised when a required setting is missing."""


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    openai_api_key: str | None = None
    openai_model: str = "chatgpt-4o-latest"
    openai_base_url: str = "https://api.openai.com/v1"
    openai_max_tokens: int = 500
    openai_temperature: float = 0.7
    weaviate_url: str = "http://localhost:8080"
    weaviate_api_key: str | None = None
    max_file_size: int = 5_000_000
    supported_formats: list[str] = field(
        default_factory=lambda: _split_csv(DEFAULT_SUPPORTED_FORMATS)
    )
    cors_origins: list[str] = field(
        default_factory=lambda: _split_csv(DEFAULT_CORS_ORIGINS)
    )
    http_timeout_seconds: float = 60.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "chatgpt-4o-latest"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_max_tokens=int(os.getenv("OPENAI_MAX_TOKENS", "500")),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", "0.7")),
            weaviate_url=os.getenv("WEAVIATE_URL", "http://localhost:8080"),
            weaviate_api_key=os.getenv("WEAVIATE_API_KEY") or None,
            max_file_size=int(os.getenv("MAX_FILE_SIZE", "5000000")),
            supported_formats=_split_csv(
                os.getenv("SUPPORTED_FORMATS", DEFAULT_SUPPORTED_FORMATS)
            ),
            cors_origins=_split_csv(os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "60")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_openai_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY not found in environment variables. "
                "Please create a .env file with your API key."
            )
        return self.openai_api_key
