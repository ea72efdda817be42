"""
Runtime settings, read from the environment (.env is loaded by main.py).
"""
import os
from dataclasses import dataclass, field
from typing import List, Optional

APP_NAME = "Gemini Chat Relay"
APP_VERSION = "1.0.0"

PLACEHOLDER_KEYS = {"your_gemini_api_key_here", "your_api_key_here"}


def check_api_key(api_key: Optional[str]) -> bool:
    """Check if a Gemini API key looks usable"""
    if not api_key:
        return False
    api_key = api_key.strip()
    if not api_key or api_key in PLACEHOLDER_KEYS:
        return False
    if len(api_key) < 10:
        return False
    return True


def _split_origins(raw: str) -> List[str]:
    return [o.strip() for o in raw.split(",") if o.strip()]


@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_api_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_temperature: float = 0.7
    gemini_max_output_tokens: int = 1024
    gemini_timeout: float = 30.0
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "development"
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5000"]
    )

    @property
    def has_api_key(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.strip())

    @property
    def gemini_enabled(self) -> bool:
        return check_api_key(self.gemini_api_key)


def load_settings() -> Settings:
    """Build Settings from environment variables, falling back to defaults."""
    defaults = Settings()
    cors = os.getenv("CORS_ORIGINS")
    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", defaults.gemini_model),
        gemini_api_url=os.getenv("GEMINI_API_URL", defaults.gemini_api_url).rstrip("/"),
        gemini_temperature=float(os.getenv("GEMINI_TEMPERATURE", defaults.gemini_temperature)),
        gemini_max_output_tokens=int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", defaults.gemini_max_output_tokens)),
        gemini_timeout=float(os.getenv("GEMINI_TIMEOUT", defaults.gemini_timeout)),
        host=os.getenv("HOST", defaults.host),
        port=int(os.getenv("PORT", defaults.port)),
        environment=os.getenv("APP_ENV", defaults.environment),
        cors_origins=_split_origins(cors) if cors else defaults.cors_origins,
    )
