from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 60.0

    azure_ocr_endpoint: Optional[str] = None
    azure_ocr_key: Optional[str] = None
    ocr_poll_interval: float = 1.0
    ocr_max_attempts: int = 10

    # None keeps trivia in process memory
    redis_url: Optional[str] = None
    trivia_ttl_seconds: int = 60 * 60 * 48

    firebase_service_account: Optional[str] = None

    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    rate_limit_enabled: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_timeout=float(os.getenv("OPENAI_TIMEOUT", "60")),
            azure_ocr_endpoint=os.getenv("AZURE_OCR_ENDPOINT"),
            azure_ocr_key=os.getenv("AZURE_OCR_KEY"),
            ocr_poll_interval=float(os.getenv("OCR_POLL_INTERVAL", "1.0")),
            ocr_max_attempts=int(os.getenv("OCR_MAX_ATTEMPTS", "10")),
            redis_url=os.getenv("REDIS_URL"),
            trivia_ttl_seconds=int(os.getenv("TRIVIA_TTL_SECONDS", str(60 * 60 * 48))),
            firebase_service_account=os.getenv("FIREBASE_SERVICE_ACCOUNT"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
