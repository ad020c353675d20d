"""Runtime configuration read from the environment (and an optional .env file)."""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

DEFAULT_ORIGINS = ("http://localhost:8081", "https://tuappfront.vercel.app")
ALLOWED_AUDIO_TYPES = frozenset({"audio/m4a", "audio/mp3", "audio/wav"})
MAX_UPLOAD_BYTES = 25 * 1024 * 1024
MAX_SUMMARY_CHARS = 20000
MAX_JSON_BYTES = 2 * 1024 * 1024

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    groq_api_key: str = ""
    host: str = "0.0.0.0"
    port: int = 5000
    allowed_origins: tuple[str, ...] = DEFAULT_ORIGINS
    upload_dir: str = "uploads"
    allowed_audio_types: frozenset[str] = field(default=ALLOWED_AUDIO_TYPES)
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    max_summary_chars: int = MAX_SUMMARY_CHARS
    max_json_bytes: int = MAX_JSON_BYTES
    rate_limit: int = 15
    rate_window_seconds: float = 60.0
    summary_language: str = "Spanish"
    upstream_timeout: float = 120.0
    log_level: str = "INFO"


def _split_origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return DEFAULT_ORIGINS
    return tuple(origin.strip() for origin in raw.split(",") if origin.strip())


def load_settings() -> Settings:
    """Load .env (if any) and build the settings from the environment."""
    load_dotenv()
    return Settings(
        groq_api_key=os.getenv("GROQ_API_KEY", ""),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "5000")),
        allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS")),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        summary_language=os.getenv("SUMMARY_LANGUAGE", "Spanish"),
        upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT", "120")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the package logger."""
    logger = logging.getLogger("noter_gateway")
    logger.setLevel(level)
    if not logger.handlers:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(stream_handler)
    return logger
