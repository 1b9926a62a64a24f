"""
Lightweight config loader.

- Loads environment variables from .env at module import.
- Provides a simple Settings wrapper around os.environ with sane defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env once (workspace root .env)
load_dotenv(Path(__file__).resolve().parents[2] / ".env")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env(key: str, default: str | None = None) -> str | None:
    return os.environ.get(key, default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "on"}


def _env_int(key: str, default: int) -> int:
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


class Settings:
    """Thin wrapper over os.environ with defaults and helpers."""

    def __init__(self) -> None:
        # App
        self.app_name: str = _env("APP_NAME", "canvas-flow") or "canvas-flow"
        self.environment: str = _env("ENVIRONMENT", "development") or "development"
        self.debug: bool = _env_bool("DEBUG", False)
        self.log_level: str = (_env("LOG_LEVEL", "INFO") or "INFO").upper()

        # Canvas layout
        self.layout_frame_width: int = _env_int("LAYOUT_FRAME_WIDTH", 600)
        self.layout_frame_height: int = _env_int("LAYOUT_FRAME_HEIGHT", 400)
        self.layout_vertical_spacing: int = _env_int("LAYOUT_VERTICAL_SPACING", 500)
        self.layout_column_gap: int = _env_int("LAYOUT_COLUMN_GAP", 800)
        self.layout_step_spacing: int = _env_int("LAYOUT_STEP_SPACING", 500)
        self.layout_batch_spacing: int = _env_int("LAYOUT_BATCH_SPACING", 200)

        # Generation defaults
        self.default_image_model: str = _env("DEFAULT_IMAGE_MODEL", "seedream-4.5") or "seedream-4.5"
        self.default_video_model: str = _env("DEFAULT_VIDEO_MODEL", "Veo 3.1 Fast") or "Veo 3.1 Fast"

        # Prompt completion (Gemini via LangChain)
        self.google_api_key: str | None = _env("GOOGLE_API_KEY")
        self.prompt_model: str = _env("PROMPT_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash"
        self.prompt_temperature: float = _env_float("PROMPT_TEMPERATURE", 0.7)
        self.script_max_tokens: int = _env_int("SCRIPT_MAX_TOKENS", 1500)
        self.condense_max_tokens: int = _env_int("CONDENSE_MAX_TOKENS", 200)
        self.min_script_length: int = _env_int("MIN_SCRIPT_LENGTH", 50)
        self.condense_threshold: int = _env_int("CONDENSE_THRESHOLD", 200)

        # Canvas ops API (durable persistence)
        self.canvas_api_url: str = (
            _env("CANVAS_API_URL", "http://localhost:3000/api/canvas")
            or "http://localhost:3000/api/canvas"
        )
        self.canvas_api_token: str | None = _env("CANVAS_API_TOKEN")
        self.canvas_api_timeout: float = _env_float("CANVAS_API_TIMEOUT", 30.0)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


def get_settings() -> Settings:
    return Settings()


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging for hosts embedding the engine."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
