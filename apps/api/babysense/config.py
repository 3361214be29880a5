"""Application configuration utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json and the environment."""

    openai_api_key: Optional[str] = Field(default=None)
    openai_audio_model: str = Field(default="gpt-4o-audio-preview")
    cry_classifier: str = Field(default="canned", description="canned | openai")
    recent_activity_limit: int = Field(default=50, ge=1)
    recent_analysis_limit: int = Field(default=10, ge=1)
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )


_ENV_OVERRIDES = {
    "OPENAI_API_KEY": "openai_api_key",
    "BABYSENSE_OPENAI_AUDIO_MODEL": "openai_audio_model",
    "BABYSENSE_CRY_CLASSIFIER": "cry_classifier",
}


def _config_path() -> Path:
    return Path(__file__).resolve().parents[1] / "config.json"


def load_config() -> AppConfig:
    """Load config.json when present and apply environment overrides."""

    contents: Dict[str, Any] = {}
    config_file = _config_path()
    if config_file.exists():
        contents = json.loads(config_file.read_text())

    for env_name, field_name in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            contents[field_name] = value
    origins = os.getenv("BABYSENSE_CORS_ORIGINS")
    if origins:
        contents["cors_origins"] = [item.strip() for item in origins.split(",") if item.strip()]
    return AppConfig(**contents)


CONFIG = load_config()
