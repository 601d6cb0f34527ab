"""Application configuration utilities."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json."""

    recent_activity_limit: int = Field(default=50, ge=1, le=500)
    log_level: str = Field(default="INFO")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )


def _config_path() -> Path:
    return Path(__file__).resolve().parents[1] / "config.json"


def load_config() -> AppConfig:
    """Load configuration from config.json, raising helpful errors if missing."""

    config_file = _config_path()
    if not config_file.exists():
        example = config_file.with_name("config.example.json")
        raise FileNotFoundError(
            "Missing config.json. Copy config.example.json and adjust it for your environment."
            f" Expected at {config_file}. Example file: {example}"
        )

    contents: Dict[str, Any] = json.loads(config_file.read_text())
    return AppConfig(**contents)


CONFIG = load_config()
