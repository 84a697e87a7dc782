"""Application configuration utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json."""

    database_path: str = Field(default="./data/pam.db")
    event_backend: Literal["sqlite", "supabase"] = Field(default="sqlite")
    default_jurisdiction: Optional[str] = Field(default=None, description="e.g. NSW, VIC")
    pattern_window_days: int = Field(default=7, ge=1, le=90)
    trend_window_days: int = Field(default=14, ge=3, le=90)
    insight_window_days: int = Field(default=7, ge=1, le=30)
    report_window_days: int = Field(default=30, ge=3, le=365)
    upcoming_days_ahead: int = Field(default=30, ge=1, le=365)

    @property
    def resolved_database_path(self) -> Path:
        """Return the absolute path for the SQLite database file."""
        return (Path(__file__).resolve().parents[1] / self.database_path).resolve()


def _config_path() -> Path:
    override = os.getenv("PAM_CONFIG_PATH")
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parents[1] / "config.json"


def load_config() -> AppConfig:
    """Load configuration from config.json, falling back to defaults when it is absent."""

    config_file = _config_path()
    if not config_file.exists():
        return AppConfig()

    contents: Dict[str, Any] = json.loads(config_file.read_text())
    return AppConfig(**contents)


CONFIG = load_config()
