"""Store settings loaded from YAML.

Example `prefstore.yml`:

    prefix: app
    log_level: INFO
    defaults:
      counter: 0
      theme: dark
    backend:
      kind: file
      path: ./data/preferences
      format: yaml
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from .schema import DefaultSchema

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("data/config/prefstore.yml")


class BackendSettings(BaseModel):
    kind: Literal["memory", "file"] = "file"
    path: str = "./data/preferences"
    format: Literal["json", "yaml"] = "json"


class StoreSettings(BaseModel):
    prefix: str = ""
    defaults: Dict[str, Any] = Field(default_factory=dict)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    flush_retries: int = Field(default=2, ge=0)
    flush_retry_delay: float = Field(default=0.05, ge=0)
    log_level: Optional[str] = None

    @field_validator("defaults")
    @classmethod
    def _check_defaults(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        # InvalidSchema is a ValueError, reported as a validation error here
        DefaultSchema(v)
        return v


def load_settings(path: Optional[Path] = None) -> StoreSettings:
    """Load settings from `path`, falling back to defaults if it does not exist."""
    cfg_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        logger.info("No settings file at %s; using defaults", cfg_path)
        return StoreSettings()
    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    logger.debug("Loaded settings from %s", cfg_path)
    return StoreSettings.model_validate(raw)


def save_settings(settings: StoreSettings, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(settings.model_dump(), f, sort_keys=False)
