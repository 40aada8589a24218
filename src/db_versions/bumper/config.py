"""Configuration loader for the version bumper (environment + CLI overrides)."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import UsageError

DEFAULT_DOCUMENT_PATH = Path(".db-versions.yml")

_ENV_KEYS = {
    "document_path": "DB_VERSIONS_FILE",
    "lock_timeout_seconds": "DB_VERSIONS_LOCK_TIMEOUT",
    "log_level": "DB_VERSIONS_LOG_LEVEL",
}


class BumperConfig(BaseModel):
    document_path: Path = Field(DEFAULT_DOCUMENT_PATH, description="Version document, relative to the cwd")
    lock_timeout_seconds: float = Field(5.0, ge=0, description="Wait for the lock file; 0 disables locking")
    log_level: str = Field("WARNING", description="Root logging level")

    model_config = ConfigDict(extra="forbid")

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level: {value}")
        return level


def load_config(env: Optional[Mapping[str, str]] = None, **overrides: Any) -> BumperConfig:
    """
    Build a BumperConfig from environment variables, then non-None overrides.

    Raises
    ------
    UsageError
        If any value fails validation.
    """
    source = os.environ if env is None else env
    values: dict[str, Any] = {}
    for field, key in _ENV_KEYS.items():
        raw = (source.get(key) or "").strip()
        if raw:
            values[field] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return BumperConfig.model_validate(values)
    except ValidationError as exc:
        raise UsageError(f"invalid configuration: {exc}") from exc
