"""Configuration utilities for the audit logic service.

This module loads application configuration with the following rules:
- Primary source: `audit_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from app.logic.answer_store import CASCADE_MODES, CASCADE_SINGLE_PASS


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("audit_config.json")
DEFAULT_DSN = "sqlite+pysqlite:///:memory:"
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(text: Optional[str]) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class EngineConfig(BaseModel):
    cascade_mode: str = Field(default=CASCADE_SINGLE_PASS)
    critical_forces_fail: bool = Field(default=False)
    # 0 keeps idle respondent sessions forever
    session_idle_seconds: int = Field(default=3600, ge=0)

    @field_validator("cascade_mode")
    @classmethod
    def cascade_mode_must_be_allowed(cls, v: str) -> str:
        if v not in CASCADE_MODES:
            raise ValueError(f"engine.cascade_mode must be one of {sorted(CASCADE_MODES)}")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    engine: EngineConfig
    auto_apply_migrations: bool = True


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) audit_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or DEFAULT_DSN
    )
    cascade_mode = (
        _env("CASCADE_MODE") or _read_config_file("engine.cascade_mode") or _base("engine.cascade_mode", CASCADE_SINGLE_PASS)
    ).strip()
    critical_text = (
        _env("CRITICAL_FORCES_FAIL") or _read_config_file("engine.critical_forces_fail") or _base("engine.critical_forces_fail", "false")
    )
    idle_text = (
        _env("SESSION_IDLE_SECONDS") or _read_config_file("engine.session_idle_seconds") or _base("engine.session_idle_seconds", "3600")
    ).strip()
    migrations_text = _env("AUTO_APPLY_MIGRATIONS") or _base("auto_apply_migrations", "true")

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            engine=EngineConfig(
                cascade_mode=cascade_mode,
                critical_forces_fail=_truthy(critical_text),
                session_idle_seconds=idle_text,
            ),
            auto_apply_migrations=_truthy(migrations_text),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    return load_config()


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "EngineConfig",
    "load_config",
    "get_config",
]
