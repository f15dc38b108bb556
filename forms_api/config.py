"""Configuration utilities for the Forms API.

This module loads application configuration with the following rules:
- Primary source: `forms_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_FORMS_CONFIG = Path("forms_config.json")
DEFAULT_DSN = "sqlite+pysqlite:///:memory:"
AUDITABLE_ITEM_TYPES = ("Form", "Page", "Condition")
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


def _split_list(raw: Optional[str]) -> List[str]:
    return [part.strip() for part in str(raw or "").split(",") if part.strip()]


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class FeaturesConfig(BaseModel):
    # Translate single_line/long_text answer types at the request boundary
    accept_legacy_answer_types: bool = Field(default=False)


class AuditConfig(BaseModel):
    enabled_item_types: List[str] = Field(default_factory=lambda: list(AUDITABLE_ITEM_TYPES))

    @field_validator("enabled_item_types")
    @classmethod
    def item_types_must_be_known(cls, v: List[str]) -> List[str]:
        unknown = sorted(set(v) - set(AUDITABLE_ITEM_TYPES))
        if unknown:
            raise ValueError(f"audit.enabled_item_types has unknown types {unknown}")
        return v


class CorsConfig(BaseModel):
    origins: List[str] = Field(default_factory=lambda: ["*"])


class AppConfig(BaseModel):
    database: DatabaseConfig
    features: FeaturesConfig
    audit: AuditConfig
    cors: CorsConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def _truthy(text: Optional[str]) -> bool:
    return str(text or "").strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) forms_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_FORMS_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(item) for item in cur)
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or DEFAULT_DSN
    )

    legacy_text = (
        _env("ACCEPT_LEGACY_ANSWER_TYPES")
        or _read_config_file("features.accept_legacy_answer_types")
        or _base("features.accept_legacy_answer_types", "false")
    )

    audit_text = (
        _env("AUDIT_ITEM_TYPES")
        or _read_config_file("audit.item_types")
        or _base("audit.enabled_item_types", ",".join(AUDITABLE_ITEM_TYPES))
    )

    cors_text = _env("CORS_ORIGINS") or _read_config_file("cors.origins") or _base("cors.origins", "*")

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            features=FeaturesConfig(accept_legacy_answer_types=_truthy(legacy_text)),
            audit=AuditConfig(enabled_item_types=_split_list(audit_text)),
            cors=CorsConfig(origins=_split_list(cors_text) or ["*"]),
        )
    except PydanticValidationError as e:
        logger.error("Invalid application configuration: %s", e)
        raise


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Return the process-wide configuration; call ``get_config.cache_clear()`` after env changes."""
    return load_config()


def get_features() -> FeaturesConfig:
    """FastAPI dependency exposing feature switches to route handlers."""
    return get_config().features


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "FeaturesConfig",
    "AuditConfig",
    "CorsConfig",
    "load_config",
    "get_config",
    "get_features",
]
