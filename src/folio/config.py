"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    raw = _env(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        msg = f"{key} must be an integer, got {raw!r}"
        raise ValueError(msg) from None


@dataclass(frozen=True)
class CosmosConfig:
    endpoint: str = field(default_factory=lambda: _env("COSMOS_ENDPOINT"))
    key: str = field(default_factory=lambda: _env("COSMOS_KEY"))
    database: str = field(default_factory=lambda: _env("COSMOS_DATABASE", "folio"))
    create_if_missing: bool = field(
        default_factory=lambda: _env("COSMOS_CREATE_IF_MISSING", "false").lower() == "true"
    )


@dataclass(frozen=True)
class EditorConfig:
    """Timing and sizing knobs for the editor workspace."""

    autosave_debounce_ms: int = field(
        default_factory=lambda: _env_int("FOLIO_AUTOSAVE_DEBOUNCE_MS", 1200)
    )
    saved_display_ms: int = field(default_factory=lambda: _env_int("FOLIO_SAVED_DISPLAY_MS", 1200))
    excerpt_max_length: int = field(
        default_factory=lambda: _env_int("FOLIO_EXCERPT_MAX_LENGTH", 200)
    )
    draft_list_limit: int = field(default_factory=lambda: _env_int("FOLIO_DRAFT_LIST_LIMIT", 100))

    @property
    def autosave_debounce(self) -> float:
        return self.autosave_debounce_ms / 1000

    @property
    def saved_display(self) -> float:
        return self.saved_display_ms / 1000


@dataclass(frozen=True)
class AppConfig:
    env: str = field(default_factory=lambda: _env("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: _env("APP_LOG_LEVEL", "INFO"))
    secret_key: str = field(default_factory=lambda: _env("APP_SECRET_KEY", "dev-secret"))

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@dataclass(frozen=True)
class MonitorConfig:
    connection_string: str = field(
        default_factory=lambda: _env("APPLICATIONINSIGHTS_CONNECTION_STRING")
    )


@dataclass(frozen=True)
class Settings:
    cosmos: CosmosConfig = field(default_factory=CosmosConfig)
    editor: EditorConfig = field(default_factory=EditorConfig)
    app: AppConfig = field(default_factory=AppConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)


def load_settings() -> Settings:
    """Load settings, reading a local .env file first when present."""
    load_dotenv()
    return Settings()
