"""
Configuration settings for the dataset loader.

**Conceptual**: This module provides strongly-typed configuration objects that
load from environment variables (via .env files). All settings are validated
at construction, so a bad timeout or an unknown dataset mode fails at startup
instead of halfway through a load cycle.

**What is configurable**:
  - Where the primary (HTTP) transport fetches from, if anywhere.
  - Which directory acts as the static root for the fallback transport.
  - Whether datasets come from one consolidated JSON document or one CSV per dataset.
  - Per-transport timeouts and the log level used by the actions.

This module uses python-dotenv to load .env files and dataclasses for type safety.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Project root is 2 levels up from uploaded_life/config/settings.py
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Load .env from project root (dev/local environments)
load_dotenv(dotenv_path=PROJECT_ROOT / ".env")

DEFAULT_STATIC_ROOT = PROJECT_ROOT / "public"

DATASET_MODES = ("json", "csv")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# "file" is accepted and leaves the HTTP transport disabled
BASE_URL_SCHEMES = ("http", "https", "file")


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw}")


@dataclass(frozen=True)
class LoaderSettings:
    """
    Configuration for the dataset loading subsystem.

    **Conceptual**: One settings object describes both transports and the
    dataset layout. The primary transport is only usable when `base_url` is an
    http(s) URL; an empty base URL or a `file://` URL leaves the static-root
    loader as the only working strategy, the same way a page opened from disk
    cannot use fetch.

    Attributes:
        base_url: Base URL datasets are fetched from over HTTP. Empty string
                  disables the primary transport.
        static_root: Directory the fallback transport reads from. Relative
                     dataset paths resolve against it.
        dataset_mode: "json" (one consolidated library.json) or "csv"
                      (one CSV file per dataset).
        fetch_timeout_seconds: Timeout for one HTTP attempt.
        static_timeout_seconds: Timeout for one static-root read.
        log_level: Logging level name used by the actions.
    """
    base_url: str = ""
    static_root: Path = DEFAULT_STATIC_ROOT
    dataset_mode: str = "json"
    fetch_timeout_seconds: float = 10.0
    static_timeout_seconds: float = 5.0
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.dataset_mode not in DATASET_MODES:
            raise ValueError(
                f"UPLOADED_LIFE_DATASET_MODE must be one of {DATASET_MODES}, "
                f"got: {self.dataset_mode!r}"
            )
        if self.fetch_timeout_seconds <= 0:
            raise ValueError(
                f"fetch_timeout_seconds must be positive, got: {self.fetch_timeout_seconds}"
            )
        if self.static_timeout_seconds <= 0:
            raise ValueError(
                f"static_timeout_seconds must be positive, got: {self.static_timeout_seconds}"
            )
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"UPLOADED_LIFE_LOG_LEVEL must be one of {LOG_LEVELS}, got: {self.log_level!r}"
            )
        if self.base_url:
            parsed = urlparse(self.base_url)
            if parsed.scheme not in BASE_URL_SCHEMES:
                raise ValueError(
                    f"UPLOADED_LIFE_BASE_URL must be an absolute http(s) or file URL "
                    f"(e.g. http://localhost:8000/), got: {self.base_url!r}"
                )
            if parsed.scheme in ("http", "https") and not parsed.netloc:
                raise ValueError(
                    f"UPLOADED_LIFE_BASE_URL is missing a host, got: {self.base_url!r}"
                )

    @property
    def http_enabled(self) -> bool:
        """True when the base URL can be served by the HTTP transport."""
        return urlparse(self.base_url).scheme in ("http", "https")

    @classmethod
    def from_env(cls) -> "LoaderSettings":
        """
        Load loader settings from environment variables.

        **Environment variables** (all optional):
          - UPLOADED_LIFE_BASE_URL: Base URL for the HTTP transport (default: disabled).
          - UPLOADED_LIFE_STATIC_ROOT: Static root directory (default: <repo>/public).
          - UPLOADED_LIFE_DATASET_MODE: "json" or "csv" (default: "json").
          - UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS: HTTP timeout (default: 10).
          - UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS: Static read timeout (default: 5).
          - UPLOADED_LIFE_LOG_LEVEL: Logging level (default: INFO).

        Returns:
            LoaderSettings object with values loaded from environment.

        Raises:
            ValueError: If a timeout is not a number or any value fails validation.

        Usage example:
            >>> # In .env file:
            >>> # UPLOADED_LIFE_BASE_URL=http://localhost:8000/
            >>> settings = LoaderSettings.from_env()
            >>> settings.http_enabled
            True
        """
        base_url = os.getenv("UPLOADED_LIFE_BASE_URL", "").strip()
        static_root_str = os.getenv("UPLOADED_LIFE_STATIC_ROOT", "")
        dataset_mode = os.getenv("UPLOADED_LIFE_DATASET_MODE", "json").strip().lower()
        fetch_timeout_str = os.getenv("UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS", "10")
        static_timeout_str = os.getenv("UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS", "5")
        log_level = os.getenv("UPLOADED_LIFE_LOG_LEVEL", "INFO").strip().upper()

        static_root = DEFAULT_STATIC_ROOT
        if static_root_str:
            static_root = Path(static_root_str).expanduser()
            if not static_root.is_absolute():
                static_root = PROJECT_ROOT / static_root

        return cls(
            base_url=base_url,
            static_root=static_root,
            dataset_mode=dataset_mode,
            fetch_timeout_seconds=_parse_float(
                "UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS", fetch_timeout_str
            ),
            static_timeout_seconds=_parse_float(
                "UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS", static_timeout_str
            ),
            log_level=log_level,
        )


@dataclass(frozen=True)
class Settings:
    """
    Global settings for the Uploaded Life host.

    **Conceptual**: Top-level settings object aggregating subsystem settings.
    Only the loader is configurable today; rendering and simulation settings
    would sit next to it.

    Attributes:
        loader: Dataset loading settings.
    """
    loader: LoaderSettings

    @classmethod
    def from_env(cls) -> "Settings":
        """Load global settings from environment variables."""
        return cls(loader=LoaderSettings.from_env())


# Lazily-initialized singleton. Tests construct Settings directly or call reset_settings().
_default_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings singleton.

    Settings are loaded from the environment on first call, then cached.

    Returns:
        Global Settings singleton.

    Raises:
        ValueError: If environment configuration is invalid.
    """
    global _default_settings

    if _default_settings is None:
        _default_settings = Settings.from_env()

    return _default_settings


def reset_settings():
    """
    Reset the global settings singleton (for testing).

    Returns:
        None (side effect: clears global settings cache).
    """
    global _default_settings
    _default_settings = None
