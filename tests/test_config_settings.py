"""
Tests for loader configuration.

This module tests:
  - Defaults when no UPLOADED_LIFE_* variables are set.
  - Parsing and validation of each environment variable.
  - The get_settings() singleton and reset_settings().
"""

from pathlib import Path

import pytest

from uploaded_life.config.settings import (
    DEFAULT_STATIC_ROOT,
    PROJECT_ROOT,
    LoaderSettings,
    Settings,
    get_settings,
    reset_settings,
)

ENV_VARS = [
    "UPLOADED_LIFE_BASE_URL",
    "UPLOADED_LIFE_STATIC_ROOT",
    "UPLOADED_LIFE_DATASET_MODE",
    "UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS",
    "UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS",
    "UPLOADED_LIFE_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_from_env_defaults():
    settings = LoaderSettings.from_env()

    assert settings.base_url == ""
    assert settings.static_root == DEFAULT_STATIC_ROOT
    assert settings.dataset_mode == "json"
    assert settings.fetch_timeout_seconds == 10.0
    assert settings.static_timeout_seconds == 5.0
    assert settings.log_level == "INFO"
    assert not settings.http_enabled


def test_from_env_reads_all_variables(monkeypatch, tmp_path):
    monkeypatch.setenv("UPLOADED_LIFE_BASE_URL", "http://localhost:8000/")
    monkeypatch.setenv("UPLOADED_LIFE_STATIC_ROOT", str(tmp_path))
    monkeypatch.setenv("UPLOADED_LIFE_DATASET_MODE", "CSV")
    monkeypatch.setenv("UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("UPLOADED_LIFE_STATIC_TIMEOUT_SECONDS", "1")
    monkeypatch.setenv("UPLOADED_LIFE_LOG_LEVEL", "debug")

    settings = LoaderSettings.from_env()

    assert settings.base_url == "http://localhost:8000/"
    assert settings.static_root == tmp_path
    assert settings.dataset_mode == "csv"
    assert settings.fetch_timeout_seconds == 2.5
    assert settings.static_timeout_seconds == 1.0
    assert settings.log_level == "DEBUG"
    assert settings.http_enabled


def test_relative_static_root_resolves_against_project_root(monkeypatch):
    monkeypatch.setenv("UPLOADED_LIFE_STATIC_ROOT", "site/public")

    settings = LoaderSettings.from_env()

    assert settings.static_root == PROJECT_ROOT / "site" / "public"


def test_file_base_url_disables_http():
    """A file:// origin behaves like a page opened from disk."""
    settings = LoaderSettings(base_url="file:///srv/site/")

    assert not settings.http_enabled


@pytest.mark.parametrize("base_url", [
    "localhost:8000",
    "localhost",
    "ftp://example.test/site/",
    "http:///site/",
    "https:",
])
def test_base_url_without_http_scheme_or_host_rejected(base_url):
    with pytest.raises(ValueError) as exc_info:
        LoaderSettings(base_url=base_url)
    assert "UPLOADED_LIFE_BASE_URL" in str(exc_info.value)


def test_invalid_dataset_mode_rejected():
    with pytest.raises(ValueError) as exc_info:
        LoaderSettings(dataset_mode="xml")
    assert "UPLOADED_LIFE_DATASET_MODE" in str(exc_info.value)


def test_non_numeric_timeout_names_variable(monkeypatch):
    monkeypatch.setenv("UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS", "soon")

    with pytest.raises(ValueError) as exc_info:
        LoaderSettings.from_env()
    assert "UPLOADED_LIFE_FETCH_TIMEOUT_SECONDS" in str(exc_info.value)


@pytest.mark.parametrize("field_name", ["fetch_timeout_seconds", "static_timeout_seconds"])
def test_non_positive_timeouts_rejected(field_name):
    with pytest.raises(ValueError):
        LoaderSettings(**{field_name: 0})


def test_invalid_log_level_rejected():
    with pytest.raises(ValueError):
        LoaderSettings(log_level="LOUD")


def test_get_settings_is_cached_until_reset(monkeypatch):
    first = get_settings()
    assert get_settings() is first
    assert isinstance(first, Settings)

    monkeypatch.setenv("UPLOADED_LIFE_DATASET_MODE", "csv")
    assert get_settings().loader.dataset_mode == "json"

    reset_settings()
    assert get_settings().loader.dataset_mode == "csv"
