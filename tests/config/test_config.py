from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003

import pytest

from loresync.config import (
    ConfigurationError,
    MissingConfigurationError,
    SyncConfig,
    configure_logging,
    get_database_config,
    get_remote_config,
    get_storage_config,
    get_sync_config,
    require_env_vars,
)
from loresync.config.remote import DEFAULT_REMOTE_BASE_URL


def test_require_env_vars_returns_stripped_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "  value ")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_remote_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REMOTE_API_KEY", "secret")
    monkeypatch.setenv("REMOTE_CAMPAIGN_ID", "camp-1")
    monkeypatch.delenv("REMOTE_BASE_URL", raising=False)
    monkeypatch.setenv("REMOTE_TIMEOUT_SECONDS", "5")

    config = get_remote_config()

    assert config.campaign_id == "camp-1"
    assert config.resilience.base_url == DEFAULT_REMOTE_BASE_URL
    assert config.resilience.timeout_seconds == 5.0
    assert config.resilience.default_headers == {
        "x-api-key": "secret",
        "Content-Type": "application/json",
    }
    assert "POST" not in config.resilience.retry.allowed_methods


def test_remote_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("REMOTE_API_KEY", raising=False)
    monkeypatch.setenv("REMOTE_CAMPAIGN_ID", "camp-1")

    with pytest.raises(MissingConfigurationError, match="REMOTE_API_KEY"):
        get_remote_config()


def test_sync_config_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "LORESYNC_AUTO_IMPORT_THRESHOLD",
        "LORESYNC_REVIEW_THRESHOLD",
        "LORESYNC_MAPPING_OVERRIDES",
        "LORESYNC_SYSTEM_ID",
        "REMOTE_DESCRIPTION_MAX_LENGTH",
        "REMOTE_PAGE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)

    assert get_sync_config() == SyncConfig()


def test_sync_config_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LORESYNC_AUTO_IMPORT_THRESHOLD", "0.9")
    monkeypatch.setenv("LORESYNC_MAPPING_OVERRIDES", str(tmp_path / "fixes.json"))
    monkeypatch.setenv("LORESYNC_SYSTEM_ID", "dnd5e")
    monkeypatch.setenv("REMOTE_PAGE_SIZE", "25")

    config = get_sync_config()

    assert config.auto_import_threshold == 0.9
    assert config.mapping_overrides_path == tmp_path / "fixes.json"
    assert config.system_id == "dnd5e"
    assert config.page_size == 25


def test_sync_config_rejects_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ConfigurationError):
        SyncConfig(auto_import_threshold=0.3, review_threshold=0.5)
    with pytest.raises(ConfigurationError):
        SyncConfig(page_size=0)

    monkeypatch.setenv("REMOTE_PAGE_SIZE", "many")
    with pytest.raises(ConfigurationError, match="REMOTE_PAGE_SIZE"):
        get_sync_config()


def test_database_uri_prefers_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite:///override.db")

    assert get_database_config().uri == "sqlite:///override.db"


def test_database_uri_creates_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("LORESYNC_DATA_DIR", str(tmp_path / "data-dir"))

    uri = get_database_config().uri

    expected = (tmp_path / "data-dir" / "loresync.db").resolve()
    assert uri == f"sqlite+pysqlite:///{expected}"
    assert expected.parent.exists()
    assert get_storage_config().resolve_data_dir() == expected.parent


def test_configure_logging_sets_level() -> None:
    configure_logging(level=logging.DEBUG, force=True)

    assert logging.getLogger().level == logging.DEBUG

    configure_logging(force=True)


def test_configure_logging_quiets_http_requests_unless_debugging() -> None:
    configure_logging(force=True)
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level=logging.DEBUG, force=True)
    assert logging.getLogger("httpx").level == logging.DEBUG

    configure_logging(force=True)


def test_database_filename_and_echo_from_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("LORESYNC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LORESYNC_DB_FILENAME", "world.sqlite")
    monkeypatch.setenv("LORESYNC_SQL_ECHO", "yes")

    config = get_database_config()

    assert config.uri.endswith("world.sqlite")
    assert config.echo is True
