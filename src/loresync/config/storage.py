"""Where the world store lives on disk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "loresync"
DEFAULT_DB_FILENAME: Final[str] = "loresync.db"


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory and file name of the SQLite world store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    def resolve_data_dir(self) -> Path:
        return self.data_dir.expanduser().resolve()

    def database_path(self, *, create_dir: bool = True) -> Path:
        world_dir = self.resolve_data_dir()
        if create_dir:
            world_dir.mkdir(parents=True, exist_ok=True)
        return world_dir / self.database_filename

    def database_uri(self) -> str:
        return f"sqlite+pysqlite:///{self.database_path()}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def _platform_data_root() -> Path:
    if os.name == "nt":
        local = optional_env_var("LOCALAPPDATA")
        return Path(local) if local else Path.home() / "AppData" / "Local"
    xdg = optional_env_var("XDG_DATA_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "share"


def get_storage_config() -> StorageConfig:
    override = optional_env_var("LORESYNC_DATA_DIR")
    data_dir = Path(override) if override else _platform_data_root() / APP_DIR_NAME
    filename = optional_env_var("LORESYNC_DB_FILENAME", DEFAULT_DB_FILENAME)
    return StorageConfig(data_dir=data_dir, database_filename=filename or DEFAULT_DB_FILENAME)


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """An explicit ``DATABASE_URI`` wins over the file under the data directory."""

    echo = (optional_env_var("LORESYNC_SQL_ECHO") or "").lower() in {"1", "true", "yes"}
    uri = optional_env_var("DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).database_uri()
    return DatabaseConfig(uri=uri, echo=echo)
