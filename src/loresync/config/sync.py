"""Synchronisation defaults for the importer and the sync plan executor."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import float_env_var, int_env_var, optional_env_var
from .errors import ConfigurationError

DEFAULT_AUTO_IMPORT_THRESHOLD = 0.75
DEFAULT_REVIEW_THRESHOLD = 0.4
DEFAULT_DESCRIPTION_MAX_LENGTH = 10_000
DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class SyncConfig:
    auto_import_threshold: float = DEFAULT_AUTO_IMPORT_THRESHOLD
    review_threshold: float = DEFAULT_REVIEW_THRESHOLD
    description_max_length: int = DEFAULT_DESCRIPTION_MAX_LENGTH
    page_size: int = DEFAULT_PAGE_SIZE
    mapping_overrides_path: Path | None = None
    system_id: str = "generic"

    def __post_init__(self) -> None:
        if not 0.0 <= self.review_threshold <= self.auto_import_threshold <= 1.0:
            raise ConfigurationError(
                "Import thresholds must satisfy 0 <= review <= auto <= 1, got "
                f"review={self.review_threshold}, auto={self.auto_import_threshold}"
            )
        if self.description_max_length <= 0:
            raise ConfigurationError("Description max length must be positive")
        if self.page_size <= 0:
            raise ConfigurationError("Page size must be positive")


def get_sync_config() -> SyncConfig:
    overrides = optional_env_var("LORESYNC_MAPPING_OVERRIDES")
    return SyncConfig(
        auto_import_threshold=float_env_var(
            "LORESYNC_AUTO_IMPORT_THRESHOLD", DEFAULT_AUTO_IMPORT_THRESHOLD
        ),
        review_threshold=float_env_var("LORESYNC_REVIEW_THRESHOLD", DEFAULT_REVIEW_THRESHOLD),
        description_max_length=int_env_var(
            "REMOTE_DESCRIPTION_MAX_LENGTH", DEFAULT_DESCRIPTION_MAX_LENGTH
        ),
        page_size=int_env_var("REMOTE_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        mapping_overrides_path=Path(overrides).expanduser() if overrides else None,
        system_id=optional_env_var("LORESYNC_SYSTEM_ID", "generic") or "generic",
    )
