"""Errors raised across the sync engine and its collaborators."""

from __future__ import annotations


class RemoteServiceError(RuntimeError):
    """Raised when the remote campaign service rejects a request or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DescriptionTooLongError(RemoteServiceError):
    """Raised when a description exceeds the service's documented maximum length."""

    def __init__(
        self,
        *,
        entity_name: str,
        length: int,
        max_length: int,
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            f"Description for {entity_name!r} is too long ({length} > {max_length} characters)",
            status_code=status_code,
        )
        self.entity_name = entity_name
        self.length = length
        self.max_length = max_length


class LocalStoreError(RuntimeError):
    """Raised when the local world store cannot complete an operation."""


class RecordNotFoundError(LocalStoreError, KeyError):
    """Raised when a record id does not exist in the local world store."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record not found: {record_id}")
        self.record_id = record_id

    def __str__(self) -> str:
        return f"Record not found: {self.record_id}"


class SyncAlreadyRunningError(RuntimeError):
    """Raised when a plan executor is asked to run while it is already running."""


class PlanAlreadyExecutedError(RuntimeError):
    """Raised when a sync plan that has been consumed is handed to an executor again."""
