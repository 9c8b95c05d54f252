"""Error hierarchy for meilisync.

Error layers:
- MeiliSyncError: Base class for all meilisync errors
- DomainError: Precondition and business rule violations (not retried usefully)
- InfrastructureError: Search engine, transport and configuration failures

Planning code never raises these; it logs and skips. Upload and lifecycle code
raises them to the immediate caller, which for queued jobs means the worker's
retry policy takes over.
"""

from typing import Any


class MeiliSyncError(Exception):
    """Base class for all meilisync errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


# =============================================================================
# Domain Errors
# =============================================================================


class DomainError(MeiliSyncError):
    """Base class for domain errors."""


class NotFoundError(DomainError):
    """Resource not found."""


class ValidationError(DomainError):
    """Input validation failed."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, code="VALIDATION_ERROR")
        self.field = field


class MissingPrimaryKeyError(DomainError):
    """A document lacks its primary key field (or the value is null).

    Raised before the document is buffered, so no request carrying it is sent.
    """

    def __init__(self, primary_key: str, index_uid: str, position: int) -> None:
        super().__init__(
            f"Document #{position} for index '{index_uid}' has no value for "
            f"primary key '{primary_key}'",
            code="MISSING_PRIMARY_KEY",
        )
        self.primary_key = primary_key
        self.index_uid = index_uid
        self.position = position


class TaskFailedError(DomainError):
    """A search engine task reached the failed state."""

    def __init__(self, task_uid: int, error: dict[str, Any] | None = None) -> None:
        detail = (error or {}).get("message", "unknown search engine task error")
        super().__init__(f"Task {task_uid} failed: {detail}", code="TASK_FAILED")
        self.task_uid = task_uid
        self.error = error


# =============================================================================
# Infrastructure Errors
# =============================================================================


class InfrastructureError(MeiliSyncError):
    """Base class for infrastructure/system errors."""


class SearchEngineError(InfrastructureError):
    """Non-2xx response from the search engine."""

    def __init__(
        self,
        status_code: int,
        body: str,
        code: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ) -> None:
        where = f" on {method} {path}" if method and path else ""
        super().__init__(f"Search engine error {status_code}{where}: {body}", code=code)
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path


class IndexNotFoundError(SearchEngineError):
    """The engine reported that an index does not exist (404)."""


class TaskTimeoutError(InfrastructureError):
    """Polling gave up before a task reached a terminal state."""

    def __init__(self, task_uid: int | None, attempts: int, status: str) -> None:
        uid = task_uid if task_uid is not None else "-"
        super().__init__(
            f"Task {uid} still '{status}' after {attempts} polls",
            code="TASK_TIMEOUT",
        )
        self.task_uid = task_uid
        self.attempts = attempts
        self.status = status


class ConfigurationError(InfrastructureError):
    """System misconfiguration detected."""


# =============================================================================
# Job control
# =============================================================================


class SkippedEvents(Exception):
    """Raised by handlers to mark jobs as skipped rather than failed.

    Skipped jobs are not retried.
    """

    def __init__(self, event_ids: list[Any], reason: str) -> None:
        self.event_ids = event_ids
        self.reason = reason
        super().__init__(reason)
