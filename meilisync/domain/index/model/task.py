"""Search engine task records, decoded once at the HTTP boundary."""

from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class TaskStatus(StrEnum):
    """Task statuses as reported by the engine.

    Status only moves forward: enqueued -> processing -> succeeded | failed.
    """

    ENQUEUED = "enqueued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


PENDING_STATUSES = frozenset({TaskStatus.ENQUEUED, TaskStatus.PROCESSING})
TERMINAL_STATUSES = frozenset({TaskStatus.SUCCEEDED, TaskStatus.FAILED, TaskStatus.CANCELED})


class TaskType(StrEnum):
    """Task type literals returned by /tasks."""

    DOCUMENT_ADDITION_OR_UPDATE = "documentAdditionOrUpdate"
    DOCUMENT_EDITION = "documentEdition"
    DOCUMENT_DELETION = "documentDeletion"
    SETTINGS_UPDATE = "settingsUpdate"
    INDEX_CREATION = "indexCreation"
    INDEX_DELETION = "indexDeletion"
    INDEX_UPDATE = "indexUpdate"
    INDEX_SWAP = "indexSwap"
    TASK_CANCELATION = "taskCancelation"
    TASK_DELETION = "taskDeletion"
    DUMP_CREATION = "dumpCreation"
    SNAPSHOT_CREATION = "snapshotCreation"
    EXPORT = "export"
    UPGRADE_DATABASE = "upgradeDatabase"


DOCUMENT_TASK_TYPES = frozenset(
    {
        TaskType.DOCUMENT_ADDITION_OR_UPDATE,
        TaskType.DOCUMENT_EDITION,
        TaskType.DOCUMENT_DELETION,
    }
)
INDEX_TASK_TYPES = frozenset(
    {
        TaskType.INDEX_CREATION,
        TaskType.INDEX_DELETION,
        TaskType.INDEX_UPDATE,
        TaskType.INDEX_SWAP,
        TaskType.SETTINGS_UPDATE,
    }
)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an engine RFC 3339 timestamp; unparsable values become None."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or value == "":
        return None
    try:
        # Nanosecond fractions are truncated to microseconds
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class Task(BaseModel, frozen=True):
    """An asynchronous engine operation.

    Mutating calls return a summarized task keyed by ``taskUid``; ``GET /tasks``
    returns the full record keyed by ``uid``. Both decode to this model.
    """

    uid: int
    index_uid: str | None = None
    status: TaskStatus
    type: str = ""
    enqueued_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: dict[str, Any] | None = None

    @field_validator("enqueued_at", "started_at", "finished_at", mode="before")
    @classmethod
    def _lenient_datetime(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Task":
        uid = data.get("taskUid", data.get("uid"))
        if uid is None:
            raise ValueError(f"Task payload has no uid: {data!r}")
        return cls(
            uid=int(uid),
            index_uid=data.get("indexUid"),
            status=TaskStatus(data.get("status", TaskStatus.ENQUEUED)),
            type=str(data.get("type", "")),
            enqueued_at=data.get("enqueuedAt"),
            started_at=data.get("startedAt"),
            finished_at=data.get("finishedAt"),
            error=data.get("error"),
        )

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status is TaskStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is TaskStatus.FAILED

    @property
    def duration(self) -> timedelta | None:
        if self.started_at and self.finished_at:
            return self.finished_at - self.started_at
        return None

    @property
    def summary(self) -> str:
        where = f" on {self.index_uid}" if self.index_uid else ""
        return f"#{self.uid} {self.type} ({self.status}){where}"

    def __str__(self) -> str:
        return f"{self.index_uid}/{self.uid}"


class IndexInfo(BaseModel, frozen=True):
    """Lightweight index description from GET /indexes/{uid}."""

    uid: str
    primary_key: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _lenient_datetime(cls, v: Any) -> Any:
        return parse_timestamp(v)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "IndexInfo":
        return cls(
            uid=data["uid"],
            primary_key=data.get("primaryKey"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )


class IndexStats(BaseModel, frozen=True):
    """Document count and indexing flag from GET /indexes/{uid}/stats."""

    number_of_documents: int = 0
    is_indexing: bool = False
    field_distribution: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "IndexStats":
        return cls(
            number_of_documents=int(data.get("numberOfDocuments", 0)),
            is_indexing=bool(data.get("isIndexing", False)),
            field_distribution=dict(data.get("fieldDistribution") or {}),
        )
