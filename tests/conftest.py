"""Global test fixtures and in-memory fakes for the ports."""

import os
from collections.abc import Sequence
from typing import Any

import pytest

from meilisync.config import IndexingConfig, LocaleConfig
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.task import IndexInfo, IndexStats, Task, TaskStatus
from meilisync.domain.index.model.value import IndexEntry
from meilisync.domain.shared.error import IndexNotFoundError
from meilisync.domain.shared.event import Event

# Keep developer configuration out of unit tests
os.environ.pop("MEILISYNC_CONFIG_FILE", None)
os.environ.pop("MEILISYNC_LOG_FILE", None)


class FakeRecordStore:
    """RecordStore over a dict of record class -> {id: record}."""

    def __init__(self, records: dict[str, dict[Any, dict[str, Any]]] | None = None):
        self.records = records or {}
        self.fetch_calls: list[tuple[str, int, int]] = []
        self.normalize_groups: list[list[str]] = []

    async def fetch_identifiers(self, record_class: str, offset: int, limit: int) -> list[Any]:
        self.fetch_calls.append((record_class, offset, limit))
        ids = sorted(self.records.get(record_class, {}))
        return ids[offset : offset + limit]

    async def find_by_ids(self, record_class: str, ids: Sequence[Any]) -> list[Any]:
        table = self.records.get(record_class, {})
        return [table[i] for i in ids if i in table]

    def normalize(self, record_class: str, record: Any, groups: Sequence[str]) -> dict[str, Any]:
        self.normalize_groups.append(list(groups))
        return dict(record)

    async def count(self, record_class: str) -> int:
        return len(self.records.get(record_class, {}))


class FakeEngine:
    """In-memory SearchEngine.

    Every mutating call returns an enqueued task. ``get_task`` replays the
    statuses scripted in ``script[task_uid]`` and reports succeeded after.
    """

    def __init__(self):
        self.indexes: dict[str, str | None] = {}
        self.settings: dict[str, dict[str, Any]] = {}
        self.uploads: list[tuple[str, bytes, str | None]] = []
        self.deleted: list[tuple[str, list[Any]]] = []
        self.purged: list[str] = []
        self.pending: list[Task] = []
        self.script: dict[int, list[TaskStatus]] = {}
        self.task_errors: dict[int, dict[str, Any]] = {}
        self.get_task_calls: list[int] = []
        self._next_uid = 0

    def _task(self, index_uid: str | None, type: str) -> Task:
        self._next_uid += 1
        return Task(uid=self._next_uid, index_uid=index_uid, status=TaskStatus.ENQUEUED, type=type)

    async def get_index(self, uid: str) -> IndexInfo:
        if uid not in self.indexes:
            raise IndexNotFoundError(404, f"Index `{uid}` not found.", code="index_not_found")
        return IndexInfo(uid=uid, primary_key=self.indexes[uid])

    async def create_index(self, uid: str, primary_key: str | None = None) -> Task:
        self.indexes[uid] = primary_key
        return self._task(uid, "indexCreation")

    async def delete_index(self, uid: str) -> Task:
        if uid not in self.indexes:
            raise IndexNotFoundError(404, f"Index `{uid}` not found.", code="index_not_found")
        del self.indexes[uid]
        return self._task(uid, "indexDeletion")

    async def get_settings(self, uid: str) -> dict[str, Any]:
        return dict(self.settings.get(uid, {}))

    async def update_settings(self, uid: str, settings: dict[str, Any]) -> Task:
        self.settings[uid] = dict(settings)
        return self._task(uid, "settingsUpdate")

    async def get_stats(self, uid: str) -> IndexStats:
        return IndexStats()

    async def get_task(self, task_uid: int) -> Task:
        self.get_task_calls.append(task_uid)
        statuses = self.script.get(task_uid)
        status = statuses.pop(0) if statuses else TaskStatus.SUCCEEDED
        if status == TaskStatus.FAILED:
            error = self.task_errors.get(task_uid, {"message": "boom", "code": "internal"})
        else:
            error = None
        return Task(uid=task_uid, status=status, error=error)

    async def get_tasks(
        self,
        index_uid: str | None = None,
        statuses: Sequence[str] = (),
        limit: int = 100,
    ) -> list[Task]:
        return [t for t in self.pending if index_uid is None or t.index_uid == index_uid]

    async def add_documents_ndjson(
        self, uid: str, body: bytes, primary_key: str | None = None
    ) -> Task:
        self.uploads.append((uid, body, primary_key))
        return self._task(uid, "documentAdditionOrUpdate")

    async def delete_documents(self, uid: str, ids: Sequence[Any]) -> Task:
        self.deleted.append((uid, list(ids)))
        return self._task(uid, "documentDeletion")

    async def delete_all_documents(self, uid: str) -> Task:
        self.purged.append(uid)
        return self._task(uid, "documentDeletion")


class RecordingDispatcher:
    """Dispatcher that only records what it was given."""

    def __init__(self):
        self.dispatched: list[tuple[Event, bool]] = []

    async def dispatch(self, event: Event, sync: bool = False) -> None:
        self.dispatched.append((event, sync))

    @property
    def events(self) -> list[Event]:
        return [e for e, _ in self.dispatched]


@pytest.fixture
def movies_entry() -> IndexEntry:
    return IndexEntry(
        name="movies",
        record_class="app.Movie",
        primary_key="id",
        schema={"displayed": ["*"], "filterable": ["year"], "sortable": ["year"]},
        facets={"genre": {}},
        groups=["movie.read"],
    )


@pytest.fixture
def books_entry() -> IndexEntry:
    return IndexEntry(
        name="books",
        record_class="app.Book",
        primary_key="isbn",
        locales={"source": "en", "targets": ["es"]},
    )


@pytest.fixture
def registry(movies_entry: IndexEntry, books_entry: IndexEntry) -> IndexRegistry:
    return IndexRegistry([movies_entry, books_entry])


@pytest.fixture
def locale_config() -> LocaleConfig:
    return LocaleConfig(default_locale="en", enabled_locales=["en", "es"])


@pytest.fixture
def indexing_config() -> IndexingConfig:
    return IndexingConfig(poll_interval_ms=0, max_poll_attempts=5)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()
