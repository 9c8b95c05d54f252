from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol

from meilisync.domain.index.model.task import IndexInfo, IndexStats, Task


class SearchEngine(Protocol):
    """Search engine HTTP API, with responses already decoded."""

    @abstractmethod
    async def get_index(self, uid: str) -> IndexInfo:
        """Raises IndexNotFoundError when the index does not exist."""
        ...

    @abstractmethod
    async def create_index(self, uid: str, primary_key: str | None = None) -> Task: ...

    @abstractmethod
    async def delete_index(self, uid: str) -> Task: ...

    @abstractmethod
    async def get_settings(self, uid: str) -> dict[str, Any]: ...

    @abstractmethod
    async def update_settings(self, uid: str, settings: dict[str, Any]) -> Task: ...

    @abstractmethod
    async def get_stats(self, uid: str) -> IndexStats: ...

    @abstractmethod
    async def get_task(self, task_uid: int) -> Task: ...

    @abstractmethod
    async def get_tasks(
        self,
        index_uid: str | None = None,
        statuses: Sequence[str] = (),
        limit: int = 100,
    ) -> list[Task]: ...

    @abstractmethod
    async def add_documents_ndjson(
        self, uid: str, body: bytes, primary_key: str | None = None
    ) -> Task:
        """Send one NDJSON body; the engine answers with an enqueued task."""
        ...

    @abstractmethod
    async def delete_documents(self, uid: str, ids: Sequence[Any]) -> Task: ...

    @abstractmethod
    async def delete_all_documents(self, uid: str) -> Task: ...
