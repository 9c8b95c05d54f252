from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol

Identifier = int | str
Document = dict[str, Any]


class RecordStore(Protocol):
    """Source-of-record access used by the streamer and the job handler."""

    @abstractmethod
    async def fetch_identifiers(
        self, record_class: str, offset: int, limit: int
    ) -> list[Identifier]:
        """One page of primary keys, ordered ascending."""
        ...

    @abstractmethod
    async def find_by_ids(self, record_class: str, ids: Sequence[Identifier]) -> list[Any]:
        """Hydrated records for the ids; unknown ids are silently omitted."""
        ...

    @abstractmethod
    def normalize(self, record_class: str, record: Any, groups: Sequence[str]) -> Document:
        """Turn a hydrated record into a document restricted to `groups`."""
        ...

    @abstractmethod
    async def count(self, record_class: str) -> int: ...
