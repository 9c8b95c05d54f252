from abc import abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from meilisync.domain.index.port.record_store import Identifier


class Spooler(Protocol):
    """Append-only store of ids waiting for a later ``spool-flush``."""

    @abstractmethod
    def append_ids(
        self, record_class: str, ids: Iterable[Identifier], locale: str | None = None
    ) -> Path: ...
