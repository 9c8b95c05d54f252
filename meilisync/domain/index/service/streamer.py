"""PrimaryKeyStreamer - pages through record identifiers in bounded batches."""

import logging
from collections.abc import AsyncIterator

from meilisync.domain.index.port.record_store import Identifier, RecordStore

logger = logging.getLogger(__name__)


class PrimaryKeyStreamer:
    """Streams primary keys of one record class, ascending, one page at a time.

    Each call to ``stream()`` starts an independent scan at offset zero. The
    returned iterator is forward-only; once exhausted it stays exhausted.
    """

    def __init__(self, store: RecordStore, record_class: str) -> None:
        self._store = store
        self._record_class = record_class

    async def stream(self, batch_size: int) -> AsyncIterator[list[Identifier]]:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        offset = 0
        while True:
            page = await self._store.fetch_identifiers(self._record_class, offset, batch_size)
            if page:
                yield page
            if len(page) < batch_size:
                break
            offset += len(page)

        logger.debug(f"Streamed {offset + len(page)} identifiers of {self._record_class}")
