"""PendingOperations - per unit of work accumulator of index/remove operations."""

import logging
from collections import defaultdict
from typing import Any

from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.event.remove_entities import RemoveEntities
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import prune_document
from meilisync.domain.index.port.record_store import Identifier, RecordStore
from meilisync.domain.index.port.spooler import Spooler
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.shared.port.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class PendingOperations:
    """Collects record changes during a unit of work and flushes them as batched jobs.

    Records of classes with no declared index are ignored. Within one unit of
    work the last operation on a primary key wins, and each class produces at
    most one index job and one remove job per flush. A flush triggered while
    another flush of the same instance is dispatching is ignored.

    Jobs target the first index declared for the class, in ``locale`` when the
    deployment is multilingual. With a ``spooler``, indexed ids are appended to
    the class's ids spool for a later ``spool-flush`` instead of being
    dispatched; removals are always dispatched.
    """

    def __init__(
        self,
        registry: IndexRegistry,
        store: RecordStore,
        dispatcher: Dispatcher,
        names: IndexNameResolver,
        locale: str | None = None,
        sync: bool = False,
        spooler: Spooler | None = None,
    ) -> None:
        self._registry = registry
        self._names = names
        self._locale = locale
        self._store = store
        self._dispatcher = dispatcher
        self._sync = sync
        self._spooler = spooler
        self._index: dict[str, dict[Identifier, Any]] = defaultdict(dict)
        self._remove: dict[str, dict[Identifier, None]] = defaultdict(dict)
        self.dispatching = False

    def schedule_index(self, record_class: str, record: Any, identifier: Identifier) -> bool:
        """Queue a persisted or updated record. Returns False for unindexed classes."""
        if not self._registry.entries_for_class(record_class):
            return False
        self._remove[record_class].pop(identifier, None)
        self._index[record_class][identifier] = record
        return True

    def schedule_remove(self, record_class: str, identifier: Identifier) -> bool:
        """Queue a deleted record. Returns False for unindexed classes."""
        if not self._registry.entries_for_class(record_class):
            return False
        self._index[record_class].pop(identifier, None)
        self._remove[record_class][identifier] = None
        return True

    def _index_name(self, record_class: str) -> str:
        entry = self._registry.entries_for_class(record_class)[0]
        return self._names.raw_for(entry.name, self._locale)

    @property
    def pending(self) -> int:
        indexed = sum(len(v) for v in self._index.values())
        return indexed + sum(len(v) for v in self._remove.values())

    async def flush(self) -> int:
        """Dispatch the pending operations; returns the number of jobs sent."""
        if self.dispatching:
            logger.debug("Flush requested while dispatching, ignored")
            return 0

        self.dispatching = True
        index, self._index = self._index, defaultdict(dict)
        remove, self._remove = self._remove, defaultdict(dict)
        try:
            return await self._dispatch(index, remove)
        except Exception:
            self._restore(index, remove)
            raise
        finally:
            self.dispatching = False

    def _scheduled(self, record_class: str, identifier: Identifier) -> bool:
        return identifier in self._index[record_class] or identifier in self._remove[record_class]

    def _restore(
        self,
        index: dict[str, dict[Identifier, Any]],
        remove: dict[str, dict[Identifier, None]],
    ) -> None:
        """Put back operations that were not dispatched; ones scheduled since take precedence."""
        restored = 0
        for record_class, records in index.items():
            for identifier, record in records.items():
                if not self._scheduled(record_class, identifier):
                    self._index[record_class][identifier] = record
                    restored += 1
        for record_class, ids in remove.items():
            for identifier in ids:
                if not self._scheduled(record_class, identifier):
                    self._remove[record_class][identifier] = None
                    restored += 1
        logger.warning(f"Flush failed, {restored} operations kept for the next flush")

    async def _dispatch(
        self,
        index: dict[str, dict[Identifier, Any]],
        remove: dict[str, dict[Identifier, None]],
    ) -> int:
        # Dispatched classes are dropped so a failure leaves only what was not sent
        sent = 0
        for record_class, records in list(index.items()):
            if not records:
                continue
            if self._spooler is not None:
                self._spooler.append_ids(record_class, records.keys(), self._locale)
                del index[record_class]
                continue
            entry = self._registry.entries_for_class(record_class)[0]
            documents = [
                prune_document(self._store.normalize(record_class, record, entry.groups))
                for record in records.values()
            ]
            logger.info(f"Dispatching index job for {len(documents)} {record_class} records")
            await self._dispatcher.dispatch(
                IndexEntities(
                    entity_class=record_class,
                    entity_data=documents,
                    reload=False,
                    primary_key_name=entry.primary_key,
                    locale=self._locale,
                    index_name=self._index_name(record_class),
                    sync=self._sync,
                ),
                sync=self._sync,
            )
            del index[record_class]
            sent += 1

        for record_class, ids in list(remove.items()):
            if not ids:
                continue
            logger.info(f"Dispatching remove job for {len(ids)} {record_class} records")
            await self._dispatcher.dispatch(
                RemoveEntities(
                    entity_class=record_class,
                    entity_ids=list(ids),
                    index_name=self._index_name(record_class),
                ),
                sync=self._sync,
            )
            del remove[record_class]
            sent += 1
        return sent
