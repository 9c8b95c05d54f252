"""RemoveEntitiesHandler - deletes documents by primary key."""

import logging

from meilisync.domain.index.event.remove_entities import RemoveEntities
from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.shared.event import EventHandler

logger = logging.getLogger(__name__)


class RemoveEntitiesHandler(EventHandler[RemoveEntities]):
    """Deletes a batch of documents; the engine ignores ids it does not hold."""

    engine: SearchEngine
    names: IndexNameResolver

    async def handle(self, event: RemoveEntities) -> None:
        if not event.entity_ids:
            return

        if event.index_name:
            uid = self.names.uid_for_raw(event.index_name)
        else:
            uid = self.names.uid_for_class(event.entity_class)

        task = await self.engine.delete_documents(uid, event.entity_ids)
        logger.info(f"Removing {len(event.entity_ids)} documents from '{uid}' (task {task.uid})")
