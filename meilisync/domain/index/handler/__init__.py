"""Index domain job handlers."""

from meilisync.domain.index.handler.batch_index_entities import BatchIndexEntitiesHandler
from meilisync.domain.index.handler.remove_entities import RemoveEntitiesHandler

__all__ = ["BatchIndexEntitiesHandler", "RemoveEntitiesHandler"]
