"""Index domain jobs."""

from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.event.remove_entities import RemoveEntities

__all__ = ["IndexEntities", "RemoveEntities"]
