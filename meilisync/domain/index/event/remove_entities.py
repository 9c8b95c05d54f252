"""RemoveEntities event - delete documents by primary key."""

from typing import Any

from meilisync.domain.shared.event import Event


class RemoveEntities(Event):
    """Request to remove a batch of records from their index.

    Attributes:
        entity_class: Record class the ids belong to.
        entity_ids: Primary key values to delete.
        index_name: Target index; derived from the class when absent.
    """

    entity_class: str
    entity_ids: list[Any]
    index_name: str | None = None
