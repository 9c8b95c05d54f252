"""IndexEntities event - one batch of records bound for one index."""

from collections.abc import Mapping
from typing import Any

from pydantic import model_validator

from meilisync.domain.shared.event import Event


class IndexEntities(Event):
    """Request to (re)index a batch of records.

    Created by IndexProducer (ids, ``reload=True``) or by the pending
    operations accumulator (normalized documents, ``reload=False``) and
    consumed once by BatchIndexEntitiesHandler.

    Attributes:
        entity_class: Record class the batch belongs to.
        entity_data: Identifiers when ``reload`` is set, documents otherwise.
        reload: Whether the consumer must fetch and normalize the records.
        primary_key_name: Primary key field of the documents.
        locale: Locale the documents are normalized in.
        index_name: Target index; derived from the class when absent.
        sync: Dispatched inline rather than queued.
        wait: Consumer waits for the engine tasks it creates.
    """

    entity_class: str
    entity_data: list[Any]
    reload: bool = True
    primary_key_name: str | None = None
    locale: str | None = None
    index_name: str | None = None
    sync: bool = False
    wait: bool = False

    @model_validator(mode="after")
    def _payload_matches_reload(self) -> "IndexEntities":
        for item in self.entity_data:
            is_document = isinstance(item, Mapping)
            if self.reload and is_document:
                raise ValueError("reload=True expects identifiers, got a document")
            if not self.reload and not is_document:
                raise ValueError("reload=False expects normalized documents")
        return self
