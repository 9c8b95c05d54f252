"""BatchIndexEntitiesHandler - consumes IndexEntities jobs."""

import logging

import logfire

from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import normalize_locale, prune_document
from meilisync.domain.index.port.record_store import RecordStore
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.locale import LocaleResolver
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.uploader import NdjsonUploader, UploadResult
from meilisync.domain.shared.error import SkippedEvents
from meilisync.domain.shared.event import EventHandler

logger = logging.getLogger(__name__)


class BatchIndexEntitiesHandler(EventHandler[IndexEntities]):
    """Loads, normalizes and uploads one batch of records.

    With ``reload`` the ids are hydrated through the record store (ids that no
    longer exist are dropped silently); otherwise the job already carries
    normalized documents. Upload and lifecycle errors propagate so a queued
    job is retried.
    """

    store: RecordStore
    registry: IndexRegistry
    names: IndexNameResolver
    locales: LocaleResolver
    lifecycle: IndexLifecycle
    uploader: NdjsonUploader

    async def handle(self, event: IndexEntities) -> None:
        entries = self.registry.entries_for_class(event.entity_class)
        if not entries and event.index_name is None:
            raise SkippedEvents(
                event_ids=[event.id],
                reason=f"No index declared for record class '{event.entity_class}'",
            )

        locale = normalize_locale(event.locale) or self.locales.default_locale
        if event.index_name:
            uid = self.names.uid_for_raw(event.index_name)
        else:
            uid = self.names.uid_for_class(event.entity_class, locale)

        primary_key = (
            event.primary_key_name
            or self.registry.primary_key_for_class(event.entity_class)
            or "id"
        )
        groups = entries[0].groups if entries else []

        size = len(event.entity_data)
        with logfire.span("BatchIndexEntities", uid=uid, locale=locale, size=size):
            await self.lifecycle.get_or_create_index(uid, primary_key, auto_create=True)

            if event.reload:
                records = await self.store.find_by_ids(event.entity_class, event.entity_data)
                documents = (
                    prune_document(self.store.normalize(event.entity_class, record, groups))
                    for record in records
                )
                missing = len(event.entity_data) - len(records)
                if missing:
                    logger.debug(f"{missing} ids of {event.entity_class} no longer exist, skipped")
            else:
                documents = list(event.entity_data)

            result = await self.uploader.upload_documents(uid, documents, primary_key)

            if event.wait:
                await self._wait_all(result)

        logger.info(
            f"Indexed {result.documents} {event.entity_class} documents into '{uid}' "
            f"({result.batches} requests, last task {result.last_task_uid})"
        )

    async def _wait_all(self, result: UploadResult) -> None:
        for task_uid in result.task_uids:
            task = await self.lifecycle.engine.get_task(task_uid)
            await self.lifecycle.wait_for_task(task, stop_on_error=True)
