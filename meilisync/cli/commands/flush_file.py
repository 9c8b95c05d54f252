"""`meilisync flush-file` and `meilisync spool-flush` - upload line-delimited files."""

import asyncio
import sys
from itertools import batched
from pathlib import Path

from meilisync.cli.console import Console, get_console
from meilisync.cli.util.runtime import app_container
from meilisync.config import Config
from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.uploader import NdjsonUploader
from meilisync.domain.shared.error import MeiliSyncError
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.infrastructure.spool.jsonl import JsonlSpooler


async def run_flush_file(
    name: str,
    path: Path,
    locale: str | None,
    primary_key: str,
    names: IndexNameResolver,
    lifecycle: IndexLifecycle,
    uploader: NdjsonUploader,
    console: Console,
) -> int:
    if not path.is_file():
        console.error(f"JSONL file not found: {path}")
        return 1
    if path.stat().st_size == 0:
        console.error(f"JSONL file is empty: {path}")
        return 1

    uid = names.uid_for(name, locale)
    try:
        await lifecycle.get_or_create_index(uid, primary_key, auto_create=True)
        result = await uploader.upload_file(uid, path, primary_key)
    except MeiliSyncError as e:
        console.error(f"Upload to '{uid}' failed: {e.message}")
        return 1
    console.success(
        f"{result.documents} documents sent to '{uid}' in {result.batches} requests "
        f"(last task {result.last_task_uid})"
    )
    return 0


async def run_spool_flush(
    record_class: str,
    locale: str | None,
    docs: bool,
    batch_size: int,
    spooler: JsonlSpooler,
    registry: IndexRegistry,
    names: IndexNameResolver,
    lifecycle: IndexLifecycle,
    uploader: NdjsonUploader,
    dispatcher: Dispatcher,
    console: Console,
) -> int:
    """Docs spools are uploaded as is; ids spools become reload jobs."""
    path = spooler.path_for(record_class, locale, docs=docs)
    if not path.is_file() or path.stat().st_size == 0:
        console.warning(f"No spool to flush: {path}")
        return 0

    primary_key = registry.primary_key_for_class(record_class) or "id"
    uid = names.uid_for_class(record_class, locale)
    try:
        if docs:
            await lifecycle.get_or_create_index(uid, primary_key, auto_create=True)
            result = await uploader.upload_file(uid, path, primary_key)
            console.info(f"{result.documents} documents in {result.batches} requests")
        else:
            sent = 0
            for chunk in batched(spooler.read_ids(path), batch_size):
                job = IndexEntities(
                    entity_class=record_class,
                    entity_data=list(chunk),
                    reload=True,
                    primary_key_name=primary_key,
                    locale=locale,
                    sync=True,
                )
                await dispatcher.dispatch(job, sync=True)
                sent += len(chunk)
            console.info(f"{sent} ids reindexed")
    except MeiliSyncError as e:
        console.error(f"Flushing {path} failed: {e.message}")
        return 1

    spooler.discard(path)
    console.success(f"Flushed {path.name} to '{uid}'")
    return 0


async def _flush_file(name: str, path: Path, locale: str | None, pk: str) -> int:
    async with app_container() as container:
        return await run_flush_file(
            name,
            path,
            locale,
            pk,
            await container.get(IndexNameResolver),
            await container.get(IndexLifecycle),
            await container.get(NdjsonUploader),
            get_console(),
        )


async def _spool_flush(record_class: str, locale: str | None, docs: bool) -> int:
    config = Config()
    async with app_container(config) as container:
        return await run_spool_flush(
            record_class,
            locale,
            docs,
            config.indexing.batch_size,
            JsonlSpooler(config.indexing.spool_dir),
            await container.get(IndexRegistry),
            await container.get(IndexNameResolver),
            await container.get(IndexLifecycle),
            await container.get(NdjsonUploader),
            await container.get(Dispatcher),
            get_console(),
        )


def flush_file(name: str, path: Path, *, locale: str | None = None, pk: str = "id") -> None:
    """Send a JSONL/NDJSON file to an index in byte-bounded requests.

    Args:
        name: Logical index name.
        path: File with one JSON document per line.
        locale: Locale suffix of the index, when multilingual.
        pk: Primary key field.
    """
    code = asyncio.run(_flush_file(name, path, locale, pk))
    if code:
        sys.exit(code)


def spool_flush(record_class: str, *, locale: str | None = None, docs: bool = False) -> None:
    """Send a spool file written by the spooler and delete it.

    Args:
        record_class: Record class the spool belongs to.
        locale: Locale of the spool file.
        docs: Flush the documents spool instead of the ids spool.
    """
    code = asyncio.run(_spool_flush(record_class, locale, docs))
    if code:
        sys.exit(code)
