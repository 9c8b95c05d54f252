"""`meilisync index` - create the planned indexes and populate them."""

import asyncio
import logging
import sys
from typing import Annotated, Literal

import cyclopts
from pydantic import BaseModel

from meilisync.cli.console import Console, get_console
from meilisync.cli.util.runtime import app_container
from meilisync.config import Config
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import IndexTarget
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.planner import TargetPlanner
from meilisync.domain.index.service.producer import IndexProducer, TargetReport
from meilisync.infrastructure.event.worker import WorkerPool
from meilisync.util.di.scope import Scope

logger = logging.getLogger(__name__)


class IndexOptions(BaseModel):
    """Options of one `meilisync index` run."""

    bases: list[str] = []
    per_locale: bool = True
    locales: list[str] = []
    reset: bool = False
    settings: bool = True
    batch_size: int = 1000
    limit: int | None = None
    transport: Literal["sync", "queue"] = "sync"
    wait: bool = False


async def prepare_target(
    target: IndexTarget,
    registry: IndexRegistry,
    lifecycle: IndexLifecycle,
    options: IndexOptions,
) -> str | None:
    """Reset, create and configure one index. Returns an error message on failure."""
    entry = registry.get(target.base)
    if entry is None:
        return f"'{target.base}' is not declared"
    try:
        if options.reset:
            await lifecycle.reset(target.uid)
        await lifecycle.get_or_create_index(target.uid, entry.primary_key, auto_create=True)
        if options.settings:
            task = await lifecycle.apply_settings(target.uid, entry)
            await lifecycle.wait_for_task(task, stop_on_error=True)
    except Exception as e:
        logger.error(f"Preparing '{target.uid}' failed: {e}")
        return str(e)
    return None


async def run_index(
    options: IndexOptions,
    registry: IndexRegistry,
    planner: TargetPlanner,
    lifecycle: IndexLifecycle,
    producer: IndexProducer,
    pool: WorkerPool | None,
    console: Console,
) -> int:
    """Plan, prepare and populate; returns the process exit code."""
    bases = options.bases or registry.names()
    unknown = [b for b in bases if b not in registry]
    for base in unknown:
        console.warning(f"'{base}' is not a declared index, skipped")

    targets = planner.targets_for_bases(bases, options.per_locale, options.locales)
    if not targets:
        console.error("Nothing to index", hint="Check `meilisync registry` for declared indexes")
        return 1

    failures: dict[str, str] = {}
    ready: list[IndexTarget] = []
    for target in targets:
        error = await prepare_target(target, registry, lifecycle, options)
        if error:
            failures[target.uid] = error
        else:
            ready.append(target)

    sync = options.transport == "sync"
    batch_size = options.batch_size
    if options.limit is not None and 0 < options.limit < batch_size:
        batch_size = options.limit
    reports: list[TargetReport] = []
    for target in ready:
        entry = registry.get(target.base)
        primary_key = entry.primary_key if entry else "id"
        reports.extend(
            await producer.dispatch_targets(
                [target],
                batch_size=batch_size,
                limit=options.limit,
                sync=sync,
                wait=options.wait,
                primary_key_name=primary_key,
            )
        )

    if not sync and pool is not None:
        with console.status("Waiting for queued jobs..."):
            await pool.drain()
        if pool.failed:
            console.error(f"{len(pool.failed)} queued jobs failed after retries")

    sent = {r.target.uid: r for r in reports}
    rows = []
    for target in targets:
        report = sent.get(target.uid)
        error = failures.get(target.uid) or (report.error if report else None)
        rows.append(
            {
                "uid": target.uid,
                "locale": target.locale or "-",
                "kind": target.kind,
                "records": report.sent if report else 0,
                "status": "failed: " + error if error else "ok",
            }
        )
    console.table(
        rows,
        [
            ("uid", "Index"),
            ("locale", "Locale"),
            ("kind", "Kind"),
            ("records", "Records"),
            ("status", "Status"),
        ],
        title="Index run",
    )

    queue_failed = pool is not None and not sync and bool(pool.failed)
    if failures or queue_failed or any(not r.ok for r in reports):
        return 1
    console.success(f"{sum(r.sent for r in reports)} records dispatched to {len(reports)} indexes")
    return 0


async def _index(options: IndexOptions, config: Config | None = None) -> int:
    console = get_console()
    async with app_container(config) as container:
        registry = await container.get(IndexRegistry)
        planner = await container.get(TargetPlanner)
        lifecycle = await container.get(IndexLifecycle)
        pool = await container.get(WorkerPool) if options.transport == "queue" else None

        async with container(scope=Scope.UOW) as scope:
            producer = await scope.get(IndexProducer)
            args = (registry, planner, lifecycle, producer)
            if pool is None:
                return await run_index(options, *args, None, console)
            async with pool:
                return await run_index(options, *args, pool, console)


def index(
    *bases: str,
    locale: Annotated[list[str] | None, cyclopts.Parameter(name=["--locale", "-l"])] = None,
    per_locale: bool = True,
    reset: bool = False,
    settings: bool = True,
    batch_size: int | None = None,
    limit: int | None = None,
    transport: Literal["sync", "queue"] | None = None,
    wait: bool = False,
) -> None:
    """Create, configure and populate indexes.

    Args:
        bases: Logical index names; all declared indexes when omitted.
        locale: Only populate these target locales (repeatable).
        per_locale: One index per locale when the index is multilingual.
        reset: Delete each index before recreating it.
        settings: Apply declared settings before populating.
        batch_size: Identifiers per job (default from configuration).
        limit: Stop each target after roughly this many records.
        transport: "sync" handles jobs inline, "queue" runs the worker pool.
        wait: Wait for every engine task created by the jobs.
    """
    config = Config()
    options = IndexOptions(
        bases=list(bases),
        per_locale=per_locale,
        locales=locale or [],
        reset=reset,
        settings=settings,
        batch_size=batch_size or config.indexing.batch_size,
        limit=limit,
        transport=transport or config.indexing.transport,
        wait=wait,
    )
    code = asyncio.run(_index(options, config))
    if code:
        sys.exit(code)
