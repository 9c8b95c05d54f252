"""IndexLifecycle - index creation, reset, settings and task polling."""

import asyncio
import logging

from meilisync.config import IndexingConfig
from meilisync.domain.index.model.task import IndexInfo, Task, TaskStatus
from meilisync.domain.index.model.value import IndexEntry
from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.domain.index.service.settings import SettingsCheck, diff_settings, settings_for
from meilisync.domain.shared.error import (
    IndexNotFoundError,
    TaskFailedError,
    TaskTimeoutError,
)
from meilisync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class IndexLifecycle(Service):
    """Owns everything that touches an index as a whole.

    The engine answers mutating calls with a task; callers that need the
    result wait for it with ``wait_for_task``.
    """

    engine: SearchEngine
    config: IndexingConfig

    async def get_or_create_index(
        self,
        uid: str,
        primary_key: str = "id",
        auto_create: bool = True,
    ) -> IndexInfo | None:
        """Return the index, creating it when missing and ``auto_create`` is set."""
        try:
            return await self.engine.get_index(uid)
        except IndexNotFoundError:
            if not auto_create:
                return None

        logger.info(f"Creating index '{uid}' (primaryKey={primary_key})")
        task = await self.wait_for_task(await self.engine.create_index(uid, primary_key))
        if task.failed:
            if (task.error or {}).get("code") != "index_already_exists":
                raise TaskFailedError(task.uid, task.error)
            logger.info(f"Index '{uid}' was created concurrently")
        return await self.engine.get_index(uid)

    async def reset(self, uid: str) -> None:
        """Delete the index and wait; an index that does not exist counts as reset."""
        try:
            task = await self.engine.delete_index(uid)
        except IndexNotFoundError:
            logger.debug(f"Index '{uid}' does not exist, nothing to reset")
            return
        task = await self.wait_for_task(task)
        if task.failed and (task.error or {}).get("code") != "index_not_found":
            raise TaskFailedError(task.uid, task.error)
        logger.info(f"Index '{uid}' deleted")

    async def purge(self, uid: str) -> Task:
        """Delete every document but keep the index and its settings."""
        task = await self.engine.delete_all_documents(uid)
        return await self.wait_for_task(task, stop_on_error=True)

    async def wait_for_task(
        self,
        task: Task,
        poll_interval_ms: int | None = None,
        max_attempts: int | None = None,
        stop_on_error: bool = False,
    ) -> Task:
        """Poll a task until it reaches a terminal status.

        Raises:
            TaskFailedError: If the task failed and ``stop_on_error`` is set.
            TaskTimeoutError: If the task is still pending after ``max_attempts``.
        """
        interval = self.config.poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        attempts = self.config.max_poll_attempts if max_attempts is None else max_attempts

        current = task
        tried = 0
        while not current.is_finished:
            if tried >= attempts:
                raise TaskTimeoutError(task.uid, tried, current.status)
            if tried > 0:
                await asyncio.sleep(interval / 1000)
            current = await self.engine.get_task(task.uid)
            tried += 1

        if current.status == TaskStatus.FAILED:
            logger.warning(f"Task {current} failed: {current.error}")
            if stop_on_error:
                raise TaskFailedError(current.uid, current.error)
        else:
            logger.debug(f"Task {current} {current.status} {current.summary}")
        return current

    async def apply_settings(self, uid: str, entry: IndexEntry) -> Task:
        """Push the declared settings of ``entry`` to the index ``uid``."""
        task = await self.engine.update_settings(uid, settings_for(entry))
        logger.info(f"Settings update for '{uid}' enqueued as task {task.uid}")
        return task

    async def compare_settings(self, uid: str, entry: IndexEntry) -> SettingsCheck:
        """Compare wanted settings with live ones and count pending tasks."""
        live = await self.engine.get_settings(uid)
        pending = await self.engine.get_tasks(
            index_uid=uid,
            statuses=[TaskStatus.ENQUEUED, TaskStatus.PROCESSING],
        )
        return SettingsCheck(
            uid=uid,
            pending=len(pending),
            diff=diff_settings(settings_for(entry), live),
        )

    async def wait_until_idle(
        self,
        uid: str,
        poll_interval_ms: int | None = None,
        max_attempts: int | None = None,
    ) -> None:
        """Poll index stats until the engine reports it is no longer indexing."""
        interval = self.config.poll_interval_ms if poll_interval_ms is None else poll_interval_ms
        attempts = self.config.max_poll_attempts if max_attempts is None else max_attempts

        for attempt in range(attempts):
            stats = await self.engine.get_stats(uid)
            if not stats.is_indexing:
                return
            if attempt + 1 < attempts:
                await asyncio.sleep(interval / 1000)
        raise TaskTimeoutError(None, attempts, "indexing")
