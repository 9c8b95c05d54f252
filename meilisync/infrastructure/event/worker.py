"""Worker and WorkerPool draining the message bus queue."""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from meilisync.domain.shared.error import SkippedEvents
from meilisync.domain.shared.event import EventId
from meilisync.infrastructure.event.bus import Delivery, MessageBus

logger = logging.getLogger(__name__)


class WorkerStatus(StrEnum):
    IDLE = "idle"
    PROCESSING = "processing"
    STOPPING = "stopping"


@dataclass
class WorkerState:
    """Runtime state for a running worker (not persisted).

    Attributes:
        status: Current worker status.
        processed_count: Deliveries handled successfully.
        retried_count: Failed deliveries put back on the queue.
        failed_count: Deliveries given up after the last retry.
        skipped_count: Deliveries the handler refused to process.
        failed: Ids of jobs given up on.
        error: Last error if any.
    """

    status: WorkerStatus = WorkerStatus.IDLE
    processed_count: int = 0
    retried_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    failed: list[EventId] = field(default_factory=list)
    error: Exception | None = None


class Worker:
    """Pulls deliveries from the bus queue and runs them.

    A failing delivery is re-queued until it has been retried ``max_retries``
    times (default: the handler's ``__max_retries__``), then logged as
    failed. SkippedEvents is never retried.
    """

    def __init__(self, bus: MessageBus, name: str, max_retries: int | None = None) -> None:
        self._bus = bus
        self._name = name
        self._max_retries = max_retries
        self._state = WorkerState()
        self._shutdown = False
        self._task: asyncio.Task | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> WorkerState:
        return self._state

    def start(self) -> asyncio.Task:
        self._shutdown = False
        self._task = asyncio.create_task(self._run(), name=f"worker-{self.name}")
        logger.info(f"Worker '{self.name}' started")
        return self._task

    def stop(self) -> None:
        """Cancel the worker; deliveries still queued stay on the queue."""
        self._shutdown = True
        self._state.status = WorkerStatus.STOPPING
        if self._task and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        queue = self._bus.queue
        try:
            while not self._shutdown:
                delivery = await queue.get()
                try:
                    await self.process(delivery)
                finally:
                    queue.task_done()
        except asyncio.CancelledError:
            logger.info(f"Worker '{self.name}' cancelled")
            raise
        finally:
            logger.info(f"Worker '{self.name}' stopped")

    async def process(self, delivery: Delivery) -> None:
        """Run one delivery, applying the retry policy on failure."""
        event = delivery.event
        handler_name = delivery.handler_type.__name__
        self._state.status = WorkerStatus.PROCESSING
        try:
            await self._bus.deliver(event, delivery.handler_type)
            self._state.processed_count += 1

        except SkippedEvents as e:
            logger.warning(
                f"Worker '{self.name}' skipping {type(event).__name__} {event.id}: {e.reason}"
            )
            self._state.skipped_count += 1

        except Exception as e:
            self._state.error = e
            max_retries = (
                delivery.handler_type.__max_retries__
                if self._max_retries is None
                else self._max_retries
            )
            if delivery.attempts < max_retries:
                delivery.attempts += 1
                self._state.retried_count += 1
                logger.warning(
                    f"{handler_name} failed on {event.id} "
                    f"(retry {delivery.attempts}/{max_retries}): {e}"
                )
                await self._bus.queue.put(delivery)
            else:
                self._state.failed_count += 1
                self._state.failed.append(event.id)
                logger.error(
                    f"{handler_name} gave up on {type(event).__name__} {event.id} "
                    f"after {delivery.attempts + 1} attempts: {e}"
                )

        finally:
            if not self._shutdown:
                self._state.status = WorkerStatus.IDLE


class WorkerPool:
    """Runs ``size`` workers on one bus.

    Usage:
        pool = WorkerPool(bus, size=4)
        async with pool:
            await producer.dispatch_target(target, sync=False)
            await pool.drain()
    """

    def __init__(self, bus: MessageBus, size: int = 1, max_retries: int | None = None) -> None:
        if size < 1:
            raise ValueError("size must be >= 1")
        self._bus = bus
        self._workers = [Worker(bus, f"{i + 1}", max_retries=max_retries) for i in range(size)]

    @property
    def workers(self) -> list[Worker]:
        return self._workers

    @property
    def failed(self) -> list[EventId]:
        return [event_id for w in self._workers for event_id in w.state.failed]

    @property
    def processed_count(self) -> int:
        return sum(w.state.processed_count for w in self._workers)

    async def start(self) -> None:
        for worker in self._workers:
            worker.start()
        logger.info(f"WorkerPool started with {len(self._workers)} workers")

    async def drain(self) -> None:
        """Wait until the queue is empty and every delivery has settled."""
        await self._bus.join()

    async def stop(self, timeout: float = 30.0) -> None:
        tasks = [w._task for w in self._workers if w._task and not w._task.done()]
        for worker in self._workers:
            worker.stop()
        if tasks:
            done, pending = await asyncio.wait(tasks, timeout=timeout)
            for task in pending:
                logger.warning(f"Task {task.get_name()} did not stop in {timeout}s")
        logger.info("WorkerPool stopped")

    async def __aenter__(self) -> "WorkerPool":
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.stop()
