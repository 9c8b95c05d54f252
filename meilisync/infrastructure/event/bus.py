"""In-process message bus implementing the Dispatcher port."""

import asyncio
import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from dishka import AsyncContainer

from meilisync.domain.shared.event import Event, EventHandler
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.util.di.scope import Scope

logger = logging.getLogger(__name__)


@dataclass
class Delivery:
    """One job bound for one handler; ``attempts`` counts failed tries so far."""

    event: Event
    handler_type: type[EventHandler[Any]]
    attempts: int = 0


class MessageBus(Dispatcher):
    """Routes jobs to their handlers, inline or through a queue.

    ``dispatch(job, sync=True)`` resolves each handler in a fresh UOW scope
    and awaits it before returning, so errors reach the caller. Otherwise one
    Delivery per handler is queued for the WorkerPool.
    """

    def __init__(
        self,
        container: AsyncContainer,
        handler_types: Iterable[type[EventHandler[Any]]],
        queue: asyncio.Queue[Delivery] | None = None,
    ) -> None:
        self._container = container
        self._queue: asyncio.Queue[Delivery] = queue or asyncio.Queue()
        self._routes: dict[type[Event], list[type[EventHandler[Any]]]] = defaultdict(list)
        for handler_type in handler_types:
            self._routes[handler_type.__event_type__].append(handler_type)

    @property
    def queue(self) -> asyncio.Queue[Delivery]:
        return self._queue

    def handlers_for(self, event_type: type[Event]) -> list[type[EventHandler[Any]]]:
        return list(self._routes.get(event_type, []))

    async def dispatch(self, event: Event, sync: bool = False) -> None:
        handler_types = self.handlers_for(type(event))
        if not handler_types:
            logger.warning(f"No handler registered for {type(event).__name__}, dropped")
            return

        for handler_type in handler_types:
            if sync:
                await self.deliver(event, handler_type)
            else:
                await self._queue.put(Delivery(event=event, handler_type=handler_type))

    async def deliver(self, event: Event, handler_type: type[EventHandler[Any]]) -> None:
        """Run one handler on one job inside its own unit of work."""
        async with self._container(scope=Scope.UOW) as scope:
            handler = await scope.get(handler_type)
            await handler.handle(event)
        logger.debug(f"{handler_type.__name__} handled {type(event).__name__} {event.id}")

    async def join(self) -> None:
        """Wait until every queued delivery has been processed or given up."""
        await self._queue.join()
