"""Dependency injection provider for the dispatch boundary."""

import logging
from typing import Any, NewType

from dishka import AsyncContainer, Provider, provide

from meilisync.config import IndexingConfig, LocaleConfig
from meilisync.domain.index.handler import BatchIndexEntitiesHandler, RemoveEntitiesHandler
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.port.record_store import RecordStore
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.unit_of_work import PendingOperations
from meilisync.domain.shared.event import EventHandler
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.infrastructure.event.bus import MessageBus
from meilisync.infrastructure.event.worker import WorkerPool
from meilisync.infrastructure.spool.jsonl import JsonlSpooler
from meilisync.util.di.scope import Scope

logger = logging.getLogger(__name__)


HandlerTypes = NewType("HandlerTypes", list[type[EventHandler[Any]]])

# All job handlers routed by the bus
HANDLERS: HandlerTypes = HandlerTypes(
    [
        BatchIndexEntitiesHandler,
        RemoveEntitiesHandler,
    ]
)


class EventProvider(Provider):
    """Provides the bus, the worker pool and the job handlers.

    Handlers and the pending-operations accumulator are UOW-scoped (fresh per
    unit of work). MessageBus and WorkerPool are APP-scoped singletons.
    """

    # UOW-scoped providers for handlers
    for _handler_type in HANDLERS:
        locals()[_handler_type.__name__] = provide(_handler_type, scope=Scope.UOW)

    @provide(scope=Scope.APP)
    def get_handler_types(self) -> HandlerTypes:
        return HANDLERS

    @provide(scope=Scope.APP)
    def get_bus(self, container: AsyncContainer, handler_types: HandlerTypes) -> MessageBus:
        bus = MessageBus(container, handler_types)
        logger.debug(f"MessageBus routes {len(handler_types)} handlers")
        return bus

    @provide(scope=Scope.APP)
    def get_dispatcher(self, bus: MessageBus) -> Dispatcher:
        return bus

    @provide(scope=Scope.APP)
    def get_worker_pool(self, bus: MessageBus, config: IndexingConfig) -> WorkerPool:
        return WorkerPool(bus, size=config.workers, max_retries=config.max_retries)

    @provide(scope=Scope.UOW)
    def get_pending_operations(
        self,
        registry: IndexRegistry,
        store: RecordStore,
        dispatcher: Dispatcher,
        names: IndexNameResolver,
        indexing: IndexingConfig,
        locales: LocaleConfig,
    ) -> PendingOperations:
        return PendingOperations(
            registry,
            store,
            dispatcher,
            names,
            locale=locales.default_locale,
            sync=indexing.transport == "sync",
            spooler=JsonlSpooler(indexing.spool_dir) if indexing.spool else None,
        )
