from dishka import Provider, from_context, provide

from meilisync.config import Config, IndexingConfig, LocaleConfig, SearchConfig
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.port.record_store import RecordStore
from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.locale import LocaleResolver
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.planner import TargetPlanner
from meilisync.domain.index.service.producer import IndexProducer
from meilisync.domain.index.service.uploader import NdjsonUploader
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.util.di.scope import Scope


class IndexProvider(Provider):
    """Registry, resolvers and services of the index domain.

    Everything derived from configuration is APP-scoped; services that read
    records are UOW-scoped so they share the unit of work's session.
    """

    config = from_context(provides=Config, scope=Scope.APP)

    @provide(scope=Scope.APP)
    def get_search_config(self, config: Config) -> SearchConfig:
        return config.search

    @provide(scope=Scope.APP)
    def get_locale_config(self, config: Config) -> LocaleConfig:
        return config.locales

    @provide(scope=Scope.APP)
    def get_indexing_config(self, config: Config) -> IndexingConfig:
        return config.indexing

    @provide(scope=Scope.APP)
    def get_registry(self, config: Config) -> IndexRegistry:
        return IndexRegistry(config.indexes)

    @provide(scope=Scope.APP)
    def get_locale_resolver(self, registry: IndexRegistry, config: LocaleConfig) -> LocaleResolver:
        return LocaleResolver(registry, config)

    @provide(scope=Scope.APP)
    def get_name_resolver(self, locales: LocaleResolver, config: SearchConfig) -> IndexNameResolver:
        return IndexNameResolver(locales, prefix=config.prefix)

    @provide(scope=Scope.APP)
    def get_planner(
        self,
        registry: IndexRegistry,
        locales: LocaleResolver,
        names: IndexNameResolver,
    ) -> TargetPlanner:
        return TargetPlanner(registry=registry, locales=locales, names=names)

    @provide(scope=Scope.APP)
    def get_uploader(self, engine: SearchEngine, config: SearchConfig) -> NdjsonUploader:
        return NdjsonUploader(engine, max_payload_bytes=config.max_payload_bytes)

    lifecycle = provide(IndexLifecycle, scope=Scope.APP)

    @provide(scope=Scope.UOW)
    def get_producer(self, store: RecordStore, dispatcher: Dispatcher) -> IndexProducer:
        return IndexProducer(store=store, dispatcher=dispatcher)
