from collections.abc import AsyncIterable

from dishka import Provider, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from meilisync.config import Config
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.port.record_store import RecordStore
from meilisync.infrastructure.record.database import create_db_engine, create_session_factory
from meilisync.infrastructure.record.sqlalchemy_store import (
    RecordTables,
    SqlAlchemyRecordStore,
    reflect_tables,
)
from meilisync.util.di.scope import Scope


class RecordProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    async def get_engine(self, config: Config) -> AsyncIterable[AsyncEngine]:
        engine = create_db_engine(config.database)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)

    @provide(scope=Scope.APP)
    async def get_record_tables(
        self, engine: AsyncEngine, registry: IndexRegistry, config: Config
    ) -> RecordTables:
        classes = {entry.record_class for _, entry in registry.items()}
        return await reflect_tables(
            engine, classes, config.database.tables, config.database.column_groups
        )

    # UOW-scoped session (one per unit of work, read only)
    @provide(scope=Scope.UOW)
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterable[AsyncSession]:
        async with session_factory() as session:
            yield session

    @provide(scope=Scope.UOW, provides=RecordStore)
    def get_record_store(
        self, session: AsyncSession, tables: RecordTables
    ) -> SqlAlchemyRecordStore:
        return SqlAlchemyRecordStore(session, tables)
