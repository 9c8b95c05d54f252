"""Tests for the application container wiring."""

import pytest

from meilisync.application.di import create_container
from meilisync.config import Config, DatabaseConfig, SearchConfig
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.planner import TargetPlanner
from meilisync.domain.index.service.uploader import NdjsonUploader
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.infrastructure.event.bus import MessageBus
from meilisync.infrastructure.event.worker import WorkerPool


@pytest.fixture
def config() -> Config:
    return Config(
        search=SearchConfig(prefix="ci_", max_payload_bytes=1024),
        database=DatabaseConfig(url="sqlite+aiosqlite:///:memory:"),
        indexes=[{"name": "movies", "record_class": "app.Movie"}],
    )


class TestContainer:
    @pytest.mark.asyncio
    async def test_resolves_app_scoped_services(self, config):
        container = create_container(config)
        try:
            registry = await container.get(IndexRegistry)
            planner = await container.get(TargetPlanner)
            names = await container.get(IndexNameResolver)
            uploader = await container.get(NdjsonUploader)
            lifecycle = await container.get(IndexLifecycle)

            assert registry.names() == ["movies"]
            assert [t.uid for t in planner.targets_for_base("movies", per_locale=True)] == [
                "ci_movies"
            ]
            assert names.prefix == "ci_"
            assert uploader.max_payload_bytes == 1024
            assert lifecycle.config is config.indexing
        finally:
            await container.close()

    @pytest.mark.asyncio
    async def test_dispatcher_is_the_message_bus(self, config):
        container = create_container(config)
        try:
            bus = await container.get(MessageBus)

            assert await container.get(Dispatcher) is bus
            assert len((await container.get(WorkerPool)).workers) == config.indexing.workers
        finally:
            await container.close()
