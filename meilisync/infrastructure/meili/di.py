"""DI provider for the search engine HTTP adapter."""

from collections.abc import AsyncIterable
from typing import NewType

import httpx
from dishka import Provider, provide

from meilisync.config import SearchConfig
from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.infrastructure.meili.client import MeiliClient, build_http_client
from meilisync.util.di.scope import Scope

# One pooled client per process, authenticated against the engine
MeiliHttpClient = NewType("MeiliHttpClient", httpx.AsyncClient)


class MeiliProvider(Provider):
    @provide(scope=Scope.APP)
    async def get_http_client(self, config: SearchConfig) -> AsyncIterable[MeiliHttpClient]:
        async with build_http_client(config.host, config.api_key, config.timeout) as client:
            yield MeiliHttpClient(client)

    @provide(scope=Scope.APP, provides=SearchEngine)
    def get_search_engine(self, client: MeiliHttpClient) -> MeiliClient:
        return MeiliClient(client)
