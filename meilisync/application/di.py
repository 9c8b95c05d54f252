from dishka import AsyncContainer, make_async_container

from meilisync.config import Config
from meilisync.domain.index.util.di.provider import IndexProvider
from meilisync.infrastructure.event.di import EventProvider
from meilisync.infrastructure.meili.di import MeiliProvider
from meilisync.infrastructure.record.di import RecordProvider
from meilisync.util.di.scope import Scope


def create_container(config: Config | None = None) -> AsyncContainer:
    # Pydantic Settings populates from env vars and the YAML file at runtime
    config = config or Config()

    return make_async_container(
        IndexProvider(),
        MeiliProvider(),
        RecordProvider(),
        EventProvider(),
        context={Config: config},
        scopes=Scope,  # type: ignore[arg-type]  # Custom scope class
    )
