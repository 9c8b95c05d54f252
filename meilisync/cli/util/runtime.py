"""Container lifecycle for CLI commands."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dishka import AsyncContainer

from meilisync.application.di import create_container
from meilisync.config import Config, configure_logging


@asynccontextmanager
async def app_container(config: Config | None = None) -> AsyncIterator[AsyncContainer]:
    """Load configuration, set up logging and yield an APP container."""
    config = config or Config()
    configure_logging(config.logging)
    container = create_container(config)
    try:
        yield container
    finally:
        await container.close()
