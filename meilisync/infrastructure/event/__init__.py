"""Dispatch infrastructure - message bus, worker pool and DI provider.

Import modules directly:
    from meilisync.infrastructure.event.bus import MessageBus
    from meilisync.infrastructure.event.di import EventProvider
    from meilisync.infrastructure.event.worker import WorkerPool
"""

__all__: list[str] = []
