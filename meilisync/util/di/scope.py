"""Custom Dishka scopes for meilisync."""

from dishka import BaseScope, new_scope


class Scope(BaseScope):  # type: ignore[misc]  # BaseScope is designed to be subclassed
    """meilisync dependency injection scopes.

    Hierarchy: APP -> UOW

    - APP: Process lifetime (configuration, engine client, bus, worker pool)
    - UOW: Unit of Work (one CLI command step or one job delivery)
    """

    APP = new_scope("APP")
    UOW = new_scope("UOW")
