from abc import abstractmethod
from typing import Protocol

from meilisync.domain.shared.event import Event


class Dispatcher(Protocol):
    """Asynchronous dispatch boundary.

    ``sync=True`` is the inline pseudo-transport: the job is handled before
    ``dispatch`` returns. Otherwise the job is queued and delivered at least
    once, with no ordering guarantee across jobs.
    """

    @abstractmethod
    async def dispatch(self, event: Event, sync: bool = False) -> None: ...
