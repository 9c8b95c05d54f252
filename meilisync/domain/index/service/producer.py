"""IndexProducer - turns identifier streams into batched indexing jobs."""

import logging
from collections.abc import Sequence

import logfire
from pydantic import BaseModel

from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.model.value import IndexTarget
from meilisync.domain.index.port.record_store import RecordStore
from meilisync.domain.index.service.streamer import PrimaryKeyStreamer
from meilisync.domain.shared.port.dispatcher import Dispatcher
from meilisync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class TargetReport(BaseModel):
    """Outcome of dispatching one target."""

    target: IndexTarget
    sent: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class IndexProducer(Service):
    """Streams the ids of a target's record class and dispatches one job per batch.

    Every identifier is emitted at most once per run, in ascending order.
    ``limit`` is a soft ceiling: production stops after the batch that
    reaches it, so ``sent`` may exceed ``limit`` by less than one batch.
    """

    store: RecordStore
    dispatcher: Dispatcher

    async def dispatch_target(
        self,
        target: IndexTarget,
        batch_size: int = 1000,
        limit: int | None = None,
        sync: bool = True,
        wait: bool = False,
        primary_key_name: str = "id",
    ) -> int:
        report = TargetReport(target=target)
        await self._produce(report, batch_size, limit, sync, wait, primary_key_name)
        return report.sent

    async def dispatch_targets(
        self,
        targets: Sequence[IndexTarget],
        batch_size: int = 1000,
        limit: int | None = None,
        sync: bool = True,
        wait: bool = False,
        primary_key_name: str = "id",
    ) -> list[TargetReport]:
        """Dispatch each target in turn; a failing target does not stop the run.

        A failed target's report keeps the count of ids dispatched before the failure.
        """
        reports: list[TargetReport] = []
        for target in targets:
            report = TargetReport(target=target)
            reports.append(report)
            try:
                await self._produce(report, batch_size, limit, sync, wait, primary_key_name)
            except Exception as e:
                logger.error(f"Dispatch to '{target.uid}' failed after {report.sent} ids: {e}")
                report.error = str(e)
        return reports

    async def _produce(
        self,
        report: TargetReport,
        batch_size: int,
        limit: int | None,
        sync: bool,
        wait: bool,
        primary_key_name: str,
    ) -> None:
        target = report.target
        streamer = PrimaryKeyStreamer(self.store, target.record_class)
        batches = 0

        with logfire.span("DispatchTarget", uid=target.uid, locale=target.locale):
            async for ids in streamer.stream(batch_size):
                job = IndexEntities(
                    entity_class=target.record_class,
                    entity_data=ids,
                    reload=True,
                    primary_key_name=primary_key_name,
                    locale=target.locale,
                    index_name=target.uid,
                    sync=sync,
                    wait=wait,
                )
                await self.dispatcher.dispatch(job, sync=sync)
                report.sent += len(ids)
                batches += 1

                if limit is not None and limit > 0 and report.sent >= limit:
                    break

        logger.info(
            f"Dispatched {report.sent} ids of {target.record_class} to '{target.uid}' "
            f"(locale={target.locale or '-'}, batches={batches}, "
            f"transport={'sync' if sync else 'queue'})"
        )
