"""Tests for the CLI command runners, wired with in-memory fakes."""

import pytest

from meilisync.cli.commands.flush_file import run_flush_file, run_spool_flush
from meilisync.cli.commands.index import IndexOptions, run_index
from meilisync.cli.commands.registry import render_registry
from meilisync.cli.commands.settings import run_apply, run_check
from meilisync.cli.console import Console
from meilisync.domain.index.event.index_entities import IndexEntities
from meilisync.domain.index.model.task import TaskStatus
from meilisync.domain.index.service.lifecycle import IndexLifecycle
from meilisync.domain.index.service.locale import LocaleResolver
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.planner import TargetPlanner
from meilisync.domain.index.service.producer import IndexProducer
from meilisync.domain.index.service.uploader import NdjsonUploader
from meilisync.infrastructure.spool.jsonl import JsonlSpooler


@pytest.fixture
def console() -> Console:
    return Console(force_terminal=False, width=200)


@pytest.fixture
def names(registry, locale_config) -> IndexNameResolver:
    return IndexNameResolver(LocaleResolver(registry, locale_config), prefix="test_")


@pytest.fixture
def planner(registry, locale_config, names) -> TargetPlanner:
    return TargetPlanner(
        registry=registry, locales=LocaleResolver(registry, locale_config), names=names
    )


@pytest.fixture
def lifecycle(fake_engine, indexing_config) -> IndexLifecycle:
    return IndexLifecycle(engine=fake_engine, config=indexing_config)


@pytest.fixture
def producer(fake_store, dispatcher) -> IndexProducer:
    fake_store.records["app.Movie"] = {i: {"id": i} for i in (1, 2, 3)}
    return IndexProducer(store=fake_store, dispatcher=dispatcher)


class TestRunIndex:
    @pytest.mark.asyncio
    async def test_prepares_and_populates(
        self, registry, planner, lifecycle, producer, dispatcher, fake_engine, console, capsys
    ):
        options = IndexOptions(bases=["movies"], batch_size=2)

        code = await run_index(options, registry, planner, lifecycle, producer, None, console)

        assert code == 0
        assert fake_engine.indexes == {"test_movies": "id"}
        assert "filterableAttributes" in fake_engine.settings["test_movies"]
        jobs = dispatcher.events
        assert [job.entity_data for job in jobs] == [[1, 2], [3]]
        assert all(isinstance(job, IndexEntities) for job in jobs)
        assert {job.index_name for job in jobs} == {"test_movies"}
        assert all(sync for _, sync in dispatcher.dispatched)
        assert "3 records dispatched to 1 indexes" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_small_limit_shrinks_batch_size(
        self, registry, planner, lifecycle, producer, dispatcher, console
    ):
        options = IndexOptions(bases=["movies"], batch_size=100, limit=2, settings=False)

        code = await run_index(options, registry, planner, lifecycle, producer, None, console)

        assert code == 0
        assert [job.entity_data for job in dispatcher.events] == [[1, 2]]

    @pytest.mark.asyncio
    async def test_failed_settings_step_exits_non_zero(
        self, registry, planner, lifecycle, producer, dispatcher, fake_engine, console, capsys
    ):
        # Creation is task #1, the settings update task #2
        fake_engine.script[2] = [TaskStatus.FAILED]

        code = await run_index(
            IndexOptions(bases=["movies"]), registry, planner, lifecycle, producer, None, console
        )

        assert code == 1
        assert dispatcher.dispatched == []
        assert "failed: Task 2 failed: boom" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_nothing_to_index(self, registry, planner, lifecycle, producer, console, capsys):
        code = await run_index(
            IndexOptions(bases=["nope"]), registry, planner, lifecycle, producer, None, console
        )

        assert code == 1
        captured = capsys.readouterr()
        assert "'nope' is not a declared index" in captured.out
        assert "Nothing to index" in captured.err

    @pytest.mark.asyncio
    async def test_reset_deletes_before_creating(
        self, registry, planner, lifecycle, producer, fake_engine, console
    ):
        fake_engine.indexes["test_movies"] = "legacy"

        await run_index(
            IndexOptions(bases=["movies"], reset=True, settings=False),
            registry,
            planner,
            lifecycle,
            producer,
            None,
            console,
        )

        assert fake_engine.indexes == {"test_movies": "id"}


class TestRegistry:
    def test_lists_engine_indexes(self, registry, planner, console, capsys):
        assert render_registry(registry, planner, console) == 0

        out = capsys.readouterr().out
        assert "test_books_en, test_books_es" in out
        assert "test_movies" in out

    def test_filter_without_match(self, registry, planner, console, capsys):
        render_registry(registry, planner, console, filter="zzz")

        assert "No indexes declared matching 'zzz'" in capsys.readouterr().out


class TestSettingsCommands:
    @pytest.mark.asyncio
    async def test_apply_then_check_is_clean(self, registry, planner, lifecycle, console):
        assert await run_apply(["movies"], registry, planner, lifecycle, console) == 0
        assert await run_check(["movies"], registry, planner, lifecycle, console) == 0

    @pytest.mark.asyncio
    async def test_check_reports_drift(self, registry, planner, lifecycle, console, capsys):
        code = await run_check(["movies"], registry, planner, lifecycle, console)

        assert code == 1
        assert "filterableAttributes: +genre,year" in capsys.readouterr().out


class TestFlushFile:
    @pytest.mark.asyncio
    async def test_uploads_file(self, names, lifecycle, fake_engine, console, tmp_path):
        path = tmp_path / "movies.jsonl"
        path.write_text('{"id": 1}\n{"id": 2}\n', encoding="utf-8")
        uploader = NdjsonUploader(fake_engine)

        code = await run_flush_file(
            "movies", path, None, "id", names, lifecycle, uploader, console
        )

        assert code == 0
        assert [uid for uid, _, _ in fake_engine.uploads] == ["test_movies"]

    @pytest.mark.asyncio
    async def test_missing_file_fails(self, names, lifecycle, fake_engine, console, tmp_path):
        code = await run_flush_file(
            "movies", tmp_path / "nope.jsonl", None, "id", names, lifecycle,
            NdjsonUploader(fake_engine), console,
        )

        assert code == 1
        assert fake_engine.uploads == []


class TestSpoolFlush:
    @pytest.mark.asyncio
    async def test_ids_spool_becomes_reload_jobs(
        self, registry, names, lifecycle, fake_engine, dispatcher, console, tmp_path
    ):
        spooler = JsonlSpooler(tmp_path)
        path = spooler.append_ids("app.Movie", [1, 2, 3])

        code = await run_spool_flush(
            "app.Movie", None, False, 2, spooler, registry, names, lifecycle,
            NdjsonUploader(fake_engine), dispatcher, console,
        )

        assert code == 0
        assert [job.entity_data for job in dispatcher.events] == [[1, 2], [3]]
        assert all(job.reload for job in dispatcher.events)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_docs_spool_is_uploaded(
        self, registry, names, lifecycle, fake_engine, dispatcher, console, tmp_path
    ):
        spooler = JsonlSpooler(tmp_path)
        path = spooler.append_docs("app.Movie", [{"id": 1}, {"id": 2}])

        code = await run_spool_flush(
            "app.Movie", None, True, 100, spooler, registry, names, lifecycle,
            NdjsonUploader(fake_engine), dispatcher, console,
        )

        assert code == 0
        assert [uid for uid, _, _ in fake_engine.uploads] == ["test_Movie"]
        assert dispatcher.dispatched == []
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_missing_spool_is_a_no_op(
        self, registry, names, lifecycle, fake_engine, dispatcher, console, tmp_path
    ):
        code = await run_spool_flush(
            "app.Movie", "es", False, 100, JsonlSpooler(tmp_path), registry, names, lifecycle,
            NdjsonUploader(fake_engine), dispatcher, console,
        )

        assert code == 0
        assert dispatcher.dispatched == []
