"""Unit tests for PrimaryKeyStreamer."""

import pytest

from meilisync.domain.index.service.streamer import PrimaryKeyStreamer


def _store_with(fake_store, ids):
    fake_store.records["app.Movie"] = {i: {"id": i} for i in ids}
    return fake_store


async def _collect(streamer: PrimaryKeyStreamer, batch_size: int) -> list[list]:
    return [batch async for batch in streamer.stream(batch_size)]


class TestStream:
    @pytest.mark.asyncio
    async def test_every_id_exactly_once_in_order(self, fake_store):
        store = _store_with(fake_store, [5, 3, 1, 4, 2, 7, 6])
        streamer = PrimaryKeyStreamer(store, "app.Movie")

        batches = await _collect(streamer, 3)

        assert batches == [[1, 2, 3], [4, 5, 6], [7]]
        flat = [i for b in batches for i in b]
        assert flat == sorted(set(flat))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("n,size", [(0, 3), (1, 1), (6, 3), (10, 4), (9, 100)])
    async def test_batches_are_bounded(self, fake_store, n: int, size: int):
        store = _store_with(fake_store, range(1, n + 1))
        batches = await _collect(PrimaryKeyStreamer(store, "app.Movie"), size)

        assert all(1 <= len(b) <= size for b in batches)
        assert sum(len(b) for b in batches) == n

    @pytest.mark.asyncio
    async def test_exact_multiple_ends_on_empty_page(self, fake_store):
        store = _store_with(fake_store, [1, 2, 3, 4])

        batches = await _collect(PrimaryKeyStreamer(store, "app.Movie"), 2)

        assert batches == [[1, 2], [3, 4]]
        assert [c[1] for c in store.fetch_calls] == [0, 2, 4]

    @pytest.mark.asyncio
    async def test_each_stream_call_rescans(self, fake_store):
        store = _store_with(fake_store, [1, 2, 3])
        streamer = PrimaryKeyStreamer(store, "app.Movie")

        first = await _collect(streamer, 2)
        second = await _collect(streamer, 2)

        assert first == second == [[1, 2], [3]]

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self, fake_store):
        streamer = PrimaryKeyStreamer(fake_store, "app.Movie")

        with pytest.raises(ValueError):
            await _collect(streamer, 0)
