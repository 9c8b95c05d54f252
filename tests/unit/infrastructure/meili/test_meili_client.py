"""Unit tests for the HTTP search engine adapter."""

import json

import httpx
import pytest

from meilisync.domain.index.model.task import TaskStatus
from meilisync.domain.shared.error import IndexNotFoundError, SearchEngineError
from meilisync.infrastructure.meili.client import MeiliClient, build_http_client


class Recorder:
    """MockTransport handler replaying canned responses and keeping requests."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


def make_client(recorder: Recorder) -> MeiliClient:
    http = httpx.AsyncClient(
        base_url="http://meili.test",
        headers={"Authorization": "Bearer secret"},
        transport=httpx.MockTransport(recorder),
    )
    return MeiliClient(http)


def enqueued(uid: int = 1, index_uid: str = "movies") -> httpx.Response:
    return httpx.Response(
        202,
        json={"taskUid": uid, "indexUid": index_uid, "status": "enqueued", "type": "x"},
    )


class TestDocuments:
    @pytest.mark.asyncio
    async def test_ndjson_upload(self):
        recorder = Recorder(enqueued(5))
        client = make_client(recorder)

        task = await client.add_documents_ndjson("movies", b'{"id":1}\n', primary_key="id")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/indexes/movies/documents"
        assert request.url.params["primaryKey"] == "id"
        assert request.headers["Content-Type"] == "application/x-ndjson"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.content == b'{"id":1}\n'
        assert task.uid == 5
        assert task.status == TaskStatus.ENQUEUED

    @pytest.mark.asyncio
    async def test_delete_batch(self):
        recorder = Recorder(enqueued(6))

        await make_client(recorder).delete_documents("movies", [1, "b"])

        request = recorder.requests[0]
        assert request.url.path == "/indexes/movies/documents/delete-batch"
        assert json.loads(request.content) == [1, "b"]


class TestIndexes:
    @pytest.mark.asyncio
    async def test_create_index_sends_primary_key(self):
        recorder = Recorder(enqueued(1))

        await make_client(recorder).create_index("movies", "id")

        assert json.loads(recorder.requests[0].content) == {"uid": "movies", "primaryKey": "id"}

    @pytest.mark.asyncio
    async def test_missing_index_raises_not_found(self):
        recorder = Recorder(
            httpx.Response(
                404, json={"message": "Index `movies` not found.", "code": "index_not_found"}
            )
        )

        with pytest.raises(IndexNotFoundError) as exc:
            await make_client(recorder).get_index("movies")

        assert exc.value.code == "index_not_found"
        assert exc.value.path == "/indexes/movies"

    @pytest.mark.asyncio
    async def test_other_errors_keep_status_and_body(self):
        recorder = Recorder(
            httpx.Response(400, json={"message": "bad", "code": "invalid_settings"})
        )

        with pytest.raises(SearchEngineError) as exc:
            await make_client(recorder).update_settings("movies", {"foo": 1})

        assert not isinstance(exc.value, IndexNotFoundError)
        assert exc.value.status_code == 400
        assert "bad" in exc.value.body

    @pytest.mark.asyncio
    async def test_stats(self):
        recorder = Recorder(httpx.Response(200, json={"numberOfDocuments": 4, "isIndexing": False}))

        stats = await make_client(recorder).get_stats("movies")

        assert stats.number_of_documents == 4


class TestTasks:
    @pytest.mark.asyncio
    async def test_get_task(self):
        recorder = Recorder(
            httpx.Response(
                200,
                json={
                    "uid": 9,
                    "status": "failed",
                    "error": {"message": "boom", "code": "internal"},
                },
            )
        )

        task = await make_client(recorder).get_task(9)

        assert recorder.requests[0].url.path == "/tasks/9"
        assert task.failed
        assert task.error["code"] == "internal"

    @pytest.mark.asyncio
    async def test_list_pending_tasks(self):
        recorder = Recorder(
            httpx.Response(200, json={"results": [{"uid": 1, "status": "processing"}]})
        )

        tasks = await make_client(recorder).get_tasks(
            index_uid="movies", statuses=[TaskStatus.ENQUEUED, TaskStatus.PROCESSING]
        )

        params = recorder.requests[0].url.params
        assert params["indexUids"] == "movies"
        assert params["statuses"] == "enqueued,processing"
        assert [t.uid for t in tasks] == [1]

    @pytest.mark.asyncio
    async def test_non_object_body_is_an_error(self):
        recorder = Recorder(httpx.Response(200, json=[1, 2]))

        with pytest.raises(SearchEngineError):
            await make_client(recorder).get_task(1)


class TestBuildHttpClient:
    @pytest.mark.asyncio
    async def test_sets_base_url_and_auth(self):
        async with build_http_client("http://meili.test/", "key", timeout=5) as http:
            assert http.base_url.host == "meili.test"
            assert http.headers["Authorization"] == "Bearer key"

    @pytest.mark.asyncio
    async def test_no_auth_without_key(self):
        async with build_http_client("http://meili.test") as http:
            assert "Authorization" not in http.headers
