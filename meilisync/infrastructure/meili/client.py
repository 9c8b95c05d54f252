"""HTTP adapter for the SearchEngine port."""

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from meilisync.domain.index.model.task import IndexInfo, IndexStats, Task
from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.domain.shared.error import IndexNotFoundError, SearchEngineError

logger = logging.getLogger(__name__)

NDJSON_CONTENT_TYPE = "application/x-ndjson"


class MeiliClient(SearchEngine):
    """Talks to a Meilisearch-compatible engine over httpx.

    The client's base URL and bearer token are set by whoever builds the
    ``httpx.AsyncClient``; every response is decoded here, once.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    # -- indexes ---------------------------------------------------------------

    async def get_index(self, uid: str) -> IndexInfo:
        data = await self._request("GET", f"/indexes/{uid}")
        return IndexInfo.from_api(data)

    async def create_index(self, uid: str, primary_key: str | None = None) -> Task:
        payload: dict[str, Any] = {"uid": uid}
        if primary_key:
            payload["primaryKey"] = primary_key
        return Task.from_api(await self._request("POST", "/indexes", json=payload))

    async def delete_index(self, uid: str) -> Task:
        return Task.from_api(await self._request("DELETE", f"/indexes/{uid}"))

    async def get_settings(self, uid: str) -> dict[str, Any]:
        return await self._request("GET", f"/indexes/{uid}/settings")

    async def update_settings(self, uid: str, settings: dict[str, Any]) -> Task:
        data = await self._request("PATCH", f"/indexes/{uid}/settings", json=settings)
        return Task.from_api(data)

    async def get_stats(self, uid: str) -> IndexStats:
        return IndexStats.from_api(await self._request("GET", f"/indexes/{uid}/stats"))

    # -- tasks -----------------------------------------------------------------

    async def get_task(self, task_uid: int) -> Task:
        return Task.from_api(await self._request("GET", f"/tasks/{task_uid}"))

    async def get_tasks(
        self,
        index_uid: str | None = None,
        statuses: Sequence[str] = (),
        limit: int = 100,
    ) -> list[Task]:
        params: dict[str, Any] = {"limit": limit}
        if index_uid:
            params["indexUids"] = index_uid
        if statuses:
            params["statuses"] = ",".join(str(s) for s in statuses)
        data = await self._request("GET", "/tasks", params=params)
        return [Task.from_api(item) for item in data.get("results", [])]

    # -- documents -------------------------------------------------------------

    async def add_documents_ndjson(
        self, uid: str, body: bytes, primary_key: str | None = None
    ) -> Task:
        params = {"primaryKey": primary_key} if primary_key else None
        data = await self._request(
            "POST",
            f"/indexes/{uid}/documents",
            content=body,
            params=params,
            headers={"Content-Type": NDJSON_CONTENT_TYPE},
        )
        return Task.from_api(data)

    async def delete_documents(self, uid: str, ids: Sequence[Any]) -> Task:
        data = await self._request("POST", f"/indexes/{uid}/documents/delete-batch", json=list(ids))
        return Task.from_api(data)

    async def delete_all_documents(self, uid: str) -> Task:
        return Task.from_api(await self._request("DELETE", f"/indexes/{uid}/documents"))

    # -------------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._client.request(method, path, **kwargs)
        if response.is_error:
            raise _error_for(response, method, path)
        if not response.content:
            return {}
        data = response.json()
        if not isinstance(data, dict):
            raise SearchEngineError(
                response.status_code,
                f"expected a JSON object, got {type(data).__name__}",
                method=method,
                path=path,
            )
        return data


def _error_for(response: httpx.Response, method: str, path: str) -> SearchEngineError:
    body = response.text
    code: str | None = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        code = payload.get("code")

    logger.debug(f"{method} {path} -> {response.status_code} {body[:200]}")
    if response.status_code == 404 and code in (None, "index_not_found"):
        return IndexNotFoundError(response.status_code, body, code=code, method=method, path=path)
    return SearchEngineError(response.status_code, body, code=code, method=method, path=path)


def build_http_client(
    host: str, api_key: str | None = None, timeout: float = 30.0
) -> httpx.AsyncClient:
    """AsyncClient preconfigured with base URL and bearer auth."""
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    return httpx.AsyncClient(base_url=host.rstrip("/"), headers=headers, timeout=timeout)
