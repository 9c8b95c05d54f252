"""NdjsonUploader - byte-bounded NDJSON document uploads."""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from meilisync.domain.index.port.search_engine import SearchEngine
from meilisync.domain.shared.error import MissingPrimaryKeyError, ValidationError

logger = logging.getLogger(__name__)


class UploadResult(BaseModel):
    """Tasks created by one upload call, in request order."""

    task_uids: list[int] = []
    documents: int = 0
    batches: int = 0

    @property
    def last_task_uid(self) -> int | None:
        return self.task_uids[-1] if self.task_uids else None


def encode_line(document: Mapping[str, Any]) -> bytes:
    """One compact JSON line, UTF-8, newline-terminated."""
    return (json.dumps(document, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")


class _Batch:
    """Accumulates encoded lines and flushes them through the engine."""

    def __init__(
        self,
        engine: SearchEngine,
        index_uid: str,
        primary_key: str,
        max_bytes: int,
    ) -> None:
        self._engine = engine
        self._index_uid = index_uid
        self._primary_key = primary_key
        self._max_bytes = max_bytes
        self._lines: list[bytes] = []
        self._size = 0
        self.result = UploadResult()

    async def add(self, line: bytes) -> None:
        if self._lines and self._size + len(line) > self._max_bytes:
            await self.flush()
        self._lines.append(line)
        self._size += len(line)
        self.result.documents += 1
        # A single line over the bound still goes out, alone
        if self._size >= self._max_bytes:
            await self.flush()

    async def flush(self) -> None:
        if not self._lines:
            return
        body = b"".join(self._lines)
        count = len(self._lines)
        self._lines = []
        self._size = 0

        task = await self._engine.add_documents_ndjson(self._index_uid, body, self._primary_key)
        self.result.task_uids.append(task.uid)
        self.result.batches += 1
        logger.debug(
            f"Sent {count} documents ({len(body)} bytes) to '{self._index_uid}', task {task.uid}"
        )


class NdjsonUploader:
    """Uploads documents as NDJSON, splitting requests at ``max_payload_bytes``.

    Buffers are per call, so one uploader can serve concurrent jobs.
    """

    def __init__(self, engine: SearchEngine, max_payload_bytes: int = 10_000_000) -> None:
        if max_payload_bytes < 1:
            raise ValueError("max_payload_bytes must be >= 1")
        self._engine = engine
        self._max_bytes = max_payload_bytes

    @property
    def max_payload_bytes(self) -> int:
        return self._max_bytes

    async def upload_documents(
        self,
        index_uid: str,
        documents: Iterable[Mapping[str, Any]],
        primary_key: str = "id",
    ) -> UploadResult:
        batch = _Batch(self._engine, index_uid, primary_key, self._max_bytes)
        for position, document in enumerate(documents):
            _check_primary_key(document, primary_key, index_uid, position)
            await batch.add(encode_line(document))
        await batch.flush()
        return batch.result

    async def upload_file(
        self,
        index_uid: str,
        path: str | Path,
        primary_key: str = "id",
    ) -> UploadResult:
        """Stream a JSONL file line by line; a missing or empty file uploads nothing."""
        path = Path(path)
        batch = _Batch(self._engine, index_uid, primary_key, self._max_bytes)
        if not path.is_file():
            logger.warning(f"Spool file {path} does not exist, nothing to upload")
            return batch.result

        with path.open("r", encoding="utf-8") as fh:
            position = 0
            for lineno, raw in enumerate(fh, start=1):
                if not raw.strip():
                    continue
                try:
                    document = json.loads(raw)
                except json.JSONDecodeError as e:
                    raise ValidationError(f"{path}:{lineno}: invalid JSON: {e.msg}") from e
                if not isinstance(document, dict):
                    raise ValidationError(f"{path}:{lineno}: expected a JSON object")
                _check_primary_key(document, primary_key, index_uid, position)
                await batch.add(encode_line(document))
                position += 1

        await batch.flush()
        logger.info(
            f"Uploaded {batch.result.documents} documents from {path.name} "
            f"to '{index_uid}' in {batch.result.batches} batches"
        )
        return batch.result


def _check_primary_key(
    document: Mapping[str, Any], primary_key: str, index_uid: str, position: int
) -> None:
    if document.get(primary_key) is None:
        raise MissingPrimaryKeyError(primary_key, index_uid, position)
