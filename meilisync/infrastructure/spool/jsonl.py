"""JsonlSpooler - append ids or documents to line-delimited spool files."""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

from meilisync.domain.index.model.value import normalize_locale
from meilisync.domain.index.port.record_store import Identifier
from meilisync.domain.index.port.spooler import Spooler
from meilisync.domain.index.service.uploader import encode_line
from meilisync.domain.shared.error import ConfigurationError, ValidationError

logger = logging.getLogger(__name__)


class JsonlSpooler(Spooler):
    """Spools work to ``<spool_dir>/<record.class>[.<locale>].{ids,docs}.jsonl``.

    Files are only ever appended to; ``flush`` consumers read them line by
    line and delete them once uploaded.
    """

    def __init__(self, spool_dir: str | Path) -> None:
        self._dir = Path(spool_dir).expanduser()
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create spool dir {self._dir}: {e}") from e

    @property
    def spool_dir(self) -> Path:
        return self._dir

    def path_for(self, record_class: str, locale: str | None = None, docs: bool = False) -> Path:
        safe = record_class.replace("\\", ".")
        loc = normalize_locale(locale)
        suffix = ".docs.jsonl" if docs else ".ids.jsonl"
        return self._dir / f"{safe}{'.' + loc if loc else ''}{suffix}"

    def append_ids(
        self, record_class: str, ids: Iterable[Identifier], locale: str | None = None
    ) -> Path:
        path = self.path_for(record_class, locale, docs=False)
        count = 0
        with path.open("ab") as fh:
            for identifier in ids:
                fh.write(encode_line({"id": identifier}))
                count += 1
        logger.info(f"Spooled {count} ids to {path}")
        return path

    def append_docs(
        self,
        record_class: str,
        docs: Iterable[Mapping[str, Any]],
        locale: str | None = None,
    ) -> Path:
        path = self.path_for(record_class, locale, docs=True)
        count = 0
        with path.open("ab") as fh:
            for doc in docs:
                fh.write(encode_line(doc))
                count += 1
        logger.info(f"Spooled {count} documents to {path}")
        return path

    def read_ids(self, path: Path) -> Iterator[Identifier]:
        """Ids of an ids spool file, in file order, one line at a time."""
        with path.open("r", encoding="utf-8") as fh:
            for lineno, raw in enumerate(fh, start=1):
                if not raw.strip():
                    continue
                try:
                    yield json.loads(raw)["id"]
                except (json.JSONDecodeError, KeyError, TypeError) as e:
                    raise ValidationError(f"{path}:{lineno}: not an id line") from e

    def discard(self, path: Path) -> None:
        path.unlink(missing_ok=True)
