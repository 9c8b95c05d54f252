"""Index registry - immutable table of declared logical indexes."""

from collections.abc import Iterable, Iterator
from typing import Any

from meilisync.domain.index.model.value import IndexEntry
from meilisync.domain.shared.error import ConfigurationError


class IndexRegistry:
    """Registry of declared indexes, keyed by logical (unprefixed) name.

    Built once at startup and read-only afterwards, so it can be shared by
    concurrent workers.
    """

    def __init__(self, entries: Iterable[IndexEntry]) -> None:
        table: dict[str, IndexEntry] = {}
        for entry in entries:
            if entry.name in table:
                raise ConfigurationError(f"Index '{entry.name}' is declared more than once")
            table[entry.name] = entry
        self._entries = table

    def get(self, name: str) -> IndexEntry | None:
        """Get an index declaration by logical name."""
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> list[str]:
        """Logical index names, sorted."""
        return sorted(self._entries)

    def items(self) -> Iterator[tuple[str, IndexEntry]]:
        """Iterate over (name, entry) pairs in name order."""
        return ((name, self._entries[name]) for name in self.names())

    def class_for(self, name: str) -> str | None:
        entry = self._entries.get(name)
        return entry.record_class if entry else None

    def entries_for_class(self, record_class: str) -> list[IndexEntry]:
        """All declarations backed by a record class."""
        return [entry for _, entry in self.items() if entry.record_class == record_class]

    def primary_key_for_class(self, record_class: str) -> str | None:
        entries = self.entries_for_class(record_class)
        return entries[0].primary_key if entries else None

    def summary(self, filter: str | None = None) -> dict[str, dict[str, Any]]:
        """Per-index overview used by the CLI registry listing."""
        out: dict[str, dict[str, Any]] = {}
        for name, entry in self.items():
            if filter and filter not in name:
                continue
            out[name] = {
                "class": entry.record_class,
                "primaryKey": entry.primary_key,
                "schema": entry.index_schema.model_dump(),
                "facets": dict(entry.facets),
                "locales": entry.locales.model_dump() if entry.locales else None,
            }
        return out
