"""Index settings payloads and drift detection."""

from typing import Any

from pydantic import BaseModel

from meilisync.domain.index.model.value import IndexEntry

# Settings keys compared against the live index, and their engine defaults
COMPARED_KEYS: dict[str, list[str]] = {
    "displayedAttributes": ["*"],
    "filterableAttributes": [],
    "sortableAttributes": [],
    "searchableAttributes": ["*"],
}


class SettingsCheck(BaseModel):
    """Result of comparing wanted settings with an index's live settings."""

    uid: str
    pending: int = 0
    diff: dict[str, dict[str, list[str]]] = {}

    @property
    def in_sync(self) -> bool:
        return not self.diff


def settings_for(entry: IndexEntry) -> dict[str, Any]:
    """Build the PATCH /settings payload for a declared index."""
    schema = entry.index_schema
    settings: dict[str, Any] = {
        "displayedAttributes": list(schema.displayed) or ["*"],
        "filterableAttributes": sorted(set(schema.filterable) | set(entry.facets)),
        "sortableAttributes": list(schema.sortable),
        "searchableAttributes": list(schema.searchable) or ["*"],
    }
    settings.update(entry.extra_settings)
    return settings


def diff_settings(wanted: dict[str, Any], live: dict[str, Any]) -> dict[str, dict[str, list[str]]]:
    """Per compared key, the attributes added and removed by ``wanted``.

    Order is ignored except for searchable attributes, whose order is ranking.
    """
    diff: dict[str, dict[str, list[str]]] = {}
    for key, default in COMPARED_KEYS.items():
        want = list(wanted.get(key) or default)
        have = list(live.get(key) or default)
        if key == "searchableAttributes":
            changed = want != have
        else:
            changed = set(want) != set(have)
        if not changed:
            continue
        diff[key] = {
            "added": [a for a in want if a not in have],
            "removed": [a for a in have if a not in want],
        }
    return diff
