"""Index declaration and planning value objects."""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from meilisync.domain.shared.model.value import ValueObject


def normalize_locale(locale: Any) -> str | None:
    """Trim and lowercase a locale; empty or non-string values become None."""
    if not isinstance(locale, str):
        return None
    locale = locale.strip()
    if locale == "":
        return None
    return locale.lower()


def normalize_locales(locales: Any, exclude: str | None = None) -> list[str]:
    """Normalize, drop empties and `exclude`, and deduplicate preserving order."""
    if isinstance(locales, str) or not isinstance(locales, (list, tuple, set)):
        return []
    out: list[str] = []
    for locale in locales:
        norm = normalize_locale(locale)
        if norm is None or norm == exclude or norm in out:
            continue
        out.append(norm)
    return out


class TargetKind(StrEnum):
    """Role of a planned index target."""

    BASE = "base"  # single, locale-less index
    SOURCE = "source"  # original-language documents
    TARGET = "target"  # translated locale


class IndexSchema(ValueObject):
    """Attribute lists applied to the index settings."""

    displayed: list[str] = []
    filterable: list[str] = []
    sortable: list[str] = []
    searchable: list[str] = []


class LocaleMeta(ValueObject):
    """Per-index locale declaration.

    Malformed target lists are tolerated and treated as empty.
    """

    source: str | None = None
    targets: list[str] = []

    @field_validator("source", mode="before")
    @classmethod
    def _norm_source(cls, v: Any) -> str | None:
        return normalize_locale(v)

    @field_validator("targets", mode="before")
    @classmethod
    def _norm_targets(cls, v: Any) -> list[str]:
        return normalize_locales(v)


class IndexEntry(BaseModel):
    """Static declaration of one logical (unprefixed) index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    record_class: str
    primary_key: str = "id"
    index_schema: IndexSchema = Field(default_factory=IndexSchema, alias="schema")
    facets: dict[str, dict[str, Any]] = {}
    locales: LocaleMeta | None = None
    groups: list[str] = []  # field-selection groups used for normalization
    extra_settings: dict[str, Any] = Field(default_factory=dict, alias="settings")

    @field_validator("name")
    @classmethod
    def _non_empty_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("index name must not be empty")
        return v.strip()


class IndexTarget(ValueObject):
    """One concrete (base, locale) pairing scheduled for synchronization."""

    base: str
    uid: str
    record_class: str
    locale: str | None
    kind: TargetKind


class LocalePolicy(ValueObject):
    """Resolved source/target/all locale sets for a base index."""

    source: str
    targets: list[str]
    all: list[str]

    @model_validator(mode="after")
    def _check_invariants(self) -> "LocalePolicy":
        if self.source in self.targets:
            raise ValueError(f"source locale '{self.source}' must not be a target")
        if self.all != [self.source, *self.targets]:
            raise ValueError("all must be the source followed by the targets")
        return self

    @classmethod
    def build(cls, source: str, targets: list[str]) -> "LocalePolicy":
        source = normalize_locale(source) or "en"
        # Sorted so the policy does not depend on declaration order
        targets = sorted(normalize_locales(targets, exclude=source))
        return cls(source=source, targets=targets, all=[source, *targets])


def prune_document(document: Mapping[str, Any]) -> dict[str, Any]:
    """Drop null values and empty lists; the engine treats both as absent."""
    return {k: v for k, v in document.items() if v is not None and v != []}
