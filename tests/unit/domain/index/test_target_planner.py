"""Unit tests for TargetPlanner."""

from collections.abc import Sequence

import pytest

from meilisync.config import LocaleConfig
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import TargetKind
from meilisync.domain.index.service.locale import LocaleResolver
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.index.service.planner import TargetPlanner


class FakeTranslatable:
    """Translatable capability that knows only app.Movie."""

    def __init__(self, source: str, targets: list[str]):
        self.source = source
        self.targets = targets
        self.enabled_seen: list[list[str]] = []

    def has(self, record_class: str) -> bool:
        return record_class == "app.Movie"

    def source_locale_for(self, record_class: str) -> str | None:
        return self.source

    def effective_target_locales_for(
        self, record_class: str, enabled: Sequence[str]
    ) -> list[str]:
        self.enabled_seen.append(list(enabled))
        return self.targets


def _planner(registry: IndexRegistry, config: LocaleConfig, prefix: str = "", translatable=None):
    locales = LocaleResolver(registry, config)
    names = IndexNameResolver(locales, prefix=prefix)
    return TargetPlanner(registry=registry, locales=locales, names=names, translatable=translatable)


class TestTargetsForBase:
    def test_multilingual_book_gets_source_and_target(
        self, registry: IndexRegistry, locale_config: LocaleConfig
    ):
        """Multilingual base with source en and enabled [en, es] plans two indexes."""
        planner = _planner(registry, locale_config)

        targets = planner.targets_for_base("books", per_locale=True)

        assert [(t.locale, t.kind) for t in targets] == [
            ("en", TargetKind.SOURCE),
            ("es", TargetKind.TARGET),
        ]
        assert [t.uid for t in targets] == ["books_en", "books_es"]
        assert all(t.record_class == "app.Book" for t in targets)

    def test_not_per_locale_gives_single_base_target(
        self, registry: IndexRegistry, locale_config: LocaleConfig
    ):
        planner = _planner(registry, locale_config, prefix="dev_")

        targets = planner.targets_for_base("books", per_locale=False)

        assert len(targets) == 1
        assert targets[0].kind == TargetKind.BASE
        assert targets[0].locale is None
        assert targets[0].uid == "dev_books"

    def test_monolingual_index_gets_base_target(
        self, registry: IndexRegistry, locale_config: LocaleConfig
    ):
        planner = _planner(registry, locale_config)

        targets = planner.targets_for_base("movies", per_locale=True)

        assert [(t.uid, t.kind) for t in targets] == [("movies", TargetKind.BASE)]

    def test_only_locales_filters_targets(self, registry: IndexRegistry):
        config = LocaleConfig(multilingual=True, enabled_locales=["en", "es", "fr"])
        planner = _planner(registry, config)

        targets = planner.targets_for_base("movies", per_locale=True, only_locales=[" FR "])

        assert [t.locale for t in targets] == ["en", "fr"]

    def test_unknown_base_plans_nothing(
        self, registry: IndexRegistry, locale_config: LocaleConfig
    ):
        assert _planner(registry, locale_config).targets_for_base("nope", per_locale=True) == []

    def test_translatable_capability_wins(self, registry: IndexRegistry):
        config = LocaleConfig(multilingual=True, enabled_locales=["en", "es"])
        translatable = FakeTranslatable(source="DE", targets=["fr", "de", "fr", "it"])
        planner = _planner(registry, config, translatable=translatable)

        targets = planner.targets_for_base("movies", per_locale=True)

        assert [(t.locale, t.kind) for t in targets] == [
            ("de", TargetKind.SOURCE),
            ("fr", TargetKind.TARGET),
            ("it", TargetKind.TARGET),
        ]
        assert translatable.enabled_seen == [["en", "es"]]

    def test_planning_is_deterministic(
        self, registry: IndexRegistry, locale_config: LocaleConfig
    ):
        planner = _planner(registry, locale_config)

        assert planner.targets_for_base("books", True) == planner.targets_for_base("books", True)


class TestTargetsForBases:
    def test_concatenates_in_order(self, registry: IndexRegistry, locale_config: LocaleConfig):
        planner = _planner(registry, locale_config)

        targets = planner.targets_for_bases(["movies", "nope", "books"], per_locale=True)

        assert [t.uid for t in targets] == ["movies", "books_en", "books_es"]

    @pytest.mark.parametrize("only", [["es"], ["ES", "xx"]])
    def test_only_locales_keeps_source(
        self, registry: IndexRegistry, locale_config: LocaleConfig, only: list[str]
    ):
        planner = _planner(registry, locale_config)

        targets = planner.targets_for_bases(["books"], per_locale=True, only_locales=only)

        assert [t.uid for t in targets] == ["books_en", "books_es"]
