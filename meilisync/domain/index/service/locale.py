"""LocaleResolver - computes the locale policy of each logical index."""

import logging
from functools import cached_property

from meilisync.config import LocaleConfig
from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import (
    IndexEntry,
    LocalePolicy,
    normalize_locale,
    normalize_locales,
)

logger = logging.getLogger(__name__)


class LocaleResolver:
    """Resolves source/target locales and multilingual mode per index.

    Rules:
        1. Per-index ``locales`` metadata (source, targets) is used verbatim.
        2. Multilingual without declared targets falls back to the enabled
           locales minus the source.
        3. Not multilingual means no targets, whatever locales are enabled.

    An index that declares targets is multilingual for itself even when the
    global switch is off.
    """

    def __init__(self, registry: IndexRegistry, config: LocaleConfig) -> None:
        self._registry = registry
        self._config = config

    @property
    def default_locale(self) -> str:
        return normalize_locale(self._config.default_locale) or "en"

    @property
    def enabled_locales(self) -> list[str]:
        return normalize_locales(self._config.enabled_locales)

    def is_multilingual(self) -> bool:
        """Global mode: explicit switch or any registered index declares targets."""
        return self._config.multilingual or self._any_index_has_targets

    def is_multilingual_for(self, base: str, fallback_source: str | None = None) -> bool:
        """Per-index mode: explicit switch or this index declares targets."""
        if self._config.multilingual:
            return True
        _, targets = self._extract(self._registry.get(base), self._fallback(fallback_source))
        return targets != []

    def locales_for(self, base: str, fallback_source: str | None = None) -> LocalePolicy:
        fallback = self._fallback(fallback_source)
        source, targets = self._extract(self._registry.get(base), fallback)

        multilingual = self._config.multilingual or targets != []
        if multilingual and not targets:
            targets = [loc for loc in self.enabled_locales if loc != source]
        if not multilingual:
            targets = []

        return LocalePolicy.build(source, targets)

    # -------------------------------------------------------------------------

    @cached_property
    def _any_index_has_targets(self) -> bool:
        # Registry is immutable, so this is computed once per resolver
        default = self.default_locale
        return any(self._extract(entry, default)[1] for _, entry in self._registry.items())

    def _fallback(self, fallback_source: str | None) -> str:
        return normalize_locale(fallback_source) or self.default_locale

    def _extract(self, entry: IndexEntry | None, fallback_source: str) -> tuple[str, list[str]]:
        if entry is None or entry.locales is None:
            return fallback_source, []
        source = entry.locales.source or fallback_source
        targets = normalize_locales(entry.locales.targets, exclude=source)
        if len(targets) != len(entry.locales.targets):
            logger.debug(f"Index '{entry.name}': dropped source/duplicate locales from targets")
        return source, targets
