"""TargetPlanner - computes which physical indexes a logical index maps to."""

import logging
from collections.abc import Iterable, Sequence

from meilisync.domain.index.model.registry import IndexRegistry
from meilisync.domain.index.model.value import (
    IndexTarget,
    TargetKind,
    normalize_locale,
    normalize_locales,
)
from meilisync.domain.index.port.translatable import TranslatableIndex
from meilisync.domain.index.service.locale import LocaleResolver
from meilisync.domain.index.service.naming import IndexNameResolver
from meilisync.domain.shared.service import Service

logger = logging.getLogger(__name__)


class TargetPlanner(Service):
    """Expands logical index names into concrete index targets.

    Used by the CLI and by anything that needs to know which indexes should
    exist. Planning never raises: unknown bases contribute no targets and the
    caller decides how to report an empty plan.
    """

    registry: IndexRegistry
    locales: LocaleResolver
    names: IndexNameResolver
    translatable: TranslatableIndex | None = None

    def targets_for_base(
        self,
        base: str,
        per_locale: bool,
        only_locales: Sequence[str] = (),
    ) -> list[IndexTarget]:
        entry = self.registry.get(base)
        if entry is None:
            logger.debug(f"No index declared as '{base}', nothing to plan")
            return []

        record_class = entry.record_class

        if self.translatable is not None and self.translatable.has(record_class):
            src = self.translatable.source_locale_for(record_class)
            base_locale = normalize_locale(src) or self.locales.default_locale
            targets = self.translatable.effective_target_locales_for(
                record_class, self.locales.enabled_locales
            )
        else:
            policy = self.locales.locales_for(base, self.locales.default_locale)
            base_locale = policy.source
            targets = policy.targets

        targets = normalize_locales(targets, exclude=base_locale)

        only = normalize_locales(list(only_locales))
        if only:
            targets = [loc for loc in targets if loc in only]

        if per_locale and self.locales.is_multilingual_for(base, base_locale):
            out = [
                IndexTarget(
                    base=base,
                    uid=self.names.uid_for(base, base_locale, True),
                    record_class=record_class,
                    locale=base_locale,
                    kind=TargetKind.SOURCE,
                )
            ]
            for loc in targets:
                out.append(
                    IndexTarget(
                        base=base,
                        uid=self.names.uid_for(base, loc, True),
                        record_class=record_class,
                        locale=loc,
                        kind=TargetKind.TARGET,
                    )
                )
            return out

        return [
            IndexTarget(
                base=base,
                uid=self.names.uid_for(base, None, False),
                record_class=record_class,
                locale=None,
                kind=TargetKind.BASE,
            )
        ]

    def targets_for_bases(
        self,
        bases: Iterable[str],
        per_locale: bool,
        only_locales: Sequence[str] = (),
    ) -> list[IndexTarget]:
        """Flat concatenation, preserving the order of `bases`."""
        all_targets: list[IndexTarget] = []
        for base in bases:
            all_targets.extend(self.targets_for_base(base, per_locale, only_locales))
        return all_targets
