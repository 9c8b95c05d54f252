"""IndexNameResolver - maps logical names and locales to engine index UIDs."""

from meilisync.domain.index.model.value import normalize_locale
from meilisync.domain.index.service.locale import LocaleResolver


def short_class_name(record_class: str) -> str:
    """``app.models.Movie`` -> ``Movie``."""
    return record_class.replace("\\", ".").rsplit(".", 1)[-1]


class IndexNameResolver:
    """Pure name mapping shared by creation, settings, upload and polling.

    base + locale -> raw (unprefixed) -> uid (prefix applied exactly once).
    """

    def __init__(self, locales: LocaleResolver, prefix: str = "") -> None:
        self._locales = locales
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def raw_for(self, base: str, locale: str | None, multilingual: bool | None = None) -> str:
        locale = normalize_locale(locale)
        if multilingual is None:
            multilingual = self._locales.is_multilingual()
        if not multilingual or locale is None:
            return base
        return f"{base}_{locale}"

    def uid_for_raw(self, raw: str) -> str:
        if self._prefix and not raw.startswith(self._prefix):
            return self._prefix + raw
        return raw

    def uid_for(self, base: str, locale: str | None, multilingual: bool | None = None) -> str:
        return self.uid_for_raw(self.raw_for(base, locale, multilingual))

    def uid_for_class(self, record_class: str, locale: str | None = None) -> str:
        """Derived UID for jobs that carry no explicit index name."""
        locale = normalize_locale(locale)
        short = short_class_name(record_class)
        raw = f"{short}_{locale}" if locale else short
        return self.uid_for_raw(raw)
