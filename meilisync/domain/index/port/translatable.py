from typing import Protocol


class TranslatableIndex(Protocol):
    """Optional capability describing which record classes are translated.

    When present it overrides the configured default/enabled locales for
    the classes it knows about.
    """

    def has(self, record_class: str) -> bool: ...

    def source_locale_for(self, record_class: str) -> str | None: ...

    def effective_target_locales_for(self, record_class: str, enabled: list[str]) -> list[str]:
        """Target locales that actually need work, given the enabled locales."""
        ...
