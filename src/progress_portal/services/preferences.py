"""Language preference service."""

from dataclasses import dataclass
from typing import Protocol

from progress_portal.i18n import DEFAULT_LANGUAGE, is_supported


class LanguagePreference(Protocol):
    """Persistence interface for the device's language choice."""

    def get_language(self) -> str | None:
        """Return the stored language code, if any."""

    def set_language(self, code: str) -> None:
        """Store the language code."""


@dataclass
class PreferenceService:
    """Service for the persisted language preference."""

    repository: LanguagePreference

    def get_language(self) -> str:
        """Return the stored language or English when unset or unknown."""
        code = self.repository.get_language()
        if code is None or not is_supported(code):
            return DEFAULT_LANGUAGE
        return code

    def set_language(self, code: str) -> str:
        """Persist a supported two-letter language code."""
        normalized = code.strip().lower()
        if not is_supported(normalized):
            raise ValueError(f"Unsupported language: {code}")
        self.repository.set_language(normalized)
        return normalized
