"""User-facing messages in the supported languages."""

from typing import Literal

Language = Literal["en", "sq"]

SUPPORTED_LANGUAGES: tuple[Language, ...] = ("en", "sq")
DEFAULT_LANGUAGE: Language = "en"

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "invalid_access_code": "Invalid access code. Please check your invitation.",
        "file_too_large": (
            "{name} is too large. The maximum upload size is {limit_mb} MB."
        ),
        "project_not_found": "This project is no longer available.",
        "admin_required": "Only project administrators can do this.",
        "project_locked": "Enter the client code to view this project.",
    },
    "sq": {
        "invalid_access_code": (
            "Kod aksesi i pavlefshëm. Ju lutem kontrolloni ftesën."
        ),
        "file_too_large": (
            "{name} është shumë i madh. Madhësia maksimale është {limit_mb} MB."
        ),
        "project_not_found": "Ky projekt nuk është më i disponueshëm.",
        "admin_required": "Vetëm administratorët e projektit mund ta bëjnë këtë.",
        "project_locked": "Vendosni kodin e klientit për të parë këtë projekt.",
    },
}


def is_supported(code: str) -> bool:
    """Return True for a language the portal ships messages for."""
    return code in SUPPORTED_LANGUAGES


def translate(language: str, key: str, **params: object) -> str:
    """Look up a message, falling back to English."""
    messages = _MESSAGES.get(language, _MESSAGES[DEFAULT_LANGUAGE])
    template = messages.get(key) or _MESSAGES[DEFAULT_LANGUAGE][key]
    return template.format(**params)
