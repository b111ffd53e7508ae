"""Language helpers for bilingual (English/French) routing."""

from __future__ import annotations

from enum import StrEnum
from typing import Final
from urllib.parse import urlsplit

import streamlit as st

from constants.keys import StateKeys


class Language(StrEnum):
    """Languages every externally reachable page must support."""

    EN = "en"
    FR = "fr"


SUPPORTED_LANGUAGES: Final[tuple[Language, ...]] = (Language.EN, Language.FR)

LANGUAGE_TOGGLE_LABEL: Final[tuple[str, str]] = ("Français", "English")
RESTARTED_NOTICE: Final[tuple[str, str]] = (
    "Your session could not be found, so the application was restarted.",
    "Votre session est introuvable; la demande a donc été recommencée.",
)


def coerce_language(value: object) -> Language | None:
    """Return the :class:`Language` for ``value`` or ``None`` when unsupported."""

    if isinstance(value, Language):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Language(value.strip().lower())
    except ValueError:
        return None


def _language_from_path(pathname: str) -> Language | None:
    for language in SUPPORTED_LANGUAGES:
        prefix = f"/{language.value}"
        if pathname == prefix or pathname.startswith(prefix + "/"):
            return language
    return None


def get_language(resource: str) -> Language | None:
    """Return the language encoded in the path prefix of ``resource``.

    Args:
        resource: A path (``/fr/protege``) or an absolute URL.

    Returns:
        The language, or ``None`` when the path carries no language prefix.
    """

    if not resource:
        return None
    pathname = urlsplit(resource).path if "://" in resource else resource.split("?", 1)[0]
    return _language_from_path(pathname)


def get_alt_language(language: Language | str) -> Language | None:
    """Return the other supported language (``en`` -> ``fr``, ``fr`` -> ``en``)."""

    current = coerce_language(language)
    if current is Language.EN:
        return Language.FR
    if current is Language.FR:
        return Language.EN
    return None


def tr(en: str, fr: str, lang: str | None = None) -> str:
    """Return the string matching the current language.

    Args:
        en: English text.
        fr: French text.
        lang: Optional language override (``"en"`` or ``"fr"``).

    Returns:
        The localized string for the requested language.
    """
    code = coerce_language(lang or st.session_state.get(StateKeys.LANG, Language.EN.value))
    return fr if code is Language.FR else en


__all__ = [
    "LANGUAGE_TOGGLE_LABEL",
    "Language",
    "RESTARTED_NOTICE",
    "SUPPORTED_LANGUAGES",
    "coerce_language",
    "get_alt_language",
    "get_language",
    "tr",
]
