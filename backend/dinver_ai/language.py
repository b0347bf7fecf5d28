from __future__ import annotations

import re

PRIMARY_LANGUAGE = "en"
SECONDARY_LANGUAGE = "hr"
SUPPORTED_LANGUAGES = (PRIMARY_LANGUAGE, SECONDARY_LANGUAGE)

_ALIASES = {
    "en": "en",
    "eng": "en",
    "english": "en",
    "en-us": "en",
    "en-gb": "en",
    "hr": "hr",
    "hrv": "hr",
    "croatian": "hr",
    "hrvatski": "hr",
    "hr-hr": "hr",
}

CROATIAN_DIACRITICS = set("čćžšđ")

CROATIAN_STOP_PHRASES = re.compile(
    r"\b("
    r"radi li|radite li|ima li|imaju li|imate li|da li|je li|jel|koji|koja|koje|"
    r"gdje|kada|kad|koliko|što|sto|šta|sta|zašto|zasto|molim|hvala|"
    r"danas|sutra|sada|otvoren[oa]?|zatvoren[oa]?|radno vrijeme|"
    r"restoran[a-z]*|jelovnik[a-z]*|ponud[a-z]*|blizu|u blizini|"
    r"rezerv[a-z]*|cijen[a-z]*|terasa|doručak|dorucak|ručak|rucak|večera|vecera|"
    r"mogu li|može li|moze li|trebam|tražim|trazim|preporuči|preporuci|nešto|nesto"
    r")\b"
)


def normalize_language(value: str | None) -> str | None:
    if not value:
        return None
    return _ALIASES.get(value.strip().lower())


def detect_language(text: str | None, hint: str | None = None) -> str:
    """Return "hr" or "en"; an explicit supported hint always wins."""
    normalized_hint = normalize_language(hint)
    if normalized_hint:
        return normalized_hint
    lowered = (text or "").lower()
    if any(ch in CROATIAN_DIACRITICS for ch in lowered):
        return SECONDARY_LANGUAGE
    if CROATIAN_STOP_PHRASES.search(lowered):
        return SECONDARY_LANGUAGE
    return PRIMARY_LANGUAGE
