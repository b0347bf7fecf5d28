from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from .cache import TTLCache
from .text import contains_phrase, normalize_text
from .types import CatalogEntry

if TYPE_CHECKING:
    from .data_access import PartnerRepository

logger = logging.getLogger(__name__)

EXACT_SCORE = 3.0
SUBSTRING_SCORE = 2.0
CARD_PAYMENT_SCORE = 1.5
ROOT_SCORE = 1.0
ROOT_LENGTH = 6

_MISS = "__miss__"
_CARD_PHRASE = re.compile(r"\b(credit|debit|card|cards|kartic\w*|karticom|kreditn\w*)\b")


def _build_lookup(mapping: Mapping[str, Mapping[str, list[str]]]) -> dict[str, str]:
    reverse: dict[str, str] = {}
    for canonical, localized in mapping.items():
        reverse[normalize_text(canonical)] = canonical
        for synonyms in localized.values():
            for synonym in synonyms:
                key = normalize_text(synonym)
                if key:
                    reverse[key] = canonical
    return reverse


PERK_SYNONYMS: dict[str, dict[str, list[str]]] = {
    "outdoor seating": {
        "en": ["outdoor", "outdoor seating", "terrace", "patio", "garden", "outside"],
        "hr": ["terasa", "terasu", "terase", "vanjska terasa", "vani", "vanjski", "vrt", "bašta"],
    },
    "parking": {
        "en": ["parking", "car park", "parking lot", "parking space"],
        "hr": ["parking", "parkiralište", "parkiraliste", "parkirno mjesto"],
    },
    "high chair": {
        "en": ["high chair", "highchair", "baby chair", "kids chair"],
        "hr": ["stolica za djecu", "dječja stolica", "djecja stolica", "hranilica"],
    },
    "wifi": {
        "en": ["wifi", "wi-fi", "wireless", "internet"],
        "hr": ["wifi", "wi-fi", "bežični internet", "internet"],
    },
    "pet friendly": {
        "en": ["pet friendly", "pets allowed", "dog friendly", "dogs"],
        "hr": ["ljubimci", "kućni ljubimci", "psi dozvoljeni", "pas"],
    },
    "wheelchair access": {
        "en": ["wheelchair", "wheelchair access", "accessible", "accessibility"],
        "hr": ["invalidska kolica", "pristup za invalide", "pristupačno", "pristup"],
    },
    "live music": {
        "en": ["live music", "band", "concert"],
        "hr": ["živa glazba", "ziva glazba", "svirka", "koncert"],
    },
    "tv": {
        "en": ["tv", "television", "sports on tv", "screens"],
        "hr": ["tv", "televizor", "prijenos utakmica", "utakmice"],
    },
    "delivery": {
        "en": ["delivery", "deliver", "home delivery"],
        "hr": ["dostava", "dostavu", "dostavljaju"],
    },
    "takeaway": {
        "en": ["takeaway", "take away", "to go", "take-out", "takeout"],
        "hr": ["hrana za van", "za van", "kava za van", "za ponijeti"],
    },
    "air conditioning": {
        "en": ["air conditioning", "air conditioned", "ac"],
        "hr": ["klima", "klimatizirano", "klimatiziran", "klimatizirani prostor"],
    },
    "play area": {
        "en": ["play area", "playground", "kids corner"],
        "hr": ["igralište", "igraliste", "igraonica", "dječji kutak"],
    },
    "card payment": {
        "en": ["card", "credit card", "card payment", "pay by card"],
        "hr": ["kartica", "kreditna kartica", "plaćanje karticom", "placanje karticom"],
    },
}

PERK_LOOKUP = _build_lookup(PERK_SYNONYMS)


def canonical_perk(phrase: str | None) -> str:
    """Canonical perk name for a phrase, or the normalized phrase itself."""
    normalized = normalize_text(phrase)
    if not normalized:
        return ""
    if normalized in PERK_LOOKUP:
        return PERK_LOOKUP[normalized]
    # longest synonym contained in the phrase ("ima li vanjsku terasu" -> terasu)
    synonym = mentioned_perk(normalized)
    return PERK_LOOKUP[synonym] if synonym else normalized


def mentioned_perk(text: str | None) -> str | None:
    """Perk synonym named somewhere in a free-text question, if any."""
    normalized = normalize_text(text)
    for synonym in sorted(PERK_LOOKUP, key=len, reverse=True):
        if len(synonym) > 2 and contains_phrase(normalized, synonym):
            return synonym
    return None


def _shares_root(left: str, right: str) -> bool:
    for a in left.split():
        for b in right.split():
            if len(a) >= ROOT_LENGTH and len(b) >= ROOT_LENGTH and a[:ROOT_LENGTH] == b[:ROOT_LENGTH]:
                return True
    return False


def score_perk(phrase: str, entry: CatalogEntry) -> float:
    """How well a free-text phrase names a catalog perk; 0 means no relation."""
    raw = normalize_text(phrase)
    canonical = normalize_text(canonical_perk(phrase))
    queries = {q for q in (raw, canonical) if q}
    names = {n for n in (normalize_text(entry.name_en), normalize_text(entry.name_hr)) if n}
    if not queries or not names:
        return 0.0
    best = 0.0
    for query in queries:
        for name in names:
            if query == name:
                best = max(best, EXACT_SCORE)
            elif query in name or name in query:
                best = max(best, SUBSTRING_SCORE)
            elif _shares_root(query, name):
                best = max(best, ROOT_SCORE)
    if best < CARD_PAYMENT_SCORE and _CARD_PHRASE.search(raw):
        if any(_CARD_PHRASE.search(name) for name in names):
            best = CARD_PAYMENT_SCORE
    return best


def best_perk(phrase: str, catalog: Iterable[CatalogEntry]) -> CatalogEntry | None:
    best_entry: CatalogEntry | None = None
    best_score = 0.0
    for entry in catalog:
        score = score_perk(phrase, entry)
        if score > best_score:
            best_entry, best_score = entry, score
    return best_entry


def display_names(entries: Iterable[CatalogEntry], lang: str) -> list[str]:
    return [name for name in (entry.name(lang) for entry in entries) if name]


class TaxonomyResolver:
    """Perk phrase -> catalog row, memoized in an injected cache (misses included)."""

    def __init__(self, repository: PartnerRepository, cache: TTLCache) -> None:
        self._repository = repository
        self._cache = cache

    async def resolve_perk(self, phrase: str | None) -> CatalogEntry | None:
        key = normalize_text(phrase)
        if not key:
            return None
        cached = self._cache.get(key)
        if cached is not None:
            return None if cached == _MISS else cached
        catalog = await self._repository.perk_catalog()
        entry = best_perk(key, catalog)
        self._cache.set(key, entry if entry is not None else _MISS)
        logger.debug("Perk %r resolved to %s", key, entry.id if entry else None)
        return entry
