"""Deterministic keyword classifier used when the LLM router is unavailable or unsure."""

from __future__ import annotations

import re

from .language import PRIMARY_LANGUAGE, SECONDARY_LANGUAGE, normalize_language

OUT_OF_SCOPE = "out_of_scope"
DATA_PROVENANCE = "data_provenance"

# Checked in order; the first matching intent wins.
_RULES: dict[str, list[tuple[str, str]]] = {
    "hr": [
        (
            "hours",
            r"(radno vrijeme|kada se otvara|do kada radi|radi li|otvara|zatvara|nedjelj|ponedjelj|"
            r"utorak|srijed|četvrt|petak|subot|danas|sada|trenutno|otvoren[oa]? sada)",
        ),
        ("nearby", r"(blizu mene|u blizini|najbliž|najbliz|udaljen|koliko daleko)"),
        (
            "menu_search",
            r"(meni|jelovnik|ima li|ima\b|imate\b|imaju\b|što nudi|sto nudi|šta nudi|sta nudi|nudi\b|"
            r"nudite\b|nude\b|tražim|trazim|biftek|pizza|burger|jela|pića|pica|piće|pice|desert|salata|"
            r"lazanj|lazanje)",
        ),
        (
            "perks",
            r"(terasa|stolica za djecu|igralište|klimatiziran|kava za van|hrana za van|parking|pristup|"
            r"wi[- ]?fi|vanjska terasa)",
        ),
        ("meal_types", r"(doručak|dorucak|ručak|rucak|večera|vecera|brunch)"),
        ("dietary_types", r"(vegetar|vegan|halal|bez glutena|gluten free)"),
        ("reservations", r"(rezervacij|rezervirat|rezervirati|rezervacije)"),
        ("contact", r"(kontakt|telefon|telefona|broj telefona|email|web|facebook|instagram|tiktok)"),
        ("description", r"(opis|recite nešto|reci nesto|o restoranu)"),
        ("virtual_tour", r"(virtualna tura|virtualni obilazak|360)"),
        ("price", r"(cijena|skupoća|kategorija cijene|price level)"),
        ("reviews", r"(recenzij|ocjen|ocjena|rating|dojam)"),
        (
            DATA_PROVENANCE,
            r"(odakle (su|dolaze) podaci|izvora podataka|iz baze|od kud su info|odakle informacije)",
        ),
    ],
    "en": [
        (
            "hours",
            r"(hours|\bopen\b|\bclose[sd]?\b|closing|opening|sunday|monday|tuesday|wednesday|thursday|friday|"
            r"saturday|open now|today)",
        ),
        ("nearby", r"(near me|nearby|closest|distance|how far)"),
        (
            "menu_search",
            r"(menu|dish|food|drink|has.*(steak|pizza|burger|dessert|salad|lasagn)|looking for|"
            r"do you serve|\b(pizza|burger|pasta|steak|salad|dessert|lasagn\w*|coffee|beer|wine|soup|"
            r"fish|chicken)\b)",
        ),
        (
            "perks",
            r"(outdoor|terrace|high chair|play area|air[- ]?conditioned|to go|takeaway|parking|"
            r"accessible|wi[- ]?fi)",
        ),
        ("meal_types", r"(breakfast|lunch|dinner|brunch)"),
        ("dietary_types", r"(vegetarian|vegan|halal|gluten[- ]?free)"),
        ("reservations", r"(reservations?|book( a)? table|reserve)"),
        ("contact", r"(contact|phone|telephone|number|email|website|facebook|instagram|tiktok)"),
        ("description", r"(describe|about the restaurant|description)"),
        ("virtual_tour", r"(virtual tour|360)"),
        ("price", r"(price( range)?|budget|expensive|cheap)"),
        ("reviews", r"(reviews?|rating|feedback)"),
        (DATA_PROVENANCE, r"(where.*data.*from|data source|provenance)"),
    ],
}

COMPILED_RULES: dict[str, list[tuple[str, re.Pattern[str]]]] = {
    lang: [(intent, re.compile(pattern, re.IGNORECASE)) for intent, pattern in rules]
    for lang, rules in _RULES.items()
}


def _match(text: str, lang: str) -> str | None:
    for intent, pattern in COMPILED_RULES[lang]:
        if pattern.search(text):
            return intent
    return None


def classify_intent(text: str | None, lang: str | None) -> str:
    """
    Keyword intent for an utterance.

    The requested locale's patterns are tried first; the other locale's list is
    only consulted when nothing matched, which covers mislabelled language hints.
    """
    lowered = (text or "").strip().lower()
    if not lowered:
        return OUT_OF_SCOPE
    primary = normalize_language(lang) or PRIMARY_LANGUAGE
    secondary = SECONDARY_LANGUAGE if primary == PRIMARY_LANGUAGE else PRIMARY_LANGUAGE
    return _match(lowered, primary) or _match(lowered, secondary) or OUT_OF_SCOPE
