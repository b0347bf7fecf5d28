"""Menu search vocabulary: term extraction, canonical forms and spelling variants."""

from __future__ import annotations

import re

from .text import normalize_text, strip_diacritics

MAX_VARIANTS = 10

MENU_SYNONYMS: dict[str, list[str]] = {
    "vegan": ["vegan", "veganski", "veganska", "vegan options", "vegan food"],
    "vegetarian": ["vegetarian", "vegetarijanski", "vegetarijanska", "vegetarian options"],
    "gluten-free": ["gluten-free", "gluten free", "bez glutena", "bezglutensko"],
    "halal": ["halal", "halal opcije"],
    "breakfast": ["breakfast", "doručak", "dorucak"],
    "lunch": ["lunch", "ručak", "rucak"],
    "dinner": ["dinner", "večera", "vecera"],
    "brunch": ["brunch"],
    "pizza": ["pizza", "pizze", "pizzu", "pica", "pice", "picu"],
    "burger": ["burger", "hamburger", "burgeri", "hamburgeri"],
    "cevapi": ["ćevapi", "cevapi", "cevap", "ćevape", "cevape"],
    "lazanja": ["lazanja", "lazanje", "lazanj", "lasagna", "lasagne"],
    "pasta": ["pasta", "paste", "tjestenina", "tjestenine"],
    "salad": ["salad", "salata", "salate", "salatu"],
    "soup": ["soup", "juha", "juhe", "juhu", "supa", "supu"],
    "steak": ["steak", "biftek", "odrezak"],
    "chicken": ["chicken", "piletina", "pileca", "pileća"],
    "fish": ["fish", "riba", "ribe", "ribu"],
    "seafood": ["seafood", "morski plodovi", "plodovi mora"],
    "dessert": ["dessert", "desert", "deserti", "slastice", "slastica"],
    "pancakes": ["pancakes", "pancake", "palačinke", "palacinke", "palačinka"],
    "coffee": ["coffee", "kava", "kave", "kavu"],
    "beer": ["beer", "pivo", "piva", "pive"],
    "wine": ["wine", "vino", "vina"],
    "rice": ["rice", "riža", "riza", "riže", "rižu"],
}

CANONICAL_FORMS = {
    "pizzu": "pizza",
    "pizze": "pizza",
    "picu": "pizza",
    "pice": "pizza",
    "burgere": "burger",
    "hamburgere": "burger",
    "cevape": "cevap",
    "lazanje": "lazanja",
}

MOST_EXPENSIVE = re.compile(r"najskuplj|najskup|most\s+expensive|highest\s+price|najvi[sš]e\s+ko[sš]ta")
CHEAPEST = re.compile(r"najjeftin|cheapest|lowest\s+price|least\s+expensive")

GENERIC_MENU_PHRASE = re.compile(
    r"(u\s*ponudi|ponuda|jelovnik|\bmeni\b|sta nudi|sto nudi|što nudi|šta nudi|sta ima|sto ima|"
    r"što ima|šta ima|what do they (serve|offer|have)|what (do you|do they) (serve|offer|have))"
)
_GENERIC_TERM = re.compile(
    r"^(u\s*ponudi|ponuda|ponud|jelovnik|meni|menu|serve|offer|have|nudi|nudite|nude|ima|imate|imaju|"
    r"sta ima|sto ima|sta nudi|sto nudi|what.*(serve|offer|have))$"
)
_QUOTED = re.compile(r"\"([^\"]{2,60})\"|(?<![a-z])'([^']{2,60})'(?![a-z])")
_QUESTION_PREFIX = re.compile(
    r".*\b(imaju li|ima li|imate li|da li imaju|da li ima|jel imaju|jeli imaju|do you have|do they have|"
    r"have you got|is there|are there|looking for|trazim|imaju|imate|ima)\s+"
)
_VENUE_WORDS = re.compile(r"\b(restoran\w*|restaurant\w*|kafic\w*|caffe|cafe|bar|pizzeria|kavana)\b")
_FILLER = re.compile(
    r"\b(u|na|the|a|an|any|some|in|at|on|of|for|to|li|please|molim|what|whats|s|is|are|there|"
    r"do|does|you|they|serve|serves|offer|offers|have|has|menu|meni|jelovnik\w*|ponud\w*|"
    r"sta|sto|nudi|nude|nudite|ima|imaju|imate|koji|koje|neki|nesto|tell|me|about|also|"
    r"danas|today|ovdje|here|tamo)\b"
)
_PIZZA_ROOT = re.compile(r"\b(pizza|piz+\w*|pica|pice)\b")


def latinize(value: str | None) -> str:
    return strip_diacritics((value or "").strip().lower())


def canonical_term(term: str) -> str:
    normalized = normalize_text(term)
    return CANONICAL_FORMS.get(normalized, term.strip())


def is_most_expensive_query(text: str | None) -> bool:
    return MOST_EXPENSIVE.search((text or "").lower()) is not None


def is_cheapest_query(text: str | None) -> bool:
    return CHEAPEST.search((text or "").lower()) is not None


def is_generic_menu_term(term: str | None) -> bool:
    return _GENERIC_TERM.match(latinize(term).strip()) is not None


def _synonym_group(term: str) -> set[str]:
    out: set[str] = set()
    for canonical, forms in MENU_SYNONYMS.items():
        latin_forms = {latinize(f) for f in forms}
        if term == latinize(canonical) or term in latin_forms:
            out.add(latinize(canonical))
            out.update(latin_forms)
            # keep accented spellings too; ILIKE does not fold diacritics
            out.update(f.lower() for f in forms)
    return out


def _hr_forms(word: str) -> set[str]:
    forms = {word}
    if len(word) < 4:
        return forms
    if word.endswith("e"):
        forms.update({word[:-1], word[:-1] + "a", word[:-1] + "i"})
    if word.endswith("i"):
        forms.update({word[:-1], word[:-1] + "a"})
    if word.endswith("a") or word.endswith("u"):
        forms.add(word[:-1])
    return forms


def _en_forms(word: str) -> set[str]:
    forms = {word}
    if word.endswith("ies") and len(word) > 4:
        forms.add(word[:-3] + "y")
    elif word.endswith("es") and len(word) > 3:
        forms.add(word[:-2])
    elif word.endswith("s") and len(word) > 3:
        forms.add(word[:-1])
    else:
        if re.search(r"(ch|sh|x|z|s|o)$", word):
            forms.add(word + "es")
        forms.add(word + "s")
    return forms


def expand_search_term(term: str | None, max_variants: int = MAX_VARIANTS) -> list[str]:
    """Spelling variants of a menu term, most faithful first."""
    base = re.sub(r"\s+", " ", latinize(term))
    if not base:
        return []
    limit = max(3, min(max_variants, 30))
    variants: set[str] = {base}
    variants.update(_synonym_group(base))
    words = [w for w in re.split(r"[^a-z0-9]+", base) if w]
    for word in words:
        variants.update(_hr_forms(word))
        variants.update(_en_forms(word))
        variants.update(_synonym_group(word))
    if len(words) > 1:
        phrase = " ".join(words)
        variants.update({phrase, "-".join(words), "".join(words)})
    if len(base) >= 4:
        variants.add(base[:-1])

    stem = base[: max(3, int(len(base) * 0.6))]

    def rank(variant: str) -> tuple[int, str]:
        score = 0
        if variant == base:
            score += 5
        if variant.startswith(stem):
            score += 2
        if " " in variant:
            score += 1
        return (-score, variant)

    usable = [v for v in variants if len(v) > 1]
    return sorted(usable, key=rank)[:limit]


def extract_menu_term(
    question: str | None,
    restaurant_name: str | None = None,
    restaurant_slug: str | None = None,
) -> str:
    """Best-effort dish/drink term from a question; "" for general menu questions."""
    raw = latinize(question)
    quoted = _QUOTED.search(raw)
    if quoted:
        return (quoted.group(1) or quoted.group(2) or "").strip()

    text = re.sub(r"[^a-z0-9\s]", " ", raw)
    text = re.sub(r"\s+", " ", text).strip()
    text = re.sub(r"^da\s+", "", text)
    text = _QUESTION_PREFIX.sub("", text).strip()
    if _GENERIC_TERM.match(text):
        return ""

    text = _VENUE_WORDS.sub(" ", text)
    for source in (restaurant_name, (restaurant_slug or "").replace("-", " ")):
        for tok in normalize_text(source).split():
            text = re.sub(rf"\b{re.escape(tok)}\b", " ", text)
    text = _FILLER.sub(" ", text)
    text = re.sub(r"\s+", " ", text).strip()

    if not text or GENERIC_MENU_PHRASE.match(text) or _GENERIC_TERM.match(text):
        return ""
    pizza = _PIZZA_ROOT.search(text)
    if pizza:
        return pizza.group(1)
    if len(text) < 2:
        return ""
    words = text.split()
    return " ".join(words[-3:])
