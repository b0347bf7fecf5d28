from __future__ import annotations

import re
import unicodedata

# Letters NFKD does not decompose.
_EXTRA_FOLDS = str.maketrans({"đ": "d", "Đ": "D", "ø": "o", "ß": "ss", "ł": "l"})


def strip_diacritics(value: str) -> str:
    folded = unicodedata.normalize("NFKD", value.translate(_EXTRA_FOLDS))
    return "".join(ch for ch in folded if not unicodedata.combining(ch))


def normalize_text(value: str | None) -> str:
    """Lowercase, drop diacritics, turn punctuation into spaces, collapse whitespace."""
    if not value:
        return ""
    lowered = strip_diacritics(str(value).lower())
    cleaned = re.sub(r"[^a-z0-9\s]", " ", lowered)
    return re.sub(r"\s+", " ", cleaned).strip()


def contains_phrase(haystack: str, needle: str) -> bool:
    """Whole-word containment of an already normalized phrase."""
    if not needle:
        return False
    return re.search(rf"(?<![a-z0-9]){re.escape(needle)}(?![a-z0-9])", haystack) is not None
