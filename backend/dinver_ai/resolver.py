"""
Restaurant resolution from free text.

Names show up inside ordinary questions ("does Marabu have parking?"), so exact
lookups miss and naive substring search fires on short words. Each partner gets
a score from full-name, token-coverage, head-token and slug signals; the top
score must clear CONFIDENCE_FLOOR and beat the runner-up by SCORE_GAP.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from .text import normalize_text
from .types import Partner

CONFIDENCE_FLOOR = 0.5
SCORE_GAP = 0.2
MAX_CANDIDATES = 3

FULL_NAME_BONUS = 1.0
HEAD_TOKEN_BONUS = 0.6
SLUG_BONUS = 0.25
MIN_TOKEN_LENGTH = 3
MIN_HEAD_LENGTH = 4

GENERIC_VENUE_WORDS = re.compile(
    r"\b(restoran\w*|restaurant\w*|caffe|cafe|kafic\w*|bar|pizzeria|club|kavana|coffee)\b"
)

_NAME_AFTER_VENUE_WORD = re.compile(r"(?:restoran\w*|restaurant)\s+([\w\- ]{2,60})", re.IGNORECASE)
_QUOTED_NAME = re.compile(r"[\"“”„']([^\"“”„']{2,100})[\"“”„']")

MATCHED = "matched"
AMBIGUOUS = "ambiguous"
NOT_FOUND = "not_found"


@dataclass
class ScoredCandidate:
    partner: Partner
    score: float


@dataclass
class Resolution:
    status: str
    match: Partner | None = None
    candidates: list[Partner] = field(default_factory=list)
    via_preference: bool = False

    @property
    def restaurant_id(self) -> str | None:
        return self.match.id if self.match else None


def strip_generic_venue_words(text_norm: str) -> str:
    return re.sub(r"\s+", " ", GENERIC_VENUE_WORDS.sub(" ", text_norm)).strip()


def slug_phrase(slug: str | None) -> str:
    return normalize_text((slug or "").replace("-", " "))


def score_match(text_norm: str, name_norm: str, slug_norm: str = "", *, full_text: str | None = None) -> float:
    """
    Score one candidate name against a normalized utterance.

    ``text_norm`` is the utterance without generic venue words; ``full_text`` (the
    utterance before that stripping) is used for the whole-name and slug checks so
    names that contain a venue word ("Marabu Caffe") can still match in full.
    """
    if not text_norm or not name_norm:
        return 0.0
    whole = full_text or text_norm
    score = 0.0
    if name_norm in whole:
        score += FULL_NAME_BONUS
    name_tokens = name_norm.split()
    hits = sum(1 for tok in name_tokens if len(tok) >= MIN_TOKEN_LENGTH and tok in text_norm)
    score += hits / len(name_tokens)
    head = name_tokens[0]
    if len(head) >= MIN_HEAD_LENGTH and head in text_norm:
        score += HEAD_TOKEN_BONUS
    if slug_norm and slug_norm in whole:
        score += SLUG_BONUS
    return round(score, 6)


def score_candidates(utterance: str, partners: Sequence[Partner]) -> list[ScoredCandidate]:
    """Rank partners by score, highest first; ties keep the input order."""
    full_text = normalize_text(utterance)
    text_norm = strip_generic_venue_words(full_text)
    scored = [
        ScoredCandidate(
            partner=partner,
            score=score_match(
                text_norm,
                normalize_text(partner.name),
                slug_phrase(partner.slug),
                full_text=full_text,
            ),
        )
        for partner in partners
    ]
    return sorted(scored, key=lambda item: -item.score)


def resolve_restaurant(
    utterance: str,
    partners: Sequence[Partner],
    prefer_id: str | None = None,
) -> Resolution:
    ranked = score_candidates(utterance, partners)
    suggestions = [item.partner for item in ranked[:MAX_CANDIDATES]]
    top = ranked[0] if ranked else None
    runner_up = ranked[1] if len(ranked) > 1 else None

    if top is None or top.score < CONFIDENCE_FLOOR:
        resolution = Resolution(NOT_FOUND, candidates=suggestions)
    elif runner_up is not None and round(top.score - runner_up.score, 6) < SCORE_GAP:
        resolution = Resolution(AMBIGUOUS, candidates=suggestions)
    else:
        return Resolution(MATCHED, match=top.partner)

    if prefer_id:
        return preferred_resolution(partners, prefer_id)
    return resolution


def preferred_resolution(partners: Sequence[Partner], prefer_id: str) -> Resolution:
    """Resolve to the thread's preferred restaurant, even if it is not in ``partners``."""
    preferred = next((p for p in partners if p.id == prefer_id), None)
    return Resolution(
        MATCHED,
        match=preferred or Partner(id=prefer_id, name=""),
        via_preference=True,
    )


def extract_name_hint(text: str) -> str | None:
    """Words following "restoran"/"restaurant", or a quoted name."""
    match = _NAME_AFTER_VENUE_WORD.search(text or "")
    if match:
        words = match.group(1).strip().split()
        return " ".join(words[:3]) or None
    quoted = _QUOTED_NAME.search(text or "")
    if quoted:
        return quoted.group(1).strip() or None
    return None
