from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from hashlib import sha256

from pydantic import ValidationError

from .intent_rules import OUT_OF_SCOPE, classify_intent
from .openai_async import OpenAIUnavailable, message_content, post_json, token_param
from .schemas import RouterDecision
from .settings import settings

logger = logging.getLogger(__name__)

MAX_FAILURES = 3
COOLDOWN_SECONDS = 300.0  # 5 minutes
CONFIDENCE_THRESHOLD = 0.5
MAX_TOKENS = 200

SOURCE_LLM = "llm"
SOURCE_RULES = "rules"

_failure_count = 0
_disabled_until = 0.0


class IntentUnavailable(RuntimeError):
    """Raised when the LLM router cannot produce a decision."""


def _now() -> float:
    return time.monotonic()


def _prompt_fingerprint(prompt: str) -> str:
    return sha256(prompt.encode("utf-8")).hexdigest()[:10]


def _circuit_open() -> bool:
    return _failure_count >= MAX_FAILURES and _disabled_until > _now()


def _register_failure(exc: Exception | None = None) -> None:
    global _failure_count, _disabled_until
    _failure_count += 1
    if _failure_count >= MAX_FAILURES:
        _disabled_until = _now() + COOLDOWN_SECONDS
    if exc:
        logger.warning("LLM router failure (%s/%s)", _failure_count, MAX_FAILURES, exc_info=exc)


def _register_success() -> None:
    global _failure_count, _disabled_until
    _failure_count = 0
    _disabled_until = 0.0


SYSTEM_PROMPT = (
    "You select one best intent for a Dinver restaurant question. Return strict JSON only. "
    "If the question is not about Dinver restaurants or their menus use out_of_scope. "
    "Fields: intent, restaurantQuery, filters, menuTerm, confidence."
)

INTENT_CATALOG = {
    "hours": "opening hours, whether a restaurant is open now or on a given day",
    "nearby": "restaurants close to the user, optionally filtered by perk or food type",
    "menu_search": "dishes or drinks, prices of items, what a restaurant serves",
    "perks": "amenities such as terrace, parking, wifi, high chair, play area",
    "meal_types": "breakfast, brunch, lunch or dinner service",
    "dietary_types": "vegetarian, vegan, halal or gluten-free options",
    "reservations": "whether a table can be booked",
    "contact": "website, social media, phone or e-mail",
    "description": "what the restaurant is like, its description",
    "virtual_tour": "360 degree virtual tour",
    "price": "price level or category of the restaurant as a whole",
    "reviews": "ratings and reviews",
    "out_of_scope": "anything that is not about Dinver partner restaurants",
}

RULES = [
    "restaurantQuery: the restaurant name exactly as written by the user, or null.",
    "menuTerm: the dish or drink in its base form (pizza for pizzu, pizzi, pice, picu), or null.",
    "General menu questions (what do they serve, sta nude) are menu_search with menuTerm null.",
    "filters may contain perk (amenity phrase) and foodType (cuisine or food type) or be empty.",
    "confidence: a number between 0 and 1.",
]


@dataclass(frozen=True)
class ClassificationResult:
    intent: str
    confidence: float
    source: str


@dataclass
class RoutedIntent:
    intent: str
    source: str
    confidence: float
    restaurant_query: str | None = None
    perk: str | None = None
    food_type: str | None = None
    menu_term: str | None = None


def choose_classification(
    primary: ClassificationResult | None,
    fallback: ClassificationResult,
) -> ClassificationResult:
    """Pick between the LLM result and the keyword result."""
    if primary is None:
        return fallback
    if primary.confidence < CONFIDENCE_THRESHOLD and fallback.intent != OUT_OF_SCOPE:
        return fallback
    return primary


def rules_classification(text: str, lang: str) -> ClassificationResult:
    return ClassificationResult(intent=classify_intent(text, lang), confidence=1.0, source=SOURCE_RULES)


async def route_intent_async(text: str, lang: str) -> RouterDecision:
    normalized = (text or "").strip()
    if not normalized:
        raise IntentUnavailable("Empty question")
    if not settings.OPENAI_API_KEY:
        raise IntentUnavailable("OPENAI_API_KEY not configured")
    if _circuit_open():
        raise IntentUnavailable("Intent router cooling down")

    digest = _prompt_fingerprint(normalized)
    model = settings.AI_ROUTER_MODEL
    payload = {
        "model": model,
        "temperature": 0,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": json.dumps(
                    {
                        "language": lang,
                        "question": normalized,
                        "intents": INTENT_CATALOG,
                        "rules": RULES,
                    },
                    ensure_ascii=False,
                ),
            },
        ],
    }
    payload[token_param(model)] = MAX_TOKENS

    try:
        response = await post_json(
            "/chat/completions",
            payload,
            timeout=settings.AI_ROUTER_TIMEOUT_SECONDS,
        )
    except OpenAIUnavailable as exc:
        _register_failure(exc)
        raise IntentUnavailable("LLM call failed") from exc

    content = message_content(response)
    if not content:
        _register_failure()
        raise IntentUnavailable("Empty LLM response")

    try:
        decision_obj = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.warning("Router JSON decode failed (%s): %s", digest, content)
        _register_failure(exc)
        raise IntentUnavailable("Invalid router JSON") from exc

    try:
        decision = RouterDecision.model_validate(decision_obj)
    except ValidationError as exc:
        logger.warning("Router validation failed (%s): %s", digest, decision_obj)
        _register_failure(exc)
        raise IntentUnavailable("Invalid router format") from exc

    _register_success()
    logger.debug("Intent routed %s -> %s", digest, decision.model_dump(exclude_none=True))
    return decision


async def infer_intent(text: str, lang: str) -> RoutedIntent:
    """Two-tier classification; never raises."""
    decision: RouterDecision | None = None
    try:
        decision = await route_intent_async(text, lang)
    except IntentUnavailable as exc:
        logger.info("Intent router unavailable, using keyword rules: %s", exc)

    fallback = rules_classification(text, lang)
    primary = None
    if decision is not None:
        confidence = 1.0 if decision.confidence is None else decision.confidence
        primary = ClassificationResult(intent=decision.intent, confidence=confidence, source=SOURCE_LLM)
    chosen = choose_classification(primary, fallback)
    if primary is not None and chosen is fallback:
        logger.info(
            "Low-confidence routing %s (%.2f) replaced by keyword intent %s",
            primary.intent,
            primary.confidence,
            fallback.intent,
        )

    routed = RoutedIntent(intent=chosen.intent, source=chosen.source, confidence=chosen.confidence)
    if decision is not None:
        routed.restaurant_query = decision.restaurant_query
        routed.perk = decision.filters.perk
        routed.food_type = decision.filters.food_type
        routed.menu_term = decision.menu_term
    return routed
