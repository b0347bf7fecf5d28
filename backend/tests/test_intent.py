import asyncio
import json

import pytest
from backend.dinver_ai import llm_intent
from backend.dinver_ai.intent_rules import classify_intent
from backend.dinver_ai.llm_intent import (
    ClassificationResult,
    IntentUnavailable,
    choose_classification,
    infer_intent,
    route_intent_async,
)
from backend.dinver_ai.schemas import RouterDecision
from backend.dinver_ai.settings import settings


@pytest.fixture(autouse=True)
def reset_intent(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "test-key")


def llm_returns(monkeypatch, payload, calls=None):
    async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
        if calls is not None:
            calls.append(request_payload)
        return {"choices": [{"message": {"content": json.dumps(payload, ensure_ascii=False)}}]}

    monkeypatch.setattr(llm_intent, "post_json", fake_post_json)


class TestKeywordRules:
    @pytest.mark.parametrize(
        "text,lang,intent",
        [
            ("Radi li Marabu danas?", "hr", "hours"),
            ("Restorani u blizini?", "hr", "nearby"),
            ("Imaju li lazanje?", "hr", "menu_search"),
            ("Ima li terasu?", "hr", "menu_search"),
            ("Imate li parking", "hr", "menu_search"),
            ("Nude li doručak?", "hr", "menu_search"),
            ("Mogu li rezervirati stol?", "hr", "reservations"),
            ("Odakle su podaci?", "hr", "data_provenance"),
            ("What's the closest place?", "en", "nearby"),
            ("Do they have pizza?", "en", "menu_search"),
            ("Is there outdoor seating?", "en", "perks"),
            ("Do they have vegan options?", "en", "dietary_types"),
            ("Show me reviews", "en", "reviews"),
            ("Where does the data come from?", "en", "data_provenance"),
            ("Tell me a joke", "en", "out_of_scope"),
        ],
    )
    def test_classify(self, text, lang, intent):
        assert classify_intent(text, lang) == intent

    def test_other_locale_is_tried_when_nothing_matches(self):
        assert classify_intent("Radno vrijeme?", "en") == "hours"

    def test_empty_input(self):
        assert classify_intent("   ", "hr") == "out_of_scope"


class TestChooseClassification:
    def test_no_primary_uses_fallback(self):
        fallback = ClassificationResult("hours", 1.0, "rules")
        assert choose_classification(None, fallback) is fallback

    def test_low_confidence_primary_loses_to_specific_fallback(self):
        primary = ClassificationResult("menu_search", 0.3, "llm")
        fallback = ClassificationResult("hours", 1.0, "rules")
        assert choose_classification(primary, fallback) is fallback

    def test_low_confidence_primary_beats_out_of_scope(self):
        primary = ClassificationResult("menu_search", 0.3, "llm")
        fallback = ClassificationResult("out_of_scope", 1.0, "rules")
        assert choose_classification(primary, fallback) is primary

    def test_confident_primary_wins(self):
        primary = ClassificationResult("perks", 0.5, "llm")
        fallback = ClassificationResult("hours", 1.0, "rules")
        assert choose_classification(primary, fallback) is primary


class TestRouterDecision:
    def test_camel_case_fields_and_blanks(self):
        decision = RouterDecision.model_validate(
            {
                "intent": " Menu_Search ",
                "restaurantQuery": "  ",
                "menuTerm": "pizza",
                "filters": None,
                "extra": "ignored",
            }
        )
        assert decision.intent == "menu_search"
        assert decision.restaurant_query is None
        assert decision.menu_term == "pizza"
        assert decision.filters.perk is None
        assert decision.confidence is None

    def test_unknown_intent_is_rejected(self):
        with pytest.raises(ValueError):
            RouterDecision.model_validate({"intent": "weather"})


class TestRouteIntent:
    def test_llm_decision_with_filters(self, monkeypatch):
        calls = []
        llm_returns(
            monkeypatch,
            {"intent": "nearby", "filters": {"perk": "terasa", "foodType": "talijanska"}, "confidence": 0.8},
            calls,
        )

        routed = asyncio.run(infer_intent("Talijanski restorani s terasom u blizini", "hr"))

        assert routed.intent == "nearby"
        assert routed.source == "llm"
        assert routed.perk == "terasa"
        assert routed.food_type == "talijanska"
        request_payload = calls[0]
        assert request_payload["temperature"] == 0
        assert request_payload["response_format"] == {"type": "json_object"}
        assert request_payload["max_completion_tokens"] == llm_intent.MAX_TOKENS
        assert "menu_search" in json.loads(request_payload["messages"][1]["content"])["intents"]

    def test_missing_confidence_counts_as_certain(self, monkeypatch):
        llm_returns(monkeypatch, {"intent": "reviews"})
        routed = asyncio.run(infer_intent("Kakve su ocjene?", "hr"))
        assert routed.intent == "reviews"
        assert routed.confidence == 1.0

    def test_low_confidence_falls_back_but_keeps_entities(self, monkeypatch):
        llm_returns(
            monkeypatch,
            {"intent": "menu_search", "restaurantQuery": "Marabu", "menuTerm": "pizza", "confidence": 0.2},
        )

        routed = asyncio.run(infer_intent("Radi li Marabu danas?", "hr"))

        assert routed.intent == "hours"
        assert routed.source == "rules"
        assert routed.restaurant_query == "Marabu"

    def test_invalid_json_registers_failure(self, monkeypatch):
        async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
            return {"choices": [{"message": {"content": "not json"}}]}

        monkeypatch.setattr(llm_intent, "post_json", fake_post_json)

        with pytest.raises(IntentUnavailable):
            asyncio.run(route_intent_async("Radi li Marabu?", "hr"))
        assert llm_intent._failure_count == 1

    def test_circuit_opens_after_repeated_failures(self, monkeypatch):
        calls = []
        llm_returns(monkeypatch, {"intent": "not-an-intent"}, calls)

        for _ in range(llm_intent.MAX_FAILURES):
            routed = asyncio.run(infer_intent("Radi li Marabu danas?", "hr"))
            assert routed.intent == "hours"

        asyncio.run(infer_intent("Radi li Marabu danas?", "hr"))

        assert len(calls) == llm_intent.MAX_FAILURES
        assert llm_intent._circuit_open()

    def test_missing_key_skips_the_call(self, monkeypatch):
        calls = []
        llm_returns(monkeypatch, {"intent": "hours"}, calls)
        monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

        routed = asyncio.run(infer_intent("Is Marabu open?", "en"))

        assert routed.source == "rules"
        assert calls == []
        assert llm_intent._failure_count == 0
