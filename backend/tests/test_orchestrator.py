import asyncio
import json

import pytest
from backend.dinver_ai import llm_intent
from backend.dinver_ai.agent import AgentReply, ChatInput, DinverAgent
from backend.dinver_ai.agent.orchestrator import GLOBAL_SCOPE
from backend.dinver_ai.cache import TTLCache
from backend.dinver_ai.context_store import ConversationContextStore
from backend.dinver_ai.settings import settings
from backend.dinver_ai.taxonomy import TaxonomyResolver
from backend.tests.fakes import MONDAY_NOON, FakeRepository, RecordingReply


def make_agent(repository=None):
    repository = repository or FakeRepository()
    reply = RecordingReply()
    store = ConversationContextStore(cache=TTLCache("test_context", default_ttl=60))
    agent = DinverAgent(
        repository=repository,
        reply_generator=reply,
        context_store=store,
        taxonomy=TaxonomyResolver(repository, TTLCache("test_perks")),
        clock=lambda: MONDAY_NOON,
    )
    return agent, reply, store


def ask(agent, message, **kwargs) -> AgentReply:
    return asyncio.run(agent.chat(ChatInput(message=message, **kwargs)))


class TestScopedTurns:
    def test_hours_question_resolves_named_restaurant(self):
        agent, reply, store = make_agent()

        result = ask(agent, "Is Marabu Caffe open today?", language="en", thread_id="t1")

        assert result.restaurant_id == "r1"
        assert reply.last["intent"] == "hours"
        assert reply.last["data"]["is_open_now"] is True
        assert reply.last["data"]["single_restaurant_mode"] is False
        assert "Opening hours for Marabu Caffe" in result.text
        assert store.get("t1").last_restaurant_id == "r1"

    def test_follow_up_uses_thread_context(self):
        agent, reply, _ = make_agent()
        ask(agent, "Is Marabu Caffe open today?", language="en", thread_id="t1")

        result = ask(agent, "Do they have a terrace?", language="en", thread_id="t1")

        assert result.restaurant_id == "r1"
        assert reply.last["intent"] == "perks"
        assert reply.last["data"]["perks"] == ["Terrace"]
        assert reply.last["data"]["asked_perk"] == {"query": "terrace", "matched": "Terrace", "available": True}

    def test_follow_up_without_context_asks_which_restaurant(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "Radi li danas?", thread_id="fresh")

        assert reply.last["intent"] == "clarify"
        assert reply.last["language"] == "hr"
        assert result.text == "Mislite li na: Bistro Vinodol, Marabu Caffe, Pizzeria Napoli?"
        assert result.restaurant_id is None
        assert [card["id"] for card in result.restaurants] == ["r3", "r1", "r2"]

    def test_broad_question_ignores_remembered_restaurant(self):
        agent, reply, store = make_agent()
        ask(agent, "Is Marabu Caffe open today?", language="en", thread_id="t1")

        result = ask(
            agent,
            "Which restaurants near me have a terrace?",
            language="en",
            thread_id="t1",
            latitude=45.8130,
            longitude=15.9770,
        )

        assert reply.last["intent"] == "nearby"
        assert [card["id"] for card in result.restaurants] == ["r1", "r3"]
        assert reply.last["data"]["filters"]["perk"] == "terrace"
        # the remembered restaurant survives a broad turn
        assert store.get("t1").last_restaurant_id == "r1"


class TestMenuTurns:
    def test_global_pizza_search_groups_by_restaurant(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "Where can I get pizza?", language="en")

        assert reply.last["intent"] == "menu_search"
        assert result.search_term == "pizza"
        assert [card["id"] for card in result.restaurants] == ["r1", "r2"]
        assert {item["id"] for item in result.items} == {"m1", "m4", "m5"}
        results = reply.last["data"]["results"]
        assert results[1]["restaurant"]["price_category"] == {"level": 1, "name": "Affordable", "icon": "€"}

    def test_global_search_respects_caller_radius(self):
        agent, _, _ = make_agent()

        result = ask(
            agent,
            "Where can I get pizza?",
            language="en",
            latitude=45.8150,
            longitude=15.9800,
            radius_km=0.1,
        )

        assert [card["id"] for card in result.restaurants] == ["r2"]
        assert result.restaurants[0]["distance_km"] == 0.0

    def test_scoped_miss_does_not_fall_back_to_other_restaurants(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "Does Marabu Caffe have lasagna?", language="en")

        assert result.restaurant_id == "r1"
        assert result.items == []
        assert reply.last["data"]["not_found_in_this_restaurant"] is True
        assert result.text == "Unfortunately, Marabu Caffe does not have lasagna on the menu."

    def test_most_expensive_item(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "What is the most expensive dish at Marabu Caffe?", language="en")

        assert reply.last["data"]["is_max_price_query"] is True
        assert [item["id"] for item in result.items] == ["m1"]
        assert result.text == "The most expensive at Marabu Caffe: Pizza Margherita (9.50 €)."

    def test_general_menu_question_samples_the_menu(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "What do they serve at Marabu Caffe?", language="en")

        assert reply.last["intent"] == "menu_search"
        assert reply.last["data"]["is_general_menu"] is True
        assert {item["id"] for item in result.items} == {"m1", "m2", "m3"}

    def test_llm_routing_supplies_restaurant_and_term(self, monkeypatch):
        settings.OPENAI_API_KEY = "test-key"
        decision = {
            "intent": "menu_search",
            "restaurantQuery": "Napoli",
            "menuTerm": "pizza",
            "filters": {},
            "confidence": 0.9,
        }
        seen = []

        async def fake_post_json(path, request_payload, timeout=None):  # noqa: ARG001
            seen.append(path)
            return {"choices": [{"message": {"content": json.dumps(decision)}}]}

        monkeypatch.setattr(llm_intent, "post_json", fake_post_json)
        agent, reply, store = make_agent()

        result = ask(agent, "Imaju li u Napoliju pizzu?", language="hr", thread_id="t2")

        assert seen == ["/chat/completions"]
        assert result.restaurant_id == "r2"
        assert {item["id"] for item in result.items} == {"m4", "m5"}
        assert store.get("t2").search_history == ["pizza"]
        assert reply.last["language"] == "hr"


class TestSingleRestaurantMode:
    def test_nearby_becomes_description(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "Anything good nearby?", language="en", forced_restaurant_id="r2")

        assert reply.last["intent"] == "description"
        assert reply.last["data"]["single_restaurant_mode"] is True
        assert result.restaurant_id == "r2"
        assert result.text == "Wood-fired Neapolitan pizza."

    def test_forced_restaurant_wins_over_named_one(self):
        agent, _, _ = make_agent()

        result = ask(agent, "Is Marabu Caffe open today?", language="en", forced_restaurant_id="r2")

        assert result.restaurant_id == "r2"


class TestFailureHandling:
    def test_out_of_scope_question(self):
        agent, reply, _ = make_agent()

        result = ask(agent, "Who won the football match yesterday?", language="en")

        assert reply.last["intent"] == "out_of_scope"
        assert result.text.startswith("I can only help with questions about Dinver partner restaurants.")

    def test_unexpected_error_returns_apology(self):
        class BrokenRepository(FakeRepository):
            async def list_partners(self):
                raise RuntimeError("database unavailable")

        agent, _, _ = make_agent(BrokenRepository())

        result = ask(agent, "Radi li Marabu Caffe danas?")

        assert result.text == "Ispričavam se, dogodila se greška. Molim pokušajte ponovno."
        assert result.restaurant_id is None


@pytest.mark.parametrize(
    "text,widens",
    [
        ("koji restorani u blizini imaju terasu", True),
        ("which restaurants near me are open", True),
        ("sto nude u restoranima", False),
        ("is it open nearbyish", False),
    ],
)
def test_global_scope_phrases_are_whole_words(text, widens):
    assert (GLOBAL_SCOPE.search(text) is not None) is widens
