import time

from backend.dinver_ai.cache import TTLCache
from backend.dinver_ai.context_store import ConversationContext, ConversationContextStore


def make_store(ttl=60):
    return ConversationContextStore(cache=TTLCache("test_context", default_ttl=ttl), ttl_seconds=ttl)


def test_unknown_thread_has_no_context():
    store = make_store()
    assert store.get("missing") is None
    assert store.get(None) is None


def test_remember_restaurant_and_history():
    store = make_store()
    store.remember("t1", restaurant_id="r1", intent="hours")
    store.remember("t1", search_term="pizza", intent="menu_search")
    store.remember("t1", restaurant_id="r2", intent="perks")

    context = store.get("t1")
    assert context.last_restaurant_id == "r2"
    assert context.restaurant_history == ["r1", "r2"]
    assert context.search_history == ["pizza"]
    assert context.intent_history == ["hours", "menu_search", "perks"]


def test_turn_without_restaurant_does_not_create_context():
    store = make_store()
    assert store.remember("t1", search_term="pizza") is None
    assert store.get("t1") is None


def test_histories_are_bounded():
    store = make_store()
    for n in range(12):
        store.remember("t1", restaurant_id=f"r{n}", search_term=f"term{n}", intent="menu_search")

    context = store.get("t1")
    assert context.restaurant_history == ["r7", "r8", "r9", "r10", "r11"]
    assert len(context.search_history) == 10
    assert len(context.intent_history) == 5


def test_context_expires():
    store = make_store(ttl=0.1)
    store.set("t1", ConversationContext(last_restaurant_id="r1"))
    time.sleep(0.15)
    assert store.get("t1") is None


def test_missing_thread_id_is_ignored():
    store = make_store()
    assert store.remember(None, restaurant_id="r1") is None
