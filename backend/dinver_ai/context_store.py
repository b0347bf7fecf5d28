from __future__ import annotations

from dataclasses import dataclass, field

from .cache import TTLCache
from .settings import settings

RESTAURANT_HISTORY = 5
SEARCH_HISTORY = 10
INTENT_HISTORY = 5


@dataclass
class ConversationContext:
    last_restaurant_id: str | None = None
    restaurant_history: list[str] = field(default_factory=list)
    search_history: list[str] = field(default_factory=list)
    intent_history: list[str] = field(default_factory=list)


def _push(history: list[str], value: str, limit: int) -> list[str]:
    return [*history, value][-limit:]


class ConversationContextStore:
    """
    Per-thread scoping memory.

    Entries live in an injected TTLCache, so the TTL runs from the last write and
    nothing survives a restart. Concurrent turns on one thread are last-write-wins.
    """

    def __init__(self, cache: TTLCache | None = None, ttl_seconds: float | None = None) -> None:
        self._ttl = ttl_seconds or settings.AI_CONTEXT_TTL_SECONDS
        self._cache = cache or TTLCache(
            "conversation_context",
            max_size=settings.AI_CONTEXT_MAX_THREADS,
            default_ttl=self._ttl,
        )

    def get(self, thread_id: str | None) -> ConversationContext | None:
        if not thread_id:
            return None
        return self._cache.get(thread_id)

    def set(self, thread_id: str, context: ConversationContext, ttl: float | None = None) -> None:
        if not thread_id:
            return
        self._cache.set(thread_id, context, ttl=ttl if ttl is not None else self._ttl)

    def remember(
        self,
        thread_id: str | None,
        restaurant_id: str | None = None,
        search_term: str | None = None,
        intent: str | None = None,
    ) -> ConversationContext | None:
        """
        Fold one turn's outcome into the thread's context.

        Only a turn that resolved a restaurant creates the context or refreshes its
        TTL; other turns append to the histories of a live context in place.
        """
        if not thread_id:
            return None
        current = self.get(thread_id)
        if current is None and not restaurant_id:
            return None
        context = current or ConversationContext()
        if search_term:
            context.search_history = _push(context.search_history, search_term, SEARCH_HISTORY)
        if intent:
            context.intent_history = _push(context.intent_history, intent, INTENT_HISTORY)
        if restaurant_id:
            context.last_restaurant_id = restaurant_id
            if not context.restaurant_history or context.restaurant_history[-1] != restaurant_id:
                context.restaurant_history = _push(
                    context.restaurant_history, restaurant_id, RESTAURANT_HISTORY
                )
            self.set(thread_id, context)
        return context
