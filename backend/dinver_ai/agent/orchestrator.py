from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable
from datetime import datetime

from ..cache import TTLCache
from ..context_store import ConversationContextStore
from ..data_access import PartnerRepository
from ..intent_rules import classify_intent
from ..language import detect_language
from ..llm_intent import SOURCE_RULES, RoutedIntent, infer_intent
from ..logging_config import get_logger, turn_context
from ..reply import ReplyGenerator
from ..schedule import now_in_zone
from ..search_terms import GENERIC_MENU_PHRASE, latinize
from ..settings import settings
from ..taxonomy import TaxonomyResolver
from .handlers import IntentHandlers
from .menu import MenuSearch
from .messages import message
from .types import AgentReply, ChatInput, HandlerRequest

logger = get_logger(__name__)

Handler = Callable[[HandlerRequest], Awaitable[AgentReply]]

# Phrases that widen a turn beyond the thread's remembered restaurant.
GLOBAL_SCOPE = re.compile(
    r"\b(blizu mene|u blizini|near me|nearby|neki restoran|neki restorani|restaurants|restorani|"
    r"u okolici|oko mene)\b"
)


class DinverAgent:
    """
    One conversational turn: language, intent, scope, handler, context update.

    `chat` never raises; anything unexpected is logged and answered with the
    localized apology.
    """

    def __init__(
        self,
        repository: PartnerRepository,
        reply_generator: ReplyGenerator,
        context_store: ConversationContextStore,
        taxonomy: TaxonomyResolver,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.repository = repository
        self.context_store = context_store
        self._clock = clock or now_in_zone
        handlers = IntentHandlers(repository, reply_generator, taxonomy)
        menu = MenuSearch(repository, reply_generator, taxonomy)
        self._handlers: dict[str, Handler] = {
            "hours": handlers.hours,
            "nearby": handlers.nearby,
            "menu_search": menu.menu_search,
            "perks": handlers.perks,
            "meal_types": handlers.meal_types,
            "dietary_types": handlers.dietary_types,
            "reservations": handlers.reservations,
            "contact": handlers.contact,
            "description": handlers.description,
            "virtual_tour": handlers.virtual_tour,
            "price": handlers.price,
            "reviews": handlers.reviews,
            "data_provenance": handlers.data_provenance,
            "out_of_scope": handlers.out_of_scope,
        }

    async def _route(self, text: str, lang: str) -> RoutedIntent:
        routed = await infer_intent(text, lang)
        if not routed.intent:
            routed = RoutedIntent(intent=classify_intent(text, lang), source=SOURCE_RULES, confidence=1.0)
        if routed.intent != "menu_search" and GENERIC_MENU_PHRASE.search(latinize(text)):
            logger.debug("generic_menu_override", routed_intent=routed.intent)
            routed.intent = "menu_search"
        return routed

    async def chat(self, chat_input: ChatInput) -> AgentReply:
        started = time.perf_counter()
        lang = detect_language(chat_input.message, chat_input.language)
        with turn_context(thread_id=chat_input.thread_id, language=lang):
            try:
                return await self._turn(chat_input, lang, started)
            except Exception:
                logger.exception("ai_chat_failed")
                return AgentReply(text=message("error", lang))

    async def _turn(self, chat_input: ChatInput, lang: str, started: float) -> AgentReply:
        text = (chat_input.message or "").strip()
        routed = await self._route(text, lang)

        single_mode = bool(chat_input.forced_restaurant_id)
        global_scope = not single_mode and GLOBAL_SCOPE.search(latinize(text)) is not None
        if single_mode:
            prefer_id = chat_input.forced_restaurant_id
            if routed.intent == "nearby":
                routed.intent = "description"
        elif global_scope:
            prefer_id = None
        else:
            context = self.context_store.get(chat_input.thread_id)
            prefer_id = context.last_restaurant_id if context else None

        request = HandlerRequest(
            language=lang,
            text=text,
            routed=routed,
            prefer_id=prefer_id,
            single_restaurant_mode=single_mode,
            global_scope=global_scope,
            latitude=chat_input.latitude,
            longitude=chat_input.longitude,
            radius_km=chat_input.radius_km,
            now=self._clock(),
        )
        handler = self._handlers.get(routed.intent, self._handlers["out_of_scope"])
        reply = await handler(request)

        self.context_store.remember(
            chat_input.thread_id,
            restaurant_id=reply.restaurant_id,
            search_term=reply.search_term,
            intent=routed.intent,
        )
        logger.info(
            "ai_interaction",
            intent=routed.intent,
            source=routed.source,
            restaurant_id=reply.restaurant_id,
            single_restaurant_mode=single_mode,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return reply


def build_agent(repository: PartnerRepository | None = None) -> DinverAgent:
    """Wire the default collaborators once at startup."""
    repository = repository or PartnerRepository()
    taxonomy = TaxonomyResolver(
        repository,
        TTLCache("perk_lookup", max_size=500, default_ttl=settings.AI_PERK_CACHE_TTL_SECONDS),
    )
    return DinverAgent(
        repository=repository,
        reply_generator=ReplyGenerator(),
        context_store=ConversationContextStore(),
        taxonomy=taxonomy,
    )
