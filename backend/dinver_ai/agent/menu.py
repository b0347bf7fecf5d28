from __future__ import annotations

import logging
import random
from typing import Any

from ..enrichment import restaurant_card
from ..geo import haversine_km
from ..resolver import AMBIGUOUS, MATCHED
from ..search_terms import (
    canonical_term,
    expand_search_term,
    extract_menu_term,
    is_cheapest_query,
    is_generic_menu_term,
    is_most_expensive_query,
)
from ..settings import settings
from ..types import MenuEntry, MenuHit, RestaurantDetails
from .base import HandlerBase, identity
from .messages import format_price, join_items, message
from .types import AgentReply, HandlerRequest

logger = logging.getLogger(__name__)

GLOBAL_RESTAURANT_LIMIT = 3
ITEMS_PER_RESTAURANT = 3
SAMPLE_POOL = 60
SAMPLE_MIN = 5
SAMPLE_MAX = 7


def item_payload(entry: MenuEntry, lang: str) -> dict[str, Any]:
    return {
        "name": entry.name(lang),
        "description": entry.description(lang),
        "price": format_price(entry.price) or None,
        "kind": entry.kind,
    }


def item_card(entry: MenuEntry, lang: str) -> dict[str, Any]:
    return {
        "id": entry.id,
        "name": entry.name(lang),
        "price": entry.price,
        "kind": entry.kind,
        "restaurant_id": entry.restaurant_id,
        "thumbnail_url": entry.thumbnail_url,
    }


def _item_line(entry: MenuEntry, lang: str) -> str:
    price = format_price(entry.price)
    return f"{entry.name(lang)} ({price})" if price else entry.name(lang)


def group_hits(hits: list[MenuHit], max_restaurants: int, per_restaurant: int) -> list[tuple[MenuHit, list[MenuEntry]]]:
    """Keep hit order, first `max_restaurants` distinct restaurants, a few items each."""
    groups: dict[str, tuple[MenuHit, list[MenuEntry]]] = {}
    for hit in hits:
        rid = hit.restaurant.id
        if rid not in groups:
            if len(groups) >= max_restaurants:
                continue
            groups[rid] = (hit, [])
        entries = groups[rid][1]
        if len(entries) < per_restaurant and all(e.id != hit.item.id for e in entries):
            entries.append(hit.item)
    return list(groups.values())


class MenuSearch(HandlerBase):
    def __init__(self, *args: Any, rng: random.Random | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._rng = rng or random.Random()

    async def menu_search(self, req: HandlerRequest) -> AgentReply:
        details: RestaurantDetails | None = None
        resolution = await self.resolve_scope(req, use_preference=not req.global_scope)
        if resolution.status == MATCHED and resolution.match is not None:
            details = await self.repository.get_restaurant(resolution.match.id)
        elif resolution.status == AMBIGUOUS:
            return await self.clarify(req, resolution)

        term = canonical_term(req.routed.menu_term) if req.routed.menu_term else ""
        if details is not None:
            if not term and is_most_expensive_query(req.text):
                return await self._price_extreme(req, details, highest=True)
            if not term and is_cheapest_query(req.text):
                return await self._price_extreme(req, details, highest=False)

        if not term:
            term = extract_menu_term(
                req.text,
                details.name if details else None,
                details.slug if details else None,
            )
        if not term or is_generic_menu_term(term):
            if details is not None:
                return await self._menu_sample(req, details)
            return await self.respond(
                req, "menu_search", {"is_general_menu": True, "restaurant": None}, message("which_restaurant", req.language)
            )

        variants = expand_search_term(term)
        if details is not None and not req.global_scope:
            return await self._scoped_search(req, details, term, variants)
        return await self._global_search(req, term, variants)

    async def _price_extreme(self, req: HandlerRequest, details: RestaurantDetails, highest: bool) -> AgentReply:
        entries = await self.repository.price_extremes(details.id, highest=highest)
        payload = {
            "restaurant": identity(details),
            "is_max_price_query": highest,
            "is_min_price_query": not highest,
            "items": [item_payload(e, req.language) for e in entries],
        }
        if entries:
            key = "most_expensive" if highest else "cheapest"
            fallback = message(key, req.language, name=details.name, items=join_items(_item_line(e, req.language) for e in entries))
        else:
            fallback = message("menu_empty", req.language, name=details.name)
        return await self.respond(
            req, "menu_search", payload, fallback, details, items=[item_card(e, req.language) for e in entries]
        )

    async def _menu_sample(self, req: HandlerRequest, details: RestaurantDetails) -> AgentReply:
        pool = await self.repository.menu_items_for_restaurant(details.id, limit=SAMPLE_POOL)
        size = min(len(pool), self._rng.randint(SAMPLE_MIN, SAMPLE_MAX))
        sample = self._rng.sample(pool, size) if pool else []
        payload = {
            "restaurant": identity(details),
            "is_general_menu": True,
            "items": [item_payload(e, req.language) for e in sample],
        }
        if sample:
            fallback = message(
                "menu_sample", req.language, name=details.name, items=join_items(e.name(req.language) for e in sample)
            )
        else:
            fallback = message("menu_empty", req.language, name=details.name)
        return await self.respond(
            req, "menu_search", payload, fallback, details, items=[item_card(e, req.language) for e in sample]
        )

    async def _scoped_search(
        self, req: HandlerRequest, details: RestaurantDetails, term: str, variants: list[str]
    ) -> AgentReply:
        hits = await self.repository.search_menu(variants, restaurant_id=details.id)
        entries = [hit.item for hit in hits]
        payload: dict[str, Any] = {
            "restaurant": identity(details),
            "term": term,
            "items": [item_payload(e, req.language) for e in entries[:10]],
        }
        if not entries:
            # no silent fallback to other restaurants
            payload["not_found_in_this_restaurant"] = True
            fallback = message("menu_not_found_here", req.language, name=details.name, term=term)
        else:
            fallback = message(
                "menu_found", req.language, items=join_items(_item_line(e, req.language) for e in entries[:5])
            )
        reply = await self.respond(
            req, "menu_search", payload, fallback, details, items=[item_card(e, req.language) for e in entries[:10]]
        )
        reply.search_term = term
        return reply

    async def _global_search(self, req: HandlerRequest, term: str, variants: list[str]) -> AgentReply:
        hits = await self.repository.search_menu(variants)
        distances: dict[str, float] = {}
        if req.has_location:
            radius = req.radius_km or settings.AI_DEFAULT_RADIUS_KM
            located = []
            for hit in hits:
                partner = hit.restaurant
                if partner.latitude is None or partner.longitude is None:
                    continue
                distance = haversine_km(req.latitude, req.longitude, partner.latitude, partner.longitude)
                if distance <= radius:
                    distances[partner.id] = round(distance, 2)
                    located.append(hit)
            hits = sorted(located, key=lambda h: distances[h.restaurant.id])

        groups = group_hits(hits, GLOBAL_RESTAURANT_LIMIT, ITEMS_PER_RESTAURANT)
        results = []
        for hit, entries in groups:
            category = await self.repository.price_category(hit.price_category_id)
            restaurant = {
                "id": hit.restaurant.id,
                "name": hit.restaurant.name,
                "place": hit.restaurant.place,
                "price_category": category.to_payload(req.language) if category else None,
            }
            if hit.restaurant.id in distances:
                restaurant["distance_km"] = distances[hit.restaurant.id]
            results.append({"restaurant": restaurant, "items": [item_payload(e, req.language) for e in entries]})

        payload: dict[str, Any] = {"term": term, "results": results}
        if not results:
            payload["no_results"] = True
            fallback = message("menu_not_found", req.language, term=term)
        else:
            fallback = message(
                "menu_found",
                req.language,
                items=join_items(
                    f"{_item_line(entries[0], req.language)} - {hit.restaurant.name}" for hit, entries in groups
                ),
            )
        text = await self.reply.generate(req.language, "menu_search", req.text, payload, fallback)
        return AgentReply(
            text=text,
            restaurants=[restaurant_card(hit.restaurant, distances.get(hit.restaurant.id)) for hit, _ in groups],
            items=[item_card(e, req.language) for _, entries in groups for e in entries],
            search_term=term,
        )
