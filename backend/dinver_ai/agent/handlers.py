from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..enrichment import build_restaurant_profile, contact_block, restaurant_card, short_description
from ..schedule import (
    DAY_LABELS,
    compress_schedule,
    describe_opening_hours,
    now_in_zone,
    period_for_day,
    period_hours,
    todays_period,
    weekday_from_text,
)
from ..settings import settings
from ..taxonomy import display_names, mentioned_perk
from ..text import normalize_text
from ..types import NearbyPartner, RestaurantDetails
from .base import HandlerBase, identity
from .messages import PROVENANCE_SOURCES, join_items, message
from .types import AgentReply, HandlerRequest

logger = logging.getLogger(__name__)

NEARBY_CANDIDATES = 20
NEARBY_RESULTS = 5


def _matches_food_type(names: list[str], wanted: str) -> bool:
    target = normalize_text(wanted)
    if not target:
        return True
    for name in names:
        normalized = normalize_text(name)
        if normalized and (target in normalized or normalized in target):
            return True
    return False


class IntentHandlers(HandlerBase):
    """One coroutine per restaurant-facing intent (menu search lives in MenuSearch)."""

    # -------- hours --------
    async def hours(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        payload: dict[str, Any] = {"restaurant": identity(details)}
        schedule = describe_opening_hours(
            details.opening_hours, details.custom_working_days, req.language, req.now
        )
        if schedule is None:
            payload["missing_hours"] = True
            fallback = message("hours_missing", req.language, name=details.name)
            return await self.respond(req, "hours", payload, fallback, details)

        payload["opening_hours"] = schedule
        payload["is_open_now"] = schedule["today"].get("is_open", False)
        mon0, explicit = weekday_from_text(req.text, req.language, req.now)
        if explicit:
            if mon0 == now_in_zone(req.now).weekday():
                # today's date override wins over the weekly row
                period = todays_period(details.opening_hours, details.custom_working_days, req.now)
            else:
                period = period_for_day(details.opening_hours, mon0)
            hours = period_hours(period)
            payload["requested_day"] = {
                "day": DAY_LABELS.get(req.language, DAY_LABELS["en"])[mon0],
                "hours": hours,
                "closed": hours is None,
            }
        fallback = message(
            "hours",
            req.language,
            name=details.name,
            schedule=schedule["formatted"] or compress_schedule(details.opening_hours, req.language),
        )
        return await self.respond(req, "hours", payload, fallback, details)

    # -------- nearby --------
    async def _details_for(self, candidates: list[NearbyPartner]) -> list[RestaurantDetails | None]:
        return list(
            await asyncio.gather(*(self.repository.get_restaurant(c.partner.id) for c in candidates))
        )

    async def _filter_by_perk(self, candidates: list[NearbyPartner], phrase: str) -> list[NearbyPartner]:
        perk = await self.taxonomy.resolve_perk(phrase)
        if perk is None:
            # unresolved filter: no results rather than unfiltered ones
            logger.debug("Nearby perk filter %r unresolved", phrase)
            return []
        details = await self._details_for(candidates)
        kept = [c for c, d in zip(candidates, details) if d is not None and perk.id in d.establishment_perks]
        logger.debug("Nearby perk filter %r (id=%s): %s -> %s", phrase, perk.id, len(candidates), len(kept))
        return kept

    async def _filter_by_food_type(self, candidates: list[NearbyPartner], food_type: str) -> list[NearbyPartner]:
        details = await self._details_for(candidates)
        present = [(c, d) for c, d in zip(candidates, details) if d is not None]
        types = await asyncio.gather(*(self.repository.types_for_restaurant(d) for _, d in present))
        kept = []
        for (candidate, _), restaurant_types in zip(present, types):
            names = [n for entry in restaurant_types.food_types for n in (entry.name_en, entry.name_hr)]
            if _matches_food_type(names, food_type):
                kept.append(candidate)
        logger.debug("Nearby food filter %r: %s -> %s", food_type, len(candidates), len(kept))
        return kept

    async def _nearby_entry(self, req: HandlerRequest, candidate: NearbyPartner) -> dict[str, Any] | None:
        profile = await build_restaurant_profile(self.repository, candidate.partner.id, req.language, req.now)
        if profile is None:
            return None
        return {
            "id": profile["id"],
            "name": profile["name"],
            "address": profile["address"],
            "place": profile["place"],
            "distance_km": candidate.distance_km,
            "rating": profile["rating"],
            "is_open_now": profile["is_open_now"],
            "price_category": profile["price_category"],
            "description": short_description(profile["description"]),
        }

    async def nearby(self, req: HandlerRequest) -> AgentReply:
        perk_phrase = req.routed.perk or mentioned_perk(req.text)
        filters = {"perk": perk_phrase, "food_type": req.routed.food_type}
        if not req.has_location:
            payload = {"nearby": [], "filters": filters, "location_required": True}
            return await self.respond(req, "nearby", payload, message("need_location", req.language))

        radius = req.radius_km or settings.AI_DEFAULT_RADIUS_KM
        candidates = await self.repository.find_nearby(
            req.latitude, req.longitude, radius, limit=NEARBY_CANDIDATES
        )
        if candidates and perk_phrase:
            candidates = await self._filter_by_perk(candidates, perk_phrase)
        if candidates and req.routed.food_type:
            candidates = await self._filter_by_food_type(candidates, req.routed.food_type)
        candidates.sort(key=lambda c: (c.distance_km, -(c.partner.rating or 0.0)))
        top = candidates[:NEARBY_RESULTS]

        if not top:
            payload = {"nearby": [], "filters": filters, "no_results": True}
            return await self.respond(req, "nearby", payload, message("no_nearby", req.language))

        entries = [
            entry
            for entry in await asyncio.gather(*(self._nearby_entry(req, c) for c in top))
            if entry is not None
        ]
        payload = {"nearby": entries, "filters": filters, "radius_km": radius}
        fallback = message(
            "nearby",
            req.language,
            items=join_items(f"{e['name']} ({e['distance_km']} km)" for e in entries),
        )
        text = await self.reply.generate(req.language, "nearby", req.text, payload, fallback)
        return AgentReply(
            text=text,
            restaurants=[restaurant_card(c.partner, c.distance_km) for c in top],
        )

    # -------- catalog lists --------
    async def _catalog_intent(self, req: HandlerRequest, intent: str) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        types = await self.repository.types_for_restaurant(details)
        entries = {
            "perks": types.establishment_perks,
            "meal_types": types.meal_types,
            "dietary_types": types.dietary_types,
        }[intent]
        names = display_names(entries, req.language)
        payload: dict[str, Any] = {"restaurant": identity(details), intent: names}

        if intent == "perks":
            keyword = req.routed.perk or mentioned_perk(req.text)
            if keyword:
                perk = await self.taxonomy.resolve_perk(keyword)
                payload["asked_perk"] = {
                    "query": keyword,
                    "matched": perk.name(req.language) if perk else None,
                    "available": bool(perk and perk.id in details.establishment_perks),
                }

        if names:
            fallback = message(intent, req.language, name=details.name, items=join_items(names))
        else:
            fallback = message("types_missing", req.language, name=details.name)
        return await self.respond(req, intent, payload, fallback, details)

    async def perks(self, req: HandlerRequest) -> AgentReply:
        return await self._catalog_intent(req, "perks")

    async def meal_types(self, req: HandlerRequest) -> AgentReply:
        return await self._catalog_intent(req, "meal_types")

    async def dietary_types(self, req: HandlerRequest) -> AgentReply:
        return await self._catalog_intent(req, "dietary_types")

    # -------- restaurant facts --------
    async def reservations(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        # never carries phone or e-mail
        payload = {
            "restaurant": identity(details),
            "reservation_enabled": details.reservation_enabled,
            "profile_url": settings.profile_url(details.slug),
        }
        key = "reservations_enabled" if details.reservation_enabled else "reservations_disabled"
        return await self.respond(req, "reservations", payload, message(key, req.language, name=details.name), details)

    async def contact(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        block = contact_block(details)
        channels = [
            {"type": kind, "value": block[kind]}
            for kind in ("website", "facebook", "instagram", "tiktok", "phone", "email")
            if block.get(kind)
        ]
        payload = {"restaurant": identity(details), "contact": block, "channels": channels}
        fallback = message("contact", req.language, name=details.name)
        return await self.respond(req, "contact", payload, fallback, details)

    async def description(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        text = details.description(req.language)
        payload = {"restaurant": identity(details), "description": text}
        if text:
            fallback = message("description", req.language, description=text)
        else:
            fallback = message("description_missing", req.language, name=details.name)
        return await self.respond(req, "description", payload, fallback, details)

    async def virtual_tour(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        url = details.virtual_tour_url or None
        payload = {"restaurant": identity(details), "has_virtual_tour": bool(url), "virtual_tour_url": url}
        if url:
            fallback = message("virtual_tour", req.language, name=details.name, url=url)
        else:
            fallback = message("virtual_tour_missing", req.language, name=details.name)
        return await self.respond(req, "virtual_tour", payload, fallback, details)

    async def price(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        category = details.price_category or await self.repository.price_category(details.price_category_id)
        payload = {
            "restaurant": identity(details),
            "price_category": category.to_payload(req.language) if category else None,
        }
        if category:
            fallback = message("price", req.language, name=details.name, category=category.name(req.language))
        else:
            fallback = message("price_missing", req.language, name=details.name)
        return await self.respond(req, "price", payload, fallback, details)

    async def reviews(self, req: HandlerRequest) -> AgentReply:
        details, early = await self.scoped_restaurant(req)
        if early:
            return early
        summary = await self.repository.reviews_summary(details.id)
        payload = {
            "restaurant": identity(details),
            "reviews": {
                "total_reviews": summary.total_reviews,
                "overall": summary.overall,
                "food_quality": summary.food_quality,
                "service": summary.service,
                "atmosphere": summary.atmosphere,
            },
        }
        if summary.total_reviews:
            fallback = message(
                "reviews", req.language, name=details.name, overall=summary.overall, total=summary.total_reviews
            )
        else:
            fallback = message("reviews_missing", req.language, name=details.name)
        return await self.respond(req, "reviews", payload, fallback, details)

    # -------- no data --------
    async def data_provenance(self, req: HandlerRequest) -> AgentReply:
        payload = {"sources": PROVENANCE_SOURCES.get(req.language, PROVENANCE_SOURCES["en"])}
        return await self.respond(req, "data_provenance", payload, message("data_provenance", req.language))

    async def out_of_scope(self, req: HandlerRequest) -> AgentReply:
        return await self.respond(req, "out_of_scope", {}, message("out_of_scope", req.language))
