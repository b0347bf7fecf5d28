from __future__ import annotations

import logging
from typing import Any

from ..data_access import PartnerRepository
from ..enrichment import restaurant_card
from ..reply import ReplyGenerator, format_disambiguation
from ..resolver import (
    AMBIGUOUS,
    MATCHED,
    MIN_HEAD_LENGTH,
    NOT_FOUND,
    Resolution,
    extract_name_hint,
    preferred_resolution,
    resolve_restaurant,
)
from ..taxonomy import TaxonomyResolver
from ..types import RestaurantDetails
from .messages import message
from .types import AgentReply, HandlerRequest

logger = logging.getLogger(__name__)

CLARIFY_INTENT = "clarify"


def identity(details: RestaurantDetails) -> dict[str, Any]:
    return {
        "id": details.id,
        "name": details.name,
        "address": details.address,
        "place": details.place,
    }


class HandlerBase:
    def __init__(
        self,
        repository: PartnerRepository,
        reply: ReplyGenerator,
        taxonomy: TaxonomyResolver,
    ) -> None:
        self.repository = repository
        self.reply = reply
        self.taxonomy = taxonomy

    async def resolve_scope(self, req: HandlerRequest, *, use_preference: bool = True) -> Resolution:
        """
        Restaurant a turn is about.

        The router's restaurant query is scored before the raw utterance. When
        neither is confident the thread's preferred restaurant wins; without one,
        a partial name lookup on the whole "restaurant X" or quoted hint is tried,
        but only when nothing scored close enough to be ambiguous.
        """
        partners = await self.repository.list_partners()
        prefer_id = req.prefer_id if use_preference else None
        if req.single_restaurant_mode and prefer_id:
            return preferred_resolution(partners, prefer_id)

        resolutions: list[Resolution] = []
        for utterance in dict.fromkeys(u for u in (req.routed.restaurant_query, req.text) if u):
            resolution = resolve_restaurant(utterance, partners)
            if resolution.status == MATCHED:
                return resolution
            resolutions.append(resolution)

        if prefer_id:
            return preferred_resolution(partners, prefer_id)

        ambiguous = next((r for r in resolutions if r.status == AMBIGUOUS), None)
        if ambiguous is not None:
            return ambiguous

        hint = req.routed.restaurant_query or extract_name_hint(req.text)
        if hint and len(hint.strip()) >= MIN_HEAD_LENGTH:
            partner = await self.repository.find_partner_by_name(hint)
            if partner is not None:
                return Resolution(MATCHED, match=partner)
        return resolutions[0] if resolutions else Resolution(NOT_FOUND)

    async def clarify(self, req: HandlerRequest, resolution: Resolution) -> AgentReply:
        candidates = resolution.candidates
        if not candidates:
            fallback = message("restaurant_not_found", req.language)
            text = await self.reply.generate(
                req.language, CLARIFY_INTENT, req.text, {"clarify": True, "candidates": []}, fallback
            )
            return AgentReply(text=text)
        payload = {
            "clarify": True,
            "ambiguous": resolution.status == AMBIGUOUS,
            "candidates": [{"id": c.id, "name": c.name} for c in candidates],
        }
        text = await self.reply.generate(
            req.language,
            CLARIFY_INTENT,
            req.text,
            payload,
            format_disambiguation(candidates, req.language),
        )
        return AgentReply(text=text, restaurants=[restaurant_card(c) for c in candidates])

    async def scoped_restaurant(
        self, req: HandlerRequest
    ) -> tuple[RestaurantDetails | None, AgentReply | None]:
        """Details of the resolved restaurant, or the reply to send instead."""
        resolution = await self.resolve_scope(req)
        if resolution.status != MATCHED or resolution.match is None:
            return None, await self.clarify(req, resolution)
        details = await self.repository.get_restaurant(resolution.match.id)
        if details is None:
            logger.info("Resolved restaurant %s is not a visible partner", resolution.match.id)
            text = await self.reply.generate(
                req.language,
                "restaurant_not_found",
                req.text,
                {"restaurant": None},
                message("restaurant_not_found", req.language),
            )
            return None, AgentReply(text=text)
        return details, None

    async def respond(
        self,
        req: HandlerRequest,
        intent: str,
        payload: dict[str, Any],
        fallback: str,
        details: RestaurantDetails | None = None,
        items: list[dict[str, Any]] | None = None,
    ) -> AgentReply:
        if details is not None:
            payload.setdefault("single_restaurant_mode", req.single_restaurant_mode)
        text = await self.reply.generate(req.language, intent, req.text, payload, fallback)
        return AgentReply(
            text=text,
            restaurant_id=details.id if details else None,
            restaurants=[restaurant_card(details.as_partner())] if details else [],
            items=items or [],
        )
