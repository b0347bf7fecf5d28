from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from .schedule import describe_opening_hours, is_open_now
from .settings import settings
from .taxonomy import display_names
from .types import Partner, RestaurantDetails

if TYPE_CHECKING:
    from .data_access import PartnerRepository

SHORT_DESCRIPTION_LENGTH = 200


def short_description(text: str, limit: int = SHORT_DESCRIPTION_LENGTH) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0]
    return f"{cut}..."


def contact_block(details: RestaurantDetails) -> dict[str, Any]:
    """
    Contact channels for a grounding payload.

    With AI_REDACT_CONTACT_FIELDS on, phone and e-mail never leave this function;
    the payload only says whether they exist and where the profile page is.
    """
    block: dict[str, Any] = {
        "website": details.website_url or None,
        "facebook": details.fb_url or None,
        "instagram": details.ig_url or None,
        "tiktok": details.tt_url or None,
    }
    if settings.AI_REDACT_CONTACT_FIELDS:
        block["has_phone"] = bool(details.phone)
        block["has_email"] = bool(details.email)
        block["profile_url"] = settings.profile_url(details.slug)
    else:
        block["phone"] = details.phone or None
        block["email"] = details.email or None
    return block


def restaurant_card(partner: Partner, distance_km: float | None = None) -> dict[str, Any]:
    card: dict[str, Any] = {
        "id": partner.id,
        "name": partner.name,
        "slug": partner.slug,
        "place": partner.place,
        "rating": partner.rating,
        "thumbnail_url": partner.thumbnail_url,
    }
    if distance_km is not None:
        card["distance_km"] = distance_km
    return card


async def build_restaurant_profile(
    repository: PartnerRepository,
    restaurant_id: str,
    lang: str,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    details = await repository.get_restaurant(restaurant_id)
    if details is None:
        return None
    types = await repository.types_for_restaurant(details)
    price_category = details.price_category
    if price_category is None and details.price_category_id is not None:
        price_category = await repository.price_category(details.price_category_id)
    return {
        "id": details.id,
        "name": details.name,
        "slug": details.slug,
        "address": details.address,
        "place": details.place,
        "rating": details.rating,
        "user_ratings_total": details.user_ratings_total,
        "description": details.description(lang),
        "opening_hours": describe_opening_hours(
            details.opening_hours, details.custom_working_days, lang, now
        ),
        "is_open_now": is_open_now(details.opening_hours, details.custom_working_days, now),
        "price_category": price_category.to_payload(lang) if price_category else None,
        "food_types": display_names(types.food_types, lang),
        "establishment_types": display_names(types.establishment_types, lang),
        "establishment_perks": display_names(types.establishment_perks, lang),
        "meal_types": display_names(types.meal_types, lang),
        "dietary_types": display_names(types.dietary_types, lang),
        "reservation_enabled": details.reservation_enabled,
        "virtual_tour_url": details.virtual_tour_url,
        "contact": contact_block(details),
        "latitude": details.latitude,
        "longitude": details.longitude,
        "thumbnail_url": details.thumbnail_url,
    }
