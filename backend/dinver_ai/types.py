from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def pick_localized(values: dict[str, str] | None, lang: str) -> str:
    """Preferred language first, else any non-empty translation, else ""."""
    if not values:
        return ""
    preferred = values.get(lang)
    if preferred:
        return preferred
    for value in values.values():
        if value:
            return value
    return ""


@dataclass
class Partner:
    id: str
    name: str
    slug: str | None = None
    address: str | None = None
    place: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    rating: float | None = None
    thumbnail_url: str | None = None


@dataclass
class NearbyPartner:
    partner: Partner
    distance_km: float


@dataclass
class CatalogEntry:
    id: int
    name_en: str = ""
    name_hr: str = ""
    icon: str | None = None

    def name(self, lang: str) -> str:
        return pick_localized({"hr": self.name_hr, "en": self.name_en}, lang)


@dataclass
class PriceCategory(CatalogEntry):
    level: int | None = None

    def to_payload(self, lang: str) -> dict[str, Any]:
        return {"level": self.level, "name": self.name(lang), "icon": self.icon}


@dataclass
class RestaurantDetails:
    id: str
    name: str
    slug: str | None = None
    address: str | None = None
    place: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    rating: float | None = None
    user_ratings_total: int | None = None
    thumbnail_url: str | None = None
    descriptions: dict[str, str] = field(default_factory=dict)
    opening_hours: dict[str, Any] | None = None
    custom_working_days: dict[str, Any] | None = None
    food_types: list[int] = field(default_factory=list)
    establishment_types: list[int] = field(default_factory=list)
    establishment_perks: list[int] = field(default_factory=list)
    meal_types: list[int] = field(default_factory=list)
    dietary_types: list[int] = field(default_factory=list)
    price_category_id: int | None = None
    price_category: PriceCategory | None = None
    phone: str | None = None
    email: str | None = None
    website_url: str | None = None
    fb_url: str | None = None
    ig_url: str | None = None
    tt_url: str | None = None
    reservation_enabled: bool = False
    virtual_tour_url: str | None = None

    def description(self, lang: str) -> str:
        return pick_localized(self.descriptions, lang)

    def as_partner(self) -> Partner:
        return Partner(
            id=self.id,
            name=self.name,
            slug=self.slug,
            address=self.address,
            place=self.place,
            latitude=self.latitude,
            longitude=self.longitude,
            rating=self.rating,
            thumbnail_url=self.thumbnail_url,
        )


@dataclass
class RestaurantTypes:
    food_types: list[CatalogEntry] = field(default_factory=list)
    establishment_types: list[CatalogEntry] = field(default_factory=list)
    establishment_perks: list[CatalogEntry] = field(default_factory=list)
    meal_types: list[CatalogEntry] = field(default_factory=list)
    dietary_types: list[CatalogEntry] = field(default_factory=list)


@dataclass
class MenuEntry:
    id: str
    kind: str  # "food" | "drink"
    restaurant_id: str
    price: float | None = None
    names: dict[str, str] = field(default_factory=dict)
    descriptions: dict[str, str] = field(default_factory=dict)
    thumbnail_url: str | None = None

    def name(self, lang: str) -> str:
        return pick_localized(self.names, lang)

    def description(self, lang: str) -> str:
        return pick_localized(self.descriptions, lang)


@dataclass
class MenuHit:
    item: MenuEntry
    restaurant: Partner
    price_category_id: int | None = None


@dataclass
class ReviewSummary:
    overall: float = 0.0
    food_quality: float = 0.0
    service: float = 0.0
    atmosphere: float = 0.0
    total_reviews: int = 0
