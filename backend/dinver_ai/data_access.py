"""
Read-only queries against the Dinver relational store.

Every restaurant-facing query is restricted to claimed (partner) restaurants.
Nothing in here writes.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .cache import TTLCache, make_cache_key
from .db.core import SessionLocal
from .db.models import (
    DietaryTypeRecord,
    DrinkItemRecord,
    DrinkItemTranslationRecord,
    EstablishmentPerkRecord,
    EstablishmentTypeRecord,
    FoodTypeRecord,
    MealTypeRecord,
    MenuItemRecord,
    MenuItemTranslationRecord,
    PriceCategoryRecord,
    RestaurantRecord,
    RestaurantTranslationRecord,
    ReviewRecord,
)
from .geo import haversine_km
from .settings import settings
from .types import (
    CatalogEntry,
    MenuEntry,
    MenuHit,
    NearbyPartner,
    Partner,
    PriceCategory,
    RestaurantDetails,
    RestaurantTypes,
    ReviewSummary,
)

logger = logging.getLogger(__name__)

FOOD = "food"
DRINK = "drink"

# (kind, item model, translation model, translation foreign key attribute)
_MENU_SOURCES = (
    (FOOD, MenuItemRecord, MenuItemTranslationRecord, "menu_item_id"),
    (DRINK, DrinkItemRecord, DrinkItemTranslationRecord, "drink_item_id"),
)


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _id_list(value: Any) -> list[int]:
    if not isinstance(value, list):
        return []
    ids: list[int] = []
    for raw in value:
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            continue
    return ids


def _to_partner(record: RestaurantRecord) -> Partner:
    return Partner(
        id=str(record.id),
        name=record.name or "",
        slug=record.slug,
        address=record.address,
        place=record.place,
        latitude=record.latitude,
        longitude=record.longitude,
        rating=record.rating,
        thumbnail_url=record.thumbnail_url,
    )


def _to_catalog(record: Any) -> CatalogEntry:
    return CatalogEntry(id=record.id, name_en=record.name_en or "", name_hr=record.name_hr or "", icon=record.icon)


def _to_price_category(record: PriceCategoryRecord) -> PriceCategory:
    return PriceCategory(
        id=record.id,
        name_en=record.name_en or "",
        name_hr=record.name_hr or "",
        icon=record.icon,
        level=record.level,
    )


def _claimed():
    return RestaurantRecord.is_claimed.is_(True)


class PartnerRepository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = SessionLocal,
        type_cache: TTLCache | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._type_cache = type_cache or TTLCache(
            "restaurant_types", max_size=2000, default_ttl=settings.AI_TYPE_CACHE_TTL_SECONDS
        )

    # -------- restaurants --------
    async def list_partners(self) -> list[Partner]:
        async with self._session_factory() as session:
            stmt = select(RestaurantRecord).where(_claimed()).order_by(RestaurantRecord.name)
            result = await session.execute(stmt)
            return [_to_partner(row) for row in result.scalars().all()]

    async def get_restaurant(self, restaurant_id: str) -> RestaurantDetails | None:
        async with self._session_factory() as session:
            record = (
                await session.execute(
                    select(RestaurantRecord).where(RestaurantRecord.id == restaurant_id, _claimed())
                )
            ).scalar_one_or_none()
            if record is None:
                return None
            translations = (
                await session.execute(
                    select(RestaurantTranslationRecord).where(
                        RestaurantTranslationRecord.restaurant_id == record.id
                    )
                )
            ).scalars().all()
            price_category = None
            if record.price_category_id is not None:
                price_row = await session.get(PriceCategoryRecord, record.price_category_id)
                if price_row is not None:
                    price_category = _to_price_category(price_row)

        return RestaurantDetails(
            id=str(record.id),
            name=record.name or "",
            slug=record.slug,
            address=record.address,
            place=record.place,
            latitude=record.latitude,
            longitude=record.longitude,
            rating=record.rating,
            user_ratings_total=record.user_ratings_total,
            thumbnail_url=record.thumbnail_url,
            descriptions={t.language: t.description or "" for t in translations},
            opening_hours=record.opening_hours if isinstance(record.opening_hours, dict) else None,
            custom_working_days=(
                record.custom_working_days if isinstance(record.custom_working_days, dict) else None
            ),
            food_types=_id_list(record.food_types),
            establishment_types=_id_list(record.establishment_types),
            establishment_perks=_id_list(record.establishment_perks),
            meal_types=_id_list(record.meal_types),
            dietary_types=_id_list(record.dietary_types),
            price_category_id=record.price_category_id,
            price_category=price_category,
            phone=record.phone,
            email=record.email,
            website_url=record.website_url,
            fb_url=record.fb_url,
            ig_url=record.ig_url,
            tt_url=record.tt_url,
            reservation_enabled=bool(record.reservation_enabled),
            virtual_tour_url=record.virtual_tour_url,
        )

    async def find_partner_by_name(self, name_like: str | None) -> Partner | None:
        """Partial, case-insensitive match on name or slug."""
        term = (name_like or "").strip()
        if len(term) < 2:
            return None
        pattern = f"%{term}%"
        async with self._session_factory() as session:
            stmt = (
                select(RestaurantRecord)
                .where(
                    _claimed(),
                    or_(RestaurantRecord.name.ilike(pattern), RestaurantRecord.slug.ilike(pattern)),
                )
                .order_by(RestaurantRecord.name)
                .limit(1)
            )
            record = (await session.execute(stmt)).scalars().first()
            return _to_partner(record) if record is not None else None

    async def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_km: float,
        limit: int = 20,
    ) -> list[NearbyPartner]:
        partners = await self.list_partners()
        nearby: list[NearbyPartner] = []
        for partner in partners:
            if partner.latitude is None or partner.longitude is None:
                continue
            distance = haversine_km(latitude, longitude, partner.latitude, partner.longitude)
            if distance <= radius_km:
                nearby.append(NearbyPartner(partner=partner, distance_km=round(distance, 2)))
        nearby.sort(key=lambda item: (item.distance_km, -(item.partner.rating or 0.0)))
        return nearby[:limit]

    # -------- menu --------
    async def _menu_entries(
        self,
        session: AsyncSession,
        kind: str,
        translation_model: Any,
        foreign_key: str,
        items: Sequence[Any],
    ) -> list[MenuEntry]:
        if not items:
            return []
        fk_column = getattr(translation_model, foreign_key)
        rows = (
            await session.execute(
                select(translation_model).where(fk_column.in_([item.id for item in items]))
            )
        ).scalars().all()
        names: dict[str, dict[str, str]] = {}
        descriptions: dict[str, dict[str, str]] = {}
        for row in rows:
            item_id = str(getattr(row, foreign_key))
            names.setdefault(item_id, {})[row.language] = row.name or ""
            descriptions.setdefault(item_id, {})[row.language] = row.description or ""
        return [
            MenuEntry(
                id=str(item.id),
                kind=kind,
                restaurant_id=str(item.restaurant_id),
                price=_as_float(item.price),
                names=names.get(str(item.id), {}),
                descriptions=descriptions.get(str(item.id), {}),
                thumbnail_url=item.thumbnail_url,
            )
            for item in items
        ]

    async def search_menu(
        self,
        variants: Iterable[str],
        restaurant_id: str | None = None,
        limit: int = 100,
    ) -> list[MenuHit]:
        """Active food and drink items whose name or description contains any variant."""
        patterns = [f"%{v}%" for v in dict.fromkeys(v.strip() for v in variants) if v]
        if not patterns:
            return []
        hits: list[MenuHit] = []
        async with self._session_factory() as session:
            for kind, item_model, translation_model, foreign_key in _MENU_SOURCES:
                fk_column = getattr(translation_model, foreign_key)
                matching_ids = select(fk_column).where(
                    or_(
                        *[translation_model.name.ilike(p) for p in patterns],
                        *[translation_model.description.ilike(p) for p in patterns],
                    )
                )
                stmt = (
                    select(item_model, RestaurantRecord)
                    .join(RestaurantRecord, RestaurantRecord.id == item_model.restaurant_id)
                    .where(item_model.is_active.is_(True), _claimed(), item_model.id.in_(matching_ids))
                    .order_by(RestaurantRecord.name, item_model.id)
                    .limit(limit)
                )
                if restaurant_id:
                    stmt = stmt.where(item_model.restaurant_id == restaurant_id)
                rows = (await session.execute(stmt)).all()
                restaurants = {str(item.id): restaurant for item, restaurant in rows}
                entries = await self._menu_entries(
                    session, kind, translation_model, foreign_key, [item for item, _ in rows]
                )
                for entry in entries:
                    restaurant = restaurants[entry.id]
                    hits.append(
                        MenuHit(
                            item=entry,
                            restaurant=_to_partner(restaurant),
                            price_category_id=restaurant.price_category_id,
                        )
                    )
        logger.debug("Menu search %s (restaurant=%s) -> %s hits", patterns[:3], restaurant_id, len(hits))
        return hits[:limit]

    async def menu_items_for_restaurant(self, restaurant_id: str, limit: int = 60) -> list[MenuEntry]:
        entries: list[MenuEntry] = []
        async with self._session_factory() as session:
            for kind, item_model, translation_model, foreign_key in _MENU_SOURCES:
                stmt = (
                    select(item_model)
                    .join(RestaurantRecord, RestaurantRecord.id == item_model.restaurant_id)
                    .where(
                        item_model.restaurant_id == restaurant_id,
                        item_model.is_active.is_(True),
                        _claimed(),
                    )
                    .order_by(item_model.id)
                    .limit(limit)
                )
                items = (await session.execute(stmt)).scalars().all()
                entries.extend(
                    await self._menu_entries(session, kind, translation_model, foreign_key, items)
                )
        return entries[:limit]

    async def price_extremes(self, restaurant_id: str, highest: bool = True, limit: int = 5) -> list[MenuEntry]:
        """Items sharing the highest (or lowest) price on a restaurant's menu."""
        priced = [
            entry
            for entry in await self.menu_items_for_restaurant(restaurant_id, limit=500)
            if entry.price is not None
        ]
        if not priced:
            return []
        extreme = max(e.price for e in priced) if highest else min(e.price for e in priced)
        return [entry for entry in priced if entry.price == extreme][:limit]

    # -------- catalogs --------
    async def _catalog_rows(self, session: AsyncSession, model: Any, ids: list[int]) -> list[CatalogEntry]:
        if not ids:
            return []
        rows = (await session.execute(select(model).where(model.id.in_(ids)))).scalars().all()
        by_id = {row.id: _to_catalog(row) for row in rows}
        # keep the restaurant's own ordering
        return [by_id[i] for i in ids if i in by_id]

    async def types_for_restaurant(self, details: RestaurantDetails) -> RestaurantTypes:
        # id arrays are part of the key so an edited restaurant misses the cache
        key = make_cache_key(
            details.id,
            details.food_types,
            details.establishment_types,
            details.establishment_perks,
            details.meal_types,
            details.dietary_types,
        )
        cached = self._type_cache.get(key)
        if cached is not None:
            return cached
        async with self._session_factory() as session:
            types = RestaurantTypes(
                food_types=await self._catalog_rows(session, FoodTypeRecord, details.food_types),
                establishment_types=await self._catalog_rows(
                    session, EstablishmentTypeRecord, details.establishment_types
                ),
                establishment_perks=await self._catalog_rows(
                    session, EstablishmentPerkRecord, details.establishment_perks
                ),
                meal_types=await self._catalog_rows(session, MealTypeRecord, details.meal_types),
                dietary_types=await self._catalog_rows(session, DietaryTypeRecord, details.dietary_types),
            )
        self._type_cache.set(key, types)
        return types

    async def perk_catalog(self) -> list[CatalogEntry]:
        async with self._session_factory() as session:
            rows = (
                await session.execute(select(EstablishmentPerkRecord).order_by(EstablishmentPerkRecord.id))
            ).scalars().all()
            return [_to_catalog(row) for row in rows]

    async def price_category(self, category_id: int | None) -> PriceCategory | None:
        if category_id is None:
            return None
        async with self._session_factory() as session:
            row = await session.get(PriceCategoryRecord, category_id)
            return _to_price_category(row) if row is not None else None

    # -------- reviews --------
    async def reviews_summary(self, restaurant_id: str) -> ReviewSummary:
        async with self._session_factory() as session:
            stmt = select(
                func.count(ReviewRecord.id),
                func.avg(ReviewRecord.rating),
                func.avg(ReviewRecord.food_quality),
                func.avg(ReviewRecord.service),
                func.avg(ReviewRecord.atmosphere),
            ).where(ReviewRecord.restaurant_id == restaurant_id, ReviewRecord.is_hidden.is_(False))
            count, overall, food, service, atmosphere = (await session.execute(stmt)).one()
        return ReviewSummary(
            overall=round(float(overall or 0.0), 2),
            food_quality=round(float(food or 0.0), 2),
            service=round(float(service or 0.0), 2),
            atmosphere=round(float(atmosphere or 0.0), 2),
            total_reviews=int(count or 0),
        )
