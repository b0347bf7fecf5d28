import asyncio

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from backend.dinver_ai.cache import TTLCache
from backend.dinver_ai.data_access import PartnerRepository
from backend.dinver_ai.db.core import Base
from backend.dinver_ai.db.models import (
    DrinkItemRecord,
    DrinkItemTranslationRecord,
    EstablishmentPerkRecord,
    FoodTypeRecord,
    MenuItemRecord,
    MenuItemTranslationRecord,
    PriceCategoryRecord,
    RestaurantRecord,
    RestaurantTranslationRecord,
    ReviewRecord,
)

MARABU = (45.8130, 15.9770)


def _seed_rows():
    return [
        PriceCategoryRecord(id=1, name_en="Affordable", name_hr="Povoljno", icon="€", level=1),
        EstablishmentPerkRecord(id=1, name_en="Terrace", name_hr="Terasa"),
        EstablishmentPerkRecord(id=2, name_en="Parking", name_hr="Parking"),
        FoodTypeRecord(id=1, name_en="Italian", name_hr="Talijanska"),
        RestaurantRecord(
            id="r1",
            name="Marabu Caffe",
            slug="marabu-caffe",
            place="Zagreb",
            latitude=MARABU[0],
            longitude=MARABU[1],
            rating=4.6,
            is_claimed=True,
            opening_hours={"periods": []},
            food_types=[1],
            establishment_perks=[2, 1],
            price_category_id=1,
            reservation_enabled=True,
        ),
        RestaurantRecord(
            id="r2",
            name="Hidden Gem",
            slug="hidden-gem",
            latitude=45.8131,
            longitude=15.9771,
            is_claimed=False,
        ),
        RestaurantRecord(
            id="r3",
            name="Bistro Vinodol",
            slug="bistro-vinodol",
            latitude=45.8400,
            longitude=16.0500,
            is_claimed=True,
        ),
        RestaurantTranslationRecord(restaurant_id="r1", language="en", description="Cosy cafe."),
        RestaurantTranslationRecord(restaurant_id="r1", language="hr", description="Ugodan kafić."),
        MenuItemRecord(id="m1", restaurant_id="r1", price=9.5),
        MenuItemRecord(id="m2", restaurant_id="r1", price=7.0, is_active=False),
        MenuItemRecord(id="m3", restaurant_id="r2", price=8.0),
        MenuItemRecord(id="m4", restaurant_id="r3", price=10.0),
        MenuItemRecord(id="m5", restaurant_id="r1", price=9.5),
        MenuItemTranslationRecord(menu_item_id="m1", language="en", name="Pizza Margherita"),
        MenuItemTranslationRecord(menu_item_id="m1", language="hr", name="Pizza Margherita", description="Rajčica"),
        MenuItemTranslationRecord(menu_item_id="m2", language="en", name="Pizza Bianca"),
        MenuItemTranslationRecord(menu_item_id="m3", language="en", name="Pizza Funghi"),
        MenuItemTranslationRecord(menu_item_id="m4", language="hr", name="Štrukli"),
        MenuItemTranslationRecord(menu_item_id="m5", language="en", name="Tiramisu"),
        DrinkItemRecord(id="d1", restaurant_id="r1", price=1.8),
        DrinkItemTranslationRecord(drink_item_id="d1", language="en", name="Espresso", description="Strong coffee"),
        ReviewRecord(restaurant_id="r1", rating=5.0, food_quality=5.0, service=4.0, atmosphere=5.0),
        ReviewRecord(restaurant_id="r1", rating=4.0, food_quality=4.0, service=4.0, atmosphere=4.0),
        ReviewRecord(restaurant_id="r1", rating=1.0, food_quality=1.0, service=1.0, atmosphere=1.0, is_hidden=True),
    ]


@pytest.fixture
def type_cache():
    return TTLCache("test_types", default_ttl=60)


@pytest.fixture
def repository(tmp_path, type_cache):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dinver.db'}", poolclass=NullPool)
    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    async def setup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with session_factory() as session:
            # parents first so foreign keys resolve
            rows = _seed_rows()
            session.add_all(rows[:7])
            await session.flush()
            session.add_all(rows[7:])
            await session.commit()

    asyncio.run(setup())
    yield PartnerRepository(session_factory=session_factory, type_cache=type_cache)
    asyncio.run(engine.dispose())


class TestRestaurants:
    def test_only_claimed_restaurants_are_listed(self, repository):
        partners = asyncio.run(repository.list_partners())

        assert [p.name for p in partners] == ["Bistro Vinodol", "Marabu Caffe"]

    def test_details_carry_translations_and_price_category(self, repository):
        details = asyncio.run(repository.get_restaurant("r1"))

        assert details.descriptions == {"en": "Cosy cafe.", "hr": "Ugodan kafić."}
        assert details.price_category.name_en == "Affordable"
        assert details.establishment_perks == [2, 1]
        assert details.reservation_enabled is True
        assert details.opening_hours == {"periods": []}

    def test_unclaimed_restaurant_is_invisible(self, repository):
        assert asyncio.run(repository.get_restaurant("r2")) is None

    @pytest.mark.parametrize(
        "query,expected",
        [("marabu", "r1"), ("BISTRO-VINO", "r3"), ("Hidden", None), ("m", None), (None, None)],
    )
    def test_find_partner_by_name(self, repository, query, expected):
        partner = asyncio.run(repository.find_partner_by_name(query))

        assert (partner.id if partner else None) == expected

    def test_find_nearby(self, repository):
        nearby = asyncio.run(repository.find_nearby(*MARABU, radius_km=1.0))

        assert [n.partner.id for n in nearby] == ["r1"]
        assert nearby[0].distance_km == 0.0

        wider = asyncio.run(repository.find_nearby(*MARABU, radius_km=20.0))
        assert [n.partner.id for n in wider] == ["r1", "r3"]


class TestMenu:
    def test_search_skips_inactive_items_and_unclaimed_restaurants(self, repository):
        hits = asyncio.run(repository.search_menu(["pizza"]))

        assert [hit.item.id for hit in hits] == ["m1"]
        assert hits[0].restaurant.name == "Marabu Caffe"
        assert hits[0].price_category_id == 1
        assert hits[0].item.names == {"en": "Pizza Margherita", "hr": "Pizza Margherita"}

    def test_search_matches_drink_descriptions(self, repository):
        hits = asyncio.run(repository.search_menu(["coffee", "kava"]))

        assert [(hit.item.id, hit.item.kind) for hit in hits] == [("d1", "drink")]
        assert hits[0].item.price == 1.8

    def test_search_within_restaurant(self, repository):
        assert asyncio.run(repository.search_menu(["pizza"], restaurant_id="r3")) == []
        assert asyncio.run(repository.search_menu(["  ", ""])) == []

    def test_menu_items_for_restaurant(self, repository):
        entries = asyncio.run(repository.menu_items_for_restaurant("r1"))

        assert [e.id for e in entries] == ["m1", "m5", "d1"]

    def test_price_extremes_keep_ties(self, repository):
        highest = asyncio.run(repository.price_extremes("r1", highest=True))
        lowest = asyncio.run(repository.price_extremes("r1", highest=False))

        assert [e.id for e in highest] == ["m1", "m5"]
        assert [e.id for e in lowest] == ["d1"]


class TestCatalogs:
    def test_types_follow_restaurant_order_and_are_cached(self, repository, type_cache):
        details = asyncio.run(repository.get_restaurant("r1"))

        types = asyncio.run(repository.types_for_restaurant(details))
        again = asyncio.run(repository.types_for_restaurant(details))

        assert [p.name_en for p in types.establishment_perks] == ["Parking", "Terrace"]
        assert [f.name_hr for f in types.food_types] == ["Talijanska"]
        assert again is types
        assert type_cache.get_stats()["hits"] == 1

    def test_perk_catalog(self, repository):
        perks = asyncio.run(repository.perk_catalog())

        assert [p.name_en for p in perks] == ["Terrace", "Parking"]

    def test_price_category(self, repository):
        assert asyncio.run(repository.price_category(None)) is None
        assert asyncio.run(repository.price_category(1)).to_payload("hr") == {
            "level": 1,
            "name": "Povoljno",
            "icon": "€",
        }


class TestReviews:
    def test_hidden_reviews_are_excluded(self, repository):
        summary = asyncio.run(repository.reviews_summary("r1"))

        assert summary.total_reviews == 2
        assert summary.overall == 4.5
        assert summary.service == 4.0
        assert summary.atmosphere == 4.5

    def test_restaurant_without_reviews(self, repository):
        summary = asyncio.run(repository.reviews_summary("r3"))

        assert summary.total_reviews == 0
        assert summary.overall == 0.0
