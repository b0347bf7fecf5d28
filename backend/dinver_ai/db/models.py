from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    false,
    func,
    text,
    true,
)

from .core import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class RestaurantRecord(Base):
    __tablename__ = "restaurants"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(128), nullable=True, index=True, unique=True)
    address = Column(String(255), nullable=True)
    place = Column(String(128), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    rating = Column(Float, nullable=True)
    user_ratings_total = Column(Integer, nullable=True)
    thumbnail_url = Column(String(512), nullable=True)
    # only claimed (partner) restaurants are visible to the assistant
    is_claimed = Column(Boolean, nullable=False, default=False, server_default=false(), index=True)

    opening_hours = Column(JSON, nullable=True)
    custom_working_days = Column(JSON, nullable=True)

    food_types = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    establishment_types = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    establishment_perks = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    meal_types = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    dietary_types = Column(JSON, nullable=False, default=list, server_default=text("'[]'"))
    price_category_id = Column(Integer, ForeignKey("price_categories.id"), nullable=True)

    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website_url = Column(String(512), nullable=True)
    fb_url = Column(String(512), nullable=True)
    ig_url = Column(String(512), nullable=True)
    tt_url = Column(String(512), nullable=True)
    reservation_enabled = Column(Boolean, nullable=False, default=False, server_default=false())
    virtual_tour_url = Column(String(512), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class RestaurantTranslationRecord(Base):
    __tablename__ = "restaurant_translations"
    __table_args__ = (UniqueConstraint("restaurant_id", "language", name="uq_restaurant_translation"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    language = Column(String(8), nullable=False)
    description = Column(Text, nullable=True)


class MenuItemRecord(Base):
    __tablename__ = "menu_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    category_id = Column(String(36), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    sizes = Column(JSON, nullable=True)
    thumbnail_url = Column(String(512), nullable=True)


class MenuItemTranslationRecord(Base):
    __tablename__ = "menu_item_translations"
    __table_args__ = (UniqueConstraint("menu_item_id", "language", name="uq_menu_item_translation"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    menu_item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False, index=True)
    language = Column(String(8), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)


class DrinkItemRecord(Base):
    __tablename__ = "drink_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    category_id = Column(String(36), nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    sizes = Column(JSON, nullable=True)
    thumbnail_url = Column(String(512), nullable=True)


class DrinkItemTranslationRecord(Base):
    __tablename__ = "drink_item_translations"
    __table_args__ = (UniqueConstraint("drink_item_id", "language", name="uq_drink_item_translation"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    drink_item_id = Column(String(36), ForeignKey("drink_items.id"), nullable=False, index=True)
    language = Column(String(8), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)


class ReviewRecord(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=_uuid)
    restaurant_id = Column(String(36), ForeignKey("restaurants.id"), nullable=False, index=True)
    rating = Column(Float, nullable=False)
    food_quality = Column(Float, nullable=True)
    service = Column(Float, nullable=True)
    atmosphere = Column(Float, nullable=True)
    is_hidden = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class _CatalogColumns:
    id = Column(Integer, primary_key=True, autoincrement=True)
    name_en = Column(String(128), nullable=False, default="")
    name_hr = Column(String(128), nullable=False, default="")
    icon = Column(String(64), nullable=True)


class AllergenRecord(_CatalogColumns, Base):
    __tablename__ = "allergens"


class MealTypeRecord(_CatalogColumns, Base):
    __tablename__ = "meal_types"


class DietaryTypeRecord(_CatalogColumns, Base):
    __tablename__ = "dietary_types"


class EstablishmentPerkRecord(_CatalogColumns, Base):
    __tablename__ = "establishment_perks"


class EstablishmentTypeRecord(_CatalogColumns, Base):
    __tablename__ = "establishment_types"


class FoodTypeRecord(_CatalogColumns, Base):
    __tablename__ = "food_types"


class PriceCategoryRecord(_CatalogColumns, Base):
    __tablename__ = "price_categories"

    level = Column(Integer, nullable=True)
