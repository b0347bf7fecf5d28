from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

RouterIntent = Literal[
    "hours",
    "nearby",
    "menu_search",
    "perks",
    "meal_types",
    "dietary_types",
    "reservations",
    "contact",
    "description",
    "virtual_tour",
    "price",
    "reviews",
    "out_of_scope",
]


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class RouterFilters(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    perk: str | None = None
    food_type: str | None = Field(default=None, alias="foodType")

    @field_validator("perk", "food_type", mode="before")
    @classmethod
    def _strip(cls, value):
        return _blank_to_none(value)


class RouterDecision(BaseModel):
    """Structured output of the LLM intent router."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    intent: RouterIntent
    restaurant_query: str | None = Field(default=None, alias="restaurantQuery")
    filters: RouterFilters = Field(default_factory=RouterFilters)
    menu_term: str | None = Field(default=None, alias="menuTerm")
    confidence: float | None = Field(default=None, ge=0, le=1)

    @field_validator("intent", mode="before")
    @classmethod
    def _intent(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("restaurant_query", "menu_term", mode="before")
    @classmethod
    def _strip(cls, value):
        return _blank_to_none(value)

    @field_validator("filters", mode="before")
    @classmethod
    def _filters(cls, value):
        return value or {}
