from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..llm_intent import RoutedIntent


@dataclass
class ChatInput:
    message: str
    language: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    thread_id: str | None = None
    # pins the conversation to one restaurant (restaurant profile chat)
    forced_restaurant_id: str | None = None


@dataclass
class AgentReply:
    text: str
    restaurant_id: str | None = None
    restaurants: list[dict[str, Any]] = field(default_factory=list)
    items: list[dict[str, Any]] = field(default_factory=list)
    search_term: str | None = None


@dataclass
class HandlerRequest:
    """Everything a handler needs for one turn."""

    language: str
    text: str
    routed: RoutedIntent
    prefer_id: str | None = None
    single_restaurant_mode: bool = False
    global_scope: bool = False
    latitude: float | None = None
    longitude: float | None = None
    radius_km: float | None = None
    now: datetime | None = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
