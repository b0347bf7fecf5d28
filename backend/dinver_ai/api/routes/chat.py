from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...agent import ChatInput, build_agent

router = APIRouter(tags=["ai"])

# Single agent per process; its caches and thread contexts live in memory.
AGENT = build_agent()


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000, description="User question")
    language: str | None = Field(None, description="Reply language hint: hr or en")
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    radius_km: float | None = Field(None, gt=0, le=50, description="Nearby search radius")
    thread_id: str | None = Field(None, max_length=128, description="Conversation thread id")
    restaurant_id: str | None = Field(
        None, description="Pin the conversation to one restaurant (profile chat)"
    )


class ChatResponse(BaseModel):
    text: str
    restaurant_id: str | None = None
    restaurants: list[dict[str, Any]] = Field(default_factory=list)
    items: list[dict[str, Any]] = Field(default_factory=list)


@router.post("/ai/chat", response_model=ChatResponse)
async def chat(req: ChatRequest) -> ChatResponse:
    reply = await AGENT.chat(
        ChatInput(
            message=req.message,
            language=req.language,
            latitude=req.latitude,
            longitude=req.longitude,
            radius_km=req.radius_km,
            thread_id=req.thread_id,
            forced_restaurant_id=req.restaurant_id,
        )
    )
    return ChatResponse(
        text=reply.text,
        restaurant_id=reply.restaurant_id,
        restaurants=reply.restaurants,
        items=reply.items,
    )
