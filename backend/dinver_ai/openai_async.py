from __future__ import annotations

import asyncio
from typing import Any

import httpx

from .settings import settings

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


class OpenAIUnavailable(RuntimeError):
    pass


def _headers() -> dict[str, str]:
    if not settings.OPENAI_API_KEY:
        raise OpenAIUnavailable("OPENAI_API_KEY not configured")
    return {
        "Authorization": f"Bearer {settings.OPENAI_API_KEY}",
        "Content-Type": "application/json",
    }


_NEW_STYLE_MODEL_PREFIXES = ("gpt-4o", "gpt-4.1", "gpt-5", "o1", "o3", "o4", "o-")


def token_param(model: str | None) -> str:
    """Name of the completion-length parameter the model family accepts."""
    name = (model or "").lower()
    if name.startswith(_NEW_STYLE_MODEL_PREFIXES):
        return "max_completion_tokens"
    return "max_tokens"


async def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None:
        async with _client_lock:
            if _client is None:
                timeout = httpx.Timeout(
                    settings.OPENAI_TIMEOUT_SECONDS,
                    connect=settings.OPENAI_CONNECT_TIMEOUT_SECONDS,
                )
                base_url = settings.OPENAI_API_BASE.rstrip("/") or "https://api.openai.com/v1"
                _client = httpx.AsyncClient(base_url=base_url, timeout=timeout)
    return _client


async def post_json(
    path: str, payload: dict[str, Any], *, timeout: float | None = None
) -> dict[str, Any]:
    headers = _headers()
    client = await _get_client()
    try:
        response = await client.post(path, json=payload, headers=headers, timeout=timeout)
    except httpx.HTTPError as exc:
        raise OpenAIUnavailable(f"Request failed: {exc}") from exc
    if response.status_code >= 400:
        raise OpenAIUnavailable(f"OpenAI error {response.status_code}: {response.text[:200]}")
    try:
        return response.json()
    except ValueError as exc:
        raise OpenAIUnavailable("Invalid JSON from OpenAI") from exc


def message_content(response: dict[str, Any]) -> str | None:
    """Return the first choice's message text of a chat completion, if any."""
    choices = response.get("choices") or []
    if not choices:
        return None
    message = choices[0].get("message") or {}
    content = message.get("content")
    return content if isinstance(content, str) else None


async def close_async_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
