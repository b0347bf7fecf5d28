from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from .openai_async import OpenAIUnavailable, message_content, post_json, token_param
from .prompts import build_reply_system_prompt, build_reply_user_block
from .settings import settings
from .types import Partner

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str, str], Awaitable[str]]

_DISAMBIGUATION_PREFIX = {"hr": "Mislite li na", "en": "Did you mean"}


class ReplyUnavailable(RuntimeError):
    """Raised when the text-generation service cannot produce a reply."""


async def generate_text(system_prompt: str, user_content: str) -> str:
    if not settings.OPENAI_API_KEY:
        raise ReplyUnavailable("OPENAI_API_KEY not configured")
    model = settings.AI_REPLY_MODEL
    payload: dict[str, Any] = {
        "model": model,
        "temperature": settings.AI_REPLY_TEMPERATURE,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_content},
        ],
    }
    payload[token_param(model)] = settings.AI_REPLY_MAX_TOKENS
    try:
        response = await post_json("/chat/completions", payload, timeout=settings.AI_REPLY_TIMEOUT_SECONDS)
    except OpenAIUnavailable as exc:
        raise ReplyUnavailable("Reply request failed") from exc
    content = message_content(response)
    if not content or not content.strip():
        raise ReplyUnavailable("Reply payload missing content")
    return content.strip()


def format_disambiguation(candidates: Sequence[Partner], lang: str) -> str:
    names = [c.name for c in candidates if c.name]
    prefix = _DISAMBIGUATION_PREFIX.get(lang, _DISAMBIGUATION_PREFIX["en"])
    return f"{prefix}: {', '.join(names)}?"


class ReplyGenerator:
    """Phrases a grounding payload; on any failure the caller's fallback comes back unchanged."""

    def __init__(
        self,
        generate: TextGenerator = generate_text,
        timeout_seconds: float | None = None,
    ) -> None:
        self._generate = generate
        self._timeout = timeout_seconds or settings.AI_REPLY_TIMEOUT_SECONDS

    async def generate(
        self,
        language: str,
        intent: str,
        question: str,
        data: dict[str, Any],
        fallback: str,
    ) -> str:
        system_prompt = build_reply_system_prompt(language)
        user_block = build_reply_user_block(
            question or "",
            intent,
            language,
            json.dumps(data or {}, ensure_ascii=False, default=str),
        )
        try:
            text = await asyncio.wait_for(self._generate(system_prompt, user_block), timeout=self._timeout)
        except (ReplyUnavailable, asyncio.TimeoutError) as exc:
            logger.info("Reply fallback for %s: %s", intent, str(exc) or "timeout")
            return fallback
        except Exception:
            logger.exception("Reply generation failed for %s", intent)
            return fallback
        return text.strip() if isinstance(text, str) and text.strip() else fallback
