"""AI-assisted title suggestions for a video."""

from __future__ import annotations

import json
import logging
import re
from textwrap import dedent
from typing import Any, Optional, Protocol

from companion.core.errors import UpstreamError
from companion.models.audit import AuditEventKind
from companion.schemas.youtube import TitleSuggestion
from companion.services.audit import AuditLogger
from companion.services.error_classifier import classify_ai_error

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3
_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class TextGenerator(Protocol):
    async def generate_text(self, prompt: str, *, temperature: float = 0.8) -> str: ...


class TitleSuggestionService:
    def __init__(self, *, generator: TextGenerator, audit: AuditLogger) -> None:
        self._generator = generator
        self._audit = audit

    async def suggest(
        self,
        user_id: str,
        *,
        current_title: str,
        description: str = "",
        video_id: Optional[str] = None,
    ) -> list[TitleSuggestion]:
        prompt = _build_prompt(current_title, description)
        try:
            raw = await self._generator.generate_text(prompt)
        except Exception as exc:
            error = classify_ai_error(exc)
            logger.warning("Title suggestion request failed: %s", error.kind)
            if error is exc:
                raise
            raise error from exc

        suggestions = _parse_suggestions(raw)
        self._audit.record(
            AuditEventKind.AI_TITLE_SUGGESTION,
            user_id,
            {
                "video_id": video_id,
                "original_title": current_title,
                "suggestions_count": len(suggestions),
            },
        )
        return suggestions


def _build_prompt(current_title: str, description: str) -> str:
    return dedent(
        f"""\
        You are a YouTube title optimization expert. Suggest {SUGGESTION_COUNT}
        alternative titles for the video below. Keep each title under 100
        characters and faithful to the content.

        Current title: {current_title}
        Description: {description[:500] or "No description provided"}

        Respond strictly in JSON: an array of objects with keys "title" and
        "reason". Do not include prose outside the JSON.
        """
    )


def _parse_suggestions(raw: str) -> list[TitleSuggestion]:
    payload = _FENCE_RE.sub("", raw.strip())
    try:
        data: Any = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise UpstreamError("Failed to parse AI response.") from exc
    if isinstance(data, dict):
        data = data.get("suggestions")
    if not isinstance(data, list):
        raise UpstreamError("Failed to parse AI response.")

    suggestions = [
        TitleSuggestion(title=str(item["title"]).strip(), reason=str(item.get("reason") or ""))
        for item in data
        if isinstance(item, dict) and str(item.get("title") or "").strip()
    ]
    if not suggestions:
        raise UpstreamError("AI response contained no title suggestions.")
    return suggestions[:SUGGESTION_COUNT]


__all__ = ["SUGGESTION_COUNT", "TitleSuggestionService"]
