"""Client wrapper for interacting with Google Gemini models."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

import google.generativeai as genai
from google.api_core.exceptions import NotFound

from companion.core.config import GeminiSettings
from companion.core.errors import ConfigurationError

_TEXT_FALLBACKS: tuple[str, ...] = (
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

logger = logging.getLogger(__name__)


class GeminiClient:
    """Generate text completions with the configured model and its fallbacks."""

    def __init__(self, settings: GeminiSettings) -> None:
        if not settings.api_key:
            raise ConfigurationError("GEMINI_API_KEY not configured.")
        self._settings = settings
        # Configure the global client once per process.
        genai.configure(api_key=settings.api_key)

    async def generate_text(self, prompt: str, *, temperature: float = 0.8) -> str:
        """Produce a free-form text response using the configured model."""

        def _invoke() -> str:
            response = self._invoke_with_models(
                models=self._text_model_candidates(),
                call=lambda model: model.generate_content(
                    prompt,
                    generation_config={"temperature": temperature},
                ),
            )
            return response.text or ""

        return await asyncio.to_thread(_invoke)

    def _invoke_with_models(
        self,
        *,
        models: Iterable[str],
        call: Callable[[genai.GenerativeModel], Any],
    ) -> Any:
        """Try the configured model followed by fallbacks when available.

        Errors other than ``NotFound`` propagate unchanged for the caller to
        classify.
        """
        model_sequence = list(models)
        last_not_found: NotFound | None = None
        for index, model_name in enumerate(model_sequence):
            try:
                return call(genai.GenerativeModel(model_name))
            except NotFound as exc:  # pragma: no cover - network call
                last_not_found = exc
                logger.warning(
                    "Gemini model '%s' not found (attempt %d/%d); trying fallback.",
                    model_name,
                    index + 1,
                    len(model_sequence),
                )

        primary = model_sequence[0] if model_sequence else "unknown"
        raise ConfigurationError(
            f"Gemini model '{primary}' is not available. Update GEMINI_MODEL_NAME."
        ) from last_not_found

    def _text_model_candidates(self) -> list[str]:
        seen: set[str] = set()
        candidates: list[str] = []
        for name in (self._settings.model_name, *_TEXT_FALLBACKS):
            cleaned = (name or "").strip()
            if not cleaned or cleaned in seen:
                continue
            seen.add(cleaned)
            candidates.append(cleaned)
        return candidates


__all__ = ["GeminiClient"]
