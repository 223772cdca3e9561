"""Text generator backed by the Gemini ``generateContent`` REST endpoint."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

import requests

from domain.errors import GenerationFailed, GenerationFailureKind
from domain.interfaces import TextGenerator
from infrastructure.embedding.gemini_embedder import GEMINI_API_URL
from infrastructure.generation.http_errors import generation_error

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GeminiConfig:
    api_key: str
    model: str = "gemini-2.0-flash"
    temperature: float = 0.7
    max_output_tokens: int = 2048
    grounding_enabled: bool = True
    api_url: str = GEMINI_API_URL
    timeout: float = 120.0


class GeminiGenerator(TextGenerator):
    """Send the composed turn to Gemini; supports the Google Search tool."""

    def __init__(self, config: GeminiConfig) -> None:
        if not config.api_key:
            raise GenerationFailed(GenerationFailureKind.PERMISSION_DENIED, "Missing Gemini API key.")
        self._config = config

    @property
    def supports_tools(self) -> bool:
        return self._config.grounding_enabled

    def generate(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        current_message: str,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> str:
        contents = [
            {"role": "model" if item["role"] == "model" else "user", "parts": [{"text": item["content"]}]}
            for item in history
        ]
        contents.append({"role": "user", "parts": [{"text": current_message}]})
        payload: dict[str, Any] = {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "generationConfig": {
                "temperature": self._config.temperature,
                "maxOutputTokens": self._config.max_output_tokens,
            },
        }
        if tools:
            payload["tools"] = list(tools)

        url = f"{self._config.api_url.rstrip('/')}/models/{self._config.model}:generateContent"
        logger.debug("Calling Gemini %s with %d history messages", self._config.model, len(history))
        try:
            response = requests.post(
                url,
                params={"key": self._config.api_key},
                json=payload,
                timeout=self._config.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as exc:
            raise generation_error(exc) from exc
        except ValueError as exc:
            raise GenerationFailed(GenerationFailureKind.UNKNOWN, "Malformed Gemini response.") from exc
        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            block_reason = (data.get("promptFeedback") or {}).get("blockReason")
            if block_reason:
                logger.warning("Gemini blocked the prompt: %s", block_reason)
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts).strip()


__all__ = ["GeminiGenerator", "GeminiConfig"]
