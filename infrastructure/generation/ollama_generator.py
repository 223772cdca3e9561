"""Text generator backed by a local Ollama server."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

import requests

from domain.errors import GenerationFailed, GenerationFailureKind
from domain.interfaces import TextGenerator
from infrastructure.generation.http_errors import generation_error

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class OllamaConfig:
    model: str = "llama3.1"
    url: str = "http://localhost:11434"
    temperature: float = 0.7
    max_output_tokens: int = 2048
    timeout: float = 120.0


class OllamaGenerator(TextGenerator):
    """Chat completion through ``/api/chat``; tool declarations are not supported."""

    def __init__(self, config: OllamaConfig) -> None:
        self._config = config

    @property
    def supports_tools(self) -> bool:
        return False

    def generate(
        self,
        system_prompt: str,
        history: Sequence[dict[str, str]],
        current_message: str,
        tools: Sequence[dict[str, Any]] | None = None,
    ) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(
            {"role": "assistant" if item["role"] == "model" else item["role"], "content": item["content"]}
            for item in history
        )
        messages.append({"role": "user", "content": current_message})
        try:
            response = requests.post(
                f"{self._config.url.rstrip('/')}/api/chat",
                json={
                    "model": self._config.model,
                    "messages": messages,
                    "stream": False,
                    "options": {
                        "temperature": self._config.temperature,
                        "num_predict": self._config.max_output_tokens,
                    },
                },
                timeout=self._config.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            logger.warning("Ollama request failed: %s", exc)
            raise generation_error(exc) from exc
        except ValueError as exc:
            raise GenerationFailed(GenerationFailureKind.UNKNOWN, "Malformed Ollama response.") from exc
        return str((payload.get("message") or {}).get("content", "")).strip()


__all__ = ["OllamaGenerator", "OllamaConfig"]
