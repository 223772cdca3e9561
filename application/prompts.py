"""Prompt wording used when composing a chat turn."""
from __future__ import annotations

from dataclasses import dataclass

from domain.errors import InvalidConfig


@dataclass(frozen=True, slots=True)
class PromptTemplates:
    base_system_prompt: str
    documents_lead_in: str
    context_title: str
    source_label: str
    source_separator: str = "\n\n---\n\n"
    fallback_reply: str = ""


ENGLISH = PromptTemplates(
    base_system_prompt="You are a helpful AI assistant. Answer concisely and to the point.",
    documents_lead_in="You have access to the following user documents. Use them when answering:",
    context_title="DOCUMENT CONTEXT:",
    source_label="Source",
    fallback_reply="Sorry, I could not generate a response.",
)

POLISH = PromptTemplates(
    base_system_prompt="Jesteś pomocnym asystentem AI. Odpowiadaj po polsku, konkretnie i rzeczowo.",
    documents_lead_in="Masz dostęp do następujących dokumentów użytkownika. Używaj ich do odpowiedzi:",
    context_title="KONTEKST Z DOKUMENTÓW:",
    source_label="Źródło",
    fallback_reply="Przepraszam, nie udało się wygenerować odpowiedzi.",
)

TEMPLATES: dict[str, PromptTemplates] = {"en": ENGLISH, "pl": POLISH}


def templates_for(language: str) -> PromptTemplates:
    try:
        return TEMPLATES[language]
    except KeyError as exc:
        available = ", ".join(sorted(TEMPLATES))
        raise InvalidConfig(f"No prompt templates for language {language!r}. Available: {available}.") from exc


__all__ = ["PromptTemplates", "ENGLISH", "POLISH", "TEMPLATES", "templates_for"]
