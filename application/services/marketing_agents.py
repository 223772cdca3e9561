"""Two-step marketing helpers: a strategy from a knowledge base, then posts from the strategy."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from domain.errors import GenerationFailed, GenerationFailureKind, InvalidConfig
from domain.interfaces import TextGenerator

logger = logging.getLogger(__name__)

POST_SEPARATOR = "---POST---"
MIN_INPUT_LENGTH = 10


@dataclass(frozen=True, slots=True)
class AgentPrompts:
    strategy_system_prompt: str
    strategy_request: str
    strategy_fallback: str
    content_system_prompt: str
    content_request: str


ENGLISH_AGENTS = AgentPrompts(
    strategy_system_prompt=(
        "You are a marketing strategy expert. Your task is to:\n\n"
        "1. Analyse the provided knowledge base about the client or brand\n"
        "2. Identify the key elements:\n"
        "   - Target audience (age, gender, interests, problems)\n"
        "   - Unique selling proposition (USP)\n"
        "   - Tone of voice (formal, friendly, expert and so on)\n"
        "   - Main marketing messages\n\n"
        "3. Write a marketing strategy containing:\n"
        "   - TARGET AUDIENCE: a detailed customer persona\n"
        "   - TONE OF VOICE: how the brand should communicate\n"
        "   - CONTENT PILLARS: 3-5 main topics\n"
        "   - GOALS: what we want to achieve\n"
        "   - KEY MESSAGES: 3-5 main slogans or messages\n\n"
        "Be specific and practical."
    ),
    strategy_request=(
        "Analyse the knowledge base below and write a comprehensive marketing strategy:\n\n"
        "KNOWLEDGE BASE:\n{knowledge_base}\n\n"
        "Write a detailed marketing strategy with every element listed in the instructions."
    ),
    strategy_fallback="Could not generate a strategy.",
    content_system_prompt=(
        "You are a creative social media copywriter. Your task is to:\n\n"
        "1. Analyse the provided marketing strategy\n"
        "2. Write 3 engaging social media posts\n\n"
        "For every post:\n"
        "- Keep the content in line with the strategy\n"
        "- Use the right tone of voice\n"
        "- Add 3-5 relevant hashtags\n"
        "- Make it ready to publish\n\n"
        f'Return exactly 3 posts, each preceded by a "{POST_SEPARATOR}" line.\n'
        "Every post should cover a different aspect of the strategy. Use emoji where they fit."
    ),
    content_request=(
        "Based on the marketing strategy and knowledge base below, write 3 engaging social media posts.\n\n"
        "MARKETING STRATEGY:\n{strategy}\n\n"
        "BRAND KNOWLEDGE BASE:\n{knowledge_base}\n\n"
        f'Write 3 unique posts. Separate the posts with a "{POST_SEPARATOR}" line.'
    ),
)

POLISH_AGENTS = AgentPrompts(
    strategy_system_prompt=(
        "Jesteś ekspertem od strategii marketingowej. Twoje zadanie to:\n\n"
        "1. Przeanalizować dostarczoną bazę wiedzy o kliencie/marce\n"
        "2. Zidentyfikować kluczowe elementy:\n"
        "   - Grupa docelowa (wiek, płeć, zainteresowania, problemy)\n"
        "   - Unikalna propozycja wartości (USP)\n"
        "   - Ton komunikacji (formalny, przyjazny, ekspercki itp.)\n"
        "   - Główne przekazy marketingowe\n\n"
        "3. Stworzyć strategię marketingową zawierającą:\n"
        "   - GRUPA DOCELOWA: Szczegółowy opis persony klienta\n"
        "   - TON KOMUNIKACJI: Jak marka powinna się komunikować\n"
        "   - FILARY TREŚCI: 3-5 głównych tematów do komunikacji\n"
        "   - CELE: Co chcemy osiągnąć\n"
        "   - KLUCZOWE PRZEKAZY: 3-5 głównych haseł/przekazów\n\n"
        "Odpowiadaj ZAWSZE po polsku. Bądź konkretny i praktyczny."
    ),
    strategy_request=(
        "Przeanalizuj poniższą bazę wiedzy i stwórz kompleksową strategię marketingową:\n\n"
        "BAZA WIEDZY:\n{knowledge_base}\n\n"
        "Stwórz szczegółową strategię marketingową zawierającą wszystkie elementy wymienione w instrukcji."
    ),
    strategy_fallback="Nie udało się wygenerować strategii.",
    content_system_prompt=(
        "Jesteś kreatywnym copywriterem specjalizującym się w social media. Twoje zadanie to:\n\n"
        "1. Przeanalizować dostarczoną strategię marketingową\n"
        "2. Stworzyć 3 angażujące posty na social media\n\n"
        "Dla każdego posta:\n"
        "- Napisz treści zgodne ze strategią\n"
        "- Używaj odpowiedniego tonu komunikacji\n"
        "- Dodaj 3-5 trafnych hashtagów\n"
        "- Post powinien być gotowy do publikacji\n\n"
        f'Zwróć dokładnie 3 posty, każdy poprzedzony linią "{POST_SEPARATOR}".\n'
        "Pisz po polsku. Każdy post powinien dotyczyć innego aspektu strategii. Używaj emoji, gdzie pasuje."
    ),
    content_request=(
        "Na podstawie poniższej strategii marketingowej i bazy wiedzy, stwórz 3 angażujące posty na social media.\n\n"
        "STRATEGIA MARKETINGOWA:\n{strategy}\n\n"
        "BAZA WIEDZY O MARCE:\n{knowledge_base}\n\n"
        f'Stwórz 3 unikalne posty. Każdy post oddziel linią "{POST_SEPARATOR}".'
    ),
)

AGENT_PROMPTS: dict[str, AgentPrompts] = {"en": ENGLISH_AGENTS, "pl": POLISH_AGENTS}


def agent_prompts_for(language: str) -> AgentPrompts:
    try:
        return AGENT_PROMPTS[language]
    except KeyError as exc:
        available = ", ".join(sorted(AGENT_PROMPTS))
        raise InvalidConfig(f"No agent prompts for language {language!r}. Available: {available}.") from exc


def split_posts(text: str) -> list[str]:
    """Cut a response on the post separator; without any post the whole text is one post."""
    posts = [post.strip() for post in text.split(POST_SEPARATOR)]
    posts = [post for post in posts if post]
    return posts or [text]


def _require_text(name: str, value: str) -> str:
    if len(value.strip()) < MIN_INPUT_LENGTH:
        raise InvalidConfig(f"{name} must be at least {MIN_INPUT_LENGTH} characters.")
    return value


class _Agent:
    def __init__(self, generator: TextGenerator, prompts: AgentPrompts) -> None:
        self._generator = generator
        self._prompts = prompts

    def _generate(self, system_prompt: str, request: str) -> str:
        try:
            return self._generator.generate(system_prompt, [], request)
        except GenerationFailed:
            raise
        except Exception as exc:
            raise GenerationFailed(GenerationFailureKind.UNKNOWN, str(exc)) from exc


class StrategyAgent(_Agent):
    """Turns a brand knowledge base into a marketing strategy."""

    def run(self, knowledge_base: str) -> str:
        _require_text("Knowledge base", knowledge_base)
        request = self._prompts.strategy_request.format(knowledge_base=knowledge_base)
        text = self._generate(self._prompts.strategy_system_prompt, request)
        if not text.strip():
            logger.warning("Strategy agent returned an empty response")
            return self._prompts.strategy_fallback
        logger.info("Strategy generated (%d chars)", len(text))
        return text


class ContentAgent(_Agent):
    """Writes social media posts that follow a strategy."""

    def run(self, strategy: str, knowledge_base: str) -> list[str]:
        _require_text("Strategy", strategy)
        _require_text("Knowledge base", knowledge_base)
        request = self._prompts.content_request.format(strategy=strategy, knowledge_base=knowledge_base)
        posts = split_posts(self._generate(self._prompts.content_system_prompt, request))
        logger.info("Content agent produced %d posts", len(posts))
        return posts


__all__ = [
    "AgentPrompts",
    "ENGLISH_AGENTS",
    "POLISH_AGENTS",
    "AGENT_PROMPTS",
    "agent_prompts_for",
    "split_posts",
    "StrategyAgent",
    "ContentAgent",
    "POST_SEPARATOR",
]
