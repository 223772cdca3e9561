"""Turn handling: persist the question, assemble context, generate, persist the answer."""
from __future__ import annotations

import logging
from enum import Enum

from domain.entities import ChatReply
from domain.errors import GenerationFailed, GenerationFailureKind, InvalidConfig, NotFound
from domain.interfaces import TextGenerator
from application.services.context_assembler import ContextAssembler
from application.services.conversation_store import ConversationStore

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    NEW = "new"
    HISTORY_LOADED = "history_loaded"
    CONTEXT_BUILT = "context_built"
    GENERATED = "generated"
    PERSISTED = "persisted"
    FAILED = "failed"


class ChatOrchestrator:
    """Runs one chat turn.

    The user message is stored before generation so a failed call never
    loses what was asked; the assistant message is written only after a
    successful generation.
    """

    def __init__(
        self,
        *,
        conversations: ConversationStore,
        assembler: ContextAssembler,
        generator: TextGenerator,
    ) -> None:
        self._conversations = conversations
        self._assembler = assembler
        self._generator = generator

    def send_message(
        self,
        message: str,
        conversation_id: str | None = None,
        *,
        use_grounding: bool = True,
        use_rag: bool = True,
    ) -> ChatReply:
        if not message or not message.strip():
            raise InvalidConfig("Message must not be empty.")

        self._enter(TurnState.NEW, conversation_id)
        if conversation_id is None:
            conversation_id = self._conversations.create()
        elif not self._conversations.exists(conversation_id):
            raise NotFound(f"Conversation {conversation_id} does not exist.")

        # history is read inside build_turn, before the new user message is stored
        self._enter(TurnState.HISTORY_LOADED, conversation_id)
        turn = self._assembler.build_turn(
            conversation_id,
            message,
            use_rag=use_rag,
            use_grounding=use_grounding,
        )
        self._enter(TurnState.CONTEXT_BUILT, conversation_id)

        self._conversations.append(conversation_id, "user", message)

        try:
            content = self._generator.generate(
                turn.system_prompt,
                turn.history,
                turn.current_message,
                turn.tools or None,
            )
        except GenerationFailed as exc:
            self._fail(conversation_id, exc)
            raise
        except Exception as exc:
            failure = GenerationFailed(GenerationFailureKind.UNKNOWN, str(exc))
            self._fail(conversation_id, failure)
            raise failure from exc
        self._enter(TurnState.GENERATED, conversation_id)

        content = content or self._assembler.templates.fallback_reply
        self._conversations.append(
            conversation_id,
            "assistant",
            content,
            {
                "use_grounding": use_grounding,
                "use_rag": use_rag,
                "rag_sources_count": len(turn.rag_sources),
            },
        )
        self._enter(TurnState.PERSISTED, conversation_id)

        sources = {"rag": turn.rag_sources} if turn.rag_sources else {}
        return ChatReply(content=content, conversation_id=conversation_id, sources=sources)

    def _enter(self, state: TurnState, conversation_id: str | None) -> None:
        logger.debug("Turn %s -> %s", conversation_id or "<new>", state.value)

    def _fail(self, conversation_id: str, error: GenerationFailed) -> None:
        self._enter(TurnState.FAILED, conversation_id)
        logger.error("Generation failed for conversation %s (%s): %s", conversation_id, error.kind.value, error.detail)


__all__ = ["ChatOrchestrator", "TurnState"]
