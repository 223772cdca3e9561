"""Compose the model-ready request for one chat turn."""
from __future__ import annotations

import logging
from typing import Any

from domain.entities import RagSource, SearchResult, TurnContext
from domain.interfaces import ChunkRepository, DocumentRepository, VectorIndex
from application.prompts import ENGLISH, PromptTemplates
from application.services.batch_embedder import BatchEmbedder
from application.services.conversation_store import ConversationStore
from application.use_cases.search import search_chunks

logger = logging.getLogger(__name__)

GOOGLE_SEARCH_TOOL: dict[str, Any] = {"googleSearch": {}}
PREVIEW_LENGTH = 200

# generation protocol role names
_ROLE_MAP = {"assistant": "model", "user": "user", "system": "system"}


def preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


class ContextAssembler:
    """Merge retrieved document fragments and conversation history into a :class:`TurnContext`.

    Retrieval is best effort: any embedding, index or store failure is logged and
    the turn continues without document context.
    """

    def __init__(
        self,
        *,
        conversations: ConversationStore,
        embedder: BatchEmbedder,
        vector_index: VectorIndex,
        chunk_repository: ChunkRepository,
        document_repository: DocumentRepository,
        supports_tools: bool,
        templates: PromptTemplates = ENGLISH,
        rag_top_k: int = 3,
        rag_min_similarity: float = 0.6,
    ) -> None:
        self._conversations = conversations
        self._embedder = embedder
        self._vector_index = vector_index
        self._chunk_repository = chunk_repository
        self._document_repository = document_repository
        self._supports_tools = supports_tools
        self._templates = templates
        self._rag_top_k = rag_top_k
        self._rag_min_similarity = rag_min_similarity

    @property
    def templates(self) -> PromptTemplates:
        return self._templates

    def build_turn(
        self,
        conversation_id: str,
        user_message: str,
        *,
        use_rag: bool = True,
        use_grounding: bool = True,
    ) -> TurnContext:
        results = self.retrieve(user_message) if use_rag else []

        system_prompt = self._templates.base_system_prompt
        if results:
            system_prompt += f"\n\n{self._templates.documents_lead_in}\n\n{self.format_context(results)}"

        history = [
            {"role": _ROLE_MAP.get(item["role"], item["role"]), "content": item["content"]}
            for item in self._conversations.history(conversation_id)
        ]

        tools: list[dict[str, Any]] = []
        if use_grounding and self._supports_tools:
            tools.append(dict(GOOGLE_SEARCH_TOOL))

        return TurnContext(
            system_prompt=system_prompt,
            history=history,
            current_message=user_message,
            rag_sources=[
                RagSource(
                    filename=result.filename,
                    preview=preview(result.content),
                    similarity=result.similarity,
                    chunk_index=result.chunk_index,
                )
                for result in results
            ],
            tools=tools,
        )

    def retrieve(self, user_message: str) -> list[SearchResult]:
        try:
            query_vector = self._embedder.embed_one(user_message)
            results = search_chunks(
                query_vector,
                vector_index=self._vector_index,
                chunk_repository=self._chunk_repository,
                document_repository=self._document_repository,
                top_k=self._rag_top_k,
                min_similarity=self._rag_min_similarity,
            )
        except Exception as exc:
            logger.warning("Document search failed, continuing without document context: %s", exc)
            return []
        if not results:
            logger.debug("No document chunk above %.2f for this turn", self._rag_min_similarity)
        return results

    def format_context(self, results: list[SearchResult]) -> str:
        if not results:
            return ""
        blocks = [
            f"[{self._templates.source_label} {number}: {result.filename}]\n{result.content}"
            for number, result in enumerate(results, start=1)
        ]
        return f"{self._templates.context_title}\n\n{self._templates.source_separator.join(blocks)}"


__all__ = ["ContextAssembler", "GOOGLE_SEARCH_TOOL", "PREVIEW_LENGTH", "preview"]
