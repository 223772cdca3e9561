"""Conversation and message lifecycle."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Callable

from domain.entities import ROLES, Conversation, Message, utc_now
from domain.errors import InvalidConfig, NotFound
from domain.interfaces import ConversationRepository, MessageRepository, TransactionManager

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "New conversation"


class ConversationStore:
    def __init__(
        self,
        *,
        conversations: ConversationRepository,
        messages: MessageRepository,
        transactions: TransactionManager,
        clock: Callable[[], datetime] = utc_now,
        default_title: str = DEFAULT_TITLE,
    ) -> None:
        self._conversations = conversations
        self._messages = messages
        self._transactions = transactions
        self._clock = clock
        self._default_title = default_title

    def create(self, title: str | None = None) -> str:
        now = self._clock()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            title=title or self._default_title,
            created_at=now,
            updated_at=now,
        )
        self._conversations.add(conversation)
        logger.debug("Created conversation %s", conversation.id)
        return conversation.id

    def exists(self, conversation_id: str) -> bool:
        return self._conversations.get(conversation_id) is not None

    def append(
        self,
        conversation_id: str,
        role: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Message:
        """Store a message and bump the conversation's ``updated_at`` atomically."""
        if role not in ROLES:
            raise InvalidConfig(f"Unknown message role {role!r}; expected one of {ROLES}.")
        now = self._clock()
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            role=role,  # type: ignore[arg-type]
            content=content,
            metadata=metadata,
            created_at=now,
        )
        with self._transactions.transaction():
            if not self._conversations.touch(conversation_id, now):
                raise NotFound(f"Conversation {conversation_id} does not exist.")
            self._messages.add(message)
        return message

    def history(self, conversation_id: str) -> list[dict[str, str]]:
        return [
            {"role": message.role, "content": message.content}
            for message in self._messages.list_for_conversation(conversation_id)
        ]

    def messages(self, conversation_id: str) -> list[Message]:
        return self._messages.list_for_conversation(conversation_id)

    def list(self) -> list[Conversation]:
        return self._conversations.list()

    def delete(self, conversation_id: str) -> None:
        with self._transactions.transaction():
            removed = self._conversations.delete(conversation_id)
        if removed:
            logger.info("Deleted conversation %s", conversation_id)


__all__ = ["ConversationStore", "DEFAULT_TITLE"]
