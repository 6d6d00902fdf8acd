"""In-memory conversation and message storage."""
from __future__ import annotations

import threading
import uuid
from typing import Dict, List, Optional

from personal_ai.core.errors import ConversationNotFoundError
from personal_ai.core.logging import logger
from personal_ai.core.models import Conversation, Message, MessageRole, utcnow

DEFAULT_TITLE = "New Conversation"


class ConversationStore:
    """Conversations and their messages, guarded by a single lock.

    Appends to one conversation are serialized by the lock, but there is no
    per-conversation ordering across concurrent requests.
    """

    def __init__(self) -> None:
        self._conversations: Dict[str, Conversation] = {}
        self._messages: Dict[str, List[Message]] = {}
        self._lock = threading.Lock()

    def create_conversation(self, user_id: str, title: Optional[str] = None) -> Conversation:
        conversation = Conversation(id=str(uuid.uuid4()), user_id=user_id, title=title or DEFAULT_TITLE)
        with self._lock:
            self._conversations[conversation.id] = conversation
            self._messages[conversation.id] = []
        logger.info(f"Created conversation {conversation.id} for user {user_id}")
        return conversation

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    def update_conversation_title(self, conversation_id: str, title: str) -> Conversation:
        with self._lock:
            conversation = self._require(conversation_id)
            conversation.title = title
            conversation.updated_at = utcnow()
        return conversation

    def list_conversations_for_user(self, user_id: str) -> List[Conversation]:
        """Conversations owned by ``user_id``, most recently updated first."""
        with self._lock:
            owned = [c for c in self._conversations.values() if c.user_id == user_id]
        return sorted(owned, key=lambda c: c.updated_at, reverse=True)

    def search_conversations(self, user_id: str, query: Optional[str]) -> List[Conversation]:
        conversations = self.list_conversations_for_user(user_id)
        if not query:
            return conversations
        needle = query.lower()
        return [c for c in conversations if needle in c.title.lower()]

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            if self._conversations.pop(conversation_id, None) is None:
                return False
            self._messages.pop(conversation_id, None)
        return True

    def add_message(self, conversation_id: str, content: str, role: MessageRole) -> Message:
        """Append a turn and bump the conversation's ``updated_at``."""
        message = Message(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            content=content,
            role=MessageRole(role),
        )
        with self._lock:
            conversation = self._require(conversation_id)
            self._messages[conversation_id].append(message)
            conversation.updated_at = message.created_at
        return message

    def get_messages(self, conversation_id: str) -> List[Message]:
        with self._lock:
            return list(self._messages.get(conversation_id, ()))

    def _require(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation
