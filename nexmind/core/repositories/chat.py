"""
Chat history persistence.

The whole history lives as one array under ``nexmind_chat``, oldest first.
"""

from pydantic import ValidationError as PydanticValidationError

from nexmind.core.storage.base import KeyValueStore
from nexmind.models.chat import ChatMessage
from nexmind.utils.exceptions import StoreError
from nexmind.utils.logger import get_logger

logger = get_logger(__name__)

CHAT_KEY = "nexmind_chat"


class ChatRepository:
    """Snapshot-backed chat history."""

    def __init__(self, store: KeyValueStore, key: str = CHAT_KEY, max_messages: int | None = None):
        """
        Initialize chat repository.

        Args:
            store: Key-value store holding the history
            key: Storage key
            max_messages: Keep only the newest N messages (None keeps all)
        """
        self.store = store
        self.key = key
        self.max_messages = max_messages

    async def get_all(self) -> list[ChatMessage]:
        try:
            raw = await self.store.get(self.key)
        except StoreError as e:
            logger.error(f"Failed to load chat history, starting empty: {e.message}")
            return []

        if not isinstance(raw, list):
            return []

        messages = []
        for record in raw:
            try:
                messages.append(ChatMessage.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(f"Skipping invalid chat message: {e}")
        return messages

    async def put_all(self, messages: list[ChatMessage]) -> None:
        if self.max_messages is not None:
            messages = messages[-self.max_messages:]
        await self.store.set(self.key, [m.model_dump(mode="json") for m in messages])

    async def add(self, *messages: ChatMessage) -> list[ChatMessage]:
        """Append messages and return the updated history."""
        history = await self.get_all()
        history.extend(messages)
        await self.put_all(history)
        return history

    async def clear(self) -> int:
        """Delete the history. Returns the number of removed messages."""
        count = len(await self.get_all())
        await self.store.delete(self.key)
        return count
