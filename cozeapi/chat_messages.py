"""Listing the messages produced by a chat."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Message, ResponseModel
from .transport import Core


@dataclass
class ChatMessageList(ResponseModel):
    """The messages of one chat, in the order the server returned them."""

    messages: list[Message] = field(default_factory=list)

    def __iter__(self):
        yield from self.messages

    def __len__(self) -> int:
        return len(self.messages)


@dataclass(frozen=True)
class ChatMessages:
    """Messages belonging to chats."""

    _core: Core

    def list(self, conversation_id: str, chat_id: str) -> ChatMessageList:
        """Return the messages of the chat ``chat_id`` in ``conversation_id``."""
        query = {"conversation_id": conversation_id, "chat_id": chat_id}
        reply = self._core.request("GET", "/v3/chat/message/list", params=query)
        return ChatMessageList(
            messages=list(map(Message.from_dict, reply.data or [])),
            http_response=reply.http_response,
        )