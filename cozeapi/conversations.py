"""Conversations: create, retrieve, clear and list them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from .models import Message, ResponseModel
from .transport import Core, Page, PagedResult


@dataclass
class Conversation(ResponseModel):
    """A conversation between a user and a bot."""

    id: str = ""
    created_at: int = 0
    meta_data: dict[str, str] | None = None
    last_section_id: str = ""

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any] | None, **extra: Any) -> Conversation:
        data = data or {}
        meta = data.get("meta_data")
        return cls(
            id=data.get("id") or "",
            created_at=int(data.get("created_at") or 0),
            meta_data=dict(meta) if meta else None,
            last_section_id=data.get("last_section_id") or "",
            **extra,
        )


@dataclass
class ClearedConversation(ResponseModel):
    """The conversation whose context was cleared."""

    conversation_id: str = ""


class Conversations:
    """Conversation endpoints."""

    def __init__(self, core: Core) -> None:
        self._core = core

    def list(self, bot_id: str, page_num: int = 0, page_size: int = 0) -> PagedResult[Conversation]:
        """List the conversations of ``bot_id``; defaults to page 1 of 20."""
        page_size = page_size or 20
        page_num = page_num or 1

        def fetch(num: int, size: int) -> Page[Conversation]:
            result = self._core.request(
                "GET",
                "/v1/conversations",
                params={"bot_id": bot_id, "page_num": str(num), "page_size": str(size)},
            )
            data = result.data or {}
            items = [Conversation._from_dict(item) for item in data.get("conversations") or []]
            return Page(
                items=items,
                has_more=bool(data.get("has_more")),
                log_id=result.http_response.log_id(),
            )

        return PagedResult(fetch, page_size, page_num)

    def create(
        self,
        messages: Iterable[Message] | None = None,
        meta_data: Mapping[str, str] | None = None,
        bot_id: str = "",
    ) -> Conversation:
        """Create a conversation, optionally seeded with ``messages``."""
        body: dict[str, Any] = {}
        message_list = list(messages or [])
        if message_list:
            body["messages"] = [message.to_dict() for message in message_list]
        if meta_data:
            body["meta_data"] = dict(meta_data)
        if bot_id:
            body["bot_id"] = bot_id
        result = self._core.request("POST", "/v1/conversation/create", body)
        return Conversation._from_dict(result.data, http_response=result.http_response)

    def retrieve(self, conversation_id: str) -> Conversation:
        """Return the conversation ``conversation_id``."""
        result = self._core.request(
            "GET", "/v1/conversation/retrieve", params={"conversation_id": conversation_id}
        )
        return Conversation._from_dict(result.data, http_response=result.http_response)

    def clear(self, conversation_id: str) -> ClearedConversation:
        """Clear the context of the conversation ``conversation_id``."""
        result = self._core.request("POST", f"/v1/conversations/{conversation_id}/clear")
        data = result.data or {}
        return ClearedConversation(
            conversation_id=data.get("conversation_id") or "",
            http_response=result.http_response,
        )