"""Shared data models: endpoints, HTTP response metadata and chat messages."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

COM_BASE_URL = "https://api.coze.com"
CN_BASE_URL = "https://api.coze.cn"

LOG_ID_HEADER = "x-tt-logid"
AUTHORIZATION_HEADER = "Authorization"


class _StrEnum(str, Enum):
    """String-valued enumeration whose str() is its wire value."""

    def __str__(self) -> str:
        return self.value


def _coerce(kind: type[_StrEnum], value: Any) -> Any:
    """Return the enum member for ``value``, or the raw string if unknown."""
    text = "" if value is None else value
    try:
        return kind(text)
    except ValueError:
        return text


def _text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class HTTPResponse:
    """Status, headers and length of the HTTP response behind an API result."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    content_length: int = -1

    def log_id(self) -> str:
        """Return the server log id carried in the response headers."""
        for name, value in self.headers.items():
            if name.lower() == LOG_ID_HEADER:
                return value
        return ""


@dataclass
class ResponseModel:
    """Base for API results that remember the HTTP response they came from."""

    http_response: HTTPResponse | None = field(
        default=None, kw_only=True, repr=False, compare=False
    )

    def log_id(self) -> str:
        """Return the server log id, or an empty string when unknown."""
        if self.http_response is None:
            return ""
        return self.http_response.log_id()


class MessageRole(_StrEnum):
    UNKNOWN = "unknown"
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(_StrEnum):
    QUESTION = "question"
    ANSWER = "answer"
    FUNCTION_CALL = "function_call"
    TOOL_OUTPUT = "tool_output"
    TOOL_RESPONSE = "tool_response"
    FOLLOW_UP = "follow_up"
    UNKNOWN = ""


class MessageContentType(_StrEnum):
    TEXT = "text"
    OBJECT_STRING = "object_string"
    CARD = "card"
    AUDIO = "audio"


class MessageObjectStringType(_StrEnum):
    TEXT = "text"
    FILE = "file"
    IMAGE = "image"
    AUDIO = "audio"


@dataclass
class MessageObjectString:
    """One part of a multimodal message: text, a file, an image or audio."""

    type: MessageObjectStringType | str
    text: str = ""
    file_id: str = ""
    file_url: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the wire form, leaving out empty optional fields."""
        result = {"type": _text(self.type)}
        for key in ("text", "file_id", "file_url"):
            value = getattr(self, key)
            if value:
                result[key] = value
        return result


@dataclass
class Message:
    """A message in a conversation."""

    role: MessageRole | str = ""
    type: MessageType | str = MessageType.UNKNOWN
    content: str = ""
    reasoning_content: str = ""
    content_type: MessageContentType | str = ""
    meta_data: dict[str, str] | None = None
    id: str = ""
    conversation_id: str = ""
    section_id: str = ""
    bot_id: str = ""
    chat_id: str = ""
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the wire form; meta_data is left out when empty."""
        result: dict[str, Any] = {
            "role": _text(self.role),
            "type": _text(self.type),
            "content": self.content,
            "reasoning_content": self.reasoning_content,
            "content_type": _text(self.content_type),
        }
        if self.meta_data:
            result["meta_data"] = dict(self.meta_data)
        result.update(
            id=self.id,
            conversation_id=self.conversation_id,
            section_id=self.section_id,
            bot_id=self.bot_id,
            chat_id=self.chat_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Message:
        """Build a message from its wire form; unknown keys are ignored."""
        data = data or {}
        meta = data.get("meta_data")
        return cls(
            role=_coerce(MessageRole, data.get("role")),
            type=_coerce(MessageType, data.get("type")),
            content=data.get("content") or "",
            reasoning_content=data.get("reasoning_content") or "",
            content_type=_coerce(MessageContentType, data.get("content_type")),
            meta_data=dict(meta) if meta else None,
            id=data.get("id") or "",
            conversation_id=data.get("conversation_id") or "",
            section_id=data.get("section_id") or "",
            bot_id=data.get("bot_id") or "",
            chat_id=data.get("chat_id") or "",
            created_at=int(data.get("created_at") or 0),
            updated_at=int(data.get("updated_at") or 0),
        )


def build_user_question_text(
    content: str, meta_data: dict[str, str] | None = None
) -> Message:
    """Build a plain-text question from the user."""
    return Message(
        role=MessageRole.USER,
        type=MessageType.QUESTION,
        content=content,
        content_type=MessageContentType.TEXT,
        meta_data=meta_data,
    )


def build_user_question_objects(
    objects: list[MessageObjectString], meta_data: dict[str, str] | None = None
) -> Message:
    """Build a multimodal question from the user."""
    content = json.dumps(
        [obj.to_dict() for obj in objects], separators=(",", ":"), ensure_ascii=False
    )
    return Message(
        role=MessageRole.USER,
        type=MessageType.QUESTION,
        content=content,
        content_type=MessageContentType.OBJECT_STRING,
        meta_data=meta_data,
    )


def build_assistant_answer(
    content: str, meta_data: dict[str, str] | None = None
) -> Message:
    """Build a plain-text answer from the assistant."""
    return Message(
        role=MessageRole.ASSISTANT,
        type=MessageType.ANSWER,
        content=content,
        content_type=MessageContentType.TEXT,
        meta_data=meta_data,
    )


def new_text_message_object(text: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.TEXT, text=text)


def new_image_message_object_by_url(file_url: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.IMAGE, file_url=file_url)


def new_image_message_object_by_id(file_id: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.IMAGE, file_id=file_id)


def new_file_message_object_by_id(file_id: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.FILE, file_id=file_id)


def new_file_message_object_by_url(file_url: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.FILE, file_url=file_url)


def new_audio_message_object_by_id(file_id: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.AUDIO, file_id=file_id)


def new_audio_message_object_by_url(file_url: str) -> MessageObjectString:
    return MessageObjectString(type=MessageObjectStringType.AUDIO, file_url=file_url)