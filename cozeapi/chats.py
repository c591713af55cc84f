"""Chats with a bot: create, poll, stream, cancel and submit tool outputs."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

import httpx

from .chat_messages import ChatMessages
from .models import Message, ResponseModel
from .transport import Core, CozeAPIError, http_response_from

logger = logging.getLogger("cozeapi")


class _WireEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


def _enum_or_text(kind: type[_WireEnum], value: Any) -> Any:
    text = "" if value is None else value
    try:
        return kind(text)
    except ValueError:
        return text


class ChatStatus(_WireEnum):
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    REQUIRES_ACTION = "requires_action"
    CANCELLED = "canceled"


class ChatEventType(_WireEnum):
    CONVERSATION_CHAT_CREATED = "conversation.chat.created"
    CONVERSATION_CHAT_IN_PROGRESS = "conversation.chat.in_progress"
    CONVERSATION_MESSAGE_DELTA = "conversation.message.delta"
    CONVERSATION_MESSAGE_COMPLETED = "conversation.message.completed"
    CONVERSATION_CHAT_COMPLETED = "conversation.chat.completed"
    CONVERSATION_CHAT_FAILED = "conversation.chat.failed"
    CONVERSATION_CHAT_REQUIRES_ACTION = "conversation.chat.requires_action"
    CONVERSATION_AUDIO_DELTA = "conversation.audio.delta"
    ERROR = "error"
    DONE = "done"


_MESSAGE_EVENTS = {
    ChatEventType.CONVERSATION_MESSAGE_DELTA,
    ChatEventType.CONVERSATION_MESSAGE_COMPLETED,
    ChatEventType.CONVERSATION_AUDIO_DELTA,
}

_CHAT_EVENTS = {
    ChatEventType.CONVERSATION_CHAT_CREATED,
    ChatEventType.CONVERSATION_CHAT_IN_PROGRESS,
    ChatEventType.CONVERSATION_CHAT_COMPLETED,
    ChatEventType.CONVERSATION_CHAT_FAILED,
    ChatEventType.CONVERSATION_CHAT_REQUIRES_ACTION,
}


@dataclass
class ChatError:
    """Details of the error a chat ran into."""

    code: int = 0
    msg: str = ""


@dataclass
class ChatUsage:
    """Token consumption of a chat."""

    token_count: int = 0
    output_count: int = 0
    input_count: int = 0


@dataclass
class ChatToolCallFunction:
    """The function a tool call asks to run."""

    name: str = ""
    arguments: str = ""


@dataclass
class ChatToolCall:
    """A tool call whose result the chat waits for."""

    id: str = ""
    type: str = ""
    function: ChatToolCallFunction | None = None


@dataclass
class ChatSubmitToolOutputs:
    """The tool calls whose outputs must be submitted."""

    tool_calls: list[ChatToolCall] = field(default_factory=list)


@dataclass
class ChatRequiredAction:
    """What the chat needs before it can continue."""

    type: str = ""
    submit_tool_outputs: ChatSubmitToolOutputs | None = None


def _tool_call(data: Mapping[str, Any]) -> ChatToolCall:
    function = data.get("function")
    return ChatToolCall(
        id=data.get("id") or "",
        type=data.get("type") or "",
        function=ChatToolCallFunction(
            name=function.get("name") or "",
            arguments=function.get("arguments") or "",
        )
        if function
        else None,
    )


def _required_action(data: Mapping[str, Any]) -> ChatRequiredAction:
    outputs = data.get("submit_tool_outputs")
    return ChatRequiredAction(
        type=data.get("type") or "",
        submit_tool_outputs=ChatSubmitToolOutputs(
            tool_calls=[_tool_call(call) for call in outputs.get("tool_calls") or []]
        )
        if outputs
        else None,
    )


@dataclass
class Chat(ResponseModel):
    """A chat: one round of a bot answering in a conversation."""

    id: str = ""
    conversation_id: str = ""
    bot_id: str = ""
    created_at: int = 0
    completed_at: int = 0
    failed_at: int = 0
    meta_data: dict[str, str] | None = None
    last_error: ChatError | None = None
    status: ChatStatus | str = ""
    required_action: ChatRequiredAction | None = None
    usage: ChatUsage | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Chat:
        """Build a chat from its wire form; unknown keys are ignored."""
        data = data or {}
        meta = data.get("meta_data")
        error = data.get("last_error")
        action = data.get("required_action")
        usage = data.get("usage")
        return cls(
            id=data.get("id") or "",
            conversation_id=data.get("conversation_id") or "",
            bot_id=data.get("bot_id") or "",
            created_at=int(data.get("created_at") or 0),
            completed_at=int(data.get("completed_at") or 0),
            failed_at=int(data.get("failed_at") or 0),
            meta_data=dict(meta) if meta else None,
            last_error=ChatError(code=int(error.get("code") or 0), msg=error.get("msg") or "")
            if error
            else None,
            status=_enum_or_text(ChatStatus, data.get("status")),
            required_action=_required_action(action) if action else None,
            usage=ChatUsage(
                token_count=int(usage.get("token_count") or 0),
                output_count=int(usage.get("output_count") or 0),
                input_count=int(usage.get("input_count") or 0),
            )
            if usage
            else None,
        )


@dataclass
class ToolOutput:
    """The result of running a tool call."""

    tool_call_id: str
    output: str

    def _to_dict(self) -> dict[str, str]:
        return {"tool_call_id": self.tool_call_id, "output": self.output}


@dataclass
class WorkflowDebug:
    """Debugging link sent with the end of a stream."""

    debug_url: str = ""


@dataclass
class ChatEvent:
    """One event of a streamed chat."""

    event: ChatEventType | str
    chat: Chat | None = None
    message: Message | None = None
    workflow_debug: WorkflowDebug | None = None

    def is_done(self) -> bool:
        """Whether this event ends the stream."""
        return self.event in (ChatEventType.DONE, ChatEventType.ERROR)


@dataclass
class ChatPoll:
    """A finished chat together with its messages."""

    chat: Chat
    messages: list[Message] = field(default_factory=list)


def parse_chat_event(event: str, data: str) -> ChatEvent:
    """Decode one server-sent event; an ``error`` event raises CozeAPIError."""
    kind = _enum_or_text(ChatEventType, event)
    if kind == ChatEventType.DONE:
        debug = json.loads(data) if data else {}
        return ChatEvent(
            event=kind, workflow_debug=WorkflowDebug(debug_url=debug.get("debug_url") or "")
        )
    if kind == ChatEventType.ERROR:
        raise CozeAPIError(data)
    if kind in _MESSAGE_EVENTS:
        return ChatEvent(event=kind, message=Message.from_dict(json.loads(data)))
    if kind in _CHAT_EVENTS:
        return ChatEvent(event=kind, chat=Chat.from_dict(json.loads(data)))
    return ChatEvent(event=kind)


class ChatStream:
    """Events of a streamed chat, read from an open HTTP response."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.http_response = http_response_from(response)
        self._events = self._read()

    def _read(self) -> Iterator[ChatEvent]:
        lines = self._response.iter_lines()
        try:
            for line in lines:
                if not line.startswith("event:"):
                    continue
                event = line[6:].strip()
                data_line = next(lines, None)
                if data_line is None:
                    raise CozeAPIError(
                        "stream ended before event data",
                        status=self.http_response.status,
                        log_id=self.http_response.log_id(),
                    )
                parsed = parse_chat_event(event, data_line[5:].strip())
                yield parsed
                if parsed.is_done():
                    return
        finally:
            self._response.close()

    def log_id(self) -> str:
        return self.http_response.log_id()

    def __iter__(self) -> Iterator[ChatEvent]:
        while True:
            try:
                yield self.recv()
            except EOFError:
                return

    def recv(self) -> ChatEvent:
        """Return the next event; raise EOFError once the stream has ended."""
        try:
            return next(self._events)
        except StopIteration:
            raise EOFError("chat stream has ended") from None

    def close(self) -> None:
        """Stop reading and release the connection."""
        self._events.close()
        self._response.close()

    def __enter__(self) -> ChatStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _chat_body(
    bot_id: str,
    user_id: str,
    messages: Iterable[Message] | None,
    custom_variables: Mapping[str, str] | None,
    meta_data: Mapping[str, str] | None,
    stream: bool,
    auto_save_history: bool | None,
) -> dict[str, Any]:
    body: dict[str, Any] = {"bot_id": bot_id, "user_id": user_id}
    message_list = list(messages or [])
    if message_list:
        body["additional_messages"] = [message.to_dict() for message in message_list]
    body["stream"] = stream
    if custom_variables:
        body["custom_variables"] = dict(custom_variables)
    if auto_save_history is not None:
        body["auto_save_history"] = auto_save_history
    if meta_data:
        body["meta_data"] = dict(meta_data)
    return body


def _ids(conversation_id: str, chat_id: str | None = None) -> dict[str, str | None]:
    params: dict[str, str | None] = {"conversation_id": conversation_id or None}
    if chat_id is not None:
        params["chat_id"] = chat_id or None
    return params


class Chats:
    """Chat endpoints."""

    def __init__(self, core: Core) -> None:
        self._core = core
        self.messages = ChatMessages(core)

    def _chat(self, method: str, path: str, body: Any, params: Mapping[str, Any] | None) -> Chat:
        result = self._core.request(method, path, body, params)
        chat = Chat.from_dict(result.data)
        chat.http_response = result.http_response
        return chat

    def create(
        self,
        bot_id: str,
        user_id: str,
        conversation_id: str = "",
        messages: Iterable[Message] | None = None,
        custom_variables: Mapping[str, str] | None = None,
        meta_data: Mapping[str, str] | None = None,
    ) -> Chat:
        """Start a chat without streaming; the history is saved."""
        body = _chat_body(bot_id, user_id, messages, custom_variables, meta_data, False, True)
        return self._chat("POST", "/v3/chat", body, _ids(conversation_id))

    def create_and_poll(
        self,
        bot_id: str,
        user_id: str,
        conversation_id: str = "",
        messages: Iterable[Message] | None = None,
        custom_variables: Mapping[str, str] | None = None,
        meta_data: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> ChatPoll:
        """Start a chat and wait for it to complete, cancelling it after ``timeout`` seconds."""
        chat = self.create(bot_id, user_id, conversation_id, messages, custom_variables, meta_data)
        conversation = chat.conversation_id
        started = time.monotonic()
        while True:
            time.sleep(1)
            elapsed = time.monotonic() - started
            if timeout is not None and elapsed > timeout:
                logger.info("Create timeout: %s seconds, cancel Create", timeout)
                try:
                    chat = self.cancel(conversation, chat.id)
                except Exception as exc:
                    logger.warning("Cancel chat failed, err:%s", exc)
                    raise
                break
            current = self.retrieve(conversation, chat.id)
            if current.status == ChatStatus.COMPLETED:
                chat = current
                logger.info("Create completed, spend: %.3fs", elapsed)
                break
        listing = self.messages.list(conversation, chat.id)
        return ChatPoll(chat=chat, messages=list(listing.messages))

    def stream(
        self,
        bot_id: str,
        user_id: str,
        conversation_id: str = "",
        messages: Iterable[Message] | None = None,
        custom_variables: Mapping[str, str] | None = None,
        meta_data: Mapping[str, str] | None = None,
    ) -> ChatStream:
        """Start a chat and return its events as they arrive."""
        body = _chat_body(bot_id, user_id, messages, custom_variables, meta_data, True, None)
        response = self._core.stream_request("POST", "/v3/chat", body, _ids(conversation_id))
        return ChatStream(response)

    def cancel(self, conversation_id: str, chat_id: str) -> Chat:
        """Cancel a chat that is still running."""
        body = {"conversation_id": conversation_id, "chat_id": chat_id}
        return self._chat("POST", "/v3/chat/cancel", body, None)

    def retrieve(self, conversation_id: str, chat_id: str) -> Chat:
        """Return the current state of a chat."""
        return self._chat("GET", "/v3/chat/retrieve", None, _ids(conversation_id, chat_id))

    def submit_tool_outputs(
        self, conversation_id: str, chat_id: str, tool_outputs: Iterable[ToolOutput]
    ) -> Chat:
        """Report tool results so that an interrupted chat can continue."""
        body = {"tool_outputs": [out._to_dict() for out in tool_outputs], "stream": False}
        return self._chat(
            "POST", "/v3/chat/submit_tool_outputs", body, _ids(conversation_id, chat_id)
        )

    def stream_submit_tool_outputs(
        self, conversation_id: str, chat_id: str, tool_outputs: Iterable[ToolOutput]
    ) -> ChatStream:
        """Report tool results and stream the events of the continued chat."""
        body = {"tool_outputs": [out._to_dict() for out in tool_outputs], "stream": True}
        response = self._core.stream_request(
            "POST", "/v3/chat/submit_tool_outputs", body, _ids(conversation_id, chat_id)
        )
        return ChatStream(response)