import json

import httpx
import pytest

from cozeapi.chats import (
    Chat,
    ChatEvent,
    ChatEventType,
    Chats,
    ChatStatus,
    ToolOutput,
    parse_chat_event,
)
from cozeapi.models import (
    MessageRole,
    build_assistant_answer,
    build_user_question_objects,
    build_user_question_text,
    new_file_message_object_by_url,
)
from cozeapi.transport import Core, CozeAPIError

LOG_HEADERS = {"x-tt-logid": "test_log_id"}


def _chats(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return Chats(Core(http_client=client))


def _json(payload, status=200):
    return httpx.Response(status, json=payload, headers=LOG_HEADERS)


def _stream(text):
    return httpx.Response(200, text=text, headers=LOG_HEADERS)


CHAT_STREAM = (
    "event: conversation.chat.created\n"
    'data: {"id":"chat1","conversation_id":"test_conversation_id","bot_id":"bot1","status":"created"}\n'
    "\n"
    "event: conversation.message.delta\n"
    'data: {"id":"msg1","conversation_id":"test_conversation_id","role":"assistant","content":"Hello"}\n'
    "\n"
    "event: done\n"
    "data: \n"
)


def test_create_chat_success():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["conversation_id"] = request.url.params.get("conversation_id")
        seen["body"] = json.loads(request.content)
        return _json(
            {
                "code": 0,
                "data": {
                    "id": "chat1",
                    "conversation_id": "test_conversation_id",
                    "bot_id": "bot1",
                    "status": "created",
                },
            }
        )

    chat = _chats(handler).create(
        bot_id="bot1",
        user_id="user1",
        conversation_id="test_conversation_id",
        messages=[
            build_user_question_text("hello"),
            build_user_question_objects([new_file_message_object_by_url("url")]),
            build_assistant_answer("hello"),
        ],
    )
    assert seen["method"] == "POST"
    assert seen["path"] == "/v3/chat"
    assert seen["conversation_id"] == "test_conversation_id"
    assert seen["body"]["stream"] is False
    assert seen["body"]["auto_save_history"] is True
    assert len(seen["body"]["additional_messages"]) == 3
    assert json.loads(seen["body"]["additional_messages"][1]["content"]) == [
        {"type": "file", "file_url": "url"}
    ]
    assert chat.log_id() == "test_log_id"
    assert chat.id == "chat1"
    assert chat.status == ChatStatus.CREATED


def _poll_handler(paths):
    def handler(request):
        path = request.url.path
        paths.append(path)
        if path == "/v3/chat":
            return _json(
                {
                    "data": {
                        "id": "chat1",
                        "conversation_id": "test_conversation_id",
                        "bot_id": "bot1",
                        "status": "in_progress",
                    }
                }
            )
        if path == "/v3/chat/retrieve":
            return _json(
                {
                    "data": {
                        "id": "chat1",
                        "conversation_id": "test_conversation_id",
                        "status": "completed",
                    }
                }
            )
        if path == "/v3/chat/message/list":
            return _json(
                {
                    "data": [
                        {
                            "id": "msg1",
                            "conversation_id": "test_conversation_id",
                            "role": "assistant",
                            "content": "Hello!",
                        }
                    ]
                }
            )
        if path == "/v3/chat/cancel":
            return _json(
                {
                    "data": {
                        "id": "chat1",
                        "conversation_id": "test_conversation_id",
                        "bot_id": "bot1",
                        "status": "canceled",
                    }
                }
            )
        return httpx.Response(404)

    return handler


def test_create_and_poll_success():
    paths = []
    result = _chats(_poll_handler(paths)).create_and_poll(
        bot_id="bot1", user_id="user1", conversation_id="test_conversation_id", timeout=5
    )
    assert result.chat.id == "chat1"
    assert result.chat.status == ChatStatus.COMPLETED
    assert len(result.messages) == 1
    assert result.messages[0].content == "Hello!"
    assert "/v3/chat/cancel" not in paths


def test_create_and_poll_cancels_on_timeout():
    paths = []
    result = _chats(_poll_handler(paths)).create_and_poll(
        bot_id="bot1", user_id="user1", conversation_id="test_conversation_id", timeout=0
    )
    assert result.chat.id == "chat1"
    assert result.chat.status == ChatStatus.CANCELLED
    assert len(result.messages) == 1
    assert result.messages[0].content == "Hello!"
    assert "/v3/chat/retrieve" not in paths


def test_stream_chat_success():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["conversation_id"] = request.url.params.get("conversation_id")
        seen["body"] = json.loads(request.content)
        return _stream(CHAT_STREAM)

    with _chats(handler).stream(
        bot_id="bot1", user_id="user1", conversation_id="test_conversation_id"
    ) as reader:
        event = reader.recv()
        assert event.event == ChatEventType.CONVERSATION_CHAT_CREATED
        assert event.chat.id == "chat1"

        event = reader.recv()
        assert event.event == ChatEventType.CONVERSATION_MESSAGE_DELTA
        assert event.message.content == "Hello"

        event = reader.recv()
        assert event.event == ChatEventType.DONE

        with pytest.raises(EOFError):
            reader.recv()

    assert seen["path"] == "/v3/chat"
    assert seen["conversation_id"] == "test_conversation_id"
    assert seen["body"]["stream"] is True
    assert "auto_save_history" not in seen["body"]


def test_stream_iteration_yields_all_events():
    reader = _chats(lambda request: _stream(CHAT_STREAM)).stream(bot_id="bot1", user_id="user1")
    events = [event.event for event in reader]
    assert events == [
        ChatEventType.CONVERSATION_CHAT_CREATED,
        ChatEventType.CONVERSATION_MESSAGE_DELTA,
        ChatEventType.DONE,
    ]
    assert reader.log_id() == "test_log_id"


def test_stream_error_event_raises():
    text = "event: error\ndata: something broke\n"
    reader = _chats(lambda request: _stream(text)).stream(bot_id="bot1", user_id="user1")
    with pytest.raises(CozeAPIError) as info:
        reader.recv()
    assert info.value.msg == "something broke"


def test_stream_http_error_raises():
    reader_call = _chats(lambda request: _json({"code": 4000, "msg": "bad"}, status=400))
    with pytest.raises(CozeAPIError) as info:
        reader_call.stream(bot_id="bot1", user_id="user1")
    assert info.value.status == 400


def test_cancel_chat_success():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return _json(
            {
                "data": {
                    "id": "chat1",
                    "conversation_id": "test_conversation_id",
                    "bot_id": "bot1",
                    "status": "canceled",
                }
            }
        )

    chat = _chats(handler).cancel("test_conversation_id", "chat1")
    assert seen["method"] == "POST"
    assert seen["path"] == "/v3/chat/cancel"
    assert seen["body"] == {"conversation_id": "test_conversation_id", "chat_id": "chat1"}
    assert chat.log_id() == "test_log_id"
    assert chat.status == ChatStatus.CANCELLED


def test_retrieve_chat_success():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return _json(
            {
                "data": {
                    "id": "chat1",
                    "conversation_id": "test_conversation_id",
                    "status": "completed",
                }
            }
        )

    chat = _chats(handler).retrieve("test_conversation_id", "chat1")
    assert seen["method"] == "GET"
    assert seen["path"] == "/v3/chat/retrieve"
    assert seen["params"] == {"conversation_id": "test_conversation_id", "chat_id": "chat1"}
    assert chat.log_id() == "test_log_id"
    assert chat.status == ChatStatus.COMPLETED


def test_submit_tool_outputs_success():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        return _json(
            {
                "data": {
                    "id": "chat1",
                    "conversation_id": "test_conversation_id",
                    "status": "in_progress",
                }
            }
        )

    chat = _chats(handler).submit_tool_outputs(
        "test_conversation_id", "chat1", [ToolOutput(tool_call_id="tool1", output="result1")]
    )
    assert seen["path"] == "/v3/chat/submit_tool_outputs"
    assert seen["params"] == {"conversation_id": "test_conversation_id", "chat_id": "chat1"}
    assert seen["body"] == {
        "tool_outputs": [{"tool_call_id": "tool1", "output": "result1"}],
        "stream": False,
    }
    assert chat.log_id() == "test_log_id"
    assert chat.status == ChatStatus.IN_PROGRESS


def test_stream_submit_tool_outputs_success():
    text = (
        "event: conversation.chat.in_progress\n"
        'data: {"id":"chat1","conversation_id":"test_conversation_id","status":"in_progress"}\n'
        "\n"
        "event: conversation.message.delta\n"
        'data: {"id":"msg1","conversation_id":"test_conversation_id","role":"assistant",'
        '"content":"Processing tool output"}\n'
        "\n"
        "event: done\n"
        "data: \n"
    )
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        seen["body"] = json.loads(request.content)
        return _stream(text)

    reader = _chats(handler).stream_submit_tool_outputs(
        "test_conversation_id", "chat1", [ToolOutput(tool_call_id="tool1", output="result1")]
    )
    try:
        event = reader.recv()
        assert event.event == ChatEventType.CONVERSATION_CHAT_IN_PROGRESS
        assert event.chat.id == "chat1"

        event = reader.recv()
        assert event.event == ChatEventType.CONVERSATION_MESSAGE_DELTA
        assert event.message.content == "Processing tool output"
        assert event.message.role == MessageRole.ASSISTANT

        event = reader.recv()
        assert event.event == ChatEventType.DONE
    finally:
        reader.close()
    assert seen["path"] == "/v3/chat/submit_tool_outputs"
    assert seen["params"] == {"conversation_id": "test_conversation_id", "chat_id": "chat1"}
    assert seen["body"]["stream"] is True


def test_parse_done_event_with_and_without_data():
    empty = parse_chat_event("done", "")
    assert empty.event == ChatEventType.DONE
    assert empty.workflow_debug.debug_url == ""
    filled = parse_chat_event("done", '{"debug_url":"https://example.com/debug"}')
    assert filled.workflow_debug.debug_url == "https://example.com/debug"


def test_parse_unknown_event_keeps_name():
    event = parse_chat_event("ping", "{}")
    assert event.event == "ping"
    assert event.chat is None
    assert event.message is None
    assert event.is_done() is False


def test_parse_invalid_json_raises():
    with pytest.raises(ValueError):
        parse_chat_event("conversation.chat.created", "{not json")


def test_is_done_for_done_and_error():
    assert ChatEvent(event=ChatEventType.DONE).is_done() is True
    assert ChatEvent(event=ChatEventType.ERROR).is_done() is True
    assert ChatEvent(event=ChatEventType.CONVERSATION_CHAT_COMPLETED).is_done() is False


def test_chat_from_dict_nested_fields():
    chat = Chat.from_dict(
        {
            "id": "chat1",
            "status": "requires_action",
            "last_error": {"code": 4001, "msg": "failure"},
            "usage": {"token_count": 30, "output_count": 10, "input_count": 20},
            "required_action": {
                "type": "submit_tool_outputs",
                "submit_tool_outputs": {
                    "tool_calls": [
                        {
                            "id": "call1",
                            "type": "function",
                            "function": {"name": "lookup", "arguments": "{}"},
                        }
                    ]
                },
            },
        }
    )
    assert chat.status == ChatStatus.REQUIRES_ACTION
    assert chat.last_error.code == 4001
    assert chat.usage.token_count == 30
    call = chat.required_action.submit_tool_outputs.tool_calls[0]
    assert call.id == "call1"
    assert call.function.name == "lookup"
    assert chat.log_id() == ""