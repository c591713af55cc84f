import json

import httpx
import pytest

from cozeapi.conversations import Conversations
from cozeapi.models import Message
from cozeapi.transport import Core, CozeAPIError

LOG_HEADERS = {"x-tt-logid": "test_log_id"}


def make_conversations(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return Conversations(Core(http_client=client))


def ok(data):
    return httpx.Response(200, json={"code": 0, "msg": "", "data": data}, headers=LOG_HEADERS)


CONV1 = {
    "id": "conv1",
    "created_at": 1234567890,
    "last_section_id": "section1",
    "meta_data": {"key1": "value1"},
}
CONV2 = {
    "id": "conv2",
    "created_at": 1234567891,
    "last_section_id": "section2",
    "meta_data": {"key2": "value2"},
}


def test_list_conversations_success():
    seen = []

    def handler(request):
        seen.append(request)
        return ok({"has_more": True, "conversations": [CONV1, CONV2]})

    paged = make_conversations(handler).list("test_bot_id", page_num=1, page_size=20)

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/conversations"
    assert request.url.params["bot_id"] == "test_bot_id"
    assert request.url.params["page_num"] == "1"
    assert request.url.params["page_size"] == "20"

    assert paged.has_more is True
    assert len(paged) == 2
    first, second = paged.items
    assert first.id == "conv1"
    assert first.created_at == 1234567890
    assert first.last_section_id == "section1"
    assert first.meta_data["key1"] == "value1"
    assert second.id == "conv2"
    assert second.created_at == 1234567891
    assert second.last_section_id == "section2"
    assert second.meta_data["key2"] == "value2"


def test_list_conversations_iterates_all_pages():
    pages = {
        "1": {"has_more": True, "conversations": [CONV1]},
        "2": {"has_more": False, "conversations": [CONV2]},
    }
    requested = []

    def handler(request):
        num = request.url.params["page_num"]
        requested.append(num)
        return ok(pages[num])

    paged = make_conversations(handler).list("test_bot_id", page_size=1)
    assert [c.id for c in paged] == ["conv1", "conv2"]
    assert requested == ["1", "2"]


def test_create_conversation_success():
    seen = []

    def handler(request):
        seen.append(request)
        return ok(CONV1)

    resp = make_conversations(handler).create(
        messages=[Message(role="user", content="Hello")],
        meta_data={"key1": "value1"},
        bot_id="test_bot_id",
    )

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/conversation/create"
    body = json.loads(request.content)
    assert body["bot_id"] == "test_bot_id"
    assert body["meta_data"] == {"key1": "value1"}
    assert body["messages"][0]["role"] == "user"
    assert body["messages"][0]["content"] == "Hello"

    assert resp.log_id() == "test_log_id"
    assert resp.id == "conv1"
    assert resp.created_at == 1234567890
    assert resp.last_section_id == "section1"
    assert resp.meta_data["key1"] == "value1"


def test_create_conversation_omits_empty_fields():
    seen = []

    def handler(request):
        seen.append(request)
        return ok({"id": "conv3"})

    resp = make_conversations(handler).create()
    assert json.loads(seen[0].content) == {}
    assert resp.id == "conv3"
    assert resp.meta_data is None


def test_retrieve_conversation_success():
    seen = []

    def handler(request):
        seen.append(request)
        return ok(CONV1)

    resp = make_conversations(handler).retrieve("conv1")

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/conversation/retrieve"
    assert request.url.params["conversation_id"] == "conv1"

    assert resp.log_id() == "test_log_id"
    assert resp.id == "conv1"
    assert resp.created_at == 1234567890
    assert resp.last_section_id == "section1"
    assert resp.meta_data["key1"] == "value1"


def test_clear_conversation_success():
    seen = []

    def handler(request):
        seen.append(request)
        return ok({"conversation_id": "conv1"})

    resp = make_conversations(handler).clear("conv1")

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/v1/conversations/conv1/clear"
    assert resp.log_id() == "test_log_id"
    assert resp.conversation_id == "conv1"


def test_list_conversations_default_pagination():
    seen = []

    def handler(request):
        seen.append(request)
        return ok({"has_more": False, "conversations": []})

    paged = make_conversations(handler).list("test_bot_id")

    assert seen[0].url.params["page_num"] == "1"
    assert seen[0].url.params["page_size"] == "20"
    assert paged.has_more is False
    assert paged.items == []


def test_retrieve_conversation_error():
    def handler(request):
        return httpx.Response(400, json={"code": 0, "msg": ""}, headers=LOG_HEADERS)

    with pytest.raises(CozeAPIError) as info:
        make_conversations(handler).retrieve("missing")
    assert info.value.status == 400
    assert info.value.log_id == "test_log_id"