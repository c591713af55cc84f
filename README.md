# cozeapi

A Python client for the Coze bot platform HTTP API. It covers bots, chats
(plain, polled and streamed), chat messages, conversations, and the audio
endpoints: rooms, speech synthesis and voice cloning. Requests are sent with
`httpx`.

## Installation

```
pip install cozeapi
```

To run the test suite, install the test extra:

```
pip install "cozeapi[test]"
pytest
```

## Authentication

Every request carries `Authorization: Bearer <token>` with a token taken from
an `Auth` object (`cozeapi.auth`). For a fixed personal access token use
`TokenAuth`:

```python
from cozeapi.auth import TokenAuth

auth = TokenAuth("token")
```

`Auth` is an abstract class with one method, `token()`; any subclass can be
used instead. If `token()` raises, the error is logged and propagated and no
request is sent. `get_refresh_before(ttl)` returns how many seconds before
expiry a token with a lifetime of `ttl` seconds should be renewed (30 for
600 s and more, 10 for 60 s and more, 5 for 30 s and more, otherwise 0).

## The client

```python
from cozeapi.client import CozeAPI

with CozeAPI(auth) as api:
    bot = api.bots.retrieve("bot_id")
    print(bot.name, bot.log_id())
```

`CozeAPI(auth, *, base_url=COM_BASE_URL, http_client=None,
log_level=logging.INFO, log_handler=None)`:

- `base_url`: `cozeapi.models.COM_BASE_URL` (`https://api.coze.com`) by
  default; `cozeapi.models.CN_BASE_URL` (`https://api.coze.cn`) is also
  available.
- `http_client`: an `httpx.Client` to send requests with. A client passed in
  is not closed by `CozeAPI.close()`; one the API creates itself is.
- `log_level`, `log_handler`: set the level of, and add a handler to, the
  `cozeapi` logger.

Its services:

| Attribute                 | Class            | Operations                                                    |
|---------------------------|------------------|---------------------------------------------------------------|
| `api.bots`                | `Bots`           | `create`, `update`, `publish`, `retrieve`, `list`             |
| `api.chat`                | `Chats`          | `create`, `create_and_poll`, `stream`, `cancel`, `retrieve`, `submit_tool_outputs`, `stream_submit_tool_outputs` |
| `api.chat.messages`       | `ChatMessages`   | `list`                                                        |
| `api.conversations`       | `Conversations`  | `list`, `create`, `retrieve`, `clear`                         |
| `api.audio.rooms`         | `AudioRooms`     | `create`                                                      |
| `api.audio.speech`        | `AudioSpeech`    | `create`                                                      |
| `api.audio.voices`        | `AudioVoices`    | `clone`, `list`                                               |

The services can also be built directly on a `cozeapi.transport.Core`.

## Errors and log ids

An HTTP error status, a reply that is not a JSON object, or a non-zero `code`
in the reply raises `cozeapi.transport.CozeAPIError`, which carries `code`,
`msg`, `status` and `log_id`. Results derive from `ResponseModel` and give the
server's log id (the `x-tt-logid` header) through `log_id()`, and the status
and headers through `http_response`.

## Building messages

`cozeapi.models` defines `Message` and helpers for building messages passed
to chats and conversations:

```python
from cozeapi.models import (
    build_assistant_answer,
    build_user_question_objects,
    build_user_question_text,
    new_image_message_object_by_url,
    new_text_message_object,
)

question = build_user_question_text("What is in this picture?", None)
multimodal = build_user_question_objects(
    [
        new_text_message_object("Describe this image"),
        new_image_message_object_by_url("https://example.com/cat.png"),
    ],
    None,
)
answer = build_assistant_answer("A cat.", None)
```

`build_user_question_objects` stores the objects as compact JSON in the
message content with content type `object_string`. There are also
`new_image_message_object_by_id`, `new_file_message_object_by_id`,
`new_file_message_object_by_url`, `new_audio_message_object_by_id` and
`new_audio_message_object_by_url`.

## Chats

`Chats.create(bot_id, user_id, conversation_id="", messages=None, ...)`
starts a chat without streaming and returns a `Chat`. `Chats.create_and_poll`
does the same, then checks the chat once a second until its status is
`ChatStatus.COMPLETED`; if `timeout` seconds pass first, it cancels the chat.
It returns a `ChatPoll` with the final `Chat` and its messages.

`Chats.stream` and `Chats.stream_submit_tool_outputs` return a `ChatStream`.
Iterate over it, or call `recv()`, to receive `ChatEvent` objects; the stream
ends after a `done` event, and `recv()` then raises `EOFError`. An `error`
event raises `CozeAPIError`. `ChatStream` is a context manager and has
`close()`.

```python
from cozeapi.chats import ChatEventType

with api.chat.stream(bot_id="bot_id", user_id="user_id") as stream:
    for event in stream:
        if event.event == ChatEventType.CONVERSATION_MESSAGE_DELTA:
            print(event.message.content, end="")
```

Tool results are reported with `ToolOutput(tool_call_id, output)` objects.
`parse_chat_event(event, data)` decodes a single server-sent event.

## Lists

`Bots.list`, `Conversations.list` and `AudioVoices.list` return a
`PagedResult`. The first page is fetched when the call is made; `items`,
`has_more`, `total` and `log_id` describe it, and `len()` is its size.
Iterating walks every item, fetching further pages while the server reports
more. Page numbers start at 1 and the default page size is 20.

## Audio

`AudioRooms.create` returns an `AudioRoom` with the room id, app id, token
and uid. `AudioSpeech.create` returns a `SpeechResult` holding the audio
bytes in `data`; `write_to_file(path)` saves them. `AudioVoices.clone`
uploads a sample as multipart form data and returns a `ClonedVoice`; it
raises `ValueError` when no file is given.

## What this package does not do

It authenticates only with a token supplied by an `Auth` object: there is no
OAuth or JWT token exchange built in. It covers bots, chats, conversations
and audio only; there are no services for workflows, workspaces, datasets,
file uploads, templates or users. There is no command-line tool.