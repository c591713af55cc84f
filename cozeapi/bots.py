"""Bot management: create, update, publish, retrieve and list bots."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Callable, ClassVar, Mapping, TypeVar

from .models import ResponseModel
from .transport import Core, Page, PagedResult

T = TypeVar("T")


class BotMode(IntEnum):
    MULTI_AGENT = 1
    SINGLE_AGENT_WORKFLOW = 0


def _bot_mode(value: Any) -> BotMode | int:
    number = int(value or 0)
    try:
        return BotMode(number)
    except ValueError:
        return number


def _load(
    cls: type[T],
    data: Mapping[str, Any] | None,
    converters: Mapping[str, Callable[[Any], Any]] | None = None,
    **extra: Any,
) -> T:
    """Build a dataclass from a JSON object, ignoring absent or null keys."""
    data = data or {}
    converters = converters or {}
    values: dict[str, Any] = {}
    for item in fields(cls):  # type: ignore[arg-type]
        raw = data.get(item.name)
        if raw is None:
            continue
        convert = converters.get(item.name)
        values[item.name] = convert(raw) if convert else raw
    values.update(extra)
    return cls(**values)


def _nested(cls: type[T]) -> Callable[[Any], T | None]:
    return lambda raw: _load(cls, raw) if raw else None


def _many(cls: type[T]) -> Callable[[Any], list[T]]:
    return lambda raw: [_load(cls, item) for item in raw or []]


def _dump(value: Any) -> dict[str, Any] | None:
    """Serialise a settings object; fields listed in ``_always`` are kept even when empty."""
    if value is None:
        return None
    always = getattr(value, "_always", ())
    return {
        item.name: getattr(value, item.name)
        for item in fields(value)
        if item.name in always or getattr(value, item.name)
    }


@dataclass
class BotPromptInfo:
    """The persona prompt of a bot."""

    _always: ClassVar[tuple[str, ...]] = ("prompt",)

    prompt: str = ""


@dataclass
class BotOnboardingInfo:
    """The opening message and suggested questions of a bot."""

    prologue: str = ""
    suggested_questions: list[str] = field(default_factory=list)


@dataclass
class BotKnowledge:
    """Knowledge base settings of a bot."""

    _always: ClassVar[tuple[str, ...]] = ("dataset_ids", "auto_call", "search_strategy")

    dataset_ids: list[str] = field(default_factory=list)
    auto_call: bool = False
    search_strategy: int = 0


@dataclass
class BotModelInfo:
    """The model a bot runs on."""

    model_id: str = ""
    model_name: str = ""


@dataclass
class BotModelInfoConfig:
    """Model settings to apply when creating or updating a bot."""

    _always: ClassVar[tuple[str, ...]] = ("model_id",)

    model_id: str
    top_k: int = 0
    top_p: float = 0.0
    max_tokens: int = 0
    temperature: float = 0.0
    context_round: int = 0
    response_format: str = ""
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0


@dataclass
class BotPluginAPIInfo:
    """One API of a bot plugin."""

    api_id: str = ""
    name: str = ""
    description: str = ""


@dataclass
class BotPluginInfo:
    """A plugin attached to a bot."""

    plugin_id: str = ""
    name: str = ""
    description: str = ""
    icon_url: str = ""
    api_info_list: list[BotPluginAPIInfo] = field(default_factory=list)


@dataclass
class Bot(ResponseModel):
    """Complete information about a published bot."""

    bot_id: str = ""
    name: str = ""
    description: str = ""
    icon_url: str = ""
    create_time: int = 0
    update_time: int = 0
    version: str = ""
    prompt_info: BotPromptInfo | None = None
    onboarding_info: BotOnboardingInfo | None = None
    bot_mode: BotMode | int = BotMode.SINGLE_AGENT_WORKFLOW
    plugin_info_list: list[BotPluginInfo] = field(default_factory=list)
    model_info: BotModelInfo | None = None


_BOT_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "create_time": int,
    "update_time": int,
    "prompt_info": _nested(BotPromptInfo),
    "onboarding_info": _nested(BotOnboardingInfo),
    "bot_mode": _bot_mode,
    "plugin_info_list": lambda raw: [
        _load(BotPluginInfo, item, {"api_info_list": _many(BotPluginAPIInfo)})
        for item in raw or []
    ],
    "model_info": _nested(BotModelInfo),
}


@dataclass
class SimpleBot:
    """Summary of a published bot as shown in listings."""

    bot_id: str = ""
    bot_name: str = ""
    description: str = ""
    icon_url: str = ""
    publish_time: str = ""


@dataclass
class CreatedBot(ResponseModel):
    """The identifier of a newly created bot."""

    bot_id: str = ""


@dataclass
class PublishedBot(ResponseModel):
    """The bot and version produced by publishing."""

    bot_id: str = ""
    version: str = ""


class Bots:
    """Bot management endpoints."""

    def __init__(self, core: Core) -> None:
        self._core = core

    def _post(self, path: str, body: Mapping[str, Any]) -> Any:
        settings = {key: _dump(value) if hasattr(value, "__dataclass_fields__") else value
                    for key, value in body.items()}
        return self._core.request("POST", path, settings)

    def create(
        self,
        space_id: str,
        name: str,
        description: str = "",
        icon_file_id: str = "",
        prompt_info: BotPromptInfo | None = None,
        onboarding_info: BotOnboardingInfo | None = None,
        model_info_config: BotModelInfoConfig | None = None,
    ) -> CreatedBot:
        """Create a bot in the space ``space_id``."""
        result = self._post(
            "/v1/bot/create",
            {
                "space_id": space_id,
                "name": name,
                "description": description,
                "icon_file_id": icon_file_id,
                "prompt_info": prompt_info,
                "onboarding_info": onboarding_info,
                "model_info_config": model_info_config,
            },
        )
        return _load(CreatedBot, result.data, http_response=result.http_response)

    def update(
        self,
        bot_id: str,
        name: str = "",
        description: str = "",
        icon_file_id: str = "",
        prompt_info: BotPromptInfo | None = None,
        onboarding_info: BotOnboardingInfo | None = None,
        knowledge: BotKnowledge | None = None,
        model_info_config: BotModelInfoConfig | None = None,
    ) -> ResponseModel:
        """Update the draft of the bot ``bot_id``."""
        result = self._post(
            "/v1/bot/update",
            {
                "bot_id": bot_id,
                "name": name,
                "description": description,
                "icon_file_id": icon_file_id,
                "prompt_info": prompt_info,
                "onboarding_info": onboarding_info,
                "knowledge": knowledge,
                "model_info_config": model_info_config,
            },
        )
        return ResponseModel(http_response=result.http_response)

    def publish(self, bot_id: str, connector_ids: list[str]) -> PublishedBot:
        """Publish the bot ``bot_id`` to the given connectors."""
        result = self._post(
            "/v1/bot/publish", {"bot_id": bot_id, "connector_ids": list(connector_ids)}
        )
        return _load(PublishedBot, result.data, http_response=result.http_response)

    def retrieve(self, bot_id: str) -> Bot:
        """Return the published configuration of the bot ``bot_id``."""
        result = self._core.request("GET", "/v1/bot/get_online_info", params={"bot_id": bot_id})
        return _load(Bot, result.data, _BOT_CONVERTERS, http_response=result.http_response)

    def list(self, space_id: str, page_num: int = 0, page_size: int = 0) -> PagedResult[SimpleBot]:
        """List the bots published in a space; defaults to page 1 of 20."""

        def fetch(num: int, size: int) -> Page[SimpleBot]:
            result = self._core.request(
                "GET",
                "/v1/space/published_bots_list",
                params={"space_id": space_id, "page_index": str(num), "page_size": str(size)},
            )
            data = result.data or {}
            bots = _many(SimpleBot)(data.get("space_bots"))
            return Page(
                items=bots,
                has_more=len(bots) >= size,
                total=int(data.get("total") or 0),
                log_id=result.http_response.log_id(),
            )

        return PagedResult(fetch, page_size or 20, page_num or 1)