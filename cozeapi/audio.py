"""Audio resources: real-time rooms, speech synthesis and voice cloning."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO, Any, Mapping

from .models import ResponseModel
from .transport import Core, Page, PagedResult


class _WireEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


def _wire(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class AudioFormat(_WireEnum):
    WAV = "wav"
    PCM = "pcm"
    OGG_OPUS = "ogg_opus"
    M4A = "m4a"
    AAC = "aac"
    MP3 = "mp3"


class LanguageCode(_WireEnum):
    ZH = "zh"
    EN = "en"
    JA = "ja"
    ES = "es"
    ID = "id"
    PT = "pt"


class AudioCodec(_WireEnum):
    AACLC = "AACLC"
    G711A = "G711A"
    OPUS = "OPUS"
    G722 = "G722"


@dataclass
class RoomAudioConfig:
    """Audio settings of a room."""

    codec: AudioCodec | str

    def _to_dict(self) -> dict[str, Any]:
        return {"codec": _wire(self.codec)}


@dataclass
class RoomConfig:
    """Configuration of a room."""

    audio_config: RoomAudioConfig | None = None

    def _to_dict(self) -> dict[str, Any]:
        audio = self.audio_config._to_dict() if self.audio_config is not None else None
        return {"audio_config": audio}


@dataclass
class AudioRoom(ResponseModel):
    """A created audio room and the credentials to join it."""

    room_id: str = ""
    app_id: str = ""
    token: str = ""
    uid: str = ""


@dataclass
class SpeechResult(ResponseModel):
    """Synthesised speech audio."""

    data: bytes = b""

    def write_to_file(self, path: str | os.PathLike[str]) -> None:
        """Write the audio data to ``path``."""
        Path(path).write_bytes(self.data)


@dataclass
class Voice:
    """A voice available to the account."""

    voice_id: str = ""
    name: str = ""
    is_system_voice: bool = False
    language_code: str = ""
    language_name: str = ""
    preview_text: str = ""
    preview_audio: str = ""
    available_training_times: int = 0
    create_time: int = 0
    update_time: int = 0

    @classmethod
    def _from_dict(cls, data: Mapping[str, Any] | None) -> Voice:
        data = data or {}
        return cls(
            voice_id=data.get("voice_id") or "",
            name=data.get("name") or "",
            is_system_voice=bool(data.get("is_system_voice")),
            language_code=data.get("language_code") or "",
            language_name=data.get("language_name") or "",
            preview_text=data.get("preview_text") or "",
            preview_audio=data.get("preview_audio") or "",
            available_training_times=int(data.get("available_training_times") or 0),
            create_time=int(data.get("create_time") or 0),
            update_time=int(data.get("update_time") or 0),
        )


@dataclass
class ClonedVoice(ResponseModel):
    """The voice produced by a clone request."""

    voice_id: str = ""


class AudioRooms:
    """Real-time audio rooms."""

    def __init__(self, core: Core) -> None:
        self._core = core

    def create(
        self,
        bot_id: str,
        conversation_id: str = "",
        voice_id: str = "",
        uid: str = "",
        config: RoomConfig | None = None,
    ) -> AudioRoom:
        """Create a room in which a user can talk to ``bot_id``."""
        body: dict[str, Any] = {"bot_id": bot_id}
        if conversation_id:
            body["conversation_id"] = conversation_id
        if voice_id:
            body["voice_id"] = voice_id
        if uid:
            body["uid"] = uid
        if config is not None:
            body["config"] = config._to_dict()
        result = self._core.request("POST", "/v1/audio/rooms", body)
        data = result.data or {}
        return AudioRoom(
            room_id=data.get("room_id") or "",
            app_id=data.get("app_id") or "",
            token=data.get("token") or "",
            uid=data.get("uid") or "",
            http_response=result.http_response,
        )


class AudioSpeech:
    """Text-to-speech synthesis."""

    def __init__(self, core: Core) -> None:
        self._core = core

    def create(
        self,
        input: str,
        voice_id: str,
        response_format: AudioFormat | str | None = None,
        speed: float | None = None,
    ) -> SpeechResult:
        """Synthesise ``input`` with the voice ``voice_id``."""
        body = {
            "input": input,
            "voice_id": voice_id,
            "response_format": _wire(response_format),
            "speed": speed,
        }
        response = self._core.raw_request("POST", "/v1/audio/speech", body)
        from .transport import http_response_from

        return SpeechResult(data=response.content, http_response=http_response_from(response))


class AudioVoices:
    """Voice cloning and listing."""

    def __init__(self, core: Core) -> None:
        self._core = core

    def clone(
        self,
        voice_name: str,
        file: IO[bytes] | bytes | None,
        audio_format: AudioFormat | str = "",
        language: LanguageCode | str | None = None,
        voice_id: str | None = None,
        preview_text: str | None = None,
        text: str | None = None,
        space_id: str | None = None,
        description: str | None = None,
    ) -> ClonedVoice:
        """Clone a voice from the audio sample in ``file``."""
        if file is None:
            raise ValueError("file is required")
        fields: dict[str, str] = {
            "voice_name": voice_name,
            "audio_format": _wire(audio_format),
        }
        optional = {
            "language": _wire(language),
            "voice_id": voice_id,
            "preview_text": preview_text,
            "text": text,
            "description": description,
            "space_id": space_id,
        }
        fields.update({key: value for key, value in optional.items() if value is not None})
        result = self._core.upload_file("/v1/audio/voices/clone", file, voice_name, fields)
        data = result.data or {}
        return ClonedVoice(voice_id=data.get("voice_id") or "", http_response=result.http_response)

    def list(
        self,
        filter_system_voice: bool = False,
        page_num: int = 0,
        page_size: int = 0,
    ) -> PagedResult[Voice]:
        """List voices page by page; defaults to page 1 of 20."""
        page_size = page_size or 20
        page_num = page_num or 1

        def fetch(num: int, size: int) -> Page[Voice]:
            result = self._core.request(
                "GET",
                "/v1/audio/voices",
                params={
                    "page_num": str(num),
                    "page_size": str(size),
                    "filter_system_voice": "true" if filter_system_voice else "false",
                },
            )
            data = result.data or {}
            voices = [Voice._from_dict(item) for item in data.get("voice_list") or []]
            return Page(
                items=voices,
                has_more=len(voices) >= size,
                log_id=result.http_response.log_id(),
            )

        return PagedResult(fetch, page_size, page_num)


class Audio:
    """Groups the audio resources."""

    def __init__(self, core: Core) -> None:
        self.rooms = AudioRooms(core)
        self.speech = AudioSpeech(core)
        self.voices = AudioVoices(core)