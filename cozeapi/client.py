"""The API client that ties authentication, transport and resources together."""

from __future__ import annotations

import logging

import httpx

from .audio import Audio
from .auth import Auth
from .bots import Bots
from .chats import Chats
from .conversations import Conversations
from .models import COM_BASE_URL
from .transport import Core

_logger = logging.getLogger("cozeapi")


class CozeAPI:
    """Entry point to the API: one authenticated client with all resources.

    Every request carries ``Authorization: Bearer <token>`` with a token taken
    from ``auth``; an error raised by ``auth`` is logged and propagated, and no
    request is sent.
    """

    def __init__(
        self,
        auth: Auth,
        *,
        base_url: str = COM_BASE_URL,
        http_client: httpx.Client | None = None,
        log_level: int = logging.INFO,
        log_handler: logging.Handler | None = None,
    ) -> None:
        if log_handler is not None and log_handler not in _logger.handlers:
            _logger.addHandler(log_handler)
        _logger.setLevel(log_level)
        self.base_url = base_url
        self._core = Core(base_url, auth, http_client)
        self.audio = Audio(self._core)
        self.bots = Bots(self._core)
        self.chat = Chats(self._core)
        self.conversations = Conversations(self._core)

    def close(self) -> None:
        """Release the HTTP client if the API created it."""
        self._core.close()

    def __enter__(self) -> CozeAPI:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()