"""Authentication sources that supply access tokens for API requests."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Auth(ABC):
    """A source of access tokens."""

    @abstractmethod
    def token(self) -> str:
        """Return a valid access token."""


class TokenAuth(Auth):
    """Authentication with a fixed access token."""

    def __init__(self, access_token: str) -> None:
        self._access_token = access_token

    def token(self) -> str:
        return self._access_token


def get_refresh_before(ttl: int) -> int:
    """Seconds before expiry at which a token of lifetime ``ttl`` is refreshed."""
    if ttl >= 600:
        return 30
    if ttl >= 60:
        return 10
    if ttl >= 30:
        return 5
    return 0