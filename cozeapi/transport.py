"""HTTP core shared by all API resources, plus errors and number paging."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO, Any, Callable, Generic, Iterator, Mapping, TypeVar

import httpx

from .auth import Auth
from .models import AUTHORIZATION_HEADER, COM_BASE_URL, HTTPResponse

logger = logging.getLogger("cozeapi")

T = TypeVar("T")


class CozeAPIError(Exception):
    """The API rejected a request or answered with an error code."""

    def __init__(self, msg: str, *, code: int = 0, status: int = 0, log_id: str = "") -> None:
        super().__init__(msg)
        self.msg = msg
        self.code = code
        self.status = status
        self.log_id = log_id

    def __str__(self) -> str:
        return f"code={self.code}, msg={self.msg}, status={self.status}, logid={self.log_id}"


def http_response_from(response: httpx.Response) -> HTTPResponse:
    """Describe an httpx response as an HTTPResponse."""
    length = response.headers.get("content-length", "")
    return HTTPResponse(
        status=response.status_code,
        headers=response.headers,
        content_length=int(length) if length.isdigit() else -1,
    )


@dataclass(frozen=True)
class APIResult:
    """A decoded JSON reply together with its HTTP response."""

    body: dict[str, Any]
    http_response: HTTPResponse

    @property
    def data(self) -> Any:
        return self.body.get("data")


@dataclass
class Page(Generic[T]):
    """One page of a numbered listing."""

    items: list[T]
    has_more: bool = False
    total: int = 0
    log_id: str = ""


class PagedResult(Generic[T]):
    """A numbered listing; the first page is fetched on construction.

    Iteration walks every item of every page, fetching further pages while
    the server reports more; ``len()`` is the size of the first page.
    """

    def __init__(
        self,
        fetch: Callable[[int, int], Page[T]],
        page_size: int,
        page_num: int,
    ) -> None:
        self._fetch = fetch
        self.page_size = page_size
        self.page_num = page_num
        first = fetch(page_num, page_size)
        self.items: list[T] = list(first.items)
        self.has_more = first.has_more
        self.total = first.total
        self.log_id = first.log_id

    def __iter__(self) -> Iterator[T]:
        yield from self.items
        has_more, num = self.has_more and bool(self.items), self.page_num
        while has_more:
            num += 1
            page = self._fetch(num, self.page_size)
            yield from page.items
            has_more = page.has_more and bool(page.items)

    def __len__(self) -> int:
        return len(self.items)


def _error_from(response: httpx.Response, payload: Any) -> CozeAPIError:
    log_id = http_response_from(response).log_id()
    code, msg = 0, ""
    if isinstance(payload, dict):
        code = int(payload.get("code") or 0)
        msg = str(payload.get("msg") or "")
    if not msg:
        msg = response.reason_phrase or f"HTTP {response.status_code}"
    return CozeAPIError(msg, code=code, status=response.status_code, log_id=log_id)


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _is_json(response: httpx.Response) -> bool:
    return "application/json" in response.headers.get("content-type", "")


class Core:
    """Sends authenticated requests to the API and checks the replies."""

    def __init__(
        self,
        base_url: str = COM_BASE_URL,
        auth: Auth | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self._owns_client = http_client is None
        self._client = http_client if http_client is not None else httpx.Client()

    def __enter__(self) -> Core:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _build(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Request:
        headers: dict[str, str] = {}
        if self.auth is not None:
            try:
                access_token = self.auth.token()
            except Exception as exc:
                logger.error("Failed to get access token: %s", exc)
                raise
            headers[AUTHORIZATION_HEADER] = f"Bearer {access_token}"
        query = {k: v for k, v in (params or {}).items() if v is not None}
        return self._client.build_request(
            method, self.base_url + path, params=query or None, headers=headers, **kwargs
        )

    def _decode(self, response: httpx.Response) -> APIResult:
        payload = _json_or_none(response)
        if response.is_error:
            raise _error_from(response, payload)
        if not isinstance(payload, dict):
            raise CozeAPIError(
                "invalid JSON response",
                status=response.status_code,
                log_id=http_response_from(response).log_id(),
            )
        if payload.get("code"):
            raise _error_from(response, payload)
        return APIResult(payload, http_response_from(response))

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> APIResult:
        """Send a JSON request and return the decoded reply."""
        request = self._build(method, path, params=params, json=body)
        logger.debug("%s %s", method, request.url)
        return self._decode(self._client.send(request))

    def raw_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a JSON request and return the whole, unparsed response."""
        response = self._client.send(self._build(method, path, params=params, json=body))
        if response.is_error:
            raise _error_from(response, _json_or_none(response))
        if _is_json(response):
            payload = _json_or_none(response)
            if isinstance(payload, dict) and payload.get("code"):
                raise _error_from(response, payload)
        return response

    def stream_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        """Send a JSON request and return an open streaming response.

        The caller reads it and closes it.
        """
        request = self._build(method, path, params=params, json=body)
        response = self._client.send(request, stream=True)
        if response.is_error or _is_json(response):
            response.read()
            response.close()
            payload = _json_or_none(response)
            if response.is_error or (isinstance(payload, dict) and payload.get("code")):
                raise _error_from(response, payload)
        return response

    def upload_file(
        self,
        path: str,
        file: IO[bytes] | bytes,
        filename: str,
        fields: Mapping[str, str] | None = None,
    ) -> APIResult:
        """Upload ``file`` as multipart form data with extra ``fields``."""
        request = self._build(
            "POST",
            path,
            data=dict(fields or {}),
            files={"file": (filename, file)},
        )
        return self._decode(self._client.send(request))

    def close(self) -> None:
        """Close the HTTP client if this core created it."""
        if self._owns_client:
            self._client.close()


__all__ = [
    "APIResult",
    "Core",
    "CozeAPIError",
    "Page",
    "PagedResult",
    "http_response_from",
]

_unused = field  # keeps dataclass helpers importable alongside Page