"""
Shared asynchronous HTTP utilities for provider clients.

The helper wraps :class:`httpx.AsyncClient` so every provider call is
non-blocking, logs requests uniformly and converts failures into the
data-provider error taxonomy. Requests are sent exactly once; retry policy
belongs to the calling layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, MutableMapping, Optional
from urllib.parse import urlencode

import httpx

from ..core.logging import ProviderLogger, get_logger
from .base import AuthenticationError, ExternalProviderError

DEFAULT_TIMEOUT = 15.0
DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 10


def build_authorization_url(base_url: str, params: Mapping[str, Optional[str]]) -> str:
    """Append query ``params`` to ``base_url``, keeping redirect URIs readable."""

    query = urlencode({key: value for key, value in params.items() if value}, safe=":/")
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


@dataclass(slots=True)
class AsyncAPIClient:
    """
    Base asynchronous HTTP client.

    Parameters
    ----------
    base_url:
        Root URL for the upstream API.
    timeout:
        Request timeout in seconds.
    default_headers:
        Headers automatically attached to every request.
    transport:
        Optional transport override, used to plug in fakes.
    """

    base_url: str
    timeout: float = DEFAULT_TIMEOUT
    default_headers: MutableMapping[str, str] = field(default_factory=dict)
    transport: Optional[httpx.AsyncBaseTransport] = None
    logger: ProviderLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.logger = get_logger(
            f"{self.__class__.__module__}.{self.__class__.__name__}",
            extra={"base_url": self.base_url},
        )

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=dict(self.default_headers),
            follow_redirects=True,
            transport=self.transport,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        request = response.request
        raise ExternalProviderError(
            f"HTTP {response.status_code} error for {request.method} {request.url}: {response.text[:500]}",
            status_code=response.status_code,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        access_token: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        merged_headers: MutableMapping[str, str] = {}
        if headers:
            merged_headers.update(headers)
        if access_token:
            merged_headers["Authorization"] = f"Bearer {access_token}"

        self.logger.debug(
            "HTTP request",
            extra={"method": method, "url": url, "params": kwargs.get("params"), "authenticated": bool(access_token)},
        )
        try:
            async with self._build_client() as client:
                response = await client.request(method, url, headers=merged_headers, **kwargs)
        except httpx.HTTPError as exc:
            self.logger.error("HTTP error during request", extra={"method": method, "url": url, "error": str(exc)})
            raise ExternalProviderError(f"HTTP error while calling {method} {url}: {exc}") from exc

        self.logger.debug("HTTP response", extra={"status_code": response.status_code, "url": str(response.url)})
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalProviderError(f"Failed to decode JSON from {response.url}: {exc}", status_code=response.status_code) from exc

    async def _get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        access_token: Optional[str] = None,
        allow_missing: bool = False,
    ) -> Any:
        """
        Fetch a JSON document.

        A 401, or a 403 on an authenticated call, raises
        :class:`AuthenticationError`. With ``allow_missing`` a 404 returns
        ``None`` instead of raising.
        """

        response = await self._request("GET", url, params=params, access_token=access_token)
        status = response.status_code
        if status == 401 or (status == 403 and access_token):
            self.logger.warning("Provider rejected access token", extra={"url": url, "status_code": status})
            raise AuthenticationError(f"The provider rejected the access token for {url} (HTTP {status}).")
        if status == 404 and allow_missing:
            return None
        self._raise_for_status(response)
        return self._decode(response)

    async def _get_paginated(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        access_token: Optional[str] = None,
        page_size_param: str = "per_page",
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> List[Any]:
        """Collect list pages until a short page or ``max_pages`` is reached."""

        items: List[Any] = []
        for page in range(1, max_pages + 1):
            page_params = dict(params or {})
            page_params.update({"page": page, page_size_param: page_size})
            payload = await self._get_json(url, params=page_params, access_token=access_token)
            if not isinstance(payload, list):
                raise ExternalProviderError(f"Unexpected payload for {url}: expected a list.")
            items.extend(payload)
            if len(payload) < page_size:
                break
        return items

    async def _post_form(
        self,
        url: str,
        *,
        data: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        response = await self._request("POST", url, data=dict(data), headers=headers)
        self._raise_for_status(response)
        return self._decode(response)
