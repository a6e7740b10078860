"""HTTP client helper."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import aiohttp
from yarl import URL


@dataclass(frozen=True)
class FilePart:
    """Binary part of a multipart upload."""

    filename: str
    data: bytes
    field_name: str = "chunk"
    content_type: str = "application/octet-stream"


class HTTPClient:
    """Async HTTP client wrapper bound to one API endpoint.

    All requests share one ``aiohttp.ClientSession`` (connection pool) and
    one cookie jar. Bodies are decoded as JSON; non-2xx statuses raise
    ``aiohttp.ClientResponseError``.
    """

    def __init__(
        self,
        base_url: str | URL,
        *,
        user_agent: str,
        timeout: float = 120.0,
        cookie_jar: aiohttp.CookieJar | None = None,
    ) -> None:
        self.base_url = URL(base_url)
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=None, sock_read=timeout)
        # unsafe=True keeps cookies for IP-addressed hosts (local test wikis)
        self.cookie_jar = cookie_jar if cookie_jar is not None else aiohttp.CookieJar(unsafe=True)
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                cookie_jar=self.cookie_jar,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def get(self, params: dict[str, str]) -> Any:
        """GET the endpoint with URL parameters (not URL-encoded)."""
        async with self.session.get(self.base_url, params=params) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def post(
        self,
        params: dict[str, str],
        form: dict[str, str],
        file: FilePart | None = None,
    ) -> Any:
        """POST form data, or a multipart body when ``file`` is given.

        Args:
            params: URL parameters (not URL-encoded)
            form: Form fields
            file: Optional binary part; switches the body to multipart/form-data

        Returns:
            Decoded JSON body
        """
        if file is None:
            data: Any = form
        else:
            data = aiohttp.FormData()
            for key, value in form.items():
                data.add_field(key, value)
            data.add_field(
                file.field_name,
                file.data,
                filename=file.filename,
                content_type=file.content_type,
            )
        async with self.session.post(self.base_url, params=params, data=data) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    def cookies_for(self, host: str) -> dict[str, str]:
        """Cookies currently stored for ``host``."""
        out: dict[str, str] = {}
        for morsel in self.cookie_jar:
            domain = morsel["domain"].lstrip(".")
            if not domain or domain == host or host.endswith("." + domain):
                out[morsel.key] = morsel.value
        return out

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
