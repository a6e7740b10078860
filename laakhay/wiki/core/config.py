"""Shared client constants and per-wiki configuration.

This module centralizes the endpoint defaults, server-imposed limits and
error codes used by the query, action and upload layers so the runtime
modules can stay small and focused.
"""

from __future__ import annotations

import platform

from pydantic import BaseModel, ConfigDict, Field, field_validator
from yarl import URL

DEFAULT_API_ENDPOINT = "https://en.wikipedia.org/w/api.php"
DEFAULT_USER_AGENT = (
    f"laakhay-wiki on {platform.system()} {platform.release()} "
    f"with Python {platform.python_version()}"
)
DEFAULT_TIMEOUT = 120.0

# Low ceiling for list queries; used wherever "max" must be turned into a number
MAX_RESULT_LIMIT = 500
# Maximum number of titles the server accepts in a single multi-title query
MAX_GROUP_QUERY = 50

CHUNK_SIZE = 4 * 1024 * 1024
BACKOFF_CEILING = 2**12

RATELIMITED = "ratelimited"
BADTOKEN = "badtoken"
PROTECTED_CODES = frozenset({"protectedpage", "cascadeprotected"})

# Token the server hands out to anonymous sessions
ANONYMOUS_TOKEN = "+\\"


class WikiConfig(BaseModel):
    """Per-wiki configurable settings.

    Attributes:
        api_endpoint: URL of the wiki's ``api.php``
        user_agent: ``User-Agent`` header sent with every request
        max_result_limit: Numeric value of ``"max"`` for list queries
        timeout: Per-request timeout in seconds
        prefix_logs: Attach ``[user @ host]`` to structured log records
    """

    api_endpoint: str = DEFAULT_API_ENDPOINT
    user_agent: str = Field(default=DEFAULT_USER_AGENT, min_length=1)
    max_result_limit: int = Field(default=MAX_RESULT_LIMIT, gt=0)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    prefix_logs: bool = True

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("api_endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        """Require an absolute http(s) URL."""
        url = URL(v)
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"api_endpoint must be an absolute http(s) URL, got {v!r}")
        return v

    @property
    def url(self) -> URL:
        return URL(self.api_endpoint)

    @property
    def hostname(self) -> str:
        """Host of the API endpoint, e.g. ``en.wikipedia.org``."""
        return self.url.host or ""

    @classmethod
    def for_domain(cls, domain: str, **kwargs) -> WikiConfig:
        """Build a config pointing at the standard ``/w/api.php`` of ``domain``.

        Examples:
            >>> WikiConfig.for_domain("commons.wikimedia.org").api_endpoint
            'https://commons.wikimedia.org/w/api.php'
        """
        return cls(api_endpoint=f"https://{domain}/w/api.php", **kwargs)

    def retarget(self, domain: str) -> WikiConfig:
        """Copy this config onto another host, keeping scheme, port and path."""
        return self.model_copy(update={"api_endpoint": str(self.url.with_host(domain))})
