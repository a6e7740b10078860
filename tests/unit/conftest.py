"""Shared fixtures for unit tests.

The fake HTTP client plays the role of a scripted server: every request
pops the next queued response (or raises it, if it is an exception) and is
recorded for later inspection.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any

import pytest

from laakhay.wiki.core import WikiConfig
from laakhay.wiki.runtime.rest import WikiSession


@dataclass
class RecordedCall:
    method: str
    params: dict[str, str]
    form: dict[str, str] = field(default_factory=dict)
    file: Any = None


class FakeHTTPClient:
    """Queue-backed stand-in for HTTPClient."""

    def __init__(self, *responses: Any) -> None:
        self.responses: deque[Any] = deque(responses)
        self.calls: list[RecordedCall] = []
        self.cookies: dict[str, str] = {}
        self.closed = False
        # When set, every request suspends once so concurrent tasks interleave
        self.interleave = False

    def queue(self, *responses: Any) -> FakeHTTPClient:
        self.responses.extend(responses)
        return self

    def _next(self) -> Any:
        if not self.responses:
            raise AssertionError("No queued response left for request")
        response = self.responses.popleft()
        if isinstance(response, BaseException):
            raise response
        return response

    async def get(self, params: dict[str, str]) -> Any:
        if self.interleave:
            await asyncio.sleep(0)
        self.calls.append(RecordedCall("GET", dict(params)))
        return self._next()

    async def post(self, params: dict[str, str], form: dict[str, str], file: Any = None) -> Any:
        if self.interleave:
            await asyncio.sleep(0)
        self.calls.append(RecordedCall("POST", dict(params), dict(form), file))
        return self._next()

    def cookies_for(self, host: str) -> dict[str, str]:
        return dict(self.cookies)

    async def close(self) -> None:
        self.closed = True


class Replies:
    """Builders for canned server replies."""

    @staticmethod
    def userinfo(name: str | None) -> dict[str, Any]:
        """Reply to ``meta=userinfo``; None yields the anonymous shape."""
        if name is None:
            return {"batchcomplete": "", "query": {"userinfo": {"id": 0, "name": "127.0.0.1", "anon": ""}}}
        return {"batchcomplete": "", "query": {"userinfo": {"id": 7, "name": name}}}

    @staticmethod
    def tokens(**values: str) -> dict[str, Any]:
        """Reply to ``meta=tokens``."""
        return {"batchcomplete": "", "query": {"tokens": dict(values)}}

    @staticmethod
    def user_groups(name: str, *groups: str) -> dict[str, Any]:
        """Reply to ``list=users&usprop=groups``."""
        return {
            "batchcomplete": "",
            "query": {"users": [{"userid": 7, "name": name, "groups": list(groups)}]},
        }

    @classmethod
    def login_script(cls, name: str = "Bot", csrf: str = "csrf+\\", *groups: str) -> list[dict[str, Any]]:
        """Responses for one successful login followed by the status refresh."""
        return [
            cls.tokens(logintoken="login+\\"),
            {"login": {"result": "Success", "lguserid": 7, "lgusername": name}},
            cls.userinfo(name),
            cls.tokens(csrftoken=csrf),
            cls.user_groups(name, "user", *groups),
        ]


@pytest.fixture
def replies() -> type[Replies]:
    return Replies


@pytest.fixture
def fake_http() -> FakeHTTPClient:
    return FakeHTTPClient()


@pytest.fixture
def session(fake_http: FakeHTTPClient) -> WikiSession:
    return WikiSession(WikiConfig(), http=fake_http)
