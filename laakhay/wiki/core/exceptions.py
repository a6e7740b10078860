"""Custom exception hierarchy.

Only caller-contract violations and explicit authentication failures are
raised. Transport, rate-limit and server-reported errors are surfaced as
reply objects instead (see ``laakhay.wiki.models.reply``).
"""

from __future__ import annotations

import asyncio

import aiohttp


class WikiError(Exception):
    """Base exception for all library errors."""

    pass


class ValidationError(WikiError):
    """Caller supplied an argument the request cannot be built from.

    Raised for unset template placeholders and ``None`` entries in a title
    batch. These are programming errors, not runtime conditions.
    """

    pass


class QueryExhaustedError(WikiError):
    """``advance()`` was called on a cursor that has no more rounds."""

    pass


class ReplyStateError(WikiError):
    """Variant-specific data was requested from a reply of another variant."""

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"Reply is not of state {expected} but is instead {actual}")
        self.expected = expected
        self.actual = actual


class AuthenticationError(WikiError):
    """Login with the supplied credentials failed."""

    def __init__(self, message: str, username: str | None = None, host: str | None = None) -> None:
        super().__init__(message)
        self.username = username
        self.host = host


# Everything a single HTTP exchange can fail with before a JSON body is in
# hand. These never cross the executor boundary; they become null replies.
TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    ValueError,
)
