"""Resilient action execution.

Architecture:
    ActionExecutor issues one logical API action and hides the recoverable
    failure modes from its caller:
    - expired token: handled by the session's request primitive, which
      re-authenticates once and retries exactly once
    - rate limiting: truncated binary exponential backoff, retried until
      the server lets the action through
    - transport faults: logged and converted into ``NULL_REPLY``

    Everything else (server-semantic errors, unknown shapes) is returned to
    the caller as a typed reply. ``execute_with_policy`` layers a bounded
    retry on top for writes whose replies can be ambiguous, such as edits.

Design Decisions:
    - The backoff is an explicit loop carrying its window as state, so a
      server that keeps rate limiting cannot grow the call stack
    - ``sleep`` and ``rng`` are injectable so tests can observe waits
      without actually sleeping
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...core.config import BACKOFF_CEILING, PROTECTED_CODES, RATELIMITED
from ...core.exceptions import TRANSPORT_ERRORS
from ...models.reply import NULL_REPLY, ActionReply, wrap_reply
from ..backoff import TruncatedBackoff
from ..telemetry import log_backoff, log_transport_error

if TYPE_CHECKING:
    from .session import WikiSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry for actions whose replies may be ambiguous.

    Attributes:
        max_attempts: Maximum number of attempts
        terminal_codes: Error codes returned immediately without retrying
        max_elapsed: Optional wall-clock cap in seconds across all attempts;
            None leaves the duration uncapped
    """

    max_attempts: int = 5
    terminal_codes: frozenset[str] = PROTECTED_CODES
    max_elapsed: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.max_elapsed is not None and self.max_elapsed <= 0:
            raise ValueError("max_elapsed must be positive when set")


EDIT_POLICY = RetryPolicy()


class ActionExecutor:
    """Executes API actions against a session with backoff and fault recovery."""

    def __init__(
        self,
        session: WikiSession,
        *,
        backoff_ceiling: int = BACKOFF_CEILING,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            session: Session every request is sent through
            backoff_ceiling: Largest backoff window in seconds
            sleep: Awaitable sleep used for backoff waits
            rng: Random source for backoff waits
        """
        self._session = session
        self._backoff_ceiling = backoff_ceiling
        self._sleep = sleep
        self._rng = rng or random.Random()

    @property
    def session(self) -> WikiSession:
        return self._session

    async def execute(
        self,
        action: str,
        *,
        post: bool = True,
        fields: dict[str, str] | None = None,
        apply_token: bool = False,
    ) -> ActionReply:
        """Perform ``action`` once, absorbing rate limits and transport faults.

        Args:
            action: The literal API action, e.g. ``edit``
            post: POST (form-encoded) instead of GET
            fields: Action parameters; do not URL-encode
            apply_token: Send the session's CSRF token as ``token``

        Returns:
            The classified reply, or ``NULL_REPLY`` on a transport fault
        """
        method = "POST" if post else "GET"
        data = {"format": "json", **(fields or {})}
        if post:
            params, form = {"action": action}, data
        else:
            params, form = {"action": action, **data}, None
        token_key = "token" if apply_token else None

        backoff = TruncatedBackoff(self._backoff_ceiling, self._rng)
        while True:
            try:
                response = await self._session.request(
                    params, form=form, post=post, token_key=token_key
                )
            except TRANSPORT_ERRORS as e:
                log_transport_error(
                    wiki=self._session.log_label,
                    operation=f"{method} {action}",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return NULL_REPLY

            reply = wrap_reply(action, response if isinstance(response, dict) else None)
            if not (reply.is_error and reply.error_code == RATELIMITED):
                return reply

            wait = backoff.next_wait()
            log_backoff(
                wiki=self._session.log_label,
                action=action,
                method=method,
                attempt=backoff.attempts,
                upper_bound=backoff.upper_bound,
                wait_seconds=wait,
            )
            await self._sleep(wait)

    async def post_action(
        self, action: str, *, fields: dict[str, str] | None = None, apply_token: bool = False
    ) -> ActionReply:
        return await self.execute(action, post=True, fields=fields, apply_token=apply_token)

    async def get_action(
        self, action: str, *, fields: dict[str, str] | None = None, apply_token: bool = False
    ) -> ActionReply:
        return await self.execute(action, post=False, fields=fields, apply_token=apply_token)

    async def execute_with_policy(
        self,
        action: str,
        *,
        fields: dict[str, str] | None = None,
        apply_token: bool = True,
        policy: RetryPolicy = EDIT_POLICY,
    ) -> ActionReply:
        """POST ``action`` with a bounded retry on ambiguous replies.

        Success returns immediately. Errors whose code is in
        ``policy.terminal_codes`` return immediately. Anything else is tried
        again until ``policy.max_attempts`` (or ``policy.max_elapsed``) is
        exhausted, and the last reply obtained is returned.
        """
        started = time.monotonic()
        reply: ActionReply = NULL_REPLY
        for attempt in range(policy.max_attempts):
            reply = await self.post_action(action, fields=fields, apply_token=apply_token)
            if reply.is_success:
                return reply
            if reply.is_unknown:
                logger.warning(
                    "Got an unknown response for %s, retrying: %d",
                    action,
                    attempt,
                    extra={"wiki": self._session.log_label, "response": reply.response},
                )
            elif reply.is_error and reply.error_code in policy.terminal_codes:
                logger.error(
                    "%s refused with %s",
                    action,
                    reply.error_code,
                    extra={"wiki": self._session.log_label},
                )
                return reply
            if policy.max_elapsed is not None and time.monotonic() - started >= policy.max_elapsed:
                logger.error(
                    "Giving up on %s after %.1fs",
                    action,
                    time.monotonic() - started,
                    extra={"wiki": self._session.log_label},
                )
                break

        logger.error("Could not complete %s, aborting", action, extra={"wiki": self._session.log_label})
        return reply
