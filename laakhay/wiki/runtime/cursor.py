"""Query continuation engine.

A QueryCursor drives one logical ``action=query`` through as many rounds as
the server needs. Each round merges the server's ``continue`` object into
the parameters of the next one, and an optional total cap shrinks the last
page so no more than the requested number of items is asked for.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..core.exceptions import TRANSPORT_ERRORS, QueryExhaustedError, ValidationError
from ..models.query_reply import QueryReply
from .telemetry import log_query_round, log_transport_error
from .templates import ParamTemplate

if TYPE_CHECKING:
    from .rest.session import WikiSession


class QueryCursor:
    """Stateful, multi-round query against one session.

    Usage:
        cursor = QueryCursor(session, templates.CATEGORY_MEMBERS)
        cursor.set("cmtitle", "Category:Foo")
        async for reply in cursor:
            titles.extend(r["title"] for r in reply.list_comp("categorymembers"))
    """

    def __init__(self, session: WikiSession, *templates: ParamTemplate, total_cap: int = -1) -> None:
        """Initialize cursor.

        Args:
            session: Session every round is sent through
            *templates: Templates whose defaults seed the parameters
            total_cap: Maximum number of items to ask for across all rounds;
                -1 (or any value <= 0) disables the cap
        """
        self._session = session
        self._params: dict[str, str | None] = {"action": "query", "format": "json"}
        self._limit_keys: list[str] = []
        for template in templates:
            self._params.update(template.defaults())
            if template.limit_key is not None:
                self._limit_keys.append(template.limit_key)
        self._max_limit = session.config.max_result_limit
        self._per_page = self._max_limit
        self._total_cap = total_cap
        self._emitted = 0
        self._rounds = 0
        self._can_continue = True

    @property
    def params(self) -> dict[str, str | None]:
        """Copy of the parameters the next round will be sent with."""
        return dict(self._params)

    @property
    def per_page(self) -> int:
        return self._per_page

    @property
    def rounds(self) -> int:
        return self._rounds

    def has_more(self) -> bool:
        return self._can_continue

    def set(self, key: str, value: str | Sequence[str] | None) -> QueryCursor:
        """Set a parameter. Do not URL-encode; sequences are pipe-joined.

        Returns:
            This cursor, for chaining
        """
        if value is not None and not isinstance(value, str):
            value = "|".join(value)
        self._params[key] = value
        return self

    def adjust_limit(self, limit: int) -> QueryCursor:
        """Fetch at most ``limit`` items per round.

        Values <= 0 or above the configured maximum request ``max``. Does
        nothing to the parameters if the templates declared no limit field.

        Returns:
            This cursor, for chaining
        """
        if limit <= 0 or limit > self._max_limit:
            value = "max"
            self._per_page = self._max_limit
        else:
            value = str(limit)
            self._per_page = limit
        for key in self._limit_keys:
            self._params[key] = value
        return self

    async def advance(self) -> QueryReply:
        """Perform the next round.

        Returns:
            The wrapped reply; ``QueryReply.NULL`` if the request failed in
            transport, which also ends the cursor

        Raises:
            ValidationError: A parameter is still an unset placeholder
            QueryExhaustedError: The cursor has no more rounds
        """
        unset = [k for k, v in self._params.items() if v is None]
        if unset:
            raise ValidationError(f"Fill in *all* the null fields -> {sorted(unset)}")
        if not self._can_continue:
            raise QueryExhaustedError("advance() called on a query with no more rounds")

        final_round = False
        if self._total_cap > 0:
            self._emitted += self._per_page
            if self._emitted >= self._total_cap:
                self.adjust_limit(self._per_page - (self._emitted - self._total_cap))
                final_round = True

        params = {k: v for k, v in self._params.items() if v is not None}
        self._rounds += 1
        try:
            response = await self._session.request(params)
        except TRANSPORT_ERRORS as e:
            log_transport_error(
                wiki=self._session.log_label,
                operation="query",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            self._can_continue = False
            return QueryReply.NULL

        reply = QueryReply.wrap(response if isinstance(response, dict) else None)
        continuation = reply.continuation
        if continuation is not None and not final_round:
            self._params.update(continuation)
        else:
            self._can_continue = False

        log_query_round(
            wiki=self._session.log_label,
            round_index=self._rounds,
            params=params,
            has_more=self._can_continue,
            limit=params.get(self._limit_keys[0]) if self._limit_keys else None,
        )
        return reply

    def __aiter__(self) -> QueryCursor:
        return self

    async def __anext__(self) -> QueryReply:
        if not self._can_continue:
            raise StopAsyncIteration
        return await self.advance()
