"""Multi-title query helpers.

Each helper splits its input into groups of ``MAX_GROUP_QUERY`` titles,
runs one cursor per group and folds the replies back into one result keyed
by the caller's own titles (normalization applied).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from ..core.exceptions import ValidationError
from ..models.query_reply import records_of
from .cursor import QueryCursor
from .grouping import BatchGrouper
from .templates import ParamTemplate

if TYPE_CHECKING:
    from .rest.session import WikiSession


def _checked(items: Iterable[str | None]) -> list[str]:
    items = list(items)
    if any(item is None for item in items):
        raise ValidationError("None is not an acceptable title")
    return items  # type: ignore[return-value]


def _cursor_for(
    session: WikiSession,
    template: ParamTemplate,
    key_param: str,
    batch: Sequence[str],
    extra: Mapping[str, str] | None,
) -> QueryCursor:
    cursor = QueryCursor(session, template).set(key_param, batch)
    for key, value in (extra or {}).items():
        cursor.set(key, value)
    return cursor


async def fetch_continued_prop(
    session: WikiSession,
    titles: Iterable[str],
    template: ParamTemplate,
    result_key: str | None = None,
    extra: Mapping[str, str] | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """Collect a paged per-page property for many titles.

    Args:
        session: Session to query with
        titles: Titles to look up; ``None`` entries are rejected
        template: Query template with a ``titles`` placeholder
        result_key: Per-page field holding the records (template default if None)
        extra: Additional parameters for every round

    Returns:
        Title -> records, drained across all continuation rounds. Every
        input title is present; titles the server did not report, or whose
        batch failed, map to an empty list.
    """
    key = result_key or template.result_key
    out: dict[str, list[dict[str, Any]]] = {}
    for batch in BatchGrouper(_checked(titles)):
        for title in batch:
            out.setdefault(title, [])
        async for reply in _cursor_for(session, template, "titles", batch, extra):
            for title, value in reply.prop_comp("title", key).items():
                out.setdefault(title, []).extend(records_of(value))
    return out


async def fetch_prop(
    session: WikiSession,
    titles: Iterable[str],
    template: ParamTemplate,
    result_key: str | None = None,
    extra: Mapping[str, str] | None = None,
) -> dict[str, Any | None]:
    """Collect a single-valued per-page property for many titles.

    One round per batch; continuation is not followed.

    Returns:
        Title -> value for every input title; None where the page carries no
        such field, was not reported, or its batch failed
    """
    key = result_key or template.result_key
    out: dict[str, Any | None] = {}
    for batch in BatchGrouper(_checked(titles)):
        out.update(dict.fromkeys(batch))
        reply = await _cursor_for(session, template, "titles", batch, extra).advance()
        out.update(reply.prop_comp("title", key))
    return out


async def fetch_list(
    session: WikiSession,
    items: Iterable[str],
    template: ParamTemplate,
    key_param: str,
    list_key: str | None = None,
    extra: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """Run a list query for many items bound to ``key_param``, draining continuation."""
    key = list_key or template.result_key
    out: list[dict[str, Any]] = []
    for batch in BatchGrouper(_checked(items)):
        async for reply in _cursor_for(session, template, key_param, batch, extra):
            out.extend(reply.list_comp(key))
    return out


def values_of(mapping: Mapping[str, list[dict[str, Any]]], field: str) -> dict[str, list[Any | None]]:
    """Project every record list onto one field, e.g. ``title``."""
    return {title: [record.get(field) for record in records] for title, records in mapping.items()}
