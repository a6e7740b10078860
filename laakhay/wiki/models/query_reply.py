"""Replies to ``action=query`` requests with comprehension helpers.

A QueryReply pairs the classified reply with the title normalization map
the server reported for that request. The map is an explicit value on the
reply; it is only ever applied through ``normalize()``.
"""

from __future__ import annotations

import copy
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, ClassVar, TypeVar

from .reply import NULL_REPLY, ActionReply, wrap_reply

V = TypeVar("V")

QUERY = "query"


def records_of(value: Any) -> list[dict[str, Any]]:
    """Keep only the JSON objects of an array (or of an object's values)."""
    if isinstance(value, dict):
        value = list(value.values())
    if not isinstance(value, list):
        return []
    return [copy.deepcopy(v) for v in value if isinstance(v, dict)]


def _pair_off(entries: Any, key: str, value: str) -> dict[str, str]:
    out: dict[str, str] = {}
    for entry in records_of(entries):
        if key in entry and value in entry:
            out[str(entry[key])] = str(entry[value])
    return out


@dataclass(frozen=True)
class QueryReply:
    """A classified query reply plus its normalization map.

    Attributes:
        reply: The success/error/unknown variant for action ``query``
        normalized: Map of non-normalized (``from``) to normalized (``to``) titles
    """

    NULL: ClassVar[QueryReply]

    reply: ActionReply
    normalized: dict[str, str] = field(default_factory=dict)

    @classmethod
    def wrap(cls, response: dict[str, Any] | None) -> QueryReply:
        """Wrap a raw query response; empty or absent bodies map to ``NULL``."""
        reply = wrap_reply(QUERY, response)
        if reply is NULL_REPLY:
            return cls.NULL
        query = response.get(QUERY) if isinstance(response, dict) else None
        normalized = _pair_off(query.get("normalized"), "from", "to") if isinstance(query, dict) else {}
        return cls(reply=reply, normalized=normalized)

    @property
    def response(self) -> dict[str, Any]:
        return self.reply.response

    @property
    def is_success(self) -> bool:
        return self.reply.is_success

    @property
    def is_error(self) -> bool:
        return self.reply.is_error

    @property
    def is_null_error(self) -> bool:
        return self.reply.is_null_error

    @property
    def continuation(self) -> dict[str, str] | None:
        """The ``continue`` object, stringified, or None if this was the last page."""
        cont = self.response.get("continue")
        if not isinstance(cont, dict):
            return None
        return {str(k): str(v) for k, v in cont.items()}

    def _query(self) -> dict[str, Any] | None:
        query = self.response.get(QUERY)
        return query if isinstance(query, dict) else None

    def list_comp(self, key: str) -> list[dict[str, Any]]:
        """Collect the objects of ``query[key]``.

        Args:
            key: Name of the array of objects under ``query``

        Returns:
            A copy of the listed objects; empty if ``query`` or ``key`` is absent
        """
        query = self._query()
        if query is None:
            return []
        return records_of(query.get(key))

    def prop_comp(self, key_field: str, value_field: str) -> dict[str, Any | None]:
        """Collect one key and one value from every entity under ``query.pages``.

        Entities without ``value_field`` map to ``None``; a present but empty
        value is kept as is. Title normalization is applied to the result.

        Args:
            key_field: Entity field to use as the map key (usually ``title``)
            value_field: Entity field to use as the map value

        Returns:
            Normalized map of ``key_field`` to ``value_field``
        """
        out: dict[str, Any | None] = {}
        query = self._query()
        if query is None:
            return out
        for entity in records_of(query.get("pages")):
            if key_field not in entity:
                continue
            out[str(entity[key_field])] = entity.get(value_field)
        return self.normalize(out)

    def meta_comp(self, key: str) -> Any:
        """Return ``query[key]`` for ``meta`` queries, or an empty dict."""
        query = self._query()
        if query is None or key not in query:
            return {}
        return copy.deepcopy(query[key])

    def normalize(self, mapping: MutableMapping[str, V]) -> MutableMapping[str, V]:
        """Give every pre-normalization title the value of its normalized title.

        The server silently rewrites lightly malformed titles and reports the
        rewrite in ``query.normalized``; callers keyed by their own input
        titles must still find their entries. Idempotent.

        Args:
            mapping: Map keyed by normalized titles; modified in place

        Returns:
            ``mapping``, for chaining convenience
        """
        for original, canonical in self.normalized.items():
            if canonical in mapping:
                mapping[original] = mapping[canonical]
        return mapping


QueryReply.NULL = QueryReply(reply=NULL_REPLY)
