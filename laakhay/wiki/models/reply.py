"""Action replies from a MediaWiki server.

Architecture:
    A reply is a closed tagged variant with three cases. Each case carries
    exactly the data that case guarantees:
    - SuccessReply: the payload stored under the action's own key
    - ErrorReply: the server's error ``code`` and ``info``
    - UnknownReply: nothing beyond the raw response

    Every variant also keeps the action name and the full raw JSON. The
    well-known ``NULL_REPLY`` (an ErrorReply with an empty response) stands
    for a transport failure, as opposed to a server-reported error.

Design Decisions:
    - Frozen dataclasses: replies are values, shared freely between tasks
    - Accessors on the wrong variant raise ReplyStateError instead of
      returning ``None`` so misuse surfaces immediately
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..core.enums import ReplyType
from ..core.exceptions import ReplyStateError


@dataclass(frozen=True)
class ActionReply:
    """Common surface of the three reply variants."""

    reply_type: ClassVar[ReplyType]

    action: str | None
    response: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def type(self) -> ReplyType:
        return self.reply_type

    @property
    def is_success(self) -> bool:
        return self.reply_type is ReplyType.SUCCESS

    @property
    def is_error(self) -> bool:
        return self.reply_type is ReplyType.ERROR

    @property
    def is_unknown(self) -> bool:
        return self.reply_type is ReplyType.UNKNOWN

    @property
    def is_null_error(self) -> bool:
        """True if this is the transport-failure sentinel."""
        return self is NULL_REPLY

    def raw(self) -> dict[str, Any]:
        """Deep copy of the full JSON response."""
        return copy.deepcopy(self.response)

    def success_json(self) -> Any:
        raise ReplyStateError(ReplyType.SUCCESS.name, self.reply_type.name)

    def error_json(self) -> dict[str, Any]:
        raise ReplyStateError(ReplyType.ERROR.name, self.reply_type.name)

    def unknown_json(self) -> dict[str, Any]:
        raise ReplyStateError(ReplyType.UNKNOWN.name, self.reply_type.name)

    @property
    def error_code(self) -> str:
        raise ReplyStateError(ReplyType.ERROR.name, self.reply_type.name)

    @property
    def error_info(self) -> str:
        raise ReplyStateError(ReplyType.ERROR.name, self.reply_type.name)


@dataclass(frozen=True)
class SuccessReply(ActionReply):
    """The response held a section named after the action."""

    reply_type: ClassVar[ReplyType] = ReplyType.SUCCESS

    payload: Any = None

    def success_json(self) -> Any:
        """Deep copy of the action's own section of the response."""
        return copy.deepcopy(self.payload)


@dataclass(frozen=True)
class ErrorReply(ActionReply):
    """The response held an ``error`` section, or the request never completed."""

    reply_type: ClassVar[ReplyType] = ReplyType.ERROR

    code: str = ""
    info: str = ""

    def error_json(self) -> dict[str, Any]:
        section = self.response.get("error")
        return copy.deepcopy(section) if isinstance(section, dict) else {}

    @property
    def error_code(self) -> str:
        return self.code

    @property
    def error_info(self) -> str:
        return self.info

    @property
    def error(self) -> str:
        """Error code and info joined by a hyphen."""
        return f"{self.code} - {self.info}"


@dataclass(frozen=True)
class UnknownReply(ActionReply):
    """The response was neither a success nor an error for the action."""

    reply_type: ClassVar[ReplyType] = ReplyType.UNKNOWN

    def unknown_json(self) -> dict[str, Any]:
        return self.raw()


NULL_REPLY = ErrorReply(action=None, response={})


def wrap_reply(action: str | None, response: dict[str, Any] | None) -> ActionReply:
    """Wrap a raw JSON reply for ``action`` into the matching variant.

    Args:
        action: The API action the request was made for, e.g. ``edit``
        response: Decoded JSON body (GET or POST)

    Returns:
        ``NULL_REPLY`` for an empty or absent body, otherwise the variant
        chosen by ``ReplyType.classify``
    """
    if not response:
        return NULL_REPLY

    kind = ReplyType.classify(action, response)
    if kind is ReplyType.ERROR:
        section = response.get("error")
        if not isinstance(section, dict):
            section = {}
        return ErrorReply(
            action=action,
            response=response,
            code=str(section.get("code", "")),
            info=str(section.get("info", "")),
        )
    if kind is ReplyType.SUCCESS:
        return SuccessReply(action=action, response=response, payload=response[action])
    return UnknownReply(action=action, response=response)


def error_code_of(response: dict[str, Any] | None) -> str | None:
    """Return the ``error.code`` of a raw response, if it has one."""
    if not isinstance(response, dict):
        return None
    section = response.get("error")
    if isinstance(section, dict) and section.get("code") is not None:
        return str(section["code"])
    return None
