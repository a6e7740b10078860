"""Core enums."""

from __future__ import annotations

from enum import Enum


class ReplyType(str, Enum):
    """Classification of a server reply."""

    SUCCESS = "success"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def classify(cls, action: str | None, response: dict) -> ReplyType:
        """Classify a non-empty JSON reply for ``action``.

        An ``error`` section wins over everything else; a section named after
        the action means success; any other shape is unknown.
        """
        if "error" in response:
            return cls.ERROR
        if action is not None and action in response:
            return cls.SUCCESS
        return cls.UNKNOWN
