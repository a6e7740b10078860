"""REST transport, session and action execution."""

from .executor import EDIT_POLICY, ActionExecutor, RetryPolicy
from .http_client import FilePart, HTTPClient
from .session import WikiSession

__all__ = [
    "HTTPClient",
    "FilePart",
    "WikiSession",
    "ActionExecutor",
    "RetryPolicy",
    "EDIT_POLICY",
]
