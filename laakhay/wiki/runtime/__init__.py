"""Runtime orchestration components."""

from . import templates
from .backoff import TruncatedBackoff
from .batch import fetch_continued_prop, fetch_list, fetch_prop, values_of
from .cursor import QueryCursor
from .grouping import BatchGrouper
from .rest import EDIT_POLICY, ActionExecutor, FilePart, HTTPClient, RetryPolicy, WikiSession
from .templates import ParamTemplate

__all__ = [
    "BatchGrouper",
    "ParamTemplate",
    "templates",
    "QueryCursor",
    "TruncatedBackoff",
    "ActionExecutor",
    "RetryPolicy",
    "EDIT_POLICY",
    "HTTPClient",
    "FilePart",
    "WikiSession",
    "fetch_continued_prop",
    "fetch_prop",
    "fetch_list",
    "values_of",
]
